"""
Exceptions raised by the crop wizard core.

Geometry that strays outside the image is never an error: it is clamped
where it is used.  Everything else the core cannot recover from locally is
reported through one of these classes so the GUI can tell the user which
step to revisit.
"""


class CropWizardError(Exception):
    """Base class for all crop wizard failures."""


class InvalidInputError(CropWizardError, ValueError):
    """The selected file is missing, empty, or not a readable image."""


class InvalidCropError(CropWizardError, ValueError):
    """A crop rectangle has no area."""


class IncompleteCropsError(CropWizardError, ValueError):
    """Save was requested before every ratio had a finished crop."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"Please complete all crop types: {', '.join(self.missing)}")


class EncodingError(CropWizardError, RuntimeError):
    """The rasterizer could not produce an encoded image for a ratio."""

    def __init__(self, message: str, ratio_identifier: str | None = None):
        self.ratio_identifier = ratio_identifier
        super().__init__(message)


class WizardStateError(CropWizardError, RuntimeError):
    """An operation was invoked in a wizard step where it has no meaning."""
