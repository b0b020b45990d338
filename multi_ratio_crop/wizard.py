"""
Crop wizard controller (Qt-free).

``WizardController`` owns the single ``WizardSession`` and is the only code
that mutates it.  Steps are numbered the way the dialog shows them::

    0           idle, no image selected
    1 .. N      editing the crop for ASPECT_RATIOS[step - 1]
    N + 1       reviewing the finished crops

Advancing from an editing step commits the current rectangle first if that
ratio has no finished crop yet.  Entering the review step while another
ratio is still missing raises IncompleteCropsError, so review is only ever
reached with every ratio completed.  ``save()`` is the only way a ``CropBundle``
leaves the controller.
"""

import logging
from typing import Callable

from multi_ratio_crop.errors import IncompleteCropsError, WizardStateError
from multi_ratio_crop.image_io import derived_file_name, extension_for, load_source_image
from multi_ratio_crop.models import (
    CompletedCrop, CropBundle, CropRect, OriginalFile, SourceImage, WizardSession,
    auto_center_max, default_rectangle_for,
)
from multi_ratio_crop.ratios import ASPECT_RATIOS, AspectRatioSpec, ratio_step
from multi_ratio_crop.rasterizer import rasterize

logger = logging.getLogger(__name__)

IDLE_STEP = 0
FIRST_STEP = 1
REVIEW_STEP = len(ASPECT_RATIOS) + 1


class WizardController:
    """Drives one image through the crop steps and hands back the bundle."""

    def __init__(self, on_save: Callable[[CropBundle], None] | None = None):
        self._on_save = on_save
        self._session: WizardSession | None = None

    # =========================================================================
    # State
    # =========================================================================

    @property
    def step(self) -> int:
        return self._session.step if self._session else IDLE_STEP

    @property
    def is_active(self) -> bool:
        return self._session is not None

    @property
    def is_editing(self) -> bool:
        return FIRST_STEP <= self.step < REVIEW_STEP

    @property
    def is_reviewing(self) -> bool:
        return self.step == REVIEW_STEP

    @property
    def source(self) -> SourceImage | None:
        return self._session.source if self._session else None

    @property
    def active_ratio(self) -> AspectRatioSpec | None:
        """The ratio being edited, or None outside the editing steps."""
        if not self.is_editing:
            return None
        return ASPECT_RATIOS[self.step - 1]

    @property
    def active_rectangle(self) -> CropRect | None:
        ratio = self.active_ratio
        if ratio is None:
            return None
        return self._session.rectangles[ratio.identifier].copy()

    def rectangle_for(self, identifier: str) -> CropRect:
        session = self._require_session()
        return session.rectangles[identifier].copy()

    @property
    def completed_crops(self) -> dict[str, CompletedCrop]:
        """Finished crops keyed by ratio identifier, in ratio order."""
        if not self._session:
            return {}
        return {
            r.identifier: self._session.completed[r.identifier]
            for r in ASPECT_RATIOS if r.identifier in self._session.completed
        }

    def missing_ratios(self) -> list[str]:
        """Ratio identifiers without a finished crop, in ratio order."""
        completed = self._session.completed if self._session else {}
        return [r.identifier for r in ASPECT_RATIOS if r.identifier not in completed]

    # =========================================================================
    # Session lifecycle
    # =========================================================================

    def select_file(self, data: bytes, media_type: str, file_name: str) -> None:
        """
        Start a session for a newly selected file.

        Raises InvalidInputError if the file can't be decoded; the current
        state is left untouched in that case.  A session already in
        progress is discarded.
        """
        source = load_source_image(data, media_type, file_name)

        if self._session is not None:
            logger.info("Discarding unfinished session for %s", self._session.source.file_name)
            self._close_session()

        rectangles = {
            r.identifier: default_rectangle_for(r.ratio, source.width, source.height)
            for r in ASPECT_RATIOS
        }
        self._session = WizardSession(source=source, step=FIRST_STEP, rectangles=rectangles)
        logger.info(
            "Opened %s (%s, %dx%d)", file_name, source.media_type, source.width, source.height,
        )

    def cancel(self) -> None:
        """Abandon the session without emitting anything."""
        if self._session is None:
            return
        logger.info("Cancelled crop session for %s", self._session.source.file_name)
        self._close_session()

    def save(self) -> CropBundle:
        """
        Assemble the bundle, hand it to the save callback and end the session.

        Raises IncompleteCropsError listing the ratios still missing a crop.
        The session ends even if the callback raises; its exception
        propagates to the caller.
        """
        session = self._require_session()
        missing = self.missing_ratios()
        if missing:
            raise IncompleteCropsError(missing)

        source = session.source
        bundle = CropBundle(
            original=OriginalFile(
                file_name=source.file_name,
                media_type=source.media_type,
                data=source.data,
                width=source.width,
                height=source.height,
            ),
            crops=tuple(session.completed[r.identifier] for r in ASPECT_RATIOS),
        )
        logger.info("Saved %s with %d crops", source.file_name, len(bundle.crops))
        try:
            if self._on_save is not None:
                self._on_save(bundle)
        finally:
            self._close_session()
        return bundle

    def _close_session(self) -> None:
        session, self._session = self._session, None
        if session is not None:
            session.close()

    # =========================================================================
    # Rectangle editing
    # =========================================================================

    def update_active_rectangle(self, rect: CropRect) -> None:
        """Store the in-progress rectangle of the active ratio."""
        ratio = self._require_editing()
        self._session.rectangles[ratio.identifier] = rect.copy()

    def commit_active_rectangle(self, rect: CropRect | None = None) -> CompletedCrop:
        """
        Rasterize the active ratio's rectangle and record the result.

        *rect* replaces the stored rectangle first when given.  A previous
        crop for the ratio is only replaced once encoding succeeds.
        """
        ratio = self._require_editing()
        session = self._session
        if rect is not None:
            session.rectangles[ratio.identifier] = rect.copy()
        crop_rect = session.rectangles[ratio.identifier]

        source = session.source
        result = rasterize(source, crop_rect, ratio_identifier=ratio.identifier)
        extension = None
        if result.media_type != source.media_type:
            extension = extension_for(result.media_type)
        completed = CompletedCrop(
            ratio_identifier=ratio.identifier,
            data=result.data,
            file_name=derived_file_name(source.file_name, ratio.identifier, extension),
            media_type=result.media_type,
            width=result.width,
            height=result.height,
            rect=crop_rect.copy(),
        )
        session.completed[ratio.identifier] = completed
        logger.info(
            "Committed %s crop: %dx%d, %d bytes",
            ratio.identifier, completed.width, completed.height, completed.size,
        )
        return completed

    def reset_active_rectangle(self, maximize: bool = False) -> CropRect:
        """Put the active ratio's rectangle back to its default (or largest) placement."""
        ratio = self._require_editing()
        source = self._session.source
        if maximize:
            rect = auto_center_max(source.width, source.height, ratio.ratio)
        else:
            rect = default_rectangle_for(ratio.ratio, source.width, source.height)
        self._session.rectangles[ratio.identifier] = rect
        return rect.copy()

    # =========================================================================
    # Navigation
    # =========================================================================

    def advance(self) -> int:
        """
        Move to the next step and return it.

        An uncommitted ratio is committed with its current rectangle
        first.  Advancing from the review step saves.

        Raises IncompleteCropsError instead of entering the review step
        while another ratio still has no crop.
        """
        session = self._require_session()
        if session.step == REVIEW_STEP:
            self.save()
            return IDLE_STEP

        ratio = ASPECT_RATIOS[session.step - 1]
        if ratio.identifier not in session.completed:
            logger.debug("Auto-committing %s before advancing", ratio.identifier)
            self.commit_active_rectangle()

        if session.step + 1 == REVIEW_STEP:
            missing = self.missing_ratios()
            if missing:
                raise IncompleteCropsError(missing)

        session.step += 1
        logger.debug("Advanced to step %d", session.step)
        return session.step

    def retreat(self) -> int:
        """Move to the previous step and return it; a no-op on the first step."""
        session = self._require_session()
        if session.step > FIRST_STEP:
            session.step -= 1
            logger.debug("Retreated to step %d", session.step)
        return session.step

    def jump_to(self, identifier: str) -> int:
        """Go straight to the editing step of *identifier*."""
        session = self._require_session()
        session.step = ratio_step(identifier)
        return session.step

    # =========================================================================
    # Guards
    # =========================================================================

    def _require_session(self) -> WizardSession:
        if self._session is None:
            raise WizardStateError("No image selected")
        return self._session

    def _require_editing(self) -> AspectRatioSpec:
        self._require_session()
        ratio = self.active_ratio
        if ratio is None:
            raise WizardStateError(f"Not editing a crop (step {self.step})")
        return ratio
