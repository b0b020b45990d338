"""
The fixed set of aspect ratios every image is cropped to.

Ratios are iterated in a fixed order (portrait, landscape, square); that
order defines the wizard steps and the order of crops in the saved bundle.
This module is Qt-free.
"""

from dataclasses import dataclass
from math import gcd


# =============================================================================
# Aspect-ratio helpers
# =============================================================================
def normalize_ratio(w: int, h: int) -> tuple[int, int]:
    """Reduce ratio to simplest form via GCD. (32, 18) → (16, 9)"""
    g = gcd(w, h)
    return w // g, h // g


def aspect_key(w: int, h: int) -> str:
    """Normalized string key for a ratio. (32, 18) → '16:9'"""
    nw, nh = normalize_ratio(w, h)
    return f"{nw}:{nh}"


# =============================================================================
# Ratio table
# =============================================================================
@dataclass(frozen=True)
class AspectRatioSpec:
    """One target aspect ratio of the wizard."""
    identifier: str
    ratio_w: int
    ratio_h: int
    label: str

    @property
    def ratio(self) -> float:
        """Width divided by height."""
        return self.ratio_w / self.ratio_h

    @property
    def aspect_key(self) -> str:
        return aspect_key(self.ratio_w, self.ratio_h)


ASPECT_RATIOS: tuple[AspectRatioSpec, ...] = (
    AspectRatioSpec("portrait", 2, 3, "Portrait (2:3)"),
    AspectRatioSpec("landscape", 16, 9, "Landscape (16:9)"),
    AspectRatioSpec("square", 1, 1, "Square (1:1)"),
)

RATIO_IDENTIFIERS: tuple[str, ...] = tuple(r.identifier for r in ASPECT_RATIOS)


def ratio_by_identifier(identifier: str) -> AspectRatioSpec:
    """Look up a ratio by identifier.

    Raises KeyError for an unknown identifier.
    """
    for spec in ASPECT_RATIOS:
        if spec.identifier == identifier:
            return spec
    raise KeyError(f"Unknown ratio: {identifier!r}. Available: {', '.join(RATIO_IDENTIFIERS)}")


def ratio_step(identifier: str) -> int:
    """Return the 1-based wizard step that edits *identifier*."""
    return RATIO_IDENTIFIERS.index(ratio_by_identifier(identifier).identifier) + 1
