"""Crop one image to a fixed set of aspect ratios."""

__version__ = "1.0.0"
