"""
Application constants and configuration.

All constants controlling the crop wizard live here: default-crop geometry,
crop-editor behaviour, the media types the rasterizer can encode, and the
encoder settings used for every derived crop.  There is no configuration
file; a wizard session never outlives the process.
"""

# =============================================================================
# APP IDENTITY
# =============================================================================
APP_NAME = "multi-ratio-crop"
APP_TITLE = "Image Upload with Multi-Ratio Cropping"

# =============================================================================
# DEFAULT CROP GEOMETRY
# =============================================================================
# Fraction of the constraining image dimension covered by a default crop
DEFAULT_CROP_FRACTION = 0.8

# =============================================================================
# CROP EDITOR
# =============================================================================
# Minimum crop width (pixels in image coordinates)
MIN_CROP_SIZE = 50

# Handle size for resize corners (pixels in screen coordinates)
HANDLE_SIZE = 10

# Nudge amounts (pixels in image coordinates)
NUDGE_SMALL = 1
NUDGE_LARGE = 10

# Largest on-screen size of the editor and of review thumbnails
EDITOR_MIN_WIDTH = 480
EDITOR_MIN_HEIGHT = 320
THUMBNAIL_SIZE = 200

# =============================================================================
# ENCODING
# =============================================================================
# PNG compression level (0-9, 9 = maximum compression)
PNG_COMPRESS_LEVEL = 9

# JPEG export defaults
JPEG_QUALITY = 95
JPEG_SUBSAMPLING = 0  # 4:4:4
JPEG_OPTIMIZE = True

# WEBP export defaults
WEBP_QUALITY = 90

# Media type -> Pillow format name for every type crops can be written as
MEDIA_TYPE_FORMATS = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
    "image/pjpeg": "JPEG",
    "image/webp": "WEBP",
    "image/bmp": "BMP",
    "image/x-ms-bmp": "BMP",
    "image/gif": "GIF",
    "image/tiff": "TIFF",
}

# Used when the source media type cannot be encoded (canvas falls back the same way)
FALLBACK_MEDIA_TYPE = "image/png"

# Supported image extensions for the file dialog and drop zone
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".bmp", ".gif", ".tiff", ".tif"}
