"""Application constants and fixed visual parameters."""

APP_NAME = "Star Annotator"
VERSION = "1.0.0"

SUPPORTED_IMAGE_FORMATS = (".jpg", ".jpeg", ".png", ".bmp", ".webp", ".tif", ".tiff")

# Upload wire format
UPLOAD_FIELD_NAME = "image"
UPLOAD_CONTENT_TYPE = "image/jpeg"
RESPONSE_ARRAY_KEY = "stars"
RESPONSE_LABEL_KEY = "name"
RESPONSE_X_KEY = "x"
RESPONSE_Y_KEY = "y"

# Timeout floors in seconds; the read timeout covers remote processing time.
MIN_CONNECT_TIMEOUT = 60.0
MIN_WRITE_TIMEOUT = 60.0
MIN_READ_TIMEOUT = 600.0

# Temporary file naming
RESOLVED_FILE_PREFIX = "selected_image_"
CAPTURED_FILE_PREFIX = "photo_"
TEMP_FILE_SUFFIX = ".jpg"

# Annotation drawing (pixels, RGBA)
CIRCLE_RADIUS = 20.0
CIRCLE_STROKE_WIDTH = 5
CIRCLE_COLOR = (255, 0, 0, 255)
LABEL_TEXT_SIZE = 25
LABEL_OFFSET = (25.0, -25.0)
LABEL_COLOR = (255, 255, 255, 255)
SHADOW_COLOR = (0, 0, 0, 255)
SHADOW_OFFSET = (2.0, 2.0)
SHADOW_BLUR_RADIUS = 5.0
