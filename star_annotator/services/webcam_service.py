"""Webcam service for capturing a single photo to annotate."""

import cv2
import logging
import time
from pathlib import Path
from typing import Optional, Union

from ..core.constants import CAPTURED_FILE_PREFIX, TEMP_FILE_SUFFIX
from ..core.entities import ImageReference
from ..core.exceptions import WebcamError
from ..utils.file_utils import create_temp_file, remove_file_quietly
from ..utils.image_utils import is_blank_frame

logger = logging.getLogger(__name__)


class WebcamService:
    """Service for taking one still photo from a camera device."""

    def __init__(self, camera_index: int = 0, width: int = 1280, height: int = 720,
                 warmup_frames: int = 5):
        """Initialize webcam service.

        Args:
            camera_index: Camera device index
            width: Requested frame width
            height: Requested frame height
            warmup_frames: Frames discarded before the capture so exposure settles
        """
        self.camera_index = camera_index
        self.width = width
        self.height = height
        self.warmup_frames = max(0, warmup_frames)

    def capture_photo(self, directory: Optional[Union[str, Path]] = None) -> ImageReference:
        """Capture one frame and save it as a JPEG file.

        Args:
            directory: Where to write the photo; system temp directory if None

        Returns:
            Reference to the new local photo file

        Raises:
            WebcamError: if the camera cannot be opened, read, or the file written
        """
        capture = cv2.VideoCapture(self.camera_index)
        try:
            if not capture.isOpened():
                raise WebcamError(f"Failed to open camera {self.camera_index}")

            capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)

            for _ in range(self.warmup_frames):
                capture.read()

            ok, frame = capture.read()
            if not ok or frame is None:
                raise WebcamError(f"Failed to read a frame from camera {self.camera_index}")
            if is_blank_frame(frame):
                raise WebcamError(f"Camera {self.camera_index} returned a blank frame")
        finally:
            capture.release()

        prefix = f"{CAPTURED_FILE_PREFIX}{int(time.time() * 1000)}_"
        try:
            path = create_temp_file(prefix, TEMP_FILE_SUFFIX, directory)
        except OSError as e:
            raise WebcamError("Failed to create file for photo") from e

        if not cv2.imwrite(str(path), frame):
            remove_file_quietly(path)
            raise WebcamError(f"Failed to write photo to {path}")

        h, w = frame.shape[:2]
        logger.info(f"Captured {w}x{h} photo to {path}")
        return ImageReference.from_path(path)
