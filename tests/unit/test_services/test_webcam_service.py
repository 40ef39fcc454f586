"""Unit tests for WebcamService.

The camera device is always mocked.
"""
from unittest.mock import Mock, patch

import cv2
import numpy as np
import pytest

from star_annotator.core.constants import CAPTURED_FILE_PREFIX
from star_annotator.core.exceptions import WebcamError
from star_annotator.services.webcam_service import WebcamService


@pytest.fixture
def frame():
    return np.full((480, 640, 3), 128, dtype=np.uint8)


def make_capture(opened=True, read_result=(True, None)):
    cap = Mock()
    cap.isOpened.return_value = opened
    cap.read.return_value = read_result
    return cap


class TestWebcamService:
    """Test suite for WebcamService functionality."""

    def test_initialization(self):
        """Test warmup frame count never goes negative."""
        service = WebcamService(camera_index=2, width=640, height=480, warmup_frames=-3)

        assert service.camera_index == 2
        assert service.warmup_frames == 0

    @patch('cv2.VideoCapture')
    def test_capture_photo_success(self, mock_video_capture, frame, temp_dir):
        """Test a captured frame is written as a JPEG and referenced locally."""
        cap = make_capture(read_result=(True, frame))
        mock_video_capture.return_value = cap
        service = WebcamService(camera_index=1, width=640, height=480, warmup_frames=3)

        reference = service.capture_photo(temp_dir)

        mock_video_capture.assert_called_once_with(1)
        cap.set.assert_any_call(cv2.CAP_PROP_FRAME_WIDTH, 640)
        cap.set.assert_any_call(cv2.CAP_PROP_FRAME_HEIGHT, 480)
        assert cap.read.call_count == 4
        cap.release.assert_called_once()

        assert reference.is_local
        path = reference.local_path
        assert path.parent == temp_dir
        assert path.name.startswith(CAPTURED_FILE_PREFIX)
        assert path.suffix == ".jpg"
        assert cv2.imread(str(path)).shape == (480, 640, 3)

    @patch('cv2.VideoCapture')
    def test_camera_not_opened(self, mock_video_capture, temp_dir):
        """Test an unavailable camera raises WebcamError and is released."""
        cap = make_capture(opened=False)
        mock_video_capture.return_value = cap

        with pytest.raises(WebcamError):
            WebcamService().capture_photo(temp_dir)

        cap.release.assert_called_once()
        assert list(temp_dir.iterdir()) == []

    @patch('cv2.VideoCapture')
    def test_frame_read_failure(self, mock_video_capture, temp_dir):
        cap = make_capture(read_result=(False, None))
        mock_video_capture.return_value = cap

        with pytest.raises(WebcamError):
            WebcamService(warmup_frames=0).capture_photo(temp_dir)

        cap.release.assert_called_once()

    @patch('cv2.VideoCapture')
    def test_blank_frame_rejected(self, mock_video_capture, temp_dir):
        """Test an all-black frame is not saved."""
        blank = np.zeros((480, 640, 3), dtype=np.uint8)
        mock_video_capture.return_value = make_capture(read_result=(True, blank))

        with pytest.raises(WebcamError):
            WebcamService(warmup_frames=0).capture_photo(temp_dir)

        assert list(temp_dir.iterdir()) == []

    @patch('cv2.imwrite', return_value=False)
    @patch('cv2.VideoCapture')
    def test_write_failure_removes_file(self, mock_video_capture, mock_imwrite, frame, temp_dir):
        mock_video_capture.return_value = make_capture(read_result=(True, frame))

        with pytest.raises(WebcamError):
            WebcamService(warmup_frames=0).capture_photo(temp_dir)

        mock_imwrite.assert_called_once()
        assert list(temp_dir.iterdir()) == []
