"""Default configuration values."""

from typing import Any, Dict

DEFAULT_CONFIG: Dict[str, Any] = {
    # Annotation service endpoint
    "upload_url": "http://192.168.1.2:5000/upload",
    "connect_timeout": 60.0,
    "write_timeout": 60.0,
    "read_timeout": 600.0,  # remote processing can take minutes

    # Local files
    "temp_dir": "",  # empty = system temp directory
    "cleanup_temp_files": True,
    "output_dir": "data/results",

    # Rendering
    "label_font_path": "",  # empty = Pillow default font

    # Camera capture
    "camera_index": 0,
    "camera_width": 1280,
    "camera_height": 720,
    "camera_warmup_frames": 5,

    # UI
    "window_width": 1000,
    "window_height": 760,

    # Debug and Logging Settings
    "debug": False,
    "log_level": "INFO",
    "log_dir": "logs",
    "enable_file_logging": True,
    "structured_logging": False,
}
