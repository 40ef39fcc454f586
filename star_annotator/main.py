"""Main entry point for the Star Annotator desktop application."""

import logging
import sys
import tkinter as tk

from .config.settings import load_config
from .core.logging_config import configure_logging
from .utils.file_utils import ensure_dirs
from .ui.main_window import MainWindow

logger = logging.getLogger(__name__)


def setup_directories(config):
    """Ensure required directories exist."""
    ensure_dirs(config.temp_dir, config.output_dir)


def main():
    """Desktop application entry point."""
    config = load_config()
    configure_logging(
        log_level=config.effective_log_level,
        log_dir=config.log_dir,
        enable_file_logging=config.enable_file_logging,
        structured_logging=config.structured_logging
    )

    try:
        setup_directories(config)

        root = tk.Tk()
        MainWindow(root, config)

        # Center window on screen
        root.update_idletasks()
        width = root.winfo_width()
        height = root.winfo_height()
        pos_x = (root.winfo_screenwidth() // 2) - (width // 2)
        pos_y = (root.winfo_screenheight() // 2) - (height // 2)
        root.geometry(f"{width}x{height}+{pos_x}+{pos_y}")

        logger.info(f"Starting Star Annotator, server: {config.upload_url}")
        root.mainloop()

    except (tk.TclError, OSError) as e:
        logger.exception(f"Failed to start application: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
