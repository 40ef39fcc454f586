"""Main application window."""

import asyncio
import logging
import threading
import tkinter as tk
from tkinter import filedialog, messagebox, ttk
from typing import Optional

from PIL import Image, ImageTk

from ..config.settings import Config
from ..core.constants import APP_NAME, SUPPORTED_IMAGE_FORMATS
from ..core.entities import ImageReference
from ..core.exceptions import PipelineBusyError, WebcamError
from ..services.factory import build_orchestrator
from ..services.webcam_service import WebcamService
from ..utils.file_utils import remove_file_quietly
from ..utils.image_utils import fit_within
from .components.status_bar import StatusBar

logger = logging.getLogger(__name__)


class MainWindow:
    """Main application window; the pipeline's UI collaborator.

    The pipeline runs on a worker thread with its own event loop. Every call
    the orchestrator makes on this window arrives through ``root.after`` so
    widgets are only touched from the Tk thread.
    """

    def __init__(self, root: tk.Tk, config: Config):
        self.root = root
        self.config = config

        self.webcam_service = WebcamService(
            camera_index=config.camera_index,
            width=config.camera_width,
            height=config.camera_height,
            warmup_frames=config.camera_warmup_frames
        )
        self.orchestrator = build_orchestrator(config, view=self, dispatch=self._dispatch)

        self._photo: Optional[ImageTk.PhotoImage] = None  # keep a reference for Tk

        self._setup_window()
        self._build_ui()

    def _setup_window(self):
        """Setup main window properties."""
        self.root.title(APP_NAME)
        self.root.geometry(f"{self.config.window_width}x{self.config.window_height}")
        self.root.grid_rowconfigure(1, weight=1)
        self.root.grid_columnconfigure(0, weight=1)

    def _build_ui(self):
        """Build the main user interface."""
        controls = ttk.Frame(self.root, padding=8)
        controls.grid(row=0, column=0, sticky='ew')

        self.btn_camera = ttk.Button(controls, text="Take Photo", command=self.take_photo)
        self.btn_camera.pack(side='left', padx=(0, 8))
        self.btn_gallery = ttk.Button(controls, text="Choose Image", command=self.choose_image)
        self.btn_gallery.pack(side='left')

        self.progress = ttk.Progressbar(controls, mode='indeterminate', length=160)

        self.image_label = ttk.Label(self.root, anchor='center')
        self.image_label.grid(row=1, column=0, sticky='nsew', padx=8, pady=8)

        self.status_bar = StatusBar(self.root)
        self.status_bar.grid(row=2, column=0, sticky='ew', padx=8, pady=(0, 8))
        self.status_bar.set_endpoint(self.config.upload_url)

    def _dispatch(self, fn):
        self.root.after(0, fn)

    # Pipeline view ---------------------------------------------------------

    def report_busy(self, busy: bool) -> None:
        if busy:
            self.image_label.grid_remove()
            self.progress.pack(side='right')
            self.progress.start(10)
            self.status_bar.set_status("Uploading and annotating...")
        else:
            self.progress.stop()
            self.progress.pack_forget()
            self.image_label.grid()

    def set_controls_enabled(self, enabled: bool) -> None:
        state = '!disabled' if enabled else 'disabled'
        self.btn_camera.state([state])
        self.btn_gallery.state([state])

    def display_image(self, image: Image.Image) -> None:
        max_w = max(1, self.image_label.winfo_width() or self.config.window_width)
        max_h = max(1, self.image_label.winfo_height() or self.config.window_height)
        size = fit_within(image.size, max_w, max_h)
        shown = image if size == image.size else image.resize(size, Image.Resampling.LANCZOS)

        self._photo = ImageTk.PhotoImage(shown)
        self.image_label.configure(image=self._photo)
        self.status_bar.set_status(f"Annotated image {image.width}x{image.height}")

    def display_error(self, message: str) -> None:
        self.status_bar.set_status("Annotation failed")
        messagebox.showerror(APP_NAME, message)

    # Triggers --------------------------------------------------------------

    def take_photo(self):
        try:
            reference = self.webcam_service.capture_photo(self.config.temp_dir or None)
        except WebcamError as e:
            logger.error(f"Camera capture failed: {e}")
            self.status_bar.set_status("Camera capture canceled or failed.")
            messagebox.showerror(APP_NAME, f"Camera capture failed: {e}")
            return
        self._start_pipeline(reference, owned_file=True)

    def choose_image(self):
        patterns = " ".join(f"*{ext}" for ext in SUPPORTED_IMAGE_FORMATS)
        path = filedialog.askopenfilename(title="Choose image", filetypes=[("Images", patterns)])
        if not path:
            self.status_bar.set_status("No image selected.")
            return
        self._start_pipeline(ImageReference.from_path(path))

    def _start_pipeline(self, reference: ImageReference, owned_file: bool = False):
        if self.orchestrator.is_busy:
            logger.warning("Ignoring request while a pipeline run is in progress")
            return
        # Disable triggers now; the orchestrator's own call arrives via after()
        self.set_controls_enabled(False)
        threading.Thread(
            target=self._pipeline_worker, args=(reference, owned_file), daemon=True
        ).start()

    def _pipeline_worker(self, reference: ImageReference, owned_file: bool):
        try:
            asyncio.run(self.orchestrator.run(reference))
        except PipelineBusyError as e:
            logger.warning(str(e))
        finally:
            if owned_file:
                remove_file_quietly(reference.local_path)
