"""Status bar component."""

import tkinter as tk
from tkinter import ttk


class StatusBar(ttk.Frame):
    """Status bar showing pipeline state and the configured endpoint."""

    def __init__(self, parent):
        super().__init__(parent)
        self._build_ui()

    def _build_ui(self):
        """Build the status bar UI."""
        # Main status label
        self.status_var = tk.StringVar(value="Ready")
        self.status_label = ttk.Label(self, textvariable=self.status_var)
        self.status_label.pack(side='left', padx=(0, 10))

        separator = ttk.Separator(self, orient='vertical')
        separator.pack(side='left', fill='y', padx=5)

        self.endpoint_var = tk.StringVar(value="Server: --")
        self.endpoint_label = ttk.Label(self, textvariable=self.endpoint_var)
        self.endpoint_label.pack(side='left')

    def set_status(self, status: str):
        """Update the main status message."""
        self.status_var.set(status)

    def set_endpoint(self, url: str):
        self.endpoint_var.set(f"Server: {url}")
