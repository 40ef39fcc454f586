"""Reusable UI components."""

from .status_bar import StatusBar

__all__ = ["StatusBar"]
