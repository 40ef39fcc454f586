"""User interface package (tkinter)."""
