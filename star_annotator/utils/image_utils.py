"""Image processing utilities."""

import numpy as np
from typing import Tuple


def is_blank_frame(frame: np.ndarray) -> bool:
    """True for an empty or all-black frame."""
    return frame.size == 0 or not np.any(frame)


def fit_within(size: Tuple[int, int], max_width: int, max_height: int) -> Tuple[int, int]:
    """Scale (width, height) down to fit a box, keeping aspect ratio. Never upscales."""
    w, h = size
    if w <= 0 or h <= 0:
        return (0, 0)
    if w <= max_width and h <= max_height:
        return (w, h)

    scale = min(max_width / w, max_height / h)
    return (max(1, int(w * scale)), max(1, int(h * scale)))
