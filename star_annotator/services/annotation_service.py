"""Annotation service: draws labeled star markers onto a copy of an image."""
from __future__ import annotations
import logging
import math
from typing import Optional, Tuple

from PIL import Image, ImageDraw, ImageFilter, ImageFont, UnidentifiedImageError

from ..core.constants import (
    CIRCLE_COLOR, CIRCLE_RADIUS, CIRCLE_STROKE_WIDTH, LABEL_COLOR, LABEL_OFFSET,
    LABEL_TEXT_SIZE, SHADOW_BLUR_RADIUS, SHADOW_COLOR, SHADOW_OFFSET
)
from ..core.entities import AnnotationRecord, AnnotationSet, LocalImageFile
from ..core.exceptions import RenderError

logger = logging.getLogger(__name__)

Box = Tuple[int, int, int, int]


class AnnotationService:
    """Service for rendering annotation records onto images.

    The source file is only read. Rendering works on an RGBA copy of the
    decoded image; the decoded original is closed as soon as the copy
    exists.
    """

    def __init__(self, font_path: Optional[str] = None):
        self._font = self._load_font(font_path)
        # Baseline anchoring needs a FreeType font
        self._anchor = "ls" if isinstance(self._font, ImageFont.FreeTypeFont) else None

    @staticmethod
    def _load_font(font_path: Optional[str]):
        if font_path:
            try:
                return ImageFont.truetype(font_path, LABEL_TEXT_SIZE)
            except OSError as e:
                logger.warning(f"Failed to load label font '{font_path}': {e}. Using default font.")
        return ImageFont.load_default(size=LABEL_TEXT_SIZE)

    def decode(self, file: LocalImageFile) -> Image.Image:
        """Decode the file into a mutable RGBA image."""
        try:
            with Image.open(file.path) as decoded:
                decoded.load()
                canvas = decoded.convert("RGBA")
        except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
            raise RenderError(f"Failed to decode image {file.name}") from e
        return canvas

    def render(self, file: LocalImageFile, annotations: AnnotationSet) -> Image.Image:
        canvas = self.decode(file)
        draw = ImageDraw.Draw(canvas)

        for record in annotations:
            self._draw_circle(canvas, draw, record)
            self._draw_label(canvas, draw, record)

        logger.info(f"Rendered {len(annotations)} annotations on {canvas.width}x{canvas.height} image")
        return canvas

    def _draw_circle(self, canvas: Image.Image, draw: ImageDraw.ImageDraw, record: AnnotationRecord) -> None:
        # Pillow strokes inward from the box; centre the stroke on the radius
        r = CIRCLE_RADIUS + CIRCLE_STROKE_WIDTH / 2
        box = (record.x - r, record.y - r, record.x + r, record.y + r)
        # Pillow overflows on coordinates far outside the canvas
        if self._clip(self._pixel_box(box), canvas.size) is None:
            return
        draw.ellipse(
            box,
            outline=CIRCLE_COLOR,
            width=CIRCLE_STROKE_WIDTH
        )

    def _draw_label(self, canvas: Image.Image, draw: ImageDraw.ImageDraw, record: AnnotationRecord) -> None:
        origin = (record.x + LABEL_OFFSET[0], record.y + LABEL_OFFSET[1])
        shadow_origin = (origin[0] + SHADOW_OFFSET[0], origin[1] + SHADOW_OFFSET[1])

        self._composite_shadow(canvas, draw, record.label, shadow_origin)

        bbox = draw.textbbox(origin, record.label, font=self._font, anchor=self._anchor)
        if self._clip(self._pixel_box(bbox), canvas.size) is None:
            return
        draw.text(origin, record.label, fill=LABEL_COLOR, font=self._font, anchor=self._anchor)

    def _composite_shadow(self, canvas: Image.Image, draw: ImageDraw.ImageDraw,
                          text: str, origin: Tuple[float, float]) -> None:
        """Blur the text shadow in a local layer and composite the visible part."""
        pad = int(math.ceil(3 * SHADOW_BLUR_RADIUS))
        bbox = draw.textbbox(origin, text, font=self._font, anchor=self._anchor)
        left, top, right, bottom = self._pixel_box(bbox, pad)

        visible = self._clip((left, top, right, bottom), canvas.size)
        if visible is None:
            return

        layer = Image.new("RGBA", (right - left, bottom - top), (0, 0, 0, 0))
        ImageDraw.Draw(layer).text(
            (origin[0] - left, origin[1] - top), text,
            fill=SHADOW_COLOR, font=self._font, anchor=self._anchor
        )
        layer = layer.filter(ImageFilter.GaussianBlur(SHADOW_BLUR_RADIUS))

        canvas.alpha_composite(
            layer,
            dest=(visible[0], visible[1]),
            source=(visible[0] - left, visible[1] - top, visible[2] - left, visible[3] - top)
        )

    @staticmethod
    def _pixel_box(box: Tuple[float, float, float, float], pad: int = 0) -> Box:
        """Smallest integer box covering ``box``, grown by ``pad`` on every side."""
        return (
            int(math.floor(box[0])) - pad,
            int(math.floor(box[1])) - pad,
            int(math.ceil(box[2])) + pad,
            int(math.ceil(box[3])) + pad,
        )

    @staticmethod
    def _clip(box: Box, size: Tuple[int, int]) -> Optional[Box]:
        left, top = max(0, box[0]), max(0, box[1])
        right, bottom = min(size[0], box[2]), min(size[1], box[3])
        if left >= right or top >= bottom:
            return None
        return (left, top, right, bottom)
