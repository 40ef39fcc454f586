"""
Star annotation client: upload a sky photo, draw the returned star labels.
"""

__version__ = "1.0.0"
__author__ = "Star Annotator Team"

from .config.settings import Config, load_config, save_config
from .core.entities import AnnotationRecord, ImageReference, PipelineResult, StageError

__all__ = [
    "Config", "load_config", "save_config",
    "AnnotationRecord", "ImageReference", "PipelineResult", "StageError"
]
