"""Core domain entities and constants."""

from .entities import (
    AnnotationRecord, AnnotationSet, ImageReference, LocalImageFile,
    PipelineResult, PipelineStage, PipelineState, StageError
)
from .exceptions import (
    ApplicationError, StageFailure, ResolveError, UploadError, ParseError,
    RenderError, ConfigError, PipelineBusyError, WebcamError
)
from .constants import APP_NAME, VERSION, SUPPORTED_IMAGE_FORMATS

__all__ = [
    "AnnotationRecord", "AnnotationSet", "ImageReference", "LocalImageFile",
    "PipelineResult", "PipelineStage", "PipelineState", "StageError",
    "ApplicationError", "StageFailure", "ResolveError", "UploadError", "ParseError",
    "RenderError", "ConfigError", "PipelineBusyError", "WebcamError",
    "APP_NAME", "VERSION", "SUPPORTED_IMAGE_FORMATS"
]
