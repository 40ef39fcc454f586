"""Services package for business logic."""

from .source_resolver import SourceResolver, open_http_stream
from .upload_client import UploadClient, UploadTimeouts
from .response_parser import ResponseParser, serialize_annotations
from .annotation_service import AnnotationService
from .pipeline_orchestrator import PipelineOrchestrator, PipelineView, format_stage_error
from .webcam_service import WebcamService
from .factory import build_orchestrator

__all__ = [
    "SourceResolver", "open_http_stream", "UploadClient", "UploadTimeouts",
    "ResponseParser", "serialize_annotations", "AnnotationService",
    "PipelineOrchestrator", "PipelineView", "format_stage_error",
    "WebcamService", "build_orchestrator"
]
