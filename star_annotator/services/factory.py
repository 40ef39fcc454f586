"""Factory for wiring the pipeline services from configuration."""

import logging
from typing import Optional

import httpx

from ..config.settings import Config
from .annotation_service import AnnotationService
from .pipeline_orchestrator import Dispatch, PipelineOrchestrator, PipelineView
from .response_parser import ResponseParser
from .source_resolver import SourceResolver
from .upload_client import UploadClient, UploadTimeouts

logger = logging.getLogger(__name__)


def build_orchestrator(config: Config,
                       view: PipelineView,
                       dispatch: Optional[Dispatch] = None,
                       transport: Optional[httpx.AsyncBaseTransport] = None) -> PipelineOrchestrator:
    """
    Create a fully configured pipeline orchestrator.

    Args:
        config: Application configuration
        view: UI collaborator receiving busy/controls/result calls
        dispatch: Delivers view calls on the UI's thread (inline if None)
        transport: Optional HTTP transport for the upload client

    Returns:
        PipelineOrchestrator ready to run
    """
    timeouts = UploadTimeouts(
        connect=config.connect_timeout,
        write=config.write_timeout,
        read=config.read_timeout
    )
    orchestrator = PipelineOrchestrator(
        resolver=SourceResolver(temp_dir=config.temp_dir or None),
        upload_client=UploadClient(config.upload_url, timeouts=timeouts, transport=transport),
        parser=ResponseParser(),
        annotation_service=AnnotationService(font_path=config.label_font_path or None),
        view=view,
        dispatch=dispatch,
        cleanup_temp_files=config.cleanup_temp_files
    )
    logger.info(f"Pipeline ready: endpoint={config.upload_url}, timeouts={timeouts}")
    return orchestrator
