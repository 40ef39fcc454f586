"""Custom exceptions for the application."""
from typing import Optional


class ApplicationError(Exception):
    """Base application error."""
    pass


class ConfigError(ApplicationError):
    """Configuration-related errors."""
    pass


class WebcamError(ApplicationError):
    """Webcam access errors."""
    pass


class PipelineBusyError(ApplicationError):
    """Raised when a pipeline run is requested while another is in flight."""
    pass


class StageFailure(ApplicationError):
    """Base class for failures of a single pipeline stage.

    The underlying fault is chained with ``raise ... from`` and exposed as
    :attr:`cause` for diagnostic display.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def cause(self) -> Optional[BaseException]:
        return self.__cause__


class ResolveError(StageFailure):
    """The image reference could not be materialized as a local file."""
    pass


class UploadError(StageFailure):
    """The upload round trip failed."""

    def __init__(self, message: str, http_status: Optional[int] = None):
        super().__init__(message)
        self.http_status = http_status


class ParseError(StageFailure):
    """The service response did not match the annotation schema."""
    pass


class RenderError(StageFailure):
    """The image could not be decoded or annotated."""
    pass
