"""Domain entities (data-only structures) used across services."""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union
from urllib.parse import unquote, urlparse
import math

from .exceptions import StageFailure, UploadError

LOCAL_SCHEMES = ("", "file")


@dataclass(frozen=True, slots=True)
class ImageReference:
    """Opaque locator for user-selected image content.

    Either a local path (plain or ``file://``) or a URI whose bytes must be
    fetched through an opener (``http``, ``https`` or a registered scheme).
    """
    uri: str

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "ImageReference":
        return cls(str(Path(path)))

    @property
    def scheme(self) -> str:
        scheme = urlparse(self.uri).scheme.lower()
        # Windows drive letters parse as a one-letter scheme
        if len(scheme) == 1:
            return ""
        return scheme

    @property
    def is_local(self) -> bool:
        return self.scheme in LOCAL_SCHEMES

    @property
    def local_path(self) -> Optional[Path]:
        """Filesystem path for local references, None otherwise."""
        if not self.is_local:
            return None
        if self.scheme == "file":
            parsed = urlparse(self.uri)
            return Path(unquote(parsed.path))
        return Path(self.uri)

    def __str__(self) -> str:
        return self.uri


@dataclass(frozen=True, slots=True)
class LocalImageFile:
    path: Path
    is_temporary: bool = False  # created by the resolver, owned by one run

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True, slots=True)
class AnnotationRecord:
    """A named point in image pixel coordinates. Not bounds-checked."""
    label: str
    x: float
    y: float

    def __post_init__(self):
        if not isinstance(self.label, str) or not self.label:
            raise ValueError("Annotation label must be a non-empty string")
        for axis in ("x", "y"):
            value = float(getattr(self, axis))
            if not math.isfinite(value):
                raise ValueError(f"Annotation {axis} must be finite, got {value}")
            object.__setattr__(self, axis, value)

    @property
    def point(self) -> Tuple[float, float]:
        return (self.x, self.y)


AnnotationSet = Tuple[AnnotationRecord, ...]  # server response order


class PipelineStage(Enum):
    RESOLVE = "Resolve"
    UPLOAD = "Upload"
    PARSE = "Parse"
    RENDER = "Render"


class PipelineState(Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    UPLOADING = "uploading"
    PARSING = "parsing"
    RENDERING = "rendering"
    DISPLAYING = "displaying"
    FAILED = "failed"


STAGE_STATES = {
    PipelineStage.RESOLVE: PipelineState.RESOLVING,
    PipelineStage.UPLOAD: PipelineState.UPLOADING,
    PipelineStage.PARSE: PipelineState.PARSING,
    PipelineStage.RENDER: PipelineState.RENDERING,
}


@dataclass(frozen=True, slots=True)
class StageError:
    """Failure of one pipeline stage, as a value."""
    stage: PipelineStage
    message: str
    kind: str
    cause: Optional[BaseException] = None
    http_status: Optional[int] = None

    @classmethod
    def from_failure(cls, stage: PipelineStage, failure: StageFailure) -> "StageError":
        return cls(
            stage=stage,
            message=failure.message,
            kind=type(failure).__name__,
            cause=failure.cause,
            http_status=failure.http_status if isinstance(failure, UploadError) else None,
        )

    @property
    def cause_kind(self) -> Optional[str]:
        return type(self.cause).__name__ if self.cause is not None else None

    @property
    def cause_message(self) -> Optional[str]:
        if self.cause is None:
            return None
        return str(self.cause) or "no message"


@dataclass(slots=True)
class PipelineResult:
    """Terminal outcome of one pipeline run: a rendered image or a StageError."""
    run_id: str
    image: Any = None  # PIL.Image.Image (RGBA) on success
    error: Optional[StageError] = None
    states: List[PipelineState] = field(default_factory=list)
    elapsed_ms: float = 0.0

    @property
    def success(self) -> bool:
        return self.error is None and self.image is not None

    @property
    def state(self) -> PipelineState:
        return PipelineState.DISPLAYING if self.success else PipelineState.FAILED
