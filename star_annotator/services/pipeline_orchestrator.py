"""
Pipeline orchestrator.

Sequences resolve -> upload -> parse -> render for one image reference,
keeps the UI collaborator's busy indicator and controls in step with the
run, and turns any stage failure into a single :class:`StageError`.

Architecture Overview:
- One run at a time; a second request while busy is rejected
- Stage components raise typed ``StageFailure`` exceptions; the single
  stage dispatch point converts them to values, so a run always ends in
  a ``PipelineResult``
- View calls are handed to ``dispatch`` so they land on the UI's own
  thread (tkinter: ``root.after``)
- Temporary files are owned by the run; one produced by a worker thread
  after the run has ended is removed as soon as it arrives
"""
from __future__ import annotations
import asyncio
import logging
import threading
import time
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Type, TypeVar

from ..core.entities import (
    AnnotationSet, ImageReference, LocalImageFile, PipelineResult, PipelineStage,
    PipelineState, STAGE_STATES, StageError
)
from ..core.exceptions import (
    ParseError, PipelineBusyError, RenderError, ResolveError, StageFailure, UploadError
)
from ..core.logging_config import CorrelationContext
from ..utils.file_utils import remove_file_quietly
from .annotation_service import AnnotationService
from .response_parser import ResponseParser
from .source_resolver import SourceResolver
from .upload_client import UploadClient

logger = logging.getLogger(__name__)

T = TypeVar("T")
Dispatch = Callable[[Callable[[], None]], None]

STAGE_FAILURES: Dict[PipelineStage, Type[StageFailure]] = {
    PipelineStage.RESOLVE: ResolveError,
    PipelineStage.UPLOAD: UploadError,
    PipelineStage.PARSE: ParseError,
    PipelineStage.RENDER: RenderError,
}


class PipelineView(Protocol):
    """The UI collaborator driven by the orchestrator."""

    def report_busy(self, busy: bool) -> None: ...

    def set_controls_enabled(self, enabled: bool) -> None: ...

    def display_image(self, image: Any) -> None: ...

    def display_error(self, message: str) -> None: ...


def _call_inline(fn: Callable[[], None]) -> None:
    fn()


def format_stage_error(error: StageError) -> str:
    """Compose the single user-facing message for a failed run."""
    return (
        f"Error [{error.kind}] during {error.stage.value}: {error.message}\n"
        f"Cause [{error.cause_kind or 'none'}]: {error.cause_message or 'none'}"
    )


class RunFiles:
    """Temporary files held by one pipeline run.

    Files may be adopted from worker threads. Once the run has released
    its files, anything adopted later is discarded immediately.
    """

    def __init__(self, cleanup: bool = True):
        self.cleanup = cleanup
        self._lock = threading.Lock()
        self._files: List[LocalImageFile] = []
        self._released = False

    def adopt(self, file: LocalImageFile) -> None:
        if not file.is_temporary:
            return
        with self._lock:
            if not self._released:
                self._files.append(file)
                return
        logger.info(f"Run already ended; discarding late temporary file {file.path}")
        self._discard(file)

    def release(self) -> None:
        with self._lock:
            self._released = True
            files, self._files = self._files, []
        for file in files:
            self._discard(file)

    def _discard(self, file: LocalImageFile) -> None:
        if self.cleanup and remove_file_quietly(file.path):
            logger.debug(f"Removed temporary file {file.path}")


class PipelineOrchestrator:
    """Runs the annotation pipeline for one image reference at a time."""

    def __init__(self,
                 resolver: SourceResolver,
                 upload_client: UploadClient,
                 parser: ResponseParser,
                 annotation_service: AnnotationService,
                 view: PipelineView,
                 dispatch: Optional[Dispatch] = None,
                 cleanup_temp_files: bool = True):
        self.resolver = resolver
        self.upload_client = upload_client
        self.parser = parser
        self.annotation_service = annotation_service
        self.view = view
        self.dispatch = dispatch or _call_inline
        self.cleanup_temp_files = cleanup_temp_files

        self._state = PipelineState.IDLE
        self._active_run: Optional[str] = None

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def is_busy(self) -> bool:
        return self._active_run is not None

    async def run(self, reference: ImageReference) -> PipelineResult:
        """Run all stages for ``reference`` and report the outcome to the view.

        Raises:
            PipelineBusyError: if another run is still in flight.
        """
        if self._active_run is not None:
            raise PipelineBusyError(f"Pipeline run {self._active_run} is still in progress")

        run_id = uuid.uuid4().hex[:12]
        self._active_run = run_id
        result = PipelineResult(run_id=run_id)
        files = RunFiles(cleanup=self.cleanup_temp_files)
        started = time.perf_counter()
        completed = False

        with CorrelationContext(run_id):
            try:
                logger.info(f"Pipeline started for {reference}")
                self._notify(self.view.report_busy, True)
                self._notify(self.view.set_controls_enabled, False)
                await self._execute(reference, result, files)
                completed = True
            finally:
                result.elapsed_ms = (time.perf_counter() - started) * 1000
                files.release()
                try:
                    self._finish(result, completed)
                finally:
                    self._state = PipelineState.IDLE
                    self._active_run = None

        return result

    async def _execute(self, reference: ImageReference, result: PipelineResult, files: RunFiles) -> None:
        loop = asyncio.get_running_loop()

        resolved = await self._run_stage(
            PipelineStage.RESOLVE, result,
            lambda: loop.run_in_executor(None, self._resolve, reference, files))
        if resolved is None:
            return

        body = await self._run_stage(
            PipelineStage.UPLOAD, result,
            lambda: self.upload_client.upload(resolved))
        if body is None:
            return

        annotations: Optional[AnnotationSet] = await self._run_stage(
            PipelineStage.PARSE, result,
            lambda: self._completed(self.parser.parse(body)))
        if annotations is None:
            return

        image = await self._run_stage(
            PipelineStage.RENDER, result,
            lambda: loop.run_in_executor(None, self.annotation_service.render, resolved, annotations))
        if image is None:
            return

        result.image = image
        self._transition(result, PipelineState.DISPLAYING)

    def _resolve(self, reference: ImageReference, files: RunFiles) -> LocalImageFile:
        # Runs in a worker thread that can outlive a cancelled run
        resolved = self.resolver.resolve(reference)
        files.adopt(resolved)
        return resolved

    async def _run_stage(self, stage: PipelineStage, result: PipelineResult,
                         action: Callable[[], Awaitable[T]]) -> Optional[T]:
        """Run one stage; on failure record the StageError and return None."""
        self._transition(result, STAGE_STATES[stage])
        try:
            return await action()
        except StageFailure as failure:
            result.error = StageError.from_failure(stage, failure)
        except Exception as e:
            logger.exception(f"Unexpected error during {stage.value}")
            result.error = StageError(stage=stage, message="Unexpected error",
                                      kind=STAGE_FAILURES[stage].__name__, cause=e)
        self._transition(result, PipelineState.FAILED)
        logger.error(f"Pipeline failed: {format_stage_error(result.error)}")
        return None

    @staticmethod
    async def _completed(value: T) -> T:
        return value

    def _transition(self, result: PipelineResult, state: PipelineState) -> None:
        logger.info(f"State {self._state.value} -> {state.value}")
        self._state = state
        result.states.append(state)

    def _finish(self, result: PipelineResult, completed: bool) -> None:
        """Restore the view on every exit path, then deliver the outcome."""
        self._notify(self.view.report_busy, False)
        self._notify(self.view.set_controls_enabled, True)

        if completed:
            if result.success:
                self._notify(self.view.display_image, result.image)
                logger.info(f"Pipeline completed in {result.elapsed_ms:.1f}ms")
            else:
                self._notify(self.view.display_error, format_stage_error(result.error))
        else:
            logger.warning(f"Pipeline run {result.run_id} aborted after {result.elapsed_ms:.1f}ms")

    def _notify(self, method: Callable[..., None], *args: Any) -> None:
        self.dispatch(lambda: method(*args))
