"""Turns image references into local files the rest of the pipeline can read."""
from __future__ import annotations
import errno
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, ContextManager, Dict, Iterable, Iterator, Optional, Union

import httpx

from ..core.constants import RESOLVED_FILE_PREFIX, TEMP_FILE_SUFFIX
from ..core.entities import ImageReference, LocalImageFile
from ..core.exceptions import ResolveError
from ..utils.file_utils import create_temp_file, remove_file_quietly

logger = logging.getLogger(__name__)

# An opener yields the reference's bytes as chunks and closes its source on exit.
ByteStreamOpener = Callable[[ImageReference], ContextManager[Iterable[bytes]]]

DOWNLOAD_CHUNK_SIZE = 64 * 1024


@contextmanager
def open_http_stream(reference: ImageReference, timeout: float = 60.0) -> Iterator[Iterable[bytes]]:
    """Stream a remote image over HTTP(S)."""
    with httpx.stream("GET", reference.uri, timeout=timeout, follow_redirects=True) as response:
        response.raise_for_status()
        yield response.iter_bytes(DOWNLOAD_CHUNK_SIZE)


class SourceResolver:
    """Materializes an :class:`ImageReference` as a :class:`LocalImageFile`.

    Local paths are returned as-is. Anything else is copied through the
    opener registered for its scheme into a new temporary file; a partially
    written file is deleted before the failure is reported.
    """

    def __init__(self, temp_dir: Optional[Union[str, Path]] = None,
                 openers: Optional[Dict[str, ByteStreamOpener]] = None):
        self.temp_dir = Path(temp_dir) if temp_dir else None
        self._openers: Dict[str, ByteStreamOpener] = {
            "http": open_http_stream,
            "https": open_http_stream,
        }
        if openers:
            for scheme, opener in openers.items():
                self.register_opener(scheme, opener)

    def register_opener(self, scheme: str, opener: ByteStreamOpener) -> None:
        """Serve references with ``scheme`` through ``opener``."""
        self._openers[scheme.lower()] = opener

    def resolve(self, reference: ImageReference) -> LocalImageFile:
        if reference.is_local:
            return self._resolve_local(reference)

        opener = self._openers.get(reference.scheme)
        if opener is None:
            raise ResolveError(f"Unsupported image reference scheme '{reference.scheme}'")

        try:
            target = create_temp_file(RESOLVED_FILE_PREFIX, TEMP_FILE_SUFFIX, self.temp_dir)
        except OSError as e:
            raise ResolveError("Unable to create temporary file for image") from e

        try:
            copied = self._copy(opener, reference, target)
        except (OSError, ValueError, httpx.HTTPError) as e:
            remove_file_quietly(target)
            raise ResolveError(f"Unable to copy image data from {reference}") from e
        except BaseException:
            remove_file_quietly(target)
            raise

        logger.info(f"Copied {copied} bytes from {reference} to {target}")
        return LocalImageFile(path=target, is_temporary=True)

    @staticmethod
    def _resolve_local(reference: ImageReference) -> LocalImageFile:
        path = reference.local_path
        if not path.is_file():
            raise ResolveError(f"Image file not found: {path}") from FileNotFoundError(
                errno.ENOENT, os.strerror(errno.ENOENT), str(path))
        if not os.access(path, os.R_OK):
            raise ResolveError(f"Image file is not readable: {path}") from PermissionError(
                errno.EACCES, os.strerror(errno.EACCES), str(path))
        logger.debug(f"Using local image file {path}")
        return LocalImageFile(path=path, is_temporary=False)

    @staticmethod
    def _copy(opener: ByteStreamOpener, reference: ImageReference, target: Path) -> int:
        copied = 0
        with opener(reference) as chunks, open(target, "wb") as output:
            for chunk in chunks:
                output.write(chunk)
                copied += len(chunk)
        return copied
