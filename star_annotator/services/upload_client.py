"""HTTP client that uploads an image to the annotation service."""
from __future__ import annotations
import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Optional

import httpx

from ..core.constants import (
    MIN_CONNECT_TIMEOUT, MIN_READ_TIMEOUT, MIN_WRITE_TIMEOUT,
    UPLOAD_CONTENT_TYPE, UPLOAD_FIELD_NAME
)
from ..core.entities import LocalImageFile
from ..core.exceptions import UploadError

logger = logging.getLogger(__name__)

BODY_LOG_LIMIT = 500


@dataclass(frozen=True)
class UploadTimeouts:
    """Connect, write and read timeouts in seconds."""
    connect: float = MIN_CONNECT_TIMEOUT
    write: float = MIN_WRITE_TIMEOUT
    read: float = MIN_READ_TIMEOUT

    def __post_init__(self):
        if not all(math.isfinite(t) for t in (self.connect, self.write, self.read)):
            raise ValueError("Timeouts must be finite")
        if min(self.connect, self.write, self.read) <= 0:
            raise ValueError("Timeouts must be positive")
        if self.read <= max(self.connect, self.write):
            raise ValueError("Read timeout must exceed the connect and write timeouts")

    def to_httpx(self) -> httpx.Timeout:
        return httpx.Timeout(connect=self.connect, write=self.write, read=self.read, pool=self.connect)


class UploadClient:
    """
    Posts one image as ``multipart/form-data`` and returns the raw response body.

    A single attempt is made per call. Connection failures, timeouts,
    non-2xx statuses and empty bodies all raise :class:`UploadError`.
    """

    def __init__(self, endpoint: str, timeouts: Optional[UploadTimeouts] = None,
                 http_client: Optional[httpx.AsyncClient] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Args:
            endpoint: Upload URL of the annotation service.
            timeouts: Timeout settings; defaults to 60s/60s/600s.
            http_client: Optional shared client. Clients created here are
                closed after each upload, shared ones are left open.
            transport: Optional transport for clients created here.
        """
        self.endpoint = endpoint
        self.timeouts = timeouts or UploadTimeouts()
        self._http_client = http_client
        self._transport = transport

    def _create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeouts.to_httpx(), transport=self._transport)

    async def upload(self, file: LocalImageFile, endpoint: Optional[str] = None) -> str:
        url = endpoint or self.endpoint
        loop = asyncio.get_running_loop()
        try:
            payload = await loop.run_in_executor(None, file.path.read_bytes)
        except OSError as e:
            raise UploadError(f"Unable to read image file {file.path}") from e

        files = {UPLOAD_FIELD_NAME: (file.name, payload, UPLOAD_CONTENT_TYPE)}
        logger.info(f"Uploading {file.name} ({len(payload)} bytes) to {url}")

        client = self._http_client or self._create_client()
        try:
            response = await client.post(url, files=files, timeout=self.timeouts.to_httpx())
        except httpx.TimeoutException as e:
            raise UploadError(f"Upload to {url} timed out") from e
        except httpx.ConnectError as e:
            raise UploadError(f"Unable to connect to {url}") from e
        except httpx.HTTPError as e:
            raise UploadError(f"Upload to {url} failed") from e
        finally:
            if client is not self._http_client:
                await client.aclose()

        body = response.text
        logger.debug(f"Upload HTTP code: {response.status_code}")
        logger.debug(f"Upload response body: {body[:BODY_LOG_LIMIT]}")

        if not response.is_success:
            raise UploadError(f"Server returned HTTP {response.status_code}",
                              http_status=response.status_code)
        if not body.strip():
            raise UploadError("Empty response from server", http_status=response.status_code)

        return body
