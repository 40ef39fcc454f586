"""Unit tests for SourceResolver."""
import os
from contextlib import contextmanager
from unittest.mock import MagicMock, patch

import httpx
import pytest

from star_annotator.core.constants import RESOLVED_FILE_PREFIX
from star_annotator.core.entities import ImageReference
from star_annotator.core.exceptions import ResolveError
from star_annotator.services.source_resolver import SourceResolver, open_http_stream


def make_opener(chunks, state=None, fail_after=None):
    """Opener serving ``chunks``; records whether the source was closed."""
    if state is None:
        state = {}

    @contextmanager
    def opener(reference):
        state["opened"] = reference
        state["closed"] = False

        def generate():
            for index, chunk in enumerate(chunks):
                if fail_after is not None and index == fail_after:
                    raise OSError("connection reset by peer")
                yield chunk

        try:
            yield generate()
        finally:
            state["closed"] = True

    return opener


@pytest.fixture
def scratch_dir(temp_dir):
    path = temp_dir / "scratch"
    path.mkdir()
    return path


class TestLocalReferences:
    """Test suite for references that already name a local file."""

    def test_local_path_returned_as_is(self, sample_jpeg):
        resolver = SourceResolver()

        file = resolver.resolve(ImageReference.from_path(sample_jpeg))

        assert file.path == sample_jpeg
        assert file.is_temporary is False

    def test_file_uri_resolves_to_path(self, sample_jpeg):
        resolver = SourceResolver()

        file = resolver.resolve(ImageReference(sample_jpeg.as_uri()))

        assert file.path == sample_jpeg
        assert not file.is_temporary

    def test_missing_file(self, temp_dir):
        resolver = SourceResolver()

        with pytest.raises(ResolveError) as exc_info:
            resolver.resolve(ImageReference.from_path(temp_dir / "missing.jpg"))

        assert "not found" in exc_info.value.message
        assert isinstance(exc_info.value.cause, FileNotFoundError)

    def test_directory_is_not_a_file(self, temp_dir):
        resolver = SourceResolver()

        with pytest.raises(ResolveError):
            resolver.resolve(ImageReference.from_path(temp_dir))

    @pytest.mark.skipif(os.name == "nt" or (hasattr(os, "geteuid") and os.geteuid() == 0),
                        reason="permission bits not enforced")
    def test_unreadable_file(self, sample_jpeg):
        sample_jpeg.chmod(0)
        try:
            with pytest.raises(ResolveError) as exc_info:
                SourceResolver().resolve(ImageReference.from_path(sample_jpeg))
        finally:
            sample_jpeg.chmod(0o644)

        assert isinstance(exc_info.value.cause, PermissionError)


class TestStreamedReferences:
    """Test suite for references copied through a registered opener."""

    def test_copy_is_byte_identical(self, scratch_dir):
        data = os.urandom(200_000)
        chunks = [data[i:i + 65536] for i in range(0, len(data), 65536)]
        state = {}
        resolver = SourceResolver(scratch_dir, openers={"content": make_opener(chunks, state)})

        file = resolver.resolve(ImageReference("content://media/42"))

        assert file.is_temporary
        assert file.path.parent == scratch_dir
        assert file.path.name.startswith(RESOLVED_FILE_PREFIX)
        assert file.path.read_bytes() == data
        assert state["closed"] is True

    def test_each_resolution_gets_a_new_file(self, scratch_dir):
        resolver = SourceResolver(scratch_dir, openers={"content": make_opener([b"abc"])})
        reference = ImageReference("content://media/1")

        first = resolver.resolve(reference)
        second = resolver.resolve(reference)

        assert first.path != second.path
        assert first.path.exists() and second.path.exists()

    def test_interrupted_copy_removes_partial_file(self, scratch_dir):
        state = {}
        opener = make_opener([b"a" * 1000, b"b" * 1000], state, fail_after=1)
        resolver = SourceResolver(scratch_dir, openers={"content": opener})

        with pytest.raises(ResolveError) as exc_info:
            resolver.resolve(ImageReference("content://media/7"))

        assert isinstance(exc_info.value.cause, OSError)
        assert state["closed"] is True
        assert list(scratch_dir.iterdir()) == []

    def test_unsupported_scheme(self, scratch_dir):
        resolver = SourceResolver(scratch_dir)

        with pytest.raises(ResolveError) as exc_info:
            resolver.resolve(ImageReference("ftp://example.org/a.jpg"))

        assert "ftp" in exc_info.value.message
        assert list(scratch_dir.iterdir()) == []

    def test_register_opener_is_case_insensitive(self, scratch_dir):
        resolver = SourceResolver(scratch_dir)
        resolver.register_opener("CONTENT", make_opener([b"xyz"]))

        file = resolver.resolve(ImageReference("content://x"))

        assert file.path.read_bytes() == b"xyz"

    def test_http_reference_uses_httpx_stream(self, scratch_dir):
        response = MagicMock()
        response.iter_bytes.return_value = iter([b"\xff\xd8", b"\xff\xd9"])
        stream_cm = MagicMock()
        stream_cm.__enter__.return_value = response

        with patch("star_annotator.services.source_resolver.httpx.stream",
                   return_value=stream_cm) as mock_stream:
            file = SourceResolver(scratch_dir).resolve(ImageReference("https://example.org/sky.jpg"))

        assert mock_stream.call_args.args == ("GET", "https://example.org/sky.jpg")
        response.raise_for_status.assert_called_once()
        stream_cm.__exit__.assert_called_once()
        assert file.path.read_bytes() == b"\xff\xd8\xff\xd9"

    def test_http_status_error_becomes_resolve_error(self, scratch_dir):
        request = httpx.Request("GET", "https://example.org/missing.jpg")
        error = httpx.HTTPStatusError("404", request=request, response=httpx.Response(404, request=request))
        response = MagicMock()
        response.raise_for_status.side_effect = error
        stream_cm = MagicMock()
        stream_cm.__enter__.return_value = response
        stream_cm.__exit__.return_value = False

        with patch("star_annotator.services.source_resolver.httpx.stream", return_value=stream_cm):
            with pytest.raises(ResolveError) as exc_info:
                SourceResolver(scratch_dir).resolve(ImageReference("https://example.org/missing.jpg"))

        assert exc_info.value.cause is error
        assert list(scratch_dir.iterdir()) == []

    def test_open_http_stream_passes_timeout(self):
        stream_cm = MagicMock()
        stream_cm.__enter__.return_value = MagicMock()
        stream_cm.__exit__.return_value = False

        with patch("star_annotator.services.source_resolver.httpx.stream",
                   return_value=stream_cm) as mock_stream:
            with open_http_stream(ImageReference("http://example.org/a.jpg"), timeout=5.0):
                pass

        assert mock_stream.call_args.kwargs["timeout"] == 5.0
        assert mock_stream.call_args.kwargs["follow_redirects"] is True
