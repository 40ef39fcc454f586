"""Decoding of the annotation service's JSON payload."""
from __future__ import annotations
import json
import logging
import math
from typing import Any, Iterable

from ..core.constants import RESPONSE_ARRAY_KEY, RESPONSE_LABEL_KEY, RESPONSE_X_KEY, RESPONSE_Y_KEY
from ..core.entities import AnnotationRecord, AnnotationSet
from ..core.exceptions import ParseError

logger = logging.getLogger(__name__)


class ResponseParser:
    """Parses ``{"stars": [{"name": str, "x": number, "y": number}, ...]}``.

    Records keep the array order. An empty array is a valid, empty result.
    """

    def __init__(self, array_key: str = RESPONSE_ARRAY_KEY):
        self.array_key = array_key

    def parse(self, body: str) -> AnnotationSet:
        try:
            document = json.loads(body)
        except (json.JSONDecodeError, TypeError) as e:
            raise ParseError("Response is not valid JSON") from e

        if not isinstance(document, dict):
            raise ParseError(f"Expected a JSON object, got {type(document).__name__}")
        if self.array_key not in document:
            raise ParseError(f"Response has no '{self.array_key}' array")

        entries = document[self.array_key]
        if not isinstance(entries, list):
            raise ParseError(f"'{self.array_key}' must be an array, got {type(entries).__name__}")

        records = tuple(self._parse_entry(index, entry) for index, entry in enumerate(entries))
        logger.debug(f"Parsed {len(records)} annotations")
        return records

    def _parse_entry(self, index: int, entry: Any) -> AnnotationRecord:
        if not isinstance(entry, dict):
            raise ParseError(f"Entry {index} is not an object")

        label = entry.get(RESPONSE_LABEL_KEY)
        if not isinstance(label, str) or not label:
            raise ParseError(f"Entry {index} has a missing or empty '{RESPONSE_LABEL_KEY}'")

        x = self._coordinate(index, entry, RESPONSE_X_KEY)
        y = self._coordinate(index, entry, RESPONSE_Y_KEY)
        return AnnotationRecord(label=label, x=x, y=y)

    @staticmethod
    def _coordinate(index: int, entry: dict, key: str) -> float:
        if key not in entry:
            raise ParseError(f"Entry {index} is missing '{key}'")

        raw = entry[key]
        # bool is an int subclass; reject it along with null and containers
        if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
            raise ParseError(f"Entry {index} has a non-numeric '{key}': {raw!r}")
        try:
            value = float(raw)
        except (ValueError, OverflowError) as e:
            raise ParseError(f"Entry {index} has a non-numeric '{key}': {raw!r}") from e

        if not math.isfinite(value):
            raise ParseError(f"Entry {index} has a non-finite '{key}': {raw!r}")
        return value


def serialize_annotations(records: Iterable[AnnotationRecord], array_key: str = RESPONSE_ARRAY_KEY) -> str:
    """Encode records in the service's response schema."""
    return json.dumps({
        array_key: [
            {RESPONSE_LABEL_KEY: r.label, RESPONSE_X_KEY: r.x, RESPONSE_Y_KEY: r.y}
            for r in records
        ]
    })
