"""DataHub response parsing.

The site-specific API wraps its payload in a GeoJSON feature collection:

    {"features": [{"properties": {"location": ..., "modelRunDate": ...,
                                  "timeSeries": [...]}}]}

Only the path down to ``features[0].properties`` is validated here. Whatever
sits inside ``properties`` is handed on untouched; the mapper decides what to
do with missing or odd fields.
"""

from __future__ import annotations

import json
from typing import Any


class ParseError(Exception):
    """The response could not be turned into a properties object."""

    reason = "parse_error"

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class MalformedPayloadError(ParseError):
    """Body is not valid JSON."""

    reason = "malformed"


class MissingPropertiesError(ParseError):
    """Decoded document lacks ``features[0].properties``."""

    reason = "missing_properties"


class PayloadRecorder:
    """Keeps the most recent raw response for manual inspection.

    Last writer wins. Nothing in the polling path reads it back; it only
    feeds diagnostics.
    """

    def __init__(self) -> None:
        self.raw: str | None = None
        self.document: Any = None

    def record(self, raw: str, document: Any) -> None:
        self.raw = raw
        self.document = document

    def as_dict(self) -> dict[str, Any]:
        return {"raw": self.raw, "document": self.document}


def _as_text(raw: str | bytes | None) -> str:
    if raw is None:
        return ""
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8", errors="replace")
    return raw


def decode_document(text: str) -> Any:
    """Decode a response body. An empty body decodes as an empty document."""
    if not text.strip():
        return {}
    try:
        return json.loads(text)
    except ValueError as err:
        raise MalformedPayloadError(f"invalid JSON: {err}", raw=text) from err


def extract_properties(document: Any) -> dict[str, Any] | None:
    """Return ``features[0].properties`` or None if any step is missing."""
    if not isinstance(document, dict):
        return None
    features = document.get("features")
    if not isinstance(features, list) or not features:
        return None
    first = features[0]
    if not isinstance(first, dict):
        return None
    properties = first.get("properties")
    if not isinstance(properties, dict):
        return None
    return properties


def parse_response(
    raw: str | bytes | None,
    recorder: PayloadRecorder | None = None,
    *,
    accepted: bool = True,
) -> dict[str, Any]:
    """Validate a raw DataHub body and return its ``properties`` object.

    A body the server rejected (``accepted=False``) is recorded but not
    decoded, so it always fails the properties check.

    Raises MalformedPayloadError or MissingPropertiesError; both carry the raw
    body so the caller can log it verbatim.
    """
    text = _as_text(raw)
    document: Any = {}
    if accepted:
        try:
            document = decode_document(text)
        except MalformedPayloadError:
            if recorder is not None:
                recorder.record(text, None)
            raise

    if recorder is not None:
        recorder.record(text, document)

    properties = extract_properties(document)
    if properties is None:
        raise MissingPropertiesError("features collection missing", raw=text)
    return properties
