"""
Payload Codec

JSON encoding for Document payloads stored in the `documents` table.
Timestamps have no JSON type, so they are wrapped as
``{"__timestamp__": "<iso8601>"}`` and unwrapped on the way back.

A caller map that itself has the shape of a wrapper (a single key that
is one of the reserved keys) is escaped as ``{"__map__": {...}}`` so it
decodes back to the same map.
"""

import json
from datetime import datetime
from typing import Any

from domain.values import Document, normalize_timestamp

TIMESTAMP_KEY = "__timestamp__"
MAP_KEY = "__map__"
RESERVED_KEYS = frozenset({TIMESTAMP_KEY, MAP_KEY})


def _is_wrapper_shape(value: dict) -> bool:
    return len(value) == 1 and next(iter(value)) in RESERVED_KEYS


def _encode(value: Any) -> Any:
    if isinstance(value, Document):
        encoded = {key: _encode(item) for key, item in value.items()}
        if _is_wrapper_shape(encoded):
            return {MAP_KEY: encoded}
        return encoded
    if isinstance(value, tuple):
        return [_encode(item) for item in value]
    if isinstance(value, datetime):
        return {TIMESTAMP_KEY: normalize_timestamp(value).isoformat()}
    return value


def _decode(value: Any) -> Any:
    if isinstance(value, dict):
        if _is_wrapper_shape(value):
            if TIMESTAMP_KEY in value:
                return normalize_timestamp(datetime.fromisoformat(value[TIMESTAMP_KEY]))
            return {key: _decode(item) for key, item in value[MAP_KEY].items()}
        return {key: _decode(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_decode(item) for item in value]
    return value


def encode_payload(document: Document) -> str:
    """Serialize a Document to the JSON text stored in the payload column."""
    return json.dumps(_encode(document), ensure_ascii=False)


def decode_payload(payload: str) -> Document:
    """Parse a stored payload back into a Document."""
    return Document(_decode(json.loads(payload)))
