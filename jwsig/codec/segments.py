"""JSON object segments of a compact JWS."""

import json
import math
from collections.abc import Mapping
from typing import Any

from jwsig.codec import base64url
from jwsig.core.exceptions import DecodeError


def dump_json(obj: Mapping[str, Any]) -> bytes:
    """Serialize a mapping to canonical JSON bytes.

    Keys are sorted and separators are compact so that equal mappings always
    produce identical bytes regardless of insertion order.
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    ).encode("utf-8")


def encode_segment(obj: Mapping[str, Any]) -> str:
    """Encode a mapping as a base64url JSON segment."""
    return base64url.encode(dump_json(obj))


def _reject_constant(name: str) -> Any:
    raise DecodeError(f"Segment contains non-JSON constant {name}")


def _parse_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise DecodeError(f"Segment number {text} is out of range")
    return value


def decode_segment(text: str) -> dict[str, Any]:
    """Decode a base64url JSON segment into a dict.

    ``NaN`` and the infinities are refused, as they are when encoding.
    Nesting deep enough to exhaust the interpreter stack is reported as a
    `DecodeError` like any other malformed segment.
    """
    raw = base64url.decode(text)
    try:
        value = json.loads(
            raw.decode("utf-8"),
            parse_constant=_reject_constant,
            parse_float=_parse_float,
        )
    except (UnicodeDecodeError, ValueError) as e:
        raise DecodeError(f"Segment is not valid JSON: {e}") from e
    except RecursionError as e:
        raise DecodeError("Segment is nested too deeply") from e
    if not isinstance(value, dict):
        raise DecodeError("Segment must be a JSON object")
    return value
