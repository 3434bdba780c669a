"""Exception-raising helpers for issuing and decoding JWTs."""

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from jwsig.codec.segments import decode_segment
from jwsig.core.exceptions import DisallowedAlgorithmError, MalformedToken
from jwsig.core.settings import JWSSettings, get_settings
from jwsig.jws.token import JWS

__all__ = ["decode", "encode", "get_unverified_header"]


def encode(
    payload: Mapping[str, Any] | BaseModel,
    key: Any,
    algorithm: str | None = None,
    headers: Mapping[str, Any] | None = None,
    *,
    settings: JWSSettings | None = None,
) -> str:
    """Sign ``payload`` and return a compact JWT."""
    settings = settings or get_settings()
    header: dict[str, Any] = {
        "typ": "JWT",
        "alg": algorithm or settings.default_algorithm,
    }
    if headers:
        header.update(headers)
    return JWS(header, payload, settings=settings).sign(key)


def decode(
    token: str | bytes,
    key: Any,
    algorithms: Iterable[str],
    *,
    now: datetime | None = None,
    settings: JWSSettings | None = None,
) -> dict[str, Any]:
    """Verify ``token`` and return its payload.

    Raises
    ------
    jwsig.core.exceptions.JWSError
        The specific reason the token was rejected.
    """
    allowed = list(algorithms or [])
    if not allowed:
        raise DisallowedAlgorithmError("At least one algorithm must be allowed")
    jws = JWS.from_string(token, settings=settings)
    jws.validate(key, algorithms=allowed, now=now)
    return dict(jws.payload)


def get_unverified_header(token: str | bytes) -> dict[str, Any]:
    """Return the header of ``token`` without checking anything else."""
    if isinstance(token, bytes):
        token = token.decode("ascii", errors="replace")
    if not isinstance(token, str) or token.count(".") != 2:
        raise MalformedToken("Token must have exactly three segments")
    return decode_segment(token.split(".", 1)[0])
