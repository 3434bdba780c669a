"""Registered claim descriptors and the claim setter dispatch table."""

import math
from collections.abc import Iterable, Mapping
from datetime import datetime
from types import MappingProxyType
from typing import Any

from jwsig.claims.types import Claim, ClaimSetter
from jwsig.core.exceptions import InvalidClaimsError, MissingClaimError
from jwsig.jws.types import to_numeric_date

REGISTERED_CLAIMS: tuple[Claim, ...] = (
    Claim(name="Issuer", shortname="iss"),
    Claim(name="Subject", shortname="sub"),
    Claim(name="Audience", shortname="aud"),
    Claim(name="Expiration Time", shortname="exp"),
    Claim(name="Not Before", shortname="nbf"),
    Claim(name="Issued At", shortname="iat"),
    Claim(name="JWT ID", shortname="jti"),
)


def _with(payload: Mapping[str, Any], name: str, value: Any) -> dict[str, Any]:
    updated = dict(payload)
    updated[name] = value
    return updated


def _string_setter(name: str) -> ClaimSetter:
    def setter(payload: Mapping[str, Any], value: Any) -> dict[str, Any]:
        if not isinstance(value, str):
            raise InvalidClaimsError(f'Claim "{name}" must be a string')
        return _with(payload, name, value)

    return setter


def _numeric_date_setter(name: str) -> ClaimSetter:
    def setter(payload: Mapping[str, Any], value: Any) -> dict[str, Any]:
        if isinstance(value, datetime):
            value = to_numeric_date(value)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidClaimsError(f'Claim "{name}" must be a NumericDate')
        if isinstance(value, float) and not math.isfinite(value):
            raise InvalidClaimsError(f'Claim "{name}" must be finite')
        return _with(payload, name, value)

    return setter


def _set_audience(payload: Mapping[str, Any], value: Any) -> dict[str, Any]:
    if isinstance(value, str):
        return _with(payload, "aud", value)
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return _with(payload, "aud", list(value))
    raise InvalidClaimsError('Claim "aud" must be a string or a list of strings')


def _plain_setter(name: str) -> ClaimSetter:
    def setter(payload: Mapping[str, Any], value: Any) -> dict[str, Any]:
        return _with(payload, name, value)

    return setter


CLAIM_SETTERS: Mapping[str, ClaimSetter] = MappingProxyType(
    {
        "iss": _string_setter("iss"),
        "sub": _string_setter("sub"),
        "aud": _set_audience,
        "exp": _numeric_date_setter("exp"),
        "nbf": _numeric_date_setter("nbf"),
        "iat": _numeric_date_setter("iat"),
        "jti": _string_setter("jti"),
    }
)


def set_claim(payload: Mapping[str, Any], shortname: str, value: Any) -> dict[str, Any]:
    """Return a copy of ``payload`` with ``shortname`` set to ``value``.

    Registered claims are type-checked; private claims are set as given.
    """
    setter = CLAIM_SETTERS.get(shortname) or _plain_setter(shortname)
    return setter(payload, value)


def new_claim(name: str, shortname: str, optional: bool = True) -> Claim:
    """Describe a private claim."""
    return Claim(name=name, shortname=shortname, optional=optional)


def build_payload(
    values: Mapping[str, Any],
    claims: Iterable[Claim] = REGISTERED_CLAIMS,
) -> dict[str, Any]:
    """Build a payload from ``values``, enforcing required claims.

    Raises
    ------
    MissingClaimError
        If a non-optional claim from ``claims`` is absent or `None`.
    InvalidClaimsError
        If a registered claim has the wrong type.
    """
    for claim in claims:
        if not claim.optional and values.get(claim.shortname) is None:
            raise MissingClaimError(claim.shortname)
    payload: dict[str, Any] = {}
    for shortname, value in values.items():
        if value is None:
            continue
        payload = set_claim(payload, shortname, value)
    return payload
