"""Type definitions for JOSE headers and registered JWT claims."""

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated

from pydantic import (
    AllowInfNan,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    Strict,
    StrictInt,
    StrictStr,
)

NumericDate = StrictInt | Annotated[float, Strict(), AllowInfNan(False)]


class TokenState(Enum):
    """Lifecycle state of a :class:`~jwsig.jws.token.JWS`."""

    UNCONSTRUCTED = "unconstructed"
    CONSTRUCTED = "constructed"
    PARSED = "parsed"
    SIGNED = "signed"
    INVALID = "invalid"


class JOSEHeader(BaseModel):
    """JWS protected header (RFC 7515 section 4.1).

    Unregistered parameters are kept as extra fields.  A header carrying
    ``crit`` is refused (RFC 7515 section 4.1.11).
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    alg: StrictStr
    typ: StrictStr | None = None
    cty: StrictStr | None = None
    jku: StrictStr | None = None
    jwk: StrictStr | dict | None = None
    kid: StrictStr | None = None
    x5u: StrictStr | None = None
    x5c: StrictStr | list[StrictStr] | None = None
    x5t: StrictStr | None = None
    x5t_s256: StrictStr | None = Field(default=None, alias="x5t#S256")
    crit: list[StrictStr] | None = None

    @field_validator("crit")
    @classmethod
    def _reject_critical_extensions(cls, value: list[str] | None) -> list[str] | None:
        # No header extensions are understood, so any critical one is fatal.
        if value is not None:
            raise ValueError(f"unsupported critical header parameters: {value}")
        return value


class RegisteredClaims(BaseModel):
    """Registered JWT claims (RFC 7519 section 4.1).

    Every claim is optional.  Private claims are kept as extra fields.
    """

    model_config = ConfigDict(extra="allow")

    iss: StrictStr | None = None
    sub: StrictStr | None = None
    aud: StrictStr | list[StrictStr] | None = None
    exp: NumericDate | None = None
    nbf: NumericDate | None = None
    iat: NumericDate | None = None
    jti: StrictStr | None = None


def to_numeric_date(value: datetime) -> int:
    """Convert a datetime to integer epoch seconds, treating naive values as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return int(value.timestamp())
