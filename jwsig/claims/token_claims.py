"""Claims bundle for issuing short-lived JWTs."""

from datetime import UTC, datetime, timedelta
from typing import Any

import uuid_utils
from pydantic import BaseModel, Field

from jwsig.claims.registry import REGISTERED_CLAIMS, build_payload
from jwsig.claims.types import Claim
from jwsig.core.settings import JWSSettings, get_settings


def generate_jti() -> str:
    """Generate a time-ordered unique token identifier."""
    return str(uuid_utils.uuid7())


class TokenClaims(BaseModel):
    """Claims bundle for JWT creation.

    ``iat``, ``exp`` and ``jti`` are filled in by :meth:`to_payload`.
    """

    iss: str | None = None
    sub: str | None = None
    aud: str | list[str] | None = None
    ttl_seconds: int | None = None
    extra: dict[str, Any] = Field(default_factory=dict)

    def to_payload(
        self,
        now: datetime | None = None,
        *,
        claims: tuple[Claim, ...] = REGISTERED_CLAIMS,
        settings: JWSSettings | None = None,
    ) -> dict[str, Any]:
        settings = settings or get_settings()
        now = now or datetime.now(UTC)
        ttl = self.ttl_seconds if self.ttl_seconds is not None else settings.token_ttl
        values = {
            **self.extra,
            "iss": self.iss,
            "sub": self.sub,
            "aud": self.aud,
            "iat": now,
            "exp": now + timedelta(seconds=ttl),
            "jti": generate_jti(),
        }
        return build_payload(values, claims)
