"""Type definitions for signing keys."""

from typing import Literal

from pydantic import BaseModel, ConfigDict

KeyType = Literal["RSA", "EC"]


class KeyPair(BaseModel):
    """A PEM-encoded asymmetric key pair for JWS signing."""

    model_config = ConfigDict(frozen=True)

    kid: str
    kty: KeyType
    private_key_pem: str
    public_key_pem: str
