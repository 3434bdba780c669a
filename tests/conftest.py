"""Shared test fixtures for jwsig."""

import pytest

from jwsig.core.settings import JWSSettings, get_settings
from jwsig.crypto.keys import generate_ec_keypair, generate_rsa_keypair
from jwsig.crypto.types import KeyPair


@pytest.fixture(autouse=True)
def _set_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pin environment variables for test settings."""
    for name in (
        "JWS_LEEWAY_SECONDS",
        "JWS_ALLOW_UNSIGNED",
        "JWS_DEFAULT_ALGORITHM",
        "JWS_TOKEN_TTL",
        "JWS_MAX_TOKEN_LENGTH",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()


@pytest.fixture
def settings() -> JWSSettings:
    return JWSSettings()


@pytest.fixture(scope="session")
def rsa_keypair() -> KeyPair:
    """One RSA keypair per session; generation is slow."""
    return generate_rsa_keypair()


@pytest.fixture(scope="session")
def ec_keypairs() -> dict[str, KeyPair]:
    return {
        "ES256": generate_ec_keypair("P-256"),
        "ES384": generate_ec_keypair("P-384"),
        "ES512": generate_ec_keypair("P-521"),
    }
