"""JWS signing algorithms and the process-wide algorithm registry.

The registry is an immutable mapping built once at import time.  Lookups go
through :func:`resolve`, which is case-insensitive and never mutates it.
"""

import hashlib
import hmac
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

import structlog
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from jwsig.core.exceptions import InvalidKeyError, UnsupportedAlgorithm
from jwsig.crypto.keys import load_private_key, load_public_key

__all__ = [
    "Algorithm",
    "ECAlgorithm",
    "HMACAlgorithm",
    "NoneAlgorithm",
    "RSAAlgorithm",
    "RSAPSSAlgorithm",
    "resolve",
    "supported_algorithms",
]

logger = structlog.get_logger(__name__)

_ASYMMETRIC_MARKERS = re.compile(
    rb"-----BEGIN (?:[A-Z ]+ )?(?:PUBLIC KEY|PRIVATE KEY|CERTIFICATE)-----"
    rb"|^(?:ssh-(?:rsa|dss|ed25519)|ecdsa-sha2-nistp(?:256|384|521)) ",
    re.MULTILINE,
)


def _to_bytes(value: str | bytes) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


class Algorithm(ABC):
    """A JWS ``alg`` implementation."""

    name: str

    @abstractmethod
    def sign(self, message: str | bytes, key: Any) -> bytes:
        """Return the raw signature of ``message``."""

    @abstractmethod
    def verify(self, message: str | bytes, key: Any, signature: bytes) -> bool:
        """Check ``signature`` against ``message``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class NoneAlgorithm(Algorithm):
    """Explicit unsigned mode (``alg: none``)."""

    name = "none"

    def sign(self, message: str | bytes, key: Any) -> bytes:
        return b""

    def verify(self, message: str | bytes, key: Any, signature: bytes) -> bool:
        return False


class HMACAlgorithm(Algorithm):
    """HMAC with a SHA-2 hash (HS256, HS384, HS512)."""

    def __init__(self, name: str, digest: str) -> None:
        self.name = name
        self._digest = digest
        self._digest_size = hashlib.new(digest).digest_size

    def _prepare_key(self, key: Any) -> bytes:
        if not isinstance(key, (str, bytes)):
            raise InvalidKeyError(
                f"{self.name} expects a str or bytes secret, got {type(key).__name__}"
            )
        secret = _to_bytes(key)
        if _ASYMMETRIC_MARKERS.search(secret):
            raise InvalidKeyError(
                "The specified key is an asymmetric key or certificate and"
                " must not be used as an HMAC secret"
            )
        if len(secret) < self._digest_size:
            logger.warning(
                "Short HMAC secret",
                algorithm=self.name,
                key_length=len(secret),
                recommended_length=self._digest_size,
            )
        return secret

    def sign(self, message: str | bytes, key: Any) -> bytes:
        secret = self._prepare_key(key)
        return hmac.new(secret, _to_bytes(message), self._digest).digest()

    def verify(self, message: str | bytes, key: Any, signature: bytes) -> bool:
        expected = self.sign(message, key)
        return hmac.compare_digest(expected, signature)


class _PublicKeyAlgorithm(Algorithm):
    """Shared key handling for RSA and EC algorithms."""

    _private_type: type
    _public_type: type

    def __init__(self, name: str, hash_cls: type[hashes.HashAlgorithm]) -> None:
        self.name = name
        self._hash_cls = hash_cls

    def _signing_key(self, key: Any) -> Any:
        if isinstance(key, (str, bytes)):
            key = load_private_key(key)
        if not isinstance(key, self._private_type):
            raise InvalidKeyError(
                f"{self.name} signing requires a matching private key"
            )
        return key

    def _verifying_key(self, key: Any) -> Any:
        if isinstance(key, (str, bytes)):
            raw = _to_bytes(key)
            if b"PRIVATE KEY" in raw:
                key = load_private_key(raw)
            else:
                key = load_public_key(raw)
        if isinstance(key, self._private_type):
            key = key.public_key()
        if not isinstance(key, self._public_type):
            raise InvalidKeyError(
                f"{self.name} verification requires a matching public key"
            )
        return key


class RSAAlgorithm(_PublicKeyAlgorithm):
    """RSASSA-PKCS1-v1_5 (RS256, RS384, RS512)."""

    _private_type = rsa.RSAPrivateKey
    _public_type = rsa.RSAPublicKey

    def _padding(self) -> padding.AsymmetricPadding:
        return padding.PKCS1v15()

    def sign(self, message: str | bytes, key: Any) -> bytes:
        private_key = self._signing_key(key)
        return private_key.sign(_to_bytes(message), self._padding(), self._hash_cls())

    def verify(self, message: str | bytes, key: Any, signature: bytes) -> bool:
        public_key = self._verifying_key(key)
        try:
            public_key.verify(
                signature, _to_bytes(message), self._padding(), self._hash_cls()
            )
        except InvalidSignature:
            return False
        return True


class RSAPSSAlgorithm(RSAAlgorithm):
    """RSASSA-PSS with MGF1, salt length equal to the digest (PS256, PS384, PS512)."""

    def _padding(self) -> padding.AsymmetricPadding:
        hash_alg = self._hash_cls()
        return padding.PSS(
            mgf=padding.MGF1(hash_alg),
            salt_length=hash_alg.digest_size,
        )


class ECAlgorithm(_PublicKeyAlgorithm):
    """ECDSA over a NIST curve (ES256, ES384, ES512).

    Signatures use the fixed-width ``r || s`` encoding from RFC 7518 section
    3.4 rather than DER.
    """

    _private_type = ec.EllipticCurvePrivateKey
    _public_type = ec.EllipticCurvePublicKey

    def __init__(
        self,
        name: str,
        hash_cls: type[hashes.HashAlgorithm],
        curve: type[ec.EllipticCurve],
    ) -> None:
        super().__init__(name, hash_cls)
        self._curve = curve
        self._coordinate_size = (curve.key_size + 7) // 8

    def _check_curve(self, key: Any) -> Any:
        if not isinstance(key.curve, self._curve):
            raise InvalidKeyError(
                f"{self.name} requires curve {self._curve.name}, got {key.curve.name}"
            )
        return key

    def sign(self, message: str | bytes, key: Any) -> bytes:
        private_key = self._check_curve(self._signing_key(key))
        der = private_key.sign(_to_bytes(message), ec.ECDSA(self._hash_cls()))
        r, s = decode_dss_signature(der)
        size = self._coordinate_size
        return r.to_bytes(size, "big") + s.to_bytes(size, "big")

    def verify(self, message: str | bytes, key: Any, signature: bytes) -> bool:
        public_key = self._check_curve(self._verifying_key(key))
        size = self._coordinate_size
        if len(signature) != 2 * size:
            return False
        r = int.from_bytes(signature[:size], "big")
        s = int.from_bytes(signature[size:], "big")
        try:
            public_key.verify(
                encode_dss_signature(r, s),
                _to_bytes(message),
                ec.ECDSA(self._hash_cls()),
            )
        except InvalidSignature:
            return False
        return True


_NONE = NoneAlgorithm()

_REGISTRY: Mapping[str, Algorithm] = MappingProxyType(
    {
        alg.name: alg
        for alg in (
            HMACAlgorithm("HS256", "sha256"),
            HMACAlgorithm("HS384", "sha384"),
            HMACAlgorithm("HS512", "sha512"),
            RSAAlgorithm("RS256", hashes.SHA256),
            RSAAlgorithm("RS384", hashes.SHA384),
            RSAAlgorithm("RS512", hashes.SHA512),
            ECAlgorithm("ES256", hashes.SHA256, ec.SECP256R1),
            ECAlgorithm("ES384", hashes.SHA384, ec.SECP384R1),
            ECAlgorithm("ES512", hashes.SHA512, ec.SECP521R1),
            RSAPSSAlgorithm("PS256", hashes.SHA256),
            RSAPSSAlgorithm("PS384", hashes.SHA384),
            RSAPSSAlgorithm("PS512", hashes.SHA512),
        )
    }
)


def supported_algorithms() -> list[str]:
    """Return the identifiers of every signing algorithm."""
    return list(_REGISTRY)


def resolve(identifier: object, *, allow_unsigned: bool = False) -> Algorithm:
    """Look up an algorithm by its ``alg`` identifier, ignoring case.

    ``none`` resolves only when ``allow_unsigned`` is set.

    Raises
    ------
    UnsupportedAlgorithm
        If the identifier is not a known algorithm.
    """
    if not isinstance(identifier, str) or not identifier.isascii():
        raise UnsupportedAlgorithm(identifier)
    if identifier.lower() == _NONE.name:
        if allow_unsigned:
            return _NONE
        raise UnsupportedAlgorithm(identifier)
    try:
        return _REGISTRY[identifier.upper()]
    except KeyError:
        raise UnsupportedAlgorithm(identifier) from None
