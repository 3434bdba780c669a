"""RSA and EC key pair generation and PEM loading."""

import uuid_utils
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.asymmetric.types import (
    PrivateKeyTypes,
    PublicKeyTypes,
)

from jwsig.core.exceptions import InvalidKeyError
from jwsig.crypto.types import KeyPair

RSA_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537

CURVES: dict[str, type[ec.EllipticCurve]] = {
    "P-256": ec.SECP256R1,
    "P-384": ec.SECP384R1,
    "P-521": ec.SECP521R1,
}


def _to_keypair(private_key: rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey) -> KeyPair:
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    public_pem = (
        private_key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode()
    )
    kty = "RSA" if isinstance(private_key, rsa.RSAPrivateKey) else "EC"
    return KeyPair(
        kid=str(uuid_utils.uuid7()),
        kty=kty,
        private_key_pem=private_pem,
        public_key_pem=public_pem,
    )


def generate_rsa_keypair(key_size: int = RSA_KEY_SIZE) -> KeyPair:
    """Generate a new RSA keypair for RS* and PS* signing."""
    private_key = rsa.generate_private_key(
        public_exponent=RSA_PUBLIC_EXPONENT,
        key_size=key_size,
    )
    return _to_keypair(private_key)


def generate_ec_keypair(curve: str = "P-256") -> KeyPair:
    """Generate a new EC keypair on a named JOSE curve."""
    try:
        curve_cls = CURVES[curve]
    except KeyError:
        raise InvalidKeyError(f"Unsupported curve: {curve}") from None
    return _to_keypair(ec.generate_private_key(curve_cls()))


def _as_bytes(pem: str | bytes) -> bytes:
    return pem.encode() if isinstance(pem, str) else pem


def load_private_key(pem: str | bytes) -> PrivateKeyTypes:
    """Load an unencrypted PEM private key."""
    try:
        return serialization.load_pem_private_key(_as_bytes(pem), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise InvalidKeyError(f"Could not load private key: {e}") from e


def load_public_key(pem: str | bytes) -> PublicKeyTypes:
    """Load a PEM public key."""
    try:
        return serialization.load_pem_public_key(_as_bytes(pem))
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise InvalidKeyError(f"Could not load public key: {e}") from e
