"""Exceptions for JWS construction, parsing, and verification."""

from typing import ClassVar

__all__ = [
    "DecodeError",
    "DisallowedAlgorithmError",
    "ExpiredTokenError",
    "ImmatureTokenError",
    "InvalidClaimsError",
    "InvalidHeaderError",
    "InvalidKeyError",
    "InvalidSignatureError",
    "JWSError",
    "MalformedToken",
    "MissingClaimError",
    "UnsupportedAlgorithm",
    "VerificationFailed",
]


class JWSError(Exception):
    """Base class for all token errors."""

    reason: ClassVar[str] = "jws_error"


class DecodeError(JWSError):
    """A segment is not valid base64url or not a JSON object."""

    reason = "decode_error"


class MalformedToken(JWSError):
    """The compact string does not have the structure of a JWS."""

    reason = "malformed_token"


class UnsupportedAlgorithm(JWSError):
    """The ``alg`` identifier does not resolve to a known algorithm."""

    reason = "unsupported_algorithm"

    def __init__(self, algorithm: object) -> None:
        super().__init__(f"Unsupported algorithm: {algorithm!r}")
        self.algorithm = algorithm


class InvalidKeyError(JWSError):
    """The key cannot be used with the requested algorithm."""

    reason = "invalid_key"


class InvalidHeaderError(JWSError):
    """A caller-supplied header does not have the required shape."""

    reason = "invalid_header"


class InvalidClaimsError(JWSError):
    """A claim value has the wrong type."""

    reason = "invalid_claims"


class MissingClaimError(InvalidClaimsError):
    """A required claim is absent."""

    reason = "missing_claim"

    def __init__(self, claim: str) -> None:
        super().__init__(f'Token is missing the "{claim}" claim')
        self.claim = claim


class VerificationFailed(JWSError):
    """The token was rejected during verification."""

    reason = "verification_failed"


class InvalidSignatureError(VerificationFailed):
    """The signature does not match the header and payload."""

    reason = "invalid_signature"


class ExpiredTokenError(VerificationFailed):
    """The ``exp`` claim has passed."""

    reason = "expired"


class ImmatureTokenError(VerificationFailed):
    """The ``nbf`` claim has not been reached yet."""

    reason = "not_yet_valid"


class DisallowedAlgorithmError(VerificationFailed):
    """The token's algorithm is not in the caller's allow-list."""

    reason = "disallowed_algorithm"
