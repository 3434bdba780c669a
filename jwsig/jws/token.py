"""The JWS object: construct, parse, sign, and verify compact tokens."""

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any, Self

import structlog
from pydantic import BaseModel, ValidationError

from jwsig.codec import base64url
from jwsig.codec.segments import decode_segment, encode_segment
from jwsig.core.exceptions import (
    DisallowedAlgorithmError,
    ExpiredTokenError,
    ImmatureTokenError,
    InvalidClaimsError,
    InvalidHeaderError,
    InvalidSignatureError,
    JWSError,
    MalformedToken,
)
from jwsig.core.settings import JWSSettings, get_settings
from jwsig.crypto.algorithms import Algorithm, resolve
from jwsig.jws.types import JOSEHeader, RegisteredClaims, TokenState, to_numeric_date

__all__ = ["JWS"]

logger = structlog.get_logger(__name__)

_TIME_CLAIMS = ("exp", "nbf", "iat")


def _normalize_payload(payload: Mapping[str, Any] | BaseModel) -> dict[str, Any]:
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(exclude_none=True)
    if not isinstance(payload, Mapping):
        raise InvalidClaimsError(
            f"Payload must be a mapping, got {type(payload).__name__}"
        )
    normalized = dict(payload)
    for claim in _TIME_CLAIMS:
        value = normalized.get(claim)
        if isinstance(value, datetime):
            normalized[claim] = to_numeric_date(value)
    return normalized


def _timestamp(now: datetime | None) -> float:
    if now is None:
        return datetime.now(UTC).timestamp()
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return now.timestamp()


class JWS:
    """A JSON Web Signature in compact serialization.

    Build one from a header and payload to issue a token, or parse one with
    :meth:`from_string`.  Parsing never raises: a token that cannot be used
    comes back with ``valid`` set to `False` and ``error`` describing why.
    Such an object refuses to sign and never verifies.

    The header and payload are fixed once set.  A constructed token encodes
    its segments once; a parsed token keeps the segments exactly as received,
    so the signing input never drifts between ``sign`` and ``verify``.

    Parameters
    ----------
    header
        JOSE header.  Must contain a resolvable ``alg``.
    payload
        Claims, as a mapping or a pydantic model.
    settings
        Overrides the process-wide settings.

    Raises
    ------
    jwsig.core.exceptions.InvalidHeaderError
        If the header is not a valid JOSE header.
    jwsig.core.exceptions.UnsupportedAlgorithm
        If ``alg`` does not resolve.
    jwsig.core.exceptions.InvalidClaimsError
        If a registered claim has the wrong type or the payload is not
        serializable.
    """

    def __init__(
        self,
        header: Mapping[str, Any] | None = None,
        payload: Mapping[str, Any] | BaseModel | None = None,
        *,
        settings: JWSSettings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._header: dict[str, Any] = {}
        self._payload: dict[str, Any] = {}
        self._encoded_header = ""
        self._encoded_payload = ""
        self._signature = ""
        self._algorithm: Algorithm | None = None
        self._error: JWSError | None = None
        self._state = TokenState.UNCONSTRUCTED

        if header is None and payload is None:
            return
        if header is None or payload is None:
            raise TypeError("header and payload must be given together")
        self._construct(header, payload)

    def _construct(
        self, header: Mapping[str, Any], payload: Mapping[str, Any] | BaseModel
    ) -> None:
        if not isinstance(header, Mapping):
            raise InvalidHeaderError(
                f"Header must be a mapping, got {type(header).__name__}"
            )
        try:
            JOSEHeader.model_validate(dict(header))
        except ValidationError as e:
            raise InvalidHeaderError(f"Invalid JOSE header: {e}") from e
        algorithm = resolve(header["alg"], allow_unsigned=self._settings.allow_unsigned)

        claims = _normalize_payload(payload)
        try:
            RegisteredClaims.model_validate(claims)
        except ValidationError as e:
            raise InvalidClaimsError(f"Invalid registered claims: {e}") from e

        try:
            encoded_header = encode_segment(header)
        except (TypeError, ValueError) as e:
            raise InvalidHeaderError(f"Header is not JSON serializable: {e}") from e
        try:
            encoded_payload = encode_segment(claims)
        except (TypeError, ValueError) as e:
            raise InvalidClaimsError(f"Payload is not JSON serializable: {e}") from e

        self._header = decode_segment(encoded_header)
        self._payload = decode_segment(encoded_payload)
        self._encoded_header = encoded_header
        self._encoded_payload = encoded_payload
        self._algorithm = algorithm
        self._state = TokenState.CONSTRUCTED

    @classmethod
    def from_string(
        cls, compact: str | bytes, *, settings: JWSSettings | None = None
    ) -> Self:
        """Parse a compact serialization without verifying it.

        The signature segment is stored as-is until :meth:`verify`.  Malformed
        input yields an invalid object rather than an exception.
        """
        token = cls(settings=settings)
        try:
            token._parse(compact)
        except JWSError as e:
            logger.debug("Rejected unparseable token", reason=e.reason, error=str(e))
            token._invalidate(e)
        return token

    def _parse(self, compact: str | bytes) -> None:
        if isinstance(compact, bytes):
            try:
                compact = compact.decode("ascii")
            except UnicodeDecodeError as e:
                raise MalformedToken("Token is not ASCII") from e
        if not isinstance(compact, str):
            raise MalformedToken(
                f"Token must be a string, got {type(compact).__name__}"
            )

        if len(compact) > self._settings.max_token_length:
            raise MalformedToken(
                f"Token is longer than {self._settings.max_token_length} characters"
            )

        sections = compact.split(".")
        if len(sections) != 3:
            raise MalformedToken(f"Token has {len(sections)} segments, expected 3")
        encoded_header, encoded_payload, signature = sections

        header = decode_segment(encoded_header)
        try:
            JOSEHeader.model_validate(header)
        except ValidationError as e:
            raise MalformedToken(f"Invalid JOSE header: {e}") from e
        payload = decode_segment(encoded_payload)
        algorithm = resolve(header["alg"], allow_unsigned=self._settings.allow_unsigned)

        self._header = header
        self._payload = payload
        self._encoded_header = encoded_header
        self._encoded_payload = encoded_payload
        self._signature = signature
        self._algorithm = algorithm
        self._state = TokenState.PARSED

    def _invalidate(self, error: JWSError) -> None:
        self._header = {}
        self._payload = {}
        self._encoded_header = ""
        self._encoded_payload = ""
        self._signature = ""
        self._algorithm = None
        self._error = error
        self._state = TokenState.INVALID

    def _require_valid(self) -> Algorithm:
        if self._algorithm is None:
            if self._error is not None:
                raise self._error
            raise MalformedToken("Token has no header and payload")
        return self._algorithm

    @property
    def valid(self) -> bool:
        """Whether the token holds a header with a resolvable ``alg``."""
        return self._algorithm is not None

    def is_valid(self) -> bool:
        """Return :attr:`valid`."""
        return self.valid

    @property
    def error(self) -> JWSError | None:
        """Why the token is invalid, if it is."""
        return self._error

    @property
    def state(self) -> TokenState:
        """Where the token is in its lifecycle."""
        return self._state

    @property
    def algorithm(self) -> str | None:
        """Registered name of the resolved algorithm, or `None` if invalid."""
        return self._algorithm.name if self._algorithm else None

    @property
    def header(self) -> Mapping[str, Any]:
        """Read-only view of the JOSE header."""
        return MappingProxyType(self._header)

    @property
    def payload(self) -> Mapping[str, Any]:
        """Read-only view of the claims."""
        return MappingProxyType(self._payload)

    @property
    def claims(self) -> RegisteredClaims:
        """Typed view of the payload."""
        try:
            return RegisteredClaims.model_validate(self._payload)
        except ValidationError as e:
            raise InvalidClaimsError(f"Invalid registered claims: {e}") from e

    @property
    def signature(self) -> str:
        """Base64url signature segment, empty until signed."""
        return self._signature

    @property
    def signing_input(self) -> str:
        """The ``header.payload`` string the signature covers."""
        return f"{self._encoded_header}.{self._encoded_payload}"

    def compact(self) -> str:
        """Return the compact serialization, with an empty signature if unsigned."""
        return f"{self.signing_input}.{self._signature}"

    def __str__(self) -> str:
        return self.compact()

    def __repr__(self) -> str:
        return f"JWS(alg={self.algorithm!r}, state={self._state.value!r})"

    def sign(self, key: Any) -> str:
        """Sign the token, replacing any stored signature.

        Returns
        -------
        str
            The compact serialization ``header.payload.signature``.

        Raises
        ------
        jwsig.core.exceptions.JWSError
            If the token is invalid (the stored parse error is raised) or the
            key is unusable for the algorithm.
        """
        algorithm = self._require_valid()
        signature = algorithm.sign(self.signing_input, key)
        self._signature = base64url.encode(signature)
        self._state = TokenState.SIGNED
        return self.compact()

    def validate(
        self,
        key: Any,
        *,
        algorithms: Iterable[str] | None = None,
        now: datetime | None = None,
    ) -> None:
        """Verify the signature and time-based claims, raising on failure.

        Parameters
        ----------
        key
            HMAC secret, or public key (PEM or key object) for RS/ES/PS.
        algorithms
            If given, only these ``alg`` values are accepted.
        now
            Time to check ``exp`` and ``nbf`` against.  Defaults to the
            current time.

        Raises
        ------
        jwsig.core.exceptions.JWSError
            The stored parse error for invalid tokens, `InvalidKeyError` for
            unusable keys, `InvalidClaimsError` for badly typed claims, or a
            `VerificationFailed` subclass.
        """
        algorithm = self._require_valid()
        if algorithms is not None:
            allowed = {name.upper() for name in algorithms}
            if algorithm.name.upper() not in allowed:
                raise DisallowedAlgorithmError(
                    f"Algorithm {algorithm.name} is not allowed"
                )
        if not self._signature:
            raise InvalidSignatureError("Token is not signed")
        try:
            signature = base64url.decode(self._signature)
        except JWSError as e:
            raise InvalidSignatureError("Signature is not valid base64url") from e
        if not algorithm.verify(self.signing_input, key, signature):
            raise InvalidSignatureError("Signature verification failed")

        claims = self.claims
        timestamp = _timestamp(now)
        leeway = self._settings.leeway_seconds
        if claims.exp is not None and timestamp >= claims.exp + leeway:
            raise ExpiredTokenError("Token has expired")
        if claims.nbf is not None and timestamp < claims.nbf - leeway:
            raise ImmatureTokenError("Token is not yet valid")

    def verify(
        self,
        key: Any,
        *,
        algorithms: Iterable[str] | None = None,
        now: datetime | None = None,
    ) -> bool:
        """Return whether the token verifies with ``key``.

        Same checks as :meth:`validate`, with every failure reported as
        `False`.  Does not change the token.
        """
        try:
            self.validate(key, algorithms=algorithms, now=now)
        except JWSError as e:
            logger.debug(
                "Token verification failed",
                algorithm=self.algorithm,
                reason=e.reason,
                error=str(e),
            )
            return False
        return True
