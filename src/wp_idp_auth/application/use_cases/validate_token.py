from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple

import jwt
from jwt.exceptions import InvalidKeyError

from ...domain.constants import (
    CLOCK_SKEW_SECONDS,
    EMAIL_CLAIMS,
    SUBJECT_CLAIMS,
    TENANT_CLAIMS,
    TOKEN_EMPTY_MESSAGE,
    TOKEN_UNREADABLE_MESSAGE,
    UNEXPECTED_ERROR_PREFIX,
    VALIDATION_FAILED_PREFIX,
)
from ...domain.entities import TokenValidationResult, WpIdpOptions
from ...domain.exceptions import TokenUnreadableError, TokenValidationError
from ...domain.ports import SigningKeyResolver
from ...domain.value_objects import ClaimsIdentity

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHMS: Tuple[str, ...] = (
    "RS256", "RS384", "RS512",
    "PS256", "PS384", "PS512",
    "ES256", "ES384", "ES512",
)

# Signature is checked by PyJWT; registered claims are checked below, in order.
_SIGNATURE_ONLY = {
    "verify_signature": True,
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
    "verify_iss": False,
    "verify_sub": False,
    "verify_jti": False,
}


@dataclass(frozen=True, slots=True)
class TokenValidator:
    """
    Application use case:
    - Check a bearer token's signature, issuer, audience and lifetime
    - Map its claims -> TokenValidationResult

    Shared by every host runtime adapter. Holds no per-call state, so one
    instance may serve concurrent requests.
    """

    options: WpIdpOptions
    key_resolver: SigningKeyResolver
    algorithms: Sequence[str] = DEFAULT_ALGORITHMS
    clock_skew_seconds: int = CLOCK_SKEW_SECONDS
    clock: Callable[[], float] = time.time

    def validate(self, token: Optional[str]) -> TokenValidationResult:
        """
        Validate a token and return a TokenValidationResult.

        Never raises: every failure is encoded in the result.
        """
        if token is None or not token.strip():
            return TokenValidationResult.failure(TOKEN_EMPTY_MESSAGE)

        try:
            header = self._read_header(token)
            payload = self._verify(token, header)
            return self._build_result(payload)
        except TokenUnreadableError:
            logger.debug("Rejected unreadable token")
            return TokenValidationResult.failure(TOKEN_UNREADABLE_MESSAGE)
        except (TokenValidationError, jwt.InvalidTokenError) as exc:
            logger.debug("Token validation failed: %s", exc)
            return TokenValidationResult.failure(f"{VALIDATION_FAILED_PREFIX}{exc}")
        except Exception as exc:
            logger.exception("Unexpected error while validating token")
            return TokenValidationResult.failure(f"{UNEXPECTED_ERROR_PREFIX}{exc}")

    # ------------------------------------------------------------------ #
    # Steps
    # ------------------------------------------------------------------ #

    @staticmethod
    def _read_header(token: str) -> Mapping[str, Any]:
        """Compact JWS only: three segments, JSON header and JSON object payload."""
        if token.count(".") != 2:
            raise TokenUnreadableError(TOKEN_UNREADABLE_MESSAGE)
        try:
            header = jwt.get_unverified_header(token)
            jwt.decode(token, options={"verify_signature": False})
        except jwt.DecodeError as exc:
            raise TokenUnreadableError(TOKEN_UNREADABLE_MESSAGE) from exc
        return header

    def _verify(self, token: str, header: Mapping[str, Any]) -> Mapping[str, Any]:
        alg = header.get("alg")
        if not alg or str(alg).lower() == "none":
            raise TokenValidationError(
                "Unsigned tokens are not accepted (alg: none)"
            )

        key = self.key_resolver.get_signing_key(header)
        try:
            payload = jwt.decode(
                token,
                key,
                algorithms=list(self.algorithms),
                options=_SIGNATURE_ONLY,
            )
        except (InvalidKeyError, TypeError, ValueError) as exc:
            # header alg does not fit the resolved key
            raise TokenValidationError(f"Signature validation failed. {exc}") from exc

        self._validate_issuer(payload)
        self._validate_audience(payload)
        self._validate_lifetime(payload)
        return payload

    def _validate_issuer(self, payload: Mapping[str, Any]) -> None:
        issuer = payload.get("iss")
        if not issuer:
            raise TokenValidationError("Issuer validation failed. The token has no issuer")
        if not isinstance(issuer, str):
            raise TokenValidationError("Issuer validation failed. The issuer is not a string")

        valid_issuers = self.options.effective_valid_issuers
        if issuer not in valid_issuers:
            raise TokenValidationError(
                f"Issuer validation failed. Issuer: '{issuer}'. "
                f"Did not match: {sorted(valid_issuers)}"
            )

    def _validate_audience(self, payload: Mapping[str, Any]) -> None:
        # audience may be a single string or a list
        aud_claim = payload.get("aud")
        if isinstance(aud_claim, str):
            aud_list = [aud_claim]
        elif isinstance(aud_claim, list):
            aud_list = aud_claim
        elif aud_claim is None:
            aud_list = []
        else:
            raise TokenValidationError("Audience validation failed. Audiences must be strings")

        if not aud_list:
            raise TokenValidationError("Audience validation failed. The token has no audience")
        if not all(isinstance(aud, str) for aud in aud_list):
            raise TokenValidationError("Audience validation failed. Audiences must be strings")

        valid_audiences = self.options.effective_valid_audiences
        if not any(aud in valid_audiences for aud in aud_list):
            raise TokenValidationError(
                f"Audience validation failed. Audiences: {aud_list}. "
                f"Did not match: {sorted(valid_audiences)}"
            )

    def _validate_lifetime(self, payload: Mapping[str, Any]) -> None:
        expires = _numeric_date(payload, "exp")
        not_before = _numeric_date(payload, "nbf")
        now = self.clock()
        skew = self.clock_skew_seconds

        if expires is None:
            raise TokenValidationError("Lifetime validation failed. The token is missing an expiration time")
        if not_before is not None and not_before > expires:
            raise TokenValidationError(
                f"Lifetime validation failed. NotBefore ({not_before}) is after Expires ({expires})"
            )
        if not_before is not None and not_before - skew > now:
            raise TokenValidationError(
                f"Lifetime validation failed. The token is not yet valid. "
                f"NotBefore: {not_before}, current time: {int(now)}"
            )
        if expires + skew < now:
            raise TokenValidationError(
                f"Lifetime validation failed. The token is expired. "
                f"Expires: {expires}, current time: {int(now)}"
            )

    @staticmethod
    def _build_result(payload: Mapping[str, Any]) -> TokenValidationResult:
        identity = ClaimsIdentity.from_payload(payload)
        return TokenValidationResult.success(
            subject=identity.find_first(*SUBJECT_CLAIMS),
            tenant_id=identity.find_first(*TENANT_CLAIMS),
            email=identity.find_first(*EMAIL_CLAIMS),
            additional_claims=identity.to_first_value_map(),
        )


def _numeric_date(payload: Mapping[str, Any], claim: str) -> Optional[float]:
    if claim not in payload:
        return None
    value = payload[claim]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TokenValidationError(f"The '{claim}' claim must be a NumericDate")
    return value


def validate_token(
        token: Optional[str],
        options: WpIdpOptions,
        key_resolver: SigningKeyResolver,
        **kwargs: Any,
) -> TokenValidationResult:
    """One-shot form of `TokenValidator(options, key_resolver).validate(token)`."""
    return TokenValidator(options=options, key_resolver=key_resolver, **kwargs).validate(token)
