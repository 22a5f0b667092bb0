from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .entities import TokenValidationResult


@runtime_checkable
class SigningKeyResolver(Protocol):
    """
    Port for resolving the key that verifies a token signature.

    Implementations live in the adapters layer (e.g. JWKS resolver).
    """

    def get_signing_key(self, header: Mapping[str, Any]) -> Any:
        """
        Return verification key material for the given (unverified) JWT header.

        Raises:
          - SigningKeyNotFoundError when no key matches
          - KeyResolutionError when key material cannot be fetched
        """
        ...


@runtime_checkable
class IdpAuthenticator(Protocol):
    """
    Capability exposed to host application code, whatever runtime hosts it.
    """

    def validate_token(self, token: str | None) -> TokenValidationResult:
        """Validate a bearer token. Never raises; failures live in the result."""
        ...

    def get_authorize_url(self) -> str:
        ...
