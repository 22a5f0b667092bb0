from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ...adapters.jwks.key_resolver import JWKSSigningKeyResolver
from ...application.use_cases.authorize_url import build_authorize_url
from ...application.use_cases.validate_token import TokenValidator
from ...domain.constants import HostRuntime
from ...domain.entities import TokenValidationResult, WpIdpOptions
from ...domain.ports import IdpAuthenticator, SigningKeyResolver
from .config import require_options


@dataclass(frozen=True, slots=True)
class WpIdpAuthenticator(IdpAuthenticator):
    """
    Framework-agnostic authenticator facade.

    Integrations (FastAPI, Starlette, Strawberry) register one instance per
    configured options and hand it to request handlers. `runtime` records
    which host variant built it.
    """

    options: WpIdpOptions
    validator: TokenValidator
    runtime: HostRuntime

    # --- Core operations --------------------------------------------------

    def validate_token(self, token: str | None) -> TokenValidationResult:
        """Token -> TokenValidationResult (never raises)."""
        return self.validator.validate(token)

    def get_authorize_url(self) -> str:
        return build_authorize_url(self.options)


def create_authenticator(
        options: WpIdpOptions,
        runtime: HostRuntime,
        *,
        key_resolver: Optional[SigningKeyResolver] = None,
        **validator_kwargs: Any,
) -> WpIdpAuthenticator:
    """
    High-level factory: options -> WpIdpAuthenticator.

    - checks authority / client id are present
    - builds a JWKS key resolver unless one is injected
    - wires the shared TokenValidator
    """
    require_options(options)

    resolver = key_resolver or JWKSSigningKeyResolver.from_options(options)
    validator = TokenValidator(
        options=options,
        key_resolver=resolver,
        **validator_kwargs,
    )
    return WpIdpAuthenticator(options=options, validator=validator, runtime=runtime)
