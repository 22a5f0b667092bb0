from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple
from urllib.parse import urlsplit

from ...domain.constants import CLOCK_SKEW_SECONDS, DEFAULT_CALLBACK_PATH, DEFAULT_TENANT
from ...domain.entities import WpIdpOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TokenValidationParameters:
    valid_issuers: Tuple[str, ...] = ()
    valid_audiences: Tuple[str, ...] = ()
    validate_issuer: bool = True
    validate_audience: bool = True
    validate_lifetime: bool = True
    clock_skew_seconds: int = CLOCK_SKEW_SECONDS


@dataclass(frozen=True, slots=True)
class OpenIdConnectRegistration:
    """
    What a host's native OpenID Connect sign-in middleware needs to know.

    The redirect / cookie handling itself stays with the host; this package
    only derives the settings from WpIdpOptions.
    """
    instance: Optional[str]
    domain: Optional[str]
    tenant_id: Optional[str]
    client_id: str
    client_secret: Optional[str]
    callback_path: str
    redirect_uri: str
    post_logout_redirect_uri: str
    response_type: str
    scope: str
    require_https_metadata: bool
    metadata_address: Optional[str]
    token_validation: TokenValidationParameters = field(default_factory=TokenValidationParameters)


SignInRegistrar = Callable[[OpenIdConnectRegistration], None]


# --------------------------------------------------------------------- #
# Authority / redirect URI helpers
# --------------------------------------------------------------------- #

def extract_instance(authority: str) -> Optional[str]:
    """e.g. https://login.microsoftonline.com/contoso -> https://login.microsoftonline.com"""
    parts = urlsplit(authority or "")
    if not parts.scheme or not parts.hostname:
        return None
    return f"{parts.scheme}://{parts.hostname}"


def extract_domain(authority: str) -> Optional[str]:
    return urlsplit(authority or "").hostname or None


def extract_tenant_id(authority: str) -> Optional[str]:
    """
    Last path segment of an Azure AD style authority, unless it is the
    `v2.0` version suffix (then the `common` tenant).
    """
    if not authority or not authority.strip():
        return None
    segments = [s for s in authority.split("/") if s]
    if segments and segments[-1] != "v2.0":
        return segments[-1]
    return DEFAULT_TENANT


def extract_callback_path(redirect_uri: str) -> str:
    if not redirect_uri or not redirect_uri.strip():
        return DEFAULT_CALLBACK_PATH
    parts = urlsplit(redirect_uri)
    if not parts.scheme or not parts.netloc:
        return DEFAULT_CALLBACK_PATH
    return parts.path or "/"


def build_sign_in_registration(options: WpIdpOptions) -> OpenIdConnectRegistration:
    validation = TokenValidationParameters(
        valid_issuers=tuple(sorted(options.effective_valid_issuers)),
        valid_audiences=tuple(sorted(options.effective_valid_audiences)),
    )
    return OpenIdConnectRegistration(
        instance=extract_instance(options.authority),
        domain=extract_domain(options.authority),
        tenant_id=extract_tenant_id(options.authority),
        client_id=options.client_id,
        client_secret=options.client_secret,
        callback_path=extract_callback_path(options.redirect_uri),
        redirect_uri=options.redirect_uri,
        post_logout_redirect_uri=options.redirect_uri,
        response_type=options.response_type,
        scope=options.scope,
        require_https_metadata=options.require_https,
        metadata_address=options.metadata_address,
        token_validation=validation,
    )


def register_sign_in(
        options: WpIdpOptions,
        registrar: Optional[SignInRegistrar],
) -> OpenIdConnectRegistration:
    """Derive the sign-in registration and hand it to the host, if it asked for it."""
    registration = build_sign_in_registration(options)
    if registrar is not None:
        registrar(registration)
        logger.info("Registered OpenID Connect sign-in for client %s", options.client_id)
    return registration
