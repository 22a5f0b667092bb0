"""
wp_idp_auth

One identity-token validation + authorize-URL facade for two host runtimes
(FastAPI dependency injection and Starlette middleware pipelines).
"""

__version__ = "0.1.0"

from .domain.entities import TokenValidationResult, WpIdpOptions
from .domain.constants import ClaimTypes, HostRuntime
from .domain.exceptions import (
    WpIdpAuthError,
    ConfigurationError,
    TokenUnreadableError,
    TokenValidationError,
    SigningKeyNotFoundError,
    KeyResolutionError,
)
from .domain.value_objects import Claim, ClaimsIdentity
from .domain.ports import IdpAuthenticator, SigningKeyResolver

from .application.use_cases.validate_token import TokenValidator, validate_token
from .application.use_cases.authorize_url import build_authorize_url

from .adapters.jwks.key_resolver import JWKSSigningKeyResolver, StaticSigningKeyResolver

from .integrations.common.authenticator import WpIdpAuthenticator, create_authenticator
from .integrations.common.config import bind_options, options_from_env, require_options

__all__ = [
    "__version__",
    # domain core
    "WpIdpOptions",
    "TokenValidationResult",
    "ClaimTypes",
    "HostRuntime",
    "Claim",
    "ClaimsIdentity",
    "IdpAuthenticator",
    "SigningKeyResolver",
    # exceptions
    "WpIdpAuthError",
    "ConfigurationError",
    "TokenUnreadableError",
    "TokenValidationError",
    "SigningKeyNotFoundError",
    "KeyResolutionError",
    # use cases
    "TokenValidator",
    "validate_token",
    "build_authorize_url",
    # adapters
    "JWKSSigningKeyResolver",
    "StaticSigningKeyResolver",
    # facade + configuration
    "WpIdpAuthenticator",
    "create_authenticator",
    "bind_options",
    "options_from_env",
    "require_options",
]
