from __future__ import annotations

from .deps import FastAPIIdpAuth, get_idp_authenticator
from .registration import add_wp_idp_auth
from .security import bearer_scheme, extract_token_from_request

__all__ = [
    "FastAPIIdpAuth",
    "add_wp_idp_auth",
    "bearer_scheme",
    "extract_token_from_request",
    "get_idp_authenticator",
]
