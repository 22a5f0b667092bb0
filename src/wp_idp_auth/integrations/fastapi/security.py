from __future__ import annotations

from typing import Optional

from fastapi import Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..common.tokens import extract_token

# Expose this so apps can plug it into dependencies if they want OpenAPI security
bearer_scheme = HTTPBearer(auto_error=False)

DEFAULT_COOKIE_NAME = "access_token"


def extract_token_from_request(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = None,
    cookie_name: Optional[str] = DEFAULT_COOKIE_NAME,
) -> Optional[str]:
    """
    Extract an access token from either:

      1. HTTP Bearer credentials (preferred)
      2. The raw Authorization header or a cookie (e.g. 'access_token')

    Returns None if no token is found.
    """
    if credentials is not None:
        token = (credentials.credentials or "").strip()
        if token:
            return token

    return extract_token(request, cookie_name)
