from __future__ import annotations

from typing import Optional

from starlette.requests import HTTPConnection


def extract_token(
    connection: HTTPConnection,
    cookie_name: Optional[str] = None,
) -> Optional[str]:
    """
    Framework-agnostic token extractor:

      1. Authorization: Bearer <token>
      2. Cookie: cookie_name (when given)

    Returns:
        token string or None if not found.
    """
    # 1) Authorization header
    auth_header = connection.headers.get("Authorization")
    if auth_header and auth_header[:7].lower() == "bearer ":
        token = auth_header[7:].strip()
        if token:
            return token

    # 2) Cookie
    if cookie_name:
        cookie_token = connection.cookies.get(cookie_name)
        if cookie_token:
            return cookie_token

    return None
