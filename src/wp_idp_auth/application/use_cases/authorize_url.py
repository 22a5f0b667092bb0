from __future__ import annotations

import urllib.parse

from ...domain.constants import AUTHORIZE_PATH
from ...domain.entities import WpIdpOptions


def _escape(value: str) -> str:
    # RFC 3986 data escaping: only unreserved characters stay literal.
    return urllib.parse.quote(value or "", safe="")


def build_authorize_url(options: WpIdpOptions) -> str:
    """
    Build the identity provider's authorization endpoint URL.

    Parameter order and names are fixed; `response_mode=form_post` is
    always appended last, unescaped.
    """
    endpoint = f"{options.authority.rstrip('/')}{AUTHORIZE_PATH}"
    query = [
        f"client_id={_escape(options.client_id)}",
        f"redirect_uri={_escape(options.redirect_uri)}",
        f"response_type={_escape(options.response_type)}",
        f"scope={_escape(options.scope)}",
        "response_mode=form_post",
    ]
    return f"{endpoint}?{'&'.join(query)}"
