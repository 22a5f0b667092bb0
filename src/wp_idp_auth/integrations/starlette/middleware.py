from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote

from starlette.applications import Starlette
from starlette.requests import HTTPConnection, Request
from starlette.responses import RedirectResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from ..common.authenticator import create_authenticator
from ..common.config import require_options
from ..common.sign_in import SignInRegistrar, register_sign_in
from ..common.tokens import extract_token
from ...domain.constants import HostRuntime
from ...domain.entities import TokenValidationResult, WpIdpOptions
from ...domain.ports import IdpAuthenticator, SigningKeyResolver

logger = logging.getLogger(__name__)

DEFAULT_COOKIE_NAME = "WpIdpAuth.Cookie"
DEFAULT_ERROR_PATH = "/Error"
RESULT_STATE_KEY = "wp_idp_result"


class WpIdpAuthMiddleware:
    """
    ASGI middleware validating the caller's token on every HTTP request.

    The outcome is stored on `request.state.wp_idp_result` (None when the
    request carried no token). With `require_authentication`, anonymous
    requests are sent to the authorize URL and failed validations to the
    error page.
    """

    def __init__(
        self,
        app: ASGIApp,
        authenticator: IdpAuthenticator,
        *,
        require_authentication: bool = False,
        error_path: str = DEFAULT_ERROR_PATH,
        cookie_name: Optional[str] = DEFAULT_COOKIE_NAME,
    ) -> None:
        self.app = app
        self.authenticator = authenticator
        self.require_authentication = require_authentication
        self.error_path = error_path
        self.cookie_name = cookie_name

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        connection = HTTPConnection(scope)
        token = extract_token(connection, self.cookie_name)
        result = self.authenticator.validate_token(token) if token else None
        scope.setdefault("state", {})[RESULT_STATE_KEY] = result

        if self.require_authentication and connection.url.path != self.error_path:
            if result is None:
                response = RedirectResponse(self.authenticator.get_authorize_url())
                await response(scope, receive, send)
                return
            if not result.is_valid:
                logger.debug("Authentication failed: %s", result.error_message)
                response = RedirectResponse(
                    f"{self.error_path}?message={quote(result.error_message or '', safe='')}"
                )
                await response(scope, receive, send)
                return

        await self.app(scope, receive, send)


def get_idp_result(request: Request) -> Optional[TokenValidationResult]:
    """The validation outcome the middleware attached to this request."""
    return getattr(request.state, RESULT_STATE_KEY, None)


def use_wp_idp_auth(
    app: Starlette,
    options: WpIdpOptions,
    *,
    key_resolver: Optional[SigningKeyResolver] = None,
    sign_in_registrar: Optional[SignInRegistrar] = None,
    require_authentication: bool = False,
    error_path: str = DEFAULT_ERROR_PATH,
    cookie_name: Optional[str] = DEFAULT_COOKIE_NAME,
) -> Starlette:
    """
    Wire WP IDP authentication into a Starlette middleware pipeline.

    Authority, ClientId and RedirectUri are required; a missing one raises
    ConfigurationError before the app serves anything.
    """
    if options is None:
        raise ValueError("options must not be None")
    require_options(options, redirect_uri=True)

    authenticator = create_authenticator(
        options,
        HostRuntime.LEGACY_MIDDLEWARE,
        key_resolver=key_resolver,
    )

    app.state.wp_idp_options = options
    app.state.wp_idp_authenticator = authenticator
    app.state.wp_idp_sign_in = register_sign_in(options, sign_in_registrar)

    app.add_middleware(
        WpIdpAuthMiddleware,
        authenticator=authenticator,
        require_authentication=require_authentication,
        error_path=error_path,
        cookie_name=cookie_name,
    )

    logger.info("WP IDP authentication middleware added for authority %s", options.authority)
    return app
