from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials

from .security import DEFAULT_COOKIE_NAME, bearer_scheme, extract_token_from_request
from ...domain.constants import TOKEN_EMPTY_MESSAGE
from ...domain.entities import TokenValidationResult
from ...domain.ports import IdpAuthenticator

AUTHENTICATOR_STATE_KEY = "wp_idp_authenticator"
OPTIONS_STATE_KEY = "wp_idp_options"
SIGN_IN_STATE_KEY = "wp_idp_sign_in"


def get_idp_authenticator(request: Request) -> IdpAuthenticator:
    """Dependency: the singleton registered by `add_wp_idp_auth`."""
    authenticator = getattr(request.app.state, AUTHENTICATOR_STATE_KEY, None)
    if authenticator is None:
        raise RuntimeError(
            "No IdpAuthenticator registered; call add_wp_idp_auth(app, ...) at startup."
        )
    return authenticator


@dataclass(slots=True)
class FastAPIIdpAuth:
    """
    FastAPI integration for wp_idp_auth.

    Route handlers depend on these instead of touching the authenticator:

        idp_auth = add_wp_idp_auth(app, settings)

        @app.get("/me")
        async def me(user: TokenValidationResult = Depends(idp_auth.get_current_user)):
            return {"subject": user.subject}
    """

    authenticator: IdpAuthenticator
    cookie_name: Optional[str] = DEFAULT_COOKIE_NAME

    # ------------------------------------------------------------------ #
    # Base dependencies
    # ------------------------------------------------------------------ #

    def get_authenticator(self) -> IdpAuthenticator:
        return self.authenticator

    async def get_current_user(
            self,
            request: Request,
            credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    ) -> TokenValidationResult:
        """Dependency: Require a valid token."""
        token = extract_token_from_request(request, credentials, self.cookie_name)
        if not token:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=TOKEN_EMPTY_MESSAGE,
                headers={"WWW-Authenticate": "Bearer"},
            )

        result = self.authenticator.validate_token(token)
        if not result.is_valid:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=result.error_message,
                headers={"WWW-Authenticate": "Bearer"},
            )
        return result

    async def get_optional_user(
            self,
            request: Request,
            credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    ) -> TokenValidationResult | None:
        """Dependency: Optional authentication."""
        token = extract_token_from_request(request, credentials, self.cookie_name)
        if not token:
            # no token anywhere -> anonymous
            return None

        result = self.authenticator.validate_token(token)
        # bad token -> treat as anonymous
        return result if result.is_valid else None
