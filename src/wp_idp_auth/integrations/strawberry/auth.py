from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Type

from graphql import GraphQLError
from starlette.requests import Request
from strawberry.permission import BasePermission
from strawberry.types import Info

from ...domain.constants import TOKEN_EMPTY_MESSAGE
from ...domain.entities import TokenValidationResult
from ...domain.ports import IdpAuthenticator
from ..common.tokens import extract_token


# --------------------------------------------------------------------- #
# Context type used by Strawberry
# --------------------------------------------------------------------- #

@dataclass(slots=True)
class StrawberryIdpContext:
    """
    Default context type for Strawberry GraphQL.

    `user` is the successful validation result, or None for anonymous callers.
    """
    request: Request
    user: Optional[TokenValidationResult] = None
    extra: Any = None  # host app can put UoW, services, etc. here if desired


# --------------------------------------------------------------------- #
# Main integration: StrawberryIdpAuth
# --------------------------------------------------------------------- #

@dataclass(slots=True)
class StrawberryIdpAuth:
    """
    Strawberry GraphQL integration for wp_idp_auth.

    Built on top of the IdpAuthenticator facade, whichever runtime adapter
    registered it.

    Responsibilities:
      - provide a `context_getter` for Strawberry's GraphQLRouter
      - provide a permission class you can attach to fields/mutations
    """

    authenticator: IdpAuthenticator
    cookie_name: Optional[str] = "access_token"

    def make_context_getter(
        self,
        *,
        optional: bool = True,
        extra_factory: Optional[Callable[[Request, Optional[TokenValidationResult]], Any]] = None,
    ):
        """
        Build an async function compatible with:

            strawberry.fastapi.GraphQLRouter(context_getter=...)

        Args:
            optional:
                - True:   missing/invalid tokens become `user=None` in context
                - False:  they become GraphQL errors
            extra_factory:
                - Optional callable: (request, user) -> Any, stored on context.extra
        """

        async def _context_getter(request: Request) -> StrawberryIdpContext:
            token = extract_token(request, self.cookie_name)
            result = self.authenticator.validate_token(token) if token else None

            if result is None or not result.is_valid:
                if not optional:
                    message = result.error_message if result else TOKEN_EMPTY_MESSAGE
                    raise GraphQLError(message)
                result = None

            extra = extra_factory(request, result) if extra_factory else None
            return StrawberryIdpContext(request=request, user=result, extra=extra)

        return _context_getter

    def require_authenticated(self) -> Type[BasePermission]:
        """
        Permission: user must be authenticated (context.user is not None).

        Example:

            RequireUser = strawberry_auth.require_authenticated()

            @strawberry.field(permission_classes=[RequireUser])
            def me(self, info: Info) -> str:
                return info.context.user.subject
        """

        class _RequireAuthenticated(BasePermission):
            message = "Authentication required"

            def has_permission(self, source: Any, info: Info, **kwargs: Any) -> bool:
                ctx: StrawberryIdpContext = info.context
                return ctx.user is not None and ctx.user.is_valid

        return _RequireAuthenticated
