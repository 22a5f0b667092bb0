from .middleware import (
    WpIdpAuthMiddleware,
    get_idp_result,
    use_wp_idp_auth,
)

__all__ = [
    "WpIdpAuthMiddleware",
    "get_idp_result",
    "use_wp_idp_auth",
]
