class WpIdpAuthError(Exception):
    """Base class for all wp_idp_auth errors."""
    pass


class ConfigurationError(WpIdpAuthError):
    """Raised when required options are missing or inconsistent."""
    pass


class TokenUnreadableError(WpIdpAuthError):
    """Raised when a token is not a compact signed JWT."""
    pass


class TokenValidationError(WpIdpAuthError):
    """Raised when signature, issuer, audience or lifetime checks fail."""
    pass


class SigningKeyNotFoundError(TokenValidationError):
    """Raised when no published signing key matches the token."""
    pass


class KeyResolutionError(WpIdpAuthError):
    """Raised when signing-key material cannot be fetched."""
    pass
