from enum import Enum


class HostRuntime(Enum):
    MODERN_PIPELINE = "fastapi"
    LEGACY_MIDDLEWARE = "starlette"


class ClaimTypes:
    NAME_IDENTIFIER = "http://schemas.xmlsoap.org/ws/2005/05/identity/claims/nameidentifier"
    EMAIL = "http://schemas.xmlsoap.org/ws/2005/05/identity/claims/emailaddress"


# Precedence order matters: first present claim wins.
SUBJECT_CLAIMS = (ClaimTypes.NAME_IDENTIFIER, "sub", "oid")
TENANT_CLAIMS = ("tid", "tenant_id")
EMAIL_CLAIMS = (ClaimTypes.EMAIL, "email", "preferred_username")

CONFIG_SECTION = "WpIdpAuth"

DEFAULT_SCOPE = "openid profile email"
DEFAULT_RESPONSE_TYPE = "code id_token"
DEFAULT_CALLBACK_PATH = "/signin-oidc"
DEFAULT_TENANT = "common"

CLOCK_SKEW_SECONDS = 300

AUTHORIZE_PATH = "/oauth2/v2.0/authorize"
METADATA_PATH = "/.well-known/openid-configuration"

TOKEN_EMPTY_MESSAGE = "Token is null or empty"
TOKEN_UNREADABLE_MESSAGE = "Token cannot be read"
VALIDATION_FAILED_PREFIX = "Token validation failed: "
UNEXPECTED_ERROR_PREFIX = "Error validating token: "
