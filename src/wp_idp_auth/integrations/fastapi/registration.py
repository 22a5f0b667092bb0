from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from fastapi import FastAPI

from .deps import AUTHENTICATOR_STATE_KEY, OPTIONS_STATE_KEY, SIGN_IN_STATE_KEY, FastAPIIdpAuth
from .security import DEFAULT_COOKIE_NAME
from ..common.authenticator import create_authenticator
from ..common.config import bind_options, require_options
from ..common.sign_in import SignInRegistrar, register_sign_in
from ...domain.constants import CONFIG_SECTION, HostRuntime
from ...domain.entities import WpIdpOptions
from ...domain.ports import SigningKeyResolver

logger = logging.getLogger(__name__)


def add_wp_idp_auth(
    app: FastAPI,
    configuration: Union[WpIdpOptions, Mapping[str, Any]],
    *,
    key_resolver: Optional[SigningKeyResolver] = None,
    sign_in_registrar: Optional[SignInRegistrar] = None,
    cookie_name: Optional[str] = DEFAULT_COOKIE_NAME,
) -> FastAPIIdpAuth:
    """
    Register WP IDP authentication on a FastAPI application.

    - binds the `WpIdpAuth` section (or takes ready-made options)
    - fails fast with ConfigurationError if Authority / ClientId are missing
    - stores the authenticator singleton on `app.state`
    - hands an OpenIdConnectRegistration to the host's sign-in middleware

    Returns the FastAPIIdpAuth dependency helpers.
    """
    if isinstance(configuration, WpIdpOptions):
        options = configuration
    else:
        options = bind_options(configuration)
    require_options(options, section=CONFIG_SECTION)

    authenticator = create_authenticator(
        options,
        HostRuntime.MODERN_PIPELINE,
        key_resolver=key_resolver,
    )

    setattr(app.state, OPTIONS_STATE_KEY, options)
    setattr(app.state, AUTHENTICATOR_STATE_KEY, authenticator)
    setattr(app.state, SIGN_IN_STATE_KEY, register_sign_in(options, sign_in_registrar))

    logger.info("WP IDP authentication registered for authority %s", options.authority)
    return FastAPIIdpAuth(authenticator=authenticator, cookie_name=cookie_name)
