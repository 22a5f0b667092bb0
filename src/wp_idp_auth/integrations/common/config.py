from __future__ import annotations

import os
from typing import Any, Dict, List, Mapping, Optional

from ...domain.constants import CONFIG_SECTION, DEFAULT_RESPONSE_TYPE, DEFAULT_SCOPE
from ...domain.entities import WpIdpOptions
from ...domain.exceptions import ConfigurationError

# configuration key -> WpIdpOptions field
_FIELDS = {
    "authority": "authority",
    "clientid": "client_id",
    "clientsecret": "client_secret",
    "redirecturi": "redirect_uri",
    "scope": "scope",
    "responsetype": "response_type",
    "requirehttps": "require_https",
    "metadataaddress": "metadata_address",
    "validaudiences": "valid_audiences",
    "validissuers": "valid_issuers",
}

_TRUE = {"1", "true", "yes", "on"}


def _bool(raw: Any, default: bool = True) -> bool:
    if raw is None or raw == "":
        return default
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in _TRUE


def _split_csv(raw: Any) -> List[str]:
    if not raw:
        return []
    if isinstance(raw, str):
        return [x.strip() for x in raw.split(",") if x and x.strip()]
    return [str(x).strip() for x in raw if x and str(x).strip()]


def _str(raw: Any) -> Optional[str]:
    if raw is None:
        return None
    value = str(raw).strip()
    return value or None


def _section(configuration: Mapping[str, Any], section: str) -> Dict[str, Any]:
    """
    Pick the named section out of a configuration mapping.

    Accepts a nested mapping ({"WpIdpAuth": {...}}), flattened colon keys
    ("WpIdpAuth:Authority") or the section mapping itself.
    """
    lowered = section.lower()
    values: Dict[str, Any] = {}

    for key, value in configuration.items():
        name = str(key).lower()
        if name == lowered and isinstance(value, Mapping):
            values.update({str(k).lower(): v for k, v in value.items()})
        elif name.startswith(lowered + ":"):
            values[name[len(lowered) + 1:]] = value

    if not values:
        values = {str(k).lower(): v for k, v in configuration.items()}
    return values


def bind_options(
        configuration: Mapping[str, Any],
        section: str = CONFIG_SECTION,
) -> WpIdpOptions:
    """
    Bind the `WpIdpAuth` configuration section into WpIdpOptions.

    Key lookup is case-insensitive; defaults apply to absent keys. No
    required-field checks happen here, see `require_options`.
    """
    values = _section(configuration, section)
    raw = {field: values.get(key) for key, field in _FIELDS.items()}

    return WpIdpOptions(
        authority=_str(raw["authority"]) or "",
        client_id=_str(raw["client_id"]) or "",
        client_secret=_str(raw["client_secret"]),
        redirect_uri=_str(raw["redirect_uri"]) or "",
        scope=_str(raw["scope"]) or DEFAULT_SCOPE,
        response_type=_str(raw["response_type"]) or DEFAULT_RESPONSE_TYPE,
        require_https=_bool(raw["require_https"], True),
        metadata_address=_str(raw["metadata_address"]),
        valid_audiences=tuple(_split_csv(raw["valid_audiences"])),
        valid_issuers=tuple(_split_csv(raw["valid_issuers"])),
    )


def options_from_env(
        environ: Optional[Mapping[str, str]] = None,
        section: str = CONFIG_SECTION,
) -> WpIdpOptions:
    """
    Bind options from environment variables such as `WpIdpAuth__Authority`.

    List values are comma-separated.
    """
    env = os.environ if environ is None else environ
    prefix = f"{section}__".lower()
    values = {
        f"{section}:{key[len(prefix):]}": value
        for key, value in env.items()
        if key.lower().startswith(prefix)
    }
    return bind_options(values, section=section)


def require_options(
        options: WpIdpOptions,
        *,
        redirect_uri: bool = False,
        section: Optional[str] = None,
) -> WpIdpOptions:
    """
    Fail fast when required options are missing.

    Raises:
        ConfigurationError naming the first missing setting.
    """
    required = [("Authority", options.authority), ("ClientId", options.client_id)]
    if redirect_uri:
        required.append(("RedirectUri", options.redirect_uri))

    for name, value in required:
        if not value or not value.strip():
            if section:
                raise ConfigurationError(f"{section}:{name} is required in configuration.")
            raise ConfigurationError(f"{name} is required.")
    return options
