import logging
import threading
import time
from typing import Any, Dict, Mapping, Optional

import jwt
from jwt.exceptions import InvalidKeyError, PyJWKError
from requests import RequestException, Session

from ...domain.entities import WpIdpOptions
from ...domain.exceptions import (
    ConfigurationError,
    KeyResolutionError,
    SigningKeyNotFoundError,
)
from ...domain.ports import SigningKeyResolver

logger = logging.getLogger(__name__)


class JWKSSigningKeyResolver(SigningKeyResolver):
    """
    Adapter implementing SigningKeyResolver using the issuer's published JWKS.

    Infrastructure layer:
    - Knows how to discover `jwks_uri` from the OpenID metadata document.
    - Caches keys in memory and refreshes them on TTL expiry or `kid` miss.
    """

    def __init__(
        self,
        metadata_address: str,
        *,
        jwks_uri: Optional[str] = None,
        require_https: bool = True,
        cache_ttl_seconds: int = 300,
        min_refresh_interval_seconds: int = 30,
        timeout_seconds: float = 10.0,
        session: Optional[Session] = None,
    ) -> None:
        if require_https:
            for url in filter(None, (metadata_address, jwks_uri)):
                if not url.lower().startswith("https://"):
                    raise ConfigurationError(
                        f"The metadata address or authority must use HTTPS unless "
                        f"require_https is disabled: {url}"
                    )

        self._metadata_address = metadata_address
        self._jwks_uri = jwks_uri
        self._require_https = require_https
        self._cache_ttl = cache_ttl_seconds
        self._min_refresh_interval = min_refresh_interval_seconds
        self._timeout = timeout_seconds

        self._session = session or Session()
        self._lock = threading.Lock()
        self._keys: Optional[Dict[Optional[str], jwt.PyJWK]] = None
        self._last_fetched: float = 0.0
        self._last_attempt: float = 0.0
        self._last_error: Optional[KeyResolutionError] = None

    @classmethod
    def from_options(cls, options: WpIdpOptions, **kwargs: Any) -> "JWKSSigningKeyResolver":
        return cls(
            options.metadata_endpoint,
            require_https=options.require_https,
            **kwargs,
        )

    # ------------------------------------------------------------------ #
    # Port implementation
    # ------------------------------------------------------------------ #

    def get_signing_key(self, header: Mapping[str, Any]) -> Any:
        kid = header.get("kid")

        keys = self._get_keys()
        if kid not in keys and self._can_refresh():
            # keys may have been rotated since the last fetch
            keys = self._get_keys(force=True)

        key = keys.get(kid)
        if key is None and kid is None and len(keys) == 1:
            key = next(iter(keys.values()))

        if key is None:
            raise SigningKeyNotFoundError(
                f"Signature key not found in JWKS (kid: {kid!r})"
            )
        return key.key

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _can_refresh(self) -> bool:
        return (time.time() - self._last_attempt) >= self._min_refresh_interval

    def _get_keys(self, force: bool = False) -> Dict[Optional[str], jwt.PyJWK]:
        with self._lock:
            now = time.time()
            if (
                not force
                and self._keys is not None
                and (now - self._last_fetched) < self._cache_ttl
            ):
                return self._keys

            if self._last_error is not None and (now - self._last_attempt) < self._min_refresh_interval:
                # last fetch failed recently; serve stale keys or the same error
                if self._keys is not None:
                    return self._keys
                raise self._last_error

            self._last_attempt = now
            try:
                body = self._get_json(self._resolve_jwks_uri())
            except KeyResolutionError as exc:
                self._last_error = exc
                logger.warning("JWKS refresh failed: %s", exc)
                if self._keys is not None:
                    return self._keys
                raise

            self._keys = self._parse_keys(body)
            self._last_fetched = now
            self._last_error = None
            logger.info("Fetched %d signing key(s) from JWKS", len(self._keys))
            return self._keys

    def _resolve_jwks_uri(self) -> str:
        if self._jwks_uri:
            return self._jwks_uri

        metadata = self._get_json(self._metadata_address)
        jwks_uri = metadata.get("jwks_uri")
        if not jwks_uri:
            raise KeyResolutionError(
                f"OpenID metadata at {self._metadata_address} has no jwks_uri"
            )
        if self._require_https and not jwks_uri.lower().startswith("https://"):
            raise KeyResolutionError(f"jwks_uri must use HTTPS: {jwks_uri}")

        self._jwks_uri = jwks_uri
        return jwks_uri

    def _get_json(self, url: str) -> Dict[str, Any]:
        try:
            response = self._session.get(url, timeout=self._timeout)
            response.raise_for_status()
            return response.json()
        except (RequestException, ValueError) as exc:
            raise KeyResolutionError(f"Unable to retrieve {url}: {exc}") from exc

    @staticmethod
    def _parse_keys(body: Mapping[str, Any]) -> Dict[Optional[str], jwt.PyJWK]:
        keys: Dict[Optional[str], jwt.PyJWK] = {}
        for data in body.get("keys", []) or []:
            if data.get("use", "sig") != "sig":
                continue
            try:
                key = jwt.PyJWK(data)
            except (PyJWKError, InvalidKeyError) as exc:
                logger.warning("Skipping unusable JWKS entry %r: %s", data.get("kid"), exc)
                continue
            keys.setdefault(key.key_id, key)
        return keys


class StaticSigningKeyResolver(SigningKeyResolver):
    """
    Serves pinned verification keys, keyed by `kid`.

    A single key registered under `None` matches tokens without a `kid`.
    """

    def __init__(self, keys: Mapping[Optional[str], Any]) -> None:
        self._keys = dict(keys)

    def get_signing_key(self, header: Mapping[str, Any]) -> Any:
        kid = header.get("kid")
        if kid in self._keys:
            return self._keys[kid]
        if kid is None and len(self._keys) == 1:
            return next(iter(self._keys.values()))
        raise SigningKeyNotFoundError(f"Signature key not found (kid: {kid!r})")
