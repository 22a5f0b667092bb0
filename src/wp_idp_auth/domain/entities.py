from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from .constants import DEFAULT_RESPONSE_TYPE, DEFAULT_SCOPE, METADATA_PATH


def _normalize(values: Iterable[str] | None) -> Tuple[str, ...]:
    """
    Normalize an iterable of strings into a tuple, dropping blanks.
    If a plain string is passed, treat it as a single-element collection.
    """
    if not values:
        return ()
    if isinstance(values, str):
        values = (values,)
    return tuple(v for v in values if v and v.strip())


@dataclass(frozen=True, slots=True)
class WpIdpOptions:
    """
    Identity provider endpoint + token validation rules.

    Built once at host startup and shared, read-only, by every validation call.
    """
    authority: str = ""
    client_id: str = ""
    client_secret: Optional[str] = None
    redirect_uri: str = ""
    scope: str = DEFAULT_SCOPE
    response_type: str = DEFAULT_RESPONSE_TYPE
    require_https: bool = True
    metadata_address: Optional[str] = None
    valid_audiences: Tuple[str, ...] = ()
    valid_issuers: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "valid_audiences", _normalize(self.valid_audiences))
        object.__setattr__(self, "valid_issuers", _normalize(self.valid_issuers))

    @property
    def effective_valid_audiences(self) -> FrozenSet[str]:
        if self.valid_audiences:
            return frozenset(self.valid_audiences)
        return frozenset({self.client_id})

    @property
    def effective_valid_issuers(self) -> FrozenSet[str]:
        if self.valid_issuers:
            return frozenset(self.valid_issuers)
        return frozenset({self.authority})

    @property
    def metadata_endpoint(self) -> str:
        if self.metadata_address:
            return self.metadata_address
        return f"{self.authority.rstrip('/')}{METADATA_PATH}"


@dataclass(slots=True)
class TokenValidationResult:
    """
    Outcome of a single validation attempt.

    Either `error_message` is set (and identity fields are empty), or the
    identity fields are populated and `error_message` is None.
    """
    is_valid: bool = False
    subject: Optional[str] = None
    tenant_id: Optional[str] = None
    email: Optional[str] = None
    additional_claims: Dict[str, str] = field(default_factory=dict)
    error_message: Optional[str] = None

    @classmethod
    def failure(cls, message: str) -> "TokenValidationResult":
        return cls(is_valid=False, error_message=message)

    @classmethod
    def success(
            cls,
            *,
            subject: Optional[str],
            tenant_id: Optional[str],
            email: Optional[str],
            additional_claims: Dict[str, str],
    ) -> "TokenValidationResult":
        return cls(
            is_valid=True,
            subject=subject,
            tenant_id=tenant_id,
            email=email,
            additional_claims=additional_claims,
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "is_valid": self.is_valid,
            "subject": self.subject,
            "tenant_id": self.tenant_id,
            "email": self.email,
            "additional_claims": dict(self.additional_claims),
            "error_message": self.error_message,
        }
