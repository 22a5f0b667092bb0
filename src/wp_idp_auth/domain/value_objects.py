# src/wp_idp_auth/domain/value_objects.py

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple


# --- Claims value objects -------------------------------------------------


@dataclass(frozen=True, slots=True)
class Claim:
    """
    A single (type, value) pair, as a claims principal would hold it.
    """
    type: str
    value: str

    def __str__(self) -> str:
        return f"{self.type}: {self.value}"


def _claim_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, separators=(",", ":"), sort_keys=False)


@dataclass(frozen=True, slots=True)
class ClaimsIdentity:
    """
    Ordered, flattened view over a token payload.

    List-valued claims become one `Claim` per element, so the same claim
    type may appear more than once. Claim types keep their raw JWT names
    (`sub`, `email`); they are not remapped to URI claim types.
    """
    claims: Tuple[Claim, ...] = ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ClaimsIdentity":
        claims = []
        for claim_type, raw in payload.items():
            if raw is None:
                continue
            if isinstance(raw, (list, tuple)):
                claims.extend(Claim(claim_type, _claim_value(item)) for item in raw)
            else:
                claims.append(Claim(claim_type, _claim_value(raw)))
        return cls(claims=tuple(claims))

    def __iter__(self) -> Iterator[Claim]:
        return iter(self.claims)

    def find_first(self, *claim_types: str) -> Optional[str]:
        """Value of the first claim whose type is present, by precedence order."""
        for claim_type in claim_types:
            for claim in self.claims:
                if claim.type == claim_type:
                    return claim.value
        return None

    def to_first_value_map(self) -> Dict[str, str]:
        """Claim type -> value; the first occurrence of a type wins."""
        result: Dict[str, str] = {}
        for claim in self.claims:
            result.setdefault(claim.type, claim.value)
        return result
