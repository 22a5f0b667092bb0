from .auth import (
    StrawberryIdpAuth,
    StrawberryIdpContext,
)

__all__ = [
    "StrawberryIdpAuth",
    "StrawberryIdpContext",
]
