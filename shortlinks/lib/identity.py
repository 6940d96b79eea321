"""Caller identity as seen by the allocation service.

The HTTP layer resolves an optional session token into exactly one of two
variants; nothing below the boundary passes a nullable owner around.
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class Anonymous:
    """Caller without an authenticated identity."""

    @property
    def owner_id(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class Owned:
    """Authenticated caller."""

    owner_id: str

    def __post_init__(self):
        if not self.owner_id:
            raise ValueError("owner_id must be a non-empty string")


CallerIdentity = Union[Anonymous, Owned]

ANONYMOUS = Anonymous()


def identity_for(owner_id: Optional[str]) -> CallerIdentity:
    """Build a caller identity from an optional owner id."""
    return Owned(owner_id) if owner_id else ANONYMOUS
