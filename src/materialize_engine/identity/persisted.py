"""
Persisted identity: the durable handle stored for a managed object.

Format: '<region>:<object-id>'. The object id is everything after the last
separator, so regions may themselves contain ':' while ids may not.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.constants import IDENTITY_SEPARATOR
from src.materialize_engine.errors import MalformedIdentity


@dataclass(frozen=True)
class PersistedIdentity:
    """Region plus the store-assigned object id."""

    region: str
    object_id: str

    def __post_init__(self) -> None:
        if not self.region or not self.object_id:
            raise MalformedIdentity(
                f"Identity requires a region and an object id, got {self.region!r}/{self.object_id!r}"
            )
        if IDENTITY_SEPARATOR in self.object_id:
            raise MalformedIdentity(
                f"Object id {self.object_id!r} must not contain {IDENTITY_SEPARATOR!r}"
            )

    def encode(self) -> str:
        return f"{self.region}{IDENTITY_SEPARATOR}{self.object_id}"

    @classmethod
    def decode(cls, value: str) -> PersistedIdentity:
        """Parse '<region>:<object-id>'; raises MalformedIdentity on bad input."""
        region, separator, object_id = value.rpartition(IDENTITY_SEPARATOR)
        if not separator:
            raise MalformedIdentity(f"Identity {value!r} has no {IDENTITY_SEPARATOR!r} separator")
        return cls(region=region, object_id=object_id)

    def __str__(self) -> str:
        return self.encode()
