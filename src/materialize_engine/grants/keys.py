"""
Grant keys: the durable handle of a role/privilege/object grant.

Format: '<region>:GRANT|<object-type>|<object-id>|<role-id>|<privilege>'.
Every part is a named field, so the key does not depend on the order in which
the object id and role id were looked up.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.constants import GRANT_KEY_DELIMITER, GRANT_KEY_MARKER, IDENTITY_SEPARATOR
from src.enums import ObjectType, Privilege
from src.materialize_engine.errors import MalformedIdentity


@dataclass(frozen=True)
class GrantKey:
    region: str
    object_type: ObjectType
    object_id: str
    role_id: str
    privilege: Privilege

    def __post_init__(self) -> None:
        for label, part in (
            ("region", self.region),
            ("object id", self.object_id),
            ("role id", self.role_id),
        ):
            if not part:
                raise MalformedIdentity(f"Grant key {label} must not be empty")
            if GRANT_KEY_DELIMITER in part:
                raise MalformedIdentity(
                    f"Grant key {label} {part!r} must not contain {GRANT_KEY_DELIMITER!r}"
                )

    def encode(self) -> str:
        body = GRANT_KEY_DELIMITER.join(
            (
                GRANT_KEY_MARKER,
                self.object_type.value,
                self.object_id,
                self.role_id,
                self.privilege.value,
            )
        )
        return f"{self.region}{IDENTITY_SEPARATOR}{body}"

    @classmethod
    def decode(cls, value: str) -> GrantKey:
        """Parse an encoded key; raises MalformedIdentity on anything unexpected."""
        region, separator, body = value.partition(f"{IDENTITY_SEPARATOR}{GRANT_KEY_MARKER}")
        if not separator:
            raise MalformedIdentity(f"Grant key {value!r} has no {GRANT_KEY_MARKER} marker")
        parts = body.split(GRANT_KEY_DELIMITER)
        if len(parts) != 5 or parts[0] != "":
            raise MalformedIdentity(f"Grant key {value!r} does not have five parts")
        _, object_type, object_id, role_id, privilege = parts
        try:
            return cls(
                region=region,
                object_type=ObjectType(object_type),
                object_id=object_id,
                role_id=role_id,
                privilege=Privilege(privilege),
            )
        except ValueError as error:
            raise MalformedIdentity(f"Grant key {value!r}: {error}") from error

    def __str__(self) -> str:
        return self.encode()
