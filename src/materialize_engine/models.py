"""
Desired-state models for Materialize objects.

These dataclasses carry what the caller declared, exactly as declared: several
fields are mutually exclusive (a broker list or a PrivateLink block, a plain
value or a secret) and are only reconciled into one shape by
`src.materialize_engine.resolve.resolver`.

Conventions and semantics
-------------------------
- Unset references are `None`; unset strings are "".
- `ownership_role` (tri-state on update):
    None  → unmanaged
    "r"   → object must be owned by role `r`
- `comment` (tri-state):
    None  → unmanaged
    ""    → clear the comment (on update; nothing to do on create)
    "..." → set to the given text
- `validate` (tri-state):
    None  → omit the WITH (VALIDATE = ...) clause
    True / False → render it
"""

from __future__ import annotations

from dataclasses import dataclass

from src.enums import ObjectType
from src.materialize_engine.identifiers import ObjectIdentity, ObjectReference


@dataclass(frozen=True)
class ValueSecret:
    """A value given either as plain text or as a reference to a secret. Never both."""

    text: str = ""
    secret: ObjectReference | None = None


@dataclass(frozen=True)
class KafkaBroker:
    """
    One Kafka broker as declared.

    The PrivateLink fields only take effect when all three are set.
    """

    broker: str
    target_group_port: int = 0
    availability_zone: str = ""
    privatelink_connection: ObjectReference | None = None


@dataclass(frozen=True)
class AwsPrivateLink:
    """Connection-wide PrivateLink endpoint. Conflicts with a broker list."""

    privatelink_connection: ObjectReference
    port: int


@dataclass(frozen=True)
class DesiredKafkaConnection:
    """Desired state for a `CREATE CONNECTION ... TO KAFKA` object."""

    name: str
    schema_name: str = ""
    database_name: str = ""
    kafka_brokers: tuple[KafkaBroker, ...] = ()
    aws_privatelink: AwsPrivateLink | None = None
    security_protocol: str = ""
    progress_topic: str = ""
    ssl_certificate_authority: ValueSecret | None = None
    ssl_certificate: ValueSecret | None = None
    ssl_key: ObjectReference | None = None
    sasl_mechanisms: str = ""
    sasl_username: ValueSecret | None = None
    sasl_password: ObjectReference | None = None
    ssh_tunnel: ObjectReference | None = None
    validate: bool | None = None
    ownership_role: str | None = None
    comment: str | None = None

    @property
    def identity(self) -> ObjectIdentity:
        return ObjectIdentity(
            object_type=ObjectType.CONNECTION,
            name=self.name,
            schema_name=self.schema_name,
            database_name=self.database_name,
        )
