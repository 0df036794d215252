"""
Resolved configuration shapes.

Each alias below is a closed sum type: after resolution a field holds exactly
one of its members (or None when the clause is omitted), so the compiler never
has to decide between two populated inputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from src.enums import SaslMechanism, SecurityProtocol
from src.materialize_engine.identifiers import ObjectIdentity, ObjectReference

# ---------- secret-like values ----------


@dataclass(frozen=True)
class PlainText:
    text: str


@dataclass(frozen=True)
class SecretReference:
    secret: ObjectReference


ResolvedValue: TypeAlias = PlainText | SecretReference


# ---------- brokers ----------


@dataclass(frozen=True)
class DirectBroker:
    """'host:port' reached directly."""

    address: str


@dataclass(frozen=True)
class PrivateLinkBroker:
    """'host:port' reached through an AWS PrivateLink connection."""

    address: str
    target_group_port: int
    availability_zone: str
    privatelink_connection: ObjectReference


@dataclass(frozen=True)
class SshTunnelBroker:
    """'host:port' reached through the connection-wide SSH tunnel."""

    address: str
    ssh_tunnel: ObjectReference


BrokerEndpoint: TypeAlias = DirectBroker | PrivateLinkBroker | SshTunnelBroker


@dataclass(frozen=True)
class BrokerList:
    brokers: tuple[BrokerEndpoint, ...]


@dataclass(frozen=True)
class AwsPrivateLinkEndpoint:
    """Connection-wide PrivateLink endpoint used instead of a broker list."""

    privatelink_connection: ObjectReference
    port: int


KafkaEndpoint: TypeAlias = BrokerList | AwsPrivateLinkEndpoint


# ---------- resolved connection ----------


@dataclass(frozen=True)
class ResolvedKafkaConnection:
    """A Kafka connection with every exclusive choice already made."""

    identity: ObjectIdentity
    endpoint: KafkaEndpoint
    security_protocol: SecurityProtocol | None = None
    progress_topic: str | None = None
    ssl_certificate_authority: ResolvedValue | None = None
    ssl_certificate: ResolvedValue | None = None
    ssl_key: ObjectReference | None = None
    sasl_mechanisms: SaslMechanism | None = None
    sasl_username: ResolvedValue | None = None
    sasl_password: ObjectReference | None = None
    validate: bool | None = None
