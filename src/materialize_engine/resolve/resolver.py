"""
Configuration variant resolver.

Turns a `DesiredKafkaConnection` (independently optional fields) into a
`ResolvedKafkaConnection` (one tagged shape per field), or raises before any
SQL is rendered:

- ConfigurationConflict: mutually exclusive inputs are both populated, or a
  required companion input is missing.
- InvalidDescriptor: a value is outside its constant lookup table.

Broker policy
-------------
1) A connection-wide SSH tunnel routes every broker through the tunnel.
2) Otherwise a broker with target-group port, availability zone and
   PrivateLink reference is a PrivateLink broker.
3) Anything less is a direct broker; partial PrivateLink settings are
   dropped with a warning.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TypeVar

from src.enums import SaslMechanism, SecurityProtocol
from src.logger import LOGGER
from src.materialize_engine.errors import ConfigurationConflict, InvalidDescriptor
from src.materialize_engine.identifiers import ObjectReference
from src.materialize_engine.models import DesiredKafkaConnection, KafkaBroker, ValueSecret
from src.materialize_engine.resolve.variants import (
    AwsPrivateLinkEndpoint,
    BrokerEndpoint,
    BrokerList,
    DirectBroker,
    KafkaEndpoint,
    PlainText,
    PrivateLinkBroker,
    ResolvedKafkaConnection,
    ResolvedValue,
    SecretReference,
    SshTunnelBroker,
)

_E = TypeVar("_E", bound=StrEnum)


def resolve_kafka_connection(desired: DesiredKafkaConnection) -> ResolvedKafkaConnection:
    """Resolve every exclusive choice of a Kafka connection."""
    identity = desired.identity
    ssh_tunnel = _reference_or_none(desired.ssh_tunnel)
    sasl_username = resolve_value_secret("sasl_username", desired.sasl_username)
    sasl_password = _reference_or_none(desired.sasl_password)

    sasl_mechanisms = _lookup(SaslMechanism, "sasl_mechanisms", desired.sasl_mechanisms)
    if sasl_mechanisms is not None and (sasl_username is None or sasl_password is None):
        raise ConfigurationConflict(
            ("sasl_mechanisms", "sasl_username", "sasl_password"),
            f"Connection {identity.display_name}: sasl_mechanisms requires "
            "sasl_username and sasl_password",
        )

    return ResolvedKafkaConnection(
        identity=identity,
        endpoint=_resolve_endpoint(desired, ssh_tunnel),
        security_protocol=_lookup(SecurityProtocol, "security_protocol", desired.security_protocol),
        progress_topic=desired.progress_topic or None,
        ssl_certificate_authority=resolve_value_secret(
            "ssl_certificate_authority", desired.ssl_certificate_authority
        ),
        ssl_certificate=resolve_value_secret("ssl_certificate", desired.ssl_certificate),
        ssl_key=_reference_or_none(desired.ssl_key),
        sasl_mechanisms=sasl_mechanisms,
        sasl_username=sasl_username,
        sasl_password=sasl_password,
        validate=desired.validate,
    )


def resolve_value_secret(field_name: str, value: ValueSecret | None) -> ResolvedValue | None:
    """
    Resolve a text-or-secret input.

    Returns None when neither side is populated (clause omitted).
    """
    if value is None:
        return None
    secret = _reference_or_none(value.secret)
    if value.text and secret is not None:
        raise ConfigurationConflict(
            (f"{field_name}.text", f"{field_name}.secret"),
            f"{field_name} sets both a plain-text value and a secret",
        )
    if secret is not None:
        return SecretReference(secret)
    if value.text:
        return PlainText(value.text)
    return None


def resolve_broker(broker: KafkaBroker, ssh_tunnel: ObjectReference | None) -> BrokerEndpoint:
    """Pick the rendering variant for a single broker."""
    if not broker.broker:
        raise InvalidDescriptor("Kafka broker address must not be empty.")
    if ssh_tunnel is not None:
        return SshTunnelBroker(address=broker.broker, ssh_tunnel=ssh_tunnel)

    privatelink = _reference_or_none(broker.privatelink_connection)
    wants_privatelink = (broker.target_group_port, broker.availability_zone, privatelink)
    if all(wants_privatelink):
        return PrivateLinkBroker(
            address=broker.broker,
            target_group_port=broker.target_group_port,
            availability_zone=broker.availability_zone,
            privatelink_connection=privatelink,  # type: ignore[arg-type]
        )
    if any(wants_privatelink):
        LOGGER.warning(
            "Broker %s has partial PrivateLink settings; rendering it as a plain broker.",
            broker.broker,
        )
    return DirectBroker(address=broker.broker)


# ---------- helpers ----------


def _resolve_endpoint(
    desired: DesiredKafkaConnection, ssh_tunnel: ObjectReference | None
) -> KafkaEndpoint:
    has_brokers = bool(desired.kafka_brokers)
    has_privatelink = desired.aws_privatelink is not None
    if has_brokers and has_privatelink:
        raise ConfigurationConflict(
            ("kafka_brokers", "aws_privatelink"),
            f"Connection {desired.identity.display_name}: kafka_brokers conflicts with aws_privatelink",
        )
    if not has_brokers and not has_privatelink:
        raise ConfigurationConflict(
            ("kafka_brokers", "aws_privatelink"),
            f"Connection {desired.identity.display_name}: one of kafka_brokers or "
            "aws_privatelink is required",
        )

    if desired.aws_privatelink is not None:
        privatelink = _reference_or_none(desired.aws_privatelink.privatelink_connection)
        if privatelink is None:
            raise InvalidDescriptor("aws_privatelink requires a privatelink_connection.")
        return AwsPrivateLinkEndpoint(
            privatelink_connection=privatelink, port=desired.aws_privatelink.port
        )

    return BrokerList(tuple(resolve_broker(b, ssh_tunnel) for b in desired.kafka_brokers))


def _reference_or_none(reference: ObjectReference | None) -> ObjectReference | None:
    """Normalise 'not configured' to None."""
    if reference is None or not reference.is_set:
        return None
    return reference


def _lookup(table: type[_E], field_name: str, value: str) -> _E | None:
    """Case-insensitive lookup in a constant table; '' means unset."""
    if not value:
        return None
    try:
        return table(value.upper())
    except ValueError:
        allowed = ", ".join(member.value for member in table)
        raise InvalidDescriptor(
            f"{field_name} {value!r} is not one of: {allowed}"
        ) from None
