"""
Compile a resolved Kafka connection into its CREATE statement.

Clause order is fixed and independent of how the descriptor was built:

  1) BROKERS (...) or AWS PRIVATELINK ... (PORT n)
  2) SECURITY PROTOCOL
  3) PROGRESS TOPIC
  4) SSL CERTIFICATE AUTHORITY, SSL CERTIFICATE, SSL KEY
  5) SASL MECHANISMS, SASL USERNAME, SASL PASSWORD

Clauses are joined with ', ' and only rendered when their field is set.
"""

from __future__ import annotations

from src.materialize_engine.identifiers import ObjectReference, quote_string
from src.materialize_engine.models import DesiredKafkaConnection
from src.materialize_engine.resolve.resolver import resolve_kafka_connection
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

_CLAUSE_SEPARATOR = ", "


def compile_create_kafka_connection(connection: ResolvedKafkaConnection) -> str:
    """CREATE CONNECTION <qname> TO KAFKA (...)[ WITH (VALIDATE = ...)];"""
    clauses = [render_endpoint(connection.endpoint)]

    if connection.security_protocol is not None:
        clauses.append(f"SECURITY PROTOCOL = {quote_string(connection.security_protocol.value)}")
    if connection.progress_topic:
        clauses.append(f"PROGRESS TOPIC {quote_string(connection.progress_topic)}")

    clauses.extend(
        _value_clause(keyword, value)
        for keyword, value in (
            ("SSL CERTIFICATE AUTHORITY", connection.ssl_certificate_authority),
            ("SSL CERTIFICATE", connection.ssl_certificate),
        )
        if value is not None
    )
    if connection.ssl_key is not None:
        clauses.append(_secret_clause("SSL KEY", connection.ssl_key))

    if connection.sasl_mechanisms is not None:
        clauses.append(f"SASL MECHANISMS = {quote_string(connection.sasl_mechanisms.value)}")
    if connection.sasl_username is not None:
        clauses.append(_value_clause("SASL USERNAME", connection.sasl_username))
    if connection.sasl_password is not None:
        clauses.append(_secret_clause("SASL PASSWORD", connection.sasl_password))

    statement = (
        f"CREATE CONNECTION {connection.identity.qualified_name} TO KAFKA "
        f"({_CLAUSE_SEPARATOR.join(clauses)})"
    )
    if connection.validate is not None:
        statement += f" WITH (VALIDATE = {'true' if connection.validate else 'false'})"
    return statement + ";"


def compile_create(desired: DesiredKafkaConnection) -> str:
    """Resolve, then compile. Raises before rendering on conflicting input."""
    return compile_create_kafka_connection(resolve_kafka_connection(desired))


# ---------- renderers ----------


def render_endpoint(endpoint: KafkaEndpoint) -> str:
    if isinstance(endpoint, AwsPrivateLinkEndpoint):
        return (
            f"AWS PRIVATELINK {endpoint.privatelink_connection.qualified_name} "
            f"(PORT {endpoint.port})"
        )
    return render_broker_list(endpoint)


def render_broker_list(broker_list: BrokerList) -> str:
    rendered = _CLAUSE_SEPARATOR.join(render_broker(b) for b in broker_list.brokers)
    return f"BROKERS ({rendered})"


def render_broker(broker: BrokerEndpoint) -> str:
    address = quote_string(broker.address)
    if isinstance(broker, SshTunnelBroker):
        return f"{address} USING SSH TUNNEL {broker.ssh_tunnel.qualified_name}"
    if isinstance(broker, PrivateLinkBroker):
        return (
            f"{address} USING AWS PRIVATELINK {broker.privatelink_connection.qualified_name} "
            f"(PORT {broker.target_group_port}, "
            f"AVAILABILITY ZONE {quote_string(broker.availability_zone)})"
        )
    if isinstance(broker, DirectBroker):
        return address
    raise TypeError(f"Unsupported broker variant: {type(broker).__name__}")


def _value_clause(keyword: str, value: ResolvedValue) -> str:
    """`KEYWORD = 'text'` or `KEYWORD = SECRET ref`; exactly one form per value."""
    if isinstance(value, SecretReference):
        return _secret_clause(keyword, value.secret)
    if isinstance(value, PlainText):
        return f"{keyword} = {quote_string(value.text)}"
    raise TypeError(f"Unsupported value variant: {type(value).__name__}")


def _secret_clause(keyword: str, secret: ObjectReference) -> str:
    return f"{keyword} = SECRET {secret.qualified_name}"
