"""Enumerations used throughout the Materialize engine."""

from enum import StrEnum


class Region(StrEnum):
    """Materialize cloud region."""

    AWS_US_EAST_1 = "aws/us-east-1"
    AWS_US_WEST_2 = "aws/us-west-2"
    AWS_EU_WEST_1 = "aws/eu-west-1"


class ObjectType(StrEnum):
    """Schema-scoped Materialize object kinds the engine can address."""

    CONNECTION = "CONNECTION"
    SECRET = "SECRET"
    SOURCE = "SOURCE"
    SINK = "SINK"
    TABLE = "TABLE"
    VIEW = "VIEW"
    MATERIALIZED_VIEW = "MATERIALIZED VIEW"

    @property
    def catalog_table(self) -> str:
        """System catalog relation listing objects of this kind."""
        mapping = {
            ObjectType.CONNECTION: "mz_connections",
            ObjectType.SECRET: "mz_secrets",
            ObjectType.SOURCE: "mz_sources",
            ObjectType.SINK: "mz_sinks",
            ObjectType.TABLE: "mz_tables",
            ObjectType.VIEW: "mz_views",
            ObjectType.MATERIALIZED_VIEW: "mz_materialized_views",
        }
        return mapping[self]

    @property
    def comment_type(self) -> str:
        """Value of `mz_internal.mz_comments.object_type` for this kind."""
        return self.value.lower()


class SecurityProtocol(StrEnum):
    """Kafka security protocols accepted by CREATE CONNECTION ... TO KAFKA."""

    PLAINTEXT = "PLAINTEXT"
    SSL = "SSL"
    SASL_PLAINTEXT = "SASL_PLAINTEXT"
    SASL_SSL = "SASL_SSL"


class SaslMechanism(StrEnum):
    """Kafka SASL mechanisms."""

    PLAIN = "PLAIN"
    SCRAM_SHA_256 = "SCRAM-SHA-256"
    SCRAM_SHA_512 = "SCRAM-SHA-512"


class Privilege(StrEnum):
    """Grantable privileges."""

    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    USAGE = "USAGE"
    CREATE = "CREATE"
    CREATEROLE = "CREATEROLE"
    CREATEDB = "CREATEDB"
    CREATECLUSTER = "CREATECLUSTER"

    @property
    def acl_code(self) -> str:
        """Single-letter code used for this privilege inside an `mz_aclitem`."""
        mapping = {
            Privilege.SELECT: "r",
            Privilege.INSERT: "a",
            Privilege.UPDATE: "w",
            Privilege.DELETE: "d",
            Privilege.USAGE: "U",
            Privilege.CREATE: "C",
            Privilege.CREATEROLE: "R",
            Privilege.CREATEDB: "B",
            Privilege.CREATECLUSTER: "N",
        }
        return mapping[self]
