"""
SQL string builders for Materialize objects.

All functions return fully-formed SQL strings and take an `ObjectIdentity`
(or plain names for roles) that is quoted via the shared identifier helpers.

Design guarantees
- Deterministic, side-effect free string generation.
- Proper identifier quoting and SQL literal escaping.
- No business rules: the resolver and lifecycle decide policy.
"""

from __future__ import annotations

from src.enums import ObjectType, Privilege
from src.materialize_engine.errors import InvalidDescriptor
from src.materialize_engine.identifiers import ObjectIdentity, quote_identifier, quote_string


# ---------- DDL ----------


def sql_drop_object(identity: ObjectIdentity) -> str:
    """DROP <KIND> <qualified-name>;"""
    return f"DROP {identity.object_type.value} {identity.qualified_name};"


def sql_rename_object(identity: ObjectIdentity, new_name: str) -> str:
    """ALTER <KIND> <old> RENAME TO <new>; the new name keeps the old scope."""
    renamed = identity.renamed(new_name)
    return (
        f"ALTER {identity.object_type.value} {identity.qualified_name} "
        f"RENAME TO {renamed.qualified_name};"
    )


def sql_alter_owner(identity: ObjectIdentity, role_name: str) -> str:
    """ALTER <KIND> <qualified-name> OWNER TO <role>;"""
    _require_role(role_name)
    return (
        f"ALTER {identity.object_type.value} {identity.qualified_name} "
        f"OWNER TO {quote_identifier(role_name)};"
    )


def sql_comment_on_object(identity: ObjectIdentity, comment: str) -> str:
    """COMMENT ON <KIND> ... IS '...'; an empty comment clears it (IS NULL)."""
    text = quote_string(comment) if comment else "NULL"
    return f"COMMENT ON {identity.object_type.value} {identity.qualified_name} IS {text};"


def sql_grant_privilege(privilege: Privilege, identity: ObjectIdentity, role_name: str) -> str:
    """GRANT <privilege> ON <KIND> <qualified-name> TO <role>;"""
    _require_role(role_name)
    return (
        f"GRANT {privilege.value} ON {identity.object_type.value} "
        f"{identity.qualified_name} TO {quote_identifier(role_name)};"
    )


def sql_revoke_privilege(privilege: Privilege, identity: ObjectIdentity, role_name: str) -> str:
    """REVOKE <privilege> ON <KIND> <qualified-name> FROM <role>;"""
    _require_role(role_name)
    return (
        f"REVOKE {privilege.value} ON {identity.object_type.value} "
        f"{identity.qualified_name} FROM {quote_identifier(role_name)};"
    )


# ---------- catalog lookups ----------


def sql_select_object_id(identity: ObjectIdentity) -> str:
    """
    Return SQL selecting the catalog id of an object by kind and name.

    Only the scopes present on `identity` are filtered on, so an unscoped name
    that exists in several schemas yields several rows.
    """
    table = identity.object_type.catalog_table
    predicates = [f"o.name = {quote_string(identity.name)}"]
    if identity.schema_name:
        predicates.append(f"s.name = {quote_string(identity.schema_name)}")
    if identity.database_name:
        predicates.append(f"d.name = {quote_string(identity.database_name)}")
    where = "\n        AND ".join(predicates)
    return f"""
      SELECT o.id
      FROM {table} AS o
      JOIN mz_schemas AS s ON o.schema_id = s.id
      LEFT JOIN mz_databases AS d ON s.database_id = d.id
      WHERE {where}
    """


def sql_select_object_state(object_type: ObjectType, object_id: str) -> str:
    """
    Return SQL listing name, schema, database, owner and comment of an object by id.

    Columns are returned in that order; database and comment may be NULL.
    """
    table = object_type.catalog_table
    return f"""
      SELECT
        o.name       AS name,
        s.name       AS schema_name,
        d.name       AS database_name,
        r.name       AS owner_name,
        c.comment    AS comment
      FROM {table} AS o
      JOIN mz_schemas AS s ON o.schema_id = s.id
      LEFT JOIN mz_databases AS d ON s.database_id = d.id
      JOIN mz_roles AS r ON o.owner_id = r.id
      LEFT JOIN mz_internal.mz_comments AS c
        ON  c.id = o.id
        AND c.object_type = {quote_string(object_type.comment_type)}
        AND c.object_sub_id IS NULL
      WHERE o.id = {quote_string(object_id)}
    """


def sql_select_role_id(role_name: str) -> str:
    """SQL selecting the id of a role by name."""
    _require_role(role_name)
    return f"SELECT id FROM mz_roles WHERE name = {quote_string(role_name)}"


def sql_select_object_privileges(object_type: ObjectType, object_id: str) -> str:
    """SQL selecting an object's ACL as a text array ('{grantee=privs/grantor,...}')."""
    table = object_type.catalog_table
    return f"SELECT privileges::text FROM {table} WHERE id = {quote_string(object_id)}"


def _require_role(role_name: str) -> None:
    if not role_name:
        raise InvalidDescriptor("Role name must not be empty.")
