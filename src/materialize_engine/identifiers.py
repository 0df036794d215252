"""
Identifier utilities for the Materialize engine.

This module defines:
- Canonical object identity dataclass: ObjectIdentity.
- Helpers to quote identifiers and string literals.
- Helpers to format qualified names from their parts.

Conventions:
- Verbs: quote_*, format_*.
- A qualified name joins database, schema and name with '.', omitting empty
  parent scopes: 'db.schema.name', 'schema.name' or 'name'.
- Plain lower-case identifiers render bare unless they are reserved keywords;
  anything else is double-quoted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from src.constants import RESERVED_KEYWORDS
from src.enums import ObjectType
from src.materialize_engine.errors import InvalidDescriptor

_PLAIN_IDENTIFIER = re.compile(r"[a-z_][a-z0-9_$]*")


# -----------------------------
# Core identity data structure
# -----------------------------


@dataclass(frozen=True)
class ObjectIdentity:
    """Kind plus three-part name of a schema-scoped object."""

    object_type: ObjectType
    name: str
    schema_name: str = ""
    database_name: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise InvalidDescriptor(f"{self.object_type} name must not be empty.")
        if self.database_name and not self.schema_name:
            raise InvalidDescriptor(
                f"{self.object_type} {self.name!r} sets a database without a schema."
            )

    @property
    def qualified_name(self) -> str:
        """Quoted qualified name used in generated statements."""
        return quote_qualified_name(self.database_name, self.schema_name, self.name)

    @property
    def display_name(self) -> str:
        """Unquoted qualified name for log and error messages."""
        return format_qualified_name(self.database_name, self.schema_name, self.name)

    def renamed(self, new_name: str) -> ObjectIdentity:
        """Same kind and scope, different name."""
        return ObjectIdentity(self.object_type, new_name, self.schema_name, self.database_name)


@dataclass(frozen=True)
class ObjectReference:
    """
    Pointer to another object (SSH tunnel, PrivateLink connection, secret).

    An empty `name` means "not configured"; use `is_set` before rendering.
    """

    name: str = ""
    schema_name: str = ""
    database_name: str = ""

    def __post_init__(self) -> None:
        if self.database_name and not self.schema_name:
            raise InvalidDescriptor(
                f"Reference {self.name!r} sets a database without a schema."
            )

    @property
    def is_set(self) -> bool:
        return bool(self.name)

    @property
    def qualified_name(self) -> str:
        return quote_qualified_name(self.database_name, self.schema_name, self.name)


# -----------------------------
# String helpers
# -----------------------------


def quote_identifier(identifier: str) -> str:
    """Return `identifier` bare when it is a plain, non-reserved identifier, else double-quoted."""
    text = str(identifier)
    if _PLAIN_IDENTIFIER.fullmatch(text) and text.upper() not in RESERVED_KEYWORDS:
        return text
    return '"' + text.replace('"', '""') + '"'


def quote_string(value: str) -> str:
    """Single-quoted SQL string literal with embedded quotes doubled."""
    return "'" + (value or "").replace("'", "''") + "'"


def quote_qualified_name(database_name: str, schema_name: str, name: str) -> str:
    """
    Return the qualified, quoted name for the given scope.

    Examples:
        quote_qualified_name("materialize", "public", "k1") -> "materialize.public.k1"
        quote_qualified_name("", "", "Kafka") -> '"Kafka"'
    """
    if not name:
        raise InvalidDescriptor("Qualified name requires a non-empty name.")
    parts = [p for p in (database_name, schema_name, name) if p]
    return ".".join(quote_identifier(p) for p in parts)


def format_qualified_name(database_name: str, schema_name: str, name: str) -> str:
    """Unquoted form from parts: 'db.schema.name'."""
    return ".".join(p for p in (database_name, schema_name, name) if p)
