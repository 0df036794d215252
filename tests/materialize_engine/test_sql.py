import pytest

from src.enums import ObjectType, Privilege
from src.materialize_engine.errors import InvalidDescriptor
from src.materialize_engine.identifiers import ObjectIdentity
import src.materialize_engine.sql as sql


def connection(name: str = "k1", schema: str = "", database: str = "") -> ObjectIdentity:
    return ObjectIdentity(ObjectType.CONNECTION, name, schema, database)


SECRET = ObjectIdentity(ObjectType.SECRET, "s1", "sch", "db")


# ---- DDL ----

def test_drop_object():
    assert sql.sql_drop_object(connection()) == "DROP CONNECTION k1;"
    assert sql.sql_drop_object(connection("k1", "public", "materialize")) == (
        "DROP CONNECTION materialize.public.k1;"
    )


def test_drop_uses_multi_word_kind():
    mv = ObjectIdentity(ObjectType.MATERIALIZED_VIEW, "mv", "public")
    assert sql.sql_drop_object(mv) == "DROP MATERIALIZED VIEW public.mv;"


def test_rename_keeps_scope():
    out = sql.sql_rename_object(connection("k1", "public", "materialize"), "k2")
    assert out == "ALTER CONNECTION materialize.public.k1 RENAME TO materialize.public.k2;"


def test_rename_rejects_empty_new_name():
    with pytest.raises(InvalidDescriptor):
        sql.sql_rename_object(connection(), "")


def test_alter_owner_quotes_role():
    assert sql.sql_alter_owner(connection(), "mz_admin") == "ALTER CONNECTION k1 OWNER TO mz_admin;"
    assert sql.sql_alter_owner(connection(), "Data Team") == (
        'ALTER CONNECTION k1 OWNER TO "Data Team";'
    )


def test_alter_owner_requires_role():
    with pytest.raises(InvalidDescriptor):
        sql.sql_alter_owner(connection(), "")


def test_comment_escapes_text():
    out = sql.sql_comment_on_object(connection(), "it's mine")
    assert out == "COMMENT ON CONNECTION k1 IS 'it''s mine';"


def test_empty_comment_clears():
    assert sql.sql_comment_on_object(connection(), "") == "COMMENT ON CONNECTION k1 IS NULL;"


def test_grant_and_revoke():
    assert sql.sql_grant_privilege(Privilege.SELECT, SECRET, "r1") == (
        "GRANT SELECT ON SECRET db.sch.s1 TO r1;"
    )
    assert sql.sql_revoke_privilege(Privilege.SELECT, SECRET, "r1") == (
        "REVOKE SELECT ON SECRET db.sch.s1 FROM r1;"
    )


# ---- catalog lookups ----

def test_select_object_id_filters_on_every_given_scope():
    text = sql.sql_select_object_id(connection("k1", "public", "materialize"))
    assert "SELECT o.id" in text
    assert "FROM mz_connections AS o" in text
    assert "o.name = 'k1'" in text
    assert "s.name = 'public'" in text
    assert "d.name = 'materialize'" in text


def test_select_object_id_skips_missing_scopes():
    text = sql.sql_select_object_id(connection("k1"))
    assert "o.name = 'k1'" in text
    assert "s.name =" not in text
    assert "d.name =" not in text


def test_select_object_id_uses_kind_catalog_and_escapes():
    text = sql.sql_select_object_id(ObjectIdentity(ObjectType.SECRET, "it's"))
    assert "FROM mz_secrets AS o" in text
    assert "o.name = 'it''s'" in text


def test_select_object_state_by_id():
    text = sql.sql_select_object_state(ObjectType.CONNECTION, "u1")
    assert "FROM mz_connections AS o" in text
    assert "JOIN mz_roles AS r ON o.owner_id = r.id" in text
    assert "c.object_type = 'connection'" in text
    assert "WHERE o.id = 'u1'" in text


def test_select_role_id():
    assert sql.sql_select_role_id("r1") == "SELECT id FROM mz_roles WHERE name = 'r1'"


def test_select_object_privileges():
    assert sql.sql_select_object_privileges(ObjectType.SECRET, "u9") == (
        "SELECT privileges::text FROM mz_secrets WHERE id = 'u9'"
    )
