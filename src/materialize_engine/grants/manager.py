"""
Privilege grants between a role and an object.

Two single-statement operations rather than a state machine:
- grant:  GRANT, then look up object id and role id and build a GrantKey.
- revoke: REVOKE; errors surface directly (revoke is itself the undo).

`read` checks that a previously granted privilege is still present in the
object's ACL. ACL entries are `mz_aclitem` text: 'grantee=privileges/grantor',
where privileges are single-letter codes (see `Privilege.acl_code`).
"""

from __future__ import annotations

from src.enums import Privilege
from src.logger import LOGGER
from src.materialize_engine.errors import AmbiguousIdentity, InvalidDescriptor, NotFound
from src.materialize_engine.execute.ports import StatementExecutor
from src.materialize_engine.grants.keys import GrantKey
from src.materialize_engine.identifiers import ObjectIdentity
from src.materialize_engine.identity.resolver import IdentityResolver
from src.materialize_engine.sql import (
    sql_grant_privilege,
    sql_revoke_privilege,
    sql_select_object_privileges,
)


class GrantManager:
    """Grant and revoke privileges on objects in one region."""

    def __init__(
        self,
        executor: StatementExecutor,
        region: str,
        resolver: IdentityResolver | None = None,
    ) -> None:
        self._executor = executor
        self._region = region
        self._resolver = resolver or IdentityResolver(executor)

    def grant(self, role_name: str, privilege: str, target: ObjectIdentity) -> GrantKey:
        """Grant `privilege` on `target` to `role_name` and return the grant key."""
        checked = parse_privilege(privilege)
        LOGGER.info("Granting %s on %s to %s.", checked, target.display_name, role_name)
        self._executor.execute(sql_grant_privilege(checked, target, role_name))

        role_id = self._resolver.role_id(role_name)
        object_id = self._resolver.object_id(target)
        return GrantKey(
            region=self._region,
            object_type=target.object_type,
            object_id=object_id,
            role_id=role_id,
            privilege=checked,
        )

    def revoke(self, role_name: str, privilege: str, target: ObjectIdentity) -> None:
        """Revoke `privilege` on `target` from `role_name`."""
        checked = parse_privilege(privilege)
        LOGGER.info("Revoking %s on %s from %s.", checked, target.display_name, role_name)
        self._executor.execute(sql_revoke_privilege(checked, target, role_name))

    def read(self, key: GrantKey) -> bool:
        """
        True when the grant described by `key` is still in place.

        Raises NotFound when the object itself no longer exists.
        """
        rows = self._executor.execute(sql_select_object_privileges(key.object_type, key.object_id))
        if not rows:
            raise NotFound(f"{key.object_type} with id {key.object_id} does not exist")
        if len(rows) > 1:
            raise AmbiguousIdentity(f"{key.object_type} id {key.object_id} matched {len(rows)} rows")

        acl = parse_acl(rows[0][0])
        return key.privilege.acl_code in acl.get(key.role_id, "")


def parse_privilege(privilege: str) -> Privilege:
    """Upper-case and validate a privilege name."""
    try:
        return Privilege(privilege.upper())
    except ValueError:
        raise InvalidDescriptor(f"Unknown privilege {privilege!r}") from None


def parse_acl(acl_text: str | list[str] | None) -> dict[str, str]:
    """
    Map grantee role id -> concatenated privilege codes.

    Accepts the text form of an `mz_aclitem[]` ('{u1=U/u2,"s1"=r/u1}') or a
    list of item strings. Codes from several items for one grantee are merged.
    """
    if not acl_text:
        return {}
    if isinstance(acl_text, str):
        items = [item for item in acl_text.strip("{}").split(",") if item]
    else:
        items = list(acl_text)

    grants: dict[str, str] = {}
    for item in items:
        grantee, _, rest = item.strip().partition("=")
        grantee = grantee.strip('"')
        codes = rest.partition("/")[0]
        grants[grantee] = grants.get(grantee, "") + codes
    return grants
