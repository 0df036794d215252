"""
Engine: high-level entry point for the Materialize engine.

Responsibilities
----------------
- Pick the store for the caller's region via a RegionRouter.
- Expose the collaborator interface:
    - create(desired, region) -> PersistedIdentity
    - read(persisted) -> ObjectState
    - update(desired, persisted)
    - delete(persisted)
    - grant(role, privilege, target, region) -> GrantKey
    - revoke(role, privilege, target, region)

Notes:
-----
- No SQL here; work is delegated to LifecycleOrchestrator and GrantManager.
- Persisted identities and grant keys carry their region, so read/update/delete
  and grant reads route themselves.
"""

from __future__ import annotations

from src.enums import ObjectType
from src.materialize_engine.grants.keys import GrantKey
from src.materialize_engine.grants.manager import GrantManager
from src.materialize_engine.identifiers import ObjectIdentity
from src.materialize_engine.identity.persisted import PersistedIdentity
from src.materialize_engine.lifecycle.cancellation import CancellationToken
from src.materialize_engine.lifecycle.orchestrator import DesiredObject, LifecycleOrchestrator
from src.materialize_engine.lifecycle.steps import LifecycleReport
from src.materialize_engine.regions import RegionRouter
from src.materialize_engine.state.states import ObjectState


class Engine:
    """Route each operation to the right region and component."""

    def __init__(
        self,
        router: RegionRouter,
        object_type: ObjectType = ObjectType.CONNECTION,
        cancellation: CancellationToken | None = None,
    ) -> None:
        self.router = router
        self.object_type = object_type
        self.cancellation = cancellation or CancellationToken()
        self._orchestrators: dict[str, LifecycleOrchestrator] = {}
        self._grant_managers: dict[str, GrantManager] = {}

    # ---------- objects ----------

    def create(self, desired: DesiredObject, region: str | None = None) -> PersistedIdentity:
        return self.lifecycle(region).create(desired)

    def read(self, persisted: PersistedIdentity) -> ObjectState:
        return self.lifecycle(persisted.region).read(persisted)

    def update(self, desired: DesiredObject, persisted: PersistedIdentity) -> None:
        self.lifecycle(persisted.region).update(desired, persisted)

    def delete(self, persisted: PersistedIdentity) -> None:
        self.lifecycle(persisted.region).delete(persisted)

    # ---------- grants ----------

    def grant(
        self, role_name: str, privilege: str, target: ObjectIdentity, region: str | None = None
    ) -> GrantKey:
        return self.grants(region).grant(role_name, privilege, target)

    def revoke(
        self, role_name: str, privilege: str, target: ObjectIdentity, region: str | None = None
    ) -> None:
        self.grants(region).revoke(role_name, privilege, target)

    def grant_exists(self, key: GrantKey) -> bool:
        return self.grants(key.region).read(key)

    # ---------- wiring ----------

    def lifecycle(self, region: str | None = None) -> LifecycleOrchestrator:
        """Orchestrator bound to `region` (or the default region); one per region."""
        selected = self.router.resolve_region(region)
        if selected not in self._orchestrators:
            self._orchestrators[selected] = LifecycleOrchestrator(
                executor=self.router.executor(selected),
                region=selected,
                object_type=self.object_type,
                cancellation=self.cancellation,
            )
        return self._orchestrators[selected]

    def last_report(self, region: str | None = None) -> LifecycleReport | None:
        """Report of the most recent create/update/delete in `region`."""
        return self.lifecycle(region).last_report

    def grants(self, region: str | None = None) -> GrantManager:
        selected = self.router.resolve_region(region)
        if selected not in self._grant_managers:
            self._grant_managers[selected] = GrantManager(self.router.executor(selected), selected)
        return self._grant_managers[selected]

    def close(self) -> None:
        """Close every region connection and forget the components bound to them."""
        self._orchestrators.clear()
        self._grant_managers.clear()
        self.router.close()
