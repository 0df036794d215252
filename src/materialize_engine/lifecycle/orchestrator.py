"""
Lifecycle orchestration for a single Materialize object.

Create runs a short saga, one statement per step:

  ABSENT → CREATING            CREATE ...            (failure: nothing to undo)
         → OWNERSHIP_PENDING   ALTER ... OWNER TO    (only if declared)
         → COMMENT_PENDING     COMMENT ON ...        (only if declared)
         → READY               identity lookup       (failure: reported, not undone)

A failed or cancelled step flagged `compensate_on_failure` triggers exactly one
compensating DROP before the original error is raised. Compensation is driven
from the step data and the collected `StepResult`s, never by unwinding.

Update and delete read the live object by its persisted identity first and
then issue only the statements needed.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import Any, Protocol

from src.enums import ObjectType
from src.logger import LOGGER
from src.materialize_engine.compile.kafka_connection import compile_create
from src.materialize_engine.errors import (
    CompensationFailed,
    InvalidDescriptor,
    NotFound,
    OperationCancelled,
    UnknownRegion,
)
from src.materialize_engine.execute.ports import StatementExecutor
from src.materialize_engine.identifiers import ObjectIdentity
from src.materialize_engine.identity.persisted import PersistedIdentity
from src.materialize_engine.identity.resolver import IdentityResolver
from src.materialize_engine.lifecycle.cancellation import CancellationToken
from src.materialize_engine.lifecycle.steps import (
    LifecycleReport,
    LifecycleState,
    LifecycleStep,
    StepResult,
    StepStatus,
)
from src.materialize_engine.sql import (
    sql_alter_owner,
    sql_comment_on_object,
    sql_drop_object,
    sql_rename_object,
)
from src.materialize_engine.state.states import ObjectState


class DesiredObject(Protocol):
    """What the orchestrator needs from any desired-state descriptor."""

    @property
    def identity(self) -> ObjectIdentity: ...

    @property
    def ownership_role(self) -> str | None: ...

    @property
    def comment(self) -> str | None: ...


class LifecycleOrchestrator:
    """
    Create, read, update and delete objects of one kind in one region.

    The object kind is fixed per instance; `compile_create` renders the CREATE
    statement for a descriptor of that kind.
    """

    def __init__(
        self,
        executor: StatementExecutor,
        region: str,
        object_type: ObjectType = ObjectType.CONNECTION,
        compile_create: Callable[[Any], str] = compile_create,
        resolver: IdentityResolver | None = None,
        cancellation: CancellationToken | None = None,
    ) -> None:
        self._executor = executor
        self._region = region
        self._object_type = object_type
        self._compile_create = compile_create
        self._resolver = resolver or IdentityResolver(executor)
        self._cancellation = cancellation or CancellationToken()
        self.last_report: LifecycleReport | None = None

    # ---------- public API ----------

    def create(self, desired: DesiredObject) -> PersistedIdentity:
        """Create the object and return its persisted identity."""
        identity = self._identity_of(desired)
        steps = self._creation_steps(desired)
        LOGGER.info(
            "Creating %s %s (%d step(s)).",
            identity.object_type,
            identity.display_name,
            len(steps),
        )

        report = self._run_creation(identity, steps)
        self.last_report = report
        if report.failure is not None:
            self._raise_creation_failure(identity, report)

        self._ensure_not_cancelled("identity lookup")
        persisted = self._resolver.persisted_identity(identity, self._region)
        self.last_report = replace(report, states=report.states + (LifecycleState.READY,))
        LOGGER.info("Created %s %s as %s.", identity.object_type, identity.display_name, persisted)
        return persisted

    def read(self, persisted: PersistedIdentity) -> ObjectState:
        """Observed state of the object; raises NotFound when it no longer exists."""
        self._check_region(persisted)
        self._ensure_not_cancelled("read")
        return self._resolver.read_state(self._object_type, persisted.object_id)

    def update(self, desired: DesiredObject, persisted: PersistedIdentity) -> None:
        """Rename, re-own and re-comment the live object where it differs from `desired`."""
        target = self._identity_of(desired)
        live = self.read(persisted)
        steps = self._update_steps(desired, target, live)
        if not steps:
            LOGGER.info("%s %s is up to date.", target.object_type, target.display_name)
            self.last_report = LifecycleReport(live.identity, (LifecycleState.READY,), ())
            return

        LOGGER.info(
            "Updating %s %s (%d step(s)).", target.object_type, live.identity.display_name, len(steps)
        )
        results = self._run_steps(steps)
        failure = next((r for r in results if r.status == StepStatus.FAILED), None)
        final = LifecycleState.FAILED if failure else LifecycleState.READY
        self.last_report = LifecycleReport(live.identity, (LifecycleState.READY, final), results)
        if failure is not None:
            raise failure.error  # type: ignore[misc]

    def delete(self, persisted: PersistedIdentity) -> None:
        """
        Drop the object. An object that is already gone counts as deleted.

        Absence is detected by the read; a failed DROP always surfaces.
        """
        try:
            live = self.read(persisted)
        except NotFound:
            LOGGER.info("%s %s already absent.", self._object_type, persisted)
            return

        identity = live.identity
        step = LifecycleStep("drop", sql_drop_object(identity), LifecycleState.DROPPED)
        result = self._run_step(step)
        if result.status == StepStatus.FAILED:
            self.last_report = LifecycleReport(
                identity, (LifecycleState.READY, LifecycleState.FAILED), (result,)
            )
            raise result.error  # type: ignore[misc]

        self.last_report = LifecycleReport(
            identity, (LifecycleState.READY, LifecycleState.DROPPED), (result,)
        )
        LOGGER.info("Dropped %s %s.", identity.object_type, identity.display_name)

    # ---------- step planning (no execution here) ----------

    def _creation_steps(self, desired: DesiredObject) -> tuple[LifecycleStep, ...]:
        """Compile every creation statement up front so bad input fails before any SQL runs."""
        identity = desired.identity
        steps = [
            LifecycleStep("create", self._compile_create(desired), LifecycleState.CREATING),
        ]
        if desired.ownership_role:
            steps.append(
                LifecycleStep(
                    "assign ownership",
                    sql_alter_owner(identity, desired.ownership_role),
                    LifecycleState.OWNERSHIP_PENDING,
                    compensate_on_failure=True,
                )
            )
        if desired.comment:
            steps.append(
                LifecycleStep(
                    "set comment",
                    sql_comment_on_object(identity, desired.comment),
                    LifecycleState.COMMENT_PENDING,
                    compensate_on_failure=True,
                )
            )
        return tuple(steps)

    @staticmethod
    def _update_steps(
        desired: DesiredObject, target: ObjectIdentity, live: ObjectState
    ) -> tuple[LifecycleStep, ...]:
        if (target.schema_name and target.schema_name != live.schema_name) or (
            target.database_name and target.database_name != live.database_name
        ):
            raise InvalidDescriptor(
                f"{target.object_type} {live.identity.display_name} cannot move to "
                f"{target.display_name} in place; it must be replaced."
            )

        current = live.identity
        steps: list[LifecycleStep] = []
        if target.name != live.name:
            steps.append(
                LifecycleStep(
                    "rename", sql_rename_object(current, target.name), LifecycleState.READY
                )
            )
            current = current.renamed(target.name)
        if desired.ownership_role and desired.ownership_role != live.owner:
            steps.append(
                LifecycleStep(
                    "assign ownership",
                    sql_alter_owner(current, desired.ownership_role),
                    LifecycleState.READY,
                )
            )
        if desired.comment is not None and desired.comment != live.comment:
            steps.append(
                LifecycleStep(
                    "set comment",
                    sql_comment_on_object(current, desired.comment),
                    LifecycleState.READY,
                )
            )
        return tuple(steps)

    # ---------- execution ----------

    def _run_creation(
        self, identity: ObjectIdentity, steps: Sequence[LifecycleStep]
    ) -> LifecycleReport:
        results = self._run_steps(steps)
        states = [LifecycleState.ABSENT]
        compensation: StepResult | None = None

        for result in results:
            if result.status == StepStatus.OK:
                states.append(result.step.target_state)
                continue
            if result.status == StepStatus.FAILED:
                states.append(LifecycleState.FAILED)
                if result.step.compensate_on_failure:
                    compensation = self._compensate(identity)
            break

        return LifecycleReport(identity, tuple(states), results, compensation)

    def _run_steps(self, steps: Sequence[LifecycleStep]) -> tuple[StepResult, ...]:
        """Run steps in order; after the first failure the rest are SKIPPED."""
        results: list[StepResult] = []
        for index, step in enumerate(steps):
            result = self._run_step(step)
            results.append(result)
            if result.status == StepStatus.FAILED:
                results.extend(self._skip_remaining(steps[index + 1 :]))
                break
        return tuple(results)

    def _run_step(self, step: LifecycleStep, *, honour_cancellation: bool = True) -> StepResult:
        if honour_cancellation and self._cancellation.cancelled:
            return StepResult(
                step=step,
                status=StepStatus.FAILED,
                message=f"Cancelled before {step.name}",
                error=OperationCancelled(f"Cancelled before step {step.name!r}"),
            )
        try:
            self._executor.execute(step.statement)
        except Exception as error:
            return StepResult(
                step=step,
                status=StepStatus.FAILED,
                message=f"Failed to {step.name}: {type(error).__name__}: {error}",
                error=error,
            )
        return StepResult(step=step, status=StepStatus.OK, message=f"{step.name} succeeded")

    def _compensate(self, identity: ObjectIdentity) -> StepResult:
        """Issue the single compensating DROP. Runs even when cancellation was requested."""
        LOGGER.debug("Creation of %s failed; dropping it.", identity.display_name)
        step = LifecycleStep("drop (compensation)", sql_drop_object(identity), LifecycleState.DROPPED)
        return self._run_step(step, honour_cancellation=False)

    def _raise_creation_failure(self, identity: ObjectIdentity, report: LifecycleReport) -> None:
        failure = report.failure
        if failure is None or failure.error is None:
            return
        compensation = report.compensation

        if compensation is not None and compensation.status == StepStatus.FAILED:
            LOGGER.error(
                "%s %s: %s, and the compensating drop failed (%s). "
                "The object is in an undefined state and requires manual intervention.",
                identity.object_type,
                identity.display_name,
                failure.message,
                compensation.message,
            )
            raise CompensationFailed(failure.error, compensation.error) from failure.error  # type: ignore[arg-type]

        LOGGER.warning("%s %s: %s", identity.object_type, identity.display_name, failure.message)
        raise failure.error

    # ---------- helpers ----------

    def _identity_of(self, desired: DesiredObject) -> ObjectIdentity:
        identity = desired.identity
        if identity.object_type != self._object_type:
            raise InvalidDescriptor(
                f"Orchestrator manages {self._object_type} objects, got {identity.object_type}"
            )
        return identity

    def _check_region(self, persisted: PersistedIdentity) -> None:
        if persisted.region != self._region:
            raise UnknownRegion(
                f"Identity {persisted} belongs to region {persisted.region!r}; "
                f"this orchestrator is bound to {self._region!r}"
            )

    def _ensure_not_cancelled(self, before: str) -> None:
        if self._cancellation.cancelled:
            raise OperationCancelled(f"Cancelled before {before}")

    @staticmethod
    def _skip_remaining(steps: Sequence[LifecycleStep]) -> list[StepResult]:
        """SKIPPED stubs for steps left after a failure."""
        return [
            StepResult(
                step=step,
                status=StepStatus.SKIPPED,
                message="Skipped due to previous failure",
            )
            for step in steps
        ]
