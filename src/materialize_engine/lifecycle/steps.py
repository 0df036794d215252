"""
Lifecycle steps and results.

- LifecycleState: where an object is in its creation sequence
- LifecycleStep: one statement plus the state it leads to and whether a
  failure must be compensated
- StepResult / LifecycleReport: structured outcomes to log or surface upstream
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from src.materialize_engine.identifiers import ObjectIdentity


class LifecycleState(StrEnum):
    ABSENT = "absent"
    CREATING = "creating"
    OWNERSHIP_PENDING = "ownership_pending"
    COMMENT_PENDING = "comment_pending"
    READY = "ready"
    DROPPED = "dropped"
    FAILED = "failed"


class StepStatus(StrEnum):
    OK = "ok"
    FAILED = "failed"
    SKIPPED = "skipped"  # short-circuited after a failure


@dataclass(frozen=True)
class LifecycleStep:
    """A single statement in a lifecycle sequence."""

    name: str
    statement: str
    target_state: LifecycleState
    compensate_on_failure: bool = False


@dataclass(frozen=True)
class StepResult:
    """Outcome for a single step."""

    step: LifecycleStep
    status: StepStatus
    message: str  # one line
    error: Exception | None = None


@dataclass(frozen=True)
class LifecycleReport:
    """Outcome of one create/update/delete call."""

    identity: ObjectIdentity
    states: tuple[LifecycleState, ...]
    results: tuple[StepResult, ...]
    compensation: StepResult | None = None

    @property
    def final_state(self) -> LifecycleState:
        return self.states[-1]

    @property
    def ok(self) -> bool:
        return all(result.status == StepStatus.OK for result in self.results)

    @property
    def failure(self) -> StepResult | None:
        """First failed step, if any."""
        return next((r for r in self.results if r.status == StepStatus.FAILED), None)
