import pytest

from src.enums import ObjectType
from src.materialize_engine.errors import (
    CompensationFailed,
    ConfigurationConflict,
    ExecutionError,
    InvalidDescriptor,
    NotFound,
    OperationCancelled,
    UnknownRegion,
)
from src.materialize_engine.identifiers import ObjectIdentity, ObjectReference
from src.materialize_engine.identity.persisted import PersistedIdentity
from src.materialize_engine.lifecycle.cancellation import CancellationToken
import src.materialize_engine.lifecycle.orchestrator as orchestrator_mod
from src.materialize_engine.lifecycle.orchestrator import LifecycleOrchestrator
from src.materialize_engine.lifecycle.steps import LifecycleState, StepStatus
from src.materialize_engine.models import AwsPrivateLink, DesiredKafkaConnection, KafkaBroker

# ---------- helpers ----------

REGION = "aws/us-east-1"

CREATE = "CREATE CONNECTION"
OWNER = "OWNER TO"
COMMENT = "COMMENT ON"
DROP = "DROP CONNECTION"
ID_LOOKUP = "SELECT o.id"
STATE_LOOKUP = "WHERE o.id"


class RecordingExecutor:
    """
    Fake executor keyed on statement fragments.

    `failures` maps a fragment to the exception to raise; `responses` maps a
    fragment to the rows to return. Every statement is recorded.
    """

    def __init__(self, responses=None, failures=None):
        self.responses = responses or {}
        self.failures = failures or {}
        self.statements = []

    def execute(self, statement):
        self.statements.append(statement)
        for fragment, error in self.failures.items():
            if fragment in statement:
                raise error
        for fragment, rows in self.responses.items():
            if fragment in statement:
                return rows
        return []

    def ran(self, fragment):
        return [s for s in self.statements if fragment in s]


class CancellingExecutor(RecordingExecutor):
    """Cancels `token` right after running a statement containing `cancel_after`."""

    def __init__(self, token, cancel_after, **kwargs):
        super().__init__(**kwargs)
        self.token = token
        self.cancel_after = cancel_after

    def execute(self, statement):
        rows = super().execute(statement)
        if self.cancel_after in statement:
            self.token.cancel()
        return rows


class FakeLogger:
    def __init__(self):
        self.records = []

    def _log(self, level, msg, *args):
        self.records.append((level, msg % args if args else msg))

    def debug(self, msg, *args):
        self._log("debug", msg, *args)

    def info(self, msg, *args):
        self._log("info", msg, *args)

    def warning(self, msg, *args):
        self._log("warning", msg, *args)

    def error(self, msg, *args):
        self._log("error", msg, *args)


def desired(**overrides):
    fields = dict(
        name="k1",
        schema_name="public",
        database_name="materialize",
        kafka_brokers=(KafkaBroker("b1:9092"),),
    )
    fields.update(overrides)
    return DesiredKafkaConnection(**fields)


def orchestrator(executor, cancellation=None):
    return LifecycleOrchestrator(executor, REGION, cancellation=cancellation)


def live_row(name="k1", owner="mz_system", comment=None):
    return [(name, "public", "materialize", owner, comment)]


# ---------- create: happy paths ----------


def test_create_runs_every_declared_step_in_order():
    executor = RecordingExecutor(responses={ID_LOOKUP: [("u1",)]})
    orch = orchestrator(executor)

    persisted = orch.create(desired(ownership_role="owner_role", comment="kafka"))

    assert persisted == PersistedIdentity(REGION, "u1")
    assert executor.statements[:3] == [
        "CREATE CONNECTION materialize.public.k1 TO KAFKA (BROKERS ('b1:9092'));",
        "ALTER CONNECTION materialize.public.k1 OWNER TO owner_role;",
        "COMMENT ON CONNECTION materialize.public.k1 IS 'kafka';",
    ]
    assert ID_LOOKUP in executor.statements[3]
    assert len(executor.statements) == 4
    assert orch.last_report.states == (
        LifecycleState.ABSENT,
        LifecycleState.CREATING,
        LifecycleState.OWNERSHIP_PENDING,
        LifecycleState.COMMENT_PENDING,
        LifecycleState.READY,
    )
    assert orch.last_report.ok


def test_create_without_owner_or_comment_skips_those_steps():
    executor = RecordingExecutor(responses={ID_LOOKUP: [("u1",)]})
    orch = orchestrator(executor)

    orch.create(desired())

    assert executor.ran(OWNER) == []
    assert executor.ran(COMMENT) == []
    assert orch.last_report.states == (
        LifecycleState.ABSENT,
        LifecycleState.CREATING,
        LifecycleState.READY,
    )


# ---------- create: failures ----------


def test_conflicting_input_fails_before_any_statement():
    executor = RecordingExecutor()
    bad = desired(aws_privatelink=AwsPrivateLink(ObjectReference("pl"), 9092))

    with pytest.raises(ConfigurationConflict):
        orchestrator(executor).create(bad)

    assert executor.statements == []


def test_failed_create_is_not_compensated():
    error = ExecutionError("CREATE ...", "broker unreachable")
    executor = RecordingExecutor(failures={CREATE: error})
    orch = orchestrator(executor)

    with pytest.raises(ExecutionError) as exc:
        orch.create(desired(ownership_role="owner_role"))

    assert exc.value is error
    assert executor.ran(DROP) == []
    assert executor.ran(OWNER) == []
    assert orch.last_report.final_state == LifecycleState.FAILED
    assert orch.last_report.compensation is None


def test_ownership_failure_drops_once_and_reports_ownership_error():
    error = ExecutionError("ALTER ...", "role owner_role does not exist")
    executor = RecordingExecutor(failures={OWNER: error})
    orch = orchestrator(executor)

    with pytest.raises(ExecutionError) as exc:
        orch.create(desired(ownership_role="owner_role", comment="kafka"))

    assert exc.value is error
    assert executor.ran(DROP) == ["DROP CONNECTION materialize.public.k1;"]
    assert executor.ran(COMMENT) == []
    assert executor.ran(ID_LOOKUP) == []

    report = orch.last_report
    assert report.states == (LifecycleState.ABSENT, LifecycleState.CREATING, LifecycleState.FAILED)
    assert [r.status for r in report.results] == [StepStatus.OK, StepStatus.FAILED, StepStatus.SKIPPED]
    assert report.compensation.status == StepStatus.OK


def test_comment_failure_drops_once():
    error = ExecutionError("COMMENT ...", "permission denied")
    executor = RecordingExecutor(failures={COMMENT: error})

    with pytest.raises(ExecutionError) as exc:
        orchestrator(executor).create(desired(ownership_role="owner_role", comment="kafka"))

    assert exc.value is error
    assert len(executor.ran(DROP)) == 1


def test_failed_compensation_raises_compensation_failed(monkeypatch):
    fake = FakeLogger()
    monkeypatch.setattr(orchestrator_mod, "LOGGER", fake)
    owner_error = ExecutionError("ALTER ...", "role missing")
    drop_error = ExecutionError("DROP ...", "connection lost")
    executor = RecordingExecutor(failures={OWNER: owner_error, DROP: drop_error})

    with pytest.raises(CompensationFailed) as exc:
        orchestrator(executor).create(desired(ownership_role="owner_role"))

    assert exc.value.original_error is owner_error
    assert exc.value.compensation_error is drop_error
    assert len(executor.ran(DROP)) == 1
    errors = [msg for level, msg in fake.records if level == "error"]
    assert len(errors) == 1
    assert "manual intervention" in errors[0]


def test_identity_lookup_failure_is_reported_without_compensation():
    executor = RecordingExecutor(responses={ID_LOOKUP: []})

    with pytest.raises(NotFound):
        orchestrator(executor).create(desired(ownership_role="owner_role"))

    assert executor.ran(DROP) == []


# ---------- create: cancellation ----------


def test_cancelled_before_start_runs_nothing():
    token = CancellationToken()
    token.cancel()
    executor = RecordingExecutor()

    with pytest.raises(OperationCancelled):
        orchestrator(executor, token).create(desired(ownership_role="owner_role"))

    assert executor.statements == []


def test_cancelled_after_create_compensates():
    token = CancellationToken()
    executor = CancellingExecutor(token, cancel_after=CREATE)

    with pytest.raises(OperationCancelled):
        orchestrator(executor, token).create(desired(ownership_role="owner_role", comment="c"))

    assert executor.ran(OWNER) == []
    assert executor.ran(DROP) == ["DROP CONNECTION materialize.public.k1;"]


def test_cancelled_after_last_step_skips_identity_lookup():
    token = CancellationToken()
    executor = CancellingExecutor(token, cancel_after=CREATE)

    with pytest.raises(OperationCancelled):
        orchestrator(executor, token).create(desired())

    assert executor.ran(ID_LOOKUP) == []
    assert executor.ran(DROP) == []


def test_rejects_descriptor_of_another_kind():
    class SecretDescriptor:
        identity = ObjectIdentity(ObjectType.SECRET, "s1")
        ownership_role = None
        comment = None

    with pytest.raises(InvalidDescriptor):
        orchestrator(RecordingExecutor()).create(SecretDescriptor())


# ---------- read ----------


def test_read_returns_observed_state():
    executor = RecordingExecutor(responses={STATE_LOOKUP: live_row(comment="hi")})

    state = orchestrator(executor).read(PersistedIdentity(REGION, "u1"))

    assert state.name == "k1"
    assert state.owner == "mz_system"
    assert state.comment == "hi"
    assert "WHERE o.id = 'u1'" in executor.statements[0]


def test_read_of_dropped_object_is_not_found():
    executor = RecordingExecutor(responses={STATE_LOOKUP: []})

    with pytest.raises(NotFound):
        orchestrator(executor).read(PersistedIdentity(REGION, "u1"))


def test_read_from_another_region_is_rejected():
    executor = RecordingExecutor()

    with pytest.raises(UnknownRegion):
        orchestrator(executor).read(PersistedIdentity("aws/eu-west-1", "u1"))

    assert executor.statements == []


# ---------- update ----------


def test_update_emits_only_differing_statements():
    executor = RecordingExecutor(responses={STATE_LOOKUP: live_row(owner="old_owner", comment="old")})
    orch = orchestrator(executor)

    orch.update(desired(name="k2", ownership_role="new_owner", comment="new"), PersistedIdentity(REGION, "u1"))

    assert executor.statements[1:] == [
        "ALTER CONNECTION materialize.public.k1 RENAME TO materialize.public.k2;",
        "ALTER CONNECTION materialize.public.k2 OWNER TO new_owner;",
        "COMMENT ON CONNECTION materialize.public.k2 IS 'new';",
    ]
    assert orch.last_report.final_state == LifecycleState.READY


def test_update_without_changes_only_reads():
    executor = RecordingExecutor(responses={STATE_LOOKUP: live_row(owner="owner_role", comment="c")})

    orchestrator(executor).update(desired(ownership_role="owner_role", comment="c"), PersistedIdentity(REGION, "u1"))

    assert len(executor.statements) == 1


def test_update_clears_comment():
    executor = RecordingExecutor(responses={STATE_LOOKUP: live_row(comment="old")})

    orchestrator(executor).update(desired(comment=""), PersistedIdentity(REGION, "u1"))

    assert executor.statements[1:] == ["COMMENT ON CONNECTION materialize.public.k1 IS NULL;"]


def test_update_cannot_move_schema():
    executor = RecordingExecutor(responses={STATE_LOOKUP: live_row()})

    with pytest.raises(InvalidDescriptor):
        orchestrator(executor).update(desired(schema_name="other"), PersistedIdentity(REGION, "u1"))

    assert len(executor.statements) == 1


def test_update_failure_surfaces_and_skips_rest():
    error = ExecutionError("ALTER ...", "name taken")
    executor = RecordingExecutor(
        responses={STATE_LOOKUP: live_row()}, failures={"RENAME TO": error}
    )
    orch = orchestrator(executor)

    with pytest.raises(ExecutionError):
        orch.update(desired(name="k2", comment="new"), PersistedIdentity(REGION, "u1"))

    assert executor.ran(COMMENT) == []
    assert orch.last_report.final_state == LifecycleState.FAILED


# ---------- delete ----------


def test_delete_drops_live_object():
    executor = RecordingExecutor(responses={STATE_LOOKUP: live_row()})
    orch = orchestrator(executor)

    orch.delete(PersistedIdentity(REGION, "u1"))

    assert executor.ran(DROP) == ["DROP CONNECTION materialize.public.k1;"]
    assert orch.last_report.final_state == LifecycleState.DROPPED


def test_delete_of_missing_object_succeeds():
    executor = RecordingExecutor(responses={STATE_LOOKUP: []})

    orchestrator(executor).delete(PersistedIdentity(REGION, "u1"))

    assert executor.ran(DROP) == []


def test_delete_failure_surfaces():
    error = ExecutionError("DROP ...", "object has dependents")
    executor = RecordingExecutor(responses={STATE_LOOKUP: live_row()}, failures={DROP: error})

    orch = orchestrator(executor)

    with pytest.raises(ExecutionError) as exc:
        orch.delete(PersistedIdentity(REGION, "u1"))

    assert exc.value is error
    assert orch.last_report.final_state == LifecycleState.FAILED
