"""Tests for trigger dispatch: handle_trigger, the subscriber and bus registration."""

from contextlib import asynccontextmanager

from app.application.dtos.messaging import EventMessage
from app.domain.enums import WorkflowTrigger
from app.infrastructure.services import TRIGGER_BY_TOPIC, WorkflowTriggerSubscriber
from app.shared.enums import ExecutionStatus, QueueName, SystemEventType

EMAIL = {"type": "SEND_EMAIL", "config": {"to": "{{email}}"}}


def test_every_system_topic_except_moved_maps_to_a_trigger() -> None:
    """Seven source topics, each mapped to exactly one distinct trigger."""
    assert len(TRIGGER_BY_TOPIC) == 7
    assert len(set(TRIGGER_BY_TOPIC.values())) == 7
    assert SystemEventType.CANDIDATE_MOVED.value not in TRIGGER_BY_TOPIC
    assert WorkflowTrigger.TIME_ELAPSED not in TRIGGER_BY_TOPIC.values()


async def test_handle_trigger_runs_active_matching_rules(engine, make_rule) -> None:
    first = await make_rule([EMAIL], name="First")
    second = await make_rule([EMAIL], name="Second")
    await make_rule([EMAIL], name="Inactive", is_active=False)
    await make_rule([EMAIL], name="Other trigger", trigger=WorkflowTrigger.OFFER_SENT)

    results = await engine.handle_trigger(
        WorkflowTrigger.APPLICATION_RECEIVED, {"email": "a@b.com"}
    )

    assert len(results) == 2
    assert all(r.status == ExecutionStatus.COMPLETED for r in results)
    executed = {e.rule_id for e in engine.execution_repo.executions.values()}
    assert executed == {first.id, second.id}


async def test_handle_trigger_isolates_failing_rule(
    engine, make_rule, execution_repo, monkeypatch
) -> None:
    """A rule that blows up is logged and skipped; later rules still run."""
    broken = await make_rule([EMAIL], name="Broken")
    healthy = await make_rule([EMAIL], name="Healthy")
    create = execution_repo.create_execution

    async def flaky_create(rule_id, input_data, status=ExecutionStatus.RUNNING):
        if rule_id == broken.id:
            raise RuntimeError("database unavailable")
        return await create(rule_id, input_data, status)

    monkeypatch.setattr(execution_repo, "create_execution", flaky_create)

    results = await engine.handle_trigger(
        WorkflowTrigger.APPLICATION_RECEIVED, {"email": "a@b.com"}
    )

    assert len(results) == 1
    [execution] = execution_repo.executions.values()
    assert execution.rule_id == healthy.id


async def test_handle_trigger_opens_a_scope_per_rule(engine, make_rule) -> None:
    """Rules run on engines from rule_scope; a scope failing to open skips only its rule."""
    await make_rule([EMAIL], name="First")
    await make_rule([EMAIL], name="Second")
    await make_rule([EMAIL], name="Third")
    opened: list[int] = []

    @asynccontextmanager
    async def rule_scope():
        opened.append(len(opened))
        if len(opened) == 2:
            raise ConnectionError("pool exhausted")
        yield engine

    results = await engine.handle_trigger(
        WorkflowTrigger.APPLICATION_RECEIVED, {"email": "a@b.com"}, rule_scope=rule_scope
    )

    assert opened == [0, 1, 2]
    assert len(results) == 2
    assert len(engine.execution_repo.executions) == 2


async def test_register_triggers_dispatches_bus_events(engine, make_rule, event_bus, job_queue) -> None:
    await make_rule([EMAIL])
    engine.register_triggers()
    engine.register_triggers()
    assert event_bus.subscriber_count(SystemEventType.CANDIDATE_APPLIED.value) == 1

    await event_bus.publish(SystemEventType.CANDIDATE_APPLIED.value, {"email": "a@b.com"})
    await event_bus.publish(SystemEventType.OFFER_SENT.value, {"email": "x@y.com"})
    await event_bus.drain()

    [job] = job_queue.jobs_for(QueueName.EMAIL.value)
    assert job.data["payload"]["to"] == "a@b.com"

    engine.unregister_triggers()
    assert event_bus.subscriber_count(SystemEventType.CANDIDATE_APPLIED.value) == 0
    await event_bus.publish(SystemEventType.CANDIDATE_APPLIED.value, {"email": "b@c.com"})
    await event_bus.drain()
    assert len(job_queue.jobs_for(QueueName.EMAIL.value)) == 1


async def test_subscriber_opens_one_scope_per_event(event_bus) -> None:
    """Each delivered event gets its own engine scope; unmapped topics are ignored."""
    calls: list[tuple[WorkflowTrigger, dict, dict | None]] = []
    rule_scopes: list = []
    scopes: list[str] = []

    class StubEngine:
        async def handle_trigger(self, trigger, payload, metadata=None, *, rule_scope=None):
            calls.append((trigger, payload, metadata))
            rule_scopes.append(rule_scope)
            return []

    @asynccontextmanager
    async def scope():
        scopes.append("open")
        yield StubEngine()
        scopes.append("closed")

    subscriber = WorkflowTriggerSubscriber(event_bus, scope)
    subscriber.register()
    assert subscriber.is_registered

    await subscriber.on_event(
        EventMessage(
            type=SystemEventType.INTERVIEW_COMPLETED.value,
            payload={"interviewId": "i1"},
            metadata={"correlationId": "c1"},
        )
    )
    await subscriber.on_event(EventMessage(type="candidate.unknown", payload={}))

    assert calls == [
        (WorkflowTrigger.INTERVIEW_COMPLETED, {"interviewId": "i1"}, {"correlationId": "c1"})
    ]
    assert scopes == ["open", "closed"]
    assert rule_scopes == [scope]

    subscriber.unregister()
    assert not subscriber.is_registered
    assert event_bus.subscriber_count(SystemEventType.INTERVIEW_COMPLETED.value) == 0
