"""Tests for the REQUEST_APPROVAL gate: suspend, approve and resume, reject."""

import pytest

from app.domain.exceptions import InvalidStateException
from app.shared.enums import ExecutionStatus, QueueName, WorkflowEventTopic

GATED_ACTIONS = [
    {"type": "SEND_EMAIL", "config": {"to": "{{email}}"}, "order": 0},
    {
        "type": "REQUEST_APPROVAL",
        "config": {
            "approverIds": ["mgr-1", "{{recruiterId}}"],
            "title": "Approve {{email}}",
            "description": "Screened {{email}}",
        },
        "order": 1,
    },
    {"type": "CREATE_TASK", "config": {"title": "Prepare offer"}, "order": 2},
]
INPUT = {"email": "a@b.com", "recruiterId": "rec-2"}


@pytest.fixture
async def suspended(engine, make_rule):
    rule = await make_rule(GATED_ACTIONS)
    result = await engine.execute_workflow(rule, INPUT, {"source": "careers-site"})
    return rule, result


async def test_request_approval_suspends_execution(suspended, event_bus, engine) -> None:
    """The chain stops after the approval action and the execution is PENDING."""
    _, result = suspended

    assert result.status == ExecutionStatus.PENDING
    assert [r.action_type for r in result.action_results] == ["SEND_EMAIL", "REQUEST_APPROVAL"]
    pending = result.output["pendingApproval"]
    assert pending["approverIds"] == ["mgr-1", "rec-2"]
    assert pending["title"] == "Approve a@b.com"
    assert pending["description"] == "Screened a@b.com"
    assert pending["resumeFromIndex"] == 2
    assert pending["metadata"] == {"source": "careers-site"}
    assert len(event_bus.payloads(WorkflowEventTopic.APPROVAL_REQUESTED.value)) == 1
    assert event_bus.payloads(WorkflowEventTopic.TASK_CREATED.value) == []
    assert event_bus.payloads(WorkflowEventTopic.EXECUTION_COMPLETED.value) == []

    logs = (await engine.get_execution_logs(result.execution_id)).logs
    assert logs[-1].message == "Workflow execution waiting for approval"


async def test_pending_approvals_by_approver(suspended, engine) -> None:
    _, result = suspended

    for approver in ("mgr-1", "rec-2"):
        [execution] = await engine.get_pending_approvals(approver)
        assert execution.id == result.execution_id
    assert await engine.get_pending_approvals("someone-else") == []


async def test_approval_resumes_chain(suspended, engine, event_bus, job_queue) -> None:
    """Approving runs the remaining actions and completes the same execution."""
    rule, result = suspended

    execution = await engine.process_approval(result.execution_id, True, "mgr-1", "Looks good")

    assert execution.id == result.execution_id
    assert execution.status == ExecutionStatus.COMPLETED
    types = [r.action_type for r in execution.output.action_results]
    assert types == ["SEND_EMAIL", "REQUEST_APPROVAL", "CREATE_TASK"]
    assert execution.output.approval.approved is True
    assert execution.output.approval.approver_id == "mgr-1"
    assert execution.output.approval.comment == "Looks good"

    [granted] = event_bus.payloads(WorkflowEventTopic.APPROVAL_GRANTED.value)
    assert granted == {
        "executionId": result.execution_id,
        "ruleId": rule.id,
        "approverId": "mgr-1",
        "comment": "Looks good",
    }
    assert len(event_bus.payloads(WorkflowEventTopic.TASK_CREATED.value)) == 1
    assert len(event_bus.payloads(WorkflowEventTopic.EXECUTION_COMPLETED.value)) == 1
    # the email before the gate is not sent again
    assert len(job_queue.jobs_for(QueueName.EMAIL.value)) == 1
    assert await engine.get_pending_approvals("mgr-1") == []


async def test_rejection_cancels_execution(suspended, engine, event_bus) -> None:
    _, result = suspended

    execution = await engine.process_approval(result.execution_id, False, "mgr-1", "Not a fit")

    assert execution.status == ExecutionStatus.CANCELLED
    assert execution.error == "Rejected by approver: Not a fit"
    assert execution.output.approval.approved is False
    assert len(event_bus.payloads(WorkflowEventTopic.APPROVAL_REJECTED.value)) == 1
    assert event_bus.payloads(WorkflowEventTopic.TASK_CREATED.value) == []

    logs = (await engine.get_execution_logs(result.execution_id)).logs
    assert logs[-1].level == "WARNING"
    assert logs[-1].message == "Workflow execution cancelled: Rejected by approver: Not a fit"


async def test_rejection_without_comment(suspended, engine) -> None:
    _, result = suspended
    execution = await engine.process_approval(result.execution_id, False, "mgr-1")
    assert execution.error == "Rejected by approver: No reason provided"


async def test_approval_requires_pending(suspended, engine) -> None:
    """A decided execution cannot be decided again."""
    _, result = suspended
    await engine.process_approval(result.execution_id, True, "mgr-1")

    with pytest.raises(InvalidStateException) as exc_info:
        await engine.process_approval(result.execution_id, False, "mgr-1")
    assert exc_info.value.details["allowed_statuses"] == ["PENDING"]
    assert (await engine.get_execution(result.execution_id)).status == ExecutionStatus.COMPLETED


async def test_cancel_pending_approval(suspended, engine) -> None:
    _, result = suspended
    cancelled = await engine.cancel_execution(result.execution_id)
    assert cancelled.status == ExecutionStatus.CANCELLED
    with pytest.raises(InvalidStateException):
        await engine.process_approval(result.execution_id, True, "mgr-1")


async def test_failed_approval_action_does_not_suspend(engine, make_rule) -> None:
    """Only a successful REQUEST_APPROVAL parks the execution."""
    rule = await make_rule(
        [
            {"type": "UPDATE_STATUS", "config": {}, "order": 0, "stopOnFailure": True},
            {"type": "REQUEST_APPROVAL", "config": {"approverIds": ["mgr-1"]}, "order": 1},
        ]
    )
    result = await engine.execute_workflow(rule, {})
    assert result.status == ExecutionStatus.FAILED
    assert await engine.get_pending_approvals("mgr-1") == []


async def test_decision_loses_to_concurrent_cancel(
    suspended, engine, execution_repo, event_bus, monkeypatch
) -> None:
    """An approval arriving after a cancel committed does not resume the chain."""
    _, result = suspended
    save = execution_repo.save_execution

    async def cancel_first(execution, *, expected_statuses=None):
        execution_repo.executions[execution.id].status = ExecutionStatus.CANCELLED
        return await save(execution, expected_statuses=expected_statuses)

    monkeypatch.setattr(execution_repo, "save_execution", cancel_first)

    with pytest.raises(InvalidStateException) as exc_info:
        await engine.process_approval(result.execution_id, True, "mgr-1")
    assert exc_info.value.details["current_status"] == "CANCELLED"
    assert event_bus.payloads(WorkflowEventTopic.APPROVAL_GRANTED.value) == []
    assert event_bus.payloads(WorkflowEventTopic.TASK_CREATED.value) == []
