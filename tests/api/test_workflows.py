"""HTTP tests for /api/v1/workflows (in-memory wiring from conftest)."""

from typing import Any

import pytest
from httpx import AsyncClient

from app.shared.enums import QueueName

BASE = "/api/v1/workflows"

RULE_BODY: dict[str, Any] = {
    "name": "Welcome applicants",
    "trigger": "APPLICATION_RECEIVED",
    "conditions": [],
    "actions": [
        {"type": "SEND_EMAIL", "config": {"to": "{{email}}"}, "order": 0, "stopOnFailure": False}
    ],
}


async def _create(client: AsyncClient, **overrides: Any) -> dict[str, Any]:
    response = await client.post(BASE, json={**RULE_BODY, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


async def test_create_rule_returns_camel_case(client: AsyncClient) -> None:
    response = await client.post(BASE, json=RULE_BODY, headers={"X-User-ID": "user-42"})

    assert response.status_code == 201
    data = response.json()
    assert data["isActive"] is True
    assert data["createdBy"] == "user-42"
    assert data["trigger"] == "APPLICATION_RECEIVED"
    assert data["actions"] == [
        {"type": "SEND_EMAIL", "config": {"to": "{{email}}"}, "order": 0, "stopOnFailure": False}
    ]
    assert "createdAt" in data


async def test_create_rule_without_user_header_uses_system_user(client: AsyncClient) -> None:
    data = await _create(client)
    assert data["createdBy"] == "system"


async def test_create_rule_with_no_actions_is_400(client: AsyncClient) -> None:
    response = await client.post(BASE, json={**RULE_BODY, "actions": []})

    assert response.status_code == 400
    assert response.json() == {
        "error": "VALIDATION_ERROR",
        "message": "Workflow must have at least one action",
        "details": {"field": "actions"},
    }


async def test_create_rule_with_unknown_operator_is_400(client: AsyncClient) -> None:
    response = await client.post(
        BASE,
        json={**RULE_BODY, "conditions": [{"field": "a", "operator": "LIKE", "value": "x"}]},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid condition operator: LIKE"


async def test_malformed_body_is_422(client: AsyncClient) -> None:
    response = await client.post(BASE, json={"name": "No trigger"})

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "VALIDATION_ERROR"
    assert any(err["loc"][-1] == "trigger" for err in body["details"])


async def test_list_get_update_delete_rule(client: AsyncClient) -> None:
    rule = await _create(client)
    await _create(client, name="Offer follow-up", trigger="OFFER_SENT")

    listing = await client.get(BASE, params={"trigger": "OFFER_SENT"})
    assert listing.status_code == 200
    assert listing.json()["total"] == 1
    assert listing.json()["items"][0]["name"] == "Offer follow-up"

    paged = await client.get(BASE, params={"limit": 1, "page": 2})
    assert paged.json()["total"] == 2
    assert paged.json()["limit"] == 1
    assert len(paged.json()["items"]) == 1

    fetched = await client.get(f"{BASE}/{rule['id']}")
    assert fetched.json()["name"] == "Welcome applicants"

    updated = await client.put(f"{BASE}/{rule['id']}", json={"name": "Renamed", "isActive": False})
    assert updated.status_code == 200
    assert updated.json()["name"] == "Renamed"
    assert updated.json()["isActive"] is False

    deleted = await client.delete(f"{BASE}/{rule['id']}")
    assert deleted.status_code == 204
    missing = await client.get(f"{BASE}/{rule['id']}")
    assert missing.status_code == 404
    assert missing.json()["error"] == "RESOURCE_NOT_FOUND"


async def test_toggle_clone_export_import(client: AsyncClient) -> None:
    rule = await _create(client)

    toggled = await client.post(f"{BASE}/{rule['id']}/toggle")
    assert toggled.json()["isActive"] is False

    clone = await client.post(f"{BASE}/{rule['id']}/clone", json={"name": "Welcome v2"})
    assert clone.status_code == 201
    assert clone.json()["name"] == "Welcome v2"
    assert clone.json()["isActive"] is False

    default_clone = await client.post(f"{BASE}/{rule['id']}/clone")
    assert default_clone.json()["name"] == "Welcome applicants (Copy)"

    exported = (await client.get(f"{BASE}/{rule['id']}/export")).json()
    assert exported["version"] == "1.0"

    imported = await client.post(f"{BASE}/import", json=exported)
    assert imported.status_code == 201
    assert imported.json()["actions"] == rule["actions"]

    bad_import = await client.post(f"{BASE}/import", json={"name": "x"})
    assert bad_import.status_code == 400


@pytest.mark.parametrize(
    ("action", "field"),
    [
        ({"type": "SEND_EMAIL", "order": "first"}, "actions.0.order"),
        ({"type": "SEND_EMAIL", "stopOnFailure": "maybe"}, "actions.0.stopOnFailure"),
        ({"type": "SEND_EMAIL", "config": "tox"}, "actions.0.config"),
    ],
)
async def test_import_rejects_mistyped_fields(
    client: AsyncClient, action: dict[str, Any], field: str
) -> None:
    """Badly typed snapshot values are a 400 naming the field, never a 500."""
    response = await client.post(
        f"{BASE}/import",
        json={"name": "x", "trigger": "APPLICATION_RECEIVED", "actions": [action]},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "VALIDATION_ERROR"
    assert body["details"] == {"field": field}
    assert body["message"].startswith("Invalid workflow rule data: ")


async def test_import_coerces_string_flags(client: AsyncClient) -> None:
    """stopOnFailure "false" is read as false, not as a truthy string."""
    action = {
        "type": "SEND_EMAIL",
        "config": {"to": "{{email}}"},
        "order": "1",
        "stopOnFailure": "false",
    }
    response = await client.post(
        f"{BASE}/import",
        json={
            "name": "x",
            "trigger": "APPLICATION_RECEIVED",
            "actions": [action],
            "version": "1.0",
        },
    )
    assert response.status_code == 201, response.text
    [imported] = response.json()["actions"]
    assert imported["order"] == 1
    assert imported["stopOnFailure"] is False
    assert response.json()["isActive"] is False


async def test_bulk_toggle(client: AsyncClient) -> None:
    first = await _create(client)
    second = await _create(client, name="Second")

    response = await client.post(
        f"{BASE}/bulk-toggle", json={"ruleIds": [first["id"], second["id"]], "isActive": False}
    )

    assert response.json() == {"updated": 2}
    active = await client.get(BASE, params={"isActive": "true"})
    assert active.json()["total"] == 0


async def test_builder_creates_rule(client: AsyncClient) -> None:
    response = await client.post(
        f"{BASE}/builder",
        json={
            "name": "From builder",
            "nodes": [
                {"id": "t", "type": "trigger", "data": {"trigger": "OFFER_SENT"}},
                {"id": "a", "type": "action", "data": {"actionType": "NOTIFY_USER"}},
            ],
            "edges": [{"id": "e", "source": "t", "target": "a"}],
        },
    )
    assert response.status_code == 201
    assert response.json()["trigger"] == "OFFER_SENT"

    no_trigger = await client.post(
        f"{BASE}/builder",
        json={"name": "Broken", "nodes": [{"id": "a", "type": "action", "data": {}}]},
    )
    assert no_trigger.status_code == 400


async def test_meta_catalogs(client: AsyncClient) -> None:
    triggers = (await client.get(f"{BASE}/meta/triggers")).json()
    actions = (await client.get(f"{BASE}/meta/actions")).json()
    operators = (await client.get(f"{BASE}/meta/operators")).json()
    assert len(triggers) == 8
    assert len(actions) == 10
    assert len(operators) == 12


async def test_execute_rule(client: AsyncClient, job_queue) -> None:
    rule = await _create(client)

    response = await client.post(
        f"{BASE}/{rule['id']}/execute", json={"input": {"email": "a@b.com"}}
    )

    assert response.status_code == 200
    result = response.json()
    assert result["status"] == "COMPLETED"
    assert result["actionResults"][0]["actionType"] == "SEND_EMAIL"
    assert result["actionResults"][0]["success"] is True
    assert result["output"]["conditionsMet"] is True
    [job] = job_queue.jobs_for(QueueName.EMAIL.value)
    assert job.data["payload"]["to"] == "a@b.com"

    execution = await client.get(f"{BASE}/executions/{result['executionId']}")
    assert execution.json()["ruleName"] == "Welcome applicants"
    assert execution.json()["ruleId"] == rule["id"]

    logs = await client.get(f"{BASE}/executions/{result['executionId']}/logs")
    assert logs.json()["logs"][-1]["message"].startswith("Workflow execution completed")

    listing = await client.get(f"{BASE}/executions", params={"ruleId": rule["id"]})
    assert listing.json()["total"] == 1


async def test_execute_unknown_rule_is_404(client: AsyncClient) -> None:
    response = await client.post(f"{BASE}/missing/execute", json={"input": {}})
    assert response.status_code == 404


async def test_retry_and_cancel_state_errors(client: AsyncClient) -> None:
    rule = await _create(client)
    result = (await client.post(f"{BASE}/{rule['id']}/execute", json={"input": {}})).json()

    retry = await client.post(f"{BASE}/executions/{result['executionId']}/retry")
    assert retry.status_code == 409
    assert retry.json()["error"] == "INVALID_STATE"
    assert retry.json()["details"]["current_status"] == "COMPLETED"

    cancel = await client.post(f"{BASE}/executions/{result['executionId']}/cancel")
    assert cancel.status_code == 409


async def test_retry_failed_execution(client: AsyncClient) -> None:
    rule = await _create(
        client,
        actions=[{"type": "UPDATE_STATUS", "config": {}, "stopOnFailure": True}],
    )
    failed = (await client.post(f"{BASE}/{rule['id']}/execute", json={"input": {}})).json()
    assert failed["status"] == "FAILED"
    assert failed["error"]

    retried = await client.post(f"{BASE}/executions/{failed['executionId']}/retry")
    assert retried.status_code == 200
    assert retried.json()["executionId"] != failed["executionId"]
    assert retried.json()["status"] == "FAILED"


async def test_approval_flow(client: AsyncClient) -> None:
    rule = await _create(
        client,
        actions=[
            {"type": "REQUEST_APPROVAL", "config": {"approverIds": ["mgr-1"]}, "order": 0},
            {"type": "CREATE_TASK", "config": {"title": "Next"}, "order": 1},
        ],
    )
    result = (await client.post(f"{BASE}/{rule['id']}/execute", json={"input": {}})).json()
    assert result["status"] == "PENDING"

    pending = await client.get(f"{BASE}/approvals/pending", headers={"X-User-ID": "mgr-1"})
    assert [e["id"] for e in pending.json()] == [result["executionId"]]

    approved = await client.post(
        f"{BASE}/executions/{result['executionId']}/approval",
        json={"approved": True, "comment": "ok"},
        headers={"X-User-ID": "mgr-1"},
    )
    assert approved.status_code == 200
    assert approved.json()["status"] == "COMPLETED"
    assert approved.json()["output"]["approval"]["approverId"] == "mgr-1"
    assert len(approved.json()["output"]["actionResults"]) == 2

    again = await client.post(
        f"{BASE}/executions/{result['executionId']}/approval", json={"approved": False}
    )
    assert again.status_code == 409


async def test_statistics_health_and_summary(client: AsyncClient) -> None:
    rule = await _create(client)
    await client.post(f"{BASE}/{rule['id']}/execute", json={"input": {"email": "a@b.com"}})

    stats = (await client.get(f"{BASE}/statistics", params={"days": 7})).json()
    assert stats["totalRules"] == 1
    assert stats["totalExecutions"] == 1
    assert stats["executionsByStatus"] == {"COMPLETED": 1}

    health = (await client.get(f"{BASE}/health")).json()
    assert health["status"] == "healthy"
    assert health["metrics"]["successRate"] == 100.0

    summary = (await client.get(f"{BASE}/{rule['id']}/summary")).json()
    assert summary["ruleId"] == rule["id"]
    assert summary["totalExecutions"] == 1
