"""Workflow API: thin routes delegating to WorkflowRuleService, WorkflowEngine and analytics.

Static paths are registered before /{rule_id} so they are not captured as ids.
"""

from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Query, Request

from app.api.v1.dependencies import (
    get_current_user_id,
    get_workflow_analytics_service,
    get_workflow_engine,
    get_workflow_rule_service,
    get_workflow_rule_service_for_write,
)
from app.application.dtos.workflow import ExecutionFilter, WorkflowRuleFilter
from app.application.use_cases.analytics import WorkflowAnalyticsService
from app.application.use_cases.workflows import WorkflowRuleService
from app.core.config import get_settings
from app.core.limiter import limit_bulk, limit_execute, limit_writes
from app.infrastructure.services import WorkflowEngine
from app.schemas.workflow import (
    ApprovalRequest,
    BulkToggleRequest,
    BulkToggleResponse,
    CloneRuleRequest,
    ExecuteRuleRequest,
    ExecutionLogsResponse,
    ExecutionResultResponse,
    RuleExecutionSummaryResponse,
    WorkflowBuilderRequest,
    WorkflowExecutionListResponse,
    WorkflowExecutionResponse,
    WorkflowHealthResponse,
    WorkflowImportRequest,
    WorkflowRuleCreateRequest,
    WorkflowRuleListResponse,
    WorkflowRuleResponse,
    WorkflowRuleUpdateRequest,
    WorkflowStatisticsResponse,
)
from app.shared.enums import ExecutionStatus

router = APIRouter()

RuleServiceDep = Annotated[WorkflowRuleService, Depends(get_workflow_rule_service)]
RuleWriteServiceDep = Annotated[
    WorkflowRuleService, Depends(get_workflow_rule_service_for_write)
]
EngineDep = Annotated[WorkflowEngine, Depends(get_workflow_engine)]
AnalyticsDep = Annotated[WorkflowAnalyticsService, Depends(get_workflow_analytics_service)]
UserIdDep = Annotated[str, Depends(get_current_user_id)]


def _page_size(limit: int | None) -> int:
    settings = get_settings()
    if limit is None:
        return settings.workflow_default_page_size
    return min(limit, settings.workflow_max_page_size)


# ---- Rules ----


@router.post("", response_model=WorkflowRuleResponse, status_code=201)
@limit_writes
async def create_rule(
    request: Request,
    body: WorkflowRuleCreateRequest,
    service: RuleWriteServiceDep,
    user_id: UserIdDep,
):
    """Create a rule after validating its actions and conditions."""
    rule = await service.create_rule(body.to_dto(), created_by=user_id)
    return WorkflowRuleResponse.from_entity(rule)


@router.get("", response_model=WorkflowRuleListResponse)
async def list_rules(
    service: RuleServiceDep,
    trigger: str | None = Query(None),
    is_active: bool | None = Query(None, alias="isActive"),
    search: str | None = Query(None, max_length=255),
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
):
    """List rules newest first; search matches the name case-insensitively."""
    result = await service.list_rules(
        WorkflowRuleFilter(
            trigger=trigger,
            is_active=is_active,
            search=search,
            page=page,
            limit=_page_size(limit),
        )
    )
    return WorkflowRuleListResponse(
        items=[WorkflowRuleResponse.from_entity(r) for r in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
    )


@router.get("/meta/triggers")
async def list_available_triggers(service: RuleServiceDep) -> list[dict[str, Any]]:
    return service.available_triggers()


@router.get("/meta/actions")
async def list_available_actions(service: RuleServiceDep) -> list[dict[str, Any]]:
    return service.available_actions()


@router.get("/meta/operators")
async def list_available_operators(service: RuleServiceDep) -> list[dict[str, Any]]:
    return service.available_operators()


@router.post("/builder", response_model=WorkflowRuleResponse, status_code=201)
@limit_writes
async def create_rule_from_builder(
    request: Request,
    body: WorkflowBuilderRequest,
    service: RuleWriteServiceDep,
    user_id: UserIdDep,
):
    """Create an active rule from a visual-builder graph."""
    rule = await service.create_from_builder(body.to_dto(), created_by=user_id)
    return WorkflowRuleResponse.from_entity(rule)


@router.post("/import", response_model=WorkflowRuleResponse, status_code=201)
@limit_writes
async def import_rule(
    request: Request,
    service: RuleWriteServiceDep,
    user_id: UserIdDep,
    data: dict[str, Any] = Body(...),
):
    """Create an inactive rule from an exported snapshot."""
    snapshot = WorkflowImportRequest.from_snapshot(data)
    rule = await service.import_rule(snapshot.to_snapshot(), created_by=user_id)
    return WorkflowRuleResponse.from_entity(rule)


@router.post("/bulk-toggle", response_model=BulkToggleResponse)
@limit_bulk
async def bulk_toggle_rules(
    request: Request,
    body: BulkToggleRequest,
    service: RuleWriteServiceDep,
):
    updated = await service.bulk_toggle_rules(body.rule_ids, body.is_active)
    return BulkToggleResponse(updated=updated)


# ---- Analytics ----


@router.get("/statistics", response_model=WorkflowStatisticsResponse)
async def get_statistics(
    analytics: AnalyticsDep,
    days: int = Query(30, ge=1, le=365),
):
    stats = await analytics.get_statistics(days=days)
    return WorkflowStatisticsResponse.from_dto(stats)


@router.get("/health", response_model=WorkflowHealthResponse)
async def get_workflow_health(analytics: AnalyticsDep):
    """Engine health from recent failures, success rate, approvals and latency."""
    health = await analytics.get_health_metrics()
    return WorkflowHealthResponse.from_dto(health)


# ---- Executions ----


@router.get("/executions", response_model=WorkflowExecutionListResponse)
async def list_executions(
    engine: EngineDep,
    rule_id: str | None = Query(None, alias="ruleId"),
    status: ExecutionStatus | None = Query(None),
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
):
    result = await engine.list_executions(
        ExecutionFilter(
            rule_id=rule_id,
            status=status,
            start_date=start_date,
            end_date=end_date,
            page=page,
            limit=_page_size(limit),
        )
    )
    return WorkflowExecutionListResponse(
        items=[WorkflowExecutionResponse.from_entity(e) for e in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
    )


@router.get("/executions/{execution_id}", response_model=WorkflowExecutionResponse)
async def get_execution(execution_id: str, engine: EngineDep):
    execution = await engine.get_execution(execution_id)
    return WorkflowExecutionResponse.from_entity(execution)


@router.get("/executions/{execution_id}/logs", response_model=ExecutionLogsResponse)
async def get_execution_logs(execution_id: str, engine: EngineDep):
    """Log lines synthesized from the stored execution record."""
    logs = await engine.get_execution_logs(execution_id)
    return ExecutionLogsResponse.from_logs(logs)


@router.post("/executions/{execution_id}/retry", response_model=ExecutionResultResponse)
@limit_execute
async def retry_execution(request: Request, execution_id: str, engine: EngineDep):
    """Re-run a FAILED execution's rule with the same input (new execution record)."""
    result = await engine.retry_execution(execution_id)
    return ExecutionResultResponse.from_result(result)


@router.post("/executions/{execution_id}/cancel", response_model=WorkflowExecutionResponse)
@limit_writes
async def cancel_execution(request: Request, execution_id: str, engine: EngineDep):
    execution = await engine.cancel_execution(execution_id)
    return WorkflowExecutionResponse.from_entity(execution)


@router.post(
    "/executions/{execution_id}/approval", response_model=WorkflowExecutionResponse
)
@limit_writes
async def process_approval(
    request: Request,
    execution_id: str,
    body: ApprovalRequest,
    engine: EngineDep,
    user_id: UserIdDep,
):
    """Approve (resume the chain) or reject (cancel) a PENDING execution."""
    execution = await engine.process_approval(
        execution_id, body.approved, user_id, body.comment
    )
    return WorkflowExecutionResponse.from_entity(execution)


@router.get("/approvals/pending", response_model=list[WorkflowExecutionResponse])
async def list_pending_approvals(engine: EngineDep, user_id: UserIdDep):
    """PENDING executions awaiting the acting user's decision, newest first."""
    executions = await engine.get_pending_approvals(user_id)
    return [WorkflowExecutionResponse.from_entity(e) for e in executions]


# ---- Single rule ----


@router.get("/{rule_id}", response_model=WorkflowRuleResponse)
async def get_rule(rule_id: str, service: RuleServiceDep):
    rule = await service.get_rule(rule_id)
    return WorkflowRuleResponse.from_entity(rule)


@router.put("/{rule_id}", response_model=WorkflowRuleResponse)
@limit_writes
async def update_rule(
    request: Request,
    rule_id: str,
    body: WorkflowRuleUpdateRequest,
    service: RuleWriteServiceDep,
):
    """Partial update; actions and conditions are revalidated when supplied."""
    rule = await service.update_rule(rule_id, body.to_dto())
    return WorkflowRuleResponse.from_entity(rule)


@router.delete("/{rule_id}", status_code=204)
@limit_writes
async def delete_rule(request: Request, rule_id: str, service: RuleWriteServiceDep) -> None:
    """Delete a rule and its executions."""
    await service.delete_rule(rule_id)


@router.post("/{rule_id}/toggle", response_model=WorkflowRuleResponse)
@limit_writes
async def toggle_rule(request: Request, rule_id: str, service: RuleWriteServiceDep):
    rule = await service.toggle_rule(rule_id)
    return WorkflowRuleResponse.from_entity(rule)


@router.post("/{rule_id}/clone", response_model=WorkflowRuleResponse, status_code=201)
@limit_writes
async def clone_rule(
    request: Request,
    rule_id: str,
    service: RuleWriteServiceDep,
    user_id: UserIdDep,
    body: CloneRuleRequest | None = None,
):
    """Inactive copy of a rule; name defaults to "<name> (Copy)"."""
    rule = await service.clone_rule(
        rule_id, new_name=body.name if body else None, created_by=user_id
    )
    return WorkflowRuleResponse.from_entity(rule)


@router.get("/{rule_id}/export")
async def export_rule(rule_id: str, service: RuleServiceDep) -> dict[str, Any]:
    return await service.export_rule(rule_id)


@router.get("/{rule_id}/summary", response_model=RuleExecutionSummaryResponse)
async def get_rule_summary(
    rule_id: str,
    analytics: AnalyticsDep,
    days: int = Query(7, ge=1, le=365),
):
    summary = await analytics.get_rule_execution_summary(rule_id, days=days)
    return RuleExecutionSummaryResponse.from_dto(summary)


@router.post("/{rule_id}/execute", response_model=ExecutionResultResponse)
@limit_execute
async def execute_rule(
    request: Request,
    rule_id: str,
    engine: EngineDep,
    body: ExecuteRuleRequest | None = None,
):
    """Run a rule now against the given input, regardless of its trigger."""
    payload = body or ExecuteRuleRequest()
    result = await engine.execute_rule(rule_id, payload.input, payload.metadata)
    return ExecutionResultResponse.from_result(result)
