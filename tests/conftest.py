"""Pytest configuration and fixtures for hireflow.

Unit tests run the real engine, services and in-memory messaging against
in-memory repository fakes. HTTP tests use app.main:app through httpx's
ASGITransport with the workflow dependencies overridden to those fakes, so
no database or Redis is needed.
"""

import copy
import itertools
from collections.abc import AsyncIterator, Callable, Collection
from datetime import datetime, timedelta
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.dependencies import (
    get_workflow_analytics_service,
    get_workflow_engine,
    get_workflow_rule_service,
    get_workflow_rule_service_for_write,
)
from app.application.dtos.messaging import EventMessage
from app.application.dtos.workflow import ExecutionFilter, WorkflowRuleFilter
from app.application.use_cases.analytics import WorkflowAnalyticsService
from app.application.use_cases.workflows import WorkflowRuleService
from app.core.limiter import limiter
from app.domain.entities.workflow import (
    WorkflowAction,
    WorkflowCondition,
    WorkflowExecutionEntity,
    WorkflowRuleEntity,
)
from app.domain.enums import WorkflowTrigger
from app.domain.exceptions import ResourceNotFoundException, SqlNotConfiguredException
from app.infrastructure.messaging import InMemoryEventBus, InMemoryJobQueue
from app.infrastructure.persistence.database import get_session_factory
from app.infrastructure.services import WorkflowActionExecutor, WorkflowEngine
from app.main import app
from app.shared.enums import ExecutionStatus
from app.shared.utils.datetime import utc_now
from app.shared.utils.generators import generate_cuid

# ---- In-memory fakes ----


class RecordingEventBus(InMemoryEventBus):
    """InMemoryEventBus that also records every publish in order."""

    def __init__(self) -> None:
        super().__init__()
        self.published: list[EventMessage] = []

    async def publish(
        self,
        topic: str,
        payload: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        self.published.append(EventMessage(type=topic, payload=payload, metadata=metadata))
        return await super().publish(topic, payload, metadata)

    def payloads(self, topic: str) -> list[dict[str, Any]]:
        return [m.payload for m in self.published if m.type == topic]


class RecordingStatusWriter:
    """IEntityStatusWriter that records writes; entity ids in missing raise not found."""

    def __init__(self) -> None:
        self.writes: list[tuple[str, str, str]] = []
        self.missing: set[str] = set()

    async def update_status(self, entity_type: str, entity_id: str, status: str) -> None:
        if entity_id in self.missing:
            raise ResourceNotFoundException(entity_type, entity_id)
        self.writes.append((entity_type, entity_id, status))


_clock = itertools.count()


def _tick() -> datetime:
    """Strictly increasing timestamps so newest-first ordering is deterministic."""
    return utc_now() + timedelta(microseconds=next(_clock))


class FakeWorkflowRuleRepository:
    """Dict-backed IWorkflowRuleRepository."""

    def __init__(self) -> None:
        self.rules: dict[str, WorkflowRuleEntity] = {}
        self.execution_repo: "FakeWorkflowExecutionRepository | None" = None

    async def get_rule(self, rule_id: str) -> WorkflowRuleEntity | None:
        rule = self.rules.get(rule_id)
        return copy.deepcopy(rule) if rule else None

    async def create_rule(
        self,
        *,
        name: str,
        trigger: WorkflowTrigger,
        conditions: list[WorkflowCondition],
        actions: list[WorkflowAction],
        is_active: bool = True,
        created_by: str | None = None,
        description: str | None = None,
    ) -> WorkflowRuleEntity:
        now = _tick()
        rule = WorkflowRuleEntity(
            id=generate_cuid(),
            name=name,
            description=description,
            trigger=trigger,
            conditions=list(conditions),
            actions=list(actions),
            is_active=is_active,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        self.rules[rule.id] = copy.deepcopy(rule)
        return rule

    async def update_rule(self, rule: WorkflowRuleEntity) -> WorkflowRuleEntity:
        if rule.id not in self.rules:
            raise ResourceNotFoundException("workflow_rule", rule.id)
        rule.updated_at = _tick()
        self.rules[rule.id] = copy.deepcopy(rule)
        return rule

    async def delete_rule(self, rule_id: str) -> bool:
        if self.rules.pop(rule_id, None) is None:
            return False
        if self.execution_repo is not None:
            self.execution_repo.delete_for_rule(rule_id)
        return True

    async def list_rules(
        self, filters: WorkflowRuleFilter
    ) -> tuple[list[WorkflowRuleEntity], int]:
        items = list(self.rules.values())
        if filters.trigger:
            items = [r for r in items if r.trigger == filters.trigger]
        if filters.is_active is not None:
            items = [r for r in items if r.is_active is filters.is_active]
        if filters.search:
            needle = filters.search.lower()
            items = [r for r in items if needle in r.name.lower()]
        items.sort(key=lambda r: r.created_at, reverse=True)
        page = items[filters.offset : filters.offset + filters.limit]
        return [copy.deepcopy(r) for r in page], len(items)

    async def get_active_rules_by_trigger(
        self, trigger: WorkflowTrigger
    ) -> list[WorkflowRuleEntity]:
        items = [r for r in self.rules.values() if r.can_trigger_on(trigger)]
        items.sort(key=lambda r: r.created_at)
        return [copy.deepcopy(r) for r in items]

    async def set_active_many(self, rule_ids: list[str], is_active: bool) -> int:
        changed = 0
        for rule_id in rule_ids:
            rule = self.rules.get(rule_id)
            if rule is not None:
                rule.is_active = is_active
                changed += 1
        return changed

    async def count_rules(self, *, is_active: bool | None = None) -> int:
        return sum(
            1 for r in self.rules.values() if is_active is None or r.is_active is is_active
        )


class FakeWorkflowExecutionRepository:
    """Dict-backed IWorkflowExecutionRepository; reads return detached copies."""

    def __init__(self, rule_repo: FakeWorkflowRuleRepository) -> None:
        self.rule_repo = rule_repo
        self.executions: dict[str, WorkflowExecutionEntity] = {}
        rule_repo.execution_repo = self

    def _view(self, execution: WorkflowExecutionEntity) -> WorkflowExecutionEntity:
        view = copy.deepcopy(execution)
        rule = self.rule_repo.rules.get(view.rule_id)
        if rule is not None:
            view.rule_name = rule.name
            view.rule_trigger = (
                rule.trigger.value if isinstance(rule.trigger, WorkflowTrigger) else rule.trigger
            )
        return view

    def delete_for_rule(self, rule_id: str) -> None:
        for execution_id in [e.id for e in self.executions.values() if e.rule_id == rule_id]:
            del self.executions[execution_id]

    def add(self, execution: WorkflowExecutionEntity) -> WorkflowExecutionEntity:
        """Seed a stored execution directly (analytics and state-machine tests)."""
        if execution.executed_at is None:
            execution.executed_at = _tick()
        self.executions[execution.id] = copy.deepcopy(execution)
        return self._view(execution)

    async def create_execution(
        self,
        rule_id: str,
        input_data: dict[str, Any],
        status: ExecutionStatus = ExecutionStatus.RUNNING,
    ) -> WorkflowExecutionEntity:
        execution = WorkflowExecutionEntity(
            id=generate_cuid(),
            rule_id=rule_id,
            status=status,
            input=copy.deepcopy(input_data),
            executed_at=_tick(),
        )
        self.executions[execution.id] = copy.deepcopy(execution)
        return self._view(execution)

    async def get_execution(self, execution_id: str) -> WorkflowExecutionEntity | None:
        execution = self.executions.get(execution_id)
        return self._view(execution) if execution else None

    async def save_execution(
        self,
        execution: WorkflowExecutionEntity,
        *,
        expected_statuses: Collection[ExecutionStatus] | None = None,
    ) -> WorkflowExecutionEntity | None:
        stored = self._stored(execution.id)
        if expected_statuses is not None and stored.status not in expected_statuses:
            return None
        stored.status = execution.status
        stored.output = copy.deepcopy(execution.output)
        stored.error = execution.error
        return self._view(stored)

    async def transition_status(
        self,
        execution_id: str,
        status: ExecutionStatus,
        *,
        expected_statuses: Collection[ExecutionStatus],
    ) -> WorkflowExecutionEntity | None:
        stored = self._stored(execution_id)
        if stored.status not in expected_statuses:
            return None
        stored.status = status
        return self._view(stored)

    def _stored(self, execution_id: str) -> WorkflowExecutionEntity:
        stored = self.executions.get(execution_id)
        if stored is None:
            raise ResourceNotFoundException("workflow_execution", execution_id)
        return stored

    async def list_executions(
        self, filters: ExecutionFilter
    ) -> tuple[list[WorkflowExecutionEntity], int]:
        items = list(self.executions.values())
        if filters.rule_id:
            items = [e for e in items if e.rule_id == filters.rule_id]
        if filters.status:
            items = [e for e in items if e.status == filters.status]
        if filters.start_date:
            items = [e for e in items if e.executed_at >= filters.start_date]
        if filters.end_date:
            items = [e for e in items if e.executed_at <= filters.end_date]
        items.sort(key=lambda e: e.executed_at, reverse=True)
        page = items[filters.offset : filters.offset + filters.limit]
        return [self._view(e) for e in page], len(items)

    async def list_executions_since(
        self, since: datetime, *, rule_id: str | None = None
    ) -> list[WorkflowExecutionEntity]:
        items = [
            e
            for e in self.executions.values()
            if e.executed_at >= since and (rule_id is None or e.rule_id == rule_id)
        ]
        items.sort(key=lambda e: e.executed_at)
        return [self._view(e) for e in items]

    async def list_by_status(self, status: ExecutionStatus) -> list[WorkflowExecutionEntity]:
        items = [e for e in self.executions.values() if e.status == status]
        items.sort(key=lambda e: e.executed_at, reverse=True)
        return [self._view(e) for e in items]

    async def count_by_status(
        self, statuses: list[ExecutionStatus], *, since: datetime | None = None
    ) -> int:
        return sum(
            1
            for e in self.executions.values()
            if e.status in statuses and (since is None or e.executed_at >= since)
        )


# ---- Fixtures ----


@pytest.fixture
def event_bus() -> RecordingEventBus:
    return RecordingEventBus()


@pytest.fixture
def job_queue() -> InMemoryJobQueue:
    return InMemoryJobQueue()


@pytest.fixture
def status_writer() -> RecordingStatusWriter:
    return RecordingStatusWriter()


@pytest.fixture
def rule_repo() -> FakeWorkflowRuleRepository:
    return FakeWorkflowRuleRepository()


@pytest.fixture
def execution_repo(rule_repo: FakeWorkflowRuleRepository) -> FakeWorkflowExecutionRepository:
    return FakeWorkflowExecutionRepository(rule_repo)


@pytest.fixture
def action_executor(
    event_bus: RecordingEventBus,
    job_queue: InMemoryJobQueue,
    status_writer: RecordingStatusWriter,
) -> WorkflowActionExecutor:
    return WorkflowActionExecutor(event_bus, job_queue, status_writer)


@pytest.fixture
def engine(
    rule_repo: FakeWorkflowRuleRepository,
    execution_repo: FakeWorkflowExecutionRepository,
    event_bus: RecordingEventBus,
    action_executor: WorkflowActionExecutor,
) -> WorkflowEngine:
    return WorkflowEngine(rule_repo, execution_repo, event_bus, action_executor)


@pytest.fixture
def rule_service(
    rule_repo: FakeWorkflowRuleRepository, event_bus: RecordingEventBus
) -> WorkflowRuleService:
    return WorkflowRuleService(rule_repo, event_bus)


@pytest.fixture
def analytics_service(
    rule_repo: FakeWorkflowRuleRepository,
    execution_repo: FakeWorkflowExecutionRepository,
) -> WorkflowAnalyticsService:
    return WorkflowAnalyticsService(rule_repo, execution_repo)


@pytest.fixture
def make_rule(
    rule_repo: FakeWorkflowRuleRepository,
) -> Callable[..., Any]:
    """Factory storing a rule built from camelCase condition/action maps."""

    async def _make(
        actions: list[dict[str, Any]],
        conditions: list[dict[str, Any]] | None = None,
        trigger: WorkflowTrigger = WorkflowTrigger.APPLICATION_RECEIVED,
        name: str = "Test rule",
        is_active: bool = True,
    ) -> WorkflowRuleEntity:
        return await rule_repo.create_rule(
            name=name,
            trigger=trigger,
            conditions=[WorkflowCondition.from_dict(c) for c in conditions or []],
            actions=[WorkflowAction.from_dict(a) for a in actions],
            is_active=is_active,
            created_by="tester",
        )

    return _make


@pytest.fixture
async def client(
    rule_service: WorkflowRuleService,
    engine: WorkflowEngine,
    analytics_service: WorkflowAnalyticsService,
) -> AsyncIterator[AsyncClient]:
    """Async HTTP client against the FastAPI app (ASGI) with in-memory workflow wiring."""
    app.dependency_overrides[get_workflow_rule_service] = lambda: rule_service
    app.dependency_overrides[get_workflow_rule_service_for_write] = lambda: rule_service
    app.dependency_overrides[get_workflow_engine] = lambda: engine
    app.dependency_overrides[get_workflow_analytics_service] = lambda: analytics_service
    limiter_enabled = limiter.enabled
    limiter.enabled = False
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        limiter.enabled = limiter_enabled
        app.dependency_overrides.clear()


@pytest.fixture
async def db_session() -> AsyncIterator[AsyncSession]:
    """Database session for repository/integration tests. Rolls back after test.

    Requires DATABASE_URL pointing at a Postgres database migrated with
    `alembic upgrade head`; skips otherwise. Mark such tests with
    @pytest.mark.requires_db and run without a database via:
    pytest -m 'not requires_db'.
    """
    try:
        session_factory = get_session_factory()
    except SqlNotConfiguredException:
        pytest.skip("Postgres not configured: set DATABASE_URL, then run: alembic upgrade head")
    async with session_factory() as session:
        yield session
        await session.rollback()
