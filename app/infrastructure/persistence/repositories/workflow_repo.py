"""WorkflowRule and WorkflowExecution repositories. Return domain entities."""

from __future__ import annotations

from collections.abc import Collection
from datetime import datetime
from typing import Any

from sqlalchemy import Update, delete, func, null, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import noload

from app.application.dtos.workflow import ExecutionFilter, WorkflowRuleFilter
from app.domain.entities.workflow import (
    ExecutionOutput,
    WorkflowAction,
    WorkflowCondition,
    WorkflowExecutionEntity,
    WorkflowRuleEntity,
)
from app.domain.enums import WorkflowTrigger
from app.domain.exceptions import ResourceNotFoundException
from app.infrastructure.persistence.models.workflow import WorkflowExecution, WorkflowRule
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.enums import ExecutionStatus
from app.shared.utils.datetime import ensure_utc


def _parse_trigger(raw: str) -> WorkflowTrigger | str:
    try:
        return WorkflowTrigger(raw)
    except ValueError:
        return raw


def _rule_to_entity(r: WorkflowRule) -> WorkflowRuleEntity:
    """Map ORM WorkflowRule to domain WorkflowRuleEntity (parses conditions/actions JSON)."""
    return WorkflowRuleEntity(
        id=r.id,
        name=r.name,
        description=r.description,
        trigger=_parse_trigger(r.trigger),
        conditions=[WorkflowCondition.from_dict(c) for c in r.conditions or []],
        actions=[WorkflowAction.from_dict(a) for a in r.actions or []],
        is_active=r.is_active,
        created_by=r.created_by,
        created_at=ensure_utc(r.created_at),
        updated_at=ensure_utc(r.updated_at),
    )


def _execution_to_entity(e: WorkflowExecution) -> WorkflowExecutionEntity:
    """Map ORM WorkflowExecution to domain entity, with its rule's name and trigger."""
    rule = e.__dict__.get("rule")
    return WorkflowExecutionEntity(
        id=e.id,
        rule_id=e.rule_id,
        status=ExecutionStatus(e.status),
        input=e.input or {},
        output=ExecutionOutput.from_dict(e.output),
        error=e.error,
        executed_at=ensure_utc(e.executed_at),
        rule_name=rule.name if rule is not None else None,
        rule_trigger=rule.trigger if rule is not None else None,
    )


class WorkflowRuleRepository(BaseRepository[WorkflowRule]):
    """Workflow rule repository (implements IWorkflowRuleRepository)."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, WorkflowRule)

    async def _get_orm(self, rule_id: str) -> WorkflowRule | None:
        result = await self.db.execute(
            select(WorkflowRule)
            .options(noload(WorkflowRule.executions))
            .where(WorkflowRule.id == rule_id)
        )
        return result.scalar_one_or_none()

    async def get_rule(self, rule_id: str) -> WorkflowRuleEntity | None:
        row = await self._get_orm(rule_id)
        return _rule_to_entity(row) if row else None

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
        """Create rule; return created entity."""
        rule = WorkflowRule(
            name=name,
            description=description,
            trigger=trigger.value,
            conditions=[c.to_dict() for c in conditions],
            actions=[a.to_dict() for a in actions],
            is_active=is_active,
            created_by=created_by,
        )
        created = await self.create(rule)
        return _rule_to_entity(created)

    async def update_rule(self, rule: WorkflowRuleEntity) -> WorkflowRuleEntity:
        row = await self._get_orm(rule.id)
        if row is None:
            raise ResourceNotFoundException("workflow_rule", rule.id)
        row.name = rule.name
        row.description = rule.description
        row.trigger = rule.trigger.value if isinstance(rule.trigger, WorkflowTrigger) else rule.trigger
        row.conditions = rule.conditions_as_dicts()
        row.actions = rule.actions_as_dicts()
        row.is_active = rule.is_active
        updated = await self.update(row)
        return _rule_to_entity(updated)

    async def delete_rule(self, rule_id: str) -> bool:
        """Delete executions then the rule (also enforced by ON DELETE CASCADE)."""
        row = await self._get_orm(rule_id)
        if row is None:
            return False
        await self.db.execute(
            delete(WorkflowExecution).where(WorkflowExecution.rule_id == rule_id)
        )
        await self.delete(row)
        return True

    async def list_rules(
        self, filters: WorkflowRuleFilter
    ) -> tuple[list[WorkflowRuleEntity], int]:
        conditions: list[Any] = []
        if filters.trigger:
            conditions.append(WorkflowRule.trigger == filters.trigger)
        if filters.is_active is not None:
            conditions.append(WorkflowRule.is_active.is_(filters.is_active))
        if filters.search:
            conditions.append(WorkflowRule.name.ilike(f"%{filters.search}%"))

        total = await self.db.scalar(
            select(func.count(WorkflowRule.id)).where(*conditions)
        )
        result = await self.db.execute(
            select(WorkflowRule)
            .options(noload(WorkflowRule.executions))
            .where(*conditions)
            .order_by(WorkflowRule.created_at.desc())
            .offset(filters.offset)
            .limit(filters.limit)
        )
        return [_rule_to_entity(r) for r in result.scalars().all()], total or 0

    async def get_active_rules_by_trigger(
        self, trigger: WorkflowTrigger
    ) -> list[WorkflowRuleEntity]:
        result = await self.db.execute(
            select(WorkflowRule)
            .options(noload(WorkflowRule.executions))
            .where(
                WorkflowRule.trigger == trigger.value,
                WorkflowRule.is_active.is_(True),
            )
            .order_by(WorkflowRule.created_at.asc())
        )
        return [_rule_to_entity(r) for r in result.scalars().all()]

    async def set_active_many(self, rule_ids: list[str], is_active: bool) -> int:
        result = await self.db.execute(
            update(WorkflowRule)
            .where(WorkflowRule.id.in_(rule_ids))
            .values(is_active=is_active)
        )
        return result.rowcount or 0

    async def count_rules(self, *, is_active: bool | None = None) -> int:
        q = select(func.count(WorkflowRule.id))
        if is_active is not None:
            q = q.where(WorkflowRule.is_active.is_(is_active))
        return await self.db.scalar(q) or 0


class WorkflowExecutionRepository(BaseRepository[WorkflowExecution]):
    """Workflow execution repository (implements IWorkflowExecutionRepository).

    With autocommit=True every write commits on its own, so a RUNNING record
    is visible to other sessions while its actions are still in flight and a
    failed write never poisons the next one. Status changes can be guarded by
    expected_statuses (a conditional UPDATE), which keeps a record from being
    finalized twice when a cancel races the engine.
    """

    def __init__(self, db: AsyncSession, *, autocommit: bool = False) -> None:
        super().__init__(db, WorkflowExecution)
        self.autocommit = autocommit

    async def create_execution(
        self,
        rule_id: str,
        input_data: dict[str, Any],
        status: ExecutionStatus = ExecutionStatus.RUNNING,
    ) -> WorkflowExecutionEntity:
        execution = WorkflowExecution(rule_id=rule_id, status=status.value, input=input_data)
        try:
            created = await self.create(execution)
            await self._commit()
        except Exception:
            await self._rollback()
            raise
        return _execution_to_entity(created)

    async def get_execution(self, execution_id: str) -> WorkflowExecutionEntity | None:
        """Load from the database, overwriting any stale row in the identity map."""
        result = await self.db.execute(
            select(WorkflowExecution)
            .where(WorkflowExecution.id == execution_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return _execution_to_entity(row) if row else None

    async def save_execution(
        self,
        execution: WorkflowExecutionEntity,
        *,
        expected_statuses: Collection[ExecutionStatus] | None = None,
    ) -> WorkflowExecutionEntity | None:
        """Write status, output and error; None when the stored status is not expected."""
        stmt = update(WorkflowExecution).values(
            status=execution.status.value,
            output=execution.output.to_dict() if execution.output else null(),
            error=execution.error,
        )
        return await self._apply(stmt, execution.id, expected_statuses)

    async def transition_status(
        self,
        execution_id: str,
        status: ExecutionStatus,
        *,
        expected_statuses: Collection[ExecutionStatus],
    ) -> WorkflowExecutionEntity | None:
        """Move to status only from expected_statuses; None when the stored status differs."""
        stmt = update(WorkflowExecution).values(status=status.value)
        return await self._apply(stmt, execution_id, expected_statuses)

    async def _apply(
        self,
        stmt: Update,
        execution_id: str,
        expected_statuses: Collection[ExecutionStatus] | None,
    ) -> WorkflowExecutionEntity | None:
        stmt = stmt.where(WorkflowExecution.id == execution_id)
        if expected_statuses is not None:
            stmt = stmt.where(
                WorkflowExecution.status.in_([s.value for s in expected_statuses])
            )
        try:
            result = await self.db.execute(
                stmt.execution_options(synchronize_session=False)
            )
            applied = bool(result.rowcount)
            if not applied and await self.get_by_id(execution_id) is None:
                raise ResourceNotFoundException("workflow_execution", execution_id)
            await self._commit()
        except Exception:
            await self._rollback()
            raise
        return await self.get_execution(execution_id) if applied else None

    async def _commit(self) -> None:
        if self.autocommit:
            await self.db.commit()

    async def _rollback(self) -> None:
        if self.autocommit:
            await self.db.rollback()

    async def list_executions(
        self, filters: ExecutionFilter
    ) -> tuple[list[WorkflowExecutionEntity], int]:
        conditions: list[Any] = []
        if filters.rule_id:
            conditions.append(WorkflowExecution.rule_id == filters.rule_id)
        if filters.status:
            conditions.append(WorkflowExecution.status == filters.status.value)
        if filters.start_date:
            conditions.append(WorkflowExecution.executed_at >= filters.start_date)
        if filters.end_date:
            conditions.append(WorkflowExecution.executed_at <= filters.end_date)

        total = await self.db.scalar(
            select(func.count(WorkflowExecution.id)).where(*conditions)
        )
        result = await self.db.execute(
            select(WorkflowExecution)
            .where(*conditions)
            .order_by(WorkflowExecution.executed_at.desc())
            .offset(filters.offset)
            .limit(filters.limit)
        )
        return [_execution_to_entity(e) for e in result.scalars().all()], total or 0

    async def list_executions_since(
        self, since: datetime, *, rule_id: str | None = None
    ) -> list[WorkflowExecutionEntity]:
        q = select(WorkflowExecution).where(WorkflowExecution.executed_at >= since)
        if rule_id:
            q = q.where(WorkflowExecution.rule_id == rule_id)
        result = await self.db.execute(q.order_by(WorkflowExecution.executed_at.asc()))
        return [_execution_to_entity(e) for e in result.scalars().all()]

    async def list_by_status(
        self, status: ExecutionStatus
    ) -> list[WorkflowExecutionEntity]:
        result = await self.db.execute(
            select(WorkflowExecution)
            .where(WorkflowExecution.status == status.value)
            .order_by(WorkflowExecution.executed_at.desc())
        )
        return [_execution_to_entity(e) for e in result.scalars().all()]

    async def count_by_status(
        self, statuses: list[ExecutionStatus], *, since: datetime | None = None
    ) -> int:
        q = select(func.count(WorkflowExecution.id)).where(
            WorkflowExecution.status.in_([s.value for s in statuses])
        )
        if since is not None:
            q = q.where(WorkflowExecution.executed_at >= since)
        return await self.db.scalar(q) or 0
