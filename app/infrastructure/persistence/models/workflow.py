"""WorkflowRule and WorkflowExecution ORM models. Event-driven automation."""

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import (
    CheckConstraint,
    Index,
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import BaseModel, CuidMixin
from app.shared.enums import ExecutionStatus


class WorkflowRule(BaseModel, Base):
    """Workflow rule definition. Table: workflow_rule. Trigger + conditions/actions JSON."""

    __tablename__ = "workflow_rule"

    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    trigger: Mapped[str] = mapped_column(String, nullable=False, index=True)
    conditions: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    actions: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.text("true")
    )
    created_by: Mapped[str | None] = mapped_column(String, nullable=True, index=True)

    executions: Mapped[list["WorkflowExecution"]] = relationship(
        back_populates="rule",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_workflow_rule_trigger_active", "trigger", "is_active"),
    )


class WorkflowExecution(CuidMixin, Base):
    """Workflow execution audit. Table: workflow_execution."""

    __tablename__ = "workflow_execution"

    rule_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow_rule.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String,
        nullable=False,
        default=ExecutionStatus.RUNNING.value,
        index=True,
    )
    input: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    output: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    executed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )

    rule: Mapped[WorkflowRule] = relationship(back_populates="executions", lazy="joined")

    __table_args__ = (
        Index("ix_workflow_execution_rule_executed", "rule_id", "executed_at"),
        CheckConstraint(
            "status IN ({})".format(
                ", ".join(
                    "'{}'".format(v.replace("'", "''")) for v in ExecutionStatus.values()
                )
            ),
            name="workflow_execution_status_check",
        ),
    )
