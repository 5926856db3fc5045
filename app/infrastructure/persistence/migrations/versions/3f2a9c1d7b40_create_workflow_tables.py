"""create_workflow_tables

Revision ID: 3f2a9c1d7b40
Revises:
Create Date: 2026-10-19 09:12:44.208113

"""

from collections.abc import Sequence
from typing import Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f2a9c1d7b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_STATUSES = ("PENDING", "RUNNING", "COMPLETED", "FAILED", "CANCELLED")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "workflow_rule",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("trigger", sa.String(), nullable=False),
        sa.Column("conditions", sa.JSON(), nullable=False),
        sa.Column("actions", sa.JSON(), nullable=False),
        sa.Column(
            "is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False
        ),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_workflow_rule_trigger", "workflow_rule", ["trigger"])
    op.create_index("ix_workflow_rule_created_by", "workflow_rule", ["created_by"])
    op.create_index(
        "ix_workflow_rule_trigger_active", "workflow_rule", ["trigger", "is_active"]
    )

    op.create_table(
        "workflow_execution",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("rule_id", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("input", sa.JSON(), nullable=False),
        sa.Column("output", sa.JSON(), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column(
            "executed_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["rule_id"], ["workflow_rule.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ({})".format(", ".join(f"'{s}'" for s in _STATUSES)),
            name="workflow_execution_status_check",
        ),
    )
    op.create_index("ix_workflow_execution_rule_id", "workflow_execution", ["rule_id"])
    op.create_index("ix_workflow_execution_status", "workflow_execution", ["status"])
    op.create_index(
        "ix_workflow_execution_executed_at", "workflow_execution", ["executed_at"]
    )
    op.create_index(
        "ix_workflow_execution_rule_executed",
        "workflow_execution",
        ["rule_id", "executed_at"],
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_workflow_execution_rule_executed", table_name="workflow_execution")
    op.drop_index("ix_workflow_execution_executed_at", table_name="workflow_execution")
    op.drop_index("ix_workflow_execution_status", table_name="workflow_execution")
    op.drop_index("ix_workflow_execution_rule_id", table_name="workflow_execution")
    op.drop_table("workflow_execution")
    op.drop_index("ix_workflow_rule_trigger_active", table_name="workflow_rule")
    op.drop_index("ix_workflow_rule_created_by", table_name="workflow_rule")
    op.drop_index("ix_workflow_rule_trigger", table_name="workflow_rule")
    op.drop_table("workflow_rule")
