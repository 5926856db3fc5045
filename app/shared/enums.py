"""Shared enumerations for the hireflow application.

Cross-cutting enums used by application and infrastructure (execution
status, event-bus topics, job queue names). Rule-definition enums
(triggers, action kinds, operators) live in app.domain.enums.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class ExecutionStatus(_ValuesMixin, str, Enum):
    """Workflow execution lifecycle status."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class SystemEventType(_ValuesMixin, str, Enum):
    """Domain event topics published by the rest of the ATS (candidates, interviews, offers)."""

    CANDIDATE_APPLIED = "candidate.applied"
    CANDIDATE_STAGE_CHANGED = "candidate.stage_changed"
    CANDIDATE_MOVED = "candidate.moved"
    INTERVIEW_SCHEDULED = "interview.scheduled"
    INTERVIEW_COMPLETED = "interview.completed"
    SCORE_CALCULATED = "candidate.score_calculated"
    OFFER_SENT = "offer.sent"
    CANDIDATE_REJECTED = "candidate.rejected"


class WorkflowEventTopic(_ValuesMixin, str, Enum):
    """Topics produced by the workflow engine (rule lifecycle, execution lifecycle, action side effects)."""

    RULE_CREATED = "workflow.rule_created"
    RULE_UPDATED = "workflow.rule_updated"
    RULE_DELETED = "workflow.rule_deleted"
    EXECUTION_COMPLETED = "workflow.execution_completed"
    EXECUTION_FAILED = "workflow.execution_failed"
    STATUS_UPDATED = "workflow.status_updated"
    TASK_CREATED = "workflow.task_created"
    INTERVIEW_REQUESTED = "workflow.interview_requested"
    TALENT_POOL_ADD = "workflow.talent_pool_add"
    APPROVAL_REQUESTED = "workflow.approval_requested"
    APPROVAL_GRANTED = "workflow.approval_granted"
    APPROVAL_REJECTED = "workflow.approval_rejected"


class QueueName(_ValuesMixin, str, Enum):
    """Work queues for deferred, out-of-process jobs."""

    EMAIL = "email"
    NOTIFICATIONS = "notifications"
    WEBHOOKS = "webhooks"
    AI_SCORING = "ai-scoring"


class JobName(_ValuesMixin, str, Enum):
    """Job names within the work queues."""

    SEND_EMAIL = "send-email"
    SEND_BULK_EMAIL = "send-bulk-email"
    SEND_NOTIFICATION = "send-notification"
    DELIVER_WEBHOOK = "deliver-webhook"
    SCORE_CANDIDATE = "score-candidate"
