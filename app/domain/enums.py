"""Domain enumerations for workflow rules.

Enums represent the fixed vocabulary of a rule definition: which event
makes it eligible (trigger), how its payload is tested (operator), what it
does (action type) and, for builder graphs, what a node is.
"""

from enum import Enum

from app.shared.enums import _ValuesMixin


class WorkflowTrigger(_ValuesMixin, str, Enum):
    """Domain event kind that makes a rule eligible to run."""

    APPLICATION_RECEIVED = "APPLICATION_RECEIVED"
    STAGE_CHANGED = "STAGE_CHANGED"
    INTERVIEW_SCHEDULED = "INTERVIEW_SCHEDULED"
    INTERVIEW_COMPLETED = "INTERVIEW_COMPLETED"
    TIME_ELAPSED = "TIME_ELAPSED"
    SCORE_CALCULATED = "SCORE_CALCULATED"
    OFFER_SENT = "OFFER_SENT"
    CANDIDATE_REJECTED = "CANDIDATE_REJECTED"


class WorkflowActionType(_ValuesMixin, str, Enum):
    """Side-effecting step kinds an action chain can contain."""

    SEND_EMAIL = "SEND_EMAIL"
    UPDATE_STATUS = "UPDATE_STATUS"
    MOVE_STAGE = "MOVE_STAGE"
    CREATE_TASK = "CREATE_TASK"
    NOTIFY_USER = "NOTIFY_USER"
    TRIGGER_WEBHOOK = "TRIGGER_WEBHOOK"
    SCHEDULE_INTERVIEW = "SCHEDULE_INTERVIEW"
    CALCULATE_SCORE = "CALCULATE_SCORE"
    ADD_TO_TALENT_POOL = "ADD_TO_TALENT_POOL"
    REQUEST_APPROVAL = "REQUEST_APPROVAL"


class ConditionOperator(_ValuesMixin, str, Enum):
    """Comparison applied between a payload field and a condition value."""

    EQUALS = "EQUALS"
    NOT_EQUALS = "NOT_EQUALS"
    CONTAINS = "CONTAINS"
    NOT_CONTAINS = "NOT_CONTAINS"
    GREATER_THAN = "GREATER_THAN"
    LESS_THAN = "LESS_THAN"
    GREATER_THAN_OR_EQUALS = "GREATER_THAN_OR_EQUALS"
    LESS_THAN_OR_EQUALS = "LESS_THAN_OR_EQUALS"
    IS_EMPTY = "IS_EMPTY"
    IS_NOT_EMPTY = "IS_NOT_EMPTY"
    IN_LIST = "IN_LIST"
    NOT_IN_LIST = "NOT_IN_LIST"


class BuilderNodeType(_ValuesMixin, str, Enum):
    """Node kinds in a visual-builder graph."""

    TRIGGER = "trigger"
    CONDITION = "condition"
    ACTION = "action"
