from enum import Enum

from ..core.exceptions import ValidationError


class _ValueEnum(str, Enum):
    """String enum persisted and serialized by its lowercase value."""

    @classmethod
    def from_value(cls, value: str):
        for member in cls:
            if member.value == str(value).strip().lower():
                return member
        raise ValidationError(f"Unknown {cls.__name__}: {value}")

    def __str__(self) -> str:
        return self.value


class StoryStatus(_ValueEnum):
    BACKLOG = "backlog"
    TODO = "to_do"
    IN_PROGRESS = "in_progress"
    REVIEW = "qa_review"
    DONE = "done"


class TaskStatus(_ValueEnum):
    TO_DO = "to_do"
    IN_PROGRESS = "in_progress"
    QA_REVIEW = "qa_review"
    DONE = "done"
    BLOCKED = "blocked"
    CANCELLED = "cancelled"


TERMINAL_TASK_STATUSES = (TaskStatus.DONE, TaskStatus.CANCELLED)


class Priority(_ValueEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SprintStatus(_ValueEnum):
    PLANNING = "planning"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class LineageSource(_ValueEnum):
    ROLLOVER = "rollover"            # cloned from a backlog shadow of a live story
    SELF_ORIGIN = "self_origin"      # cloned from a backlog story with no live origin
    PREVIOUS_SPRINT = "previous_sprint"
