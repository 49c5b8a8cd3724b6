"""Which tasks carry over when a sprint closes."""

from datetime import date

from ..models.enums import TERMINAL_TASK_STATUSES


def is_incomplete(task) -> bool:
    return task.status not in TERMINAL_TASK_STATUSES


def is_overdue(task, today: date) -> bool:
    return task.due_date is not None and task.due_date < today and is_incomplete(task)


def qualifies_for_rollover(task, today: date) -> bool:
    return is_incomplete(task) or is_overdue(task, today)
