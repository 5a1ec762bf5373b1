"""Recurring tasks: successor creation when an occurrence is completed"""

import logging
from datetime import date
from typing import Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from projecthub.models.enums import RecurrencePattern, TaskStatus
from projecthub.models.task import Task

logger = logging.getLogger(__name__)

PERIODS = {
    RecurrencePattern.DAILY: relativedelta(days=1),
    RecurrencePattern.WEEKLY: relativedelta(weeks=1),
    RecurrencePattern.MONTHLY: relativedelta(months=1),  # clamps to month end
}


def next_due_date(due_date: Optional[date], pattern: str, end_date: Optional[date] = None) -> Optional[date]:
    """Due date of the next occurrence, or None when the series is over."""
    period = PERIODS.get(RecurrencePattern(pattern or RecurrencePattern.NONE))
    if due_date is None or period is None:
        return None
    next_date = due_date + period
    if end_date is not None and next_date > end_date:
        return None
    return next_date


def spawn_next_occurrence(db: Session, task: Task) -> Optional[Task]:
    """Create the successor of a completed occurrence, at most once per occurrence."""
    next_date = next_due_date(task.due_date, task.recurrence_pattern, task.recurrence_end_date)
    if next_date is None:
        return None

    # reopened and completed again: the series already moved on
    existing = db.query(Task.id).filter(Task.recurrence_parent_id == task.id).first()
    if existing:
        logger.debug("Recurring task %s already has successor %s", task.id, existing.id)
        return None

    successor = Task(
        project_id=task.project_id,
        title=task.title,
        description=task.description,
        due_date=next_date,
        priority=task.priority,
        status=TaskStatus.TODO.value,
        completed=False,
        recurrence_pattern=task.recurrence_pattern,
        recurrence_end_date=task.recurrence_end_date,
        recurrence_parent_id=task.id,
        tags=list(task.tags),
    )
    db.add(successor)
    logger.info("Recurring task %s: next occurrence due %s", task.id, next_date)
    return successor
