"""Pydantic schemas for task request/response validation."""

from pydantic import Field, field_validator
from datetime import date, datetime
from typing import Optional, List

from projecthub.models.enums import TaskStatus, TaskPriority, RecurrencePattern
from projecthub.schemas.common import CamelModel
from projecthub.schemas.tag import TagResponse


def _clean_title(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("Title is required")
    return value


class TaskCreate(CamelModel):
    title: str
    description: Optional[str] = None
    due_date: Optional[date] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    recurrence_pattern: RecurrencePattern = RecurrencePattern.NONE
    recurrence_end_date: Optional[date] = None
    assigned_to_id: Optional[int] = None
    tag_ids: List[int] = Field(default_factory=list)
    depends_on_ids: List[int] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        return _clean_title(value)


class TaskUpdate(CamelModel):
    """Partial update; only the fields present in the payload are applied."""

    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[date] = None
    priority: Optional[TaskPriority] = None
    recurrence_pattern: Optional[RecurrencePattern] = None
    recurrence_end_date: Optional[date] = None
    tag_ids: Optional[List[int]] = None
    depends_on_ids: Optional[List[int]] = None
    completed: Optional[bool] = None
    status: Optional[TaskStatus] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: Optional[str]) -> Optional[str]:
        return _clean_title(value)


class TaskStatusUpdate(CamelModel):
    status: TaskStatus


class AssignTaskRequest(CamelModel):
    user_id: int


class DependencyRequest(CamelModel):
    depends_on_id: int


class TaskResponse(CamelModel):
    id: int
    project_id: int
    title: str
    description: Optional[str]
    due_date: Optional[date]
    completed: bool
    status: TaskStatus
    priority: TaskPriority
    recurrence_pattern: RecurrencePattern
    recurrence_end_date: Optional[date]
    assigned_to_id: Optional[int]
    assigned_to_email: Optional[str]
    tags: List[TagResponse]
    depends_on_ids: List[int]
    blocked_by_ids: List[int]
    completed_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime


class BulkTaskRequest(CamelModel):
    task_ids: List[int] = Field(min_length=1)


class BulkItemResult(CamelModel):
    task_id: int
    success: bool
    error: Optional[str] = None
    message: Optional[str] = None


class BulkTaskResponse(CamelModel):
    results: List[BulkItemResult]
    succeeded: List[int]
    failed: List[int]
