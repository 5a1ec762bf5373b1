from pydantic import field_validator
from datetime import datetime
from typing import Optional, List
from projecthub.schemas.common import CamelModel
from projecthub.schemas.task import TaskResponse


class ProjectCreate(CamelModel):
    title: str
    description: Optional[str] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value


class ProjectResponse(CamelModel):
    id: int
    title: str
    description: Optional[str]
    owner_id: int
    user_id: int
    created_at: datetime
    updated_at: datetime


class ProjectDetailResponse(ProjectResponse):
    tasks: List[TaskResponse]


class ProgressResponse(CamelModel):
    project_id: int
    total_tasks: int
    completed_tasks: int
    progress_percentage: float
