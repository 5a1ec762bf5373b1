from datetime import date, datetime
from typing import Dict, List, Optional
from projecthub.schemas.common import CamelModel


class ActivityItem(CamelModel):
    type: str  # PROJECT_CREATED, TASK_CREATED, TASK_COMPLETED
    description: str
    project_id: Optional[int]
    project_name: str
    timestamp: datetime


class UserStatsResponse(CamelModel):
    total_projects: int
    total_tasks: int
    completed_tasks: int
    active_tasks: int
    completion_rate: float
    projects_progress: Dict[str, int]
    recent_activities: List[ActivityItem]
    tasks_completed_over_time: Dict[date, int]
