"""
Progress and activity aggregation (read-only).

Everything here is derived from projects and tasks on each call; there is no
stored event log.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from projecthub.core.config import settings
from projecthub.models.enums import ProjectRole
from projecthub.models.project import Project, ProjectMember
from projecthub.models.task import Task
from projecthub.models.user import User
from projecthub.services.authorization import AuthorizationGate

logger = logging.getLogger(__name__)

HISTORY_DAYS = 30


def percentage(done: int, total: int, digits: int = 2) -> float:
    if total == 0:
        return 0.0
    return round(done * 100.0 / total, digits)


def project_progress(db: Session, project_id: int, actor: User) -> dict:
    AuthorizationGate(db).check(actor.id, project_id, ProjectRole.MEMBER)

    total = db.query(func.count(Task.id)).filter(Task.project_id == project_id).scalar()
    completed = db.query(func.count(Task.id)).filter(
        Task.project_id == project_id,
        Task.completed == True  # noqa: E712
    ).scalar()

    progress = {
        "project_id": project_id,
        "total_tasks": total,
        "completed_tasks": completed,
        "progress_percentage": percentage(completed, total),
    }
    logger.debug("Project %s progress: %s/%s", project_id, completed, total)
    return progress


def _member_projects(db: Session, user_id: int) -> List[Project]:
    return db.query(Project).join(
        ProjectMember, ProjectMember.project_id == Project.id
    ).filter(ProjectMember.user_id == user_id).all()


def _project_tasks(db: Session, projects: List[Project]) -> List[Task]:
    ids = [p.id for p in projects]
    if not ids:
        return []
    return db.query(Task).filter(Task.project_id.in_(ids)).all()


def whole_percent(done: int, total: int) -> int:
    # truncated, never rounded up to 100 while a task is open
    if total == 0:
        return 0
    return done * 100 // total


def build_activity(projects: List[Project], tasks: List[Task], limit: int) -> List[dict]:
    titles = {p.id: p.title for p in projects}
    events = []

    for project in projects:
        events.append({
            "type": "PROJECT_CREATED",
            "description": "Created project",
            "project_id": project.id,
            "project_name": project.title,
            "timestamp": project.created_at,
        })

    for task in tasks:
        project_name = titles.get(task.project_id, "Unknown")
        events.append({
            "type": "TASK_CREATED",
            "description": f"Created task: {task.title}",
            "project_id": task.project_id,
            "project_name": project_name,
            "timestamp": task.created_at,
        })
        if task.completed and task.completed_at:
            events.append({
                "type": "TASK_COMPLETED",
                "description": f"Completed task: {task.title}",
                "project_id": task.project_id,
                "project_name": project_name,
                "timestamp": task.completed_at,
            })

    events.sort(key=lambda e: e["timestamp"], reverse=True)
    return events[:limit]


def recent_activity(db: Session, user: User, limit: int = None) -> List[dict]:
    limit = settings.ACTIVITY_LIMIT if limit is None else limit
    projects = _member_projects(db, user.id)
    return build_activity(projects, _project_tasks(db, projects), limit)


def completions_per_day(tasks: List[Task], today: date = None) -> Dict[date, int]:
    today = today or datetime.utcnow().date()
    start = today - timedelta(days=HISTORY_DAYS - 1)
    counts = {start + timedelta(days=i): 0 for i in range(HISTORY_DAYS)}

    for task in tasks:
        if task.completed and task.completed_at:
            day = task.completed_at.date()
            if start <= day <= today:
                counts[day] += 1
    return counts


def user_statistics(db: Session, user: User) -> dict:
    projects = _member_projects(db, user.id)
    tasks = _project_tasks(db, projects)

    completed = sum(1 for t in tasks if t.completed)
    projects_progress = {}
    for project in projects:
        own = [t for t in tasks if t.project_id == project.id]
        done = sum(1 for t in own if t.completed)
        projects_progress[project.title] = whole_percent(done, len(own))

    stats = {
        "total_projects": len(projects),
        "total_tasks": len(tasks),
        "completed_tasks": completed,
        "active_tasks": len(tasks) - completed,
        "completion_rate": percentage(completed, len(tasks), digits=1),
        "projects_progress": projects_progress,
        "recent_activities": build_activity(projects, tasks, settings.ACTIVITY_LIMIT),
        "tasks_completed_over_time": completions_per_day(tasks),
    }
    logger.info("Statistics for user %s: %d projects, %d tasks, %d completed",
                user.id, len(projects), len(tasks), completed)
    return stats
