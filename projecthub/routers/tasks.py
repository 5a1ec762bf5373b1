from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from projecthub.core.database import get_db
from projecthub.core.deps import get_current_user
from projecthub.models.enums import TaskPriority, TaskStatus
from projecthub.models.user import User
from projecthub.schemas.task import (
    AssignTaskRequest,
    BulkTaskRequest,
    BulkTaskResponse,
    DependencyRequest,
    TaskCreate,
    TaskResponse,
    TaskStatusUpdate,
    TaskUpdate,
)
from projecthub.services import task_service

router = APIRouter(tags=["tasks"])


# ========== PROJECT TASKS ==========

@router.post("/projects/{project_id}/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    project_id: int,
    task_data: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return task_service.create_task(db, project_id, current_user, task_data)


@router.get("/projects/{project_id}/tasks", response_model=List[TaskResponse])
def list_tasks(
    project_id: int,
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    priority_filter: Optional[TaskPriority] = Query(None, alias="priority"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return task_service.list_tasks(db, project_id, current_user, status_filter, priority_filter)


# ========== BULK ==========
# declared before /tasks/{task_id} so "bulk" is never parsed as an id

@router.post("/tasks/bulk/complete", response_model=BulkTaskResponse)
def bulk_complete(
    request: BulkTaskRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Complete each task independently; the response lists per-id outcomes"""
    return task_service.bulk_complete(db, request.task_ids, current_user)


@router.delete("/tasks/bulk", response_model=BulkTaskResponse)
def bulk_delete(
    request: BulkTaskRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return task_service.bulk_delete(db, request.task_ids, current_user)


# ========== SINGLE TASK ==========

@router.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return task_service.get_task_for(db, task_id, current_user)


@router.patch("/tasks/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: int,
    task_data: TaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return task_service.update_task(db, task_id, current_user, task_data)


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task_service.delete_task(db, task_id, current_user)


@router.put("/tasks/{task_id}/status", response_model=TaskResponse)
def update_status(
    task_id: int,
    request: TaskStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Kanban drag-and-drop; keeps `completed` in step with the new status"""
    return task_service.update_status(db, task_id, current_user, request.status)


@router.put("/tasks/{task_id}/assign", response_model=TaskResponse)
def assign_task(
    task_id: int,
    request: AssignTaskRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return task_service.assign_task(db, task_id, current_user, request.user_id)


@router.delete("/tasks/{task_id}/assign", response_model=TaskResponse)
def unassign_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return task_service.unassign_task(db, task_id, current_user)


@router.post("/tasks/{task_id}/dependencies", response_model=TaskResponse)
def add_dependency(
    task_id: int,
    request: DependencyRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return task_service.add_dependency(db, task_id, request.depends_on_id, current_user)


@router.delete("/tasks/{task_id}/dependencies/{depends_on_id}", response_model=TaskResponse)
def remove_dependency(
    task_id: int,
    depends_on_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return task_service.remove_dependency(db, task_id, depends_on_id, current_user)
