"""
Task service - CRUD, status transitions, assignment, dependencies, bulk ops.

``completed`` and ``status`` are always written together:

- completed=True  <=> status == DONE
- completed=False on a DONE task reopens it as TODO
- a transition into DONE requires every ``depends_on`` task to be completed
  and spawns the next occurrence of a recurring task
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, List, Optional

from sqlalchemy.orm import Session

from projecthub.core.errors import DependencyUnmet, NotFound, ProjectHubError, ValidationFailed
from projecthub.models.enums import ProjectRole, TaskStatus
from projecthub.models.tag import Tag
from projecthub.models.task import Task
from projecthub.models.user import User
from projecthub.schemas.task import TaskCreate, TaskUpdate
from projecthub.services import dependency_graph
from projecthub.services.authorization import AuthorizationGate
from projecthub.services.recurrence import spawn_next_occurrence

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "priority", "recurrence_pattern")


# ============ HELPERS ============

def get_task_for(db: Session, task_id: int, actor: User) -> Task:
    """Load a task the actor can see (MEMBER of its project)."""
    task = db.query(Task).filter(Task.id == task_id).first()
    if not task:
        raise NotFound("Task not found")
    AuthorizationGate(db).check(actor.id, task.project_id, ProjectRole.MEMBER)
    return task


def _load_tags(db: Session, project_id: int, tag_ids: Iterable[int]) -> List[Tag]:
    ids = list(dict.fromkeys(tag_ids))
    if not ids:
        return []
    tags = db.query(Tag).filter(Tag.id.in_(ids), Tag.project_id == project_id).all()
    if len(tags) != len(ids):
        raise ValidationFailed("Tags must belong to the task's project")
    by_id = {tag.id: tag for tag in tags}
    return [by_id[i] for i in ids]


def _check_assignment(gate: AuthorizationGate, actor: User, project_id: int,
                      current_id: Optional[int], new_id: Optional[int]) -> None:
    """Members may only (un)assign themselves; anything else needs ADMIN."""
    if new_id is not None and not gate.is_member(new_id, project_id):
        raise ValidationFailed("Cannot assign task to non-member")

    touches_others = any(uid is not None and uid != actor.id for uid in (current_id, new_id))
    if touches_others:
        gate.check(actor.id, project_id, ProjectRole.ADMIN)


def resolve_status(task: Task, completed: Optional[bool], status: Optional[TaskStatus]) -> Optional[TaskStatus]:
    """Turn a (completed, status) input pair into the single target status."""
    if completed is not None and status is not None:
        if completed != (status == TaskStatus.DONE):
            raise ValidationFailed("completed and status disagree")
        return status
    if status is not None:
        return status
    if completed is True:
        return TaskStatus.DONE
    if completed is False:
        return TaskStatus.TODO if task.status == TaskStatus.DONE else TaskStatus(task.status)
    return None


def apply_status(db: Session, task: Task, new_status: TaskStatus) -> None:
    was_completed = bool(task.completed)
    becomes_completed = new_status == TaskStatus.DONE

    if becomes_completed and not was_completed:
        unmet = dependency_graph.unmet_dependencies(task)
        if unmet:
            raise DependencyUnmet(
                f"Task depends on {len(unmet)} incomplete task(s): "
                + ", ".join(str(t.id) for t in unmet)
            )

    task.status = new_status.value
    task.completed = becomes_completed

    if becomes_completed and not was_completed:
        task.completed_at = datetime.utcnow()
        spawn_next_occurrence(db, task)
    elif not becomes_completed:
        task.completed_at = None


# ============ CRUD ============

def create_task(db: Session, project_id: int, actor: User, data: TaskCreate) -> Task:
    gate = AuthorizationGate(db)
    gate.check(actor.id, project_id, ProjectRole.MEMBER)

    task = Task(
        project_id=project_id,
        title=data.title,
        description=data.description,
        due_date=data.due_date,
        priority=data.priority.value,
        status=TaskStatus.TODO.value,
        completed=False,
        recurrence_pattern=data.recurrence_pattern.value,
        recurrence_end_date=data.recurrence_end_date,
    )

    if data.assigned_to_id is not None:
        _check_assignment(gate, actor, project_id, None, data.assigned_to_id)
        task.assigned_to_id = data.assigned_to_id

    task.tags = _load_tags(db, project_id, data.tag_ids)
    # a brand new task has no dependents, so no edge can close a cycle
    task.depends_on = dependency_graph.load_dependencies(db, task, data.depends_on_ids)

    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info("Task %s created in project %s by user %s", task.id, project_id, actor.id)
    return task


def list_tasks(db: Session, project_id: int, actor: User,
               status: Optional[TaskStatus] = None, priority=None) -> List[Task]:
    AuthorizationGate(db).check(actor.id, project_id, ProjectRole.MEMBER)

    query = db.query(Task).filter(Task.project_id == project_id)
    if status:
        query = query.filter(Task.status == status.value)
    if priority:
        query = query.filter(Task.priority == priority.value)

    return query.order_by(Task.created_at.desc(), Task.id.desc()).all()


def update_task(db: Session, task_id: int, actor: User, data: TaskUpdate) -> Task:
    task = get_task_for(db, task_id, actor)
    update_data = data.model_dump(exclude_unset=True)

    completed = update_data.pop("completed", None)
    status = update_data.pop("status", None)
    tag_ids = update_data.pop("tag_ids", None)
    depends_on_ids = update_data.pop("depends_on_ids", None)

    for field, value in update_data.items():
        if value is None and field in REQUIRED_FIELDS:
            raise ValidationFailed(f"{field} cannot be null")
        if isinstance(value, Enum):
            value = value.value
        setattr(task, field, value)

    if tag_ids is not None:
        task.tags = _load_tags(db, task.project_id, tag_ids)
    if depends_on_ids is not None:
        dependency_graph.replace_dependencies(db, task, depends_on_ids)

    target = resolve_status(task, completed, status)
    if target is not None:
        apply_status(db, task, target)

    db.commit()
    db.refresh(task)
    logger.info("Task %s updated by user %s", task_id, actor.id)
    return task


def update_status(db: Session, task_id: int, actor: User, status: TaskStatus) -> Task:
    task = get_task_for(db, task_id, actor)
    apply_status(db, task, status)
    db.commit()
    db.refresh(task)
    logger.info("Task %s status set to %s by user %s", task_id, status.value, actor.id)
    return task


def _remove(db: Session, task: Task) -> None:
    # drops the edges in both directions, the tag links and the successor's back link
    task.depends_on = []
    task.blocked_by = []
    task.tags = []
    db.query(Task).filter(Task.recurrence_parent_id == task.id).update(
        {Task.recurrence_parent_id: None}, synchronize_session=False
    )
    db.delete(task)


def delete_task(db: Session, task_id: int, actor: User) -> None:
    task = get_task_for(db, task_id, actor)
    _remove(db, task)
    db.commit()
    logger.info("Task %s deleted by user %s", task_id, actor.id)


# ============ ASSIGNMENT ============

def assign_task(db: Session, task_id: int, actor: User, user_id: int) -> Task:
    task = get_task_for(db, task_id, actor)
    _check_assignment(AuthorizationGate(db), actor, task.project_id, task.assigned_to_id, user_id)

    task.assigned_to_id = user_id
    db.commit()
    db.refresh(task)
    logger.info("Task %s assigned to user %s by %s", task_id, user_id, actor.id)
    return task


def unassign_task(db: Session, task_id: int, actor: User) -> Task:
    task = get_task_for(db, task_id, actor)
    _check_assignment(AuthorizationGate(db), actor, task.project_id, task.assigned_to_id, None)

    task.assigned_to_id = None
    db.commit()
    db.refresh(task)
    logger.info("Task %s unassigned by %s", task_id, actor.id)
    return task


# ============ DEPENDENCIES ============

def add_dependency(db: Session, task_id: int, depends_on_id: int, actor: User) -> Task:
    task = get_task_for(db, task_id, actor)
    [target] = dependency_graph.load_dependencies(db, task, [depends_on_id])
    dependency_graph.add_dependency(db, task, target)
    db.commit()
    db.refresh(task)
    return task


def remove_dependency(db: Session, task_id: int, depends_on_id: int, actor: User) -> Task:
    task = get_task_for(db, task_id, actor)
    target = db.query(Task).filter(Task.id == depends_on_id).first()
    if not target:
        raise NotFound("Task not found")
    dependency_graph.remove_dependency(db, task, target)
    db.commit()
    db.refresh(task)
    return task


# ============ BULK ============

def _run_bulk(db: Session, task_ids: List[int], operation: Callable[[int], None]) -> dict:
    """Apply ``operation`` to each id in its own transaction and report per-id outcomes."""
    results = []
    for task_id in task_ids:
        try:
            operation(task_id)
            db.commit()
            results.append({"task_id": task_id, "success": True})
        except ProjectHubError as exc:
            db.rollback()
            results.append({"task_id": task_id, "success": False, "error": exc.code, "message": exc.message})

    succeeded = [r["task_id"] for r in results if r["success"]]
    failed = [r["task_id"] for r in results if not r["success"]]
    return {"results": results, "succeeded": succeeded, "failed": failed}


def bulk_complete(db: Session, task_ids: List[int], actor: User) -> dict:
    def complete(task_id: int) -> None:
        task = get_task_for(db, task_id, actor)
        apply_status(db, task, TaskStatus.DONE)

    outcome = _run_bulk(db, task_ids, complete)
    logger.info("Bulk complete by user %s: %d ok, %d failed",
                actor.id, len(outcome["succeeded"]), len(outcome["failed"]))
    return outcome


def bulk_delete(db: Session, task_ids: List[int], actor: User) -> dict:
    def delete(task_id: int) -> None:
        _remove(db, get_task_for(db, task_id, actor))

    outcome = _run_bulk(db, task_ids, delete)
    logger.info("Bulk delete by user %s: %d ok, %d failed",
                actor.id, len(outcome["succeeded"]), len(outcome["failed"]))
    return outcome
