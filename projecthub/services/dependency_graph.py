"""
Dependency graph over tasks.

An edge ``A -> B`` (``B in A.depends_on``) means A cannot be completed before
B. The graph must stay acyclic; ``blocked_by`` is the reverse view of the same
association rows and is never written on its own.
"""

import logging
from typing import Iterable, List

from sqlalchemy.orm import Session

from projecthub.core.errors import CyclicDependency, NotFound, ValidationFailed
from projecthub.models.project import Project
from projecthub.models.task import Task

logger = logging.getLogger(__name__)


def lock_project_graph(db: Session, project_id: int) -> None:
    """Serialize edge mutations of one project (row lock on the project)."""
    db.query(Project.id).filter(Project.id == project_id).with_for_update().first()


def reaches(start: Task, target: Task) -> bool:
    """True if ``target`` is reachable from ``start`` along depends_on edges."""
    stack = [start]
    seen = set()
    while stack:
        node = stack.pop()
        if node.id == target.id:
            return True
        if node.id in seen:
            continue
        seen.add(node.id)
        stack.extend(node.depends_on)
    return False


def load_dependencies(db: Session, task: Task, depends_on_ids: Iterable[int]) -> List[Task]:
    """Fetch the tasks named by ``depends_on_ids`` and check they can be edges of ``task``."""
    ids = list(dict.fromkeys(depends_on_ids))
    if not ids:
        return []

    found = db.query(Task).filter(Task.id.in_(ids)).all()
    by_id = {t.id: t for t in found}
    missing = [i for i in ids if i not in by_id]
    if missing:
        raise NotFound(f"Task not found: {missing[0]}")

    targets = [by_id[i] for i in ids]
    for target in targets:
        if target.project_id != task.project_id:
            raise ValidationFailed("Dependencies must belong to the same project")
    return targets


def check_edge(task: Task, target: Task) -> None:
    if task.id is not None and target.id == task.id:
        raise CyclicDependency("A task cannot depend on itself")
    # the new edge closes a cycle iff the task is already reachable from the target
    if task.id is not None and reaches(target, task):
        raise CyclicDependency("Adding this dependency would create a cycle")


def add_dependency(db: Session, task: Task, target: Task) -> None:
    lock_project_graph(db, task.project_id)
    if target in task.depends_on:
        return
    check_edge(task, target)
    task.depends_on.append(target)
    logger.info("Task %s now depends on task %s", task.id, target.id)


def remove_dependency(db: Session, task: Task, target: Task) -> None:
    lock_project_graph(db, task.project_id)
    if target not in task.depends_on:
        raise NotFound("Dependency not found")
    task.depends_on.remove(target)
    logger.info("Task %s no longer depends on task %s", task.id, target.id)


def replace_dependencies(db: Session, task: Task, depends_on_ids: Iterable[int]) -> None:
    """Replace the whole edge set of ``task``; nothing changes if any edge is rejected."""
    lock_project_graph(db, task.project_id)
    targets = load_dependencies(db, task, depends_on_ids)

    # validate against the graph without the task's current edges
    previous = list(task.depends_on)
    task.depends_on = []
    try:
        for target in targets:
            check_edge(task, target)
    except CyclicDependency:
        task.depends_on = previous
        raise
    task.depends_on = targets


def unmet_dependencies(task: Task) -> List[Task]:
    return [dep for dep in task.depends_on if not dep.completed]
