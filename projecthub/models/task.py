"""Task model and its association tables.

Dependency edges live in a single table: a row ``(task_id, depends_on_id)``
means the task cannot be completed before ``depends_on_id``. ``blocked_by`` is
the reverse view over the same rows.
"""

from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, ForeignKey, Table, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from projecthub.core.database import Base
from projecthub.models.enums import TaskStatus, TaskPriority, RecurrencePattern


task_tags = Table(
    "task_tags",
    Base.metadata,
    Column("task_id", Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)

task_dependencies = Table(
    "task_dependencies",
    Base.metadata,
    Column("task_id", Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
    Column("depends_on_id", Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
    CheckConstraint("task_id != depends_on_id", name="ck_no_self_dependency"),
)


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    assigned_to_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    due_date = Column(Date, nullable=True, index=True)
    priority = Column(String, default=TaskPriority.MEDIUM.value)
    status = Column(String, default=TaskStatus.TODO.value)
    completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    recurrence_pattern = Column(String, default=RecurrencePattern.NONE.value)
    recurrence_end_date = Column(Date, nullable=True)
    # occurrence this task was spawned from; one successor per occurrence
    recurrence_parent_id = Column(Integer, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = relationship("Project", back_populates="tasks")
    assigned_to = relationship("User")
    tags = relationship("Tag", secondary=task_tags, backref="tasks", order_by="Tag.id")
    depends_on = relationship(
        "Task",
        secondary=task_dependencies,
        primaryjoin=id == task_dependencies.c.task_id,
        secondaryjoin=id == task_dependencies.c.depends_on_id,
        backref="blocked_by",
        order_by="Task.id",
    )

    @property
    def assigned_to_email(self):
        return self.assigned_to.email if self.assigned_to else None

    @property
    def depends_on_ids(self):
        return [t.id for t in self.depends_on]

    @property
    def blocked_by_ids(self):
        return sorted(t.id for t in self.blocked_by)

    @property
    def tag_ids(self):
        return [tag.id for tag in self.tags]
