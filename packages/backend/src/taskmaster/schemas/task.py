"""Pydantic schemas for tasks.

Learn: Separate schemas for create/update/read keeps the API clean.
- TaskCreate: what you POST to create a task
- TaskUpdate: what you PUT to replace a task's editable fields
- StatusChange: dedicated schema for PATCH /tasks/:id/status
- TaskRead: what the API returns (includes computed fields)
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from taskmaster.db.models import Task, TaskPriority, TaskStatus


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None


class TaskUpdate(BaseModel):
    """Full replacement of the editable fields."""
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    priority: TaskPriority
    due_date: Optional[datetime] = None


class StatusChange(BaseModel):
    status: TaskStatus


class TaskRead(BaseModel):
    id: int
    title: str
    description: Optional[str]
    status: TaskStatus
    priority: TaskPriority
    created_at: datetime
    updated_at: datetime
    due_date: Optional[datetime]
    completed_at: Optional[datetime]
    owner_id: int
    is_overdue: bool = False
    days_until_due: Optional[int] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_task(cls, task: Task, now: Optional[datetime] = None) -> "TaskRead":
        """Build the response, computing overdue info for pending tasks.

        days_until_due counts whole days (truncated toward zero), and is
        negative once the due date has passed.
        """
        now = now or datetime.now(timezone.utc)
        read = cls.model_validate(task)
        if task.status == TaskStatus.PENDING and task.due_date is not None:
            hours = int((task.due_date - now).total_seconds() / 3600)
            read.is_overdue = task.is_overdue_at(now)
            read.days_until_due = int(hours / 24)
        return read


class TaskStats(BaseModel):
    pending: int
    completed: int
    total: int
