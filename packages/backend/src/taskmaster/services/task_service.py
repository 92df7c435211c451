"""Task service — business logic for a user's tasks.

Learn: Every method takes the caller's user id (resolved from the JWT by
the auth middleware) as its first argument. Two access patterns:

- Lists (all tasks, filters, overdue, counts) filter by owner_id in the
  query itself, so other users' rows are never loaded.
- Single-task operations (get, update, status change, toggle, delete)
  load the task by id and pass it through require_ownership(), which
  answers "not found" for both missing tasks and other users' tasks.

Status model is two-state: PENDING ⇄ COMPLETED. completed_at is set
exactly when status is COMPLETED. Setting a task to the status it
already has is a no-op: no timestamp change, no write.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.auth.ownership import require_ownership
from taskmaster.db.models import Task, TaskPriority, TaskStatus, utcnow
from taskmaster.db.repositories import TaskRepository
from taskmaster.errors import ValidationError

logger = structlog.get_logger()

TITLE_MIN, TITLE_MAX = 3, 200
DESCRIPTION_MAX = 2000


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes from clients are taken to be UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TaskService:
    """Business logic for task CRUD and status changes."""

    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.tasks = TaskRepository(db)
        self.clock = clock

    # ─── Create ──────────────────────────────────────────

    async def create_task(
        self,
        owner_id: int,
        title: str,
        description: Optional[str] = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        due_date: Optional[datetime] = None,
    ) -> Task:
        """Create a new PENDING task owned by the caller."""
        now = self.clock()
        due_date = _as_utc(due_date)
        self._validate_fields(title, description, priority, due_date, now)

        task = Task(
            title=title,
            description=description,
            priority=priority,
            status=TaskStatus.PENDING,
            due_date=due_date,
            owner_id=owner_id,
            created_at=now,
            updated_at=now,
        )
        await self.tasks.save(task)
        await self.db.commit()

        logger.info("task.created", task_id=task.id, priority=priority.value)
        return task

    # ─── Read ────────────────────────────────────────────

    async def list_tasks(
        self,
        owner_id: int,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
    ) -> list[Task]:
        return await self.tasks.find_by_owner(owner_id, status=status, priority=priority)

    async def get_task(self, owner_id: int, task_id: int) -> Task:
        task = await self.tasks.find_by_id(task_id)
        return require_ownership(owner_id, task, task_id)

    async def list_overdue(self, owner_id: int) -> list[Task]:
        """PENDING tasks whose due date has passed, soonest-due first."""
        return await self.tasks.find_overdue_by_owner(owner_id, self.clock())

    async def count_by_status(self, owner_id: int) -> dict[TaskStatus, int]:
        return await self.tasks.count_by_owner_and_status(owner_id)

    # ─── Update ──────────────────────────────────────────

    async def update_task(
        self,
        owner_id: int,
        task_id: int,
        title: str,
        description: Optional[str],
        priority: TaskPriority,
        due_date: Optional[datetime],
    ) -> Task:
        """Replace the editable fields (NOT status — use change_status for that)."""
        task = await self.get_task(owner_id, task_id)

        now = self.clock()
        due_date = _as_utc(due_date)
        self._validate_fields(title, description, priority, due_date, now)

        task.title = title
        task.description = description
        task.priority = priority
        task.due_date = due_date
        task.touch(now)

        await self.db.commit()
        logger.info("task.updated", task_id=task.id)
        return task

    # ─── Status changes ──────────────────────────────────

    async def change_status(
        self, owner_id: int, task_id: int, new_status: TaskStatus
    ) -> Task:
        """Move a task to new_status. Same status → returned untouched."""
        task = await self.get_task(owner_id, task_id)

        if task.status == new_status:
            return task

        self._apply_status(task, new_status)
        await self.db.commit()

        logger.info("task.status_changed", task_id=task.id, status=new_status.value)
        return task

    async def toggle_status(self, owner_id: int, task_id: int) -> Task:
        """PENDING → COMPLETED, COMPLETED → PENDING."""
        task = await self.get_task(owner_id, task_id)

        new_status = (
            TaskStatus.COMPLETED
            if task.status == TaskStatus.PENDING
            else TaskStatus.PENDING
        )
        self._apply_status(task, new_status)
        await self.db.commit()

        logger.info("task.status_changed", task_id=task.id, status=new_status.value)
        return task

    # ─── Delete ──────────────────────────────────────────

    async def delete_task(self, owner_id: int, task_id: int) -> None:
        task = await self.get_task(owner_id, task_id)
        await self.tasks.delete(task)
        await self.db.commit()
        logger.info("task.deleted", task_id=task_id)

    # ─── Helpers ─────────────────────────────────────────

    def _apply_status(self, task: Task, new_status: TaskStatus) -> None:
        now = self.clock()
        if new_status == TaskStatus.COMPLETED:
            task.complete(now)
        else:
            task.mark_pending(now)

    @staticmethod
    def _validate_fields(
        title: Optional[str],
        description: Optional[str],
        priority: Optional[TaskPriority],
        due_date: Optional[datetime],
        now: datetime,
    ) -> None:
        if title is None or not title.strip():
            raise ValidationError("Title cannot be null or empty", field="title")
        if not TITLE_MIN <= len(title) <= TITLE_MAX:
            raise ValidationError(
                f"Title must be between {TITLE_MIN} and {TITLE_MAX} characters",
                field="title",
            )
        if description is not None and len(description) > DESCRIPTION_MAX:
            raise ValidationError(
                f"Description must not exceed {DESCRIPTION_MAX} characters",
                field="description",
            )
        if priority is None:
            raise ValidationError("Priority cannot be null", field="priority")
        if due_date is not None and due_date < now:
            raise ValidationError("Due date cannot be in the past", field="due_date")
