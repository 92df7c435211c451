"""Query layer over AsyncSession for users and tasks.

Learn: Services never build SQL themselves; they go through these two
repositories. Every task query that returns more than one row takes
owner_id and filters on it in the WHERE clause — tasks belonging to
other users are never loaded into memory.

Repositories flush but don't commit; the calling service owns the
transaction.
"""

from collections import Counter
from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.db.models import Task, TaskPriority, TaskStatus, User
from taskmaster.errors import EmailAlreadyExistsError

logger = structlog.get_logger()


class UserRepository:
    """Credential store: email → identity + password hash."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def find_by_id(self, user_id: int) -> Optional[User]:
        return await self._session.get(User, user_id)

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self._session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def exists_by_email(self, email: str) -> bool:
        result = await self._session.execute(
            select(func.count()).select_from(User).where(User.email == email)
        )
        return result.scalar_one() > 0

    async def save(self, user: User) -> User:
        """Insert or update a user.

        Raises EmailAlreadyExistsError when the UNIQUE(email) constraint
        rejects the row — this is what catches two racing registrations.
        """
        self._session.add(user)
        try:
            await self._session.flush()
        except IntegrityError as e:
            await self._session.rollback()
            logger.warning("user.email_conflict", email=user.email)
            raise EmailAlreadyExistsError(user.email) from e
        return user


class TaskRepository:
    """Task store. Multi-row reads are always scoped to one owner."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def find_by_id(self, task_id: int) -> Optional[Task]:
        return await self._session.get(Task, task_id)

    async def find_by_owner(
        self,
        owner_id: int,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
    ) -> list[Task]:
        """List one owner's tasks, newest first, with optional filters.

        Learn: Query filters are applied conditionally — only when the
        caller provides them.
        """
        query = select(Task).where(Task.owner_id == owner_id)
        if status is not None:
            query = query.where(Task.status == status)
        if priority is not None:
            query = query.where(Task.priority == priority)
        query = query.order_by(Task.created_at.desc(), Task.id.desc())

        result = await self._session.execute(query)
        return list(result.scalars().all())

    async def find_overdue_by_owner(self, owner_id: int, now: datetime) -> list[Task]:
        query = (
            select(Task)
            .where(
                Task.owner_id == owner_id,
                Task.status == TaskStatus.PENDING,
                Task.due_date.is_not(None),
                Task.due_date < now,
            )
            .order_by(Task.due_date.asc())
        )
        result = await self._session.execute(query)
        return list(result.scalars().all())

    async def count_by_owner_and_status(self, owner_id: int) -> dict[TaskStatus, int]:
        """Task counts per status; statuses with no tasks report 0."""
        result = await self._session.execute(
            select(Task.status, func.count())
            .where(Task.owner_id == owner_id)
            .group_by(Task.status)
        )
        counts = Counter({status: 0 for status in TaskStatus})
        for status, count in result.all():
            counts[status] = count
        return dict(counts)

    async def save(self, task: Task) -> Task:
        self._session.add(task)
        await self._session.flush()
        return task

    async def delete(self, task: Task) -> None:
        await self._session.delete(task)
        await self._session.flush()
