"""Ownership check for single-task operations.

Learn: There's exactly one authorization rule in TaskMaster: a task can
be read or changed only by the user who created it. No admin bypass,
no sharing.

A missing task and someone else's task both raise TaskNotFoundError,
so a caller can't probe for ids that belong to other users. The check
runs on every get/update/status-change/delete — nothing is cached
between requests.
"""

from typing import Optional

from taskmaster.db.models import Task
from taskmaster.errors import TaskNotFoundError


def is_owner(caller_id: int, task: Optional[Task]) -> bool:
    return task is not None and task.owner_id == caller_id


def require_ownership(caller_id: int, task: Optional[Task], task_id: int) -> Task:
    """Return the task if the caller owns it, otherwise raise not-found."""
    if not is_owner(caller_id, task):
        raise TaskNotFoundError(task_id)
    return task
