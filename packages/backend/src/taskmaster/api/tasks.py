"""Task API routes.

Learn: These routes are the HTTP interface to TaskService. The service
layer handles validation and ownership; routes just translate HTTP to
service calls. The whole router sits behind get_current_identity (see
api/__init__.py), and each handler asks for the identity again to get
the caller's user id. FastAPI caches the dependency per request.

Key patterns:
- POST for creation and toggling (not idempotent)
- PUT replaces the editable fields
- PATCH /status sets an explicit status (idempotent)
- Query params for filtering (status, priority)
- /tasks/overdue and /tasks/stats are declared before /tasks/{task_id}
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.auth.dependencies import CurrentIdentity, get_current_identity
from taskmaster.db.engine import get_db
from taskmaster.db.models import TaskPriority, TaskStatus
from taskmaster.schemas.task import StatusChange, TaskCreate, TaskRead, TaskStats, TaskUpdate
from taskmaster.services.task_service import TaskService

router = APIRouter(prefix="/tasks")

# Ids beyond a signed 64-bit integer can never exist in the database
TaskId = Annotated[int, Path(ge=1, le=2**63 - 1)]


def _task_svc(db: AsyncSession = Depends(get_db)) -> TaskService:
    return TaskService(db)


@router.post("", response_model=TaskRead, status_code=201)
async def create_task(
    body: TaskCreate,
    identity: CurrentIdentity = Depends(get_current_identity),
    svc: TaskService = Depends(_task_svc),
):
    """Create a new PENDING task owned by the caller."""
    task = await svc.create_task(
        identity.user_id,
        title=body.title,
        description=body.description,
        priority=body.priority,
        due_date=body.due_date,
    )
    return TaskRead.from_task(task, svc.clock())


@router.get("", response_model=list[TaskRead])
async def list_tasks(
    status: Optional[TaskStatus] = Query(None, description="Filter by status"),
    priority: Optional[TaskPriority] = Query(None, description="Filter by priority"),
    identity: CurrentIdentity = Depends(get_current_identity),
    svc: TaskService = Depends(_task_svc),
):
    """List the caller's tasks, newest first."""
    tasks = await svc.list_tasks(identity.user_id, status=status, priority=priority)
    now = svc.clock()
    return [TaskRead.from_task(t, now) for t in tasks]


@router.get("/overdue", response_model=list[TaskRead])
async def list_overdue(
    identity: CurrentIdentity = Depends(get_current_identity),
    svc: TaskService = Depends(_task_svc),
):
    tasks = await svc.list_overdue(identity.user_id)
    now = svc.clock()
    return [TaskRead.from_task(t, now) for t in tasks]


@router.get("/stats", response_model=TaskStats)
async def task_stats(
    identity: CurrentIdentity = Depends(get_current_identity),
    svc: TaskService = Depends(_task_svc),
):
    """Counts of the caller's tasks per status."""
    counts = await svc.count_by_status(identity.user_id)
    pending = counts[TaskStatus.PENDING]
    completed = counts[TaskStatus.COMPLETED]
    return TaskStats(pending=pending, completed=completed, total=pending + completed)


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: TaskId,
    identity: CurrentIdentity = Depends(get_current_identity),
    svc: TaskService = Depends(_task_svc),
):
    task = await svc.get_task(identity.user_id, task_id)
    return TaskRead.from_task(task, svc.clock())


@router.put("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: TaskId,
    body: TaskUpdate,
    identity: CurrentIdentity = Depends(get_current_identity),
    svc: TaskService = Depends(_task_svc),
):
    """Replace title, description, priority and due date."""
    task = await svc.update_task(
        identity.user_id,
        task_id,
        title=body.title,
        description=body.description,
        priority=body.priority,
        due_date=body.due_date,
    )
    return TaskRead.from_task(task, svc.clock())


@router.patch("/{task_id}/status", response_model=TaskRead)
async def change_status(
    task_id: TaskId,
    body: StatusChange,
    identity: CurrentIdentity = Depends(get_current_identity),
    svc: TaskService = Depends(_task_svc),
):
    """Set an explicit status. Setting the current status changes nothing."""
    task = await svc.change_status(identity.user_id, task_id, body.status)
    return TaskRead.from_task(task, svc.clock())


@router.post("/{task_id}/toggle", response_model=TaskRead)
async def toggle_status(
    task_id: TaskId,
    identity: CurrentIdentity = Depends(get_current_identity),
    svc: TaskService = Depends(_task_svc),
):
    task = await svc.toggle_status(identity.user_id, task_id)
    return TaskRead.from_task(task, svc.clock())


@router.delete("/{task_id}", status_code=204)
async def delete_task(
    task_id: TaskId,
    identity: CurrentIdentity = Depends(get_current_identity),
    svc: TaskService = Depends(_task_svc),
):
    await svc.delete_task(identity.user_id, task_id)
    return Response(status_code=204)
