"""
Task endpoints.

- GET    /api/tasks?status=     Caller's tasks (agents) or the tenant's (owner/admin)
- POST   /api/tasks             Free-standing task assigned to the caller
- PUT    /api/tasks/{id}        Edit title, description, due date, priority, contact
- PATCH  /api/tasks/{id}/status Move between pending, in_progress and completed
- DELETE /api/tasks/{id}
"""

import logging
from typing import List, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..core.auth import CurrentUser, get_current_user
from ..core.database import get_db
from ..models.task import TaskStatus
from ..schemas.common import SuccessResponse
from ..schemas.task import TaskCreate, TaskUpdate, TaskStatusUpdate, TaskResponse
from ..services.tasks import TaskService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["Tasks"])


@router.get("", response_model=List[TaskResponse])
async def list_tasks(
    status_filter: Literal["pending", "in_progress", "completed", "all"] = Query(
        "pending", alias="status"
    ),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Most urgent first; tasks without a due date come last."""
    task_status = None if status_filter == "all" else TaskStatus(status_filter)
    return TaskService(db).list_tasks(user.tenant_id, user.user_id, user.role, task_status)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    payload: TaskCreate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return TaskService(db).create(user.tenant_id, user.user_id, payload.model_dump())


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: UUID,
    payload: TaskUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return TaskService(db).update(
        task_id, user.tenant_id, user.user_id, user.role, payload.model_dump()
    )


@router.patch("/{task_id}/status", response_model=TaskResponse)
async def set_task_status(
    task_id: UUID,
    payload: TaskStatusUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return TaskService(db).set_status(
        task_id, user.tenant_id, user.user_id, user.role, payload.status
    )


@router.delete("/{task_id}", response_model=SuccessResponse)
async def delete_task(
    task_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    TaskService(db).delete(task_id, user.tenant_id, user.user_id, user.role)
    return SuccessResponse(message="Task deleted")
