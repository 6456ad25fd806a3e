from fastapi import APIRouter, HTTPException, status, Query
from typing import List, Optional
from ...services.task_service import TaskService
from ...services.auth import user_dependency
from ...db.base import db_dependency
from ...schemas.task import TaskCreate, TaskUpdate, TaskResponse, TaskSummary

router = APIRouter(prefix='/tasks', tags=['tasks'])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=TaskResponse)
async def create_task(
    task_data: TaskCreate,
    user: user_dependency,
    db: db_dependency
):
    task_service = TaskService(db, user)
    return task_service.create_task(task_data)


@router.get("", response_model=List[TaskResponse])
async def get_tasks(
    user: user_dependency,
    db: db_dependency,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    task_status: Optional[str] = Query(None, alias="status", pattern="^(pending|completed|overdue)$"),
    priority: Optional[str] = Query(None, pattern="^(low|medium|high)$"),
    tags: Optional[str] = Query(None, description="Comma separated, matches any"),
    search: Optional[str] = None
):
    tag_list = [t.strip() for t in tags.split(",") if t.strip()] if tags else None

    task_service = TaskService(db, user)
    return task_service.get_tasks(
        skip=skip,
        limit=limit,
        status=task_status,
        priority=priority,
        tags=tag_list,
        search=search
    )


@router.get("/summary", response_model=TaskSummary)
async def get_task_summary(
    user: user_dependency,
    db: db_dependency
):
    task_service = TaskService(db, user)
    return task_service.get_task_summary()


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    user: user_dependency,
    db: db_dependency
):
    task_service = TaskService(db, user)
    task = task_service.get_task_by_id(task_id)

    if not task:
        raise HTTPException(status_code=404, detail="Task not found")

    return task


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    task_data: TaskUpdate,
    user: user_dependency,
    db: db_dependency
):
    task_service = TaskService(db, user)
    task = task_service.update_task(task_id, task_data)

    if not task:
        raise HTTPException(status_code=404, detail="Task not found")

    return task


@router.patch("/{task_id}/complete", response_model=TaskResponse)
async def mark_task_completed(
    task_id: int,
    user: user_dependency,
    db: db_dependency
):
    task_service = TaskService(db, user)
    task = task_service.mark_as_completed(task_id)

    if not task:
        raise HTTPException(status_code=404, detail="Task not found")

    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: int,
    user: user_dependency,
    db: db_dependency
):
    task_service = TaskService(db, user)
    deleted = task_service.delete_task(task_id)

    if not deleted:
        raise HTTPException(status_code=404, detail="Task not found")

    return None
