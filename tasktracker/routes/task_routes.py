import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from tasktracker.auth.dependencies import require_user_id
from tasktracker.core.errors import TaskNotFoundError
from tasktracker.database import as_utc, get_db
from tasktracker.models.task import TaskPriority
from tasktracker.stores import task_store
from tasktracker.stores.task_store import TaskChanges, TaskFilters

logger = logging.getLogger(__name__)

router = APIRouter(tags=['tasks'])

NON_NULLABLE_UPDATE_FIELDS = ('title', 'completed', 'priority')


def normalize_title(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError('Title is required.')
    return normalized


def normalize_description(value: str | None) -> str | None:
    if value is None:
        return None
    return value if value.strip() else None


class CreateTaskRequest(BaseModel):
    title: str
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, value: str) -> str:
        return normalize_title(value)

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        return normalize_description(value)

    @field_validator('due_date')
    @classmethod
    def validate_due_date(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)


class UpdateTaskRequest(BaseModel):
    """Partial update; only the fields present in the request body are applied."""

    title: str | None = None
    description: str | None = None
    completed: bool | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None

    @field_validator(*NON_NULLABLE_UPDATE_FIELDS, mode='before')
    @classmethod
    def reject_explicit_null(cls, value):
        if value is None:
            raise ValueError('Field cannot be null.')
        return value

    @field_validator('title')
    @classmethod
    def validate_title(cls, value: str) -> str:
        return normalize_title(value)

    @field_validator('due_date')
    @classmethod
    def validate_due_date(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)

    def to_changes(self) -> TaskChanges:
        return TaskChanges(**{name: getattr(self, name) for name in self.model_fields_set})


class TaskResponse(BaseModel):
    id: int
    user_id: int
    title: str
    description: str | None = None
    completed: bool
    priority: TaskPriority
    due_date: datetime | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DeleteTaskResponse(BaseModel):
    success: bool


@router.post('', response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    data: CreateTaskRequest,
    user_id: int = Depends(require_user_id),
    db: Session = Depends(get_db),
):
    task = task_store.create_task(
        user_id,
        data.title,
        db,
        description=data.description,
        priority=data.priority,
        due_date=data.due_date,
    )
    logger.info('User %s created task %s', user_id, task.id)
    return TaskResponse.model_validate(task)


@router.get('', response_model=list[TaskResponse])
def get_tasks(
    completed: bool | None = None,
    priority: TaskPriority | None = None,
    search: str | None = None,
    user_id: int = Depends(require_user_id),
    db: Session = Depends(get_db),
):
    filters = TaskFilters(completed=completed, priority=priority, search=search)
    tasks = task_store.list_tasks(user_id, db, filters)
    return [TaskResponse.model_validate(task) for task in tasks]


@router.patch('/{task_id}', response_model=TaskResponse)
def update_task(
    task_id: int,
    data: UpdateTaskRequest,
    user_id: int = Depends(require_user_id),
    db: Session = Depends(get_db),
):
    task = task_store.update_task(task_id, user_id, data.to_changes(), db)
    if task is None:
        raise TaskNotFoundError()
    logger.info('User %s updated task %s', user_id, task_id)
    return TaskResponse.model_validate(task)


@router.delete('/{task_id}', response_model=DeleteTaskResponse)
def delete_task(
    task_id: int,
    user_id: int = Depends(require_user_id),
    db: Session = Depends(get_db),
):
    deleted = task_store.delete_task(task_id, user_id, db)
    if deleted:
        logger.info('User %s deleted task %s', user_id, task_id)
    return DeleteTaskResponse(success=deleted)
