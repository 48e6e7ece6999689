"""Task repository. Every query is scoped to the owning user."""

from dataclasses import dataclass, fields
from datetime import datetime

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from tasktracker.models.task import Task, TaskPriority
from tasktracker.models.user import utcnow

LIKE_ESCAPE_CHAR = '\\'

# INTEGER primary keys are 32-bit on PostgreSQL; ids outside this range match no row.
MAX_ROW_ID = 2**31 - 1


class _Unset:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'UNSET'

    def __bool__(self) -> bool:
        return False


# Marks a partial-update field the caller did not send, as opposed to an explicit None.
UNSET = _Unset()


@dataclass(frozen=True)
class TaskFilters:
    completed: bool | None = None
    priority: TaskPriority | None = None
    search: str | None = None


@dataclass(frozen=True)
class TaskChanges:
    title: str | _Unset = UNSET
    description: str | None | _Unset = UNSET
    completed: bool | _Unset = UNSET
    priority: TaskPriority | _Unset = UNSET
    due_date: datetime | None | _Unset = UNSET

    def as_values(self) -> dict:
        return {
            field.name: getattr(self, field.name)
            for field in fields(self)
            if getattr(self, field.name) is not UNSET
        }


def is_storable_id(row_id: int) -> bool:
    return 1 <= row_id <= MAX_ROW_ID


def escape_like(value: str) -> str:
    return (
        value.replace(LIKE_ESCAPE_CHAR, LIKE_ESCAPE_CHAR * 2)
        .replace('%', LIKE_ESCAPE_CHAR + '%')
        .replace('_', LIKE_ESCAPE_CHAR + '_')
    )


def create_task(
    owner_id: int,
    title: str,
    db: Session,
    description: str | None = None,
    priority: TaskPriority = TaskPriority.MEDIUM,
    due_date: datetime | None = None,
) -> Task:
    task = Task(
        user_id=owner_id,
        title=title,
        description=description,
        completed=False,
        priority=priority or TaskPriority.MEDIUM,
        due_date=due_date,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def list_tasks(owner_id: int, db: Session, filters: TaskFilters | None = None) -> list[Task]:
    filters = filters or TaskFilters()
    query = db.query(Task).filter(Task.user_id == owner_id)

    if filters.completed is not None:
        query = query.filter(Task.completed.is_(filters.completed))
    if filters.priority is not None:
        query = query.filter(Task.priority == filters.priority)
    if filters.search:
        pattern = f'%{escape_like(filters.search)}%'
        query = query.filter(Task.title.ilike(pattern, escape=LIKE_ESCAPE_CHAR))

    return query.order_by(Task.id.asc()).all()


def update_task(task_id: int, owner_id: int, changes: TaskChanges, db: Session) -> Task | None:
    """Apply ``changes`` to the owner's task in a single conditional UPDATE.

    Returns None when no row matches both id and owner.
    """
    if not is_storable_id(task_id):
        return None

    values = changes.as_values()
    values['updated_at'] = utcnow()

    result = db.execute(
        update(Task)
        .where(Task.id == task_id, Task.user_id == owner_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        return None

    db.commit()
    return db.get(Task, task_id)


def delete_task(task_id: int, owner_id: int, db: Session) -> bool:
    if not is_storable_id(task_id):
        return False

    result = db.execute(
        delete(Task)
        .where(Task.id == task_id, Task.user_id == owner_id)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount > 0
