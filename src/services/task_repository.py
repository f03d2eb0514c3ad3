"""Per-user task persistence on the Supabase ``tasks`` table.

Every query is scoped with ``user_id``; callers resolve the user from the
identity provider first (see ``src.services.auth``). Filtering by derived
status, date bucket and text is done in memory by ``task_engine``.
"""

from datetime import datetime, timezone
from typing import Optional
from pydantic import ValidationError
from ulid import ULID

from src.models.task import Task, TaskStatus, CreateTaskRequest, UpdateTaskRequest
from src.models.filters import TaskFilters, TaskStats
from src.services import task_engine
from src.services.supabase_client import SupabaseClient, TASKS_TABLE
from src.utils.errors import AuthenticationError, SupabaseError, TaskNotFoundError
from src.utils.logging import (
    get_structured_logger,
    log_timing,
    mask_user_id,
    sanitize_search_text,
    timed,
)

logger = get_structured_logger(__name__)


def generate_task_id() -> str:
    """Generate a text-based task ID (ULID format)."""
    return str(ULID())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_user(user_id: str) -> None:
    if not user_id:
        raise AuthenticationError("User not authenticated")


def _to_tasks(rows: Optional[list[dict]]) -> list[Task]:
    """Validate store rows; a malformed row is logged and skipped."""
    tasks = []
    for row in rows or []:
        try:
            tasks.append(Task.model_validate(row))
        except ValidationError as e:
            logger.warning(
                "Skipping malformed task row",
                task_id=row.get("id"),
                error_count=e.error_count(),
            )
    return tasks


async def create_task(user_id: str, request: CreateTaskRequest, now: Optional[datetime] = None) -> str:
    """Insert a new task and return its ID."""
    _require_user(user_id)
    if request.user_id != user_id:
        raise AuthenticationError("Task owner does not match the current user")

    task = request.to_task(generate_task_id(), now or _utcnow())

    with log_timing("create_task", logger=logger, user_id=mask_user_id(user_id)):
        async with SupabaseClient() as client:
            try:
                result = client.table(TASKS_TABLE).insert(task.to_row()).execute()
            except Exception as e:
                raise SupabaseError(f"Failed to create task: {e}") from e

    if not result.data:
        raise SupabaseError("Failed to create task: no data returned")

    logger.info("Task created", task_id=task.id, user_id=mask_user_id(user_id))
    return result.data[0].get("id", task.id)


async def get_all_tasks(user_id: str) -> list[Task]:
    """All tasks of a user, ordered by due date."""
    _require_user(user_id)
    with log_timing("get_all_tasks", logger=logger, user_id=mask_user_id(user_id)):
        async with SupabaseClient() as client:
            try:
                result = (
                    client.table(TASKS_TABLE)
                    .select("*")
                    .eq("user_id", user_id)
                    .order("due_date")
                    .execute()
                )
                return _to_tasks(result.data)
            except Exception as e:
                raise SupabaseError(f"Failed to get tasks: {e}") from e


async def get_tasks_by_status(user_id: str, status: TaskStatus, now: Optional[datetime] = None) -> list[Task]:
    """
    Get tasks with the given derived status.

    The store can only filter on the completion flag; pending and overdue
    are told apart here against ``now``.
    """
    _require_user(user_id)
    now = now or _utcnow()
    completed = status == TaskStatus.COMPLETED

    async with SupabaseClient() as client:
        try:
            query = (
                client.table(TASKS_TABLE)
                .select("*")
                .eq("user_id", user_id)
                .eq("is_completed", completed)
            )
            if completed:
                query = query.order("completed_date", desc=True)
            else:
                query = query.order("due_date")
            tasks = _to_tasks(query.execute().data)
        except Exception as e:
            raise SupabaseError(f"Failed to get tasks by status: {e}") from e

    return task_engine.filter_by_status(tasks, status, now)


async def get_tasks_by_date_range(user_id: str, start: datetime, end: datetime) -> list[Task]:
    """Tasks due between ``start`` and ``end``, both inclusive."""
    _require_user(user_id)
    async with SupabaseClient() as client:
        try:
            result = (
                client.table(TASKS_TABLE)
                .select("*")
                .eq("user_id", user_id)
                .gte("due_date", start.isoformat())
                .lte("due_date", end.isoformat())
                .order("due_date")
                .execute()
            )
            return _to_tasks(result.data)
        except Exception as e:
            raise SupabaseError(f"Failed to get tasks by date range: {e}") from e


async def get_task_by_id(user_id: str, task_id: str) -> Optional[Task]:
    """Get a single task, or None when it does not exist for this user."""
    _require_user(user_id)
    async with SupabaseClient() as client:
        try:
            result = (
                client.table(TASKS_TABLE)
                .select("*")
                .eq("id", task_id)
                .eq("user_id", user_id)
                .execute()
            )
            tasks = _to_tasks(result.data)
        except Exception as e:
            raise SupabaseError(f"Failed to get task: {e}") from e
    return tasks[0] if tasks else None


async def update_task(user_id: str, task_id: str, request: UpdateTaskRequest, now: Optional[datetime] = None) -> None:
    """Apply a partial update. An empty request does not touch the store."""
    _require_user(user_id)
    updates = request.to_updates(now or _utcnow())
    if not updates:
        return

    async with SupabaseClient() as client:
        try:
            result = (
                client.table(TASKS_TABLE)
                .update(updates)
                .eq("id", task_id)
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            raise SupabaseError(f"Failed to update task: {e}") from e

    if not result.data:
        raise TaskNotFoundError(f"Task not found: {task_id}")
    logger.info("Task updated", task_id=task_id, fields=sorted(updates))


async def toggle_task_completion(user_id: str, task_id: str, now: Optional[datetime] = None) -> Task:
    """Flip completion on a stored task and return the updated task."""
    task = await get_task_by_id(user_id, task_id)
    if task is None:
        raise TaskNotFoundError(f"Task not found: {task_id}")

    toggled = task.toggle_completion(now or _utcnow())
    row = toggled.to_row()

    async with SupabaseClient() as client:
        try:
            result = client.table(TASKS_TABLE).update({
                "is_completed": row["is_completed"],
                "completed_date": row["completed_date"],
            }).eq("id", task_id).eq("user_id", user_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to toggle task completion: {e}") from e

    if not result.data:
        raise TaskNotFoundError(f"Task not found: {task_id}")

    logger.info("Task completion toggled", task_id=task_id, is_completed=toggled.is_completed)
    return toggled


async def delete_task(user_id: str, task_id: str) -> None:
    """Remove a task."""
    _require_user(user_id)
    async with SupabaseClient() as client:
        try:
            client.table(TASKS_TABLE).delete().eq("id", task_id).eq("user_id", user_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to delete task: {e}") from e
    logger.info("Task deleted", task_id=task_id, user_id=mask_user_id(user_id))


@timed("search_tasks")
async def search_tasks(user_id: str, text: str) -> list[Task]:
    """Tasks whose name or details contain ``text``, ignoring case."""
    tasks = await get_all_tasks(user_id)
    found = task_engine.search(tasks, text)
    logger.debug("Task search", search_text=sanitize_search_text(text), matches=len(found))
    return found


@timed("get_task_stats")
async def get_task_stats(user_id: str, now: Optional[datetime] = None) -> TaskStats:
    tasks = await get_all_tasks(user_id)
    return task_engine.stats(tasks, now or _utcnow())


@timed("get_tasks_with_filters")
async def get_tasks_with_filters(user_id: str, filters: TaskFilters, now: Optional[datetime] = None) -> list[Task]:
    tasks = await get_all_tasks(user_id)
    return task_engine.query(tasks, filters, now or _utcnow())


@timed("search_tasks_with_filters")
async def search_tasks_with_filters(
    user_id: str,
    text: str,
    filters: TaskFilters,
    now: Optional[datetime] = None,
) -> list[Task]:
    """Search within the active filters; the filters' sort order applies."""
    tasks = await get_all_tasks(user_id)
    found = task_engine.query(tasks, filters, now or _utcnow(), search_text=text)
    logger.debug("Filtered task search", search_text=sanitize_search_text(text), matches=len(found))
    return found
