"""Task list state for one user: active filters, search, loaded tasks and stats.

A TaskView is owned by its caller (one per screen or request); nothing is
kept at module level. Store failures are recorded in ``error`` instead of
being raised, so callers render whatever state the view ends up in.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import ValidationError

from src.models.task import Task, TaskStatus, CreateTaskRequest, UpdateTaskRequest, validate_due_date
from src.models.filters import DateFilter, SortOption, TaskFilters, TaskStats
from src.services import task_repository
from src.utils.errors import TaskflowError
from src.utils.logging import get_structured_logger, mask_user_id, sanitize_search_text

logger = get_structured_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _validation_message(error: ValidationError) -> str:
    return "; ".join(str(e["msg"]).removeprefix("Value error, ") for e in error.errors())


class TaskView:
    """Current task list and the filters that produced it."""

    def __init__(self, user_id: str, now_provider: Optional[Callable[[], datetime]] = None):
        self.user_id = user_id
        self._now = now_provider or _utcnow
        self.tasks: list[Task] = []
        self.stats: TaskStats = TaskStats.empty()
        self.filters: TaskFilters = TaskFilters()
        self.search_query: str = ""
        self.is_search_active: bool = False
        self.error: Optional[str] = None
        self.is_loading: bool = False

    @property
    def current_status(self) -> Optional[TaskStatus]:
        return self.filters.status

    async def load_tasks_with_filters(self, filters: TaskFilters) -> bool:
        """Load tasks matching ``filters``; the filters become current only on success."""
        logger.debug(
            "Loading tasks with filters",
            user_id=mask_user_id(self.user_id),
            filters=filters.model_dump(mode="json"),
        )
        self.is_loading = True
        self.error = None
        try:
            tasks = await task_repository.get_tasks_with_filters(self.user_id, filters, self._now())
        except TaskflowError as e:
            logger.error("Error loading filtered tasks", error=str(e))
            self.error = str(e) or "Failed to load tasks"
            return False
        finally:
            self.is_loading = False

        self.tasks = tasks
        self.filters = filters
        logger.debug("Loaded filtered tasks", count=len(tasks))
        return True

    async def load_all_tasks(self) -> bool:
        return await self.load_tasks_with_filters(TaskFilters())

    async def load_tasks_by_status(self, status: Optional[TaskStatus]) -> bool:
        return await self.load_tasks_with_filters(self.filters.model_copy(update={"status": status}))

    async def update_sorting(self, sort_option: SortOption) -> bool:
        return await self.load_tasks_with_filters(self.filters.model_copy(update={"sort_option": sort_option}))

    async def update_date_filter(
        self,
        date_filter: DateFilter,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> bool:
        return await self.load_tasks_with_filters(self.filters.model_copy(update={
            "date_filter": date_filter,
            "custom_start_date": start,
            "custom_end_date": end,
        }))

    async def search(self, text: str) -> bool:
        """Search inside the current filters. Blank text clears the search."""
        if not text.strip():
            return await self.clear_search()
        logger.debug("Search query", search_text=sanitize_search_text(text))
        self.search_query = text
        self.is_search_active = True
        self.is_loading = True
        self.error = None
        try:
            tasks = await task_repository.search_tasks_with_filters(
                self.user_id, text, self.filters, self._now()
            )
        except TaskflowError as e:
            logger.error("Error searching tasks", error=str(e))
            self.error = str(e) or "Failed to search tasks"
            return False
        finally:
            self.is_loading = False

        self.tasks = tasks
        return True

    async def clear_search(self) -> bool:
        self.search_query = ""
        self.is_search_active = False
        return await self.load_tasks_with_filters(self.filters)

    async def load_stats(self) -> None:
        """Recompute stats; a failure is not shown to the user, stats just reset."""
        try:
            self.stats = await task_repository.get_task_stats(self.user_id, self._now())
        except TaskflowError as e:
            logger.warning("Could not load task stats", error=str(e))
            self.stats = TaskStats.empty()

    async def refresh(self) -> None:
        await self._reload_current_view()
        await self.load_stats()

    async def create_task(self, name: str, details: str, due_date: datetime) -> Optional[str]:
        """Validate and create a task, then reload. Returns the new ID or None."""
        self.error = None
        try:
            validate_due_date(due_date, self._now())
            request = CreateTaskRequest(
                name=name,
                details=details,
                due_date=due_date,
                user_id=self.user_id,
            )
        except ValidationError as e:
            self.error = _validation_message(e)
            return None
        except TaskflowError as e:
            self.error = str(e)
            return None

        try:
            task_id = await task_repository.create_task(self.user_id, request, self._now())
        except TaskflowError as e:
            logger.error("Error creating task", error=str(e))
            self.error = str(e) or "Failed to create task"
            return None

        await self.refresh()
        return task_id

    async def update_task(self, task_id: str, request: UpdateTaskRequest) -> bool:
        """Apply an edit with the same due date rule as creation, then reload."""
        self.error = None
        if request.due_date is not None:
            try:
                validate_due_date(request.due_date, self._now())
            except TaskflowError as e:
                self.error = str(e)
                return False

        try:
            await task_repository.update_task(self.user_id, task_id, request, self._now())
        except TaskflowError as e:
            logger.error("Error updating task", task_id=task_id, error=str(e))
            self.error = str(e) or "Failed to update task"
            return False
        await self.refresh()
        return True

    async def toggle_task_completion(self, task_id: str) -> bool:
        try:
            await task_repository.toggle_task_completion(self.user_id, task_id, self._now())
        except TaskflowError as e:
            logger.error("Error toggling task", task_id=task_id, error=str(e))
            self.error = str(e) or "Failed to update task"
            return False
        await self.refresh()
        return True

    async def delete_task(self, task_id: str) -> bool:
        try:
            await task_repository.delete_task(self.user_id, task_id)
        except TaskflowError as e:
            logger.error("Error deleting task", task_id=task_id, error=str(e))
            self.error = str(e) or "Failed to delete task"
            return False
        await self.refresh()
        return True

    def clear_error(self) -> None:
        self.error = None

    async def _reload_current_view(self) -> bool:
        if self.is_search_active:
            return await self.search(self.search_query)
        return await self.load_tasks_with_filters(self.filters)
