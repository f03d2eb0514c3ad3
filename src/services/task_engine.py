"""Task classification and query engine.

Pure functions over an in-memory snapshot of one user's tasks. The reference
time ``now`` is always passed in; nothing here reads the clock, touches the
store, or mutates its inputs. Filters preserve input order; sorting is stable.
"""

from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from src.models.task import Task, TaskStatus
from src.models.filters import DateFilter, SortOption, TaskFilters, TaskStats
from src.utils.dates import (
    align_to,
    start_of_day,
    start_of_week,
    start_of_month,
    start_of_next_month,
)


def status(task: Task, now: datetime) -> TaskStatus:
    """Derive a task's status. A task due exactly at ``now`` is still pending."""
    if task.is_completed:
        return TaskStatus.COMPLETED
    if align_to(task.due_date, now) < now:
        return TaskStatus.OVERDUE
    return TaskStatus.PENDING


def _due_between(tasks: Iterable[Task], start: datetime, end: datetime, now: datetime) -> list[Task]:
    """Tasks due in the half-open interval [start, end)."""
    return [t for t in tasks if start <= align_to(t.due_date, now) < end]


def filter_by_date(
    tasks: Sequence[Task],
    date_filter: DateFilter,
    now: datetime,
    custom_start: Optional[datetime] = None,
    custom_end: Optional[datetime] = None,
) -> list[Task]:
    """Keep tasks whose due date falls in the requested bucket.

    CUSTOM_RANGE bounds are exclusive on both ends; with either bound missing
    the filter passes everything through.
    """
    if date_filter == DateFilter.TODAY:
        today = start_of_day(now)
        return _due_between(tasks, today, today + timedelta(days=1), now)

    if date_filter == DateFilter.THIS_WEEK:
        week_start = start_of_week(now)
        return _due_between(tasks, week_start, week_start + timedelta(days=7), now)

    if date_filter == DateFilter.THIS_MONTH:
        return _due_between(tasks, start_of_month(now), start_of_next_month(now), now)

    if date_filter == DateFilter.OVERDUE:
        today = start_of_day(now)
        return [t for t in tasks if not t.is_completed and align_to(t.due_date, now) < today]

    if date_filter == DateFilter.CUSTOM_RANGE and custom_start is not None and custom_end is not None:
        start = align_to(custom_start, now)
        end = align_to(custom_end, now)
        return [t for t in tasks if start < align_to(t.due_date, now) < end]

    return list(tasks)


def filter_by_status(tasks: Sequence[Task], wanted: Optional[TaskStatus], now: datetime) -> list[Task]:
    """Keep tasks whose derived status equals ``wanted``; None keeps all."""
    if wanted is None:
        return list(tasks)
    return [t for t in tasks if status(t, now) == wanted]


def search(tasks: Sequence[Task], text: str) -> list[Task]:
    """Case-insensitive substring match on name or details. Empty text matches all."""
    needle = text.casefold()
    return [
        t for t in tasks
        if needle in t.name.casefold() or needle in t.details.casefold()
    ]


_SORT_KEYS = {
    SortOption.DUE_DATE_ASC: (lambda t, now: align_to(t.due_date, now), False),
    SortOption.DUE_DATE_DESC: (lambda t, now: align_to(t.due_date, now), True),
    SortOption.NAME_ASC: (lambda t, now: t.name.casefold(), False),
    SortOption.NAME_DESC: (lambda t, now: t.name.casefold(), True),
    SortOption.CREATED_DATE_ASC: (lambda t, now: align_to(t.created_date, now), False),
    SortOption.CREATED_DATE_DESC: (lambda t, now: align_to(t.created_date, now), True),
}


def sort_tasks(tasks: Sequence[Task], sort_option: SortOption, now: Optional[datetime] = None) -> list[Task]:
    """Stable sort by the option's key. Ties keep their input order in both directions.

    ``now`` only supplies the zone used to compare naive and aware timestamps.
    """
    key, descending = _SORT_KEYS[sort_option]
    reference = now if now is not None else _reference_for(tasks)
    return sorted(tasks, key=lambda t: key(t, reference), reverse=descending)


def _reference_for(tasks: Sequence[Task]) -> datetime:
    for t in tasks:
        if t.due_date.tzinfo is not None:
            return t.due_date
    # all naive: any naive reference leaves values untouched
    return datetime.min


def query(
    tasks: Sequence[Task],
    filters: TaskFilters,
    now: datetime,
    search_text: Optional[str] = None,
) -> list[Task]:
    """Apply status filter, date bucket, optional text search, then sort.

    Search narrows the filtered set; it never overrides the active filters.
    """
    result = filter_by_status(tasks, filters.status, now)
    result = filter_by_date(
        result,
        filters.date_filter,
        now,
        filters.custom_start_date,
        filters.custom_end_date,
    )
    if search_text:
        result = search(result, search_text)
    return sort_tasks(result, filters.sort_option, now)


def stats(tasks: Iterable[Task], now: datetime) -> TaskStats:
    """Count tasks per derived status in a single pass."""
    counts = {s: 0 for s in TaskStatus}
    total = 0
    for task in tasks:
        counts[status(task, now)] += 1
        total += 1
    return TaskStats(
        total_tasks=total,
        completed_tasks=counts[TaskStatus.COMPLETED],
        pending_tasks=counts[TaskStatus.PENDING],
        overdue_tasks=counts[TaskStatus.OVERDUE],
    )
