"""Query specification and aggregate models for task lists."""

from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, computed_field

from src.models.task import TaskStatus


class SortOption(str, Enum):
    """Sort key and direction for a task list."""
    DUE_DATE_ASC = "DUE_DATE_ASC"
    DUE_DATE_DESC = "DUE_DATE_DESC"
    NAME_ASC = "NAME_ASC"
    NAME_DESC = "NAME_DESC"
    CREATED_DATE_DESC = "CREATED_DATE_DESC"
    CREATED_DATE_ASC = "CREATED_DATE_ASC"

    @property
    def display_name(self) -> str:
        return _SORT_DISPLAY_NAMES[self]


class DateFilter(str, Enum):
    """Due-date bucket."""
    ALL = "ALL"
    TODAY = "TODAY"
    THIS_WEEK = "THIS_WEEK"
    THIS_MONTH = "THIS_MONTH"
    OVERDUE = "OVERDUE"
    CUSTOM_RANGE = "CUSTOM_RANGE"

    @property
    def display_name(self) -> str:
        return _DATE_FILTER_DISPLAY_NAMES[self]


_SORT_DISPLAY_NAMES = {
    SortOption.DUE_DATE_ASC: "Due Date (Earliest First)",
    SortOption.DUE_DATE_DESC: "Due Date (Latest First)",
    SortOption.NAME_ASC: "Name (A-Z)",
    SortOption.NAME_DESC: "Name (Z-A)",
    SortOption.CREATED_DATE_DESC: "Newest First",
    SortOption.CREATED_DATE_ASC: "Oldest First",
}

_DATE_FILTER_DISPLAY_NAMES = {
    DateFilter.ALL: "All",
    DateFilter.TODAY: "Today",
    DateFilter.THIS_WEEK: "This Week",
    DateFilter.THIS_MONTH: "This Month",
    DateFilter.OVERDUE: "Overdue",
    DateFilter.CUSTOM_RANGE: "Custom Range",
}


class TaskFilters(BaseModel):
    """Filters and sorting for one query. Built fresh per query, never persisted."""
    model_config = ConfigDict(frozen=True)

    status: Optional[TaskStatus] = Field(None, description="Derived status to keep, None for any")
    date_filter: DateFilter = Field(default=DateFilter.ALL, description="Due-date bucket")
    custom_start_date: Optional[datetime] = Field(None, description="Lower bound for CUSTOM_RANGE")
    custom_end_date: Optional[datetime] = Field(None, description="Upper bound for CUSTOM_RANGE")
    sort_option: SortOption = Field(default=SortOption.DUE_DATE_ASC, description="Sort key and direction")


class TaskStats(BaseModel):
    """Aggregate counts over a task list."""
    total_tasks: int = Field(default=0, ge=0)
    completed_tasks: int = Field(default=0, ge=0)
    pending_tasks: int = Field(default=0, ge=0)
    overdue_tasks: int = Field(default=0, ge=0)

    @computed_field
    @property
    def completion_percentage(self) -> float:
        if self.total_tasks == 0:
            return 0.0
        return self.completed_tasks / self.total_tasks * 100

    @classmethod
    def empty(cls) -> "TaskStats":
        return cls()
