"""Shared pytest fixtures and configuration."""

import os
import pytest
from datetime import datetime, timedelta, timezone

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("TASKS_TABLE", "tasks")
os.environ.setdefault("LOG_FORMAT", "text")

from tests.utils.factories import make_task


# Thursday noon
FIXED_NOW = datetime(2024, 12, 12, 12, 0, 0, tzinfo=timezone.utc)
TEST_USER_ID = "user-0001"


@pytest.fixture
def now():
    """Reference time for deterministic status and date-bucket checks."""
    return FIXED_NOW


@pytest.fixture
def user_id():
    return TEST_USER_ID


@pytest.fixture
def overdue_task(now):
    """Not completed, due yesterday."""
    return make_task(name="Pay rent", due_date=now - timedelta(days=1), user_id=TEST_USER_ID)


@pytest.fixture
def pending_task(now):
    """Not completed, due tomorrow."""
    return make_task(name="Buy groceries", due_date=now + timedelta(days=1), user_id=TEST_USER_ID)


@pytest.fixture
def completed_task(now):
    """Completed yesterday, was due last week."""
    return make_task(
        name="File taxes",
        due_date=now - timedelta(days=7),
        is_completed=True,
        completed_date=now - timedelta(days=1),
        user_id=TEST_USER_ID,
    )


@pytest.fixture
def sample_tasks(overdue_task, pending_task, completed_task):
    return [overdue_task, pending_task, completed_task]

