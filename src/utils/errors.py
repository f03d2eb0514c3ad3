"""Error handling utilities."""


class TaskflowError(Exception):
    """Base exception for Taskflow backend."""
    pass


class SupabaseError(TaskflowError):
    """Supabase operation error."""
    pass


class AuthenticationError(TaskflowError):
    """No authenticated user for the request."""
    pass


class TaskNotFoundError(TaskflowError):
    """Task does not exist for the current user."""
    pass


class TaskValidationError(TaskflowError):
    """Task input rejected before reaching the store."""
    pass
