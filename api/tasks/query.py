"""Task list endpoint for Vercel: filtered, searched and sorted tasks plus stats."""

import json
import asyncio
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from src.models.task import TaskStatus
from src.models.filters import DateFilter, SortOption, TaskFilters
from src.services import task_engine
from src.services.auth import extract_bearer_token, resolve_user_id
from src.services.task_repository import get_all_tasks
from src.utils.errors import AuthenticationError, SupabaseError
from src.utils.logging import (
    correlation_context,
    get_structured_logger,
    mask_user_id,
    sanitize_search_text,
    setup_logging,
)
from src.utils.logging_config import LoggingConfig

setup_logging()
logger = get_structured_logger(__name__)


class BadRequest(ValueError):
    """Query parameter could not be parsed."""


def _response(status_code: int, body: dict) -> dict:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }


def _header(headers: dict, name: str) -> Optional[str]:
    for key, value in (headers or {}).items():
        if key.lower() == name.lower():
            return value
    return None


def _enum_param(params: dict, name: str, enum_cls, default=None):
    raw = params.get(name)
    if raw in (None, ""):
        return default
    try:
        return enum_cls(str(raw).upper())
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise BadRequest(f"Invalid {name}: {raw!r} (expected one of {allowed})")


def _date_param(params: dict, name: str) -> Optional[datetime]:
    raw = params.get(name)
    if raw in (None, ""):
        return None
    try:
        # fromisoformat only accepts a trailing Z from 3.11 on
        return datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        raise BadRequest(f"Invalid {name}: {raw!r} (expected ISO 8601)")


def parse_filters(params: dict) -> TaskFilters:
    """Build TaskFilters from query parameters."""
    try:
        return TaskFilters(
            status=_enum_param(params, "status", TaskStatus),
            date_filter=_enum_param(params, "date_filter", DateFilter, DateFilter.ALL),
            custom_start_date=_date_param(params, "start"),
            custom_end_date=_date_param(params, "end"),
            sort_option=_enum_param(params, "sort", SortOption, SortOption.DUE_DATE_ASC),
        )
    except ValidationError as e:
        raise BadRequest(str(e)) from e


async def list_tasks(headers: dict, params: dict, now: datetime) -> dict[str, Any]:
    filters = parse_filters(params)
    search_text = params.get("q") or None

    user_id = await resolve_user_id(extract_bearer_token(headers))
    tasks = await get_all_tasks(user_id)

    visible = task_engine.query(tasks, filters, now, search_text=search_text)
    logger.info(
        "Task list served",
        user_id=mask_user_id(user_id),
        total=len(tasks),
        returned=len(visible),
        search_text=sanitize_search_text(search_text or ""),
    )
    return {
        "tasks": [t.model_dump(mode="json") for t in visible],
        "stats": task_engine.stats(tasks, now).model_dump(mode="json"),
        "filters": filters.model_dump(mode="json"),
    }


def handler(request):
    """
    List the caller's tasks.

    Query params: status, date_filter, start, end, sort, q.
    """
    headers = request.get("headers", {}) or {}
    params = request.get("query", {}) or {}
    correlation_id = _header(headers, LoggingConfig.LOG_CORRELATION_ID_HEADER)

    with correlation_context(correlation_id) as cid:
        if request.get("method", "GET").upper() != "GET":
            return _response(405, {"error": "Method not allowed"})

        try:
            body = asyncio.run(list_tasks(headers, params, datetime.now(timezone.utc)))
            body["correlation_id"] = cid
            return _response(200, body)
        except BadRequest as e:
            return _response(400, {"error": str(e)})
        except AuthenticationError as e:
            return _response(401, {"error": str(e)})
        except SupabaseError as e:
            logger.error("Task store unavailable", error=str(e))
            return _response(502, {"error": "Task store unavailable"})
        except Exception as e:
            logger.exception("Error listing tasks", error=str(e))
            return _response(500, {"error": str(e)})
