"""Test helper functions."""

import json
from typing import Any, Dict, Optional
from unittest.mock import MagicMock


CHAIN_METHODS = ("select", "insert", "update", "delete", "eq", "gte", "lte", "order", "limit")


def make_query_chain(data: Optional[list] = None) -> MagicMock:
    """A Supabase query builder mock whose chain methods return itself."""
    query = MagicMock()
    for method in CHAIN_METHODS:
        getattr(query, method).return_value = query
    query.execute.return_value = MagicMock(data=data if data is not None else [])
    return query


def make_supabase_client(data: Optional[list] = None) -> tuple[MagicMock, MagicMock]:
    """Client mock whose every table() call shares one query chain."""
    client = MagicMock()
    query = make_query_chain(data)
    client.table.return_value = query
    return client, query


def patch_supabase(mock_client_class: MagicMock, client: MagicMock) -> None:
    """Wire a patched SupabaseClient class to yield ``client`` from ``async with``."""
    mock_client_class.return_value.__aenter__.return_value = client
    mock_client_class.return_value.__aexit__.return_value = False


def create_vercel_request(
    method: str = "GET",
    path: str = "/api/tasks/query",
    query: Dict[str, Any] = None,
    headers: Dict[str, str] = None,
    token: Optional[str] = "test-access-token",
) -> Dict[str, Any]:
    """Create a Vercel request object for testing."""
    if headers is None:
        headers = {"content-type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

    return {
        "method": method,
        "path": path,
        "headers": headers,
        "body": "",
        "query": query or {},
    }


def response_json(response: Dict[str, Any]) -> Dict[str, Any]:
    return json.loads(response["body"])
