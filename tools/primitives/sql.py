"""
Primitive SQL operations for Elasticsearch.
"""

from typing import Dict, Any, Optional

from mcp_types.primitives import SqlResult
from utils.query_builder import build_sql_body
from utils.transport import TransportClient


SQL_PARAMS = {"format": "json"}


def execute_sql(
    client: TransportClient,
    query: str,
    fetch_size: Optional[int] = None,
    request_timeout: Optional[str] = None,
    page_timeout: Optional[str] = None,
) -> SqlResult:
    """
    Run an SQL query.

    Args:
        client: Connection client
        query: SQL statement
        fetch_size: Rows per page; a cursor is returned when more remain
        request_timeout: e.g. "30s"
        page_timeout: Cursor keep-alive, e.g. "1m"

    Returns:
        SqlResult with columns, rows and an optional cursor
    """
    if not query or not query.strip():
        raise ValueError("SQL query cannot be empty")

    body = build_sql_body(query, fetch_size, request_timeout, page_timeout)
    return SqlResult.from_dict(client.post("/_sql", body=body, params=SQL_PARAMS))


def execute_sql_cursor(client: TransportClient, cursor: str) -> SqlResult:
    """
    Fetch the next page of an SQL result.

    Later pages carry rows but no columns.
    """
    if not cursor:
        raise ValueError("Cursor cannot be empty")
    return SqlResult.from_dict(client.post("/_sql", body={"cursor": cursor}, params=SQL_PARAMS))


def close_sql_cursor(client: TransportClient, cursor: str) -> Dict[str, Any]:
    if not cursor:
        raise ValueError("Cursor cannot be empty")
    return client.post("/_sql/close", body={"cursor": cursor})
