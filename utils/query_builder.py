"""
Request body building utilities for Elasticsearch.
"""

from typing import Dict, Any, Iterable, List, Optional

from mcp_types.flows import BulkOperation
from mcp_types.primitives import AggregationConfig


def build_bulk_body(operations: Iterable[BulkOperation]) -> str:
    """
    Render bulk operations as a newline-delimited JSON body.

    Args:
        operations: Operations in submission order

    Returns:
        NDJSON text ending with a newline
    """
    lines: List[str] = []
    for operation in operations:
        lines.extend(operation.to_lines())
    return "\n".join(lines) + "\n" if lines else ""


def build_aggregation(config: AggregationConfig) -> Dict[str, Any]:
    """
    Build the DSL for one aggregation node and its children.

    Args:
        config: Aggregation node

    Returns:
        `{type: {field, **params}, "aggs": {...}}`
    """
    definition: Dict[str, Any] = {}
    if config.field:
        definition["field"] = config.field
    if config.params:
        definition.update(config.params)

    aggregation: Dict[str, Any] = {config.type: definition}
    if config.sub_aggregations:
        aggregation["aggs"] = build_aggregations(config.sub_aggregations)
    return aggregation


def build_aggregations(configs: Iterable[AggregationConfig]) -> Dict[str, Any]:
    """
    Build a named aggregation map.

    Args:
        configs: Top-level aggregation nodes

    Returns:
        Aggregation DSL keyed by node name
    """
    return {config.name: build_aggregation(config) for config in configs}


def build_sql_body(
    query: str,
    fetch_size: Optional[int] = None,
    request_timeout: Optional[str] = None,
    page_timeout: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build an `_sql` request body.

    Args:
        query: SQL statement
        fetch_size: Rows per page
        request_timeout: e.g. "30s"
        page_timeout: Cursor keep-alive, e.g. "1m"

    Returns:
        Request body dict
    """
    body: Dict[str, Any] = {"query": query}
    if fetch_size is not None:
        body["fetch_size"] = fetch_size
    if request_timeout:
        body["request_timeout"] = request_timeout
    if page_timeout:
        body["page_timeout"] = page_timeout
    return body
