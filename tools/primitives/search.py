"""
Primitive search operations for Elasticsearch.
"""

from typing import Dict, Any, List, Optional

from config.environments import MAX_RESULT_WINDOW
from mcp_types.primitives import ElasticQuery, ElasticResponse
from utils.transport import TransportClient
from utils.validation import validate_index_pattern, clamp_value


def search_documents(
    client: TransportClient,
    index: str,
    query: Optional[Dict[str, Any]] = None,
    size: int = 10,
    from_: int = 0,
    sort: Optional[List[Dict[str, Any]]] = None,
    _source: Any = True,
    aggregations: Optional[Dict[str, Any]] = None,
    track_total_hits: Any = True,
) -> ElasticResponse:
    """
    Execute a raw Elasticsearch search query.

    This is the foundational search primitive that the export flow builds
    upon. It provides direct access to the Elasticsearch Query DSL without
    any domain-specific logic.

    Args:
        client: Connection client
        index: Index pattern to search (e.g., "logs-*")
        query: Elasticsearch Query DSL query (match_all when None)
        size: Number of results to return (0-10000)
        from_: Offset for pagination
        sort: Sort criteria
        _source: Source filtering (True, False, or field list)
        aggregations: Optional aggregation DSL
        track_total_hits: Whether to track total hit count

    Returns:
        ElasticResponse with search results

    Raises:
        ValueError: If parameters are invalid
        ElasticOperationError: If the search fails
    """
    validate_index_pattern(index)
    size = clamp_value(size, min_value=0, max_value=MAX_RESULT_WINDOW)
    from_ = max(0, from_)

    elastic_query = ElasticQuery(
        index=index,
        query=query or {"match_all": {}},
        size=size,
        from_=from_,
        sort=sort,
        _source=_source,
        aggregations=aggregations,
        track_total_hits=track_total_hits,
    )

    response = client.search(index=index, body=elastic_query.to_dict())
    return ElasticResponse.from_dict(response)
