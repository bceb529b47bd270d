"""
Primitive aggregation operations for Elasticsearch.
"""

from typing import Dict, Any, List, Optional, Union

from mcp_types.primitives import AggregationConfig, AggregationQuery, AggregationResponse
from utils.query_builder import build_aggregations
from utils.transport import TransportClient
from utils.validation import validate_index_pattern


def aggregate_elastic_data(
    client: TransportClient,
    index: str,
    aggregations: Dict[str, Any],
    query: Optional[Dict[str, Any]] = None,
    size: int = 0,
) -> AggregationResponse:
    """
    Execute Elasticsearch aggregations.

    This primitive provides direct access to Elasticsearch aggregation
    capabilities without any domain logic.

    Args:
        client: Connection client
        index: Index pattern to search
        aggregations: Aggregation DSL definition
        query: Filter query for aggregation
        size: Number of documents to return (0 for aggs only)

    Returns:
        AggregationResponse with aggregation results

    Raises:
        ValueError: If parameters are invalid
        ElasticOperationError: If aggregation fails
    """
    validate_index_pattern(index)

    agg_query = AggregationQuery(
        index=index,
        query=query or {"match_all": {}},
        aggregations=aggregations,
        size=max(0, size),
    )

    response = client.search(index=index, body=agg_query.to_dict())
    return AggregationResponse.from_dict(response)


def execute_aggregation(
    client: TransportClient,
    index: str,
    aggregations: List[Union[AggregationConfig, Dict[str, Any]]],
    query: Optional[Dict[str, Any]] = None,
    size: int = 0,
) -> AggregationResponse:
    """
    Run aggregations described as a tree of named nodes.

    Each node becomes `{name: {type: {field, **params}, "aggs": {...}}}`.

    Args:
        client: Connection client
        index: Index pattern to search
        aggregations: Top-level nodes, as AggregationConfig or plain dicts
        query: Filter query
        size: Number of documents to return alongside

    Returns:
        AggregationResponse with aggregation results
    """
    if not aggregations:
        raise ValueError("At least one aggregation is required")

    try:
        configs = [
            item if isinstance(item, AggregationConfig) else AggregationConfig.from_dict(item)
            for item in aggregations
        ]
    except KeyError as e:
        raise ValueError(f"Aggregation is missing required key {e}") from e
    return aggregate_elastic_data(
        client,
        index=index,
        aggregations=build_aggregations(configs),
        query=query,
        size=size,
    )
