"""
Primitive tools for low-level Elasticsearch operations.
"""

from .search import search_documents
from .aggregate import aggregate_elastic_data, execute_aggregation
from .cluster import (
    test_connection,
    get_cluster_health,
    list_indices,
    get_nodes_info,
    get_nodes_stats,
)
from .documents import (
    create_document,
    get_document,
    update_document,
    delete_document,
    bulk_operations,
)
from .indices import (
    create_index,
    delete_index,
    get_index_mapping,
    get_field_names,
    extract_field_names,
    get_index_settings,
    update_index_settings,
    get_aliases,
    manage_aliases,
    get_templates,
    put_template,
    delete_template,
)
from .sql import execute_sql, execute_sql_cursor, close_sql_cursor

__all__ = [
    # Search operations
    "search_documents",
    # Aggregation operations
    "aggregate_elastic_data",
    "execute_aggregation",
    # Cluster operations
    "test_connection",
    "get_cluster_health",
    "list_indices",
    "get_nodes_info",
    "get_nodes_stats",
    # Document operations
    "create_document",
    "get_document",
    "update_document",
    "delete_document",
    "bulk_operations",
    # Index operations
    "create_index",
    "delete_index",
    "get_index_mapping",
    "get_field_names",
    "extract_field_names",
    "get_index_settings",
    "update_index_settings",
    "get_aliases",
    "manage_aliases",
    "get_templates",
    "put_template",
    "delete_template",
    # SQL operations
    "execute_sql",
    "execute_sql_cursor",
    "close_sql_cursor",
]
