"""
Utility functions for the ES Desk MCP server.
"""

from .connection import (
    ConnectionStore,
    ConnectionStoreError,
    get_connection_store,
    get_transport_client,
    reset_connection_store,
)
from .crypto import CredentialCipher, CredentialError, get_or_create_key
from .errors import ElasticOperationError, ErrorDetails, ErrorType, tool_errors
from .transport import TransportClient
from .validation import (
    validate_index_name,
    validate_index_pattern,
    validate_size,
    validate_url,
    clamp_value,
)
from .query_builder import (
    build_bulk_body,
    build_aggregation,
    build_aggregations,
    build_sql_body,
)
from .response_parser import (
    parse_total,
    parse_bulk_item,
)

__all__ = [
    # Connections
    "ConnectionStore",
    "ConnectionStoreError",
    "get_connection_store",
    "get_transport_client",
    "reset_connection_store",
    "TransportClient",
    # Credentials
    "CredentialCipher",
    "CredentialError",
    "get_or_create_key",
    # Errors
    "ElasticOperationError",
    "ErrorDetails",
    "ErrorType",
    "tool_errors",
    # Validation
    "validate_index_name",
    "validate_index_pattern",
    "validate_size",
    "validate_url",
    "clamp_value",
    # Query building
    "build_bulk_body",
    "build_aggregation",
    "build_aggregations",
    "build_sql_body",
    # Response parsing
    "parse_total",
    "parse_bulk_item",
]
