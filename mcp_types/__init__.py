"""
Type definitions for the ES Desk MCP server.
"""

from .primitives import (
    ElasticQuery,
    ElasticResponse,
    AggregationConfig,
    AggregationQuery,
    AggregationResponse,
    IndexInfo,
    ClusterHealth,
    SqlResult,
)

from .connections import (
    ConnectionProfile,
    EncryptedSecret,
    PersistedSecureProfile,
)

from .flows import (
    FileFormat,
    BulkAction,
    BulkOperation,
    ImportOptions,
    ImportRequest,
    ImportFailure,
    BatchProgress,
    BatchOutcome,
    ExportRequest,
    ExportPage,
    ExportResult,
)

__all__ = [
    # Primitives
    "ElasticQuery",
    "ElasticResponse",
    "AggregationConfig",
    "AggregationQuery",
    "AggregationResponse",
    "IndexInfo",
    "ClusterHealth",
    "SqlResult",
    # Connections
    "ConnectionProfile",
    "EncryptedSecret",
    "PersistedSecureProfile",
    # Flows
    "FileFormat",
    "BulkAction",
    "BulkOperation",
    "ImportOptions",
    "ImportRequest",
    "ImportFailure",
    "BatchProgress",
    "BatchOutcome",
    "ExportRequest",
    "ExportPage",
    "ExportResult",
]
