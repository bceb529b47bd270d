"""
FastMCP Elasticsearch desktop-manager server.

Tools are grouped the same way as the code underneath them:
- connections: saved profiles with encrypted passwords
- cluster / indices / documents / search / SQL: pass-through operations
- flows: bulk import from files and paginated export to files

Every connection-scoped tool takes the `connection_id` of a saved profile.
Failures are returned as `{"success": false, "error": {...}}`.
"""

import logging
import sys
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from fastmcp import FastMCP
from dotenv import load_dotenv

from config import get_defaults, get_environment_config
from config import get_export_directory as configured_export_directory
from mcp_types.connections import ConnectionProfile
from mcp_types.flows import ExportRequest, FileFormat, ImportOptions, ImportRequest
from tools.flows.bulk_export import run_export
from tools.flows.bulk_import import import_file
from tools.primitives import (
    aggregate_elastic_data,
    bulk_operations as run_bulk_operations,
    cluster,
    close_sql_cursor as run_close_sql_cursor,
    create_document as run_create_document,
    create_index as run_create_index,
    delete_document as run_delete_document,
    delete_index as run_delete_index,
    delete_template as run_delete_template,
    execute_aggregation as run_execute_aggregation,
    execute_sql as run_execute_sql,
    execute_sql_cursor as run_execute_sql_cursor,
    get_aliases as run_get_aliases,
    get_document as run_get_document,
    get_field_names as run_get_field_names,
    get_index_mapping as run_get_index_mapping,
    get_index_settings as run_get_index_settings,
    get_templates as run_get_templates,
    manage_aliases as run_manage_aliases,
    put_template as run_put_template,
    search_documents as run_search_documents,
    update_document as run_update_document,
    update_index_settings as run_update_index_settings,
)
from utils.connection import get_connection_store, get_transport_client
from utils.errors import tool_errors
from utils.transport import TransportClient
from utils.validation import validate_url

__version__ = "0.1.0"

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# Initialize MCP server
mcp = FastMCP("es-desk")

DEFAULT_MAX_REPORTED_ERRORS = 100


def _tool(func: Callable) -> Callable:
    """Register a tool; the module keeps the plain callable."""
    wrapped = tool_errors(func)
    mcp.tool()(wrapped)
    return wrapped


def _ok(**payload: Any) -> Dict[str, Any]:
    return {"success": True, **payload}


# ========== HEALTH TOOL ==========

@_tool
def health() -> Dict[str, Any]:
    """
    Report server status and configuration.

    Returns the number of saved connections, where they are stored, the
    pipeline defaults and whether the last save of the connection file failed.
    """
    config = get_environment_config()
    store = get_connection_store()

    return {
        "status": "healthy" if store.last_save_error is None else "degraded",
        "version": __version__,
        "connections": len(store),
        "storage": {
            "connections_file": str(store.storage_path),
            "last_save_error": store.last_save_error,
        },
        "export_directory": str(config["export"]["directory"]),
        "defaults": {
            "batch_size": config["defaults"]["batch_size"],
            "page_size": config["defaults"]["page_size"],
            "max_export_records": config["defaults"]["max_export_records"],
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ========== CONNECTION TOOLS ==========

@_tool
def add_connection(
    name: str,
    url: str,
    username: Optional[str] = None,
    password: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    connection_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Save a connection profile, or replace one when `connection_id` exists.

    The password is encrypted before it is written to disk. If the file
    cannot be written the connection is still usable in this session and
    the result carries `persisted: false` with a warning.

    Args:
        name: Display name
        url: Cluster base URL, e.g. "https://localhost:9200"
        username: Basic-auth user
        password: Basic-auth password (never returned)
        headers: Extra HTTP headers sent with every request
        connection_id: Id to replace; a new id is generated when omitted

    Returns:
        The saved profile (without password) and its persistence status
    """
    if not name or not name.strip():
        raise ValueError("Connection name cannot be empty")
    validate_url(url)

    profile = ConnectionProfile.from_dict({
        "id": connection_id,
        "name": name.strip(),
        "url": url,
        "username": username,
        "password": password,
        "headers": headers,
    })

    store = get_connection_store()
    profile_id = store.add(profile)
    warning = store.last_save_error

    return _ok(
        connection=store.get(profile_id).to_public_dict(),
        persisted=warning is None,
        warning=warning,
    )


@_tool
def list_connections() -> Dict[str, Any]:
    """List saved connections. Passwords are reported only as `has_password`."""
    profiles = get_connection_store().list()
    return _ok(connections=[profile.to_public_dict() for profile in profiles])


@_tool
def remove_connection(connection_id: str) -> Dict[str, Any]:
    """
    Delete a saved connection.

    Returns:
        `removed` is False when no such connection existed
    """
    store = get_connection_store()
    removed = store.remove(connection_id)
    return _ok(removed=removed, persisted=store.last_save_error is None, warning=store.last_save_error)


@_tool
def test_connection(connection_id: str) -> Dict[str, Any]:
    """
    Check that a saved connection can reach its cluster.

    Returns:
        Cluster name, version and health
    """
    client = get_transport_client(connection_id)
    return _ok(cluster=cluster.test_connection(client))


@_tool
def test_temporary_connection(
    url: str,
    username: Optional[str] = None,
    password: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """
    Check connection settings without saving them.

    Args:
        url: Cluster base URL
        username: Basic-auth user
        password: Basic-auth password
        headers: Extra HTTP headers

    Returns:
        Cluster name, version and health
    """
    validate_url(url)
    profile = ConnectionProfile.from_dict({
        "name": "temporary",
        "url": url,
        "username": username,
        "password": password,
        "headers": headers,
    })
    client = TransportClient(profile)
    try:
        return _ok(cluster=cluster.test_connection(client))
    finally:
        client.close()


# ========== CLUSTER TOOLS ==========

@_tool
def get_cluster_health(connection_id: str) -> Dict[str, Any]:
    health_info = cluster.get_cluster_health(get_transport_client(connection_id))
    return _ok(health=asdict(health_info))


@_tool
def list_indices(connection_id: str, pattern: Optional[str] = None) -> Dict[str, Any]:
    """
    List indices with health, document counts and store size in bytes.

    Args:
        connection_id: Saved connection id
        pattern: Optional index pattern, e.g. "logs-*"
    """
    indices = cluster.list_indices(get_transport_client(connection_id), pattern)
    return _ok(indices=[asdict(info) for info in indices])


@_tool
def get_nodes_info(connection_id: str) -> Dict[str, Any]:
    return _ok(nodes=cluster.get_nodes_info(get_transport_client(connection_id)))


@_tool
def get_nodes_stats(connection_id: str) -> Dict[str, Any]:
    return _ok(nodes=cluster.get_nodes_stats(get_transport_client(connection_id)))


# ========== SEARCH TOOLS ==========

@_tool
def search_documents(
    connection_id: str,
    index: str,
    query: Optional[Dict[str, Any]] = None,
    size: int = 10,
    from_offset: int = 0,
    sort: Optional[List[Dict[str, Any]]] = None,
    source_fields: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Low-level Elasticsearch search.

    Provides direct access to the Elasticsearch Query DSL.

    Args:
        connection_id: Saved connection id
        index: Index pattern (e.g., "logs-*")
        query: Query DSL query (match_all when omitted)
        size: Number of results (0-10000)
        from_offset: Pagination offset
        sort: Sort criteria
        source_fields: Restrict `_source` to these fields

    Returns:
        took, timed_out, total and hits
    """
    response = run_search_documents(
        get_transport_client(connection_id),
        index=index,
        query=query,
        size=size,
        from_=from_offset,
        sort=sort,
        _source=source_fields if source_fields else True,
    )
    return _ok(**response.to_dict())


@_tool
def aggregate_data(
    connection_id: str,
    index: str,
    aggregations: Dict[str, Any],
    query: Optional[Dict[str, Any]] = None,
    size: int = 0,
) -> Dict[str, Any]:
    """
    Run a raw aggregation DSL.

    Args:
        connection_id: Saved connection id
        index: Index pattern
        aggregations: Aggregation DSL, e.g. {"by_host": {"terms": {"field": "host"}}}
        query: Filter query
        size: Hits to return alongside (0 for aggregations only)
    """
    response = aggregate_elastic_data(
        get_transport_client(connection_id),
        index=index,
        aggregations=aggregations,
        query=query,
        size=size,
    )
    return _ok(**response.to_dict())


@_tool
def execute_aggregation(
    connection_id: str,
    index: str,
    aggregations: List[Dict[str, Any]],
    query: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Run aggregations described as named nodes.

    Args:
        connection_id: Saved connection id
        index: Index pattern
        aggregations: Nodes of the form
            {"name", "type", "field", "params", "sub_aggregations": [...]}
        query: Filter query
    """
    response = run_execute_aggregation(
        get_transport_client(connection_id),
        index=index,
        aggregations=aggregations,
        query=query,
    )
    return _ok(**response.to_dict())


# ========== INDEX TOOLS ==========

@_tool
def get_index_mapping(connection_id: str, index: str) -> Dict[str, Any]:
    return _ok(mappings=run_get_index_mapping(get_transport_client(connection_id), index))


@_tool
def get_field_names(connection_id: str, index: str) -> Dict[str, Any]:
    """List every field path of an index mapping, including multi-fields."""
    return _ok(fields=run_get_field_names(get_transport_client(connection_id), index))


@_tool
def create_index(
    connection_id: str,
    index: str,
    settings: Optional[Dict[str, Any]] = None,
    mappings: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Create an index.

    Args:
        connection_id: Saved connection id
        index: Index name (lowercase)
        settings: Index settings, e.g. {"number_of_shards": 1}
        mappings: Mappings, e.g. {"properties": {"title": {"type": "text"}}}
    """
    response = run_create_index(
        get_transport_client(connection_id), index, settings=settings, mappings=mappings,
    )
    return _ok(response=response)


@_tool
def delete_index(connection_id: str, index: str) -> Dict[str, Any]:
    return _ok(response=run_delete_index(get_transport_client(connection_id), index))


@_tool
def get_index_settings(connection_id: str, index: str) -> Dict[str, Any]:
    return _ok(settings=run_get_index_settings(get_transport_client(connection_id), index))


@_tool
def update_index_settings(connection_id: str, index: str, settings: Dict[str, Any]) -> Dict[str, Any]:
    response = run_update_index_settings(get_transport_client(connection_id), index, settings)
    return _ok(response=response)


@_tool
def get_aliases(connection_id: str, index: Optional[str] = None) -> Dict[str, Any]:
    return _ok(aliases=run_get_aliases(get_transport_client(connection_id), index))


@_tool
def manage_aliases(connection_id: str, actions: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Apply alias actions in one atomic request.

    Args:
        connection_id: Saved connection id
        actions: e.g. [{"add": {"index": "logs-1", "alias": "logs"}},
                       {"remove": {"index": "logs-0", "alias": "logs"}}]
    """
    return _ok(response=run_manage_aliases(get_transport_client(connection_id), actions))


@_tool
def get_templates(connection_id: str, name: Optional[str] = None) -> Dict[str, Any]:
    return _ok(templates=run_get_templates(get_transport_client(connection_id), name))


@_tool
def put_template(connection_id: str, name: str, body: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create or replace an index template.

    Args:
        connection_id: Saved connection id
        name: Template name
        body: Definition with index_patterns, template and priority
    """
    return _ok(response=run_put_template(get_transport_client(connection_id), name, body))


@_tool
def delete_template(connection_id: str, name: str) -> Dict[str, Any]:
    return _ok(response=run_delete_template(get_transport_client(connection_id), name))


# ========== DOCUMENT TOOLS ==========

@_tool
def create_document(
    connection_id: str,
    index: str,
    document: Dict[str, Any],
    doc_id: Optional[str] = None,
    refresh: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Index one document.

    Args:
        connection_id: Saved connection id
        index: Target index
        document: Document source
        doc_id: Document id (generated by the cluster when omitted)
        refresh: "true", "false" or "wait_for"
    """
    response = run_create_document(
        get_transport_client(connection_id), index, document, doc_id=doc_id, refresh=refresh,
    )
    return _ok(response=response)


@_tool
def get_document(connection_id: str, index: str, doc_id: str) -> Dict[str, Any]:
    return _ok(document=run_get_document(get_transport_client(connection_id), index, doc_id))


@_tool
def update_document(
    connection_id: str,
    index: str,
    doc_id: str,
    document: Dict[str, Any],
    refresh: Optional[str] = None,
) -> Dict[str, Any]:
    """Merge fields into an existing document."""
    response = run_update_document(
        get_transport_client(connection_id), index, doc_id, document, refresh=refresh,
    )
    return _ok(response=response)


@_tool
def delete_document(
    connection_id: str,
    index: str,
    doc_id: str,
    refresh: Optional[str] = None,
) -> Dict[str, Any]:
    response = run_delete_document(get_transport_client(connection_id), index, doc_id, refresh=refresh)
    return _ok(response=response)


@_tool
def bulk_operations(connection_id: str, operations: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Submit several document operations in one bulk request.

    Args:
        connection_id: Saved connection id
        operations: Items of the form
            {"action": "index|create|update|delete", "index", "id", "document"}

    Returns:
        took, errors and the per-item results
    """
    return _ok(**run_bulk_operations(get_transport_client(connection_id), operations))


# ========== SQL TOOLS ==========

@_tool
def execute_sql(
    connection_id: str,
    query: str,
    fetch_size: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Run an Elasticsearch SQL query.

    Args:
        connection_id: Saved connection id
        query: SQL statement, e.g. "SELECT host, COUNT(*) FROM logs GROUP BY host"
        fetch_size: Rows per page; use the returned cursor for more

    Returns:
        columns, rows and cursor
    """
    result = run_execute_sql(get_transport_client(connection_id), query, fetch_size=fetch_size)
    return _ok(**asdict(result))


@_tool
def execute_sql_cursor(connection_id: str, cursor: str) -> Dict[str, Any]:
    result = run_execute_sql_cursor(get_transport_client(connection_id), cursor)
    return _ok(**asdict(result))


@_tool
def close_sql_cursor(connection_id: str, cursor: str) -> Dict[str, Any]:
    return _ok(response=run_close_sql_cursor(get_transport_client(connection_id), cursor))


# ========== FLOW TOOLS ==========

@_tool
def import_data(
    connection_id: str,
    index: str,
    file_path: str,
    format: str = "json",
    id_field: Optional[str] = None,
    overwrite_existing: bool = False,
    batch_size: Optional[int] = None,
    create_index: bool = False,
    mapping: Optional[Dict[str, Any]] = None,
    max_reported_errors: int = DEFAULT_MAX_REPORTED_ERRORS,
) -> Dict[str, Any]:
    """
    Import a file into an index in bulk batches.

    Malformed records and documents rejected by the cluster are reported
    individually; the rest of the file is still imported.

    Args:
        connection_id: Saved connection id
        index: Target index
        file_path: JSON array, NDJSON, CSV or XLSX file
        format: "json", "csv" or "excel"
        id_field: Field (dot path allowed) holding each document's id
        overwrite_existing: Replace documents with the same id instead of failing
        batch_size: Documents per bulk request (default 1000)
        create_index: Create the index first (an existing index is fine)
        mapping: Mappings used when creating the index
        max_reported_errors: Cap on the failures listed in the result

    Returns:
        total_processed, successful_imports, failed_imports and the failures
    """
    request = ImportRequest(
        index=index,
        file_path=file_path,
        format=FileFormat.parse(format),
        options=ImportOptions(
            id_field=id_field or None,
            overwrite_existing=overwrite_existing,
            batch_size=batch_size,
            create_index=create_index,
            mapping=mapping,
        ),
    )
    outcome = import_file(get_transport_client(connection_id), request)

    result = outcome.to_dict()
    limit = max(0, max_reported_errors)
    result["errors_truncated"] = len(result["errors"]) > limit
    result["errors"] = result["errors"][:limit]
    return result


@_tool
def export_search_results(
    connection_id: str,
    index: str,
    filename: str,
    format: str = "json",
    query: Optional[Dict[str, Any]] = None,
    sort: Optional[List[Dict[str, Any]]] = None,
    selected_fields: Optional[List[str]] = None,
    max_records: Optional[int] = None,
    page_size: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Export the documents matching a query to a file in the export directory.

    Args:
        connection_id: Saved connection id
        index: Index pattern
        filename: Output file name (extension added when missing)
        format: "json", "csv" or "excel"
        query: Query DSL (match_all when omitted)
        sort: Sort criteria
        selected_fields: Fields to export (dot paths); all fields when omitted
        max_records: Maximum documents to export (default 10000)
        page_size: Documents per search request (default 1000)

    Returns:
        success, file_path, total_records, pages_fetched and a message
    """
    request = ExportRequest(
        index=index,
        filename=filename,
        format=FileFormat.parse(format),
        query=query or {"match_all": {}},
        sort=sort,
        selected_fields=selected_fields or None,
        max_records=max_records,
        page_size=page_size,
    )
    return run_export(get_transport_client(connection_id), request).to_dict()


@_tool
def get_export_directory() -> Dict[str, Any]:
    """Directory that receives exported files."""
    return _ok(directory=str(configured_export_directory()), defaults=get_defaults())


def main() -> None:
    """Run the server over stdio."""
    level = get_environment_config()["logging"]["level"]
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting es-desk MCP server %s", __version__)
    mcp.run()


if __name__ == "__main__":
    main()
