"""
Primitive document operations for Elasticsearch.
"""

from typing import Dict, Any, List, Optional, Union
from urllib.parse import quote

from mcp_types.flows import BulkAction, BulkOperation
from utils.query_builder import build_bulk_body
from utils.transport import TransportClient
from utils.validation import validate_index_name, validate_index_pattern


def _doc_path(index: str, doc_id: str, endpoint: str = "_doc") -> str:
    return f"/{index}/{endpoint}/{quote(str(doc_id), safe='')}"


def create_document(
    client: TransportClient,
    index: str,
    document: Dict[str, Any],
    doc_id: Optional[str] = None,
    refresh: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Index a single document.

    With an id the document is stored under that id (replacing any existing
    one); without one the cluster assigns an id.

    Args:
        client: Connection client
        index: Target index
        document: Document source
        doc_id: Optional document id
        refresh: Optional refresh policy ("true", "false", "wait_for")

    Returns:
        Index response (_id, _version, result)
    """
    validate_index_name(index)
    params = {"refresh": refresh} if refresh else None

    if doc_id:
        return client.put(_doc_path(index, doc_id), body=document, params=params)
    return client.post(f"/{index}/_doc", body=document, params=params)


def get_document(client: TransportClient, index: str, doc_id: str) -> Dict[str, Any]:
    """
    Fetch one document by id.

    Raises:
        ElasticOperationError: NotFound if the document or index is missing
    """
    validate_index_pattern(index)
    return client.get(_doc_path(index, doc_id))


def update_document(
    client: TransportClient,
    index: str,
    doc_id: str,
    document: Dict[str, Any],
    refresh: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Apply a partial update to one document.

    Args:
        client: Connection client
        index: Target index
        doc_id: Document id
        document: Fields to merge into the stored source

    Returns:
        Update response
    """
    validate_index_name(index)
    params = {"refresh": refresh} if refresh else None
    return client.post(_doc_path(index, doc_id, "_update"), body={"doc": document}, params=params)


def delete_document(
    client: TransportClient,
    index: str,
    doc_id: str,
    refresh: Optional[str] = None,
) -> Dict[str, Any]:
    validate_index_name(index)
    params = {"refresh": refresh} if refresh else None
    return client.delete(_doc_path(index, doc_id), params=params)


def bulk_operations(
    client: TransportClient,
    operations: List[Union[BulkOperation, Dict[str, Any]]],
) -> Dict[str, Any]:
    """
    Submit user-assembled bulk operations in one request.

    Args:
        client: Connection client
        operations: BulkOperations, or dicts with action, index, id and document

    Returns:
        Dict with took, errors and the raw items array

    Raises:
        ValueError: If an operation is malformed
    """
    if not operations:
        raise ValueError("At least one bulk operation is required")

    parsed: List[BulkOperation] = []
    for position, item in enumerate(operations, start=1):
        try:
            operation = item if isinstance(item, BulkOperation) else BulkOperation.from_dict(item)
        except (KeyError, ValueError) as e:
            raise ValueError(f"Bulk operation {position} is invalid: {e}") from e

        validate_index_name(operation.index)
        if operation.action in (BulkAction.UPDATE, BulkAction.DELETE) and operation.id is None:
            raise ValueError(f"Bulk operation {position} ({operation.action.value}) requires an id")
        parsed.append(operation)

    response = client.bulk_response(build_bulk_body(parsed))
    return {
        "took": response.get("took", 0),
        "errors": response.get("errors", False),
        "items": response.get("items", []),
    }
