"""
Primitive index management operations for Elasticsearch.
"""

from typing import Dict, Any, List, Optional

from utils.transport import TransportClient
from utils.validation import validate_index_name, validate_index_pattern


ALIAS_ACTIONS = ("add", "remove", "remove_index")


def create_index(
    client: TransportClient,
    index: str,
    settings: Optional[Dict[str, Any]] = None,
    mappings: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Create an index.

    Args:
        client: Connection client
        index: New index name
        settings: Optional index settings
        mappings: Optional mappings

    Returns:
        Acknowledgement response

    Raises:
        ValueError: If the index name is invalid
        ElasticOperationError: e.g. a 400 when the index already exists
    """
    validate_index_name(index)
    body: Dict[str, Any] = {}
    if settings:
        body["settings"] = settings
    if mappings:
        body["mappings"] = mappings
    return client.create_index(index, body)


def delete_index(client: TransportClient, index: str) -> Dict[str, Any]:
    validate_index_name(index)
    return client.delete(f"/{index}")


def get_index_mapping(client: TransportClient, index: str) -> Dict[str, Any]:
    """
    Get field mappings for indices.

    Args:
        client: Connection client
        index: Index pattern to get mappings for

    Returns:
        Mappings keyed by concrete index name
    """
    validate_index_pattern(index)
    return client.get(f"/{index}/_mapping")


def _collect_fields(properties: Dict[str, Any], prefix: str, fields: set) -> None:
    for name, definition in properties.items():
        path = f"{prefix}.{name}" if prefix else name
        if not isinstance(definition, dict):
            continue
        if "type" in definition or "properties" not in definition:
            fields.add(path)
        if isinstance(definition.get("properties"), dict):
            _collect_fields(definition["properties"], path, fields)
        if isinstance(definition.get("fields"), dict):
            for sub_name in definition["fields"]:
                fields.add(f"{path}.{sub_name}")


def extract_field_names(mapping_response: Dict[str, Any]) -> List[str]:
    """
    List every field path in a `_mapping` response.

    Object fields contribute their children as dot paths; multi-fields
    (e.g. `title.keyword`) are included.

    Args:
        mapping_response: Raw `GET /<index>/_mapping` body

    Returns:
        Sorted unique field paths across all indices in the response
    """
    fields: set = set()
    for index_mapping in mapping_response.values():
        mappings = index_mapping.get("mappings", {}) if isinstance(index_mapping, dict) else {}
        properties = mappings.get("properties", {})
        if isinstance(properties, dict):
            _collect_fields(properties, "", fields)
    return sorted(fields)


def get_field_names(client: TransportClient, index: str) -> List[str]:
    return extract_field_names(get_index_mapping(client, index))


def get_index_settings(client: TransportClient, index: str) -> Dict[str, Any]:
    validate_index_pattern(index)
    return client.get(f"/{index}/_settings")


def update_index_settings(
    client: TransportClient,
    index: str,
    settings: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Update dynamic index settings.

    Args:
        client: Connection client
        index: Index pattern
        settings: Settings body, e.g. {"index": {"number_of_replicas": 1}}

    Returns:
        Acknowledgement response
    """
    validate_index_pattern(index)
    if not settings:
        raise ValueError("Settings cannot be empty")
    return client.put(f"/{index}/_settings", body=settings)


def get_aliases(client: TransportClient, index: Optional[str] = None) -> Dict[str, Any]:
    """Aliases for all indices, or for one index pattern."""
    if index:
        validate_index_pattern(index)
        return client.get(f"/{index}/_alias")
    return client.get("/_alias")


def manage_aliases(client: TransportClient, actions: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Apply alias actions atomically.

    Args:
        client: Connection client
        actions: e.g. [{"add": {"index": "logs-1", "alias": "logs"}}]

    Returns:
        Acknowledgement response

    Raises:
        ValueError: If an action is not add, remove or remove_index
    """
    if not actions:
        raise ValueError("At least one alias action is required")
    for action in actions:
        if not isinstance(action, dict) or len(action) != 1 or next(iter(action)) not in ALIAS_ACTIONS:
            raise ValueError(f"Invalid alias action: {action!r}")
    return client.post("/_aliases", body={"actions": actions})


def get_templates(client: TransportClient, name: Optional[str] = None) -> Dict[str, Any]:
    path = f"/_index_template/{name}" if name else "/_index_template"
    return client.get(path)


def put_template(client: TransportClient, name: str, body: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create or replace a composable index template.

    Args:
        client: Connection client
        name: Template name
        body: Template definition (index_patterns, template, priority, ...)

    Returns:
        Acknowledgement response
    """
    if not name:
        raise ValueError("Template name cannot be empty")
    if not body or "index_patterns" not in body:
        raise ValueError("Template body must define index_patterns")
    return client.put(f"/_index_template/{name}", body=body)


def delete_template(client: TransportClient, name: str) -> Dict[str, Any]:
    if not name:
        raise ValueError("Template name cannot be empty")
    return client.delete(f"/_index_template/{name}")
