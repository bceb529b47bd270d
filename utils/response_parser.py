"""
Response parsing utilities for Elasticsearch.
"""

from typing import Dict, Any, Optional, Tuple


def parse_total(response: Dict[str, Any]) -> int:
    """Total hit count, for both the 7.x object and the legacy integer form."""
    total = response.get("hits", {}).get("total", 0)
    if isinstance(total, dict):
        total = total.get("value", 0)
    return int(total or 0)


def parse_bulk_item(item: Any) -> Tuple[bool, Optional[str]]:
    """
    Interpret one entry of a bulk response `items` array.

    Each item is keyed by its action, e.g. `{"create": {"status": 201, ...}}`.

    Args:
        item: Raw item

    Returns:
        (succeeded, error reason)
    """
    if not isinstance(item, dict) or not item:
        return False, "Malformed bulk response item"

    for result in item.values():
        if isinstance(result, dict) and "error" in result:
            error = result["error"]
            if isinstance(error, dict):
                reason = error.get("reason") or error.get("type") or "Unknown error"
            else:
                reason = str(error) if error else "Unknown error"
            return False, reason

    return True, None
