"""
Input validation utilities.
"""

import re
from typing import Any, Optional
from urllib.parse import urlparse


def validate_index_pattern(pattern: str) -> None:
    """
    Validate an Elasticsearch index pattern used for reads.

    Comma-separated lists and wildcards are allowed.

    Args:
        pattern: Index pattern to validate

    Raises:
        ValueError: If pattern is invalid
    """
    if not pattern:
        raise ValueError("Index pattern cannot be empty")

    for part in pattern.split(","):
        part = part.strip()
        if not part:
            raise ValueError("Index pattern contains an empty element")
        if part.startswith("_") and part != "_all":
            raise ValueError("Index pattern cannot start with underscore")

        invalid_chars = re.findall(r'[^a-zA-Z0-9\-_.*:+]', part)
        if invalid_chars:
            raise ValueError(f"Invalid characters in index pattern: {invalid_chars}")


def validate_index_name(name: str) -> None:
    """
    Validate a concrete index name used for writes.

    Args:
        name: Index name

    Raises:
        ValueError: If the name breaks Elasticsearch naming rules
    """
    if not name:
        raise ValueError("Index name cannot be empty")
    if name in (".", ".."):
        raise ValueError("Index name cannot be '.' or '..'")
    if name != name.lower():
        raise ValueError("Index name must be lowercase")
    if name[0] in "-_+":
        raise ValueError("Index name cannot start with '-', '_' or '+'")
    invalid_chars = re.findall(r'[\\/*?"<>| ,#:]', name)
    if invalid_chars:
        raise ValueError(f"Invalid characters in index name: {invalid_chars}")
    if len(name.encode("utf-8")) > 255:
        raise ValueError("Index name cannot be longer than 255 bytes")


def validate_url(url: str) -> None:
    """
    Validate a cluster base URL.

    Raises:
        ValueError: If the URL is not http(s) with a host
    """
    parsed = urlparse(url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid Elasticsearch URL: {url!r}")


def validate_size(size: Optional[int], default: int, max_size: int = 10000) -> int:
    """
    Validate and clamp a batch or page size.

    Args:
        size: Requested size (None for the default)
        default: Size used when none is requested
        max_size: Maximum allowed size

    Returns:
        Valid size value
    """
    if size is None:
        size = default
    return clamp_value(int(size), min_value=1, max_value=max_size)


def clamp_value(value: Any, min_value: Any, max_value: Any) -> Any:
    """
    Clamp a value between min and max.

    Args:
        value: Value to clamp
        min_value: Minimum allowed value
        max_value: Maximum allowed value

    Returns:
        Clamped value
    """
    return max(min_value, min(value, max_value))
