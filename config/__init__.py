"""
Configuration management for the ES Desk MCP server.
"""

from .environments import (
    MAX_RESULT_WINDOW,
    get_defaults,
    get_environment_config,
    get_export_directory,
    get_storage_config,
    get_transport_config,
)

__all__ = [
    "MAX_RESULT_WINDOW",
    "get_defaults",
    "get_environment_config",
    "get_export_directory",
    "get_storage_config",
    "get_transport_config",
]
