"""
Environment configuration management.
"""

import os
import sys
from pathlib import Path
from typing import Dict, Any


APP_NAME = "es-desk"

# Elasticsearch rejects from/size requests beyond this window by default
MAX_RESULT_WINDOW = 10000


def _default_data_dir() -> Path:
    """Per-user application data directory."""
    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / APP_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME

    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg) / APP_NAME
    return Path.home() / ".local" / "share" / APP_NAME


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


def get_environment_config() -> Dict[str, Any]:
    """
    Build the server configuration.

    Values are read from environment variables on every call so that a
    `.env` file loaded at startup, or a test override, is always honoured.

    Returns:
        Environment configuration dictionary
    """
    data_dir = Path(os.getenv("ES_DESK_DATA_DIR") or _default_data_dir())
    export_dir = Path(
        os.getenv("ES_DESK_EXPORT_DIR")
        or Path.home() / "Documents" / "ES_Client_Exports"
    )

    return {
        "storage": {
            "data_dir": data_dir,
            "connections_file": data_dir / "connections.json",
            "key_file": data_dir / ".key",
        },
        "transport": {
            "timeout_ms": _env_int("ES_DESK_TIMEOUT", 30000),
            "verify_certs": _env_bool("ES_DESK_VERIFY_CERTS", True),
        },
        "defaults": {
            "batch_size": _env_int("ES_DESK_BATCH_SIZE", 1000),
            "page_size": _env_int("ES_DESK_PAGE_SIZE", 1000),
            "max_export_records": _env_int("ES_DESK_MAX_EXPORT_RECORDS", 10000),
            "max_batch_size": 10000,
            "max_page_size": MAX_RESULT_WINDOW,
            "csv_header_sample": 10,
        },
        "export": {
            "directory": export_dir,
        },
        "logging": {
            "level": os.getenv("ES_DESK_LOG_LEVEL", "INFO").upper(),
        },
    }


def get_storage_config() -> Dict[str, Any]:
    """Paths of the connection store and master key."""
    return get_environment_config()["storage"]


def get_transport_config() -> Dict[str, Any]:
    """Timeout and TLS settings applied to every Elasticsearch client."""
    return get_environment_config()["transport"]


def get_defaults() -> Dict[str, Any]:
    """
    Get pipeline defaults and limits.

    Returns:
        Dictionary of batch/page sizes and caps
    """
    return get_environment_config()["defaults"]


def get_export_directory() -> Path:
    """Directory that receives exported files."""
    return get_environment_config()["export"]["directory"]
