"""
Pytest configuration and fixtures for ES Desk MCP tests.
"""

import json
import os
import sys
from typing import Any, Dict, List
from unittest.mock import Mock

import pytest
from elastic_transport import ApiResponseMeta, HttpHeaders, NodeConfig
from elasticsearch import ApiError

# Add the project root to the Python path
project_root = os.path.dirname(os.path.dirname(__file__))
sys.path.insert(0, project_root)

from mcp_types.connections import ConnectionProfile  # noqa: E402
from utils.connection import reset_connection_store  # noqa: E402
from utils.crypto import CredentialCipher  # noqa: E402
from utils.transport import TransportClient  # noqa: E402


TEST_KEY = bytes(range(32))


def make_hits(count: int, start: int = 0) -> List[Dict[str, Any]]:
    """Search hits numbered from `start`."""
    return [
        {
            "_index": "products",
            "_id": str(i),
            "_score": 1.0,
            "_source": {"n": i, "user": {"name": f"user-{i}"}},
        }
        for i in range(start, start + count)
    ]


def parse_bulk_body(ndjson: str) -> List[Dict[str, Any]]:
    """
    Split a bulk body into operations.

    Returns:
        [{"action", "meta", "source"}] in request order
    """
    lines = [json.loads(line) for line in ndjson.splitlines() if line.strip()]
    operations = []
    i = 0
    while i < len(lines):
        action, meta = next(iter(lines[i].items()))
        source = None
        if action != "delete":
            source = lines[i + 1]
            i += 1
        operations.append({"action": action, "meta": meta, "source": source})
        i += 1
    return operations


@pytest.fixture
def mock_elasticsearch():
    """Mock Elasticsearch client for testing."""
    mock_es = Mock()

    mock_es.search.return_value = {
        "took": 5,
        "timed_out": False,
        "hits": {
            "total": {"value": 100, "relation": "eq"},
            "hits": [
                {
                    "_index": "products",
                    "_id": "1",
                    "_score": 1.0,
                    "_source": {"name": "Widget", "price": 9.5},
                }
            ],
        },
    }

    mock_es.info.return_value = {
        "name": "node-1",
        "cluster_name": "test-cluster",
        "version": {"number": "8.13.0"},
        "tagline": "You Know, for Search",
    }

    mock_es.perform_request.return_value = {"acknowledged": True}
    mock_es.bulk.return_value = {"took": 3, "errors": False, "items": []}

    return mock_es


@pytest.fixture
def profile():
    """A saved connection with credentials."""
    return ConnectionProfile(
        id="conn-1",
        name="Local",
        url="http://localhost:9200",
        username="elastic",
        password="changeme",
        headers={"X-Team": "search"},
    )


@pytest.fixture
def transport_client(profile, mock_elasticsearch):
    """TransportClient bound to the mock Elasticsearch client."""
    return TransportClient(profile, es=mock_elasticsearch, timeout_ms=5000, verify_certs=False)


@pytest.fixture
def cipher():
    """Cipher with a fixed test key."""
    return CredentialCipher(TEST_KEY)


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Point storage and exports at a temporary directory."""
    monkeypatch.setenv("ES_DESK_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("ES_DESK_EXPORT_DIR", str(tmp_path / "exports"))
    reset_connection_store()
    yield tmp_path
    reset_connection_store()


@pytest.fixture
def make_api_error():
    """Factory for `elasticsearch.ApiError` with a status and body."""
    def factory(status: int, body: Any = None, message: str = "api error") -> ApiError:
        meta = ApiResponseMeta(
            status=status,
            http_version="1.1",
            headers=HttpHeaders(),
            duration=0.0,
            node=NodeConfig("http", "localhost", 9200),
        )
        return ApiError(message, meta=meta, body=body)

    return factory


@pytest.fixture
def hits_factory():
    """`make_hits` as a fixture."""
    return make_hits


@pytest.fixture
def bulk_body_parser():
    """`parse_bulk_body` as a fixture."""
    return parse_bulk_body
