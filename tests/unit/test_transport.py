"""
Unit tests for the per-connection transport.
"""

from unittest.mock import patch

import pytest
from elasticsearch import ConnectionError as ESConnectionError

from mcp_types.connections import ConnectionProfile
from utils.errors import ElasticOperationError, ErrorType
from utils.transport import JSON_HEADERS, TransportClient, build_elasticsearch


class TestBuildElasticsearch:
    """Client construction from a profile."""

    @patch("utils.transport.Elasticsearch")
    def test_basic_auth_and_headers(self, mock_cls, profile):
        build_elasticsearch(profile, timeout_ms=5000, verify_certs=True)

        kwargs = mock_cls.call_args.kwargs
        assert kwargs["hosts"] == ["http://localhost:9200"]
        assert kwargs["basic_auth"] == ("elastic", "changeme")
        assert kwargs["headers"] == {"X-Team": "search"}
        assert kwargs["request_timeout"] == 5.0
        assert kwargs["verify_certs"] is True
        assert "ssl_show_warn" not in kwargs

    @patch("utils.transport.Elasticsearch")
    def test_no_auth_without_password(self, mock_cls):
        profile = ConnectionProfile(id="c", name="n", url="http://es:9200", username="elastic")
        build_elasticsearch(profile, timeout_ms=30000, verify_certs=False)

        kwargs = mock_cls.call_args.kwargs
        assert "basic_auth" not in kwargs
        assert "headers" not in kwargs
        assert kwargs["ssl_show_warn"] is False

    @patch("utils.transport.Elasticsearch")
    def test_defaults_from_environment(self, mock_cls, profile, monkeypatch):
        monkeypatch.setenv("ES_DESK_TIMEOUT", "1200")
        monkeypatch.setenv("ES_DESK_VERIFY_CERTS", "false")

        client = TransportClient(profile)

        assert client.timeout_ms == 1200
        assert mock_cls.call_args.kwargs["verify_certs"] is False


class TestRequests:
    """REST verbs through perform_request."""

    def test_get_without_body(self, transport_client, mock_elasticsearch):
        transport_client.get("_cluster/health", params={"level": "indices"})

        mock_elasticsearch.perform_request.assert_called_once_with(
            "GET",
            "/_cluster/health",
            params={"level": "indices"},
            headers={"accept": "application/json"},
            body=None,
        )

    def test_put_with_json_body(self, transport_client, mock_elasticsearch):
        result = transport_client.put("/products", body={"settings": {}})

        assert result == {"acknowledged": True}
        args, kwargs = mock_elasticsearch.perform_request.call_args
        assert args == ("PUT", "/products")
        assert kwargs["headers"] == JSON_HEADERS
        assert kwargs["body"] == {"settings": {}}

    def test_response_body_is_unwrapped(self, transport_client, mock_elasticsearch):
        class FakeApiResponse:
            body = {"status": "green"}

        mock_elasticsearch.perform_request.return_value = FakeApiResponse()
        assert transport_client.get("/_cluster/health") == {"status": "green"}

    def test_http_error_is_typed(self, transport_client, mock_elasticsearch, make_api_error):
        mock_elasticsearch.perform_request.side_effect = make_api_error(
            404, {"error": {"type": "index_not_found_exception", "reason": "no such index [missing]"}},
        )

        with pytest.raises(ElasticOperationError) as exc_info:
            transport_client.get("/missing/_mapping")

        assert exc_info.value.details.code == "INDEX_NOT_FOUND"
        assert exc_info.value.details.error_type == ErrorType.NOT_FOUND

    def test_connection_failure_is_recoverable(self, transport_client, mock_elasticsearch):
        mock_elasticsearch.info.side_effect = ESConnectionError("Connection refused")

        with pytest.raises(ElasticOperationError) as exc_info:
            transport_client.info()

        assert exc_info.value.details.error_type == ErrorType.CONNECTION
        assert exc_info.value.recoverable is True


class TestBulk:
    """Bulk submission."""

    def test_returns_items_unmodified(self, transport_client, mock_elasticsearch):
        items = [
            {"create": {"_id": "1", "status": 201}},
            {"create": {"_id": "2", "status": 409, "error": {"type": "version_conflict_engine_exception"}}},
        ]
        mock_elasticsearch.bulk.return_value = {"took": 2, "errors": True, "items": items}

        assert transport_client.bulk('{"create":{"_index":"p"}}\n{}\n') == items
        mock_elasticsearch.bulk.assert_called_once_with(operations='{"create":{"_index":"p"}}\n{}\n')

    def test_search_passes_index_and_body(self, transport_client, mock_elasticsearch):
        transport_client.search(index="products", body={"size": 1})
        mock_elasticsearch.search.assert_called_once_with(index="products", body={"size": 1})

    def test_profile_is_snapshot(self, profile, mock_elasticsearch):
        client = TransportClient(profile, es=mock_elasticsearch)
        profile.headers["X-Later"] = "1"
        assert "X-Later" not in client.profile.headers
