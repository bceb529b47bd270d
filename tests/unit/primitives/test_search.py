"""
Unit tests for primitive search operations.
"""

import pytest

from tools.primitives.search import search_documents
from mcp_types.primitives import ElasticResponse


class TestSearchDocuments:
    """Test cases for search_documents function."""

    def test_search_basic_query(self, transport_client, mock_elasticsearch):
        """Test basic search functionality."""
        result = search_documents(
            transport_client,
            index="products",
            query={"match": {"name": "widget"}},
            size=10,
        )

        assert isinstance(result, ElasticResponse)
        assert result.took == 5
        assert result.timed_out is False
        assert result.total == 100
        assert len(result.hits) == 1

        mock_elasticsearch.search.assert_called_once()
        call_args = mock_elasticsearch.search.call_args
        assert call_args[1]["index"] == "products"
        assert call_args[1]["body"]["query"] == {"match": {"name": "widget"}}

    def test_default_query_is_match_all(self, transport_client, mock_elasticsearch):
        search_documents(transport_client, index="products")

        body = mock_elasticsearch.search.call_args[1]["body"]
        assert body["query"] == {"match_all": {}}
        assert "_source" not in body

    def test_search_with_pagination(self, transport_client, mock_elasticsearch):
        """Test search with pagination parameters."""
        search_documents(transport_client, index="logs-*", size=50, from_=20)

        body = mock_elasticsearch.search.call_args[1]["body"]
        assert body["size"] == 50
        assert body["from"] == 20

    def test_search_with_sort_and_source(self, transport_client, mock_elasticsearch):
        sort_criteria = [{"@timestamp": {"order": "desc"}}]

        search_documents(transport_client, index="logs-*", sort=sort_criteria, _source=["message"])

        body = mock_elasticsearch.search.call_args[1]["body"]
        assert body["sort"] == sort_criteria
        assert body["_source"] == ["message"]

    def test_size_clamped(self, transport_client, mock_elasticsearch):
        search_documents(transport_client, index="logs-*", size=50000, from_=-5)

        body = mock_elasticsearch.search.call_args[1]["body"]
        assert body["size"] == 10000
        assert body["from"] == 0

    def test_size_zero_allowed(self, transport_client, mock_elasticsearch):
        search_documents(transport_client, index="logs-*", size=0)
        assert mock_elasticsearch.search.call_args[1]["body"]["size"] == 0

    def test_invalid_index_pattern(self, transport_client, mock_elasticsearch):
        with pytest.raises(ValueError, match="Index pattern cannot be empty"):
            search_documents(transport_client, index="")

        mock_elasticsearch.search.assert_not_called()

    def test_legacy_total_format(self, transport_client, mock_elasticsearch):
        mock_elasticsearch.search.return_value = {"took": 1, "hits": {"total": 3, "hits": []}}

        assert search_documents(transport_client, index="old").total == 3
