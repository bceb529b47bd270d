"""
Unit tests for primitive cluster operations.
"""

from tools.primitives import cluster
from mcp_types.primitives import ClusterHealth


HEALTH = {
    "cluster_name": "test-cluster",
    "status": "yellow",
    "timed_out": False,
    "number_of_nodes": 1,
    "number_of_data_nodes": 1,
    "active_primary_shards": 5,
    "active_shards": 5,
    "relocating_shards": 0,
    "initializing_shards": 0,
    "unassigned_shards": 5,
}


class TestConnectionProbe:
    """Connection testing."""

    def test_merges_info_and_health(self, transport_client, mock_elasticsearch):
        mock_elasticsearch.perform_request.return_value = HEALTH

        result = cluster.test_connection(transport_client)

        assert result["version"]["number"] == "8.13.0"
        assert result["status"] == "yellow"
        assert result["number_of_nodes"] == 1

    def test_health_forbidden_still_succeeds(self, transport_client, mock_elasticsearch, make_api_error):
        mock_elasticsearch.perform_request.side_effect = make_api_error(
            403, {"error": {"type": "security_exception", "reason": "action [cluster:monitor/health] is unauthorized"}},
        )

        result = cluster.test_connection(transport_client)

        assert result["cluster_name"] == "test-cluster"
        assert "status" not in result


class TestClusterInfo:
    """Health, indices and nodes."""

    def test_cluster_health(self, transport_client, mock_elasticsearch):
        mock_elasticsearch.perform_request.return_value = HEALTH

        health = cluster.get_cluster_health(transport_client)

        assert isinstance(health, ClusterHealth)
        assert health.status == "yellow"
        assert health.unassigned_shards == 5

    def test_list_indices(self, transport_client, mock_elasticsearch):
        mock_elasticsearch.perform_request.return_value = [
            {"health": "green", "status": "open", "index": "zeta", "uuid": "u2",
             "pri": "1", "rep": "0", "docs.count": "10", "docs.deleted": "0", "store.size": "2048"},
            {"health": "yellow", "status": "open", "index": "alpha", "uuid": "u1",
             "pri": "1", "rep": "1", "docs.count": None, "docs.deleted": None, "store.size": None},
        ]

        indices = cluster.list_indices(transport_client)

        assert [info.name for info in indices] == ["alpha", "zeta"]
        assert indices[1].docs_count == 10
        assert indices[1].store_size == "2048"
        assert indices[0].docs_count is None

        args, kwargs = mock_elasticsearch.perform_request.call_args
        assert args[1] == "/_cat/indices"
        assert kwargs["params"] == {"format": "json", "bytes": "b"}

    def test_list_indices_with_pattern(self, transport_client, mock_elasticsearch):
        mock_elasticsearch.perform_request.return_value = []

        assert cluster.list_indices(transport_client, "logs-*") == []
        assert mock_elasticsearch.perform_request.call_args[0][1] == "/_cat/indices/logs-*"

    def test_nodes(self, transport_client, mock_elasticsearch):
        mock_elasticsearch.perform_request.return_value = {"nodes": {}}

        assert cluster.get_nodes_info(transport_client) == {"nodes": {}}
        assert mock_elasticsearch.perform_request.call_args[0][1] == "/_nodes"

        cluster.get_nodes_stats(transport_client)
        assert mock_elasticsearch.perform_request.call_args[0][1] == "/_nodes/stats"
