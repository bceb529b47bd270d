"""
Primitive cluster operations for Elasticsearch.
"""

import logging
from typing import Dict, Any, List, Optional

from mcp_types.primitives import ClusterHealth, IndexInfo
from utils.errors import ElasticOperationError
from utils.transport import TransportClient


logger = logging.getLogger(__name__)


def test_connection(client: TransportClient) -> Dict[str, Any]:
    """
    Probe a cluster.

    Reads the root endpoint and, when permitted, merges in cluster health.
    A user without the monitor privilege still gets a successful probe.

    Args:
        client: Client for the connection to test

    Returns:
        Root endpoint info (name, cluster_name, version) plus health keys

    Raises:
        ElasticOperationError: If the root endpoint cannot be read
    """
    info = dict(client.info())
    try:
        health = client.get("/_cluster/health")
    except ElasticOperationError as e:
        logger.debug("Cluster health unavailable during connection test: %s", e.details.code)
    else:
        if isinstance(health, dict):
            info.update(health)
    return info


def get_cluster_health(client: TransportClient) -> ClusterHealth:
    """
    Get cluster health.

    Args:
        client: Connection client

    Returns:
        ClusterHealth summary
    """
    return ClusterHealth.from_dict(client.get("/_cluster/health"))


def list_indices(client: TransportClient, pattern: Optional[str] = None) -> List[IndexInfo]:
    """
    List indices with their document counts and sizes.

    Args:
        client: Connection client
        pattern: Optional index pattern to restrict the listing

    Returns:
        IndexInfo rows sorted by index name
    """
    path = f"/_cat/indices/{pattern}" if pattern else "/_cat/indices"
    rows = client.get(path, params={"format": "json", "bytes": "b"})
    indices = [IndexInfo.from_cat(row) for row in rows or []]
    return sorted(indices, key=lambda info: info.name)


def get_nodes_info(client: TransportClient) -> Dict[str, Any]:
    return client.get("/_nodes")


def get_nodes_stats(client: TransportClient) -> Dict[str, Any]:
    return client.get("/_nodes/stats")
