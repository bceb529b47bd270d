"""
Primitive layer type definitions.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class ElasticQuery:
    """Base query structure for Elasticsearch."""
    index: str
    query: Dict[str, Any] = field(default_factory=lambda: {"match_all": {}})
    size: int = 10
    from_: int = 0
    sort: Optional[List[Dict[str, Any]]] = None
    _source: Union[bool, List[str], Dict[str, Any]] = True
    aggregations: Optional[Dict[str, Any]] = None
    track_total_hits: Union[bool, int] = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to Elasticsearch query dict."""
        body: Dict[str, Any] = {
            "query": self.query,
            "size": self.size,
            "from": self.from_,
        }

        if self.sort:
            body["sort"] = self.sort
        if self._source is not True:
            body["_source"] = self._source
        if self.aggregations:
            body["aggs"] = self.aggregations
        if self.track_total_hits is not True:
            body["track_total_hits"] = self.track_total_hits

        return body


@dataclass
class ElasticResponse:
    """Elasticsearch search response."""
    took: int
    timed_out: bool
    total: int
    hits: List[Dict[str, Any]]
    aggregations: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ElasticResponse":
        """Create from Elasticsearch response dict."""
        hits_data = data.get("hits", {})
        total = hits_data.get("total", 0)
        if isinstance(total, dict):
            total = total.get("value", 0)

        return cls(
            took=data.get("took", 0),
            timed_out=data.get("timed_out", False),
            total=total or 0,
            hits=[hit for hit in hits_data.get("hits", [])],
            aggregations=data.get("aggregations"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "took": self.took,
            "timed_out": self.timed_out,
            "total": self.total,
            "hits": self.hits,
            "aggregations": self.aggregations,
        }


@dataclass
class AggregationConfig:
    """One node of a user-assembled aggregation tree."""
    name: str
    type: str
    # Declared before `field`, which shadows dataclasses.field in this class body
    sub_aggregations: List["AggregationConfig"] = field(default_factory=list)
    field: Optional[str] = None
    params: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AggregationConfig":
        return cls(
            name=data.get("name") or data["id"],
            type=data["type"],
            field=data.get("field") or None,
            params=data.get("params"),
            sub_aggregations=[
                cls.from_dict(sub) for sub in data.get("sub_aggregations") or []
            ],
        )


@dataclass
class AggregationQuery:
    """Aggregation query structure."""
    index: str
    query: Dict[str, Any] = field(default_factory=lambda: {"match_all": {}})
    aggregations: Dict[str, Any] = field(default_factory=dict)
    size: int = 0  # Don't return documents by default

    def to_dict(self) -> Dict[str, Any]:
        """Convert to Elasticsearch query dict."""
        return {
            "query": self.query,
            "aggs": self.aggregations,
            "size": self.size,
        }


@dataclass
class AggregationResponse:
    """Elasticsearch aggregation response."""
    took: int
    timed_out: bool
    hits: Dict[str, Any]
    aggregations: Dict[str, Any]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AggregationResponse":
        """Create from Elasticsearch response dict."""
        return cls(
            took=data.get("took", 0),
            timed_out=data.get("timed_out", False),
            hits=data.get("hits", {}),
            aggregations=data.get("aggregations", {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "took": self.took,
            "timed_out": self.timed_out,
            "hits": self.hits,
            "aggregations": self.aggregations,
        }


def _to_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass
class IndexInfo:
    """One row of `_cat/indices`."""
    name: str
    health: str
    status: str
    uuid: str
    primary_shards: int
    replica_shards: int
    docs_count: Optional[int] = None
    docs_deleted: Optional[int] = None
    store_size: Optional[str] = None

    @classmethod
    def from_cat(cls, row: Dict[str, Any]) -> "IndexInfo":
        """Create from a `_cat/indices?format=json` row (all values are strings)."""
        store_size = row.get("store.size")
        return cls(
            name=row.get("index", ""),
            health=row.get("health", ""),
            status=row.get("status", ""),
            uuid=row.get("uuid", ""),
            primary_shards=_to_int(row.get("pri")) or 0,
            replica_shards=_to_int(row.get("rep")) or 0,
            docs_count=_to_int(row.get("docs.count")),
            docs_deleted=_to_int(row.get("docs.deleted")),
            store_size=str(store_size) if store_size is not None else None,
        )


@dataclass
class ClusterHealth:
    """Cluster health summary."""
    cluster_name: str
    status: str
    timed_out: bool
    number_of_nodes: int
    number_of_data_nodes: int
    active_primary_shards: int
    active_shards: int
    relocating_shards: int
    initializing_shards: int
    unassigned_shards: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClusterHealth":
        """Create from `_cluster/health` response."""
        return cls(
            cluster_name=data.get("cluster_name", ""),
            status=data.get("status", ""),
            timed_out=data.get("timed_out", False),
            number_of_nodes=data.get("number_of_nodes", 0),
            number_of_data_nodes=data.get("number_of_data_nodes", 0),
            active_primary_shards=data.get("active_primary_shards", 0),
            active_shards=data.get("active_shards", 0),
            relocating_shards=data.get("relocating_shards", 0),
            initializing_shards=data.get("initializing_shards", 0),
            unassigned_shards=data.get("unassigned_shards", 0),
        )


@dataclass
class SqlResult:
    """One page of an SQL query."""
    columns: List[Dict[str, str]]
    rows: List[List[Any]]
    cursor: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SqlResult":
        return cls(
            columns=[
                {"name": column.get("name", ""), "type": column.get("type", "")}
                for column in data.get("columns", [])
            ],
            rows=data.get("rows", []),
            cursor=data.get("cursor"),
        )
