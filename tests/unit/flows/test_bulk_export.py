"""
Unit tests for the bulk export flow.
"""

import csv
import json
from pathlib import Path

import pytest

from mcp_types.flows import ExportRequest, FileFormat
from tools.flows.bulk_export import collect_documents, resolve_export_path, run_export


@pytest.fixture
def search_index(mock_elasticsearch, hits_factory):
    """
    Serve `from`/`size` pages out of an index of `total` numbered hits.

    Each request body is recorded in `bodies`.
    """
    class Index:
        def __init__(self):
            self.total = 0
            self.bodies = []

        def __call__(self, index=None, body=None, **kwargs):
            self.bodies.append(body)
            start = body["from"]
            count = max(0, min(body["size"], self.total - start))
            return {
                "took": 1,
                "timed_out": False,
                "hits": {"hits": hits_factory(count, start=start)},
            }

    served = Index()
    mock_elasticsearch.search.side_effect = served
    return served


class TestCollectDocuments:
    """Pagination rules."""

    def test_stops_on_short_page(self, transport_client, search_index):
        search_index.total = 150

        page = collect_documents(transport_client, "products", max_records=1000, page_size=100)

        assert len(page.documents) == 150
        assert page.pages_fetched == 2
        assert [(b["from"], b["size"]) for b in search_index.bodies] == [(0, 100), (100, 100)]

    def test_cap_below_page_size(self, transport_client, search_index):
        search_index.total = 150

        page = collect_documents(transport_client, "products", max_records=50, page_size=100)

        assert len(page.documents) == 50
        assert page.pages_fetched == 1
        assert search_index.bodies[0]["size"] == 50

    def test_last_page_shrinks_to_remaining(self, transport_client, search_index):
        search_index.total = 150

        page = collect_documents(transport_client, "products", max_records=150, page_size=100)

        assert len(page.documents) == 150
        assert [(b["from"], b["size"]) for b in search_index.bodies] == [(0, 100), (100, 50)]

    def test_empty_first_page(self, transport_client, search_index):
        page = collect_documents(transport_client, "products", max_records=100, page_size=10)

        assert page.documents == []
        assert page.pages_fetched == 1

    def test_documents_keep_search_order(self, transport_client, search_index):
        search_index.total = 25

        page = collect_documents(transport_client, "products", max_records=25, page_size=10)

        assert [hit["_id"] for hit in page.documents] == [str(i) for i in range(25)]

    def test_stops_at_result_window(self, transport_client, search_index):
        search_index.total = 15000

        page = collect_documents(transport_client, "products", max_records=20000, page_size=10000)

        assert len(page.documents) == 10000
        assert page.pages_fetched == 1

    def test_requests_skip_total_tracking(self, transport_client, search_index):
        search_index.total = 1
        collect_documents(transport_client, "products", query={"term": {"n": 0}}, max_records=10)

        body = search_index.bodies[0]
        assert body["track_total_hits"] is False
        assert body["query"] == {"term": {"n": 0}}

    def test_zero_cap_issues_no_request(self, transport_client, search_index):
        page = collect_documents(transport_client, "products", max_records=0)

        assert page.documents == []
        assert search_index.bodies == []


class TestExportPaths:
    """Where export files land."""

    def test_extension_added(self, data_dir):
        path = resolve_export_path("report", FileFormat.EXCEL)
        assert path == data_dir / "exports" / "report.xlsx"

    def test_existing_extension_kept(self, data_dir):
        assert resolve_export_path("report.txt", FileFormat.CSV).name == "report.txt"

    def test_directories_stripped(self, data_dir):
        path = resolve_export_path("../../etc/report", FileFormat.JSON)
        assert path == data_dir / "exports" / "report.json"

    def test_empty_name(self, data_dir):
        with pytest.raises(ValueError):
            resolve_export_path("", FileFormat.JSON)


class TestRunExport:
    """Export to files."""

    def test_json_export(self, transport_client, search_index, data_dir):
        search_index.total = 3

        result = run_export(transport_client, ExportRequest(index="products", filename="all"))

        assert result.success is True
        assert result.total_records == 3
        assert result.pages_fetched == 1
        assert result.file_path == str(data_dir / "exports" / "all.json")

        written = json.loads(Path(result.file_path).read_text(encoding="utf-8"))
        assert [hit["_id"] for hit in written] == ["0", "1", "2"]

    def test_csv_with_selected_nested_field(self, transport_client, mock_elasticsearch, data_dir):
        mock_elasticsearch.search.return_value = {
            "took": 1,
            "hits": {"hits": [
                {"_id": "a", "_score": 2.0, "_source": {"user": {"name": "Alice", "age": 30}}},
            ]},
        }

        result = run_export(transport_client, ExportRequest(
            index="users",
            filename="users",
            format=FileFormat.CSV,
            selected_fields=["_id", "user.name"],
        ))

        with open(result.file_path, newline="", encoding="utf-8") as handle:
            rows = list(csv.reader(handle))
        assert rows == [["_id", "user.name"], ["a", "Alice"]]

    def test_no_matches_writes_nothing(self, transport_client, search_index, data_dir):
        result = run_export(transport_client, ExportRequest(
            index="products", filename="empty", format=FileFormat.CSV,
        ))

        assert result.success is False
        assert result.file_path is None
        assert result.total_records == 0
        assert result.message == "No documents matched the query"
        assert not (data_dir / "exports" / "empty.csv").exists()
