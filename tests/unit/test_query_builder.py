"""
Unit tests for request building, response parsing and validation helpers.
"""

import json

import pytest

from mcp_types.flows import BulkAction, BulkOperation
from mcp_types.primitives import AggregationConfig
from utils.query_builder import build_aggregations, build_bulk_body, build_sql_body
from utils.response_parser import parse_bulk_item, parse_total
from utils.validation import validate_index_name, validate_index_pattern, validate_size, validate_url


class TestBuildBulkBody:
    """Newline-delimited bulk bodies."""

    def test_each_action_shape(self):
        body = build_bulk_body([
            BulkOperation(BulkAction.INDEX, "p", "1", {"a": 1}),
            BulkOperation(BulkAction.CREATE, "p", None, {"a": 2}),
            BulkOperation(BulkAction.UPDATE, "p", "3", {"a": 3}),
            BulkOperation(BulkAction.DELETE, "p", "4"),
        ])

        assert body.endswith("\n")
        lines = [json.loads(line) for line in body.splitlines()]
        assert lines == [
            {"index": {"_index": "p", "_id": "1"}},
            {"a": 1},
            {"create": {"_index": "p"}},
            {"a": 2},
            {"update": {"_index": "p", "_id": "3"}},
            {"doc": {"a": 3}},
            {"delete": {"_index": "p", "_id": "4"}},
        ]

    def test_non_ascii_kept(self):
        body = build_bulk_body([BulkOperation(BulkAction.INDEX, "p", None, {"name": "café"})])
        assert "café" in body

    def test_empty(self):
        assert build_bulk_body([]) == ""

    def test_operation_from_dict(self):
        operation = BulkOperation.from_dict({"action": "DELETE", "index": "p", "id": "9"})
        assert operation.action == BulkAction.DELETE
        assert operation.document is None


class TestBuildAggregations:
    """Aggregation trees."""

    def test_leaf_defaults(self):
        first = AggregationConfig(name="a", type="max", field="price")
        second = AggregationConfig(name="b", type="min")

        assert first.sub_aggregations == []
        assert first.sub_aggregations is not second.sub_aggregations
        assert second.field is None
        assert build_aggregations([first]) == {"a": {"max": {"field": "price"}}}

    def test_nested_tree(self):
        configs = [
            AggregationConfig(
                name="by_category",
                type="terms",
                field="category.keyword",
                params={"size": 5},
                sub_aggregations=[AggregationConfig(name="avg_price", type="avg", field="price")],
            )
        ]

        assert build_aggregations(configs) == {
            "by_category": {
                "terms": {"field": "category.keyword", "size": 5},
                "aggs": {"avg_price": {"avg": {"field": "price"}}},
            }
        }

    def test_from_dict(self):
        config = AggregationConfig.from_dict({
            "name": "per_day",
            "type": "date_histogram",
            "field": "@timestamp",
            "params": {"calendar_interval": "day"},
            "sub_aggregations": [{"name": "n", "type": "value_count", "field": "_id"}],
        })

        assert config.sub_aggregations[0].type == "value_count"
        assert build_aggregations([config])["per_day"]["date_histogram"]["calendar_interval"] == "day"


class TestSqlBody:

    def test_optional_keys_omitted(self):
        assert build_sql_body("SELECT 1") == {"query": "SELECT 1"}

    def test_all_keys(self):
        assert build_sql_body("SELECT 1", 100, "30s", "1m") == {
            "query": "SELECT 1",
            "fetch_size": 100,
            "request_timeout": "30s",
            "page_timeout": "1m",
        }


class TestParseBulkItem:
    """Per-item bulk results."""

    def test_success(self):
        assert parse_bulk_item({"create": {"_id": "1", "status": 201}}) == (True, None)

    def test_error_reason(self):
        item = {"create": {"status": 409, "error": {"type": "version_conflict_engine_exception", "reason": "[1]: version conflict"}}}
        assert parse_bulk_item(item) == (False, "[1]: version conflict")

    def test_error_type_fallback(self):
        item = {"index": {"status": 400, "error": {"type": "mapper_parsing_exception"}}}
        assert parse_bulk_item(item) == (False, "mapper_parsing_exception")

    def test_error_without_details(self):
        assert parse_bulk_item({"index": {"status": 500, "error": {}}}) == (False, "Unknown error")

    def test_malformed_item(self):
        ok, reason = parse_bulk_item("garbage")
        assert ok is False
        assert reason


class TestParseTotal:

    def test_object_and_integer_forms(self):
        assert parse_total({"hits": {"total": {"value": 12, "relation": "eq"}}}) == 12
        assert parse_total({"hits": {"total": 7}}) == 7
        assert parse_total({}) == 0


class TestUtilsExports:

    def test_every_export_resolves(self):
        import utils

        missing = [name for name in utils.__all__ if not hasattr(utils, name)]
        assert missing == []
        assert "parse_total" in utils.__all__
        assert "parse_bulk_item" in utils.__all__


class TestValidation:
    """Input validation."""

    @pytest.mark.parametrize("pattern", ["logs-*", "a,b", "_all", "logs-2024.01.*"])
    def test_valid_patterns(self, pattern):
        validate_index_pattern(pattern)

    @pytest.mark.parametrize("pattern", ["", "_internal", "a,,b", "bad index"])
    def test_invalid_patterns(self, pattern):
        with pytest.raises(ValueError):
            validate_index_pattern(pattern)

    @pytest.mark.parametrize("name", ["Upper", "_x", "-x", "a*b", "a,b", "..", "a b"])
    def test_invalid_index_names(self, name):
        with pytest.raises(ValueError):
            validate_index_name(name)

    def test_valid_index_name(self):
        validate_index_name("products-2024.01")

    @pytest.mark.parametrize("url", ["localhost:9200", "ftp://es:21", "http://", ""])
    def test_invalid_urls(self, url):
        with pytest.raises(ValueError):
            validate_url(url)

    def test_validate_size(self):
        assert validate_size(None, 1000) == 1000
        assert validate_size(0, 1000) == 1
        assert validate_size(50000, 1000, max_size=10000) == 10000
