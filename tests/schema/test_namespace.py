"""Tests for db_schema_sync.schema.namespace -- namespace resolution."""

import re

import pytest

from db_schema_sync.errors import WatcherSetupError
from db_schema_sync.schema import NamespaceResolver


class TestResolve:
    def test_regexp_group_lower_cased(self):
        resolver = NamespaceResolver.from_pattern(r"([^/\\]+)\.def$")
        assert resolver.resolve("/work/schemas/Sales.def") == "sales"

    def test_no_match_falls_back_to_lower_cased_path(self):
        resolver = NamespaceResolver.from_pattern(r"([^/\\]+)\.def$")
        assert resolver.resolve("/Work/Schemas/Sales.json") == "/work/schemas/sales.json"

    def test_no_regexp_uses_lower_cased_path(self):
        resolver = NamespaceResolver.from_pattern(None)
        assert resolver.resolve("/Work/Sales.def") == "/work/sales.def"

    def test_regexp_searches_anywhere_in_path(self):
        resolver = NamespaceResolver.from_pattern(r"db/(\w+)/")
        assert resolver.resolve("/repo/db/Inventory/tables.def") == "inventory"

    def test_compiled_pattern_accepted(self):
        resolver = NamespaceResolver.from_pattern(re.compile(r"(\w+)\.def$"))
        assert resolver.resolve("x/Crm.def") == "crm"

    def test_unmatched_optional_group_falls_back(self):
        resolver = NamespaceResolver.from_pattern(r"(?:db_(\w+))?\.def$")
        assert resolver.resolve("/a/Other.def") == "/a/other.def"

    def test_deterministic(self):
        resolver = NamespaceResolver.from_pattern(r"([^/\\]+)\.def$")
        path = "/work/schemas/Sales.def"
        assert {resolver.resolve(path) for _ in range(5)} == {"sales"}

    def test_accepts_path_objects(self, tmp_path):
        resolver = NamespaceResolver.from_pattern(r"([^/\\]+)\.def$")
        assert resolver.resolve(tmp_path / "HR.def") == "hr"


class TestFromPattern:
    def test_invalid_regexp(self):
        with pytest.raises(WatcherSetupError, match="Invalid namespace regexp"):
            NamespaceResolver.from_pattern("([a-z")

    def test_regexp_without_group(self):
        with pytest.raises(WatcherSetupError, match="capture group"):
            NamespaceResolver.from_pattern(r"\.def$")

    def test_empty_string_means_no_regexp(self):
        assert NamespaceResolver.from_pattern("").name_regexp is None
