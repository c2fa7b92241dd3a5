"""Tests for the site map builder."""

import json
import logging

import pytest

from sitenav.config import NavigatorConfig
from sitenav.content_source import ContentRecord, FileSystemContentSource, InMemoryContentSource
from sitenav.metadata import MetadataExtractor
from sitenav.site_map import (
    SiteMapBuilder,
    ancestor_paths,
    get_neighbors,
    jaccard_similarity,
    page_priority,
    save_site_map,
    section_label,
)


class TestJaccardSimilarity:
    @pytest.mark.parametrize("a,b", [
        ({"mcp", "protocol"}, {"mcp", "overview"}),
        ({"cursor"}, {"cursor", "editor", "ide"}),
        (set(), {"security"}),
        ({"a", "b", "c"}, {"d"}),
    ])
    def test_symmetric(self, a, b):
        assert jaccard_similarity(a, b) == jaccard_similarity(b, a)

    def test_identity(self):
        assert jaccard_similarity({"mcp", "protocol"}, {"mcp", "protocol"}) == 1.0

    def test_empty_sets(self):
        assert jaccard_similarity(set(), set()) == 0.0

    def test_value(self):
        assert jaccard_similarity({"a", "b"}, {"b", "c"}) == pytest.approx(1 / 3)


class TestPathHelpers:
    @pytest.mark.parametrize("path,expected", [
        ("/", 1.0),
        ("/mcp", 0.8),
        ("/mcp/basics", 0.6),
        ("/a/b/c", 0.4),
        ("/a/b/c/d", 0.2),
        ("/a/b/c/d/e/f", 0.2),
    ])
    def test_page_priority(self, path, expected):
        assert page_priority(path) == pytest.approx(expected)

    def test_section_label(self):
        assert section_label("/best-practices/security") == "Best practices"
        assert section_label("/mcp") == "Mcp"
        assert section_label("/") == "General"

    def test_ancestor_paths_nearest_first(self):
        assert ancestor_paths("/a/b/c") == ["/a/b", "/a"]
        assert ancestor_paths("/a") == []
        assert ancestor_paths("/") == []


class TestTreeAssembly:
    """Parent resolution over the full path map."""

    def test_roots_and_children(self, site_index):
        assert [node.path for node in site_index.root_nodes] == [
            "/mcp", "/servers/architecture", "/tools/cursor"
        ]
        mcp = site_index.get_node("/mcp")
        assert [child.path for child in mcp.child_nodes] == ["/mcp/overview", "/mcp/basics"]

    def test_nearest_indexed_ancestor_is_parent(self, site_index):
        # /tools is not a page, so /tools/cursor is a root and adopts its own subpage
        assert site_index.get_node("/tools/cursor").parent_path is None
        assert site_index.get_node("/tools/cursor/setup").parent_path == "/tools/cursor"
        assert site_index.parent_of("/tools/cursor/setup").path == "/tools/cursor"

    def test_every_node_has_one_parent_and_no_cycles(self, site_index):
        walked = [node.path for node in site_index.walk()]
        assert sorted(walked) == sorted(site_index.all_paths)
        assert len(walked) == len(set(walked))

        for path in site_index.all_paths:
            seen = set()
            current = site_index.get_node(path)
            while current.parent_path is not None:
                assert current.path not in seen
                seen.add(current.path)
                current = site_index.get_node(current.parent_path)
            assert current in site_index.root_nodes

    def test_arbitrary_record_order(self, site_records):
        forward = SiteMapBuilder(InMemoryContentSource([])).build(site_records)
        backward = SiteMapBuilder(InMemoryContentSource([])).build(list(reversed(site_records)))

        for path in forward.all_paths:
            assert forward.get_node(path).parent_path == backward.get_node(path).parent_path

    def test_home_page_is_never_a_parent(self):
        records = [
            ContentRecord(path="/", text="<h1>Home</h1>"),
            ContentRecord(path="/about", text="<h1>About</h1>"),
        ]
        index = SiteMapBuilder(InMemoryContentSource(records)).scan()
        assert [node.path for node in index.root_nodes] == ["/", "/about"]


class TestBuild:
    def test_keywords_and_paths(self, site_index):
        assert site_index.all_paths[0] == "/mcp"
        assert {"mcp", "cursor", "servers"} <= site_index.keywords
        node = site_index.get_node("/mcp/overview")
        assert node.title == "MCP Overview"
        assert node.keywords == ["mcp", "protocol", "overview"]
        assert node.priority == pytest.approx(0.6)
        assert node.section_label == "Mcp"

    def test_chunks(self, site_index):
        chunks = {chunk.id: chunk for chunk in site_index.chunks_for("/tools/cursor")}
        page_chunk = chunks["page:/tools/cursor"]
        section_chunk = chunks["section:/tools/cursor:shortcuts"]

        assert page_chunk.priority == pytest.approx(0.6)
        assert page_chunk.section_id is None
        assert section_chunk.priority == pytest.approx(0.54)
        assert section_chunk.title == "Cursor IDE - Keyboard Shortcuts"
        assert section_chunk.keywords == ["cursor ide", "keyboard shortcuts", "tools"]
        assert section_chunk.section_id == "shortcuts"
        assert "Ctrl K" in section_chunk.content

    def test_related_pages(self, site_index):
        # overview/basics share {mcp, protocol}; /mcp is a closer match to both
        assert site_index.get_node("/mcp/overview").related_paths == ["/mcp", "/mcp/basics"]
        assert site_index.get_node("/tools/cursor").related_paths == ["/tools/cursor/setup"]
        assert site_index.get_node("/servers/architecture").related_paths == []

    def test_related_limit_and_threshold(self):
        records = [
            ContentRecord(path=f"/p{i}", text="keywords: shared, common")
            for i in range(8)
        ]
        config = NavigatorConfig(related_limit=3)
        index = SiteMapBuilder(InMemoryContentSource(records), config).scan()
        assert index.get_node("/p0").related_paths == ["/p1", "/p2", "/p3"]

    def test_unparseable_record_is_skipped(self, site_records, caplog):
        records = [ContentRecord(path="  ", text="<h1>Broken</h1>")] + site_records
        with caplog.at_level(logging.WARNING):
            index = SiteMapBuilder(InMemoryContentSource(records)).scan()

        assert len(index.all_paths) == len(site_records)
        assert "Error processing page" in caplog.text

    def test_failing_extractor_does_not_abort(self, site_records, caplog):
        class FlakyExtractor:
            def extract(self, text):
                if "Server Architecture" in text:
                    raise ValueError("bad markup")
                return MetadataExtractor().extract(text)

        builder = SiteMapBuilder(InMemoryContentSource(site_records), extractor=FlakyExtractor())
        with caplog.at_level(logging.WARNING):
            index = builder.scan()

        assert "/servers/architecture" not in index.all_paths
        assert len(index.all_paths) == len(site_records) - 1

    def test_duplicate_paths_keep_first(self, caplog):
        records = [
            ContentRecord(path="/docs", text="<h1>First</h1>"),
            ContentRecord(path="/docs/", text="<h1>Second</h1>"),
        ]
        with caplog.at_level(logging.WARNING):
            index = SiteMapBuilder(InMemoryContentSource(records)).scan()

        assert index.all_paths == ["/docs"]
        assert index.get_node("/docs").title == "First"
        assert "Duplicate page path" in caplog.text

    def test_empty_source(self):
        index = SiteMapBuilder(InMemoryContentSource([])).scan()
        assert index.root_nodes == []
        assert index.chunks == []


class TestNeighbors:
    def test_neighbors(self, site_index):
        neighbors = get_neighbors(site_index, "/mcp/overview")
        assert neighbors.parent == "/mcp"
        assert neighbors.children == []
        assert neighbors.related == ["/mcp", "/mcp/basics"]

    def test_unknown_page(self, site_index):
        neighbors = get_neighbors(site_index, "/missing")
        assert neighbors.parent is None
        assert neighbors.children == []


class TestFileSystemScan:
    def test_scan_and_export(self, make_site, tmp_path):
        root = make_site({
            "page.tsx": "<h1>Home</h1>",
            "mcp/page.tsx": "<h1>MCP</h1>",
            "mcp/basics/page.tsx": "<h1>MCP Basics</h1><h2>Intro</h2><p>hello</p>",
        })
        builder = SiteMapBuilder(FileSystemContentSource(NavigatorConfig(content_root=root)))
        index = builder.scan()

        assert set(index.all_paths) == {"/", "/mcp", "/mcp/basics"}
        assert index.get_node("/mcp/basics").parent_path == "/mcp"

        output = tmp_path / "site_map.json"
        save_site_map(index, output)
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["pages"] == 3
        mcp = next(entry for entry in data["tree"] if entry["path"] == "/mcp")
        assert mcp["children"][0]["path"] == "/mcp/basics"
        assert mcp["children"][0]["sections"] == ["mcp-basics", "intro"]
