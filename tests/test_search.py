"""Tests for the keyword search engine."""

import pytest

from sitenav.content_source import ContentRecord, InMemoryContentSource
from sitenav.search import SEARCH_CONFIDENCE, SearchEngine, normalize_query, query_tokens
from sitenav.site_map import SiteMapBuilder


def build_engine(pages):
    records = [ContentRecord(path=path, text=text) for path, text in pages]
    return SearchEngine(SiteMapBuilder(InMemoryContentSource(records)).scan())


class TestQueryNormalization:
    def test_normalize(self):
        assert normalize_query("  MCP   Architecture ") == "mcp architecture"

    def test_short_tokens_dropped(self):
        assert query_tokens("go to the mcp docs") == ["the", "mcp", "docs"]


class TestScoring:
    """Additive title, keyword and content points."""

    @pytest.fixture
    def engine(self):
        return build_engine([
            ("/architecture", "<h1>MCP Architecture</h1><p>Hosts and clients.</p>"),
            ("/other", "<h1>Other</h1><p>Unrelated notes.</p>"),
            ("/basics", "<h1>MCP Basics</h1><p>First steps.</p>"),
        ])

    def test_full_title_match_ranks_first(self, engine):
        results = engine.search("mcp architecture")

        assert [r.path for r in results] == ["/architecture", "/basics"]
        assert results[0].score > results[1].score > 0

    def test_zero_score_excluded(self, engine):
        assert "/other" not in [r.path for r in engine.search("mcp architecture")]

    def test_score_breakdown(self, engine):
        node = engine.index.get_node("/basics")
        # title token "mcp" only
        assert engine.score_node(node, "mcp architecture", ["mcp", "architecture"]) == 5

        node = engine.index.get_node("/architecture")
        # phrase in title, two title tokens, keyword phrase + token, phrase in content
        assert engine.score_node(node, "mcp architecture", ["mcp", "architecture"]) == 10 + 5 + 5 + 3 + 1 + 2

    def test_fixed_confidence(self, engine):
        assert all(r.confidence == SEARCH_CONFIDENCE for r in engine.search("mcp"))

    @pytest.mark.parametrize("query", ["", "   ", "\n\t"])
    def test_empty_query(self, engine, query):
        assert engine.search(query) == []

    def test_case_insensitive(self, engine):
        assert [r.path for r in engine.search("MCP BASICS")] == [r.path for r in engine.search("mcp basics")]


class TestRanking:
    def test_ties_keep_index_order(self):
        engine = build_engine([(f"/guide-{i}", f"<h1>Guide {i}</h1>") for i in range(3)])
        assert [r.path for r in engine.search("guide")] == ["/guide-0", "/guide-1", "/guide-2"]

    def test_top_ten(self):
        engine = build_engine([(f"/guide-{i:02d}", f"<h1>Guide {i}</h1>") for i in range(12)])
        results = engine.search("guide")
        assert len(results) == 10
        assert results[0].path == "/guide-00"

    def test_explicit_k(self, search_engine):
        assert len(search_engine.search("mcp", k=2)) == 2

    @pytest.mark.parametrize("k", [0, -1])
    def test_non_positive_k_returns_best_result(self, k):
        engine = build_engine([(f"/guide-{i}", f"<h1>Guide {i}</h1>") for i in range(3)])
        assert [r.path for r in engine.search("guide", k=k)] == ["/guide-0"]

    def test_pure_function(self, search_engine):
        assert search_engine.search("cursor") == search_engine.search("cursor")


class TestResults:
    def test_snippet_and_description(self, search_engine):
        result = search_engine.search("servers")[0]
        assert result.path == "/servers/architecture"
        assert result.description == "Server Architecture"
        assert "servers" in result.snippet.lower()

    def test_best_section_for_deep_link(self, search_engine):
        result = search_engine.search("keyboard shortcuts")[0]
        assert result.path == "/tools/cursor"
        assert result.section_id == "shortcuts"

    def test_snippet_falls_back_to_start(self, search_engine):
        node = search_engine.index.get_node("/mcp")
        snippet = search_engine._create_snippet(node.content, "no such phrase", max_length=20)
        assert snippet == node.content[:20] + "..."


class TestChunkSearch:
    def test_section_filter(self, search_engine):
        matches = search_engine.search_chunks("install", section="Tools")
        assert matches
        assert all(match.chunk.section == "Tools" for match in matches)

    def test_relevance_bounded_and_sorted(self, search_engine):
        matches = search_engine.search_chunks("mcp protocol", limit=10)
        relevances = [match.relevance for match in matches]
        assert relevances == sorted(relevances, reverse=True)
        assert all(0.3 <= relevance <= 1.0 for relevance in relevances)

    def test_non_positive_limit(self, search_engine):
        assert len(search_engine.search_chunks("mcp", limit=0)) == 1

    def test_no_match(self, search_engine):
        assert search_engine.search_chunks("zebra") == []

    def test_chunk_lookup(self, search_engine):
        chunk = search_engine.get_chunk_by_anchor("/tools/cursor", "shortcuts")
        assert chunk.id == "section:/tools/cursor:shortcuts"
        assert search_engine.get_chunk_by_id("page:/mcp").path == "/mcp"
        assert search_engine.get_chunk_by_id("page:/missing") is None

    def test_page_content(self, search_engine):
        assert "Ctrl K" in search_engine.get_page_content("/tools/cursor")
        assert search_engine.get_page_content("/missing") is None
