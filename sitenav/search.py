"""
Keyword search over the site content index
"""

import re
from typing import List, Optional, Tuple

from .models import ChunkMatch, ContentChunk, SearchResult, SiteContentIndex, SiteMapNode

SEARCH_CONFIDENCE = 0.85
DEFAULT_LIMIT = 10

TITLE_PHRASE_POINTS = 10
TITLE_TOKEN_POINTS = 5
KEYWORD_PHRASE_POINTS = 3
KEYWORD_TOKEN_POINTS = 1
CONTENT_PHRASE_POINTS = 2

_WORD_SPLIT_RE = re.compile(r'\W+')


def normalize_query(query: str) -> str:
    return ' '.join(query.lower().split())


def query_tokens(normalized_query: str) -> List[str]:
    """Whitespace tokens longer than two characters"""
    return [token for token in normalized_query.split() if len(token) > 2]


class SearchEngine:
    """Scores and ranks indexed pages against free-text queries"""

    def __init__(self, index: SiteContentIndex, limit: int = DEFAULT_LIMIT):
        self.index = index
        self.limit = limit

    def search(self, query: str, k: Optional[int] = None) -> List[SearchResult]:
        """Top pages for a query, best first; ties keep index order"""
        normalized = normalize_query(query)
        if not normalized:
            return []
        tokens = query_tokens(normalized)

        scored = []
        for node in self.index.nodes():
            score = self.score_node(node, normalized, tokens)
            if score > 0:
                scored.append((node, score))

        scored.sort(key=lambda item: item[1], reverse=True)
        limit = self.limit if k is None else max(1, k)
        top_results = scored[:limit]

        results = []
        for node, score in top_results:
            results.append(SearchResult(
                path=node.path,
                title=node.title,
                description=node.description,
                snippet=self._create_snippet(node.content, normalized),
                score=score,
                confidence=SEARCH_CONFIDENCE,
                section_id=self._best_section(node, normalized, tokens),
            ))
        return results

    def score_node(self, node: SiteMapNode, normalized_query: str, tokens: List[str]) -> int:
        score = 0
        title = node.title.lower()

        if normalized_query in title:
            score += TITLE_PHRASE_POINTS

        for token in tokens:
            if token in title:
                score += TITLE_TOKEN_POINTS

        for keyword in node.keywords:
            keyword = keyword.lower()
            if keyword in normalized_query or normalized_query in keyword:
                score += KEYWORD_PHRASE_POINTS
            for token in tokens:
                if token in keyword:
                    score += KEYWORD_TOKEN_POINTS

        if normalized_query in node.content.lower():
            score += CONTENT_PHRASE_POINTS

        return score

    def _best_section(self, node: SiteMapNode, normalized_query: str, tokens: List[str]) -> Optional[str]:
        """Id of the section whose heading best matches the query, for deep links"""
        best_id, best_score = None, 0
        for section in node.sections:
            title = section.title.lower()
            score = TITLE_PHRASE_POINTS if normalized_query in title else 0
            score += sum(TITLE_TOKEN_POINTS for token in tokens if token in title)
            if score > best_score:
                best_id, best_score = section.id, score
        return best_id

    def search_chunks(self,
                      query: str,
                      limit: int = 5,
                      threshold: float = 0.3,
                      section: Optional[str] = None) -> List[ChunkMatch]:
        """Chunk-level keyword search with title and priority boosts"""
        normalized = normalize_query(query)
        keywords = [k for k in _WORD_SPLIT_RE.split(normalized) if len(k) > 2]
        if not normalized:
            return []

        matches: List[Tuple[ContentChunk, float]] = []
        for chunk in self.index.chunks:
            if section and chunk.section != section:
                continue

            content_text = chunk.content.lower()
            title_text = chunk.title.lower()
            match_count = sum(1 for k in keywords if k in content_text or k in title_text)
            relevance = match_count / len(keywords) if keywords else 0.0

            # Boost exact title matches
            if normalized in title_text:
                relevance += 0.3
            relevance += chunk.priority * 0.05
            relevance = min(relevance, 1.0)

            if relevance >= threshold:
                matches.append((chunk, relevance))

        matches.sort(key=lambda item: item[1], reverse=True)
        return [ChunkMatch(chunk=chunk, relevance=relevance) for chunk, relevance in matches[:max(1, limit)]]

    def get_chunk_by_id(self, chunk_id: str) -> Optional[ContentChunk]:
        for chunk in self.index.chunks:
            if chunk.id == chunk_id:
                return chunk
        return None

    def get_chunk_by_anchor(self, path: str, section_id: str) -> Optional[ContentChunk]:
        """Get a section chunk by page path and section id"""
        return self.get_chunk_by_id(f"section:{path}:{section_id}")

    def get_page_content(self, path: str) -> Optional[str]:
        node = self.index.get_node(path)
        if node is None:
            return None
        return node.content

    def _create_snippet(self, content: str, query: str, max_length: int = 200) -> str:
        """Create a snippet around the first occurrence of the query"""
        query_pos = content.lower().find(query)
        if query_pos == -1:
            # Query not found, return beginning
            return content[:max_length] + "..." if len(content) > max_length else content

        start = max(0, query_pos - max_length // 2)
        end = min(len(content), query_pos + len(query) + max_length // 2)

        snippet = content[start:end]
        if start > 0:
            snippet = "..." + snippet
        if end < len(content):
            snippet = snippet + "..."
        return snippet
