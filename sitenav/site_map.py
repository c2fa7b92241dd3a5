"""
Site map builder: page records -> hierarchical, cross-linked content index
"""

import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple

from .config import NavigatorConfig
from .content_source import ContentRecord, ContentSource, FileSystemContentSource, normalize_path
from .metadata import MetadataExtractor, normalize_content
from .models import ContentChunk, NeighborInfo, SiteContentIndex, SiteMapNode
from .sections import SectionSegmenter

logger = logging.getLogger(__name__)


def jaccard_similarity(a: Set[str], b: Set[str]) -> float:
    """|A ∩ B| / |A ∪ B|, 0 when both sets are empty"""
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def path_depth(path: str) -> int:
    return len([part for part in path.split('/') if part])


def page_priority(path: str) -> float:
    """1.0 for the home page, lower for deeper pages, never below 0.2"""
    return max(1, 5 - path_depth(path)) / 5


def section_label(path: str) -> str:
    """Human label from the first path segment, e.g. '/best-practices/x' -> 'Best practices'"""
    parts = [part for part in path.split('/') if part]
    if not parts:
        return "General"
    label = parts[0].replace('-', ' ')
    return label[:1].upper() + label[1:]


def ancestor_paths(path: str) -> List[str]:
    """Proper ancestors, nearest first; the home page is never an ancestor"""
    parts = [part for part in path.split('/') if part]
    return ['/' + '/'.join(parts[:i]) for i in range(len(parts) - 1, 0, -1)]


class SiteMapBuilder:
    """Builds the site content index from a content source"""

    def __init__(self,
                 source: Optional[ContentSource] = None,
                 config: Optional[NavigatorConfig] = None,
                 extractor: Optional[MetadataExtractor] = None,
                 segmenter: Optional[SectionSegmenter] = None):
        self.config = config or NavigatorConfig()
        self.source = source or FileSystemContentSource(self.config)
        self.extractor = extractor or MetadataExtractor()
        self.segmenter = segmenter or SectionSegmenter()

    def scan(self) -> SiteContentIndex:
        """Enumerate the content source and build the index"""
        return self.build(self.source.records())

    def build(self, records: Iterable[ContentRecord]) -> SiteContentIndex:
        """Build the full index; unparseable records are logged and skipped"""
        nodes: List[SiteMapNode] = []
        chunks: List[ContentChunk] = []
        path_to_node = {}
        keywords = set()

        for record in records:
            try:
                node, node_chunks = self.process_record(record)
            except Exception as e:
                logger.warning(f"Error processing page {record.path}: {e}")
                continue

            if node.path in path_to_node:
                logger.warning(f"Duplicate page path {node.path}, skipping {record.source_file or 'record'}")
                continue

            nodes.append(node)
            chunks.extend(node_chunks)
            path_to_node[node.path] = node
            keywords.update(node.keywords)

        # The full path map exists before any parent is resolved
        root_nodes = self._assemble_tree(nodes, path_to_node)
        self._add_related_pages(nodes)

        logger.info(f"Built site map with {len(nodes)} pages and {len(chunks)} chunks")
        return SiteContentIndex(
            root_nodes=root_nodes,
            path_to_node=path_to_node,
            keywords=keywords,
            all_paths=[node.path for node in nodes],
            chunks=chunks,
        )

    def process_record(self, record: ContentRecord) -> Tuple[SiteMapNode, List[ContentChunk]]:
        """Turn one record into a node plus its page and section chunks"""
        if not record.path or not record.path.strip():
            raise ValueError("record has no path")

        path = normalize_path(record.path)
        metadata = self.extractor.extract(record.text)
        sections = self.segmenter.segment(record.text)
        priority = page_priority(path)
        label = section_label(path)

        node = SiteMapNode(
            path=path,
            title=metadata.title,
            description=metadata.description,
            keywords=metadata.keywords,
            content=normalize_content(record.text),
            section_label=label,
            priority=priority,
            sections=sections,
        )

        chunks = [ContentChunk(
            id=f"page:{path}",
            title=node.title,
            content=node.content,
            path=path,
            section=label,
            keywords=list(node.keywords),
            priority=priority,
        )]
        for section in sections:
            section_keywords = []
            for keyword in (node.title.lower(), section.title.lower(), label.lower()):
                if keyword not in section_keywords:
                    section_keywords.append(keyword)
            chunks.append(ContentChunk(
                id=f"section:{path}:{section.id}",
                title=f"{node.title} - {section.title}",
                content=section.content,
                path=path,
                section=label,
                keywords=section_keywords,
                priority=priority * self.config.section_priority_factor,
                section_id=section.id,
            ))
        return node, chunks

    def _assemble_tree(self, nodes: List[SiteMapNode], path_to_node: dict) -> List[SiteMapNode]:
        """Attach each node to its nearest indexed ancestor; the rest are roots"""
        root_nodes = []
        for node in nodes:
            parent = None
            for candidate in ancestor_paths(node.path):
                parent = path_to_node.get(candidate)
                if parent is not None:
                    break

            if parent is None:
                root_nodes.append(node)
            else:
                node.parent_path = parent.path
                parent.child_nodes.append(node)
        return root_nodes

    def _add_related_pages(self, nodes: List[SiteMapNode]):
        """Related pages by keyword-set Jaccard similarity"""
        for node in nodes:
            own = node.keyword_set
            similarities = []
            for other in nodes:
                if other.path == node.path:
                    continue
                similarity = jaccard_similarity(own, other.keyword_set)
                if similarity > self.config.related_threshold:
                    similarities.append((other.path, similarity))

            # Stable sort keeps build order on ties
            similarities.sort(key=lambda item: item[1], reverse=True)
            node.related_paths = [path for path, _ in similarities[:self.config.related_limit]]


def get_neighbors(index: SiteContentIndex, path: str) -> NeighborInfo:
    """Parent, children and related pages for one page"""
    node = index.get_node(path)
    if node is None:
        return NeighborInfo()
    return NeighborInfo(
        parent=node.parent_path,
        children=[child.path for child in node.child_nodes],
        related=list(node.related_paths),
    )


def save_site_map(index: SiteContentIndex, output_path: Path):
    """Write a JSON snapshot of the tree (export only, never loaded back)"""
    tree = [_node_summary(root) for root in index.root_nodes]
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump({'pages': len(index.all_paths), 'tree': tree}, f, indent=2, ensure_ascii=False)


def _node_summary(node: SiteMapNode) -> dict:
    summary = node.model_dump(include={'path', 'title', 'description', 'keywords', 'related_paths'})
    summary['sections'] = [section.id for section in node.sections]
    summary['children'] = [_node_summary(child) for child in node.child_nodes]
    return summary
