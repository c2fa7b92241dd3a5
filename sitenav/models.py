from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Set, Iterator
from enum import Enum


class IntentStrategy(str, Enum):
    DICTIONARY = "dictionary"
    SEARCH = "search"
    FUZZY = "fuzzy"
    NONE = "none"


class PageMetadata(BaseModel):
    """Metadata extracted from one content record"""
    title: str = "Untitled Page"
    description: Optional[str] = None
    keywords: List[str] = []


class ContentSection(BaseModel):
    """A heading-delimited span of a page, produced at index time"""
    id: str
    title: str
    level: int
    content: str


class PageSection(BaseModel):
    """A section of a rendered page, produced by the section tracker"""
    id: str
    title: str
    level: int
    content: str = ""
    offset: float = 0.0


class SiteMapNode(BaseModel):
    """Indexed representation of one page"""
    path: str
    title: str
    description: Optional[str] = None
    keywords: List[str] = []
    content: str = ""
    section_label: str = "General"
    priority: float = 1.0
    sections: List[ContentSection] = []
    parent_path: Optional[str] = None
    child_nodes: List['SiteMapNode'] = []
    related_paths: List[str] = []

    @property
    def keyword_set(self) -> Set[str]:
        return set(self.keywords)


class ContentChunk(BaseModel):
    """An indexable unit at whole-page or section granularity"""
    id: str
    title: str
    content: str
    path: str
    section: str
    keywords: List[str] = []
    priority: float
    section_id: Optional[str] = None


class SiteContentIndex(BaseModel):
    """Aggregate output of a site map build"""
    root_nodes: List[SiteMapNode] = []
    path_to_node: Dict[str, SiteMapNode] = {}
    keywords: Set[str] = set()
    all_paths: List[str] = []
    chunks: List[ContentChunk] = []

    def get_node(self, path: str) -> Optional[SiteMapNode]:
        return self.path_to_node.get(path)

    def parent_of(self, path: str) -> Optional[SiteMapNode]:
        node = self.path_to_node.get(path)
        if node is None or node.parent_path is None:
            return None
        return self.path_to_node.get(node.parent_path)

    def chunks_for(self, path: str) -> List[ContentChunk]:
        return [chunk for chunk in self.chunks if chunk.path == path]

    def nodes(self) -> List[SiteMapNode]:
        """All nodes in index-build order"""
        return [self.path_to_node[path] for path in self.all_paths]

    def walk(self) -> Iterator[SiteMapNode]:
        """Depth-first traversal of the tree, roots first"""
        stack = list(reversed(self.root_nodes))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.child_nodes))


class SearchResult(BaseModel):
    """Search result with ranking information"""
    path: str
    title: str
    description: Optional[str] = None
    snippet: str = ""
    score: float
    confidence: float
    section_id: Optional[str] = None


class ChunkMatch(BaseModel):
    """Chunk-level keyword search hit"""
    chunk: ContentChunk
    relevance: float


class NavigationRecommendation(BaseModel):
    """Clickable suggestion handed to the chat UI"""
    path: str
    title: str
    description: Optional[str] = None
    confidence: float = Field(ge=0.0, le=1.0)
    section_id: Optional[str] = None

    @property
    def href(self) -> str:
        if self.section_id:
            return f"{self.path}#{self.section_id}"
        return self.path


class NavigationIntent(BaseModel):
    """Result of classifying a chat message as a navigation request"""
    is_navigation: bool = False
    path: Optional[str] = None
    section_id: Optional[str] = None
    confidence: float = 0.0
    strategy: IntentStrategy = IntentStrategy.NONE
    topic: Optional[str] = None


class NeighborInfo(BaseModel):
    """Information about page neighbors"""
    parent: Optional[str] = None
    children: List[str] = []
    related: List[str] = []
