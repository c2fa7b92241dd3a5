"""
Facade consumed by the chat/UI layer
"""

import logging
from typing import Callable, Dict, List, Optional

from .index_cache import IndexCache
from .intent import NavigationIntentResolver, TopicTarget
from .models import NavigationIntent, NavigationRecommendation, NeighborInfo, SiteMapNode
from .search import SearchEngine
from .site_map import get_neighbors

logger = logging.getLogger(__name__)


class NavigationService:
    """Search, intent resolution and route changes over the cached site index"""

    def __init__(self,
                 cache: IndexCache,
                 topics: Optional[Dict[str, TopicTarget]] = None,
                 on_navigate: Optional[Callable[[str], None]] = None,
                 search_limit: int = 10):
        self.cache = cache
        self.topics = topics
        self.on_navigate = on_navigate
        self.search_limit = search_limit

    async def search_engine(self) -> SearchEngine:
        index = await self.cache.get_or_build()
        return SearchEngine(index, limit=self.search_limit)

    async def resolver(self) -> NavigationIntentResolver:
        return NavigationIntentResolver(await self.search_engine(), topics=self.topics)

    async def recommend(self, query: str) -> List[NavigationRecommendation]:
        """Ranked recommendations for a free-text query"""
        engine = await self.search_engine()
        return [
            NavigationRecommendation(
                path=result.path,
                title=result.title,
                description=result.description,
                confidence=result.confidence,
                section_id=result.section_id,
            )
            for result in engine.search(query)
        ]

    async def resolve(self, message: str) -> NavigationIntent:
        return (await self.resolver()).detect_intent(message)

    async def recommend_for_message(self, message: str) -> List[NavigationRecommendation]:
        """Intent target first, then search hits on the same topic, one per path"""
        intent = await self.resolve(message)
        if not intent.is_navigation:
            return []

        index = await self.cache.get_or_build()
        recommendations = []
        node = index.get_node(intent.path)
        recommendations.append(NavigationRecommendation(
            path=intent.path,
            title=node.title if node else intent.topic or intent.path,
            description=node.description if node else None,
            confidence=intent.confidence,
            section_id=intent.section_id,
        ))

        seen = {intent.path}
        for recommendation in await self.recommend(intent.topic or message):
            if recommendation.path in seen:
                continue
            seen.add(recommendation.path)
            # Never rank a follow-up above the resolved target
            recommendation.confidence = min(recommendation.confidence, intent.confidence)
            recommendations.append(recommendation)
        return recommendations

    async def navigate_to(self, path: str, section_id: Optional[str] = None) -> Optional[str]:
        """Resolve a route for the UI; None when the page is not indexed"""
        index = await self.cache.get_or_build()
        node = index.get_node(path)
        if node is None:
            logger.warning(f"Cannot navigate to unknown page {path}")
            return None

        href = path
        if section_id:
            if not any(section.id == section_id for section in node.sections):
                logger.warning(f"Section {section_id} not indexed on {path}, linking to the page")
            href = f"{path}#{section_id}"

        if self.on_navigate:
            self.on_navigate(href)
        return href

    async def current_page(self, path: str) -> Optional[SiteMapNode]:
        index = await self.cache.get_or_build()
        return index.get_node(path)

    async def neighbors(self, path: str) -> NeighborInfo:
        index = await self.cache.get_or_build()
        return get_neighbors(index, path)
