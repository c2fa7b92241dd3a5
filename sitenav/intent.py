"""
Navigation intent detection for chat messages

A message is matched against ordered navigational phrasings. The captured topic
is looked up in a static topic dictionary, then searched. Messages with no
phrasing but an implicit cue ("where", "find", ...) get a lower-trust fuzzy pass.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from .models import IntentStrategy, NavigationIntent
from .search import SearchEngine

logger = logging.getLogger(__name__)

DICTIONARY_CONFIDENCE = 0.9
FUZZY_CONFIDENCE_CAP = 0.6
MIN_TOPIC_CONTAINMENT = 3

# topic -> (path, section id)
TopicTarget = Tuple[str, Optional[str]]

DEFAULT_TOPICS: Dict[str, TopicTarget] = {
    "mcp": ("/mcp/overview", None),
    "model context protocol": ("/mcp/overview", None),
    "mcp basics": ("/mcp/basics", None),
    "mcp benefits": ("/mcp/benefits", None),
    "mcp framework": ("/mcp/framework", None),
    "mcp implementation": ("/mcp/implementation", None),
    "context management": ("/mcp/context-management", None),
    "cursor": ("/tools/cursor", None),
    "cursor setup": ("/tools/cursor/setup", None),
    "cursor features": ("/tools/cursor/core-features", None),
    "cursor rules": ("/resources/knowledge-base/cursor-rules", None),
    "project rules": ("/tools/cursor/project-rules", None),
    "keyboard shortcuts": ("/tools/cursor", "shortcuts"),
    "windsurf": ("/tools/windsurf", None),
    "best practices": ("/best-practices", None),
    "code review": ("/best-practices/code-review", None),
    "coding standards": ("/best-practices/coding-standards", None),
    "security": ("/best-practices/security", None),
    "getting started": ("/introduction/getting-started", None),
    "introduction": ("/introduction", None),
    "knowledge base": ("/resources/knowledge-base", None),
    "learning paths": ("/learning-paths", None),
    "workshops": ("/workshops", None),
    "playground": ("/playground", None),
    "browser automation": ("/browser-automation", None),
    "contact": ("/contact", None),
}

FUZZY_TRIGGER_RE = re.compile(r'\b(?:find|where|show)\b|\bpage for\b', re.IGNORECASE)

NAVIGATION_STOPWORDS = {
    'about', 'show', 'find', 'where', 'page', 'pages', 'there', 'these', 'those',
    'what', 'which', 'would', 'could', 'should', 'please', 'information', 'info',
    'want', 'need', 'looking', 'look', 'something', 'some', 'thing', 'things',
    'tell', 'more', 'this', 'that', 'with', 'from', 'have', 'does', 'into', 'your',
}


def _topic_group(match: re.Match) -> str:
    return match.group('topic')


@dataclass
class NavigationPattern:
    """One navigational phrasing; the handler extracts the topic from a match"""
    name: str
    pattern: re.Pattern
    handler: Callable[[re.Match], str] = _topic_group


def _phrasing(name: str, regex: str) -> NavigationPattern:
    return NavigationPattern(name=name, pattern=re.compile(regex, re.IGNORECASE))


_TRAILER = r'(?:\s+(?:page|section|area))?\s*[.!?]*\s*$'

DEFAULT_PATTERNS: List[NavigationPattern] = [
    _phrasing("take_me_to", r'\btake me to (?:the )?(?P<topic>.+?)' + _TRAILER),
    _phrasing("bring_me_to", r'\bbring me to (?:the )?(?P<topic>.+?)' + _TRAILER),
    _phrasing("navigate_to", r'\bnavigate to (?:the )?(?P<topic>.+?)' + _TRAILER),
    _phrasing("how_do_i_get_to", r'\bhow (?:do|can) i get to (?:the )?(?P<topic>.+?)' + _TRAILER),
    _phrasing("go_to", r'\bgo to (?:the )?(?P<topic>.+?)' + _TRAILER),
    _phrasing("open_page", r'\bopen (?:the )?(?P<topic>.+?) (?:page|section)\s*[.!?]*\s*$'),
    _phrasing(
        "show_me_about",
        r'\bshow me (?:some |any |more )?(?:information|info|details|something|things|stuff|docs|documentation)?\s*'
        r'(?:about|on|for|regarding) (?:the )?(?P<topic>.+?)' + _TRAILER,
    ),
]


class NavigationIntentResolver:
    """Classifies a message as navigational and resolves its target"""

    def __init__(self,
                 search_engine: SearchEngine,
                 topics: Optional[Dict[str, TopicTarget]] = None,
                 patterns: Optional[List[NavigationPattern]] = None):
        self.search_engine = search_engine
        self.topics = {key.lower(): target for key, target in (topics or DEFAULT_TOPICS).items()}
        self.patterns = patterns if patterns is not None else list(DEFAULT_PATTERNS)

    def detect_intent(self, message: str) -> NavigationIntent:
        """First successful strategy wins: dictionary, search, fuzzy, none"""
        topic = self.match_topic(message)

        if topic is not None:
            intent = self._from_dictionary(topic) or self._from_search(topic)
        else:
            intent = self._from_fuzzy(message)

        if intent is None:
            intent = NavigationIntent(is_navigation=False, confidence=0.0, topic=topic)

        logger.debug(f"Intent for {message!r}: {intent.strategy.value} -> {intent.path} ({intent.confidence})")
        return intent

    def match_topic(self, message: str) -> Optional[str]:
        """Topic captured by the first matching phrasing, or None"""
        for navigation_pattern in self.patterns:
            match = navigation_pattern.pattern.search(message.strip())
            if match:
                topic = navigation_pattern.handler(match).strip().lower()
                if topic:
                    return topic
        return None

    def lookup_topic(self, topic: str) -> Optional[TopicTarget]:
        """Exact key, then keys inside the topic (longest first), then the topic inside a key"""
        if topic in self.topics:
            return self.topics[topic]

        contained = [key for key in self.topics if key in topic]
        if contained:
            return self.topics[max(contained, key=len)]

        if len(topic) >= MIN_TOPIC_CONTAINMENT:
            for key, target in self.topics.items():
                if topic in key:
                    return target
        return None

    def _from_dictionary(self, topic: str) -> Optional[NavigationIntent]:
        target = self.lookup_topic(topic)
        if target is None:
            return None
        path, section_id = target
        return NavigationIntent(
            is_navigation=True,
            path=path,
            section_id=section_id,
            confidence=DICTIONARY_CONFIDENCE,
            strategy=IntentStrategy.DICTIONARY,
            topic=topic,
        )

    def _from_search(self, topic: str) -> Optional[NavigationIntent]:
        results = self.search_engine.search(topic)
        if not results:
            return None
        top = results[0]
        return NavigationIntent(
            is_navigation=True,
            path=top.path,
            section_id=top.section_id,
            confidence=top.confidence,
            strategy=IntentStrategy.SEARCH,
            topic=topic,
        )

    def _from_fuzzy(self, message: str) -> Optional[NavigationIntent]:
        if not FUZZY_TRIGGER_RE.search(message):
            return None

        for token in self.significant_tokens(message):
            results = self.search_engine.search(token)
            if results:
                top = results[0]
                return NavigationIntent(
                    is_navigation=True,
                    path=top.path,
                    section_id=top.section_id,
                    confidence=min(top.confidence, FUZZY_CONFIDENCE_CAP),
                    strategy=IntentStrategy.FUZZY,
                    topic=token,
                )
        return None

    def significant_tokens(self, message: str) -> List[str]:
        words = re.findall(r'[\w-]+', message.lower())
        return [word for word in words if len(word) > 3 and word not in NAVIGATION_STOPWORDS]
