"""
Metadata extraction for raw page records
"""

import re
import warnings
from collections import Counter
from typing import List, Optional

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

from .models import PageMetadata

warnings.filterwarnings("ignore", category=MarkupResemblesLocatorWarning)

DEFAULT_TITLE = "Untitled Page"
KEYWORD_STOPWORDS = {'this', 'that', 'with', 'from'}
MAX_KEYWORDS = 10

_PUNCT_RE = re.compile(r'[^\w\s]')
_WS_RE = re.compile(r'\s+')
_MD_H1_RE = re.compile(r'^#[ \t]+(.+?)[ \t]*#*[ \t]*$', re.MULTILINE)
_TITLE_FIELD_RES = [
    re.compile(r'title:\s*["\'](.+?)["\']'),
    re.compile(r'^title:\s*(.+?)\s*$', re.MULTILINE),
]
_DESCRIPTION_FIELD_RES = [
    re.compile(r'description:\s*["\'](.+?)["\']'),
    re.compile(r'^description:\s*(.+?)\s*$', re.MULTILINE),
]
_KEYWORDS_FIELD_RES = [
    re.compile(r'keywords:\s*\[(.*?)\]', re.DOTALL),
    re.compile(r'^keywords:\s*(.+?)\s*$', re.MULTILINE),
]


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(' ', text).strip()


def strip_markup(text: str) -> str:
    """Remove tags, keeping a space where each tag was"""
    if '<' not in text:
        return text
    soup = BeautifulSoup(text, 'html.parser')
    for script in soup(["script", "style"]):
        script.decompose()
    return soup.get_text(' ')


def normalize_content(text: str) -> str:
    """Plain-text body: markup stripped and whitespace collapsed"""
    return collapse_whitespace(strip_markup(text))


def _first_match(patterns: List[re.Pattern], text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return None


class MetadataExtractor:
    """Extracts title, description and keywords from one record's text"""

    def __init__(self, max_keywords: int = MAX_KEYWORDS):
        self.max_keywords = max_keywords

    def extract(self, text: str) -> PageMetadata:
        """Always returns metadata, falling back to defaults"""
        return PageMetadata(
            title=self.extract_title(text),
            description=self.extract_description(text),
            keywords=self.extract_keywords(text),
        )

    def extract_title(self, text: str) -> str:
        # <h1> first, then a markdown h1, then a declared title field
        if '<h1' in text.lower():
            soup = BeautifulSoup(text, 'lxml')
            element = soup.find('h1')
            if element and element.get_text().strip():
                return collapse_whitespace(element.get_text(' '))

        match = _MD_H1_RE.search(text)
        if match:
            return match.group(1).strip()

        return _first_match(_TITLE_FIELD_RES, text) or DEFAULT_TITLE

    def extract_description(self, text: str) -> Optional[str]:
        return _first_match(_DESCRIPTION_FIELD_RES, text)

    def extract_keywords(self, text: str) -> List[str]:
        declared = _first_match(_KEYWORDS_FIELD_RES, text)
        if declared is not None:
            return self._parse_declared_keywords(declared)
        return self._derive_keywords(text)

    def _parse_declared_keywords(self, declared: str) -> List[str]:
        keywords = []
        for entry in declared.split(','):
            keyword = entry.replace('"', '').replace("'", '').strip().lower()
            if keyword and keyword not in keywords:
                keywords.append(keyword)
        return keywords

    def _derive_keywords(self, text: str) -> List[str]:
        """Most frequent significant words; ties keep first-occurrence order"""
        plain = _PUNCT_RE.sub(' ', strip_markup(text)).lower()
        words = [
            word for word in plain.split()
            if len(word) > 3 and word not in KEYWORD_STOPWORDS
        ]
        # Counter keeps insertion order and most_common sorts stably
        return [word for word, _ in Counter(words).most_common(self.max_keywords)]
