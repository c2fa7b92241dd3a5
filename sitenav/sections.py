"""
Heading-aware section segmentation and the slug rule shared with the section tracker
"""

import re
from typing import Dict, List, Optional, Set

from .metadata import normalize_content
from .models import ContentSection

_SLUG_STRIP_RE = re.compile(r'[^\w\s-]|_')
_SLUG_SPACE_RE = re.compile(r'\s+')
_SLUG_HYPHENS_RE = re.compile(r'-{2,}')

_HTML_HEADING_RE = re.compile(r'<h([1-6])\b([^>]*)>(.*?)</h\1\s*>', re.IGNORECASE | re.DOTALL)
_MD_HEADING_RE = re.compile(r'^(#{1,6})[ \t]+(.+?)[ \t]*#*[ \t]*$', re.MULTILINE)
_MD_DECLARED_ID_RE = re.compile(r'\s*\{#([\w-]+)\}\s*$')
_SECTION_RE = re.compile(r'<section\b([^>]*)>(.*?)</section\s*>', re.IGNORECASE | re.DOTALL)
_ID_ATTR_RE = re.compile(r'\bid\s*=\s*["\']([^"\']+)["\']')
_FENCE_RE = re.compile(r'^```.*?^```[ \t]*$', re.MULTILINE | re.DOTALL)

MAIN_SECTION_ID = "main"
MAIN_SECTION_TITLE = "Main Content"


def slugify(text: str) -> str:
    """URL-friendly id from heading text: 'Getting Started!' -> 'getting-started'"""
    slug = _SLUG_STRIP_RE.sub('', text.lower())
    slug = _SLUG_SPACE_RE.sub('-', slug.strip())
    slug = _SLUG_HYPHENS_RE.sub('-', slug)
    return slug.strip('-')


def unique_slug(base: str, seen: Set[str]) -> str:
    """Disambiguate a slug against ids already used on the page: intro, intro-1, intro-2"""
    candidate = base
    suffix = 0
    while candidate in seen:
        suffix += 1
        candidate = f"{base}-{suffix}"
    seen.add(candidate)
    return candidate


def heading_id(title: str, position: int, seen: Set[str]) -> str:
    """Id for a heading without a declared one; position is 1-based"""
    return unique_slug(slugify(title) or f"section-{position}", seen)


class SectionSegmenter:
    """Splits page markup into heading-delimited sections"""

    def segment(self, text: str) -> List[ContentSection]:
        headings = self._find_headings(text)
        explicit = self._find_explicit_sections(text, headings)

        # Headings consumed as the title of an explicit section are still boundaries
        entries = [h for h in headings if not h['consumed']] + explicit
        entries.sort(key=lambda entry: entry['start'])

        if not entries:
            content = normalize_content(text)
            if not content:
                return []
            return [ContentSection(id=MAIN_SECTION_ID, title=MAIN_SECTION_TITLE, level=1, content=content)]

        seen = {entry['declared_id'] for entry in entries if entry['declared_id']}
        sections = []
        for position, entry in enumerate(entries, 1):
            if entry['kind'] == 'heading':
                content = self._heading_content(text, entry, headings)
            else:
                content = entry['content']

            section_id = entry['declared_id'] or heading_id(entry['title'], position, seen)
            sections.append(ContentSection(
                id=section_id,
                title=entry['title'],
                level=entry['level'],
                content=content,
            ))
        return sections

    def _find_headings(self, text: str) -> List[Dict]:
        headings = []
        for match in _HTML_HEADING_RE.finditer(text):
            id_match = _ID_ATTR_RE.search(match.group(2))
            headings.append({
                'kind': 'heading',
                'start': match.start(),
                'end': match.end(),
                'level': int(match.group(1)),
                'title': normalize_content(match.group(3)),
                'declared_id': id_match.group(1) if id_match else None,
                'consumed': False,
            })

        fences = [(m.start(), m.end()) for m in _FENCE_RE.finditer(text)]
        for match in _MD_HEADING_RE.finditer(text):
            if any(start <= match.start() < end for start, end in fences):
                continue
            title = match.group(2)
            declared_id = None
            id_match = _MD_DECLARED_ID_RE.search(title)
            if id_match:
                declared_id = id_match.group(1)
                title = title[:id_match.start()]
            headings.append({
                'kind': 'heading',
                'start': match.start(),
                'end': match.end(),
                'level': len(match.group(1)),
                'title': title.strip(),
                'declared_id': declared_id,
                'consumed': False,
            })

        headings.sort(key=lambda h: h['start'])
        return headings

    def _find_explicit_sections(self, text: str, headings: List[Dict]) -> List[Dict]:
        sections = []
        for match in _SECTION_RE.finditer(text):
            id_match = _ID_ATTR_RE.search(match.group(1))
            if not id_match:
                continue
            section_id = id_match.group(1)
            body_start, body_end = match.start(2), match.end(2)

            title_heading = self._first_heading_within(headings, body_start, body_end)
            if title_heading:
                title_heading['consumed'] = True
                title = title_heading['title']
                level = title_heading['level']
                body = text[body_start:title_heading['start']] + text[title_heading['end']:body_end]
            else:
                title = f"Section {section_id}"
                level = 2
                body = text[body_start:body_end]

            sections.append({
                'kind': 'section',
                'start': match.start(),
                'end': match.end(),
                'level': level,
                'title': title,
                'declared_id': section_id,
                'content': normalize_content(body),
            })
        return sections

    def _first_heading_within(self, headings: List[Dict], start: int, end: int) -> Optional[Dict]:
        for heading in headings:
            if start <= heading['start'] < end and not heading['consumed']:
                return heading
        return None

    def _heading_content(self, text: str, heading: Dict, headings: List[Dict]) -> str:
        """Text from the heading to the next heading of equal or shallower level"""
        end = len(text)
        for other in headings:
            if other['start'] >= heading['end'] and other['level'] <= heading['level']:
                end = other['start']
                break
        return normalize_content(text[heading['end']:end])
