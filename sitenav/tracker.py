"""
Section tracking for a rendered page: current-section detection and deep-link navigation

The tracker talks to the page through a RenderSurface so the slug assignment and
current-section logic run the same against a browser bridge or a headless page.
"""

import asyncio
import logging
import math
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol

from bs4 import BeautifulSoup

from .metadata import collapse_whitespace
from .models import PageSection
from .sections import heading_id

logger = logging.getLogger(__name__)

SCROLL_LOOKAHEAD = 100
SCROLL_MARGIN = 80
HIGHLIGHT_SECONDS = 2.0
DEEP_LINK_DELAY_SECONDS = 0.1

HEADING_TAGS = ['h1', 'h2', 'h3', 'h4', 'h5', 'h6']
TEXT_TAGS = ['p', 'li', 'pre', 'blockquote']


@dataclass
class HeadingElement:
    """A heading as seen on the rendered surface"""
    element: Any
    level: int
    text: str
    id: Optional[str]
    offset: float
    following_text: str = ""


class RenderSurface(Protocol):
    def extract_headings(self) -> List[HeadingElement]: ...

    def assign_id(self, heading: HeadingElement, section_id: str) -> None: ...

    def offset_of(self, section_id: str) -> Optional[float]: ...

    def scroll_offset(self) -> float: ...

    def observe_scroll(self, callback: Callable[[], None]) -> Callable[[], None]: ...

    def scroll_to(self, offset: float, smooth: bool = True) -> None: ...

    def set_highlight(self, section_id: str, active: bool) -> None: ...

    def location_fragment(self) -> Optional[str]: ...


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioScheduler:
    """Schedules callbacks on the running event loop, or on a timer thread when no loop is running"""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            timer = threading.Timer(delay, callback)
            timer.daemon = True
            timer.start()
            return timer
        return loop.call_later(delay, callback)


class SectionTracker:
    """Tracks heading sections of one page and the section currently in view"""

    def __init__(self, surface: RenderSurface, scheduler: Optional[Scheduler] = None):
        self.surface = surface
        self.scheduler = scheduler or AsyncioScheduler()
        self.sections: List[PageSection] = []
        self.current_section: Optional[PageSection] = None
        self._listeners: List[Callable[[Optional[PageSection]], None]] = []
        self._unobserve: Optional[Callable[[], None]] = None
        self._highlight_timer: Optional[TimerHandle] = None
        self._highlighted_id: Optional[str] = None
        self._deep_link_timer: Optional[TimerHandle] = None

    def initialize(self):
        """(Re)scan the page, start tracking scroll and honour an initial deep link"""
        self.dispose()
        self.sections = self.extract_sections()
        self._unobserve = self.surface.observe_scroll(self._on_scroll)
        self.handle_initial_deep_link()
        self._on_scroll()

    def dispose(self):
        if self._unobserve:
            self._unobserve()
            self._unobserve = None
        if self._deep_link_timer:
            self._deep_link_timer.cancel()
            self._deep_link_timer = None
        self._clear_highlight()

    def subscribe(self, listener: Callable[[Optional[PageSection]], None]) -> Callable[[], None]:
        """Call listener whenever the current section changes"""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def extract_sections(self) -> List[PageSection]:
        """Headings in document order, each with a stable id and its section text"""
        headings = self.surface.extract_headings()
        seen = {heading.id for heading in headings if heading.id}

        sections = []
        for position, heading in enumerate(headings, 1):
            section_id = heading.id
            if not section_id:
                section_id = heading_id(heading.text, position, seen)
                self.surface.assign_id(heading, section_id)
                heading.id = section_id

            # Deeper headings belong to this section's text
            parts = [heading.following_text]
            for later in headings[position:]:
                if later.level <= heading.level:
                    break
                parts.extend([later.text, later.following_text])

            sections.append(PageSection(
                id=section_id,
                title=heading.text,
                level=heading.level,
                content=collapse_whitespace(' '.join(parts)),
                offset=heading.offset,
            ))
        return sections

    def get_current_section(self, scroll_offset: Optional[float] = None) -> Optional[PageSection]:
        """Last section starting above the viewport lookahead line; first section by default"""
        if not self.sections:
            return None
        if scroll_offset is None:
            scroll_offset = self.surface.scroll_offset()

        position = scroll_offset + SCROLL_LOOKAHEAD
        for section in reversed(self.sections):
            if section.offset <= position:
                return section
        return self.sections[0]

    def navigate_to_section(self, section_id: str) -> bool:
        """Smooth-scroll to a section and highlight it; supersedes any earlier navigation"""
        section = self._find(section_id)
        if section is None:
            logger.warning(f'Section with ID "{section_id}" not found')
            return False

        if self._deep_link_timer:
            self._deep_link_timer.cancel()
            self._deep_link_timer = None
        self._clear_highlight()

        offset = self.surface.offset_of(section_id)
        if offset is None:
            offset = section.offset
        self.surface.scroll_to(max(0.0, offset - SCROLL_MARGIN), smooth=True)

        self._highlight_timer = self.scheduler.call_later(HIGHLIGHT_SECONDS, self._clear_highlight)
        self._highlighted_id = section_id
        self.surface.set_highlight(section_id, True)
        return True

    def handle_initial_deep_link(self) -> bool:
        """Navigate to the location's fragment once layout settles"""
        fragment = self.surface.location_fragment()
        if not fragment:
            return False
        fragment = fragment.lstrip('#')
        if not fragment:
            return False

        def _navigate():
            self._deep_link_timer = None
            self.navigate_to_section(fragment)

        self._deep_link_timer = self.scheduler.call_later(DEEP_LINK_DELAY_SECONDS, _navigate)
        return True

    def _find(self, section_id: str) -> Optional[PageSection]:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    def _clear_highlight(self):
        if self._highlight_timer:
            self._highlight_timer.cancel()
            self._highlight_timer = None
        if self._highlighted_id:
            self.surface.set_highlight(self._highlighted_id, False)
            self._highlighted_id = None

    def _on_scroll(self):
        section = self.get_current_section()
        previous_id = self.current_section.id if self.current_section else None
        self.current_section = section
        if (section.id if section else None) != previous_id:
            for listener in list(self._listeners):
                listener(section)


class HtmlSurface:
    """Headless rendering surface over static HTML with a synthetic vertical layout"""

    HEADING_HEIGHT = 40
    LINE_HEIGHT = 24
    CHARS_PER_LINE = 80

    def __init__(self, html: str, fragment: Optional[str] = None):
        self.soup = BeautifulSoup(html, 'html.parser')
        self.fragment = fragment
        self.highlighted = set()
        self.scroll_history: List[float] = []
        self._scroll = 0.0
        self._observers: List[Callable[[], None]] = []
        self._offsets: Dict[str, float] = {}
        self._headings = self._layout()

    def _layout(self) -> List[HeadingElement]:
        area = self.soup.find('main') or self.soup
        headings: List[HeadingElement] = []
        y = 0.0
        for element in area.find_all(HEADING_TAGS + TEXT_TAGS):
            if any(parent.name in TEXT_TAGS for parent in element.parents):
                continue
            text = collapse_whitespace(element.get_text(' '))
            if element.name in HEADING_TAGS:
                heading = HeadingElement(
                    element=element,
                    level=int(element.name[1]),
                    text=text,
                    id=element.get('id'),
                    offset=y,
                )
                headings.append(heading)
                if heading.id:
                    self._offsets[heading.id] = y
                y += self.HEADING_HEIGHT
            else:
                if headings:
                    headings[-1].following_text = collapse_whitespace(f"{headings[-1].following_text} {text}")
                y += self.LINE_HEIGHT * max(1, math.ceil(len(text) / self.CHARS_PER_LINE))
        self.page_height = y
        return headings

    @property
    def html(self) -> str:
        return str(self.soup)

    def extract_headings(self) -> List[HeadingElement]:
        return list(self._headings)

    def assign_id(self, heading: HeadingElement, section_id: str):
        heading.element['id'] = section_id
        self._offsets[section_id] = heading.offset

    def offset_of(self, section_id: str) -> Optional[float]:
        return self._offsets.get(section_id)

    def scroll_offset(self) -> float:
        return self._scroll

    def observe_scroll(self, callback: Callable[[], None]) -> Callable[[], None]:
        self._observers.append(callback)
        return lambda: self._observers.remove(callback)

    def scroll_to(self, offset: float, smooth: bool = True):
        self._scroll = max(0.0, offset)
        self.scroll_history.append(self._scroll)
        for callback in list(self._observers):
            callback()

    def set_highlight(self, section_id: str, active: bool):
        if active:
            self.highlighted.add(section_id)
        else:
            self.highlighted.discard(section_id)

    def location_fragment(self) -> Optional[str]:
        return self.fragment
