"""Pytest configuration and shared fixtures for sitenav tests."""

from typing import Callable, List

import pytest

from sitenav.content_source import ContentRecord, InMemoryContentSource
from sitenav.index_cache import IndexCache
from sitenav.intent import NavigationIntentResolver
from sitenav.models import SiteContentIndex
from sitenav.search import SearchEngine
from sitenav.site_map import SiteMapBuilder


def page(title: str, keywords: List[str], body: str, description: str = "") -> str:
    """Page source in the shape of an app-router page with exported metadata."""
    keyword_list = ", ".join(f'"{keyword}"' for keyword in keywords)
    return f'''
export const metadata = {{
  title: "{title}",
  description: "{description or title}",
  keywords: [{keyword_list}],
}};

export default function Page() {{
  return (
    <main>
      <h1>{title}</h1>
      {body}
    </main>
  );
}}
'''


SITE_PAGES = {
    "/mcp": page(
        "MCP",
        ["mcp", "protocol"],
        "<p>Everything about the Model Context Protocol.</p>",
    ),
    "/mcp/overview": page(
        "MCP Overview",
        ["mcp", "protocol", "overview"],
        "<p>The protocol connects assistants to tools.</p>"
        "<h2>What is MCP</h2><p>An open protocol for context.</p>"
        "<h2>Architecture</h2><p>Hosts, clients and tools exchange messages.</p>",
    ),
    "/mcp/basics": page(
        "MCP Basics",
        ["mcp", "protocol", "basics"],
        "<p>First steps with the protocol.</p>",
    ),
    "/servers/architecture": page(
        "Server Architecture",
        ["servers", "hosting", "deployment"],
        "<p>How hosting and deployment are laid out.</p>",
    ),
    "/tools/cursor": page(
        "Cursor IDE",
        ["cursor", "editor", "ide"],
        "<p>An AI first code editor.</p>"
        '<h2 id="shortcuts">Keyboard Shortcuts</h2><p>Press Ctrl K to edit inline.</p>'
        "<h2>Setup</h2><p>Download and install.</p>",
    ),
    "/tools/cursor/setup": page(
        "Cursor Setup",
        ["cursor", "setup", "editor"],
        "<p>Install steps for the editor.</p>",
    ),
}


@pytest.fixture
def site_records() -> List[ContentRecord]:
    """Records for a small documentation site, in build order."""
    return [
        ContentRecord(path=path, text=text, source_file=f"app{path}/page.tsx")
        for path, text in SITE_PAGES.items()
    ]


@pytest.fixture
def site_index(site_records) -> SiteContentIndex:
    return SiteMapBuilder(InMemoryContentSource(site_records)).build(site_records)


@pytest.fixture
def search_engine(site_index) -> SearchEngine:
    return SearchEngine(site_index)


@pytest.fixture
def resolver(search_engine) -> NavigationIntentResolver:
    return NavigationIntentResolver(search_engine)


class CountingBuilder(SiteMapBuilder):
    """Builder that counts scans and can fail a number of times first."""

    def __init__(self, records: List[ContentRecord], failures: int = 0):
        super().__init__(InMemoryContentSource(records))
        self.scan_count = 0
        self.failures = failures

    def scan(self) -> SiteContentIndex:
        self.scan_count += 1
        if self.failures > 0:
            self.failures -= 1
            raise RuntimeError("content source unavailable")
        return super().scan()


@pytest.fixture
def counting_builder(site_records) -> CountingBuilder:
    return CountingBuilder(site_records)


@pytest.fixture
def flaky_builder(site_records) -> CountingBuilder:
    """Builder whose first scan fails."""
    return CountingBuilder(site_records, failures=1)


@pytest.fixture
def index_cache(counting_builder) -> IndexCache:
    return IndexCache(counting_builder)


@pytest.fixture
def make_site(tmp_path) -> Callable:
    """Write {relative file: text} under a content root and return the root."""

    def _make(files: dict):
        root = tmp_path / "app"
        for relative, text in files.items():
            target = root / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
        return root

    return _make
