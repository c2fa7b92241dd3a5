"""
Content sources that feed raw page records to the site map builder
"""

import logging
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Protocol

from pydantic import BaseModel

from .config import NavigatorConfig

logger = logging.getLogger(__name__)


class ContentRecord(BaseModel):
    """A raw page: a path plus unstructured text/markup"""
    path: str
    text: str
    source_file: Optional[str] = None


class ContentSource(Protocol):
    """Anything that can enumerate content records"""

    def records(self) -> Iterable[ContentRecord]:
        ...


def normalize_path(path: str) -> str:
    """Canonical page path: leading slash, no trailing slash, '/' for home"""
    path = path.replace('\\', '/').strip()
    parts = [part for part in path.split('/') if part]
    return '/' + '/'.join(parts)


class InMemoryContentSource:
    """Content source over a fixed list of records"""

    def __init__(self, records: Iterable[ContentRecord]):
        self._records = list(records)

    def records(self) -> Iterator[ContentRecord]:
        return iter(self._records)


class FileSystemContentSource:
    """Scans a directory tree for page files (Next.js style app dir or plain docs)"""

    def __init__(self, config: Optional[NavigatorConfig] = None):
        self.config = config or NavigatorConfig()
        self.root = Path(self.config.content_root)

    def records(self) -> Iterator[ContentRecord]:
        """Read every page file; unreadable files are logged and skipped"""
        if not self.root.exists():
            logger.warning(f"Content root {self.root} not found, no pages to index")
            return

        for page_file in self.find_page_files():
            try:
                text = page_file.read_text(encoding='utf-8')
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Error reading {page_file}: {e}")
                continue
            yield ContentRecord(
                path=self.route_for(page_file),
                text=text,
                source_file=str(page_file),
            )

    def find_page_files(self) -> List[Path]:
        """Find all page files below the root, in sorted order"""
        found = []
        for candidate in sorted(self.root.rglob("*")):
            if not candidate.is_file():
                continue
            relative = candidate.relative_to(self.root)
            if any(part in self.config.ignore_dirs for part in relative.parts[:-1]):
                continue
            if candidate.name in self.config.page_file_names:
                found.append(candidate)
            elif candidate.suffix in self.config.doc_suffixes and not candidate.name.startswith("page."):
                found.append(candidate)
        return found

    def route_for(self, page_file: Path) -> str:
        """Map a file to its URL path, e.g. 'app/mcp/basics/page.tsx' -> '/mcp/basics'"""
        relative = page_file.relative_to(self.root)
        if page_file.name in self.config.page_file_names:
            parts = relative.parts[:-1]
        else:
            parts = relative.with_suffix('').parts
            if parts and parts[-1] == 'index':
                parts = parts[:-1]
        # Route groups such as "(main)" do not appear in URLs
        parts = [part for part in parts if not (part.startswith('(') and part.endswith(')'))]
        return normalize_path('/'.join(parts))
