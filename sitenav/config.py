"""
Configuration for the site navigator
"""

from pathlib import Path
from typing import Annotated, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class NavigatorConfig(BaseSettings):
    """Settings shared by the index builder, search engine and servers, read from SITENAV_* variables"""

    model_config = SettingsConfigDict(env_prefix="SITENAV_", extra="ignore")

    content_root: Path = Field(default=Path("app"), description="Directory scanned for pages")
    page_file_names: List[str] = ["page.tsx", "page.jsx", "page.md", "page.mdx", "page.html"]
    doc_suffixes: List[str] = [".md", ".mdx", ".html", ".htm"]
    ignore_dirs: Annotated[List[str], NoDecode] = [
        "node_modules", ".next", ".git", "public", "styles", "api", "auth", "admin",
    ]
    search_limit: int = Field(default=10, description="Max search results")
    related_limit: int = Field(default=5, description="Max related pages per node")
    related_threshold: float = Field(default=0.2, description="Min keyword similarity for related pages")
    section_priority_factor: float = 0.9
    log_level: str = "INFO"

    @field_validator("ignore_dirs", mode="before")
    @classmethod
    def split_comma_separated(cls, value):
        # SITENAV_IGNORE_DIRS=node_modules,drafts
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @classmethod
    def from_env(cls, **overrides) -> "NavigatorConfig":
        """Environment settings with explicit (e.g. command line) overrides; None means not given"""
        return cls(**{key: value for key, value in overrides.items() if value is not None})
