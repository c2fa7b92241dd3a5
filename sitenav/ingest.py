#!/usr/bin/env python3
"""
Site indexing pipeline for the navigation assistant
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from tqdm import tqdm

from sitenav.config import NavigatorConfig
from sitenav.content_source import ContentRecord, FileSystemContentSource
from sitenav.intent import NavigationIntentResolver
from sitenav.models import SiteContentIndex
from sitenav.search import SearchEngine
from sitenav.site_map import SiteMapBuilder, save_site_map


class SiteIndexPipeline:
    """Scans a content directory and builds the searchable site map"""

    def __init__(self, config: Optional[NavigatorConfig] = None):
        self.config = config or NavigatorConfig()
        self.source = FileSystemContentSource(self.config)
        self.builder = SiteMapBuilder(self.source, self.config)

    def build(self) -> SiteContentIndex:
        """Build the index, reporting progress per page file"""
        print(f"\n=== Indexing {self.config.content_root} ===")

        if not Path(self.config.content_root).exists():
            print(f"Error: Content directory {self.config.content_root} not found.")
            return self.builder.build([])

        records: List[ContentRecord] = []
        for record in tqdm(self.source.records(), desc="Reading pages"):
            records.append(record)
        print(f"Read {len(records)} page files")

        index = self.builder.build(records)
        print(f"Indexed {len(index.all_paths)} pages, {len(index.chunks)} chunks, "
              f"{len(index.keywords)} distinct keywords")
        return index


def main(argv: Optional[List[str]] = None):
    """Main entry point for the indexing pipeline"""
    parser = argparse.ArgumentParser(description="Build the site map for the navigation assistant")
    parser.add_argument("--root", help="Content directory to scan (default: app)")
    parser.add_argument("--query", help="Run a search against the built index")
    parser.add_argument("--message", help="Resolve navigation intent for a chat message")
    parser.add_argument("--output", help="Write a JSON snapshot of the site map")
    parser.add_argument("--log-level", help="Logging level (default: INFO)")

    args = parser.parse_args(argv)

    config = NavigatorConfig.from_env(content_root=args.root, log_level=args.log_level)
    logging.basicConfig(
        level=config.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)]
    )

    pipeline = SiteIndexPipeline(config)
    index = pipeline.build()

    if args.output:
        save_site_map(index, Path(args.output))
        print(f"Site map written to {args.output}")

    engine = SearchEngine(index, limit=config.search_limit)

    if args.query:
        print(f"\nQuery: '{args.query}'")
        results = engine.search(args.query)
        if not results:
            print("  No results found")
        for i, result in enumerate(results, 1):
            anchor = f"#{result.section_id}" if result.section_id else ""
            print(f"  {i}. {result.title} (Score: {result.score:.0f})")
            print(f"     Path: {result.path}{anchor}")

    if args.message:
        intent = NavigationIntentResolver(engine).detect_intent(args.message)
        print(f"\nMessage: '{args.message}'")
        if intent.is_navigation:
            anchor = f"#{intent.section_id}" if intent.section_id else ""
            print(f"  Navigate to {intent.path}{anchor} "
                  f"(confidence {intent.confidence:.2f}, via {intent.strategy.value})")
        else:
            print("  Not a navigation request")


if __name__ == "__main__":
    main()
