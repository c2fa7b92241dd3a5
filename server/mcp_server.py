#!/usr/bin/env python3
"""
MCP Server for site navigation: content search, navigation intent and site map
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from sitenav.config import NavigatorConfig
from sitenav.index_cache import IndexCache
from sitenav.models import SiteMapNode
from sitenav.navigation import NavigationService
from sitenav.site_map import SiteMapBuilder

logger = logging.getLogger(__name__)

SERVER_NAME = "site-navigator-mcp"
SERVER_VERSION = "1.0.0"


class SiteNavigatorMCPServer:
    """MCP Server exposing the site navigation engine as tools"""

    def __init__(self, config: Optional[NavigatorConfig] = None, cache: Optional[IndexCache] = None):
        self.config = config or NavigatorConfig()
        self.cache = cache or IndexCache(SiteMapBuilder(config=self.config))
        self.navigation = NavigationService(self.cache, search_limit=self.config.search_limit)
        self.server = Server(SERVER_NAME)

        logger.info(f"Initializing SiteNavigatorMCPServer with content root: {self.config.content_root}")
        logger.info(f"Current working directory: {Path.cwd()}")

        self._setup_handlers()

    def _setup_handlers(self):
        """Setup MCP server handlers"""

        @self.server.list_tools()
        async def handle_list_tools() -> List[Tool]:
            """List available tools"""
            return self.list_tools()

        @self.server.call_tool()
        async def handle_call_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
            """Handle tool calls"""
            return await self.call_tool(name, arguments or {})

    def list_tools(self) -> List[Tool]:
        path_schema = {
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "Page path, e.g. /mcp/basics"
                }
            },
            "required": ["path"]
        }
        return [
            Tool(
                name="site.search",
                description="Search site pages by keyword and return ranked matches",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "query": {
                            "type": "string",
                            "description": "Search query"
                        },
                        "k": {
                            "type": "integer",
                            "description": "Number of results to return (default: 10)",
                            "default": 10,
                            "minimum": 1
                        },
                        "section": {
                            "type": "string",
                            "description": "Restrict to chunks of one site area (e.g. 'Mcp'); switches to chunk search"
                        }
                    },
                    "required": ["query"]
                }
            ),
            Tool(
                name="site.navigate",
                description="Decide whether a chat message asks to go somewhere on the site, and where",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "message": {
                            "type": "string",
                            "description": "The user's chat message"
                        }
                    },
                    "required": ["message"]
                }
            ),
            Tool(
                name="site.page",
                description="Get the text content and metadata of one page",
                inputSchema=path_schema
            ),
            Tool(
                name="site.sections",
                description="List the deep-linkable sections of one page",
                inputSchema=path_schema
            ),
            Tool(
                name="site.neighbors",
                description="Get parent, child and related pages of one page",
                inputSchema=path_schema
            ),
            Tool(
                name="site.map",
                description="Get the site map as an indented tree",
                inputSchema={
                    "type": "object",
                    "properties": {}
                }
            ),
            Tool(
                name="site.health",
                description="Get server health and index status",
                inputSchema={
                    "type": "object",
                    "properties": {}
                }
            )
        ]

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> List[TextContent]:
        handlers = {
            "site.search": self._handle_search,
            "site.navigate": self._handle_navigate,
            "site.page": self._handle_page,
            "site.sections": self._handle_sections,
            "site.neighbors": self._handle_neighbors,
            "site.map": self._handle_map,
            "site.health": self._handle_health,
        }
        handler = handlers.get(name)
        if handler is None:
            return [TextContent(type="text", text=f"Unknown tool: {name}")]
        try:
            return await handler(arguments)
        except Exception as e:
            logger.exception(f"Tool {name} failed")
            return [TextContent(type="text", text=f"Error: {str(e)}")]

    async def _handle_search(self, args: Dict[str, Any]) -> List[TextContent]:
        """Handle search requests"""
        query = args.get("query", "")
        k = int(args.get("k", self.config.search_limit))
        section = args.get("section")

        logger.info(f"Search request: query='{query}', k={k}, section={section!r}")

        if not query.strip():
            return [TextContent(type="text", text="Error: Query is required")]

        engine = await self.navigation.search_engine()

        if section:
            matches = engine.search_chunks(query, limit=k, section=section)
            if not matches:
                return [TextContent(type="text", text="No results found")]
            lines = []
            for i, match in enumerate(matches, 1):
                anchor = f"#{match.chunk.section_id}" if match.chunk.section_id else ""
                lines.append(
                    f"{i}. **{match.chunk.title}** (Relevance: {match.relevance:.2f})\n"
                    f"   Path: {match.chunk.path}{anchor}\n"
                    f"   ID: {match.chunk.id}\n"
                )
            return [TextContent(type="text", text="\n".join(lines))]

        results = engine.search(query, k=k)
        if not results:
            return [TextContent(type="text", text="No results found")]

        formatted_results = []
        for i, result in enumerate(results, 1):
            anchor = f"#{result.section_id}" if result.section_id else ""
            formatted_results.append(
                f"{i}. **{result.title}** (Score: {result.score:.0f})\n"
                f"   Path: {result.path}{anchor}\n"
                f"   Snippet: {result.snippet}\n"
            )
        return [TextContent(type="text", text="\n".join(formatted_results))]

    async def _handle_navigate(self, args: Dict[str, Any]) -> List[TextContent]:
        """Handle navigation intent requests"""
        message = args.get("message", "")
        if not message.strip():
            return [TextContent(type="text", text="Error: Message is required")]

        intent = await self.navigation.resolve(message)
        if not intent.is_navigation:
            return [TextContent(type="text", text="Not a navigation request (confidence 0.00)")]

        anchor = f"#{intent.section_id}" if intent.section_id else ""
        text = (
            f"Navigate to: {intent.path}{anchor}\n"
            f"Confidence: {intent.confidence:.2f}\n"
            f"Strategy: {intent.strategy.value}\n"
            f"Topic: {intent.topic}\n"
        )
        return [TextContent(type="text", text=text)]

    async def _handle_page(self, args: Dict[str, Any]) -> List[TextContent]:
        """Handle get page requests"""
        path = args.get("path", "")
        if not path:
            return [TextContent(type="text", text="Error: Path is required")]

        node = await self.navigation.current_page(path)
        if not node:
            return [TextContent(type="text", text="Page not found")]

        metadata = (
            f"Title: {node.title}\n"
            f"Path: {node.path}\n"
            f"Description: {node.description or '-'}\n"
            f"Keywords: {', '.join(node.keywords)}\n\n"
        )
        return [TextContent(type="text", text=metadata + node.content)]

    async def _handle_sections(self, args: Dict[str, Any]) -> List[TextContent]:
        """Handle section listing requests"""
        path = args.get("path", "")
        if not path:
            return [TextContent(type="text", text="Error: Path is required")]

        node = await self.navigation.current_page(path)
        if not node:
            return [TextContent(type="text", text="Page not found")]

        lines = [f"Sections of {node.title} ({node.path}):\n"]
        for section in node.sections:
            indent = "  " * (section.level - 1)
            lines.append(f"{indent}- {section.title} -> {node.path}#{section.id}")
        return [TextContent(type="text", text="\n".join(lines))]

    async def _handle_neighbors(self, args: Dict[str, Any]) -> List[TextContent]:
        """Handle neighbor requests"""
        path = args.get("path", "")
        if not path:
            return [TextContent(type="text", text="Error: Path is required")]

        node = await self.navigation.current_page(path)
        if not node:
            return [TextContent(type="text", text="Page not found")]

        neighbors = await self.navigation.neighbors(path)
        neighbor_info = f"Neighbors for: {node.title}\n"
        neighbor_info += f"Path: {node.path}\n\n"

        if neighbors.parent:
            neighbor_info += f"Parent: {neighbors.parent}\n"
        if neighbors.children:
            neighbor_info += f"Children: {', '.join(neighbors.children)}\n"
        if neighbors.related:
            neighbor_info += f"Related: {', '.join(neighbors.related)}\n"

        return [TextContent(type="text", text=neighbor_info)]

    async def _handle_map(self, args: Dict[str, Any]) -> List[TextContent]:
        """Handle site map requests"""
        index = await self.cache.get_or_build()
        if not index.root_nodes:
            return [TextContent(type="text", text="Site map is empty. Check the content root.")]

        lines = ["Site map:\n"]
        for root in index.root_nodes:
            self._append_tree(lines, root, 0)
        return [TextContent(type="text", text="\n".join(lines))]

    def _append_tree(self, lines: List[str], node: SiteMapNode, depth: int):
        lines.append(f"{'  ' * depth}- {node.title} ({node.path})")
        for child in node.child_nodes:
            self._append_tree(lines, child, depth + 1)

    async def _handle_health(self, args: Dict[str, Any]) -> List[TextContent]:
        """Handle health check requests"""
        index = self.cache.peek()
        health_info = (
            "Site Navigator MCP Server\n"
            f"Version: {SERVER_VERSION}\n"
            "Status: Running\n"
            f"Content root: {self.config.content_root}\n"
            f"Index state: {self.cache.state.value}\n"
            f"Pages indexed: {len(index.all_paths) if index else 0}\n"
        )
        return [TextContent(type="text", text=health_info)]

    async def run(self):
        """Run the MCP server"""
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                InitializationOptions(
                    server_name=SERVER_NAME,
                    server_version=SERVER_VERSION,
                    capabilities=self.server.get_capabilities(
                        notification_options=NotificationOptions(
                            prompts_changed=False,
                            resources_changed=False,
                            tools_changed=False
                        ),
                        experimental_capabilities={}
                    )
                )
            )


async def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(description="Site navigation MCP Server")
    parser.add_argument("--root", help="Content directory to index (default: app)")
    parser.add_argument("--log-level", help="Logging level (default: INFO)")

    args = parser.parse_args()

    config = NavigatorConfig.from_env(content_root=args.root, log_level=args.log_level)

    # Log to stderr to avoid interfering with MCP protocol
    logging.basicConfig(
        level=config.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)]
    )
    logger.info(f"Starting MCP server with arguments: {args}")

    server = SiteNavigatorMCPServer(config)
    logger.info("Server initialized, starting MCP protocol...")

    await server.run()


if __name__ == "__main__":
    asyncio.run(main())
