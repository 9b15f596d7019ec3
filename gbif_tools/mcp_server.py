# =============================================================================
# gbif_tools/mcp_server.py  —  FastMCP Server for the GBIF Tools
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Builds a FastMCP server that exposes every ToolSpec from the catalog.
#
# HOW IT WORKS (the flow):
#   1. An MCP client (Claude Desktop, an agent, ...) lists the tools and
#      sees each input model's JSON schema under its camelCase names
#   2. It calls a tool by name, e.g. "gbif_occurrence_search"
#   3. FastMCP routes the call to GbifTool.run()
#   4. run() hands the raw arguments to execute_tool(), which validates,
#      calls GBIF, applies the response size limit and builds the envelope
#   5. The envelope goes back once, as compact JSON text, and fits the
#      response size limit as a whole
#
# RUNNING THIS SERVER:
#   a) python main.py               (loads .env, configures logging)
#   b) python -m gbif_tools.mcp_server
#   Either way the transport is stdio, so nothing may be printed to STDOUT.
# =============================================================================

import asyncio
from typing import Any, Optional

from fastmcp import FastMCP
from fastmcp.tools import Tool
from fastmcp.tools.tool import ToolResult
from mcp.types import TextContent
from pydantic import PrivateAttr

from gbif_core.client import GbifClient
from gbif_core.config import Settings, load_settings
from gbif_core.log_context import LogContext, configure_logging
from gbif_core.sizing import serialize
from gbif_core.truncation import ResponseTruncator
from gbif_tools.catalog import build_catalog
from gbif_tools.executor import ToolContext, ToolSpec, execute_tool

INSTRUCTIONS = (
    "Tools for the Global Biodiversity Information Facility (GBIF). "
    "Resolve names to taxon keys with gbif_species_match first, then use the "
    "keys with occurrence, map and species tools. Large result pages are "
    "truncated to stay within the response size limit; when a response says "
    "truncated=true, follow its pagination example to fetch the rest."
)


class GbifTool(Tool):
    """A FastMCP tool backed by a ToolSpec and the shared executor."""

    _spec: ToolSpec = PrivateAttr()
    _context: ToolContext = PrivateAttr()

    @classmethod
    def from_spec(cls, spec: ToolSpec, context: ToolContext) -> "GbifTool":
        tool = cls(
            name=spec.name,
            description=spec.description,
            parameters=spec.input_model.model_json_schema(by_alias=True),
        )
        tool._spec = spec
        tool._context = context
        return tool

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        envelope = await execute_tool(self._spec, arguments, self._context)
        # Sent once, as text, so the wire size is the envelope size.
        return ToolResult(content=[TextContent(type="text", text=serialize(envelope))])


def build_server(
    settings: Settings,
    client: Optional[GbifClient] = None,
    log: Optional[LogContext] = None,
) -> FastMCP:
    """Create the server and register the whole catalog.

    Args:
        settings: Loaded configuration.
        client:   GBIF client to share across tools.  One is created from
                  settings when omitted; the caller owns closing it.
        log:      Root log context.
    """
    log = log or LogContext(settings.logging)
    client = client or GbifClient(settings.gbif, settings.rate_limit, log)
    context = ToolContext(
        client=client,
        log=log.child("tools"),
        truncator=ResponseTruncator(settings.response_limits.max_size_bytes),
        limits=settings.response_limits,
    )

    mcp = FastMCP(
        name=settings.server.name,
        version=settings.server.version,
        instructions=INSTRUCTIONS,
    )
    catalog = build_catalog()
    for spec in catalog:
        mcp.add_tool(GbifTool.from_spec(spec, context))

    log.info(
        f"Registered {len(catalog)} tools",
        server=settings.server.name,
        max_response_size=settings.response_limits.max_size_bytes,
    )
    return mcp


async def serve(settings: Settings) -> None:
    """Run the server on stdio until the client disconnects."""
    log = LogContext(settings.logging)
    async with GbifClient(settings.gbif, settings.rate_limit, log) as client:
        mcp = build_server(settings, client=client, log=log)
        log.info(
            "Starting MCP server",
            name=settings.server.name,
            version=settings.server.version,
            base_url=settings.gbif.base_url,
        )
        await mcp.run_async(transport="stdio")
    log.info("Server stopped")


def main() -> None:
    settings = load_settings()
    configure_logging(settings.logging)
    asyncio.run(serve(settings))


if __name__ == "__main__":
    main()
