# =============================================================================
# gbif_core/__init__.py
# =============================================================================
# Pure logic behind the GBIF MCP server: configuration, logging context,
# the GBIF HTTP client, per-domain service functions and the response size
# governor.
#
# Nothing in this package imports FastMCP.  The tool layer (gbif_tools/)
# depends on this package, never the other way round.
# =============================================================================
