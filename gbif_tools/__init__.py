# =============================================================================
# gbif_tools/__init__.py
# =============================================================================
# The MCP layer.  Tools are plain data records (ToolSpec: name, description,
# pydantic input model, async handler) collected in catalog.py and run by the
# single generic executor in executor.py, which validates input, calls the
# handler, passes the result through the response size governor and wraps
# it in the response envelope.  mcp_server.py registers the records with
# FastMCP.
#
# No GBIF logic lives here; handlers delegate to gbif_core.services.
# =============================================================================
