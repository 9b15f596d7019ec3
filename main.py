# =============================================================================
# main.py  —  Entry Point for the GBIF MCP Server
# =============================================================================
#
# HOW TO RUN:
#   python main.py            (or the `gbif-mcp-server` console script)
#
# WHAT HAPPENS:
#   1. Loads a local .env file, if present, into the environment
#   2. Reads all settings from the environment (gbif_core/config.py)
#   3. Installs the STDERR log handler
#   4. Serves every GBIF tool over stdio until the client disconnects
#
# CONFIGURATION:
#   Every variable is optional; see gbif_core/config.py for the list.
#   A bad value (e.g. GBIF_TIMEOUT=soon) stops the server before it starts
#   with a one-line message on STDERR.
# =============================================================================

import asyncio
import sys

from dotenv import load_dotenv

# Load .env BEFORE reading settings, so file values behave like exported ones.
load_dotenv()

from gbif_core.config import load_settings
from gbif_core.errors import ConfigError
from gbif_core.log_context import configure_logging
from gbif_tools.mcp_server import serve


def main() -> None:
    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(2)

    configure_logging(settings.logging)

    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        print("\nGoodbye!", file=sys.stderr)


if __name__ == "__main__":
    main()
