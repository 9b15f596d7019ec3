# =============================================================================
# gbif_core/log_context.py  —  Logging Context
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Provides LogContext, the object every component receives for logging.
#   It is built once in main.py from LoggingSettings and passed down to the
#   client, the tool executor and the server; nothing here is a module-level
#   logger that other modules reach for.
#
# STDERR ONLY:
#   The MCP stdio transport owns STDOUT.  Anything printed there corrupts
#   the JSON-RPC stream, so the handler installed by configure_logging()
#   writes to STDERR.
#
# MASKING:
#   With LOG_MASK_SENSITIVE on (the default), any field whose key mentions a
#   password, token, secret, auth header or API key is replaced by
#   "[MASKED]" before it is rendered, at any nesting depth.
#
# COLORS (simple format only):
#   CYAN   → incoming tool calls
#   YELLOW → intermediate status lines
#   GREEN  → tool responses
# =============================================================================

import json
import logging
import sys
from typing import Any, Mapping, Optional

from gbif_core.config import LoggingSettings

_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"

MASK = "[MASKED]"
_SENSITIVE_MARKERS = ("password", "passwd", "secret", "token", "authorization", "apikey", "api_key")

_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

_HANDLER_NAME = "gbif-mcp-stderr"


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    if lowered == "auth":
        return True
    return any(marker in lowered for marker in _SENSITIVE_MARKERS)


def mask_sensitive(value: Any) -> Any:
    """Return a copy of ``value`` with credential-like fields masked."""
    if isinstance(value, Mapping):
        return {
            key: MASK if _is_sensitive(str(key)) else mask_sensitive(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [mask_sensitive(item) for item in value]
    return value


def configure_logging(settings: LoggingSettings) -> None:
    """Install the stderr handler on the root logger (idempotent)."""
    root = logging.getLogger()
    root.setLevel(_LEVELS[settings.level])
    if any(handler.get_name() == _HANDLER_NAME for handler in root.handlers):
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        logging.Formatter("%(asctime)s [MCP] %(levelname)s %(message)s", datefmt="%H:%M:%S")
    )
    root.addHandler(handler)


class LogContext:
    """A named logger plus the rendering rules from LoggingSettings."""

    def __init__(self, settings: Optional[LoggingSettings] = None, name: str = "gbif_mcp"):
        self.settings = settings or LoggingSettings()
        self.name = name
        self._logger = logging.getLogger(name)
        self._logger.setLevel(_LEVELS[self.settings.level])

    def child(self, suffix: str) -> "LogContext":
        """Same settings, logger named ``<name>.<suffix>``."""
        return LogContext(self.settings, f"{self.name}.{suffix}")

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------
    def _prepare(self, fields: Mapping[str, Any]) -> Any:
        if self.settings.mask_sensitive:
            return mask_sensitive(fields)
        return dict(fields)

    def _render(self, message: str, fields: Mapping[str, Any]) -> str:
        if not fields:
            if self.settings.format == "json":
                return json.dumps({"message": message}, default=str)
            return message
        prepared = self._prepare(fields)
        if self.settings.format == "json":
            return json.dumps({"message": message, **prepared}, default=str)
        rendered = " ".join(f"{key}={value!r}" for key, value in prepared.items())
        return f"{message} {rendered}"

    def _colored(self, color: str, text: str) -> str:
        if self.settings.format == "json":
            return text
        return f"{color}{text}{_RESET}"

    # -------------------------------------------------------------------------
    # Level methods
    # -------------------------------------------------------------------------
    def debug(self, message: str, **fields: Any) -> None:
        if self._logger.isEnabledFor(logging.DEBUG):
            self._logger.debug(self._render(message, fields))

    def info(self, message: str, **fields: Any) -> None:
        if self._logger.isEnabledFor(logging.INFO):
            self._logger.info(self._render(message, fields))

    def warning(self, message: str, **fields: Any) -> None:
        self._logger.warning(self._render(message, fields))

    def error(self, message: str, **fields: Any) -> None:
        self._logger.error(self._render(message, fields))

    # -------------------------------------------------------------------------
    # Tool-call helpers
    # -------------------------------------------------------------------------
    def request(self, tool_name: str, params: Mapping[str, Any]) -> None:
        """Log an incoming tool call with its parameters in CYAN."""
        prepared = self._prepare(params)
        param_str = ", ".join(f"{k}={v!r}" for k, v in prepared.items())
        self._logger.info(self._colored(_CYAN, f"{tool_name} called with: {param_str}"))

    def status(self, message: str) -> None:
        """Log an intermediate status message in YELLOW."""
        self._logger.info(self._colored(_YELLOW, f"  → {message}"))

    def response(self, tool_name: str, envelope: Mapping[str, Any]) -> None:
        """Log a one-line outcome of a tool call in GREEN."""
        if envelope.get("success"):
            outcome = "truncated" if envelope.get("truncated") else "ok"
        else:
            outcome = f"error: {envelope.get('error', {}).get('message')}"
        self._logger.info(self._colored(_GREEN, f"  ← {tool_name} response: {outcome}"))
