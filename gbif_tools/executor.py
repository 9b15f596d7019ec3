# =============================================================================
# gbif_tools/executor.py  —  Generic Tool Execution
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Runs one tool call end to end.  Every tool in the catalog is a ToolSpec
#   record; execute_tool() is the single pipeline they all go through:
#
#       arguments ──► input model ──► handler ──► size governor ──► envelope
#
# ENVELOPES:
#   success → {"success": true, "data": ..., "truncated": bool,
#              "metadata": {"tool", "timestamp", ...summary,
#                           "totalCount"?, "returnedCount"?},
#              "message"?, "pagination"?, "originalSize"?, ...}
#   failure → {"success": false, "error": {"message", "type"},
#              "metadata": {"tool", "timestamp"}}
#
#   Only bad arguments and GBIF API errors become failure envelopes.  Any
#   other exception is a bug and propagates to the MCP layer.
# =============================================================================

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Mapping, Optional

from pydantic import BaseModel, ValidationError

from gbif_core.client import GbifClient
from gbif_core.config import ResponseLimitSettings
from gbif_core.errors import GbifApiError, ToolInputError
from gbif_core.log_context import LogContext
from gbif_core.models import GovernedResult
from gbif_core.sizing import calculate_size, format_size
from gbif_core.truncation import ResponseTruncator, is_paginated

from gbif_tools.schemas import ToolInput

# Budget held back for the envelope around `data`: success flag, metadata,
# message, size fields.  The echoed filters and summary are added per call.
ENVELOPE_RESERVE_BYTES = 2000


@dataclass
class ToolContext:
    """Shared collaborators handed to every handler."""

    client: GbifClient
    log: LogContext
    truncator: ResponseTruncator
    limits: ResponseLimitSettings


Handler = Callable[[ToolContext, Any], Awaitable[tuple[Any, dict[str, Any]]]]


@dataclass(frozen=True)
class ToolSpec:
    """One MCP tool: its name, description, input contract and handler.

    The handler receives the validated input model and returns the raw
    result plus a small summary dict that is merged into the metadata.
    """

    name: str
    description: str
    input_model: type[BaseModel]
    handler: Handler


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def format_validation_error(tool_name: str, exc: ValidationError) -> str:
    """Collapse pydantic errors into one readable line."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "input"
        parts.append(f"{location}: {error.get('msg')}")
    return f"Invalid input for {tool_name}: " + "; ".join(parts)


def error_envelope(tool_name: str, message: str, error_type: str) -> dict[str, Any]:
    return {
        "success": False,
        "error": {"message": message, "type": error_type},
        "metadata": {"tool": tool_name, "timestamp": _timestamp()},
    }


def success_envelope(
    tool_name: str,
    governed: GovernedResult,
    summary: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    rendered = governed.to_dict()
    metadata = {"tool": tool_name, "timestamp": _timestamp()}
    metadata.update(summary or {})
    metadata.update(rendered.pop("metadata"))
    return {"success": True, **rendered, "metadata": metadata}


def _ungoverned(result: Any) -> GovernedResult:
    # Truncation disabled: still report the page counts.
    if is_paginated(result):
        return GovernedResult(
            data=result,
            total_count=result.get("count"),
            returned_count=len(result["results"]),
        )
    return GovernedResult(data=result)


def _can_shrink(governed: GovernedResult) -> bool:
    if governed.data is None:
        return False
    if governed.returned_count is None:
        # a whole value can still be dropped
        return True
    # pages keep at least one record
    floor = 1 if governed.truncated else 0
    return governed.returned_count > floor


def _govern(
    spec: ToolSpec,
    result: Any,
    filters: Mapping[str, Any],
    summary: Mapping[str, Any],
    context: ToolContext,
) -> dict[str, Any]:
    """Fit the whole envelope, not just `data`, under the byte budget.

    The governor is first given a reserve sized for the envelope fields.
    If the finished envelope still overshoots (long filters echoed in the
    pagination example, say), the reserve grows by the overshoot and the
    result is governed again.
    """
    limits = context.limits
    log = context.log
    truncator = context.truncator

    if not limits.enable_truncation:
        return success_envelope(spec.name, _ungoverned(result), summary)

    size = calculate_size(result)
    if size > limits.warn_size_bytes:
        log.warning(
            "Response size above warning threshold",
            tool=spec.name,
            size=format_size(size),
            threshold=format_size(limits.warn_size_bytes),
        )

    reserve = ENVELOPE_RESERVE_BYTES + calculate_size(filters) + calculate_size(summary)
    governed = truncator.govern(result, filters, reserve)
    envelope = success_envelope(spec.name, governed, summary)
    overshoot = calculate_size(envelope) - truncator.max_size_bytes
    while overshoot > 0 and _can_shrink(governed):
        reserve += overshoot
        governed = truncator.govern(result, filters, reserve)
        envelope = success_envelope(spec.name, governed, summary)
        overshoot = calculate_size(envelope) - truncator.max_size_bytes

    if governed.truncated:
        log.warning(
            "Response exceeds size limit, truncating",
            tool=spec.name,
            original_size=governed.original_size,
            returned_size=governed.returned_size,
            returned_count=governed.returned_count,
        )
    elif limits.enable_size_logging:
        log.debug("Response within size limits", tool=spec.name, size=format_size(size))
    return envelope


# =============================================================================
# PUBLIC API: execute_tool
# =============================================================================
async def execute_tool(
    spec: ToolSpec,
    arguments: Optional[Mapping[str, Any]],
    context: ToolContext,
) -> dict[str, Any]:
    """Validate, run, govern and wrap one tool call.

    Args:
        spec:      The catalog entry being invoked.
        arguments: Raw arguments from the MCP client (camelCase keys).
        context:   Client, governor, logger and response limits.

    Returns:
        A success or failure envelope (see module header).
    """
    log = context.log
    raw = dict(arguments or {})
    log.request(spec.name, raw)

    try:
        params = spec.input_model.model_validate(raw)
    except ValidationError as exc:
        envelope = error_envelope(
            spec.name, format_validation_error(spec.name, exc), ToolInputError.__name__
        )
        log.response(spec.name, envelope)
        return envelope

    filters = params.filters() if isinstance(params, ToolInput) else params.model_dump()

    try:
        result, summary = await spec.handler(context, params)
    except ToolInputError as exc:
        envelope = error_envelope(spec.name, str(exc), type(exc).__name__)
        log.response(spec.name, envelope)
        return envelope
    except GbifApiError as exc:
        log.error("Tool call failed", tool=spec.name, error=str(exc), code=exc.code)
        envelope = error_envelope(spec.name, exc.user_message(), type(exc).__name__)
        log.response(spec.name, envelope)
        return envelope

    if is_paginated(result):
        log.status(
            f"GBIF returned {len(result['results'])} of {result.get('count', '?')} results"
        )

    envelope = _govern(spec, result, filters, summary, context)
    log.response(spec.name, envelope)
    return envelope
