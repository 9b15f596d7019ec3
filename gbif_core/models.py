# =============================================================================
# gbif_core/models.py  —  Data Models for Governed Responses
# =============================================================================
#
# These dataclasses describe what the response size governor hands back to
# the tool layer.  Upstream GBIF payloads themselves stay plain dicts and
# lists (decoded JSON): the governor treats individual records as opaque.
#
# A GBIF paginated response looks like:
#
#     {"offset": 0, "limit": 20, "endOfRecords": false, "count": 1234,
#      "results": [ {...}, {...}, ... ]}
#
# `count` is the number of matches on the server, `results` is this page.
# =============================================================================

from dataclasses import dataclass, field
from typing import Any, Optional


# -----------------------------------------------------------------------------
# PaginationSuggestion: how to resume after a truncated page
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class PaginationSuggestion:
    """Resumption guidance attached to a truncated paginated response."""

    suggestion: str                    # Natural-language advice, mentions "limit"
    example: dict[str, Any] = field(default_factory=dict)
    # `example` is the caller's own filters with limit/offset adjusted, ready
    # to be sent as the next request.

    def to_dict(self) -> dict[str, Any]:
        return {"suggestion": self.suggestion, "example": dict(self.example)}


# -----------------------------------------------------------------------------
# GovernedResult: output of the response size governor
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class GovernedResult:
    """Either the untouched payload or a bounded, annotated replacement.

    When ``truncated`` is False, ``data`` is the very object that was passed
    in.  When True, ``data`` holds the shrunk page (or None for values that
    have no record list to shrink) and ``message``/``pagination`` narrate
    what happened.
    """

    data: Any
    truncated: bool = False
    total_count: Optional[int] = None      # Upstream `count`, never altered
    returned_count: Optional[int] = None   # Records actually kept
    message: Optional[str] = None
    pagination: Optional[PaginationSuggestion] = None

    # Formatted sizes, only filled in on the truncation path
    original_size: Optional[str] = None
    returned_size: Optional[str] = None
    size_limit: Optional[str] = None

    def metadata(self) -> dict[str, Any]:
        """The totalCount/returnedCount block, omitting unknown counts."""
        block: dict[str, Any] = {}
        if self.total_count is not None:
            block["totalCount"] = self.total_count
        if self.returned_count is not None:
            block["returnedCount"] = self.returned_count
        return block

    def to_dict(self) -> dict[str, Any]:
        """Render with the camelCase keys callers see on the wire."""
        rendered: dict[str, Any] = {
            "data": self.data,
            "truncated": self.truncated,
            "metadata": self.metadata(),
        }
        if self.message is not None:
            rendered["message"] = self.message
        if self.pagination is not None:
            rendered["pagination"] = self.pagination.to_dict()
        if self.original_size is not None:
            rendered["originalSize"] = self.original_size
        if self.returned_size is not None:
            rendered["returnedSize"] = self.returned_size
        if self.size_limit is not None:
            rendered["limit"] = self.size_limit
        return rendered
