# =============================================================================
# gbif_core/truncation.py  —  Response Size Governor
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Keeps every tool response under a fixed byte budget.  GBIF list and
#   search endpoints can return pages of hundreds of large records; the
#   governor shrinks the `results` list of such a page to the longest
#   prefix that fits, leaves every other field of the page alone, and tells
#   the caller how to fetch the rest.
#
# THE TWO PATHS:
#   1. Paginated payloads (a dict with a `results` list):
#        prefix-shrink the list, keep at least one record, attach a
#        pagination suggestion with a ready-to-send follow-up request.
#   2. Anything else (single records, bare lists, numbers):
#        there is no record list to shrink, so an oversized value is
#        replaced by `None` plus a message naming both sizes.
#
# The governor is synchronous and stateless apart from its budget.  It does
# no I/O and no logging; the tool executor logs around it.
# =============================================================================

import math
from itertools import accumulate
from typing import Any, Mapping, Optional

from gbif_core.models import GovernedResult, PaginationSuggestion
from gbif_core.sizing import calculate_size, format_size

DEFAULT_MAX_SIZE_BYTES = 250 * 1024


def is_paginated(value: Any) -> bool:
    """True for GBIF page shapes: a dict whose `results` is a list."""
    return isinstance(value, dict) and isinstance(value.get("results"), list)


class ResponseTruncator:
    """Shrinks oversized tool payloads to fit a byte budget."""

    def __init__(self, max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES):
        if max_size_bytes < 0:
            raise ValueError(f"max_size_bytes must be >= 0, got {max_size_bytes}")
        self._max_size_bytes = max_size_bytes

    @property
    def max_size_bytes(self) -> int:
        return self._max_size_bytes

    def available_bytes(self, reserve_bytes: int = 0) -> int:
        """Room left for the payload once `reserve_bytes` of wrapper is held back."""
        return max(0, self._max_size_bytes - reserve_bytes)

    def fits(self, size: int, reserve_bytes: int = 0) -> bool:
        return size <= self.available_bytes(reserve_bytes)

    def needs_truncation(self, value: Any, reserve_bytes: int = 0) -> bool:
        return not self.fits(calculate_size(value), reserve_bytes)

    def govern(
        self,
        value: Any,
        filters: Optional[Mapping[str, Any]] = None,
        reserve_bytes: int = 0,
    ) -> GovernedResult:
        """Route a service result to the paginated or whole-value path.

        `reserve_bytes` is held back from the budget for whatever the caller
        wraps around the payload (the tool envelope).
        """
        if is_paginated(value):
            return self.truncate_paginated_response(value, filters or {}, reserve_bytes)
        return self.truncate_value(value, reserve_bytes)

    # -------------------------------------------------------------------------
    # Paginated path
    # -------------------------------------------------------------------------
    def truncate_paginated_response(
        self,
        response: dict[str, Any],
        filters: Mapping[str, Any],
        reserve_bytes: int = 0,
    ) -> GovernedResult:
        """Fit a GBIF page under the budget by keeping a prefix of `results`.

        Args:
            response: The upstream page (results plus count/offset/limit/
                endOfRecords).  It is never mutated.
            filters: The parameters the caller sent.  Only echoed back inside
                the pagination example.
            reserve_bytes: Bytes of the budget kept free for the envelope.

        Returns:
            A GovernedResult.  Pages that already fit, and pages with no
            results, come back untouched with ``truncated=False``.

        Raises:
            ValueError: if the page cannot be serialized (e.g. it is cyclic).
        """
        results = response.get("results") or []
        total_count = response.get("count")
        original_size = calculate_size(response)

        if not results or self.fits(original_size, reserve_bytes):
            return GovernedResult(
                data=response,
                truncated=False,
                total_count=total_count,
                returned_count=len(results),
            )

        budget = self.available_bytes(reserve_bytes)
        kept = self._estimate_prefix(response, results, budget)
        data = {**response, "results": results[:kept]}
        returned_size = calculate_size(data)
        while kept > 1 and returned_size > budget:
            kept -= 1
            data = {**response, "results": results[:kept]}
            returned_size = calculate_size(data)

        pagination = self._pagination_suggestion(
            filters, kept, self._page_offset(response, filters)
        )

        limit_text = format_size(self._max_size_bytes)
        message_parts = [
            f"Response truncated from {len(results)} to {kept} results "
            f"to stay under {limit_text}."
        ]
        if total_count is not None:
            message_parts.append(f"Total matching records: {total_count}.")
        message_parts.append(pagination.suggestion)

        return GovernedResult(
            data=data,
            truncated=True,
            total_count=total_count,
            returned_count=kept,
            message=" ".join(message_parts),
            pagination=pagination,
            original_size=format_size(original_size),
            returned_size=format_size(returned_size),
            size_limit=limit_text,
        )

    @staticmethod
    def _estimate_prefix(response: dict[str, Any], results: list[Any], budget: int) -> int:
        """Largest k (>= 1) whose page fits, from per-record sizes.

        For compact JSON the size of a page with k records is the size of
        the page with an empty list, plus the first k record sizes, plus
        k - 1 separating commas.  The search starts from budget / average
        record size, shrinks in proportion to the overshoot, then grows
        while the next record still fits.
        """
        record_sizes = [calculate_size(record) for record in results]
        prefix = list(accumulate(record_sizes, initial=0))
        base_size = calculate_size({**response, "results": []})
        total = len(results)

        def fitted_size(k: int) -> int:
            return base_size + prefix[k] + max(k - 1, 0)

        average = prefix[total] / total
        k = min(total, max(1, int(budget // average)))

        while k > 1 and fitted_size(k) > budget:
            overshoot = fitted_size(k) - budget
            k = max(1, k - max(1, math.ceil(overshoot / average)))

        while k < total and fitted_size(k + 1) <= budget:
            k += 1

        return k

    @staticmethod
    def _page_offset(response: Mapping[str, Any], filters: Mapping[str, Any]) -> int:
        offset = response.get("offset")
        if offset is None:
            offset = filters.get("offset")
        return int(offset or 0)

    @staticmethod
    def _pagination_suggestion(
        filters: Mapping[str, Any], kept: int, offset: int
    ) -> PaginationSuggestion:
        next_offset = offset + kept
        suggestion = (
            f"To get the remaining results, set limit={kept} or lower and advance "
            f"the offset: offset={next_offset}, then offset={next_offset + kept}, "
            f"and so on until endOfRecords is true."
        )
        example = {**filters, "limit": kept, "offset": next_offset}
        return PaginationSuggestion(suggestion=suggestion, example=example)

    # -------------------------------------------------------------------------
    # Whole-value path
    # -------------------------------------------------------------------------
    def truncate_value(self, value: Any, reserve_bytes: int = 0) -> GovernedResult:
        """Size-check a value that has no record list to shrink.

        Oversized values are dropped entirely: ``data`` becomes None and
        the message reports the original size against the budget.
        """
        size = calculate_size(value)
        if self.fits(size, reserve_bytes):
            return GovernedResult(data=value, truncated=False)

        original = format_size(size)
        limit_text = format_size(self._max_size_bytes)
        return GovernedResult(
            data=None,
            truncated=True,
            returned_count=0,
            message=(
                f"Response size ({original}) exceeds maximum limit ({limit_text}). "
                f"No data returned. Narrow the request with more specific filters."
            ),
            original_size=original,
            returned_size=format_size(0),
            size_limit=limit_text,
        )
