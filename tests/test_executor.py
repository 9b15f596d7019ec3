"""
Tests for execute_tool and the response envelope.

These tests verify:
- Success envelopes carry data, tool metadata and handler summaries
- Oversized results are truncated with pagination advice in the caller's keys
- The serialized envelope, not just its data, fits the byte budget
- Bad arguments and GBIF errors become failure envelopes
- Unexpected exceptions propagate
"""

import logging
from unittest.mock import AsyncMock

import pytest

from gbif_core.config import ResponseLimitSettings
from gbif_core.errors import GbifApiError
from gbif_core.sizing import calculate_size
from gbif_core.truncation import ResponseTruncator
from gbif_tools.executor import ToolContext, ToolSpec, execute_tool
from gbif_tools.schemas import SpeciesKeyInput, SpeciesSearchInput

from .helpers import make_page, make_records

KB = 1024


def make_context(log, max_kb=10, warn_kb=8, **flags):
    limits = ResponseLimitSettings(
        max_size_kb=max_kb, warn_size_kb=warn_kb, **flags
    )
    return ToolContext(
        client=AsyncMock(),
        log=log,
        truncator=ResponseTruncator(limits.max_size_bytes),
        limits=limits,
    )


def make_spec(handler, input_model=SpeciesSearchInput, name="gbif_species_search"):
    return ToolSpec(name=name, description="test tool", input_model=input_model, handler=handler)


@pytest.mark.asyncio
async def test_success_envelope(log):
    async def handler(ctx, params):
        return {"key": params.key, "scientificName": "Panthera leo"}, {"key": params.key}

    spec = make_spec(handler, SpeciesKeyInput, "gbif_species_get")
    envelope = await execute_tool(spec, {"key": 5219404}, make_context(log))

    assert envelope["success"] is True
    assert envelope["truncated"] is False
    assert envelope["data"] == {"key": 5219404, "scientificName": "Panthera leo"}
    assert envelope["metadata"]["tool"] == "gbif_species_get"
    assert envelope["metadata"]["key"] == 5219404
    assert envelope["metadata"]["timestamp"].endswith("Z")
    assert "message" not in envelope


@pytest.mark.asyncio
async def test_handler_receives_validated_model(log):
    seen = {}

    async def handler(ctx, params):
        seen["params"] = params
        return make_page([]), {}

    await execute_tool(make_spec(handler), {"q": "Puma", "higherTaxonKey": 212}, make_context(log))

    params = seen["params"]
    assert params.higher_taxon_key == 212
    assert params.filters() == {"q": "Puma", "higherTaxonKey": 212, "offset": 0, "limit": 20}


@pytest.mark.asyncio
async def test_page_counts_are_reported(log):
    async def handler(ctx, params):
        return make_page(make_records(3), count=4200), {}

    envelope = await execute_tool(make_spec(handler), {}, make_context(log))

    assert envelope["metadata"]["totalCount"] == 4200
    assert envelope["metadata"]["returnedCount"] == 3


@pytest.mark.asyncio
async def test_oversized_page_is_truncated(log, caplog):
    async def handler(ctx, params):
        return make_page(make_records(500), count=9000, offset=params.offset), {}

    with caplog.at_level(logging.WARNING):
        envelope = await execute_tool(
            make_spec(handler), {"higherTaxonKey": 212, "offset": 40}, make_context(log)
        )

    assert envelope["success"] is True
    assert envelope["truncated"] is True
    kept = envelope["metadata"]["returnedCount"]
    assert kept == len(envelope["data"]["results"]) < 500
    assert envelope["metadata"]["totalCount"] == 9000
    assert envelope["limit"] == "10KB"
    assert envelope["pagination"]["example"] == {
        "higherTaxonKey": 212,
        "offset": 40 + kept,
        "limit": kept,
    }
    assert "Response exceeds size limit, truncating" in caplog.text


@pytest.mark.asyncio
async def test_truncation_can_be_disabled(log):
    async def handler(ctx, params):
        return make_page(make_records(500), count=500), {}

    context = make_context(log, enable_truncation=False)
    envelope = await execute_tool(make_spec(handler), {}, context)

    assert envelope["truncated"] is False
    assert len(envelope["data"]["results"]) == 500
    assert envelope["metadata"]["returnedCount"] == 500


@pytest.mark.asyncio
async def test_warning_above_warn_threshold(log, caplog):
    async def handler(ctx, params):
        return {"text": "a" * (9 * KB)}, {}

    with caplog.at_level(logging.WARNING):
        envelope = await execute_tool(
            make_spec(handler, SpeciesKeyInput), {"key": 1}, make_context(log, max_kb=20)
        )

    assert envelope["truncated"] is False
    assert "Response size above warning threshold" in caplog.text


@pytest.mark.asyncio
async def test_small_response_logs_within_limits(log, caplog):
    async def handler(ctx, params):
        return make_page(make_records(2)), {}

    with caplog.at_level(logging.DEBUG):
        await execute_tool(make_spec(handler), {}, make_context(log))

    assert "Response within size limits" in caplog.text
    assert "Response exceeds size limit" not in caplog.text


# -----------------------------------------------------------------------------
# The whole envelope stays under the budget
# -----------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_truncated_envelope_fits_budget(log):
    async def handler(ctx, params):
        return make_page(make_records(500), count=9000), {"query": params.q}

    envelope = await execute_tool(make_spec(handler), {"q": "Puma concolor"}, make_context(log))

    assert envelope["truncated"] is True
    assert calculate_size(envelope) <= 10 * KB


@pytest.mark.asyncio
async def test_page_just_under_budget_is_trimmed_for_the_envelope(log):
    records = make_records(200)
    page = make_page(records, count=200)
    while calculate_size(page) > 10 * KB - 100:
        records.pop()
    assert calculate_size(page) <= 10 * KB

    async def handler(ctx, params):
        return page, {}

    envelope = await execute_tool(make_spec(handler), {}, make_context(log))

    assert envelope["truncated"] is True
    assert envelope["metadata"]["returnedCount"] < len(records)
    assert calculate_size(envelope) <= 10 * KB


@pytest.mark.asyncio
async def test_long_filters_still_fit_budget(log):
    async def handler(ctx, params):
        return make_page(make_records(500), count=9000), {}

    long_query = "Puma concolor " * 100
    envelope = await execute_tool(make_spec(handler), {"q": long_query}, make_context(log))

    assert envelope["truncated"] is True
    assert envelope["pagination"]["example"]["q"] == long_query
    assert calculate_size(envelope) <= 10 * KB


@pytest.mark.asyncio
async def test_invalid_arguments_produce_error_envelope(log):
    handler = AsyncMock()

    envelope = await execute_tool(
        make_spec(handler, SpeciesKeyInput, "gbif_species_get"),
        {"key": "not-a-number", "colour": "red"},
        make_context(log),
    )

    assert envelope["success"] is False
    assert envelope["error"]["type"] == "ToolInputError"
    assert envelope["error"]["message"].startswith("Invalid input for gbif_species_get: key:")
    assert "colour" in envelope["error"]["message"]
    assert envelope["metadata"]["tool"] == "gbif_species_get"
    assert "data" not in envelope
    handler.assert_not_awaited()


@pytest.mark.asyncio
async def test_limit_above_maximum_is_rejected(log):
    envelope = await execute_tool(make_spec(AsyncMock()), {"limit": 5000}, make_context(log))
    assert envelope["success"] is False
    assert "limit" in envelope["error"]["message"]


@pytest.mark.asyncio
async def test_api_error_produces_error_envelope(log):
    async def handler(ctx, params):
        raise GbifApiError("Not found", status_code=404, code="HTTP_404")

    envelope = await execute_tool(make_spec(handler, SpeciesKeyInput), {"key": 1}, make_context(log))

    assert envelope == {
        "success": False,
        "error": {"message": "Resource not found in GBIF", "type": "GbifApiError"},
        "metadata": {"tool": "gbif_species_search", "timestamp": envelope["metadata"]["timestamp"]},
    }


@pytest.mark.asyncio
async def test_unexpected_errors_propagate(log):
    async def handler(ctx, params):
        raise RuntimeError("bug")

    with pytest.raises(RuntimeError):
        await execute_tool(make_spec(handler, SpeciesKeyInput), {"key": 1}, make_context(log))
