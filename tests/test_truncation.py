"""
Tests for the response size governor.

These tests verify:
- Pages within budget pass through untouched
- Oversized pages keep the longest fitting prefix, never fewer than one record
- totalCount always reports the upstream count
- Pagination advice points at the next offset with the caller's filters
- Values with no record list are dropped when oversized
"""

import random

import pytest

from gbif_core.sizing import calculate_size
from gbif_core.truncation import ResponseTruncator, is_paginated

from .helpers import make_page, make_records

KB = 1024


def test_negative_budget_is_rejected():
    with pytest.raises(ValueError):
        ResponseTruncator(-1)


def test_budget_is_read_only():
    truncator = ResponseTruncator(10 * KB)
    assert truncator.max_size_bytes == 10 * KB
    with pytest.raises(AttributeError):
        truncator.max_size_bytes = 1


def test_needs_truncation():
    truncator = ResponseTruncator(100)
    assert not truncator.needs_truncation({"a": 1})
    assert truncator.needs_truncation({"a": "x" * 200})


def test_is_paginated():
    assert is_paginated({"results": []})
    assert not is_paginated({"results": None})
    assert not is_paginated([{"results": []}])
    assert not is_paginated({"key": 1})


# -----------------------------------------------------------------------------
# Paginated path
# -----------------------------------------------------------------------------
def test_page_within_budget_is_returned_untouched():
    page = make_page(make_records(10), count=1234)
    result = ResponseTruncator(250 * KB).truncate_paginated_response(page, {"q": "Puma"})

    assert result.truncated is False
    assert result.data is page
    assert result.total_count == 1234
    assert result.returned_count == 10
    assert result.message is None
    assert result.pagination is None


def test_empty_results_are_never_truncated():
    page = make_page([], count=0)
    for budget in (0, 1, 250 * KB):
        result = ResponseTruncator(budget).truncate_paginated_response(page, {})
        assert result.truncated is False
        assert result.total_count == 0
        assert result.returned_count == 0


def test_large_occurrence_page_is_truncated_with_pagination_advice():
    records = make_records(5000)
    page = make_page(records, count=5000, offset=0, limit=300)
    filters = {"taxonKey": 212}
    budget = 250 * KB

    result = ResponseTruncator(budget).truncate_paginated_response(page, filters)

    assert result.truncated is True
    assert 0 < result.returned_count < 5000
    assert len(result.data["results"]) == result.returned_count
    assert result.data["results"] == records[: result.returned_count]
    assert calculate_size(result.data) <= budget
    assert result.total_count == 5000

    example = result.pagination.example
    assert example["taxonKey"] == 212
    assert example["limit"] == result.returned_count
    assert example["offset"] == result.returned_count
    assert "limit" in result.pagination.suggestion
    assert "Total matching records: 5000." in result.message
    assert result.size_limit == "250KB"


def test_kept_prefix_is_the_longest_that_fits():
    rng = random.Random(7)
    records = [
        {"key": i, "remarks": "y" * rng.randint(10, 600)} for i in range(400)
    ]
    page = make_page(records, count=90000)
    budget = 20 * KB

    result = ResponseTruncator(budget).truncate_paginated_response(page, {})
    kept = result.returned_count

    assert calculate_size({**page, "results": records[:kept]}) <= budget
    assert calculate_size({**page, "results": records[: kept + 1]}) > budget


def test_other_page_fields_are_preserved():
    page = make_page(make_records(500), count=777, offset=40, limit=500)
    page["facets"] = [{"field": "COUNTRY", "counts": []}]

    result = ResponseTruncator(10 * KB).truncate_paginated_response(page, {})

    for key in ("offset", "limit", "endOfRecords", "count", "facets"):
        assert result.data[key] == page[key]
    assert len(page["results"]) == 500


def test_next_offset_continues_from_the_page_offset():
    page = make_page(make_records(500), offset=40, limit=500)
    result = ResponseTruncator(10 * KB).truncate_paginated_response(page, {"offset": 40})

    assert result.pagination.example["offset"] == 40 + result.returned_count


def test_missing_page_offset_falls_back_to_filters():
    page = make_page(make_records(500))
    del page["offset"]
    result = ResponseTruncator(10 * KB).truncate_paginated_response(page, {"offset": 100})

    assert result.pagination.example["offset"] == 100 + result.returned_count


def test_single_oversized_record_is_kept():
    page = make_page([{"key": 1, "notes": "z" * 5000}], count=1)
    result = ResponseTruncator(1 * KB).truncate_paginated_response(page, {})

    assert result.truncated is True
    assert result.returned_count == 1
    assert result.data["results"] == page["results"]


def test_zero_budget_keeps_one_record():
    page = make_page(make_records(3), count=3)
    result = ResponseTruncator(0).truncate_paginated_response(page, {})

    assert result.truncated is True
    assert result.returned_count == 1


def test_missing_count_is_reported_as_unknown():
    page = make_page(make_records(200))
    del page["count"]
    result = ResponseTruncator(5 * KB).truncate_paginated_response(page, {})

    assert result.truncated is True
    assert result.total_count is None
    assert "totalCount" not in result.metadata()
    assert "Total matching records" not in result.message


def test_truncation_is_idempotent():
    truncator = ResponseTruncator(20 * KB)
    page = make_page(make_records(1000), count=1000)

    first = truncator.truncate_paginated_response(page, {})
    second = truncator.truncate_paginated_response(first.data, {})

    assert first.truncated is True
    assert second.truncated is False
    assert second.data is first.data


def test_to_dict_renders_camel_case_keys():
    page = make_page(make_records(500), count=500)
    rendered = ResponseTruncator(10 * KB).truncate_paginated_response(page, {"q": "x"}).to_dict()

    assert rendered["truncated"] is True
    assert rendered["metadata"] == {
        "totalCount": 500,
        "returnedCount": len(rendered["data"]["results"]),
    }
    assert set(rendered["pagination"]) == {"suggestion", "example"}
    assert rendered["limit"] == "10KB"
    assert rendered["originalSize"].endswith("KB")
    assert rendered["returnedSize"].endswith("KB")


# -----------------------------------------------------------------------------
# Whole-value path
# -----------------------------------------------------------------------------
def test_small_value_passes_through():
    record = {"key": 5219404, "scientificName": "Panthera leo"}
    result = ResponseTruncator(1 * KB).govern(record)

    assert result.truncated is False
    assert result.data is record


def test_oversized_value_is_dropped_with_message():
    document = "<eml>" + "a" * 4096 + "</eml>"
    result = ResponseTruncator(1 * KB).govern(document)

    assert result.truncated is True
    assert result.data is None
    assert result.returned_count == 0
    assert result.returned_size == "0KB"
    assert result.size_limit == "1KB"
    assert "exceeds maximum limit (1KB)" in result.message


def test_govern_routes_pages_to_the_paginated_path():
    page = make_page(make_records(500), count=500)
    result = ResponseTruncator(10 * KB).govern(page, {"country": "US"})

    assert result.truncated is True
    assert result.data is not None
    assert result.pagination.example["country"] == "US"


def test_cyclic_page_raises_value_error():
    page = make_page(make_records(3))
    page["results"].append(page)

    with pytest.raises(ValueError):
        ResponseTruncator(10 * KB).truncate_paginated_response(page, {})


# -----------------------------------------------------------------------------
# Envelope reserve
# -----------------------------------------------------------------------------
def test_reserve_shrinks_the_available_budget():
    truncator = ResponseTruncator(10 * KB)

    assert truncator.available_bytes() == 10 * KB
    assert truncator.available_bytes(2000) == 10 * KB - 2000
    assert truncator.available_bytes(20 * KB) == 0


def test_needs_truncation_counts_the_reserve():
    value = {"text": "a" * 900}
    truncator = ResponseTruncator(1 * KB)

    assert not truncator.needs_truncation(value)
    assert truncator.needs_truncation(value, reserve_bytes=200)


def test_page_with_reserve_fits_the_reduced_budget():
    page = make_page(make_records(500), count=500)
    reserve = 3000
    result = ResponseTruncator(20 * KB).truncate_paginated_response(page, {}, reserve)

    assert result.truncated is True
    assert calculate_size(result.data) <= 20 * KB - reserve
    assert result.size_limit == "20KB"


def test_value_with_reserve_is_dropped():
    result = ResponseTruncator(1 * KB).truncate_value("a" * 900, reserve_bytes=500)

    assert result.truncated is True
    assert result.data is None
