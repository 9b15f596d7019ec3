BASE_URL = "https://api.gbif.test/v1"


def make_page(records, count=None, offset=0, limit=None):
    """A GBIF-shaped paginated response."""
    return {
        "offset": offset,
        "limit": limit if limit is not None else len(records),
        "endOfRecords": False,
        "count": len(records) if count is None else count,
        "results": records,
    }


def make_records(n, padding=80):
    return [
        {"key": i, "scientificName": f"Species {i}", "notes": "x" * padding}
        for i in range(n)
    ]
