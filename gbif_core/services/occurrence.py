# =============================================================================
# gbif_core/services/occurrence.py  —  Occurrence API (/occurrence)
# =============================================================================
#
# Besides plain search/get/count, this module exposes "counts by" helpers:
# GBIF has no dedicated breakdown endpoints, so they run a faceted search
# with limit=0 and turn the single requested facet into a {value: count}
# mapping.
# =============================================================================

from typing import Any, Mapping

from gbif_core.client import GbifClient

BASE_PATH = "/occurrence"

# Facet names accepted by counts_by(), mapped to the field name GBIF uses in
# the `facets` block of its answer.
FACET_FIELDS = {
    "year": "YEAR",
    "country": "COUNTRY",
    "basisOfRecord": "BASIS_OF_RECORD",
    "datasetKey": "DATASET_KEY",
    "taxonKey": "TAXON_KEY",
    "publishingCountry": "PUBLISHING_COUNTRY",
    "publishingOrg": "PUBLISHING_ORG",
}

# Search parameters the download predicate builder understands, and the
# GBIF download predicate key each one maps to.
PREDICATE_KEYS = {
    "taxonKey": "TAXON_KEY",
    "country": "COUNTRY",
    "year": "YEAR",
    "month": "MONTH",
    "datasetKey": "DATASET_KEY",
    "basisOfRecord": "BASIS_OF_RECORD",
    "publishingOrg": "PUBLISHING_ORG",
    "publishingCountry": "PUBLISHING_COUNTRY",
    "hasCoordinate": "HAS_COORDINATE",
    "hasGeospatialIssue": "HAS_GEOSPATIAL_ISSUE",
    "continent": "CONTINENT",
    "mediaType": "MEDIA_TYPE",
}


async def search(client: GbifClient, params: Mapping[str, Any]) -> dict:
    return await client.get(f"{BASE_PATH}/search", params)


async def get(client: GbifClient, key: int) -> dict:
    return await client.get(f"{BASE_PATH}/{key}")


async def verbatim(client: GbifClient, key: int) -> dict:
    """The record as originally published, before GBIF interpretation."""
    return await client.get(f"{BASE_PATH}/{key}/verbatim")


async def count(client: GbifClient, params: Mapping[str, Any]) -> int:
    return await client.get(f"{BASE_PATH}/count", params)


async def counts_by(
    client: GbifClient,
    facet: str,
    params: Mapping[str, Any],
    facet_limit: int = 1000,
) -> dict[str, int]:
    """Occurrence counts grouped by one facet, largest first."""
    if facet not in FACET_FIELDS:
        raise ValueError(f"Unsupported facet {facet!r}")

    response = await client.get(
        f"{BASE_PATH}/search",
        {**params, "limit": 0, "facet": facet, "facetLimit": facet_limit},
    ) or {}

    field_name = FACET_FIELDS[facet]
    for block in response.get("facets") or []:
        if block.get("field") == field_name:
            return {str(entry["name"]): entry["count"] for entry in block.get("counts") or []}
    return {}


async def download_status(client: GbifClient, download_key: str) -> dict:
    return await client.get(f"{BASE_PATH}/download/{download_key}")


def build_predicate(params: Mapping[str, Any]) -> dict:
    """Translate search filters into a GBIF download predicate.

    One filter gives an `equals` (or `in` for a list of values), several
    filters are combined with `and`, and no filters at all means `all`.
    Parameters without a predicate key are ignored.
    """
    predicates = []
    for name, key in PREDICATE_KEYS.items():
        value = params.get(name)
        if value is None or value == []:
            continue
        if isinstance(value, (list, tuple)):
            if len(value) == 1:
                predicates.append({"type": "equals", "key": key, "value": _predicate_value(value[0])})
            else:
                predicates.append({"type": "in", "key": key, "values": [_predicate_value(v) for v in value]})
        else:
            predicates.append({"type": "equals", "key": key, "value": _predicate_value(value)})

    if not predicates:
        return {"type": "all"}
    if len(predicates) == 1:
        return predicates[0]
    return {"type": "and", "predicates": predicates}


def _predicate_value(value: Any) -> str:
    # Download predicates carry every value as a string.
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
