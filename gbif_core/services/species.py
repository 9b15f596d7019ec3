# =============================================================================
# gbif_core/services/species.py  —  Species API (/species, /parser)
# =============================================================================

from typing import Any, Mapping, Optional

from gbif_core.client import GbifClient

BASE_PATH = "/species"


async def search(client: GbifClient, params: Mapping[str, Any]) -> dict:
    """Full-text and faceted search over name usages."""
    return await client.get(f"{BASE_PATH}/search", params)


async def get(client: GbifClient, key: int) -> dict:
    return await client.get(f"{BASE_PATH}/{key}")


async def suggest(client: GbifClient, params: Mapping[str, Any]) -> list:
    return await client.get(f"{BASE_PATH}/suggest", params)


async def match(client: GbifClient, params: Mapping[str, Any]) -> list:
    """Fuzzy-match a name against the backbone.

    GBIF answers with a single best match plus optional alternatives.
    Confident EXACT/FUZZY matches come back as a one-element list; anything
    else returns the alternatives, or an empty list when there are none.
    """
    response = await client.get(f"{BASE_PATH}/match", params) or {}
    if response.get("matchType") in ("EXACT", "FUZZY"):
        return [response]
    return list(response.get("alternatives") or [])


async def children(client: GbifClient, key: int, params: Mapping[str, Any]) -> dict:
    return await client.get(f"{BASE_PATH}/{key}/children", params)


async def parents(client: GbifClient, key: int) -> list:
    return await client.get(f"{BASE_PATH}/{key}/parents")


async def synonyms(client: GbifClient, key: int, params: Mapping[str, Any]) -> dict:
    return await client.get(f"{BASE_PATH}/{key}/synonyms", params)


async def related(client: GbifClient, key: int, params: Mapping[str, Any]) -> dict:
    return await client.get(f"{BASE_PATH}/{key}/related", params)


async def descriptions(client: GbifClient, key: int, params: Mapping[str, Any]) -> dict:
    return await client.get(f"{BASE_PATH}/{key}/descriptions", params)


async def distributions(client: GbifClient, key: int, params: Mapping[str, Any]) -> dict:
    return await client.get(f"{BASE_PATH}/{key}/distributions", params)


async def media(client: GbifClient, key: int, params: Mapping[str, Any]) -> dict:
    return await client.get(f"{BASE_PATH}/{key}/media", params)


async def vernacular_names(
    client: GbifClient,
    key: int,
    language: Optional[str] = None,
    max_records: int = 1000,
) -> list:
    """Collect every vernacular name of a taxon across pages.

    Args:
        language: ISO 639-2 code ("eng", "fra", ...).  Names in other
            languages are dropped.
        max_records: Stop paging once this many names were read.
    """
    names: list = []
    read = 0
    async for page in client.paginate(f"{BASE_PATH}/{key}/vernacularNames", page_size=100):
        read += len(page)
        for name in page:
            if language is None or name.get("language") == language:
                names.append(name)
        if read >= max_records:
            break
    return names


async def metrics(client: GbifClient, key: int) -> dict:
    """Occurrence statistics for one taxon from a single faceted search.

    Returns occurrenceCount plus the number of distinct datasets and
    countries, and a basisOfRecord -> count breakdown.
    """
    response = await client.get(
        "/occurrence/search",
        {
            "taxonKey": key,
            "limit": 0,
            "facet": ["datasetKey", "country", "basisOfRecord"],
            "facetLimit": 1000,
        },
    ) or {}

    facets = {facet.get("field"): facet.get("counts") or [] for facet in response.get("facets") or []}
    return {
        "speciesKey": key,
        "occurrenceCount": response.get("count", 0),
        "datasetCount": len(facets.get("DATASET_KEY", [])),
        "countryCount": len(facets.get("COUNTRY", [])),
        "basisOfRecord": {
            entry.get("name"): entry.get("count") for entry in facets.get("BASIS_OF_RECORD", [])
        },
    }


async def parse_names(client: GbifClient, names: list[str]) -> list:
    """Split scientific names into their parts (POST /parser/name)."""
    return await client.post("/parser/name", json=names)
