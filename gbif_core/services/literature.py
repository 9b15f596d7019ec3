# =============================================================================
# gbif_core/services/literature.py  —  Literature API (/literature)
# =============================================================================

from typing import Any, Mapping

from gbif_core.client import GbifClient

_DOI_PREFIXES = ("https://doi.org/", "http://doi.org/", "doi:")


def normalize_doi(doi: str) -> str:
    """Strip resolver URLs and the ``doi:`` scheme: "10.1000/xyz"."""
    value = doi.strip()
    for prefix in _DOI_PREFIXES:
        if value.lower().startswith(prefix):
            return value[len(prefix):]
    return value


async def search(client: GbifClient, params: Mapping[str, Any]) -> dict:
    return await client.get("/literature/search", params)


async def get_by_doi(client: GbifClient, doi: str) -> dict:
    # GBIF addresses literature by DOI prefix and suffix as two path segments.
    return await client.get(f"/literature/{normalize_doi(doi)}")
