# =============================================================================
# gbif_core/services/validator.py  —  Data Validator (/validation)
# =============================================================================

from gbif_core.client import GbifClient


async def get_status(client: GbifClient, key: str) -> dict:
    """Status and, once finished, the report of a validation run."""
    return await client.get(f"/validation/{key}")
