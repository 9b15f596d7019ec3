# =============================================================================
# gbif_core/services/vocabularies.py  —  Vocabulary Server (/vocabularies)
# =============================================================================

from typing import Any, Mapping

from gbif_core.client import GbifClient

BASE_PATH = "/vocabularies"


async def list_vocabularies(client: GbifClient, params: Mapping[str, Any]) -> dict:
    return await client.get(BASE_PATH, params)


async def get_vocabulary(client: GbifClient, name: str) -> dict:
    return await client.get(f"{BASE_PATH}/{name}")


async def get_concept(client: GbifClient, vocabulary: str, concept: str) -> dict:
    return await client.get(f"{BASE_PATH}/{vocabulary}/concepts/{concept}")
