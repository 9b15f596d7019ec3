# =============================================================================
# gbif_core/services/registry.py  —  Registry & GRSciColl APIs
# =============================================================================
#
# Datasets, publishing organizations, networks, nodes and installations
# live under /dataset, /organization, /network, /node and /installation.
# Collections and institutions are served by GRSciColl under /grscicoll.
# =============================================================================

from typing import Any, Mapping

from gbif_core.client import GbifClient


# --- Datasets ----------------------------------------------------------------
async def search_datasets(client: GbifClient, params: Mapping[str, Any]) -> dict:
    return await client.get("/dataset/search", params)


async def get_dataset(client: GbifClient, key: str) -> dict:
    return await client.get(f"/dataset/{key}")


async def dataset_metrics(client: GbifClient, key: str) -> dict:
    """Checklist metrics (counts by rank, issue, ...); occurrence datasets 404."""
    return await client.get(f"/dataset/{key}/metrics")


async def dataset_document(client: GbifClient, key: str) -> str:
    """The dataset's EML metadata document, as XML text."""
    return await client.get(f"/dataset/{key}/document")


# --- Organizations -----------------------------------------------------------
async def search_organizations(client: GbifClient, params: Mapping[str, Any]) -> dict:
    return await client.get("/organization", params)


async def get_organization(client: GbifClient, key: str) -> dict:
    return await client.get(f"/organization/{key}")


async def organization_datasets(client: GbifClient, key: str, params: Mapping[str, Any]) -> dict:
    """Datasets published by an organization."""
    return await client.get(f"/organization/{key}/publishedDataset", params)


# --- Networks ----------------------------------------------------------------
async def search_networks(client: GbifClient, params: Mapping[str, Any]) -> dict:
    return await client.get("/network", params)


async def get_network(client: GbifClient, key: str) -> dict:
    return await client.get(f"/network/{key}")


async def network_datasets(client: GbifClient, key: str, params: Mapping[str, Any]) -> dict:
    return await client.get(f"/network/{key}/constituents", params)


# --- Nodes -------------------------------------------------------------------
async def list_nodes(client: GbifClient, params: Mapping[str, Any]) -> dict:
    return await client.get("/node", params)


async def get_node(client: GbifClient, key: str) -> dict:
    return await client.get(f"/node/{key}")


# --- Installations -----------------------------------------------------------
async def search_installations(client: GbifClient, params: Mapping[str, Any]) -> dict:
    return await client.get("/installation", params)


async def get_installation(client: GbifClient, key: str) -> dict:
    return await client.get(f"/installation/{key}")


# --- GRSciColl -----------------------------------------------------------------
async def search_collections(client: GbifClient, params: Mapping[str, Any]) -> dict:
    return await client.get("/grscicoll/collection", params)


async def get_collection(client: GbifClient, key: str) -> dict:
    return await client.get(f"/grscicoll/collection/{key}")


async def search_institutions(client: GbifClient, params: Mapping[str, Any]) -> dict:
    return await client.get("/grscicoll/institution", params)


async def get_institution(client: GbifClient, key: str) -> dict:
    return await client.get(f"/grscicoll/institution/{key}")
