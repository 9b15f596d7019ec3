from unittest.mock import AsyncMock

import httpx
import pytest
import respx

from gbif_core.services import literature, maps, occurrence, registry, species, vocabularies

from .helpers import BASE_URL


@pytest.fixture
def fake_client():
    gbif = AsyncMock()
    gbif.get.return_value = {"results": []}
    return gbif


# -----------------------------------------------------------------------------
# Species
# -----------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_species_search_path(fake_client):
    await species.search(fake_client, {"q": "Puma", "rank": "SPECIES"})
    fake_client.get.assert_awaited_once_with("/species/search", {"q": "Puma", "rank": "SPECIES"})


@pytest.mark.asyncio
async def test_species_children_uses_key_in_path(fake_client):
    await species.children(fake_client, 212, {"limit": 5})
    fake_client.get.assert_awaited_once_with("/species/212/children", {"limit": 5})


@pytest.mark.asyncio
async def test_match_returns_confident_match(fake_client):
    fake_client.get.return_value = {"usageKey": 2435099, "matchType": "EXACT"}
    assert await species.match(fake_client, {"name": "Puma concolor"}) == [
        {"usageKey": 2435099, "matchType": "EXACT"}
    ]


@pytest.mark.asyncio
async def test_match_falls_back_to_alternatives(fake_client):
    fake_client.get.return_value = {
        "matchType": "NONE",
        "alternatives": [{"usageKey": 1}, {"usageKey": 2}],
    }
    assert await species.match(fake_client, {"name": "Puma"}) == [{"usageKey": 1}, {"usageKey": 2}]

    fake_client.get.return_value = {"matchType": "NONE"}
    assert await species.match(fake_client, {"name": "Qwerty"}) == []


@pytest.mark.asyncio
async def test_species_metrics_summarises_facets(fake_client):
    fake_client.get.return_value = {
        "count": 120,
        "facets": [
            {"field": "DATASET_KEY", "counts": [{"name": "a", "count": 100}, {"name": "b", "count": 20}]},
            {"field": "COUNTRY", "counts": [{"name": "US", "count": 120}]},
            {"field": "BASIS_OF_RECORD", "counts": [{"name": "HUMAN_OBSERVATION", "count": 120}]},
        ],
    }

    result = await species.metrics(fake_client, 2435099)

    assert result == {
        "speciesKey": 2435099,
        "occurrenceCount": 120,
        "datasetCount": 2,
        "countryCount": 1,
        "basisOfRecord": {"HUMAN_OBSERVATION": 120},
    }
    path, params = fake_client.get.await_args.args
    assert path == "/occurrence/search"
    assert params["limit"] == 0
    assert params["facet"] == ["datasetKey", "country", "basisOfRecord"]


@pytest.mark.asyncio
async def test_parse_names_posts_list(fake_client):
    fake_client.post.return_value = [{"scientificName": "Abies alba Mill."}]
    await species.parse_names(fake_client, ["Abies alba Mill."])
    fake_client.post.assert_awaited_once_with("/parser/name", json=["Abies alba Mill."])


@pytest.mark.asyncio
async def test_vernacular_names_pages_and_filters_language(client):
    with respx.mock() as respx_mock:
        respx_mock.get(f"{BASE_URL}/species/5219404/vernacularNames").mock(
            return_value=httpx.Response(
                200,
                json={
                    "endOfRecords": True,
                    "results": [
                        {"vernacularName": "Lion", "language": "eng"},
                        {"vernacularName": "Löwe", "language": "deu"},
                    ],
                },
            )
        )
        names = await species.vernacular_names(client, 5219404, language="eng")

    assert names == [{"vernacularName": "Lion", "language": "eng"}]


# -----------------------------------------------------------------------------
# Occurrence
# -----------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_counts_by_reads_the_requested_facet(fake_client):
    fake_client.get.return_value = {
        "count": 30,
        "facets": [{"field": "YEAR", "counts": [{"name": "2020", "count": 20}, {"name": "2019", "count": 10}]}],
    }

    result = await occurrence.counts_by(fake_client, "year", {"taxonKey": 212}, facet_limit=5)

    assert result == {"2020": 20, "2019": 10}
    fake_client.get.assert_awaited_once_with(
        "/occurrence/search",
        {"taxonKey": 212, "limit": 0, "facet": "year", "facetLimit": 5},
    )


@pytest.mark.asyncio
async def test_counts_by_missing_facet_is_empty(fake_client):
    fake_client.get.return_value = {"count": 0, "facets": []}
    assert await occurrence.counts_by(fake_client, "country", {}) == {}


@pytest.mark.asyncio
async def test_counts_by_rejects_unknown_facet(fake_client):
    with pytest.raises(ValueError):
        await occurrence.counts_by(fake_client, "colour", {})


def test_build_predicate_without_filters_matches_everything():
    assert occurrence.build_predicate({}) == {"type": "all"}


def test_build_predicate_single_filter():
    assert occurrence.build_predicate({"taxonKey": 212}) == {
        "type": "equals",
        "key": "TAXON_KEY",
        "value": "212",
    }


def test_build_predicate_combines_filters():
    predicate = occurrence.build_predicate(
        {
            "country": ["US", "CA"],
            "hasCoordinate": True,
            "basisOfRecord": ["PRESERVED_SPECIMEN"],
            "limit": 20,
        }
    )

    assert predicate == {
        "type": "and",
        "predicates": [
            {"type": "in", "key": "COUNTRY", "values": ["US", "CA"]},
            {"type": "equals", "key": "BASIS_OF_RECORD", "value": "PRESERVED_SPECIMEN"},
            {"type": "equals", "key": "HAS_COORDINATE", "value": "true"},
        ],
    }


# -----------------------------------------------------------------------------
# Registry, literature, vocabularies
# -----------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_registry_paths(fake_client):
    await registry.organization_datasets(fake_client, "org-1", {"limit": 10})
    await registry.network_datasets(fake_client, "net-1", {})
    await registry.search_collections(fake_client, {"q": "herbarium"})

    paths = [call.args[0] for call in fake_client.get.await_args_list]
    assert paths == [
        "/organization/org-1/publishedDataset",
        "/network/net-1/constituents",
        "/grscicoll/collection",
    ]


@pytest.mark.parametrize(
    "raw",
    ["10.1038/s41559-021-01441-w", "doi:10.1038/s41559-021-01441-w", "https://doi.org/10.1038/s41559-021-01441-w"],
)
def test_normalize_doi(raw):
    assert literature.normalize_doi(raw) == "10.1038/s41559-021-01441-w"


@pytest.mark.asyncio
async def test_vocabulary_concept_path(fake_client):
    await vocabularies.get_concept(fake_client, "LifeStage", "Adult")
    fake_client.get.assert_awaited_once_with("/vocabularies/LifeStage/concepts/Adult")


# -----------------------------------------------------------------------------
# Maps
# -----------------------------------------------------------------------------
def test_maps_base_url_moves_to_v2():
    assert maps.maps_base_url("https://api.gbif.org/v1") == "https://api.gbif.org/v2/map/occurrence/density"


def test_raster_tile_url():
    url = maps.tile_url(
        "https://api.gbif.org/v1", 2, 1, 3,
        scale=2, style="classic.point", filters={"taxonKey": 212, "z": 2},
    )
    assert url == (
        "https://api.gbif.org/v2/map/occurrence/density/2/1/3@2x.png"
        "?srs=EPSG%3A3857&style=classic.point&taxonKey=212"
    )


def test_vector_tile_url_ignores_style():
    url = maps.tile_url("https://api.gbif.org/v1", 0, 0, 0, fmt="mvt", style="classic.point")
    assert url == "https://api.gbif.org/v2/map/occurrence/density/0/0/0.mvt?srs=EPSG%3A3857"


def test_tile_outside_grid_is_rejected():
    with pytest.raises(ValueError):
        maps.tile_url("https://api.gbif.org/v1", 1, 2, 0)


def test_list_styles():
    styles = maps.list_styles()
    assert len(styles) == len(maps.STYLES)
    assert {"name", "type", "description"} == set(styles[0])
