# =============================================================================
# gbif_tools/catalog.py  —  The GBIF Tool Catalog (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Declares every MCP tool as a ToolSpec record.  Each tool is a thin async
#   handler around a gbif_core.services function: it unpacks the validated
#   input model, calls the service, and returns (result, summary).
#   Validation, size governance, logging and envelopes happen once, in
#   gbif_tools.executor.
#
# TOOL NAMING CONVENTIONS:
#   gbif_<group>_<action>
#     - search_* / list_*  → paginated queries (results may be truncated)
#     - get_*              → one record by key
#     - counts_by_*        → facet counts
#   All tools are read-only.
#
# DESCRIPTIONS:
#   The handler's docstring becomes the tool description the LLM reads, so
#   the important ones say WHEN TO CALL THIS.
# =============================================================================

from typing import Any, Callable, Mapping

from gbif_core.services import (
    literature,
    maps,
    occurrence,
    registry,
    species,
    validator,
    vocabularies,
)
from gbif_tools import schemas
from gbif_tools.executor import Handler, ToolContext, ToolSpec

_CATALOG: list[ToolSpec] = []


def tool(name: str, input_model: type[schemas.ToolInput]) -> Callable[[Handler], Handler]:
    """Register the decorated handler under ``name``; its docstring is the description."""

    def register(handler: Handler) -> Handler:
        description = " ".join((handler.__doc__ or name).split())
        _CATALOG.append(ToolSpec(name, description, input_model, handler))
        return handler

    return register


def _without(filters: Mapping[str, Any], *names: str) -> dict[str, Any]:
    return {key: value for key, value in filters.items() if key not in names}


def _page_summary(result: Any) -> dict[str, Any]:
    if isinstance(result, dict) and "endOfRecords" in result:
        return {"endOfRecords": result["endOfRecords"]}
    return {}


# =============================================================================
# Species
# =============================================================================
@tool("gbif_species_search", schemas.SpeciesSearchInput)
async def species_search(ctx: ToolContext, params: schemas.SpeciesSearchInput):
    """Search GBIF name usages by name, rank, status, habitat or threat.

    WHEN TO CALL THIS: to find taxa when you do not know their key yet.
    Results are paginated with limit/offset.
    """
    result = await species.search(ctx.client, params.filters())
    return result, _page_summary(result)


@tool("gbif_species_get", schemas.SpeciesKeyInput)
async def species_get(ctx: ToolContext, params: schemas.SpeciesKeyInput):
    """Get one name usage (taxon) by its GBIF key."""
    return await species.get(ctx.client, params.key), {"key": params.key}


@tool("gbif_species_suggest", schemas.SpeciesSuggestInput)
async def species_suggest(ctx: ToolContext, params: schemas.SpeciesSuggestInput):
    """Autocomplete scientific names from their first letters."""
    result = await species.suggest(ctx.client, params.filters())
    return result, {"count": len(result or [])}


@tool("gbif_species_match", schemas.SpeciesMatchInput)
async def species_match(ctx: ToolContext, params: schemas.SpeciesMatchInput):
    """Match a scientific name against the GBIF backbone taxonomy.

    WHEN TO CALL THIS: to turn a name such as "Puma concolor" into a taxon
    key for other tools.  Returns the confident match, or the alternatives
    when the name is ambiguous.
    """
    result = await species.match(ctx.client, params.filters())
    return result, {"matches": len(result)}


@tool("gbif_species_children", schemas.SpeciesPagedKeyInput)
async def species_children(ctx: ToolContext, params: schemas.SpeciesPagedKeyInput):
    """List the direct child taxa of a taxon."""
    result = await species.children(ctx.client, params.key, _without(params.filters(), "key"))
    return result, {"key": params.key, **_page_summary(result)}


@tool("gbif_species_parents", schemas.SpeciesKeyInput)
async def species_parents(ctx: ToolContext, params: schemas.SpeciesKeyInput):
    """List the full classification above a taxon, kingdom first."""
    result = await species.parents(ctx.client, params.key)
    return result, {"key": params.key, "count": len(result or [])}


@tool("gbif_species_synonyms", schemas.SpeciesPagedKeyInput)
async def species_synonyms(ctx: ToolContext, params: schemas.SpeciesPagedKeyInput):
    """List the synonyms of an accepted taxon."""
    result = await species.synonyms(ctx.client, params.key, _without(params.filters(), "key"))
    return result, {"key": params.key, **_page_summary(result)}


@tool("gbif_species_vernacular_names", schemas.VernacularNamesInput)
async def species_vernacular_names(ctx: ToolContext, params: schemas.VernacularNamesInput):
    """Common names of a taxon, optionally in one language (ISO 639-2, e.g. "eng")."""
    result = await species.vernacular_names(ctx.client, params.key, params.language)
    return result, {"key": params.key, "count": len(result)}


@tool("gbif_species_related", schemas.SpeciesPagedKeyInput)
async def species_related(ctx: ToolContext, params: schemas.SpeciesPagedKeyInput):
    """Name usages in other checklists that relate to this taxon."""
    result = await species.related(ctx.client, params.key, _without(params.filters(), "key"))
    return result, {"key": params.key, **_page_summary(result)}


@tool("gbif_species_descriptions", schemas.SpeciesPagedKeyInput)
async def species_descriptions(ctx: ToolContext, params: schemas.SpeciesPagedKeyInput):
    """Textual descriptions of a taxon (biology, habitat, ...)."""
    result = await species.descriptions(ctx.client, params.key, _without(params.filters(), "key"))
    return result, {"key": params.key, **_page_summary(result)}


@tool("gbif_species_distributions", schemas.SpeciesPagedKeyInput)
async def species_distributions(ctx: ToolContext, params: schemas.SpeciesPagedKeyInput):
    """Published distribution ranges of a taxon."""
    result = await species.distributions(ctx.client, params.key, _without(params.filters(), "key"))
    return result, {"key": params.key, **_page_summary(result)}


@tool("gbif_species_media", schemas.SpeciesPagedKeyInput)
async def species_media(ctx: ToolContext, params: schemas.SpeciesPagedKeyInput):
    """Images, sounds and videos attached to a taxon."""
    result = await species.media(ctx.client, params.key, _without(params.filters(), "key"))
    return result, {"key": params.key, **_page_summary(result)}


@tool("gbif_species_metrics", schemas.SpeciesKeyInput)
async def species_metrics(ctx: ToolContext, params: schemas.SpeciesKeyInput):
    """Occurrence statistics for a taxon: record, dataset and country counts.

    WHEN TO CALL THIS: for a quick overview of how well a taxon is
    documented before running occurrence searches.
    """
    return await species.metrics(ctx.client, params.key), {"key": params.key}


@tool("gbif_species_parse_names", schemas.ParseNamesInput)
async def species_parse_names(ctx: ToolContext, params: schemas.ParseNamesInput):
    """Split scientific names into genus, epithets, authorship and rank."""
    result = await species.parse_names(ctx.client, params.names)
    return result, {"count": len(params.names)}


# =============================================================================
# Occurrence
# =============================================================================
@tool("gbif_occurrence_search", schemas.OccurrenceSearchInput)
async def occurrence_search(ctx: ToolContext, params: schemas.OccurrenceSearchInput):
    """Search occurrence records (specimens and observations).

    WHEN TO CALL THIS: to retrieve actual records by taxon, place, time,
    record type or dataset.  Pages hold at most 300 records and large pages
    may be truncated; follow the pagination advice in the response.
    """
    result = await occurrence.search(ctx.client, params.filters())
    return result, _page_summary(result)


@tool("gbif_occurrence_get", schemas.OccurrenceKeyInput)
async def occurrence_get(ctx: ToolContext, params: schemas.OccurrenceKeyInput):
    """Get one interpreted occurrence record by key."""
    return await occurrence.get(ctx.client, params.key), {"key": params.key}


@tool("gbif_occurrence_verbatim", schemas.OccurrenceKeyInput)
async def occurrence_verbatim(ctx: ToolContext, params: schemas.OccurrenceKeyInput):
    """Get an occurrence record exactly as the publisher supplied it."""
    return await occurrence.verbatim(ctx.client, params.key), {"key": params.key}


@tool("gbif_occurrence_count", schemas.OccurrenceCountInput)
async def occurrence_count(ctx: ToolContext, params: schemas.OccurrenceCountInput):
    """Count occurrence records matching the filters, without fetching them.

    WHEN TO CALL THIS: before a search, to judge how many pages it has.
    """
    result = await occurrence.count(ctx.client, params.filters())
    return result, {"count": result}


def _counts_tool(facet: str, name: str, label: str) -> None:
    async def handler(ctx: ToolContext, params: schemas.OccurrenceCountsInput):
        filters = _without(params.filters(), "facetLimit")
        result = await occurrence.counts_by(ctx.client, facet, filters, params.facet_limit)
        return result, {"facet": facet, "groups": len(result)}

    handler.__doc__ = (
        f"Occurrence counts grouped by {label}, largest first. "
        f"Accepts the same basic filters as gbif_occurrence_search."
    )
    tool(name, schemas.OccurrenceCountsInput)(handler)


_counts_tool("year", "gbif_occurrence_counts_by_year", "year")
_counts_tool("country", "gbif_occurrence_counts_by_country", "country")
_counts_tool("basisOfRecord", "gbif_occurrence_counts_by_basis_of_record", "basis of record")
_counts_tool("datasetKey", "gbif_occurrence_counts_by_dataset", "dataset")
_counts_tool("taxonKey", "gbif_occurrence_counts_by_taxon", "taxon")
_counts_tool("publishingCountry", "gbif_occurrence_counts_by_publishing_country", "publishing country")
_counts_tool("publishingOrg", "gbif_occurrence_counts_by_publishing_org", "publishing organization")


@tool("gbif_occurrence_download_status", schemas.DownloadStatusInput)
async def occurrence_download_status(ctx: ToolContext, params: schemas.DownloadStatusInput):
    """Status and file link of a previously requested occurrence download."""
    result = await occurrence.download_status(ctx.client, params.download_key)
    return result, {"downloadKey": params.download_key}


@tool("gbif_occurrence_download_predicate_builder", schemas.DownloadPredicateInput)
async def occurrence_download_predicate_builder(
    ctx: ToolContext, params: schemas.DownloadPredicateInput
):
    """Translate search filters into a GBIF download predicate (no request is sent)."""
    predicate = occurrence.build_predicate(params.filters())
    return {"predicate": predicate}, {"predicateType": predicate["type"]}


# =============================================================================
# Registry
# =============================================================================
@tool("gbif_registry_search_datasets", schemas.DatasetSearchInput)
async def registry_search_datasets(ctx: ToolContext, params: schemas.DatasetSearchInput):
    """Search datasets by text, type, keyword, publisher, country or license."""
    result = await registry.search_datasets(ctx.client, params.filters())
    return result, _page_summary(result)


@tool("gbif_registry_get_dataset", schemas.RegistryKeyInput)
async def registry_get_dataset(ctx: ToolContext, params: schemas.RegistryKeyInput):
    """Get dataset metadata by UUID."""
    return await registry.get_dataset(ctx.client, params.key), {"key": params.key}


@tool("gbif_registry_dataset_metrics", schemas.RegistryKeyInput)
async def registry_dataset_metrics(ctx: ToolContext, params: schemas.RegistryKeyInput):
    """Metrics of a checklist dataset (counts by rank, issue, ...)."""
    return await registry.dataset_metrics(ctx.client, params.key), {"key": params.key}


@tool("gbif_registry_dataset_document", schemas.RegistryKeyInput)
async def registry_dataset_document(ctx: ToolContext, params: schemas.RegistryKeyInput):
    """The EML metadata document of a dataset, as XML text."""
    return await registry.dataset_document(ctx.client, params.key), {"key": params.key}


@tool("gbif_registry_search_organizations", schemas.RegistrySearchInput)
async def registry_search_organizations(ctx: ToolContext, params: schemas.RegistrySearchInput):
    """Search data-publishing organizations."""
    result = await registry.search_organizations(ctx.client, params.filters())
    return result, _page_summary(result)


@tool("gbif_registry_get_organization", schemas.RegistryKeyInput)
async def registry_get_organization(ctx: ToolContext, params: schemas.RegistryKeyInput):
    """Get a publishing organization by UUID."""
    return await registry.get_organization(ctx.client, params.key), {"key": params.key}


@tool("gbif_registry_organization_datasets", schemas.RegistryPagedKeyInput)
async def registry_organization_datasets(ctx: ToolContext, params: schemas.RegistryPagedKeyInput):
    """Datasets published by an organization."""
    result = await registry.organization_datasets(
        ctx.client, params.key, _without(params.filters(), "key")
    )
    return result, {"key": params.key, **_page_summary(result)}


@tool("gbif_registry_search_networks", schemas.RegistrySearchInput)
async def registry_search_networks(ctx: ToolContext, params: schemas.RegistrySearchInput):
    """Search dataset networks."""
    result = await registry.search_networks(ctx.client, params.filters())
    return result, _page_summary(result)


@tool("gbif_registry_get_network", schemas.RegistryKeyInput)
async def registry_get_network(ctx: ToolContext, params: schemas.RegistryKeyInput):
    """Get a network by UUID."""
    return await registry.get_network(ctx.client, params.key), {"key": params.key}


@tool("gbif_registry_network_datasets", schemas.RegistryPagedKeyInput)
async def registry_network_datasets(ctx: ToolContext, params: schemas.RegistryPagedKeyInput):
    """Datasets that belong to a network."""
    result = await registry.network_datasets(
        ctx.client, params.key, _without(params.filters(), "key")
    )
    return result, {"key": params.key, **_page_summary(result)}


@tool("gbif_registry_list_nodes", schemas.PageInput)
async def registry_list_nodes(ctx: ToolContext, params: schemas.PageInput):
    """List GBIF participant nodes."""
    result = await registry.list_nodes(ctx.client, params.filters())
    return result, _page_summary(result)


@tool("gbif_registry_get_node", schemas.RegistryKeyInput)
async def registry_get_node(ctx: ToolContext, params: schemas.RegistryKeyInput):
    """Get a participant node by UUID."""
    return await registry.get_node(ctx.client, params.key), {"key": params.key}


@tool("gbif_registry_search_installations", schemas.InstallationSearchInput)
async def registry_search_installations(ctx: ToolContext, params: schemas.InstallationSearchInput):
    """Search publishing installations (IPT, BioCASe, ...)."""
    result = await registry.search_installations(ctx.client, params.filters())
    return result, _page_summary(result)


@tool("gbif_registry_get_installation", schemas.RegistryKeyInput)
async def registry_get_installation(ctx: ToolContext, params: schemas.RegistryKeyInput):
    """Get an installation by UUID."""
    return await registry.get_installation(ctx.client, params.key), {"key": params.key}


@tool("gbif_registry_search_collections", schemas.GrSciCollSearchInput)
async def registry_search_collections(ctx: ToolContext, params: schemas.GrSciCollSearchInput):
    """Search natural history collections (GRSciColl)."""
    result = await registry.search_collections(ctx.client, params.filters())
    return result, _page_summary(result)


@tool("gbif_registry_get_collection", schemas.RegistryKeyInput)
async def registry_get_collection(ctx: ToolContext, params: schemas.RegistryKeyInput):
    """Get a GRSciColl collection by UUID."""
    return await registry.get_collection(ctx.client, params.key), {"key": params.key}


@tool("gbif_registry_search_institutions", schemas.GrSciCollSearchInput)
async def registry_search_institutions(ctx: ToolContext, params: schemas.GrSciCollSearchInput):
    """Search institutions holding collections (GRSciColl)."""
    result = await registry.search_institutions(ctx.client, params.filters())
    return result, _page_summary(result)


@tool("gbif_registry_get_institution", schemas.RegistryKeyInput)
async def registry_get_institution(ctx: ToolContext, params: schemas.RegistryKeyInput):
    """Get a GRSciColl institution by UUID."""
    return await registry.get_institution(ctx.client, params.key), {"key": params.key}


# =============================================================================
# Literature
# =============================================================================
@tool("gbif_literature_search", schemas.LiteratureSearchInput)
async def literature_search(ctx: ToolContext, params: schemas.LiteratureSearchInput):
    """Search publications that use or cite GBIF-mediated data."""
    result = await literature.search(ctx.client, params.filters())
    return result, _page_summary(result)


@tool("gbif_literature_get", schemas.DoiInput)
async def literature_get(ctx: ToolContext, params: schemas.DoiInput):
    """Get one publication by DOI (bare, doi: or https://doi.org/ form)."""
    doi = literature.normalize_doi(params.doi)
    return await literature.get_by_doi(ctx.client, doi), {"doi": doi}


# =============================================================================
# Vocabularies
# =============================================================================
@tool("gbif_vocabularies_list", schemas.VocabularyListInput)
async def vocabularies_list(ctx: ToolContext, params: schemas.VocabularyListInput):
    """List controlled vocabularies (LifeStage, Pathway, ...)."""
    result = await vocabularies.list_vocabularies(ctx.client, params.filters())
    return result, _page_summary(result)


@tool("gbif_vocabularies_get", schemas.VocabularyNameInput)
async def vocabularies_get(ctx: ToolContext, params: schemas.VocabularyNameInput):
    """Get a vocabulary by name."""
    return await vocabularies.get_vocabulary(ctx.client, params.name), {"name": params.name}


@tool("gbif_vocabularies_get_concept", schemas.ConceptInput)
async def vocabularies_get_concept(ctx: ToolContext, params: schemas.ConceptInput):
    """Get one concept of a vocabulary, with its labels and definitions."""
    result = await vocabularies.get_concept(
        ctx.client, params.vocabulary_name, params.concept_name
    )
    return result, {"vocabulary": params.vocabulary_name, "concept": params.concept_name}


# =============================================================================
# Maps
# =============================================================================
@tool("gbif_maps_list_styles", schemas.NoInput)
async def maps_list_styles(ctx: ToolContext, params: schemas.NoInput):
    """List the styles available for raster density tiles."""
    styles = maps.list_styles()
    return styles, {"count": len(styles)}


def _tile(ctx: ToolContext, params: schemas.VectorTileInput, fmt: str) -> tuple[str, dict]:
    url = maps.tile_url(
        ctx.client.settings.base_url,
        params.z,
        params.x,
        params.y,
        fmt=fmt,
        scale=getattr(params, "scale", None),
        style=getattr(params, "style", None),
        srs=params.srs,
        filters=params.filters(),
    )
    return url, {"format": fmt, "z": params.z, "x": params.x, "y": params.y}


@tool("gbif_maps_get_tile_url", schemas.TileUrlInput)
async def maps_get_tile_url(ctx: ToolContext, params: schemas.TileUrlInput):
    """Build an occurrence density tile URL (png raster or mvt vector).

    WHEN TO CALL THIS: to show where a taxon or dataset has records on a
    map.  No request is made; the URL can be opened directly.
    """
    return _tile(ctx, params, params.format)


@tool("gbif_maps_get_raster_tile_url", schemas.RasterTileInput)
async def maps_get_raster_tile_url(ctx: ToolContext, params: schemas.RasterTileInput):
    """Build a PNG occurrence density tile URL with an optional style."""
    return _tile(ctx, params, "png")


@tool("gbif_maps_get_vector_tile_url", schemas.VectorTileInput)
async def maps_get_vector_tile_url(ctx: ToolContext, params: schemas.VectorTileInput):
    """Build a Mapbox vector tile (mvt) URL for occurrence density."""
    return _tile(ctx, params, "mvt")


# =============================================================================
# Validator
# =============================================================================
@tool("gbif_validator_get_status", schemas.ValidationKeyInput)
async def validator_get_status(ctx: ToolContext, params: schemas.ValidationKeyInput):
    """Status and report of a data validation job."""
    return await validator.get_status(ctx.client, params.key), {"key": params.key}


# =============================================================================
# PUBLIC API: build_catalog
# =============================================================================
def build_catalog() -> list[ToolSpec]:
    """Every tool, in declaration order.  Names are unique."""
    names = [spec.name for spec in _CATALOG]
    duplicates = {name for name in names if names.count(name) > 1}
    if duplicates:
        raise RuntimeError(f"Duplicate tool names: {sorted(duplicates)}")
    return list(_CATALOG)
