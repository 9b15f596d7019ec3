# =============================================================================
# gbif_tools/schemas.py  —  Tool Input Models
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Defines one pydantic model per tool input shape.  Each model is both the
#   validation contract the executor applies and the JSON schema the MCP
#   client sees (model_json_schema(by_alias=True)).
#
# NAMING:
#   Python fields are snake_case; the aliases are GBIF's own camelCase
#   parameter names (taxonKey, hasCoordinate, ...).  Callers send the
#   camelCase names, filters() returns them, and the same dict goes to GBIF
#   as query parameters and back to the caller in pagination examples.
#
# The field descriptions are what the LLM reads to decide what to pass, so
# they carry examples.
# =============================================================================

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

Rank = Literal["KINGDOM", "PHYLUM", "CLASS", "ORDER", "FAMILY", "GENUS", "SPECIES", "SUBSPECIES"]
TaxonomicStatus = Literal[
    "ACCEPTED", "DOUBTFUL", "SYNONYM", "HETEROTYPIC_SYNONYM", "HOMOTYPIC_SYNONYM"
]
Habitat = Literal["MARINE", "FRESHWATER", "TERRESTRIAL"]
ThreatStatus = Literal["EX", "EW", "CR", "EN", "VU", "NT", "LC", "DD", "NE"]
NameType = Literal[
    "WELLFORMED", "DOUBTFUL", "PLACEHOLDER", "NO_NAME", "SCIENTIFIC",
    "VIRUS", "HYBRID", "INFORMAL", "CULTIVAR", "CANDIDATUS",
]
Continent = Literal[
    "AFRICA", "ANTARCTICA", "ASIA", "EUROPE", "NORTH_AMERICA", "OCEANIA", "SOUTH_AMERICA"
]
BasisOfRecord = Literal[
    "OBSERVATION", "HUMAN_OBSERVATION", "MACHINE_OBSERVATION", "MATERIAL_SAMPLE",
    "PRESERVED_SPECIMEN", "FOSSIL_SPECIMEN", "LIVING_SPECIMEN", "MATERIAL_CITATION",
    "OCCURRENCE",
]
MediaType = Literal["STILL_IMAGE", "MOVING_IMAGE", "SOUND"]
DatasetType = Literal["OCCURRENCE", "CHECKLIST", "METADATA", "SAMPLING_EVENT", "MATERIAL_ENTITY"]


class ToolInput(BaseModel):
    """Base for every tool input: camelCase aliases, unknown keys rejected."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    def filters(self) -> dict[str, Any]:
        """The validated arguments under their wire names, without unset values."""
        return self.model_dump(by_alias=True, exclude_none=True)


class NoInput(ToolInput):
    pass


# -----------------------------------------------------------------------------
# Pagination
# -----------------------------------------------------------------------------
class PageInput(ToolInput):
    offset: int = Field(
        0, ge=0,
        description="Offset of the first result. A limit of 20 and offset of 40 "
                    "returns the third page of 20 results.",
    )
    limit: int = Field(20, ge=1, le=1000, description="Number of results per page.")


# =============================================================================
# Species
# =============================================================================
class SpeciesSearchInput(PageInput):
    q: Optional[str] = Field(None, description="Full-text search term, e.g. \"Puma concolor\".")
    rank: Optional[Rank] = Field(None, description="Taxonomic rank filter.")
    higher_taxon_key: Optional[int] = Field(
        None, description="Only taxa below this higher taxon key. Example: 212 (Aves)."
    )
    status: Optional[list[TaxonomicStatus]] = Field(None, description="Taxonomic status filter.")
    is_extinct: Optional[bool] = Field(None, description="true for extinct taxa only.")
    habitat: Optional[list[Habitat]] = Field(None, description="Habitat filter.")
    threat: Optional[list[ThreatStatus]] = Field(None, description="IUCN threat status filter.")
    name_type: Optional[list[NameType]] = Field(None, description="Name type filter.")
    dataset_key: Optional[list[str]] = Field(
        None, description="Checklist dataset UUIDs. Backbone: d7dddbf4-2cf0-4f39-9b2a-bb099caae36c."
    )
    nomenclatural_status: Optional[list[str]] = Field(None, description="e.g. LEGITIMATE, CONSERVED.")
    issue: Optional[list[str]] = Field(None, description="Indexing issue, e.g. BACKBONE_MATCH_FUZZY.")
    hl: Optional[bool] = Field(None, description="Highlight matched terms in the results.")
    facet: Optional[list[str]] = Field(None, description="Facets to count, e.g. [\"rank\", \"status\"].")
    facet_mincount: Optional[int] = Field(None, ge=1, description="Drop facet values below this count.")
    facet_multiselect: Optional[bool] = Field(None, description="Count facet values not currently filtered.")


class SpeciesKeyInput(ToolInput):
    key: int = Field(..., gt=0, description="GBIF taxon key (usageKey). Example: 5219404 (Panthera leo).")


class SpeciesPagedKeyInput(PageInput):
    key: int = Field(..., gt=0, description="GBIF taxon key (usageKey).")


class SpeciesSuggestInput(ToolInput):
    q: str = Field(..., min_length=2, description="Start of a name, e.g. \"Pant\".")
    limit: int = Field(10, ge=1, le=100, description="Maximum number of suggestions.")
    rank: Optional[Rank] = Field(None, description="Only suggest names of this rank.")
    dataset_key: Optional[str] = Field(None, description="Checklist to suggest from (default: backbone).")


class SpeciesMatchInput(ToolInput):
    name: str = Field(..., min_length=1, description="Scientific name to match, e.g. \"Puma concolor\".")
    strict: bool = Field(False, description="Exact matches only when true.")
    verbose: Optional[bool] = Field(None, description="Include alternative matches.")
    rank: Optional[Rank] = Field(None, description="Rank hint for the match.")
    kingdom: Optional[str] = Field(None, description="Kingdom hint, e.g. \"Animalia\".")


class VernacularNamesInput(ToolInput):
    key: int = Field(..., gt=0, description="GBIF taxon key (usageKey).")
    language: Optional[str] = Field(
        None, min_length=3, max_length=3, description="ISO 639-2 language code, e.g. \"eng\"."
    )


class ParseNamesInput(ToolInput):
    names: list[str] = Field(
        ..., min_length=1, max_length=100,
        description="Scientific names to parse, e.g. [\"Abies alba Mill.\"].",
    )


# =============================================================================
# Occurrence
# =============================================================================
class OccurrenceFilterInput(ToolInput):
    """Filters shared by occurrence search, facet counts and downloads."""

    taxon_key: Optional[int] = Field(
        None, description="Taxon and all its descendants. Example: 212 (all birds)."
    )
    country: Optional[str] = Field(
        None, min_length=2, max_length=2, description="ISO 3166-1 alpha-2 country code, e.g. \"US\"."
    )
    year: Optional[str] = Field(None, description="Year or range, e.g. \"2020\" or \"2015,2020\".")
    dataset_key: Optional[str] = Field(None, description="Dataset UUID.")
    basis_of_record: Optional[list[BasisOfRecord]] = Field(None, description="Record types.")
    has_coordinate: Optional[bool] = Field(None, description="Only records with coordinates when true.")


class OccurrenceSearchInput(OccurrenceFilterInput):
    q: Optional[str] = Field(None, description="Full-text search.")
    scientific_name: Optional[str] = Field(None, description="Scientific name, e.g. \"Quercus robur\".")
    kingdom_key: Optional[int] = None
    phylum_key: Optional[int] = None
    class_key: Optional[int] = None
    order_key: Optional[int] = None
    family_key: Optional[int] = None
    genus_key: Optional[int] = None
    publishing_country: Optional[str] = Field(None, min_length=2, max_length=2)
    continent: Optional[Continent] = None
    water_body: Optional[str] = None
    state_province: Optional[str] = None
    geometry: Optional[str] = Field(None, description="WKT POLYGON/MULTIPOLYGON, anticlockwise.")
    decimal_latitude: Optional[str] = Field(None, description="Latitude or range, e.g. \"40.5,45\".")
    decimal_longitude: Optional[str] = Field(None, description="Longitude or range, e.g. \"-120,-95.5\".")
    elevation: Optional[str] = Field(None, description="Metres or range, e.g. \"1000,1250\".")
    depth: Optional[str] = Field(None, description="Metres or range, e.g. \"10,20\".")
    has_geospatial_issue: Optional[bool] = None
    repatriated: Optional[bool] = None
    month: Optional[int] = Field(None, ge=1, le=12)
    decade: Optional[int] = Field(None, description="Year / 10, e.g. 199 for the 1990s.")
    publishing_org: Optional[str] = Field(None, description="Publishing organization UUID.")
    institution_code: Optional[str] = None
    collection_code: Optional[str] = None
    catalog_number: Optional[str] = None
    recorded_by: Optional[str] = None
    record_number: Optional[str] = None
    type_status: Optional[list[str]] = Field(None, description="e.g. [\"HOLOTYPE\"].")
    issue: Optional[list[str]] = Field(None, description="e.g. [\"ZERO_COORDINATE\"].")
    media_type: Optional[list[MediaType]] = None
    facet: Optional[list[str]] = Field(None, description="Facets to count, e.g. [\"datasetKey\"].")
    facet_mincount: Optional[int] = Field(None, ge=1)
    facet_multiselect: Optional[bool] = None
    offset: int = Field(0, ge=0, le=100000, description="Offset of the first result (max 100000).")
    limit: int = Field(20, ge=1, le=300, description="Results per page (max 300).")


class OccurrenceKeyInput(ToolInput):
    key: int = Field(..., gt=0, description="GBIF occurrence key, e.g. 1258202889.")


class OccurrenceCountInput(ToolInput):
    taxon_key: Optional[int] = None
    country: Optional[str] = Field(None, min_length=2, max_length=2)
    year: Optional[str] = Field(None, description="Year or range, e.g. \"1990,2000\".")
    dataset_key: Optional[str] = None
    basis_of_record: Optional[BasisOfRecord] = None
    is_georeferenced: Optional[bool] = None
    publishing_country: Optional[str] = Field(None, min_length=2, max_length=2)
    type_status: Optional[str] = None
    issue: Optional[str] = None


class OccurrenceCountsInput(OccurrenceFilterInput):
    facet_limit: int = Field(100, ge=1, le=1000, description="Maximum number of groups returned.")


class DownloadStatusInput(ToolInput):
    download_key: str = Field(
        ..., min_length=1, description="Download key, e.g. \"0001005-130906152512535\"."
    )


class DownloadPredicateInput(ToolInput):
    taxon_key: Optional[Union[int, list[int]]] = None
    country: Optional[Union[str, list[str]]] = None
    year: Optional[str] = None
    month: Optional[int] = Field(None, ge=1, le=12)
    dataset_key: Optional[Union[str, list[str]]] = None
    basis_of_record: Optional[list[BasisOfRecord]] = None
    publishing_org: Optional[str] = None
    publishing_country: Optional[str] = None
    has_coordinate: Optional[bool] = None
    has_geospatial_issue: Optional[bool] = None
    continent: Optional[Continent] = None
    media_type: Optional[list[MediaType]] = None


# =============================================================================
# Registry
# =============================================================================
class RegistryKeyInput(ToolInput):
    key: str = Field(..., min_length=1, description="Registry UUID.")


class RegistryPagedKeyInput(PageInput):
    key: str = Field(..., min_length=1, description="Registry UUID.")


class DatasetSearchInput(PageInput):
    q: Optional[str] = None
    type: Optional[DatasetType] = None
    keyword: Optional[str] = None
    publishing_org: Optional[str] = None
    hosting_org: Optional[str] = None
    publishing_country: Optional[str] = Field(None, min_length=2, max_length=2)
    decade: Optional[int] = None
    license: Optional[str] = Field(None, description="e.g. CC0_1_0, CC_BY_4_0.")
    facet: Optional[list[str]] = None


class RegistrySearchInput(PageInput):
    q: Optional[str] = Field(None, description="Full-text search.")
    country: Optional[str] = Field(None, min_length=2, max_length=2)


class InstallationSearchInput(PageInput):
    q: Optional[str] = None
    type: Optional[str] = Field(None, description="e.g. IPT_INSTALLATION, BIOCASE_INSTALLATION.")


class GrSciCollSearchInput(PageInput):
    q: Optional[str] = None
    code: Optional[str] = Field(None, description="Collection or institution code.")
    name: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = Field(None, min_length=2, max_length=2)


# =============================================================================
# Literature & vocabularies & validator
# =============================================================================
class LiteratureSearchInput(PageInput):
    q: Optional[str] = None
    country_of_researcher: Optional[list[str]] = None
    country_of_coverage: Optional[list[str]] = None
    literature_type: Optional[list[str]] = Field(None, description="e.g. JOURNAL, THESIS.")
    relevance: Optional[list[str]] = Field(None, description="e.g. GBIF_USED, GBIF_CITED.")
    year: Optional[str] = Field(None, description="Year or range, e.g. \"2018,2020\".")
    topics: Optional[list[str]] = Field(None, description="e.g. BIODIVERSITY_SCIENCE.")
    gbif_dataset_key: Optional[list[str]] = None
    gbif_taxon_key: Optional[list[int]] = None
    peer_review: Optional[bool] = None
    open_access: Optional[bool] = None


class DoiInput(ToolInput):
    doi: str = Field(..., min_length=3, description="DOI, e.g. \"10.1038/s41559-021-01441-w\".")


class VocabularyListInput(PageInput):
    q: Optional[str] = None


class VocabularyNameInput(ToolInput):
    name: str = Field(..., min_length=1, description="Vocabulary name, e.g. \"LifeStage\".")


class ConceptInput(ToolInput):
    vocabulary_name: str = Field(..., min_length=1, description="e.g. \"LifeStage\".")
    concept_name: str = Field(..., min_length=1, description="e.g. \"Adult\".")


class ValidationKeyInput(ToolInput):
    key: str = Field(..., min_length=1, description="Validation key returned on submission.")


# =============================================================================
# Maps
# =============================================================================
class VectorTileInput(ToolInput):
    z: int = Field(..., ge=0, le=20, description="Zoom level, 0 (world) to 20 (street).")
    x: int = Field(..., ge=0, description="Tile column, 0 to 2^z - 1.")
    y: int = Field(..., ge=0, description="Tile row, 0 to 2^z - 1.")
    srs: Optional[str] = Field(None, description="EPSG:3857 (default) or EPSG:4326.")
    taxon_key: Optional[int] = None
    country: Optional[str] = Field(None, min_length=2, max_length=2)
    year: Optional[str] = None
    basis_of_record: Optional[BasisOfRecord] = None
    dataset_key: Optional[str] = None

    @model_validator(mode="after")
    def _check_grid(self):
        size = 2 ** self.z
        if self.x >= size or self.y >= size:
            raise ValueError(f"x and y must be below {size} at zoom {self.z}")
        return self


class RasterTileInput(VectorTileInput):
    style: Optional[str] = Field(None, description="Style name from gbif_maps_list_styles.")
    scale: Optional[int] = Field(None, ge=1, le=4, description="Pixel density, 1 to 4.")


class TileUrlInput(RasterTileInput):
    format: Literal["png", "mvt"] = Field("png", description="png (raster) or mvt (vector).")
