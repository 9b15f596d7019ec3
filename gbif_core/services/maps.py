# =============================================================================
# gbif_core/services/maps.py  —  Occurrence Density Map Tiles
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Builds URLs for GBIF's map tile service.  The tiles themselves are PNG
#   or Mapbox Vector Tile binaries meant for a map client, so nothing here
#   downloads them; the tools hand back ready-to-use URLs instead.
#
#   Tiles live under the v2 API, next to the v1 base URL:
#       https://api.gbif.org/v2/map/occurrence/density/{z}/{x}/{y}@{scale}x.png
#       https://api.gbif.org/v2/map/occurrence/density/{z}/{x}/{y}.mvt
# =============================================================================

from typing import Any, Mapping, Optional
from urllib.parse import urlencode

DEFAULT_SRS = "EPSG:3857"

# (name, type, description)
STYLES: list[tuple[str, str, str]] = [
    ("classic.point", "point", "Yellow-to-red points, the gbif.org default"),
    ("classic.poly", "poly", "Classic colours on hexagon/square bins"),
    ("classic-noborder.poly", "poly", "Classic bins without outlines"),
    ("purpleYellow.point", "point", "Purple-to-yellow points"),
    ("purpleYellow.poly", "poly", "Purple-to-yellow bins"),
    ("purpleHeat.point", "point", "Purple heat map"),
    ("blueHeat.point", "point", "Blue heat map"),
    ("orangeHeat.point", "point", "Orange heat map"),
    ("greenHeat.point", "point", "Green heat map"),
    ("fire.point", "point", "Fire-coloured points"),
    ("glacier.point", "point", "Glacier-coloured points"),
    ("green.poly", "poly", "Green bins"),
    ("green2.poly", "poly", "Alternative green bins"),
    ("iNaturalist.poly", "poly", "iNaturalist-style bins"),
    ("purpleWhite.poly", "poly", "Purple-to-white bins"),
    ("red.poly", "poly", "Red bins"),
    ("outline.poly", "poly", "Bin outlines only"),
    ("blue.marker", "marker", "Blue markers"),
    ("orange.marker", "marker", "Orange markers"),
    ("scaled.circles", "circles", "Circles scaled by count"),
]

_FILTER_PARAMS = ("taxonKey", "country", "year", "basisOfRecord", "datasetKey", "publishingOrg")


def maps_base_url(api_base_url: str) -> str:
    """The v2 map root for a given v1 API base URL."""
    root = api_base_url.rstrip("/")
    if root.endswith("/v1"):
        root = root[: -len("/v1")]
    return f"{root}/v2/map/occurrence/density"


def list_styles() -> list[dict[str, str]]:
    return [{"name": name, "type": kind, "description": text} for name, kind, text in STYLES]


def validate_tile(z: int, x: int, y: int) -> None:
    """Raise ValueError when x/y fall outside the 2^z grid."""
    size = 2 ** z
    if not (0 <= x < size and 0 <= y < size):
        raise ValueError(f"Tile ({x}, {y}) is outside the grid for zoom {z} (0..{size - 1})")


def tile_url(
    api_base_url: str,
    z: int,
    x: int,
    y: int,
    fmt: str = "png",
    scale: Optional[int] = None,
    style: Optional[str] = None,
    srs: Optional[str] = None,
    filters: Optional[Mapping[str, Any]] = None,
) -> str:
    """Build a density tile URL; raster for fmt="png", vector for "mvt"."""
    validate_tile(z, x, y)
    if fmt not in ("png", "mvt"):
        raise ValueError(f"Unsupported tile format {fmt!r}")

    if fmt == "png":
        path = f"{z}/{x}/{y}@{scale or 1}x.png"
    else:
        path = f"{z}/{x}/{y}.mvt"

    query: list[tuple[str, Any]] = [("srs", srs or DEFAULT_SRS)]
    if style and fmt == "png":
        query.append(("style", style))
    for name in _FILTER_PARAMS:
        value = (filters or {}).get(name)
        if value is not None:
            query.append((name, value))

    return f"{maps_base_url(api_base_url)}/{path}?{urlencode(query)}"
