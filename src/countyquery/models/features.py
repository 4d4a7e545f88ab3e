"""
Pydantic models for features returned by a feature query.

ArcGIS geometries are told apart by which key they carry (x/y, rings,
paths). parse_geometry does that probing once, at the response boundary,
and everything downstream works with the tagged variants. Keys the
variants do not name (z, m, hasZ, curveRings, ...) are kept and written
back by to_arcgis, and shapes outside the three variants pass through
untouched as UnknownGeometry.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

Coordinates = List[float]


class _ArcGISGeometry(BaseModel):
    """Shared behavior of the typed geometry variants."""

    model_config = ConfigDict(extra="allow")

    spatial_reference: Optional[int] = None

    def _to_arcgis(self, geometry: Dict[str, Any]) -> Dict[str, Any]:
        geometry.update(self.model_extra or {})
        if self.spatial_reference is not None and "spatialReference" not in geometry:
            geometry["spatialReference"] = {"wkid": self.spatial_reference}
        return geometry


class PointGeometry(_ArcGISGeometry):
    """Point geometry. Empty points carry null coordinates."""

    type: Literal["point"] = "point"
    x: Optional[float] = None
    y: Optional[float] = None

    def to_arcgis(self) -> Dict[str, Any]:
        """Convert back to the service's JSON geometry."""
        return self._to_arcgis({"x": self.x, "y": self.y})


class PolygonGeometry(_ArcGISGeometry):
    """Polygon geometry as a list of rings."""

    type: Literal["polygon"] = "polygon"
    rings: List[List[Coordinates]] = Field(default_factory=list)

    def to_arcgis(self) -> Dict[str, Any]:
        """Convert back to the service's JSON geometry."""
        return self._to_arcgis({"rings": self.rings})


class PolylineGeometry(_ArcGISGeometry):
    """Polyline geometry as a list of paths."""

    type: Literal["polyline"] = "polyline"
    paths: List[List[Coordinates]] = Field(default_factory=list)

    def to_arcgis(self) -> Dict[str, Any]:
        """Convert back to the service's JSON geometry."""
        return self._to_arcgis({"paths": self.paths})


class UnknownGeometry(BaseModel):
    """
    Geometry of any other shape (multipoint, envelope, curves), kept as
    the service sent it.
    """

    type: Literal["unknown"] = "unknown"
    raw: Any = None

    def to_arcgis(self) -> Any:
        """Return the geometry exactly as received."""
        return self.raw


Geometry = Annotated[
    Union[PointGeometry, PolygonGeometry, PolylineGeometry, UnknownGeometry],
    Field(discriminator="type"),
]


class FeatureRecord(BaseModel):
    """
    A feature normalized for the FULL result shape.

    Attributes:
        attributes: Field name to scalar value mapping
        spatial_reference_wkid: WKID of the response envelope, if any
        geometry: Tagged geometry, None when the feature had none
    """

    model_config = ConfigDict(populate_by_name=True)

    attributes: Dict[str, Any] = Field(default_factory=dict)
    spatial_reference_wkid: Optional[int] = Field(None, alias="spatialReferenceWkid")
    geometry: Optional[Geometry] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the flattened camelCase record shape."""
        return {
            "attributes": self.attributes,
            "spatialReferenceWkid": self.spatial_reference_wkid,
            "geometry": self.geometry.to_arcgis() if self.geometry is not None else None,
        }


def _geometry_wkid(raw: Dict[str, Any]) -> Optional[int]:
    spatial_reference = raw.get("spatialReference")
    if isinstance(spatial_reference, dict) and isinstance(spatial_reference.get("wkid"), int):
        return spatial_reference["wkid"]
    return None


def parse_geometry(
    raw: Any,
) -> Optional[Union[PointGeometry, PolygonGeometry, PolylineGeometry, UnknownGeometry]]:
    """
    Convert an ArcGIS JSON geometry into its tagged variant.

    Never rejects a geometry: anything that does not fit a typed variant
    is wrapped in UnknownGeometry unchanged.

    Args:
        raw: Geometry mapping from a feature, or None

    Returns:
        The tagged geometry, or None when the feature carries no geometry
    """
    if not raw:
        return None

    if not isinstance(raw, dict) or "type" in raw:
        return UnknownGeometry(raw=raw)

    extra = {key: value for key, value in raw.items() if key not in ("x", "y", "rings", "paths")}
    wkid = _geometry_wkid(raw)
    try:
        if "x" in raw:
            return PointGeometry.model_validate(
                {**extra, "x": raw.get("x"), "y": raw.get("y"), "spatial_reference": wkid}
            )
        if "rings" in raw:
            return PolygonGeometry.model_validate(
                {**extra, "rings": raw["rings"], "spatial_reference": wkid}
            )
        if "paths" in raw:
            return PolylineGeometry.model_validate(
                {**extra, "paths": raw["paths"], "spatial_reference": wkid}
            )
    except ValidationError:
        return UnknownGeometry(raw=raw)

    return UnknownGeometry(raw=raw)
