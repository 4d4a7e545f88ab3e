"""
Pydantic models describing a feature query request.

QueryOptions is the explicit replacement for a free-form parameter bag:
every parameter the query builder understands is a named optional field,
and extra_params carries anything newer services accept.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ResultShape(str, Enum):
    """Shape of the records a query resolves to."""

    ATTRIBUTES_ONLY = "attributesOnly"  # attribute mappings
    FULL = "full"  # attributes, geometry and envelope WKID
    RELATED = "related"  # related-record attribute mappings


class GeometryEncoding(str, Enum):
    """Wire form of a structured point geometry."""

    SIMPLE = "simple"  # "x, y"
    JSON = "json"  # {"x":..,"y":..,"spatialReference":{"wkid":..}}


class PointQuery(BaseModel):
    """
    A point used as a spatial filter.

    Attributes:
        x: X coordinate (longitude for geographic references)
        y: Y coordinate (latitude for geographic references)
        spatial_reference: WKID of the coordinates
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    x: float = Field(..., description="X coordinate")
    y: float = Field(..., description="Y coordinate")
    spatial_reference: int = Field(
        default=4326, alias="spatialReference", description="WKID of the coordinates", gt=0
    )


class QueryOptions(BaseModel):
    """
    Parameters of a single feature query.

    Field aliases are the service's parameter names, so options can be
    built either from Python names or from a camelCase mapping.
    Only populated fields reach the query string.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    where: Optional[str] = Field(None, description="Filter predicate, defaults to 1=1")
    out_fields: Optional[List[Optional[str]]] = Field(
        None, alias="outFields", description="Field names, falsy entries are dropped"
    )
    geometry: Optional[Union[PointQuery, str]] = Field(
        None, description="Point filter or a pre-encoded geometry string"
    )
    geometry_encoding: GeometryEncoding = Field(
        default=GeometryEncoding.SIMPLE,
        alias="geometryEncoding",
        description="Wire form used for a PointQuery geometry",
    )
    geometry_type: Optional[str] = Field(None, alias="geometryType")
    spatial_reference_wkid: Optional[int] = Field(None, alias="spatialReferenceWkid")
    in_sr: Optional[int] = Field(None, alias="inSR")
    out_sr: Optional[int] = Field(None, alias="outSR")
    geometry_precision: Optional[int] = Field(None, alias="geometryPrecision", ge=0)
    return_geometry: Optional[bool] = Field(None, alias="returnGeometry")
    object_ids: Optional[List[int]] = Field(None, alias="objectIds")
    relationship_id: Optional[int] = Field(None, alias="relationshipId")
    order_by_fields: Optional[List[str]] = Field(None, alias="orderByFields")
    result_type: Optional[str] = Field(None, alias="resultType")
    cache_hint: Optional[bool] = Field(None, alias="cacheHint")
    token: Optional[str] = Field(None, description="Caller-supplied service token")
    extra_params: Dict[str, Any] = Field(
        default_factory=dict,
        alias="extraParams",
        description="Additional service parameters forwarded verbatim",
    )

    @field_validator("extra_params")
    @classmethod
    def reject_shadowed_params(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        """Reject extra params that would duplicate a named option."""
        reserved = {"f"}
        for name, field in cls.model_fields.items():
            reserved.add(field.alias or name)
        shadowed = sorted(key for key in value if key in reserved)
        if shadowed:
            raise ValueError(f"extra_params may not set named parameters: {', '.join(shadowed)}")
        return value
