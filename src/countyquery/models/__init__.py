"""
Data models and schemas.
"""

from .features import (
    FeatureRecord,
    Geometry,
    PointGeometry,
    PolygonGeometry,
    PolylineGeometry,
    UnknownGeometry,
    parse_geometry,
)
from .query import GeometryEncoding, PointQuery, QueryOptions, ResultShape

__all__ = [
    # Query models
    "GeometryEncoding",
    "PointQuery",
    "QueryOptions",
    "ResultShape",
    # Feature models
    "FeatureRecord",
    "Geometry",
    "PointGeometry",
    "PolygonGeometry",
    "PolylineGeometry",
    "UnknownGeometry",
    "parse_geometry",
]
