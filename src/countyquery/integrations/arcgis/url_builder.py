"""
Query URL builder for ArcGIS feature services.

Turns a service base URL and a QueryOptions into a fully encoded
``/query`` or ``/queryRelatedRecords`` URL. Pure: no I/O, no mutation of
the options, identical inputs give identical URLs.
"""

import json
from typing import Any, List, Optional, Sequence, Tuple
from urllib.parse import quote, urlencode

from countyquery.models.query import GeometryEncoding, PointQuery, QueryOptions

MATCH_ALL_WHERE = "1=1"
POINT_GEOMETRY_TYPE = "esriGeometryPoint"

QUERY_ENDPOINT = "query"
RELATED_RECORDS_ENDPOINT = "queryRelatedRecords"

# Encoded ", " between out field names
OUT_FIELDS_DELIMITER = "%2C%20"

# Options forwarded as-is, in wire order after where/geometry
_PASSTHROUGH_FIELDS = (
    "geometry_type",
    "spatial_reference_wkid",
    "in_sr",
    "out_sr",
    "geometry_precision",
    "return_geometry",
    "object_ids",
    "relationship_id",
    "order_by_fields",
    "result_type",
    "cache_hint",
    "token",
)


def _encode_value(value: Any) -> str:
    """Encode a scalar or list option the way the service expects."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_encode_value(item) for item in value)
    return str(value)


def encode_point(point: PointQuery, encoding: GeometryEncoding) -> str:
    """
    Serialize a point filter.

    Args:
        point: Point to serialize
        encoding: SIMPLE gives "x, y", JSON gives an object with spatialReference

    Returns:
        Geometry parameter value
    """
    if encoding is GeometryEncoding.JSON:
        return json.dumps(
            {"x": point.x, "y": point.y, "spatialReference": {"wkid": point.spatial_reference}},
            separators=(",", ":"),
        )
    return f"{point.x}, {point.y}"


def encode_out_fields(out_fields: Sequence[Optional[str]]) -> str:
    """
    Encode an out field list, dropping empty entries.

    Each name is percent-encoded on its own so aliases such as
    ``huc8 as HUC8`` keep their spaces as ``%20``.

    Args:
        out_fields: Field names in order

    Returns:
        Encoded field list joined with an encoded ", "
    """
    return OUT_FIELDS_DELIMITER.join(
        quote(field, safe="*") for field in out_fields if field
    )


def query_params(options: QueryOptions) -> List[Tuple[str, str]]:
    """
    Collect the generic query parameters of a request.

    outFields is not included: build_query_url appends it separately.

    Args:
        options: Query options

    Returns:
        Ordered (name, value) pairs ending with f=json
    """
    params: List[Tuple[str, str]] = [("where", options.where or MATCH_ALL_WHERE)]

    geometry_type = options.geometry_type
    spatial_reference_wkid = options.spatial_reference_wkid

    if isinstance(options.geometry, PointQuery):
        params.append(("geometry", encode_point(options.geometry, options.geometry_encoding)))
        geometry_type = geometry_type or POINT_GEOMETRY_TYPE
        if options.geometry_encoding is GeometryEncoding.SIMPLE and spatial_reference_wkid is None:
            spatial_reference_wkid = options.geometry.spatial_reference
    elif options.geometry:
        params.append(("geometry", options.geometry))

    overrides = {
        "geometry_type": geometry_type,
        "spatial_reference_wkid": spatial_reference_wkid,
    }

    for name in _PASSTHROUGH_FIELDS:
        value = overrides[name] if name in overrides else getattr(options, name)
        if value is None:
            continue
        wire_name = QueryOptions.model_fields[name].alias or name
        params.append((wire_name, _encode_value(value)))

    for wire_name, value in options.extra_params.items():
        if value is None:
            continue
        params.append((wire_name, _encode_value(value)))

    params.append(("f", "json"))
    return params


def build_query_url(
    service_url: str,
    options: QueryOptions,
    related_records: bool = False,
) -> str:
    """
    Build the query URL for a feature service layer.

    Args:
        service_url: Base URL of the layer, e.g. ``.../FeatureServer/1``
        options: Query options
        related_records: Target ``/queryRelatedRecords`` instead of ``/query``

    Returns:
        Encoded URL, always carrying f=json
    """
    endpoint = RELATED_RECORDS_ENDPOINT if related_records else QUERY_ENDPOINT
    url = f"{service_url.rstrip('/')}/{endpoint}?{urlencode(query_params(options), quote_via=quote)}"

    if options.out_fields is not None:
        url += f"&outFields={encode_out_fields(options.out_fields)}"

    return url
