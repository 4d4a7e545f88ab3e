"""
Tests for the ArcGIS feature query integration.

Tests the URL builder, the response parser, and the query client with
mocked responses.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List
from urllib.parse import parse_qsl, urlsplit

import httpx
import pytest
import respx

from countyquery.core.errors import MalformedResponseError, ServiceError, TransportError
from countyquery.integrations.arcgis.client import ArcGISClientConfig, FeatureQueryClient
from countyquery.integrations.arcgis.parser import ArcGISResponseParser
from countyquery.integrations.arcgis.url_builder import (
    build_query_url,
    encode_out_fields,
    encode_point,
)
from countyquery.models.features import FeatureRecord, PointGeometry, PolygonGeometry, UnknownGeometry
from countyquery.models.query import GeometryEncoding, PointQuery, QueryOptions, ResultShape

SERVICE_URL = "https://svc.example.com/arcgis/rest/services/ACS/FeatureServer/1"


def decoded_params(url: str) -> Dict[str, str]:
    """Decode a URL's query string into a dict."""
    return dict(parse_qsl(urlsplit(url).query, keep_blank_values=True))


# Mock service responses
MOCK_POINT_FEATURE = {
    "attributes": {"GEOID": "29510", "NAME": "St. Louis city", "B01001_001E": 301578},
    "geometry": {"x": -90.2, "y": 38.6},
}

MOCK_POLYGON_FEATURE = {
    "attributes": {"GEOID": "29189", "NAME": "St. Louis County", "B01001_001E": 1004125},
    "geometry": {
        "rings": [
            [
                [-90.7, 38.4],
                [-90.1, 38.4],
                [-90.1, 38.9],
                [-90.7, 38.9],
                [-90.7, 38.4],
            ]
        ]
    },
}

MOCK_QUERY_RESPONSE = {
    "spatialReference": {"wkid": 4326, "latestWkid": 4326},
    "features": [MOCK_POINT_FEATURE, MOCK_POLYGON_FEATURE],
}

MOCK_RELATED_RESPONSE = {
    "relatedRecordGroups": [
        {
            "objectId": 12,
            "relatedRecords": [
                {"attributes": {"ddate": "2024-07-02", "D0": 100.0, "D1": 42.5}},
                {"attributes": {"ddate": "2024-06-25", "D0": 87.1, "D1": 10.0}},
            ],
        }
    ]
}

MOCK_ERROR_RESPONSE = {
    "error": {"code": 400, "message": "bad request", "details": []},
}


class TestBuildQueryUrl:
    """Tests for build_query_url."""

    def test_point_geometry_scenario(self) -> None:
        """Test a structured point adds the point geometry type and match-all where."""
        options = QueryOptions.model_validate(
            {"geometry": {"x": -90.1, "y": 38.2, "spatialReference": 4326}}
        )
        url = build_query_url("https://svc/x", options, False)

        assert url.startswith("https://svc/x/query?")
        assert "geometryType=esriGeometryPoint" in url
        assert "where=1%3D1" in url

    def test_where_defaults_to_match_all(self) -> None:
        """Test absent and empty where clauses become 1=1."""
        for options in (QueryOptions(), QueryOptions(where="")):
            assert decoded_params(build_query_url(SERVICE_URL, options))["where"] == "1=1"

    def test_where_is_encoded(self) -> None:
        """Test a FIPS predicate is percent-encoded."""
        url = build_query_url(SERVICE_URL, QueryOptions(where="GEOID = '29510'"))
        assert "where=GEOID%20%3D%20%2729510%27" in url
        assert decoded_params(url)["where"] == "GEOID = '29510'"

    def test_always_requests_json(self) -> None:
        """Test f=json is always present."""
        url = build_query_url(SERVICE_URL, QueryOptions(where="1=1"))
        assert decoded_params(url)["f"] == "json"

    def test_endpoint_selection(self) -> None:
        """Test the related flag alone selects the endpoint."""
        options = QueryOptions(object_ids=[1], relationship_id=0)

        assert build_query_url(SERVICE_URL, options).startswith(f"{SERVICE_URL}/query?")
        assert build_query_url(SERVICE_URL, options, related_records=True).startswith(
            f"{SERVICE_URL}/queryRelatedRecords?"
        )

    def test_trailing_slash_collapsed(self) -> None:
        """Test a trailing slash on the service URL is not doubled."""
        url = build_query_url(SERVICE_URL + "/", QueryOptions())
        assert url.startswith(f"{SERVICE_URL}/query?")

    def test_out_fields_dropped_and_ordered(self) -> None:
        """Test empty field names are dropped and order is kept."""
        options = QueryOptions(out_fields=["GEOID", "", None, "NAME", "B01001_001E"])
        url = build_query_url(SERVICE_URL, options)

        assert url.endswith("&outFields=GEOID%2C%20NAME%2C%20B01001_001E")
        assert url.count("outFields=") == 1
        assert decoded_params(url)["outFields"] == "GEOID, NAME, B01001_001E"

    def test_out_fields_alias_survives(self) -> None:
        """Test aliased field names keep their spaces encoded once."""
        options = QueryOptions(out_fields=["huc4 as HUC4", "name"])
        url = build_query_url(SERVICE_URL, options)

        assert url.endswith("&outFields=huc4%20as%20HUC4%2C%20name")
        assert decoded_params(url)["outFields"] == "huc4 as HUC4, name"

    def test_out_fields_absent(self) -> None:
        """Test the builder does not invent an out field list."""
        url = build_query_url(SERVICE_URL, QueryOptions())
        assert "outFields" not in url

    def test_out_fields_wildcard(self) -> None:
        """Test the wildcard is left unencoded."""
        url = build_query_url(SERVICE_URL, QueryOptions(out_fields=["*"]))
        assert url.endswith("&outFields=*")

    def test_simple_point_encoding(self) -> None:
        """Test the simple point form and its spatial reference parameter."""
        options = QueryOptions(geometry=PointQuery(x=-90.1, y=38.2, spatial_reference=4269))
        params = decoded_params(build_query_url(SERVICE_URL, options))

        assert params["geometry"] == "-90.1, 38.2"
        assert params["geometryType"] == "esriGeometryPoint"
        assert params["spatialReferenceWkid"] == "4269"

    def test_json_point_encoding(self) -> None:
        """Test the extended JSON point form."""
        options = QueryOptions(
            geometry=PointQuery(x=-90.1, y=38.2, spatial_reference=4326),
            geometry_encoding=GeometryEncoding.JSON,
            in_sr=4326,
            out_sr=4326,
            geometry_precision=6,
        )
        params = decoded_params(build_query_url(SERVICE_URL, options))

        assert json.loads(params["geometry"]) == {
            "x": -90.1,
            "y": 38.2,
            "spatialReference": {"wkid": 4326},
        }
        assert params["inSR"] == "4326"
        assert params["outSR"] == "4326"
        assert params["geometryPrecision"] == "6"
        assert "spatialReferenceWkid" not in params

    def test_explicit_geometry_type_kept(self) -> None:
        """Test a caller-supplied geometry type is not overridden."""
        options = QueryOptions(
            geometry=PointQuery(x=1, y=2),
            geometry_type="esriGeometryMultipoint",
        )
        params = decoded_params(build_query_url(SERVICE_URL, options))
        assert params["geometryType"] == "esriGeometryMultipoint"

    def test_string_geometry_forwarded(self) -> None:
        """Test a pre-encoded geometry string passes through untouched."""
        options = QueryOptions(geometry="-91,38,-90,39", geometry_type="esriGeometryEnvelope")
        params = decoded_params(build_query_url(SERVICE_URL, options))

        assert params["geometry"] == "-91,38,-90,39"
        assert params["geometryType"] == "esriGeometryEnvelope"
        assert "spatialReferenceWkid" not in params

    def test_passthrough_values(self) -> None:
        """Test booleans, lists and scalars use the service's wire format."""
        options = QueryOptions(
            return_geometry=False,
            cache_hint=True,
            object_ids=[1, 2, 3],
            order_by_fields=["NAME ASC", "GEOID"],
            relationship_id=2,
            result_type="standard",
        )
        params = decoded_params(build_query_url(SERVICE_URL, options))

        assert params["returnGeometry"] == "false"
        assert params["cacheHint"] == "true"
        assert params["objectIds"] == "1,2,3"
        assert params["orderByFields"] == "NAME ASC,GEOID"
        assert params["relationshipId"] == "2"
        assert params["resultType"] == "standard"

    def test_token_only_when_given(self) -> None:
        """Test the token is forwarded only when supplied."""
        assert "token" not in build_query_url(SERVICE_URL, QueryOptions())
        params = decoded_params(build_query_url(SERVICE_URL, QueryOptions(token="abc123")))
        assert params["token"] == "abc123"

    def test_extra_params_before_format(self) -> None:
        """Test passthrough params keep insertion order ahead of f=json."""
        options = QueryOptions(extra_params={"spatialRel": "esriSpatialRelWithin", "distance": 50})
        names = [name for name, _ in parse_qsl(urlsplit(build_query_url(SERVICE_URL, options)).query)]

        assert names == ["where", "spatialRel", "distance", "f"]

    def test_idempotent(self) -> None:
        """Test identical inputs give identical URLs."""
        options = QueryOptions(
            where="GEOID = '29510'",
            out_fields=["GEOID", "NAME"],
            geometry=None,
            token="t",
        )
        assert build_query_url(SERVICE_URL, options) == build_query_url(SERVICE_URL, options)

    def test_options_not_mutated(self) -> None:
        """Test building does not fill in defaults on the options."""
        options = QueryOptions()
        build_query_url(SERVICE_URL, options)

        assert options.where is None
        assert options.out_fields is None

    def test_encode_helpers(self) -> None:
        """Test the standalone encoders."""
        assert encode_out_fields(["A", "", "B"]) == "A%2C%20B"
        assert encode_out_fields([]) == ""
        assert encode_point(PointQuery(x=1.5, y=2.5), GeometryEncoding.SIMPLE) == "1.5, 2.5"


class TestArcGISResponseParser:
    """Tests for the ArcGISResponseParser class."""

    def test_full_shape_shares_envelope_wkid(self) -> None:
        """Test features with different geometry shapes share the envelope WKID."""
        parser = ArcGISResponseParser()
        records = parser.parse(MOCK_QUERY_RESPONSE, ResultShape.FULL)

        assert len(records) == 2
        assert all(isinstance(record, FeatureRecord) for record in records)
        assert records[0].spatial_reference_wkid == 4326
        assert records[1].spatial_reference_wkid == 4326
        assert isinstance(records[0].geometry, PointGeometry)
        assert isinstance(records[1].geometry, PolygonGeometry)

    def test_full_shape_preserves_order(self) -> None:
        """Test records follow the service response order."""
        parser = ArcGISResponseParser()
        records = parser.parse(MOCK_QUERY_RESPONSE, ResultShape.FULL)
        assert [record.attributes["GEOID"] for record in records] == ["29510", "29189"]

    def test_full_shape_missing_spatial_reference(self) -> None:
        """Test a missing envelope spatial reference gives None."""
        parser = ArcGISResponseParser()
        records = parser.parse({"features": [MOCK_POINT_FEATURE]}, ResultShape.FULL)
        assert records[0].spatial_reference_wkid is None

    def test_full_shape_missing_geometry(self) -> None:
        """Test features without geometry normalize to None geometry."""
        parser = ArcGISResponseParser()
        records = parser.parse(
            {"features": [{"attributes": {"GEOID": "29510"}}]}, ResultShape.FULL
        )
        assert records[0].geometry is None
        assert records[0].to_dict() == {
            "attributes": {"GEOID": "29510"},
            "spatialReferenceWkid": None,
            "geometry": None,
        }

    def test_attributes_only_shape(self) -> None:
        """Test attributes-only records are plain mappings."""
        parser = ArcGISResponseParser()
        records = parser.parse(MOCK_QUERY_RESPONSE, ResultShape.ATTRIBUTES_ONLY)

        assert records == [
            MOCK_POINT_FEATURE["attributes"],
            MOCK_POLYGON_FEATURE["attributes"],
        ]

    def test_shape_accepts_value_string(self) -> None:
        """Test the result shape can be given by its value."""
        parser = ArcGISResponseParser()
        records = parser.parse(MOCK_QUERY_RESPONSE, "attributesOnly")
        assert records[0]["GEOID"] == "29510"

    def test_related_shape(self) -> None:
        """Test related records of the first group are flattened."""
        parser = ArcGISResponseParser()
        records = parser.parse(MOCK_RELATED_RESPONSE, ResultShape.RELATED)

        assert records == [
            {"ddate": "2024-07-02", "D0": 100.0, "D1": 42.5},
            {"ddate": "2024-06-25", "D0": 87.1, "D1": 10.0},
        ]

    def test_related_shape_without_groups(self) -> None:
        """Test a missing or empty group list resolves to no records."""
        parser = ArcGISResponseParser()

        assert parser.parse({}, ResultShape.RELATED) == []
        assert parser.parse({"relatedRecordGroups": []}, ResultShape.RELATED) == []
        assert parser.parse({"relatedRecordGroups": [{"objectId": 1}]}, ResultShape.RELATED) == []

    def test_empty_features(self) -> None:
        """Test empty and missing feature lists give empty results."""
        parser = ArcGISResponseParser()

        for shape in (ResultShape.FULL, ResultShape.ATTRIBUTES_ONLY):
            assert parser.parse({"features": []}, shape) == []
            assert parser.parse({}, shape) == []

    def test_error_takes_precedence(self) -> None:
        """Test a truthy error fails even when features are present."""
        parser = ArcGISResponseParser()
        envelope = {**MOCK_QUERY_RESPONSE, "error": {"code": 498, "message": "Invalid token."}}

        for shape in ResultShape:
            with pytest.raises(ServiceError) as exc_info:
                parser.parse(envelope, shape)
            assert exc_info.value.error == {"code": 498, "message": "Invalid token."}

    def test_falsy_error_ignored(self) -> None:
        """Test an empty error value is not a failure."""
        parser = ArcGISResponseParser()
        records = parser.parse({"error": None, "features": []}, ResultShape.FULL)
        assert records == []

    def test_non_object_envelope(self) -> None:
        """Test a JSON array body is malformed."""
        parser = ArcGISResponseParser()
        with pytest.raises(MalformedResponseError):
            parser.parse([], ResultShape.FULL)

    def test_other_geometry_shapes_pass_through(self) -> None:
        """Test multipoint and z-aware geometries come back as received."""
        parser = ArcGISResponseParser()
        multipoint = {"points": [[1, 2], [3, 4]]}
        z_point = {"x": 1, "y": 2, "z": 99}
        envelope = {
            "features": [
                {"attributes": {"OBJECTID": 1}, "geometry": multipoint},
                {"attributes": {"OBJECTID": 2}, "geometry": z_point},
            ]
        }

        records = parser.parse(envelope, ResultShape.FULL)

        assert isinstance(records[0].geometry, UnknownGeometry)
        assert isinstance(records[1].geometry, PointGeometry)
        assert [record.to_dict()["geometry"] for record in records] == [multipoint, z_point]


class TestFeatureQueryClient:
    """Tests for the FeatureQueryClient class."""

    QUERY_URL = f"{SERVICE_URL}/query"

    def test_client_initialization(self) -> None:
        """Test client initializes with default config."""
        client = FeatureQueryClient()
        assert client.config.timeout == 30.0
        assert client.config.follow_redirects is True

    def test_client_custom_config(self) -> None:
        """Test client initializes with custom config."""
        config = ArcGISClientConfig(timeout=5.0, headers={"Referer": "https://app.example.com"})
        client = FeatureQueryClient(config)

        assert client.config.timeout == 5.0
        assert client.client.headers["Referer"] == "https://app.example.com"
        assert client.client.headers["User-Agent"] == "countyquery/0.1.0"

    @pytest.mark.asyncio
    @respx.mock
    async def test_user_agent_sent(self) -> None:
        """Test requests identify the library and allow an override."""
        route = respx.get(self.QUERY_URL).mock(return_value=httpx.Response(200, json={"features": []}))

        async with FeatureQueryClient() as client:
            await client.execute_query(f"{self.QUERY_URL}?f=json")
        async with FeatureQueryClient(ArcGISClientConfig(headers={"User-Agent": "county-app/2.0"})) as client:
            await client.execute_query(f"{self.QUERY_URL}?f=json")

        assert route.calls[0].request.headers["User-Agent"] == "countyquery/0.1.0"
        assert route.calls[1].request.headers["User-Agent"] == "county-app/2.0"

    @pytest.mark.asyncio
    @respx.mock
    async def test_full_query_scenario(self) -> None:
        """Test a full query resolves to flattened feature records."""
        respx.get(self.QUERY_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "features": [{"attributes": {"GEOID": "29510"}, "geometry": {"x": 1, "y": 2}}],
                    "spatialReference": {"wkid": 4326},
                },
            )
        )
        url = build_query_url(SERVICE_URL, QueryOptions(where="GEOID = '29510'"))

        async with FeatureQueryClient() as client:
            records = await client.execute_query(url, ResultShape.FULL)

        assert [record.to_dict() for record in records] == [
            {"attributes": {"GEOID": "29510"}, "spatialReferenceWkid": 4326, "geometry": {"x": 1, "y": 2}}
        ]

    @pytest.mark.asyncio
    @respx.mock
    async def test_service_error_scenario(self) -> None:
        """Test a service error rejects with the error object verbatim."""
        route = respx.get(self.QUERY_URL).mock(
            return_value=httpx.Response(200, json={"error": {"code": 400, "message": "bad request"}})
        )

        async with FeatureQueryClient() as client:
            with pytest.raises(ServiceError) as exc_info:
                await client.execute_query(f"{self.QUERY_URL}?where=1%3D1&f=json")

        assert exc_info.value.error == {"code": 400, "message": "bad request"}
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "bad request"
        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_service_error_beats_http_status(self) -> None:
        """Test the body error is reported even on an error status."""
        respx.get(self.QUERY_URL).mock(
            return_value=httpx.Response(500, json=MOCK_ERROR_RESPONSE)
        )

        async with FeatureQueryClient() as client:
            with pytest.raises(ServiceError) as exc_info:
                await client.execute_query(f"{self.QUERY_URL}?f=json")

        assert exc_info.value.error == MOCK_ERROR_RESPONSE["error"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_transport_error_not_retried(self) -> None:
        """Test a connection failure surfaces once as a TransportError."""
        route = respx.get(self.QUERY_URL).mock(side_effect=httpx.ConnectError("connection refused"))

        async with FeatureQueryClient() as client:
            with pytest.raises(TransportError) as exc_info:
                await client.execute_query(f"{self.QUERY_URL}?f=json")

        assert isinstance(exc_info.value.original, httpx.ConnectError)
        assert exc_info.value.__cause__ is exc_info.value.original
        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout_is_transport_error(self) -> None:
        """Test a transport timeout surfaces as a TransportError."""
        respx.get(self.QUERY_URL).mock(side_effect=httpx.ReadTimeout("timed out"))

        async with FeatureQueryClient() as client:
            with pytest.raises(TransportError) as exc_info:
                await client.execute_query(f"{self.QUERY_URL}?f=json")

        assert isinstance(exc_info.value.original, httpx.TimeoutException)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [httpx.InvalidURL("Invalid port: 'abc'"), httpx.CookieConflict("Multiple cookies exist")],
    )
    async def test_non_http_errors_are_transport_errors(self, error: Exception) -> None:
        """Test httpx errors outside the HTTPError tree are still TransportErrors."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise error

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = FeatureQueryClient(http_client=http_client)

        with pytest.raises(TransportError) as exc_info:
            await client.execute_query(f"{self.QUERY_URL}?f=json")
        await http_client.aclose()

        assert exc_info.value.original is error
        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    async def test_unparseable_url_is_transport_error(self) -> None:
        """Test a URL httpx cannot parse surfaces as a TransportError."""
        async with FeatureQueryClient() as client:
            with pytest.raises(TransportError) as exc_info:
                await client.execute_query("https://svc.example.com:abc/query?f=json")

        assert isinstance(exc_info.value.original, httpx.InvalidURL)

    @pytest.mark.asyncio
    @respx.mock
    async def test_error_status_without_service_error(self) -> None:
        """Test an error status with a non-JSON body is a TransportError."""
        respx.get(self.QUERY_URL).mock(
            return_value=httpx.Response(503, text="<html>Service Unavailable</html>")
        )

        async with FeatureQueryClient() as client:
            with pytest.raises(TransportError) as exc_info:
                await client.execute_query(f"{self.QUERY_URL}?f=json")

        assert exc_info.value.status_code == 503
        assert isinstance(exc_info.value.original, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    @respx.mock
    async def test_error_status_with_plain_json(self) -> None:
        """Test an error status with a JSON body lacking error is a TransportError."""
        respx.get(self.QUERY_URL).mock(return_value=httpx.Response(404, json={"features": []}))

        async with FeatureQueryClient() as client:
            with pytest.raises(TransportError) as exc_info:
                await client.execute_query(f"{self.QUERY_URL}?f=json")

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    @respx.mock
    async def test_malformed_body(self) -> None:
        """Test an undecodable body is a MalformedResponseError."""
        respx.get(self.QUERY_URL).mock(return_value=httpx.Response(200, text="not json"))

        async with FeatureQueryClient() as client:
            with pytest.raises(MalformedResponseError) as exc_info:
                await client.execute_query(f"{self.QUERY_URL}?f=json")

        assert isinstance(exc_info.value.original, ValueError)

    @pytest.mark.asyncio
    @respx.mock
    async def test_related_query_endpoint(self) -> None:
        """Test query() routes the related shape to queryRelatedRecords."""
        related_route = respx.get(f"{SERVICE_URL}/queryRelatedRecords").mock(
            return_value=httpx.Response(200, json=MOCK_RELATED_RESPONSE)
        )
        options = QueryOptions(object_ids=[12], relationship_id=0, out_fields=["*"])

        async with FeatureQueryClient() as client:
            records = await client.query(SERVICE_URL, options, ResultShape.RELATED)

        assert related_route.call_count == 1
        assert records[0]["ddate"] == "2024-07-02"

    @pytest.mark.asyncio
    @respx.mock
    async def test_related_query_without_groups(self) -> None:
        """Test a related query without record groups resolves empty."""
        respx.get(f"{SERVICE_URL}/queryRelatedRecords").mock(
            return_value=httpx.Response(200, json={"fields": []})
        )
        options = QueryOptions(object_ids=[12], relationship_id=0)

        async with FeatureQueryClient() as client:
            records = await client.query(SERVICE_URL, options, ResultShape.RELATED)

        assert records == []

    @pytest.mark.asyncio
    async def test_injected_transport(self) -> None:
        """Test an injected client is used and left open."""
        requested: List[httpx.URL] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(request.url)
            return httpx.Response(200, json=MOCK_QUERY_RESPONSE)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        options = QueryOptions(where="GEOID = '29510'", out_fields=["GEOID", "NAME"])

        async with FeatureQueryClient(http_client=http_client) as client:
            records = await client.query(SERVICE_URL, options, ResultShape.ATTRIBUTES_ONLY)

        assert not http_client.is_closed
        await http_client.aclose()

        assert len(requested) == 1
        assert requested[0].path.endswith("/FeatureServer/1/query")
        assert dict(requested[0].params)["outFields"] == "GEOID, NAME"
        assert records[1]["NAME"] == "St. Louis County"

    @pytest.mark.asyncio
    async def test_owned_transport_closed(self) -> None:
        """Test the client closes a transport it created."""
        client = FeatureQueryClient()
        await client.close()
        assert client.client.is_closed

    @pytest.mark.asyncio
    async def test_concurrent_queries_independent(self) -> None:
        """Test concurrent queries each settle with their own result."""

        def handler(request: httpx.Request) -> httpx.Response:
            where = request.url.params["where"]
            return httpx.Response(200, json={"features": [{"attributes": {"where": where}}]})

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = FeatureQueryClient(http_client=http_client)
        fips_codes = ["29510", "29189", "17163"]

        results = await asyncio.gather(
            *[
                client.query(
                    SERVICE_URL,
                    QueryOptions(where=f"GEOID = '{fips}'"),
                    ResultShape.ATTRIBUTES_ONLY,
                )
                for fips in fips_codes
            ]
        )
        await http_client.aclose()

        assert [result[0]["where"] for result in results] == [
            f"GEOID = '{fips}'" for fips in fips_codes
        ]

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self) -> None:
        """Test an in-flight query can be cancelled by the caller."""
        started = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            started.set()
            await asyncio.Event().wait()
            return httpx.Response(200, json={})

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = FeatureQueryClient(http_client=http_client)

        task = asyncio.create_task(client.execute_query(f"{self.QUERY_URL}?f=json"))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        await http_client.aclose()

    @pytest.mark.asyncio
    @respx.mock
    async def test_token_redacted_in_logs(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test the service token never reaches the client's logs."""
        respx.get(self.QUERY_URL).mock(return_value=httpx.Response(200, json={"features": []}))
        url = build_query_url(SERVICE_URL, QueryOptions(token="s3cr3t-token"))

        with caplog.at_level(logging.DEBUG, logger="countyquery"):
            async with FeatureQueryClient() as client:
                await client.execute_query(url, ResultShape.ATTRIBUTES_ONLY)

        assert "s3cr3t-token" not in caplog.text
        assert "token=" in caplog.text
