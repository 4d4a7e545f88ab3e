"""
County data lookups over ArcGIS feature services.

Each lookup binds a service URL and field list from the settings registry
to the shared query client. A lookup filters either by county FIPS code or
by a point geometry, never both.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from countyquery.core.config import Settings, settings as default_settings
from countyquery.core.errors import CallerInputError, ConfigurationError
from countyquery.integrations.arcgis.client import FeatureQueryClient
from countyquery.models.features import FeatureRecord
from countyquery.models.query import GeometryEncoding, PointQuery, QueryOptions, ResultShape
from countyquery.utils.logging import log_async_function_call

logger = logging.getLogger(__name__)

FIPS_OR_GEOMETRY_MESSAGE = "Exactly one of a county FIPS code or a point geometry must be provided."

HUC_LEVELS = (2, 4, 6, 8, 10, 12)

# Decimal places returned for watershed geometries
WATERSHED_GEOMETRY_PRECISION = 6


def fips_where_clause(field_name: str, county_fips: str) -> str:
    """
    Build the predicate matching one county.

    Args:
        field_name: Field holding the FIPS code
        county_fips: FIPS code, e.g. "29510"

    Returns:
        SQL-92 predicate with the code quoted
    """
    escaped = county_fips.replace("'", "''")
    return f"{field_name} = '{escaped}'"


class CountyDataService:
    """
    Domain lookups for county population, housing, land, drought and
    watershed data.
    """

    def __init__(self, client: FeatureQueryClient, settings: Optional[Settings] = None) -> None:
        """
        Initialize the service.

        Args:
            client: Query client used for every lookup
            settings: Service registry, defaults to the package settings
        """
        self.client = client
        self.settings = settings or default_settings

    def _service_url(self, key: str) -> str:
        url = getattr(self.settings, key)
        if not url:
            raise ConfigurationError(f"No service URL configured for {key}", config_key=key)
        return url

    def _fips_or_geometry_options(
        self,
        out_fields: Sequence[str],
        county_fips: Optional[str],
        geometry: Optional[PointQuery],
        token: Optional[str],
    ) -> QueryOptions:
        """
        Build options filtering by FIPS code or by point.

        Raises:
            CallerInputError: If both or neither of county_fips and geometry are given
        """
        fields = list(out_fields) or ["*"]

        if county_fips and geometry is None:
            return QueryOptions(
                where=fips_where_clause(self.settings.fips_code_field_name, county_fips),
                out_fields=fields,
                token=token,
            )

        if geometry is not None and not county_fips:
            return QueryOptions(
                out_fields=fields,
                geometry=geometry,
                in_sr=geometry.spatial_reference,
                token=token,
            )

        raise CallerInputError(
            FIPS_OR_GEOMETRY_MESSAGE,
            details={"county_fips": county_fips, "geometry": geometry is not None},
        )

    @log_async_function_call(log_result=False)
    async def get_population_data(
        self,
        county_fips: Optional[str] = None,
        geometry: Optional[PointQuery] = None,
        token: Optional[str] = None,
    ) -> List[FeatureRecord]:
        """
        Get population figures for a county.

        Args:
            county_fips: FIPS code of the county
            geometry: Point inside the county
            token: Service token

        Returns:
            Matching features with geometry
        """
        options = self._fips_or_geometry_options(
            self.settings.population_fields, county_fips, geometry, token
        )
        return await self.client.query(
            self._service_url("population_service_url"), options, ResultShape.FULL
        )

    @log_async_function_call(log_result=False)
    async def get_housing_data(
        self,
        county_fips: Optional[str] = None,
        geometry: Optional[PointQuery] = None,
        token: Optional[str] = None,
    ) -> List[FeatureRecord]:
        """Get housing unit and occupancy figures for a county."""
        options = self._fips_or_geometry_options(
            self.settings.housing_fields, county_fips, geometry, token
        )
        return await self.client.query(
            self._service_url("housing_service_url"), options, ResultShape.FULL
        )

    @log_async_function_call(log_result=False)
    async def get_water_and_land_area(
        self,
        county_fips: Optional[str] = None,
        geometry: Optional[PointQuery] = None,
        token: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Get land (ALAND) and water (AWATER) area of a county in square meters.

        Returns:
            Attribute mappings only
        """
        options = self._fips_or_geometry_options(
            self.settings.water_and_area_fields, county_fips, geometry, token
        )
        return await self.client.query(
            self._service_url("population_service_url"), options, ResultShape.ATTRIBUTES_ONLY
        )

    @log_async_function_call(log_result=False)
    async def get_drought_data(
        self,
        county_fips: Optional[str] = None,
        geometry: Optional[PointQuery] = None,
        token: Optional[str] = None,
    ) -> List[FeatureRecord]:
        """Get current drought intensity for a county."""
        options = self._fips_or_geometry_options(
            self.settings.drought_fields, county_fips, geometry, token
        )
        return await self.client.query(
            self._service_url("drought_service_url"), options, ResultShape.FULL
        )

    @log_async_function_call(log_result=False)
    async def get_watershed(
        self,
        geometry: PointQuery,
        huc_level: int = 8,
        token: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Get the hydrologic unit containing a point.

        The point is sent in JSON form with matching input and output
        spatial references, and the HUC code field is aliased to upper
        case (``huc8 as HUC8``).

        Args:
            geometry: Point to locate
            huc_level: Hydrologic unit digits, one of 2, 4, 6, 8, 10, 12
            token: Service token

        Returns:
            Attribute mappings with HUC<level> and name
        """
        if geometry is None:
            raise CallerInputError("A point geometry is required", field="geometry")
        if huc_level not in HUC_LEVELS:
            raise CallerInputError(
                f"huc_level must be one of {', '.join(str(level) for level in HUC_LEVELS)}",
                field="huc_level",
            )

        # WBD layers are ordered by HUC level: HUC2 is layer 1, HUC4 layer 2, ...
        layer_url = f"{self._service_url('watershed_service_url').rstrip('/')}/{huc_level // 2}"
        options = QueryOptions(
            out_fields=[f"huc{huc_level} as HUC{huc_level}", "name"],
            geometry=geometry,
            geometry_encoding=GeometryEncoding.JSON,
            in_sr=geometry.spatial_reference,
            out_sr=geometry.spatial_reference,
            geometry_precision=WATERSHED_GEOMETRY_PRECISION,
            return_geometry=False,
            token=token,
        )
        return await self.client.query(layer_url, options, ResultShape.ATTRIBUTES_ONLY)

    @log_async_function_call(log_result=False)
    async def get_geographic_identifiers(
        self,
        geometry: PointQuery,
        token: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Get the identifiers (GEOID, name, state and county codes) of the
        county containing a point.
        """
        if geometry is None:
            raise CallerInputError("A point geometry is required", field="geometry")

        options = QueryOptions(
            out_fields=list(self.settings.county_fields) or ["*"],
            geometry=geometry,
            in_sr=geometry.spatial_reference,
            return_geometry=False,
            token=token,
        )
        return await self.client.query(
            self._service_url("county_service_url"), options, ResultShape.ATTRIBUTES_ONLY
        )

    @log_async_function_call(log_result=False)
    async def get_related_records(
        self,
        service_url: str,
        object_ids: Sequence[int],
        relationship_id: int,
        out_fields: Optional[Sequence[str]] = None,
        token: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Get records related to features through a layer relationship.

        Args:
            service_url: Layer holding the source features
            object_ids: Object IDs of the source features
            relationship_id: Relationship to traverse
            out_fields: Fields of the related records, defaults to all
            token: Service token

        Returns:
            Attribute mappings of the first related record group
        """
        if not object_ids:
            raise CallerInputError("At least one object ID is required", field="object_ids")

        options = QueryOptions(
            out_fields=list(out_fields) if out_fields else ["*"],
            object_ids=list(object_ids),
            relationship_id=relationship_id,
            token=token,
        )
        return await self.client.query(service_url, options, ResultShape.RELATED)
