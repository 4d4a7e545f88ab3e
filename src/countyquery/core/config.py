"""
Configuration settings for the countyquery package.

Holds the service registry (feature service base URLs and field lists)
consulted by the domain services, plus transport and logging defaults.
"""

from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Package settings with environment variable support.

    Attributes:
        environment: Deployment environment, drives console log formatting
        log_level: Default log level for setup_logging
        request_timeout: Transport timeout in seconds (0 disables it)
        fips_code_field_name: Field holding the county FIPS code
        population_service_url: Feature layer for population figures
        housing_service_url: Feature layer for housing figures
        drought_service_url: Feature layer for drought intensity
        watershed_service_url: Map service root for watershed boundaries
        county_service_url: Feature layer for county identifiers
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="COUNTYQUERY_",
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"

    # Transport settings
    request_timeout: float = 30.0
    follow_redirects: bool = True

    # Service registry
    fips_code_field_name: str = "GEOID"
    population_service_url: str = (
        "https://services.arcgis.com/P3ePLMYs2RVChkJx/arcgis/rest/services/"
        "ACS_Total_Population_Boundaries/FeatureServer/1"
    )
    housing_service_url: str = (
        "https://services.arcgis.com/P3ePLMYs2RVChkJx/arcgis/rest/services/"
        "ACS_Total_Population_Boundaries/FeatureServer/1"
    )
    drought_service_url: str = (
        "https://services9.arcgis.com/RHVPKKiFTONKtxq3/arcgis/rest/services/"
        "US_Drought_Intensity_v1/FeatureServer/3"
    )
    watershed_service_url: str = "https://hydro.nationalmap.gov/arcgis/rest/services/wbd/MapServer"
    county_service_url: str = (
        "https://tigerweb.geo.census.gov/arcgis/rest/services/TIGERweb/State_County/MapServer/1"
    )

    # Field lists
    population_fields: List[str] = ["GEOID", "NAME", "B01001_001E"]
    housing_fields: List[str] = ["GEOID", "NAME", "B25001_001E", "B25002_002E", "B25002_003E"]
    water_and_area_fields: List[str] = ["ALAND", "AWATER"]
    drought_fields: List[str] = ["*"]
    county_fields: List[str] = ["GEOID", "NAME", "STATE", "COUNTY"]

    @property
    def timeout_seconds(self) -> Optional[float]:
        """Get the transport timeout, None when disabled."""
        return self.request_timeout if self.request_timeout > 0 else None


# Global settings instance
settings = Settings()
