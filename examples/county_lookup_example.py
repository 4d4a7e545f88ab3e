#!/usr/bin/env python3
"""
Example: County Data Lookup

This script demonstrates how to use the county data service to:
1. Identify the county containing a point
2. Query population and housing figures by FIPS code
3. Query land and water area
4. Find the watershed containing the point

Run:
    python examples/county_lookup_example.py
"""

import asyncio
import sys
from pathlib import Path

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from countyquery.core.errors import CountyQueryException
from countyquery.core.logging_config import setup_logging
from countyquery.integrations.arcgis import ArcGISClientConfig, FeatureQueryClient
from countyquery.models.query import PointQuery
from countyquery.services.county_data import CountyDataService


async def county_lookup_example():
    """Example: Look up county data for a location."""
    print("=" * 60)
    print("County Data Lookup Example")
    print("=" * 60)

    # Example location: downtown St. Louis, MO
    point = PointQuery(x=-90.199, y=38.627, spatial_reference=4326)

    print("\nLocation:")
    print(f"  Longitude: {point.x}")
    print(f"  Latitude: {point.y}")

    config = ArcGISClientConfig(timeout=15.0)

    async with FeatureQueryClient(config) as client:
        service = CountyDataService(client)

        print("\n[1] Identifying county...")
        identifiers = await service.get_geographic_identifiers(point)
        if not identifiers:
            print("No county found at this location")
            return

        county = identifiers[0]
        county_fips = county["GEOID"]
        print(f"  {county['NAME']} (GEOID {county_fips})")

        print("\n[2] Querying population and housing...")
        population, housing = await asyncio.gather(
            service.get_population_data(county_fips=county_fips),
            service.get_housing_data(county_fips=county_fips),
        )
        for record in population:
            print(f"  Total population: {record.attributes.get('B01001_001E')}")
        for record in housing:
            print(f"  Housing units: {record.attributes.get('B25001_001E')}")
            print(f"  Occupied: {record.attributes.get('B25002_002E')}")
            print(f"  Vacant: {record.attributes.get('B25002_003E')}")

        print("\n[3] Querying land and water area...")
        for area in await service.get_water_and_land_area(county_fips=county_fips):
            print(f"  Land: {area['ALAND'] / 1_000_000:.1f} km²")
            print(f"  Water: {area['AWATER'] / 1_000_000:.1f} km²")

        print("\n[4] Finding watershed (HUC8)...")
        for watershed in await service.get_watershed(point, huc_level=8):
            print(f"  {watershed.get('name')} (HUC8 {watershed.get('HUC8')})")


async def main():
    """Run the example."""
    setup_logging(log_level="WARNING")

    try:
        await county_lookup_example()
    except CountyQueryException as e:
        print(f"\nLookup failed: {e}")
        for suggestion in e.suggestions:
            print(f"  - {suggestion}")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
