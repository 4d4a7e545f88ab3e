"""
countyquery - county data access over ArcGIS feature services.

This package builds feature query URLs for population, housing, drought,
watershed and geographic-identifier lookups, executes them asynchronously,
and normalizes the responses into uniform record shapes.
"""

__version__ = "0.1.0"
