"""
ArcGIS REST feature service integration.

This module builds feature query URLs, executes them over httpx, and
normalizes the JSON envelopes into flat record lists.
"""

from .client import ArcGISClientConfig, FeatureQueryClient
from .parser import ArcGISResponseParser
from .url_builder import build_query_url

__all__ = [
    "ArcGISClientConfig",
    "ArcGISResponseParser",
    "FeatureQueryClient",
    "build_query_url",
]
