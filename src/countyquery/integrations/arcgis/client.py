"""
ArcGIS feature query client.

Executes a built query URL with a single GET and normalizes the response.
Implements:
- Injected or owned httpx.AsyncClient transport
- Distinct transport, service, and malformed-body errors
- Token redaction in logs

There is no caching and no retry: every call is one request, settled by
exactly one return value or one raised exception.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field

from countyquery.core.config import settings
from countyquery.core.errors import MalformedResponseError, ServiceError, TransportError
from countyquery.integrations.arcgis.parser import ArcGISResponseParser, NormalizedRecord
from countyquery.integrations.arcgis.url_builder import build_query_url
from countyquery.models.query import QueryOptions, ResultShape
from countyquery.utils.logging import log_async_performance, redact_url
from countyquery.utils.version import user_agent

logger = logging.getLogger(__name__)


class ArcGISClientConfig(BaseModel):
    """Configuration for the feature query client."""

    timeout: Optional[float] = Field(
        default_factory=lambda: settings.timeout_seconds,
        description="Transport timeout in seconds, None to wait indefinitely",
        gt=0,
    )
    follow_redirects: bool = Field(
        default_factory=lambda: settings.follow_redirects,
        description="Follow HTTP redirects",
    )
    headers: Dict[str, str] = Field(
        default_factory=dict,
        description="Extra headers sent with every request, overriding the default User-Agent",
    )


class FeatureQueryClient:
    """
    Client for ArcGIS REST feature queries.

    Safe to share between concurrent tasks: it holds no per-request state.
    A caller-supplied httpx.AsyncClient is used as-is and left open on
    close(); otherwise the client creates and owns one.
    """

    def __init__(
        self,
        config: Optional[ArcGISClientConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize the feature query client.

        Args:
            config: Client configuration
            http_client: Transport to use instead of a client-owned one
        """
        self.config = config or ArcGISClientConfig()
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.timeout),
            follow_redirects=self.config.follow_redirects,
            headers={"User-Agent": user_agent(), **self.config.headers},
        )
        self.parser = ArcGISResponseParser()

        logger.debug(
            f"Feature query client initialized (timeout: {self.config.timeout}, "
            f"owned transport: {self._owns_client})"
        )

    async def __aenter__(self) -> "FeatureQueryClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()

    @log_async_performance(log_level=logging.DEBUG)
    async def execute_query(
        self,
        url: str,
        result_shape: ResultShape = ResultShape.FULL,
    ) -> List[NormalizedRecord]:
        """
        Execute a built query URL.

        Args:
            url: URL produced by build_query_url
            result_shape: Record shape to normalize the response into

        Returns:
            Normalized records in service response order

        Raises:
            TransportError: If the request fails or the HTTP status is an
                error without a service error body
            ServiceError: If the body carries a truthy ``error``
            MalformedResponseError: If the body is not a decodable envelope
        """
        result_shape = ResultShape(result_shape)
        safe_url = redact_url(url)
        logger.debug(f"Executing {result_shape.value} query: {safe_url}")

        # InvalidURL and CookieConflict do not subclass HTTPError
        try:
            response = await self.client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL, httpx.CookieConflict) as e:
            logger.warning(f"Request to {safe_url} failed: {e!r}")
            raise TransportError(
                f"Feature service request failed: {e}", url=safe_url, original=e
            ) from e

        try:
            data = response.json()
        except ValueError as e:
            if response.is_error:
                raise self._status_error(response, safe_url) from e
            logger.error(f"Undecodable response body from {safe_url}: {e}")
            raise MalformedResponseError(
                "Feature service response is not valid JSON", url=safe_url, original=e
            ) from e

        # A service error wins over whatever the HTTP status says
        if isinstance(data, dict) and data.get("error"):
            logger.error(f"Feature service error for {safe_url}: {data['error']}")
            raise ServiceError(data["error"], url=safe_url)

        if response.is_error:
            raise self._status_error(response, safe_url)

        records = self.parser.parse(data, result_shape)
        logger.info(f"Feature query returned {len(records)} records")
        return records

    async def query(
        self,
        service_url: str,
        options: QueryOptions,
        result_shape: ResultShape = ResultShape.FULL,
    ) -> List[NormalizedRecord]:
        """
        Build and execute a query against a service layer.

        RELATED targets ``/queryRelatedRecords``; every other shape
        targets ``/query``.

        Args:
            service_url: Base URL of the layer
            options: Query options
            result_shape: Record shape to normalize the response into

        Returns:
            Normalized records in service response order
        """
        result_shape = ResultShape(result_shape)
        url = build_query_url(
            service_url,
            options,
            related_records=result_shape is ResultShape.RELATED,
        )
        return await self.execute_query(url, result_shape)

    def _status_error(self, response: httpx.Response, safe_url: str) -> TransportError:
        """Wrap an error HTTP status into a TransportError."""
        message = f"Feature service responded with HTTP {response.status_code}"
        logger.warning(f"{message} for {safe_url}")
        status_error = httpx.HTTPStatusError(
            message,
            request=response.request,
            response=response,
        )
        return TransportError(
            message,
            url=safe_url,
            original=status_error,
            status_code=response.status_code,
        )
