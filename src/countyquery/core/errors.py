"""
Custom exception hierarchy for countyquery.

Every failure of a feature query surfaces as one of these exceptions,
raised to the immediate caller. Nothing is retried or recovered internally.
"""

from typing import Any, Dict, List, Optional


class CountyQueryException(Exception):
    """
    Base exception for all countyquery errors.

    Attributes:
        error_code: String identifier for the error type
        message: User-friendly error message
        details: Technical details for logging/debugging
        status_code: HTTP-style status code describing the failure
        suggestions: Optional list of resolution suggestions
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize CountyQueryException.

        Args:
            message: User-friendly error message
            error_code: String identifier for the error type
            status_code: HTTP-style status code (default: 500)
            details: Technical details for logging
            suggestions: List of suggestions for resolution
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        self.suggestions = suggestions or []

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to a dictionary.

        Returns:
            Dictionary representation of the error
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "suggestions": self.suggestions,
        }

    def __str__(self) -> str:
        """String representation of the exception."""
        return f"{self.error_code}: {self.message}"

    def __repr__(self) -> str:
        """Detailed string representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"error_code='{self.error_code}', "
            f"message='{self.message}', "
            f"status_code={self.status_code})"
        )


class CallerInputError(CountyQueryException):
    """
    Raised when a query is requested with invalid caller input.

    The main case is the county FIPS code and the point geometry: exactly
    one of them must be supplied. Raised before any network call.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize CallerInputError.

        Args:
            message: User-friendly error message
            field: Name of the offending argument
            details: Technical details about the input
            suggestions: List of suggestions for fixing the input
        """
        error_details = details or {}
        if field:
            error_details["field"] = field

        super().__init__(
            message=message,
            error_code="CALLER_INPUT_ERROR",
            status_code=400,
            details=error_details,
            suggestions=suggestions or ["Check the query arguments and try again"],
        )


class TransportError(CountyQueryException):
    """
    Raised when the HTTP request itself fails.

    Covers DNS and connection failures, transport-level timeouts and error
    HTTP statuses whose body carries no service error. The underlying httpx
    exception is kept on ``original``.
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        original: Optional[BaseException] = None,
        status_code: int = 502,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        error_details = details or {}
        if url:
            error_details["url"] = url
        if original is not None:
            error_details["transport_error"] = type(original).__name__

        default_suggestions = [
            "Check network connectivity to the feature service",
            "Verify the service URL is correct",
        ]

        super().__init__(
            message=message,
            error_code="TRANSPORT_ERROR",
            status_code=status_code,
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )
        self.original = original


class ServiceError(CountyQueryException):
    """
    Raised when the feature service answers with an ``error`` object.

    The service's error value is kept verbatim on ``error``. Its ``code``,
    when numeric, becomes the status code.
    """

    def __init__(
        self,
        error: Any,
        url: Optional[str] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize ServiceError.

        Args:
            error: The ``error`` value from the response body
            url: Query URL that produced the error
            suggestions: List of suggestions for resolution
        """
        status_code = 502
        message = "Feature service returned an error"
        if isinstance(error, dict):
            if isinstance(error.get("code"), int):
                status_code = error["code"]
            if error.get("message"):
                message = str(error["message"])
        elif isinstance(error, str) and error:
            message = error

        error_details: Dict[str, Any] = {"service_error": error}
        if url:
            error_details["url"] = url

        super().__init__(
            message=message,
            error_code="SERVICE_ERROR",
            status_code=status_code,
            details=error_details,
            suggestions=suggestions or ["Check the query parameters against the service layer"],
        )
        self.error = error


class MalformedResponseError(CountyQueryException):
    """
    Raised when the response body cannot be decoded or normalized.
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        original: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if url:
            error_details["url"] = url
        if original is not None:
            error_details["decode_error"] = str(original)

        super().__init__(
            message=message,
            error_code="MALFORMED_RESPONSE",
            status_code=502,
            details=error_details,
            suggestions=["Verify the URL points at a feature service query endpoint"],
        )
        self.original = original


class ConfigurationError(CountyQueryException):
    """
    Raised when the service registry or client settings are invalid.
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize ConfigurationError.

        Args:
            message: User-friendly error message
            config_key: Configuration key that is invalid
            details: Technical details about the configuration error
            suggestions: List of suggestions for resolution
        """
        error_details = details or {}
        if config_key:
            error_details["config_key"] = config_key

        default_suggestions = [
            "Check COUNTYQUERY_ environment variables are set correctly",
            "Verify the .env file syntax",
        ]

        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            status_code=500,
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )
