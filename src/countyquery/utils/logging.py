"""
Logging helpers: sensitive data redaction and async call/timing decorators.

Feature service tokens travel in the query string, so anything that logs a
URL or a call signature goes through redact_sensitive or redact_url first.
"""

import functools
import inspect
import logging
import re
import time
from typing import Any, Callable, Dict, List, Optional, Pattern, Set, Tuple
from urllib.parse import urlsplit, urlunsplit

logger = logging.getLogger(__name__)

REDACTED = "***REDACTED***"

# Patterns for sensitive data that should be redacted
SENSITIVE_PATTERNS: List[Pattern[str]] = [
    re.compile(r"password[\"']?\s*[:=]\s*[\"']?([^\"'\s,}&]+)", re.IGNORECASE),
    re.compile(r"api[_-]?key[\"']?\s*[:=]\s*[\"']?([^\"'\s,}&]+)", re.IGNORECASE),
    re.compile(r"secret[\"']?\s*[:=]\s*[\"']?([^\"'\s,}&]+)", re.IGNORECASE),
    re.compile(r"token[\"']?\s*[:=]\s*[\"']?([^\"'\s,}&]+)", re.IGNORECASE),
    re.compile(r"auth[\"']?\s*[:=]\s*[\"']?([^\"'\s,}&]+)", re.IGNORECASE),
]

# Fields that should always be redacted
SENSITIVE_FIELDS: Set[str] = {
    "password",
    "api_key",
    "secret",
    "token",
    "access_token",
    "refresh_token",
    "auth",
    "authorization",
}


def redact_sensitive(data: Any, redaction_text: str = REDACTED) -> Any:
    """
    Redact sensitive information from data structures.

    Recursively traverses dictionaries, lists and tuples. Strings are
    scrubbed with SENSITIVE_PATTERNS.

    Args:
        data: Data to redact
        redaction_text: Text to replace sensitive data with

    Returns:
        Data with sensitive information redacted

    Example:
        >>> redact_sensitive({"token": "abc123", "where": "1=1"})
        {"token": "***REDACTED***", "where": "1=1"}
    """
    if isinstance(data, dict):
        return {
            key: (
                redaction_text
                if isinstance(key, str) and key.lower() in SENSITIVE_FIELDS
                else redact_sensitive(value, redaction_text)
            )
            for key, value in data.items()
        }
    elif isinstance(data, list):
        return [redact_sensitive(item, redaction_text) for item in data]
    elif isinstance(data, tuple):
        return tuple(redact_sensitive(item, redaction_text) for item in data)
    elif isinstance(data, str):
        redacted = data
        for pattern in SENSITIVE_PATTERNS:
            redacted = pattern.sub(redaction_text, redacted)
        return redacted
    else:
        return data


def redact_url(url: str, redaction_text: str = REDACTED) -> str:
    """
    Replace the value of sensitive query parameters in a URL.

    Parameters other than the sensitive ones keep their original encoding.

    Args:
        url: URL that may carry a token
        redaction_text: Replacement value

    Returns:
        The URL with sensitive parameter values replaced
    """
    parts = urlsplit(url)
    if not parts.query:
        return url

    segments = []
    for segment in parts.query.split("&"):
        name = segment.split("=", 1)[0]
        if name.lower() in SENSITIVE_FIELDS:
            segments.append(f"{name}={redaction_text}")
        else:
            segments.append(segment)

    return urlunsplit(parts._replace(query="&".join(segments)))


def _format_arguments(
    func: Callable[..., Any],
    args: Tuple[Any, ...],
    kwargs: Dict[str, Any],
    redact: bool,
) -> str:
    """
    Render call arguments as name=value pairs.

    Arguments are bound to parameter names first, so a sensitive parameter
    is redacted whether it was passed by keyword or by position.
    """
    try:
        arguments = inspect.signature(func).bind(*args, **kwargs).arguments
    except (TypeError, ValueError):
        rendered = ", ".join([repr(arg) for arg in args] + [f"{k}={v!r}" for k, v in kwargs.items()])
        return redact_sensitive(rendered) if redact else rendered

    pairs = []
    for name, value in arguments.items():
        if redact and name.lower() in SENSITIVE_FIELDS:
            pairs.append(f"{name}={REDACTED}")
        else:
            pairs.append(f"{name}={value!r}")

    rendered = ", ".join(pairs)
    return redact_sensitive(rendered) if redact else rendered


def log_async_function_call(
    log_args: bool = True,
    log_result: bool = True,
    log_level: int = logging.DEBUG,
    redact: bool = True,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorator to log async function calls with arguments and results.

    Args:
        log_args: Whether to log function arguments
        log_result: Whether to log function result
        log_level: Logging level to use
        redact: Whether to redact sensitive information

    Returns:
        Decorated async function with logging
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            func_name = f"{func.__module__}.{func.__qualname__}"

            if log_args:
                all_args = _format_arguments(func, args, kwargs, redact)
                logger.log(log_level, f"Calling {func_name}({all_args})")
            else:
                logger.log(log_level, f"Calling {func_name}()")

            result = await func(*args, **kwargs)

            if log_result:
                result_repr = repr(result)
                if redact:
                    result_repr = redact_sensitive(result_repr)

                logger.log(log_level, f"{func_name} returned: {result_repr}")
            else:
                logger.log(log_level, f"{func_name} completed")

            return result

        return wrapper

    return decorator


def log_async_performance(
    log_level: int = logging.INFO,
    threshold_ms: Optional[float] = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorator to log async function execution time.

    Failed calls are timed too; the exception still propagates.

    Args:
        log_level: Logging level to use
        threshold_ms: Only log if execution time exceeds this threshold (milliseconds)

    Returns:
        Decorated async function with performance logging
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            func_name = f"{func.__module__}.{func.__qualname__}"
            start_time = time.perf_counter()

            try:
                return await func(*args, **kwargs)
            finally:
                duration_ms = (time.perf_counter() - start_time) * 1000

                if threshold_ms is None or duration_ms >= threshold_ms:
                    logger.log(
                        log_level,
                        f"{func_name} executed in {duration_ms:.2f}ms",
                        extra={"duration_ms": duration_ms, "function": func_name},
                    )

        return wrapper

    return decorator
