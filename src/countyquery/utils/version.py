"""
Version helpers.
"""

from countyquery import __version__

PROJECT_NAME = "countyquery"


def get_version() -> str:
    """Get the installed countyquery version."""
    return __version__


def user_agent() -> str:
    """
    Build the User-Agent sent to feature services.

    Returns:
        str: Product token, e.g. ``countyquery/0.1.0``
    """
    return f"{PROJECT_NAME}/{get_version()}"
