"""Utility functions for npmdash."""

import re
from datetime import date
from typing import Any

# -----------------------------------------------------------------------------
# Package Validation Constants
# -----------------------------------------------------------------------------

# npm package name pattern
# - Optional @scope/ prefix
# - Lowercase, URL-safe characters only
# - Must not start with a period or underscore
_PACKAGE_NAME_PATTERN = re.compile(
    r"^(?:@[a-z0-9-~][a-z0-9-._~]*/)?[a-z0-9-~][a-z0-9-._~]*$"
)
_MAX_PACKAGE_NAME_LENGTH = 214

# -----------------------------------------------------------------------------
# Sparkline Constants
# -----------------------------------------------------------------------------

# Default width for sparkline charts (number of characters)
SPARKLINE_WIDTH = 7

# Characters used to represent values in sparklines (low to high)
SPARKLINE_CHARS = " _.,:-=+*#"

# Shown in place of a count the API did not return
MISSING_COUNT = "n/a"


def format_date(value: Any) -> str | None:
    """Format a date as YYYY-M-D, without zero-padding month or day.

    The unpadded form is what ends up in the query string sent to the
    downloads API, e.g. ``date(2024, 3, 5)`` -> ``"2024-3-5"``.

    Returns None if value is not a date.
    """
    if not isinstance(value, date):
        return None
    return f"{value.year}-{value.month}-{value.day}"


def format_count(value: int | None) -> str:
    """Format a download count with thousands separators, or MISSING_COUNT if absent."""
    if value is None:
        return MISSING_COUNT
    return f"{value:,}"


def build_package_list(packages: str | list[str]) -> str:
    """Build the package segment of a downloads query.

    A single string is used as-is; a list is comma-joined into a bulk query.
    """
    if isinstance(packages, str):
        return packages
    return ",".join(packages)


def validate_package_name(name: str) -> tuple[bool, str]:
    """Validate that a package name follows npm naming conventions.

    Args:
        name: Package name to validate, optionally scoped (@owner/name).

    Returns:
        Tuple of (is_valid, error_message). If valid, error_message is empty.
    """
    if not name:
        return False, "Package name cannot be empty"

    if len(name) > _MAX_PACKAGE_NAME_LENGTH:
        return False, f"Package name exceeds {_MAX_PACKAGE_NAME_LENGTH} characters"

    if not _PACKAGE_NAME_PATTERN.match(name):
        return False, (
            "Package name must be lowercase, URL-safe, optionally scoped "
            "as @owner/name, and must not start with a period or underscore"
        )

    return True, ""


def make_sparkline(values: list[int], width: int = SPARKLINE_WIDTH) -> str:
    """Generate an ASCII sparkline from a list of values.

    Args:
        values: List of integer values to visualize.
        width: Number of characters in the sparkline (default: SPARKLINE_WIDTH).

    Returns:
        ASCII string representing the trend of values.
    """
    if not values:
        return " " * width

    # Use last 'width' values
    values = values[-width:]

    # Pad with zeros if not enough values
    if len(values) < width:
        values = [0] * (width - len(values)) + values

    min_val = min(values)
    max_val = max(values)

    if max_val == min_val:
        # All values equal - use middle character
        mid_idx = len(SPARKLINE_CHARS) // 2
        return SPARKLINE_CHARS[mid_idx] * width

    sparkline = ""
    for v in values:
        idx = int((v - min_val) / (max_val - min_val) * (len(SPARKLINE_CHARS) - 1))
        sparkline += SPARKLINE_CHARS[idx]

    return sparkline
