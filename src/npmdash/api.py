"""npm registry and downloads API client functions."""

import logging
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import contextmanager
from datetime import date
from json import JSONDecodeError
from typing import Any

import httpx

from .types import AggregatedStats, PackageSummary, PeriodResult, SearchResponse
from .utils import build_package_list, format_date

logger = logging.getLogger("npmdash")

DEFAULT_REGISTRY_URL = "https://registry.npmjs.org"
DEFAULT_API_URL = "https://api.npmjs.org"

# First day of the "total" and "range" periods
DEFAULT_START_DATE = "2022-01-01"

# Default number of parallel workers for API calls
DEFAULT_MAX_WORKERS = 5

# Seconds
DEFAULT_TIMEOUT = 30.0

POINT_PERIODS = ("last-day", "last-week", "last-month")
PERIODS = (*POINT_PERIODS, "total", "range")

# Exceptions that indicate API/network errors (not programming bugs)
_API_ERRORS = (
    httpx.HTTPError,  # Network errors and non-2xx responses
    JSONDecodeError,  # Malformed JSON response
    ValueError,  # Invalid data format or API error payload
    KeyError,  # Missing expected keys
    TypeError,  # Unexpected data types
)


@contextmanager
def client_scope(client: httpx.Client | None) -> Iterator[httpx.Client]:
    """Yield the given client, or a temporary one closed on exit."""
    if client is not None:
        yield client
        return
    with httpx.Client(timeout=DEFAULT_TIMEOUT) as owned:
        yield owned


def _get_json(
    client: httpx.Client, url: str, params: dict[str, str] | None = None
) -> Any:
    response = client.get(url, params=params)
    response.raise_for_status()
    return response.json()


def _split_packages(packages: str | list[str]) -> list[str]:
    names = packages.split(",") if isinstance(packages, str) else packages
    return [name for name in names if name]


def fetch_published_packages(
    author: str,
    client: httpx.Client | None = None,
    registry_url: str = DEFAULT_REGISTRY_URL,
) -> list[str] | None:
    """Fetch the names of the packages published by an author.

    Only the first page of search results is read, so authors with more
    packages than the registry's default page size are under-reported.

    Returns None if the registry is unreachable or the response is malformed.
    """
    url = f"{registry_url}/-/v1/search"
    try:
        with client_scope(client) as http:
            data: SearchResponse = _get_json(
                http, url, params={"text": f"author:{author}"}
            )
        packages = [obj["package"]["name"] for obj in data["objects"]]
    except _API_ERRORS as e:
        logger.warning("Error fetching packages for %s: %s", author, e)
        return None

    logger.debug("Found %d packages for %s", len(packages), author)
    return packages


def build_period_url(
    period: str,
    package_list: str,
    start: str,
    end: str,
    api_url: str = DEFAULT_API_URL,
) -> str:
    """Build the downloads endpoint URL for a period.

    Named periods use the point endpoint directly; "total" and "range"
    query the point and range endpoints over the explicit start:end span.
    """
    full_period = f"{start}:{end}"
    if period in POINT_PERIODS:
        return f"{api_url}/downloads/point/{period}/{package_list}"
    if period == "total":
        return f"{api_url}/downloads/point/{full_period}/{package_list}"
    if period == "range":
        return f"{api_url}/downloads/range/{full_period}/{package_list}"
    raise ValueError(f"Unknown period: {period}")


def _normalize_response(data: Any, packages: list[str]) -> PeriodResult:
    """Key a downloads response by package name.

    Single-package queries return the bare response object, bulk queries a
    mapping of package name to response (or null for unknown packages).
    """
    if not isinstance(data, dict):
        raise TypeError(f"Expected a JSON object, got {type(data).__name__}")
    if "error" in data:
        raise ValueError(data["error"])

    if len(packages) == 1 and "downloads" in data:
        return {packages[0]: data}

    result: PeriodResult = {}
    for name, entry in data.items():
        if entry is None:
            logger.warning("No download data for %s", name)
            continue
        result[name] = entry
    return result


def fetch_period(
    client: httpx.Client, period: str, url: str, packages: list[str]
) -> PeriodResult | None:
    """Fetch one period's downloads for the given packages.

    Returns None if the request fails or the API reports an error.
    """
    try:
        return _normalize_response(_get_json(client, url), packages)
    except _API_ERRORS as e:
        logger.warning("Error fetching %s downloads: %s", period, e)
        return None


def fetch_npm_stats(
    packages: str | list[str],
    client: httpx.Client | None = None,
    start: str = DEFAULT_START_DATE,
    today: date | None = None,
    api_url: str = DEFAULT_API_URL,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> AggregatedStats:
    """Fetch download statistics for every period in parallel.

    Args:
        packages: A package name, a comma-separated bulk list, or a list of names.
        client: HTTP client to use. A temporary one is created if omitted.
        start: First day of the "total" and "range" periods.
        today: End day of the "total" and "range" periods (default: today).
        api_url: Base URL of the downloads API.
        max_workers: Maximum number of parallel API requests.

    Returns:
        Dict mapping period name to a dict of package name to API response.
        Periods whose request failed are absent.
    """
    names = _split_packages(packages)
    if not names:
        logger.info("No packages to fetch.")
        return {}

    package_list = build_package_list(names)
    end = format_date(today or date.today())
    urls = {
        period: build_period_url(period, package_list, start, end, api_url)
        for period in PERIODS
    }

    results: AggregatedStats = {}

    with client_scope(client) as http:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(fetch_period, http, period, url, names): period
                for period, url in urls.items()
            }

            for future in as_completed(futures):
                period = futures[future]
                data = future.result()
                if data is not None:
                    results[period] = data

    # Keep period order stable regardless of completion order
    return {period: results[period] for period in PERIODS if period in results}


# -----------------------------------------------------------------------------
# Accessors
# -----------------------------------------------------------------------------


def get_point_downloads(
    stats: AggregatedStats, period: str, package: str
) -> int | None:
    """Return a package's download count for a point period, if present."""
    entry = stats.get(period, {}).get(package)
    if not isinstance(entry, dict):
        return None
    downloads = entry.get("downloads")
    if not isinstance(downloads, int):
        return None
    return downloads


def get_range_series(
    stats: AggregatedStats, package: str
) -> tuple[list[str], list[int]] | None:
    """Return a package's (days, downloads) range series, if present.

    Returns None if the series is missing or any day lacks a day or count.
    """
    entry = stats.get("range", {}).get(package)
    if not isinstance(entry, dict):
        return None
    series = entry.get("downloads")
    if not isinstance(series, list):
        return None
    days = []
    downloads = []
    for item in series:
        if not isinstance(item, dict) or "day" not in item or "downloads" not in item:
            logger.warning("Malformed range series for %s: %r", package, item)
            return None
        days.append(item["day"])
        downloads.append(item["downloads"])
    return days, downloads


def summarize(stats: AggregatedStats, packages: list[str]) -> list[PackageSummary]:
    """Flatten point periods into one summary row per package."""
    return [
        {
            "package": pkg,
            "last_day": get_point_downloads(stats, "last-day", pkg),
            "last_week": get_point_downloads(stats, "last-week", pkg),
            "last_month": get_point_downloads(stats, "last-month", pkg),
            "total": get_point_downloads(stats, "total", pkg),
        }
        for pkg in packages
    ]
