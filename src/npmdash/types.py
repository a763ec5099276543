"""Type definitions for npmdash using TypedDict for known structures."""

from typing import NotRequired, TypedDict


class PointDownloads(TypedDict):
    """Response of the downloads point endpoint for one package."""

    downloads: int
    start: str
    end: str
    package: NotRequired[str]


class DayDownloads(TypedDict):
    """One day of a range series."""

    day: str
    downloads: int


class RangeDownloads(TypedDict):
    """Response of the downloads range endpoint for one package."""

    downloads: list[DayDownloads]
    start: str
    end: str
    package: NotRequired[str]


class SearchPackage(TypedDict, total=False):
    """Package metadata embedded in a registry search result."""

    name: str
    version: str
    description: str


class SearchObject(TypedDict):
    """One entry of the registry search result set."""

    package: SearchPackage


class SearchResponse(TypedDict, total=False):
    """Registry search endpoint response."""

    objects: list[SearchObject]
    total: int
    time: str


class PackageSummary(TypedDict):
    """Point counts for one package, flattened for tables and exports."""

    package: str
    last_day: int | None
    last_week: int | None
    last_month: int | None
    total: int | None


# period name -> package name -> endpoint response
PeriodResult = dict[str, PointDownloads | RangeDownloads]
AggregatedStats = dict[str, PeriodResult]
