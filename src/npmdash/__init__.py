"""
npmdash - Dashboard of npm download statistics.

Resolves the packages published by an npm author, fetches their download
counts for several periods from the npm downloads API, and renders an
HTML dashboard with Plotly charts.
"""

from .api import (
    PERIODS,
    fetch_npm_stats,
    fetch_published_packages,
    get_point_downloads,
    get_range_series,
    summarize,
)
from .cli import main
from .reports import Dashboard, build_dashboard, render_charts, render_view
from .utils import format_date

__version__ = "0.1.0"

__all__ = [
    "PERIODS",
    "Dashboard",
    "build_dashboard",
    "fetch_npm_stats",
    "fetch_published_packages",
    "format_date",
    "get_point_downloads",
    "get_range_series",
    "main",
    "render_charts",
    "render_view",
    "summarize",
]
