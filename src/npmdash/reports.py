"""HTML dashboard generation with Plotly charts."""

import json
import logging
from datetime import datetime
from typing import Any

import plotly.graph_objects as go
from plotly.offline import get_plotlyjs, get_plotlyjs_version

from .api import POINT_PERIODS, get_point_downloads, get_range_series
from .types import AggregatedStats
from .utils import MISSING_COUNT

logger = logging.getLogger("npmdash")

# -----------------------------------------------------------------------------
# Theme and Chart Constants
# -----------------------------------------------------------------------------

# Primary theme color (used for links, accents, single-package lines)
THEME_PRIMARY_COLOR = "#05a595"

DEFAULT_TITLE = "npm Package Download Statistics"

# Mount point ids
MAIN_ELEMENT_ID = "main"
ALL_PACKAGES_ELEMENT_ID = "allpackages"

CHART_MARGIN = {"l": 50, "r": 50, "t": 50, "b": 50}

PLOTLYJS_MODES = ("cdn", "inline")


# -----------------------------------------------------------------------------
# CSS Styles
# -----------------------------------------------------------------------------


def _get_common_styles() -> str:
    """Return CSS styles for the dashboard."""
    return f"""
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            max-width: 1200px;
            margin: 0 auto;
            padding: 20px;
            background: #f5f5f5;
        }}
        h1, h2 {{
            color: #333;
        }}
        .panel, .chart-container {{
            display: flex;
            flex-wrap: wrap;
            align-items: center;
            background: white;
            border-radius: 8px;
            padding: 20px;
            margin: 20px 0;
            box-shadow: 0 2px 4px rgba(0,0,0,0.1);
        }}
        .plot {{
            flex: 1 1 600px;
            min-height: 350px;
        }}
        .packdetails {{
            flex: 0 0 220px;
        }}
        .packdetails td {{
            padding: 8px 12px;
            border-bottom: 1px solid #eee;
        }}
        .packdetails b {{
            color: {THEME_PRIMARY_COLOR};
            font-family: monospace;
        }}
        .generated {{
            color: #666;
            font-size: 0.9em;
            margin-top: 20px;
        }}
    """


# -----------------------------------------------------------------------------
# HTML Template
# -----------------------------------------------------------------------------


def _render_html_document(
    title: str,
    body_content: str,
    styles: str | None = None,
    head_extra: str = "",
) -> str:
    """Render a complete HTML document.

    Args:
        title: Page title.
        body_content: HTML content for the body.
        styles: Optional CSS styles. Defaults to common styles.
        head_extra: Extra markup for the head (e.g. script tags).

    Returns:
        Complete HTML document as string.
    """
    if styles is None:
        styles = _get_common_styles()

    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <style>{styles}</style>
    {head_extra}
</head>
<body>
{body_content}
    <p class="generated">Generated on {timestamp}</p>
</body>
</html>
"""


def _plotlyjs_tag(include_plotlyjs: str) -> str:
    if include_plotlyjs == "cdn":
        version = get_plotlyjs_version()
        return (
            f'<script src="https://cdn.plot.ly/plotly-{version}.min.js" '
            f'charset="utf-8"></script>'
        )
    if include_plotlyjs == "inline":
        return f'<script type="text/javascript">{get_plotlyjs()}</script>'
    raise ValueError(
        f"include_plotlyjs must be one of {', '.join(PLOTLYJS_MODES)}, "
        f"got {include_plotlyjs!r}"
    )


# -----------------------------------------------------------------------------
# Rendering Target
# -----------------------------------------------------------------------------


class Dashboard:
    """Page being rendered: HTML mount points plus the figures drawn into them.

    Stands in for the browser document. Renderers write into it through
    set_inner_html() and new_plot(); to_html() turns it into a standalone
    page whose script draws each figure into its element with plotly.js.
    """

    def __init__(self) -> None:
        self.elements: dict[str, str] = {}
        self.figures: dict[str, go.Figure] = {}
        self.configs: dict[str, dict[str, Any]] = {}

    def set_inner_html(self, element_id: str, html: str) -> None:
        self.elements[element_id] = html

    def new_plot(
        self,
        element_id: str,
        data: list[go.Scatter],
        layout: dict[str, Any] | None = None,
        config: dict[str, Any] | None = None,
    ) -> go.Figure:
        """Draw a figure into an element, replacing any previous one."""
        fig = go.Figure(data=data, layout=layout)
        self.figures[element_id] = fig
        self.configs[element_id] = config or {}
        return fig

    def _plot_script(self) -> str:
        calls = []
        for element_id, fig in self.figures.items():
            calls.append(
                f"""        (function () {{
            var el = document.getElementById({json.dumps(element_id)});
            if (!el) {{
                return;
            }}
            var fig = {fig.to_json()};
            Plotly.newPlot(el, fig.data, fig.layout, {json.dumps(self.configs[element_id])});
        }})();"""
            )
        return "\n".join(calls)

    def to_html(self, title: str = DEFAULT_TITLE, include_plotlyjs: str = "cdn") -> str:
        """Render the dashboard as a complete HTML document.

        Args:
            title: Page title and heading.
            include_plotlyjs: "cdn" to load plotly.js from the CDN, "inline"
                to embed it for offline viewing.
        """
        head_extra = _plotlyjs_tag(include_plotlyjs)
        main = self.elements.get(MAIN_ELEMENT_ID, "")

        body_content = f"""    <h1>{title}</h1>

    <div id="{MAIN_ELEMENT_ID}">{main}
    </div>

    <div class="chart-container">
        <div id="{ALL_PACKAGES_ELEMENT_ID}" class="plot"></div>
    </div>

    <script type="text/javascript">
{self._plot_script()}
    </script>
"""
        return _render_html_document(title, body_content, head_extra=head_extra)


# -----------------------------------------------------------------------------
# Renderers
# -----------------------------------------------------------------------------


def _point_counts(stats: AggregatedStats, pack: str) -> dict[str, int | None]:
    return {
        period: get_point_downloads(stats, period, pack)
        for period in (*POINT_PERIODS, "total")
    }


def _format_cell(value: int | None) -> str:
    return MISSING_COUNT if value is None else str(value)


def panel_packages(stats: AggregatedStats, packages: list[str]) -> list[str]:
    """Return the packages that get a panel: those with at least one point count."""
    return [
        pack
        for pack in packages
        if any(value is not None for value in _point_counts(stats, pack).values())
    ]


def render_view(stats: AggregatedStats, packages: list[str]) -> str:
    """Render the per-package panels: chart mount point plus download counts.

    A count missing from the response is shown as MISSING_COUNT. Packages
    with no point counts at all are skipped with a warning.
    """
    main_content = ""

    for pack in packages:
        counts = _point_counts(stats, pack)
        missing = [period for period, value in counts.items() if value is None]
        if len(missing) == len(counts):
            logger.warning("Skipping %s: no download counts", pack)
            continue
        if missing:
            logger.warning("No downloads for %s: %s", pack, ", ".join(missing))
        cells = {period: _format_cell(value) for period, value in counts.items()}

        main_content += f"""
    <div class="panel">
        <div id="{pack}" class="plot"></div>
        <div class="packdetails">
            <table>
                <tbody>
                    <tr>
                        <td>Last Day</td>
                        <td><span class="lastday"><b>{cells["last-day"]}</b></span></td>
                    </tr>
                    <tr>
                        <td>Last Week</td>
                        <td><span class="lastweek"><b>{cells["last-week"]}</b></span></td>
                    </tr>
                    <tr>
                        <td>Last Month</td>
                        <td><span class="lastmonth"><b>{cells["last-month"]}</b></span></td>
                    </tr>
                    <tr>
                        <td>Total</td>
                        <td><span class="total"><b>{cells["total"]}</b></span></td>
                    </tr>
                </tbody>
            </table>
        </div>
    </div>"""

    return main_content


def _chart_layout(title: str) -> dict[str, Any]:
    return {
        "title": {"text": title},
        "margin": CHART_MARGIN,
        "xaxis": {"showgrid": False},
        "yaxis": {"showgrid": False, "showline": True},
    }


def render_charts(stats: AggregatedStats, packages: list[str], target: Dashboard) -> None:
    """Draw one line chart per package plus a combined chart of all packages."""
    all_packages: list[go.Scatter] = []

    for pack in packages:
        series = get_range_series(stats, pack)
        if series is None:
            logger.warning("Skipping chart for %s: no range data", pack)
            continue
        days, downloads = series

        plot_data = [
            go.Scatter(
                x=days,
                y=downloads,
                mode="lines",
                line={"color": THEME_PRIMARY_COLOR, "shape": "spline"},
            )
        ]
        all_packages.append(
            go.Scatter(
                x=days,
                y=downloads,
                mode="lines",
                name=pack,
                line={"shape": "spline"},
            )
        )

        target.new_plot(pack, plot_data, _chart_layout(pack), {})

    if not all_packages:
        return

    target.new_plot(
        ALL_PACKAGES_ELEMENT_ID, all_packages, _chart_layout("All Packages"), {}
    )


def build_dashboard(stats: AggregatedStats, packages: list[str]) -> Dashboard:
    """Render the view and charts for the given stats into a new Dashboard."""
    dashboard = Dashboard()
    dashboard.set_inner_html(MAIN_ELEMENT_ID, render_view(stats, packages))
    # Charts go into panel elements, so only packages with a panel are drawn
    render_charts(stats, panel_packages(stats, packages), dashboard)
    return dashboard


# -----------------------------------------------------------------------------
# Public Report Generation Functions
# -----------------------------------------------------------------------------


def generate_html_report(
    dashboard: Dashboard,
    output_file: str,
    title: str = DEFAULT_TITLE,
    include_plotlyjs: str = "cdn",
) -> None:
    """Write a dashboard to a self-contained HTML file.

    Args:
        dashboard: Rendered dashboard.
        output_file: Path to write HTML file.
        title: Page title and heading.
        include_plotlyjs: "cdn" or "inline" (see Dashboard.to_html).
    """
    if not dashboard.figures:
        logger.warning("No download data available to chart.")

    html = dashboard.to_html(title, include_plotlyjs=include_plotlyjs)

    with open(output_file, "w") as f:
        f.write(html)
    logger.info("Report generated: %s", output_file)
