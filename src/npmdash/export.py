"""Export functions for various formats."""

import csv
import io
import json
from datetime import datetime

from .types import PackageSummary
from .utils import format_count


def export_csv(rows: list[PackageSummary], output: io.StringIO | None = None) -> str:
    """Export package summaries to CSV format."""
    if output is None:
        output = io.StringIO()

    writer = csv.writer(output)
    writer.writerow(["package", "last_day", "last_week", "last_month", "total"])

    for s in rows:
        writer.writerow(
            [
                s["package"],
                "" if s["last_day"] is None else s["last_day"],
                "" if s["last_week"] is None else s["last_week"],
                "" if s["last_month"] is None else s["last_month"],
                "" if s["total"] is None else s["total"],
            ]
        )

    return output.getvalue()


def export_json(rows: list[PackageSummary]) -> str:
    """Export package summaries to JSON format."""
    export_data = {
        "generated": datetime.now().isoformat(),
        "packages": [
            {
                "name": s["package"],
                "last_day": s["last_day"],
                "last_week": s["last_week"],
                "last_month": s["last_month"],
                "total": s["total"],
            }
            for s in rows
        ],
    }
    return json.dumps(export_data, indent=2)


def export_markdown(rows: list[PackageSummary]) -> str:
    """Export package summaries to Markdown table format."""
    lines = [
        "| Package | Day | Week | Month | Total |",
        "|---------|----:|-----:|------:|------:|",
    ]

    for s in rows:
        lines.append(
            f"| {s['package']} | {format_count(s['last_day'])} | {format_count(s['last_week'])} | "
            f"{format_count(s['last_month'])} | {format_count(s['total'])} |"
        )

    return "\n".join(lines)
