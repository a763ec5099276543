"""CLI argument parsing and command implementations."""

import argparse
import json
from pathlib import Path
from typing import Any
import webbrowser

import httpx
import yaml
from tabulate import tabulate

from .api import (
    DEFAULT_API_URL,
    DEFAULT_REGISTRY_URL,
    DEFAULT_START_DATE,
    client_scope,
    fetch_npm_stats,
    fetch_published_packages,
    get_range_series,
    summarize,
)
from .export import export_csv, export_json, export_markdown
from .logging import get_logger, setup_logging
from .reports import DEFAULT_TITLE, build_dashboard, generate_html_report
from .types import AggregatedStats
from .utils import format_count, make_sparkline, validate_package_name

DEFAULT_CONFIG_FILE = "npmdash.yml"
DEFAULT_REPORT_FILE = "report.html"

logger = get_logger()


def load_config(config_file: str | None) -> dict[str, Any]:
    """Load settings from a YAML config file.

    Without an explicit path, DEFAULT_CONFIG_FILE is read if it exists.
    Recognised keys: author, start, registry_url, api_url, packages.
    """
    if config_file is None:
        if not Path(DEFAULT_CONFIG_FILE).exists():
            return {}
        config_file = DEFAULT_CONFIG_FILE

    with open(config_file) as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def load_packages_from_file(file_path: str) -> list[str]:
    """Load package names from a file (YAML, JSON, or plain text).

    Supports:
    - YAML (.yml, .yaml): expects 'packages' or 'published' key with list of packages
    - JSON (.json): expects list of strings or object with 'packages'/'published' key
    - Plain text: one package name per line (comments with # supported)
    """
    path = Path(file_path)
    suffix = path.suffix.lower()

    with open(file_path) as f:
        content = f.read()

    if suffix in (".yml", ".yaml"):
        data = yaml.safe_load(content)
        if isinstance(data, dict):
            return data.get("packages", []) or data.get("published", []) or []
        return []

    if suffix == ".json":
        data = json.loads(content)
        if isinstance(data, list):
            return [str(p) for p in data]
        if isinstance(data, dict):
            return data.get("packages", []) or data.get("published", []) or []
        return []

    # Plain text: one package per line, strip whitespace, skip empty/comments
    packages = []
    for line in content.splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            packages.append(line)
    return packages


def filter_valid_packages(packages: list[str]) -> list[str]:
    """Drop package names that are not valid npm names, logging each one."""
    valid = []
    for name in packages:
        ok, error = validate_package_name(name)
        if ok:
            valid.append(name)
        else:
            logger.warning("Ignoring '%s': %s", name, error)
    return valid


def _setting(args: argparse.Namespace, config: dict[str, Any], name: str) -> Any:
    """Return a setting, preferring the command line over the config file."""
    value = getattr(args, name, None)
    if value is None:
        value = config.get(name)
    return value


def resolve_packages(
    args: argparse.Namespace,
    config: dict[str, Any],
    client: httpx.Client | None = None,
) -> list[str] | None:
    """Resolve the package list from a packages file, the config, or a search.

    Returns None if no source is available or the registry search failed.
    """
    packages_file = getattr(args, "packages_file", None)
    if packages_file:
        return filter_valid_packages(load_packages_from_file(packages_file))

    author = _setting(args, config, "author")
    if not author and config.get("packages"):
        return filter_valid_packages([str(p) for p in config["packages"]])

    if not author:
        print("No author given. Pass an author or set 'author' in the config file.")
        return None

    registry_url = config.get("registry_url", DEFAULT_REGISTRY_URL)
    packages = fetch_published_packages(author, client=client, registry_url=registry_url)
    if packages is None:
        print(f"Could not fetch packages for '{author}'.")
    return packages


def collect_stats(
    args: argparse.Namespace,
    config: dict[str, Any],
    client: httpx.Client | None = None,
) -> tuple[list[str], AggregatedStats] | None:
    """Resolve packages and fetch their download statistics.

    Returns None if the package list could not be resolved.
    """
    with client_scope(client) as http:
        packages = resolve_packages(args, config, client=http)
        if packages is None:
            return None

        if not packages:
            print("No packages found.")
            return packages, {}

        print(f"Fetching download stats for {len(packages)} packages...")
        stats = fetch_npm_stats(
            packages,
            client=http,
            start=str(_setting(args, config, "start") or DEFAULT_START_DATE),
            api_url=config.get("api_url", DEFAULT_API_URL),
        )
    return packages, stats


def cmd_report(args: argparse.Namespace) -> int:
    """Report command: generate the HTML dashboard."""
    config = load_config(args.config)
    collected = collect_stats(args, config)
    if collected is None:
        return 1
    packages, stats = collected

    dashboard = build_dashboard(stats, packages)
    author = _setting(args, config, "author")
    title = f"{DEFAULT_TITLE} - {author}" if author else DEFAULT_TITLE
    include_plotlyjs = "inline" if args.offline else "cdn"
    generate_html_report(dashboard, args.output, title, include_plotlyjs=include_plotlyjs)

    if not args.no_browser:
        print("Opening report in browser...")
        webbrowser.open_new_tab(Path(args.output).resolve().as_uri())
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    """Show command: display download stats in terminal."""
    config = load_config(args.config)
    collected = collect_stats(args, config)
    if collected is None:
        return 1
    packages, stats = collected

    if not packages:
        return 0

    rows = []
    for s in summarize(stats, packages):
        series = get_range_series(stats, s["package"])
        sparkline = make_sparkline(series[1], width=7) if series else ""
        rows.append(
            [
                s["package"],
                format_count(s["last_day"]),
                format_count(s["last_week"]),
                format_count(s["last_month"]),
                format_count(s["total"]),
                sparkline,
            ]
        )

    headers = ["Package", "Day", "Week", "Month", "Total", "Trend"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


def cmd_packages(args: argparse.Namespace) -> int:
    """Packages command: list the packages published by an author."""
    config = load_config(args.config)
    packages = resolve_packages(args, config)
    if packages is None:
        return 1

    if not packages:
        print("No packages found.")
        return 0

    print(f"{len(packages)} packages:\n")
    for pkg in packages:
        print(pkg)
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    """Export command: export stats in various formats."""
    config = load_config(args.config)
    collected = collect_stats(args, config)
    if collected is None:
        return 1
    packages, stats = collected
    rows = summarize(stats, packages)

    if args.format == "csv":
        output = export_csv(rows)
    elif args.format == "json":
        output = export_json(rows)
    else:
        output = export_markdown(rows)

    if args.output:
        with open(args.output, "w") as f:
            f.write(output)
        print(f"Exported to {args.output}")
    else:
        print(output)
    return 0


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "author",
        nargs="?",
        help="npm author whose published packages are reported",
    )
    parser.add_argument(
        "-p",
        "--packages-file",
        help="Read package names from a file (.yml, .json, or plain text) instead of searching",
    )
    parser.add_argument(
        "--start",
        help=f"First day of the total and range periods (default: {DEFAULT_START_DATE})",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        description="Dashboard of npm download statistics for an author's packages.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-c",
        "--config",
        help=f"YAML config file (default: {DEFAULT_CONFIG_FILE} if present)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug output",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only show warnings and errors",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # report command
    report_parser = subparsers.add_parser(
        "report",
        help="Generate HTML dashboard with charts",
    )
    _add_source_arguments(report_parser)
    report_parser.add_argument(
        "-o",
        "--output",
        default=DEFAULT_REPORT_FILE,
        help=f"Output HTML file (default: {DEFAULT_REPORT_FILE})",
    )
    report_parser.add_argument(
        "--offline",
        action="store_true",
        help="Embed plotly.js in the report instead of loading it from the CDN",
    )
    report_parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Don't open report in browser (useful for automation)",
    )
    report_parser.set_defaults(func=cmd_report)

    # show command
    show_parser = subparsers.add_parser(
        "show",
        help="Display download stats in terminal",
    )
    _add_source_arguments(show_parser)
    show_parser.set_defaults(func=cmd_show)

    # packages command
    packages_parser = subparsers.add_parser(
        "packages",
        help="List the packages published by an author",
    )
    packages_parser.add_argument(
        "author",
        nargs="?",
        help="npm author to search for",
    )
    packages_parser.set_defaults(func=cmd_packages)

    # export command
    export_parser = subparsers.add_parser(
        "export",
        help="Export stats in various formats (csv, json, markdown)",
    )
    _add_source_arguments(export_parser)
    export_parser.add_argument(
        "-f",
        "--format",
        choices=["csv", "json", "markdown", "md"],
        default="csv",
        help="Export format (default: csv)",
    )
    export_parser.add_argument(
        "-o",
        "--output",
        help="Output file (default: stdout)",
    )
    export_parser.set_defaults(func=cmd_export)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    setup_logging(verbose=args.verbose, quiet=args.quiet)
    result: int = args.func(args)
    return result
