"""Main entry point for the UI inspector."""

import argparse
import asyncio
import json
import sys
from typing import Optional

import structlog
from pydantic import ValidationError

from .config import ReportFormat, Settings, get_settings
from .inspection.models import DEFAULT_VIEWPORTS, EXTENDED_VIEWPORTS, ContractViolation
from .inspection.report import Report
from .inspection.runner import InspectionError, InspectionRunner
from .inspection.scenarios import load_scenarios
from .utils.logging import configure_logging, log_operation

logger = structlog.get_logger()

EXIT_OK = 0
EXIT_ISSUES = 1
EXIT_ERROR = 2


async def run_inspection(
    settings: Settings,
    url: str,
    scenarios_path: Optional[str] = None,
) -> Report:
    """Run the inspection and write the report."""
    scenarios = load_scenarios(scenarios_path) if scenarios_path else None
    runner = InspectionRunner(settings=settings, scenarios=scenarios)

    with log_operation("inspect_app", logger=logger, url=url) as op:
        report = await runner.run(url)
        op["issues"] = report.total_issues

    report.write(
        settings.output_dir,
        report_format=settings.report_format,
        screenshot_dir=settings.screenshot_dir,
    )

    print("\n" + "=" * 50)
    print("INSPECTION SUMMARY")
    print("=" * 50)
    print(f"Total Issues: {report.total_issues}")
    for viewport, issues in report.group_by_viewport().items():
        print(f"{viewport}: {len(issues)} issues")
    if report.issues:
        print("\nTop Issue Categories:")
        for category, count in report.top_categories():
            print(f"- {category.value}: {count}")
    else:
        print("No major issues found! 🎉")
    print("=" * 50 + "\n")

    return report


def build_parser() -> argparse.ArgumentParser:
    preset_names = [v.name for v in DEFAULT_VIEWPORTS + EXTENDED_VIEWPORTS]
    parser = argparse.ArgumentParser(
        description="Inspect a running web app for responsive layout issues"
    )
    parser.add_argument(
        "url",
        nargs="?",
        help="URL of the running application (default: UI_INSPECTOR_APP_URL)"
    )
    parser.add_argument(
        "--viewport", "-v",
        action="append",
        choices=preset_names,
        help="Viewport preset to inspect; repeat for several (default: mobile, tablet, desktop)"
    )
    parser.add_argument(
        "--scenarios", "-s",
        help="JSON file with interaction scenarios"
    )
    parser.add_argument(
        "--output-dir", "-o",
        help="Output directory for the report"
    )
    parser.add_argument(
        "--format", "-f",
        choices=[f.value for f in ReportFormat],
        help="Report format (default: markdown)"
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window"
    )
    parser.add_argument(
        "--slow-mo",
        type=int,
        help="Delay in milliseconds between browser operations"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level"
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit logs as JSON"
    )
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Return settings with command-line arguments applied on top."""
    overrides = {}
    if args.url:
        overrides["app_url"] = args.url
    if args.viewport:
        overrides["viewports"] = args.viewport
    if args.output_dir:
        overrides["output_dir"] = args.output_dir
        overrides["screenshot_dir"] = f"{args.output_dir.rstrip('/')}/screenshots"
    if args.format:
        overrides["report_format"] = ReportFormat(args.format)
    if args.headed:
        overrides["headless"] = False
    if args.slow_mo is not None:
        overrides["slow_mo_ms"] = args.slow_mo
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.json_logs:
        overrides["json_logs"] = True
    return settings.model_copy(update=overrides)


def cli(argv: Optional[list[str]] = None) -> int:
    """Command-line interface."""
    args = build_parser().parse_args(argv)
    settings = apply_overrides(get_settings(), args)
    configure_logging(level=settings.log_level, json_format=settings.json_logs)

    try:
        report = asyncio.run(run_inspection(
            settings=settings,
            url=settings.app_url,
            scenarios_path=args.scenarios,
        ))
    except (
        InspectionError,
        ContractViolation,
        FileNotFoundError,
        KeyError,
        json.JSONDecodeError,
        ValidationError,
    ) as e:
        logger.error("Inspection could not run", error=str(e))
        return EXIT_ERROR

    # Exit with error code if blocking issues were found
    if report.high_priority_issues:
        return EXIT_ISSUES
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(cli())
