"""JSON persistence for analysis reports."""

import json
from pathlib import Path

import structlog

from featureprune.errors import ReportIOError, ReportVersionMismatch
from featureprune.models.report import REPORT_VERSION, Report

log = structlog.get_logger("featureprune.output")


def write_report(report: Report, output_path: Path) -> None:
    """Write the report.json file."""
    data = report.to_dict()

    try:
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
    except OSError as e:
        raise ReportIOError(f"Failed to write report to {output_path}: {e}") from e

    log.info("report.written", path=str(output_path))


def load_report(report_path: Path) -> Report:
    """Load a report.json file.

    Raises:
        ReportVersionMismatch: If the file was written by another report version
        ReportIOError: If the file cannot be read or is not a valid report
    """
    try:
        with open(report_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ReportIOError(f"Failed to read report {report_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ReportIOError(f"Report {report_path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ReportIOError(f"Report {report_path} is not a JSON object")

    version = data.get("version")
    if version != REPORT_VERSION:
        raise ReportVersionMismatch(version, REPORT_VERSION)

    try:
        report = Report.from_dict(data)
    except (KeyError, TypeError, AttributeError) as e:
        raise ReportIOError(f"Report {report_path} is incomplete: {e}") from e

    log.info("report.loaded", path=str(report_path), packages=len(report.packages))
    return report
