"""Centralized path management for featureprune files."""

from pathlib import Path

MANIFEST_FILE = "Cargo.toml"
CONFIG_FILE = "featureprune.json"
REPORT_FILE = "report.json"
REPORT_MARKDOWN_FILE = "report.md"


def get_manifest_path(package_dir: Path) -> Path:
    """Get the Cargo.toml path for a package directory."""
    return package_dir / MANIFEST_FILE


def get_config_path(workspace_path: Path) -> Path:
    """Get the default featureprune.json path for a workspace."""
    return workspace_path / CONFIG_FILE


def get_report_path(report_dir: Path) -> Path:
    """Get the report.json path inside a report directory."""
    return report_dir / REPORT_FILE


def get_markdown_report_path(report_dir: Path) -> Path:
    """Get the report.md path inside a report directory."""
    return report_dir / REPORT_MARKDOWN_FILE


def ensure_report_dir(report_dir: Path) -> Path:
    """Ensure the report directory exists and return it."""
    report_dir.mkdir(parents=True, exist_ok=True)
    return report_dir
