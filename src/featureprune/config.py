"""Configuration loading for featureprune.

An optional featureprune.json in the workspace root provides defaults for the
analyze options; command line flags override it.
"""

import json
from pathlib import Path

from featureprune.build import BuildOptions


def load_config(config_path: Path) -> dict:
    """Load a featureprune.json configuration file."""
    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_config_if_present(config_path: Path) -> dict:
    """Load the configuration, or an empty one when the file does not exist."""
    if not config_path.exists():
        return {}
    return load_config(config_path)


def get_skip_dependencies(config: dict) -> list[str]:
    """Get dependency names excluded from the analysis."""
    return list(config.get("analysis", {}).get("skip", []))


def get_report_dir(config: dict) -> Path | None:
    """Get the configured report directory, if any."""
    report_dir = config.get("analysis", {}).get("report_dir")
    return Path(report_dir) if report_dir else None


def get_build_options(config: dict) -> BuildOptions:
    """Get build options from the "build" section."""
    build = config.get("build", {})
    return BuildOptions(
        lib=build.get("lib", True),
        bins=build.get("bins", True),
        tests=build.get("tests", False),
        benches=build.get("benches", False),
        examples=build.get("examples", False),
        jobs=build.get("jobs"),
        targets=tuple(build.get("targets", [])),
        timeout=build.get("timeout"),
    )
