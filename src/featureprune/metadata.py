"""Feature graphs of dependencies, read from `cargo metadata`."""

import json
import os
import subprocess
from pathlib import Path
from typing import Protocol, runtime_checkable

import structlog

from featureprune.errors import MetadataFetchError
from featureprune.models.dependency import FeatureGraph

log = structlog.get_logger("featureprune.metadata")


def cargo_binary() -> str:
    """The cargo executable; $CARGO is set when running as a cargo subcommand."""
    return os.environ.get("CARGO", "cargo")


@runtime_checkable
class MetadataProvider(Protocol):
    """Source of published feature graphs for a package's dependencies."""

    def fetch_package_graph(self, manifest_path: Path) -> dict[str, FeatureGraph]:
        """Return feature graphs keyed by package name."""
        ...


class CargoMetadataProvider:
    """Runs `cargo metadata` once per package."""

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout

    def fetch_package_graph(self, manifest_path: Path) -> dict[str, FeatureGraph]:
        cmd = [
            cargo_binary(),
            "metadata",
            "--format-version",
            "1",
            "--manifest-path",
            str(manifest_path),
        ]
        log.debug("metadata.fetching", manifest=str(manifest_path))

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                cwd=manifest_path.parent,
            )
        except FileNotFoundError as e:
            raise MetadataFetchError(f"cargo not found: {e}") from e
        except subprocess.TimeoutExpired as e:
            raise MetadataFetchError(f"cargo metadata timed out after {self.timeout}s") from e

        if result.returncode != 0:
            raise MetadataFetchError(
                f"cargo metadata failed for {manifest_path}: {result.stderr.strip()}"
            )

        try:
            metadata = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise MetadataFetchError(f"cargo metadata returned invalid JSON: {e}") from e

        return parse_metadata(metadata, manifest_path)


def parse_metadata(metadata: dict, manifest_path: Path) -> dict[str, FeatureGraph]:
    """Extract feature graphs from `cargo metadata` output.

    When several versions of a package are in the graph, the one the package
    at ``manifest_path`` depends on directly wins.
    """
    packages = metadata.get("packages")
    if not isinstance(packages, list):
        raise MetadataFetchError("cargo metadata output has no package list")

    direct = _direct_dependency_ids(metadata, manifest_path)

    graphs: dict[str, FeatureGraph] = {}
    for package in packages:
        name = package.get("name")
        if not name:
            continue
        if name in graphs and package.get("id") not in direct:
            continue
        graphs[name] = FeatureGraph(
            name=name,
            version=package.get("version", ""),
            features={
                feature: list(implied)
                for feature, implied in package.get("features", {}).items()
            },
        )

    log.debug("metadata.fetched", packages=len(graphs))
    return graphs


def _direct_dependency_ids(metadata: dict, manifest_path: Path) -> set[str]:
    root_id = None
    for package in metadata.get("packages", []):
        if Path(package.get("manifest_path", "")) == manifest_path:
            root_id = package.get("id")
            break

    resolve = metadata.get("resolve") or {}
    for node in resolve.get("nodes", []):
        if node.get("id") == root_id:
            return set(node.get("dependencies", []))
    return set()
