"""Analysis of a package or a whole workspace."""

from collections.abc import Callable, Collection
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from featureprune.analysis.minimizer import FeatureMinimizer
from featureprune.analysis.resolver import resolve_package
from featureprune.errors import FeaturePruneError
from featureprune.manifest.model import load_manifest
from featureprune.manifest.session import PackageSession
from featureprune.manifest.workspace import discover_packages
from featureprune.metadata import MetadataProvider
from featureprune.models.report import Report
from featureprune.paths import get_manifest_path

log = structlog.get_logger("featureprune.analysis")

PackageCallback = Callable[[str, dict[str, frozenset[str]]], None]


@dataclass
class PackageFailure:
    """A package whose analysis was aborted."""

    package: Path
    error: str


@dataclass
class AnalysisOutcome:
    """Report plus the packages that could not be analyzed."""

    report: Report
    failures: list[PackageFailure] = field(default_factory=list)
    # Set when the run was stopped early; the report then holds partial results.
    stopped: bool = False

    @property
    def ok(self) -> bool:
        return not self.failures


def analyze_workspace(
    workspace_path: Path,
    minimizer: FeatureMinimizer,
    metadata: MetadataProvider,
    skip: Collection[str] = (),
    on_package: PackageCallback | None = None,
) -> AnalysisOutcome:
    """Analyze the package at ``workspace_path``, or every workspace member.

    A package that fails to load or whose metadata cannot be fetched is
    recorded as a failure; the remaining packages are still analyzed.

    Raises:
        FeaturePruneError: If the root manifest itself cannot be read
    """
    root = load_manifest(get_manifest_path(workspace_path.resolve()))
    packages = discover_packages(root)

    outcome = AnalysisOutcome(report=Report(root_name=root.display_name))

    if root.is_workspace:
        log.info("analysis.workspace", root=str(root.directory), members=len(packages))

    for package_dir in packages:
        if minimizer.stop_requested():
            break
        try:
            analyze_package(package_dir, minimizer, metadata, outcome.report, skip, on_package)
        except FeaturePruneError as e:
            log.error("analysis.package_failed", package=str(package_dir), error=str(e))
            outcome.failures.append(PackageFailure(package=package_dir, error=str(e)))

    outcome.stopped = minimizer.stop_requested()
    return outcome


def analyze_package(
    package_dir: Path,
    minimizer: FeatureMinimizer,
    metadata: MetadataProvider,
    report: Report,
    skip: Collection[str] = (),
    on_package: PackageCallback | None = None,
) -> None:
    """Minimize the features of one package and add its findings to ``report``."""
    with PackageSession.open(package_dir) as session:
        log.info("analysis.package", package=session.name, manifest=str(session.manifest_path))

        graphs = metadata.fetch_package_graph(session.manifest_path)
        features_by_dependency = resolve_package(session.manifest, graphs, skip)

        if on_package is not None:
            on_package(session.name, features_by_dependency)

        if not features_by_dependency:
            log.info("analysis.nothing_to_prune", package=session.name)
            return

        package_report = minimizer.minimize_package(session, features_by_dependency)
        report.add_package(session.name, package_report)
