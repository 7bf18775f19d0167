"""Apply a report: rewrite manifests with the removable features dropped."""

from dataclasses import dataclass, field
from pathlib import Path

import structlog

from featureprune.errors import FeaturePruneError, ManifestParseError
from featureprune.manifest.editor import ManifestEditor
from featureprune.models.report import PackageReport, Report

log = structlog.get_logger("featureprune.pruning")


@dataclass
class PruneSummary:
    """What a prune pass changed."""

    updated: list[Path] = field(default_factory=list)
    pruned_dependencies: int = 0
    failures: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def prune_report(report: Report, dry_run: bool = False) -> PruneSummary:
    """Rewrite every manifest in ``report`` with its kept features only.

    No builds are run. Per-dependency failures are recorded and skipped;
    a manifest that cannot be read or written is recorded and skipped.
    """
    summary = PruneSummary()

    for package_name, package in sorted(report.packages.items()):
        log.info("prune.package", package=package_name, manifest=str(package.manifest_path))
        try:
            _prune_package(package, summary, dry_run)
        except (FeaturePruneError, OSError) as e:
            log.error("prune.package_failed", package=package_name, error=str(e))
            summary.failures.append(f"{package_name}: {e}")

    return summary


def _prune_package(package: PackageReport, summary: PruneSummary, dry_run: bool) -> None:
    manifest_path = package.manifest_path
    try:
        text = manifest_path.read_bytes().decode("utf-8")
    except UnicodeDecodeError as e:
        raise ManifestParseError(f"{manifest_path} is not valid UTF-8: {e}") from e
    # Bytes in and out, so CRLF line endings survive.
    editor = ManifestEditor(text)

    changed = False
    for dep_name, dependency in sorted(package.dependencies.items()):
        kept = dependency.kept_features
        try:
            editor.set_features(dep_name, kept)
        except FeaturePruneError as e:
            log.warning("prune.dependency_failed", dependency=dep_name, error=str(e))
            summary.failures.append(f"{dep_name}: {e}")
            continue
        log.info("prune.dependency", dependency=dep_name, kept=kept)
        summary.pruned_dependencies += 1
        changed = True

    if not changed or dry_run:
        return

    manifest_path.write_bytes(editor.serialize().encode("utf-8"))
    summary.updated.append(manifest_path)
