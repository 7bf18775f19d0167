"""Backward elimination of dependency features.

Each feature of a dependency is dropped in turn and the package is rebuilt.
A successful build marks the feature removable and it stays off for the
following trials; a failed build marks it required. Every feature is tried
exactly once, so a dependency with N features costs N builds. Pairs of
features that can only be dropped together are not found.
"""

from collections.abc import Callable

import structlog

from featureprune.build import BuildOptions, BuildVerifier
from featureprune.errors import FeaturePruneError
from featureprune.manifest.session import PackageSession
from featureprune.models.minimization import MinimizationRecord
from featureprune.models.report import PackageReport

log = structlog.get_logger("featureprune.analysis.minimizer")

TrialCallback = Callable[[str, str, bool], None]


class FeatureMinimizer:
    """Drives the edit, build, classify, restore cycle for one package at a time."""

    def __init__(
        self,
        verifier: BuildVerifier,
        options: BuildOptions | None = None,
        on_trial: TrialCallback | None = None,
        stop_requested: Callable[[], bool] | None = None,
    ) -> None:
        self.verifier = verifier
        self.options = options or BuildOptions()
        self.on_trial = on_trial
        self.stop_requested = stop_requested or (lambda: False)

    def minimize_package(
        self,
        session: PackageSession,
        features_by_dependency: dict[str, frozenset[str]],
    ) -> PackageReport:
        """Minimize every dependency of the package held by ``session``."""
        report = PackageReport(manifest_path=session.manifest_path)
        total = sum(len(features) for features in features_by_dependency.values())
        log.info(
            "minimizer.package_start",
            package=session.name,
            dependencies=len(features_by_dependency),
            builds=total,
        )

        for dependency in sorted(features_by_dependency):
            if self.stop_requested():
                log.warning("minimizer.stopped", package=session.name)
                break
            record = self.minimize_dependency(
                session, dependency, features_by_dependency[dependency]
            )
            report.add_dependency(
                dependency, record.original, record.removable, record.required
            )

        return report

    def minimize_dependency(
        self,
        session: PackageSession,
        dependency: str,
        features: frozenset[str],
    ) -> MinimizationRecord:
        record = MinimizationRecord.start(dependency, features)
        log.info("minimizer.dependency_start", dependency=dependency, features=len(features))

        while not record.done:
            if self.stop_requested():
                log.warning(
                    "minimizer.stopped", dependency=dependency, untested=len(record.queue)
                )
                break

            candidate = record.next_candidate()
            removable = self._try_without(session, record, candidate)
            if removable:
                record.mark_removable(candidate)
            else:
                record.mark_required(candidate)

            session.restore()

            if self.on_trial is not None:
                self.on_trial(dependency, candidate, removable)

        log.info(
            "minimizer.dependency_done",
            dependency=dependency,
            removable=sorted(record.removable),
            required=sorted(record.required),
        )
        return record

    def _try_without(
        self, session: PackageSession, record: MinimizationRecord, candidate: str
    ) -> bool:
        """Build with ``candidate`` removed; any error counts as a failed build."""
        trial = record.trial_features(candidate)
        log.debug("minimizer.trial", dependency=record.dependency, without=candidate)

        try:
            session.set_features(record.dependency, trial)
            session.flush()
        except (FeaturePruneError, OSError) as e:
            log.warning(
                "minimizer.edit_failed",
                dependency=record.dependency,
                feature=candidate,
                error=str(e),
            )
            return False

        result = self.verifier.build(session.manifest_path, self.options)
        if not result.success:
            log.debug(
                "minimizer.build_failed",
                dependency=record.dependency,
                feature=candidate,
                detail=result.detail,
            )
        return result.success
