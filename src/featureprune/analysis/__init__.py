"""Feature resolution and minimization."""

from featureprune.analysis.minimizer import FeatureMinimizer
from featureprune.analysis.resolver import resolve_effective_features, resolve_package

__all__ = ["FeatureMinimizer", "resolve_effective_features", "resolve_package"]
