"""Data models for featureprune."""

from featureprune.models.dependency import (
    DeclarationKind,
    DependencyDeclaration,
    FeatureGraph,
)
from featureprune.models.minimization import MinimizationRecord
from featureprune.models.report import (
    REPORT_VERSION,
    DependencyReport,
    PackageReport,
    Report,
)

__all__ = [
    # Dependency models
    "DeclarationKind",
    "DependencyDeclaration",
    "FeatureGraph",
    # Minimization models
    "MinimizationRecord",
    # Report models
    "REPORT_VERSION",
    "DependencyReport",
    "PackageReport",
    "Report",
]
