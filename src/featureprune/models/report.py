"""Report model shared by the analysis and prune passes."""

from dataclasses import dataclass, field
from pathlib import Path

REPORT_VERSION = "1.0"


@dataclass
class DependencyReport:
    """Outcome of minimizing one dependency."""

    original_features: set[str] = field(default_factory=set)
    removable_features: set[str] = field(default_factory=set)
    required_features: set[str] = field(default_factory=set)

    @property
    def kept_features(self) -> list[str]:
        """Features to keep when pruning: everything not proven removable."""
        return sorted(self.original_features - self.removable_features)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "original_features": sorted(self.original_features),
            "removable_features": sorted(self.removable_features),
            "required_features": sorted(self.required_features),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DependencyReport":
        """Create from dictionary."""
        return cls(
            original_features=set(data["original_features"]),
            removable_features=set(data["removable_features"]),
            required_features=set(data["required_features"]),
        )


@dataclass
class PackageReport:
    """Findings for one package (one manifest)."""

    manifest_path: Path
    dependencies: dict[str, DependencyReport] = field(default_factory=dict)

    def add_dependency(
        self,
        name: str,
        original: set[str] | frozenset[str],
        removable: set[str],
        required: set[str],
    ) -> None:
        """Record a dependency; nothing is recorded when no feature was removable."""
        if not removable:
            return
        self.dependencies[name] = DependencyReport(
            original_features=set(original),
            removable_features=set(removable),
            required_features=set(required),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "manifest_path": str(self.manifest_path),
            "dependencies": {
                name: dep.to_dict() for name, dep in sorted(self.dependencies.items())
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PackageReport":
        """Create from dictionary."""
        return cls(
            manifest_path=Path(data["manifest_path"]),
            dependencies={
                name: DependencyReport.from_dict(dep)
                for name, dep in data["dependencies"].items()
            },
        )


@dataclass
class Report:
    """Complete analysis report saved to report.json."""

    root_name: str
    packages: dict[str, PackageReport] = field(default_factory=dict)
    version: str = REPORT_VERSION

    def add_package(self, name: str, package: PackageReport) -> None:
        """Add a package; packages without findings are left out."""
        if not package.dependencies:
            return
        self.packages[name] = package

    @property
    def removable_count(self) -> int:
        return sum(
            len(dep.removable_features)
            for package in self.packages.values()
            for dep in package.dependencies.values()
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "version": self.version,
            "root_name": self.root_name,
            "packages": {
                name: package.to_dict() for name, package in sorted(self.packages.items())
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Report":
        """Create from dictionary.

        The version check lives in the loader so a mismatching document is
        rejected before any of it is read.
        """
        return cls(
            version=data["version"],
            root_name=data["root_name"],
            packages={
                name: PackageReport.from_dict(package)
                for name, package in data["packages"].items()
            },
        )
