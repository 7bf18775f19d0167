"""Data models for declared dependencies and their feature graphs."""

from dataclasses import dataclass, field
from enum import Enum


class DeclarationKind(Enum):
    """Surface shape of a dependency entry in the manifest."""

    SHORT = "short"  # name = "1.0"
    DETAILED = "detailed"  # name = { version = "1.0", ... } or [dependencies.name]
    INHERITED = "inherited"  # name = { workspace = true }


@dataclass
class DependencyDeclaration:
    """A dependency as declared in a package manifest."""

    name: str
    version: str | None = None
    default_features: bool = True
    features: list[str] = field(default_factory=list)
    kind: DeclarationKind = DeclarationKind.DETAILED
    package: str | None = None  # Upstream name when the dependency is renamed

    @property
    def package_name(self) -> str:
        """Name of the upstream package this declaration points at."""
        return self.package or self.name

    def same_declaration(self, other: "DependencyDeclaration") -> bool:
        """Compare the logical declaration, ignoring its surface shape."""
        return (
            self.name == other.name
            and self.version == other.version
            and self.default_features == other.default_features
            and sorted(self.features) == sorted(other.features)
            and self.package_name == other.package_name
        )


@dataclass
class FeatureGraph:
    """Published features of a dependency package.

    Maps every public feature to the entries it turns on. The "default" key
    lists what is enabled unless default features are disabled.
    """

    name: str
    version: str = ""
    features: dict[str, list[str]] = field(default_factory=dict)

    @property
    def public_features(self) -> set[str]:
        return set(self.features)

    def implied_public(self, feature: str) -> set[str]:
        """Public features directly turned on by ``feature``."""
        return {
            implied
            for implied in self.features.get(feature, [])
            if implied in self.features
        }
