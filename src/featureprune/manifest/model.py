"""Canonical, read-only view of a Cargo manifest.

Parsed with tomli. Formatting is not preserved; this model is only used to
read package metadata and dependency declarations.
"""

from dataclasses import dataclass, field
from pathlib import Path

import structlog
import tomli

from featureprune.errors import ManifestNotFound, ManifestParseError
from featureprune.models.dependency import DeclarationKind, DependencyDeclaration

log = structlog.get_logger("featureprune.manifest")


@dataclass
class WorkspaceSection:
    """The [workspace] table of a manifest."""

    members: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)


@dataclass
class Manifest:
    """Package name, dependencies and workspace layout of one Cargo.toml."""

    path: Path
    package_name: str | None = None
    dependencies: dict[str, DependencyDeclaration] = field(default_factory=dict)
    workspace: WorkspaceSection | None = None

    @property
    def directory(self) -> Path:
        return self.path.parent

    @property
    def display_name(self) -> str:
        return self.package_name or self.directory.name

    @property
    def is_workspace(self) -> bool:
        return self.workspace is not None and bool(self.workspace.members)


def load_manifest(path: Path) -> Manifest:
    """Read and parse a Cargo.toml from disk."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ManifestNotFound(path) from None
    except UnicodeDecodeError as e:
        raise ManifestParseError(f"{path} is not valid UTF-8: {e}") from e
    except OSError as e:
        raise ManifestParseError(f"Failed to read {path}: {e}") from e
    return parse_manifest(text, path)


def parse_manifest(text: str, path: Path) -> Manifest:
    """Parse manifest text into a Manifest."""
    try:
        data = tomli.loads(text)
    except tomli.TOMLDecodeError as e:
        raise ManifestParseError(f"Failed to parse {path}: {e}") from e

    package = data.get("package")
    package_name = package.get("name") if isinstance(package, dict) else None

    workspace = None
    if isinstance(data.get("workspace"), dict):
        workspace = WorkspaceSection(
            members=list(data["workspace"].get("members", [])),
            exclude=list(data["workspace"].get("exclude", [])),
        )

    dependencies: dict[str, DependencyDeclaration] = {}
    for name, entry in data.get("dependencies", {}).items():
        declaration = parse_declaration(name, entry)
        if declaration is None:
            log.warning("manifest.unsupported_dependency", dependency=name, path=str(path))
            continue
        dependencies[name] = declaration

    return Manifest(
        path=path,
        package_name=package_name,
        dependencies=dependencies,
        workspace=workspace,
    )


def parse_declaration(name: str, entry: object) -> DependencyDeclaration | None:
    """Turn a raw dependency entry into a declaration.

    Returns None when the entry is neither a version string nor a table.
    """
    if isinstance(entry, str):
        return DependencyDeclaration(name=name, version=entry, kind=DeclarationKind.SHORT)

    if not isinstance(entry, dict):
        return None

    kind = DeclarationKind.INHERITED if entry.get("workspace") is True else DeclarationKind.DETAILED
    return DependencyDeclaration(
        name=name,
        version=entry.get("version"),
        default_features=_default_features(entry),
        features=list(entry.get("features", [])),
        kind=kind,
        package=entry.get("package"),
    )


def _default_features(entry: dict) -> bool:
    # Cargo still accepts the underscore spelling.
    if "default-features" in entry:
        return bool(entry["default-features"])
    return bool(entry.get("default_features", True))
