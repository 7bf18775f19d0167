"""Workspace member discovery.

Member globs come from ``[workspace] members``; ``[workspace] exclude``
patterns are matched gitignore-style with pathspec.
"""

from pathlib import Path

import pathspec
import structlog

from featureprune.manifest.model import Manifest
from featureprune.paths import get_manifest_path

log = structlog.get_logger("featureprune.manifest.workspace")


def workspace_members(root: Manifest) -> list[Path]:
    """Absolute directories of the workspace members of ``root``.

    Returns an empty list when ``root`` is not a workspace manifest.
    """
    if not root.is_workspace:
        return []

    base = root.directory
    exclude = pathspec.GitIgnoreSpec.from_lines(root.workspace.exclude)

    members: list[Path] = []
    seen: set[Path] = set()
    for pattern in root.workspace.members:
        for candidate in _expand(base, pattern):
            rel_path = candidate.relative_to(base).as_posix()
            if exclude.match_file(rel_path) or exclude.match_file(rel_path + "/"):
                log.debug("workspace.member_excluded", member=rel_path)
                continue
            if not get_manifest_path(candidate).is_file():
                log.debug("workspace.member_without_manifest", member=rel_path)
                continue
            resolved = candidate.resolve()
            if resolved not in seen:
                seen.add(resolved)
                members.append(resolved)

    return members


def _expand(base: Path, pattern: str) -> list[Path]:
    if any(ch in pattern for ch in "*?["):
        return sorted(p for p in base.glob(pattern) if p.is_dir())
    return [base / pattern]


def discover_packages(root: Manifest) -> list[Path]:
    """Directories of all packages to analyze below ``root``.

    A workspace root that is itself a package is analyzed first, followed by
    its members. A plain package yields only its own directory.
    """
    members = workspace_members(root)
    if not members:
        return [root.directory.resolve()]

    packages = [root.directory.resolve()] if root.package_name else []
    packages.extend(member for member in members if member != root.directory.resolve())
    return packages
