"""Cargo manifest reading, editing and workspace discovery."""

from featureprune.manifest.editor import ManifestEditor
from featureprune.manifest.model import Manifest, load_manifest, parse_manifest
from featureprune.manifest.session import PackageSession
from featureprune.manifest.workspace import discover_packages

__all__ = [
    "Manifest",
    "ManifestEditor",
    "PackageSession",
    "discover_packages",
    "load_manifest",
    "parse_manifest",
]
