"""Scoped ownership of a package manifest during analysis."""

from pathlib import Path

import structlog

from featureprune.errors import MalformedDocument, ManifestNotFound, ManifestParseError
from featureprune.manifest.editor import ManifestEditor
from featureprune.manifest.model import Manifest, parse_manifest
from featureprune.paths import get_manifest_path

log = structlog.get_logger("featureprune.manifest.session")


class PackageSession:
    """Owns one package's Cargo.toml for the length of an analysis.

    Use as a context manager. Edits only reach disk through ``flush()``, and
    leaving the ``with`` block always writes the original bytes back, whether
    the block returned, raised or was interrupted.
    """

    def __init__(self, manifest_path: Path, original: bytes) -> None:
        self.manifest_path = manifest_path
        self._original = original
        self._flushed = False
        self._closed = False

        try:
            text = original.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ManifestParseError(f"{manifest_path} is not valid UTF-8: {e}") from e
        self.manifest: Manifest = parse_manifest(text, manifest_path)
        # Packages without dependencies have nothing to edit.
        self._editor = ManifestEditor(text) if self.manifest.dependencies else None

    @classmethod
    def open(cls, package_dir: Path) -> "PackageSession":
        manifest_path = get_manifest_path(package_dir.resolve())
        log.debug("session.loading", path=str(manifest_path))
        try:
            original = manifest_path.read_bytes()
        except FileNotFoundError:
            raise ManifestNotFound(manifest_path) from None
        except OSError as e:
            raise ManifestParseError(f"Failed to read {manifest_path}: {e}") from e
        return cls(manifest_path, original)

    def __enter__(self) -> "PackageSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def name(self) -> str:
        return self.manifest.display_name

    @property
    def directory(self) -> Path:
        return self.manifest_path.parent

    def _require_editor(self) -> ManifestEditor:
        if self._editor is None:
            raise MalformedDocument(f"{self.manifest_path} declares no dependencies")
        return self._editor

    def set_features(self, dependency: str, features: list[str]) -> None:
        self._require_editor().set_features(dependency, features)

    def restore(self) -> None:
        if self._editor is not None:
            self._editor.restore()

    def flush(self) -> None:
        """Write the current in-memory manifest to disk."""
        contents = self._require_editor().serialize()
        self._flushed = True
        self.manifest_path.write_bytes(contents.encode("utf-8"))

    def close(self) -> None:
        """Put the original manifest bytes back on disk."""
        if self._closed:
            return
        self._closed = True
        self.restore()
        if self._flushed:
            self.manifest_path.write_bytes(self._original)
            log.debug("session.restored", path=str(self.manifest_path))
