"""Error kinds raised by featureprune."""

from pathlib import Path


class FeaturePruneError(Exception):
    """Base class for all featureprune errors."""


class ManifestNotFound(FeaturePruneError):
    """No Cargo.toml at the expected location."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Manifest not found: {path}")
        self.path = path


class ManifestParseError(FeaturePruneError):
    """The manifest cannot be read or is not valid UTF-8 TOML."""


class MalformedDocument(FeaturePruneError):
    """The manifest has no dependency table the editor can work on."""


class DependencyNotFound(FeaturePruneError):
    """A feature list was requested for a dependency absent from the manifest."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Dependency '{name}' not found in manifest")
        self.name = name


class MalformedDependencyEntry(FeaturePruneError):
    """A dependency entry is neither a version string nor a table."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Dependency '{name}' has an unsupported declaration shape")
        self.name = name


class MetadataFetchError(FeaturePruneError):
    """`cargo metadata` failed or returned something unreadable."""


class ReportVersionMismatch(FeaturePruneError):
    """A report file was written by an incompatible version."""

    def __init__(self, found: object, expected: str) -> None:
        super().__init__(
            f"Report version {found!r} does not match the current version {expected!r}. "
            "Re-run the analysis to produce a new report."
        )
        self.found = found
        self.expected = expected


class ReportIOError(FeaturePruneError):
    """A report file could not be read or written."""
