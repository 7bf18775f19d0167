"""Shared fixtures and fakes for the featureprune tests."""

import shutil
from pathlib import Path

import pytest
import tomli

from featureprune.build import BuildOptions, BuildResult
from featureprune.models.dependency import FeatureGraph

FIXTURES_PATH = Path(__file__).parent / "fixtures"

# Feature graphs of the dependencies used by the fixture manifests.
GRAPHS = {
    "x": FeatureGraph("x", "1.0.3", {"default": ["a", "b"], "a": [], "b": [], "extra": []}),
    "y": FeatureGraph("y", "0.4.1", {"default": [], "c": ["d", "dep:inner"], "d": []}),
    "z": FeatureGraph("z", "2.0.0", {"default": ["q"], "q": []}),
    "w": FeatureGraph("w", "3.1.0", {"default": [], "fast": [], "slow": []}),
    "serde": FeatureGraph("serde", "1.0.200", {"default": ["std"], "std": [], "derive": []}),
}


class FakeMetadataProvider:
    """Returns fixed feature graphs and counts fetches."""

    def __init__(self, graphs: dict[str, FeatureGraph] | None = None, fail_for: set[str] | None = None):
        self.graphs = GRAPHS if graphs is None else graphs
        self.fail_for = fail_for or set()
        self.fetched: list[Path] = []

    def fetch_package_graph(self, manifest_path: Path) -> dict[str, FeatureGraph]:
        from featureprune.errors import MetadataFetchError

        self.fetched.append(manifest_path)
        if manifest_path.parent.name in self.fail_for:
            raise MetadataFetchError(f"metadata unavailable for {manifest_path}")
        return self.graphs


class RuleVerifier:
    """Succeeds when every dependency has the features it needs on disk.

    Reads the manifest the way cargo would: explicit features, what they
    imply, and the default features unless they are switched off.
    """

    def __init__(self, needs: dict[str, set[str]], graphs: dict[str, FeatureGraph] | None = None):
        self.needs = needs
        self.graphs = GRAPHS if graphs is None else graphs
        self.calls = 0
        self.seen: list[str] = []

    def enabled_features(self, manifest: dict, dependency: str) -> set[str]:
        graph = self.graphs[dependency]
        entry = manifest["dependencies"][dependency]
        if isinstance(entry, str):
            entry = {"version": entry}
        explicit = set(entry.get("features", []))
        enabled = set(explicit)
        for feature in explicit:
            enabled |= graph.implied_public(feature)
        if entry.get("default-features", True):
            enabled |= graph.implied_public("default")
        return enabled

    def build(self, manifest_path: Path, options: BuildOptions) -> BuildResult:
        self.calls += 1
        text = manifest_path.read_text(encoding="utf-8")
        self.seen.append(text)
        manifest = tomli.loads(text)
        for dependency, needed in self.needs.items():
            if dependency not in manifest.get("dependencies", {}):
                continue
            missing = needed - self.enabled_features(manifest, dependency)
            if missing:
                return BuildResult(success=False, detail=f"{dependency} needs {sorted(missing)}")
        return BuildResult(success=True)


class ScriptedVerifier:
    """Returns a fixed sequence of outcomes."""

    def __init__(self, outcomes: list[bool]):
        self.outcomes = list(outcomes)
        self.calls = 0

    def build(self, manifest_path: Path, options: BuildOptions) -> BuildResult:
        self.calls += 1
        return BuildResult(success=self.outcomes.pop(0))


@pytest.fixture
def single_crate(tmp_path: Path) -> Path:
    """A writable copy of the single crate fixture."""
    target = tmp_path / "single_crate"
    shutil.copytree(FIXTURES_PATH / "single_crate", target)
    return target


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A writable copy of the workspace fixture."""
    target = tmp_path / "workspace"
    shutil.copytree(FIXTURES_PATH / "workspace", target)
    return target
