"""End-to-end tests: analysis over fixture packages, then the CLI."""

import json
import signal
from pathlib import Path

import pytest
import tomli
from typer.testing import CliRunner

from conftest import FakeMetadataProvider, RuleVerifier
from featureprune.analysis.minimizer import FeatureMinimizer
from featureprune.analysis.runner import analyze_workspace
from featureprune.build import BuildResult
from featureprune.cli import app
from featureprune.models.report import REPORT_VERSION
from featureprune.output.json_writer import load_report
from featureprune.pruning import prune_report

runner = CliRunner()

# x must keep b and w must keep fast; everything else is unused.
NEEDS = {"x": {"b"}, "w": {"fast"}}


class TestAnalyzeSingleCrate:
    """Analysis of one package with four feature-enabling dependencies."""

    @pytest.fixture
    def verifier(self):
        return RuleVerifier(NEEDS)

    @pytest.fixture
    def original(self, single_crate: Path):
        return (single_crate / "Cargo.toml").read_bytes()

    @pytest.fixture
    def outcome(self, single_crate: Path, verifier, original):
        return analyze_workspace(single_crate, FeatureMinimizer(verifier), FakeMetadataProvider())

    def test_report_contents(self, outcome):
        package = outcome.report.packages["demo"]

        assert outcome.ok
        assert outcome.report.root_name == "demo"
        assert set(package.dependencies) == {"x", "y"}
        assert package.dependencies["x"].removable_features == {"a"}
        assert package.dependencies["x"].required_features == {"b"}
        assert package.dependencies["y"].original_features == {"c", "d"}
        assert package.dependencies["y"].removable_features == {"c", "d"}

    def test_one_build_per_feature(self, outcome, verifier):
        # w: fast, x: a and b, y: c and d. z enables nothing.
        assert verifier.calls == 5

    def test_manifest_left_untouched(self, outcome, single_crate: Path, original):
        assert (single_crate / "Cargo.toml").read_bytes() == original

    def test_skip_leaves_dependency_alone(self, single_crate: Path):
        verifier = RuleVerifier(NEEDS)

        outcome = analyze_workspace(
            single_crate, FeatureMinimizer(verifier), FakeMetadataProvider(), skip={"x"}
        )

        assert set(outcome.report.packages["demo"].dependencies) == {"y"}
        assert verifier.calls == 3

    def test_analyze_then_prune(self, outcome, single_crate: Path):
        summary = prune_report(outcome.report)

        deps = tomli.loads((single_crate / "Cargo.toml").read_text())["dependencies"]
        assert summary.ok
        assert deps["x"] == {"version": "1.0", "default-features": False, "features": ["b"]}
        assert deps["y"] == {"version": "0.4", "default-features": False}
        assert deps["z"] == {"version": "2", "default-features": False}
        assert deps["w"] == {"version": "3.1", "features": ["fast"]}


class TestAnalyzeWorkspace:
    """Analysis of a workspace with excluded and broken members."""

    def test_members_analyzed(self, workspace: Path):
        metadata = FakeMetadataProvider()

        outcome = analyze_workspace(workspace, FeatureMinimizer(RuleVerifier(NEEDS)), metadata)

        assert outcome.report.root_name == "workspace"
        assert set(outcome.report.packages) == {"app", "core-lib"}
        # serde is inherited from the workspace and never minimized.
        assert set(outcome.report.packages["app"].dependencies) == {"x"}
        assert {path.parent.name for path in metadata.fetched} == {"app", "core"}

    def test_failing_member_does_not_stop_others(self, workspace: Path):
        core_manifest = workspace / "crates" / "core" / "Cargo.toml"
        original = core_manifest.read_bytes()

        outcome = analyze_workspace(
            workspace,
            FeatureMinimizer(RuleVerifier(NEEDS)),
            FakeMetadataProvider(fail_for={"core"}),
        )

        assert not outcome.ok
        assert [failure.package.name for failure in outcome.failures] == ["core"]
        assert set(outcome.report.packages) == {"app"}
        assert core_manifest.read_bytes() == original

    def test_undecodable_member_does_not_stop_others(self, workspace: Path):
        (workspace / "crates" / "app" / "Cargo.toml").write_bytes(b"# \xff\xfe\n")

        outcome = analyze_workspace(
            workspace, FeatureMinimizer(RuleVerifier(NEEDS)), FakeMetadataProvider()
        )

        assert [failure.package.name for failure in outcome.failures] == ["app"]
        assert set(outcome.report.packages) == {"core-lib"}


@pytest.fixture
def fake_cargo(monkeypatch):
    """Replace cargo in the CLI with the rule verifier and fixed metadata."""
    verifier = RuleVerifier(NEEDS)
    monkeypatch.setattr("featureprune.cli.CargoBuildVerifier", lambda: verifier)
    monkeypatch.setattr("featureprune.cli.CargoMetadataProvider", lambda: FakeMetadataProvider())
    return verifier


class TestCli:
    """Tests for the featureprune commands."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "featureprune version" in result.output

    def test_analyze_writes_report(self, fake_cargo, single_crate: Path, tmp_path: Path):
        out = tmp_path / "out"

        result = runner.invoke(app, ["analyze", "-w", str(single_crate), "-r", str(out)])

        assert result.exit_code == 0, result.output
        data = json.loads((out / "report.json").read_text())
        assert data["version"] == REPORT_VERSION
        assert data["packages"]["demo"]["dependencies"]["x"]["removable_features"] == ["a"]

    def test_analyze_uses_config(self, fake_cargo, single_crate: Path, tmp_path: Path):
        (single_crate / "featureprune.json").write_text(
            json.dumps({"analysis": {"skip": ["y"], "report_dir": str(tmp_path / "cfg")}})
        )

        result = runner.invoke(app, ["analyze", "-w", str(single_crate)])

        assert result.exit_code == 0, result.output
        report = load_report(tmp_path / "cfg" / "report.json")
        assert set(report.packages["demo"].dependencies) == {"x"}

    def test_analyze_missing_manifest(self, fake_cargo, tmp_path: Path):
        result = runner.invoke(app, ["analyze", "-w", str(tmp_path)])

        assert result.exit_code == 1

    def test_analyze_reports_failed_members(self, monkeypatch, workspace: Path, tmp_path: Path):
        monkeypatch.setattr("featureprune.cli.CargoBuildVerifier", lambda: RuleVerifier(NEEDS))
        monkeypatch.setattr(
            "featureprune.cli.CargoMetadataProvider",
            lambda: FakeMetadataProvider(fail_for={"core"}),
        )

        result = runner.invoke(app, ["analyze", "-w", str(workspace), "-r", str(tmp_path)])

        assert result.exit_code == 1
        assert set(load_report(tmp_path / "report.json").packages) == {"app"}

    def test_interrupt_restores_and_writes_nothing(self, monkeypatch, single_crate: Path, tmp_path: Path):
        original = (single_crate / "Cargo.toml").read_bytes()

        class InterruptingVerifier:
            def build(self, manifest_path, options):
                raise KeyboardInterrupt

        monkeypatch.setattr("featureprune.cli.CargoBuildVerifier", InterruptingVerifier)
        monkeypatch.setattr("featureprune.cli.CargoMetadataProvider", lambda: FakeMetadataProvider())

        result = runner.invoke(app, ["analyze", "-w", str(single_crate), "-r", str(tmp_path)])

        assert result.exit_code == 130
        assert (single_crate / "Cargo.toml").read_bytes() == original
        assert not (tmp_path / "report.json").exists()

    def test_terminate_lets_running_build_finish(self, monkeypatch, single_crate: Path, tmp_path: Path):
        original = (single_crate / "Cargo.toml").read_bytes()

        class TerminatedDuringBuild:
            def __init__(self):
                self.started = 0
                self.finished = 0

            def build(self, manifest_path, options):
                self.started += 1
                signal.getsignal(signal.SIGTERM)(signal.SIGTERM, None)
                self.finished += 1
                return BuildResult(success=True)

        verifier = TerminatedDuringBuild()
        monkeypatch.setattr("featureprune.cli.CargoBuildVerifier", lambda: verifier)
        monkeypatch.setattr("featureprune.cli.CargoMetadataProvider", lambda: FakeMetadataProvider())

        result = runner.invoke(app, ["analyze", "-w", str(single_crate), "-r", str(tmp_path)])

        assert result.exit_code == 143
        assert verifier.started == verifier.finished == 1
        assert (single_crate / "Cargo.toml").read_bytes() == original
        # w is tried first; its single trial completed before the stop.
        report = load_report(tmp_path / "report.json")
        assert set(report.packages["demo"].dependencies) == {"w"}
        assert report.packages["demo"].dependencies["w"].removable_features == {"fast"}

    def test_nothing_to_build_rejected(self, fake_cargo, single_crate: Path, tmp_path: Path):
        result = runner.invoke(
            app, ["analyze", "-w", str(single_crate), "-r", str(tmp_path), "--no-lib", "--no-bins"]
        )

        assert result.exit_code == 2
        assert fake_cargo.calls == 0
        assert not (tmp_path / "report.json").exists()

    def test_build_report(self, fake_cargo, single_crate: Path, tmp_path: Path):
        result = runner.invoke(app, ["build-report", "-w", str(single_crate), "-r", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "report.json").exists()
        assert "## demo" in (tmp_path / "report.md").read_text()

    def test_prune(self, fake_cargo, single_crate: Path, tmp_path: Path):
        runner.invoke(app, ["analyze", "-w", str(single_crate), "-r", str(tmp_path)])

        result = runner.invoke(app, ["prune", "-i", str(tmp_path / "report.json")])

        assert result.exit_code == 0, result.output
        deps = tomli.loads((single_crate / "Cargo.toml").read_text())["dependencies"]
        assert deps["x"]["features"] == ["b"]

    def test_prune_dry_run(self, fake_cargo, single_crate: Path, tmp_path: Path):
        runner.invoke(app, ["analyze", "-w", str(single_crate), "-r", str(tmp_path)])
        original = (single_crate / "Cargo.toml").read_bytes()

        result = runner.invoke(app, ["prune", "-i", str(tmp_path / "report.json"), "--dry-run"])

        assert result.exit_code == 0, result.output
        assert (single_crate / "Cargo.toml").read_bytes() == original

    def test_prune_rejects_other_report_version(self, single_crate: Path, tmp_path: Path):
        report_path = tmp_path / "report.json"
        report_path.write_text(json.dumps({"version": "0.9", "root_name": "demo", "packages": {}}))
        original = (single_crate / "Cargo.toml").read_bytes()

        result = runner.invoke(app, ["prune", "-i", str(report_path)])

        assert result.exit_code == 1
        assert (single_crate / "Cargo.toml").read_bytes() == original

    def test_show(self, fake_cargo, single_crate: Path, tmp_path: Path):
        runner.invoke(app, ["analyze", "-w", str(single_crate), "-r", str(tmp_path)])

        result = runner.invoke(app, ["show", str(tmp_path / "report.json")])

        assert result.exit_code == 0, result.output
        assert "demo" in result.output

    def test_show_missing_report(self, tmp_path: Path):
        result = runner.invoke(app, ["show", str(tmp_path / "report.json")])

        assert result.exit_code == 1
