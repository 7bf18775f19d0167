"""Build verification: does the package still compile?"""

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

import structlog

from featureprune.metadata import cargo_binary

log = structlog.get_logger("featureprune.build")

# Keep failure details short in logs.
MAX_DETAIL_CHARS = 2000


@dataclass(frozen=True)
class BuildOptions:
    """What to build on every trial."""

    lib: bool = True
    bins: bool = True
    tests: bool = False
    benches: bool = False
    examples: bool = False
    jobs: int | None = None  # None: number of CPUs
    targets: tuple[str, ...] = ()  # Target triples; empty: host
    timeout: float | None = None

    @property
    def builds_nothing(self) -> bool:
        return not (self.lib or self.bins or self.tests or self.benches or self.examples)

    @property
    def target_selection(self) -> list[str]:
        """Cargo target selection flags; empty when cargo's default set (lib and bins) is wanted."""
        if self.lib and self.bins and not (self.tests or self.benches or self.examples):
            return []
        flags = [
            ("--lib", self.lib),
            ("--bins", self.bins),
            ("--tests", self.tests),
            ("--benches", self.benches),
            ("--examples", self.examples),
        ]
        return [flag for flag, enabled in flags if enabled]

    @property
    def effective_jobs(self) -> int:
        return self.jobs or os.cpu_count() or 1


@dataclass(frozen=True)
class BuildResult:
    """Outcome of one build."""

    success: bool
    detail: str = ""


@runtime_checkable
class BuildVerifier(Protocol):
    """Builds a package and reports success or failure.

    Implementations keep no state between calls.
    """

    def build(self, manifest_path: Path, options: BuildOptions) -> BuildResult:
        ...


def build_command(manifest_path: Path, options: BuildOptions) -> list[str]:
    """The cargo invocation for one trial build."""
    if options.builds_nothing:
        raise ValueError("At least one of lib, bins, tests, benches or examples must be built")
    cmd = [
        cargo_binary(),
        "build",
        "--manifest-path",
        str(manifest_path),
        "--quiet",
        "--jobs",
        str(options.effective_jobs),
    ]

    cmd.extend(options.target_selection)

    for target in options.targets:
        cmd.extend(["--target", target])

    return cmd


class CargoBuildVerifier:
    """Runs `cargo build` synchronously."""

    def build(self, manifest_path: Path, options: BuildOptions) -> BuildResult:
        cmd = build_command(manifest_path, options)
        log.debug("build.start", cmd=" ".join(cmd))

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=options.timeout,
                cwd=manifest_path.parent,
            )
        except FileNotFoundError as e:
            return BuildResult(success=False, detail=f"cargo not found: {e}")
        except subprocess.TimeoutExpired:
            return BuildResult(success=False, detail=f"build timed out after {options.timeout}s")

        if result.returncode != 0:
            return BuildResult(success=False, detail=result.stderr[-MAX_DETAIL_CHARS:])
        return BuildResult(success=True)
