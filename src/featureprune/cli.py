"""featureprune CLI - find and prune unused Cargo dependency features."""

import signal
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from featureprune import __version__
from featureprune.analysis.minimizer import FeatureMinimizer
from featureprune.analysis.runner import AnalysisOutcome, analyze_workspace
from featureprune.build import BuildOptions, CargoBuildVerifier
from featureprune.config import (
    get_build_options,
    get_report_dir,
    get_skip_dependencies,
    load_config,
    load_config_if_present,
)
from featureprune.errors import FeaturePruneError
from featureprune.logging import setup_logging
from featureprune.metadata import CargoMetadataProvider
from featureprune.models.report import Report
from featureprune.output.json_writer import load_report, write_report
from featureprune.output.markdown import write_markdown
from featureprune.output.tree import build_report_tree, display_tree
from featureprune.paths import (
    ensure_report_dir,
    get_config_path,
    get_markdown_report_path,
    get_report_path,
)
from featureprune.pruning import prune_report

app = typer.Typer(
    name="featureprune",
    help="Find and prune enabled but unused Cargo dependency features",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()

# Exit status after Ctrl-C, as a shell would report it.
INTERRUPTED_EXIT = 130
TERMINATED_EXIT = 128 + signal.SIGTERM


def version_callback(value: bool) -> None:
    if value:
        console.print(f"featureprune version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Find and prune enabled but unused Cargo dependency features."""


@app.command()
def analyze(
    workspace: Optional[Path] = typer.Option(
        None,
        "--workspace",
        "-w",
        help="Root directory of the package or workspace (default: current directory)",
    ),
    report_dir: Optional[Path] = typer.Option(
        None,
        "--report-dir",
        "-r",
        help="Directory for report.json (default: the workspace root)",
    ),
    jobs: Optional[int] = typer.Option(
        None,
        "--jobs",
        "-j",
        help="Number of parallel build jobs (default: number of CPUs)",
    ),
    skip: Optional[List[str]] = typer.Option(
        None,
        "--skip",
        "-s",
        help="Dependency to leave out of the analysis (repeatable)",
    ),
    lib: bool = typer.Option(True, "--lib/--no-lib", help="Build the library"),
    bins: bool = typer.Option(True, "--bins/--no-bins", help="Build all binaries"),
    tests: bool = typer.Option(False, "--tests", help="Build all tests"),
    benches: bool = typer.Option(False, "--benches", help="Build all benchmarks"),
    examples: bool = typer.Option(False, "--examples", help="Build all examples"),
    target: Optional[List[str]] = typer.Option(
        None,
        "--target",
        "-t",
        help="Target triple to build for (repeatable, default: host)",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to featureprune.json (default: <workspace>/featureprune.json)",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level (debug, info, warning, error)",
    ),
) -> None:
    """Analyze the workspace for enabled but unused features and write a report."""
    setup_logging(log_level)
    workspace_path = (workspace or Path.cwd()).resolve()
    config_data = _load_config(workspace_path, config)

    options = _merge_build_options(
        get_build_options(config_data), lib, bins, tests, benches, examples, jobs, target
    )
    report_dir = report_dir or get_report_dir(config_data) or workspace_path

    outcome = _run_analysis(
        workspace_path, options, _merge_skip(config_data, skip), "Feature Analysis"
    )
    report_path = _write_report(outcome.report, report_dir)
    console.print(f"\n[green]Report saved to:[/] {report_path}")
    _display_summary(outcome.report)
    _exit_on_failures(outcome)


@app.command("build-report")
def build_report(
    workspace: Optional[Path] = typer.Option(
        None,
        "--workspace",
        "-w",
        help="Root directory of the package or workspace (default: current directory)",
    ),
    report_dir: Optional[Path] = typer.Option(
        None,
        "--report-dir",
        "-r",
        help="Directory for report.json and report.md (default: current directory)",
    ),
    jobs: Optional[int] = typer.Option(
        None,
        "--jobs",
        "-j",
        help="Number of parallel build jobs (default: number of CPUs)",
    ),
    skip: Optional[List[str]] = typer.Option(
        None,
        "--skip",
        "-s",
        help="Dependency to leave out of the analysis (repeatable)",
    ),
    lib: bool = typer.Option(True, "--lib/--no-lib", help="Build the library"),
    bins: bool = typer.Option(True, "--bins/--no-bins", help="Build all binaries"),
    tests: bool = typer.Option(False, "--tests", help="Build all tests"),
    benches: bool = typer.Option(False, "--benches", help="Build all benchmarks"),
    examples: bool = typer.Option(False, "--examples", help="Build all examples"),
    target: Optional[List[str]] = typer.Option(
        None,
        "--target",
        "-t",
        help="Target triple to build for (repeatable, default: host)",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to featureprune.json (default: <workspace>/featureprune.json)",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level (debug, info, warning, error)",
    ),
) -> None:
    """Analyze like [bold]analyze[/], then also render report.md and show the full tree."""
    setup_logging(log_level)
    workspace_path = (workspace or Path.cwd()).resolve()
    config_data = _load_config(workspace_path, config)

    options = _merge_build_options(
        get_build_options(config_data), lib, bins, tests, benches, examples, jobs, target
    )
    report_dir = report_dir or get_report_dir(config_data) or Path.cwd()

    outcome = _run_analysis(
        workspace_path, options, _merge_skip(config_data, skip), "Report Builder"
    )
    report_path = _write_report(outcome.report, report_dir)
    markdown_path = get_markdown_report_path(report_dir)
    try:
        write_markdown(outcome.report, markdown_path)
    except OSError as e:
        console.print(f"[red]Failed to write {markdown_path}:[/] {e}")
        raise typer.Exit(1)

    console.print(f"\n[green]Report saved to:[/] {report_path}")
    console.print(f"[green]Summary saved to:[/] {markdown_path}")
    display_tree(build_report_tree(outcome.report))
    _exit_on_failures(outcome)


@app.command()
def prune(
    input_path: Path = typer.Option(
        ...,
        "--input",
        "-i",
        help="Path to the report.json written by analyze",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Show what would change without writing manifests",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level (debug, info, warning, error)",
    ),
) -> None:
    """Remove the features a report marked removable from the manifests."""
    setup_logging(log_level)
    console.print(Panel.fit("[bold blue]featureprune - Prune[/]"))

    try:
        report = load_report(input_path)
    except FeaturePruneError as e:
        console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1)

    console.print(f"\n[dim]Loaded report:[/] {input_path}")

    summary = prune_report(report, dry_run=dry_run)

    if dry_run:
        console.print("[yellow]Dry run - no files written.[/]")
        display_tree(build_report_tree(report))
    for path in summary.updated:
        console.print(f"[green]✓[/] Updated {path}")
    console.print(f"\n[dim]Dependencies pruned:[/] {summary.pruned_dependencies}")

    if not summary.ok:
        for failure in summary.failures:
            console.print(f"[red]✗[/] {failure}")
        raise typer.Exit(1)


@app.command()
def show(
    report_path: Optional[Path] = typer.Argument(
        None,
        help="Path to report file (default: ./report.json)",
    ),
) -> None:
    """Display a report from a previous analysis run."""
    setup_logging()
    if report_path is None:
        report_path = get_report_path(Path.cwd())

    if not report_path.exists():
        console.print(f"[red]Report file not found:[/] {report_path}")
        raise typer.Exit(1)

    try:
        report = load_report(report_path)
    except FeaturePruneError as e:
        console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1)

    display_tree(build_report_tree(report))


def _load_config(workspace_path: Path, config_path: Optional[Path]) -> dict:
    if config_path is None:
        return load_config_if_present(get_config_path(workspace_path))
    if not config_path.exists():
        console.print(f"[red]Config file not found:[/] {config_path}")
        raise typer.Exit(1)
    return load_config(config_path)


def _merge_skip(config: dict, skip: Optional[List[str]]) -> set[str]:
    return set(get_skip_dependencies(config)) | set(skip or [])


def _merge_build_options(
    base: BuildOptions,
    lib: bool,
    bins: bool,
    tests: bool,
    benches: bool,
    examples: bool,
    jobs: Optional[int],
    targets: Optional[List[str]],
) -> BuildOptions:
    """Combine command line flags with the configuration file.

    Either source can switch off the library or binaries and switch on tests,
    benches or examples. Jobs and targets from the command line win.
    """
    options = BuildOptions(
        lib=lib and base.lib,
        bins=bins and base.bins,
        tests=tests or base.tests,
        benches=benches or base.benches,
        examples=examples or base.examples,
        jobs=jobs or base.jobs,
        targets=tuple(targets) if targets else base.targets,
        timeout=base.timeout,
    )
    if options.builds_nothing:
        raise typer.BadParameter(
            "nothing left to build; enable at least one of --lib, --bins, --tests, --benches, --examples"
        )
    return options


def _run_analysis(
    workspace_path: Path,
    options: BuildOptions,
    skip: set[str],
    title: str,
) -> AnalysisOutcome:
    """Run the analysis with a progress bar; manifests are restored on every exit."""
    console.print(Panel.fit(f"[bold blue]featureprune - {title}[/]"))
    console.print(f"\n[dim]Workspace:[/] {workspace_path}")
    console.print(f"[dim]Build jobs:[/] {options.effective_jobs}")
    if options.targets:
        console.print(f"[dim]Targets:[/] {', '.join(options.targets)}")
    if skip:
        console.print(f"[dim]Skipping:[/] {', '.join(sorted(skip))}")
    console.print()

    # SIGTERM only stops the run between trials; a running build is never cut short.
    terminated: list[int] = []

    def request_stop(signum, frame) -> None:
        terminated.append(signum)

    previous_handler = signal.signal(signal.SIGTERM, request_stop)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as progress:
            tasks: dict[str, int] = {}
            current: list[str] = []

            def on_package(name: str, features: dict[str, frozenset[str]]) -> None:
                builds = sum(len(f) for f in features.values())
                tasks[name] = progress.add_task(
                    f"{name}: {builds} builds over {len(features)} dependencies",
                    total=max(builds, 1),
                    completed=0 if builds else 1,
                )
                current[:] = [name]

            def on_trial(dependency: str, feature: str, removable: bool) -> None:
                progress.update(
                    tasks[current[0]],
                    advance=1,
                    description=f"{current[0]}: {dependency} without '{feature}'",
                )

            minimizer = FeatureMinimizer(
                CargoBuildVerifier(),
                options,
                on_trial=on_trial,
                stop_requested=lambda: bool(terminated),
            )
            outcome = analyze_workspace(
                workspace_path,
                minimizer,
                CargoMetadataProvider(),
                skip=skip,
                on_package=on_package,
            )
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted. Manifests were restored; no report written.[/]")
        raise typer.Exit(INTERRUPTED_EXIT)
    except FeaturePruneError as e:
        console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1)
    finally:
        signal.signal(signal.SIGTERM, previous_handler)

    return outcome


def _write_report(report: Report, report_dir: Path) -> Path:
    report_path = get_report_path(ensure_report_dir(report_dir))
    try:
        write_report(report, report_path)
    except FeaturePruneError as e:
        console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1)
    return report_path


def _display_summary(report: Report) -> None:
    """Display a removable-features summary table."""
    table = Table(show_header=True, box=None, padding=(0, 2))
    table.add_column("Package", style="cyan")
    table.add_column("Dependency")
    table.add_column("Removable", style="red")
    table.add_column("Required", style="green")

    for package_name, package in sorted(report.packages.items()):
        for dep_name, dep in sorted(package.dependencies.items()):
            table.add_row(
                package_name,
                dep_name,
                ", ".join(sorted(dep.removable_features)),
                ", ".join(sorted(dep.required_features)) or "-",
            )

    if not report.packages:
        console.print("[green]✓[/] No removable features found")
        return

    console.print(Panel(table, title="[bold]Removable Features[/]", border_style="blue"))
    console.print(
        f"Run [bold]featureprune prune -i <report.json>[/] to apply "
        f"{report.removable_count} removal(s)."
    )


def _exit_on_failures(outcome: AnalysisOutcome) -> None:
    if outcome.ok and not outcome.stopped:
        return
    console.print()
    for failure in outcome.failures:
        console.print(f"[red]✗[/] {failure.package}: {failure.error}")
    if outcome.stopped:
        console.print("[yellow]Terminated. Manifests were restored; the report is partial.[/]")
        raise typer.Exit(TERMINATED_EXIT)
    raise typer.Exit(1)


if __name__ == "__main__":
    app()
