"""Human-readable markdown rendering of a report."""

from pathlib import Path

from featureprune.models.report import Report


def render_markdown(report: Report) -> str:
    lines = [
        f"# Unused features of {report.root_name}",
        "",
        f"Report version {report.version}. "
        f"{report.removable_count} removable feature(s) in {len(report.packages)} package(s).",
        "",
    ]

    for package_name, package in sorted(report.packages.items()):
        lines.append(f"## {package_name}")
        lines.append("")
        lines.append(f"Manifest: `{package.manifest_path}`")
        lines.append("")
        lines.append("| Dependency | Removable | Required | Kept after prune |")
        lines.append("|---|---|---|---|")
        for dep_name, dep in sorted(package.dependencies.items()):
            lines.append(
                f"| {dep_name} "
                f"| {_features(dep.removable_features)} "
                f"| {_features(dep.required_features)} "
                f"| {_features(dep.kept_features)} |"
            )
        lines.append("")

    return "\n".join(lines)


def _features(features) -> str:
    if not features:
        return "-"
    return ", ".join(f"`{feature}`" for feature in sorted(features))


def write_markdown(report: Report, output_path: Path) -> None:
    """Write the report.md file."""
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(render_markdown(report))
