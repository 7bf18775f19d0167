"""Rich tree visualization for reports."""

from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from featureprune.models.report import Report

console = Console()


def build_report_tree(report: Report) -> Tree:
    """Build a Rich tree showing findings by package and dependency."""
    root = Tree(f"[bold]{report.root_name}[/]", guide_style="dim")

    if not report.packages:
        root.add("[green]No removable features found[/]")
        return root

    for package_name, package in sorted(report.packages.items()):
        package_node = root.add(
            f"[bold blue]{package_name}[/] [dim]({package.manifest_path})[/]"
        )

        for dep_name, dep in sorted(package.dependencies.items()):
            dep_node = package_node.add(
                f"[yellow]{dep_name}[/] "
                f"[dim]({len(dep.removable_features)} of {len(dep.original_features)} removable)[/]"
            )

            for feature in sorted(dep.original_features):
                item_text = Text()
                if feature in dep.removable_features:
                    item_text.append("x ", style="red bold")
                    item_text.append(feature, style="red")
                elif feature in dep.required_features:
                    item_text.append("✓ ", style="green bold")
                    item_text.append(feature, style="green")
                else:
                    item_text.append("? ", style="dim")
                    item_text.append(f"{feature} (untested)", style="dim")
                dep_node.add(item_text)

    return root


def display_tree(tree: Tree) -> None:
    """Display the tree to console."""
    console.print()
    console.print(tree)
    console.print()
