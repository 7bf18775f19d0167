"""Output modules for report files and CLI display."""

from featureprune.output.json_writer import load_report, write_report
from featureprune.output.markdown import render_markdown, write_markdown
from featureprune.output.tree import build_report_tree, display_tree

__all__ = [
    "build_report_tree",
    "display_tree",
    "load_report",
    "render_markdown",
    "write_markdown",
    "write_report",
]
