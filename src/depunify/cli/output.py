"""Rich output formatting helpers for the depunify CLI.

Provides consistent terminal output for graph overviews, unification
results, summary diffs, cfg evaluation and errors. Machine-readable output
goes through ``print_json`` instead.
"""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from depunify.core.graph import PackageGraph
from depunify.core.unify import BuildPlatform, UnifiedResult
from depunify.exceptions import DepUnifyError, SummaryError

console = Console()
err_console = Console(stderr=True)


def _features_text(features: frozenset[str] | None) -> Text:
    if features is None:
        return Text("-", style="dim")
    if not features:
        return Text("(none)", style="dim")
    return Text(", ".join(sorted(features)))


def print_error(exc: DepUnifyError) -> None:
    """Print a library error to stderr, one line per summary problem."""
    if isinstance(exc, SummaryError):
        err_console.print("[bold red]Error:[/bold red] invalid summary")
        for field, message in exc.problems:
            err_console.print(f"  [red]- {escape(field)}: {escape(message)}[/red]")
        return
    err_console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")


def print_graph_overview(graph: PackageGraph) -> None:
    """Print one row per package: membership, dependency count, features."""
    table = Table(title="Package Graph", show_header=True, header_style="bold")
    table.add_column("Package", style="bold")
    table.add_column("Member", justify="center")
    table.add_column("Deps", justify="right")
    table.add_column("Resolved Features")

    for package in graph.packages():
        member = Text("yes", style="green") if package.in_workspace else Text("-", style="dim")
        deps = len(graph.direct_dependencies(package.id))
        table.add_row(package.id, member, str(deps), _features_text(package.resolved_features))

    console.print(table)
    console.print(
        f"[bold]{graph.package_count}[/bold] packages | "
        f"{graph.edge_count} edges | "
        f"{len(graph.workspace_members())} workspace members"
    )


def print_package_detail(graph: PackageGraph, package_id: str) -> None:
    """Print a package's declared features and its outgoing edges."""
    package = graph.package(package_id)
    header = Text.assemble(
        ("Package: ", "bold"), (package.id, ""),
        ("  Member: ", "bold"), ("yes" if package.in_workspace else "no", ""),
    )
    console.print(Panel(header, title="Package"))

    if package.features:
        feat_table = Table(title="Features", show_header=True)
        feat_table.add_column("Feature", style="bold")
        feat_table.add_column("Enables")
        for name in sorted(package.features):
            feat_table.add_row(name, ", ".join(package.features[name]))
        console.print(feat_table)

    edges = graph.direct_dependencies(package_id)
    if not edges:
        console.print("[dim]No dependencies.[/dim]")
        return
    dep_table = Table(title="Dependencies", show_header=True)
    dep_table.add_column("Name", style="bold")
    dep_table.add_column("Package")
    dep_table.add_column("Kind")
    dep_table.add_column("Condition", style="dim")
    dep_table.add_column("Optional", justify="center")
    for edge in edges:
        dep_table.add_row(
            edge.dep_name, edge.target, edge.kind.value,
            str(edge.target_spec) if edge.target_spec else "-",
            "yes" if edge.optional else "-",
        )
    console.print(dep_table)


def print_unified_result(result: UnifiedResult) -> None:
    """Print the packages that need a unified build and their features."""
    platforms = ", ".join(result.platforms) or "<any platform>"
    header = Text.assemble(
        ("Platforms: ", "bold"), (platforms, ""),
        ("  Resolver: ", "bold"), (result.resolver_version.value, ""),
        ("  Dev: ", "bold"), ("yes" if result.include_dev else "no", ""),
    )
    console.print(Panel(header, title="Feature Unification"))

    if result.omitted:
        console.print(f"  Omitted: [dim]{', '.join(result.omitted_packages())}[/dim]")

    unified = result.unified_packages()
    if not unified:
        console.print("[green]No packages need unification.[/green]")
    else:
        table = Table(title="Unified Packages", show_header=True, header_style="bold")
        table.add_column("Package", style="bold")
        table.add_column("Target Features")
        table.add_column("Host Features")
        for pkg_id, tracks in unified.items():
            table.add_row(
                pkg_id,
                _features_text(tracks.get(BuildPlatform.TARGET)),
                _features_text(tracks.get(BuildPlatform.HOST)),
            )
        console.print(table)

    console.print(
        f"[bold]{len(result.features)}[/bold] packages reached | "
        f"{len(unified)} need unification"
    )


def print_summary_diff(diff: dict[str, Any]) -> None:
    """Print the differences between a stored and a recomputed summary."""
    if not any(diff.values()):
        console.print(
            Panel("[bold green]Summary is up to date[/bold green]", title="Check")
        )
        return

    console.print(Panel("[bold red]Summary is out of date[/bold red]", title="Check"))
    for name in diff["config"]:
        console.print(f"  [yellow]~ config: {name}[/yellow]")
    for pkg_id in diff["added"]:
        console.print(f"  [green]+ {pkg_id}[/green]")
    for pkg_id in diff["removed"]:
        console.print(f"  [red]- {pkg_id}[/red]")
    for change in diff["changed"]:
        parts = [f"+{f}" for f in change["added"]] + [f"-{f}" for f in change["removed"]]
        console.print(
            f"  [cyan]~ {change['id']} ({change['track']}): {' '.join(parts)}[/cyan]"
        )


def print_cfg_matches(spec: str, matches: dict[str, bool]) -> None:
    """Print whether ``spec`` holds on each platform."""
    table = Table(title=f"Evaluating {spec}", show_header=True, header_style="bold")
    table.add_column("Platform", style="bold")
    table.add_column("Active", justify="center")
    for platform, active in matches.items():
        status = Text("yes", style="bold green") if active else Text("no", style="dim")
        table.add_row(platform, status)
    console.print(table)
    console.print(f"{sum(matches.values())} of {len(matches)} platforms match")


def print_json(data: Any) -> None:
    """Print data as indented JSON with sorted keys."""
    console.print_json(json.dumps(data, sort_keys=True, default=str))
