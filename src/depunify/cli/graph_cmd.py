"""``depunify graph <metadata>`` -- Inspect the package graph of a snapshot.

Reads a resolved-metadata JSON snapshot, builds the package graph and prints
either an overview of every package or the details of one package.

Exit Codes:
    0 -- Graph built and printed.
    2 -- The snapshot could not be read or the graph could not be built.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from depunify.core.graph import PackageGraph, ResolvedMetadata
from depunify.exceptions import GraphError, UnknownPackageError


def load_graph(path: str) -> PackageGraph:
    """Read a metadata snapshot and build its graph, exiting 2 on failure.

    Args:
        path: Path to the snapshot JSON.

    Returns:
        The built package graph.
    """
    from depunify.cli.output import print_error

    try:
        return ResolvedMetadata.read(Path(path)).build_graph()
    except GraphError as exc:
        print_error(exc)
        sys.exit(2)


def _graph_to_json(graph: PackageGraph) -> dict:
    """Convert the graph to a JSON-serializable dict keyed by package id."""
    out: dict[str, dict] = {}
    for package in graph.packages():
        out[package.id] = {
            "name": package.name,
            "version": package.version,
            "workspace_member": package.in_workspace,
            "resolved_features": sorted(package.resolved_features),
            "dependencies": [
                {
                    "name": edge.dep_name,
                    "package": edge.target,
                    "kind": edge.kind.value,
                    "target": str(edge.target_spec) if edge.target_spec else None,
                    "optional": edge.optional,
                }
                for edge in graph.direct_dependencies(package.id)
            ],
        }
    return {"workspace_members": list(graph.workspace_members()), "packages": out}


@click.command("graph")
@click.argument("metadata", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--package", "-p", "package_id",
    default=None,
    help="Show the features and dependencies of one package id.",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
def graph_command(metadata: str, package_id: str | None, output_format: str) -> None:
    """Show the package graph built from a METADATA snapshot.

    Exit code 0 on success, 2 if the snapshot or package id is invalid.
    """
    from depunify.cli.output import (
        print_error,
        print_graph_overview,
        print_json,
        print_package_detail,
    )

    graph = load_graph(metadata)

    if package_id is not None:
        try:
            graph.package(package_id)
        except UnknownPackageError as exc:
            print_error(exc)
            sys.exit(2)

    if output_format == "json":
        data = _graph_to_json(graph)
        if package_id is not None:
            data = data["packages"][package_id]
        print_json(data)
    elif package_id is not None:
        print_package_detail(graph, package_id)
    else:
        print_graph_overview(graph)
