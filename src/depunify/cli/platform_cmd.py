"""``depunify eval-cfg`` and ``depunify targets`` -- Platform predicates.

``eval-cfg`` evaluates a dependency condition (``cfg(...)`` or a plain
triple) against one or more platforms, or against every builtin target when
none is given. ``targets`` lists the builtin target table.

Exit Codes:
    0 -- Evaluation printed (whether or not anything matched).
    2 -- The condition or a platform string is malformed.
"""

from __future__ import annotations

import sys

import click

from depunify.core.platform import BUILTIN_TARGETS, Platform, TargetSpec
from depunify.exceptions import ParseError


@click.command("eval-cfg")
@click.argument("spec")
@click.option(
    "--platform", "-p", "platforms",
    multiple=True,
    help="Platform to evaluate against (triple[+feature...]); repeatable.",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
def eval_cfg_command(spec: str, platforms: tuple[str, ...], output_format: str) -> None:
    """Evaluate the dependency condition SPEC on platforms.

    SPEC is either ``cfg(...)`` or a target triple. Without --platform,
    every builtin target is evaluated.
    """
    from depunify.cli.output import print_cfg_matches, print_error, print_json

    try:
        target_spec = TargetSpec.parse(spec)
        parsed = [Platform.parse(p) for p in platforms] or [
            Platform.parse(triple) for triple in sorted(BUILTIN_TARGETS)
        ]
    except ParseError as exc:
        print_error(exc)
        sys.exit(2)

    matches = {str(p): target_spec.eval(p) for p in sorted(set(parsed))}
    if output_format == "json":
        print_json({"spec": str(target_spec), "matches": matches})
    else:
        print_cfg_matches(str(target_spec), matches)


@click.command("targets")
def targets_command() -> None:
    """List the builtin target triples and their attributes."""
    from rich.table import Table

    from depunify.cli.output import console

    table = Table(title="Builtin Targets", show_header=True, header_style="bold")
    table.add_column("Triple", style="bold")
    table.add_column("Arch")
    table.add_column("OS")
    table.add_column("Env", style="dim")
    table.add_column("Family", style="dim")
    for triple in sorted(BUILTIN_TARGETS):
        info = BUILTIN_TARGETS[triple]
        table.add_row(
            triple, info.arch, info.os, info.env or "-",
            ", ".join(info.families) or "-",
        )
    console.print(table)
    console.print(f"{len(BUILTIN_TARGETS)} targets")
