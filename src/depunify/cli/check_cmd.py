"""``depunify check <metadata> <summary>`` -- Verify a saved summary.

Replays the configuration stored in a summary against the current snapshot
and compares the recomputed features with the stored ones.

Exit Codes:
    0 -- The summary matches the snapshot.
    1 -- The summary is out of date, or its configuration no longer fits.
    2 -- The snapshot or the summary file is malformed.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from depunify.core.unify import Summary
from depunify.exceptions import ConfigError, SummaryError


@click.command("check")
@click.argument("metadata", type=click.Path(exists=True, dir_okay=False))
@click.argument("summary", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
def check_command(metadata: str, summary: str, output_format: str) -> None:
    """Check that SUMMARY is up to date with the METADATA snapshot.

    Exit code 0 if it is, 1 if it differs, 2 on malformed input.
    """
    from depunify.cli.graph_cmd import load_graph
    from depunify.cli.output import print_error, print_json, print_summary_diff

    graph = load_graph(metadata)

    try:
        stored = Summary.read(Path(summary))
    except SummaryError as exc:
        print_error(exc)
        sys.exit(2)

    try:
        fresh = stored.to_result(graph).to_summary()
    except (ConfigError, SummaryError) as exc:
        print_error(exc)
        sys.exit(1)

    diff = stored.diff(fresh)
    up_to_date = not any(diff.values())
    if output_format == "json":
        print_json({"up_to_date": up_to_date, **diff})
    else:
        print_summary_diff(diff)

    sys.exit(0 if up_to_date else 1)
