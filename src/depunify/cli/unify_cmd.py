"""``depunify unify <metadata>`` -- Compute unified features for a workspace.

Builds the package graph, configures a ``UnifyBuilder`` from the command
line (optionally seeded from a saved summary with ``--config``), computes the
unified result and prints the packages that need a shared build. The
result's summary can be written with ``--output`` and checked later with
``depunify check``.

Exit Codes:
    0 -- Unification computed.
    1 -- The configuration is invalid for this graph.
    2 -- The snapshot, a platform string or the config file is malformed.
"""

from __future__ import annotations

import dataclasses
import sys
from pathlib import Path

import click

from depunify.core.platform import Platform
from depunify.core.unify import ResolverVersion, SeedFeatures, Summary, UnifyTargetHost
from depunify.exceptions import ConfigError, ParseError, SummaryError


def _merge_options(
    base: Summary,
    platforms: tuple[str, ...],
    resolver: str | None,
    include_dev: bool | None,
    omit: tuple[str, ...],
    aggregate: str | None,
    verify_mode: bool | None,
    unify_target_host: str | None,
    unify_all: bool | None,
    seed_features: str | None,
) -> Summary:
    """Overlay explicit command-line options onto a base configuration.

    Options left unset keep the base value; ``--omit`` ids are added to the
    base's omitted set.

    Raises:
        TripleParseError: If a platform string is malformed.
    """
    overrides: dict = {"packages": {}}
    if platforms:
        overrides["platforms"] = tuple(sorted(
            {Platform.parse(p).as_canonical_string() for p in platforms}
        ))
    if resolver is not None:
        overrides["resolver"] = ResolverVersion(resolver)
    if include_dev is not None:
        overrides["include_dev"] = include_dev
    if omit:
        overrides["omitted_packages"] = base.omitted_packages | frozenset(omit)
    if aggregate is not None:
        overrides["aggregation_package"] = aggregate
    if verify_mode is not None:
        overrides["verify_mode"] = verify_mode
    if unify_target_host is not None:
        overrides["unify_target_host"] = UnifyTargetHost(unify_target_host)
    if unify_all is not None:
        overrides["unify_all"] = unify_all
    if seed_features is not None:
        overrides["seed_features"] = SeedFeatures(seed_features)
    return dataclasses.replace(base, **overrides)


@click.command("unify")
@click.argument("metadata", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--platform", "-p", "platforms",
    multiple=True,
    help="Platform to evaluate (triple[+feature...]); repeatable.",
)
@click.option(
    "--resolver",
    type=click.Choice([v.value for v in ResolverVersion]),
    default=None,
    help="Feature resolver version (default: 2).",
)
@click.option(
    "--include-dev/--no-include-dev",
    default=None,
    help="Unify features of dev dependencies too.",
)
@click.option(
    "--omit",
    multiple=True,
    help="Workspace member id to leave out; repeatable.",
)
@click.option(
    "--aggregate",
    default=None,
    help="Workspace member id that holds the unified dependencies.",
)
@click.option(
    "--verify/--no-verify", "verify_mode",
    default=None,
    help="Include the aggregation package in the pass.",
)
@click.option(
    "--unify-target-host",
    type=click.Choice([p.value for p in UnifyTargetHost]),
    default=None,
    help="Merge or separate build-time and runtime features (default: auto).",
)
@click.option(
    "--unify-all/--no-unify-all",
    default=None,
    help="Unify every member into one assignment.",
)
@click.option(
    "--seed-features",
    type=click.Choice([s.value for s in SeedFeatures]),
    default=None,
    help="Seed members with declared defaults or resolved features.",
)
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Summary JSON whose configuration seeds these options.",
)
@click.option(
    "--output", "-o",
    type=click.Path(),
    default=None,
    help="Write the result's summary JSON to this path.",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
def unify_command(
    metadata: str,
    platforms: tuple[str, ...],
    resolver: str | None,
    include_dev: bool | None,
    omit: tuple[str, ...],
    aggregate: str | None,
    verify_mode: bool | None,
    unify_target_host: str | None,
    unify_all: bool | None,
    seed_features: str | None,
    config_path: str | None,
    output: str | None,
    output_format: str,
) -> None:
    """Compute the unified feature sets of the workspace in METADATA.

    Exit code 0 on success, 1 on an invalid configuration, 2 on malformed
    input.
    """
    from depunify.cli.graph_cmd import load_graph
    from depunify.cli.output import print_error, print_json, print_unified_result

    graph = load_graph(metadata)

    try:
        base = Summary.read(Path(config_path)) if config_path else Summary()
        config = _merge_options(
            base, platforms, resolver, include_dev, omit, aggregate,
            verify_mode, unify_target_host, unify_all, seed_features,
        )
    except (ParseError, SummaryError) as exc:
        print_error(exc)
        sys.exit(2)

    try:
        result = config.to_result(graph)
    except (ConfigError, SummaryError) as exc:
        print_error(exc)
        sys.exit(1)

    if output:
        out_path = Path(output)
        result.to_summary().write(out_path)

    if output_format == "json":
        print_json(result.to_dict())
    else:
        print_unified_result(result)
        if output:
            click.echo(f"\nSummary written to: {output}")
