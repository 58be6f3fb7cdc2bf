"""depunify CLI -- Feature unification for build-tool workspaces.

Entry point for the ``depunify`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    graph     -- Show the package graph of a metadata snapshot.
    unify     -- Compute unified features and optionally save a summary.
    check     -- Verify a saved summary against a snapshot.
    eval-cfg  -- Evaluate a dependency condition on platforms.
    targets   -- List the builtin target triples.

Usage::

    depunify graph metadata.json
    depunify unify metadata.json -p x86_64-unknown-linux-gnu -o summary.json
    depunify unify metadata.json --config summary.json --include-dev
    depunify check metadata.json summary.json
    depunify eval-cfg 'cfg(all(unix, target_arch = "aarch64"))'
"""

from __future__ import annotations

import logging

import click

from depunify import __version__
from depunify.cli.check_cmd import check_command
from depunify.cli.graph_cmd import graph_command
from depunify.cli.platform_cmd import eval_cfg_command, targets_command
from depunify.cli.unify_cmd import unify_command

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Log progress to stderr.")
def cli(verbose: bool) -> None:
    """depunify: Feature unification for build-tool workspaces.

    Reads resolved dependency metadata, evaluates platform-conditional
    dependencies and computes the features each shared dependency must be
    built with so that workspace members can share one build.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format=LOG_FORMAT)


# Register all subcommands
cli.add_command(graph_command)
cli.add_command(unify_command)
cli.add_command(check_command)
cli.add_command(eval_cfg_command)
cli.add_command(targets_command)
