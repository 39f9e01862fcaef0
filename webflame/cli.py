#!/usr/bin/env python3
"""
cli.py

Command-line interface for visualizing profiles as flame graphs, in the
browser or in the terminal.
"""
import logging
from datetime import datetime

import click
from rich import print

from webflame.errors import ProfileLoadError
from webflame.exporters import terminal
from webflame.exporters.html import FlameGraphConfig, select_sample_index
from webflame.flamegraph import build_profile_tree
from webflame import loaders
from webflame.loaders import telemetry_db

profile_argument = click.argument("profile_path", metavar="PROFILE")
trace_option = click.option(
    "--trace-id", default=None,
    help="Trace to load from a telemetry database (latest if omitted)",
)
sample_index_option = click.option(
    "--sample-index", envvar="WEBFLAME_SAMPLE_INDEX", default=None,
    help="Default sample type to display, by name or index",
)


def _load(profile_path, trace_id):
    try:
        stdin = click.open_file("-") if profile_path == "-" else None
        return loaders.load(profile_path, trace_id, stdin=stdin)
    except ProfileLoadError as exc:
        click.echo(str(exc), err=True)
        raise SystemExit(1)


def _print_tree(profile, sample_index):
    config = FlameGraphConfig(sample_index=sample_index)
    index = select_sample_index(profile, None, config)
    root = build_profile_tree(profile, index)
    print(terminal.build_rich_tree(root, profile.sample_types[index].unit))


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose):
    """
    Render sampled call stacks as flame graphs.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@main.command()
@profile_argument
@trace_option
@sample_index_option
@click.option("--host", envvar="WEBFLAME_HOST", default="127.0.0.1", show_default=True)
@click.option("--port", envvar="WEBFLAME_PORT", default=8080, type=int, show_default=True)
def serve(profile_path, trace_id, sample_index, host, port):
    """Serve the flame graph of PROFILE at /flamegraph."""
    from webflame.server import create_app

    profile = _load(profile_path, trace_id)
    app = create_app(profile, FlameGraphConfig(sample_index=sample_index))
    click.echo(f"Serving flame graph at http://{host}:{port}/flamegraph")
    app.run(host=host, port=port)


@main.command()
@profile_argument
@trace_option
@sample_index_option
def show(profile_path, trace_id, sample_index):
    """Print the flame graph of PROFILE as a tree."""
    profile = _load(profile_path, trace_id)
    _print_tree(profile, sample_index)


@main.command()
@click.option(
    "--data-dir", type=click.Path(file_okay=False), default=None,
    help="Directory holding <service>/telemetry.db (default: $XDG_DATA_HOME/cli-telemetry)",
)
@sample_index_option
def browse(data_dir, sample_index):
    """
    Browse available telemetry databases and visualize selected traces.
    """
    dbs = telemetry_db.find_databases(data_dir)
    if not dbs:
        click.echo("No telemetry databases found.", err=True)
        raise SystemExit(1)
    click.echo("Available databases:")
    for idx, (service, path) in enumerate(dbs, start=1):
        click.echo(f"  [{idx}] {service} ({path})")
    db_choice = click.prompt(
        "Select database", type=click.IntRange(1, len(dbs))
    )
    _, selected_db = dbs[db_choice - 1]

    try:
        traces = telemetry_db.list_traces(selected_db, limit=10)
    except ProfileLoadError as exc:
        click.echo(str(exc), err=True)
        raise SystemExit(1)
    if not traces:
        click.echo("No traces found in the selected database.", err=True)
        raise SystemExit(1)
    click.echo("\nAvailable traces:")
    for idx, (trace_id, _count, ts) in enumerate(traces, start=1):
        dt = datetime.fromtimestamp(ts / 1_000_000).isoformat()
        click.echo(f"  [{idx}] {trace_id} (started at {dt})")
    trace_choice = click.prompt(
        "Select trace", type=click.IntRange(1, len(traces))
    )
    trace_id = traces[trace_choice - 1][0]

    profile = _load(selected_db, trace_id)
    _print_tree(profile, sample_index)


if __name__ == "__main__":
    main()
