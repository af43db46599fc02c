"""
Toolpack — CLI entrypoint.

Usage:
    python -m src.main --help
    python -m src.main build --stack io.buildpacks.stacks.bionic
    python -m src.main resolve --json
    python -m src.main inspect
"""

from __future__ import annotations

import io
import json
import os
import sys
from pathlib import Path
from typing import NoReturn

import click

from src import __version__
from src.core.config.loader import ConfigError, find_config_file, load_config
from src.core.models.buildpack import BuildpackConfig
from src.core.observability.logging_config import resolve_level, setup_logging
from src.core.services.layer_build.domain import LayerBuildError


@click.group()
@click.version_option(version=__version__, prog_name="toolpack")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to buildpack.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Toolpack — resolve, reuse or rebuild a tool layer."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet, environ=os.environ),
        log_file=os.environ.get("TOOLPACK_LOG_FILE"),
        log_file_level=os.environ.get("TOOLPACK_LOG_FILE_LEVEL"),
    )


def _load_config(ctx: click.Context, as_json: bool = False) -> BuildpackConfig:
    """Load buildpack.yml or exit with a readable error."""
    path = ctx.obj.get("config_path") or find_config_file()
    try:
        return load_config(path)
    except ConfigError as e:
        _fail(str(e), type(e).__name__, as_json)


def _fail(message: str, kind: str, as_json: bool) -> NoReturn:
    if as_json:
        click.echo(json.dumps({"error": message, "type": kind}, indent=2))
    else:
        click.secho(f"❌ {message}", fg="red", err=True)
    sys.exit(1)


_app_dir_option = click.option(
    "--app-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="CNB_APP_DIR",
    default=".",
    show_default=True,
    help="Application source directory (holds the lock file).",
)
_stack_option = click.option(
    "--stack",
    "stack_id",
    envvar="CNB_STACK_ID",
    required=True,
    help="Build stack identifier (env: CNB_STACK_ID).",
)
_layers_dir_option = click.option(
    "--layers-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="CNB_LAYERS_DIR",
    default="/layers",
    show_default=True,
    help="Root of the layers directory.",
)


@cli.command()
@_app_dir_option
@_layers_dir_option
@_stack_option
@click.option(
    "--timeout",
    type=float,
    envvar="TOOLPACK_INSTALL_TIMEOUT",
    default=60.0,
    show_default=True,
    help="Download timeout in seconds.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def build(
    ctx: click.Context,
    app_dir: Path,
    layers_dir: Path,
    stack_id: str,
    timeout: float,
    as_json: bool,
) -> None:
    """Resolve the tool version and reuse or rebuild its layer.

    Examples:

        toolpack build --stack io.buildpacks.stacks.bionic

        BP_BUNDLER_VERSION=2.1.* toolpack build --layers-dir ./layers
    """
    from src.core.observability.build_log import Emitter
    from src.core.use_cases.build import run_build

    config = _load_config(ctx, as_json)
    emitter = Emitter(io.StringIO()) if as_json else Emitter()

    try:
        result = run_build(
            config,
            app_dir=app_dir,
            layers_dir=layers_dir,
            stack_id=stack_id,
            emitter=emitter,
            timeout=timeout,
        )
    except LayerBuildError as e:
        _fail(str(e), type(e).__name__, as_json)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))


@cli.command()
@_app_dir_option
@_stack_option
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def resolve(ctx: click.Context, app_dir: Path, stack_id: str, as_json: bool) -> None:
    """Show which version would be installed, and why."""
    from src.core.observability.build_log import Emitter
    from src.core.use_cases.resolve import resolve_version

    config = _load_config(ctx, as_json)
    emitter = Emitter(io.StringIO()) if as_json else Emitter()

    try:
        resolution = resolve_version(
            config,
            app_dir=app_dir,
            stack_id=stack_id,
            environ=os.environ,
            emitter=emitter,
        )
    except LayerBuildError as e:
        _fail(str(e), type(e).__name__, as_json)

    if as_json:
        click.echo(json.dumps(resolution.to_dict(), indent=2))


@cli.command()
@_layers_dir_option
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def inspect(ctx: click.Context, layers_dir: Path, as_json: bool) -> None:
    """Show the metadata recorded by the last rebuild."""
    from src.core.persistence.layer_store import LayerStore

    config = _load_config(ctx, as_json)
    store = LayerStore(layers_dir / config.buildpack.layer_namespace)
    layer = config.tool.layer

    try:
        md = store.load(layer)
    except LayerBuildError as e:
        _fail(str(e), type(e).__name__, as_json)

    if as_json:
        click.echo(json.dumps(md.to_record() if md else None, indent=2))
        return

    if md is None:
        click.secho(f"No layer metadata recorded for {layer}", fg="yellow")
        return

    click.secho(f"\n📦 {layer}", fg="cyan", bold=True)
    click.echo(f"   Path:     {store.layer_path(layer)}")
    click.echo(f"   Version:  {md.fingerprint.version}")
    click.echo(f"   Source:   {md.fingerprint.source_name}")
    click.echo(f"   Stack:    {md.fingerprint.stack_id}")
    click.echo(f"   Built at: {md.built_at}")
    click.echo()


if __name__ == "__main__":
    cli()
