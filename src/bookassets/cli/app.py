"""Command line interface for Bookassets."""

from __future__ import annotations

import json
import logging
import pathlib
from typing import Optional

import typer
import yaml
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table, box

from bookassets import get_version
from bookassets.book import load_book
from bookassets.config import Config, load_config
from bookassets.core import Asset, AssetError, find
from bookassets.core.links import RemoteLink, classify
from bookassets.core.registry import CACHE_SUBDIR
from bookassets.fetchers import HttpFetcher, cache_path_for, default_fetchers
from bookassets.fetchers.cache import CACHE_KEY_SCHEME, CACHE_KEY_VERSION
from bookassets.logging import configure_logging
from bookassets.manifest import asset_to_dict, write_manifest


def _load_environment(env_file: Optional[pathlib.Path]) -> None:
    """Load environment variables from .env files."""

    if env_file is not None:
        load_dotenv(dotenv_path=env_file, override=True)
    else:
        load_dotenv(override=False)


def _prepare_logging(
    config: Config,
    override_path: Optional[pathlib.Path],
    override_level: Optional[str],
) -> logging.Logger:
    """Configure logging based on configuration and overrides."""

    configured_path = override_path or config.logging.path
    configured_level = (override_level or config.logging.level).upper()
    try:
        return configure_logging(
            log_path=configured_path,
            level=configured_level,
            mirror_to_console=False,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--log-level") from exc


def _resolve_destination(
    root: pathlib.Path, dest: Optional[pathlib.Path], config: Config
) -> pathlib.Path:
    if dest is not None:
        return dest if dest.is_absolute() else pathlib.Path.cwd() / dest
    configured = config.output.destination
    return configured if configured.is_absolute() else root / configured


def _build_http_fetcher(config: Config, logger: logging.Logger) -> HttpFetcher:
    settings = config.fetch
    return HttpFetcher.from_options(
        logger,
        options={
            "timeout": settings.timeout_seconds,
            "follow_redirects": settings.follow_redirects,
            "user_agent": settings.user_agent or f"bookassets/{get_version()}",
        },
    )


def _render_table(assets: list[Asset], console: Console) -> None:
    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Filename")
    table.add_column("Media type")
    table.add_column("Location on disk", overflow="fold")
    for index, asset in enumerate(assets, start=1):
        table.add_row(
            str(index),
            asset.filename.as_posix(),
            asset.mimetype,
            str(asset.location_on_disk),
        )
    console.print(table)


app = typer.Typer(
    name="bookassets",
    help="Resolve and cache the media assets referenced by a markdown book.",
    no_args_is_help=True,
    add_completion=False,
)

config_app = typer.Typer(help="Configuration utilities.", no_args_is_help=True)
app.add_typer(config_app, name="config")


def _version_callback(value: bool) -> None:
    """Print the package version and exit when requested."""

    if value:
        typer.echo(get_version())
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[pathlib.Path] = typer.Option(
        None,
        "--config",
        metavar="PATH",
        help="Path to YAML configuration file (used exclusively).",
    ),
    env_file: Optional[pathlib.Path] = typer.Option(
        None,
        "--env-file",
        metavar="PATH",
        help="Load environment variables from .env-style file before execution.",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        metavar="LEVEL",
        help="Override the configured log level (debug, info, warn, error).",
    ),
    log_path: Optional[pathlib.Path] = typer.Option(
        None,
        "--log-path",
        metavar="PATH",
        help="Override the base directory or file for log output.",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show Bookassets version and exit.",
    ),
) -> None:
    """CLI root; loads configuration, logging, and shared context."""

    ctx.ensure_object(dict)

    _load_environment(env_file)

    try:
        config_obj = load_config(config)
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc

    logger = _prepare_logging(config_obj, log_path, log_level)

    ctx.obj.update(
        {
            "config": config_obj,
            "config_path": config,
            "logger": logger,
        }
    )


@app.command()
def scan(
    ctx: typer.Context,
    root: pathlib.Path = typer.Argument(
        pathlib.Path("."),
        metavar="ROOT",
        help="Book root directory (contains the markdown source directory).",
    ),
    dest: Optional[pathlib.Path] = typer.Option(
        None,
        "--dest",
        metavar="PATH",
        help="Destination directory; remote assets are cached in its cache/ subdirectory.",
    ),
    src: Optional[str] = typer.Option(
        None,
        "--src",
        metavar="NAME",
        help="Markdown source subdirectory under ROOT (defaults to book.src).",
    ),
    format: str = typer.Option(
        "table",
        "--format",
        help="Output format (table or json).",
    ),
    manifest: bool = typer.Option(
        True,
        "--manifest/--no-manifest",
        help="Write the asset manifest into the destination directory.",
    ),
) -> None:
    """Resolve every image referenced by the book and report the assets."""

    config: Config = ctx.obj["config"]
    logger: logging.Logger = ctx.obj["logger"]

    normalized_format = format.strip().lower()
    if normalized_format not in {"table", "json"}:
        raise typer.BadParameter("Format must be 'table' or 'json'.", param_hint="--format")

    book_root = root if root.is_absolute() else pathlib.Path.cwd() / root
    src_subdir = src or config.book.src
    destination = _resolve_destination(book_root, dest, config)
    fetchers = default_fetchers(_build_http_fetcher(config, logger))

    try:
        items = load_book(book_root / src_subdir, summary=config.book.summary)
        assets = find(book_root, src_subdir, items, destination, fetchers=fetchers)
    except AssetError as exc:
        logger.error("Asset resolution failed: %s", exc, exc_info=True)
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    logger.info(
        "Resolved %s asset(s) for %s into %s", len(assets), book_root / src_subdir, destination
    )

    if manifest:
        manifest_path = write_manifest(assets, destination / config.output.manifest_name)
        logger.info("Wrote manifest %s", manifest_path)
        typer.echo(f"Wrote {manifest_path}", err=True)

    if normalized_format == "json":
        typer.echo(json.dumps([asset_to_dict(asset) for asset in assets], indent=2))
    elif assets:
        _render_table(assets, Console())
    else:
        typer.echo("No assets found.")


@app.command("cache-path")
def cache_path(
    ctx: typer.Context,
    url: str = typer.Argument(..., metavar="URL", help="Absolute URL of a remote asset."),
    dest: Optional[pathlib.Path] = typer.Option(
        None,
        "--dest",
        metavar="PATH",
        help="Destination directory whose cache/ subdirectory holds downloads.",
    ),
) -> None:
    """Print where a remote asset is (or would be) cached, without fetching it."""

    link = classify(url)
    if not isinstance(link, RemoteLink):
        raise typer.BadParameter(f"Not an absolute URL: {url!r}", param_hint="URL")

    config: Config = ctx.obj["config"]
    logger: logging.Logger = ctx.obj["logger"]
    destination = _resolve_destination(pathlib.Path.cwd(), dest, config)
    path = cache_path_for(link, destination / CACHE_SUBDIR)
    logger.debug("Cache key scheme %s v%s for %s", CACHE_KEY_SCHEME, CACHE_KEY_VERSION, url)
    typer.echo(str(path))


@config_app.command("show")
def config_show(
    ctx: typer.Context,
    format: str = typer.Option(
        "yaml",
        "--format",
        help="Output format (yaml or json).",
    ),
    paths: bool = typer.Option(
        False,
        "--paths",
        help="Explain configuration precedence and selected inputs.",
    ),
) -> None:
    """Show the effective configuration for this invocation."""

    config: Config = ctx.obj["config"]
    config_path: Optional[pathlib.Path] = ctx.obj.get("config_path")

    normalized_format = format.strip().lower()
    if normalized_format not in {"yaml", "json"}:
        raise typer.BadParameter("Format must be 'yaml' or 'json'.", param_hint="--format")

    if paths:
        if config.loaded_from:
            typer.echo("Loaded configuration from:", err=True)
            for entry in config.loaded_from:
                typer.echo(f"- {entry}", err=True)
        if config_path is not None:
            typer.echo("Mode: replace-by-default", err=True)
        else:
            typer.echo("Config precedence (when --config is not provided):", err=True)
            typer.echo("1) ./config/default.yaml (or packaged default if missing)", err=True)
            typer.echo("2) ./config/local.yaml (optional)", err=True)

    data = config.model.model_dump(mode="json")
    if normalized_format == "json":
        typer.echo(json.dumps(data, indent=2))
    else:
        typer.echo(yaml.safe_dump(data, sort_keys=False))


@app.command()
def version() -> None:
    """Print the Bookassets version."""

    typer.echo(get_version())
