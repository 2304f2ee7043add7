"""CLI entry point."""
from typing import List, NoReturn, Optional

import typer

import asset_pipeline.infra.plugins

from asset_pipeline.domain.entities.app_config import AppConfig
from asset_pipeline.domain.entities.pipeline_config import PipelineConfig
from asset_pipeline.infra.common import (
    PipelineError,
    get_logger,
    load_app_config,
    load_pipeline_config,
    setup_logging,
)
from asset_pipeline.infra.environment import Environment
from asset_pipeline.infra.locks import DynamoDBLock
from asset_pipeline.use_cases.manifest import Manifest

logger = get_logger(__name__)

app = typer.Typer(help="Compile fingerprinted assets and manage their manifest.")


def _get_lock_manager(app_config: AppConfig) -> DynamoDBLock | None:
    """Get lock manager if a lock table is configured."""
    if app_config.dynamodb_lock_table:
        return DynamoDBLock(
            table_name=app_config.dynamodb_lock_table,
            region=app_config.aws_region,
            ttl_seconds=app_config.lock_ttl_seconds,
        )
    return None


def build_manifest(pipeline_config: PipelineConfig, app_config: AppConfig) -> Manifest:
    """Create the environment and manifest described by the configs."""
    environment = Environment(pipeline_config.load_paths)
    return Manifest(
        environment,
        pipeline_config.output_dir,
        filename=pipeline_config.manifest_path,
        lock_manager=_get_lock_manager(app_config),
        lock_timeout_seconds=app_config.lock_timeout_seconds,
        lock_poll_seconds=app_config.lock_poll_seconds,
    )


def _load(config_path: str, env: Optional[str]) -> tuple[PipelineConfig, Manifest]:
    app_config = load_app_config(env)
    setup_logging(app_config.log_level, force=True)
    pipeline_config = load_pipeline_config(config_path)
    return pipeline_config, build_manifest(pipeline_config, app_config)


def _fail(error: PipelineError) -> NoReturn:
    logger.error("%s: %s", type(error).__name__, error)
    typer.echo(f"Error: {error}", err=True)
    raise typer.Exit(code=1)


@app.command()
def compile(
    names: Optional[List[str]] = typer.Argument(None, help="Logical paths or globs (defaults to config assets)"),
    config: str = typer.Option("assets.yml", "--config", "-c", help="Pipeline YAML config"),
    env: Optional[str] = typer.Option(None, "--env", help="Runtime environment (local, staging, production)"),
):
    """Compile assets into the output directory."""
    try:
        pipeline_config, manifest = _load(config, env)
        compiled = manifest.compile(*(names or pipeline_config.assets))
    except PipelineError as e:
        _fail(e)
    
    for asset in compiled:
        typer.echo(f"{asset.logical_path} -> {manifest.assets[asset.logical_path]}")
    typer.echo(f"Compiled {len(compiled)} assets, manifest={manifest.filename}")


@app.command()
def remove(
    digest_path: str = typer.Argument(..., help="Digest path relative to the output directory"),
    config: str = typer.Option("assets.yml", "--config", "-c", help="Pipeline YAML config"),
    env: Optional[str] = typer.Option(None, "--env", help="Runtime environment (local, staging, production)"),
):
    """Remove a compiled file and its manifest entry."""
    try:
        _, manifest = _load(config, env)
        manifest.remove(digest_path)
    except PipelineError as e:
        _fail(e)
    
    typer.echo(f"Removed {digest_path}")


@app.command()
def clean(
    keep: Optional[int] = typer.Option(None, "--keep", min=0, help="Recent versions to keep per asset"),
    max_age: Optional[int] = typer.Option(None, "--max-age", min=0, help="Always keep versions younger than this (seconds)"),
    config: str = typer.Option("assets.yml", "--config", "-c", help="Pipeline YAML config"),
    env: Optional[str] = typer.Option(None, "--env", help="Runtime environment (local, staging, production)"),
):
    """Remove old compiled versions."""
    try:
        pipeline_config, manifest = _load(config, env)
        removed = manifest.clean(
            keep=pipeline_config.clean.keep if keep is None else keep,
            max_age=pipeline_config.clean.max_age if max_age is None else max_age,
        )
    except PipelineError as e:
        _fail(e)
    
    for digest_path in removed:
        typer.echo(f"Removed {digest_path}")
    typer.echo(f"Cleaned {len(removed)} files")


if __name__ == "__main__":
    app()
