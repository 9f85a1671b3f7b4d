"""Command-line interface for the resource inliner."""

import sys
from pathlib import Path
from typing import Optional

import click
from loguru import logger

from resource_inliner.config_loader import get_logging_config, load_config
from resource_inliner.inliner import run_inline_resources


def setup_logging(config: dict, verbose: bool = False):
    """Setup logging configuration."""
    log_config = get_logging_config(config)
    level = "DEBUG" if verbose else log_config.get("level", "INFO")
    log_file = log_config.get("file")

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> | {message}",
    )
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=level,
            rotation=log_config.get("rotation", "1 week"),
            retention=log_config.get("retention", "1 month"),
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name} | {message}",
        )


@click.command()
@click.argument("project_path", type=click.Path(file_okay=False))
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
def cli(project_path: str, config: Optional[str], verbose: bool):
    """Inline templateUrl and styleUrls resources of every component under PROJECT_PATH."""
    try:
        cfg = load_config(config, project_path=project_path)
        setup_logging(cfg, verbose=verbose)
    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    try:
        result = run_inline_resources(project_path, config=cfg)
    except (FileNotFoundError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Files scanned: {result['files_total']}")
    click.echo(f"Files inlined: {result['files_inlined']}")
    click.echo(f"Files unchanged: {result['files_unchanged']}")
    click.echo(f"Files failed: {result['files_failed']}")
    for failure in result["failures"]:
        click.echo(f"  {failure['path']}: {failure['error']}", err=True)


if __name__ == "__main__":
    cli()
