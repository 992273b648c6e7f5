"""CLI entry point for api-doc-dsl."""

import json
import logging
from pathlib import Path

import click

from api_doc_dsl.config import Settings, load_settings
from api_doc_dsl.discovery import controller_paths
from api_doc_dsl.registry import app


def _load_registry(config: Path | None, controllers: str | None) -> None:
    """Configure the default registry and load the controllers into it."""
    settings = load_settings(config) if config else Settings()
    if controllers:
        settings = settings.model_copy(update={"api_controllers_matcher": controllers})
    app.configure(settings)
    app.reload_documentation()


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log registration details.")
def main(verbose: bool):
    """API Doc DSL: export documentation declared on controller methods."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option("-c", "--config", type=click.Path(exists=True, path_type=Path), default=None, help="Settings YAML file.")
@click.option("--controllers", default=None, help="Glob matching controller source files.")
@click.option("--api-version", "version", default=None, help="API version to export (default: configured default).")
@click.option("--resource", default=None, help="Export a single resource.")
@click.option("--method", default=None, help="Export a single method of --resource.")
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None, help="Output JSON file (default: stdout).")
def export(config: Path | None, controllers: str | None, version: str | None, resource: str | None,
           method: str | None, output: Path | None):
    """Export the documentation tree as JSON."""
    if method and not resource:
        raise click.UsageError("--method requires --resource.")
    _load_registry(config, controllers)
    version = version or app.settings.default_version

    tree = app.to_document_tree(version, resource, method)
    if tree is None:
        raise click.ClickException(f"Resource {resource} is not documented in version {version}.")

    text = json.dumps(tree, indent=2, ensure_ascii=False)
    if output is None:
        click.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n", encoding="utf-8")
    click.echo(f"Documentation for {version} saved to {output}", err=True)


@main.command()
@click.option("-c", "--config", type=click.Path(exists=True, path_type=Path), default=None, help="Settings YAML file.")
@click.option("--controllers", default=None, help="Glob matching controller source files.")
def versions(config: Path | None, controllers: str | None):
    """List the documented API versions."""
    _load_registry(config, controllers)
    for version in app.available_versions():
        click.echo(version)


@main.command("list-controllers")
@click.argument("matcher")
def list_controllers(matcher: str):
    """List the controller files a glob matches, in load order."""
    for path in controller_paths(matcher):
        click.echo(str(path))
