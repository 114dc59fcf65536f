"""CLI entry point for doc2raml."""

import logging
from pathlib import Path

import click
import yaml

from doc2raml.config import CompilerConfig, apply_config, load_config
from doc2raml.context import CompilerContext
from doc2raml.documentation import Documentation
from doc2raml.errors import RouteViabilityError
from doc2raml.parser.tags import parse_comment
from doc2raml.reader import AnnotationBlock, extract_blocks
from doc2raml.render.raml import DEFAULT_DIRECTORY, render as render_raml, save


def _source_files(sources: tuple[Path, ...]) -> list[Path]:
    """Expand directories into the Python files they contain."""
    files = []
    for source in sources:
        if source.is_dir():
            files.extend(sorted(source.rglob("*.py")))
        else:
            files.append(source)
    return files


def _read_blocks(files: list[Path]) -> list[AnnotationBlock]:
    blocks = []
    for path in files:
        blocks.extend(extract_blocks(path.read_text(encoding="utf-8"), str(path)))
    return blocks


@click.group()
@click.option("--log-level", default="WARNING", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False), help="Logging level.")
def main(log_level: str):
    """doc2raml: generate RAML documentation from annotated handlers."""
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("sources", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", default=DEFAULT_DIRECTORY, type=click.Path(path_type=Path), help="Output directory for the RAML file.")
@click.option("--stdout", "to_stdout", is_flag=True, help="Print the RAML document instead of writing it.")
@click.option("-c", "--config", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="YAML configuration file.")
@click.option("--title", default=None, help="API title.")
@click.option("--version", "api_version", default=None, help="API version.")
@click.option("--base-uri", default=None, help="Base URI of the API.")
def render(sources, output: Path, to_stdout: bool, config_path: Path | None, title, api_version, base_uri):
    """Generate a RAML document from annotated source files."""
    config = load_config(config_path) if config_path else CompilerConfig()
    context = apply_config(config, CompilerContext())

    overrides = {"title": title, "version": api_version, "base_uri": base_uri}
    settings = config.document.model_copy(update={k: v for k, v in overrides.items() if v is not None})
    doc = Documentation(context, settings)

    files = _source_files(sources)
    click.echo(f"Reading {len(files)} source files...", err=to_stdout)
    blocks = _read_blocks(files)

    skipped = 0
    for block in blocks:
        try:
            doc.add_route(block.text, source=f"{block.source}:{block.line}")
        except RouteViabilityError:
            skipped += 1
    click.echo(f"Found {len(doc.routes)} routes ({skipped} skipped).", err=to_stdout)
    if doc.missing_types:
        click.echo(f"Undefined types: {', '.join(doc.missing_types)}", err=True)

    document = doc.build()
    if to_stdout:
        click.echo(render_raml(document), nl=False)
        return
    path = save(document, output)
    click.echo(f"RAML saved to {path}")


@main.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def tags(source: Path):
    """Show the tags parsed from the annotation blocks of a source file."""
    blocks = extract_blocks(source.read_text(encoding="utf-8"), str(source))
    if not blocks:
        click.echo("No annotation blocks found.")
        return
    for block in blocks:
        name = block.name or "<anonymous>"
        click.echo(f"# {name} (line {block.line})")
        click.echo(yaml.safe_dump(parse_comment(block.text), sort_keys=False, allow_unicode=True), nl=False)
