#!/usr/bin/env python3
"""
CLI for checking input against declarative parameters definitions.

Usage:
    explicit-params validate user.yaml --input '{"id": "42"}'
    explicit-params validate user.yaml --input @request.json
    explicit-params inspect user.yaml --format json
    explicit-params --version
"""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from explicit_parameters import __version__
from explicit_parameters.definition import ParametersDefinition
from explicit_parameters.errors import DefinitionError, InvalidParameters
from explicit_parameters.loader import dump_definition, load_definition

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="explicit-params",
    help="Validate and cast input against declarative parameters definitions",
    no_args_is_help=True,
    add_completion=False,
)


class OutputFormat(str, Enum):
    """Output format for inspect command."""
    text = "text"
    json = "json"
    yaml = "yaml"


def setup_logging(verbose: int, quiet: bool):
    """Configure logging based on verbosity flags."""
    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s"
    )


def parse_input(value: Optional[str]) -> Dict[str, Any]:
    """
    Parse input from JSON string or @file.json.

    Args:
        value: JSON string or @file.json path

    Returns:
        Parsed dictionary

    Raises:
        typer.Exit: On parse error
    """
    if value is None:
        return {}

    if value.startswith("@"):
        path = Path(value[1:])
        if not path.exists():
            typer.echo(f"Error: Input file not found: {path}", err=True)
            raise typer.Exit(2)
        text = path.read_text(encoding="utf-8")
        source = "input file"
    else:
        text = value
        source = "--input"

    try:
        result = json.loads(text)
    except json.JSONDecodeError as e:
        typer.echo(f"Error: Invalid JSON in {source}: {e}", err=True)
        raise typer.Exit(2)
    if not isinstance(result, dict):
        typer.echo(f"Error: Input must be a JSON object, got {type(result).__name__}", err=True)
        raise typer.Exit(2)
    return result


def load_or_exit(file: Path) -> ParametersDefinition:
    """Load a definition, exiting with status 2 on errors."""
    try:
        return load_definition(file)
    except DefinitionError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)


def describe(definition: ParametersDefinition, indent: int = 0) -> None:
    """Print the attributes of a definition as an indented tree."""
    pad = "  " * indent
    for attribute in definition.attributes:
        if attribute.definition is not None:
            kind = "array of" if attribute.many else "nested"
        elif attribute.type is not None:
            kind = attribute.type.__name__
        else:
            kind = "any"
        flags = "required" if attribute.required else "optional"
        if attribute.has_default:
            flags += f", default={attribute.default!r}"
        typer.echo(f"{pad}- {attribute.name} ({kind}, {flags})")
        if attribute.definition is not None:
            describe(attribute.definition, indent + 1)


@app.command()
def validate(
    file: Path = typer.Argument(..., help="Path to definition YAML/JSON file"),
    input: Optional[str] = typer.Option(None, "--input", "-i", help="Parameters as JSON or @file.json"),
    recursive: bool = typer.Option(True, "--recursive/--shallow", help="Project nested parameters to plain objects"),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Increase verbosity (-v, -vv)"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-error output"),
):
    """Parse input against a definition and print the casted values or the errors."""
    setup_logging(verbose, quiet)
    definition = load_or_exit(file)
    data = parse_input(input)

    try:
        params = definition.parse(data)
    except InvalidParameters as e:
        typer.echo(e.to_json())
        raise typer.Exit(1)

    logger.info("Parameters accepted by definition '%s'", definition.name)
    values = params.to_dict(recursive=True) if recursive else params.to_dict()
    if not quiet:
        typer.echo(json.dumps(values, default=str, ensure_ascii=False))


@app.command()
def inspect(
    file: Path = typer.Argument(..., help="Path to definition YAML/JSON file"),
    format: OutputFormat = typer.Option(OutputFormat.text, "--format", "-f", help="Output format (text, json, yaml)"),
):
    """Show the attributes of a definition."""
    definition = load_or_exit(file)

    if format == OutputFormat.json:
        typer.echo(json.dumps(definition.to_dict(), indent=2, default=str))
    elif format == OutputFormat.yaml:
        typer.echo(dump_definition(definition), nl=False)
    else:
        typer.echo(f"Definition: {definition.name}")
        describe(definition)


def version_callback(value: bool):
    """Handle --version flag."""
    if value:
        typer.echo(f"explicit-params {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(None, "--version", callback=version_callback, is_eager=True,
                                 help="Show version and exit"),
):
    """Explicit Parameters - declarative input validation and casting."""


def main():
    """Entry point for the explicit-params CLI."""
    app()


if __name__ == "__main__":
    main()
