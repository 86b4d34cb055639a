"""
Command-line interface for the OpenAPI to MCP server converter.
"""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
import yaml

from .converter import OpenAPIToMCPConverter, save_config
from .dereferencer import DereferenceError, PathDereferencer, load_structured
from .exceptions import OpenAPIToMCPError
from .models import ConvertOptions

app = typer.Typer(help="Convert OpenAPI specifications to MCP server configurations")


class OutputFormat(str, Enum):
    yaml = "yaml"
    json = "json"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if verbose else logging.WARNING,
    )


def _load_yaml(path: Path) -> dict:
    """Load a YAML or JSON file.

    Args:
        path: Path to the file

    Returns:
        The loaded content

    Raises:
        typer.Exit: If the file cannot be loaded
    """
    try:
        return load_structured(path.read_text())
    except (OSError, yaml.YAMLError) as e:
        typer.echo(f"Error loading {path}: {str(e)}", err=True)
        raise typer.Exit(1)


def _save_yaml(content: dict, path: Path) -> None:
    """Save content to a YAML file.

    Args:
        content: The content to save
        path: Path where to save the file

    Raises:
        typer.Exit: If the file cannot be saved
    """
    try:
        with open(path, "w") as f:
            yaml.safe_dump(content, f, sort_keys=False, allow_unicode=True)
    except OSError as e:
        typer.echo(f"Error saving to {path}: {str(e)}", err=True)
        raise typer.Exit(1)


def _parse_server_config(value: Optional[str]) -> dict:
    if not value:
        return {}
    try:
        config = json.loads(value)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"Invalid JSON: {e}", param_hint="--server-config")
    if not isinstance(config, dict):
        raise typer.BadParameter("Must be a JSON object", param_hint="--server-config")
    return config


@app.command()
def convert(
    input_file: Path = typer.Argument(..., help="Path to the input OpenAPI YAML or JSON file"),
    output_file: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Path to save the MCP configuration. If not provided, will use input filename with .mcp.yaml or .mcp.json extension",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.yaml, "--format", "-f", help="Output format"
    ),
    server_name: str = typer.Option(
        "openapi-server", "--server-name", help="MCP server name, used when the document has no info section"
    ),
    tool_prefix: str = typer.Option("", "--tool-prefix", help="Prefix added to every tool name"),
    server_config: Optional[str] = typer.Option(
        None, "--server-config", help="Server config as a JSON object"
    ),
    template: Optional[Path] = typer.Option(
        None, "--template", "-t", help="Override template applied to the generated configuration"
    ),
    response_docs: bool = typer.Option(
        False, "--response-docs", help="Keep the generated response field guide in prependBody"
    ),
    inherit_security: bool = typer.Option(
        False,
        "--inherit-security",
        help="Apply document-level security to operations that declare none",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Convert an OpenAPI specification to an MCP server configuration."""
    _configure_logging(verbose)

    if not input_file.exists():
        typer.echo(f"Input file not found: {input_file}", err=True)
        raise typer.Exit(1)

    if output_file is None:
        output_file = input_file.parent / f"{input_file.stem}.mcp.{output_format.value}"

    options = ConvertOptions(
        server_name=server_name,
        server_config=_parse_server_config(server_config),
        tool_name_prefix=tool_prefix,
        template_path=template,
        response_docs=response_docs,
        inherit_global_security=inherit_security,
    )

    try:
        converter = OpenAPIToMCPConverter.from_file(input_file, options)
        config = converter.convert()
        save_config(config, output_file, output_format.value)
    except (OpenAPIToMCPError, OSError) as e:
        typer.echo(f"Error: {str(e)}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Successfully converted {input_file} to {output_file}")


@app.command()
def dereference(
    input_file: Path = typer.Argument(..., help="Path to the input OpenAPI spec"),
    output_file: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Path to save the dereferenced spec. If not provided, will use input filename with .dereferenced.yaml suffix",
    ),
) -> None:
    """Resolve all references in an OpenAPI specification."""
    if not input_file.exists():
        typer.echo(f"Input file not found: {input_file}", err=True)
        raise typer.Exit(1)

    if output_file is None:
        output_file = input_file.parent / f"{input_file.stem}.dereferenced.yaml"

    spec = _load_yaml(input_file)
    if not isinstance(spec, dict):
        typer.echo(f"Error loading {input_file}: expected a mapping", err=True)
        raise typer.Exit(1)

    try:
        # Relative file references are resolved against the input file's directory
        result = PathDereferencer(spec, base_path=input_file.parent).dereference()
    except DereferenceError as e:
        typer.echo(f"Error dereferencing spec: {str(e)}", err=True)
        raise typer.Exit(1)

    _save_yaml(result, output_file)
    typer.echo(f"Successfully dereferenced {input_file} to {output_file}")


def main():
    """Entry point for the CLI."""
    app()
