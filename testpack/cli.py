"""
This file is the entry point for the 'testpack' command-line tool.
Run 'testpack --help' in your shell to use the CLI.
"""
import logging
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional

import typer
from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from common.app_setup import print_and_log, print_error, setup_logging
from testpack.config import apply_settings, load_settings_file, parse_setting_assignment
from testpack.errors import PackageError
from testpack.models import PackageDescriptor
from testpack.serialization import dumps, load_package, save_package

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help="Build and inspect test package descriptors.")

# Errors reported to the user instead of a traceback
USER_ERRORS = (PackageError, ValueError, TypeError, OSError)


class OutputFormat(str, Enum):
    json = "json"
    yaml = "yaml"


@app.callback()
def main(
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Log file (default: ~/.testpack/log.txt)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug messages"),
):
    """Build and inspect test package descriptors."""
    setup_logging(
        app_name="testpack",
        loglevel=logging.DEBUG if verbose else logging.INFO,
        logfile=str(log_file) if log_file else None,
    )


@app.command()
def assemblies(
    paths: Optional[List[str]] = typer.Argument(None, help="Assembly or project files"),
    package_file: Optional[Path] = typer.Option(None, "--package", "-p", help="Read the package from a document instead"),
):
    """Print the assemblies a package would load, one per line."""
    if bool(paths) == bool(package_file):
        print_error("Give either assembly paths or --package, not both or neither.")
        raise typer.Exit(1)
    try:
        package = load_package(package_file) if package_file else _build_package(paths or [])
    except USER_ERRORS as e:
        print_error(f"Cannot read package: {e}")
        raise typer.Exit(1)
    for assembly in package.get_assemblies():
        if assembly is None:
            logger.warning("Skipping anonymous package without a file path")
            continue
        typer.echo(assembly)


@app.command()
def create(
    paths: List[str] = typer.Argument(..., help="Assembly or project files"),
    setting: List[str] = typer.Option([], "--setting", "-s", help="Setting as NAME=VALUE (repeatable)"),
    settings_file: Optional[Path] = typer.Option(None, "--settings-file", help="YAML or JSON file of settings"),
    format: Optional[OutputFormat] = typer.Option(None, "--format", "-f", help="Output format (default: json, or from --output suffix)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to this file instead of stdout"),
):
    """Build a package from assembly paths and write it as JSON or YAML.

    A single path gives a package for that file; several paths give an
    anonymous package with one sub-package each. Settings from --setting
    override those from --settings-file.
    """
    try:
        package = _build_package(paths)
        if settings_file is not None:
            apply_settings(package, load_settings_file(settings_file))
        for assignment in setting:
            name, value = parse_setting_assignment(assignment)
            package.set_setting(name, value)
        fmt = format.value if format else None
        if output is not None:
            save_package(package, output, format=fmt)
            print_and_log(f"Wrote package with {len(package.get_assemblies())} assemblies to {output}")
        else:
            typer.echo(dumps(package, format=fmt or "json"))
    except USER_ERRORS as e:
        print_error(f"Failed to create package: {e}")
        raise typer.Exit(1)


@app.command()
def show(package_file: Path = typer.Argument(..., help="Package document (JSON or YAML)")):
    """Show a package document as a tree with its settings."""
    try:
        package = load_package(package_file)
    except USER_ERRORS as e:
        print_error(f"Cannot read package: {e}")
        raise typer.Exit(1)
    Console(soft_wrap=True, highlight=False).print(render_tree(package))


def render_tree(package: PackageDescriptor, tree: Optional[Tree] = None) -> Tree:
    """Return a rich Tree with one node per package, settings first."""
    node = Tree(_label(package)) if tree is None else tree.add(_label(package))
    for name, value in package.settings.items():
        node.add(Text(f"{name} = {_format_value(value)}", style="cyan"))
    for child in package.children:
        render_tree(child, node)
    return node


def _build_package(paths: List[str]) -> PackageDescriptor:
    if len(paths) == 1:
        return PackageDescriptor.from_path(paths[0])
    return PackageDescriptor.from_paths(paths)


def _label(package: PackageDescriptor) -> Text:
    if package.file_path is None:
        return Text("(anonymous package)", style="bold")
    return Text(package.file_path, style="bold")


def _format_value(value: Any) -> str:
    if isinstance(value, Enum):
        return f"{type(value).__name__}.{value.name}"
    return repr(value)


if __name__ == "__main__":
    app()
