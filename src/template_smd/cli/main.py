import os
import json
import yaml
import typer
import asyncio
import logging
from typing import Dict, Any, Optional, List
from pathlib import Path
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from .. import __version__
from ..config import load_config
from ..error.exceptions import TemplateSMDError
from ..logging import LogConfig
from ..templates.manager import TemplateManager

# Load environment variables
load_dotenv()

app = typer.Typer(
    name="template-smd",
    help="Render HTML-like templates with placeholders, conditionals, loops and partials"
)
console = Console(stderr=True)

logger = logging.getLogger("template_smd.cli")


def _configure_logging(level: str, json_logging: bool = False) -> None:
    if json_logging:
        LogConfig(log_level=level, json_logging=True).configure()
        return
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
        force=True,
    )


def load_data(file_path: Optional[str]) -> Dict[str, Any]:
    """
    Load the binding context from a JSON or YAML file.

    Args:
        file_path: Path to the data file, or None for an empty context

    Returns:
        Binding context dictionary
    """
    if not file_path:
        return {}
    content = Path(file_path).expanduser().read_text(encoding="utf-8")
    if file_path.endswith((".yaml", ".yml")):
        data = yaml.safe_load(content) or {}
    else:
        data = json.loads(content) if content.strip() else {}
    if not isinstance(data, dict):
        raise typer.BadParameter(f"Data file {file_path} must contain a mapping", param_hint="--data")
    return data


def parse_partials(specs: List[str]) -> Dict[str, str]:
    """Parse ``NAME=PATH`` partial options."""
    partials = {}
    for spec in specs:
        name, sep, path = spec.partition("=")
        if not sep or not name.strip() or not path.strip():
            raise typer.BadParameter(f"Expected NAME=PATH, got '{spec}'", param_hint="--partial")
        partials[name.strip()] = path.strip()
    return partials


async def _render(
    manager: TemplateManager,
    template: str,
    context: Dict[str, Any],
    partials: Dict[str, str],
    inline: bool,
) -> str:
    for name, path in partials.items():
        await manager.register_partial_from_file(name, path)
    if inline:
        return manager.render_string(template, context)
    return await manager.render_file(template, context)


@app.command("render")
def render_command(
    template: str = typer.Argument(..., help="Template file path (or template text with --inline)"),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="JSON or YAML file with bindings"),
    partial: List[str] = typer.Option([], "--partial", "-p", help="Partial as NAME=PATH (repeatable)"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="YAML or JSON engine configuration"),
    base_folder: Optional[str] = typer.Option(None, "--base-folder", "-b", help="Folder relative paths resolve against"),
    inline: bool = typer.Option(False, "--inline", "-i", help="Treat TEMPLATE as template text"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write the result to this file"),
):
    """Render a template with bindings from a data file."""
    try:
        config = load_config(config_path)
        _configure_logging(os.getenv("LOG_LEVEL", config.log_level).upper(), config.json_logging)
        if base_folder is not None:
            config.base_folder = base_folder

        manager = TemplateManager(config)
        context = load_data(data)
        rendered = asyncio.run(_render(manager, template, context, parse_partials(partial), inline))
    except typer.BadParameter:
        raise
    except (TemplateSMDError, OSError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    if output:
        Path(output).write_text(rendered, encoding="utf-8")
        console.print(f"[green]Wrote {len(rendered)} characters to {output}[/green]")
    else:
        typer.echo(rendered, nl=False)


@app.command("version")
def version_command():
    """Display version information."""
    typer.echo(f"template-smd {__version__}")


def main():
    app()


if __name__ == "__main__":
    main()
