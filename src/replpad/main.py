"""
Main CLI entry point for ReplPad.
"""

import asyncio
import sys
from pathlib import Path

import click
import yaml
from rich.console import Console

from replpad import __version__

console = Console()


def _configure_logging(debug: bool, info: bool) -> None:
    import logging
    from datetime import datetime

    level = logging.DEBUG if debug else logging.INFO

    # Create logs directory if it doesn't exist
    logs_dir = Path("logs")
    logs_dir.mkdir(exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = logs_dir / f"replpad_{timestamp}.log"

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(level)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    # The console owns stdout, so diagnostics go to stderr
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING if info and not debug else level)
    console_handler.setFormatter(logging.Formatter("%(name)s - %(levelname)s - %(message)s"))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logging.info(f"Logging initialized. Log file: {log_file}")


def _start_repl(config_path: Path | None) -> None:
    try:
        # Import here to allow CLI to load quickly
        from replpad.config import load_console_config
        from replpad.repl.engine import REPLEngine

        config = load_console_config(working_dir=Path.cwd(), config_path=config_path)
        repl = REPLEngine(config=config)
        asyncio.run(repl.run_interactive())
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(0)
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        if "--debug" in sys.argv or "-d" in sys.argv:
            raise
        sys.exit(1)


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version and exit")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option("--debug", "-d", is_flag=True, help="Enable debug logging")
@click.option("--info", "-i", is_flag=True, help="Enable info logging")
@click.pass_context
def cli(ctx: click.Context, version: bool, config: Path | None, debug: bool, info: bool) -> None:
    """
    ReplPad - Python console with a structured editor.

    Run without arguments to start the interactive console.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["debug"] = debug

    if debug or info:
        _configure_logging(debug, info)

    if version:
        console.print(f"[bold cyan]ReplPad[/bold cyan] version [green]{__version__}[/green]")
        return

    if ctx.invoked_subcommand is None:
        _start_repl(config)


@cli.command()
@click.pass_context
def repl(ctx: click.Context) -> None:
    """Start the interactive console."""
    _start_repl(ctx.obj.get("config_path"))


@cli.command("config")
@click.option("--save", is_flag=True, help="Write the effective configuration to disk")
@click.option("--project", is_flag=True, help="With --save, write to ./.replpad instead of ~/.replpad")
@click.pass_context
def config_command(ctx: click.Context, save: bool, project: bool) -> None:
    """Show the effective console configuration."""
    from replpad.config import load_console_config, save_console_config

    try:
        config = load_console_config(working_dir=Path.cwd(), config_path=ctx.obj.get("config_path"))
    except (OSError, yaml.YAMLError, AttributeError, TypeError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)

    click.echo(yaml.dump(config.to_dict(), default_flow_style=False, sort_keys=False), nl=False)

    if save:
        path = save_console_config(config, global_config=not project)
        console.print(f"[green]Saved to[/green] {path}")


if __name__ == "__main__":
    cli()
