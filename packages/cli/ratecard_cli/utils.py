from __future__ import annotations

import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

_err_console = Console(stderr=True)


def setup_logging(verbose: bool) -> None:
    """Route library debug logs through rich when --verbose is set."""
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_err_console, show_path=False, rich_tracebacks=True)],
    )


def handle_error(ctx: typer.Context, e: Exception) -> None:
    """Print a clean error message and exit 1."""
    import yaml
    from ratecard.errors import RateCardError

    verbose = ctx.obj.get("verbose", False) if ctx.obj else False
    json_mode = ctx.obj.get("json", False) if ctx.obj else False

    if isinstance(e, FileNotFoundError):
        msg = f"File not found: {e.filename or e}"
    elif isinstance(e, yaml.YAMLError):
        msg = f"Invalid YAML: {e}"
    elif isinstance(e, RateCardError):
        msg = str(e)
    elif "validation" in type(e).__name__.lower():
        msg = f"Invalid input: {e}"
    elif isinstance(e, ValueError):
        msg = str(e)
    else:
        msg = f"Error: {e}"

    if json_mode:
        print(json.dumps({"error": msg, "type": type(e).__name__}))
    else:
        _err_console.print(f"[red]Error:[/red] {msg}")

    if verbose:
        _err_console.print_exception()

    raise typer.Exit(1)


def load_card(path: Path):
    """Read a saved rate card (JSON or YAML)."""
    from ratecard.card import RateCard

    return RateCard.from_file(path)
