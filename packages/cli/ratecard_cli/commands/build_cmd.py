"""Build a rate card from downloaded JSONP pricing catalogs."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from ratecard_cli.utils import handle_error

console = Console()


def build(
    ctx: typer.Context,
    files: Annotated[
        list[Path],
        typer.Argument(help="Catalog files; later files win when two catalogs share a version"),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Save the rate card (.json, .yaml or .yml)"),
    ] = None,
    family: Annotated[
        str | None,
        typer.Option("--family", "-f", help="Product family of every file (default: inferred)"),
    ] = None,
    region_pattern: Annotated[
        str | None,
        typer.Option("--regions", "-r", help="Only ingest regions fully matching this pattern"),
    ] = None,
) -> None:
    """Ingest pricing catalogs and merge them into one rate card."""
    try:
        from ratecard.catalog.refresh import RateCardHolder, refresh_rate_card, sources_from_files
        from ratecard.config import Settings

        from ratecard_cli.project import load_project_settings

        settings = load_project_settings()
        if region_pattern is not None:
            settings = Settings.model_validate({**settings.model_dump(), "regions": region_pattern})

        sources = sources_from_files(files, family=family)
        json_mode = ctx.obj and ctx.obj.get("json")
        holder = RateCardHolder()
        if json_mode:
            summary = refresh_rate_card(sources, holder, settings)
        else:
            with console.status(f"Ingesting {len(sources)} catalog(s)..."):
                summary = refresh_rate_card(sources, holder, settings)

        if summary.published and output is not None:
            summary.card.save(output)

        if json_mode:
            data = {
                "published": summary.published,
                "total_entries": summary.total_entries,
                "total_errors": summary.total_errors,
                "results": [
                    {
                        "source": r.source,
                        "family": r.family,
                        "version": r.version,
                        "entries": r.entries,
                        "regions": r.regions,
                        "errors": r.errors,
                    }
                    for r in summary.results
                ],
                "errors": summary.errors,
            }
            if summary.card is not None:
                data["card"] = summary.card.stats()
            if output is not None and summary.published:
                data["output"] = str(output)
            print(json.dumps(data, indent=2))
        else:
            _print_summary(summary, output)

        if not summary.published:
            raise typer.Exit(1)

    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)


def _print_summary(summary, output: Path | None) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Source")
    table.add_column("Family")
    table.add_column("Version", justify="right")
    table.add_column("Entries", justify="right")
    table.add_column("Regions", justify="right")
    table.add_column("Errors", justify="right")

    for r in summary.results:
        error_str = str(len(r.errors)) if r.errors else "[green]0[/green]"
        table.add_row(
            Path(r.source).name,
            r.family or "-",
            r.version or "-",
            str(r.entries),
            str(r.regions),
            error_str,
        )

    console.print(table)

    if summary.published:
        stats = summary.card.stats()
        console.print(
            f"[green]Done.[/green] {stats['entries']} rates across {stats['regions']} regions "
            f"({stats['unpriced_regions']} without prices)"
        )
        if output is not None:
            console.print(f"Saved rate card to {output}")
        return

    console.print(f"[yellow]Rate card not built.[/yellow] {summary.total_errors} error(s)")
    for r in summary.results:
        for err in r.errors:
            console.print(f"  [red]{Path(r.source).name}:[/red] {err}")
    for err in summary.errors:
        console.print(f"  [red]merge:[/red] {err}")
