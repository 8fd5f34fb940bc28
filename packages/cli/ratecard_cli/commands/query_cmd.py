"""Query a saved rate card: known regions, rates of a storage type, single prices."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from ratecard_cli.utils import handle_error, load_card

console = Console()

CardArg = Annotated[Path, typer.Argument(help="Rate card file written by 'ratecard build -o'")]
TierOpt = Annotated[str | None, typer.Option("--tier", "-t", help="Volume tier id (tiered storage only)")]


def regions(
    ctx: typer.Context,
    card_file: CardArg,
) -> None:
    """List every region in the rate card, including regions without prices."""
    try:
        card = load_card(card_file)
        counts = {r: 0 for r in card.regions}
        for entry in card.entries:
            counts[entry.region] += 1

        if ctx.obj and ctx.obj.get("json"):
            data = {"regions": [{"region": r, "entries": n} for r, n in counts.items()]}
            print(json.dumps(data, indent=2))
            return

        if not counts:
            console.print("[yellow]Rate card has no regions.[/yellow]")
            return

        table = Table(title="Regions")
        table.add_column("Region", style="cyan")
        table.add_column("Rates", justify="right")
        for region, n in counts.items():
            table.add_row(region, str(n) if n else "[dim]no prices[/dim]")
        console.print(table)

    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)


def lookup(
    ctx: typer.Context,
    card_file: CardArg,
    region: Annotated[str, typer.Argument(help="Region code, e.g. eu-west-1")],
    storage_type: Annotated[str, typer.Argument(help="Catalog storage type (ebsGPSSD) or API name (gp2)")],
    tier: TierOpt = None,
) -> None:
    """Show every rate priced for a storage type in a region.

    Without --tier, a tiered storage type lists all of its tiers.
    """
    try:
        card = load_card(card_file)
        if tier is None and not card.lookup(region, storage_type):
            tier_ids = card.tiers(region, storage_type)
        else:
            tier_ids = [tier]

        entries = []
        for tier_id in tier_ids:
            entries.extend(sorted(card.lookup(region, storage_type, tier_id), key=lambda e: e.rate_kind))

        if ctx.obj and ctx.obj.get("json"):
            data = {
                "region": region,
                "storage_type": storage_type,
                "rates": [
                    {
                        "storage_type": e.storage_type,
                        "tier": e.tier_id,
                        "rate_kind": e.rate_kind,
                        "prices": {c: str(p) for c, p in sorted(e.prices.items())},
                        "footnotes": list(e.footnotes),
                    }
                    for e in entries
                ],
            }
            print(json.dumps(data, indent=2))
            return

        if not entries:
            note = "" if card.has_region(region) else " (unknown region)"
            console.print(f"[yellow]No rates for {storage_type} in {region}{note}.[/yellow]")
            return

        table = Table(title=f"{storage_type} in {region}")
        table.add_column("Tier")
        table.add_column("Rate kind", style="cyan")
        table.add_column("Prices", justify="right")
        table.add_column("Notes", style="dim")
        for e in entries:
            table.add_row(
                e.tier_id or "-",
                e.rate_kind,
                ", ".join(f"{c} {p}" for c, p in sorted(e.prices.items())),
                ", ".join(e.footnotes),
            )
        console.print(table)

    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)


def rate(
    ctx: typer.Context,
    card_file: CardArg,
    region: Annotated[str, typer.Argument(help="Region code, e.g. eu-west-1")],
    storage_type: Annotated[str, typer.Argument(help="Catalog storage type (ebsGPSSD) or API name (gp2)")],
    rate_kind: Annotated[str, typer.Argument(help="Billing dimension, e.g. perGBmoProvStorage")],
    tier: TierOpt = None,
    currency: Annotated[
        str | None,
        typer.Option("--currency", "-c", help="Currency code (default: project setting, else USD)"),
    ] = None,
) -> None:
    """Print the price of one rate kind."""
    try:
        from ratecard_cli.project import load_project_settings

        card = load_card(card_file)
        currency = currency or load_project_settings().default_currency
        price = card.rate(region, storage_type, rate_kind, tier_id=tier, currency=currency)

        if ctx.obj and ctx.obj.get("json"):
            data = {
                "region": region,
                "storage_type": storage_type,
                "tier": tier,
                "rate_kind": rate_kind,
                "currency": currency,
                "price": str(price),
            }
            print(json.dumps(data, indent=2))
            return

        console.print(f"{price} {currency}")

    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)
