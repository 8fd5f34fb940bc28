import typer

from ratecard_cli import __version__
from ratecard_cli.commands.build_cmd import build
from ratecard_cli.commands.query_cmd import lookup, rate, regions
from ratecard_cli.utils import setup_logging


def _version_callback(value: bool) -> None:
    if value:
        print(f"ratecard {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="ratecard",
    help="Build and query storage rate cards from cloud pricing catalogs",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", "-V", help="Show version", callback=_version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["json"] = json_output
    setup_logging(verbose)


app.command()(build)
app.command()(regions)
app.command()(lookup)
app.command()(rate)
