"""Typer CLI for syncing and inspecting odds.

- odds-agg sync NFL
- odds-agg sync-all
- odds-agg schedule --interval 5
- odds-agg best-odds <game_id> --market spreads
- odds-agg movers --hours 12
"""

import asyncio
import os

from dotenv import load_dotenv

load_dotenv()

import typer
from rich.console import Console

from odds_aggregator import __version__
from odds_aggregator.cli.formatters import (
    format_best_odds_table,
    format_errors_table,
    format_games_table,
    format_movements_table,
    format_sports_table,
    format_sync_table,
)
from odds_aggregator.config import get_settings
from odds_aggregator.db import close_database, init_database
from odds_aggregator.monitoring import configure_logging
from odds_aggregator.service import OddsService
from odds_aggregator.sync.scheduler import SyncScheduler

cli = typer.Typer(
    name="odds-agg",
    help="""Sports odds aggregation - fetch, normalize, store and compare odds.

QUICK START:
  odds-agg sync NFL                     # Sync NFL odds with the preferred providers
  odds-agg sync NBA --combine           # Merge every provider's data
  odds-agg best-odds <game_id> -m spreads
  odds-agg movers --hours 12 --min 1.5
""",
    add_completion=False,
)

console = Console(no_color=os.getenv("NO_COLOR") is not None)


def get_service() -> OddsService:
    return OddsService()


def _split(value: str | None) -> list[str] | None:
    if not value:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]


async def _prepared(coro):
    try:
        await init_database()
        return await coro
    finally:
        await close_database()


def _run(coro):
    """Run a coroutine after making sure the schema exists, then close the engine."""
    return asyncio.run(_prepared(coro))


def _print_sync(results: list, verbose: bool) -> None:
    console.print(format_sync_table(results))
    errors = [error for result in results for error in result.errors]
    if errors and verbose:
        console.print(format_errors_table(errors))
    elif errors:
        console.print(f"[yellow]{len(errors)} error(s); rerun with --verbose for details[/yellow]")


@cli.command()
def sync(
    sport: str = typer.Argument(..., help="League key (e.g., NFL, NBA)"),
    providers: str = typer.Option(None, "--providers", "-p", help="Comma-separated provider order"),
    combine: bool = typer.Option(False, "--combine", "-c", help="Fetch all providers and merge"),
    limit: int = typer.Option(50, "--limit", "-n", help="Max events per provider"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show provider errors"),
):
    """Sync one sport's odds into the store."""
    service = get_service()
    try:
        result = _run(service.sync_sport(sport, _split(providers), combine=combine, limit=limit))
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}", style="red")
        raise typer.Exit(code=1)
    _print_sync([result], verbose)
    if result.no_data:
        console.print(f"[yellow]No data stored for {result.sport}[/yellow]")


@cli.command("sync-all")
def sync_all(
    sports: str = typer.Option(None, "--sports", "-s", help="Comma-separated league keys (default SYNC_SPORTS)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show provider errors"),
):
    """Sync every configured sport with its preferred providers."""
    service = get_service()
    try:
        results = _run(service.sync_all(_split(sports)))
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}", style="red")
        raise typer.Exit(code=1)
    _print_sync(results, verbose)


@cli.command()
def schedule(
    interval: float = typer.Option(None, "--interval", "-i", help="Minutes between cycles (default SYNC_INTERVAL_MINUTES)"),
    sports: str = typer.Option(None, "--sports", "-s", help="Comma-separated league keys"),
):
    """Run the recurring sync until interrupted."""
    service = get_service()

    async def run_forever() -> None:
        scheduler = SyncScheduler(service, _split(sports), interval)
        await scheduler.start()
        console.print(
            f"[bold cyan]Syncing[/bold cyan] {', '.join(scheduler.sports)} "
            f"every {scheduler.interval_minutes:g} min (Ctrl-C to stop)"
        )
        try:
            await asyncio.Event().wait()
        finally:
            await scheduler.stop()

    try:
        _run(run_forever())
    except KeyboardInterrupt:
        console.print("[dim]Scheduler stopped[/dim]")


@cli.command()
def sports(
    refresh: bool = typer.Option(False, "--refresh", "-r", help="Fetch catalogues from providers first"),
):
    """List known sports."""
    service = get_service()

    async def load():
        errors = []
        if refresh:
            errors = (await service.sync_sports()).errors
        return await service.list_sports(), errors

    stored, errors = _run(load())
    console.print(format_sports_table(stored))
    if errors:
        console.print(format_errors_table(errors))


@cli.command()
def games(
    sport: str = typer.Option(None, "--sport", "-s", help="League key"),
    limit: int = typer.Option(20, "--limit", "-n", help="Max games"),
):
    """List upcoming stored games."""
    service = get_service()
    console.print(format_games_table(_run(service.get_upcoming_games(sport, limit=limit))))


@cli.command("best-odds")
def best_odds(
    game_id: str = typer.Argument(..., help="Event id (e.g., sgo_abc123)"),
    market: str = typer.Option("h2h", "--market", "-m", help="h2h, spreads or totals"),
):
    """Best available price per outcome for a game's market."""
    service = get_service()
    quotes = _run(service.get_best_odds(game_id, market))
    console.print(format_best_odds_table(game_id, market, quotes))


@cli.command()
def movers(
    hours: float = typer.Option(None, "--hours", "-h", help="Window size (default BIG_MOVER_HOURS)"),
    min_movement: float = typer.Option(None, "--min", help="Minimum absolute movement"),
    limit: int = typer.Option(None, "--limit", "-n", help="Max movers"),
):
    """Largest recent line movements across all games."""
    service = get_service()
    rows = _run(service.get_big_movers(hours, min_movement, limit))
    console.print(format_movements_table("Big Movers", rows))


@cli.command()
def history(
    game_id: str = typer.Argument(..., help="Event id"),
    hours: float = typer.Option(24, "--hours", "-h", help="Window size"),
):
    """Line-movement history for one game."""
    service = get_service()
    rows = _run(service.get_line_movements(game_id, hours=hours))
    console.print(format_movements_table(f"Line Movements - {game_id}", rows))


@cli.command()
def version():
    """Show version and configuration info."""
    settings = get_settings()
    console.print(f"[bold cyan]Odds Aggregator[/bold cyan] v{__version__}")
    console.print()
    console.print("[bold]Providers:[/bold]")
    for label, env, value in (
        ("primary", "SPORTSGAMEODDS_API_KEY", settings.sportsgameodds_api_key),
        ("secondary", "SPORTSDATAIO_API_KEY", settings.sportsdataio_api_key),
        ("arbitrage", "RAPIDAPI_KEY", settings.rapidapi_key),
    ):
        status = "configured" if value else f"missing {env}"
        console.print(f"  {label}: {status}")
    console.print("  scoreboard: no key needed")
    console.print(f"[bold]Database:[/bold] {'DATABASE_URL' if settings.database_url else 'SQLite default'}")
    console.print(f"[bold]Sync:[/bold] every {settings.sync_interval_minutes:g} min, {', '.join(settings.sync_sports)}")


def main():
    """Entry point for CLI."""
    configure_logging(os.getenv("LOG_MODE", "development"))
    cli()


if __name__ == "__main__":
    main()
