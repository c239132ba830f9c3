"""Rich tables for sync results, best odds, movers and games."""

from rich.table import Table

from odds_aggregator.analytics import BestQuote
from odds_aggregator.db.records import GameRecord, LineMovementRecord
from odds_aggregator.normalization import SportDescriptor


def format_price(price: str | None) -> str:
    """Display an American price with an explicit plus sign for underdogs.

    Examples:
        >>> format_price("150")
        '+150'
        >>> format_price("-110")
        '-110'
    """
    if not price:
        return "-"
    return price if price.startswith("-") else f"+{price}"


def format_movement(movement: str) -> str:
    if movement.startswith("-"):
        return f"[red]{movement}[/red]"
    return f"[green]+{movement}[/green]"


def format_sync_table(results: list) -> Table:
    """One row per SyncResult."""
    table = Table(title="Sync Results", show_header=True, header_style="bold cyan")
    table.add_column("Sport", style="bold")
    table.add_column("Source", style="magenta")
    table.add_column("Games", justify="right")
    table.add_column("Odds", justify="right")
    table.add_column("Books", justify="right")
    table.add_column("Movements", justify="right", style="yellow")
    table.add_column("Skipped", justify="right", style="dim")
    table.add_column("Errors", justify="right", style="red")

    for result in results:
        source = "[dim]no data[/dim]" if result.source == "none" else result.source
        table.add_row(
            result.sport,
            source,
            str(result.games_updated),
            str(result.odds_updated),
            str(result.books_updated),
            str(result.movements_recorded),
            str(result.skipped),
            str(len(result.errors)),
        )
    return table


def format_errors_table(errors: list[str]) -> Table:
    table = Table(title="Errors", show_header=False)
    table.add_column("Source", style="cyan")
    table.add_column("Detail", style="dim")
    for error in errors:
        if ":" in error:
            source, detail = error.split(":", 1)
            table.add_row(source.strip(), detail.strip())
        else:
            table.add_row("system", error)
    return table


def format_best_odds_table(game_id: str, market: str, quotes: list[BestQuote]) -> Table:
    table = Table(title=f"Best Odds - {game_id} ({market})", show_header=True, header_style="bold cyan")
    table.add_column("Outcome", style="bold")
    table.add_column("Bookmaker", style="magenta")
    table.add_column("Price", justify="right", style="bold green")
    table.add_column("Point", justify="right")
    table.add_column("Decimal", justify="right")
    table.add_column("Implied", justify="right", style="dim")
    table.add_column("Quotes", justify="right", style="dim")

    if not quotes:
        table.add_row("[dim]No odds stored for this market[/dim]", "", "", "", "", "", "")
        return table

    for quote in quotes:
        table.add_row(
            quote.outcome_type,
            quote.bookmaker_title,
            format_price(quote.price),
            quote.point or "-",
            f"{quote.decimal_price:.3f}",
            f"{quote.implied_probability:.1%}",
            str(quote.quote_count),
        )
    return table


def format_movements_table(title: str, movements: list[LineMovementRecord]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Time (UTC)", style="dim", no_wrap=True)
    table.add_column("Matchup", no_wrap=True)
    table.add_column("Market", style="yellow")
    table.add_column("Outcome")
    table.add_column("Book", style="magenta")
    table.add_column("Old", justify="right")
    table.add_column("New", justify="right")
    table.add_column("Move", justify="right")

    if not movements:
        table.add_row("", "[dim]No line movements[/dim]", "", "", "", "", "", "")
        return table

    for m in movements:
        matchup = f"{m.away_team} @ {m.home_team}" if m.home_team else m.game_id
        table.add_row(
            m.timestamp.strftime("%Y-%m-%d %H:%M"),
            matchup,
            m.market,
            m.outcome_type or "-",
            m.bookmaker_key or "-",
            m.old_value,
            m.new_value,
            format_movement(m.movement),
        )
    return table


def format_games_table(games: list[GameRecord]) -> Table:
    table = Table(title="Upcoming Games", show_header=True, header_style="bold cyan")
    table.add_column("Game ID", style="dim", no_wrap=True)
    table.add_column("Sport", style="bold")
    table.add_column("Matchup", no_wrap=True)
    table.add_column("Start (UTC)", no_wrap=True)

    if not games:
        table.add_row("", "", "[dim]No upcoming games[/dim]", "")
        return table

    for game in games:
        table.add_row(
            game.id,
            game.sport_key,
            f"{game.away_team} @ {game.home_team}",
            game.commence_time.strftime("%Y-%m-%d %H:%M"),
        )
    return table


def format_sports_table(sports: list[SportDescriptor]) -> Table:
    table = Table(title="Sports", show_header=True, header_style="bold cyan")
    table.add_column("Key", style="bold")
    table.add_column("Title")
    table.add_column("Group", style="dim")
    table.add_column("Active", justify="center")

    if not sports:
        table.add_row("", "[dim]No sports stored; run with --refresh[/dim]", "", "")
        return table

    for sport in sports:
        table.add_row(sport.key, sport.title, sport.group, "yes" if sport.active else "no")
    return table
