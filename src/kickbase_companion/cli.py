"""
Kickbase Companion Command Line Interface.

Built with Typer for a modern, type-safe CLI experience.
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .analysis import (
    PlayerReport,
    build_player_header,
    build_player_report,
    format_currency,
    market_rows,
    ranking_rows,
    standings_rows,
)
from .analysis.report import MatchdayRow
from .api import APICache, CachedKickbaseClient, KickbaseAPIError, SyncKickbaseClient
from .config import get_settings
from .data import Database, SelectedLeague, get_database
from .preferences import get_league_selection

app = typer.Typer(
    name="kickbase-companion",
    help="Kickbase Companion - player analysis and league data for Kickbase",
    add_completion=True,
    rich_markup_mode="rich",
)

console = Console()

# Loader per importable table
LOADERS = {
    "players": Database.upsert_players,
    "news": Database.upsert_news,
    "values": Database.upsert_values,
    "stats": Database.upsert_player_stats,
    "matches": Database.upsert_club_matches,
}


def get_db() -> Database:
    """Database configured in settings."""
    return get_database(get_settings().database.path)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """
    Kickbase Companion - your Kickbase analysis sidekick.

    Load exported data, inspect players matchday by matchday, and serve the
    companion API.
    """
    level = "DEBUG" if verbose else get_settings().app.log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address"),
    port: Optional[int] = typer.Option(None, help="Port"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
) -> None:
    """Run the companion API server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "kickbase_companion.server:app",
        host=host or settings.app.api_host,
        port=port or settings.app.api_port,
        reload=reload,
        log_level=settings.app.log_level.lower(),
    )


@app.command()
def load(
    table: str = typer.Argument(..., help=f"One of: {', '.join(LOADERS)}"),
    file: Path = typer.Argument(..., exists=True, readable=True, help="JSON array export"),
) -> None:
    """Import a JSON export into the local store."""
    loader = LOADERS.get(table)
    if loader is None:
        console.print(f"[red]Unknown table '{table}'. Use one of: {', '.join(LOADERS)}[/red]")
        raise typer.Exit(1)

    try:
        with open(file, encoding="utf-8") as f:
            rows = json.load(f)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {file}: {e}[/red]")
        raise typer.Exit(1)

    if not isinstance(rows, list):
        console.print("[red]Expected a JSON array of rows[/red]")
        raise typer.Exit(1)

    try:
        count = loader(get_db(), rows)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Loaded {count} rows into {table}[/green]")


@app.command()
def status() -> None:
    """Show what is in the local store."""
    counts = get_db().get_row_counts()

    table = Table(title="Local Store", show_header=False)
    table.add_column("Table", style="cyan")
    table.add_column("Rows", style="green", justify="right")
    for name, count in counts.items():
        table.add_row(name, str(count))
    console.print(table)

    selected = get_league_selection(get_settings().app.preferences_file).get()
    if selected:
        console.print(f"Selected league: [bold]{selected.id}[/bold]")


def _odds_cell(row: MatchdayRow) -> str:
    if row.heuristic_odds is None:
        return row.outcome or "-"
    win, draw, loss = row.heuristic_odds.as_percentages()
    return f"{win}/{draw}/{loss}"


def _signed(value: int | None, text: str | None) -> str:
    """Green for gains, red for losses."""
    if value is None or text is None:
        return "-"
    if value > 0:
        return f"[green]{text}[/green]"
    if value < 0:
        return f"[red]{text}[/red]"
    return text


def _render_section(title: str, rows: list[MatchdayRow], show_projection: bool) -> Table:
    table = Table(title=title)
    table.add_column("MD", style="cyan", justify="right")
    table.add_column("Date")
    table.add_column("Opp")
    table.add_column("H/A", justify="center")
    table.add_column("Result", justify="center")
    table.add_column("W/D/L", justify="center")
    table.add_column("Pts", justify="right")
    if show_projection:
        table.add_column("Proj", style="magenta", justify="right")
    table.add_column("Market value", justify="right")
    table.add_column("Diff", justify="right")
    table.add_column("S11", justify="center")
    table.add_column("Min", justify="right")
    table.add_column("Status")

    for row in rows:
        cells = [
            str(row.matchday),
            row.date or "-",
            row.opponent or "-",
            row.venue or "-",
            row.result or "-",
            _odds_cell(row),
            _signed(row.points, str(row.points)),
        ]
        if show_projection:
            cells.append(str(row.projected_points) if row.projected_points is not None else "-")
        cells.extend([
            row.market_value_formatted or "-",
            _signed(row.market_value_diff, row.market_value_diff_formatted),
            row.start_eleven or "-",
            str(row.minutes) if row.minutes is not None else "-",
            row.status or "-",
        ])
        table.add_row(*cells)

    return table


def render_report(report: PlayerReport) -> None:
    """Print a player report as analysis and prognosis tables."""
    show_projection = report.reference_matchday > 0
    console.print(_render_section("Player Analysis", report.analysis_rows, show_projection))
    if report.prognosis_rows:
        console.print(
            _render_section("Player Prognosis", report.prognosis_rows, show_projection)
        )
    console.print(
        f"Points range: {report.min_points} to {report.max_points} | "
        f"Max market value: {format_currency(report.max_market_value)}"
    )


@app.command()
def player(
    player_id: str = typer.Argument(..., help="Kickbase player ID"),
    club_id: Optional[str] = typer.Option(
        None, "--club", "-c", help="Club ID (defaults to the stored club)"
    ),
    reference: int = typer.Option(
        0, "--reference", "-r", min=0, max=34, help="Project points after this matchday"
    ),
    season: Optional[str] = typer.Option(
        None, "--season", "-s", help="Season, e.g. 2024/2025 (defaults to the latest stored)"
    ),
) -> None:
    """Show a player's season matchday by matchday."""
    db = get_db()
    player_row = db.get_player(player_id)

    club_id = club_id or (player_row["club_id"] if player_row else None)
    if not club_id:
        console.print(f"[red]Unknown club for player {player_id}. Pass --club.[/red]")
        raise typer.Exit(1)

    stats, fixtures, values = db.load_player_snapshot(player_id, club_id, season)
    report = build_player_report(player_id, club_id, stats, fixtures, values, reference)

    header = build_player_header(player_id, club_id, player_row)
    console.print(
        Panel(
            f"[bold]{header.name}[/bold] ({header.club or club_id})\n"
            f"{header.position} | {header.status_label} | "
            f"Market value: {header.market_value_formatted or '-'}",
            style="blue",
        )
    )

    if not report.has_data:
        console.print("[yellow]No data found for this player.[/yellow]")
        return

    render_report(report)

    news = db.load_player_news(player_id)
    if news:
        console.print("\n[bold]Latest news[/bold]")
        for item in news[:5]:
            console.print(f"  {item.date} {item.time} - {item.title}")


# =============================================================================
# League Data (proxied)
# =============================================================================

def _token_option() -> Any:
    return typer.Option(
        ..., "--token", envvar="KICKBASE_TOKEN", help="Bearer token of a league member"
    )


def _cell(value: Any) -> str:
    return "-" if value is None else str(value)


def _league_client() -> CachedKickbaseClient:
    settings = get_settings()
    cache = APICache(settings.cache.dir, ttls={"matches": settings.cache.matches_ttl})
    return CachedKickbaseClient(SyncKickbaseClient.from_settings(settings.kickbase), cache)


def _fetch(what: str, call: Callable[[CachedKickbaseClient], Any]) -> Any:
    """Run one provider call, exiting with 1 on provider errors."""
    client = _league_client()
    try:
        return call(client)
    except KickbaseAPIError as e:
        console.print(f"[red]Error fetching {what}: {e.message}[/red]")
        raise typer.Exit(1)
    finally:
        client.close()


@app.command()
def matches(
    league_id: str = typer.Argument(..., help="Kickbase league ID"),
    token: str = _token_option(),
    force: bool = typer.Option(False, "--force", "-f", help="Bypass cache"),
) -> None:
    """Fetch a league's match schedule through the cache."""
    data = _fetch(
        "matches", lambda c: c.get_league_matches(league_id, token, force_refresh=force)
    )
    console.print_json(data=data)


@app.command()
def leagues(token: str = _token_option()) -> None:
    """List the leagues of the token's user."""
    rows = _fetch("leagues", lambda c: c.get_leagues(token))

    table = Table(title="Leagues")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    for league in rows:
        table.add_row(
            str(league.get("i", league.get("id", "-"))),
            str(league.get("n", league.get("name", "-"))),
        )
    console.print(table)


@app.command()
def ranking(
    league_id: str = typer.Argument(..., help="Kickbase league ID"),
    token: str = _token_option(),
    force: bool = typer.Option(False, "--force", "-f", help="Bypass cache"),
) -> None:
    """Show a league's manager ranking."""
    data = _fetch(
        "ranking", lambda c: c.get_league_ranking(league_id, token, force_refresh=force)
    )

    table = Table(title=f"Ranking of league {league_id}")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Manager")
    table.add_column("Points", style="green", justify="right")
    for row in ranking_rows(data):
        table.add_row(_cell(row["Rank"]), _cell(row["Manager"]), _cell(row["Points"]))
    console.print(table)


@app.command()
def market(
    league_id: str = typer.Argument(..., help="Kickbase league ID"),
    token: str = _token_option(),
) -> None:
    """Show the players on a league's transfer market."""
    rows = market_rows(_fetch("market", lambda c: c.get_market(league_id, token)))
    if not rows:
        console.print("[yellow]No players on the market.[/yellow]")
        return

    table = Table(title=f"Market of league {league_id}")
    table.add_column("Player")
    table.add_column("Price", justify="right")
    table.add_column("Market value", justify="right")
    table.add_column("Trend", justify="center")
    table.add_column("Ø Pts", justify="right")
    for row in rows:
        table.add_row(
            _cell(row["Player"]),
            row["Price"],
            row["Market value"],
            row["Trend"],
            _cell(row["Ø Points"]),
        )
    console.print(table)


@app.command("table")
def competition_table(
    token: str = _token_option(),
    competition_id: str = typer.Option("1", "--competition", help="Competition ID"),
    force: bool = typer.Option(False, "--force", "-f", help="Bypass cache"),
) -> None:
    """Show the competition standings (Bundesliga by default)."""
    teams = _fetch(
        "table",
        lambda c: c.get_competition_table(token, competition_id, force_refresh=force),
    )

    table = Table(title="Table")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Team")
    table.add_column("Points", style="green", justify="right")
    for row in standings_rows(teams):
        table.add_row(_cell(row["Place"]), _cell(row["Team"]), _cell(row["Points"]))
    console.print(table)


# =============================================================================
# Cache
# =============================================================================

cache_app = typer.Typer(help="Manage the provider response cache")
app.add_typer(cache_app, name="cache")


@cache_app.command("clear")
def cache_clear() -> None:
    """Delete all cached provider responses."""
    settings = get_settings()
    count = APICache(settings.cache.dir).clear()
    console.print(f"Cleared {count} cache entries")


@cache_app.command("invalidate")
def cache_invalidate(
    key: str = typer.Argument(..., help="Cache key, e.g. matches_123"),
) -> None:
    """Delete one cached provider response."""
    settings = get_settings()
    if APICache(settings.cache.dir).invalidate(key):
        console.print(f"Invalidated {key}")
    else:
        console.print(f"[yellow]No cache entry {key}[/yellow]")


@app.command("select-league")
def select_league(
    league_id: Optional[str] = typer.Argument(None, help="League ID to remember"),
    image: Optional[str] = typer.Option(None, "--image", help="League image URL"),
    clear: bool = typer.Option(False, "--clear", help="Forget the selection"),
) -> None:
    """Remember the league used for header imagery."""
    store = get_league_selection(get_settings().app.preferences_file)

    if clear:
        store.clear()
        console.print("Selection cleared")
        return

    if league_id is None:
        selected = store.get()
        console.print(f"Selected league: {selected.id}" if selected else "No league selected")
        return

    store.set(SelectedLeague(id=league_id, image=image))
    console.print(f"[green]Selected league {league_id}[/green]")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]Kickbase Companion[/bold] v{__version__}")


if __name__ == "__main__":
    app()
