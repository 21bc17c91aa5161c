"""
FastAPI backend for Kickbase Companion.

Serves stored player news, values, statistics and club fixtures, and proxies
league match schedules from the Kickbase API.

Run with: kickbase-companion serve
"""

import logging
from typing import Any, AsyncIterator, Callable

from fastapi import Depends, FastAPI, Header, Query
from fastapi.responses import JSONResponse

from . import __version__
from .api import KickbaseAPIError, KickbaseClient
from .config import get_settings
from .data import Database, get_database

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Kickbase Companion API",
    description="Player data and league schedules for the Kickbase companion",
    version=__version__,
)


# =============================================================================
# Dependencies
# =============================================================================


def get_db() -> Database:
    """Database configured in settings."""
    return get_database(get_settings().database.path)


async def get_kickbase_client() -> AsyncIterator[KickbaseClient]:
    """Kickbase client for one request."""
    client = KickbaseClient.from_settings(get_settings().kickbase)
    try:
        yield client
    finally:
        await client.close()


def bearer_token(authorization: str | None) -> str | None:
    """Token of a "Bearer <token>" header, None when missing or empty."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme != "Bearer" or not token.strip():
        return None
    return token.strip()


def _error(message: str, status_code: int, key: str = "error") -> JSONResponse:
    return JSONResponse({key: message}, status_code=status_code)


def _rows_response(
    param: str,
    value: str | None,
    fetch: Callable[[str], Any],
    not_found: str,
) -> Any:
    """
    Shared flow of the lookup routes.

    Missing parameter -> 400, no rows -> 404, database failure -> 500.
    """
    if not value:
        return _error(f"{param} is required", 400)

    try:
        result = fetch(value)
    except Exception as e:
        logger.error(f"Database error for {param}={value}: {e}")
        return _error(str(e), 500)

    if not result:
        return _error(not_found, 404)
    return result


# =============================================================================
# Player Routes
# =============================================================================


@app.get("/api/player-news")
def get_player_news(
    player_id: str | None = Query(default=None, alias="playerId"),
    db: Database = Depends(get_db),
) -> Any:
    """News about a player, newest first."""
    return _rows_response("playerId", player_id, db.get_player_news, "No news found")


@app.get("/api/player-values")
def get_player_values(
    player_id: str | None = Query(default=None, alias="playerId"),
    db: Database = Depends(get_db),
) -> Any:
    """Market value history of a player, oldest first."""
    return _rows_response(
        "playerId", player_id, db.get_value_history, "No market values found"
    )


@app.get("/api/player-stats")
def get_player_stats(
    player_id: str | None = Query(default=None, alias="playerId"),
    season: str | None = Query(default=None),
    db: Database = Depends(get_db),
) -> Any:
    """Per-matchday statistics of a player, optionally for one season."""
    return _rows_response(
        "playerId",
        player_id,
        lambda value: db.get_player_stats(value, season),
        "No statistics found",
    )


# =============================================================================
# Club Routes
# =============================================================================


@app.get("/api/club-shortname")
def get_club_shortname(
    club_id: str | None = Query(default=None, alias="clubId"),
    db: Database = Depends(get_db),
) -> Any:
    """Short name of a club."""

    def fetch(value: str) -> dict[str, str] | None:
        shortname = db.get_club_shortname(value)
        return {"club_shortname": shortname} if shortname is not None else None

    return _rows_response("clubId", club_id, fetch, "No club found")


@app.get("/api/club-matches")
def get_club_matches(
    club_id: str | None = Query(default=None, alias="clubId"),
    season: str | None = Query(default=None),
    db: Database = Depends(get_db),
) -> Any:
    """Fixtures of a club ordered by matchday, optionally for one season."""
    return _rows_response(
        "clubId",
        club_id,
        lambda value: db.get_club_matches(value, season),
        "No matches found",
    )


# =============================================================================
# League Routes (proxied)
# =============================================================================


@app.get("/api/leagues/{league_id}/matches")
async def get_league_matches(
    league_id: str,
    authorization: str | None = Header(default=None),
    client: KickbaseClient = Depends(get_kickbase_client),
) -> Any:
    """Match schedule of a league, passed through from the Kickbase API."""
    token = bearer_token(authorization)
    if token is None:
        return _error("Authorization header missing or invalid", 401, key="message")

    logger.info(f"Matches request for league {league_id} with token {token[:15]}...")

    try:
        return await client.get_league_matches(league_id, token)
    except KickbaseAPIError as e:
        logger.error(f"Error fetching matches for league {league_id}: {e.message}")
        return _error(
            f"Error fetching matches: {e.message}",
            e.status_code or 500,
            key="message",
        )
    except Exception as e:
        logger.exception(f"Matches fetch error for league {league_id}")
        return _error(str(e) or "An unexpected error occurred", 500, key="message")
