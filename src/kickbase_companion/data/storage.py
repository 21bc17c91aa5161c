"""
SQLite database storage operations for Kickbase Companion.

Handles persistence of players, news, market value history, per-matchday
statistics and club fixtures. Reads return plain row dictionaries so the API
routes can pass them through unchanged.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Generator

from .models import ClubFixture, NewsItem, PlayerMatchdayStat, ValueHistorySample
from .processors import (
    process_club_fixtures,
    process_news,
    process_player_stats,
    process_value_history,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Database Schema
# =============================================================================

SCHEMA = """
-- Players table
CREATE TABLE IF NOT EXISTS players (
    player_id TEXT PRIMARY KEY,
    first_name TEXT DEFAULT '',
    last_name TEXT NOT NULL,
    club_id TEXT NOT NULL,
    club_shortname TEXT NOT NULL,
    position INTEGER DEFAULT 0,
    market_value INTEGER DEFAULT 0,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_players_club ON players(club_id);

-- Player news
CREATE TABLE IF NOT EXISTS news (
    player_id TEXT NOT NULL,
    date TEXT NOT NULL,
    time TEXT NOT NULL DEFAULT '',
    title TEXT NOT NULL,
    link TEXT,
    comprehension TEXT,
    category TEXT,
    PRIMARY KEY (player_id, date, time, title)
);

-- Market value history (one value per player per day)
CREATE TABLE IF NOT EXISTS player_values (
    player_id TEXT NOT NULL,
    date TEXT NOT NULL,
    value INTEGER NOT NULL,
    PRIMARY KEY (player_id, date)
);

-- Per-matchday player statistics
CREATE TABLE IF NOT EXISTS player_stats (
    season TEXT NOT NULL DEFAULT '',
    matchday INTEGER NOT NULL,
    player_id TEXT NOT NULL,
    points INTEGER DEFAULT 0,
    minutes INTEGER DEFAULT 0,
    started INTEGER DEFAULT 0,
    red INTEGER DEFAULT 0,
    yellow INTEGER DEFAULT 0,
    goals INTEGER DEFAULT 0,
    assist INTEGER DEFAULT 0,
    status INTEGER DEFAULT 0,
    liga_note REAL,
    injury_text TEXT,
    forecast INTEGER,
    PRIMARY KEY (season, matchday, player_id)
);

-- Club fixtures per matchday
CREATE TABLE IF NOT EXISTS club_matches (
    season TEXT NOT NULL DEFAULT '',
    matchday INTEGER NOT NULL,
    match_date TEXT,
    match_id TEXT NOT NULL,
    home_club_id TEXT NOT NULL,
    home_club_shortname TEXT DEFAULT '',
    home_score INTEGER,
    away_club_id TEXT NOT NULL,
    away_club_shortname TEXT DEFAULT '',
    away_score INTEGER,
    home_probabilities REAL,
    away_probabilities REAL,
    draw_probabilities REAL,
    home_heuristics REAL,
    away_heuristics REAL,
    draw_heuristics REAL,
    PRIMARY KEY (season, matchday, match_id)
);
"""

TABLES = ("players", "news", "player_values", "player_stats", "club_matches")

_PLAYER_DEFAULTS = {"first_name": "", "position": 0, "market_value": 0}

_NEWS_DEFAULTS = {"time": "", "link": None, "comprehension": None, "category": None}

_STATS_DEFAULTS = {
    "season": "",
    "points": 0,
    "minutes": 0,
    "started": 0,
    "red": 0,
    "yellow": 0,
    "goals": 0,
    "assist": 0,
    "status": 0,
    "liga_note": None,
    "injury_text": None,
    "forecast": None,
}

_MATCH_DEFAULTS = {
    "season": "",
    "match_date": None,
    "home_club_shortname": "",
    "away_club_shortname": "",
    "home_score": None,
    "away_score": None,
    "home_probabilities": None,
    "away_probabilities": None,
    "draw_probabilities": None,
    "home_heuristics": None,
    "away_heuristics": None,
    "draw_heuristics": None,
}


# =============================================================================
# Database Connection Management
# =============================================================================


class Database:
    """SQLite database manager for Kickbase Companion."""

    def __init__(self, db_path: str | Path = "data/kickbase.db"):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self) -> None:
        """Initialize database schema."""
        with self.connection() as conn:
            conn.executescript(SCHEMA)

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _fetch_all(self, query: str, params: tuple[Any, ...]) -> list[dict[str, Any]]:
        with self.connection() as conn:
            cursor = conn.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]

    # =========================================================================
    # Player Operations
    # =========================================================================

    def upsert_players(self, rows: list[dict[str, Any]]) -> int:
        """Bulk insert or update players."""
        with self.connection() as conn:
            conn.executemany(
                """
                INSERT OR REPLACE INTO players
                (player_id, first_name, last_name, club_id, club_shortname,
                 position, market_value, updated_at)
                VALUES (:player_id, :first_name, :last_name, :club_id,
                        :club_shortname, :position, :market_value, :updated_at)
                """,
                [
                    {**_PLAYER_DEFAULTS, **row, "updated_at": datetime.now().isoformat()}
                    for row in rows
                ],
            )
        return len(rows)

    def get_player(self, player_id: str) -> dict[str, Any] | None:
        """Get a single player row."""
        rows = self._fetch_all(
            "SELECT * FROM players WHERE player_id = ?", (str(player_id),)
        )
        return rows[0] if rows else None

    def get_club_shortname(self, club_id: str) -> str | None:
        """Get a club's short name from any of its players."""
        rows = self._fetch_all(
            "SELECT club_shortname FROM players WHERE club_id = ? LIMIT 1",
            (str(club_id),),
        )
        return rows[0]["club_shortname"] if rows else None

    # =========================================================================
    # News Operations
    # =========================================================================

    def upsert_news(self, rows: list[dict[str, Any]]) -> int:
        """Bulk insert or update news entries."""
        with self.connection() as conn:
            conn.executemany(
                """
                INSERT OR REPLACE INTO news
                (player_id, date, time, title, link, comprehension, category)
                VALUES (:player_id, :date, :time, :title, :link,
                        :comprehension, :category)
                """,
                [{**_NEWS_DEFAULTS, **row} for row in rows],
            )
        return len(rows)

    def get_player_news(self, player_id: str) -> list[dict[str, Any]]:
        """Get news rows for a player, newest first."""
        return self._fetch_all(
            """
            SELECT player_id, date, time, title, link, comprehension, category
            FROM news
            WHERE player_id = ?
            ORDER BY date DESC, time DESC
            """,
            (str(player_id),),
        )

    # =========================================================================
    # Market Value Operations
    # =========================================================================

    def upsert_values(self, rows: list[dict[str, Any]]) -> int:
        """Bulk insert or update market value samples."""
        with self.connection() as conn:
            conn.executemany(
                """
                INSERT OR REPLACE INTO player_values (player_id, date, value)
                VALUES (:player_id, :date, :value)
                """,
                rows,
            )
        return len(rows)

    def get_value_history(self, player_id: str) -> list[dict[str, Any]]:
        """Get market value rows for a player, oldest first."""
        return self._fetch_all(
            """
            SELECT player_id, date, value
            FROM player_values
            WHERE player_id = ?
            ORDER BY date ASC
            """,
            (str(player_id),),
        )

    # =========================================================================
    # Statistics Operations
    # =========================================================================

    def upsert_player_stats(self, rows: list[dict[str, Any]]) -> int:
        """Bulk insert or update per-matchday statistics."""
        with self.connection() as conn:
            conn.executemany(
                """
                INSERT OR REPLACE INTO player_stats
                (season, matchday, player_id, points, minutes, started, red,
                 yellow, goals, assist, status, liga_note, injury_text, forecast)
                VALUES (:season, :matchday, :player_id, :points, :minutes,
                        :started, :red, :yellow, :goals, :assist, :status,
                        :liga_note, :injury_text, :forecast)
                """,
                [{**_STATS_DEFAULTS, **row} for row in rows],
            )
        return len(rows)

    def get_player_stats(
        self, player_id: str, season: str | None = None
    ) -> list[dict[str, Any]]:
        """
        Get statistics rows for a player, ordered by matchday.

        Args:
            player_id: Kickbase player ID
            season: Restrict to one season, all seasons when None
        """
        query = "SELECT * FROM player_stats WHERE player_id = ?"
        params: tuple[Any, ...] = (str(player_id),)
        if season is not None:
            query += " AND season = ?"
            params += (season,)
        rows = self._fetch_all(f"{query} ORDER BY season ASC, matchday ASC", params)
        for row in rows:
            row["started"] = bool(row["started"])
        return rows

    def get_latest_season(self, player_id: str) -> str | None:
        """Most recent season with statistics for a player."""
        rows = self._fetch_all(
            "SELECT MAX(season) AS season FROM player_stats WHERE player_id = ?",
            (str(player_id),),
        )
        return rows[0]["season"] if rows else None

    # =========================================================================
    # Fixture Operations
    # =========================================================================

    def upsert_club_matches(self, rows: list[dict[str, Any]]) -> int:
        """Bulk insert or update club fixtures."""
        with self.connection() as conn:
            conn.executemany(
                """
                INSERT OR REPLACE INTO club_matches
                (season, matchday, match_date, match_id, home_club_id,
                 home_club_shortname, home_score, away_club_id,
                 away_club_shortname, away_score, home_probabilities,
                 away_probabilities, draw_probabilities, home_heuristics,
                 away_heuristics, draw_heuristics)
                VALUES (:season, :matchday, :match_date, :match_id,
                        :home_club_id, :home_club_shortname, :home_score,
                        :away_club_id, :away_club_shortname, :away_score,
                        :home_probabilities, :away_probabilities,
                        :draw_probabilities, :home_heuristics,
                        :away_heuristics, :draw_heuristics)
                """,
                [{**_MATCH_DEFAULTS, **row} for row in rows],
            )
        return len(rows)

    def get_club_matches(
        self, club_id: str, season: str | None = None
    ) -> list[dict[str, Any]]:
        """Get fixtures involving a club, ordered by matchday."""
        query = "SELECT * FROM club_matches WHERE (home_club_id = ? OR away_club_id = ?)"
        params: tuple[Any, ...] = (str(club_id), str(club_id))
        if season is not None:
            query += " AND season = ?"
            params += (season,)
        return self._fetch_all(f"{query} ORDER BY season ASC, matchday ASC", params)

    def get_latest_club_season(self, club_id: str) -> str | None:
        """Most recent season with fixtures for a club."""
        rows = self._fetch_all(
            """
            SELECT MAX(season) AS season FROM club_matches
            WHERE home_club_id = ? OR away_club_id = ?
            """,
            (str(club_id), str(club_id)),
        )
        return rows[0]["season"] if rows else None

    # =========================================================================
    # Typed Snapshots
    # =========================================================================

    def load_player_snapshot(
        self, player_id: str, club_id: str, season: str | None = None
    ) -> tuple[list[PlayerMatchdayStat], list[ClubFixture], list[ValueHistorySample]]:
        """
        Load everything the player detail view needs as models.

        Statistics and fixtures are keyed by season, so both are restricted to
        one season to keep one record per matchday.

        Args:
            player_id: Kickbase player ID
            club_id: The player's club
            season: Season to load, defaults to the player's latest season
                (or the club's latest when the player has no statistics)

        Returns:
            Tuple of (stats, club fixtures, value history)
        """
        if season is None:
            season = self.get_latest_season(player_id)
        if season is None:
            season = self.get_latest_club_season(club_id)
        logger.debug(f"Loading player {player_id} for season {season!r}")

        if season is None:
            return [], [], process_value_history(self.get_value_history(player_id))

        return (
            process_player_stats(self.get_player_stats(player_id, season)),
            process_club_fixtures(self.get_club_matches(club_id, season)),
            process_value_history(self.get_value_history(player_id)),
        )

    def load_player_news(self, player_id: str) -> list[NewsItem]:
        """Load news for a player as models."""
        return process_news(self.get_player_news(player_id))

    # =========================================================================
    # Utility Operations
    # =========================================================================

    def get_row_counts(self) -> dict[str, int]:
        """Count rows per table."""
        counts = {}
        with self.connection() as conn:
            for table in TABLES:
                cursor = conn.execute(f"SELECT COUNT(*) FROM {table}")
                counts[table] = cursor.fetchone()[0]
        return counts

    def clear_all_data(self) -> None:
        """Clear all data from database (use with caution)."""
        with self.connection() as conn:
            for table in TABLES:
                conn.execute(f"DELETE FROM {table}")
        logger.info("Cleared all tables")


# =============================================================================
# Module-level convenience functions
# =============================================================================

_db: Database | None = None


def get_database(db_path: str | Path = "data/kickbase.db") -> Database:
    """Get or create the database instance."""
    global _db
    if _db is None:
        _db = Database(db_path)
    return _db
