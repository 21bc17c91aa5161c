"""
Data Models and Storage Module.

Contains Pydantic models for Kickbase entities and SQLite storage operations.
"""

from .models import (
    TOTAL_MATCHDAYS,
    ClubFixture,
    FitnessStatus,
    ForecastTier,
    MatchdayView,
    NewsItem,
    PlayerMatchdayStat,
    SelectedLeague,
    ValueHistorySample,
)
from .processors import (
    process_club_fixtures,
    process_news,
    process_player_stats,
    process_value_history,
)
from .storage import Database, get_database

__all__ = [
    # Models
    "TOTAL_MATCHDAYS",
    "ClubFixture",
    "FitnessStatus",
    "ForecastTier",
    "MatchdayView",
    "NewsItem",
    "PlayerMatchdayStat",
    "SelectedLeague",
    "ValueHistorySample",
    # Storage
    "Database",
    "get_database",
    # Processors
    "process_club_fixtures",
    "process_news",
    "process_player_stats",
    "process_value_history",
]
