"""
Analysis Module for the player detail page.

- Matchday reconciliation of statistics, fixtures and market values
- Fixture difficulty and points projection
- Matchday report rows for tables and charts
- League dashboard rows
"""

from .projection import (
    MatchdayProjection,
    OutcomeProbabilities,
    build_projection,
    difficulty_score,
    historical_difficulty,
    historical_rate,
    outcome_probabilities,
    project_points,
)
from .league import market_rows, ranking_rows, standings_rows
from .reconciler import (
    FORWARD_WINDOW_DAYS,
    build_matchday_views,
    find_market_value_for_matchday,
    format_currency,
    parse_currency,
)
from .report import (
    SPLIT_MATCHDAY,
    MatchdayRow,
    PlayerReport,
    PlayerHeader,
    build_player_report,
    build_player_header,
    resolve_image_url,
    trend_icon,
)

__all__ = [
    # Reconciler
    "FORWARD_WINDOW_DAYS",
    "build_matchday_views",
    "find_market_value_for_matchday",
    "format_currency",
    "parse_currency",
    # Projection
    "MatchdayProjection",
    "OutcomeProbabilities",
    "build_projection",
    "difficulty_score",
    "historical_difficulty",
    "historical_rate",
    "outcome_probabilities",
    "project_points",
    # League
    "market_rows",
    "ranking_rows",
    "standings_rows",
    # Report
    "SPLIT_MATCHDAY",
    "MatchdayRow",
    "PlayerReport",
    "build_player_report",
    "build_player_header",
    "PlayerHeader",
    "resolve_image_url",
    "trend_icon",
]
