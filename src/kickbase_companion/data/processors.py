"""
Data Processors for stored and proxied rows.

Transforms raw row dictionaries (database rows or JSON exports) into typed
Pydantic models. Malformed rows are skipped with a warning.
"""

import logging
from typing import Any

from .models import (
    ClubFixture,
    FitnessStatus,
    ForecastTier,
    NewsItem,
    PlayerMatchdayStat,
    ValueHistorySample,
)

logger = logging.getLogger(__name__)


def _optional_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return float(value)


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


# =============================================================================
# Market Values
# =============================================================================


def process_value_history(rows: list[dict[str, Any]]) -> list[ValueHistorySample]:
    """
    Process market value rows.

    Returns:
        Samples sorted ascending by date
    """
    samples = []

    for row in rows:
        try:
            samples.append(
                ValueHistorySample(
                    player_id=str(row["player_id"]),
                    date=row["date"],
                    value=int(row["value"]),
                )
            )
        except Exception as e:
            logger.warning(f"Error processing value row {row.get('date')}: {e}")
            continue

    samples.sort(key=lambda s: s.date)
    logger.debug(f"Processed {len(samples)} value samples")
    return samples


# =============================================================================
# Player Statistics
# =============================================================================


def process_player_stats(rows: list[dict[str, Any]]) -> list[PlayerMatchdayStat]:
    """
    Process per-matchday player statistics rows.

    Returns:
        Records sorted ascending by matchday
    """
    stats = []

    for row in rows:
        try:
            try:
                status = FitnessStatus(int(row.get("status") or 0))
            except ValueError:
                status = FitnessStatus.DOUBTFUL

            rating = _optional_float(row.get("liga_note", row.get("match_rating")))
            if rating is not None and not 0 <= rating <= 1:
                logger.warning(
                    f"Ignoring rating {rating} for matchday {row.get('matchday')}"
                )
                rating = None

            forecast_raw = _optional_int(row.get("forecast"))
            try:
                forecast = ForecastTier(forecast_raw) if forecast_raw else None
            except ValueError:
                forecast = None

            stats.append(
                PlayerMatchdayStat(
                    season=str(row.get("season", "")),
                    matchday=int(row["matchday"]),
                    player_id=str(row["player_id"]),
                    points=int(row.get("points") or 0),
                    minutes=int(row.get("minutes") or 0),
                    started=bool(row.get("started")),
                    yellow=int(row.get("yellow") or 0),
                    red=int(row.get("red") or 0),
                    goals=int(row.get("goals") or 0),
                    assists=int(row.get("assist", row.get("assists")) or 0),
                    status=status,
                    injury_text=row.get("injury_text") or None,
                    match_rating=rating,
                    forecast=forecast,
                )
            )
        except Exception as e:
            logger.warning(
                f"Error processing stats for matchday {row.get('matchday')}: {e}"
            )
            continue

    stats.sort(key=lambda s: s.matchday)
    logger.debug(f"Processed {len(stats)} matchday stats")
    return stats


# =============================================================================
# Club Fixtures
# =============================================================================


def process_club_fixtures(rows: list[dict[str, Any]]) -> list[ClubFixture]:
    """
    Process club fixture rows.

    Accepts both the stored column names (home_probabilities, home_heuristics)
    and the model field names.

    Returns:
        Fixtures sorted ascending by matchday
    """
    fixtures = []

    for row in rows:
        try:
            fixtures.append(
                ClubFixture(
                    season=str(row.get("season", "")),
                    matchday=int(row["matchday"]),
                    match_date=row.get("match_date") or None,
                    match_id=str(row.get("match_id", "")),
                    home_club_id=str(row["home_club_id"]),
                    home_club_shortname=row.get("home_club_shortname") or "",
                    away_club_id=str(row["away_club_id"]),
                    away_club_shortname=row.get("away_club_shortname") or "",
                    home_score=_optional_int(row.get("home_score")),
                    away_score=_optional_int(row.get("away_score")),
                    home_probability=_optional_float(
                        row.get("home_probabilities", row.get("home_probability"))
                    ),
                    away_probability=_optional_float(
                        row.get("away_probabilities", row.get("away_probability"))
                    ),
                    draw_probability=_optional_float(
                        row.get("draw_probabilities", row.get("draw_probability"))
                    ),
                    home_heuristic=_optional_float(
                        row.get("home_heuristics", row.get("home_heuristic"))
                    ),
                    away_heuristic=_optional_float(
                        row.get("away_heuristics", row.get("away_heuristic"))
                    ),
                    draw_heuristic=_optional_float(
                        row.get("draw_heuristics", row.get("draw_heuristic"))
                    ),
                )
            )
        except Exception as e:
            logger.warning(
                f"Error processing fixture for matchday {row.get('matchday')}: {e}"
            )
            continue

    fixtures.sort(key=lambda f: f.matchday)
    logger.debug(f"Processed {len(fixtures)} club fixtures")
    return fixtures


def process_news(rows: list[dict[str, Any]]) -> list[NewsItem]:
    """Process news rows, keeping their order."""
    items = []

    for row in rows:
        try:
            items.append(
                NewsItem(
                    player_id=str(row["player_id"]),
                    date=str(row["date"]),
                    time=str(row.get("time") or ""),
                    title=row["title"],
                    link=row.get("link"),
                    comprehension=row.get("comprehension"),
                    category=row.get("category"),
                )
            )
        except Exception as e:
            logger.warning(f"Error processing news row: {e}")
            continue

    return items
