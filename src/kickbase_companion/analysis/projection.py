"""
Projection Estimator.

Extrapolates a player's points for future matchdays from the scoring rate up
to a reference matchday, scaled by how easy the upcoming fixture looks
compared with the fixtures the player actually played.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Literal

from kickbase_companion.data.models import (
    TOTAL_MATCHDAYS,
    ClubFixture,
    MatchdayView,
    PlayerMatchdayStat,
)

from .reconciler import fixtures_by_matchday

logger = logging.getLogger(__name__)

OddsSource = Literal["heuristic", "market"]


@dataclass(frozen=True)
class OutcomeProbabilities:
    """Win/draw/loss probabilities from one club's perspective."""

    win: float
    draw: float
    loss: float

    @property
    def difficulty_score(self) -> float:
        """Higher is easier."""
        return 1.0 - self.loss

    def as_percentages(self) -> tuple[int, int, int]:
        """Rounded W/D/L percentages for display."""
        return (
            round_half_up(self.win * 100),
            round_half_up(self.draw * 100),
            round_half_up(self.loss * 100),
        )


@dataclass(frozen=True)
class MatchdayProjection:
    """Actual and projected points for one matchday."""

    matchday: int
    actual_points: int | None
    projected_points: int | None

    @property
    def display_points(self) -> int | None:
        """Projection where one exists, otherwise the actual points."""
        if self.projected_points is not None:
            return self.projected_points
        return self.actual_points


def round_half_up(value: float) -> int:
    """Round .5 upwards like a scoreboard would, not to the even neighbour."""
    return math.floor(value + 0.5)


# =============================================================================
# Fixture Difficulty
# =============================================================================


def outcome_probabilities(
    fixture: ClubFixture,
    club_id: str,
    source: OddsSource = "heuristic",
) -> OutcomeProbabilities | None:
    """
    Convert a fixture's odds-like triple into probabilities.

    Each 0-100 value is scaled to 0-1, inverted, and normalised by the sum of
    the three reciprocals (de-overround).

    Args:
        fixture: Fixture carrying the triple
        club_id: Club whose win/loss is wanted
        source: "heuristic" for model scores, "market" for market-implied values

    Returns:
        Probabilities, or None when the triple is incomplete or not positive
    """
    if source == "market":
        home, away, draw = (
            fixture.home_probability,
            fixture.away_probability,
            fixture.draw_probability,
        )
    else:
        home, away, draw = (
            fixture.home_heuristic,
            fixture.away_heuristic,
            fixture.draw_heuristic,
        )

    if home is None or away is None or draw is None:
        return None
    if home <= 0 or away <= 0 or draw <= 0:
        return None

    home_raw = 1 / (home / 100)
    away_raw = 1 / (away / 100)
    draw_raw = 1 / (draw / 100)

    if fixture.is_home(club_id):
        win_raw, loss_raw = home_raw, away_raw
    else:
        win_raw, loss_raw = away_raw, home_raw

    total = win_raw + draw_raw + loss_raw
    return OutcomeProbabilities(
        win=win_raw / total,
        draw=draw_raw / total,
        loss=loss_raw / total,
    )


def difficulty_score(fixture: ClubFixture | None, club_id: str) -> float | None:
    """Difficulty score of a fixture (1 - loss probability), None if unknown."""
    if fixture is None:
        return None
    probabilities = outcome_probabilities(fixture, club_id)
    if probabilities is None:
        return None
    return probabilities.difficulty_score


def difficulty_scores(
    fixtures: Iterable[ClubFixture], club_id: str
) -> dict[int, float | None]:
    """Difficulty score for every matchday of the season."""
    index = fixtures_by_matchday(fixtures)
    return {
        matchday: difficulty_score(index.get(matchday), club_id)
        for matchday in range(1, TOTAL_MATCHDAYS + 1)
    }


# =============================================================================
# Historical Baselines
# =============================================================================


def appearance_matchdays(
    stats: Iterable[PlayerMatchdayStat], reference: int
) -> list[int]:
    """Matchdays up to the reference on which the player was on the pitch."""
    return sorted(
        stat.matchday for stat in stats if stat.matchday <= reference and stat.minutes > 0
    )


def historical_rate(
    views: Iterable[MatchdayView],
    stats: Iterable[PlayerMatchdayStat],
    reference: int,
) -> float:
    """
    Points per appearance up to the reference matchday.

    Points of every matchday with data count, appearances only where minutes
    were played. Zero appearances give a rate of 0.
    """
    total_points = sum(
        view.points
        for view in views
        if view.matchday <= reference and view.points is not None
    )
    appearances = len(appearance_matchdays(stats, reference))
    if appearances == 0:
        return 0.0
    return total_points / appearances


def historical_difficulty(
    fixtures: Iterable[ClubFixture],
    stats: Iterable[PlayerMatchdayStat],
    club_id: str,
    reference: int,
) -> float:
    """
    Average difficulty score over the player's appearances up to the reference.

    Appearances without a computable score are left out. Returns 0 when no
    matchday qualifies.
    """
    scores = difficulty_scores(fixtures, club_id)
    played = [
        scores[matchday]
        for matchday in appearance_matchdays(stats, reference)
        if scores.get(matchday) is not None
    ]
    if not played:
        return 0.0
    return sum(played) / len(played)


# =============================================================================
# Projection
# =============================================================================


def project_points(
    matchday: int,
    reference: int,
    views: list[MatchdayView],
    stats: list[PlayerMatchdayStat],
    fixtures: list[ClubFixture],
    club_id: str,
) -> int | None:
    """
    Project points for a matchday after the reference matchday.

    Returns:
        Rounded projection, or None when no projection applies: no reference
        set, matchday not after the reference, no scored fixture for the
        matchday, or no historical difficulty to compare against
    """
    if reference <= 0 or matchday <= reference:
        return None

    index = fixtures_by_matchday(fixtures)
    target_score = difficulty_score(index.get(matchday), club_id)
    if target_score is None:
        return None

    baseline = historical_difficulty(fixtures, stats, club_id, reference)
    if baseline == 0:
        logger.debug(
            f"No historical difficulty up to matchday {reference}, "
            f"skipping projection for matchday {matchday}"
        )
        return None

    rate = historical_rate(views, stats, reference)
    return round_half_up(rate * (target_score / baseline))


def build_projection(
    reference: int,
    views: list[MatchdayView],
    stats: list[PlayerMatchdayStat],
    fixtures: list[ClubFixture],
    club_id: str,
) -> list[MatchdayProjection]:
    """Actual and projected points for every matchday of the season."""
    actual = {view.matchday: view.points for view in views}
    return [
        MatchdayProjection(
            matchday=matchday,
            actual_points=actual.get(matchday),
            projected_points=project_points(
                matchday, reference, views, stats, fixtures, club_id
            ),
        )
        for matchday in range(1, TOTAL_MATCHDAYS + 1)
    ]
