"""
Player Matchday Report.

Builds the rows of the player detail page: fixture context, result or
outcome probabilities, points, market value and its change, and the
per-matchday statistics, split into an analysis and a prognosis section.
"""

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping

from kickbase_companion.api.endpoints import CDN_BASE_URL
from kickbase_companion.data.models import (
    ClubFixture,
    FitnessStatus,
    MatchdayView,
    PlayerMatchdayStat,
    ValueHistorySample,
)

from .projection import OutcomeProbabilities, build_projection, outcome_probabilities
from .reconciler import build_matchday_views, fixtures_by_matchday, format_currency

# First matchday of the prognosis section
SPLIT_MATCHDAY = 30

PLACEHOLDER_IMAGE = "/placeholder.png"

Outcome = Literal["W", "D", "L"]

STATUS_LABELS = {
    FitnessStatus.FIT: "Fit",
    FitnessStatus.INJURED: "Injured",
    FitnessStatus.DOUBTFUL: "Doubtful",
}

POSITION_LABELS = {
    1: "Goalkeeper",
    2: "Defender",
    3: "Midfielder",
    4: "Forward",
}


@dataclass
class MatchdayRow:
    """Everything shown in one matchday column."""

    matchday: int
    date: str | None = None
    opponent: str | None = None
    venue: Literal["H", "A"] | None = None
    result: str | None = None
    outcome: Outcome | None = None
    market_odds: OutcomeProbabilities | None = None
    heuristic_odds: OutcomeProbabilities | None = None
    points: int | None = None
    projected_points: int | None = None
    market_value: int | None = None
    market_value_formatted: str | None = None
    market_value_diff: int | None = None
    rating: str | None = None
    start_eleven: str | None = None
    minutes: int | None = None
    status: str | None = None
    goals: int | None = None
    assists: int | None = None
    yellow: int | None = None
    red: int | None = None

    @property
    def market_value_diff_formatted(self) -> str | None:
        if self.market_value_diff is None:
            return None
        return format_currency(self.market_value_diff)


@dataclass
class PlayerReport:
    """Matchday rows of a player plus chart scaling values."""

    player_id: str
    club_id: str
    reference_matchday: int = 0
    rows: list[MatchdayRow] = field(default_factory=list)

    @property
    def analysis_rows(self) -> list[MatchdayRow]:
        """Matchdays before the prognosis section."""
        return [r for r in self.rows if r.matchday < SPLIT_MATCHDAY]

    @property
    def prognosis_rows(self) -> list[MatchdayRow]:
        """Matchdays from SPLIT_MATCHDAY to the end of the season."""
        return [r for r in self.rows if r.matchday >= SPLIT_MATCHDAY]

    @property
    def max_points(self) -> int:
        """Largest points value, never below 0."""
        points = [r.points for r in self.rows if r.points is not None]
        return max([0, *points])

    @property
    def min_points(self) -> int:
        """Smallest points value, never above 0."""
        points = [r.points for r in self.rows if r.points is not None]
        return min([0, *points])

    @property
    def max_market_value(self) -> int:
        values = [r.market_value for r in self.rows if r.market_value is not None]
        return max(values) if values else 0

    @property
    def has_data(self) -> bool:
        return any(
            r.points is not None or r.market_value is not None or r.opponent is not None
            for r in self.rows
        )


# =============================================================================
# Helpers
# =============================================================================


def match_outcome(fixture: ClubFixture, club_id: str) -> Outcome | None:
    """Win/draw/loss from the club's perspective, None before kickoff."""
    if fixture.home_score is None or fixture.away_score is None:
        return None
    if fixture.home_score == fixture.away_score:
        return "D"
    home_won = fixture.home_score > fixture.away_score
    return "W" if home_won == fixture.is_home(club_id) else "L"


def start_eleven_label(stat: PlayerMatchdayStat | None, matchday: int) -> str | None:
    """Forecast percentage for prognosis matchdays, otherwise started or not."""
    if stat is None:
        return None
    if matchday >= SPLIT_MATCHDAY and stat.forecast is not None:
        return f"{stat.forecast.percentage}%"
    return "✓" if stat.started else "✗"


def resolve_image_url(image: str | None) -> str:
    """Absolute image URL for a player image path."""
    if not image or image == "-":
        return PLACEHOLDER_IMAGE
    if image.startswith("http") or image.startswith("/"):
        return image
    return f"{CDN_BASE_URL}{image}"


def trend_icon(market_value_trend: int | None) -> str:
    """Arrow for the market value trend code (1 rising, 2 falling)."""
    if market_value_trend == 1:
        return "↑"
    if market_value_trend == 2:
        return "↓"
    return "→"


def position_label(position: int | None) -> str:
    return POSITION_LABELS.get(position or 0, "Unknown")


def status_label(status: int | None) -> str:
    """Fitness label; unknown codes read as doubtful."""
    try:
        return STATUS_LABELS[FitnessStatus(status or 0)]
    except ValueError:
        return STATUS_LABELS[FitnessStatus.DOUBTFUL]


def _int_param(params: Mapping[str, str], key: str) -> int | None:
    try:
        return int(params[key])
    except (KeyError, TypeError, ValueError):
        return None


# =============================================================================
# Header
# =============================================================================


@dataclass
class PlayerHeader:
    """Facts shown above the matchday tables."""

    player_id: str
    club_id: str
    name: str
    club: str | None
    image_url: str
    position: str
    status: int
    status_label: str
    market_value: int | None
    market_value_formatted: str | None
    trend: str | None
    points: str
    average_points: str


def build_player_header(
    player_id: str,
    club_id: str,
    player_row: Mapping[str, Any] | None = None,
    params: Mapping[str, str] | None = None,
) -> PlayerHeader:
    """
    Collect header facts from link parameters, falling back to the stored player.

    Args:
        player_id: Kickbase player ID
        club_id: The player's club
        player_row: Row of the players table, if the player is stored
        params: Link parameters (firstName, lastName, position, status,
            marketValue, points, avgPoints, playerImage, mvt)

    Returns:
        PlayerHeader with "-" for unknown points
    """
    params = params or {}
    row = player_row or {}

    first_name = params.get("firstName") or row.get("first_name") or "-"
    last_name = params.get("lastName") or row.get("last_name") or "Player"
    name = last_name if first_name == "-" else f"{first_name} {last_name}"

    position = _int_param(params, "position")
    if position is None:
        position = row.get("position")

    market_value = _int_param(params, "marketValue")
    if market_value is None:
        market_value = row.get("market_value")

    status = _int_param(params, "status") or 0
    mvt = _int_param(params, "mvt")

    return PlayerHeader(
        player_id=str(player_id),
        club_id=str(club_id),
        name=name,
        club=row.get("club_shortname"),
        image_url=resolve_image_url(params.get("playerImage")),
        position=position_label(position),
        status=status,
        status_label=status_label(status),
        market_value=market_value,
        market_value_formatted=(
            format_currency(market_value) if market_value is not None else None
        ),
        trend=trend_icon(mvt) if mvt is not None and mvt != -1 else None,
        points=params.get("points") or "-",
        average_points=params.get("avgPoints") or "-",
    )


# =============================================================================
# Report
# =============================================================================


def build_player_report(
    player_id: str,
    club_id: str,
    stats: list[PlayerMatchdayStat],
    fixtures: list[ClubFixture],
    value_history: list[ValueHistorySample],
    reference_matchday: int = 0,
) -> PlayerReport:
    """
    Build the full matchday report of a player.

    Args:
        player_id: Kickbase player ID
        club_id: The player's club, decides home/away and win/loss
        stats: Per-matchday statistics
        fixtures: The club's fixtures
        value_history: Market value samples sorted ascending by date
        reference_matchday: Projection reference, 0 for none

    Returns:
        PlayerReport with one row per matchday
    """
    views: list[MatchdayView] = build_matchday_views(stats, fixtures, value_history)
    projections = build_projection(reference_matchday, views, stats, fixtures, club_id)
    stats_by_matchday = {s.matchday: s for s in stats}
    fixture_index = fixtures_by_matchday(fixtures)

    rows = []
    for view, projection in zip(views, projections):
        matchday = view.matchday
        fixture = fixture_index.get(matchday)
        stat = stats_by_matchday.get(matchday)
        previous = views[matchday - 2] if matchday > 1 else None

        row = MatchdayRow(
            matchday=matchday,
            points=view.points,
            projected_points=projection.projected_points,
            market_value=view.market_value,
            market_value_formatted=view.market_value_formatted,
        )

        if (
            previous is not None
            and view.market_value is not None
            and previous.market_value is not None
        ):
            row.market_value_diff = view.market_value - previous.market_value

        if fixture is not None:
            row.date = fixture.match_date.strftime("%d.%m.") if fixture.match_date else None
            row.opponent = fixture.opponent_shortname(club_id) or None
            row.venue = "H" if fixture.is_home(club_id) else "A"
            if fixture.home_score is not None and fixture.away_score is not None:
                row.result = f"{fixture.home_score}:{fixture.away_score}"
            row.outcome = match_outcome(fixture, club_id)
            if matchday >= SPLIT_MATCHDAY:
                row.market_odds = outcome_probabilities(fixture, club_id, "market")
                row.heuristic_odds = outcome_probabilities(fixture, club_id, "heuristic")

        if stat is not None:
            row.rating = f"{stat.match_rating:.1f}" if stat.match_rating is not None else None
            row.start_eleven = start_eleven_label(stat, matchday)
            row.minutes = stat.minutes
            row.status = STATUS_LABELS[stat.status]
            row.goals = stat.goals
            row.assists = stat.assists
            row.yellow = stat.yellow
            row.red = stat.red

        rows.append(row)

    return PlayerReport(
        player_id=str(player_id),
        club_id=str(club_id),
        reference_matchday=reference_matchday,
        rows=rows,
    )
