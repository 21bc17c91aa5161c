"""
Pydantic data models for Kickbase Companion.

These models represent the snapshots read per page view: market value history,
per-matchday player statistics, club fixtures, news, and the derived matchday
view that joins them.
"""

from datetime import datetime, timezone
from enum import IntEnum

from pydantic import BaseModel, Field, computed_field, field_validator

# Bundesliga season length
TOTAL_MATCHDAYS = 34


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Drop timezone info after converting to UTC so all dates compare."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class FitnessStatus(IntEnum):
    """Player fitness status as reported per matchday."""

    FIT = 0
    INJURED = 1
    DOUBTFUL = 2


class ForecastTier(IntEnum):
    """
    Start-eleven forecast tier.

    Only published for upcoming matchdays. Tier 1 is the most likely starter.
    """

    LIKELY = 1
    POSSIBLE = 2
    UNLIKELY = 3

    @property
    def percentage(self) -> int:
        """Chance to start shown for the tier."""
        return {1: 90, 2: 60, 3: 30}[self.value]


# =============================================================================
# Source Snapshots
# =============================================================================


class ValueHistorySample(BaseModel):
    """A single dated market value of a player."""

    player_id: str = Field(description="Kickbase player ID")
    date: datetime = Field(description="Day the value was published")
    value: int = Field(description="Market value in euros")

    @field_validator("date")
    @classmethod
    def normalize_date(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class PlayerMatchdayStat(BaseModel):
    """
    Statistics of one player on one matchday.

    A missing record means the player did not appear in provider data for that
    matchday, which is different from a record with 0 points.
    """

    season: str = Field(default="", description="Season label, e.g. 2024/2025")
    matchday: int = Field(ge=1, le=TOTAL_MATCHDAYS, description="Matchday number")
    player_id: str = Field(description="Kickbase player ID")
    points: int = Field(default=0, description="Kickbase points")
    minutes: int = Field(default=0, ge=0, description="Minutes played")
    started: bool = Field(default=False, description="Was in the starting eleven")
    yellow: int = Field(default=0, ge=0)
    red: int = Field(default=0, ge=0)
    goals: int = Field(default=0, ge=0)
    assists: int = Field(default=0, ge=0)
    status: FitnessStatus = Field(default=FitnessStatus.FIT)
    injury_text: str | None = Field(
        default=None, description="Injury description, None when fit"
    )
    match_rating: float | None = Field(
        default=None, ge=0, le=1, description="Match rating, None when not rated"
    )
    forecast: ForecastTier | None = Field(
        default=None, description="Start-eleven forecast, None when not published"
    )

    @computed_field
    @property
    def appeared(self) -> bool:
        """Player was on the pitch."""
        return self.minutes > 0


class ClubFixture(BaseModel):
    """
    One fixture of a club on a matchday.

    Probability and heuristic triples are on a 0-100 scale and only populated
    for upcoming matchdays (30 and later in the current dataset).
    """

    season: str = Field(default="")
    matchday: int = Field(ge=1, le=TOTAL_MATCHDAYS)
    match_date: datetime | None = Field(default=None, description="Kickoff")
    match_id: str = Field(default="")
    home_club_id: str
    home_club_shortname: str = Field(default="")
    away_club_id: str
    away_club_shortname: str = Field(default="")
    home_score: int | None = Field(default=None, description="None before kickoff")
    away_score: int | None = Field(default=None, description="None before kickoff")

    # Market-implied probabilities
    home_probability: float | None = Field(default=None)
    away_probability: float | None = Field(default=None)
    draw_probability: float | None = Field(default=None)

    # Model heuristic scores
    home_heuristic: float | None = Field(default=None)
    away_heuristic: float | None = Field(default=None)
    draw_heuristic: float | None = Field(default=None)

    @field_validator("match_date")
    @classmethod
    def normalize_match_date(cls, v: datetime | None) -> datetime | None:
        return to_naive_utc(v)

    def is_home(self, club_id: str) -> bool:
        """Whether the given club plays at home."""
        return str(club_id) == str(self.home_club_id)

    def opponent_shortname(self, club_id: str) -> str:
        """Short name of the other club."""
        if self.is_home(club_id):
            return self.away_club_shortname
        return self.home_club_shortname


class NewsItem(BaseModel):
    """A news entry about a player."""

    player_id: str
    date: str = Field(description="Publication date (YYYY-MM-DD)")
    time: str = Field(default="", description="Publication time (HH:MM[:SS])")
    title: str
    link: str | None = Field(default=None)
    comprehension: str | None = Field(default=None, description="Short summary")
    category: str | None = Field(default=None)


class SelectedLeague(BaseModel):
    """League chosen by the user in the dashboard."""

    id: str
    image: str | None = Field(default=None, description="League image URL or path")


# =============================================================================
# Derived Views
# =============================================================================


class MatchdayView(BaseModel):
    """Points and market value of a player on one matchday. Never persisted."""

    matchday: int
    points: int | None = None
    market_value: int | None = None
    market_value_formatted: str | None = None
