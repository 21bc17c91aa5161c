"""Shared fixtures and builders for the test suite."""

import pytest

from kickbase_companion.data import (
    ClubFixture,
    Database,
    PlayerMatchdayStat,
    ValueHistorySample,
)

CLUB = "2"
OPPONENT = "7"


def make_fixture(
    matchday: int,
    match_date: str | None = "2024-03-01T18:30:00",
    home: bool = True,
    heuristics: tuple[float, float, float] | None = None,
    probabilities: tuple[float, float, float] | None = None,
    score: tuple[int, int] | None = None,
) -> ClubFixture:
    """Fixture of CLUB; triples are (home, away, draw)."""
    home_h, away_h, draw_h = heuristics or (None, None, None)
    home_p, away_p, draw_p = probabilities or (None, None, None)
    return ClubFixture(
        season="2023/2024",
        matchday=matchday,
        match_date=match_date,
        match_id=f"m{matchday}",
        home_club_id=CLUB if home else OPPONENT,
        home_club_shortname="BVB" if home else "SCF",
        away_club_id=OPPONENT if home else CLUB,
        away_club_shortname="SCF" if home else "BVB",
        home_score=score[0] if score else None,
        away_score=score[1] if score else None,
        home_heuristic=home_h,
        away_heuristic=away_h,
        draw_heuristic=draw_h,
        home_probability=home_p,
        away_probability=away_p,
        draw_probability=draw_p,
    )


def make_stat(matchday: int, points: int = 0, minutes: int = 90, **kwargs) -> PlayerMatchdayStat:
    return PlayerMatchdayStat(
        season="2023/2024",
        matchday=matchday,
        player_id="p1",
        points=points,
        minutes=minutes,
        **kwargs,
    )


def make_sample(date: str, value: int) -> ValueHistorySample:
    return ValueHistorySample(player_id="p1", date=date, value=value)


@pytest.fixture
def db(tmp_path) -> Database:
    return Database(tmp_path / "test.db")
