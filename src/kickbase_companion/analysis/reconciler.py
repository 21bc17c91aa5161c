"""
Matchday Reconciler.

Joins per-matchday player statistics, club fixtures and dated market value
samples into one view per matchday of the season.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from kickbase_companion.data.models import (
    TOTAL_MATCHDAYS,
    ClubFixture,
    MatchdayView,
    PlayerMatchdayStat,
    ValueHistorySample,
)

# Value updates may be published a few days after kickoff
FORWARD_WINDOW_DAYS = 3

SECONDS_PER_DAY = 60 * 60 * 24

CURRENCY_SYMBOL = "€"
NBSP = "\u00a0"


def format_currency(value: int | float) -> str:
    """
    Format a euro amount the German way without fractional digits.

    Example: 1234567 -> "1.234.567 €" (non-breaking space before the symbol).
    """
    rounded = int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    grouped = f"{abs(rounded):,}".replace(",", ".")
    sign = "-" if rounded < 0 else ""
    return f"{sign}{grouped}{NBSP}{CURRENCY_SYMBOL}"


def parse_currency(text: str) -> int:
    """Strip grouping and currency symbols from a formatted amount."""
    digits = (
        text.replace(CURRENCY_SYMBOL, "")
        .replace(NBSP, "")
        .replace(" ", "")
        .replace(".", "")
    )
    return int(digits)


def fixtures_by_matchday(fixtures: Iterable[ClubFixture]) -> dict[int, ClubFixture]:
    """Index fixtures by matchday; the first fixture of a matchday wins."""
    index: dict[int, ClubFixture] = {}
    for fixture in fixtures:
        index.setdefault(fixture.matchday, fixture)
    return index


def find_market_value_for_matchday(
    matchday: int,
    fixtures: Iterable[ClubFixture] | dict[int, ClubFixture],
    value_history: list[ValueHistorySample],
) -> int | None:
    """
    Pick the market value as of a matchday's kickoff.

    Samples on or before the match date are preferred, the closest one wins
    and ties keep the first found. A sample after the match date is only used
    when no earlier sample exists and it lies at most FORWARD_WINDOW_DAYS ahead.

    Args:
        matchday: Matchday to look up
        fixtures: Club fixtures (list or matchday index)
        value_history: Samples, expected sorted ascending by date

    Returns:
        Market value or None
    """
    index = fixtures if isinstance(fixtures, dict) else fixtures_by_matchday(fixtures)
    fixture = index.get(matchday)
    if fixture is None or fixture.match_date is None:
        return None

    match_date = fixture.match_date
    backward: ValueHistorySample | None = None
    backward_gap = float("inf")
    forward: ValueHistorySample | None = None
    forward_gap = float("inf")

    for sample in value_history:
        gap_days = (sample.date - match_date).total_seconds() / SECONDS_PER_DAY

        if sample.date <= match_date:
            if abs(gap_days) < backward_gap:
                backward_gap = abs(gap_days)
                backward = sample
        elif backward is None and gap_days <= FORWARD_WINDOW_DAYS and gap_days < forward_gap:
            forward_gap = gap_days
            forward = sample

    chosen = backward if backward is not None else forward
    return chosen.value if chosen is not None else None


def build_matchday_views(
    stats: Iterable[PlayerMatchdayStat],
    fixtures: Iterable[ClubFixture],
    value_history: list[ValueHistorySample],
) -> list[MatchdayView]:
    """
    Build one view per matchday of the season.

    Missing sources leave the matching fields as None; matchdays are never
    omitted.

    Returns:
        TOTAL_MATCHDAYS views, index i holding matchday i + 1
    """
    stats_by_matchday = {stat.matchday: stat for stat in stats}
    fixture_index = fixtures_by_matchday(fixtures)

    views = []
    for matchday in range(1, TOTAL_MATCHDAYS + 1):
        stat = stats_by_matchday.get(matchday)
        market_value = find_market_value_for_matchday(
            matchday, fixture_index, value_history
        )
        views.append(
            MatchdayView(
                matchday=matchday,
                points=stat.points if stat is not None else None,
                market_value=market_value,
                market_value_formatted=(
                    format_currency(market_value) if market_value is not None else None
                ),
            )
        )

    return views
