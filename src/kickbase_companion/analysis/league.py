"""
League Dashboard Rows.

Flattens provider payloads (ranking, transfer market, competition table) into
display rows shared by the CLI tables and the Streamlit dashboard.
"""

from typing import Any

from .reconciler import format_currency
from .report import resolve_image_url, trend_icon


def _sort_key(value: Any) -> float:
    return value if isinstance(value, (int, float)) else float("inf")


def ranking_rows(data: Any) -> list[dict[str, Any]]:
    """Managers of a league ranking, best rank first."""
    users = data.get("us", []) if isinstance(data, dict) else []
    rows = [
        {
            "Rank": user.get("r"),
            "Manager": user.get("n", "-"),
            "Points": user.get("p"),
            "Image": user.get("uim"),
        }
        for user in users
        if isinstance(user, dict)
    ]
    return sorted(rows, key=lambda row: _sort_key(row["Rank"]))


def market_rows(data: Any) -> list[dict[str, Any]]:
    """Players on the transfer market with formatted price and value."""
    players = data.get("marketPlayers", []) if isinstance(data, dict) else []
    rows = []
    for player in players:
        price = player.get("price", player.get("prc"))
        value = player.get("mv")
        rows.append({
            "Player": player.get("n", "-"),
            "Price": format_currency(price) if price is not None else "-",
            "Market value": format_currency(value) if value is not None else "-",
            "Trend": trend_icon(player.get("mvt")),
            "Ø Points": player.get("ap", "-"),
            "Image": resolve_image_url(player.get("pim")),
        })
    return rows


def standings_rows(teams: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Competition table ordered by place."""
    rows = [
        {
            "Place": team.get("cpl"),
            "Team": team.get("tn", "-"),
            "Points": team.get("sp"),
            "Logo": resolve_image_url(team.get("tim")),
        }
        for team in teams
    ]
    return sorted(rows, key=lambda row: _sort_key(row["Place"]))
