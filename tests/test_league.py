"""Tests for the league dashboard rows."""

from kickbase_companion.analysis import market_rows, ranking_rows, standings_rows
from kickbase_companion.analysis.reconciler import NBSP


class TestRankingRows:
    def test_sorted_by_rank(self):
        data = {
            "us": [
                {"n": "Ben", "r": 2, "p": 1400, "uim": "https://img.test/b.png"},
                {"n": "Anna", "r": 1, "p": 1500},
            ]
        }

        rows = ranking_rows(data)

        assert [row["Manager"] for row in rows] == ["Anna", "Ben"]
        assert rows[0] == {"Rank": 1, "Manager": "Anna", "Points": 1500, "Image": None}
        assert rows[1]["Image"] == "https://img.test/b.png"

    def test_missing_rank_last(self):
        rows = ranking_rows({"us": [{"n": "New"}, {"n": "Anna", "r": 1}]})
        assert [row["Manager"] for row in rows] == ["Anna", "New"]

    def test_unexpected_payload(self):
        assert ranking_rows([]) == []
        assert ranking_rows({"us": None}) == []


class TestMarketRows:
    def test_formats_price_and_value(self):
        data = {
            "marketPlayers": [
                {"n": "Musiala", "prc": 30_000_000, "mv": 28_500_000, "mvt": 1, "ap": 98, "pim": "p/1.png"}
            ]
        }

        (row,) = market_rows(data)

        assert row["Player"] == "Musiala"
        assert row["Price"] == f"30.000.000{NBSP}€"
        assert row["Market value"] == f"28.500.000{NBSP}€"
        assert row["Trend"] == "↑"
        assert row["Ø Points"] == 98
        assert row["Image"] == "https://kickbase.b-cdn.net/p/1.png"

    def test_price_key_preferred(self):
        (row,) = market_rows({"marketPlayers": [{"price": 1_000, "prc": 2_000}]})
        assert row["Price"] == f"1.000{NBSP}€"

    def test_unknown_values(self):
        (row,) = market_rows({"marketPlayers": [{}]})
        assert row["Player"] == "-"
        assert row["Price"] == "-"
        assert row["Market value"] == "-"
        assert row["Trend"] == "→"
        assert row["Image"] == "/placeholder.png"

    def test_empty_market(self):
        assert market_rows({"marketPlayers": []}) == []


def test_standings_sorted_by_place():
    teams = [
        {"tid": "7", "tn": "SCF", "cpl": 2, "sp": 60, "tim": "t/7.png"},
        {"tid": "2", "tn": "BVB", "cpl": 1, "sp": 70, "tim": "https://img.test/2.png"},
    ]

    rows = standings_rows(teams)

    assert rows == [
        {"Place": 1, "Team": "BVB", "Points": 70, "Logo": "https://img.test/2.png"},
        {"Place": 2, "Team": "SCF", "Points": 60, "Logo": "https://kickbase.b-cdn.net/t/7.png"},
    ]
