"""Tests for fixture difficulty and points projection."""

import pytest

from kickbase_companion.analysis.projection import (
    MatchdayProjection,
    OutcomeProbabilities,
    build_projection,
    difficulty_score,
    historical_difficulty,
    historical_rate,
    outcome_probabilities,
    project_points,
    round_half_up,
)
from kickbase_companion.analysis.reconciler import build_matchday_views

from .conftest import CLUB, make_fixture, make_stat

# (home, away, draw) -> reciprocals 2, 4, 4 -> 0.2, 0.4, 0.4
TRIPLE = (50.0, 25.0, 25.0)


class TestOutcomeProbabilities:
    def test_home_perspective(self):
        probs = outcome_probabilities(make_fixture(1, heuristics=TRIPLE), CLUB)
        assert probs.win == pytest.approx(0.2)
        assert probs.draw == pytest.approx(0.4)
        assert probs.loss == pytest.approx(0.4)

    def test_away_perspective(self):
        probs = outcome_probabilities(make_fixture(1, home=False, heuristics=TRIPLE), CLUB)
        assert probs.win == pytest.approx(0.4)
        assert probs.loss == pytest.approx(0.2)

    def test_sums_to_one(self):
        probs = outcome_probabilities(make_fixture(1, heuristics=(37.0, 41.0, 22.0)), CLUB)
        assert probs.win + probs.draw + probs.loss == pytest.approx(1.0)

    def test_market_source(self):
        fixture = make_fixture(1, heuristics=TRIPLE, probabilities=(25.0, 50.0, 25.0))
        probs = outcome_probabilities(fixture, CLUB, "market")
        assert probs.win == pytest.approx(0.4)
        assert probs.loss == pytest.approx(0.2)

    @pytest.mark.parametrize(
        "triple", [None, (50.0, 0.0, 25.0), (50.0, -1.0, 25.0)]
    )
    def test_unusable_triple(self, triple):
        assert outcome_probabilities(make_fixture(1, heuristics=triple), CLUB) is None

    def test_partial_triple(self):
        fixture = make_fixture(1, heuristics=TRIPLE).model_copy(
            update={"draw_heuristic": None}
        )
        assert outcome_probabilities(fixture, CLUB) is None

    def test_percentages(self):
        probs = OutcomeProbabilities(win=0.125, draw=0.5, loss=0.375)
        assert probs.as_percentages() == (13, 50, 38)


class TestDifficultyScore:
    def test_one_minus_loss(self):
        assert difficulty_score(make_fixture(1, heuristics=TRIPLE), CLUB) == pytest.approx(0.6)
        away = make_fixture(1, home=False, heuristics=TRIPLE)
        assert difficulty_score(away, CLUB) == pytest.approx(0.8)

    def test_missing(self):
        assert difficulty_score(None, CLUB) is None
        assert difficulty_score(make_fixture(1), CLUB) is None


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.4) == 2
    assert round_half_up(-0.5) == 0


class TestHistoricalBaselines:
    def test_rate_counts_points_of_every_matchday(self):
        stats = [
            make_stat(1, points=10, minutes=90),
            make_stat(2, points=-2, minutes=0),
            make_stat(3, points=6, minutes=45),
        ]
        views = build_matchday_views(stats, [], [])
        assert historical_rate(views, stats, 3) == pytest.approx(7.0)

    def test_rate_ignores_matchdays_after_reference(self):
        stats = [make_stat(1, points=10), make_stat(2, points=100)]
        views = build_matchday_views(stats, [], [])
        assert historical_rate(views, stats, 1) == pytest.approx(10.0)

    def test_rate_without_appearances(self):
        stats = [make_stat(1, points=4, minutes=0)]
        views = build_matchday_views(stats, [], [])
        assert historical_rate(views, stats, 1) == 0.0

    def test_difficulty_averages_appearances_only(self):
        fixtures = [
            make_fixture(1, heuristics=TRIPLE),
            make_fixture(2, home=False, heuristics=TRIPLE),
            make_fixture(3, home=False, heuristics=TRIPLE),
        ]
        stats = [make_stat(1), make_stat(2), make_stat(3, minutes=0)]
        assert historical_difficulty(fixtures, stats, CLUB, 3) == pytest.approx(0.7)

    def test_difficulty_skips_unscored_appearances(self):
        fixtures = [make_fixture(1, heuristics=TRIPLE), make_fixture(2)]
        stats = [make_stat(1), make_stat(2)]
        assert historical_difficulty(fixtures, stats, CLUB, 2) == pytest.approx(0.6)

    def test_difficulty_without_qualifying_matchdays(self):
        assert historical_difficulty([make_fixture(1)], [make_stat(1)], CLUB, 1) == 0.0


class TestProjectPoints:
    @pytest.fixture
    def season(self):
        stats = [make_stat(1, points=10), make_stat(2, points=6)]
        fixtures = [
            make_fixture(1, heuristics=TRIPLE),
            make_fixture(2, heuristics=TRIPLE),
            make_fixture(3, home=False, heuristics=TRIPLE),
            make_fixture(4),
        ]
        views = build_matchday_views(stats, fixtures, [])
        return views, stats, fixtures

    def test_scales_rate_by_relative_difficulty(self, season):
        views, stats, fixtures = season
        # rate 8, target 0.8, baseline 0.6 -> 10.67
        assert project_points(3, 2, views, stats, fixtures, CLUB) == 11

    def test_same_difficulty_keeps_rate(self, season):
        views, stats, fixtures = season
        fixtures = fixtures + [make_fixture(5, heuristics=TRIPLE)]
        assert project_points(5, 2, views, stats, fixtures, CLUB) == 8

    def test_no_reference(self, season):
        views, stats, fixtures = season
        assert project_points(3, 0, views, stats, fixtures, CLUB) is None

    def test_not_after_reference(self, season):
        views, stats, fixtures = season
        assert project_points(2, 2, views, stats, fixtures, CLUB) is None
        assert project_points(1, 2, views, stats, fixtures, CLUB) is None

    def test_target_without_odds(self, season):
        views, stats, fixtures = season
        assert project_points(4, 2, views, stats, fixtures, CLUB) is None

    def test_target_without_fixture(self, season):
        views, stats, fixtures = season
        assert project_points(10, 2, views, stats, fixtures, CLUB) is None

    def test_no_appearances_before_reference(self):
        stats = [make_stat(md, points=0, minutes=0) for md in range(1, 30)]
        fixtures = [make_fixture(md, heuristics=TRIPLE) for md in range(1, 35)]
        views = build_matchday_views(stats, fixtures, [])
        assert project_points(31, 29, views, stats, fixtures, CLUB) is None


class TestBuildProjection:
    def test_full_season(self):
        stats = [make_stat(1, points=10), make_stat(2, points=6)]
        fixtures = [
            make_fixture(1, heuristics=TRIPLE),
            make_fixture(2, heuristics=TRIPLE),
            make_fixture(3, home=False, heuristics=TRIPLE),
        ]
        views = build_matchday_views(stats, fixtures, [])

        projection = build_projection(2, views, stats, fixtures, CLUB)

        assert len(projection) == 34
        assert projection[0] == MatchdayProjection(1, 10, None)
        assert projection[2].projected_points == 11
        assert projection[2].display_points == 11
        assert projection[1].display_points == 6
        assert projection[20].display_points is None

    def test_without_reference_only_actuals(self):
        stats = [make_stat(1, points=10)]
        fixtures = [make_fixture(1, heuristics=TRIPLE), make_fixture(2, heuristics=TRIPLE)]
        views = build_matchday_views(stats, fixtures, [])

        projection = build_projection(0, views, stats, fixtures, CLUB)

        assert all(p.projected_points is None for p in projection)
