from __future__ import annotations

import logging
from unittest import mock

import numpy as np
import pytest
from hypothesis import given
from hypothesis import strategies as st

from tiedorders import methods
from tiedorders.methods import cardinal
from tiedorders.methods import (
    TieBreaker,
    rank_by_matchups,
    rank_by_rating,
    runoff_round,
    score_ranking,
    star,
    tiebreak_scoring_official,
)
from tiedorders.order import CardinalBallots, Ranking


def _ballots(values, max_score: int, min_score: int = 0) -> CardinalBallots:
    return CardinalBallots.from_array(np.asarray(values), min_score, max_score)


class TestStarScenario:
    def test_score_ranking(self, star_ballots: CardinalBallots) -> None:
        rank = score_ranking(star_ballots)
        assert str(rank) == "3,1,{0,2}"

    def test_runoff_prefers_head_to_head(self, star_ballots: CardinalBallots) -> None:
        assert runoff_round(3, 1, star_ballots) == 1
        assert runoff_round(1, 3, star_ballots) == -1

    def test_end_to_end(self, star_ballots: CardinalBallots) -> None:
        result = star(star_ballots)
        np.testing.assert_array_equal(result.order, [3, 1, 0, 2])
        np.testing.assert_array_equal(result.tied, [False, False, True])
        np.testing.assert_array_equal(result.winners(), [3])

    def test_return_scores(self, star_ballots: CardinalBallots) -> None:
        result, totals = star(star_ballots, return_scores=True)
        assert str(result) == "3,1,{0,2}"
        np.testing.assert_array_equal(totals, [6, 10, 6, 11])

    def test_runoff_is_logged(self, star_ballots: CardinalBallots, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="tiedorders.methods.cardinal"):
            star(star_ballots)
        assert "runoff between 3 and 1" in caplog.text

    def test_public_api(self) -> None:
        assert methods.star is star
        assert set(methods.__all__) == set(cardinal.__all__)


class TestRunoff:
    def test_max_ratings_beat_higher_total(self) -> None:
        ballots = _ballots([[5, 4], [0, 4]], 5)
        assert ballots.compare(0, 1) == 0
        assert ballots.compare_totals(0, 1) == -1
        assert runoff_round(0, 1, ballots) == 1
        assert runoff_round(1, 0, ballots) == -1

    def test_falls_back_to_max_ratings(self) -> None:
        ballots = _ballots([[3, 1], [0, 2]], 3)
        assert ballots.compare(0, 1) == 0
        assert ballots.compare_totals(0, 1) == 0
        assert runoff_round(0, 1, ballots) == 1
        assert runoff_round(1, 0, ballots) == -1

    def test_full_tie(self) -> None:
        ballots = _ballots([[1, 1]], 2)
        assert runoff_round(0, 1, ballots) == 0
        assert str(star(ballots)) == "{0,1}"

    def test_runoff_winner_comes_first(self) -> None:
        ballots = _ballots([[3, 1, 0], [0, 2, 2], [0, 2, 0]], 3)
        assert str(star(ballots)) == "1,0,2"


class TestTiebreakSteps:
    def test_rank_by_matchups(self) -> None:
        ballots = _ballots([[2, 1, 0], [2, 0, 1]], 2)
        rank = rank_by_matchups([2, 1, 0], ballots)
        assert str(rank) == "0,{2,1}"

    def test_rank_by_rating(self) -> None:
        ballots = _ballots([[2, 1, 0], [2, 2, 0], [0, 2, 2]], 2)
        assert str(rank_by_rating([0, 1, 2], ballots, 2)) == "{0,1},2"
        assert str(rank_by_rating([2, 1], ballots, 1)) == "1,2"
        assert str(rank_by_rating([0, 2], ballots, 0)) == "2,0"

    def test_tiebreaker_progression(self) -> None:
        assert TieBreaker.MATCHUPS.next() is TieBreaker.MAX
        assert TieBreaker.MAX.next() is TieBreaker.MIN
        assert TieBreaker.MIN.next() is TieBreaker.RANDOM
        assert TieBreaker.RANDOM.next() is TieBreaker.RANDOM


class TestTiebreakProtocol:
    def test_already_decided(self, star_ballots: CardinalBallots) -> None:
        rank = score_ranking(star_ballots)
        assert tiebreak_scoring_official(rank, 2, star_ballots)
        assert str(rank) == "3,1"

    def test_resolved_by_matchups(self) -> None:
        ballots = _ballots([[2, 1, 0], [1, 2, 0], [0, 0, 3]], 3)
        rank = score_ranking(ballots)
        assert str(rank) == "{0,1,2}"
        assert tiebreak_scoring_official(rank, 2, ballots)
        assert sorted(rank.order.tolist()) == [0, 1]
        assert str(star(ballots)) == "{0,1},2"

    def test_resolved_by_max_ratings(self) -> None:
        ballots = _ballots([[3, 1, 0], [0, 2, 2]], 3)
        rank = score_ranking(ballots)
        assert str(rank) == "{0,1},2"
        assert tiebreak_scoring_official(rank, 1, ballots)
        assert str(rank) == "0"

    def test_resolved_by_min_ratings(self) -> None:
        ballots = _ballots([[3, 3], [0, 1], [2, 1], [1, 1]], 3)
        rank = score_ranking(ballots)
        assert str(rank) == "{0,1}"
        assert tiebreak_scoring_official(rank, 1, ballots)
        assert str(rank) == "1"

    def test_unresolved_cycle(self, caplog) -> None:
        ballots = _ballots([[2, 1, 0], [0, 2, 1], [1, 0, 2]], 2)
        rank = score_ranking(ballots)
        with caplog.at_level(logging.INFO, logger="tiedorders.methods.cardinal"):
            assert not tiebreak_scoring_official(rank, 2, ballots)
        assert "unresolved" in caplog.text
        assert len(rank) == 3
        assert sorted(rank.order.tolist()) == [0, 1, 2]
        assert rank.tied.all()

    def test_unresolved_star_returns_tied_result(self) -> None:
        ballots = _ballots([[2, 1, 0], [0, 2, 1], [1, 0, 2]], 2)
        result = star(ballots)
        assert result.is_complete()
        assert len(result.groups()) == 1

    def test_goal_len_zero(self, star_ballots: CardinalBallots) -> None:
        rank = score_ranking(star_ballots)
        assert tiebreak_scoring_official(rank, 0, star_ballots)
        assert rank.is_empty()

    def test_goal_len_out_of_range(self, star_ballots: CardinalBallots) -> None:
        with pytest.raises(ValueError, match="goal_len must be in"):
            tiebreak_scoring_official(Ranking.single(4, 0), 2, star_ballots)

    def test_requires_cardinal_ballots(self) -> None:
        with pytest.raises(TypeError, match="ballots must be CardinalBallots"):
            star([[1, 2]])
        with pytest.raises(TypeError, match="ballots must be CardinalBallots"):
            tiebreak_scoring_official(Ranking.new_tied(2), 1, np.zeros((1, 2)))


class TestSmallElections:
    def test_single_candidate(self) -> None:
        ballots = _ballots([[1], [2]], 2)
        assert str(star(ballots)) == "0"
        assert str(score_ranking(ballots)) == "0"

    def test_no_candidates(self) -> None:
        ballots = _ballots(np.zeros((3, 0), dtype=int), 2)
        result, totals = star(ballots, return_scores=True)
        assert result.is_empty()
        assert totals.size == 0

    def test_no_ballots(self) -> None:
        ballots = CardinalBallots(3, 0, 5)
        result = star(ballots)
        assert result.is_complete()
        assert len(result.groups()) == 1


@st.composite
def _random_ballots(draw) -> CardinalBallots:
    elements = draw(st.integers(2, 5))
    max_score = draw(st.integers(1, 3))
    rows = draw(
        st.lists(
            st.lists(st.integers(0, max_score), min_size=elements, max_size=elements),
            max_size=6,
        )
    )
    values = np.array(rows, dtype=int).reshape(len(rows), elements)
    return CardinalBallots.from_array(values, 0, max_score)


class TestProperties:
    @given(ballots=_random_ballots())
    def test_tiebreak_terminates_within_bound(self, ballots: CardinalBallots) -> None:
        rank = score_ranking(ballots)
        block = len(rank.top_n_threshold(2))
        with mock.patch.object(
            cardinal, "_secondary_ranking", wraps=cardinal._secondary_ranking
        ) as spy:
            resolved = tiebreak_scoring_official(rank, 2, ballots)
        assert spy.call_count <= 3 * block
        if resolved:
            assert len(rank) == 2
        else:
            assert len(rank) > 2
            assert not rank.top_n_threshold(2).is_empty()

    @given(ballots=_random_ballots())
    def test_star_returns_complete_ranking(self, ballots: CardinalBallots) -> None:
        result = star(ballots)
        assert result.is_complete()
        assert 1 <= len(result.winners()) <= ballots.elements
