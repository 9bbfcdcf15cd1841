from __future__ import annotations

import numpy as np
import pytest
from hypothesis import given
from hypothesis import strategies as st

from tiedorders.order import Ranking, format_ranking, parse_ranking


@pytest.mark.parametrize("text", ["", "1", "{1}", "{0},{1}"])
def test_grammar_accepts(text: str) -> None:
    assert parse_ranking(5, text) is not None


@pytest.mark.parametrize(
    "text",
    [
        ",",
        ",,",
        ",1",
        "1,",
        "{1",
        "1}",
        "{0,1,{2,3}",
        "{{0}}",
        "{0}}",
        "{0},}",
        "{,{0},}",
        " 1",
        "1 ",
        "a",
        "-1",
        "+1",
        "{}",
    ],
)
def test_grammar_rejects(text: str) -> None:
    assert parse_ranking(5, text) is None


@pytest.mark.parametrize("text", ["5", "0,7", "{1,9}"])
def test_out_of_range_ids_are_rejected(text: str) -> None:
    assert parse_ranking(5, text) is None


@pytest.mark.parametrize("text", ["1,1", "{0,0}", "0,{1,0}"])
def test_duplicate_ids_are_rejected(text: str) -> None:
    assert parse_ranking(5, text) is None


def test_parse_groups() -> None:
    rank = parse_ranking(5, "2,{0,1},4")
    np.testing.assert_array_equal(rank.order, [2, 0, 1, 4])
    np.testing.assert_array_equal(rank.tied, [False, True, False])


def test_parse_multi_digit_ids() -> None:
    rank = parse_ranking(12, "{10,3},11")
    np.testing.assert_array_equal(rank.order, [10, 3, 11])
    np.testing.assert_array_equal(rank.tied, [True, False])


def test_singleton_braces_are_inert() -> None:
    assert parse_ranking(5, "0,{1}") == parse_ranking(5, "0,1")
    assert parse_ranking(5, "{0},{1}") == parse_ranking(5, "0,1")


def test_format_writes_canonical_form() -> None:
    assert format_ranking(parse_ranking(5, "{0},{1,2}")) == "0,{1,2}"
    assert format_ranking(Ranking.empty(3)) == ""


def test_parse_validates_elements() -> None:
    with pytest.raises(ValueError, match="elements must be >= 0"):
        parse_ranking(-1, "0")


@given(data=st.data())
def test_round_trip(order_strategies, data) -> None:
    rank = data.draw(order_strategies.ranking())
    assert parse_ranking(rank.elements, format_ranking(rank)) == rank
