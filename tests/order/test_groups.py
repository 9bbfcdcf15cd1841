from __future__ import annotations

import numpy as np

from tiedorders.order import GroupIterator, Ranking, parse_ranking


def test_iterates_groups_in_order() -> None:
    rank = Ranking.from_groups(7, [[4, 2, 3], [0, 1], [6]])
    groups = [group.tolist() for group in rank.iter_groups()]
    assert groups == [[4, 2, 3], [0, 1], [6]]


def test_empty_ranking_has_no_groups() -> None:
    it = Ranking.empty(3).iter_groups()
    assert list(it) == []
    assert it.size_hint() == (0, 0)


def test_restart_and_remaining() -> None:
    rank = parse_ranking(4, "0,{1,2},3")
    it = rank.iter_groups()
    np.testing.assert_array_equal(next(it), [0])
    assert str(it.remaining()) == "{1,2},3"
    assert [group.tolist() for group in it] == [[1, 2], [3]]
    assert it.remaining().is_empty()

    it.restart()
    assert [group.tolist() for group in it] == [[0], [1, 2], [3]]


def test_size_hint() -> None:
    it = parse_ranking(4, "0,{1,2}").iter_groups()
    assert it.size_hint() == (1, 3)
    assert it.__length_hint__() == 1
    next(it)
    assert it.size_hint() == (1, 2)
    next(it)
    assert it.size_hint() == (0, 0)


def test_size_hint_is_exact_for_single_position() -> None:
    it = parse_ranking(3, "2").iter_groups()
    assert it.size_hint() == (1, 1)


def test_groups_are_views() -> None:
    rank = parse_ranking(4, "0,{2,1},3")
    it = GroupIterator(rank.view())
    next(it)
    group = next(it)
    group.sort()
    assert str(rank) == "0,{1,2},3"


def test_each_call_starts_a_new_iterator() -> None:
    rank = parse_ranking(3, "{0,1},2")
    first = rank.iter_groups()
    next(first)
    assert len(list(rank.iter_groups())) == 2
