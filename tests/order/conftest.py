from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pytest
from hypothesis import strategies as st

from tiedorders.order import DominanceBuilder, Ranking


@st.composite
def _rankings(draw, min_elements: int = 0, max_elements: int = 8) -> Ranking:
    elements = draw(st.integers(min_elements, max_elements))
    order = draw(st.permutations(range(elements)))
    length = draw(st.integers(0, elements))
    tied = draw(
        st.lists(st.booleans(), min_size=max(length - 1, 0), max_size=max(length - 1, 0))
    )
    return Ranking(elements, list(order[:length]), tied)


@st.composite
def _relations(draw, max_elements: int = 6):
    n = draw(st.integers(0, max_elements))
    builder = DominanceBuilder(n)
    if n:
        edges = draw(
            st.lists(st.tuples(st.integers(0, n - 1), st.integers(0, n - 1)), max_size=2 * n)
        )
        for a, b in edges:
            builder.set(a, b)
    return builder.finish()


@dataclass
class OrderStrategies:
    def ranking(self, min_elements: int = 0, max_elements: int = 8):
        return _rankings(min_elements=min_elements, max_elements=max_elements)

    def relation(self, max_elements: int = 6):
        return _relations(max_elements=max_elements)


@dataclass
class RankingAssertionHelper:
    def assert_ranking(self, ranking, order, tied) -> None:
        np.testing.assert_array_equal(ranking.order, order)
        np.testing.assert_array_equal(ranking.tied, np.asarray(tied, dtype=bool))

    def assert_valid(self, ranking) -> None:
        order = np.asarray(ranking.order)
        if order.size == 0:
            assert ranking.tied.size == 0
            return
        assert ranking.tied.size + 1 == order.size
        assert np.unique(order).size == order.size
        assert order.min() >= 0
        assert order.max() < ranking.elements


@pytest.fixture(scope="session")
def order_strategies() -> OrderStrategies:
    return OrderStrategies()


@pytest.fixture(scope="session")
def ranking_assertions() -> RankingAssertionHelper:
    return RankingAssertionHelper()
