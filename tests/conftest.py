from __future__ import annotations

import numpy as np
import pytest
from hypothesis import HealthCheck, settings

from tiedorders.order import CardinalBallots

settings.register_profile(
    "default",
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.register_profile("ci", parent=settings.get_profile("default"), max_examples=1000)
settings.load_profile("default")


STAR_RATINGS = np.array(
    [
        [1, 3, 2, 4],
        [3, 1, 1, 3],
        [0, 2, 1, 2],
        [2, 4, 2, 2],
    ],
    dtype=int,
)


@pytest.fixture(scope="session")
def star_ratings() -> np.ndarray:
    return STAR_RATINGS.copy()


@pytest.fixture
def star_ballots(star_ratings: np.ndarray) -> CardinalBallots:
    return CardinalBallots.from_array(star_ratings, 0, 4)


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)
