"""
Base utilities for ranking containers.

Every public constructor validates its input here once. Internal mutators
only re-check the same invariants through ``assert``.
"""

import numpy as np

from tiedorders.utils import unique_and_bounded


def validate_elements(elements) -> int:
    """
    Validate a universe size.

    Raises:
        TypeError: If ``elements`` is not an integer.
        ValueError: If ``elements`` is negative.
    """
    if isinstance(elements, (bool, np.bool_)) or not isinstance(
        elements, (int, np.integer)
    ):
        raise TypeError(f"elements must be an integer, got {type(elements).__name__}")
    if elements < 0:
        raise ValueError(f"elements must be >= 0, got {elements}")
    return int(elements)


def validate_order(elements: int, order, tied) -> tuple[np.ndarray, np.ndarray]:
    """
    Validate and convert the order/tie pair of a ranking.

    Args:
        elements: Size of the universe.
        order: Distinct ids, best first.
        tied: ``tied[i]`` says whether ``order[i]`` is tied with ``order[i + 1]``.

    Returns:
        ``(order, tied)`` as fresh ``intp`` and ``bool`` arrays.

    Raises:
        ValueError: If the lengths do not match, ids repeat or are out of range.
    """
    order = np.array(order, dtype=np.intp).reshape(-1)
    tied = np.array(tied, dtype=bool).reshape(-1)
    if not _lengths_match(order, tied):
        raise ValueError(
            "tied must have exactly one entry less than order, "
            f"got len(order)={order.size} and len(tied)={tied.size}"
        )
    if not unique_and_bounded(elements, order):
        raise ValueError(f"order must contain distinct ids in [0, {elements})")
    return order, tied


def is_valid_order(elements: int, order: np.ndarray, tied: np.ndarray) -> bool:
    """Return ``True`` if ``order`` and ``tied`` satisfy the ranking invariant."""
    return _lengths_match(order, tied) and unique_and_bounded(elements, order)


def validate_ids(elements: int, ids, name: str = "ids") -> np.ndarray:
    """Validate a set of distinct in-range ids and return them sorted."""
    ids = np.array(ids, dtype=np.intp).reshape(-1)
    if not unique_and_bounded(elements, ids):
        raise ValueError(f"{name} must contain distinct ids in [0, {elements})")
    return np.sort(ids)


def validate_index(elements: int, i, name: str = "element") -> int:
    """
    Validate that ``i`` is an id of a universe of size ``elements``.

    Raises:
        TypeError: If ``i`` is not an integer.
        ValueError: If ``i`` is out of range.
    """
    if isinstance(i, (bool, np.bool_)) or not isinstance(i, (int, np.integer)):
        raise TypeError(f"{name} must be an integer, got {type(i).__name__}")
    if not 0 <= i < elements:
        raise ValueError(f"{name} must be in [0, {elements}), got {i}")
    return int(i)


def resolve_rng(seed=None, rng=None) -> np.random.Generator:
    """Return ``rng`` if given, else a generator seeded with ``seed``."""
    if rng is not None:
        return rng
    return np.random.default_rng(seed)


def _lengths_match(order: np.ndarray, tied: np.ndarray) -> bool:
    if order.size == 0:
        return tied.size == 0
    return tied.size + 1 == order.size


__all__ = [
    "validate_elements",
    "validate_order",
    "is_valid_order",
    "validate_ids",
    "validate_index",
    "resolve_rng",
]
