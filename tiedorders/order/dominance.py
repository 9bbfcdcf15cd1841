"""
Dominance relations: transitively closed ``<=`` relations over a universe.

The relation over ``n`` elements is stored as an ``n x n`` boolean matrix
where ``matrix[a, b]`` is ``True`` when ``a <= b`` ("``a`` is worse than or
equal to ``b``"). Two types share this layout:

- :class:`DominanceBuilder` collects direct edges without keeping the
  relation closed, and computes the closure once in :meth:`~DominanceBuilder.finish`.
- :class:`DominanceRelation` is always reflexive and transitively closed.
  Its only edge mutator, :meth:`~DominanceRelation.set`, restores the
  closure after every edge.
"""

import logging
import math

import numpy as np

from ._base import validate_elements, validate_ids, validate_index
from ._types import Ordering

logger = logging.getLogger(__name__)

_ORDERINGS = (-1, 0, 1, None)


def _reflexive(n: int) -> np.ndarray:
    return np.eye(n, dtype=bool)


def _compose(matrix: np.ndarray) -> np.ndarray:
    # (m @ m)[a, c] is True when some b has a <= b and b <= c.
    counts = matrix.astype(np.int64)
    return (counts @ counts) > 0


def _is_partial_order(matrix: np.ndarray) -> bool:
    if not np.all(np.diagonal(matrix)):
        return False
    return bool(np.all(matrix | ~_compose(matrix)))


def _validate_ordering(ordering) -> None:
    if ordering not in _ORDERINGS:
        raise ValueError(f"ordering must be one of {set(_ORDERINGS)}, got {ordering!r}")


class DominanceBuilder:
    """
    Unclosed edge set; call :meth:`finish` to obtain a :class:`DominanceRelation`.

    Args:
        n: Size of the universe. The builder starts reflexive only.
    """

    def __init__(self, n: int):
        self.n = validate_elements(n)
        self._matrix = _reflexive(self.n)

    @classmethod
    def _from_matrix(cls, matrix: np.ndarray) -> "DominanceBuilder":
        builder = cls.__new__(cls)
        builder.n = int(matrix.shape[0])
        builder._matrix = matrix
        return builder

    def set(self, a: int, b: int) -> None:
        """Record the direct edge ``a <= b``."""
        a = validate_index(self.n, a, name="a")
        b = validate_index(self.n, b, name="b")
        self._matrix[a, b] = True

    def set_ord(self, a: int, b: int, ordering: Ordering) -> None:
        """
        Record the edges implied by ``ordering`` between ``a`` and ``b``.

        ``-1`` records ``a <= b``, ``1`` records ``b <= a``, ``0`` records
        both and ``None`` records nothing.
        """
        _validate_ordering(ordering)
        if ordering in (-1, 0):
            self.set(a, b)
        if ordering in (0, 1):
            self.set(b, a)

    def set_from_order(self, ranking) -> None:
        """
        Record the direct edges of a ranking over the same universe.

        Every position is recorded ``<=`` the position before it, and tied
        neighbours are recorded in both directions. Unranked ids get no edges.
        """
        if ranking.elements != self.n:
            raise ValueError(
                f"ranking must have {self.n} elements, got {ranking.elements}"
            )
        better = ranking.order[:-1]
        worse = ranking.order[1:]
        self._matrix[worse, better] = True
        self._matrix[better[ranking.tied], worse[ranking.tied]] = True

    def finish(self) -> "DominanceRelation":
        """
        Compute the transitive closure and freeze the relation.

        Relaxes every triple until a pass changes nothing. The relation owns
        its matrix, so later edits to the builder do not reach it.
        """
        matrix = self._matrix.copy()
        passes = 0
        while True:
            passes += 1
            closed = matrix | _compose(matrix)
            if np.array_equal(closed, matrix):
                break
            matrix = closed
        logger.debug("closure of %d elements converged after %d passes", self.n, passes)
        return DominanceRelation._wrap(matrix)

    def _finish_trusted(self) -> "DominanceRelation":
        # Only for edge sets that are closed by construction.
        assert _is_partial_order(self._matrix)
        return DominanceRelation._wrap(self._matrix.copy())


class DominanceRelation:
    """
    Reflexive, transitively closed ``<=`` relation over ``n`` elements.

    Args:
        n: Size of the universe. The relation starts reflexive only, i.e.
            every pair of distinct elements is incomparable.

    Examples:
        >>> from tiedorders.order import Ranking
        >>> rel = DominanceRelation.from_ranking(Ranking.parse(3, "2,{0,1}"))
        >>> rel.le(0, 2), rel.le(2, 0), rel.eq(0, 1)
        (True, False, True)
    """

    def __init__(self, n: int = 0):
        self.n = validate_elements(n)
        self._matrix = _reflexive(self.n)

    @classmethod
    def _wrap(cls, matrix: np.ndarray) -> "DominanceRelation":
        rel = cls.__new__(cls)
        rel.n = int(matrix.shape[0])
        rel._matrix = matrix
        return rel

    @classmethod
    def empty(cls, n: int) -> "DominanceRelation":
        return cls(n)

    @classmethod
    def from_matrix(cls, matrix) -> "DominanceRelation":
        """
        Wrap a square boolean matrix that is already a partial preorder.

        Raises:
            ValueError: If the matrix is not square, not reflexive or not
                transitively closed. Use :class:`DominanceBuilder` to close
                an arbitrary edge set instead.
        """
        matrix = np.array(matrix, dtype=bool)
        if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
            raise ValueError(f"matrix must be square, got shape {matrix.shape}")
        if not _is_partial_order(matrix):
            raise ValueError("matrix must be reflexive and transitively closed")
        return cls._wrap(matrix)

    @classmethod
    def from_ranking(cls, ranking) -> "DominanceRelation":
        """
        Return the relation implied by a ranking.

        Later positions are ``<=`` earlier ones, tied ids are equal, and
        unranked ids are below every ranked id and mutually incomparable.
        """
        ranks = ranking.rank_vector("dense")
        ranked = np.zeros(ranking.elements, dtype=bool)
        ranked[ranking.order] = True
        matrix = ranks[:, np.newaxis] >= ranks[np.newaxis, :]
        unranked = ~ranked
        matrix[np.ix_(unranked, unranked)] = False
        np.fill_diagonal(matrix, True)
        return DominanceBuilder._from_matrix(matrix)._finish_trusted()

    @classmethod
    def from_scores(cls, values) -> "DominanceRelation":
        """
        Return the relation where a strictly lower value is ``<=`` a higher one.

        Equal values stay incomparable.
        """
        values = np.asarray(values)
        if values.ndim != 1:
            raise ValueError(f"values must be a 1D sequence, got shape {values.shape}")
        matrix = values[:, np.newaxis] < values[np.newaxis, :]
        np.fill_diagonal(matrix, True)
        return cls._wrap(matrix)

    @property
    def matrix(self) -> np.ndarray:
        """Read-only copy of the relation matrix."""
        matrix = self._matrix.copy()
        matrix.flags.writeable = False
        return matrix

    def le(self, a: int, b: int) -> bool:
        """Return ``True`` if ``a <= b``."""
        a = validate_index(self.n, a, name="a")
        b = validate_index(self.n, b, name="b")
        return bool(self._matrix[a, b])

    def eq(self, a: int, b: int) -> bool:
        return a == b or (self.le(a, b) and self.le(b, a))

    def ord(self, a: int, b: int) -> Ordering:
        """
        Compare ``a`` with ``b``.

        Returns:
            ``-1`` if ``a`` is strictly below ``b``, ``0`` if they are equal,
            ``1`` if ``a`` is strictly above ``b`` and ``None`` if they are
            incomparable.
        """
        le = self.le(a, b)
        ge = self.le(b, a)
        if le and ge:
            return 0
        if le:
            return -1
        if ge:
            return 1
        return None

    def set(self, a: int, b: int) -> None:
        """
        Set ``a <= b`` and restore the transitive closure.

        Every ``i <= a`` becomes ``<=`` every ``j`` with ``b <= j``.
        """
        a = validate_index(self.n, a, name="a")
        b = validate_index(self.n, b, name="b")
        if self._matrix[a, b]:
            return
        self._matrix |= np.outer(self._matrix[:, a], self._matrix[b, :])
        assert self.is_valid()

    def set_ord(self, a: int, b: int, ordering: Ordering) -> None:
        """Like :meth:`DominanceBuilder.set_ord`, keeping the closure."""
        _validate_ordering(ordering)
        if ordering in (-1, 0):
            self.set(a, b)
        if ordering in (0, 1):
            self.set(b, a)

    def add(self, k: int) -> None:
        """Add ``k`` new elements, incomparable with every other element."""
        k = validate_elements(k)
        matrix = _reflexive(self.n + k)
        matrix[: self.n, : self.n] = self._matrix
        self._matrix = matrix
        self.n += k

    def remove(self, k: int) -> None:
        """Remove the last ``k`` elements."""
        k = validate_elements(k)
        if k > self.n:
            raise ValueError(f"k must be <= {self.n}, got {k}")
        n = self.n - k
        self._matrix = self._matrix[:n, :n].copy()
        self.n = n

    def remove_subset(self, ids) -> None:
        """
        Remove the given ids; the survivors keep their relations and are
        renumbered in their original order.
        """
        ids = validate_ids(self.n, ids)
        keep = np.ones(self.n, dtype=bool)
        keep[ids] = False
        self._matrix = self._matrix[np.ix_(keep, keep)]
        self.n = int(np.count_nonzero(keep))

    def intersection(self, other: "DominanceRelation") -> "DominanceRelation":
        """Return the relation holding the pairs both relations agree on."""
        if not isinstance(other, DominanceRelation):
            raise TypeError(
                f"other must be a DominanceRelation, got {type(other).__name__}"
            )
        if other.n != self.n:
            raise ValueError(f"other must have {self.n} elements, got {other.n}")
        return DominanceRelation._wrap(self._matrix & other._matrix)

    def __and__(self, other):
        if not isinstance(other, DominanceRelation):
            return NotImplemented
        return self.intersection(other)

    def is_valid(self) -> bool:
        """Return ``True`` if the relation is reflexive and transitively closed."""
        return _is_partial_order(self._matrix)

    def to_builder(self) -> DominanceBuilder:
        """Return a builder seeded with a copy of this relation."""
        return DominanceBuilder._from_matrix(self._matrix.copy())

    def categorize(self, x: int) -> list[np.ndarray]:
        """
        Partition all elements into at most ``x`` ordered bands.

        Elements are walked from the top: by how many elements are strictly
        above them, then by id. A band may only end between two neighbours
        where the second is strictly below the first, and it ends at the
        first such point whose band size is at least as close to
        ``ceil(n / x)`` as the next point would be. Once ``x - 1`` bands are
        closed the last band takes every remaining element.

        Args:
            x: Maximum number of bands.

        Returns:
            Bands of ids, best band first. Empty when ``n`` or ``x`` is 0.

        Examples:
            >>> rel = DominanceRelation.from_scores([0, 1, 2, 3])
            >>> [band.tolist() for band in rel.categorize(2)]
            [[3, 2], [1, 0]]
        """
        x = validate_elements(x)
        if x == 0 or self.n == 0:
            return []
        m = self._matrix
        strictly_above = np.count_nonzero(m & ~m.T, axis=1)
        walk = np.lexsort((np.arange(self.n), strictly_above))
        target = math.ceil(self.n / x)

        first, second = walk[:-1], walk[1:]
        strict = m[second, first] & ~m[first, second]
        cuts = (np.flatnonzero(strict) + 1).tolist() + [self.n]

        bands = []
        start = 0
        for cut, next_cut in zip(cuts, cuts[1:]):
            if len(bands) == x - 1:
                break
            if abs(cut - start - target) <= abs(next_cut - start - target):
                bands.append(walk[start:cut])
                start = cut
        bands.append(walk[start:])
        logger.debug("categorized %d elements into %d bands", self.n, len(bands))
        return bands

    def __eq__(self, other):
        if not isinstance(other, DominanceRelation):
            return NotImplemented
        return np.array_equal(self._matrix, other._matrix)

    __hash__ = None

    def __repr__(self) -> str:
        return f"DominanceRelation(n={self.n})"


__all__ = ["DominanceRelation", "DominanceBuilder"]
