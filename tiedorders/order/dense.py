"""
Packed collections of ballots.

:class:`RankingArena` stores many rankings back to back in three growable
arrays: every ranked id, every tie flag and an offset table with the end of
each ranking. Ranking ``i`` is addressed by its index into the offset table;
its tie flags start ``i`` entries earlier than its ids, since every ranking
has one flag less than ids.

:class:`CardinalBallots` stores score ballots as a ``(count, elements)``
integer matrix with a common score range ``[min_score, max_score]``.
"""

import logging

import numpy as np

from tiedorders.errors import AllocationError, ScoreOverflowError

from ._base import resolve_rng, validate_elements, validate_ids, validate_index
from ._types import Ordering
from .ranking import Ranking, RankingView

logger = logging.getLogger(__name__)

_SCORE_DTYPE = np.int64
_SCORE_MAX = int(np.iinfo(_SCORE_DTYPE).max)


def _reserve(array: np.ndarray, used: int, needed: int) -> np.ndarray:
    """Return ``array`` or a larger copy with room for ``needed`` rows."""
    capacity = array.shape[0]
    if needed <= capacity:
        return array
    new_capacity = max(needed, 2 * capacity, 8)
    try:
        grown = np.empty((new_capacity,) + array.shape[1:], dtype=array.dtype)
    except MemoryError as err:
        raise AllocationError(
            f"could not reserve {new_capacity} rows of {array.dtype}"
        ) from err
    grown[:used] = array[:used]
    return grown


def _sign(x) -> Ordering:
    return int(np.sign(x))


class RankingArena:
    """
    Packed list of non-empty rankings over a shared universe.

    Args:
        elements: Size of the universe shared by every ranking.

    Examples:
        >>> arena = RankingArena(3)
        >>> arena.add(Ranking.parse(3, "0,{1,2}"))
        >>> arena.add(Ranking.parse(3, "2"))
        >>> [str(r) for r in arena]
        ['0,{1,2}', '2']
    """

    def __init__(self, elements: int):
        self.elements = validate_elements(elements)
        self._orders = np.empty(0, dtype=np.intp)
        self._ties = np.empty(0, dtype=bool)
        self._ends = np.empty(0, dtype=np.intp)
        self._n_ids = 0
        self._n_rankings = 0

    @classmethod
    def from_rankings(cls, elements: int, rankings) -> "RankingArena":
        """Pack ``rankings``, skipping empty ones."""
        arena = cls(elements)
        for ranking in rankings:
            if not ranking.is_empty():
                arena.add(ranking)
        return arena

    def __len__(self) -> int:
        return self._n_rankings

    def _bounds(self, i: int) -> tuple[int, int]:
        start = int(self._ends[i - 1]) if i > 0 else 0
        return start, int(self._ends[i])

    def add(self, ranking) -> None:
        """
        Append a copy of ``ranking``.

        Raises:
            ValueError: If the ranking is empty or over another universe.
            AllocationError: If the backing storage cannot grow.
        """
        if ranking.elements != self.elements:
            raise ValueError(
                f"ranking must have {self.elements} elements, got {ranking.elements}"
            )
        if ranking.is_empty():
            raise ValueError("ranking must not be empty")
        n = len(ranking)
        n_ties = self._n_ids - self._n_rankings
        self._orders = _reserve(self._orders, self._n_ids, self._n_ids + n)
        self._ties = _reserve(self._ties, n_ties, n_ties + n - 1)
        self._ends = _reserve(self._ends, self._n_rankings, self._n_rankings + 1)
        self._orders[self._n_ids : self._n_ids + n] = ranking.order
        self._ties[n_ties : n_ties + n - 1] = ranking.tied
        self._n_ids += n
        self._ends[self._n_rankings] = self._n_ids
        self._n_rankings += 1

    def get(self, i: int) -> RankingView:
        """Return a view of ranking ``i`` into the packed storage."""
        i = validate_index(self._n_rankings, i, name="i")
        start, end = self._bounds(i)
        return RankingView._wrap(
            self.elements,
            self._orders[start:end],
            self._ties[start - i : end - i - 1],
        )

    def __getitem__(self, i: int) -> RankingView:
        return self.get(i)

    def __iter__(self):
        for i in range(self._n_rankings):
            yield self.get(i)

    def _rebuild(self, elements: int, rankings) -> None:
        packed = RankingArena.from_rankings(elements, rankings)
        self.__dict__.update(packed.__dict__)

    def remove_element(self, n: int) -> None:
        """
        Remove element ``n`` from every ranking, shifting larger ids down.

        Rankings that only ranked ``n`` are dropped.
        """
        n = validate_index(self.elements, n, name="n")
        rankings = []
        for view in self:
            ranking = view.to_ranking()
            ranking.remove(n)
            rankings.append(ranking)
        before = len(self)
        self._rebuild(self.elements - 1, rankings)
        logger.debug(
            "removed element %d, dropped %d empty rankings", n, before - len(self)
        )

    def add_clone(self, n: int) -> None:
        """Add a new element tied with ``n`` wherever ``n`` is ranked."""
        n = validate_index(self.elements, n, name="n")
        rankings = []
        for view in self:
            ranking = view.to_ranking()
            ranking.add_clone(n)
            rankings.append(ranking)
        self._rebuild(self.elements + 1, rankings)

    def majority(self) -> np.ndarray:
        """
        Return the ids ranked first by more than half of the rankings.

        Every id of a tied first group counts as ranked first, so several
        ids can hold a majority at once.
        """
        if self.elements == 1:
            return np.array([0], dtype=np.intp)
        firsts = np.zeros(self.elements, dtype=np.int64)
        for view in self:
            firsts[view.winners()] += 1
        return np.flatnonzero(firsts > len(self) // 2)

    def is_clone_set(self, clones) -> bool:
        """
        Return ``True`` if no ranking puts an outside id between two members
        of ``clones``.

        A group holding both members and outsiders counts as a member
        followed by an outsider.
        """
        clones = validate_ids(self.elements, clones, name="clones")
        if clones.size < 2:
            return True
        is_clone = np.zeros(self.elements, dtype=bool)
        is_clone[clones] = True
        for view in self:
            seen_clone = False
            seen_between = False
            for group in view.iter_groups():
                has_clone = bool(np.any(is_clone[group]))
                has_other = not bool(np.all(is_clone[group]))
                if has_clone and (seen_between or (seen_clone and has_other)):
                    return False
                if has_clone:
                    seen_clone = True
                if seen_clone and has_other:
                    seen_between = True
        return True

    def generate_uniform(self, count: int, seed: int | None = None, rng=None) -> None:
        """
        Append ``count`` random rankings.

        Each ranks a uniform number of ids in ``[1, elements]``, in random
        order, with fair-coin tie flags.
        """
        count = validate_elements(count)
        if self.elements == 0:
            return
        rng = resolve_rng(seed, rng)
        for _ in range(count):
            length = int(rng.integers(1, self.elements + 1))
            order = rng.permutation(self.elements)[:length].astype(np.intp)
            tied = rng.random(length - 1) < 0.5
            self.add(Ranking._trusted(self.elements, order, tied))

    def to_cardinal(self) -> "CardinalBallots":
        """
        Score every ranking with :meth:`Ranking.to_cardinal_high` over
        ``[0, elements - 1]``, after completing it with an untied last group.
        """
        max_score = max(self.elements - 1, 0)
        ballots = CardinalBallots(self.elements, 0, max_score)
        for view in self:
            ranking = view.to_ranking()
            ranking.make_complete(False)
            ballots.add(ranking.to_cardinal_high(0, max_score))
        return ballots

    def __repr__(self) -> str:
        return f"RankingArena(elements={self.elements}, rankings={len(self)})"


class CardinalBallots:
    """
    Score ballots: every ballot rates every element in ``[min_score, max_score]``.

    Args:
        elements: Number of elements rated on each ballot.
        min_score: Lowest allowed rating, at least 0.
        max_score: Highest allowed rating.

    Raises:
        ValueError: If the score range is empty or negative.
    """

    def __init__(self, elements: int, min_score: int, max_score: int):
        self.elements = validate_elements(elements)
        if min_score < 0:
            raise ValueError(f"min_score must be >= 0, got {min_score}")
        if min_score > max_score:
            raise ValueError(
                f"min_score must be <= max_score, got {min_score} > {max_score}"
            )
        if max_score > _SCORE_MAX:
            raise ScoreOverflowError(f"max_score must be <= {_SCORE_MAX}")
        self.min_score = int(min_score)
        self.max_score = int(max_score)
        self._values = np.empty((0, self.elements), dtype=_SCORE_DTYPE)
        self._count = 0

    @classmethod
    def from_array(cls, values, min_score: int, max_score: int) -> "CardinalBallots":
        """
        Build ballots from a ``(count, elements)`` array of ratings.

        Examples:
            >>> ballots = CardinalBallots.from_array([[1, 3], [2, 0]], 0, 4)
            >>> ballots.count, ballots.elements
            (2, 2)
        """
        values = np.asarray(values)
        if values.ndim != 2:
            raise ValueError(f"values must be a 2D array, got shape {values.shape}")
        ballots = cls(values.shape[1], min_score, max_score)
        ballots._check_range(values)
        ballots._values = values.astype(_SCORE_DTYPE, copy=True)
        ballots._count = values.shape[0]
        return ballots

    def _check_range(self, values: np.ndarray) -> None:
        if not np.issubdtype(values.dtype, np.bool_):
            if not np.issubdtype(values.dtype, np.number):
                raise ValueError(f"ratings must be numeric, got dtype {values.dtype}")
            if np.issubdtype(values.dtype, np.complexfloating):
                raise ValueError("ratings must be real-valued")
            if np.issubdtype(values.dtype, np.floating):
                if not np.isfinite(values).all():
                    raise ValueError("ratings must not contain NaN or Inf values")
                if not np.array_equal(values, np.round(values)):
                    raise ValueError(
                        "float ratings must be whole numbers. "
                        "Use integer dtype for ratings."
                    )
        if values.size and (values.min() < self.min_score or values.max() > self.max_score):
            raise ValueError(
                f"ratings must be in [{self.min_score}, {self.max_score}]"
            )

    @property
    def count(self) -> int:
        """Number of ballots."""
        return self._count

    def __len__(self) -> int:
        return self._count

    @property
    def values(self) -> np.ndarray:
        """Read-only ``(count, elements)`` view of the ratings."""
        view = self._values[: self._count]
        view.flags.writeable = False
        return view

    def __iter__(self):
        return iter(self.values)

    def add(self, ballot) -> None:
        """
        Append one ballot.

        Raises:
            ValueError: If the ballot does not rate every element within range.
            AllocationError: If the backing storage cannot grow.
        """
        ballot = np.asarray(ballot)
        if ballot.shape != (self.elements,):
            raise ValueError(
                f"ballot must have shape ({self.elements},), got {ballot.shape}"
            )
        self._check_range(ballot)
        self._values = _reserve(self._values, self._count, self._count + 1)
        self._values[self._count] = ballot
        self._count += 1

    def generate_uniform(self, count: int, seed: int | None = None, rng=None) -> None:
        """Append ``count`` ballots with independent uniform ratings."""
        count = validate_elements(count)
        if self.elements == 0 or count == 0:
            return
        rng = resolve_rng(seed, rng)
        new = rng.integers(
            self.min_score, self.max_score, size=(count, self.elements), endpoint=True
        )
        self._values = _reserve(self._values, self._count, self._count + count)
        self._values[self._count : self._count + count] = new
        self._count += count

    def preference_matrix(self, keep) -> np.ndarray:
        """
        Count pairwise preferences among the ids in ``keep``.

        Args:
            keep: Distinct ids to compare.

        Returns:
            ``(len(keep), len(keep))`` matrix whose ``[i, j]`` entry is the
            number of ballots rating ``keep[i]`` strictly above ``keep[j]``.
            The diagonal is zero.
        """
        keep = np.array(keep, dtype=np.intp).reshape(-1)
        validate_ids(self.elements, keep, name="keep")
        rated = self.values[:, keep]
        return np.count_nonzero(
            rated[:, :, np.newaxis] > rated[:, np.newaxis, :], axis=0
        )

    def compare(self, a: int, b: int) -> Ordering:
        """
        Compare ``a`` and ``b`` head to head.

        Returns:
            ``1`` if more ballots rate ``a`` above ``b`` than the reverse,
            ``-1`` if fewer, ``0`` if as many.
        """
        m = self.preference_matrix([a, b])
        return _sign(int(m[0, 1]) - int(m[1, 0]))

    def compare_specific(self, a: int, b: int, value: int) -> Ordering:
        """Compare how many ballots give ``value`` to ``a`` and to ``b``."""
        counts = self.rating_counts([a, b], value)
        return _sign(int(counts[0]) - int(counts[1]))

    def compare_totals(self, a: int, b: int) -> Ordering:
        """Compare the total scores of ``a`` and ``b``."""
        a = validate_index(self.elements, a, name="a")
        b = validate_index(self.elements, b, name="b")
        totals = self.total_scores()
        return _sign(int(totals[a]) - int(totals[b]))

    def rating_counts(self, keep, rating: int) -> np.ndarray:
        """Count, for each id in ``keep``, the ballots rating it exactly ``rating``."""
        if not self.min_score <= rating <= self.max_score:
            raise ValueError(
                f"rating must be in [{self.min_score}, {self.max_score}], got {rating}"
            )
        keep = np.array(keep, dtype=np.intp).reshape(-1)
        validate_ids(self.elements, keep, name="keep")
        return np.count_nonzero(self.values[:, keep] == rating, axis=0)

    def total_scores(self) -> np.ndarray:
        """
        Sum the ratings of every element over all ballots.

        Raises:
            ScoreOverflowError: If a sum could exceed the ``int64`` range.
        """
        if self.max_score * self._count > _SCORE_MAX:
            raise ScoreOverflowError(
                f"{self._count} ballots with max_score {self.max_score} "
                "could overflow the score sum"
            )
        return self.values.sum(axis=0, dtype=_SCORE_DTYPE)

    def scale(self, a: int) -> None:
        """Multiply every rating, and the score range, by ``a >= 0``."""
        if a < 0:
            raise ValueError(f"a must be >= 0, got {a}")
        if self.max_score * a > _SCORE_MAX:
            raise ScoreOverflowError(f"scaling max_score {self.max_score} by {a} overflows")
        if a == 1:
            return
        self._values[: self._count] *= a
        self.min_score *= a
        self.max_score *= a

    def add_constant(self, a: int) -> None:
        """Add ``a >= 0`` to every rating and to the score range."""
        if a < 0:
            raise ValueError(f"a must be >= 0, got {a}")
        if self.max_score + a > _SCORE_MAX:
            raise ScoreOverflowError(f"adding {a} to max_score {self.max_score} overflows")
        self._values[: self._count] += a
        self.min_score += a
        self.max_score += a

    def sub_constant(self, a: int) -> None:
        """Subtract ``a >= 0`` from every rating and from the score range."""
        if a < 0:
            raise ValueError(f"a must be >= 0, got {a}")
        if self.min_score - a < 0:
            raise ScoreOverflowError(
                f"subtracting {a} from min_score {self.min_score} underflows"
            )
        self._values[: self._count] -= a
        self.min_score -= a
        self.max_score -= a

    def remove_element(self, n: int) -> None:
        """Drop the ratings of element ``n``; larger ids shift down."""
        n = validate_index(self.elements, n, name="n")
        self._values = np.delete(self._values[: self._count], n, axis=1)
        self.elements -= 1

    def __repr__(self) -> str:
        return (
            f"CardinalBallots(elements={self.elements}, count={self._count}, "
            f"scores=[{self.min_score}, {self.max_score}])"
        )


__all__ = ["RankingArena", "CardinalBallots"]
