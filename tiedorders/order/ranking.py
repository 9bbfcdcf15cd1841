"""
Rankings with ties over a fixed universe of elements.

A ranking over ``elements`` ids is stored as two packed arrays:

- ``order``: distinct ids, best first. Not every id of the universe has to
  be present (incomplete rankings are allowed).
- ``tied``: one flag per adjacent pair, ``tied[i]`` is ``True`` when
  ``order[i]`` and ``order[i + 1]`` are tied.

So ``len(tied) + 1 == len(order)``, or both are empty. The canonical text
form lists groups separated by commas, with tied groups in braces:

.. code-block:: text

    2,{0,1},4

:class:`Ranking` owns its arrays and exposes the operations that change its
length. :class:`RankingView` borrows slices of another object's arrays;
writes through a view land in the owner's storage.
"""

import re

import numpy as np

from tiedorders.utils import group_ranks, order_by_scores

from ._base import (
    is_valid_order,
    resolve_rng,
    validate_elements,
    validate_ids,
    validate_index,
    validate_order,
)
from ._types import RankMethod
from .dominance import DominanceRelation
from .groups import GroupIterator

_ID_PATTERN = re.compile(r"[0-9]+")


class _RankingBase:
    """Read and in-place operations shared by owned rankings and views."""

    elements: int
    order: np.ndarray
    tied: np.ndarray

    def __len__(self) -> int:
        return int(self.order.size)

    def is_empty(self) -> bool:
        return self.order.size == 0

    def is_complete(self) -> bool:
        """Return ``True`` if every element of the universe is ranked."""
        return self.order.size == self.elements

    def _check(self) -> None:
        assert is_valid_order(self.elements, self.order, self.tied)

    def _prefix_end(self, n: int) -> int:
        # Smallest length >= n that does not end inside a group.
        if n == 0:
            return 0
        stops = np.flatnonzero(~self.tied[n - 1 :])
        return n + int(stops[0]) if stops.size else int(self.order.size)

    def _group_start(self, position: int) -> int:
        stops = np.flatnonzero(~self.tied[:position])
        return int(stops[-1]) + 1 if stops.size else 0

    def view(self) -> "RankingView":
        """Return a view over the whole ranking."""
        return RankingView._wrap(self.elements, self.order, self.tied)

    def winners(self) -> np.ndarray:
        """
        Return the ids of the first group.

        Returns:
            A view of the ids ranked best (possibly tied). Empty for an
            empty ranking.
        """
        return self.order[: self._prefix_end(1)]

    def group_of(self, c: int) -> int | None:
        """
        Return the zero-based group index of element ``c``.

        Takes ``O(n)`` time.

        Examples:
            >>> rank = RankingView(7, [4, 2, 3, 0, 1], [True, True, False, True])
            >>> rank.group_of(0)
            1
            >>> rank.group_of(6) is None
            True
        """
        positions = np.flatnonzero(self.order == c)
        if positions.size == 0:
            return None
        return int(np.count_nonzero(~self.tied[: positions[0]]))

    def iter_groups(self) -> GroupIterator:
        """Iterate over the tied groups, best group first."""
        return GroupIterator(self.view())

    def groups(self) -> list[list[int]]:
        """Return all groups as lists of ids, best group first."""
        return [group.tolist() for group in self.iter_groups()]

    def split_winner_group(self) -> tuple[np.ndarray, "RankingView"]:
        """
        Return the first group and a view of the rest of the ranking.

        For an empty ranking the group is empty and the rest is the
        (empty) ranking itself.
        """
        if self.is_empty():
            return self.order[:0], self.view()
        k = self._prefix_end(1)
        rest = RankingView._wrap(self.elements, self.order[k:], self.tied[k:])
        return self.order[:k], rest

    def top(self, n: int) -> "RankingView":
        """
        Return a view of the top ``n`` positions, extended past ``n`` while
        ties make the cut ambiguous.

        Raises:
            ValueError: If ``n`` is negative or larger than the ranking.
        """
        self._validate_cut(n)
        end = self._prefix_end(n)
        return RankingView._wrap(
            self.elements, self.order[:end], self.tied[: max(end - 1, 0)]
        )

    def _validate_cut(self, n: int) -> None:
        if not 0 <= n <= len(self):
            raise ValueError(f"n must be in [0, {len(self)}], got {n}")

    def normalize(self) -> None:
        """
        Sort the ids inside every tied group, leaving group boundaries alone.

        Two rankings that only differ in the order of tied ids compare equal
        after both are normalized.

        Examples:
            >>> a = Ranking(3, [0, 1, 2], [True, True])
            >>> b = Ranking(3, [2, 1, 0], [True, True])
            >>> a == b
            False
            >>> b.normalize()
            >>> a == b
            True
        """
        start = 0
        for stop in np.flatnonzero(~self.tied):
            self.order[start : stop + 1].sort()
            start = stop + 1
        self.order[start:].sort()

    def reverse(self) -> None:
        """Reverse the ranking in place. Reversing twice is the identity."""
        self.order[:] = self.order[::-1]
        self.tied[:] = self.tied[::-1]

    def rank_vector(self, method: RankMethod = "competition") -> np.ndarray:
        """
        Return the rank of every element of the universe.

        Unranked elements share the rank after the last group.

        Args:
            method: Tie-handling rule passed to
                :func:`tiedorders.utils.group_ranks`.

        Returns:
            Rank array of shape ``(elements,)``, rank 1 is best.

        Examples:
            >>> rank = parse_ranking(5, "2,{0,1}")
            >>> rank.rank_vector().tolist()
            [2, 2, 1, 4, 4]
            >>> rank.rank_vector("dense").tolist()
            [2, 2, 1, 3, 3]
        """
        group_index = self._group_index()
        return group_ranks(group_index, method=method)

    def _group_index(self) -> np.ndarray:
        n_groups = 0 if self.is_empty() else int(np.count_nonzero(~self.tied)) + 1
        group_index = np.full(self.elements, n_groups, dtype=np.intp)
        if not self.is_empty():
            group_index[self.order] = np.concatenate(
                ([0], np.cumsum(~self.tied))
            )
        return group_index

    def to_cardinal_high(self, min_score: int, max_score: int) -> np.ndarray:
        """
        Map groups to scores, stepping down from ``max_score`` per group.

        The step is ``(max_score - min_score) / elements``, so a strict
        complete ranking spreads over the whole score range. Unranked
        elements get ``min_score``.
        """
        _validate_score_range(min_score, max_score)
        scores = np.full(self.elements, min_score, dtype=np.int64)
        for i, group in enumerate(self.iter_groups()):
            scores[group] = (self.elements - 1 - i) * (
                max_score - min_score
            ) // self.elements + min_score
        return scores

    def to_cardinal_uniform(self, min_score: int, max_score: int) -> np.ndarray:
        """
        Map groups to scores spread evenly over ``[min_score, max_score]``.

        The first group gets ``max_score`` and the last ranked group gets
        ``min_score``, so a lone group gets ``min_score``. Unranked elements
        get ``min_score`` as well.
        """
        _validate_score_range(min_score, max_score)
        scores = np.full(self.elements, min_score, dtype=np.int64)
        n_groups = sum(1 for _ in self.iter_groups())
        steps = max(n_groups - 1, 1)
        for i, group in enumerate(self.iter_groups()):
            scores[group] = (n_groups - 1 - i) * (max_score - min_score) // steps + min_score
        return scores

    def to_dominance(self) -> DominanceRelation:
        """Return the dominance relation implied by this ranking."""
        return DominanceRelation.from_ranking(self)

    def to_ranking(self) -> "Ranking":
        """Return an owned copy."""
        return Ranking._trusted(self.elements, self.order.copy(), self.tied.copy())

    def __eq__(self, other):
        if not isinstance(other, _RankingBase):
            return NotImplemented
        return (
            self.elements == other.elements
            and np.array_equal(self.order, other.order)
            and np.array_equal(self.tied, other.tied)
        )

    __hash__ = None

    def __str__(self) -> str:
        parts = []
        for group in self.iter_groups():
            ids = ",".join(str(int(c)) for c in group)
            parts.append(f"{{{ids}}}" if len(group) > 1 else ids)
        return ",".join(parts)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(elements={self.elements}, {str(self)!r})"


class RankingView(_RankingBase):
    """
    Non-owning ranking over borrowed ``order`` and ``tied`` arrays.

    Views are produced by :meth:`Ranking.view`, :meth:`Ranking.top`,
    :meth:`Ranking.top_n_threshold`, group splitting and packed collections.
    Their length never changes; :meth:`normalize`, :meth:`reverse` and
    :meth:`assign` write through to the owner.

    Args:
        elements: Size of the universe.
        order: Distinct ids, best first.
        tied: Tie flags, one less than ``order``.

    Raises:
        ValueError: If the arrays violate the ranking invariant.
    """

    def __init__(self, elements, order, tied):
        self.elements = validate_elements(elements)
        order = np.asarray(order, dtype=np.intp)
        tied = np.asarray(tied, dtype=bool)
        if order.ndim != 1 or tied.ndim != 1:
            raise ValueError("order and tied must be 1D arrays")
        if not is_valid_order(self.elements, order, tied):
            raise ValueError(
                f"order and tied do not form a ranking of {self.elements} elements"
            )
        self.order = order
        self.tied = tied

    @classmethod
    def _wrap(cls, elements: int, order: np.ndarray, tied: np.ndarray) -> "RankingView":
        view = cls.__new__(cls)
        view.elements = elements
        view.order = order
        view.tied = tied
        view._check()
        return view

    def assign(self, other: _RankingBase) -> None:
        """
        Overwrite this view with ``other``, a relabeling of the same ids.

        Raises:
            ValueError: If ``other`` does not hold exactly the same ids.
        """
        if len(other) != len(self) or not np.array_equal(
            np.sort(other.order), np.sort(self.order)
        ):
            raise ValueError("assigned ranking must contain exactly the same ids")
        self.order[:] = other.order
        self.tied[:] = other.tied


class Ranking(_RankingBase):
    """
    Owned ranking with ties over ``elements`` ids.

    Args:
        elements: Size of the universe; ids are ``0 .. elements - 1``.
        order: Distinct ids, best first. May leave ids out.
        tied: ``tied[i]`` is ``True`` when ``order[i]`` is tied with
            ``order[i + 1]``.

    Raises:
        TypeError: If ``elements`` is not an integer.
        ValueError: If the lengths mismatch, or ids repeat or are out of range.

    Examples:
        >>> rank = Ranking(5, [2, 0, 1, 4], [False, True, False])
        >>> str(rank)
        '2,{0,1},4'
        >>> rank.winners().tolist()
        [2]
    """

    def __init__(self, elements, order=(), tied=()):
        self.elements = validate_elements(elements)
        self.order, self.tied = validate_order(self.elements, order, tied)

    @classmethod
    def _trusted(cls, elements: int, order: np.ndarray, tied: np.ndarray) -> "Ranking":
        rank = cls.__new__(cls)
        rank.elements = elements
        rank.order = order
        rank.tied = tied
        rank._check()
        return rank

    @classmethod
    def empty(cls, elements: int = 0) -> "Ranking":
        """Return a ranking of no ids over a universe of ``elements``."""
        return cls(elements)

    @classmethod
    def new_tied(cls, elements: int) -> "Ranking":
        """Return a complete ranking where every element is tied."""
        elements = validate_elements(elements)
        return cls._trusted(
            elements,
            np.arange(elements, dtype=np.intp),
            np.ones(max(elements - 1, 0), dtype=bool),
        )

    @classmethod
    def single(cls, elements: int, n: int) -> "Ranking":
        """Return a ranking that only ranks element ``n``."""
        elements = validate_elements(elements)
        n = validate_index(elements, n, name="n")
        return cls._trusted(
            elements, np.array([n], dtype=np.intp), np.array([], dtype=bool)
        )

    @classmethod
    def from_groups(cls, elements: int, groups) -> "Ranking":
        """
        Build a ranking from tied groups, best group first.

        Args:
            elements: Size of the universe.
            groups: Sequence of non-empty id sequences.
        """
        order = []
        tied = []
        for group in groups:
            group = list(group)
            if not group:
                raise ValueError("groups must not be empty")
            if order:
                tied.append(False)
            tied.extend([True] * (len(group) - 1))
            order.extend(group)
        return cls(elements, order, tied)

    @classmethod
    def from_scores(cls, elements: int, scores) -> "Ranking":
        """
        Rank every element by descending score, tied where scores are equal.

        Args:
            elements: Size of the universe.
            scores: One score per element; higher is better.

        Examples:
            >>> str(Ranking.from_scores(4, [6, 10, 6, 11]))
            '3,1,{0,2}'
        """
        elements = validate_elements(elements)
        scores = np.asarray(scores)
        if scores.shape != (elements,):
            raise ValueError(
                f"scores must have shape ({elements},), got {scores.shape}"
            )
        positions, tied = order_by_scores(scores)
        return cls._trusted(elements, positions, tied)

    @classmethod
    def from_score(cls, elements: int, ids, scores) -> "Ranking":
        """
        Rank a subset of ids by parallel scores, descending, tied where
        scores are equal.

        Args:
            elements: Size of the universe.
            ids: Distinct ids to rank.
            scores: ``scores[i]`` is the score of ``ids[i]``.
        """
        elements = validate_elements(elements)
        ids = np.array(ids, dtype=np.intp).reshape(-1)
        validate_ids(elements, ids)
        scores = np.asarray(scores)
        if scores.shape != ids.shape:
            raise ValueError("ids and scores must have the same length")
        positions, tied = order_by_scores(scores)
        return cls._trusted(elements, ids[positions], tied)

    @classmethod
    def random(cls, elements: int, seed: int | None = None, rng=None) -> "Ranking":
        """
        Sample a random, possibly incomplete ranking with random ties.

        The ranked length is uniform in ``[0, elements]`` and every tie flag
        is a fair coin.

        Args:
            elements: Size of the universe.
            seed: Seed for ``numpy.random.default_rng`` when ``rng`` is None.
            rng: Optional ``numpy.random.Generator`` to draw from.
        """
        elements = validate_elements(elements)
        rng = resolve_rng(seed, rng)
        if elements == 0:
            return cls.empty()
        length = int(rng.integers(0, elements + 1))
        order = rng.permutation(elements)[:length].astype(np.intp)
        tied = rng.random(max(length - 1, 0)) < 0.5
        return cls._trusted(elements, order, tied)

    @classmethod
    def random_total(cls, elements: int, ids, seed: int | None = None, rng=None) -> "Ranking":
        """Shuffle ``ids`` into a strict ranking without ties."""
        elements = validate_elements(elements)
        ids = np.array(ids, dtype=np.intp).reshape(-1)
        validate_ids(elements, ids)
        rng = resolve_rng(seed, rng)
        order = rng.permutation(ids).astype(np.intp)
        return cls._trusted(elements, order, np.zeros(max(order.size - 1, 0), dtype=bool))

    @classmethod
    def parse(cls, elements: int, s: str) -> "Ranking":
        """
        Parse the text form, see :func:`parse_ranking`.

        Raises:
            ValueError: If ``s`` is not a valid ranking of ``elements``.
        """
        rank = parse_ranking(elements, s)
        if rank is None:
            raise ValueError(f"invalid ranking of {elements} elements: {s!r}")
        return rank

    def copy(self) -> "Ranking":
        return self.to_ranking()

    def copy_from(self, source: _RankingBase) -> None:
        """Become a copy of ``source``, including its universe size."""
        self.elements = source.elements
        self.order = source.order.copy()
        self.tied = source.tied.copy()

    def increase_elements(self, elements: int) -> None:
        """Grow the universe to ``elements`` without changing the order."""
        elements = validate_elements(elements)
        if elements < self.elements:
            raise ValueError(
                f"elements must be >= {self.elements}, got {elements}"
            )
        self.elements = elements

    def make_complete(self, tied_last: bool) -> None:
        """
        Append every unranked element, in id order, as one last group.

        Args:
            tied_last: Whether the appended group is tied with the current
                last position. Ignored when the ranking was empty.

        Examples:
            >>> rank = parse_ranking(5, "3,1")
            >>> rank.make_complete(False)
            >>> str(rank)
            '3,1,{0,2,4}'
        """
        if self.is_complete():
            return
        ranked = np.zeros(self.elements, dtype=bool)
        ranked[self.order] = True
        missing = np.flatnonzero(~ranked).astype(np.intp)
        parts = [self.tied]
        if not self.is_empty():
            parts.append(np.array([tied_last], dtype=bool))
        parts.append(np.ones(missing.size - 1, dtype=bool))
        self.order = np.concatenate((self.order, missing))
        self.tied = np.concatenate(parts)
        self._check()

    def keep_top(self, n: int) -> None:
        """
        Truncate to the shortest prefix of at least ``n`` positions that does
        not end inside a tied group. ``n == 0`` empties the ranking.

        Raises:
            ValueError: If ``n`` is negative or larger than the ranking.

        Examples:
            >>> rank = parse_ranking(5, "0,{1,2},3,4")
            >>> rank.keep_top(2)
            >>> str(rank)
            '0,{1,2}'
        """
        self._validate_cut(n)
        end = self._prefix_end(n)
        self.order = self.order[:end].copy()
        self.tied = self.tied[: max(end - 1, 0)].copy()
        self._check()

    def top_n_threshold(self, n: int) -> RankingView:
        """
        Return a writable view of the tied group straddling position ``n``.

        Breaking the ties inside this group decides which ids form the top
        ``n``. The view is empty when the boundary at ``n`` is not tied, i.e.
        the top ``n`` are already decided (this includes ``n == 0`` and
        ``n >= len(self)``).

        The view's ``tied`` slice only covers the flags inside the group, so
        relabeling it with :meth:`RankingView.assign` never touches the
        boundaries of the group.

        Examples:
            >>> rank = parse_ranking(6, "0,{1,2,3},4")
            >>> rank.top_n_threshold(2).order.tolist()
            [1, 2, 3]
            >>> len(rank.top_n_threshold(1))
            0
        """
        if n <= 0 or n >= len(self) or not self.tied[n - 1]:
            return RankingView._wrap(self.elements, self.order[:0], self.tied[:0])
        start = self._group_start(n - 1)
        end = self._prefix_end(n)
        return RankingView._wrap(
            self.elements, self.order[start:end], self.tied[start : end - 1]
        )

    def remove_winners(self) -> None:
        """Drop the first group."""
        if self.is_empty():
            return
        k = self._prefix_end(1)
        self.order = self.order[k:].copy()
        self.tied = self.tied[k:].copy()
        self._check()

    def remove_last(self) -> None:
        """Drop the last group."""
        if self.is_empty():
            return
        start = self._group_start(len(self) - 1)
        self.order = self.order[:start].copy()
        self.tied = self.tied[: max(start - 1, 0)].copy()
        self._check()

    def remove(self, n: int) -> None:
        """
        Remove element ``n`` from the universe.

        Ids above ``n`` shift down by one. If ``n`` was ranked, its neighbours
        stay tied only if both were tied to it.
        """
        n = validate_index(self.elements, n, name="n")
        positions = np.flatnonzero(self.order == n)
        if positions.size:
            p = int(positions[0])
            tied = self.tied
            if p == 0:
                tied = tied[1:]
            elif p == len(self) - 1:
                tied = tied[:-1]
            else:
                joined = tied[p - 1] and tied[p]
                tied = np.concatenate((tied[: p - 1], [joined], tied[p + 1 :]))
            self.order = np.delete(self.order, p)
            self.tied = np.asarray(tied, dtype=bool).copy()
        self.order[self.order > n] -= 1
        self.elements -= 1
        self._check()

    def add_clone(self, n: int) -> None:
        """
        Add a new element, id ``elements``, tied with element ``n``.

        If ``n`` is unranked the new element is unranked as well.
        """
        n = validate_index(self.elements, n, name="n")
        clone = self.elements
        self.elements += 1
        positions = np.flatnonzero(self.order == n)
        if positions.size:
            p = int(positions[0])
            self.order = np.insert(self.order, p, clone)
            self.tied = np.insert(self.tied, p, True)
        self._check()


def parse_ranking(elements: int, s: str) -> Ranking | None:
    """
    Parse a ranking of ``elements`` from its text form.

    The grammar is a comma separated list of groups, where a group is a single
    id or ``{id,id,...}`` with mutually tied ids. Text cannot contain any
    whitespace.

    Args:
        elements: Size of the universe.
        s: Text form, e.g. ``"2,{0,1},4"``.

    Returns:
        The parsed ranking, or ``None`` for a malformed string, an id that is
        out of range or repeated, an unterminated or nested group.

    Examples:
        >>> str(parse_ranking(5, "2,{0,1},4"))
        '2,{0,1},4'

        Braces around a single id are allowed, so different strings can parse
        to the same ranking:

        >>> str(parse_ranking(5, "0,{1}"))
        '0,1'
        >>> parse_ranking(5, "{0,1") is None
        True
    """
    elements = validate_elements(elements)
    if s == "":
        return Ranking.empty(elements)
    order: list[int] = []
    tied: list[bool] = []
    seen: set[int] = set()
    grouped = False
    for part in s.split(","):
        if not grouped and part.startswith("{"):
            part = part[1:]
            grouped = True
        # A group may open and close in the same part.
        if grouped and part.endswith("}"):
            part = part[:-1]
            grouped = False
            in_group = False
        else:
            in_group = grouped
        if not _ID_PATTERN.fullmatch(part):
            return None
        n = int(part)
        if n >= elements or n in seen:
            return None
        seen.add(n)
        order.append(n)
        tied.append(in_group)
    if grouped:
        return None
    # The last position is never tied to anything.
    tied.pop()
    return Ranking._trusted(
        elements, np.array(order, dtype=np.intp), np.array(tied, dtype=bool)
    )


def format_ranking(ranking: _RankingBase) -> str:
    """Return the canonical text form of ``ranking``, see :func:`parse_ranking`."""
    return str(ranking)


def _validate_score_range(min_score: int, max_score: int) -> None:
    if min_score > max_score:
        raise ValueError(
            f"min_score must be <= max_score, got {min_score} > {max_score}"
        )


__all__ = ["Ranking", "RankingView", "parse_ranking", "format_ranking"]
