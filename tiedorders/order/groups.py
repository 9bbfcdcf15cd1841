"""
Group iteration over rankings with ties.

A group is a maximal run of positions joined by ``True`` tie flags. Groups
partition a ranking from best to worst; the first group holds the winners.
"""


class GroupIterator:
    """
    Lazy, forward-only iterator over the tied groups of a ranking view.

    Each step splits the first group off the remaining view, so no group is
    materialized before it is requested. Groups are numpy views into the
    ranking's storage, best group first.

    Args:
        view: A :class:`tiedorders.order.RankingView` to iterate over.

    Examples:
        >>> from tiedorders.order import Ranking
        >>> rank = Ranking.from_groups(7, [[4, 2, 3], [0, 1]])
        >>> [group.tolist() for group in rank.iter_groups()]
        [[4, 2, 3], [0, 1]]
    """

    def __init__(self, view):
        self._start = view
        self._rest = view

    def __iter__(self):
        return self

    def __next__(self):
        if self._rest.is_empty():
            raise StopIteration
        group, self._rest = self._rest.split_winner_group()
        assert len(group) > 0
        return group

    def remaining(self):
        """Return the view of the positions not yet yielded."""
        return self._rest

    def restart(self) -> None:
        """Rewind to the first group of the original view."""
        self._rest = self._start

    def size_hint(self) -> tuple[int, int]:
        """
        Return ``(lower, upper)`` bounds on the number of groups left.

        The bounds only coincide when nothing is left, or when a single
        position is left.
        """
        n = len(self._rest)
        if n == 0:
            return 0, 0
        # Between one giant tied group and one group per position.
        return 1, n

    def __length_hint__(self) -> int:
        return self.size_hint()[0]


__all__ = ["GroupIterator"]
