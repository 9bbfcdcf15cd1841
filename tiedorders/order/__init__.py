"""
Ranking representations.

- :class:`Ranking` / :class:`RankingView`: packed rankings with ties.
- :class:`GroupIterator`: lazy iteration over tied groups.
- :class:`DominanceRelation` / :class:`DominanceBuilder`: transitively
  closed ``<=`` relations.
- :class:`RankingArena` / :class:`CardinalBallots`: packed ballot
  collections.
"""

from .dense import CardinalBallots, RankingArena
from .dominance import DominanceBuilder, DominanceRelation
from .groups import GroupIterator
from .ranking import Ranking, RankingView, format_ranking, parse_ranking

__all__ = [
    "Ranking",
    "RankingView",
    "parse_ranking",
    "format_ranking",
    "GroupIterator",
    "DominanceRelation",
    "DominanceBuilder",
    "RankingArena",
    "CardinalBallots",
]
