"""
Voting methods built on :mod:`tiedorders.order`.

- :func:`star`: STAR voting with the official tiebreaker protocol.
"""

from .cardinal import (
    TieBreaker,
    rank_by_matchups,
    rank_by_rating,
    runoff_round,
    score_ranking,
    star,
    tiebreak_scoring_official,
)

__all__ = [
    "TieBreaker",
    "rank_by_matchups",
    "rank_by_rating",
    "tiebreak_scoring_official",
    "score_ranking",
    "runoff_round",
    "star",
]
