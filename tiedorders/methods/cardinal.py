"""
Voting methods over cardinal (score) ballots.

Every ballot rates every candidate in ``[min_score, max_score]``. STAR voting
(Score Then Automatic Runoff) counts them in two rounds:

1. **Scoring round.** Candidates are ranked by total score and the two best
   advance. Ties that make the top two ambiguous are broken with the
   official tiebreaker protocol (https://www.starvoting.org/ties): first by
   head-to-head matchups among the tied candidates, then by the number of
   maximum ratings, then by the number of minimum ratings (fewer is better).
   The protocol stops short of drawing lots and reports an unresolved tie
   instead.
2. **Automatic runoff.** The finalist preferred on more ballots wins. A tie
   falls back to the number of maximum ratings.

Notes:
    - Breaking a tie can move some tied candidates out of contention. The
      protocol then restarts from the matchups step, restricted to the
      candidates still tied at the cutoff.
"""

import logging
from enum import Enum

import numpy as np

from tiedorders.order import CardinalBallots, Ranking
from tiedorders.order._types import Ordering

logger = logging.getLogger(__name__)


class TieBreaker(Enum):
    """Steps of the official tiebreaker protocol, in the order they are tried."""

    MATCHUPS = "matchups"
    MAX = "max"
    MIN = "min"
    RANDOM = "random"

    def next(self) -> "TieBreaker":
        members = list(TieBreaker)
        return members[min(members.index(self) + 1, len(members) - 1)]


def _validate_ballots(ballots) -> None:
    if not isinstance(ballots, CardinalBallots):
        raise TypeError(
            f"ballots must be CardinalBallots, got {type(ballots).__name__}"
        )


def rank_by_matchups(ids, ballots: CardinalBallots) -> Ranking:
    """
    Rank ``ids`` by the number of head-to-head matchups won among themselves.

    A matchup between two ids is won by the one rated higher on more ballots;
    an even matchup counts for neither.

    Args:
        ids: Distinct candidate ids to rank.
        ballots: Score ballots.

    Returns:
        Ranking of ``ids`` by matchups won, tied where the counts are equal.
    """
    ids = np.asarray(ids, dtype=np.intp)
    prefs = ballots.preference_matrix(ids)
    won = np.count_nonzero(prefs > prefs.T, axis=1)
    return Ranking.from_score(ballots.elements, ids, won)


def rank_by_rating(ids, ballots: CardinalBallots, rating: int) -> Ranking:
    """Rank ``ids`` by how many ballots give them exactly ``rating``, most first."""
    ids = np.asarray(ids, dtype=np.intp)
    counts = ballots.rating_counts(ids, rating)
    return Ranking.from_score(ballots.elements, ids, counts)


def _secondary_ranking(state: TieBreaker, ids, ballots: CardinalBallots) -> Ranking:
    if state is TieBreaker.MATCHUPS:
        return rank_by_matchups(ids, ballots)
    if state is TieBreaker.MAX:
        return rank_by_rating(ids, ballots, ballots.max_score)
    # Fewest minimum ratings first.
    ranking = rank_by_rating(ids, ballots, ballots.min_score)
    ranking.reverse()
    return ranking


def tiebreak_scoring_official(
    ranking: Ranking, goal_len: int, ballots: CardinalBallots
) -> bool:
    """
    Break ties in ``ranking`` until its top ``goal_len`` ids are well defined.

    Each round only reorders the tied group straddling position ``goal_len``,
    using the current :class:`TieBreaker` step, then truncates the ranking
    with :meth:`Ranking.keep_top`. If the round removed candidates the
    protocol restarts at :attr:`TieBreaker.MATCHUPS`, otherwise it moves on
    to the next step. Reaching :attr:`TieBreaker.RANDOM` ends the protocol
    unresolved.

    Args:
        ranking: Ranking by score, modified in place.
        goal_len: Number of ids that should be unambiguously on top.
        ballots: Score ballots used by the tiebreak steps.

    Returns:
        ``True`` if ``ranking`` was reduced to exactly ``goal_len`` ids,
        ``False`` if ties remain. In that case ``ranking`` holds its top
        ``goal_len`` ids plus the remaining tied group.

    Raises:
        ValueError: If ``goal_len`` exceeds the ranking length.
    """
    _validate_ballots(ballots)
    if not 0 <= goal_len <= len(ranking):
        raise ValueError(f"goal_len must be in [0, {len(ranking)}], got {goal_len}")

    state = TieBreaker.MATCHUPS
    rounds = 0
    while True:
        block = ranking.top_n_threshold(goal_len)
        if block.is_empty():
            ranking.keep_top(goal_len)
            logger.debug("top %d resolved after %d rounds", goal_len, rounds)
            return True
        if state is TieBreaker.RANDOM:
            logger.info(
                "tie between %s for the top %d is unresolved", block.order.tolist(), goal_len
            )
            return False

        rounds += 1
        logger.debug("round %d: %s on block %s", rounds, state.value, block.order.tolist())
        block.assign(_secondary_ranking(state, block.order.copy(), ballots))

        before = len(ranking)
        ranking.keep_top(goal_len)
        after = len(ranking)
        assert after <= before
        if after == goal_len:
            logger.debug("top %d resolved after %d rounds", goal_len, rounds)
            return True
        state = TieBreaker.MATCHUPS if after < before else state.next()


def score_ranking(ballots: CardinalBallots) -> Ranking:
    """Rank all candidates by total score; fewer than two are simply tied."""
    _validate_ballots(ballots)
    if ballots.elements < 2:
        return Ranking.new_tied(ballots.elements)
    return Ranking.from_scores(ballots.elements, ballots.total_scores())


def runoff_round(a: int, b: int, ballots: CardinalBallots) -> Ordering:
    """
    Compare two finalists.

    Returns:
        ``1`` if ``a`` wins, ``-1`` if ``b`` wins, ``0`` on a full tie.
    """
    _validate_ballots(ballots)
    for compare in (
        ballots.compare,
        lambda x, y: ballots.compare_specific(x, y, ballots.max_score),
    ):
        result = compare(a, b)
        if result != 0:
            return result
    return 0


def star(ballots: CardinalBallots, return_scores: bool = False):
    """
    Count an election with STAR voting.

    Args:
        ballots: Score ballots over all candidates.
        return_scores: If True, also return the total scores.

    Returns:
        The final :class:`Ranking`, complete over all candidates: the runoff
        winner, the runoff loser, then everyone else tied. If the scoring
        round could not find two finalists, the tiebreak result is completed
        and returned instead. With ``return_scores=True`` returns
        ``(ranking, totals)``.

    Examples:
        >>> ballots = CardinalBallots.from_array(
        ...     [[1, 3, 2, 4], [3, 1, 1, 3], [0, 2, 1, 2], [2, 4, 2, 2]], 0, 4
        ... )
        >>> str(star(ballots))
        '3,1,{0,2}'
    """
    _validate_ballots(ballots)
    totals = ballots.total_scores()
    if ballots.elements < 2:
        result = Ranking.new_tied(ballots.elements)
        return (result, totals) if return_scores else result

    result = score_ranking(ballots)
    if not tiebreak_scoring_official(result, 2, ballots):
        logger.info("scoring round could not find two finalists")
        result.make_complete(False)
        return (result, totals) if return_scores else result

    a, b = (int(c) for c in result.order[:2])
    outcome = runoff_round(a, b, ballots)
    logger.info("runoff between %d and %d: %+d", a, b, outcome)
    if outcome < 0:
        a, b = b, a
    result = Ranking(ballots.elements, [a, b], [outcome == 0])
    result.make_complete(False)
    return (result, totals) if return_scores else result


__all__ = [
    "TieBreaker",
    "rank_by_matchups",
    "rank_by_rating",
    "tiebreak_scoring_official",
    "score_ranking",
    "runoff_round",
    "star",
]
