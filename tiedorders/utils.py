import numpy as np
from scipy.stats import rankdata

_RANKDATA_METHODS = {
    "competition": "min",  # 1,2,2,4
    "competition_max": "max",  # 1,3,3,4
    "dense": "dense",  # 1,2,2,3
    "avg": "average",  # 1.0,2.5,2.5,4.0
}


def unique_and_bounded(elements, ids):
    """
    Check that ``ids`` are pairwise distinct and all in ``[0, elements)``.

    Args:
        elements (int): Size of the universe.
        ids (list or np.ndarray): Element ids to check.

    Returns:
        bool: ``True`` when every id is distinct and in range.
    """
    ids = np.asarray(ids)
    if ids.size == 0:
        return True
    if ids.min() < 0 or ids.max() >= elements:
        return False
    return np.unique(ids).size == ids.size


def order_by_scores(scores):
    """
    Sort ids by descending score and mark equal neighbours as tied.

    Equal scores keep ascending position order, so the result is
    deterministic for any input.

    Args:
        scores (list or np.ndarray): One score per position; higher is better.

    Returns:
        tuple: ``(positions, tied)`` where ``positions`` indexes into
        ``scores`` best first and ``tied[i]`` is ``True`` when the scores at
        ``positions[i]`` and ``positions[i + 1]`` are equal.
    """
    scores = np.asarray(scores)
    if scores.ndim != 1:
        raise ValueError(f"scores must be a 1D sequence, got shape {scores.shape}")
    if scores.size == 0:
        return np.array([], dtype=np.intp), np.array([], dtype=bool)
    # Negating unsigned or bool scores would wrap around.
    keys = -scores.astype(np.int64) if scores.dtype.kind in "biu" else -scores
    positions = np.argsort(keys, kind="stable")
    sorted_scores = scores[positions]
    tied = sorted_scores[:-1] == sorted_scores[1:]
    return positions.astype(np.intp, copy=False), np.asarray(tied, dtype=bool)


def group_ranks(group_index, method="competition"):
    """
    Convert per-element group indices into a rank vector.

    Args:
        group_index (list or np.ndarray): Zero-based group of each element,
            lower is better. Elements sharing a group are tied.
        method (str): One of ``"competition"``, ``"competition_max"``,
            ``"dense"`` or ``"avg"``.

    Returns:
        np.ndarray: Ranks aligned with ``group_index``, rank 1 is best.
    """
    if method not in _RANKDATA_METHODS:
        raise ValueError(
            f"method must be one of {set(_RANKDATA_METHODS)}, got {method!r}"
        )
    group_index = np.asarray(group_index)
    ranks = rankdata(group_index, method=_RANKDATA_METHODS[method])
    if method != "avg":
        ranks = ranks.astype(int)
    return ranks


__all__ = ["unique_and_bounded", "order_by_scores", "group_ranks"]
