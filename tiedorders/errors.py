"""Explicit error kinds raised by :mod:`tiedorders`.

Parse failures are not errors: :func:`tiedorders.order.parse_ranking`
returns ``None`` for malformed text. Unresolved STAR ties are not errors
either: the tiebreak protocol reports them with a boolean.
"""


class AllocationError(MemoryError):
    """Backing storage for a packed collection could not be reserved."""


class ScoreOverflowError(OverflowError):
    """Score arithmetic would leave the range of the ballot storage dtype."""


__all__ = ["AllocationError", "ScoreOverflowError"]
