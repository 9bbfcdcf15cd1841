"""Tiedorders package for rankings with ties and their voting algorithms.

Modules
------------------
- ``tiedorders.order`` provides the ranking representation (packed order
  plus tie flags), group iteration, the transitively closed dominance
  relation and packed ballot collections.
- ``tiedorders.methods`` provides voting methods built on those primitives,
  currently STAR voting with the official tiebreaker protocol.
- ``tiedorders.utils`` provides helpers shared across modules.
- ``tiedorders.errors`` provides the explicit error kinds.

"""

__version__ = "0.1.0"

from . import errors, methods, order, utils

__all__ = ["errors", "methods", "order", "utils"]
