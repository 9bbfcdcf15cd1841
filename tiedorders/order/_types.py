"""Shared type aliases for rankings and relations."""

from typing import Literal, TypeAlias


RankMethod: TypeAlias = Literal["competition", "competition_max", "dense", "avg"]
# -1: a strictly below b, 0: equal, 1: a strictly above b, None: incomparable
Ordering: TypeAlias = Literal[-1, 0, 1] | None
