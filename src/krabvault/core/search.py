"""Fuzzy subsequence matching used to filter the entry list."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple, TypeVar

T = TypeVar("T")

SCORE_MATCH = 16
BONUS_BOUNDARY = 8
BONUS_CONSECUTIVE = 4
PENALTY_GAP = 1
PENALTY_LEADING = 3
MAX_LEADING_PENALTY = 9


@dataclass(frozen=True)
class Match:
    score: int
    positions: Tuple[int, ...]


def _is_boundary(text: str, i: int) -> bool:
    return i == 0 or not text[i - 1].isalnum()


def _align_from(query: str, text: str, start: int) -> Optional[Tuple[int, ...]]:
    # greedy leftmost alignment with the first query char pinned at ``start``
    positions = [start]
    j = start + 1
    for ch in query[1:]:
        j = text.find(ch, j)
        if j < 0:
            return None
        positions.append(j)
        j += 1
    return tuple(positions)


def _score(text: str, positions: Tuple[int, ...]) -> int:
    score = -min(positions[0] * PENALTY_LEADING, MAX_LEADING_PENALTY)
    prev = None
    for pos in positions:
        score += SCORE_MATCH
        if _is_boundary(text, pos):
            score += BONUS_BOUNDARY
        if prev is not None:
            if pos == prev + 1:
                score += BONUS_CONSECUTIVE
            else:
                score -= (pos - prev - 1) * PENALTY_GAP
        prev = pos
    return score


def match(query: str, text: str) -> Optional[Match]:
    """
    Case-insensitive subsequence match of ``query`` against ``text``.

    Returns None when some query character cannot be found in order.
    Every occurrence of the first query character is tried as a starting
    point and the best scoring alignment is kept, so a contiguous run later
    in the string can beat a scattered one earlier on.
    """
    q = query.casefold()
    t = text.casefold()
    if not q:
        return Match(score=0, positions=())

    best: Optional[Match] = None
    start = t.find(q[0])
    while start >= 0:
        positions = _align_from(q, t, start)
        if positions is None:
            # later starts cannot fit the remaining characters either
            break
        score = _score(t, positions)
        if best is None or score > best.score:
            best = Match(score=score, positions=positions)
        start = t.find(q[0], start + 1)
    return best


def rank(query: str, candidates: Iterable[T], key: Callable[[T], str] = str) -> List[T]:
    """
    Filter and order ``candidates`` by how well ``key(candidate)`` matches.

    An empty (or whitespace-only) query returns every candidate in its
    original order. Ties keep the original order as well.
    """
    items = list(candidates)
    query = (query or "").strip()
    if not query:
        return items

    scored = []
    for item in items:
        m = match(query, key(item))
        if m is not None:
            scored.append((m.score, item))
    # list.sort is stable, equal scores stay in input order
    scored.sort(key=lambda pair: -pair[0])
    return [item for _, item in scored]
