"""Fuzzy scoring for queries against notification text."""

from difflib import SequenceMatcher
from typing import NamedTuple

# Points lost for every extra gap in the match
GAP_PENALTY = 5


class Match(NamedTuple):
    score: int
    positions: list[int]
    start: int


NO_MATCH = Match(0, [], -1)


def fuzzy_score(query: str, text: str, exact: bool = False) -> Match:
    """Score how well query matches text, from 0 to 100.

    Matching is case-insensitive. With exact=True the query has to appear as
    a substring (and then scores 100). Otherwise the score is the share of
    query characters found in order in text, less GAP_PENALTY per gap.
    `positions` are the matched character offsets in text.
    """
    if not query:
        return NO_MATCH

    q = query.lower()
    t = text.lower()

    if exact:
        start = t.find(q)
        if start < 0:
            return NO_MATCH
        return Match(100, list(range(start, start + len(q))), start)

    matcher = SequenceMatcher(None, q, t, autojunk=False)
    blocks = [b for b in matcher.get_matching_blocks() if b.size]
    if not blocks:
        return NO_MATCH

    matched = sum(b.size for b in blocks)
    score = round(100 * matched / len(q)) - GAP_PENALTY * (len(blocks) - 1)
    positions = [b.b + i for b in blocks for i in range(b.size)]
    return Match(max(score, 0), positions, positions[0])
