"""Fuzzy subsequence matching used by search.

A pattern matches when its characters appear in order in the text. The
match window is found with a forward scan followed by a backward scan,
which keeps matching linear in the text length; the window is then scored
with bonuses for consecutive characters and word starts, and penalties for
gaps.
"""

from __future__ import annotations

SCORE_MATCH = 16
BONUS_BOUNDARY = 8
BONUS_CONSECUTIVE = 8
BONUS_CAMEL = 7
BONUS_FIRST_CHAR_MULTIPLIER = 2
PENALTY_GAP_START = 3
PENALTY_GAP_EXTENSION = 1


class FuzzyMatcher:
    """Smart-case fuzzy matcher: case-insensitive unless the pattern has capitals."""

    def score(self, text: str, pattern: str) -> int | None:
        """Return a match score, or ``None`` when ``pattern`` does not match."""
        if not pattern:
            return 0
        case_sensitive = any(char.isupper() for char in pattern)
        haystack = text if case_sensitive else _lower_preserving_length(text)
        needle = pattern if case_sensitive else _lower_preserving_length(pattern)

        window = _match_window(haystack, needle)
        if window is None:
            return None
        start, end = window
        return _score_window(text, haystack, needle, start, end)

    def is_match(self, text: str, pattern: str) -> bool:
        return self.score(text, pattern) is not None


def _lower_preserving_length(value: str) -> str:
    # str.lower() can expand some characters; positions must stay aligned.
    chars: list[str] = []
    for char in value:
        lowered = char.lower()
        chars.append(lowered if len(lowered) == 1 else char)
    return "".join(chars)


def _match_window(haystack: str, needle: str) -> tuple[int, int] | None:
    index = 0
    end = -1
    for position, char in enumerate(haystack):
        if char == needle[index]:
            index += 1
            if index == len(needle):
                end = position
                break
    if end < 0:
        return None

    index = len(needle) - 1
    start = end
    for position in range(end, -1, -1):
        if haystack[position] == needle[index]:
            index -= 1
            if index < 0:
                start = position
                break
    return start, end


def _bonus_at(original: str, position: int) -> int:
    if position == 0:
        return BONUS_BOUNDARY
    previous = original[position - 1]
    current = original[position]
    if not previous.isalnum() and current.isalnum():
        return BONUS_BOUNDARY
    if previous.islower() and current.isupper():
        return BONUS_CAMEL
    return 0


def _score_window(
    original: str, haystack: str, needle: str, start: int, end: int
) -> int:
    score = 0
    index = 0
    in_gap = False
    consecutive = 0
    first_bonus = 0
    for position in range(start, end + 1):
        if index < len(needle) and haystack[position] == needle[index]:
            bonus = _bonus_at(original, position)
            if consecutive == 0:
                first_bonus = bonus
            else:
                bonus = max(bonus, first_bonus, BONUS_CONSECUTIVE)
            if index == 0:
                bonus *= BONUS_FIRST_CHAR_MULTIPLIER
            score += SCORE_MATCH + bonus
            consecutive += 1
            in_gap = False
            index += 1
        else:
            score -= PENALTY_GAP_EXTENSION if in_gap else PENALTY_GAP_START
            in_gap = True
            consecutive = 0
            first_bonus = 0
    return score


__all__ = ["FuzzyMatcher"]
