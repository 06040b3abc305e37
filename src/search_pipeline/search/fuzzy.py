"""Fuzzy matching helpers for typo-tolerant scoring and suggestions.

Two families live here:
- edit-distance matching (``levenshtein_distance``, ``find_fuzzy_matches``)
  behind "did you mean" suggestions,
- cheap prefix/substring word matching used by text scorers.

Smart defaults for edit distance:
- No fuzzy matching for very short terms (1-2 chars)
- Max edit distance of 1 for short terms (3-5 chars)
- Max edit distance of 2 for longer terms (6+ chars)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import re


DEFAULT_MIN_WORD_LENGTH = 4
DEFAULT_PREFIX_LENGTH = 3

_WORD_SPLIT = re.compile(r"\W+")


def levenshtein_distance(s1: str, s2: str, max_distance: int | None = None) -> int:
    """Return the number of single-character edits turning ``s1`` into ``s2``.

    With ``max_distance`` set, returns ``max_distance + 1`` as soon as the
    distance is known to exceed it.

    Examples:
        >>> levenshtein_distance("kitten", "sitting")
        3
        >>> levenshtein_distance("", "abc")
        3
    """
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    # Shorter string as columns keeps the rows small
    if len(s1) > len(s2):
        s1, s2 = s2, s1

    m, n = len(s1), len(s2)
    if max_distance is not None and n - m > max_distance:
        return max_distance + 1

    prev_row = list(range(m + 1))
    curr_row = [0] * (m + 1)

    for j in range(1, n + 1):
        curr_row[0] = j
        row_min = j
        for i in range(1, m + 1):
            cost = 0 if s1[i - 1] == s2[j - 1] else 1
            curr_row[i] = min(prev_row[i] + 1, curr_row[i - 1] + 1, prev_row[i - 1] + cost)
            row_min = min(row_min, curr_row[i])

        if max_distance is not None and row_min > max_distance:
            return max_distance + 1

        prev_row, curr_row = curr_row, prev_row

    return prev_row[m]


def get_max_edit_distance(term_length: int) -> int:
    """Maximum allowed edit distance for a term of ``term_length`` characters."""
    if term_length <= 2:
        return 0
    if term_length <= 5:
        return 1
    return 2


def find_fuzzy_matches(
    query_term: str,
    vocabulary: Iterable[str],
    max_distance: int | None = None,
) -> list[tuple[str, int]]:
    """Return ``(term, distance)`` pairs within reach of ``query_term``.

    Sorted by distance, then alphabetically; exact matches have distance 0.
    """
    if not query_term:
        return []

    query_lower = query_term.lower()
    if max_distance is None:
        max_distance = get_max_edit_distance(len(query_term))

    matches: list[tuple[str, int]] = []
    for term in vocabulary:
        term_lower = term.lower()
        if abs(len(query_lower) - len(term_lower)) > max_distance:
            continue
        distance = levenshtein_distance(query_lower, term_lower, max_distance)
        if distance <= max_distance:
            matches.append((term, distance))

    matches.sort(key=lambda match: (match[1], match[0].lower()))
    return matches


def did_you_mean(words: Sequence[str], vocabulary: Iterable[str], *, limit: int = 3) -> list[str]:
    """Suggest close vocabulary terms for query words that are not in it.

    Words already present in the vocabulary produce nothing; the result is
    de-duplicated and capped at ``limit`` suggestions.
    """
    known = {term.lower() for term in vocabulary}
    suggestions: list[str] = []
    for word in words:
        if word in known:
            continue
        for term, distance in find_fuzzy_matches(word, sorted(known)):
            if distance == 0 or term in suggestions:
                continue
            suggestions.append(term)
            break
        if len(suggestions) >= limit:
            break
    return suggestions


def has_prefix_match(
    query_word: str | None,
    target: str | None,
    min_word_length: int = DEFAULT_MIN_WORD_LENGTH,
    prefix_length: int = DEFAULT_PREFIX_LENGTH,
) -> bool:
    """True when a word in ``target`` starts with the first characters of ``query_word``."""
    if query_word is None or len(query_word) < min_word_length:
        return False
    if target is None or not target.strip():
        return False
    prefix = query_word[:prefix_length]
    return any(
        len(target_word) >= prefix_length and target_word.startswith(prefix)
        for target_word in _WORD_SPLIT.split(target)
    )


def term_frequency(term: str | None, text: str | None) -> int:
    """Count non-overlapping occurrences of ``term`` in ``text``."""
    if not term or not text or not term.strip() or not text.strip():
        return 0
    return text.count(term)
