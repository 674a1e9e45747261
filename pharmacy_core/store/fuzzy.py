"""
Fuzzy drug-name matching.

Handles typos (Propfol -> Propofol), partial names (Prop -> Propofol), case
and dose-unit noise ("Insulin 100 units").
"""

from __future__ import annotations

import re

DEFAULT_MATCH_THRESHOLD = 0.6
MIN_PARTIAL_QUERY_LENGTH = 3

_UNITS_PATTERN = re.compile(r"\b(mg|ml|mcg|iu|units?)\b", re.IGNORECASE)
_NON_ALNUM_PATTERN = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def normalize_drug_name(name: str) -> str:
    normalized = _WHITESPACE_PATTERN.sub(" ", name.lower().strip())
    normalized = _NON_ALNUM_PATTERN.sub("", normalized)
    normalized = _UNITS_PATTERN.sub("", normalized)
    return _WHITESPACE_PATTERN.sub(" ", normalized).strip()


def levenshtein_distance(first: str, second: str) -> int:
    """Edit distance with unit-cost insertion, deletion and substitution."""
    if len(first) < len(second):
        first, second = second, first
    previous = list(range(len(second) + 1))
    for i, char_a in enumerate(first, start=1):
        current = [i]
        for j, char_b in enumerate(second, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j - 1], current[j - 1], previous[j]) + 1)
        previous = current
    return previous[-1]


def similarity_ratio(first: str, second: str) -> float:
    """
    Similarity between 0 and 1.

    Containment scores shorter/longer; otherwise ``1 - distance / max_len``
    with Levenshtein distance.
    """
    s1 = first.lower().strip()
    s2 = second.lower().strip()

    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    if s1 in s2 or s2 in s1:
        shorter, longer = sorted((s1, s2), key=len)
        return len(shorter) / len(longer)

    return 1 - levenshtein_distance(s1, s2) / max(len(s1), len(s2))


def smart_drug_match(query: str, drug_name: str, threshold: float = DEFAULT_MATCH_THRESHOLD) -> bool:
    normalized_query = normalize_drug_name(query)
    normalized_drug = normalize_drug_name(drug_name)

    if normalized_query == normalized_drug:
        return True

    if len(normalized_query) >= MIN_PARTIAL_QUERY_LENGTH and normalized_query in normalized_drug:
        return True

    return similarity_ratio(normalized_query, normalized_drug) >= threshold
