"""Team / player name normalization and fuzzy matching.

Bookmakers spell the same participant differently:
"LA Lakers" vs "Los Angeles Lakers", "Man Utd" vs "Manchester United",
"Sinner" vs "Jannik Sinner". Names are canonicalized first, then compared
by exact match, containment, or Levenshtein similarity.
"""

from __future__ import annotations

import re

from rapidfuzz.distance import Levenshtein

from oddsedge.config import DEFAULT_NAME_MATCH_THRESHOLD

# 단어 단위로만 확장 (부분 문자열 치환 금지)
TEAM_ABBREVIATIONS: dict[str, str] = {
    "la": "los angeles",
    "ny": "new york",
    "nyk": "new york knicks",
    "gsw": "golden state warriors",
    "lal": "los angeles lakers",
    "lac": "los angeles clippers",
    "man": "manchester",
    "utd": "united",
}

NOISE_WORDS: tuple[str, ...] = ("fc", "afc", "sc", "ac", "the", "cf")

_ABBREVIATION_RE = re.compile(
    r"\b(" + "|".join(re.escape(a) for a in TEAM_ABBREVIATIONS) + r")\b"
)
_NOISE_RE = re.compile(r"\b(" + "|".join(NOISE_WORDS) + r")\b")
_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_name(name: str | None) -> str:
    """Canonicalize a team or player name. Total: never raises.

    lowercase → 약어 확장 → 노이즈 단어 제거 → 구두점 제거 → 공백 정리.
    """
    if not name:
        return ""
    normalized = str(name).lower().strip()
    # 한 번의 치환으로 처리 ("nyk" → "new york knicks" 결과가 다시 치환되지 않음)
    normalized = _ABBREVIATION_RE.sub(lambda m: TEAM_ABBREVIATIONS[m.group(1)], normalized)
    normalized = _NOISE_RE.sub("", normalized)
    normalized = _PUNCTUATION_RE.sub("", normalized)
    return _WHITESPACE_RE.sub(" ", normalized).strip()


def similarity(a: str, b: str) -> float:
    """1 - Levenshtein(a, b) / max(len(a), len(b)), in [0, 1].

    equal → 1.0, either empty → 0.0.
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return Levenshtein.normalized_similarity(a, b)


def names_match(
    name1: str | None,
    name2: str | None,
    threshold: float = DEFAULT_NAME_MATCH_THRESHOLD,
) -> bool:
    """True if both names refer to the same participant.

    Symmetric: equality, containment and Levenshtein similarity are all
    symmetric relations.
    """
    norm1 = normalize_name(name1)
    norm2 = normalize_name(name2)

    if norm1 == norm2:
        return True
    # 빈 문자열은 모든 문자열의 부분 문자열이므로 제외
    if not norm1 or not norm2:
        return False
    # "Sinner" vs "Jannik Sinner"
    if norm1 in norm2 or norm2 in norm1:
        return True
    return similarity(norm1, norm2) >= threshold
