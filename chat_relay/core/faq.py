from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from rapidfuzz import fuzz, process

PARTIAL_MIN_CHARS = 6
PARTIAL_MIN_LENGTH_RATIO = 0.3
PARTIAL_SCALE = 0.9
TOKEN_MATCH_MIN = 80

_NON_WORD = re.compile(r"[^\w\s]+")


@dataclass(frozen=True)
class FaqEntry:
    question: str
    answer: str


@dataclass(frozen=True)
class MatchResult:
    entry: FaqEntry
    score: float


Scorer = Callable[[str, str], float]


def normalize_text(raw: str) -> str:
    """Casefold, strip accents and punctuation, collapse whitespace."""
    if not raw:
        return ""
    text = unicodedata.normalize("NFKD", raw)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = _NON_WORD.sub(" ", text.casefold()).replace("_", " ")
    return re.sub(r"\s+", " ", text).strip()


def token_coverage(query: str, question: str) -> float:
    """Share of query characters whose token has a close counterpart in the question."""
    query_tokens = query.split()
    question_tokens = question.split()
    total = sum(len(token) for token in query_tokens)
    if not total or not question_tokens:
        return 0.0
    covered = sum(
        len(token)
        for token in query_tokens
        if process.extractOne(token, question_tokens, scorer=fuzz.ratio, score_cutoff=TOKEN_MATCH_MIN) is not None
    )
    return covered / total


def fuzzy_distance(query: str, question: str) -> float:
    """Distance in [0, 1] between two normalized strings, 0 meaning identical.

    Takes the best of a plain edit ratio (typos), a token-sorted ratio (word
    order) and a partial ratio (partial phrasing), then scales it by how much
    of the query the question covers. The partial ratio only applies when the
    query is the shorter side and of comparable length: a query may be part of
    a question, but a short question found inside a longer query is not a hit.
    """
    if not query or not question:
        return 1.0
    if query == question:
        return 0.0
    similarities = [fuzz.ratio(query, question), fuzz.token_sort_ratio(query, question)]
    if (
        PARTIAL_MIN_CHARS <= len(query) < len(question)
        and len(query) / len(question) >= PARTIAL_MIN_LENGTH_RATIO
    ):
        similarities.append(fuzz.partial_ratio(query, question) * PARTIAL_SCALE)
    best = max(similarities) * token_coverage(query, question)
    return round(max(0.0, min(1.0, 1.0 - best / 100.0)), 4)


class FaqMatcher:
    def __init__(
        self,
        entries: Iterable[FaqEntry],
        threshold: float = 0.4,
        scorer: Scorer = fuzzy_distance,
    ) -> None:
        self._entries = tuple(entries)
        self._normalized = tuple(normalize_text(entry.question) for entry in self._entries)
        self.threshold = threshold
        self._scorer = scorer

    def match(self, query: str) -> Optional[MatchResult]:
        normalized = normalize_text(query) if isinstance(query, str) else ""
        if not normalized:
            return None
        best: Optional[MatchResult] = None
        for entry, question in zip(self._entries, self._normalized):
            score = self._scorer(normalized, question)
            # strict comparison keeps the earliest entry on ties
            if best is None or score < best.score:
                best = MatchResult(entry=entry, score=score)
        return best

    def is_confident(self, result: Optional[MatchResult]) -> bool:
        return result is not None and result.score < self.threshold

    def lookup(self, query: str) -> Optional[MatchResult]:
        result = self.match(query)
        if not self.is_confident(result):
            return None
        return result
