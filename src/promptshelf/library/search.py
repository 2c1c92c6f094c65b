"""Weighted fuzzy search over prompt records, re-ranked by recency."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from rapidfuzz import fuzz
from rapidfuzz.utils import default_process

from promptshelf.library.models import Record, SearchResult

FIELD_WEIGHTS: tuple[tuple[str, float], ...] = (
    ("title", 0.45),
    ("description", 0.2),
    ("tags", 0.15),
    ("relative_path", 0.1),
    ("content", 0.1),
)

_EPSILON = sys.float_info.epsilon


@dataclass(frozen=True)
class SearchOptions:
    threshold: float = 0.4
    min_match_length: int = 2
    recency_window: timedelta = timedelta(days=30)
    recency_weight: float = 0.25


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(value, high))


def _field_texts(record: Record) -> dict[str, list[str]]:
    fm = record.front_matter
    raw = {
        "title": [fm.title] if fm else [],
        "description": [fm.description] if fm and fm.description else [],
        "tags": list(record.tags),
        "relative_path": [record.relative_path],
        "content": [record.content],
    }
    processed = {}
    for name, values in raw.items():
        processed[name] = [text for text in (default_process(v) for v in values) if text]
    return processed


class SearchStructure:
    """Immutable fuzzy-match structure built from a snapshot of records.

    Records are kept in the order given, which is the tie-break order for
    equal scores.
    """

    def __init__(self, records: Sequence[Record], options: SearchOptions | None = None) -> None:
        self.options = options or SearchOptions()
        self._entries = [(record, _field_texts(record)) for record in records]

    def __len__(self) -> int:
        return len(self._entries)

    def _distance(self, query: str, texts: list[str]) -> float | None:
        best: float | None = None
        for text in texts:
            distance = 1.0 - fuzz.partial_ratio(query, text) / 100.0
            if best is None or distance < best:
                best = distance
        return best

    def match(self, query: str) -> list[tuple[Record, float]]:
        """Base fuzzy scores in [0, 1] for matching records, best first."""
        processed = default_process(query)
        if len(processed) < self.options.min_match_length:
            return []

        matches: list[tuple[Record, float]] = []
        for record, fields in self._entries:
            score = 1.0
            matched = False
            for name, weight in FIELD_WEIGHTS:
                distance = self._distance(processed, fields[name])
                if distance is None or distance > self.options.threshold:
                    continue
                matched = True
                score *= max(distance, _EPSILON) ** weight
            if matched:
                matches.append((record, _clamp(score)))

        matches.sort(key=lambda item: item[1])
        return matches

    def recency_penalty(self, record: Record, now: datetime) -> float:
        window = self.options.recency_window.total_seconds()
        if window <= 0:
            return 0.0
        age = (now - record.modified_at).total_seconds()
        return _clamp(age / window) * self.options.recency_weight

    def search(self, query: str, limit: int = 50, *, now: datetime | None = None) -> list[SearchResult]:
        if limit <= 0:
            return []
        if not query.strip():
            return [
                SearchResult(record=record, score=float(position))
                for position, (record, _) in enumerate(self._entries[:limit])
            ]
        now = now or datetime.now(timezone.utc)
        candidates = self.match(query)[: limit * 2]
        results = [
            SearchResult(record=record, score=base + self.recency_penalty(record, now))
            for record, base in candidates
        ]
        results.sort(key=lambda result: result.score)
        return results[:limit]
