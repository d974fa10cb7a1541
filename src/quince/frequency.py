"""Per-category message counts and per-token occurrence counts."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .config import require_category
from .tables import TableSet

LOGGER = logging.getLogger(__name__)

CATEGORIES = "categories"
CACHE_META = "cache_meta"
WORD_COUNT = "word_count"

MESSAGES_PROCESSED = "messages_processed"
MESSAGES_SCORED_AS_OF = "messages_scored_as_of"
GENERATION = "generation"
SCORED_GENERATION = "scored_generation"


@dataclass(frozen=True)
class CacheMeta:
    """Staleness counters of the predictor cache relative to the counts.

    ``generation`` increases on every reset of the counts. The cache is only
    valid for counts of the generation it was built from.
    """

    messages_processed: int = 0
    messages_scored_as_of: int = 0
    generation: int = 0
    scored_generation: int = 0

    @property
    def staleness(self) -> int:
        return self.messages_processed - self.messages_scored_as_of

    @property
    def generation_changed(self) -> bool:
        return self.generation != self.scored_generation


@dataclass(frozen=True)
class FrequencySnapshot:
    """Detached copy of the counts used for one predictor rebuild."""

    category_counts: dict[str, int]
    word_counts: dict[str, dict[str, int]]
    messages_processed: int
    generation: int


class FrequencyStore:
    """Learned counts.

    Holds ``categories`` (category -> learned message count), ``word_count``
    (token -> category -> occurrences) and ``cache_meta``. Counts saturate at
    zero; zeroed entries are removed so that an unlearn exactly reverses the
    matching learn.
    """

    def __init__(self, tables: TableSet, *, on_disk: bool = False) -> None:
        self._tables = tables
        self._categories = tables.add(CATEGORIES)
        self._meta = tables.add(CACHE_META)
        self._word_count = tables.add(WORD_COUNT, on_disk=on_disk)
        self.reset()

    def learn(self, category: str, tokens: Iterable[str]) -> None:
        require_category(category)
        unique = set(tokens)
        with self._tables.hold(write=(CATEGORIES, CACHE_META, WORD_COUNT)):
            self._categories[category] = self._categories.get(category, 0) + 1
            self._bump_processed()
            for token in unique:
                record = self._word_count.get(token) or {}
                record[category] = record.get(category, 0) + 1
                self._word_count[token] = record

    def unlearn(self, category: str, tokens: Iterable[str]) -> None:
        require_category(category)
        unique = set(tokens)
        with self._tables.hold(write=(CATEGORIES, CACHE_META, WORD_COUNT)):
            _decrement(self._categories, category)
            # Unlearning still counts as processing so the cache goes stale.
            self._bump_processed()
            for token in unique:
                record = self._word_count.get(token)
                if not record or category not in record:
                    continue
                count = record[category] - 1
                if count > 0:
                    record[category] = count
                else:
                    del record[category]
                if record:
                    self._word_count[token] = record
                else:
                    del self._word_count[token]

    def forget(self) -> None:
        with self._tables.hold(write=(CATEGORIES, CACHE_META, WORD_COUNT)):
            self.reset()

    def reset(self) -> None:
        """Clear all counts. Caller must hold write locks on this store's tables.

        Starts a new generation, so predictors built from the dropped counts
        are rebuilt before the next score and a rebuild already in flight is
        discarded.
        """

        generation = int(self._meta.get(GENERATION, -1)) + 1
        scored_generation = int(self._meta.get(SCORED_GENERATION, 0))
        self._categories.clear()
        self._word_count.clear()
        self._meta.replace(
            {
                MESSAGES_PROCESSED: 0,
                MESSAGES_SCORED_AS_OF: 0,
                GENERATION: generation,
                SCORED_GENERATION: scored_generation,
            }
        )

    def category_counts(self) -> dict[str, int]:
        with self._tables.hold(read=(CATEGORIES,)):
            return dict(self._categories.items())

    def peek_categories(self) -> dict[str, int]:
        """Read category counts. Caller must hold a lock on ``categories``."""

        return dict(self._categories.items())

    def token_counts(self, token: str) -> dict[str, int]:
        with self._tables.hold(read=(WORD_COUNT,)):
            return dict(self._word_count.get(token) or {})

    def vocabulary_size(self) -> int:
        with self._tables.hold(read=(WORD_COUNT,)):
            return len(self._word_count)

    def cache_meta(self) -> CacheMeta:
        with self._tables.hold(read=(CACHE_META,)):
            return self.peek_meta()

    def peek_meta(self) -> CacheMeta:
        """Read the staleness counters. Caller must hold a lock on ``cache_meta``."""

        return CacheMeta(
            messages_processed=int(self._meta.get(MESSAGES_PROCESSED, 0)),
            messages_scored_as_of=int(self._meta.get(MESSAGES_SCORED_AS_OF, 0)),
            generation=int(self._meta.get(GENERATION, 0)),
            scored_generation=int(self._meta.get(SCORED_GENERATION, 0)),
        )

    def snapshot(self) -> FrequencySnapshot:
        """Copy the counts under shared locks so a rebuild can run unlocked."""

        with self._tables.hold(read=(CATEGORIES, CACHE_META, WORD_COUNT)):
            return FrequencySnapshot(
                category_counts=dict(self._categories.items()),
                word_counts=self._word_count.copy(),
                messages_processed=int(self._meta.get(MESSAGES_PROCESSED, 0)),
                generation=int(self._meta.get(GENERATION, 0)),
            )

    def mark_scored(self, messages_processed: int, generation: int) -> None:
        """Record that predictors reflect the first ``messages_processed`` messages.

        Caller must hold the write lock on ``cache_meta`` and must have checked
        that ``generation`` is still current. The counter never moves backwards.
        """

        current = self.peek_meta()
        self._meta[SCORED_GENERATION] = generation
        scored_as_of = max(current.messages_scored_as_of, messages_processed)
        self._meta[MESSAGES_SCORED_AS_OF] = min(scored_as_of, current.messages_processed)

    def _bump_processed(self) -> None:
        self._meta[MESSAGES_PROCESSED] = int(self._meta.get(MESSAGES_PROCESSED, 0)) + 1


def _decrement(table, key: str) -> None:
    count = table.get(key, 0)
    if count > 1:
        table[key] = count - 1
    elif key in table:
        del table[key]


__all__ = [
    "CACHE_META",
    "CATEGORIES",
    "CacheMeta",
    "FrequencySnapshot",
    "FrequencyStore",
    "GENERATION",
    "MESSAGES_PROCESSED",
    "MESSAGES_SCORED_AS_OF",
    "WORD_COUNT",
]
