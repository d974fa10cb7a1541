"""Category bias and the cached per-token predictor probabilities.

Per-token probabilities follow Paul Graham's formula generalised to N
categories. For a token seen ``count[c]`` times in category ``c``, which has
``messages[c]`` learned messages and bias ``bias[c]``::

    ratio[c] = count[c] / messages[c] * bias[c]
    p[c]     = ratio[c] / sum(ratio)

``p[c]`` is clamped into ``[minimum_word_prob, maximum_word_prob]`` and cached
together with its significance ``p[c] ** 2``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping

from .frequency import CACHE_META, FrequencyStore
from .tables import TableSet

LOGGER = logging.getLogger(__name__)

BIAS = "bias"
WORD_SCORE = "word_score"
DEFAULT_BIAS = 1.0

PredictorRecord = dict[str, tuple[float, float]]


class BiasTable:
    """Per-category multipliers applied to raw observation ratios."""

    def __init__(self, tables: TableSet) -> None:
        self._tables = tables
        self._table = tables.add(BIAS)

    def bias(self, category: str, value: float | None = None) -> float:
        """Get the bias of a category, or set it when ``value`` is positive.

        Missing or non-positive values are ignored and the current bias (1 by
        default) is returned.
        """

        if value is not None and value > 0:
            with self._tables.hold(write=(BIAS,)):
                self._table[category] = float(value)
            return float(value)
        if value is not None:
            LOGGER.debug("Ignoring non-positive bias %r for category '%s'", value, category)
        with self._tables.hold(read=(BIAS,)):
            return float(self._table.get(category, DEFAULT_BIAS))

    def resolve(self, categories: Iterable[str]) -> dict[str, float]:
        with self._tables.hold(read=(BIAS,)):
            return {
                category: float(self._table.get(category, DEFAULT_BIAS)) for category in categories
            }

    def as_dict(self) -> dict[str, float]:
        with self._tables.hold(read=(BIAS,)):
            return dict(self._table.items())


def compute_predictors(
    word_counts: Mapping[str, Mapping[str, int]],
    category_counts: Mapping[str, int],
    biases: Mapping[str, float],
    *,
    min_observations: int,
    min_p: float,
    max_p: float,
) -> dict[str, PredictorRecord]:
    """Build the predictor record of every sufficiently observed token."""

    categories = list(category_counts)
    records: dict[str, PredictorRecord] = {}
    for token, counts in word_counts.items():
        if not counts:
            continue
        ratios: dict[str, float] = {}
        observations = 0
        for category, count in counts.items():
            observations += count
            messages = category_counts.get(category, 0)
            if messages:
                ratios[category] = count / messages * biases.get(category, DEFAULT_BIAS)
        if observations < min_observations:
            continue
        ratio_sum = sum(ratios.values())
        if ratio_sum <= 0:
            continue
        record: PredictorRecord = {}
        for category in categories:
            p = ratios.get(category, 0.0) / ratio_sum
            p = min(max(p, min_p), max_p)
            record[category] = (p, p * p)
        records[token] = record
    return records


class PredictorCache:
    """Lazily rebuilt token -> category -> (probability, significance) table."""

    def __init__(self, tables: TableSet, *, on_disk: bool = False) -> None:
        self._tables = tables
        self._table = tables.add(WORD_SCORE, on_disk=on_disk)
        self._rebuild_lock = threading.Lock()

    def refresh(
        self,
        store: FrequencyStore,
        bias: BiasTable,
        *,
        min_observations: int,
        min_p: float,
        max_p: float,
    ) -> int:
        """Rebuild every predictor from the current counts; return how many exist.

        Counts are copied under shared locks, the rebuild runs unlocked, and
        the result is swapped in under an exclusive lock, so learners are only
        blocked for the copy and the swap. A rebuild whose counts were reset
        in the meantime is discarded.
        """

        with self._rebuild_lock:
            snapshot = store.snapshot()
            biases = bias.resolve(snapshot.category_counts)
            records = compute_predictors(
                snapshot.word_counts,
                snapshot.category_counts,
                biases,
                min_observations=min_observations,
                min_p=min_p,
                max_p=max_p,
            )
            with self._tables.hold(write=(CACHE_META, WORD_SCORE)):
                if store.peek_meta().generation != snapshot.generation:
                    LOGGER.debug(
                        "Discarding %d predictors built from counts that were reset",
                        len(records),
                    )
                    return len(self._table)
                self._table.replace(records)
                store.mark_scored(snapshot.messages_processed, snapshot.generation)
        LOGGER.debug(
            "Rebuilt %d predictors from %d tokens after %d messages",
            len(records),
            len(snapshot.word_counts),
            snapshot.messages_processed,
        )
        return len(records)

    def lookup(self, tokens: Iterable[str]) -> dict[str, PredictorRecord]:
        """Return the cached records of the given tokens. Caller must hold a lock on ``word_score``."""

        found: dict[str, PredictorRecord] = {}
        for token in tokens:
            record = self._table.get(token)
            if record is not None:
                found[token] = dict(record)
        return found

    def get(self, token: str) -> PredictorRecord | None:
        with self._tables.hold(read=(WORD_SCORE,)):
            record = self._table.get(token)
            return dict(record) if record is not None else None

    def __len__(self) -> int:
        with self._tables.hold(read=(WORD_SCORE,)):
            return len(self._table)

    def reset(self) -> None:
        """Drop every predictor. Caller must hold the write lock on ``word_score``."""

        self._table.clear()


__all__ = [
    "BIAS",
    "BiasTable",
    "DEFAULT_BIAS",
    "PredictorCache",
    "PredictorRecord",
    "WORD_SCORE",
    "compute_predictors",
]
