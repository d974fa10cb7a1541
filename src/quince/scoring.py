"""Score documents by combining their most significant predictors."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from .combiners import Combiner, get_combiner
from .config import ClassifierOptions
from .extractor.tokens import TokenExtractor
from .frequency import CATEGORIES, FrequencyStore
from .logging import DOCUMENT_DEBUG, PREDICTOR_DEBUG
from .predictors import WORD_SCORE, BiasTable, PredictorCache, PredictorRecord
from .tables import TableSet
from .types import Document, Prediction

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Evidence:
    """A token's cached probabilities and its overall significance."""

    token: str
    probabilities: Mapping[str, float]
    significance: float


def rank_evidence(records: Mapping[str, PredictorRecord], limit: int) -> list[Evidence]:
    """Return the ``limit`` most significant tokens.

    Significance is the sum of squared probabilities over all categories.
    Ties are broken by token text so the selection is deterministic.
    """

    evidence = [
        Evidence(
            token=token,
            probabilities={category: p for category, (p, _sig) in record.items()},
            significance=sum(sig for _p, sig in record.values()),
        )
        for token, record in records.items()
    ]
    evidence.sort(key=lambda item: (-item.significance, item.token))
    return evidence[:limit]


def combine_scores(
    categories: Iterable[str],
    evidence: list[Evidence],
    combiner: Combiner,
) -> dict[str, float]:
    """Combine each category's probabilities, ordered by descending score."""

    scores: dict[str, float] = {}
    for category in categories:
        probabilities = [
            item.probabilities[category] for item in evidence if category in item.probabilities
        ]
        scores[category] = combiner(probabilities)
    ordered = sorted(scores.items(), key=lambda entry: (-entry[1], entry[0]))
    return dict(ordered)


class Scorer:
    """Scores documents against the predictor cache, refreshing it when stale."""

    def __init__(
        self,
        *,
        tables: TableSet,
        store: FrequencyStore,
        bias: BiasTable,
        predictors: PredictorCache,
        extractor: TokenExtractor,
        options: ClassifierOptions,
    ) -> None:
        self._tables = tables
        self._store = store
        self._bias = bias
        self._predictors = predictors
        self._extractor = extractor
        self._options = options
        self._combiner = get_combiner(options.combiner)

    @property
    def combiner(self) -> Combiner:
        return self._combiner

    def needs_refresh(self) -> bool:
        meta = self._store.cache_meta()
        return meta.generation_changed or meta.staleness >= self._options.score_delay

    def refresh(self) -> int:
        options = self._options
        return self._predictors.refresh(
            self._store,
            self._bias,
            min_observations=options.n_observations_required,
            min_p=options.minimum_word_prob,
            max_p=options.maximum_word_prob,
        )

    def score(self, document: Document) -> Prediction:
        if self.needs_refresh():
            if self._options.debug >= DOCUMENT_DEBUG:
                LOGGER.debug(
                    "Updating predictors after %d messages",
                    self._store.cache_meta().messages_processed,
                )
            self.refresh()
        return self.score_tokens(self._extractor.extract(document))

    def score_tokens(self, tokens: Iterable[str]) -> Prediction:
        with self._tables.hold(read=(CATEGORIES, WORD_SCORE)):
            categories = self._store.peek_categories()
            records = self._predictors.lookup(tokens)

        if not categories:
            return Prediction(category=None, confidence=0.0, scores={})

        evidence = rank_evidence(records, self._options.number_of_predictors)
        if self._options.debug >= PREDICTOR_DEBUG:
            for item in evidence:
                LOGGER.debug(
                    "Predictor %s (significance %.2f): %s",
                    item.token,
                    item.significance,
                    ", ".join(f"{cat}={p:.2f}" for cat, p in sorted(item.probabilities.items())),
                )

        scores = combine_scores(sorted(categories), evidence, self._combiner)
        best, confidence = next(iter(scores.items()))
        return Prediction(
            category=best,
            confidence=confidence,
            scores=scores,
            predictors={item.token: dict(item.probabilities) for item in evidence},
        )


__all__ = ["Evidence", "Scorer", "combine_scores", "rank_evidence"]
