"""Frequency-weighted Bayesian classifier after Paul Graham's "A Plan for Spam".

Nothing limits it to spam: any number of mutually exclusive categories can
be learned. For Graham's original behaviour bias the non-spam category by 2
and select the ``odds_product`` combiner.
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import TracebackType

from ..config import ClassifierOptions
from ..extractor.tokens import TokenExtractor
from ..frequency import CacheMeta, FrequencyStore
from ..logging import DOCUMENT_DEBUG
from ..predictors import BiasTable, PredictorCache
from ..scoring import Scorer
from ..tables import TableSet
from ..types import Document, Prediction

LOGGER = logging.getLogger(__name__)


class BayesianClassifier:
    """Token-frequency classifier with a lazily refreshed predictor cache."""

    name = "bayesian"

    def __init__(
        self,
        options: ClassifierOptions | None = None,
        *,
        extractor: TokenExtractor | None = None,
        scratch_dir: Path | None = None,
    ) -> None:
        self.options = options or ClassifierOptions()
        self.tables = TableSet(scratch_dir=scratch_dir)
        self._extractor = extractor or TokenExtractor(self.options.ignored_tokens)
        self._frequencies = FrequencyStore(self.tables, on_disk=self.options.on_disk)
        self._bias = BiasTable(self.tables)
        self._predictors = PredictorCache(self.tables, on_disk=self.options.on_disk)
        self._scorer = Scorer(
            tables=self.tables,
            store=self._frequencies,
            bias=self._bias,
            predictors=self._predictors,
            extractor=self._extractor,
            options=self.options,
        )

    @property
    def frequencies(self) -> FrequencyStore:
        return self._frequencies

    @property
    def predictors(self) -> PredictorCache:
        return self._predictors

    def is_valid(self, document: Document) -> bool:
        """Only documents with at least one ``text/*`` part can be handled."""

        return any(part.is_text for part in document.parts)

    def parse(self, document: Document) -> frozenset[str]:
        return self._extractor.extract(document)

    def learn(self, category: str, document: Document) -> None:
        if self.options.debug >= DOCUMENT_DEBUG:
            LOGGER.debug("Learning %s: %s", category, document.subject)
        self._frequencies.learn(category, self.parse(document))

    def unlearn(self, category: str, document: Document) -> None:
        if self.options.debug >= DOCUMENT_DEBUG:
            LOGGER.debug("Unlearning %s: %s", category, document.subject)
        self._frequencies.unlearn(category, self.parse(document))

    def score(self, document: Document) -> Prediction:
        prediction = self._scorer.score(document)
        if self.options.debug >= DOCUMENT_DEBUG:
            LOGGER.debug(
                "Scored %s: %s (%.2f)", document.subject, prediction.category, prediction.confidence
            )
        return prediction

    def bias(self, category: str, value: float | None = None) -> float:
        """Get or set the weight given to a category's observations.

        Graham biased the "good" category by 2 to cut down on false positives.
        Non-positive values are ignored.
        """

        return self._bias.bias(category, value)

    def refresh_predictors(self) -> int:
        """Force a predictor rebuild regardless of staleness."""

        return self._scorer.refresh()

    def cache_meta(self) -> CacheMeta:
        return self._frequencies.cache_meta()

    def is_trained(self) -> bool:
        return any(count > 0 for count in self._frequencies.category_counts().values())

    def forget(self) -> None:
        """Blank out all learned data. Category biases are kept."""

        with self.tables.lock_all():
            self._frequencies.reset()
            self._predictors.reset()

    def close(self) -> None:
        self.tables.close()

    def __enter__(self) -> BayesianClassifier:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


__all__ = ["BayesianClassifier"]
