"""Training, held-out classification and N-fold cross-validation."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from .classifiers.base import Classifier
from .config import require_category, require_folds, require_threshold
from .evaluation import ConfusionMatrix, assign_folds
from .logging import FLOW_DEBUG
from .sources import ResourceError, read_documents
from .types import Document

LOGGER = logging.getLogger(__name__)

Source = str | Path
Corpus = Mapping[Source, str]
DocumentLoader = Callable[[Source], Sequence[Document]]


@dataclass(frozen=True)
class LabeledDocument:
    """A document together with its source, true category and validity."""

    source: Source
    category: str
    document: Document
    valid: bool


class ClassifierHarness:
    """Drives a classifier over labelled corpora.

    A corpus maps each document source (a mailbox path by default) to the
    category every document in it belongs to.
    """

    def __init__(
        self,
        classifier: Classifier,
        *,
        loader: DocumentLoader = read_documents,
    ) -> None:
        self._classifier = classifier
        self._loader = loader

    @property
    def classifier(self) -> Classifier:
        return self._classifier

    @property
    def is_trained(self) -> bool:
        return self._classifier.is_trained()

    def train(self, corpus: Corpus) -> int:
        """Learn every valid document of every source; return how many were learned.

        If a source cannot be read the call aborts with :class:`ResourceError`
        and whatever was learned before the failure is kept.
        """

        _require_corpus(corpus)
        learned = 0
        for source, category in corpus.items():
            try:
                documents = self._load(source)
            except ResourceError:
                if learned:
                    LOGGER.warning(
                        "Training aborted at %s; %d document(s) already learned are kept",
                        source,
                        learned,
                    )
                raise
            self._flow("Training on %s as %s", source, category)
            for document in documents:
                if self._classifier.is_valid(document):
                    self._classifier.learn(category, document)
                    learned += 1
        return learned

    def retrain(self, corpus: Corpus) -> int:
        """Forget all prior training, then :meth:`train`."""

        _require_corpus(corpus)
        self._classifier.forget()
        return self.train(corpus)

    def forget(self) -> None:
        self._classifier.forget()

    def classify(self, threshold: float, corpus: Corpus) -> ConfusionMatrix:
        """Score every valid document against the current model without training.

        A document counts towards its best category only when that category's
        probability reaches ``threshold``; otherwise it counts as ``UNK``.
        """

        threshold = require_threshold(threshold)
        categories = _require_corpus(corpus)
        labeled = self._load_corpus(corpus)
        matrix = ConfusionMatrix(categories)
        for item in labeled:
            if item.valid:
                self._score_into(matrix, item, threshold)
        return matrix

    def crossval(
        self,
        folds: int,
        threshold: float,
        corpus: Corpus,
        *,
        rng: np.random.Generator | int | None = None,
    ) -> ConfusionMatrix:
        """Cross-validate over ``folds`` random partitions of the corpus.

        Each fold is scored by a model trained on all other folds and the
        results accumulate into one matrix. Destroys prior training: the
        classifier is left empty. Pass ``rng`` (a generator or a seed) for
        reproducible fold assignment.
        """

        folds = require_folds(folds)
        threshold = require_threshold(threshold)
        categories = _require_corpus(corpus)
        generator = np.random.default_rng(rng)

        labeled = self._load_corpus(corpus)
        assignment = assign_folds(len(labeled), folds, generator)
        matrix = ConfusionMatrix(categories)

        for fold in range(folds):
            self._flow("Training without fold %d", fold + 1)
            self._classifier.forget()
            for item, tag in zip(labeled, assignment):
                if tag != fold and item.valid:
                    self._classifier.learn(item.category, item.document)

            self._flow("Scoring fold %d", fold + 1)
            for item, tag in zip(labeled, assignment):
                if tag == fold and item.valid:
                    self._score_into(matrix, item, threshold)

        self._classifier.forget()
        return matrix

    def _load_corpus(self, corpus: Corpus) -> list[LabeledDocument]:
        labeled: list[LabeledDocument] = []
        for source, category in corpus.items():
            documents = self._load(source)
            self._flow("%d messages in mailbox %s", len(documents), source)
            for document in documents:
                labeled.append(
                    LabeledDocument(
                        source=source,
                        category=category,
                        document=document,
                        valid=self._classifier.is_valid(document),
                    )
                )
        return labeled

    def _load(self, source: Source) -> Sequence[Document]:
        try:
            return self._loader(source)
        except OSError as exc:
            raise ResourceError(f"Can't open mailbox '{source}': {exc}") from exc

    def _score_into(self, matrix: ConfusionMatrix, item: LabeledDocument, threshold: float) -> None:
        prediction = self._classifier.score(item.document)
        if prediction.category is not None and prediction.confidence >= threshold:
            matrix.record(item.category, prediction.category)
        else:
            matrix.record(item.category, None)

    def _flow(self, message: str, *args: object) -> None:
        if self._classifier.options.debug >= FLOW_DEBUG:
            LOGGER.info(message, *args)


def _require_corpus(corpus: Corpus) -> list[str]:
    categories: list[str] = []
    for category in corpus.values():
        require_category(category)
        if category not in categories:
            categories.append(category)
    return categories


__all__ = ["ClassifierHarness", "Corpus", "DocumentLoader", "LabeledDocument"]
