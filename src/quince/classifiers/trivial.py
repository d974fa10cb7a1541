"""Random baseline classifier.

Learns only how many documents each category holds and scores by drawing a
category in proportion to those counts. Useful as a floor when judging
cross-validation results of real classifiers.
"""

from __future__ import annotations

from pathlib import Path
from types import TracebackType

import numpy as np

from ..config import ClassifierOptions, require_category
from ..frequency import CATEGORIES
from ..tables import TableSet
from ..types import Document, Prediction


class TrivialClassifier:
    """Frequency-weighted random guesser."""

    name = "trivial"

    def __init__(
        self,
        options: ClassifierOptions | None = None,
        *,
        rng: np.random.Generator | int | None = None,
        scratch_dir: Path | None = None,
    ) -> None:
        self.options = options or ClassifierOptions()
        self.tables = TableSet(scratch_dir=scratch_dir)
        self._categories = self.tables.add(CATEGORIES, on_disk=self.options.on_disk)
        self._rng = np.random.default_rng(rng)

    def is_valid(self, document: Document) -> bool:
        return True

    def learn(self, category: str, document: Document) -> None:
        require_category(category)
        with self.tables.hold(write=(CATEGORIES,)):
            self._categories[category] = self._categories.get(category, 0) + 1

    def unlearn(self, category: str, document: Document) -> None:
        require_category(category)
        with self.tables.hold(write=(CATEGORIES,)):
            count = self._categories.get(category, 0)
            if count > 1:
                self._categories[category] = count - 1
            elif category in self._categories:
                del self._categories[category]

    def score(self, document: Document) -> Prediction:
        with self.tables.hold(read=(CATEGORIES,)):
            counts = sorted((name, n) for name, n in self._categories.items() if n > 0)
        total = sum(n for _name, n in counts)
        if total == 0:
            return Prediction(category=None, confidence=0.0, scores={})
        weights = np.array([n for _name, n in counts], dtype=np.float64) / total
        index = int(self._rng.choice(len(counts), p=weights))
        category = counts[index][0]
        return Prediction(category=category, confidence=1.0, scores={category: 1.0})

    def is_trained(self) -> bool:
        with self.tables.hold(read=(CATEGORIES,)):
            return any(n > 0 for n in self._categories.values())

    def forget(self) -> None:
        with self.tables.lock_all():
            self._categories.clear()

    def close(self) -> None:
        self.tables.close()

    def __enter__(self) -> TrivialClassifier:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


__all__ = ["TrivialClassifier"]
