"""Confusion matrices and fold assignment for classifier evaluation."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import numpy as np
from sklearn.metrics import confusion_matrix

from .types import UNK


class ConfusionMatrix:
    """Counts of true category against predicted category (or ``UNK``).

    Rows exist for every true category handed in, each pre-filled with zero
    columns for all those categories plus ``UNK``. Predictions outside that
    set grow a new column on demand.
    """

    def __init__(self, categories: Iterable[str] = ()) -> None:
        self._labels: list[str] = []
        self._rows: dict[str, dict[str, int]] = {}
        self._outcomes: list[tuple[str, str]] = []
        for category in categories:
            self._add_label(category)
        self._add_label(UNK, row=False)

    def record(self, true_category: str, predicted: str | None) -> None:
        column = predicted if predicted is not None else UNK
        self._add_label(true_category)
        self._add_label(column, row=False)
        self._rows[true_category][column] += 1
        self._outcomes.append((true_category, column))

    def __getitem__(self, true_category: str) -> dict[str, int]:
        return dict(self._rows[true_category])

    def __contains__(self, true_category: object) -> bool:
        return true_category in self._rows

    def categories(self) -> list[str]:
        return list(self._rows)

    def labels(self) -> list[str]:
        """Every column label, ``UNK`` last."""

        return [label for label in self._labels if label != UNK] + [UNK]

    def as_dict(self) -> dict[str, dict[str, int]]:
        return {category: dict(row) for category, row in self._rows.items()}

    def row_total(self, true_category: str) -> int:
        return sum(self._rows.get(true_category, {}).values())

    def total(self) -> int:
        return sum(self.row_total(category) for category in self._rows)

    def accuracy(self, true_category: str) -> float:
        """Share of documents of a category that were classified correctly."""

        total = self.row_total(true_category)
        if total == 0:
            return 0.0
        return self._rows[true_category].get(true_category, 0) / total

    def overall_accuracy(self) -> float:
        total = self.total()
        if total == 0:
            return 0.0
        correct = sum(row.get(category, 0) for category, row in self._rows.items())
        return correct / total

    def to_array(self, labels: Sequence[str] | None = None) -> np.ndarray:
        """Return the matrix as an array indexed by ``labels`` on both axes."""

        ordered = list(labels) if labels is not None else self.labels()
        if not self._outcomes:
            return np.zeros((len(ordered), len(ordered)), dtype=np.int64)
        y_true = [true for true, _predicted in self._outcomes]
        y_pred = [predicted for _true, predicted in self._outcomes]
        return confusion_matrix(y_true, y_pred, labels=ordered)

    def format_table(self) -> str:
        """Render one line per category: accuracy followed by every column count."""

        lines: list[str] = []
        labels = self.labels()
        for category in self._rows:
            row = self._rows[category]
            counts = "\t".join(f"{label}: {row.get(label, 0)}" for label in labels)
            lines.append(f"{category}\t: {self.accuracy(category) * 100:.2f}%\t{counts}")
        return "\n".join(lines)

    def _add_label(self, label: str, *, row: bool = True) -> None:
        if label not in self._labels:
            self._labels.append(label)
            for existing in self._rows.values():
                existing.setdefault(label, 0)
        if row and label not in self._rows:
            self._rows[label] = {column: 0 for column in self._labels}


def assign_folds(count: int, folds: int, rng: np.random.Generator) -> np.ndarray:
    """Draw a uniformly random fold index in ``[0, folds)`` for each item."""

    return rng.integers(0, folds, size=count)


__all__ = ["ConfusionMatrix", "assign_folds"]
