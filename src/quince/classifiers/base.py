"""Classifier protocol definitions."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..config import ClassifierOptions
from ..tables import TableSet
from ..types import Document, Prediction


@runtime_checkable
class Classifier(Protocol):
    """Common interface shared by all classifier variants."""

    name: str
    options: ClassifierOptions
    tables: TableSet

    def is_valid(self, document: Document) -> bool:
        """Return True when the document can be learned from or scored."""

    def learn(self, category: str, document: Document) -> None:
        """Incrementally train the classifier with a single document."""

    def unlearn(self, category: str, document: Document) -> None:
        """Reverse a previous :meth:`learn` of the same document."""

    def score(self, document: Document) -> Prediction:
        """Return categories with probabilities, best first."""

    def forget(self) -> None:
        """Drop everything learned, returning to the untrained state."""

    def is_trained(self) -> bool:
        """Return True when the classifier has learned at least one document."""

    def close(self) -> None:
        """Release disk-backed tables."""


__all__ = ["Classifier"]
