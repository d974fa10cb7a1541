"""Core immutable data structures used throughout Quince."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

UNK = "UNK"
"""Reserved category meaning no category met the confidence threshold."""


@dataclass(frozen=True)
class Address:
    """Mailbox and display name of a sender or recipient."""

    address: str
    display_name: str = ""


@dataclass(frozen=True)
class BodyPart:
    """One leaf body part with its media type and decoded text."""

    media_type: str
    text: str = ""

    @property
    def is_text(self) -> bool:
        return self.media_type.strip().lower().startswith("text/")

    @property
    def is_html(self) -> bool:
        return self.media_type.strip().lower() == "text/html"


@dataclass(frozen=True)
class Document:
    """Structured view of a message as consumed by token extraction."""

    senders: tuple[Address, ...] = ()
    recipients: tuple[Address, ...] = ()
    subject: str = ""
    agent: str = ""
    parts: tuple[BodyPart, ...] = ()


@dataclass(frozen=True)
class Prediction:
    """Scoring result.

    ``scores`` is ordered by descending probability. ``predictors`` holds the
    per-category probabilities of the tokens that decided the score, keyed by
    token, in ranking order.
    """

    category: str | None
    confidence: float
    scores: Mapping[str, float]
    predictors: Mapping[str, Mapping[str, float]] = field(default_factory=dict)

    def ranking(self) -> list[tuple[str, float]]:
        return list(self.scores.items())


def categories_over(prediction: Prediction, threshold: float) -> list[str]:
    """Return every category whose score meets the threshold, best first."""

    return [category for category, score in prediction.scores.items() if score >= threshold]


__all__ = [
    "UNK",
    "Address",
    "BodyPart",
    "Document",
    "Prediction",
    "categories_over",
]
