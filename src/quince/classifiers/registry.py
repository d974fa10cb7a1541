"""Classifier registry utilities."""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable
from typing import Any

from ..config import ClassifierOptions, ConfigurationError
from .base import Classifier
from .bayesian import BayesianClassifier
from .trivial import TrivialClassifier

ClassifierFactory = Callable[..., Classifier]


class ClassifierRegistry:
    """Registry mapping variant names to classifier factories."""

    def __init__(self) -> None:
        self._entries: OrderedDict[str, ClassifierFactory] = OrderedDict()

    def register(self, name: str, factory: ClassifierFactory) -> None:
        if name in self._entries:
            raise ValueError(f"Classifier '{name}' is already registered.")
        self._entries[name] = factory

    def get(self, name: str) -> ClassifierFactory:
        try:
            return self._entries[name]
        except KeyError as exc:
            raise ConfigurationError(f"Classifier '{name}' is not registered.") from exc

    def create(
        self,
        name: str,
        options: ClassifierOptions | None = None,
        **kwargs: Any,
    ) -> Classifier:
        return self.get(name)(options, **kwargs)

    def names(self) -> list[str]:
        return list(self._entries)


DEFAULT_REGISTRY = ClassifierRegistry()
DEFAULT_REGISTRY.register(BayesianClassifier.name, BayesianClassifier)
DEFAULT_REGISTRY.register(TrivialClassifier.name, TrivialClassifier)


def create_classifier(
    name: str = BayesianClassifier.name,
    options: ClassifierOptions | None = None,
    **kwargs: Any,
) -> Classifier:
    """Build a classifier variant by name from the default registry."""

    return DEFAULT_REGISTRY.create(name, options, **kwargs)


__all__ = ["ClassifierRegistry", "DEFAULT_REGISTRY", "create_classifier"]
