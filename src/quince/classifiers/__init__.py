"""Classifier implementations and infrastructure."""

from .base import Classifier
from .bayesian import BayesianClassifier
from .registry import DEFAULT_REGISTRY, ClassifierRegistry, create_classifier
from .trivial import TrivialClassifier

__all__ = [
    "BayesianClassifier",
    "Classifier",
    "ClassifierRegistry",
    "DEFAULT_REGISTRY",
    "TrivialClassifier",
    "create_classifier",
]
