"""Strategies for combining per-token probabilities into one category score.

Two strategies are available and they disagree on the value reported when
there is no evidence at all:

``robinson_fisher``
    Fisher's method applied to both tails, as popularised by Gary Robinson.
    Works for any number of categories and is neutral (0.5) on empty input.

``odds_product``
    Paul Graham's original two-category product of odds. Reports 0.0 on
    empty input.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

import numpy as np
from scipy.special import expit
from scipy.stats import chi2

ROBINSON_FISHER = "robinson_fisher"
ODDS_PRODUCT = "odds_product"
DEFAULT_COMBINER = ROBINSON_FISHER


def robinson_fisher(probabilities: Sequence[float]) -> float:
    """Combine probabilities with the inverse chi-squared meta-test."""

    if len(probabilities) == 0:
        return 0.5
    values = np.asarray(probabilities, dtype=np.float64)
    degrees_of_freedom = 2 * len(values)
    sum_ln_f = float(np.log(values).sum())
    sum_ln_1_minus_f = float(np.log1p(-values).sum())
    prob_p = float(chi2.sf(-2.0 * sum_ln_1_minus_f, degrees_of_freedom))
    prob_q = float(chi2.sf(-2.0 * sum_ln_f, degrees_of_freedom))
    return (1.0 + prob_q - prob_p) / 2.0


def odds_product(probabilities: Sequence[float]) -> float:
    """Combine probabilities as ``prod(p) / (prod(p) + prod(1 - p))``.

    Evaluated in log space so long evidence lists cannot underflow both
    products to zero.
    """

    if len(probabilities) == 0:
        return 0.0
    values = np.asarray(probabilities, dtype=np.float64)
    log_f = float(np.log(values).sum())
    log_notf = float(np.log1p(-values).sum())
    return float(expit(log_f - log_notf))


@dataclass(frozen=True)
class Combiner:
    """Named combining strategy together with its empty-evidence value."""

    name: str
    neutral: float
    combine: Callable[[Sequence[float]], float]

    def __call__(self, probabilities: Sequence[float]) -> float:
        return self.combine(probabilities)


COMBINERS: dict[str, Combiner] = {
    ROBINSON_FISHER: Combiner(name=ROBINSON_FISHER, neutral=0.5, combine=robinson_fisher),
    ODDS_PRODUCT: Combiner(name=ODDS_PRODUCT, neutral=0.0, combine=odds_product),
}


def get_combiner(name: str) -> Combiner:
    try:
        return COMBINERS[name]
    except KeyError as exc:
        raise KeyError(f"Combiner '{name}' is not registered.") from exc


__all__ = [
    "COMBINERS",
    "Combiner",
    "DEFAULT_COMBINER",
    "ODDS_PRODUCT",
    "ROBINSON_FISHER",
    "get_combiner",
    "odds_product",
    "robinson_fisher",
]
