from __future__ import annotations

import pytest

from quince.combiners import (
    COMBINERS,
    ODDS_PRODUCT,
    ROBINSON_FISHER,
    get_combiner,
    odds_product,
    robinson_fisher,
)


def test_robinson_fisher_is_neutral_without_evidence() -> None:
    assert robinson_fisher([]) == 0.5
    assert COMBINERS[ROBINSON_FISHER].neutral == 0.5


def test_odds_product_is_zero_without_evidence() -> None:
    assert odds_product([]) == 0.0
    assert COMBINERS[ODDS_PRODUCT].neutral == 0.0


@pytest.mark.parametrize("probability", [0.01, 0.3, 0.5, 0.8, 0.99])
def test_single_predictor_is_passed_through(probability: float) -> None:
    assert robinson_fisher([probability]) == pytest.approx(probability)
    assert odds_product([probability]) == pytest.approx(probability)


def test_robinson_fisher_reinforces_agreeing_evidence() -> None:
    assert robinson_fisher([0.9, 0.9]) == pytest.approx(0.9623, abs=1e-4)
    assert robinson_fisher([0.1, 0.1]) == pytest.approx(1 - 0.9623, abs=1e-4)


def test_robinson_fisher_balances_opposing_evidence() -> None:
    assert robinson_fisher([0.99, 0.01]) == pytest.approx(0.5)


def test_odds_product_matches_graham_formula() -> None:
    assert odds_product([0.9, 0.2]) == pytest.approx(0.18 / (0.18 + 0.08))


def test_results_stay_within_unit_interval() -> None:
    many = [0.99] * 41 + [0.01] * 3
    for combine in (robinson_fisher, odds_product):
        result = combine(many)
        assert 0.0 <= result <= 1.0


def test_get_combiner_by_name() -> None:
    combiner = get_combiner(ODDS_PRODUCT)
    assert combiner.name == ODDS_PRODUCT
    assert combiner([0.99]) == pytest.approx(0.99)

    with pytest.raises(KeyError):
        get_combiner("majority_vote")


def test_odds_product_survives_long_evidence_lists() -> None:
    assert odds_product([0.99] * 2000 + [0.01] * 2000) == pytest.approx(0.5)
    assert odds_product([0.01] * 5000) == pytest.approx(0.0)
    assert odds_product([0.99] * 5000) == pytest.approx(1.0)
