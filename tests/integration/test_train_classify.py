from __future__ import annotations

from pathlib import Path

from quince.classifiers import BayesianClassifier, TrivialClassifier, create_classifier
from quince.combiners import ODDS_PRODUCT
from quince.config import ClassifierOptions
from quince.harness import ClassifierHarness
from quince.sources import read_documents
from quince.store import Store


def test_train_then_classify_mailboxes(corpus: dict[str, str]) -> None:
    with BayesianClassifier() as classifier:
        harness = ClassifierHarness(classifier)

        learned = harness.train(corpus)
        matrix = harness.classify(0.9, corpus)

    assert learned == 30
    assert matrix.total() == 30
    assert matrix.accuracy("SPAM") >= 0.9
    assert matrix.accuracy("HAM") >= 0.9


def test_html_structure_feeds_predictors(corpus: dict[str, str]) -> None:
    spam_path = next(path for path, category in corpus.items() if category == "SPAM")
    with BayesianClassifier() as classifier:
        ClassifierHarness(classifier).train(corpus)
        prediction = classifier.score(read_documents(spam_path)[0])

    assert prediction.category == "SPAM"
    assert "html:markup" in prediction.predictors
    assert "host:deals.example" in prediction.predictors


def test_crossval_over_mailboxes(corpus: dict[str, str]) -> None:
    with BayesianClassifier() as classifier:
        harness = ClassifierHarness(classifier)
        harness.train(corpus)

        matrix = harness.crossval(3, 0.5, corpus, rng=0)

        assert not harness.is_trained
    assert matrix.total() == 30
    assert matrix.overall_accuracy() >= 0.8
    assert matrix.labels() == ["SPAM", "HAM", "UNK"]


def test_trivial_baseline_counts_every_message(corpus: dict[str, str]) -> None:
    harness = ClassifierHarness(TrivialClassifier(rng=0))

    matrix = harness.crossval(2, 0.0, corpus, rng=0)

    assert matrix.total() == 31
    assert matrix["SPAM"]["UNK"] == 0
    assert matrix["HAM"]["UNK"] == 0


def test_disk_backed_odds_product_classifier(corpus: dict[str, str], tmp_path: Path) -> None:
    options = ClassifierOptions(on_disk=True, combiner=ODDS_PRODUCT, score_delay=5)
    (tmp_path / "scratch").mkdir()
    classifier = create_classifier("bayesian", options, scratch_dir=tmp_path / "scratch")
    harness = ClassifierHarness(classifier)

    harness.train(corpus)
    classifier.bias("HAM", 2)
    matrix = harness.classify(0.5, corpus)
    classifier.close()

    assert matrix.total() == 30
    assert matrix.overall_accuracy() >= 0.9
    assert list((tmp_path / "scratch").iterdir()) == []


def test_snapshot_reproduces_classification(corpus: dict[str, str], tmp_path: Path) -> None:
    store = Store(tmp_path / "snapshots")
    with BayesianClassifier() as classifier:
        harness = ClassifierHarness(classifier)
        harness.train(corpus)
        expected = harness.classify(0.7, corpus).as_dict()
        store.save("mail", classifier)

    with store.load("mail") as restored:
        assert ClassifierHarness(restored).classify(0.7, corpus).as_dict() == expected
