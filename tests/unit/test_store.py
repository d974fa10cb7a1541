from __future__ import annotations

import pickle

import pytest

from quince.classifiers import BayesianClassifier, TrivialClassifier
from quince.config import ClassifierOptions
from quince.store import SnapshotError, Store, clone_classifier, load_classifier, save_classifier
from quince.types import Address, BodyPart, Document


def _document(body: str, sender: str = "someone@example.com") -> Document:
    return Document(senders=(Address(sender),), parts=(BodyPart("text/plain", body),))


def _trained(**overrides) -> BayesianClassifier:
    options = ClassifierOptions(n_observations_required=1, number_of_predictors=5)
    classifier = BayesianClassifier(options.with_overrides(**overrides))
    classifier.learn("SPAM", _document("cheap pills offer", "a@spam.example"))
    classifier.learn("SPAM", _document("cheap watches", "b@spam.example"))
    classifier.learn("HAM", _document("project meeting", "c@work.example"))
    classifier.bias("HAM", 2)
    return classifier


def test_save_and_load_roundtrip(tmp_path):
    classifier = _trained()
    unseen = _document("cheap meeting", "d@elsewhere.example")
    expected = classifier.score(unseen)

    path = save_classifier(classifier, tmp_path / "state" / "model.pkl")
    restored = load_classifier(path)

    assert isinstance(restored, BayesianClassifier)
    assert restored.options == classifier.options
    assert restored.bias("HAM") == 2.0
    assert restored.frequencies.category_counts() == {"SPAM": 2, "HAM": 1}
    assert restored.cache_meta() == classifier.cache_meta()
    assert restored.score(unseen) == expected
    assert not list(path.parent.glob("*.tmp"))
    classifier.close()
    restored.close()


def test_disk_backed_roundtrip(tmp_path):
    classifier = _trained(on_disk=True)
    path = save_classifier(classifier, tmp_path / "model.pkl")

    restored = load_classifier(path, scratch_dir=tmp_path)

    assert restored.tables.disk_backed() == ["word_count", "word_score"]
    assert restored.frequencies.token_counts("body:cheap") == {"SPAM": 2}
    classifier.close()
    restored.close()


def test_trivial_roundtrip(tmp_path):
    classifier = TrivialClassifier()
    classifier.learn("SPAM", _document("anything"))
    path = save_classifier(classifier, tmp_path / "trivial.pkl")

    restored = load_classifier(path, rng=0)

    assert isinstance(restored, TrivialClassifier)
    assert restored.score(_document("other")).category == "SPAM"


def test_missing_snapshot_raises(tmp_path):
    with pytest.raises(SnapshotError):
        load_classifier(tmp_path / "absent.pkl")


def test_corrupt_snapshot_is_quarantined(tmp_path):
    path = save_classifier(_trained(), tmp_path / "model.pkl")
    path.write_text("not pickle", encoding="utf-8")

    with pytest.raises(SnapshotError):
        load_classifier(path)

    assert not path.exists()
    quarantine_files = list(path.parent.glob("model.pkl.corrupt*"))
    assert len(quarantine_files) == 1


def test_unsupported_version_is_rejected(tmp_path):
    path = tmp_path / "model.pkl"
    path.write_bytes(pickle.dumps({"version": 99}))

    with pytest.raises(SnapshotError):
        load_classifier(path)

    assert path.exists()


def test_clone_is_independent():
    classifier = _trained()
    clone = clone_classifier(classifier)

    clone.learn("HAM", _document("weekly notes", "e@work.example"))
    clone.bias("HAM", 4)

    assert classifier.frequencies.category_counts() == {"SPAM": 2, "HAM": 1}
    assert classifier.bias("HAM") == 2.0
    assert clone.frequencies.category_counts() == {"SPAM": 2, "HAM": 2}
    assert clone.options == classifier.options


def test_named_store(tmp_path):
    store = Store(tmp_path / "snapshots")

    store.save("work", _trained())
    store.save("home", TrivialClassifier())

    assert store.names() == ["home", "work"]
    assert isinstance(store.load("work"), BayesianClassifier)
    assert store.path_for("work") == tmp_path / "snapshots" / "work.pkl"
    for bad in ("", "../escape", ".hidden"):
        with pytest.raises(ValueError):
            store.path_for(bad)
