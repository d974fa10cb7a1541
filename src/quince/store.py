"""Snapshot persistence for classifiers."""

from __future__ import annotations

import logging
import pickle
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import Any

from .classifiers.base import Classifier
from .classifiers.registry import DEFAULT_REGISTRY, ClassifierRegistry
from .config import ClassifierOptions

LOGGER = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1
SNAPSHOT_SUFFIX = ".pkl"


class SnapshotError(RuntimeError):
    """Raised when a snapshot is missing, corrupt or incompatible."""


class Store:
    """Named classifier snapshots kept under one root directory."""

    def __init__(self, root_dir: Path, *, registry: ClassifierRegistry = DEFAULT_REGISTRY) -> None:
        self.root_dir = root_dir.expanduser()
        self.root_dir.mkdir(parents=True, exist_ok=True)
        self._registry = registry

    def path_for(self, name: str) -> Path:
        if not name or "/" in name or name.startswith("."):
            raise ValueError(f"Invalid snapshot name: {name!r}")
        return self.root_dir / f"{name}{SNAPSHOT_SUFFIX}"

    def save(self, name: str, classifier: Classifier) -> Path:
        return save_classifier(classifier, self.path_for(name))

    def load(self, name: str, **kwargs: Any) -> Classifier:
        return load_classifier(self.path_for(name), registry=self._registry, **kwargs)

    def names(self) -> list[str]:
        return sorted(path.stem for path in self.root_dir.glob(f"*{SNAPSHOT_SUFFIX}"))


def save_classifier(classifier: Classifier, path: Path) -> Path:
    """Atomically write the full state of a classifier.

    Every table is locked for the duration of the copy so the snapshot is
    consistent even while other threads learn.
    """

    target = Path(path).expanduser()
    with classifier.tables.lock_all():
        payload = {
            "version": SNAPSHOT_VERSION,
            "variant": classifier.name,
            "options": classifier.options.as_dict(),
            "disk_tables": classifier.tables.disk_backed(),
            "tables": classifier.tables.export(),
        }

    def _write(tmp_path: Path) -> None:
        with tmp_path.open("wb") as handle:
            pickle.dump(payload, handle, protocol=pickle.HIGHEST_PROTOCOL)

    _atomic_write(target, _write)
    LOGGER.debug("Saved %s classifier snapshot to %s", classifier.name, target)
    return target


def load_classifier(
    path: Path,
    *,
    registry: ClassifierRegistry = DEFAULT_REGISTRY,
    **kwargs: Any,
) -> Classifier:
    """Rebuild a classifier from a snapshot.

    Tables that were disk-backed when saved are restored into fresh scratch
    files. Corrupt snapshots are moved aside before :class:`SnapshotError`
    is raised.
    """

    source = Path(path).expanduser()
    if not source.exists():
        raise SnapshotError(f"Snapshot not found: {source}")
    try:
        with source.open("rb") as handle:
            payload = pickle.load(handle)
    except (pickle.UnpicklingError, EOFError, AttributeError, ImportError, IndexError) as exc:
        quarantined = _quarantine_corrupt_file(source)
        LOGGER.warning("Failed to load snapshot %s; moved to %s", source, quarantined)
        raise SnapshotError(f"Corrupt snapshot: {source}") from exc

    if not isinstance(payload, dict) or payload.get("version") != SNAPSHOT_VERSION:
        raise SnapshotError(f"Unsupported snapshot format: {source}")

    options = ClassifierOptions(**_options_payload(payload["options"]))
    classifier = registry.create(payload["variant"], options, **kwargs)
    expected = sorted(payload.get("disk_tables", []))
    if classifier.tables.disk_backed() != expected:
        classifier.close()
        raise SnapshotError(
            f"Snapshot {source} expects disk-backed tables {expected}, "
            f"got {classifier.tables.disk_backed()}"
        )
    with classifier.tables.lock_all():
        classifier.tables.restore(payload["tables"])
    return classifier


def clone_classifier(classifier: Classifier, **kwargs: Any) -> Classifier:
    """Return an independent copy holding the same options and data."""

    with classifier.tables.lock_all():
        contents = classifier.tables.export()
    clone = DEFAULT_REGISTRY.create(classifier.name, classifier.options, **kwargs)
    with clone.tables.lock_all():
        clone.tables.restore(contents)
    return clone


def _options_payload(raw: dict[str, Any]) -> dict[str, Any]:
    options = dict(raw)
    options["ignored_tokens"] = tuple(options.get("ignored_tokens", ()))
    return options


def _atomic_write(target: Path, writer: Callable[[Path], None]) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp_name = f".{target.name}.{uuid.uuid4().hex}.tmp"
    tmp_path = target.with_name(tmp_name)
    try:
        writer(tmp_path)
        tmp_path.replace(target)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def _quarantine_corrupt_file(path: Path) -> Path:
    suffix = ".corrupt"
    candidate = path.with_name(f"{path.name}{suffix}")
    counter = 1
    while candidate.exists():
        counter += 1
        candidate = path.with_name(f"{path.name}{suffix}{counter}")
    path.replace(candidate)
    return candidate


__all__ = [
    "SnapshotError",
    "Store",
    "clone_classifier",
    "load_classifier",
    "save_classifier",
]
