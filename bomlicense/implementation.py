"""The default license reader: finds license files and classifies them."""

from __future__ import annotations

import abc
import difflib
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

from bomlicense.catalog import Catalog, CatalogOptions, new_catalog
from bomlicense.models import (
    LICENSE_FILENAME_PATTERN,
    ClassifyResult,
    License,
    ReaderOptions,
)

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"[a-z0-9]+")
_IGNORED_MATCH = "Copyright"


def _tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


@dataclass(frozen=True)
class LicenseMatch:
    """A license found in a text, with the share of its wording present."""

    name: str
    confidence: float


class LicenseClassifier:
    """Matches texts against a directory of known license texts."""

    def __init__(self, threshold: float = 0.9) -> None:
        self.threshold = threshold
        self._licenses: dict[str, list[list[str]]] = {}

    def load_licenses(self, path: str | os.PathLike[str]) -> None:
        """Load every ``*.txt`` below ``path``, named after its parent directory."""
        root = Path(path)
        if not root.is_dir():
            raise FileNotFoundError(f"license directory not found: {root}")
        for file in sorted(root.rglob("*.txt")):
            if not file.is_file():
                continue
            tokens = _tokenize(file.read_text(encoding="utf-8", errors="replace"))
            if tokens:
                self._licenses.setdefault(file.parent.name, []).append(tokens)

    def _score(self, tokens: list[str], text_tokens: list[str], vocabulary: set[str]) -> float:
        unique = set(tokens)
        if len(unique & vocabulary) / len(unique) < self.threshold:
            return 0.0
        matcher = difflib.SequenceMatcher(None, tokens, text_tokens, autojunk=False)
        matched = sum(block.size for block in matcher.get_matching_blocks())
        return matched / len(tokens)

    def match(self, text: str | bytes) -> list[LicenseMatch]:
        """Return the licenses found in ``text``, best match first."""
        if isinstance(text, bytes):
            text = text.decode("utf-8", errors="replace")
        text_tokens = _tokenize(text)
        if not text_tokens:
            return []
        vocabulary = set(text_tokens)
        matches = []
        for name, variants in self._licenses.items():
            best = max(self._score(v, text_tokens, vocabulary) for v in variants)
            if best > 0 and best >= self.threshold:
                matches.append(LicenseMatch(name, best))
        matches.sort(key=lambda m: (-m.confidence, m.name))
        return matches


class ReaderImplementation(abc.ABC):
    """Lifecycle of a license reader: initialize, find files, classify them."""

    @abc.abstractmethod
    def initialize(self, opts: ReaderOptions) -> None:
        """Prepare the implementation for use."""

    @abc.abstractmethod
    def classify_license_files(
        self, paths: Iterable[str]
    ) -> tuple[list[ClassifyResult], list[str]]:
        """Classify files, returning results and unrecognized paths."""

    @abc.abstractmethod
    def classify_file(self, path: str) -> tuple[str, list[str]]:
        """Return the most probable license tag of a file and the other tags."""

    @abc.abstractmethod
    def license_from_file(self, path: str) -> License | None:
        """Return the license of a file, if one is recognized."""

    @abc.abstractmethod
    def license_from_label(self, label: str) -> License | None:
        """Return the license for an SPDX identifier."""

    @abc.abstractmethod
    def find_license_files(self, path: str) -> list[str]:
        """Return the files under ``path`` that may hold licenses."""


def _walk_files(path: str) -> Iterator[str]:
    for name in sorted(os.listdir(path)):
        child = os.path.join(path, name)
        if os.path.isdir(child) and not os.path.islink(child):
            yield from _walk_files(child)
        else:
            yield child


class ReaderDefaultImpl(ReaderImplementation):
    """Reader implementation built on the SPDX catalog and text classifier."""

    def __init__(
        self,
        catalog: Catalog | None = None,
        classifier: LicenseClassifier | None = None,
    ) -> None:
        self.catalog = catalog
        self.classifier = classifier

    def _require_catalog(self) -> Catalog:
        if self.catalog is None:
            raise RuntimeError("the license reader has no catalog, initialize it first")
        return self.catalog

    def _require_classifier(self) -> LicenseClassifier:
        if self.classifier is None:
            raise RuntimeError("the license reader has no classifier, initialize it first")
        return self.classifier

    def initialize(self, opts: ReaderOptions) -> None:
        opts.validate()
        catalog = new_catalog(
            CatalogOptions(cache_dir=opts.cache_path(), version=opts.license_list_version)
        )
        self.catalog = catalog
        catalog.load_licenses()

        logger.info("Writing license data to %s", opts.cache_path())
        catalog.write_licenses_as_text(opts.licenses_path())

        classifier = LicenseClassifier(opts.confidence_threshold)
        classifier.load_licenses(opts.licenses_path())
        self.classifier = classifier

    def classify_file(self, path: str | os.PathLike[str]) -> tuple[str, list[str]]:
        with open(path, "rb") as handle:
            data = handle.read()
        matches = self._require_classifier().match(data)
        if not matches:
            logger.debug("File does not match a known license: %s", path)
            return "", []

        license_tag = ""
        highest = 0.0
        all_tags: dict[str, None] = {}
        for match in matches:
            if match.name == _IGNORED_MATCH:
                continue
            if match.confidence > highest:
                highest = match.confidence
                license_tag = match.name
            all_tags[match.name] = None
        return license_tag, [tag for tag in all_tags if tag != license_tag]

    def classify_license_files(
        self, paths: Iterable[str | os.PathLike[str]]
    ) -> tuple[list[ClassifyResult], list[str]]:
        paths = [os.fspath(p) for p in paths]
        results: list[ClassifyResult] = []
        unrecognized: list[str] = []
        for path in paths:
            label, _ = self.classify_file(path)
            if not label:
                unrecognized.append(path)
                continue
            license = self._require_catalog().get_license(label)
            if license is None:
                logger.debug("Got an unknown license label from classifier: %s", label)
                unrecognized.append(path)
                continue
            text = Path(path).read_bytes().decode("utf-8", errors="replace")
            results.append(ClassifyResult(path, text, license))

        if len(paths) != len(results):
            logger.debug(
                "License classifier recognized %d/%d (%d%%) of the license files",
                len(results),
                len(paths),
                (len(results) // len(paths)) * 100,
            )
        return results, unrecognized

    def license_from_label(self, label: str) -> License | None:
        return self._require_catalog().get_license(label)

    def license_from_file(self, path: str | os.PathLike[str]) -> License | None:
        label, _ = self.classify_file(path)
        if not label:
            logger.debug("File does not contain a known license: %s", path)
            return None
        license = self._require_catalog().get_license(label)
        if license is None:
            logger.debug(
                "ID returned by classifier does not correspond to a valid license tag: %s",
                label,
            )
        return license

    def find_license_files(self, path: str | os.PathLike[str]) -> list[str]:
        root = os.fspath(path)
        logger.debug("Scanning %s for license files", root)
        os.stat(root)
        candidates = _walk_files(root) if os.path.isdir(root) else iter([root])
        found = [
            candidate
            for candidate in candidates
            if not os.path.basename(candidate).endswith(".go")
            and LICENSE_FILENAME_PATTERN.search(os.path.basename(candidate))
        ]
        logger.debug("%d license files found in directory %s", len(found), root)
        return found