"""The license reader: finds and interprets license files."""

from __future__ import annotations

import logging
import os

from bomlicense.implementation import ReaderDefaultImpl, ReaderImplementation
from bomlicense.models import ClassifyResult, License, ReaderOptions

logger = logging.getLogger(__name__)

_COMMON_NAMES = ("LICENSE", "LICENSE.txt", "COPYING", "COPYRIGHT")


class Reader:
    """Finds and interprets license files through an implementation."""

    def __init__(self, options: ReaderOptions | None = None) -> None:
        self.options = options
        self._impl: ReaderImplementation | None = None

    @property
    def _implementation(self) -> ReaderImplementation:
        if self._impl is None:
            raise RuntimeError("no license reader implementation set")
        return self._impl

    def set_implementation(self, impl: ReaderImplementation) -> None:
        """Set and initialize the implementation the reader will use."""
        self._impl = impl
        impl.initialize(self.options)

    def license_from_label(self, label: str) -> License | None:
        """Return the SPDX license for a label."""
        return self._implementation.license_from_label(label)

    def license_from_file(self, file_path: str | os.PathLike[str]) -> License | None:
        """Classify a file and return its license, if one is found."""
        return self._implementation.license_from_file(os.fspath(file_path))

    def read_top_license(self, path: str | os.PathLike[str]) -> ClassifyResult | None:
        """Return the topmost recognized license file under a directory."""
        impl = self._implementation
        root = os.fspath(path)
        license_file_path = ""
        for name in _COMMON_NAMES:
            candidate = os.path.join(root, name)
            if os.path.exists(candidate):
                license_file_path = candidate
                break

        if license_file_path:
            results, _ = impl.classify_license_files([license_file_path])
            if results:
                logger.debug(
                    "Concluded license %s from %s",
                    results[0].license.license_id,
                    license_file_path,
                )
                return results[0]

        # Fall back to the recognized license file highest in the tree.
        best: ClassifyResult | None = None
        best_depth = 0
        for file_name in impl.find_license_files(root):
            depth = len(os.path.dirname(file_name).split(os.sep))
            better = (
                best_depth == 0
                or depth < best_depth
                or (depth == best_depth and len(file_name) < len(license_file_path))
            )
            if not better:
                continue
            results, _ = impl.classify_license_files([file_name])
            if results:
                best_depth = depth
                license_file_path = file_name
                best = results[0]

        if best is None:
            logger.debug("Could not find any licensing information in %s", root)
        else:
            logger.debug(
                "Concluded license %s from %s", best.license.license_id, license_file_path
            )
        return best

    def read_licenses(
        self, path: str | os.PathLike[str]
    ) -> tuple[list[ClassifyResult], list[str]]:
        """Return all licenses found under a path and the unrecognized files."""
        impl = self._implementation
        return impl.classify_license_files(impl.find_license_files(os.fspath(path)))


def new_reader(opts: ReaderOptions | None = None) -> Reader:
    """Create a reader with the default implementation."""
    opts = opts if opts is not None else ReaderOptions()
    opts.validate()
    reader = Reader(opts)
    reader.set_implementation(ReaderDefaultImpl())
    return reader