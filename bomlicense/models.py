"""SPDX license data structures, reader options and helpers."""

from __future__ import annotations

import itertools
import json
import logging
import os
import re
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger(__name__)

LICENSE_FILENAME_PATTERN = re.compile(r".*license.*", re.IGNORECASE)
DEFAULT_CACHE_SUBDIR = "cache"
DEFAULT_LICENSE_SUBDIR = "licenses"

# Only the first lines of a file are searched for the boilerplate.
_BOILERPLATE_SCAN_LINES = 101

_BOILERPLATE_FIRST_LINE = " ".join(
    (
        "#",
        "Licensed",
        "under",
        "the",
        "Apache",
        "License,",
        "Version",
        "2.0",
        "(the",
        '"License");',
    )
)

KUBERNETES_BOILERPLATE = "\n".join(
    (
        _BOILERPLATE_FIRST_LINE,
        "# you may not use this file except in compliance with the License.",
        "# You may obtain a copy of the License at",
        "#",
        "#     http://www.apache.org/licenses/LICENSE-2.0",
    )
)

DEBIAN_LICENSE_LABELS: dict[str, str] = {
    "Apache-2.0": "Apache-2.0",
    "Artistic": "Artistic-1.0-Perl",
    "BSD": "BSD-1-Clause",
    "CC0-1.0": "CC0-1.0",
    "GFDL-1.2": "GFDL-1.2",
    "GFDL-1.3": "GFDL-1.3",
    "GPL": "GPL-1.0",
    "GPL-1": "GPL-1.0",
    "GPL-2": "GPL-2.0",
    "GPL-3": "GPL-3.0",
    "LGPL-2": "LGPL-2.0",
    "LGPL-2.1": "LGPL-2.1",
    "LGPL-3": "LGPL-3.0",
    "MPL-1.1": "MPL-1.1",
    "MPL-2.0": "MPL-2.0",
}

_LICENSE_KEYS = {
    "isDeprecatedLicenseId": "is_deprecated_license_id",
    "isFsfLibre": "is_fsf_libre",
    "isOsiApproved": "is_osi_approved",
    "licenseText": "license_text",
    "standardLicenseHeaderTemplate": "standard_license_header_template",
    "standardLicenseTemplate": "standard_license_template",
    "name": "name",
    "licenseId": "license_id",
    "standardLicenseHeader": "standard_license_header",
    "seeAlso": "see_also",
}

_LIST_ENTRY_KEYS = {
    "isOsiApproved": "is_osi_approved",
    "isDeprecatedLicenseId": "is_deprecated",
    "reference": "reference",
    "detailsUrl": "details_url",
    "referenceNumber": "reference_number",
    "name": "name",
    "licenseId": "license_id",
    "seeAlso": "see_also",
}


def _pick(data: Mapping[str, Any], keys: Mapping[str, str]) -> dict[str, Any]:
    return {attr: data[key] for key, attr in keys.items() if data.get(key) is not None}


def _load_json_object(raw: bytes | str, what: str) -> dict[str, Any]:
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValueError(f"parsing {what}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"parsing {what}: expected a JSON object")
    return data


@dataclass
class License:
    """A license as described by the SPDX JSON data."""

    license_id: str = ""
    name: str = ""
    license_text: str = ""
    is_deprecated_license_id: bool = False
    is_fsf_libre: bool = False
    is_osi_approved: bool = False
    standard_license_header: str = ""
    standard_license_header_template: str = ""
    standard_license_template: str = ""
    see_also: list[str] = field(default_factory=list)

    def write_text(self, file_path: str | os.PathLike[str]) -> None:
        """Write the license text to a file."""
        Path(file_path).write_bytes(self.license_text.encode("utf-8"))


@dataclass
class ListEntry:
    """One entry of the SPDX license list index."""

    license_id: str = ""
    name: str = ""
    reference: str = ""
    details_url: str = ""
    reference_number: int = 0
    is_osi_approved: bool = False
    is_deprecated: bool = False
    see_also: list[str] = field(default_factory=list)


@dataclass
class LicenseList:
    """The list of licenses published by SPDX."""

    version: str = ""
    release_date_string: str = ""
    license_data: list[ListEntry] = field(default_factory=list)
    licenses: dict[str, License] = field(default_factory=dict)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def add(self, license: License) -> None:
        """Add a license, keyed by its SPDX identifier."""
        with self._lock:
            self.licenses[license.license_id] = license


@dataclass
class ClassifyResult:
    """The outcome of classifying a single file."""

    file: str
    text: str
    license: License


@dataclass
class ReaderOptions:
    """Settings for the license reader."""

    confidence_threshold: float = 0.9
    work_dir: str = ""
    cache_dir: str = ""
    license_dir: str = ""
    license_list_version: str = ""

    def validate(self) -> None:
        """Ensure a working directory exists, creating a temporary one if unset."""
        if not self.work_dir:
            self.work_dir = tempfile.mkdtemp(prefix="license-reader-")
        elif not os.path.exists(self.work_dir):
            raise FileNotFoundError(
                f"checking working directory: {self.work_dir} does not exist"
            )

    def cache_path(self) -> str:
        """Full path of the downloads cache."""
        if self.cache_dir:
            return self.cache_dir
        return os.path.join(self.work_dir, DEFAULT_CACHE_SUBDIR)

    def licenses_path(self) -> str:
        """Full path of the directory holding the license texts."""
        if self.license_dir:
            return self.license_dir
        return os.path.join(self.work_dir, DEFAULT_LICENSE_SUBDIR)


def parse_license(license_json: bytes | str) -> License:
    """Parse an SPDX license from its JSON details document."""
    return License(**_pick(_load_json_object(license_json, "SPDX licence"), _LICENSE_KEYS))


def parse_license_list(list_json: bytes | str) -> LicenseList:
    """Parse the SPDX licenses.json index."""
    data = _load_json_object(list_json, "SPDX licence list")
    entries = data.get("licenses") or []
    if not isinstance(entries, list):
        raise ValueError("parsing SPDX licence list: 'licenses' is not a list")
    return LicenseList(
        version=data.get("licenseListVersion") or "",
        release_date_string=data.get("releaseDate") or "",
        license_data=[
            ListEntry(**_pick(entry, _LIST_ENTRY_KEYS))
            for entry in entries
            if isinstance(entry, dict)
        ],
    )


def _strip_line_ending(raw: bytes) -> str:
    if raw.endswith(b"\n"):
        raw = raw[:-1]
    if raw.endswith(b"\r"):
        raw = raw[:-1]
    return raw.decode("utf-8", errors="replace")


def has_kubernetes_boilerplate(file_path: str | os.PathLike[str]) -> bool:
    """Tell whether the start of a file holds the Kubernetes license boilerplate."""
    with open(file_path, "rb") as handle:
        lines = itertools.islice(handle, _BOILERPLATE_SCAN_LINES)
        text = "".join(_strip_line_ending(line) + "\n" for line in lines)
    if KUBERNETES_BOILERPLATE in text:
        logger.info("Found Kubernetes boilerplate in %s", file_path)
        return True
    return False