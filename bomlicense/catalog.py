"""The catalog of SPDX licenses and its on-disk text export."""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from bomlicense.download import (
    EMBEDDED_LICENSE_LIST_VERSION,
    DownloadError,
    Downloader,
    DownloaderOptions,
    new_downloader,
)
from bomlicense.models import License, LicenseList

logger = logging.getLogger(__name__)

_WRITE_WORKERS = 8


@dataclass
class CatalogOptions:
    """Settings of a license catalog.

    ``version`` is the license list release to use (e.g. ``v3.19``) or an
    empty string for the latest one.
    """

    cache_dir: str = ""
    version: str = EMBEDDED_LICENSE_LIST_VERSION


def _write_license(target_dir: str, license: License) -> None:
    license_dir = os.path.join(target_dir, "assets", license.license_id)
    os.makedirs(license_dir, mode=0o755, exist_ok=True)
    license.write_text(os.path.join(license_dir, "license.txt"))


@dataclass
class Catalog:
    """Holds the SPDX license list and the downloader that fetches it."""

    downloader: Downloader
    options: CatalogOptions = field(default_factory=CatalogOptions)
    license_list: LicenseList | None = None

    def load_licenses(self) -> None:
        """Fetch the license list through the downloader."""
        logger.info("Loading license data from downloader")
        try:
            licenses = self.downloader.get_licenses()
        except DownloadError as exc:
            raise DownloadError(f"getting licenses from downloader: {exc}") from exc
        self.license_list = licenses
        logger.info("Got %d licenses from downloader", len(licenses.licenses))

    def write_licenses_as_text(self, target_dir: str | os.PathLike[str]) -> None:
        """Write every non-deprecated license to ``assets/<ID>/license.txt``."""
        if self.license_list is None:
            raise RuntimeError("unable to write licenses, they have not been loaded yet")
        target = os.fspath(target_dir)
        logger.info(
            "Writing %d SPDX licenses to %s", len(self.license_list.licenses), target
        )
        os.makedirs(target, mode=0o755, exist_ok=True)

        pending = [
            license
            for license in list(self.license_list.licenses.values())
            if not license.is_deprecated_license_id
        ]
        with ThreadPoolExecutor(max_workers=_WRITE_WORKERS) as pool:
            futures = [pool.submit(_write_license, target, lic) for lic in pending]
            for future in futures:
                future.result()

    def get_license(self, label: str) -> License | None:
        """Return the license with an SPDX identifier, or None if unknown."""
        if self.license_list is not None:
            license = self.license_list.licenses.get(label)
            if license is not None:
                return license
        logger.warning("Label %s is not an identifier of a known license ", label)
        return None


def new_catalog(opts: CatalogOptions | None = None) -> Catalog:
    """Create a catalog backed by the default downloader."""
    opts = opts if opts is not None else CatalogOptions()
    downloader = new_downloader(
        DownloaderOptions(cache_dir=opts.cache_dir, version=opts.version)
    )
    return Catalog(downloader=downloader, options=opts)