"""Fetching, caching and reading the SPDX license list archive."""

from __future__ import annotations

import abc
import hashlib
import io
import json
import logging
import os
import tempfile
import urllib.request
import zipfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from bomlicense.models import LicenseList, parse_license, parse_license_list

logger = logging.getLogger(__name__)

LICENSE_DATA_URL = "https://spdx.org/licenses/"
LICENSE_LIST_FILENAME = "licenses.json"
BASE_RELEASE_URL = "https://github.com/spdx/license-list-data/archive/refs/tags/"
LATEST_RELEASE_URL = "https://api.github.com/repos/spdx/license-list-data/releases/latest"
EMBEDDED_DATA_DIR = Path(__file__).resolve().parent / "data"
EMBEDDED_LICENSE_LIST_VERSION = "v3.21"

_DEFAULT_TIMEOUT = 60.0
_ARCHIVE_TIMEOUT = 3600.0


class DownloadError(Exception):
    """Raised when license data cannot be fetched, cached or read."""


def _http_get(url: str, timeout: float) -> bytes:
    try:
        with urllib.request.urlopen(url, timeout=timeout) as response:
            return response.read()
    except OSError as exc:
        raise DownloadError(f"fetching {url}: {exc}") from exc


@dataclass
class DownloaderOptions:
    """Settings for the license downloader."""

    enable_cache: bool = True
    cache_dir: str = ""
    parallel_downloads: int = 5
    version: str = ""

    def validate(self) -> None:
        """Make sure the cache directory exists when caching is enabled."""
        if not self.enable_cache:
            return
        try:
            if not self.cache_dir:
                self.cache_dir = tempfile.mkdtemp(prefix="license-cache-")
            elif not os.path.exists(self.cache_dir):
                os.makedirs(self.cache_dir, mode=0o755, exist_ok=True)
        except OSError as exc:
            raise DownloadError(f"creating license downloader cache: {exc}") from exc
        if not os.path.isdir(self.cache_dir):
            raise DownloadError(
                f"the specified cache directory does not exist: {self.cache_dir}"
            )


class DownloaderImplementation(abc.ABC):
    """The operations a license downloader relies on."""

    @abc.abstractmethod
    def get_licenses(self, tag: str) -> LicenseList:
        """Return the license list for a release tag."""

    @abc.abstractmethod
    def set_options(self, opts: DownloaderOptions) -> None:
        """Replace the implementation options."""

    @abc.abstractmethod
    def get_latest_tag(self) -> str:
        """Return the tag of the latest license list release."""

    @abc.abstractmethod
    def version(self) -> str:
        """Return the configured license list version, or an empty string."""

    @abc.abstractmethod
    def download_license_archive(self, tag: str) -> bytes:
        """Return the zip archive of a license list release."""


class DefaultDownloaderImpl(DownloaderImplementation):
    """Fetches license data over HTTP, with an optional on-disk cache."""

    def __init__(self, options: DownloaderOptions | None = None) -> None:
        self.options = options if options is not None else DownloaderOptions(enable_cache=False)

    def version(self) -> str:
        return self.options.version

    def set_options(self, opts: DownloaderOptions) -> None:
        self.options = opts

    def _fetch(self, url: str, timeout: float) -> bytes:
        data = self._get_cached_data(url) if self.options.enable_cache else None
        if data is None:
            data = _http_get(url, timeout)
            if self.options.enable_cache:
                self._cache_data(url, data)
        return data

    def get_latest_tag(self) -> str:
        data = self._fetch(LATEST_RELEASE_URL, _DEFAULT_TIMEOUT)
        try:
            release = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise DownloadError(f"parsing latest release data: {exc}") from exc
        if not isinstance(release, dict):
            raise DownloadError("parsing latest release data: expected a JSON object")
        return release.get("tag_name") or ""

    def download_license_archive(self, tag: str) -> bytes:
        embedded = EMBEDDED_DATA_DIR / f"license-list-{tag}.zip"
        if tag == EMBEDDED_LICENSE_LIST_VERSION and embedded.is_file():
            logger.info("Using embedded %s license list", tag)
            return embedded.read_bytes()
        return self._fetch(BASE_RELEASE_URL + tag + ".zip", _ARCHIVE_TIMEOUT)

    def get_licenses(self, tag: str) -> LicenseList:
        zip_data = self.download_license_archive(tag)
        try:
            archive = zipfile.ZipFile(io.BytesIO(zip_data))
        except zipfile.BadZipFile as exc:
            raise DownloadError(f"creating zip reader: {exc}") from exc
        with archive:
            return _read_license_directory(archive, f"license-list-data-{tag[1:]}")

    def _cache_file_name(self, url: str) -> Path:
        digest = hashlib.sha256(url.encode("utf-8")).hexdigest()
        return Path(self.options.cache_dir) / f"{digest}.json"

    def _cache_data(self, url: str, data: bytes) -> None:
        path = self._cache_file_name(url)
        try:
            path.parent.mkdir(mode=0o755, parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise DownloadError(f"writing cache file: {exc}") from exc
        logger.debug("Cached %s to %s", url, path)

    def _get_cached_data(self, url: str) -> bytes | None:
        path = self._cache_file_name(url)
        try:
            size = path.stat().st_size
        except FileNotFoundError:
            logger.debug("No cached data for %s", url)
            return None
        except OSError as exc:
            raise DownloadError(f"checking if cached data exists: {exc}") from exc

        if size == 0:
            logger.warning("Cached file %s is empty, removing", path)
            try:
                path.unlink()
            except OSError as exc:
                raise DownloadError(f"removing corrupt cached file: {exc}") from exc
            raise DownloadError(f"removed corrupt cached file {path}")

        try:
            data = path.read_bytes()
        except OSError as exc:
            raise DownloadError(f"reading cached data file: {exc}") from exc
        logger.debug("Reusing cached data from %s", url)
        return data


def _read_license_directory(archive: zipfile.ZipFile, subpath: str) -> LicenseList:
    list_name = PurePosixPath(subpath, "json", LICENSE_LIST_FILENAME).as_posix()
    try:
        list_json = archive.read(list_name)
    except KeyError as exc:
        raise DownloadError(f"reading license catalog: {list_name} not found") from exc
    try:
        licenses = parse_license_list(list_json)
    except ValueError as exc:
        raise DownloadError(f"parsing SPDX licence list: {exc}") from exc

    details_prefix = PurePosixPath(subpath, "json", "details").as_posix() + "/"
    names = [name for name in archive.namelist() if name.startswith(details_prefix)]
    if not names:
        raise DownloadError(f"walking license filesystem: {details_prefix} not found")

    for name in sorted(name for name in names if not name.endswith("/")):
        try:
            licenses.add(parse_license(archive.read(name)))
        except ValueError as exc:
            raise DownloadError(f"parsing license data in {name}: {exc}") from exc
    return licenses


class Downloader:
    """Retrieves SPDX license data through a pluggable implementation."""

    def __init__(self, impl: DownloaderImplementation | None = None) -> None:
        self._impl = impl

    def set_implementation(self, impl: DownloaderImplementation) -> None:
        """Set the implementation that drives the downloader."""
        self._impl = impl

    @property
    def _implementation(self) -> DownloaderImplementation:
        if self._impl is None:
            raise DownloadError("no downloader implementation set")
        return self._impl

    def _resolve_tag(self, tag: str) -> str:
        if tag:
            return tag
        try:
            return self._implementation.get_latest_tag()
        except DownloadError as exc:
            raise DownloadError(f"getting latest license list tag: {exc}") from exc

    def get_licenses(self) -> LicenseList:
        """Return the license list for the configured or latest version."""
        impl = self._implementation
        return impl.get_licenses(self._resolve_tag(impl.version()))

    def get_latest_tag(self) -> str:
        """Return the latest license list version."""
        return self._implementation.get_latest_tag()

    def download_license_list_to_file(self, tag: str, path: str | os.PathLike[str]) -> None:
        """Download a license list archive and store it in a file."""
        data = self._implementation.download_license_archive(self._resolve_tag(tag))
        try:
            Path(path).write_bytes(data)
        except OSError as exc:
            raise DownloadError(f"writing archive data: {exc}") from exc


def new_downloader(opts: DownloaderOptions | None = None) -> Downloader:
    """Build a downloader backed by the default implementation."""
    opts = opts if opts is not None else DownloaderOptions()
    opts.validate()
    impl = DefaultDownloaderImpl()
    impl.set_options(opts)
    return Downloader(impl)