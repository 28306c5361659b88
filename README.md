# bomlicense

A library for working with the SPDX license list. It fetches a version of
the list and caches it, keeps it as a catalog of licenses, and finds and
classifies license files in a source tree.

## Installation

```
pip install bomlicense
```

For running the test suite:

```
pip install "bomlicense[test]"
pytest
```

## Downloading the license list

`bomlicense.download` retrieves SPDX license list releases as zip archives.
`new_downloader` validates a `DownloaderOptions` and returns a `Downloader`
backed by `DefaultDownloaderImpl`.

```python
from bomlicense.download import DownloaderOptions, new_downloader

downloader = new_downloader(DownloaderOptions(version="v3.21"))
license_list = downloader.get_licenses()
print(license_list.version, len(license_list.licenses))

downloader.download_license_list_to_file("", "license-list.zip")
```

- With `enable_cache` on (the default), fetched data is stored in
  `cache_dir`, named after the SHA-256 of its URL, and reused on later
  calls. When `cache_dir` is empty a temporary directory is created. An
  empty cache file is removed and reported as an error.
- An empty `version`, or an empty tag passed to
  `download_license_list_to_file`, means the latest release, looked up with
  `get_latest_tag`.
- For the pinned version (`EMBEDDED_LICENSE_LIST_VERSION`, `v3.21`), an
  archive found in the package's `data` directory as
  `license-list-v3.21.zip` is used instead of the network.
- Failures are raised as `DownloadError`.

## Working with the license catalog

A `Catalog` loads the license list through a downloader.

```python
from bomlicense.catalog import CatalogOptions, new_catalog

catalog = new_catalog(CatalogOptions(version="v3.21"))
catalog.load_licenses()

apache = catalog.get_license("Apache-2.0")
print(apache.name if apache else "unknown")

# Write every non-deprecated license text to <dir>/assets/<id>/license.txt
catalog.write_licenses_as_text("licenses")
```

`get_license` returns `None` for a label that is not a known SPDX
identifier. `write_licenses_as_text` raises `RuntimeError` if the licenses
have not been loaded yet.

## Reading licenses from a directory

A `Reader` finds files whose names contain "license" (case-insensitive,
`.go` files excluded), classifies their text against the SPDX licenses and
returns what it recognised.

```python
from bomlicense.models import ReaderOptions
from bomlicense.reader import new_reader

reader = new_reader(ReaderOptions(confidence_threshold=0.9))

results, unrecognised = reader.read_licenses("path/to/project")
for result in results:
    print(result.file, result.license.license_id)

top = reader.read_top_license("path/to/project")
```

`read_top_license` first looks for `LICENSE`, `LICENSE.txt`, `COPYING` and
`COPYRIGHT` at the top of the directory and otherwise picks the recognised
license file nearest the root.

The default implementation, `ReaderDefaultImpl`, writes the license texts
below `ReaderOptions.licenses_path()` and loads them into a
`LicenseClassifier`, a token-based matcher that reports a `LicenseMatch`
for each license whose wording appears in a text with at least the
configured confidence.

## Single files and helpers

```python
from bomlicense.models import has_kubernetes_boilerplate, parse_license

with open("Apache-2.0.json", "rb") as handle:
    license = parse_license(handle.read())
license.write_text("Apache-2.0.txt")

has_kubernetes_boilerplate("main.py")
```

`parse_license_list` parses a `licenses.json` index, and
`DEBIAN_LICENSE_LABELS` maps Debian license labels to SPDX identifiers.

## Test doubles

`bomlicense.fake_downloader.FakeDownloaderImplementation` and
`bomlicense.fake_reader.FakeReaderImplementation` record every call and
answer with programmed results:

```python
from bomlicense.download import Downloader
from bomlicense.fake_downloader import FakeDownloaderImplementation
from bomlicense.models import LicenseList

fake = FakeDownloaderImplementation()
fake.returns("get_licenses", result=LicenseList())
fake.returns("get_latest_tag", error=RuntimeError("offline"), call=1)

Downloader(fake).get_licenses()
assert fake.call_count("get_licenses") == 1
```

## What this package does not do

- It has no command-line program; it is used as a library only.
- It has no tool to fetch a new license list release and pack it into the
  package's `data` directory; an archive placed there must be provided
  separately.