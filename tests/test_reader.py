import os

import pytest

from bomlicense.implementation import ReaderImplementation
from bomlicense.models import ClassifyResult, License, ReaderOptions
from bomlicense.reader import Reader, new_reader


class _StubReaderImpl(ReaderImplementation):
    def __init__(self, init_error=None, labels=None, found=()):
        self.init_error = init_error
        self.labels = dict(labels or {})
        self.found = list(found)
        self.initialized_with = None
        self.classified = []

    def initialize(self, opts):
        self.initialized_with = opts
        if self.init_error is not None:
            raise self.init_error

    def classify_license_files(self, paths):
        results, unknown = [], []
        for path in paths:
            self.classified.append(path)
            if path in self.labels:
                results.append(ClassifyResult(path, "text", self.labels[path]))
            else:
                unknown.append(path)
        return results, unknown

    def classify_file(self, path):
        if path in self.labels:
            return self.labels[path].license_id, []
        return "", []

    def license_from_file(self, path):
        return self.labels.get(path)

    def license_from_label(self, label):
        for lic in self.labels.values():
            if lic.license_id == label:
                return lic
        return None

    def find_license_files(self, path):
        return list(self.found)


MIT = License(license_id="MIT")
BSD = License(license_id="BSD-3-Clause")


def _reader(tmp_path, impl):
    reader = Reader(ReaderOptions(work_dir=str(tmp_path)))
    reader.set_implementation(impl)
    return reader


def test_set_implementation_initializes(tmp_path):
    impl = _StubReaderImpl()
    reader = _reader(tmp_path, impl)
    assert impl.initialized_with is reader.options


def test_set_implementation_propagates_init_error():
    reader = Reader()
    with pytest.raises(RuntimeError, match="Mock init error"):
        reader.set_implementation(_StubReaderImpl(init_error=RuntimeError("Mock init error")))


def test_reader_without_implementation_raises():
    with pytest.raises(RuntimeError):
        Reader().license_from_label("MIT")


def test_read_top_license_prefers_common_name(tmp_path):
    top = tmp_path / "LICENSE"
    top.write_text("x")
    impl = _StubReaderImpl(labels={str(top): MIT}, found=[str(tmp_path / "x" / "LICENSE-B")])
    result = _reader(tmp_path, impl).read_top_license(tmp_path)
    assert result.file == str(top)
    assert result.license.license_id == "MIT"
    assert impl.classified == [str(top)]


def test_read_top_license_falls_back_to_shallowest(tmp_path):
    top = tmp_path / "COPYING"
    top.write_text("unrecognized")
    deep = os.path.join(str(tmp_path), "a", "b", "LICENSE-DEEP")
    shallow = os.path.join(str(tmp_path), "a", "LICENSE-TOP")
    impl = _StubReaderImpl(labels={deep: BSD, shallow: MIT}, found=[deep, shallow])
    result = _reader(tmp_path, impl).read_top_license(str(tmp_path))
    assert result.file == shallow
    assert result.license.license_id == "MIT"


def test_read_top_license_keeps_shallower_found_first(tmp_path):
    shallow = os.path.join(str(tmp_path), "a", "LICENSE-TOP")
    deep = os.path.join(str(tmp_path), "a", "b", "LICENSE-DEEP")
    impl = _StubReaderImpl(labels={deep: BSD, shallow: MIT}, found=[shallow, deep])
    result = _reader(tmp_path, impl).read_top_license(str(tmp_path))
    assert result.file == shallow
    assert impl.classified == [shallow]


def test_read_top_license_none_found(tmp_path):
    impl = _StubReaderImpl(found=[os.path.join(str(tmp_path), "LICENSE-X")])
    assert _reader(tmp_path, impl).read_top_license(tmp_path) is None


def test_read_licenses(tmp_path):
    known = os.path.join(str(tmp_path), "LICENSE")
    unknown = os.path.join(str(tmp_path), "sub", "LICENSE")
    impl = _StubReaderImpl(labels={known: MIT}, found=[known, unknown])
    results, unknown_paths = _reader(tmp_path, impl).read_licenses(tmp_path)
    assert [r.license.license_id for r in results] == ["MIT"]
    assert unknown_paths == [unknown]


def test_license_from_file_and_label(tmp_path):
    path = os.path.join(str(tmp_path), "LICENSE")
    reader = _reader(tmp_path, _StubReaderImpl(labels={path: BSD}))
    assert reader.license_from_file(path).license_id == "BSD-3-Clause"
    assert reader.license_from_label("BSD-3-Clause") is BSD
    assert reader.license_from_label("MIT") is None


def test_new_reader_rejects_missing_work_dir(tmp_path):
    with pytest.raises(FileNotFoundError):
        new_reader(ReaderOptions(work_dir=str(tmp_path / "missing")))