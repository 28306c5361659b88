import pytest

from bomlicense.fake_reader import FakeReaderImplementation
from bomlicense.models import ClassifyResult, License, ReaderOptions
from bomlicense.reader import Reader


def test_set_implementation_initialize_success_and_failure():
    reader = Reader(ReaderOptions())
    impl = FakeReaderImplementation()

    impl.returns("initialize", None)
    reader.set_implementation(impl)
    assert impl.call_count("initialize") == 1

    impl.returns("initialize", error=RuntimeError("Mock init error"))
    with pytest.raises(RuntimeError, match="Mock init error"):
        reader.set_implementation(impl)
    assert impl.call_count("initialize") == 2


def test_initialize_receives_reader_options():
    opts = ReaderOptions(confidence_threshold=0.5)
    reader = Reader(opts)
    impl = FakeReaderImplementation()
    reader.set_implementation(impl)
    assert impl.args_for_call("initialize", 0) is opts


def test_defaults_when_unprogrammed():
    impl = FakeReaderImplementation()
    assert impl.classify_license_files(["a"]) == ([], [])
    assert impl.classify_file("a") == ("", [])
    assert impl.license_from_file("a") is None
    assert impl.license_from_label("MIT") is None
    assert impl.find_license_files("/x") == []


def test_returns_default_result():
    impl = FakeReaderImplementation()
    lic = License(license_id="MIT", license_text="text")
    impl.returns("license_from_label", lic)
    assert impl.license_from_label("MIT") is lic
    assert impl.license_from_label("other") is lic
    assert impl.call_count("license_from_label") == 2
    assert impl.args_for_call("license_from_label", 1) == "other"


def test_returns_on_specific_call():
    impl = FakeReaderImplementation()
    impl.returns("find_license_files", ["default"])
    impl.returns("find_license_files", ["second"], call=1)
    assert impl.find_license_files("p0") == ["default"]
    assert impl.find_license_files("p1") == ["second"]
    assert impl.find_license_files("p2") == ["default"]


def test_returns_error_on_specific_call():
    impl = FakeReaderImplementation()
    impl.returns("classify_file", ("MIT", []))
    impl.returns("classify_file", error=OSError("boom"), call=0)
    with pytest.raises(OSError, match="boom"):
        impl.classify_file("f")
    assert impl.classify_file("g") == ("MIT", [])


def test_stub_takes_precedence_and_returns_clears_it():
    impl = FakeReaderImplementation()
    impl.returns("classify_file", ("Apache-2.0", []))
    impl.stubs["classify_file"] = lambda path: (path.upper(), ["x"])
    assert impl.classify_file("mit") == ("MIT", ["x"])
    impl.returns("classify_file", ("BSD", []))
    assert "classify_file" not in impl.stubs
    assert impl.classify_file("mit") == ("BSD", [])


def test_classify_license_files_copies_argument():
    impl = FakeReaderImplementation()
    lic = License(license_id="MIT")
    result = ClassifyResult("LICENSE", "text", lic)
    impl.returns("classify_license_files", ([result], ["other"]))
    paths = ["LICENSE", "other"]
    assert impl.classify_license_files(paths) == ([result], ["other"])
    paths.append("later")
    assert impl.args_for_call("classify_license_files", 0) == ["LICENSE", "other"]


def test_invocations_recorded():
    impl = FakeReaderImplementation()
    impl.license_from_file("a")
    impl.license_from_file("b")
    impl.find_license_files("/dir")
    assert impl.invocations == {
        "license_from_file": [["a"], ["b"]],
        "find_license_files": [["/dir"]],
    }


def test_unknown_method_rejected():
    impl = FakeReaderImplementation()
    with pytest.raises(ValueError):
        impl.returns("nope", None)
    with pytest.raises(ValueError):
        impl.call_count("nope")
    with pytest.raises(ValueError):
        impl.args_for_call("nope", 0)


def test_args_for_call_out_of_range():
    impl = FakeReaderImplementation()
    with pytest.raises(IndexError):
        impl.args_for_call("classify_file", 0)


def test_reader_read_licenses_through_fake():
    reader = Reader(ReaderOptions())
    impl = FakeReaderImplementation()
    reader.set_implementation(impl)
    lic = License(license_id="MIT")
    result = ClassifyResult("/p/LICENSE", "text", lic)
    impl.returns("find_license_files", ["/p/LICENSE", "/p/junk-license"])
    impl.returns("classify_license_files", ([result], ["/p/junk-license"]))
    assert reader.read_licenses("/p") == ([result], ["/p/junk-license"])
    assert impl.args_for_call("find_license_files", 0) == "/p"
    assert impl.args_for_call("classify_license_files", 0) == [
        "/p/LICENSE",
        "/p/junk-license",
    ]