"""A programmable license reader implementation for tests."""

from __future__ import annotations

import threading
from typing import Any, Callable

from bomlicense.implementation import ReaderImplementation
from bomlicense.models import ClassifyResult, License, ReaderOptions

_METHODS = (
    "initialize",
    "classify_license_files",
    "classify_file",
    "license_from_file",
    "license_from_label",
    "find_license_files",
)

_DEFAULTS: dict[str, Callable[[], Any]] = {
    "initialize": lambda: None,
    "classify_license_files": lambda: ([], []),
    "classify_file": lambda: ("", []),
    "license_from_file": lambda: None,
    "license_from_label": lambda: None,
    "find_license_files": list,
}


class FakeReaderImplementation(ReaderImplementation):
    """Records every call and answers with programmed results.

    A callable placed in ``stubs`` under a method name takes precedence over
    programmed results. Programming a result with :meth:`returns` drops any
    stub for that method.
    """

    def __init__(self) -> None:
        self.stubs: dict[str, Callable[..., Any]] = {}
        self.invocations: dict[str, list[list[Any]]] = {}
        self._calls: dict[str, list[Any]] = {name: [] for name in _METHODS}
        self._default: dict[str, tuple[Any, BaseException | None]] = {}
        self._on_call: dict[str, dict[int, tuple[Any, BaseException | None]]] = {
            name: {} for name in _METHODS
        }
        self._lock = threading.Lock()

    @staticmethod
    def _check_method(method: str) -> None:
        if method not in _METHODS:
            raise ValueError(f"unknown reader method: {method}")

    def _invoke(self, method: str, arg: Any) -> Any:
        with self._lock:
            calls = self._calls[method]
            index = len(calls)
            calls.append(arg)
            self.invocations.setdefault(method, []).append([arg])
            stub = self.stubs.get(method)
            if index in self._on_call[method]:
                outcome = self._on_call[method][index]
            else:
                outcome = self._default.get(method)

        if stub is not None:
            return stub(arg)
        if outcome is None:
            return _DEFAULTS[method]()
        result, error = outcome
        if error is not None:
            raise error
        return result

    def initialize(self, opts: ReaderOptions) -> None:
        self._invoke("initialize", opts)

    def classify_license_files(self, paths: Any) -> tuple[list[ClassifyResult], list[str]]:
        copied = list(paths) if paths is not None else None
        return self._invoke("classify_license_files", copied)

    def classify_file(self, path: str) -> tuple[str, list[str]]:
        return self._invoke("classify_file", path)

    def license_from_file(self, path: str) -> License | None:
        return self._invoke("license_from_file", path)

    def license_from_label(self, label: str) -> License | None:
        return self._invoke("license_from_label", label)

    def find_license_files(self, path: str) -> list[str]:
        return self._invoke("find_license_files", path)

    def returns(
        self,
        method: str,
        result: Any = None,
        error: BaseException | None = None,
        call: int | None = None,
    ) -> None:
        """Program what ``method`` gives back, on every call or on call ``call``.

        When ``error`` is set the method raises it instead of returning.
        """
        self._check_method(method)
        with self._lock:
            self.stubs.pop(method, None)
            if call is None:
                self._default[method] = (result, error)
            else:
                self._on_call[method][call] = (result, error)

    def call_count(self, method: str) -> int:
        """Return how many times ``method`` was called."""
        self._check_method(method)
        with self._lock:
            return len(self._calls[method])

    def args_for_call(self, method: str, index: int) -> Any:
        """Return the argument given to ``method`` on call number ``index``."""
        self._check_method(method)
        with self._lock:
            return self._calls[method][index]