"""A programmable downloader implementation for tests."""

from __future__ import annotations

import threading
from typing import Any, Callable

from bomlicense.download import DownloaderImplementation, DownloaderOptions
from bomlicense.models import LicenseList

# Number of arguments each faked method takes.
_METHODS: dict[str, int] = {
    "version": 0,
    "set_options": 1,
    "get_latest_tag": 0,
    "download_license_archive": 1,
    "get_licenses": 1,
}

_DEFAULTS: dict[str, Callable[[], Any]] = {
    "version": str,
    "set_options": lambda: None,
    "get_latest_tag": str,
    "download_license_archive": bytes,
    "get_licenses": LicenseList,
}


class FakeDownloaderImplementation(DownloaderImplementation):
    """Records every call and answers with programmed results.

    A callable placed in ``stubs`` under a method name takes precedence over
    programmed results. Programming a result with :meth:`returns` drops any
    stub for that method.
    """

    def __init__(self) -> None:
        self.stubs: dict[str, Callable[..., Any]] = {}
        self.invocations: dict[str, list[list[Any]]] = {}
        self._calls: dict[str, list[tuple[Any, ...]]] = {name: [] for name in _METHODS}
        self._default: dict[str, tuple[Any, BaseException | None]] = {}
        self._on_call: dict[str, dict[int, tuple[Any, BaseException | None]]] = {
            name: {} for name in _METHODS
        }
        self._lock = threading.Lock()

    @staticmethod
    def _check_method(method: str) -> None:
        if method not in _METHODS:
            raise ValueError(f"unknown downloader method: {method}")

    def _invoke(self, method: str, *args: Any) -> Any:
        with self._lock:
            calls = self._calls[method]
            index = len(calls)
            calls.append(args)
            self.invocations.setdefault(method, []).append(list(args))
            stub = self.stubs.get(method)
            if index in self._on_call[method]:
                outcome = self._on_call[method][index]
            else:
                outcome = self._default.get(method)

        if stub is not None:
            return stub(*args)
        if outcome is None:
            return _DEFAULTS[method]()
        result, error = outcome
        if error is not None:
            raise error
        return result

    def version(self) -> str:
        return self._invoke("version")

    def set_options(self, opts: DownloaderOptions) -> None:
        self._invoke("set_options", opts)

    def get_latest_tag(self) -> str:
        return self._invoke("get_latest_tag")

    def download_license_archive(self, tag: str) -> bytes:
        return self._invoke("download_license_archive", tag)

    def get_licenses(self, tag: str) -> LicenseList:
        return self._invoke("get_licenses", tag)

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
        if _METHODS[method] == 0:
            raise ValueError(f"method {method} takes no arguments")
        with self._lock:
            return self._calls[method][index][0]