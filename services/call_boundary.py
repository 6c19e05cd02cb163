from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

from loguru import logger


class CallBoundary:
    """Runs service calls off the UI thread, one at a time.

    submit() returns a Future that either resolves to the service's return
    value or raises the service's exception. One worker keeps every
    database call sequential on a single connection.
    """

    def __init__(self):
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="finance-db")
        self._closed = False

    def submit(self, fn: Callable[..., Any], *args, **kwargs) -> Future:
        if self._closed:
            raise RuntimeError("CallBoundary is shut down.")
        return self._executor.submit(fn, *args, **kwargs)

    def call(self, fn: Callable[..., Any], *args, **kwargs) -> Any:
        """Blocking helper for startup code and tests."""
        return self.submit(fn, *args, **kwargs).result()

    def shutdown(self, wait: bool = True):
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=wait)
        logger.debug("Call boundary shut down")

    def __enter__(self) -> "CallBoundary":
        return self

    def __exit__(self, *exc):
        self.shutdown()
