import threading
from contextlib import contextmanager
from typing import Callable

from loguru import logger

# Scopes a write can invalidate; "full" means everything
SCOPES = (
    "account", "transaction", "category", "budget", "goal",
    "bill", "loan", "plan", "settings", "full",
)

Listener = Callable[[str], None]


class ChangeNotifier:
    """Fan-out of "data in <scope> changed" after a successful write.

    Listeners are called on the thread that did the write. A UI listener
    has to marshal onto its own thread itself.
    """

    def __init__(self):
        self._listeners: list[Listener] = []
        self._lock = threading.Lock()
        self._batch_depth = 0
        self._pending: set[str] = set()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def emit(self, scope: str = "full"):
        if scope not in SCOPES:
            scope = "full"
        with self._lock:
            if self._batch_depth:
                self._pending.add(scope)
                return
        self._dispatch(scope)

    @contextmanager
    def batch(self):
        """Hold emits until the block ends, then send each scope once.

        More than one distinct scope collapses into a single "full".
        """
        with self._lock:
            self._batch_depth += 1
        try:
            yield self
        finally:
            with self._lock:
                self._batch_depth -= 1
                pending = set()
                if self._batch_depth == 0:
                    pending, self._pending = self._pending, set()
            if len(pending) == 1:
                self._dispatch(pending.pop())
            elif pending:
                self._dispatch("full")

    def _dispatch(self, scope: str):
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(scope)
            except Exception:
                logger.exception(f"Change listener failed for scope {scope!r}")
