from __future__ import annotations

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal
from loguru import logger

from app.viewmodels.source_row_vm import CountRefresh
from core.services.interfaces import PhotoStore


class _CountTask(QRunnable):
    """QRunnable counting the photos of one collection in the background.

    Emits `receiver.countReady(refresh, total)` upon completion. The signal is
    delivered on the receiver's thread, so rows are only written there.
    """

    def __init__(self, *, refresh: CountRefresh, store: PhotoStore, receiver: QObject) -> None:
        super().__init__()
        self._refresh = refresh
        self._store = store
        self._receiver = receiver

    def run(self) -> None:  # type: ignore[override]
        try:
            total = self._store.count_photos(self._refresh.location)
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.error("Count task failed for {}: {}", self._refresh.location, ex)
            return
        self._receiver.countReady.emit(self._refresh, total)  # type: ignore[attr-defined]


class CountTaskRunner(QObject):
    """Dispatches row recounts to a thread pool and applies the results.

    `totalApplied(row)` fires after a row accepted a fresh total; results for a
    location the row has since moved away from are dropped silently.
    """

    countReady = Signal(object, int)  # CountRefresh, total
    totalApplied = Signal(object)  # SourceRowVM

    def __init__(
        self, store: PhotoStore, parent: QObject | None = None, pool: QThreadPool | None = None
    ) -> None:
        super().__init__(parent)
        self._store = store
        self._pool = pool or QThreadPool.globalInstance()
        self.countReady.connect(self._on_count_ready)

    def request(self, refresh: CountRefresh | None) -> None:
        """Schedule `refresh`; None (nothing to recount) is ignored."""
        if refresh is None:
            return
        task = _CountTask(refresh=refresh, store=self._store, receiver=self)
        self._pool.start(task)

    def wait(self, msecs: int = -1) -> bool:
        """Block until every scheduled count finished."""
        return self._pool.waitForDone(msecs)

    def _on_count_ready(self, refresh: CountRefresh, total: int) -> None:
        if refresh.row.apply_total(refresh, total):
            self.totalApplied.emit(refresh.row)
