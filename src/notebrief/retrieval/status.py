"""Push-style status channel for index progress and engine notices."""
import logging
from typing import Callable

from ..errors import RetrievalError
from ..models import IndexingProgress, IndexingStage

logger = logging.getLogger(__name__)

ProgressListener = Callable[[IndexingProgress], None]
NoticeListener = Callable[[RetrievalError], None]


class StatusChannel:
    """Fan-out of progress events and error notices to subscribed listeners.

    A failing listener is logged and skipped; it never breaks indexing or
    retrieval.
    """

    def __init__(self) -> None:
        self._progress_listeners: list[ProgressListener] = []
        self._notice_listeners: list[NoticeListener] = []
        self.last_progress: IndexingProgress | None = None

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Register a progress listener. Returns an unsubscribe function."""
        self._progress_listeners.append(listener)
        return lambda: self._remove(self._progress_listeners, listener)

    def subscribe_notices(self, listener: NoticeListener) -> Callable[[], None]:
        """Register a notice listener. Returns an unsubscribe function."""
        self._notice_listeners.append(listener)
        return lambda: self._remove(self._notice_listeners, listener)

    def progress(
        self,
        stage: IndexingStage,
        current: int = 0,
        total: int = 0,
        current_document: str | None = None,
        error: str | None = None,
    ) -> None:
        event = IndexingProgress(
            stage=stage,
            current=current,
            total=total,
            current_document=current_document,
            error=error,
        )
        self.last_progress = event
        for listener in list(self._progress_listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Progress listener failed on %s", stage.value)

    def notice(self, error: RetrievalError) -> None:
        for listener in list(self._notice_listeners):
            try:
                listener(error)
            except Exception:
                logger.exception("Notice listener failed on %s", error.kind)

    def clear(self) -> None:
        self._progress_listeners.clear()
        self._notice_listeners.clear()
        self.last_progress = None

    @staticmethod
    def _remove(listeners: list, listener: Callable) -> None:
        if listener in listeners:
            listeners.remove(listener)
