import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from bookreviews.errors import FetchCancelled
from bookreviews.sync.listener import BookSynchronizationListener
from bookreviews.sync.types import SynchronizationRequest


logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    processed: int = 0
    failed: int = 0
    redeliveries: int = 0
    dead_letters: List[SynchronizationRequest] = field(default_factory=list)
    # Requests abandoned because the worker was cancelled; not dead letters
    cancelled: List[SynchronizationRequest] = field(default_factory=list)


# Final state of one request
_PROCESSED = "processed"
_DEAD_LETTERED = "dead_lettered"
_CANCELLED = "cancelled"


class SyncWorker:
    """
    Local event source: hands requests to the listener on a thread pool and
    redelivers a request whose consumption raised, up to ``max_deliveries``
    times. Requests that keep failing end up in ``SyncReport.dead_letters``;
    requests abandoned by ``cancel()`` end up in ``SyncReport.cancelled``.
    """

    def __init__(
        self,
        listener: BookSynchronizationListener,
        workers: int = 4,
        max_deliveries: int = 3,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.listener = listener
        self.workers = max(1, workers)
        self.max_deliveries = max(1, max_deliveries)
        self.cancel_event = cancel_event or threading.Event()
        self._lock = threading.Lock()

    def cancel(self) -> None:
        self.cancel_event.set()

    def _deliver(self, request: SynchronizationRequest, report: SyncReport) -> str:
        for delivery in range(1, self.max_deliveries + 1):
            if self.cancel_event.is_set():
                return _CANCELLED
            if delivery > 1:
                with self._lock:
                    report.redeliveries += 1
            try:
                self.listener.consume(request, cancel_event=self.cancel_event)
                return _PROCESSED
            except FetchCancelled:
                logger.info("Synchronization cancelled isbn=%s", request.isbn)
                return _CANCELLED
            except Exception:
                if delivery == self.max_deliveries:
                    logger.exception(
                        "Dead-lettering isbn=%s after %s deliveries", request.isbn, delivery
                    )
                else:
                    logger.warning(
                        "Delivery %s/%s failed for isbn=%s, redelivering",
                        delivery,
                        self.max_deliveries,
                        request.isbn,
                        exc_info=True,
                    )
        return _DEAD_LETTERED

    def run(self, requests: Iterable[SynchronizationRequest]) -> SyncReport:
        report = SyncReport()
        start = time.perf_counter()
        requests = list(requests)
        logger.info(
            "Starting synchronization of %s requests workers=%s max_deliveries=%s",
            len(requests),
            self.workers,
            self.max_deliveries,
        )

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = {executor.submit(self._deliver, request, report): request for request in requests}
            for future in as_completed(futures):
                request = futures[future]
                state = future.result()
                with self._lock:
                    if state == _PROCESSED:
                        report.processed += 1
                    elif state == _CANCELLED:
                        report.cancelled.append(request)
                    else:
                        report.failed += 1
                        report.dead_letters.append(request)

        duration = time.perf_counter() - start
        logger.info(
            "Finished synchronization processed=%s failed=%s cancelled=%s redeliveries=%s duration=%.2fs",
            report.processed,
            report.failed,
            len(report.cancelled),
            report.redeliveries,
            duration,
        )
        return report
