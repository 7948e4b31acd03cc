from bookreviews.sync.listener import BookSynchronizationListener
from bookreviews.sync.types import SynchronizationRequest, SyncOutcome
from bookreviews.sync.worker import SyncReport, SyncWorker

__all__ = [
    "BookSynchronizationListener",
    "SynchronizationRequest",
    "SyncOutcome",
    "SyncReport",
    "SyncWorker",
]
