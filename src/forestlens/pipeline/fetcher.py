"""Background dataset acquisition.

One ``DatasetFetcher`` thread loads one dataset and puts a ``FetchResult`` on
the result queue. Fetches are tagged with the request id issued by the
orchestrator so that stale results can be recognised and discarded.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from forestlens.pixels.loader import LoadedDataset

__all__ = ['DatasetFetcher', 'FetchResult']

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    """Outcome of one fetch. Exactly one of ``dataset`` and ``error`` is set."""
    request_id: int
    dataset_key: str
    dataset: Optional[LoadedDataset] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DatasetFetcher(threading.Thread):
    """Load one dataset in the background.

    Parameters
    ----------
    request_id : int
        Monotonic id of the selection that triggered this fetch.
    dataset_key : str
        Registry key of the dataset to load.
    load : callable
        ``load(dataset_key) -> LoadedDataset``, typically
        ``DatasetProcessor.load``. Injectable for testing.
    result_queue : queue.Queue
        Receives exactly one ``FetchResult``.

    Examples
    --------
    >>> fetcher = DatasetFetcher(3, "glad", processor.load, results)
    >>> fetcher.start()
    >>> results.get().request_id
    3
    """

    def __init__(self, request_id: int, dataset_key: str, load, result_queue):
        super().__init__(daemon=True, name=f"Fetcher-{dataset_key}-{request_id}")
        self.request_id = request_id
        self.dataset_key = dataset_key
        self._load = load
        self.result_queue = result_queue

    def run(self):
        logger.debug("Fetch %d started: %s", self.request_id, self.dataset_key)
        try:
            dataset = self._load(self.dataset_key)
        except Exception as e:
            # Errors travel to the caller through the queue
            logger.exception("Fetch %d of %s failed", self.request_id, self.dataset_key)
            self.result_queue.put(FetchResult(self.request_id, self.dataset_key, error=e))
            return

        self.result_queue.put(FetchResult(self.request_id, self.dataset_key, dataset=dataset))
        logger.debug("Fetch %d finished: %s", self.request_id, self.dataset_key)
