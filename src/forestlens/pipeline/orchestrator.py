"""Selection handling and logging setup.

``ViewOrchestrator`` owns the current dataset selection. Each ``select``
starts a background fetch tagged with a new request id; ``poll`` accepts only
the result of the most recent request and discards stale ones, so the last
selection always wins. Derivations run synchronously on the accepted dataset.
"""

import itertools
import logging
import queue
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Optional

from forestlens.pipeline.fetcher import DatasetFetcher
from forestlens.pipeline.processor import DatasetProcessor, ViewResult
from forestlens.setup_directories import get_log_path

if TYPE_CHECKING:
    from forestlens.schemas import InternalConfig

__all__ = ['ViewOrchestrator', 'setup_logging']

logger = logging.getLogger(__name__)


def setup_logging(config: "InternalConfig", log_dir=None) -> Optional[Path]:
    """Route all forestlens logging to the console and, optionally, a file.

    Parameters
    ----------
    config : InternalConfig
        Supplies the log level and the selected dataset for the file name.
    log_dir : str or Path, optional
        Directory for ``forestlens_<dataset>.log``. Console only when None.

    Returns
    -------
    Path or None
        Path of the log file, if one was created.
    """
    level = getattr(logging, config.logging.level)
    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root = logging.getLogger()
    root.setLevel(level)
    # Replace whatever an earlier run installed
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()

    handlers = [logging.StreamHandler()]
    log_path = None
    if log_dir is not None:
        log_path = get_log_path({"logs": Path(log_dir)}, config.selection.dataset)
        handlers.insert(0, logging.FileHandler(log_path))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    logger.info("Logging: level=%s, file=%s", config.logging.level, log_path)
    return log_path


class ViewOrchestrator:
    """Coordinate dataset selection, background loading, and view derivation.

    **Last selection wins:**

    Every ``select`` call issues a new request id and starts a
    ``DatasetFetcher``. Fetches may finish in any order. ``poll`` drops every
    result whose id is not the latest issued one, so a slow fetch for an
    earlier selection can never replace the dataset of a newer selection.

    Example usage::

        orch = ViewOrchestrator(config, output_dirs)
        orch.select("glad")
        orch.select("mangaroa")          # supersedes the glad request
        dataset = orch.poll(block=True, timeout=30)
        result = orch.derive(mode="trend_analysis", metric="canopy_cover")
        orch.stop()
    """

    def __init__(self, config: "InternalConfig", output_dirs: Optional[Dict[str, Path]] = None,
                 processor: Optional[DatasetProcessor] = None):
        self.config = config
        self.output_dirs = output_dirs
        self.processor = processor or DatasetProcessor(config, output_dirs)

        self.result_queue = queue.Queue()
        self._request_ids = itertools.count(1)
        self._latest_request = 0
        self._lock = threading.Lock()
        self._fetchers = []

        self.current = None
        self.discarded = 0

    @property
    def latest_request(self) -> int:
        """Id of the most recent selection (0 before the first one)."""
        with self._lock:
            return self._latest_request

    def select(self, dataset_key: Optional[str] = None) -> int:
        """Start loading ``dataset_key`` and make it the pending selection.

        Returns
        -------
        int
            Request id of this selection.

        Raises
        ------
        KeyError
            If the dataset is not in the registry.
        """
        dataset_key = dataset_key or self.config.selection.dataset
        if dataset_key not in self.config.datasets:
            raise KeyError(f"Unknown dataset '{dataset_key}'")

        with self._lock:
            request_id = next(self._request_ids)
            self._latest_request = request_id

        fetcher = DatasetFetcher(request_id, dataset_key, self.processor.load, self.result_queue)
        self._fetchers = [f for f in self._fetchers if f.is_alive()]
        self._fetchers.append(fetcher)
        fetcher.start()
        logger.info("Selection %d: %s", request_id, dataset_key)
        return request_id

    def poll(self, block: bool = False, timeout: Optional[float] = None):
        """Accept the result of the latest selection, if it has arrived.

        Parameters
        ----------
        block : bool, default False
            Wait for a result instead of returning immediately.
        timeout : float, optional
            Maximum seconds to wait per queued result when ``block`` is True.

        Returns
        -------
        LoadedDataset or None
            The newly accepted dataset, or None if the latest result has not
            arrived yet.

        Raises
        ------
        Exception
            The error raised by the latest fetch, re-raised here.
        """
        while True:
            try:
                result = self.result_queue.get(block=block, timeout=timeout)
            except queue.Empty:
                return None

            if result.request_id != self.latest_request:
                self.discarded += 1
                logger.info("Discarded stale result %d (%s); latest is %d",
                            result.request_id, result.dataset_key, self.latest_request)
                continue

            if not result.ok:
                raise result.error
            self.current = result.dataset
            return self.current

    def derive(self, mode=None, metric: Optional[str] = None, params=None,
               export: bool = False) -> ViewResult:
        """Derive views from the accepted dataset.

        Raises
        ------
        RuntimeError
            If no dataset has been accepted yet.
        ViewConfigurationError
            If the mode or metric does not fit the dataset shape.
        """
        if self.current is None:
            raise RuntimeError("No dataset loaded; call select() and poll() first")

        return self.processor.build_result(self.current, mode, metric, params, export=export)

    def stop(self, timeout: float = 5.0):
        """Wait for outstanding fetch threads to finish."""
        for fetcher in self._fetchers:
            if fetcher.is_alive():
                fetcher.join(timeout=timeout)
                if fetcher.is_alive():
                    logger.warning("%s did not stop cleanly", fetcher.name)
        self._fetchers = [f for f in self._fetchers if f.is_alive()]
