"""Tests for background dataset fetching."""

import queue

import pytest

from forestlens.errors import DataAcquisitionError
from forestlens.pipeline import DatasetFetcher, FetchResult

pytestmark = pytest.mark.unit


class TestDatasetFetcher:

    def test_success_result(self):
        results = queue.Queue()
        sentinel = object()

        fetcher = DatasetFetcher(4, "glad", lambda key: sentinel, results)
        fetcher.start()
        fetcher.join(timeout=5)

        result = results.get_nowait()
        assert result.request_id == 4
        assert result.dataset_key == "glad"
        assert result.dataset is sentinel
        assert result.ok

    def test_error_travels_through_queue(self):
        results = queue.Queue()

        def failing_load(key):
            raise DataAcquisitionError(f"{key} unavailable")

        fetcher = DatasetFetcher(1, "mangaroa", failing_load, results)
        fetcher.start()
        fetcher.join(timeout=5)

        result = results.get_nowait()
        assert not result.ok
        assert isinstance(result.error, DataAcquisitionError)
        assert result.dataset is None
        assert results.empty()

    def test_thread_is_daemon_and_named(self):
        fetcher = DatasetFetcher(9, "io_class", lambda key: None, queue.Queue())

        assert fetcher.daemon
        assert fetcher.name == "Fetcher-io_class-9"

    def test_fetch_result_ok_flag(self):
        assert FetchResult(1, "glad").ok
        assert not FetchResult(1, "glad", error=ValueError("x")).ok
