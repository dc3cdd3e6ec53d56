"""Tests for selection handling (last selection wins) and logging setup."""

import logging
import threading

import pytest

from forestlens.errors import DataAcquisitionError
from forestlens.pipeline import DatasetProcessor, ViewOrchestrator, setup_logging

pytestmark = pytest.mark.unit


class GatedProcessor(DatasetProcessor):
    """Processor whose loads block until the test opens the dataset's gate."""

    def __init__(self, config):
        super().__init__(config)
        self.gates = {key: threading.Event() for key in config.datasets}
        self.loaded = []

    def load(self, dataset_key=None):
        self.gates[dataset_key].wait(timeout=5)
        self.loaded.append(dataset_key)
        return super().load(dataset_key)


@pytest.fixture
def synthetic_config(make_config, temp_dir):
    # Nothing in temp_dir, so every load is the seeded synthetic fallback
    return make_config(data_dir=str(temp_dir), synthetic_seed=11)


class TestSelection:

    def test_select_then_poll(self, synthetic_config):
        orch = ViewOrchestrator(synthetic_config)

        request_id = orch.select("glad")
        dataset = orch.poll(block=True, timeout=5)
        orch.stop()

        assert request_id == 1
        assert dataset.key == "glad"
        assert orch.current is dataset

    def test_unknown_dataset(self, synthetic_config):
        with pytest.raises(KeyError):
            ViewOrchestrator(synthetic_config).select("amazon")

    def test_default_selection(self, synthetic_config):
        orch = ViewOrchestrator(synthetic_config)

        orch.select()
        dataset = orch.poll(block=True, timeout=5)
        orch.stop()

        assert dataset.key == synthetic_config.selection.dataset

    def test_request_ids_increase(self, synthetic_config):
        orch = ViewOrchestrator(synthetic_config)

        ids = [orch.select("glad"), orch.select("jrc_cover"), orch.select("glad")]
        orch.stop()

        assert ids == [1, 2, 3]
        assert orch.latest_request == 3

    def test_finished_fetchers_are_released(self, synthetic_config):
        orch = ViewOrchestrator(synthetic_config)

        for key in ("glad", "jrc_cover", "io_class"):
            orch.select(key)
            orch.poll(block=True, timeout=5)
            orch._fetchers[-1].join(timeout=5)

        latest = orch.select("glad")
        kept = list(orch._fetchers)
        dataset = orch.poll(block=True, timeout=5)
        orch.stop()

        assert [f.request_id for f in kept] == [latest]
        assert dataset.key == "glad"

    def test_stale_result_is_discarded(self, synthetic_config):
        processor = GatedProcessor(synthetic_config)
        orch = ViewOrchestrator(synthetic_config, processor=processor)

        orch.select("glad")
        orch.select("jrc_cover")
        processor.gates["jrc_cover"].set()
        dataset = orch.poll(block=True, timeout=5)

        assert dataset.key == "jrc_cover"

        # The earlier selection finishes late and must not replace it
        processor.gates["glad"].set()
        orch.stop()
        assert orch.poll() is None
        assert orch.current.key == "jrc_cover"
        assert orch.discarded == 1
        assert processor.loaded == ["jrc_cover", "glad"]

    def test_stale_result_arriving_first_is_discarded(self, synthetic_config):
        processor = GatedProcessor(synthetic_config)
        orch = ViewOrchestrator(synthetic_config, processor=processor)

        orch.select("glad")
        orch.select("io_class")
        processor.gates["glad"].set()
        orch._fetchers[0].join(timeout=5)
        processor.gates["io_class"].set()

        dataset = orch.poll(block=True, timeout=5)
        orch.stop()

        assert dataset.key == "io_class"
        assert orch.discarded == 1

    def test_latest_error_is_raised(self, make_config, temp_dir):
        config = make_config(data_dir=str(temp_dir), synthetic_fallback=False)
        orch = ViewOrchestrator(config)

        orch.select("glad")
        with pytest.raises(DataAcquisitionError):
            orch.poll(block=True, timeout=5)
        orch.stop()
        assert orch.current is None

    def test_poll_without_result(self, synthetic_config):
        assert ViewOrchestrator(synthetic_config).poll() is None


class TestDerive:

    def test_derive_before_load(self, synthetic_config):
        with pytest.raises(RuntimeError, match="No dataset loaded"):
            ViewOrchestrator(synthetic_config).derive()

    def test_derive_on_accepted_dataset(self, synthetic_config):
        orch = ViewOrchestrator(synthetic_config)
        orch.select("glad")
        orch.poll(block=True, timeout=5)
        orch.stop()

        result = orch.derive(mode="forest_change")

        assert result.dataset.key == "glad"
        assert result.views
        assert {v.value for v in result.views} <= {"gain", "loss", "stable"}
        assert all(r.synthetic for r in result.dataset.records)


class TestSetupLogging:

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()
        for handler in handlers:
            root.addHandler(handler)
        root.setLevel(level)

    def test_console_only(self, internal_config):
        assert setup_logging(internal_config) is None
        assert len(logging.getLogger().handlers) == 1

    def test_file_handler_per_dataset(self, make_config, output_dirs):
        config = make_config(dataset="glad")

        log_path = setup_logging(config, output_dirs["logs"])
        logging.getLogger("forestlens.test").info("hello from glad")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert log_path == output_dirs["logs"] / "forestlens_glad.log"
        assert "hello from glad" in log_path.read_text()

    def test_level_from_config(self, param_config):
        from forestlens.schemas import CLIConfig, resolve_config

        config = resolve_config(param_config, None, CLIConfig(log_level="WARNING"))
        setup_logging(config)

        assert logging.getLogger().level == logging.WARNING
