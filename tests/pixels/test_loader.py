"""Tests for dataset acquisition and the synthetic fallback."""

import pytest

from forestlens.errors import DataAcquisitionError
from forestlens.pixels import DatasetKind, DatasetLoader

from tests.helpers.tables import PIXELS, glad_row, series_rows, write_csv

pytestmark = pytest.mark.integration


@pytest.fixture
def data_config(make_config, temp_dir):
    """Config reading dataset files from a temp directory, seeded fallback."""
    return make_config(data_dir=str(temp_dir), synthetic_seed=7)


class TestReadTable:

    def test_comma_delimited(self, data_config, temp_dir):
        path = write_csv(temp_dir / "glad.csv", [glad_row(*PIXELS[0]), glad_row(*PIXELS[1])])

        table = DatasetLoader(data_config).read_table(path)

        assert len(table) == 2
        assert list(table.columns) == ["x", "y", "datamask", "gain", "lossyear", "treecover2000"]

    def test_tab_delimited_with_padded_header(self, data_config, temp_dir):
        path = temp_dir / "tabbed.tsv"
        path.write_text(" x \t y \tdatamask\n175.1\t-41.1\t1\n\n175.2\t-41.1\t1\n")

        table = DatasetLoader(data_config).read_table(path)

        assert list(table.columns) == ["x", "y", "datamask"]
        assert len(table) == 2

    def test_missing_file(self, data_config, temp_dir):
        with pytest.raises(DataAcquisitionError, match="not found"):
            DatasetLoader(data_config).read_table(temp_dir / "nope.csv")

    def test_header_only_file(self, data_config, temp_dir):
        path = temp_dir / "empty.csv"
        path.write_text("x,y,datamask\n")

        with pytest.raises(DataAcquisitionError, match="no rows"):
            DatasetLoader(data_config).read_table(path)

    def test_zero_byte_file(self, data_config, temp_dir):
        path = temp_dir / "zero.csv"
        path.write_text("")

        with pytest.raises(DataAcquisitionError):
            DatasetLoader(data_config).read_table(path)


class TestLoad:

    def test_real_file(self, data_config, temp_dir):
        rows = series_rows({PIXELS[0]: [10.0, 20.0, 30.0], PIXELS[1]: [5.0, None, 7.0]},
                           years=[2013, 2014, 2015])
        write_csv(temp_dir / data_config.datasets["mangaroa"].file, rows)

        dataset = DatasetLoader(data_config).load("mangaroa")

        assert dataset.synthetic is False
        assert dataset.kind == DatasetKind.MULTI_METRIC_TIME_SERIES
        assert dataset.source.endswith(data_config.datasets["mangaroa"].file)
        assert len(dataset.records) == 5
        assert len(dataset.index) == 2
        assert dataset.years == [2013, 2014, 2015]
        assert dataset.acquisition_error is None

    def test_defaults_to_selected_dataset(self, make_config, temp_dir):
        config = make_config(data_dir=str(temp_dir), dataset="glad")
        write_csv(temp_dir / config.datasets["glad"].file, [glad_row(*PIXELS[0], datamask=0)])

        dataset = DatasetLoader(config).load()

        assert dataset.key == "glad"
        assert dataset.valid_records == []
        assert len(dataset.records) == 1

    def test_dropped_rows_reported(self, data_config, temp_dir):
        rows = [glad_row(*PIXELS[0]), glad_row("bad", -41.0)]
        write_csv(temp_dir / data_config.datasets["glad"].file, rows)

        dataset = DatasetLoader(data_config).load("glad")

        assert dataset.dropped_rows == 1
        assert len(dataset.records) == 1

    def test_absolute_file_path_ignores_data_dir(self, make_config, temp_dir):
        path = write_csv(temp_dir / "elsewhere.csv", [glad_row(*PIXELS[0])])
        config = make_config(data_dir="/does/not/exist", datasets={"glad": {"file": str(path)}})

        assert DatasetLoader(config).path_for("glad") == path

    def test_missing_file_falls_back_to_synthetic(self, data_config):
        dataset = DatasetLoader(data_config).load("io_class")

        assert dataset.synthetic is True
        assert dataset.source == "synthetic"
        assert "not found" in dataset.acquisition_error
        assert dataset.records
        assert all(r.synthetic for r in dataset.records)
        assert dataset.years == data_config.datasets["io_class"].years

    def test_fallback_disabled_raises(self, make_config, temp_dir):
        config = make_config(data_dir=str(temp_dir), synthetic_fallback=False)

        with pytest.raises(DataAcquisitionError):
            DatasetLoader(config).load("mangaroa")

    def test_each_load_gets_fresh_index(self, data_config):
        loader = DatasetLoader(data_config)

        first = loader.load("glad")
        second = loader.load("jrc_cover")

        assert first.index is not second.index
        assert min(r.pixel_id for r in second.records) == 0
