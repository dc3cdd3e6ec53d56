"""Tests for raw row normalization across the five dataset shapes."""

import pandas as pd
import pytest

from forestlens.errors import DataQualityError, InvalidRecordError
from forestlens.pixels import DatasetKind, PixelIndex, RecordNormalizer

from tests.helpers.tables import (
    IO_YEARS,
    PIXELS,
    binary_row,
    glad_row,
    io_row,
    multi_metric_row,
)

pytestmark = pytest.mark.unit

X, Y = PIXELS[0]


class TestMultiMetric:

    def test_metrics_mapped_from_source_columns(self, normalize):
        [record] = normalize("mangaroa", [multi_metric_row(X, Y, 2020, carbon_stock=12.5)])

        assert record.dataset_kind == DatasetKind.MULTI_METRIC_TIME_SERIES
        assert record.year == 2020
        assert record.metrics["carbon_stock"] == 12.5
        assert set(record.metrics) == {
            "canopy_cover", "tree_height", "living_biomass", "carbon_stock", "diversity_index",
        }
        assert record.validity is True

    def test_unparseable_metric_becomes_zero(self, normalize):
        row = multi_metric_row(X, Y, 2020)
        row["tree_height"] = "n/a"
        del row["living_biomass"]

        [record] = normalize("mangaroa", [row])

        assert record.metrics["tree_height"] == 0.0
        assert record.metrics["living_biomass"] == 0.0

    def test_numeric_strings_accepted(self, normalize):
        row = multi_metric_row(" 175.5 ", "-41.2", "2019", canopy_cover="63.5")
        [record] = normalize("mangaroa", [row])

        assert record.x == 175.5
        assert record.year == 2019
        assert record.metrics["canopy_cover"] == 63.5

    def test_column_names_are_stripped(self, normalize):
        row = {f" {k} ": v for k, v in multi_metric_row(X, Y, 2020, canopy_cover=41.0).items()}
        [record] = normalize("mangaroa", [row])

        assert record.metrics["canopy_cover"] == 41.0

    def test_same_coordinates_share_pixel_id(self, normalize):
        rows = [multi_metric_row(X, Y, year) for year in (2013, 2014, 2015)]
        rows.append(multi_metric_row(*PIXELS[1], 2013))

        records = normalize("mangaroa", rows)

        assert [r.pixel_id for r in records] == [0, 0, 0, 1]


class TestCanopy:

    def test_only_canopy_metric_kept(self, normalize):
        [record] = normalize("mangaroa_canopy", [multi_metric_row(X, Y, 2016, canopy_cover=72.0)])

        assert record.dataset_kind == DatasetKind.CANOPY_TIME_SERIES
        assert record.metrics == {"canopy_cover": 72.0}


class TestRowRejection:

    @pytest.mark.parametrize("bad", [None, "", "abc", float("nan"), float("inf")])
    def test_bad_coordinate_drops_row(self, internal_config, bad):
        normalizer = RecordNormalizer(internal_config, "mangaroa")
        rows = [multi_metric_row(bad, Y, 2020), multi_metric_row(X, Y, 2020)]

        result = normalizer.normalize_table(rows)

        assert result.dropped_rows == 1
        assert len(result.records) == 1

    def test_normalize_row_raises_for_missing_coordinate(self, internal_config):
        normalizer = RecordNormalizer(internal_config, "mangaroa")
        row = multi_metric_row(X, Y, 2020)
        del row["x"]

        with pytest.raises(InvalidRecordError, match="missing field 'x'"):
            normalizer.normalize_row(row, PixelIndex())

    @pytest.mark.parametrize("year", [2012, 2025, "twenty", 2020.5])
    def test_bad_year_drops_row(self, internal_config, year):
        normalizer = RecordNormalizer(internal_config, "mangaroa")

        result = normalizer.normalize_table([multi_metric_row(X, Y, year)])

        assert result.dropped_rows == 1
        assert result.records == []

    def test_dropped_row_does_not_consume_pixel_id(self, internal_config):
        normalizer = RecordNormalizer(internal_config, "mangaroa")
        index = PixelIndex()
        rows = [multi_metric_row(X, Y, 1999), multi_metric_row(*PIXELS[1], 2020)]

        result = normalizer.normalize_table(rows, index)

        assert len(index) == 1
        assert result.records[0].pixel_id == 0

    def test_table_from_dataframe(self, internal_config):
        normalizer = RecordNormalizer(internal_config, "mangaroa")
        table = pd.DataFrame([multi_metric_row(X, Y, 2013), multi_metric_row(X, Y, 2014)])

        result = normalizer.normalize_table(table)

        assert [r.year for r in result.records] == [2013, 2014]


class TestDuplicates:

    def test_duplicate_pixel_year_fails_under_error_policy(self, internal_config):
        normalizer = RecordNormalizer(internal_config, "mangaroa")
        rows = [multi_metric_row(X, Y, 2020), multi_metric_row(X, Y, 2020, canopy_cover=1.0)]

        with pytest.raises(DataQualityError, match="duplicate"):
            normalizer.normalize_table(rows)

    def test_keep_first_policy_keeps_earliest(self, make_config):
        config = make_config(duplicate_policy="keep_first")
        normalizer = RecordNormalizer(config, "mangaroa")
        rows = [
            multi_metric_row(X, Y, 2020, canopy_cover=10.0),
            multi_metric_row(X, Y, 2020, canopy_cover=99.0),
        ]

        result = normalizer.normalize_table(rows)

        assert len(result.records) == 1
        assert result.records[0].metrics["canopy_cover"] == 10.0
        assert result.duplicates_dropped == 1


class TestForestChange:

    def test_gain_without_loss(self, normalize):
        [record] = normalize("glad", [glad_row(X, Y, gain=1, lossyear=0, treecover2000=80)])

        assert record.validity is True
        assert record.year is None
        assert record.attributes.has_forest_gain is True
        assert record.attributes.forest_loss_year is None
        assert record.metrics["baseline_tree_cover"] == 80.0

    def test_loss_year_offset(self, normalize):
        [record] = normalize("glad", [glad_row(X, Y, lossyear=12)])

        assert record.attributes.forest_loss_year == 2012
        assert record.attributes.has_forest_gain is False

    @pytest.mark.parametrize("datamask", [0, 2, 255])
    def test_datamask_other_than_valid_is_no_data(self, normalize, datamask):
        [record] = normalize("glad", [glad_row(X, Y, datamask=datamask)])

        assert record.validity is False

    def test_missing_required_field_drops_row(self, internal_config):
        row = glad_row(X, Y)
        del row["treecover2000"]
        result = RecordNormalizer(internal_config, "glad").normalize_table([row])

        assert result.dropped_rows == 1


class TestClassification:

    def test_one_record_per_declared_year(self, normalize):
        records = normalize("io_class", [io_row(X, Y, [11, 11, 11, 11, 11, 11, 20])])

        assert len(records) == len(IO_YEARS) == 7
        assert [r.year for r in records] == IO_YEARS
        assert {r.pixel_id for r in records} == {0}
        assert all(r.attributes.dominant_class == 11 for r in records)
        assert all(r.attributes.has_temporal_change for r in records)
        assert records[-1].attributes.land_class == 20
        assert records[-1].metrics["land_class"] == 20.0

    def test_stable_pixel_has_no_change(self, normalize):
        records = normalize("io_class", [io_row(X, Y, [2] * 7)])

        assert not any(r.attributes.has_temporal_change for r in records)

    def test_sentinel_in_first_year_invalidates_pixel(self, normalize):
        records = normalize("io_class", [io_row(X, Y, [255, 11, 11, 11, 11, 11, 11])])

        assert not any(r.validity for r in records)

    def test_sentinel_in_later_year_invalidates_that_year(self, normalize):
        records = normalize("io_class", [io_row(X, Y, [11, 11, 255, 11, 11, 11, 11])])

        assert [r.validity for r in records] == [True, True, False, True, True, True, True]

    def test_missing_year_column_drops_row(self, internal_config):
        row = io_row(X, Y, [11] * 7)
        del row["class_2020"]
        result = RecordNormalizer(internal_config, "io_class").normalize_table([row])

        assert result.records == []
        assert result.dropped_rows == 1


class TestBinaryCover:

    @pytest.mark.parametrize("value, is_forest", [(1, True), (0, False)])
    def test_forest_flag(self, normalize, value, is_forest):
        [record] = normalize("jrc_cover", [binary_row(X, Y, value)])

        assert record.validity is True
        assert record.attributes.is_forest is is_forest
        assert record.attributes.source_field == "forest_cover_2020"
        assert record.metrics == {"forest_cover_2020": float(value)}

    def test_sentinel_is_no_data(self, normalize):
        [record] = normalize("jrc_cover", [binary_row(X, Y, 255)])

        assert record.validity is False

    def test_value_field_per_dataset(self, normalize):
        [record] = normalize("jrc_type", [binary_row(X, Y, 1, field="forest_type_2020")])

        assert record.attributes.source_field == "forest_type_2020"


class TestSyntheticFlag:

    def test_synthetic_flag_propagates(self, internal_config):
        normalizer = RecordNormalizer(internal_config, "io_class")

        records = normalizer.normalize_row(io_row(X, Y, [1] * 7), PixelIndex(), synthetic=True)

        assert all(r.synthetic for r in records)
