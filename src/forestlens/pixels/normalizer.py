"""Normalize raw tabular rows into canonical PixelRecords.

One normalizer handles all five dataset shapes. Each raw row (a mapping of
column name to scalar, as produced by a CSV reader) is dispatched on the
dataset's ``DatasetKind`` to a shape handler, which validates the mandatory
fields, applies the shape's no-data rule, and builds the record(s).

Rules shared by every shape:
- Column names are stripped of surrounding whitespace.
- ``x`` and ``y`` must parse to finite numbers, otherwise the row is dropped.
- The pixel id comes from the load's ``PixelIndex`` before the record exists.
- A no-data sentinel produces ``validity=False``, never an error.

Shape rules:
- multi-metric / canopy time series: ``year`` is mandatory and must fall in
  the dataset's declared range; metrics that fail to parse become 0.0.
- forest change: valid iff ``datamask`` equals the configured valid value;
  ``forest_loss_year = loss_year_offset + lossyear`` when ``lossyear > 0``.
- multi-year classification: one row expands to one record per declared
  year; ``dominant_class`` is the first declared year's class.
- binary cover: valid iff the value field is not the sentinel; forest iff 1.
"""

import logging
import math
from typing import TYPE_CHECKING, Mapping, Optional

import pandas as pd

from forestlens.errors import InvalidRecordError, DataQualityError
from forestlens.pixels.pixel_index import PixelIndex
from forestlens.pixels.records import (
    DatasetKind,
    PixelRecord,
    ForestChangeAttributes,
    ClassificationAttributes,
    BinaryCoverAttributes,
)

if TYPE_CHECKING:
    from forestlens.schemas import InternalConfig

__all__ = ['RecordNormalizer', 'NormalizationResult']

logger = logging.getLogger(__name__)

CANOPY_METRIC = "canopy_cover"


class NormalizationResult:
    """Records produced from one table, plus what was dropped on the way.

    Attributes
    ----------
    records : list of PixelRecord
        All normalized records, including ``validity=False`` ones.
    index : PixelIndex
        The index that assigned this load's pixel ids.
    dropped_rows : int
        Rows discarded because they failed to parse.
    duplicates_dropped : int
        Records discarded under the ``keep_first`` duplicate policy.
    """

    def __init__(self, records, index, dropped_rows=0, duplicates_dropped=0):
        self.records = records
        self.index = index
        self.dropped_rows = dropped_rows
        self.duplicates_dropped = duplicates_dropped

    @property
    def valid_records(self) -> list:
        """Records that passed the no-data check."""
        return [r for r in self.records if r.validity]

    @property
    def invalid_count(self) -> int:
        return sum(1 for r in self.records if not r.validity)


class RecordNormalizer:
    """Convert raw rows of one dataset into ``PixelRecord`` objects.

    Parameters
    ----------
    config : InternalConfig
        Fully validated runtime configuration.
    dataset_key : str, optional
        Registry key of the dataset being normalized. Defaults to the
        selected dataset.

    Examples
    --------
    >>> normalizer = RecordNormalizer(config, "glad")
    >>> index = PixelIndex()
    >>> row = {"x": 175.08, "y": -41.14, "datamask": 1, "gain": 1,
    ...        "lossyear": 0, "treecover2000": 80}
    >>> [record] = normalizer.normalize_row(row, index)
    >>> record.attributes.has_forest_gain, record.attributes.forest_loss_year
    (True, None)
    """

    def __init__(self, config: "InternalConfig", dataset_key: Optional[str] = None):
        self.config = config
        self.dataset_key = dataset_key or config.selection.dataset
        self.dataset = config.datasets[self.dataset_key]
        self.kind = DatasetKind(self.dataset.kind)
        self.precision = config.normalizer.coord_precision
        self.sentinel = config.normalizer.nodata_sentinel
        self.loss_year_offset = config.normalizer.loss_year_offset
        self.valid_datamask = config.normalizer.valid_datamask
        self.duplicate_policy = config.normalizer.duplicate_policy
        self.metric_columns = {
            name: metric.source_column for name, metric in config.metrics.items()
        }

        self._handlers = {
            DatasetKind.MULTI_METRIC_TIME_SERIES: self._normalize_multi_metric,
            DatasetKind.CANOPY_TIME_SERIES: self._normalize_canopy,
            DatasetKind.FOREST_CHANGE: self._normalize_forest_change,
            DatasetKind.MULTI_YEAR_CLASSIFICATION: self._normalize_classification,
            DatasetKind.BINARY_COVER: self._normalize_binary_cover,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def normalize_row(self, row: Mapping, index: PixelIndex, synthetic: bool = False) -> list:
        """Normalize one raw row.

        Parameters
        ----------
        row : Mapping
            Column name -> scalar. Numeric strings are accepted.
        index : PixelIndex
            Index owned by the current load.
        synthetic : bool, default False
            Mark the produced records as synthetic.

        Returns
        -------
        list of PixelRecord
            One record, or one per declared year for classification data.

        Raises
        ------
        InvalidRecordError
            If coordinates, year, or a required shape field does not parse,
            or the year is outside the declared range.
        """
        clean = {str(key).strip(): value for key, value in row.items()}
        x = self._to_number(clean, "x")
        y = self._to_number(clean, "y")
        handler = self._handlers[self.kind]
        records = handler(clean, x, y, index)
        if synthetic:
            records = [self._mark_synthetic(r) for r in records]
        return records

    def normalize_table(self, rows, index: Optional[PixelIndex] = None,
                        synthetic: bool = False) -> NormalizationResult:
        """Normalize a whole table, dropping rows that fail to parse.

        Parameters
        ----------
        rows : pd.DataFrame or iterable of Mapping
            Parsed table.
        index : PixelIndex, optional
            Index for this load. A fresh one is created when omitted.
        synthetic : bool, default False
            Mark all records as synthetic.

        Returns
        -------
        NormalizationResult

        Raises
        ------
        DataQualityError
            If two records share (pixel_id, year) and the duplicate policy
            is "error".
        """
        if index is None:
            index = PixelIndex(self.precision)
        if isinstance(rows, pd.DataFrame):
            rows = rows.to_dict(orient="records")

        records = []
        dropped = 0
        for row_number, row in enumerate(rows):
            try:
                records.extend(self.normalize_row(row, index, synthetic=synthetic))
            except InvalidRecordError as e:
                dropped += 1
                logger.debug("Dropped row %d of %s: %s", row_number, self.dataset_key, e)

        if dropped:
            logger.warning("%s: dropped %d unparseable rows", self.dataset_key, dropped)

        records, duplicates = self._resolve_duplicates(records)

        result = NormalizationResult(records, index, dropped, duplicates)
        logger.info(
            "%s: %d records, %d unique pixels, %d no-data",
            self.dataset_key, len(records), len(index), result.invalid_count,
        )
        return result

    # ------------------------------------------------------------------
    # Shape handlers
    # ------------------------------------------------------------------

    def _normalize_multi_metric(self, row, x, y, index):
        year = self._require_year(row)
        metrics = {
            name: self._to_metric(row, column)
            for name, column in self.metric_columns.items()
        }
        return [self._build(index, x, y, year, metrics)]

    def _normalize_canopy(self, row, x, y, index):
        year = self._require_year(row)
        column = self.metric_columns.get(CANOPY_METRIC, CANOPY_METRIC)
        metrics = {CANOPY_METRIC: self._to_metric(row, column)}
        return [self._build(index, x, y, year, metrics)]

    def _normalize_forest_change(self, row, x, y, index):
        datamask = int(self._to_number(row, "datamask"))
        gain = int(self._to_number(row, "gain"))
        lossyear = int(self._to_number(row, "lossyear"))
        tree_cover = self._to_number(row, "treecover2000")

        attributes = ForestChangeAttributes(
            datamask=datamask,
            gain=gain,
            lossyear=lossyear,
            baseline_tree_cover=tree_cover,
            forest_loss_year=self.loss_year_offset + lossyear if lossyear > 0 else None,
            has_forest_gain=gain == 1,
        )
        metrics = {"baseline_tree_cover": tree_cover}
        return [self._build(index, x, y, None, metrics,
                            validity=datamask == self.valid_datamask,
                            attributes=attributes)]

    def _normalize_classification(self, row, x, y, index):
        years = self.dataset.years
        class_by_year = {
            year: int(self._to_number(row, f"class_{year}")) for year in years
        }
        dominant_class = class_by_year[years[0]]
        has_temporal_change = len(set(class_by_year.values())) > 1
        pixel_has_data = dominant_class != self.sentinel

        pixel_id = index.assign(x, y)
        records = []
        for year in years:
            land_class = class_by_year[year]
            attributes = ClassificationAttributes(
                land_class=land_class,
                class_by_year=class_by_year,
                dominant_class=dominant_class,
                has_temporal_change=has_temporal_change,
            )
            records.append(PixelRecord(
                pixel_id=pixel_id,
                x=x,
                y=y,
                dataset_kind=self.kind,
                year=year,
                metrics={"land_class": float(land_class)},
                validity=pixel_has_data and land_class != self.sentinel,
                attributes=attributes,
            ))
        return records

    def _normalize_binary_cover(self, row, x, y, index):
        field_name = self.dataset.value_field
        raw_value = int(self._to_number(row, field_name))
        attributes = BinaryCoverAttributes(
            source_field=field_name,
            raw_value=raw_value,
            is_forest=raw_value == 1,
        )
        metrics = {field_name: float(raw_value)}
        return [self._build(index, x, y, None, metrics,
                            validity=raw_value != self.sentinel,
                            attributes=attributes)]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _build(self, index, x, y, year, metrics, validity=True, attributes=None):
        return PixelRecord(
            pixel_id=index.assign(x, y),
            x=x,
            y=y,
            dataset_kind=self.kind,
            year=year,
            metrics=metrics,
            validity=validity,
            attributes=attributes,
        )

    @staticmethod
    def _mark_synthetic(record):
        return PixelRecord(
            pixel_id=record.pixel_id,
            x=record.x,
            y=record.y,
            dataset_kind=record.dataset_kind,
            year=record.year,
            metrics=record.metrics,
            validity=record.validity,
            attributes=record.attributes,
            synthetic=True,
        )

    @staticmethod
    def _to_number(row, field_name) -> float:
        """Parse a required numeric field or raise InvalidRecordError."""
        if field_name not in row:
            raise InvalidRecordError(f"missing field '{field_name}'")
        value = row[field_name]
        if value is None or isinstance(value, bool):
            raise InvalidRecordError(f"field '{field_name}' is not numeric: {value!r}")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise InvalidRecordError(f"field '{field_name}' is not numeric: {value!r}") from None
        if not math.isfinite(number):
            raise InvalidRecordError(f"field '{field_name}' is not finite: {value!r}")
        return number

    @staticmethod
    def _to_metric(row, column) -> float:
        """Parse an optional metric; anything unparseable becomes 0.0."""
        try:
            number = float(row.get(column))
        except (TypeError, ValueError):
            return 0.0
        return number if math.isfinite(number) else 0.0

    def _require_year(self, row) -> int:
        number = self._to_number(row, "year")
        if not number.is_integer():
            raise InvalidRecordError(f"year is not an integer: {number}")
        year = int(number)
        first, last = self.dataset.years[0], self.dataset.years[-1]
        if not first <= year <= last:
            raise InvalidRecordError(f"year {year} outside {first}-{last}")
        return year

    def _resolve_duplicates(self, records):
        """Enforce one record per (pixel_id, year)."""
        seen = set()
        kept = []
        duplicates = []
        for record in records:
            key = (record.pixel_id, record.year)
            if key in seen:
                duplicates.append(key)
                continue
            seen.add(key)
            kept.append(record)

        if duplicates and self.duplicate_policy == "error":
            pixel_id, year = duplicates[0]
            raise DataQualityError(
                f"{self.dataset_key}: {len(duplicates)} duplicate records, "
                f"first at pixel_id={pixel_id} year={year}"
            )
        if duplicates:
            logger.warning("%s: dropped %d duplicate records (keep_first)",
                           self.dataset_key, len(duplicates))
        return kept, len(duplicates)
