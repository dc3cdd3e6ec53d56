"""Derive per-pixel analytical views from normalized records.

The engine is a pure function of (records, mode, metric, params): nothing is
cached between calls and every call recomputes over the full record set.
Modes that need data a dataset shape does not have are refused with
``ViewConfigurationError`` instead of degrading to empty output.

Modes
-----
current_value          value of ``metric`` at ``year`` (or per pixel, static data)
change_from_baseline   metric(year) - metric(baseline_year); pixels without a
                       baseline record are skipped
trend_analysis         OLS slope of metric vs year per pixel; value is the mean
correlation            per-pixel pair of metrics at ``year`` plus Pearson r
binary_classification  gain/loss/stable or forest/non_forest labels
forest_change          gain/loss/stable with loss year and baseline tree cover
change_detection       land class at ``year`` for pixels whose class changed
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional

from forestlens.analysis.stats_utils import (
    correlation_strength,
    linear_regression,
    mean,
    pearson_correlation_checked,
    trend_direction,
)
from forestlens.contracts import assert_validity_filtered, assert_view_output
from forestlens.errors import InsufficientDataError, ViewConfigurationError
from forestlens.pixels.records import DatasetKind, DerivedView

if TYPE_CHECKING:
    from forestlens.schemas import InternalConfig

__all__ = ['ViewMode', 'ViewParams', 'CorrelationSummary', 'ViewDerivationEngine', 'parse_mode']

logger = logging.getLogger(__name__)


class ViewMode(str, Enum):
    """Analysis modes understood by ``ViewDerivationEngine``."""
    CURRENT_VALUE = "current_value"
    CHANGE_FROM_BASELINE = "change_from_baseline"
    TREND_ANALYSIS = "trend_analysis"
    CORRELATION = "correlation"
    BINARY_CLASSIFICATION = "binary_classification"
    FOREST_CHANGE = "forest_change"
    CHANGE_DETECTION = "change_detection"


METRIC_SERIES_KINDS = frozenset({
    DatasetKind.MULTI_METRIC_TIME_SERIES,
    DatasetKind.CANOPY_TIME_SERIES,
})

# Dataset shapes each mode can be derived from
MODE_KINDS = {
    ViewMode.CURRENT_VALUE: frozenset(DatasetKind),
    ViewMode.CHANGE_FROM_BASELINE: METRIC_SERIES_KINDS,
    ViewMode.TREND_ANALYSIS: METRIC_SERIES_KINDS,
    ViewMode.CORRELATION: METRIC_SERIES_KINDS,
    ViewMode.BINARY_CLASSIFICATION: frozenset({DatasetKind.FOREST_CHANGE, DatasetKind.BINARY_COVER}),
    ViewMode.FOREST_CHANGE: frozenset({DatasetKind.FOREST_CHANGE}),
    ViewMode.CHANGE_DETECTION: frozenset({DatasetKind.MULTI_YEAR_CLASSIFICATION}),
}

FOREST_CHANGE_LABELS = frozenset({"gain", "loss", "stable"})
BINARY_COVER_LABELS = frozenset({"forest", "non_forest"})


@dataclass(frozen=True)
class ViewParams:
    """Per-call parameters of a derivation.

    ``year`` defaults to the latest year present and ``baseline_year`` to the
    earliest year present when left as None.
    """
    year: Optional[int] = None
    baseline_year: Optional[int] = None
    secondary_metric: Optional[str] = None

    @classmethod
    def from_config(cls, config: "InternalConfig") -> "ViewParams":
        selection = config.selection
        return cls(
            year=selection.year,
            baseline_year=selection.baseline_year,
            secondary_metric=selection.secondary_metric,
        )


@dataclass(frozen=True)
class CorrelationSummary:
    """Dataset-wide Pearson correlation of two metrics at one year.

    ``defined`` is False when fewer than 2 pixels exist or either metric has
    zero variance; ``r`` is then 0.0 and ``strength`` is "weak".
    """
    metric: str
    secondary_metric: str
    year: int
    r: float
    strength: str
    n_points: int
    defined: bool


def parse_mode(mode) -> ViewMode:
    """Coerce a mode name to ViewMode, raising ViewConfigurationError if unknown."""
    try:
        return ViewMode(mode)
    except ValueError:
        known = ", ".join(m.value for m in ViewMode)
        raise ViewConfigurationError(f"Unknown view mode '{mode}' (known: {known})") from None


def forest_change_label(attributes) -> str:
    """gain / loss / stable for one forest-change pixel. Gain takes precedence."""
    if attributes.has_forest_gain:
        return "gain"
    if attributes.forest_loss_year is not None:
        return "loss"
    return "stable"


class ViewDerivationEngine:
    """Compute ``DerivedView`` lists for one analysis mode.

    Parameters
    ----------
    config : InternalConfig
        Supplies the trend thresholds, correlation banding, and the default
        metric pair for correlation.

    Examples
    --------
    >>> engine = ViewDerivationEngine(config)
    >>> views = engine.derive(dataset.valid_records, "trend_analysis", "canopy_cover")
    >>> views[0].auxiliary["direction"]
    'increasing'
    """

    def __init__(self, config: "InternalConfig"):
        self.config = config
        self.increasing_threshold = config.trend.increasing_threshold
        self.decreasing_threshold = config.trend.decreasing_threshold
        self.strong_threshold = config.correlation.strong_threshold
        self.moderate_threshold = config.correlation.moderate_threshold
        self.default_pair = config.correlation.default_metrics

        self._derivers = {
            ViewMode.CURRENT_VALUE: self._current_value,
            ViewMode.CHANGE_FROM_BASELINE: self._change_from_baseline,
            ViewMode.TREND_ANALYSIS: self._trend_analysis,
            ViewMode.CORRELATION: self._correlation,
            ViewMode.BINARY_CLASSIFICATION: self._binary_classification,
            ViewMode.FOREST_CHANGE: self._forest_change,
            ViewMode.CHANGE_DETECTION: self._change_detection,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def derive(self, records: Iterable, mode, metric: Optional[str] = None,
               params: Optional[ViewParams] = None,
               kind: Optional[DatasetKind] = None) -> list:
        """Derive one view entry per pixel.

        Parameters
        ----------
        records : iterable of PixelRecord
            Validity-filtered records of one dataset.
        mode : ViewMode or str
            Analysis mode.
        metric : str, optional
            Metric to derive from. Required by the arithmetic modes and
            ignored by the relabeling modes.
        params : ViewParams, optional
            Year, baseline year, and secondary metric.
        kind : DatasetKind, optional
            Dataset shape. Taken from the records when omitted; needed to
            validate the request against an empty record set.

        Returns
        -------
        list of DerivedView
            In first-seen pixel order.

        Raises
        ------
        ViewConfigurationError
            If the mode is unknown or incompatible with the dataset shape, or
            the metric does not exist for these records.
        ContractViolation
            If a no-data or duplicate record reaches the engine.
        """
        records = list(records)
        params = params or ViewParams()
        mode = parse_mode(mode)

        assert_validity_filtered(records)
        if kind is None:
            if not records:
                logger.debug("No records to derive %s from", mode.value)
                return []
            kind = records[0].dataset_kind
        kind = DatasetKind(kind)
        self._check_compatible(mode, kind)

        if not records:
            return []
        if mode in (ViewMode.CURRENT_VALUE, ViewMode.CHANGE_FROM_BASELINE,
                    ViewMode.TREND_ANALYSIS, ViewMode.CORRELATION):
            self._check_metric(records, metric)

        views = self._derivers[mode](records, kind, metric, params)
        assert_view_output(views, records, labels=self._labels_for(mode, kind))
        logger.info("Derived %d %s views from %d records", len(views), mode.value, len(records))
        return views

    def correlate(self, records: Iterable, metric: str,
                  secondary_metric: Optional[str] = None,
                  year: Optional[int] = None) -> CorrelationSummary:
        """Pearson correlation of two metrics across pixels at one year.

        Raises
        ------
        ViewConfigurationError
            If the records are not a metric time series or either metric is
            unknown.
        """
        records = list(records)
        assert_validity_filtered(records)
        if records:
            self._check_compatible(ViewMode.CORRELATION, records[0].dataset_kind)
            self._check_metric(records, metric)
        secondary_metric = self._secondary_metric(metric, secondary_metric)
        if records:
            self._check_metric(records, secondary_metric)

        year = year if year is not None else self._latest_year(records)
        at_year = [r for r in records if r.year == year]
        xs = [r.metrics[metric] for r in at_year]
        ys = [r.metrics[secondary_metric] for r in at_year]
        r, defined = pearson_correlation_checked(xs, ys)
        if not defined:
            logger.info("Correlation of %s vs %s at %s is undefined (%d points)",
                        metric, secondary_metric, year, len(at_year))

        return CorrelationSummary(
            metric=metric,
            secondary_metric=secondary_metric,
            year=year,
            r=r,
            strength=correlation_strength(r, self.strong_threshold, self.moderate_threshold),
            n_points=len(at_year),
            defined=defined,
        )

    # ------------------------------------------------------------------
    # Mode implementations
    # ------------------------------------------------------------------

    def _current_value(self, records, kind, metric, params):
        if not kind.is_time_series:
            return [DerivedView(r.pixel_id, r.coordinates, r.metrics[metric]) for r in records]

        year = params.year if params.year is not None else self._latest_year(records)
        return [
            DerivedView(r.pixel_id, r.coordinates, r.metrics[metric], {"year": year})
            for r in records if r.year == year
        ]

    def _change_from_baseline(self, records, kind, metric, params):
        year = params.year if params.year is not None else self._latest_year(records)
        baseline_year = (params.baseline_year if params.baseline_year is not None
                         else self._earliest_year(records))

        baseline = {r.pixel_id: r.metrics[metric] for r in records if r.year == baseline_year}
        views = []
        skipped = 0
        for record in records:
            if record.year != year:
                continue
            if record.pixel_id not in baseline:
                skipped += 1
                continue
            baseline_value = baseline[record.pixel_id]
            current = record.metrics[metric]
            views.append(DerivedView(
                record.pixel_id,
                record.coordinates,
                current - baseline_value,
                {
                    "year": year,
                    "baseline_year": baseline_year,
                    "baseline": baseline_value,
                    "current": current,
                },
            ))
        if skipped:
            logger.debug("change_from_baseline: skipped %d pixels without a %s record",
                         skipped, baseline_year)
        return views

    def _trend_analysis(self, records, kind, metric, params):
        series = {}
        for record in records:
            entry = series.setdefault(record.pixel_id, (record.coordinates, [], []))
            entry[1].append(record.year)
            entry[2].append(record.metrics[metric])

        views = []
        dropped = 0
        for pixel_id, (coordinates, years, values) in series.items():
            try:
                slope, intercept = linear_regression(years, values)
            except InsufficientDataError:
                dropped += 1
                continue
            views.append(DerivedView(
                pixel_id,
                coordinates,
                mean(values),
                {
                    "slope": slope,
                    "intercept": intercept,
                    "direction": trend_direction(
                        slope, self.increasing_threshold, self.decreasing_threshold
                    ),
                    "n_years": len(years),
                },
            ))
        if dropped:
            logger.debug("trend_analysis: dropped %d pixels with fewer than 2 years", dropped)
        return views

    def _correlation(self, records, kind, metric, params):
        summary = self.correlate(records, metric, params.secondary_metric, params.year)
        return [
            DerivedView(
                r.pixel_id,
                r.coordinates,
                r.metrics[metric],
                {
                    "year": summary.year,
                    "secondary_metric": summary.secondary_metric,
                    "paired_value": r.metrics[summary.secondary_metric],
                    "correlation": summary.r,
                    "strength": summary.strength,
                    "correlation_defined": summary.defined,
                },
            )
            for r in records if r.year == summary.year
        ]

    def _binary_classification(self, records, kind, metric, params):
        if kind == DatasetKind.FOREST_CHANGE:
            return self._forest_change(records, kind, metric, params)
        return [
            DerivedView(
                r.pixel_id,
                r.coordinates,
                "forest" if r.attributes.is_forest else "non_forest",
                {"source_field": r.attributes.source_field},
            )
            for r in records
        ]

    def _forest_change(self, records, kind, metric, params):
        return [
            DerivedView(
                r.pixel_id,
                r.coordinates,
                forest_change_label(r.attributes),
                {
                    "forest_loss_year": r.attributes.forest_loss_year,
                    "baseline_tree_cover": r.attributes.baseline_tree_cover,
                    "has_forest_gain": r.attributes.has_forest_gain,
                },
            )
            for r in records
        ]

    def _change_detection(self, records, kind, metric, params):
        year = params.year if params.year is not None else self._latest_year(records)
        return [
            DerivedView(
                r.pixel_id,
                r.coordinates,
                r.attributes.land_class,
                {"year": year, "dominant_class": r.attributes.dominant_class},
            )
            for r in records
            if r.year == year and r.attributes.has_temporal_change
        ]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_compatible(mode: ViewMode, kind: DatasetKind) -> None:
        if kind not in MODE_KINDS[mode]:
            allowed = ", ".join(sorted(k.value for k in MODE_KINDS[mode]))
            raise ViewConfigurationError(
                f"Mode '{mode.value}' cannot be derived from {kind.value} data (needs: {allowed})"
            )

    @staticmethod
    def _check_metric(records, metric) -> None:
        if metric is None:
            raise ViewConfigurationError("A metric is required for this mode")
        available = records[0].metrics
        if metric not in available:
            raise ViewConfigurationError(
                f"Unknown metric '{metric}' (available: {', '.join(sorted(available))})"
            )

    def _secondary_metric(self, metric, secondary_metric):
        if secondary_metric is not None:
            return secondary_metric
        first, second = self.default_pair
        return first if metric == second else second

    @staticmethod
    def _labels_for(mode, kind):
        if mode == ViewMode.FOREST_CHANGE:
            return FOREST_CHANGE_LABELS
        if mode == ViewMode.BINARY_CLASSIFICATION:
            return FOREST_CHANGE_LABELS if kind == DatasetKind.FOREST_CHANGE else BINARY_COVER_LABELS
        return None

    @staticmethod
    def _latest_year(records):
        years = [r.year for r in records if r.year is not None]
        if not years:
            raise ViewConfigurationError("Records carry no year")
        return max(years)

    @staticmethod
    def _earliest_year(records):
        years = [r.year for r in records if r.year is not None]
        if not years:
            raise ViewConfigurationError("Records carry no year")
        return min(years)
