"""View derivation, statistics, and dataset summaries."""

from forestlens.analysis.stats_utils import (
    linear_regression,
    linear_regression_slope,
    pearson_correlation,
    mean,
)
from forestlens.analysis.view_engine import (
    ViewMode,
    ViewParams,
    CorrelationSummary,
    ViewDerivationEngine,
)
from forestlens.analysis.summaries import (
    dataset_stats,
    yearly_means,
    forest_change_masks,
    summarize_forest_change,
    summarize_classification,
    views_to_frame,
)

__all__ = [
    "linear_regression",
    "linear_regression_slope",
    "pearson_correlation",
    "mean",
    "ViewMode",
    "ViewParams",
    "CorrelationSummary",
    "ViewDerivationEngine",
    "dataset_stats",
    "yearly_means",
    "forest_change_masks",
    "summarize_forest_change",
    "summarize_classification",
    "views_to_frame",
]
