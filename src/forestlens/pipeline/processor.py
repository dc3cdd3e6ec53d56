"""Dataset processing pipeline.

Takes one dataset through acquisition, normalization, contract checks, view
derivation, and (optionally) export of the derived views.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Optional

import pandas as pd

from forestlens.analysis.summaries import (
    dataset_stats,
    summarize_classification,
    summarize_forest_change,
    views_to_frame,
)
from forestlens.analysis.view_engine import (
    CorrelationSummary,
    ViewDerivationEngine,
    ViewMode,
    ViewParams,
    parse_mode,
)
from forestlens.contracts import assert_normalized
from forestlens.pixels.loader import DatasetLoader, LoadedDataset
from forestlens.pixels.records import DatasetKind
from forestlens.setup_directories import get_view_path

if TYPE_CHECKING:
    from forestlens.schemas import InternalConfig

__all__ = ['DatasetProcessor', 'ViewResult']

logger = logging.getLogger(__name__)


@dataclass
class ViewResult:
    """Everything produced by one pass through the pipeline."""
    dataset: LoadedDataset
    mode: str
    metric: Optional[str]
    views: list
    params: ViewParams
    correlation: Optional[CorrelationSummary] = None
    summary: Dict = field(default_factory=dict)
    output_path: Optional[Path] = None

    @property
    def frame(self) -> pd.DataFrame:
        """Derived views as a DataFrame, one row per pixel."""
        return views_to_frame(self.views)


class DatasetProcessor:
    """Run the load -> normalize -> derive -> export pipeline for one dataset.

    **Processing Pipeline:**

    1. **Load**: Read the dataset file, or fall back to flagged synthetic
       data when the file cannot be acquired.

    2. **Normalize**: Every row becomes one or more ``PixelRecord`` with a
       pixel id from a fresh ``PixelIndex``. Unparseable rows are dropped.

    3. **Contract**: ``assert_normalized`` guards the records before any
       derivation sees them.

    4. **Derive**: ``ViewDerivationEngine`` computes one view per pixel for the
       requested mode from the valid records only.

    5. **Export** (optional): the views are written as CSV or JSON records
       to views/<dataset>/.

    Example usage::

        processor = DatasetProcessor(config, output_dirs)
        result = processor.process()
        print(result.frame.head())
    """

    def __init__(self, config: "InternalConfig", output_dirs: Optional[Dict[str, Path]] = None):
        self.config = config
        self.output_dirs = output_dirs
        self.loader = DatasetLoader(config)
        self.engine = ViewDerivationEngine(config)

    def load(self, dataset_key: Optional[str] = None) -> LoadedDataset:
        """Load one dataset and enforce the normalization contract."""
        dataset = self.loader.load(dataset_key)
        assert_normalized(dataset.records, self.config.normalizer.coord_precision)
        if dataset.synthetic:
            logger.warning("%s: using SYNTHETIC data (%d records)", dataset.key, len(dataset.records))
        return dataset

    def derive(self, dataset: LoadedDataset, mode=None, metric: Optional[str] = None,
               params: Optional[ViewParams] = None) -> list:
        """Derive views from a loaded dataset.

        Mode, metric, and params default to the configured selection when
        ``dataset`` is the selected dataset, and to the dataset's default
        metric otherwise.
        """
        mode, metric, params = self._resolve_request(dataset, mode, metric, params)
        return self.engine.derive(dataset.valid_records, mode, metric, params, kind=dataset.kind)

    def summarize(self, dataset: LoadedDataset, metric: Optional[str] = None) -> dict:
        """Shape-appropriate summary of a loaded dataset."""
        metric = metric or self.config.datasets[dataset.key].default_metric
        summary = dataset_stats(dataset.records, metric)
        summary["synthetic"] = dataset.synthetic
        summary["dropped_rows"] = dataset.dropped_rows
        if dataset.kind == DatasetKind.FOREST_CHANGE and dataset.records:
            summary["forest_change"] = summarize_forest_change(dataset.records)
        elif dataset.kind == DatasetKind.MULTI_YEAR_CLASSIFICATION and dataset.records:
            summary["classification"] = summarize_classification(dataset.records)
        return summary

    def export(self, result: ViewResult) -> Path:
        """Write the derived views of ``result`` and return the file path."""
        if self.output_dirs is None:
            raise ValueError("No output directories configured for export")

        fmt = self.config.output.format
        path = get_view_path(self.output_dirs, result.dataset.key, result.mode, fmt)
        frame = result.frame
        frame["synthetic"] = result.dataset.synthetic
        if fmt == "json":
            frame.to_json(path, orient="records", indent=2)
        else:
            frame.to_csv(path, index=False)

        logger.info("Saved %d views to %s", len(frame), path)
        return path

    def process(self, dataset_key: Optional[str] = None, mode=None,
                metric: Optional[str] = None, params: Optional[ViewParams] = None,
                export: bool = False) -> ViewResult:
        """Run the full pipeline for one dataset.

        Raises
        ------
        DataAcquisitionError
            If the file is unavailable and the synthetic fallback is disabled.
        DataQualityError
            If the dataset holds duplicate pixel-years under the "error" policy.
        ViewConfigurationError
            If the mode or metric does not fit the dataset shape.
        """
        dataset = self.load(dataset_key)
        return self.build_result(dataset, mode, metric, params, export=export)

    def build_result(self, dataset: LoadedDataset, mode=None, metric: Optional[str] = None,
                     params: Optional[ViewParams] = None, export: bool = False) -> ViewResult:
        """Derive, summarize, and optionally export views of a loaded dataset."""
        mode, metric, params = self._resolve_request(dataset, mode, metric, params)
        views = self.engine.derive(dataset.valid_records, mode, metric, params, kind=dataset.kind)

        correlation = None
        if mode == ViewMode.CORRELATION and dataset.valid_records:
            correlation = self.engine.correlate(
                dataset.valid_records, metric, params.secondary_metric, params.year
            )

        result = ViewResult(
            dataset=dataset,
            mode=mode.value,
            metric=metric,
            views=views,
            params=params,
            correlation=correlation,
            summary=self.summarize(dataset, metric),
        )
        if export:
            result.output_path = self.export(result)
        return result

    def _resolve_request(self, dataset, mode, metric, params):
        selection = self.config.selection
        is_selected = dataset.key == selection.dataset

        mode = parse_mode(mode if mode is not None else selection.mode)
        if metric is None:
            metric = selection.metric if is_selected else self.config.datasets[dataset.key].default_metric
        if params is None:
            params = ViewParams.from_config(self.config) if is_selected else ViewParams()
        return mode, metric, params
