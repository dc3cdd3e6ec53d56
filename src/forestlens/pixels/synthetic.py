"""Synthetic stand-in tables for datasets that could not be acquired.

The generated tables have exactly the columns of the real files, so they go
through the same normalizer as real data. Every record built from them is
flagged ``synthetic=True`` and the enclosing ``LoadedDataset`` is flagged as
well, which keeps the fallback distinguishable from real observations.
"""

import logging
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from forestlens.pixels.records import DatasetKind

if TYPE_CHECKING:
    from forestlens.schemas import InternalConfig
    from forestlens.schemas.internal import InternalDatasetConfig

__all__ = ['generate_synthetic_table']

logger = logging.getLogger(__name__)

# Land classes seen in the IO 9-class product
IO_CLASSES = (0, 1, 2, 4, 5, 7, 8, 11, 20)


def _pixel_centres(rng, config, n_pixels):
    """Scatter pixel centres uniformly in a square around the configured centre."""
    half = config.synthetic.spread_deg / 2.0
    xs = config.synthetic.center_lon + rng.uniform(-half, half, n_pixels)
    ys = config.synthetic.center_lat + rng.uniform(-half, half, n_pixels)
    return xs, ys


def _time_series_table(rng, config, years):
    n_pixels = config.synthetic.n_pixels
    xs, ys = _pixel_centres(rng, config, n_pixels)
    columns = {
        name: metric.source_column for name, metric in config.metrics.items()
    }

    rows = []
    for x, y in zip(xs, ys):
        for year_index, year in enumerate(years):
            base_canopy = rng.uniform(0, 100)
            trend = rng.uniform(-1, 1)
            row = {
                "x": float(x),
                "y": float(y),
                "year": int(year),
                columns["canopy_cover"]: float(np.clip(base_canopy + trend * year_index, 0, 100)),
            }
            if "tree_height" in columns:
                row[columns["tree_height"]] = float(rng.uniform(0, 30))
            if "living_biomass" in columns:
                row[columns["living_biomass"]] = float(rng.uniform(0, 200))
            if "carbon_stock" in columns:
                row[columns["carbon_stock"]] = float(rng.uniform(0, 50))
            if "diversity_index" in columns:
                row[columns["diversity_index"]] = float(rng.uniform(0, 1))
            rows.append(row)
    return pd.DataFrame(rows)


def _forest_change_table(rng, config):
    n_pixels = config.synthetic.n_pixels
    xs, ys = _pixel_centres(rng, config, n_pixels)
    lossyear = np.where(rng.random(n_pixels) < 0.15, rng.integers(1, 24, n_pixels), 0)
    return pd.DataFrame({
        "x": xs,
        "y": ys,
        "datamask": np.ones(n_pixels, dtype=int),
        "gain": (rng.random(n_pixels) < 0.05).astype(int),
        "lossyear": lossyear,
        "treecover2000": rng.integers(0, 101, n_pixels),
    })


def _classification_table(rng, config, years):
    n_pixels = config.synthetic.n_pixels
    xs, ys = _pixel_centres(rng, config, n_pixels)
    table = {"x": xs, "y": ys}
    classes = rng.choice(IO_CLASSES, n_pixels)
    for year in years:
        # Roughly one pixel in ten changes class each year
        changes = rng.random(n_pixels) < 0.1
        classes = np.where(changes, rng.choice(IO_CLASSES, n_pixels), classes)
        table[f"class_{year}"] = classes
    return pd.DataFrame(table)


def _binary_cover_table(rng, config, value_field):
    n_pixels = config.synthetic.n_pixels
    xs, ys = _pixel_centres(rng, config, n_pixels)
    return pd.DataFrame({
        "x": xs,
        "y": ys,
        value_field: rng.integers(0, 2, n_pixels),
    })


def generate_synthetic_table(config: "InternalConfig",
                             dataset: "InternalDatasetConfig") -> pd.DataFrame:
    """Build a raw table shaped like ``dataset``'s source file.

    Parameters
    ----------
    config : InternalConfig
        Runtime configuration (synthetic section and metric catalog).
    dataset : InternalDatasetConfig
        Registry entry whose file layout is imitated.

    Returns
    -------
    pd.DataFrame
        Raw rows, ready for ``RecordNormalizer.normalize_table``.

    Notes
    -----
    Time-series tables use the dataset's declared years; when a dataset
    declares none, ``synthetic.years`` is used.
    """
    rng = np.random.default_rng(config.synthetic.seed)
    kind = DatasetKind(dataset.kind)
    years = dataset.years or config.synthetic.years

    if kind in (DatasetKind.MULTI_METRIC_TIME_SERIES, DatasetKind.CANOPY_TIME_SERIES):
        table = _time_series_table(rng, config, years)
    elif kind == DatasetKind.FOREST_CHANGE:
        table = _forest_change_table(rng, config)
    elif kind == DatasetKind.MULTI_YEAR_CLASSIFICATION:
        table = _classification_table(rng, config, years)
    else:
        table = _binary_cover_table(rng, config, dataset.value_field)

    logger.debug("Generated synthetic %s table: %d rows", kind.value, len(table))
    return table
