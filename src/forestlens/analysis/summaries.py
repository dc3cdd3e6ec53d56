"""Dataset-level summaries and the tabular hand-off to the rendering boundary.

Functions here aggregate over a whole record set rather than deriving one
value per pixel: descriptive statistics, per-year means, forest-change binary
masks, and land-class change summaries. ``views_to_frame`` flattens derived
views into a pandas DataFrame, which is what export and any downstream
renderer consume.
"""

import logging
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from forestlens.errors import ViewConfigurationError
from forestlens.pixels.records import DatasetKind

__all__ = [
    'dataset_stats',
    'yearly_means',
    'forest_change_masks',
    'summarize_forest_change',
    'summarize_classification',
    'views_to_frame',
]

logger = logging.getLogger(__name__)

# Baseline tree cover bands, percent
LOW_COVER_MAX = 30.0
HIGH_COVER_MIN = 70.0
FORESTED_MIN = 30.0

VIEW_COLUMNS = ["pixel_id", "x", "y", "value"]


def dataset_stats(records: Iterable, metric: Optional[str] = None) -> dict:
    """Descriptive statistics of one loaded dataset.

    Parameters
    ----------
    records : iterable of PixelRecord
        All records of the load, including no-data ones.
    metric : str, optional
        Metric to describe over valid records.

    Returns
    -------
    dict
        ``total_records``, ``valid_records``, ``unique_pixels``,
        ``year_min``/``year_max`` (None for static data) and, when ``metric``
        is given and present, ``metric_min``/``metric_max``/``metric_mean``.
    """
    records = list(records)
    valid = [r for r in records if r.validity]
    years = [r.year for r in valid if r.year is not None]

    stats = {
        "total_records": len(records),
        "valid_records": len(valid),
        "unique_pixels": len({r.pixel_id for r in records}),
        "year_min": min(years) if years else None,
        "year_max": max(years) if years else None,
    }

    if metric is not None:
        values = np.array([r.metrics[metric] for r in valid if metric in r.metrics], dtype=float)
        if values.size:
            stats.update({
                "metric": metric,
                "metric_min": float(values.min()),
                "metric_max": float(values.max()),
                "metric_mean": float(values.mean()),
            })
    return stats


def yearly_means(records: Iterable, metric: str) -> pd.Series:
    """Mean of ``metric`` across pixels for each year, sorted by year.

    Raises
    ------
    ViewConfigurationError
        If the records carry no year.
    """
    rows = [
        {"year": r.year, "value": r.metrics[metric]}
        for r in records
        if r.validity and r.year is not None and metric in r.metrics
    ]
    if not rows:
        raise ViewConfigurationError(f"No yearly '{metric}' values to average")

    series = pd.DataFrame(rows).groupby("year")["value"].mean().sort_index()
    series.name = metric
    return series


# ============================================================================
# FOREST CHANGE
# ============================================================================

def forest_change_masks(record) -> dict:
    """Binary masks of one forest-change record.

    Every mask except ``has_data`` is False for a no-data record.
    """
    attributes = record.attributes
    valid = record.validity
    cover = attributes.baseline_tree_cover
    gain = attributes.has_forest_gain
    loss = attributes.forest_loss_year is not None
    return {
        "has_data": valid,
        "has_forest_gain": valid and gain,
        "has_forest_loss": valid and loss,
        "has_any_change": valid and (gain or loss),
        "has_any_tree_cover": valid and cover > 0,
        "has_low_tree_cover": valid and 0 < cover < LOW_COVER_MAX,
        "has_medium_tree_cover": valid and LOW_COVER_MAX <= cover < HIGH_COVER_MIN,
        "has_high_tree_cover": valid and cover >= HIGH_COVER_MIN,
        "is_forested": valid and cover >= FORESTED_MIN,
        "is_valid_forest_pixel": valid and cover > 0,
    }


def summarize_forest_change(records: Iterable) -> dict:
    """Count forest-change masks over a load.

    Returns
    -------
    dict
        ``total_pixels``, ``valid_pixels``, ``no_data_pixels``,
        ``no_tree_cover``, ``stable_forest_pixels`` (valid, forested, neither
        gain nor loss), one count per mask of ``forest_change_masks``, and
        ``tree_cover_counts`` (cover value -> pixels, highest cover first).
    """
    records = [r for r in records if r.dataset_kind == DatasetKind.FOREST_CHANGE]
    if not records:
        raise ViewConfigurationError("No forest-change records to summarize")

    masks = pd.DataFrame([forest_change_masks(r) for r in records])
    counts = {name: int(total) for name, total in masks.sum().items()}
    valid = masks["has_data"]

    counts.update({
        "total_pixels": len(records),
        "valid_pixels": int(valid.sum()),
        "no_data_pixels": int((~valid).sum()),
        "no_tree_cover": int((valid & ~masks["has_any_tree_cover"]).sum()),
        "stable_forest_pixels": int((masks["is_forested"] & ~masks["has_any_change"]).sum()),
    })

    cover = pd.Series([r.attributes.baseline_tree_cover for r in records if r.validity], dtype=float)
    counts["tree_cover_counts"] = {
        float(value): int(n) for value, n in cover.value_counts().sort_index(ascending=False).items()
    }
    logger.debug("Forest change summary: %s", counts)
    return counts


# ============================================================================
# LAND CLASSIFICATION
# ============================================================================

def summarize_classification(records: Iterable, max_examples: int = 5) -> dict:
    """Summarize land-class stability across the declared years.

    A pixel is counted as valid when its first declared year has data.

    Returns
    -------
    dict
        ``total_pixels``, ``valid_pixels``, ``no_data_pixels``,
        ``changed_pixels``, ``stable_pixels``, ``class_distribution``
        (year -> class -> pixel count, valid pixels only) and
        ``transitions`` (up to ``max_examples`` tuples of pixel id and the
        class sequence of a changed pixel).
    """
    pixels = {}
    valid_ids = set()
    for record in records:
        if record.dataset_kind != DatasetKind.MULTI_YEAR_CLASSIFICATION:
            continue
        pixels.setdefault(record.pixel_id, record.attributes)
        if record.validity:
            valid_ids.add(record.pixel_id)
    if not pixels:
        raise ViewConfigurationError("No classification records to summarize")

    valid = {pid: attrs for pid, attrs in pixels.items() if pid in valid_ids}
    changed = [pid for pid, attrs in valid.items() if attrs.has_temporal_change]

    distribution = {}
    if valid:
        history = pd.DataFrame([attrs.class_by_year for attrs in valid.values()])
        for year in history.columns:
            counts = history[year].value_counts().sort_index()
            distribution[int(year)] = {int(cls): int(n) for cls, n in counts.items()}

    transitions = [
        (pid, [valid[pid].class_by_year[year] for year in sorted(valid[pid].class_by_year)])
        for pid in changed[:max_examples]
    ]

    return {
        "total_pixels": len(pixels),
        "valid_pixels": len(valid),
        "no_data_pixels": len(pixels) - len(valid),
        "changed_pixels": len(changed),
        "stable_pixels": len(valid) - len(changed),
        "class_distribution": distribution,
        "transitions": transitions,
    }


# ============================================================================
# EXPORT
# ============================================================================

def views_to_frame(views: Iterable) -> pd.DataFrame:
    """One row per derived view: pixel_id, x, y, value, then auxiliary fields."""
    rows = [view.to_properties() for view in views]
    if not rows:
        return pd.DataFrame(columns=VIEW_COLUMNS)
    return pd.DataFrame(rows)
