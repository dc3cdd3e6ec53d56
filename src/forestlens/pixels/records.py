"""Canonical per-pixel data model.

Every supported dataset shape is normalized into ``PixelRecord``. The
shape-specific fields live in one of three attribute payloads selected by
``DatasetKind``; time-series shapes carry only numeric metrics and no payload.

``DerivedView`` is the output unit of the view engine and the only thing
handed to the rendering boundary.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

__all__ = [
    'DatasetKind',
    'ForestChangeAttributes',
    'ClassificationAttributes',
    'BinaryCoverAttributes',
    'PixelRecord',
    'DerivedView',
]


class DatasetKind(str, Enum):
    """The five canonical dataset shapes."""
    MULTI_METRIC_TIME_SERIES = "multi_metric_time_series"
    CANOPY_TIME_SERIES = "canopy_time_series"
    FOREST_CHANGE = "forest_change"
    MULTI_YEAR_CLASSIFICATION = "multi_year_classification"
    BINARY_COVER = "binary_cover"

    @property
    def is_time_series(self) -> bool:
        """True for shapes whose records carry a year."""
        return self in (
            DatasetKind.MULTI_METRIC_TIME_SERIES,
            DatasetKind.CANOPY_TIME_SERIES,
            DatasetKind.MULTI_YEAR_CLASSIFICATION,
        )


@dataclass(frozen=True)
class ForestChangeAttributes:
    """Forest loss/gain fields of one change-detection pixel."""
    datamask: int
    gain: int
    lossyear: int
    baseline_tree_cover: float
    forest_loss_year: Optional[int]
    has_forest_gain: bool


@dataclass(frozen=True)
class ClassificationAttributes:
    """Land class of one pixel-year plus the full per-year class history."""
    land_class: int
    class_by_year: dict
    dominant_class: int
    has_temporal_change: bool


@dataclass(frozen=True)
class BinaryCoverAttributes:
    """Binary forest/non-forest layer value."""
    source_field: str
    raw_value: int
    is_forest: bool


RecordAttributes = Union[ForestChangeAttributes, ClassificationAttributes, BinaryCoverAttributes]


@dataclass(frozen=True)
class PixelRecord:
    """One observation of one physical location.

    ``year`` is None for static shapes. ``metrics`` only holds the metrics
    that belong to ``dataset_kind``. Records with ``validity=False`` hit the
    source no-data sentinel and are never passed to the view engine.
    """
    pixel_id: int
    x: float
    y: float
    dataset_kind: DatasetKind
    year: Optional[int]
    metrics: dict
    validity: bool = True
    attributes: Optional[RecordAttributes] = None
    synthetic: bool = False

    @property
    def coordinates(self) -> tuple:
        return (self.x, self.y)


@dataclass(frozen=True)
class DerivedView:
    """Per-pixel result of one view derivation.

    ``value`` is numeric for arithmetic modes and a label for relabeling modes.
    ``auxiliary`` carries mode-specific fields (baseline, slope, direction, ...).
    """
    pixel_id: int
    coordinates: tuple
    value: Union[float, str]
    auxiliary: dict = field(default_factory=dict)

    def to_properties(self) -> dict:
        """Flatten into a single attribute bundle for the rendering boundary."""
        props = {
            "pixel_id": self.pixel_id,
            "x": self.coordinates[0],
            "y": self.coordinates[1],
            "value": self.value,
        }
        props.update(self.auxiliary)
        return props
