"""Pixel records: canonical model, pixel ids, normalization, and acquisition."""

from forestlens.pixels.records import (
    DatasetKind,
    PixelRecord,
    DerivedView,
    ForestChangeAttributes,
    ClassificationAttributes,
    BinaryCoverAttributes,
)
from forestlens.pixels.pixel_index import PixelIndex
from forestlens.pixels.normalizer import RecordNormalizer, NormalizationResult
from forestlens.pixels.loader import DatasetLoader, LoadedDataset
from forestlens.pixels.synthetic import generate_synthetic_table

__all__ = [
    "DatasetKind",
    "PixelRecord",
    "DerivedView",
    "ForestChangeAttributes",
    "ClassificationAttributes",
    "BinaryCoverAttributes",
    "PixelIndex",
    "RecordNormalizer",
    "NormalizationResult",
    "DatasetLoader",
    "LoadedDataset",
    "generate_synthetic_table",
]
