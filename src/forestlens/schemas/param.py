"""ParamConfig: Expert defaults for Forestlens.

This module defines the complete default configuration, including the dataset
registry. ALL tunable parameters must have defaults here. No runtime code
should define fallback values - this is the single source of truth.

Runtime code NEVER reads from ParamConfig directly - it only receives InternalConfig.
"""

from typing import Literal, Optional
from pydantic import Field, field_validator, model_validator
from forestlens.schemas.base import ForestlensBaseModel


DatasetKindName = Literal[
    "multi_metric_time_series",
    "canopy_time_series",
    "forest_change",
    "multi_year_classification",
    "binary_cover",
]

ViewModeName = Literal[
    "current_value",
    "change_from_baseline",
    "trend_analysis",
    "correlation",
    "binary_classification",
    "forest_change",
    "change_detection",
]

LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

TIME_SERIES_KIND_NAMES = (
    "multi_metric_time_series",
    "canopy_time_series",
    "multi_year_classification",
)

MANGAROA_YEARS = list(range(2013, 2025))
IO_CLASS_YEARS = list(range(2017, 2024))


# =============================================================================
# Nested Configuration Models
# =============================================================================

class DatasetConfig(ForestlensBaseModel):
    """One entry of the dataset registry."""
    label: str
    description: str = ""
    file: str
    kind: DatasetKindName
    years: list[int] = Field(default_factory=list, description="Declared years, ascending")
    value_field: Optional[str] = Field(None, description="Source column for binary-cover data")
    default_metric: str

    @field_validator("years", mode="after")
    @classmethod
    def sort_and_dedupe_years(cls, v):
        """Declared years are kept unique and ascending."""
        return sorted(set(int(y) for y in v))

    @model_validator(mode="after")
    def check_kind_requirements(self):
        """Time-series shapes need declared years; binary cover needs its column."""
        if self.kind in TIME_SERIES_KIND_NAMES and not self.years:
            raise ValueError(f"Dataset '{self.label}' of kind {self.kind} must declare years")
        if self.kind == "binary_cover" and not self.value_field:
            raise ValueError(f"Dataset '{self.label}' of kind binary_cover needs value_field")
        return self


def _default_datasets() -> dict:
    return {
        "mangaroa": DatasetConfig(
            label="Mangaroa Canopy Metrics",
            description="Time-series canopy metrics (2013-2024)",
            file="mangaroa_sampling_zone_1_kanop_screening_25_m.csv",
            kind="multi_metric_time_series",
            years=MANGAROA_YEARS,
            default_metric="canopy_cover",
        ),
        "mangaroa_canopy": DatasetConfig(
            label="Mangaroa Canopy Cover",
            description="Time-series canopy cover only (2013-2024)",
            file="mangaroa_sampling_zone_1_kanop_screening_25_m.csv",
            kind="canopy_time_series",
            years=MANGAROA_YEARS,
            default_metric="canopy_cover",
        ),
        "glad": DatasetConfig(
            label="GLAD Forest Cover Loss/Gain",
            description="Global forest change detection",
            file="glad_forest_cover_loss_gain.csv",
            kind="forest_change",
            default_metric="baseline_tree_cover",
        ),
        "io_class": DatasetConfig(
            label="IO-9 Land Use Classification",
            description="Time-series land use classification (2017-2023)",
            file="io-9-class-10m.csv",
            kind="multi_year_classification",
            years=IO_CLASS_YEARS,
            default_metric="land_class",
        ),
        "jrc_cover": DatasetConfig(
            label="JRC Forest Cover 2020",
            description="European Commission forest cover",
            file="jrc_forest_cover_2020.csv",
            kind="binary_cover",
            value_field="forest_cover_2020",
            default_metric="forest_cover_2020",
        ),
        "jrc_type": DatasetConfig(
            label="JRC Forest Type 2020",
            description="European Commission forest type",
            file="jrc_forest_type_2020.csv",
            kind="binary_cover",
            value_field="forest_type_2020",
            default_metric="forest_type_2020",
        ),
    }


class MetricConfig(ForestlensBaseModel):
    """Display metadata and source column for one time-series metric."""
    label: str
    unit: str = ""
    source_column: str


def _default_metrics() -> dict:
    return {
        "canopy_cover": MetricConfig(label="Canopy Cover", unit="%", source_column="canopy_cover"),
        "tree_height": MetricConfig(label="Tree Height", unit="m", source_column="tree_height"),
        "living_biomass": MetricConfig(
            label="Living Biomass", unit="kg/m²", source_column="living_biomass"
        ),
        "carbon_stock": MetricConfig(
            label="Carbon Stock", unit="kg/m²", source_column="living_biomass_carbon_stock"
        ),
        "diversity_index": MetricConfig(
            label="Diversity Index", unit="", source_column="raos_q_diversity_index"
        ),
    }


class NormalizerConfig(ForestlensBaseModel):
    """Record normalization rules."""
    coord_precision: int = Field(6, ge=0, le=12, description="Decimal places of the pixel key")
    nodata_sentinel: float = Field(255.0, description="No-data value of mask/classification bands")
    loss_year_offset: int = Field(2000, description="lossyear is counted from this year")
    valid_datamask: int = Field(1, description="datamask value marking valid change data")
    duplicate_policy: Literal["error", "keep_first"] = "error"

    @field_validator("nodata_sentinel", mode="before")
    @classmethod
    def coerce_sentinel_to_float(cls, v):
        """Allow int or float for the sentinel."""
        return float(v)


class TrendConfig(ForestlensBaseModel):
    """Trend direction thresholds, in metric units per year."""
    increasing_threshold: float = 0.5
    decreasing_threshold: float = -0.5

    @model_validator(mode="after")
    def check_ordering(self):
        if self.decreasing_threshold > self.increasing_threshold:
            raise ValueError("decreasing_threshold must not exceed increasing_threshold")
        return self


class CorrelationConfig(ForestlensBaseModel):
    """Pearson strength banding and default metric pair."""
    strong_threshold: float = Field(0.7, gt=0, le=1.0)
    moderate_threshold: float = Field(0.3, ge=0, le=1.0)
    default_metrics: tuple[str, str] = ("canopy_cover", "tree_height")

    @model_validator(mode="after")
    def check_ordering(self):
        if self.moderate_threshold > self.strong_threshold:
            raise ValueError("moderate_threshold must not exceed strong_threshold")
        return self


class SyntheticConfig(ForestlensBaseModel):
    """Synthetic fallback dataset used when acquisition fails."""
    enabled: bool = True
    n_pixels: int = Field(77, ge=1)
    center_lon: float = 175.086901
    center_lat: float = -41.148613
    spread_deg: float = Field(0.01, gt=0)
    years: list[int] = Field(default_factory=lambda: list(MANGAROA_YEARS))
    seed: Optional[int] = None


class SelectionConfig(ForestlensBaseModel):
    """What to derive: dataset, mode, metric(s), and years."""
    dataset: str = "mangaroa"
    mode: ViewModeName = "current_value"
    metric: Optional[str] = None
    secondary_metric: Optional[str] = None
    year: Optional[int] = None
    baseline_year: Optional[int] = None

    @field_validator("dataset", "mode", mode="before")
    @classmethod
    def normalize_names(cls, v):
        """Normalize dataset and mode names to lowercase."""
        if isinstance(v, str):
            return v.lower().strip()
        return v


class OutputConfig(ForestlensBaseModel):
    """Export configuration."""
    base_dir: Optional[str] = None
    format: Literal["csv", "json"] = "csv"


class LoggingConfig(ForestlensBaseModel):
    """Logging configuration."""
    level: LogLevelName = "INFO"


# =============================================================================
# Main ParamConfig
# =============================================================================

class ParamConfig(ForestlensBaseModel):
    """Complete expert configuration with all defaults.

    This config is NOT used directly by runtime code. It serves as the
    base layer in config resolution:

        internal_cfg = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    data_dir: str = "data"
    datasets: dict[str, DatasetConfig] = Field(default_factory=_default_datasets)
    metrics: dict[str, MetricConfig] = Field(default_factory=_default_metrics)
    normalizer: NormalizerConfig = Field(default_factory=NormalizerConfig)
    trend: TrendConfig = Field(default_factory=TrendConfig)
    correlation: CorrelationConfig = Field(default_factory=CorrelationConfig)
    synthetic: SyntheticConfig = Field(default_factory=SyntheticConfig)
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
