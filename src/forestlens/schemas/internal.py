"""InternalConfig: Authoritative runtime configuration.

This is the ONLY config schema that runtime code sees. It is fully validated,
normalized, and the selection is complete: metric, year, and baseline year are
filled in from the dataset registry during resolution.

All .get() calls, fallback defaults, and validation logic are FORBIDDEN in
runtime code - everything is explicit here.
"""

from typing import Literal, Optional
from pydantic import ConfigDict, model_validator
from forestlens.schemas.base import ForestlensBaseModel
from forestlens.schemas.param import DatasetKindName, ViewModeName, LogLevelName


# =============================================================================
# Nested Configuration Models (Runtime)
# =============================================================================

class InternalDatasetConfig(ForestlensBaseModel):
    """Runtime dataset registry entry."""
    label: str
    description: str
    file: str
    kind: DatasetKindName
    years: list[int]
    value_field: Optional[str]
    default_metric: str


class InternalMetricConfig(ForestlensBaseModel):
    """Runtime metric catalog entry."""
    label: str
    unit: str
    source_column: str


class InternalNormalizerConfig(ForestlensBaseModel):
    """Runtime normalization rules."""
    coord_precision: int
    nodata_sentinel: float
    loss_year_offset: int
    valid_datamask: int
    duplicate_policy: Literal["error", "keep_first"]


class InternalTrendConfig(ForestlensBaseModel):
    """Runtime trend thresholds."""
    increasing_threshold: float
    decreasing_threshold: float


class InternalCorrelationConfig(ForestlensBaseModel):
    """Runtime correlation banding."""
    strong_threshold: float
    moderate_threshold: float
    default_metrics: tuple[str, str]


class InternalSyntheticConfig(ForestlensBaseModel):
    """Runtime synthetic fallback settings."""
    enabled: bool
    n_pixels: int
    center_lon: float
    center_lat: float
    spread_deg: float
    years: list[int]
    seed: Optional[int]


class InternalSelectionConfig(ForestlensBaseModel):
    """Runtime view selection.

    Note: year and baseline_year stay None for static (non time-series) datasets.
    """
    dataset: str
    mode: ViewModeName
    metric: str
    secondary_metric: Optional[str]
    year: Optional[int]
    baseline_year: Optional[int]


class InternalOutputConfig(ForestlensBaseModel):
    """Runtime export configuration."""
    base_dir: Optional[str]
    format: Literal["csv", "json"]


class InternalLoggingConfig(ForestlensBaseModel):
    """Runtime logging configuration."""
    level: LogLevelName


# =============================================================================
# Main InternalConfig
# =============================================================================

class InternalConfig(ForestlensBaseModel):
    """Authoritative runtime configuration.

    Usage
    -----
    Runtime modules receive InternalConfig and access fields directly:

        def __init__(self, config: InternalConfig):
            self.precision = config.normalizer.coord_precision  # NOT .get()
            self.dataset = config.datasets[config.selection.dataset]

    Rules
    -----
    - NO .get() calls
    - NO fallback defaults
    - NO validation

    All of that happens during config resolution, not in runtime code.
    """

    data_dir: str
    datasets: dict[str, InternalDatasetConfig]
    metrics: dict[str, InternalMetricConfig]
    normalizer: InternalNormalizerConfig
    trend: InternalTrendConfig
    correlation: InternalCorrelationConfig
    synthetic: InternalSyntheticConfig
    selection: InternalSelectionConfig
    output: InternalOutputConfig
    logging: InternalLoggingConfig

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        frozen=True,  # Immutable after construction
    )

    @model_validator(mode="after")
    def check_selection_against_registry(self):
        """The selected dataset must exist and selected years must be declared."""
        selection = self.selection
        if selection.dataset not in self.datasets:
            known = ", ".join(sorted(self.datasets))
            raise ValueError(f"Unknown dataset '{selection.dataset}' (known: {known})")

        dataset = self.datasets[selection.dataset]
        for name in ("year", "baseline_year"):
            value = getattr(selection, name)
            if value is None:
                continue
            if not dataset.years:
                raise ValueError(
                    f"selection.{name}={value} but dataset '{selection.dataset}' has no years"
                )
            if value not in dataset.years:
                raise ValueError(
                    f"selection.{name}={value} is not a declared year of '{selection.dataset}' "
                    f"({dataset.years[0]}-{dataset.years[-1]})"
                )
        return self

    @property
    def dataset(self) -> InternalDatasetConfig:
        """Registry entry of the selected dataset."""
        return self.datasets[self.selection.dataset]
