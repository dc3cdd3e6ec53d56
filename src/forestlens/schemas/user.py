"""UserConfig: Forgiving, minimal user-facing configuration.

This schema accepts user inputs with aliases for common naming patterns
(e.g., DATASET -> dataset, TREND_THRESHOLD -> trend thresholds).

UserConfig is intentionally minimal - users only specify what they want
to override from the expert defaults. Unknown keys are ignored.
"""

from typing import Literal, Optional
from pydantic import Field, field_validator, model_validator
from forestlens.schemas.base import ForestlensBaseModel
from forestlens.schemas.param import DatasetKindName, ViewModeName


class UserDatasetConfig(ForestlensBaseModel):
    """User-facing dataset registry entry (new datasets or partial overrides)."""
    label: Optional[str] = None
    description: Optional[str] = None
    file: Optional[str] = None
    kind: Optional[DatasetKindName] = None
    years: Optional[list[int]] = None
    value_field: Optional[str] = None
    default_metric: Optional[str] = None


class UserNormalizerConfig(ForestlensBaseModel):
    """User-facing normalizer config."""
    coord_precision: Optional[int] = None
    nodata_sentinel: Optional[float] = None
    loss_year_offset: Optional[int] = None
    valid_datamask: Optional[int] = None
    duplicate_policy: Optional[Literal["error", "keep_first"]] = None


class UserTrendConfig(ForestlensBaseModel):
    """User-facing trend config."""
    increasing_threshold: Optional[float] = None
    decreasing_threshold: Optional[float] = None


class UserCorrelationConfig(ForestlensBaseModel):
    """User-facing correlation config."""
    strong_threshold: Optional[float] = None
    moderate_threshold: Optional[float] = None
    default_metrics: Optional[tuple[str, str]] = None


class UserSyntheticConfig(ForestlensBaseModel):
    """User-facing synthetic fallback config."""
    enabled: Optional[bool] = None
    n_pixels: Optional[int] = None
    center_lon: Optional[float] = None
    center_lat: Optional[float] = None
    spread_deg: Optional[float] = None
    years: Optional[list[int]] = None
    seed: Optional[int] = None


class UserConfig(ForestlensBaseModel):
    """User-facing configuration schema.

    Usage
    -----
        user_cfg = UserConfig(
            dataset="mangaroa",
            mode="trend_analysis",
            metric="tree_height",
            data_dir="/data/mangaroa",
        )

        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    # Top-level settings
    data_dir: Optional[str] = Field(None, alias="DATA_DIR")
    base_dir: Optional[str] = Field(None, alias="BASE_DIR")
    output_format: Optional[Literal["csv", "json"]] = Field(None, alias="OUTPUT_FORMAT")

    # Selection (flat aliases)
    dataset: Optional[str] = Field(None, alias="DATASET")
    mode: Optional[ViewModeName] = Field(None, alias="MODE")
    metric: Optional[str] = Field(None, alias="METRIC")
    secondary_metric: Optional[str] = Field(None, alias="SECONDARY_METRIC")
    year: Optional[int] = Field(None, alias="YEAR")
    baseline_year: Optional[int] = Field(None, alias="BASELINE_YEAR")

    # Shortcuts
    trend_threshold: Optional[float] = Field(None, alias="TREND_THRESHOLD")
    duplicate_policy: Optional[Literal["error", "keep_first"]] = Field(None, alias="DUPLICATE_POLICY")
    synthetic_fallback: Optional[bool] = Field(None, alias="SYNTHETIC_FALLBACK")
    synthetic_seed: Optional[int] = Field(None, alias="SYNTHETIC_SEED")

    # Nested overrides (advanced users)
    datasets: Optional[dict[str, UserDatasetConfig]] = None
    normalizer: Optional[UserNormalizerConfig] = None
    trend: Optional[UserTrendConfig] = None
    correlation: Optional[UserCorrelationConfig] = None
    synthetic: Optional[UserSyntheticConfig] = None

    model_config = ForestlensBaseModel.model_config.copy()
    # Allow forgiving input dictionaries (ignore unknown legacy keys)
    model_config.update({"populate_by_name": True, "extra": "ignore"})

    @field_validator("dataset", "mode", mode="before")
    @classmethod
    def normalize_names(cls, v):
        """Normalize dataset and mode names to lowercase."""
        if isinstance(v, str):
            return v.lower().strip()
        return v

    @field_validator("trend_threshold", mode="before")
    @classmethod
    def coerce_threshold(cls, v):
        """Accept int or float; the threshold is symmetric so only magnitude counts."""
        if v is not None:
            return abs(float(v))
        return v

    @model_validator(mode="after")
    def infer_baseline_mode(self):
        """A baseline year without a mode means change-from-baseline."""
        if self.mode is None and self.baseline_year is not None:
            self.mode = "change_from_baseline"
        return self

    def to_internal_overrides(self) -> dict:
        """Convert flat UserConfig to nested InternalConfig structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        if self.data_dir is not None:
            overrides["data_dir"] = str(self.data_dir)

        # Output section
        output = {}
        if self.base_dir is not None:
            output["base_dir"] = str(self.base_dir)
        if self.output_format is not None:
            output["format"] = self.output_format
        if output:
            overrides["output"] = output

        # Selection section
        selection = {}
        for name in ("dataset", "mode", "metric", "secondary_metric", "year", "baseline_year"):
            value = getattr(self, name)
            if value is not None:
                selection[name] = value
        if selection:
            overrides["selection"] = selection

        # Dataset registry (partial entries are merged into defaults)
        if self.datasets is not None:
            overrides["datasets"] = {
                key: entry.model_dump(exclude_none=True)
                for key, entry in self.datasets.items()
            }

        # Normalizer section
        normalizer = {}
        if self.duplicate_policy is not None:
            normalizer["duplicate_policy"] = self.duplicate_policy
        if self.normalizer is not None:
            normalizer.update(self.normalizer.model_dump(exclude_none=True))
        if normalizer:
            overrides["normalizer"] = normalizer

        # Trend section
        trend = {}
        if self.trend_threshold is not None:
            trend["increasing_threshold"] = self.trend_threshold
            trend["decreasing_threshold"] = -self.trend_threshold
        if self.trend is not None:
            trend.update(self.trend.model_dump(exclude_none=True))
        if trend:
            overrides["trend"] = trend

        if self.correlation is not None:
            correlation = self.correlation.model_dump(exclude_none=True)
            if correlation:
                overrides["correlation"] = correlation

        # Synthetic section
        synthetic = {}
        if self.synthetic_fallback is not None:
            synthetic["enabled"] = self.synthetic_fallback
        if self.synthetic_seed is not None:
            synthetic["seed"] = self.synthetic_seed
        if self.synthetic is not None:
            synthetic.update(self.synthetic.model_dump(exclude_none=True))
        if synthetic:
            overrides["synthetic"] = synthetic

        return overrides
