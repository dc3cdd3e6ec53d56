"""CLIConfig: Command-line operational overrides.

Minimal configuration for parameters that commonly change between runs:
dataset, view mode, metric, years, paths, verbosity.

This schema handles command-line arguments parsed by argparse.
"""

from typing import Literal, Optional
from pydantic import model_validator
from forestlens.schemas.base import ForestlensBaseModel
from forestlens.schemas.param import ViewModeName, LogLevelName


class CLIConfig(ForestlensBaseModel):
    """Command-line configuration overrides.

    Highest priority in config resolution.

    Notes
    -----
    If baseline_year is provided but mode is not, mode is automatically set
    to "change_from_baseline" (schema responsibility, not runtime).

    Usage
    -----
        cli_cfg = CLIConfig(dataset="io_class", mode="change_detection", year=2021)
        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    dataset: Optional[str] = None
    mode: Optional[ViewModeName] = None
    metric: Optional[str] = None
    secondary_metric: Optional[str] = None
    year: Optional[int] = None
    baseline_year: Optional[int] = None
    data_dir: Optional[str] = None
    base_dir: Optional[str] = None
    output_format: Optional[Literal["csv", "json"]] = None
    log_level: Optional[LogLevelName] = None

    @model_validator(mode="after")
    def infer_baseline_mode(self):
        """A baseline year without a mode means change-from-baseline."""
        if self.mode is None and self.baseline_year is not None:
            self.mode = "change_from_baseline"
        return self

    def to_internal_overrides(self) -> dict:
        """Convert CLI config to internal config structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        if self.data_dir is not None:
            overrides["data_dir"] = str(self.data_dir)

        selection = {}
        for name in ("dataset", "mode", "metric", "secondary_metric", "year", "baseline_year"):
            value = getattr(self, name)
            if value is not None:
                selection[name] = value
        if selection:
            overrides["selection"] = selection

        output = {}
        if self.base_dir is not None:
            output["base_dir"] = str(self.base_dir)
        if self.output_format is not None:
            output["format"] = self.output_format
        if output:
            overrides["output"] = output

        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}

        return overrides
