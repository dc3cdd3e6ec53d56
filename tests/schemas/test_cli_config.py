"""Test CLIConfig overrides."""

import pytest
from pydantic import ValidationError

from forestlens.schemas import ParamConfig, UserConfig, CLIConfig
from forestlens.schemas.resolve import resolve_config

pytestmark = pytest.mark.unit


class TestCLIConfig:

    def test_empty_cli_config_has_no_overrides(self):
        assert CLIConfig().to_internal_overrides() == {}

    def test_selection_overrides(self):
        cli = CLIConfig(dataset="mangaroa", mode="change_from_baseline", year=2020, baseline_year=2014)
        overrides = cli.to_internal_overrides()

        assert overrides["selection"] == {
            "dataset": "mangaroa",
            "mode": "change_from_baseline",
            "year": 2020,
            "baseline_year": 2014,
        }

    def test_output_and_logging_overrides(self):
        cli = CLIConfig(base_dir="/tmp/out", output_format="json", log_level="DEBUG")
        config = resolve_config(ParamConfig(), None, cli)

        assert config.output.base_dir == "/tmp/out"
        assert config.output.format == "json"
        assert config.logging.level == "DEBUG"

    def test_cli_beats_user(self):
        user = UserConfig(metric="tree_height", year=2015)
        cli = CLIConfig(metric="living_biomass")
        config = resolve_config(ParamConfig(), user, cli)

        assert config.selection.metric == "living_biomass"
        assert config.selection.year == 2015

    def test_baseline_year_implies_change_mode(self):
        cli = CLIConfig(baseline_year=2016)

        assert cli.mode == "change_from_baseline"

    def test_invalid_mode_rejected(self):
        with pytest.raises(ValidationError):
            CLIConfig(mode="heatmap")

    def test_invalid_output_format_rejected(self):
        with pytest.raises(ValidationError):
            CLIConfig(output_format="xlsx")

    def test_extra_keys_forbidden(self):
        with pytest.raises(ValidationError):
            CLIConfig(map_style="satellite")
