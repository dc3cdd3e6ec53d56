"""Shared fixtures: pydantic configs, record normalization, and temp output dirs.

Tests build configuration through ``resolve_config`` exactly like the CLI
does, so every test runs against a validated ``InternalConfig``.
"""

import pytest

from forestlens.schemas import ParamConfig, UserConfig, resolve_config
from forestlens.pixels import PixelIndex, RecordNormalizer


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

@pytest.fixture
def param_config():
    """Expert defaults, untouched."""
    return ParamConfig()


@pytest.fixture
def internal_config(param_config):
    """Runtime config with no user or CLI layer (mangaroa, current_value)."""
    return resolve_config(param_config)


@pytest.fixture
def make_config(param_config):
    """Build an InternalConfig from UserConfig keyword overrides.

    Examples
    --------
    >>> def test_glad(make_config):
    ...     config = make_config(dataset="glad")
    ...     assert config.selection.metric == "baseline_tree_cover"
    """
    def _make(**user_overrides):
        return resolve_config(param_config, UserConfig(**user_overrides))

    return _make


@pytest.fixture
def normalize(internal_config):
    """Normalize raw rows of a registry dataset with a fresh PixelIndex.

    Returns a callable ``normalize(dataset_key, rows, config=None)`` giving
    the list of records, no-data ones included.
    """
    def _normalize(dataset_key, rows, config=None):
        normalizer = RecordNormalizer(config or internal_config, dataset_key)
        return normalizer.normalize_table(rows, PixelIndex()).records

    return _normalize


# -----------------------------------------------------------------------------
# Filesystem
# -----------------------------------------------------------------------------

@pytest.fixture
def temp_dir(tmp_path):
    """Per-test scratch directory."""
    return tmp_path


@pytest.fixture
def output_dirs(temp_dir):
    """base/views/logs layout as returned by setup_output_directories."""
    dirs = {"base": temp_dir}
    for name in ("views", "logs"):
        dirs[name] = temp_dir / name
        dirs[name].mkdir()
    return dirs
