"""Turn the three configuration layers into one InternalConfig.

Layers, lowest to highest priority:

- ``ParamConfig``: expert defaults and the dataset registry
- ``UserConfig``: the user's CONFIG file
- ``CLIConfig``: command-line flags

``resolve_config`` is the only way runtime code obtains a configuration.
Besides merging, it fills the view selection (metric, year, baseline year,
correlation partner) from the registry so runtime code never has to guess.
"""

from typing import Union, Optional
from forestlens.schemas.param import DatasetConfig, ParamConfig
from forestlens.schemas.user import UserConfig
from forestlens.schemas.cli import CLIConfig
from forestlens.schemas.internal import InternalConfig


def deep_merge(base: dict, *overrides: dict) -> dict:
    """Return ``base`` updated by each of ``overrides`` in turn.

    Nested mappings are merged key by key, anything else is replaced. The
    inputs are not modified.

    Examples
    --------
    >>> deep_merge({"trend": {"increasing_threshold": 0.5, "decreasing_threshold": -0.5}},
    ...            {"trend": {"increasing_threshold": 1.0}})
    {'trend': {'increasing_threshold': 1.0, 'decreasing_threshold': -0.5}}
    """
    merged = dict(base)
    for layer in overrides:
        for key, value in layer.items():
            current = merged.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                value = deep_merge(current, value)
            merged[key] = value
    return merged


def _as_model(model_cls, value):
    """Accept a model instance, a raw dict, or None for one config layer."""
    if isinstance(value, model_cls):
        return value
    if not value:
        return model_cls()
    return model_cls.model_validate(value)


DATASET_BOUND_SELECTION = ("metric", "secondary_metric", "year", "baseline_year")


def reset_stale_selection(merged: dict, override: dict) -> dict:
    """Clear metric and years pinned for a dataset that ``override`` replaces.

    A user file may pin ``METRIC`` or ``YEAR`` for its own dataset. When a
    higher layer switches to another dataset without restating them, they
    are reset so ``complete_selection`` fills the new dataset's defaults.

    Examples
    --------
    >>> merged = {"selection": {"dataset": "mangaroa", "metric": "canopy_cover"}}
    >>> reset_stale_selection(merged, {"dataset": "glad"})["selection"]["metric"] is None
    True
    """
    new_dataset = override.get("dataset")
    current = merged["selection"].get("dataset")
    if new_dataset is None or str(new_dataset).lower() == str(current).lower():
        return merged

    selection = dict(merged["selection"])
    for name in DATASET_BOUND_SELECTION:
        if name not in override:
            selection[name] = None
    return {**merged, "selection": selection}


def complete_selection(merged: dict) -> dict:
    """Fill metric, year, baseline year, and secondary metric from the registry.

    Leaves the selection untouched when the dataset is unknown; InternalConfig
    validation reports that case.

    Parameters
    ----------
    merged : dict
        Merged configuration dictionary (modified in place and returned).
    """
    selection = merged["selection"]
    dataset = merged["datasets"].get(selection.get("dataset"))
    if dataset is None:
        return merged

    if selection.get("metric") is None:
        selection["metric"] = dataset["default_metric"]

    years = sorted(dataset.get("years") or [])
    if years:
        # Default view is the latest year, measured against the earliest
        if selection.get("year") is None:
            selection["year"] = years[-1]
        if selection.get("baseline_year") is None:
            selection["baseline_year"] = years[0]

    if selection.get("mode") == "correlation" and selection.get("secondary_metric") is None:
        first, second = merged["correlation"]["default_metrics"]
        selection["secondary_metric"] = first if selection["metric"] == second else second

    return merged


def resolve_config(
    param_cfg: Union[dict, ParamConfig],
    user_cfg: Optional[Union[dict, UserConfig]] = None,
    cli_cfg: Optional[Union[dict, CLIConfig]] = None,
) -> InternalConfig:
    """Merge param < user < CLI and validate the result.

    Parameters
    ----------
    param_cfg : dict or ParamConfig
        Expert defaults. Required.
    user_cfg : dict or UserConfig, optional
        User file overrides.
    cli_cfg : dict or CLIConfig, optional
        Command-line overrides.

    Returns
    -------
    InternalConfig
        Frozen runtime configuration with a complete selection.

    Raises
    ------
    ValidationError
        If any layer is invalid, the selected dataset is unknown, or a
        selected year is not declared by the dataset.

    Examples
    --------
    >>> config = resolve_config(ParamConfig(), UserConfig(dataset="io_class"))
    >>> config.selection.metric
    'land_class'
    >>> config.selection.year, config.selection.baseline_year
    (2023, 2017)
    """
    param = _as_model(ParamConfig, param_cfg)
    user = _as_model(UserConfig, user_cfg)
    cli = _as_model(CLIConfig, cli_cfg)

    merged = deep_merge(param.model_dump(), user.to_internal_overrides())
    cli_overrides = cli.to_internal_overrides()
    merged = deep_merge(
        reset_stale_selection(merged, cli_overrides.get("selection", {})),
        cli_overrides,
    )

    # Entries added or patched by the user get registry defaults and checks
    merged["datasets"] = {
        key: DatasetConfig.model_validate(entry).model_dump()
        for key, entry in merged["datasets"].items()
    }
    merged = complete_selection(merged)

    return InternalConfig.model_validate(merged)
