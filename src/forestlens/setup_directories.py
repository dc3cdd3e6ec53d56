"""
Output layout for exported views and logs.

Everything lives under one base directory:
- views/<dataset>/<dataset>_<mode>_<YYYYmmdd_HHMMSS>.<csv|json>
- logs/forestlens_<dataset>.log

Author: Forestlens contributors
"""

from datetime import datetime, timezone
from pathlib import Path

OUTPUT_SUBDIRS = ("views", "logs")


def setup_output_directories(base_output_dir=None):
    """
    Create the output tree and return its paths.

    Parameters
    ----------
    base_output_dir : str or Path, optional
        Root of the tree. ``./output`` when omitted.

    Returns
    -------
    dict
        'base', 'views' and 'logs' mapped to absolute paths.
    """
    base = Path(base_output_dir or Path.cwd() / "output").expanduser().resolve()

    directories = {"base": base}
    directories.update({name: base / name for name in OUTPUT_SUBDIRS})
    for directory in directories.values():
        directory.mkdir(parents=True, exist_ok=True)
    return directories


def get_view_path(output_dirs, dataset_key, mode, fmt="csv", timestamp=None):
    """
    Path for one exported view table, creating the dataset folder.

    Parameters
    ----------
    output_dirs : dict
        As returned by setup_output_directories().
    dataset_key : str
        Registry key, e.g. 'mangaroa'.
    mode : str
        View mode, e.g. 'trend_analysis'.
    fmt : str
        'csv' or 'json'.
    timestamp : datetime, optional
        Time stamped into the name. Current UTC time when omitted.

    Example
    -------
    >>> get_view_path(dirs, 'glad', 'forest_change', 'json')
    PosixPath('output/views/glad/glad_forest_change_20251126_221706.json')
    """
    stamp = (timestamp or datetime.now(timezone.utc)).strftime("%Y%m%d_%H%M%S")

    dataset_dir = Path(output_dirs["views"]) / dataset_key
    dataset_dir.mkdir(parents=True, exist_ok=True)
    return dataset_dir / f"{dataset_key}_{mode}_{stamp}.{fmt}"


def get_log_path(output_dirs, dataset_key=None):
    """
    Log file path: logs/forestlens_<dataset>.log, or logs/forestlens.log.
    """
    logs = Path(output_dirs["logs"])
    logs.mkdir(parents=True, exist_ok=True)

    name = f"forestlens_{dataset_key}.log" if dataset_key else "forestlens.log"
    return logs / name
