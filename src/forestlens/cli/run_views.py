"""Run one dataset through the view pipeline from a user config and CLI flags.

``main`` parses arguments and hands them to ``run_view_pipeline``; the
script in scripts/ only puts src/ on the path and calls ``main``.
"""

import argparse
import importlib.util
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from forestlens.analysis.view_engine import ViewMode
from forestlens.errors import InsufficientDataError, ViewConfigurationError
from forestlens.pipeline.orchestrator import setup_logging
from forestlens.pipeline.processor import DatasetProcessor, ViewResult
from forestlens.schemas import ParamConfig, resolve_config
from forestlens.setup_directories import setup_output_directories

__all__ = ['load_user_config_dict', 'run_view_pipeline', 'main']

logger = logging.getLogger(__name__)


def load_user_config_dict(config_path: str) -> dict:
    """Execute a user config file and return its ``CONFIG`` dict, unvalidated.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the file defines no ``CONFIG`` dict.
    """
    path = Path(config_path).expanduser()
    if not path.is_file():
        raise FileNotFoundError(f"User config not found: {path}")

    spec = importlib.util.spec_from_file_location(f"forestlens_user_config_{path.stem}", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    config = getattr(module, "CONFIG", None)
    if not isinstance(config, dict):
        raise ValueError(f"No CONFIG dict found in {path}")
    return config


def run_view_pipeline(
    user_config_path: Optional[str] = None,
    cli_args: Optional[Dict[str, Any]] = None,
    export: bool = True,
    verbose: bool = False,
) -> ViewResult:
    """Load one dataset, derive the selected view, and export it.

    1. Loads and resolves configuration (Param < User < CLI)
    2. Sets up output directories and logging
    3. Loads the dataset (synthetic fallback when unavailable)
    4. Derives the requested view and writes it to views/<dataset>/

    Parameters
    ----------
    user_config_path : str, optional
        Path to user config file (Python file with CONFIG dict).
    cli_args : dict, optional
        CLI overrides. Keys: dataset, mode, metric, secondary_metric, year,
        baseline_year, data_dir, base_dir, output_format, log_level.
    export : bool, optional
        Write the derived views to disk (default True).
    verbose : bool, optional
        Enable DEBUG logging and print the full resolved config.

    Returns
    -------
    ViewResult

    Raises
    ------
    FileNotFoundError
        If user_config_path does not exist.
    ValueError
        If configuration validation fails or the view request does not fit
        the dataset.

    Examples
    --------
    Run with CLI overrides::

        run_view_pipeline(
            "scripts/user_config.py",
            cli_args={"dataset": "glad", "mode": "forest_change"},
        )
    """
    user_cfg = load_user_config_dict(user_config_path) if user_config_path else None
    cli_cfg = {key: value for key, value in (cli_args or {}).items() if value is not None}
    if verbose:
        cli_cfg.setdefault("log_level", "DEBUG")
    config = resolve_config(ParamConfig(), user_cfg, cli_cfg)

    output_dirs = setup_output_directories(config.output.base_dir)
    setup_logging(config, output_dirs["logs"])

    print(f"\n{'='*60}")
    print("Forestlens View Pipeline")
    print('='*60)
    print(f"Config:  {user_config_path or '(defaults)'}")
    print(f"Dataset: {config.selection.dataset} ({config.dataset.label})")
    print(f"Mode:    {config.selection.mode}")
    print(f"Metric:  {config.selection.metric}")
    print(f"Output:  {output_dirs['base']}")
    print('='*60)

    if verbose:
        print("\nFull Internal Configuration:")
        print(json.dumps(config.model_dump(), indent=2))
        print('='*60)

    processor = DatasetProcessor(config, output_dirs)
    result = processor.process(export=export)
    print_result(result)
    return result


def print_result(result: ViewResult) -> None:
    """Print a short human-readable summary of one pipeline run."""
    dataset = result.dataset
    source = f"SYNTHETIC ({dataset.acquisition_error})" if dataset.synthetic else dataset.source
    print(f"Source:  {source}")
    print(f"Records: {dataset_summary_line(result.summary)}")
    print(f"Views:   {len(result.views)} pixels ({result.mode}, {result.metric})")
    if result.correlation is not None:
        corr = result.correlation
        state = "" if corr.defined else " [undefined]"
        print(f"Pearson r ({corr.metric} vs {corr.secondary_metric}, {corr.year}): "
              f"{corr.r:.3f} {corr.strength}{state}")
    if result.output_path is not None:
        print(f"Saved:   {result.output_path}")
    print('='*60)


def dataset_summary_line(summary: dict) -> str:
    line = (f"{summary['valid_records']}/{summary['total_records']} valid, "
            f"{summary['unique_pixels']} pixels")
    if summary.get("year_min") is not None:
        line += f", {summary['year_min']}-{summary['year_max']}"
    if summary.get("dropped_rows"):
        line += f", {summary['dropped_rows']} rows dropped"
    return line


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Derive per-pixel views from a forest dataset")
    parser.add_argument("config", nargs="?", help="Path to user config file")
    parser.add_argument("--dataset", help="Override dataset key (e.g. mangaroa, glad, io_class)")
    parser.add_argument("--mode", choices=[m.value for m in ViewMode], help="Override view mode")
    parser.add_argument("--metric", help="Metric to derive from")
    parser.add_argument("--secondary-metric", help="Second metric for correlation")
    parser.add_argument("--year", type=int, help="Year to display")
    parser.add_argument("--baseline-year", type=int, help="Baseline year for change views")
    parser.add_argument("--data-dir", help="Directory holding the dataset files")
    parser.add_argument("--base-dir", help="Output directory")
    parser.add_argument("--format", dest="output_format", choices=["csv", "json"], help="Export format")
    parser.add_argument("--no-export", action="store_true", help="Derive without writing files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    cli_args = {
        "dataset": args.dataset,
        "mode": args.mode,
        "metric": args.metric,
        "secondary_metric": args.secondary_metric,
        "year": args.year,
        "baseline_year": args.baseline_year,
        "data_dir": args.data_dir,
        "base_dir": args.base_dir,
        "output_format": args.output_format,
    }
    try:
        run_view_pipeline(args.config, cli_args, export=not args.no_export, verbose=args.verbose)
    except (ViewConfigurationError, InsufficientDataError) as exc:
        logger.error("View request failed: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0
