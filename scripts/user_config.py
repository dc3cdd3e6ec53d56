"""Forestlens User Configuration.

This is the user-facing configuration file. Modify settings here to customize
which dataset is loaded and which view is derived. Advanced settings (dataset
registry, normalization rules, thresholds) are in
src/forestlens/schemas/param.py

Usage:
    python scripts/run_views.py scripts/user_config.py
    python scripts/run_views.py scripts/user_config.py --dataset io_class --mode change_detection
"""

CONFIG = {
    # ========================================================================
    # DATA & OUTPUT
    # ========================================================================
    "DATA_DIR": "data",           # Directory holding the dataset CSV files
    "BASE_DIR": "output",         # views/ and logs/ are created here
    "OUTPUT_FORMAT": "csv",       # "csv" or "json"

    # ========================================================================
    # VIEW SELECTION
    # ========================================================================
    # Datasets: mangaroa, mangaroa_canopy, glad, io_class, jrc_cover, jrc_type
    "DATASET": "mangaroa",
    # Modes: current_value, change_from_baseline, trend_analysis, correlation,
    #        binary_classification, forest_change, change_detection
    "MODE": "trend_analysis",
    "METRIC": None,               # None = dataset default
    "YEAR": None,                 # None = latest declared year
    "BASELINE_YEAR": None,        # None = earliest declared year

    # ========================================================================
    # ANALYSIS SETTINGS
    # ========================================================================
    "TREND_THRESHOLD": 0.5,       # |slope| above this is increasing/decreasing
    "DUPLICATE_POLICY": "error",  # "error" or "keep_first"

    # ========================================================================
    # FALLBACK
    # ========================================================================
    "SYNTHETIC_FALLBACK": True,   # Use flagged synthetic data if a file is missing
    "SYNTHETIC_SEED": None,       # Set an int for reproducible synthetic data
}
