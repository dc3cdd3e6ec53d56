#!/usr/bin/env python3
"""Forestlens view pipeline runner.

Usage:
    python scripts/run_views.py scripts/user_config.py
    python scripts/run_views.py scripts/user_config.py --dataset glad --mode forest_change
    python scripts/run_views.py scripts/user_config.py --mode trend_analysis --metric tree_height
    python scripts/run_views.py scripts/user_config.py --baseline-year 2015 --year 2024

Note: User config in scripts/user_config.py, expert defaults in
src/forestlens/schemas/param.py
"""

import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(project_root / "src"))

from forestlens.cli.run_views import main


if __name__ == "__main__":
    sys.exit(main())
