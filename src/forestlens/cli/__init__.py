"""Command-line interface modules for the forestlens view pipeline.

The runner lives here; scripts/run_views.py is a thin wrapper around ``main``.
"""

from forestlens.cli.run_views import run_view_pipeline

__all__ = ['run_view_pipeline']
