"""`Forestlens` - per-pixel forest and canopy dataset views.

Subpackages:
- pixels: Record normalization, pixel indexing, dataset loading
- analysis: Statistics, view derivation, dataset summaries
- pipeline: Processor, fetcher, orchestrator
- schemas: Pydantic configuration layers
"""

__version__ = "0.1.0"
