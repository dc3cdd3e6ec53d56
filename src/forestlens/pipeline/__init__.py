"""Pipeline: dataset processing, background fetching, and selection handling."""

from forestlens.pipeline.processor import DatasetProcessor, ViewResult
from forestlens.pipeline.fetcher import DatasetFetcher, FetchResult
from forestlens.pipeline.orchestrator import ViewOrchestrator, setup_logging

__all__ = [
    'DatasetProcessor',
    'ViewResult',
    'DatasetFetcher',
    'FetchResult',
    'ViewOrchestrator',
    'setup_logging',
]
