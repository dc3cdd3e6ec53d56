"""Acquire dataset files and normalize them into a LoadedDataset.

Reading is a one-shot operation per dataset selection. A missing, unreadable,
or empty file is an acquisition failure: the loader falls back to a
synthetic table of the same shape (when enabled) and flags the result, so
callers can tell the fallback apart from real data. Parse failures of single
rows are handled by the normalizer and never abort the load.

Author: Forestlens contributors
"""

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional
import logging

import pandas as pd

from forestlens.errors import DataAcquisitionError
from forestlens.pixels.normalizer import RecordNormalizer
from forestlens.pixels.pixel_index import PixelIndex
from forestlens.pixels.records import DatasetKind
from forestlens.pixels.synthetic import generate_synthetic_table

if TYPE_CHECKING:
    from forestlens.schemas import InternalConfig

__all__ = ['DatasetLoader', 'LoadedDataset']

logger = logging.getLogger(__name__)

@dataclass
class LoadedDataset:
    """Result of one dataset load.

    Attributes
    ----------
    key : str
        Registry key of the dataset.
    kind : DatasetKind
        Shape of the records.
    records : list of PixelRecord
        All normalized records, including no-data ones.
    index : PixelIndex
        Index that assigned this load's pixel ids.
    source : str
        File path, or "synthetic" for the fallback.
    synthetic : bool
        True when the records are the synthetic fallback.
    dropped_rows : int
        Rows dropped because they failed to parse.
    acquisition_error : str, optional
        Why the real file could not be used, when ``synthetic`` is True.
    """
    key: str
    kind: DatasetKind
    records: list
    index: PixelIndex
    source: str
    synthetic: bool = False
    dropped_rows: int = 0
    acquisition_error: Optional[str] = None

    @property
    def valid_records(self) -> list:
        """Records that passed the no-data check, ready for view derivation."""
        return [r for r in self.records if r.validity]

    @property
    def years(self) -> list:
        """Sorted distinct years present among valid records."""
        return sorted({r.year for r in self.records if r.validity and r.year is not None})

class DatasetLoader:
    """Load registry datasets from delimited text files.

    Parameters
    ----------
    config : InternalConfig
        Fully validated runtime configuration.

    Examples
    --------
    >>> loader = DatasetLoader(config)
    >>> dataset = loader.load("glad")
    >>> if dataset.synthetic:
    ...     print("showing synthetic data:", dataset.acquisition_error)
    >>> len(dataset.valid_records)
    """

    def __init__(self, config: "InternalConfig"):
        self.config = config
        self.data_dir = Path(config.data_dir).expanduser()

    def path_for(self, dataset_key: str) -> Path:
        """Absolute or data_dir-relative path of a dataset's file."""
        file_path = Path(self.config.datasets[dataset_key].file).expanduser()
        if file_path.is_absolute():
            return file_path
        return self.data_dir / file_path

    def read_table(self, filepath) -> pd.DataFrame:
        """Read a delimited text file with a header row.

        The delimiter (comma, tab, pipe, semicolon) is sniffed by pandas.
        Column names are stripped; blank lines are skipped.

        Raises
        ------
        DataAcquisitionError
            If the file is missing, cannot be parsed, or has no rows.
        """
        filepath = Path(filepath)
        if not filepath.exists():
            raise DataAcquisitionError(f"Dataset file not found: {filepath}")

        try:
            table = pd.read_csv(
                filepath,
                sep=None,
                engine="python",
                skip_blank_lines=True,
            )
        except (OSError, csv.Error, pd.errors.ParserError, pd.errors.EmptyDataError,
                UnicodeDecodeError) as e:
            raise DataAcquisitionError(f"Failed to read {filepath}: {e}") from e

        if table.empty:
            raise DataAcquisitionError(f"Dataset file has no rows: {filepath}")

        table.columns = [str(c).strip() for c in table.columns]
        logger.debug("Read %d rows from %s (columns: %s)", len(table), filepath, list(table.columns))
        return table

    def load(self, dataset_key: Optional[str] = None) -> LoadedDataset:
        """Read and normalize one dataset.

        Parameters
        ----------
        dataset_key : str, optional
            Registry key. Defaults to the selected dataset.

        Returns
        -------
        LoadedDataset
            Real data, or the flagged synthetic fallback.

        Raises
        ------
        DataAcquisitionError
            If the file cannot be read and the synthetic fallback is disabled.
        DataQualityError
            If the table holds duplicate (pixel_id, year) records and the
            duplicate policy is "error".
        """
        dataset_key = dataset_key or self.config.selection.dataset
        dataset = self.config.datasets[dataset_key]
        normalizer = RecordNormalizer(self.config, dataset_key)
        index = PixelIndex(self.config.normalizer.coord_precision)
        filepath = self.path_for(dataset_key)

        try:
            table = self.read_table(filepath)
        except DataAcquisitionError as e:
            if not self.config.synthetic.enabled:
                raise
            logger.warning("%s unavailable (%s); falling back to synthetic data", dataset_key, e)
            table = generate_synthetic_table(self.config, dataset)
            result = normalizer.normalize_table(table, index, synthetic=True)
            return LoadedDataset(
                key=dataset_key,
                kind=DatasetKind(dataset.kind),
                records=result.records,
                index=index,
                source="synthetic",
                synthetic=True,
                dropped_rows=result.dropped_rows,
                acquisition_error=str(e),
            )

        result = normalizer.normalize_table(table, index)
        logger.info("Loaded %s from %s", dataset_key, filepath)
        return LoadedDataset(
            key=dataset_key,
            kind=DatasetKind(dataset.kind),
            records=result.records,
            index=index,
            source=str(filepath),
            dropped_rows=result.dropped_rows,
        )
