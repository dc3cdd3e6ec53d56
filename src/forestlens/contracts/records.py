"""Normalization and validity-filter contracts.

Enforces the guarantees that normalized records carry pixel ids and
well-formed coordinates, and that the set handed to the view engine holds
only valid records with at most one record per (pixel_id, year).
"""

import math

from forestlens.contracts.base import require


def assert_normalized(records, precision: int = 6) -> None:
    """Enforce normalization stage contract.

    Called after the loader returns. Verifies every record has a pixel id,
    finite coordinates, and a year exactly when its shape is a time series.

    Parameters
    ----------
    records : list of PixelRecord
        Output of ``RecordNormalizer.normalize_table``.
    precision : int, default 6
        Coordinate precision of the pixel key.

    Raises
    ------
    ContractViolation
        If any invariant is violated
    """
    ids_by_key = {}
    for record in records:
        require(
            isinstance(record.pixel_id, int) and record.pixel_id >= 0,
            f"Normalization contract violated: bad pixel_id {record.pixel_id!r}"
        )
        require(
            math.isfinite(record.x) and math.isfinite(record.y),
            f"Normalization contract violated: non-finite coordinates for pixel {record.pixel_id}"
        )
        if record.dataset_kind.is_time_series:
            require(
                record.year is not None,
                f"Normalization contract violated: time-series pixel {record.pixel_id} has no year"
            )
        else:
            require(
                record.year is None,
                f"Normalization contract violated: static pixel {record.pixel_id} has year {record.year}"
            )

        # Same rounded coordinate must map to the same id
        key = f"{record.x:.{precision}f}_{record.y:.{precision}f}"
        known = ids_by_key.setdefault(key, record.pixel_id)
        require(
            known == record.pixel_id,
            f"Normalization contract violated: coordinate {key} has ids {known} and {record.pixel_id}"
        )


def assert_validity_filtered(records) -> None:
    """Enforce the validity-filter contract on view engine input.

    Raises
    ------
    ContractViolation
        If a no-data record is present, the records mix dataset shapes, or
        a (pixel_id, year) pair repeats.
    """
    kinds = {record.dataset_kind for record in records}
    require(
        len(kinds) <= 1,
        f"Validity contract violated: mixed dataset kinds {sorted(k.value for k in kinds)}"
    )

    seen = set()
    for record in records:
        require(
            record.validity,
            f"Validity contract violated: no-data record for pixel {record.pixel_id} reached the engine"
        )
        key = (record.pixel_id, record.year)
        require(
            key not in seen,
            f"Validity contract violated: duplicate record for pixel {record.pixel_id} year {record.year}"
        )
        seen.add(key)
