"""Domain error taxonomy.

Key distinction:
- InvalidRecordError: one bad row (dropped, logged, never fatal)
- DataQualityError: the dataset as a whole is inconsistent (fatal to the load)
- ViewConfigurationError: a view was requested that the dataset cannot support
- InsufficientDataError: a statistic is undefined for its inputs
- DataAcquisitionError: the dataset file could not be read
- ContractViolation (forestlens.contracts): pipeline bug
"""


class InvalidRecordError(ValueError):
    """Raised when a raw row cannot be normalized into a PixelRecord."""


class DataQualityError(ValueError):
    """Raised when a normalized record set violates dataset-level rules.

    Currently: more than one record for the same (pixel_id, year).
    """


class ViewConfigurationError(ValueError):
    """Raised when a view mode or metric does not fit the dataset shape."""


class InsufficientDataError(ValueError):
    """Raised by statistics functions when the inputs cannot define a result."""


class DataAcquisitionError(OSError):
    """Raised when a dataset file is missing, unreadable, or empty."""
