"""Coordinate-keyed pixel identifiers.

A ``PixelIndex`` is owned by exactly one dataset load. It maps the rounded
(x, y) coordinate key to an integer assigned in first-seen order. Separate
loads use separate instances, so ids are never shared across datasets.
"""

import logging

__all__ = ['PixelIndex']

logger = logging.getLogger(__name__)


class PixelIndex:
    """Stable integer ids for rounded (x, y) coordinates within one load.

    Parameters
    ----------
    precision : int, default 6
        Decimal places kept for both coordinates when building the key.

    Examples
    --------
    >>> index = PixelIndex()
    >>> index.assign(175.0869011, -41.1486131)
    0
    >>> index.assign(175.0869012, -41.1486132)  # same key at 6 decimals
    0
    >>> index.assign(175.1, -41.1)
    1
    """

    def __init__(self, precision: int = 6):
        self.precision = precision
        self._ids = {}

    def key(self, x: float, y: float) -> str:
        """Coordinate key: x and y each formatted to ``precision`` decimals."""
        return f"{x:.{self.precision}f}_{y:.{self.precision}f}"

    def assign(self, x: float, y: float) -> int:
        """Return the id for (x, y), assigning the next id on first sighting."""
        key = self.key(x, y)
        pixel_id = self._ids.get(key)
        if pixel_id is None:
            pixel_id = len(self._ids)
            self._ids[key] = pixel_id
        return pixel_id

    def lookup(self, x: float, y: float):
        """Return the id for (x, y) or None if the coordinate was never assigned."""
        return self._ids.get(self.key(x, y))

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, coords) -> bool:
        x, y = coords
        return self.key(x, y) in self._ids
