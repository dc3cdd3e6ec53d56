"""View stage contract.

Enforces the guarantee that derived views reference only input pixels,
appear once per pixel, and carry finite numbers or known labels.
"""

import math
from numbers import Number

from forestlens.contracts.base import require


def assert_view_output(views, records, labels=None) -> None:
    """Enforce view stage contract.

    Called after ``ViewDerivationEngine.derive``. Structural checks only;
    the arithmetic itself is the engine's responsibility.

    Parameters
    ----------
    views : list of DerivedView
        Engine output.
    records : list of PixelRecord
        The validity-filtered engine input.
    labels : collection of str, optional
        Allowed values for relabeling modes. None means values must be numeric.

    Raises
    ------
    ContractViolation
        If any invariant is violated
    """
    input_ids = {record.pixel_id for record in records}
    seen = set()
    for view in views:
        require(
            view.pixel_id in input_ids,
            f"View contract violated: pixel {view.pixel_id} not in input records"
        )
        require(
            view.pixel_id not in seen,
            f"View contract violated: pixel {view.pixel_id} appears twice"
        )
        seen.add(view.pixel_id)

        if labels is None:
            require(
                isinstance(view.value, Number) and math.isfinite(view.value),
                f"View contract violated: pixel {view.pixel_id} value {view.value!r} is not a finite number"
            )
        else:
            require(
                view.value in labels,
                f"View contract violated: pixel {view.pixel_id} label {view.value!r} not in {sorted(labels)}"
            )
