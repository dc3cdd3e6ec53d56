"""Pipeline contracts: fail-fast checks between stages.

Pydantic validates the configuration, the normalizer and view engine handle
data edge cases, and the contracts here catch a stage that broke its own
output guarantees:

- ``assert_normalized``: after normalization, before anything else
- ``assert_validity_filtered``: on entry to the view engine
- ``assert_view_output``: on the engine's result
"""

from forestlens.contracts.base import ContractViolation, require
from forestlens.contracts.records import assert_normalized, assert_validity_filtered
from forestlens.contracts.views import assert_view_output

__all__ = [
    "ContractViolation",
    "require",
    "assert_normalized",
    "assert_validity_filtered",
    "assert_view_output",
]
