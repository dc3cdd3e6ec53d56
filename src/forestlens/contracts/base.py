"""Contract exception and the single ``require`` check used by every stage.

A contract failure means a stage handed on data it promised never to hand
on, such as a no-data record reaching the view engine or two ids for one
coordinate. Bad rows and unsupported view requests are reported through
``forestlens.errors`` instead.
"""

__all__ = ['ContractViolation', 'require']


class ContractViolation(RuntimeError):
    """A pipeline stage broke one of its output guarantees.

    Not a ``ValueError`` subclass, so handlers for ``forestlens.errors`` do
    not catch it.
    """


def require(condition: bool, message: str) -> None:
    """Raise ContractViolation with ``message`` unless ``condition`` holds.

    Examples
    --------
    >>> require(all(r.validity for r in records), "Validity contract: no-data record")
    """
    if not condition:
        raise ContractViolation(message)
