"""Base contract enforcement utilities."""

from volvid.contracts.failure import ContractViolation


def require(condition: bool, message: str) -> None:
    """Enforce a pipeline contract.

    Parameters
    ----------
    condition : bool
        The invariant that must be true. If False, ContractViolation is raised.
    message : str
        Error message explaining the contract violation.

    Raises
    ------
    ContractViolation
        If condition is False.

    Examples
    --------
    >>> require(len(paths) == len(frames), "Dice contract: slice count mismatch")
    """
    if not condition:
        raise ContractViolation(message)
