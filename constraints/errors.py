"""Error taxonomy for circuit construction and witness checking."""

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from constraints.base import VerifyFailure


class KeccakCircuitError(Exception):
    """Base class for all circuit errors."""


class ConstructionError(KeccakCircuitError, ValueError):
    """Malformed circuit construction, detected while building constraints.

    Args:
        message: Description of the problem
        round_index: Permutation round being built, if any
        step: Step name (e.g. 'theta', 'absorb'), if any
    """

    def __init__(self, message: str, round_index: Optional[int] = None, step: Optional[str] = None):
        self.round_index = round_index
        self.step = step
        context = []
        if round_index is not None:
            context.append(f"round {round_index}")
        if step is not None:
            context.append(step)
        if context:
            message = f"{message} [{', '.join(context)}]"
        super().__init__(message)


class UnsatisfiableWitness(KeccakCircuitError):
    """The assigned witness violates at least one constraint."""

    def __init__(self, failures: List["VerifyFailure"]):
        self.failures = list(failures)
        shown = "\n  ".join(str(f) for f in self.failures[:5])
        more = len(self.failures) - 5
        suffix = f"\n  ... and {more} more" if more > 0 else ""
        super().__init__(f"{len(self.failures)} constraint failure(s):\n  {shown}{suffix}")


class InputError(KeccakCircuitError, ValueError):
    """Caller-supplied input has the wrong type or range."""
