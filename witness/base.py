"""Base class and trace type for witness generation."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Tuple

from primitives.keccak import HashVariant

Lanes = Tuple[int, ...]


@dataclass
class WitnessTrace:
    """Concrete values of one message's cells plus the states they encode.

    Attributes:
        message: Input bytes
        variant: Padding variant the trace was generated for
        values: One value per cell, in the circuit's allocation order
        absorbed: Integer lanes right after absorbing each block
        rounds: Integer lanes after every round, indexed [block][round]
        digest: The 32-byte digest
    """
    message: bytes
    variant: HashVariant
    values: List[int] = field(default_factory=list)
    absorbed: List[Lanes] = field(default_factory=list)
    rounds: List[List[Lanes]] = field(default_factory=list)
    digest: bytes = b""

    @property
    def num_blocks(self) -> int:
        return len(self.absorbed)


class WitnessModule(ABC):
    """Per-message witness generation. Used by the prover only.

    A witness module replays the reference computation and records every
    intermediate value the circuit allocates a cell for. The constraint
    gadgets never see these values; the two sides meet only when the trace is
    assigned positionally to the allocated cells.
    """

    @abstractmethod
    def generate(self, message: bytes) -> WitnessTrace:
        """Compute the full trace for one message.

        Args:
            message: Input bytes (any length, including empty)

        Returns:
            WitnessTrace whose values follow the circuit's allocation order
        """
        pass
