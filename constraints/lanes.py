"""Bit/lane representation of the Keccak state inside the circuit.

A Lane is 64 boolean cells, little-endian: bit z carries weight 2**z, so the
packed value of a lane equals the integer lane of the reference algorithm.
A KeccakState is 25 lanes indexed x + 5*y. Both are immutable; rho and pi
only relabel cells, every other step allocates fresh cells.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterator, Optional, Sequence, Tuple

from primitives.bits import NUM_BITS_PER_WORD
from primitives.field import MAX_PACKED_BITS
from primitives.keccak import NUM_LANES, lane_index
from constraints.base import CellRef
from constraints.errors import ConstructionError

if TYPE_CHECKING:
    from protocol.adapter import CircuitAdapter


@dataclass(frozen=True)
class Lane:
    """64 bit cells of one (x, y) position."""
    bits: Tuple[CellRef, ...]

    def __post_init__(self):
        if len(self.bits) != NUM_BITS_PER_WORD:
            raise ConstructionError(f"lane must have {NUM_BITS_PER_WORD} bits, got {len(self.bits)}")

    @classmethod
    def constant(cls, cell: CellRef) -> "Lane":
        """Lane whose every bit is the same (constant) cell."""
        return cls((cell,) * NUM_BITS_PER_WORD)

    def __getitem__(self, z: int) -> CellRef:
        return self.bits[z % NUM_BITS_PER_WORD]

    def __iter__(self) -> Iterator[CellRef]:
        return iter(self.bits)

    def __len__(self) -> int:
        return len(self.bits)

    def rotate_left(self, count: int) -> "Lane":
        """Relabel bits so that bit z of the result is bit z - count of self."""
        count %= NUM_BITS_PER_WORD
        return Lane(self.bits[-count:] + self.bits[:-count]) if count else self


@dataclass(frozen=True)
class KeccakState:
    """25 lanes, lane (x, y) at index x + 5*y."""
    lanes: Tuple[Lane, ...]

    def __post_init__(self):
        if len(self.lanes) != NUM_LANES:
            raise ConstructionError(f"state must have {NUM_LANES} lanes, got {len(self.lanes)}")

    @classmethod
    def zeros(cls, zero: CellRef) -> "KeccakState":
        return cls((Lane.constant(zero),) * NUM_LANES)

    def lane(self, x: int, y: int) -> Lane:
        return self.lanes[lane_index(x, y)]

    def bit(self, x: int, y: int, z: int) -> CellRef:
        return self.lanes[lane_index(x, y)][z]

    def replace(self, updates: Dict[int, Lane]) -> "KeccakState":
        """New state with the lanes at the given flat indices replaced."""
        lanes = list(self.lanes)
        for index, lane in updates.items():
            lanes[index] = lane
        return KeccakState(tuple(lanes))

    def cells(self) -> Iterator[CellRef]:
        """All 1600 bit cells in lane order."""
        for lane in self.lanes:
            yield from lane


def decompose(adapter: "CircuitAdapter", word: CellRef, width: int = NUM_BITS_PER_WORD,
              name: str = "bit") -> Tuple[CellRef, ...]:
    """Allocate `width` boolean cells whose binary expansion equals `word`.

    Raises:
        ConstructionError: If width is not in [1, 64]
    """
    if not 0 < width <= NUM_BITS_PER_WORD:
        raise ConstructionError(f"cannot decompose into {width} bits; lanes hold {NUM_BITS_PER_WORD}")
    bits = tuple(adapter.allocate_bit(f"{name}[{z}]") for z in range(width))
    coeffs = [1 << z for z in range(width)] + [-1]
    adapter.assert_linear(coeffs, bits + (word,), 0, annotation=f"decompose {name}")
    return bits


def decompose_lane(adapter: "CircuitAdapter", word: CellRef, name: str = "lane") -> Lane:
    return Lane(decompose(adapter, word, NUM_BITS_PER_WORD, name))


def compose(adapter: "CircuitAdapter", bits: Sequence[CellRef],
            weights: Optional[Sequence[int]] = None, name: str = "packed") -> CellRef:
    """Allocate a cell holding sum(weights[i] * bits[i]).

    Weights default to powers of two (little-endian packing).

    Raises:
        ConstructionError: If the packed value could exceed the field
    """
    if weights is None:
        weights = [1 << z for z in range(len(bits))]
    if len(weights) != len(bits):
        raise ConstructionError(f"compose {name}: {len(weights)} weights for {len(bits)} bits")
    if sum(weights).bit_length() > MAX_PACKED_BITS:
        raise ConstructionError(f"compose {name}: packed value does not fit in the field")
    packed = adapter.allocate_cell(name)
    adapter.assert_linear(list(weights) + [-1], list(bits) + [packed], 0, annotation=f"compose {name}")
    return packed
