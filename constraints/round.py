"""One round of Keccak-f[1600] as constraints over the lane representation.

Allocation order inside a round (the witness generator mirrors it exactly):

    theta: for x in 0..4, z in 0..63:     column sum, column parity
           for lane in 0..24, z in 0..63: output bit
    rho/pi: no cells (relabeling)
    chi:   for lane in 0..24, z in 0..63: output bit
    iota:  for each set bit z of the round constant: output bit

Cost per round: 640 theta column cells, 1600 theta bits, 1600 chi bits and
popcount(RC) iota bits.
"""

from typing import TYPE_CHECKING, List

from primitives.bits import NUM_BITS_PER_WORD
from primitives.keccak import (
    NUM_LANES,
    NUM_ROUNDS,
    PI_DESTINATION,
    ROTATION_OFFSETS,
    ROUND_CONSTANTS,
    lane_coords,
)
from constraints.base import CellRef
from constraints.errors import ConstructionError
from constraints.lanes import KeccakState, Lane
from constraints.tables import CHI, PARITY5, XOR3

if TYPE_CHECKING:
    from protocol.adapter import CircuitAdapter

W = NUM_BITS_PER_WORD


def theta(adapter: "CircuitAdapter", state: KeccakState) -> KeccakState:
    # C[x][z]: parity of column x at bit z
    parities: List[List[CellRef]] = []
    for x in range(5):
        column = []
        for z in range(W):
            total = adapter.allocate_cell(f"sum[{x}][{z}]")
            terms = [state.bit(x, y, z) for y in range(5)]
            adapter.assert_linear([1] * 5 + [-1], terms + [total], 0, annotation=f"column sum [{x}][{z}]")
            parity = adapter.allocate_bit(f"parity[{x}][{z}]")
            adapter.assert_lookup(PARITY5, [total, parity])
            column.append(parity)
        parities.append(column)

    lanes = []
    for index in range(NUM_LANES):
        x, y = lane_coords(index)
        lane = state.lanes[index]
        left = parities[(x - 1) % 5]
        right = parities[(x + 1) % 5]
        bits = []
        for z in range(W):
            out = adapter.allocate_bit(f"lane[{x},{y}][{z}]")
            adapter.assert_lookup(XOR3, [lane[z], left[z], right[(z - 1) % W], out])
            bits.append(out)
        lanes.append(Lane(tuple(bits)))
    return KeccakState(tuple(lanes))


def rho_pi(state: KeccakState) -> KeccakState:
    """Rotate every lane by its rho offset and move it to its pi position."""
    lanes: List[Lane] = [None] * NUM_LANES
    for index in range(NUM_LANES):
        x, y = lane_coords(index)
        lanes[PI_DESTINATION[index]] = state.lanes[index].rotate_left(ROTATION_OFFSETS[x][y])
    return KeccakState(tuple(lanes))


def chi(adapter: "CircuitAdapter", state: KeccakState) -> KeccakState:
    lanes = []
    for index in range(NUM_LANES):
        x, y = lane_coords(index)
        a = state.lanes[index]
        b = state.lane(x + 1, y)
        c = state.lane(x + 2, y)
        bits = []
        for z in range(W):
            out = adapter.allocate_bit(f"lane[{x},{y}][{z}]")
            adapter.assert_lookup(CHI, [a[z], b[z], c[z], out])
            bits.append(out)
        lanes.append(Lane(tuple(bits)))
    return KeccakState(tuple(lanes))


def iota(adapter: "CircuitAdapter", state: KeccakState, round_index: int) -> KeccakState:
    """Flip the bits of lane (0, 0) selected by the round constant."""
    rc = ROUND_CONSTANTS[round_index]
    lane = state.lanes[0]
    bits = list(lane.bits)
    for z in range(W):
        if (rc >> z) & 1:
            out = adapter.allocate_bit(f"lane[0,0][{z}]")
            # out = 1 - in
            adapter.assert_linear([1, 1], [out, lane[z]], -1, annotation=f"iota bit {z}")
            bits[z] = out
    return state.replace({0: Lane(tuple(bits))})


def keccak_round(adapter: "CircuitAdapter", state: KeccakState, round_index: int) -> KeccakState:
    """Constrain one full round and return the state after iota."""
    if not 0 <= round_index < NUM_ROUNDS:
        raise ConstructionError(f"no round constant for round {round_index}", round_index=round_index)
    with adapter.namespace("theta"):
        state = theta(adapter, state)
    state = rho_pi(state)
    with adapter.namespace("chi"):
        state = chi(adapter, state)
    with adapter.namespace("iota"):
        state = iota(adapter, state, round_index)
    return state
