"""Sponge controller: padding, absorption, 24-round permutation, squeeze.

The controller is a small state machine

    ABSORBING -> PERMUTING -> (ABSORBING | SQUEEZING) -> DONE

driven once per message. The message length is public: padding bytes are
fixed constants of the circuit, message bytes are free witness cells bound
to the packed input words.

Allocation order per block (mirrored by the witness generator):

    for lane in 0..16: input word, its 64 bits, then (blocks > 0) 64 xor bits
    24 rounds (see constraints.round)

and after the last block: hash_hi, hash_lo.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from primitives.bits import NUM_BITS_PER_BYTE, NUM_BYTES_PER_WORD, NUM_BITS_PER_WORD
from primitives.keccak import (
    DIGEST_LANES,
    NUM_ROUNDS,
    RATE_BYTES,
    RATE_LANES,
    HashVariant,
    lane_coords,
    num_blocks,
    padding_bytes,
)
from constraints.base import CellRef
from constraints.errors import ConstructionError
from constraints.lanes import KeccakState, Lane, compose, decompose_lane
from constraints.round import keccak_round
from constraints.tables import XOR2

if TYPE_CHECKING:
    from protocol.adapter import CircuitAdapter

logger = logging.getLogger(__name__)


class SpongePhase(Enum):
    ABSORBING = "absorbing"
    PERMUTING = "permuting"
    SQUEEZING = "squeezing"
    DONE = "done"


@dataclass
class MessageLayout:
    """Cells of one message, addressable by block, round, lane and bit.

    Attributes:
        length: Message length in bytes
        input_words: Packed input word cells per block (RATE_LANES each)
        absorbed: State right after absorbing each block
        rounds: State after each round, indexed [block][round]
        digest_bits: The 256 digest bit cells, digest byte order
        hash_hi: Cell packing digest bytes 0..15 as a big-endian integer
        hash_lo: Cell packing digest bytes 16..31 as a big-endian integer
    """
    length: int
    input_words: List[Tuple[CellRef, ...]] = field(default_factory=list)
    absorbed: List[KeccakState] = field(default_factory=list)
    rounds: List[List[KeccakState]] = field(default_factory=list)
    digest_bits: Tuple[CellRef, ...] = ()
    hash_hi: Optional[CellRef] = None
    hash_lo: Optional[CellRef] = None

    def state(self, block: int, round_index: int) -> KeccakState:
        """State after `round_index` of `block`; round -1 is the absorbed state."""
        if round_index == -1:
            return self.absorbed[block]
        return self.rounds[block][round_index]

    def cell(self, block: int, round_index: int, x: int, y: int, z: int) -> CellRef:
        return self.state(block, round_index).bit(x, y, z)


@dataclass
class CellLayout:
    """Index from (message, block, round, lane, bit) to cells of a circuit."""
    zero: Optional[CellRef] = None
    messages: List[MessageLayout] = field(default_factory=list)

    def __getitem__(self, message: int) -> MessageLayout:
        return self.messages[message]

    def __len__(self) -> int:
        return len(self.messages)


def digest_weights() -> List[int]:
    """Weights packing 16 digest bytes (128 bits) as a big-endian integer."""
    weights = []
    for k in range(16):
        for j in range(NUM_BITS_PER_BYTE):
            weights.append((1 << j) << (NUM_BITS_PER_BYTE * (15 - k)))
    return weights


class KeccakSponge:
    """Drives padding, absorption, permutation and squeezing for one message.

    Args:
        adapter: Where constraints are emitted
        message_length: Public message length in bytes
        zero: Cell constrained to 0, used for the initial state
        variant: Padding domain byte (Keccak-256 or SHA3-256)
        use_instance: Expose input words and the digest halves as public inputs
    """

    def __init__(self, adapter: "CircuitAdapter", message_length: int, zero: CellRef,
                 variant: HashVariant = HashVariant.KECCAK_256, use_instance: bool = True):
        if message_length < 0:
            raise ConstructionError(f"negative message length {message_length}")
        self.adapter = adapter
        self.variant = variant
        self.use_instance = use_instance
        self.phase = SpongePhase.ABSORBING
        self.state = KeccakState.zeros(zero)
        self.num_blocks = num_blocks(message_length)
        self.blocks_absorbed = 0
        self.layout = MessageLayout(length=message_length)
        self._padding = padding_bytes(message_length, variant)

    def _require(self, phase: SpongePhase, step: str) -> None:
        if self.phase is not phase:
            raise ConstructionError(f"cannot {step} while {self.phase.value}", step=step)

    def _padding_byte(self, offset: int) -> Optional[int]:
        """Constant value of the padded message byte at offset, None for message bytes."""
        if offset < self.layout.length:
            return None
        return self._padding[offset - self.layout.length]

    def absorb(self) -> Tuple[CellRef, ...]:
        """XOR the next padded block into the rate lanes."""
        self._require(SpongePhase.ABSORBING, "absorb")
        block = self.blocks_absorbed
        adapter = self.adapter
        words = []
        updates: Dict[int, Lane] = {}
        with adapter.namespace(f"block{block}/absorb"):
            for index in range(RATE_LANES):
                x, y = lane_coords(index)
                word = adapter.allocate_cell(f"word[{index}]")
                lane = decompose_lane(adapter, word, name=f"input[{x},{y}]")
                self._constrain_padding(block, index, lane)
                if self.use_instance:
                    adapter.expose_public(word)
                if block > 0:
                    lane = self._xor_lane(self.state.lanes[index], lane, x, y)
                words.append(word)
                updates[index] = lane
        self.state = self.state.replace(updates)
        self.layout.input_words.append(tuple(words))
        self.layout.absorbed.append(self.state)
        self.phase = SpongePhase.PERMUTING
        return tuple(words)

    def _constrain_padding(self, block: int, index: int, lane: Lane) -> None:
        base = block * RATE_BYTES + index * NUM_BYTES_PER_WORD
        for k in range(NUM_BYTES_PER_WORD):
            value = self._padding_byte(base + k)
            if value is None:
                continue
            for j in range(NUM_BITS_PER_BYTE):
                self.adapter.assert_constant(lane[NUM_BITS_PER_BYTE * k + j], (value >> j) & 1)

    def _xor_lane(self, current: Lane, incoming: Lane, x: int, y: int) -> Lane:
        bits = []
        for z in range(NUM_BITS_PER_WORD):
            out = self.adapter.allocate_bit(f"lane[{x},{y}][{z}]")
            self.adapter.assert_lookup(XOR2, [current[z], incoming[z], out])
            bits.append(out)
        return Lane(tuple(bits))

    def permute(self) -> KeccakState:
        """Apply the 24 constrained rounds to the absorbed state."""
        self._require(SpongePhase.PERMUTING, "permute")
        block = self.blocks_absorbed
        states = []
        for round_index in range(NUM_ROUNDS):
            with self.adapter.namespace(f"block{block}/round{round_index}"):
                self.state = keccak_round(self.adapter, self.state, round_index)
            states.append(self.state)
        self.layout.rounds.append(states)
        self.blocks_absorbed += 1
        logger.debug("permuted block %d/%d", self.blocks_absorbed, self.num_blocks)
        if self.blocks_absorbed < self.num_blocks:
            self.phase = SpongePhase.ABSORBING
        else:
            self.phase = SpongePhase.SQUEEZING
        return self.state

    def squeeze(self) -> Tuple[CellRef, ...]:
        """Extract the digest bits and pack them into hash_hi / hash_lo."""
        self._require(SpongePhase.SQUEEZING, "squeeze")
        bits: List[CellRef] = []
        for index in range(DIGEST_LANES):
            bits.extend(self.state.lanes[index].bits)
        half = len(bits) // 2
        with self.adapter.namespace("squeeze"):
            hash_hi = compose(self.adapter, bits[:half], digest_weights(), name="hash_hi")
            hash_lo = compose(self.adapter, bits[half:], digest_weights(), name="hash_lo")
        if self.use_instance:
            self.adapter.expose_public(hash_hi)
            self.adapter.expose_public(hash_lo)
        self.layout.digest_bits = tuple(bits)
        self.layout.hash_hi = hash_hi
        self.layout.hash_lo = hash_lo
        self.phase = SpongePhase.DONE
        return self.layout.digest_bits

    def run(self) -> MessageLayout:
        """Absorb and permute every block, then squeeze."""
        while self.phase is SpongePhase.ABSORBING:
            self.absorb()
            self.permute()
        self.squeeze()
        return self.layout
