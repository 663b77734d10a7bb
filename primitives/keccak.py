"""Keccak-f[1600] constants and reference implementation on integer lanes.

The state is a flat list of 25 lanes; lane (x, y) lives at index x + 5*y,
which is also the order in which lanes appear in the byte serialization of
the state. Every constant is computed once at import and never mutated.

Reference: FIPS 202, sections 3.2 and 5.1; Keccak team CompactFIPS202.py.
"""

from enum import Enum
from typing import List, Sequence, Tuple

from primitives.bits import NUM_BITS_PER_WORD, NUM_BYTES_PER_WORD, WORD_MASK, rotl, words_to_bytes

# --- Dimensions ---

NUM_ROUNDS = 24
NUM_LANES = 25
LANE_WIDTH = NUM_BITS_PER_WORD
STATE_WIDTH = NUM_LANES * LANE_WIDTH

RATE_BITS = 1088
RATE_BYTES = RATE_BITS // 8
RATE_LANES = RATE_BYTES // NUM_BYTES_PER_WORD
CAPACITY_BITS = STATE_WIDTH - RATE_BITS

DIGEST_BITS = 256
DIGEST_BYTES = DIGEST_BITS // 8
DIGEST_LANES = DIGEST_BYTES // NUM_BYTES_PER_WORD


class HashVariant(Enum):
    """Sponge domain separation byte for the supported 256-bit hashes."""
    KECCAK_256 = 0x01
    SHA3_256 = 0x06

    @property
    def domain(self) -> int:
        return self.value


def lane_index(x: int, y: int) -> int:
    """Flat index of lane (x, y)."""
    return (x % 5) + 5 * (y % 5)


def lane_coords(index: int) -> Tuple[int, int]:
    """(x, y) coordinates of a flat lane index."""
    return index % 5, index // 5


# --- Constants ---

def _compute_round_constants() -> Tuple[int, ...]:
    """Round constants from the degree-8 LFSR x^8 + x^6 + x^5 + x^4 + 1."""
    constants = []
    r = 1
    for _ in range(NUM_ROUNDS):
        rc = 0
        for j in range(7):
            r = ((r << 1) ^ ((r >> 7) * 0x71)) % 256
            if r & 2:
                rc |= 1 << ((1 << j) - 1)
        constants.append(rc)
    return tuple(constants)


def _compute_rotation_offsets() -> Tuple[Tuple[int, ...], ...]:
    """Rho offsets indexed [x][y]."""
    offsets = [[0] * 5 for _ in range(5)]
    x, y = 1, 0
    for t in range(24):
        offsets[x][y] = ((t + 1) * (t + 2) // 2) % LANE_WIDTH
        x, y = y, (2 * x + 3 * y) % 5
    return tuple(tuple(column) for column in offsets)


def _compute_pi_destinations() -> Tuple[int, ...]:
    """PI_DESTINATION[i] is the flat index lane i moves to: (x, y) -> (y, 2x + 3y)."""
    destinations = []
    for index in range(NUM_LANES):
        x, y = lane_coords(index)
        destinations.append(lane_index(y, 2 * x + 3 * y))
    return tuple(destinations)


ROUND_CONSTANTS = _compute_round_constants()
ROTATION_OFFSETS = _compute_rotation_offsets()
PI_DESTINATION = _compute_pi_destinations()


# --- Padding ---

def num_blocks(message_length: int, rate_bytes: int = RATE_BYTES) -> int:
    """Number of absorbed blocks; a full final block forces an extra one."""
    return message_length // rate_bytes + 1


def padding_bytes(message_length: int, variant: HashVariant = HashVariant.KECCAK_256,
                  rate_bytes: int = RATE_BYTES) -> bytes:
    """pad10*1 suffix appended to a message of the given length."""
    pad_len = rate_bytes - message_length % rate_bytes
    suffix = bytearray(pad_len)
    suffix[0] ^= variant.domain
    suffix[-1] ^= 0x80
    return bytes(suffix)


def pad(message: bytes, variant: HashVariant = HashVariant.KECCAK_256,
        rate_bytes: int = RATE_BYTES) -> bytes:
    """Message followed by its pad10*1 suffix; length is a multiple of the rate."""
    return bytes(message) + padding_bytes(len(message), variant, rate_bytes)


def block_words(padded: bytes, block: int) -> List[int]:
    """The RATE_LANES little-endian words of one padded block."""
    offset = block * RATE_BYTES
    return [
        int.from_bytes(padded[offset + 8 * i:offset + 8 * i + 8], "little")
        for i in range(RATE_LANES)
    ]


# --- Step Mappings ---

def column_parities(a: Sequence[int]) -> List[int]:
    """C[x] = A[x,0] ^ A[x,1] ^ ... ^ A[x,4]."""
    return [a[x] ^ a[x + 5] ^ a[x + 10] ^ a[x + 15] ^ a[x + 20] for x in range(5)]


def theta(a: Sequence[int]) -> List[int]:
    c = column_parities(a)
    d = [c[(x - 1) % 5] ^ rotl(c[(x + 1) % 5], 1) for x in range(5)]
    return [a[i] ^ d[i % 5] for i in range(NUM_LANES)]


def rho_pi(a: Sequence[int]) -> List[int]:
    b = [0] * NUM_LANES
    for index in range(NUM_LANES):
        x, y = lane_coords(index)
        b[PI_DESTINATION[index]] = rotl(a[index], ROTATION_OFFSETS[x][y])
    return b


def chi(b: Sequence[int]) -> List[int]:
    a = [0] * NUM_LANES
    for index in range(NUM_LANES):
        x, y = lane_coords(index)
        a[index] = b[index] ^ ((~b[lane_index(x + 1, y)] & WORD_MASK) & b[lane_index(x + 2, y)])
    return a


def iota(a: Sequence[int], round_index: int) -> List[int]:
    result = list(a)
    result[0] ^= ROUND_CONSTANTS[round_index]
    return result


def keccak_round(a: Sequence[int], round_index: int) -> List[int]:
    return iota(chi(rho_pi(theta(a))), round_index)


def keccak_f1600(state: Sequence[int]) -> List[int]:
    """Apply the 24-round permutation to 25 integer lanes."""
    if len(state) != NUM_LANES:
        raise ValueError(f"state must have {NUM_LANES} lanes, got {len(state)}")
    lanes = list(state)
    for round_index in range(NUM_ROUNDS):
        lanes = keccak_round(lanes, round_index)
    return lanes


# --- Sponge ---

def keccak_hash(message: bytes, variant: HashVariant = HashVariant.KECCAK_256) -> bytes:
    """256-bit sponge hash of message with the variant's padding."""
    padded = pad(message, variant)
    state = [0] * NUM_LANES
    for block in range(len(padded) // RATE_BYTES):
        for i, word in enumerate(block_words(padded, block)):
            state[i] ^= word
        state = keccak_f1600(state)
    return words_to_bytes(state[:DIGEST_LANES])


def keccak256(message: bytes) -> bytes:
    """Ethereum-style Keccak-256 (domain byte 0x01)."""
    return keccak_hash(message, HashVariant.KECCAK_256)


def sha3_256(message: bytes) -> bytes:
    """NIST SHA3-256 (domain byte 0x06)."""
    return keccak_hash(message, HashVariant.SHA3_256)
