"""Primitives - Field arithmetic, bit packing and the reference Keccak permutation."""

from primitives.field import (
    BN254_PRIME,
    FF,
    batch_inverse,
    reduce,
    to_field,
)
from primitives.bits import (
    NUM_BITS_PER_BYTE,
    NUM_BITS_PER_WORD,
    NUM_BYTES_PER_WORD,
    bytes_to_words,
    pack,
    pack_with_base,
    rotl,
    unpack,
    words_to_bytes,
)
from primitives.keccak import (
    DIGEST_BYTES,
    NUM_ROUNDS,
    PI_DESTINATION,
    RATE_BYTES,
    RATE_LANES,
    ROTATION_OFFSETS,
    ROUND_CONSTANTS,
    HashVariant,
    keccak256,
    keccak_f1600,
    keccak_hash,
    pad,
    sha3_256,
)

__all__ = [
    # Field
    "FF",
    "BN254_PRIME",
    "batch_inverse",
    "reduce",
    "to_field",
    # Bits
    "NUM_BITS_PER_BYTE",
    "NUM_BITS_PER_WORD",
    "NUM_BYTES_PER_WORD",
    "pack",
    "pack_with_base",
    "unpack",
    "rotl",
    "bytes_to_words",
    "words_to_bytes",
    # Keccak
    "NUM_ROUNDS",
    "RATE_BYTES",
    "RATE_LANES",
    "DIGEST_BYTES",
    "ROUND_CONSTANTS",
    "ROTATION_OFFSETS",
    "PI_DESTINATION",
    "HashVariant",
    "keccak_f1600",
    "keccak_hash",
    "keccak256",
    "sha3_256",
    "pad",
]
