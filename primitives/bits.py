"""Integer-level bit and word packing.

All packing is little-endian: digit i carries weight base**i. Keccak lanes are
64-bit words read from 8 input bytes in little-endian order.
"""

from typing import List, Sequence

NUM_BITS_PER_BYTE = 8
NUM_BYTES_PER_WORD = 8
NUM_BITS_PER_WORD = NUM_BYTES_PER_WORD * NUM_BITS_PER_BYTE

WORD_MASK = (1 << NUM_BITS_PER_WORD) - 1


def pack_with_base(digits: Sequence[int], base: int) -> int:
    """Pack little-endian digits in [0, base) into an integer."""
    value = 0
    for digit in reversed(digits):
        value = value * base + digit
    return value


def pack(bits: Sequence[int]) -> int:
    """Pack little-endian bits into an integer."""
    return pack_with_base(bits, 2)


def unpack(value: int, width: int = NUM_BITS_PER_WORD) -> List[int]:
    """Unpack an integer into `width` little-endian bits.

    Raises:
        ValueError: If value is negative or does not fit in `width` bits
    """
    if value < 0 or value >> width:
        raise ValueError(f"value {value:#x} does not fit in {width} bits")
    return [(value >> i) & 1 for i in range(width)]


def rotl(value: int, count: int, width: int = NUM_BITS_PER_WORD) -> int:
    """Rotate a `width`-bit word left by `count` positions."""
    count %= width
    if count == 0:
        return value
    mask = (1 << width) - 1
    return ((value << count) | (value >> (width - count))) & mask


def bytes_to_words(data: bytes) -> List[int]:
    """Split bytes into little-endian 64-bit words, zero-padding the last chunk."""
    words = []
    for offset in range(0, len(data), NUM_BYTES_PER_WORD):
        chunk = data[offset:offset + NUM_BYTES_PER_WORD]
        words.append(pack_with_base(list(chunk), 256))
    return words


def words_to_bytes(words: Sequence[int]) -> bytes:
    """Serialize 64-bit words as little-endian bytes."""
    return b"".join(w.to_bytes(NUM_BYTES_PER_WORD, "little") for w in words)
