"""Keccak witness generation.

Runs the reference permutation (primitives.keccak) step by step on integer
lanes and records every value the circuit allocates a cell for, in exactly
the allocation order of constraints.sponge and constraints.round:

    per block:
        for lane in 0..16:  word, 64 word bits, (blocks > 0) 64 absorbed bits
        per round:
            theta:  for x, z: column sum, column parity
                    for lane, z: theta bit
            chi:    for lane, z: chi bit
            iota:   for each set bit z of RC: flipped bit
    after the last block: hash_hi, hash_lo

Independent messages can be processed in a worker pool; every worker owns
its own state and results are returned in message order.
"""

import logging
from concurrent.futures import ProcessPoolExecutor
from itertools import repeat
from typing import List, Optional, Sequence

from primitives.bits import NUM_BITS_PER_WORD, unpack, words_to_bytes
from primitives.keccak import (
    DIGEST_LANES,
    NUM_LANES,
    NUM_ROUNDS,
    RATE_BYTES,
    ROUND_CONSTANTS,
    HashVariant,
    block_words,
    chi,
    iota,
    pad,
    rho_pi,
    theta,
)
from .base import WitnessModule, WitnessTrace

logger = logging.getLogger(__name__)

W = NUM_BITS_PER_WORD


class KeccakWitnessGenerator(WitnessModule):
    """Witness generation for one Keccak-256 (or SHA3-256) message."""

    def __init__(self, variant: HashVariant = HashVariant.KECCAK_256):
        self.variant = variant

    def generate(self, message: bytes) -> WitnessTrace:
        message = bytes(message)
        trace = WitnessTrace(message=message, variant=self.variant)
        padded = pad(message, self.variant)
        state = [0] * NUM_LANES
        for block in range(len(padded) // RATE_BYTES):
            state = self._absorb(trace, state, block_words(padded, block), block)
            trace.absorbed.append(tuple(state))
            states = []
            for round_index in range(NUM_ROUNDS):
                state = self._round(trace, state, round_index)
                states.append(tuple(state))
            trace.rounds.append(states)

        trace.digest = words_to_bytes(state[:DIGEST_LANES])
        trace.values.append(int.from_bytes(trace.digest[:16], "big"))
        trace.values.append(int.from_bytes(trace.digest[16:], "big"))
        logger.debug("witness for %d-byte message: %d blocks, %d values",
                     len(message), trace.num_blocks, len(trace.values))
        return trace

    def _absorb(self, trace: WitnessTrace, state: List[int], words: Sequence[int], block: int) -> List[int]:
        values = trace.values
        state = list(state)
        for index, word in enumerate(words):
            values.append(word)
            values.extend(unpack(word))
            state[index] ^= word
            if block > 0:
                values.extend(unpack(state[index]))
        return state

    def _round(self, trace: WitnessTrace, a: List[int], round_index: int) -> List[int]:
        values = trace.values

        # theta: column sums and parities, then the output lanes
        for x in range(5):
            for z in range(W):
                total = sum((a[x + 5 * y] >> z) & 1 for y in range(5))
                values.append(total)
                values.append(total & 1)
        a = theta(a)
        for lane in a:
            values.extend(unpack(lane))

        a = chi(rho_pi(a))
        for lane in a:
            values.extend(unpack(lane))

        rc = ROUND_CONSTANTS[round_index]
        for z in range(W):
            if (rc >> z) & 1:
                values.append(((a[0] >> z) & 1) ^ 1)
        return iota(a, round_index)


def _generate(message: bytes, variant: HashVariant) -> WitnessTrace:
    return KeccakWitnessGenerator(variant).generate(message)


def generate_witnesses(messages: Sequence[bytes],
                       variant: HashVariant = HashVariant.KECCAK_256,
                       workers: Optional[int] = None) -> List[WitnessTrace]:
    """Generate traces for independent messages, in message order.

    Args:
        messages: Input byte strings
        variant: Padding variant
        workers: Worker processes; None or 1 runs sequentially

    Returns:
        One WitnessTrace per message, same order as messages
    """
    messages = [bytes(m) for m in messages]
    if not workers or workers <= 1 or len(messages) <= 1:
        return [_generate(m, variant) for m in messages]
    logger.info("generating %d witnesses with %d workers", len(messages), workers)
    with ProcessPoolExecutor(max_workers=min(workers, len(messages))) as executor:
        return list(executor.map(_generate, messages, repeat(variant)))
