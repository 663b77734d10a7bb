"""Keccak circuit: synthesis, witness assignment and public instance helpers.

Build flow of build_keccak_circuit():

    1. Register the lookup tables (once per circuit, before any round)
    2. Allocate the shared zero cell, then one sponge per message
    3. Generate witness traces (optionally in a process pool)
    4. Assign [0] + trace values positionally to the allocated cells
    5. Optionally cross-check every absorbed word against the padded message
       and every digest against the reference hash
    6. Optionally verify the witness through the backend

Public instance layout (use_instance=True), per message in input order:

    padded input words of every block (little-endian u64, 17 per block)
    hash_hi, hash_lo (digest halves as big-endian 128-bit integers)
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from primitives.bits import NUM_BITS_PER_BYTE, bytes_to_words, pack
from primitives.keccak import (
    RATE_BYTES,
    HashVariant,
    block_words,
    keccak_hash,
    pad,
)
from constraints.base import ConstraintSystem
from constraints.errors import ConstructionError, InputError, UnsatisfiableWitness
from constraints.sponge import CellLayout, KeccakSponge
from constraints.tables import keccak_tables
from witness.base import WitnessTrace
from witness.generator import generate_witnesses
from .adapter import CircuitAdapter
from .backend import MockBackend, ProverBackend
from .config import KeccakConfig

logger = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]


def normalize_inputs(inputs: Union[BytesLike, Sequence[BytesLike]]) -> List[bytes]:
    """Accept one message or a sequence of messages; return a list of bytes.

    Raises:
        InputError: If a message is not bytes-like
    """
    if isinstance(inputs, (bytes, bytearray, memoryview)):
        return [bytes(inputs)]
    if isinstance(inputs, str):
        raise InputError("messages must be bytes, got str")
    try:
        messages = list(inputs)
    except TypeError:
        raise InputError(f"messages must be bytes, got {type(inputs).__name__}") from None
    normalized = []
    for index, message in enumerate(messages):
        if not isinstance(message, (bytes, bytearray, memoryview)):
            raise InputError(f"message {index} must be bytes, got {type(message).__name__}")
        normalized.append(bytes(message))
    return normalized


class KeccakCircuit:
    """Keccak-256 (or SHA3-256) of a batch of messages as one circuit.

    Args:
        inputs: One message or a sequence of messages
        config: Build options
    """

    def __init__(self, inputs: Union[BytesLike, Sequence[BytesLike]],
                 config: Optional[KeccakConfig] = None):
        self.inputs = normalize_inputs(inputs)
        self.config = config or KeccakConfig()

    def synthesize(self, adapter: CircuitAdapter) -> CellLayout:
        """Emit every constraint of the circuit through adapter."""
        for table in keccak_tables().values():
            adapter.register_table(table)

        layout = CellLayout()
        layout.zero = adapter.allocate_bit("zero")
        adapter.assert_constant(layout.zero, 0)

        for index, message in enumerate(self.inputs):
            with adapter.namespace(f"msg{index}"):
                sponge = KeccakSponge(adapter, len(message), layout.zero,
                                      variant=self.config.variant,
                                      use_instance=self.config.use_instance)
                layout.messages.append(sponge.run())
        logger.info("synthesized %d message(s) into %d cells", len(self.inputs), adapter.n_cells)
        return layout

    def generate_witness(self) -> List[WitnessTrace]:
        return generate_witnesses(self.inputs, self.config.variant, self.config.workers)

    def assign(self, adapter: CircuitAdapter, traces: Sequence[WitnessTrace]) -> List[int]:
        """Assign the zero cell followed by every trace, in allocation order.

        Raises:
            ConstructionError: If the traces do not cover exactly the allocated cells
        """
        values = [0]
        for trace in traces:
            values.extend(trace.values)
        adapter.assign_all(values)
        return values

    def check_inputs(self, layout: CellLayout, witness: Sequence[int]) -> None:
        """Compare every absorbed input word with the padded message words.

        Raises:
            ConstructionError: If a word read from the witness differs
        """
        for index, (message, message_layout) in enumerate(zip(self.inputs, layout.messages)):
            padded = pad(message, self.config.variant)
            for block, words in enumerate(message_layout.input_words):
                expected = block_words(padded, block)
                for lane, (cell, value) in enumerate(zip(words, expected)):
                    if witness[cell.index] != value:
                        raise ConstructionError(
                            f"message {index}: input word {lane} of block {block} is "
                            f"{witness[cell.index]:#x}, expected {value:#x}",
                            step="verify_output",
                        )

    def check_digests(self, layout: CellLayout, witness: Sequence[int]) -> List[bytes]:
        """Read each digest from the witness and compare it with the reference hash.

        Raises:
            ConstructionError: If a digest read from the witness is wrong
        """
        digests = []
        for index, (message, message_layout) in enumerate(zip(self.inputs, layout.messages)):
            bits = [witness[cell.index] for cell in message_layout.digest_bits]
            digest = bytes(
                pack(bits[k:k + NUM_BITS_PER_BYTE]) for k in range(0, len(bits), NUM_BITS_PER_BYTE)
            )
            expected = keccak_hash(message, self.config.variant)
            if digest != expected:
                raise ConstructionError(
                    f"message {index}: witness digest {digest.hex()} != {expected.hex()}",
                    step="verify_output",
                )
            digests.append(digest)
        return digests

    def public_inputs(self, layout: CellLayout, witness: Sequence[int]) -> List[int]:
        if not self.config.use_instance:
            return []
        values = []
        for message_layout in layout.messages:
            for words in message_layout.input_words:
                values.extend(witness[cell.index] for cell in words)
            values.append(witness[message_layout.hash_hi.index])
            values.append(witness[message_layout.hash_lo.index])
        return values


@dataclass
class CircuitInstance:
    """Result of building a circuit for a batch of messages.

    Attributes:
        constraint_system: Emitted constraints (None for backends that do not expose one)
        witness: Value of every cell in allocation order
        layout: Cell index by message, block, round, lane and bit
        traces: Per-message witness traces
        public_inputs: Instance values, in exposure order
        digests: Per-message digests
        backend: Backend the circuit was emitted into
    """
    constraint_system: Optional[ConstraintSystem]
    witness: List[int]
    layout: CellLayout
    traces: List[WitnessTrace]
    public_inputs: List[int] = field(default_factory=list)
    digests: List[bytes] = field(default_factory=list)
    backend: Optional[ProverBackend] = None


def build_keccak_circuit(messages: Union[BytesLike, Sequence[BytesLike]],
                         config: Optional[KeccakConfig] = None,
                         backend: Optional[ProverBackend] = None) -> CircuitInstance:
    """Synthesize, assign and (optionally) check the circuit for messages.

    Args:
        messages: One message or a sequence of messages
        config: Build options (defaults to KeccakConfig())
        backend: Target backend (defaults to a fresh MockBackend)

    Returns:
        CircuitInstance with the constraint system, witness and layout

    Raises:
        InputError: If a message is not bytes-like
        ConstructionError: If construction or the digest cross-check fails
        UnsatisfiableWitness: If check_constraints is set and the witness fails
    """
    config = config or KeccakConfig()
    backend = backend if backend is not None else MockBackend()
    circuit = KeccakCircuit(messages, config)
    adapter = CircuitAdapter(backend)

    layout = circuit.synthesize(adapter)
    traces = circuit.generate_witness()
    witness = circuit.assign(adapter, traces)

    if config.verify_output:
        circuit.check_inputs(layout, witness)
        digests = circuit.check_digests(layout, witness)
    else:
        digests = [trace.digest for trace in traces]

    if config.check_constraints:
        failures = adapter.verify()
        if failures:
            raise UnsatisfiableWitness(failures)

    return CircuitInstance(
        constraint_system=getattr(backend, "constraint_system", None),
        witness=witness,
        layout=layout,
        traces=traces,
        public_inputs=circuit.public_inputs(layout, witness),
        digests=digests,
        backend=backend,
    )


# --- Public instance helpers ---


def pack_input_to_instance(inputs: Union[BytesLike, Sequence[BytesLike]]) -> List[int]:
    """Message bytes of every message as little-endian u64 words.

    No padding is applied; the last word of a message is zero-filled.
    """
    words = []
    for message in normalize_inputs(inputs):
        words.extend(bytes_to_words(message))
    return words


def pack_padded_input(inputs: Union[BytesLike, Sequence[BytesLike]],
                      variant: HashVariant = HashVariant.KECCAK_256) -> List[int]:
    """Padded input words of every block of every message, in absorption order."""
    words = []
    for message in normalize_inputs(inputs):
        padded = pad(message, variant)
        for block in range(len(padded) // RATE_BYTES):
            words.extend(block_words(padded, block))
    return words


def digest_to_instance(digest: bytes) -> List[int]:
    """[hash_hi, hash_lo]: the digest halves as big-endian integers."""
    if len(digest) != 32:
        raise InputError(f"digest must be 32 bytes, got {len(digest)}")
    return [int.from_bytes(digest[:16], "big"), int.from_bytes(digest[16:], "big")]


def expected_instance(inputs: Union[BytesLike, Sequence[BytesLike]],
                      variant: HashVariant = HashVariant.KECCAK_256) -> List[int]:
    """The public inputs an honest circuit over inputs exposes."""
    instance = []
    for message in normalize_inputs(inputs):
        instance.extend(pack_padded_input(message, variant))
        instance.extend(digest_to_instance(keccak_hash(message, variant)))
    return instance


def unpack_input(values: Sequence[int]) -> bytes:
    """Byte values (e.g. read back from field elements) to bytes.

    Unlike reading only the low byte of each element, values outside 0..255
    are rejected instead of truncated.

    Raises:
        InputError: If a value is not in 0..255
    """
    for index, value in enumerate(values):
        if not 0 <= int(value) < 256:
            raise InputError(f"value {index} is not a byte: {value}")
    return bytes(int(v) for v in values)
