"""Backend adapter, configuration and the public circuit entry point."""

from .backend import MockBackend, ProverBackend
from .adapter import CircuitAdapter
from .config import KeccakConfig
from .circuit import (
    CircuitInstance,
    KeccakCircuit,
    build_keccak_circuit,
    digest_to_instance,
    expected_instance,
    pack_input_to_instance,
    pack_padded_input,
    unpack_input,
)

__all__ = [
    "ProverBackend",
    "MockBackend",
    "CircuitAdapter",
    "KeccakConfig",
    "KeccakCircuit",
    "CircuitInstance",
    "build_keccak_circuit",
    "pack_input_to_instance",
    "pack_padded_input",
    "digest_to_instance",
    "expected_instance",
    "unpack_input",
]
