"""Constraint gadgets for the Keccak-f[1600] permutation and sponge.

Gadgets emit constraints through a CircuitAdapter and return immutable
cell structures (Lane, KeccakState). Lookup tables are built once per process
and registered once per circuit before any round is emitted.
"""

from .base import (
    Assignment,
    CellRef,
    ConstraintSystem,
    LinearConstraint,
    VerifyFailure,
)
from .errors import (
    ConstructionError,
    InputError,
    KeccakCircuitError,
    UnsatisfiableWitness,
)
from .tables import (
    CHI,
    PARITY5,
    XOR2,
    XOR3,
    LookupTable,
    build_table,
    keccak_tables,
)
from .lanes import KeccakState, Lane, compose, decompose, decompose_lane
from .round import chi, iota, keccak_round, rho_pi, theta
from .sponge import CellLayout, KeccakSponge, MessageLayout, SpongePhase

__all__ = [
    "Assignment",
    "CellRef",
    "ConstraintSystem",
    "LinearConstraint",
    "VerifyFailure",
    "ConstructionError",
    "InputError",
    "KeccakCircuitError",
    "UnsatisfiableWitness",
    "CHI",
    "PARITY5",
    "XOR2",
    "XOR3",
    "LookupTable",
    "build_table",
    "keccak_tables",
    "KeccakState",
    "Lane",
    "compose",
    "decompose",
    "decompose_lane",
    "theta",
    "rho_pi",
    "chi",
    "iota",
    "keccak_round",
    "CellLayout",
    "KeccakSponge",
    "MessageLayout",
    "SpongePhase",
]
