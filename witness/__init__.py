"""Witness generation modules.

This module provides the Keccak witness generator, which replays the
reference permutation and records every intermediate value in the order the
constraint gadgets allocate cells. Independent messages may be generated in a
process pool via generate_witnesses().
"""

from .base import WitnessModule, WitnessTrace
from .generator import KeccakWitnessGenerator, generate_witnesses

__all__ = [
    'WitnessModule',
    'WitnessTrace',
    'KeccakWitnessGenerator',
    'generate_witnesses',
]
