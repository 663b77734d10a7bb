"""
Pytest configuration and shared circuit fixtures.

Building a circuit synthesizes roughly 95k cells per absorbed block, so the
built instances are shared across the session.
"""

import sys
from pathlib import Path

import pytest

# tests/ is inside the repository root
root_dir = Path(__file__).parent.parent
if str(root_dir) not in sys.path:
    sys.path.insert(0, str(root_dir))

from protocol import KeccakConfig, build_keccak_circuit  # noqa: E402

ABC = b"abc"
ONE_BLOCK_EXACT = bytes(range(136))


@pytest.fixture(scope="session")
def empty_instance():
    return build_keccak_circuit(b"")


@pytest.fixture(scope="session")
def abc_instance():
    return build_keccak_circuit(ABC)


@pytest.fixture(scope="session")
def two_block_instance():
    """136-byte message: the padding spills into a second block."""
    return build_keccak_circuit(ONE_BLOCK_EXACT)


@pytest.fixture(scope="session")
def batch_instance():
    return build_keccak_circuit([b"", ABC])


@pytest.fixture
def unchecked_abc_instance():
    """Built without verification, so tests may tamper with its witness."""
    config = KeccakConfig(check_constraints=False)
    return build_keccak_circuit(ABC, config)
