"""Proving backend interface and an in-memory checking backend.

ProverBackend is the narrow contract the circuit core talks to (through
protocol.adapter.CircuitAdapter). A real backend maps these calls onto its
own constraint-system API; MockBackend records them in a ConstraintSystem and
checks an assigned witness against every recorded constraint, like halo2's
MockProver.

Lookup checking in MockBackend:
    1. Direct membership of every looked-up tuple (names the failing cells)
    2. logUp balance per table, with tuples compressed as
       tag + col0*α + col1*α² + ... and
       Σ_lookups 1/(γ + f) == Σ_rows m/(γ + t)
       where m is how often the row was looked up. α and γ are drawn from
       challenge(), which hashes the assigned witness.
"""

import hashlib
import logging
from abc import ABC, abstractmethod
from collections import Counter, defaultdict
from typing import Dict, List, Sequence

import numpy as np

from primitives.field import BN254_PRIME, FF, batch_inverse, to_field
from constraints.base import (
    Assignment,
    CellRef,
    ConstraintSystem,
    LinearConstraint,
    VerifyFailure,
)
from constraints.errors import ConstructionError, UnsatisfiableWitness
from constraints.tables import LookupTable, compress_rows

logger = logging.getLogger(__name__)

CHALLENGE_DOMAIN = b"keccak-circuit/challenge/"


class ProverBackend(ABC):
    """Constraint-system and witness sink of an external proving system."""

    @property
    @abstractmethod
    def n_cells(self) -> int:
        """Number of cells allocated so far."""
        pass

    @abstractmethod
    def allocate_cell(self, annotation: str = "") -> CellRef:
        pass

    @abstractmethod
    def assert_boolean(self, cell: CellRef) -> None:
        pass

    @abstractmethod
    def register_table(self, table: LookupTable) -> None:
        pass

    @abstractmethod
    def assert_lookup(self, table_id: str, cells: Sequence[CellRef]) -> None:
        pass

    @abstractmethod
    def assert_linear(self, coeffs: Sequence[int], cells: Sequence[CellRef], constant: int = 0,
                      annotation: str = "") -> None:
        pass

    @abstractmethod
    def expose_public(self, cell: CellRef) -> int:
        """Mark cell as a public input; returns its position in the instance."""
        pass

    @abstractmethod
    def assign_witness(self, cell: CellRef, value: int) -> None:
        pass

    @abstractmethod
    def challenge(self, name: str) -> FF:
        """Verifier randomness bound to everything committed so far."""
        pass

    @abstractmethod
    def verify(self) -> List[VerifyFailure]:
        """Check the assigned witness against every constraint."""
        pass


class MockBackend(ProverBackend):
    """Records constraints in memory and checks witnesses directly.

    Attributes:
        constraint_system: Everything emitted so far
        assignment: Witness values, indexed by cell
    """

    def __init__(self):
        self.constraint_system = ConstraintSystem()
        self.assignment = Assignment()

    @property
    def n_cells(self) -> int:
        return self.constraint_system.n_cells

    # --- Constraint emission ---

    def _check_cells(self, cells: Sequence[CellRef]) -> None:
        n = self.constraint_system.n_cells
        for cell in cells:
            if not 0 <= cell.index < n:
                raise ConstructionError(f"{cell!r} was never allocated")

    def allocate_cell(self, annotation: str = "") -> CellRef:
        return self.constraint_system.allocate(annotation)

    def assert_boolean(self, cell: CellRef) -> None:
        self._check_cells((cell,))
        self.constraint_system.booleans.append(cell)

    def register_table(self, table: LookupTable) -> None:
        tables = self.constraint_system.tables
        existing = tables.get(table.table_id)
        if existing is not None and existing != table:
            raise ConstructionError(f"table {table.table_id} already registered with different rows")
        tables[table.table_id] = table

    def assert_lookup(self, table_id: str, cells: Sequence[CellRef]) -> None:
        table = self.constraint_system.tables.get(table_id)
        if table is None:
            raise ConstructionError(f"lookup into unregistered table {table_id}")
        if len(cells) != table.arity:
            raise ConstructionError(f"table {table_id} has {table.arity} columns, got {len(cells)} cells")
        self._check_cells(cells)
        self.constraint_system.lookups.setdefault(table_id, []).append(tuple(cells))

    def assert_linear(self, coeffs: Sequence[int], cells: Sequence[CellRef], constant: int = 0,
                      annotation: str = "") -> None:
        if len(coeffs) != len(cells):
            raise ConstructionError(f"linear constraint with {len(coeffs)} coefficients for {len(cells)} cells")
        self._check_cells(cells)
        self.constraint_system.linear.append(LinearConstraint.build(coeffs, cells, constant, annotation))

    def expose_public(self, cell: CellRef) -> int:
        self._check_cells((cell,))
        self.constraint_system.public.append(cell)
        return len(self.constraint_system.public) - 1

    # --- Witness ---

    def assign_witness(self, cell: CellRef, value: int) -> None:
        self._check_cells((cell,))
        self.assignment.grow(self.constraint_system.n_cells)
        self.assignment.assign(cell, value)

    def public_inputs(self) -> List[int]:
        return [self.assignment.value(cell) for cell in self.constraint_system.public]

    def challenge(self, name: str) -> FF:
        hasher = hashlib.sha3_256(CHALLENGE_DOMAIN + name.encode())
        hasher.update(self.constraint_system.n_cells.to_bytes(8, "little"))
        hasher.update(b"".join((v or 0).to_bytes(32, "little") for v in self.assignment.values))
        return FF(int.from_bytes(hasher.digest(), "little") % BN254_PRIME)

    # --- Checking ---

    def verify(self) -> List[VerifyFailure]:
        cs = self.constraint_system
        self.assignment.grow(cs.n_cells)
        unassigned = self.assignment.unassigned()
        if unassigned:
            logger.error("%d of %d cells have no witness value", len(unassigned), cs.n_cells)
            return [
                VerifyFailure("unassigned", "cell has no witness value", (cs.annotation(CellRef(i)),))
                for i in unassigned
            ]

        w = FF(self.assignment.values)
        failures = []
        failures.extend(self._check_booleans(w))
        failures.extend(self._check_linear(w))
        failures.extend(self._check_lookups())
        if failures:
            logger.error("witness violates %d constraint(s); first: %s", len(failures), failures[0])
        else:
            logger.info("witness satisfies all constraints (%s)", cs.stats())
        return failures

    def assert_satisfied(self) -> None:
        """Raise UnsatisfiableWitness if verify() reports any failure."""
        failures = self.verify()
        if failures:
            raise UnsatisfiableWitness(failures)

    def _check_booleans(self, w: FF) -> List[VerifyFailure]:
        cs = self.constraint_system
        if not cs.booleans:
            return []
        idx = np.array([c.index for c in cs.booleans], dtype=np.int64)
        b = w[idx]
        residual = b * (b - FF(1))
        bad = np.flatnonzero(residual.view(np.ndarray) != 0)
        return [
            VerifyFailure("boolean", "value is not a bit",
                          (cs.annotation(cs.booleans[k]),), (self.assignment.value(cs.booleans[k]),))
            for k in bad
        ]

    def _check_linear(self, w: FF) -> List[VerifyFailure]:
        cs = self.constraint_system
        failures = []
        # Vectorize over constraints with the same number of terms
        groups: Dict[int, List[LinearConstraint]] = defaultdict(list)
        for constraint in cs.linear:
            groups[len(constraint.cells)].append(constraint)

        for n_terms, group in sorted(groups.items()):
            residual = FF([c.constant for c in group])
            if n_terms:
                cells = np.array([[cell.index for cell in c.cells] for c in group], dtype=np.int64)
                coeffs = FF([list(c.coeffs) for c in group])
                for j in range(n_terms):
                    residual = residual + coeffs[:, j] * w[cells[:, j]]
            bad = np.flatnonzero(residual.view(np.ndarray) != 0)
            for k in bad:
                constraint = group[k]
                failures.append(VerifyFailure(
                    "linear",
                    f"{constraint.annotation or 'linear constraint'} is not satisfied",
                    tuple(cs.annotation(cell) for cell in constraint.cells),
                    tuple(self.assignment.value(cell) for cell in constraint.cells),
                ))
        return failures

    def _check_lookups(self) -> List[VerifyFailure]:
        cs = self.constraint_system
        if not cs.lookups:
            return []
        values = self.assignment.values
        alpha = self.challenge("lookup_alpha")
        gamma = self.challenge("lookup_gamma")
        failures = []
        for table_id, rows in cs.lookups.items():
            table = cs.tables[table_id]
            observed: Counter = Counter()
            for cells in rows:
                key = tuple(values[cell.index] for cell in cells)
                if key not in table.row_set:
                    failures.append(VerifyFailure(
                        "lookup",
                        f"tuple is not a row of table {table_id}",
                        tuple(cs.annotation(cell) for cell in cells),
                        key,
                    ))
                observed[key] += 1
            if not _logup_balanced(table, observed, alpha, gamma):
                failures.append(VerifyFailure("lookup_argument", f"logUp sums differ for table {table_id}"))
        return failures


def _field_sum(terms: FF) -> FF:
    total = FF(0)
    for term in terms:
        total = total + term
    return total


def _logup_balanced(table: LookupTable, observed: Counter, alpha: FF, gamma: FF) -> bool:
    """Σ count/(γ + f) over looked-up tuples equals Σ m/(γ + t) over table rows."""
    looked_up = list(observed)
    counts = to_field([observed[key] for key in looked_up])
    lhs = counts * batch_inverse(gamma + compress_rows(table.tag, looked_up, alpha))

    multiplicities = to_field([observed.get(row, 0) for row in table.rows])
    rhs = multiplicities * batch_inverse(gamma + table.compressed(alpha))
    return _field_sum(lhs) == _field_sum(rhs)
