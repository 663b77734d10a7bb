"""Thin adapter between the circuit core and a proving backend.

Gadgets in constraints/ only ever call CircuitAdapter. The adapter forwards
each call to its ProverBackend and adds two things the backend interface
leaves out: hierarchical cell annotations (namespace) and a few derived
constraints built from the primitive ones (allocate_bit, assert_equal,
assert_constant).
"""

from contextlib import contextmanager
from typing import Iterator, List, Sequence

from primitives.field import FF
from constraints.base import CellRef, VerifyFailure
from constraints.errors import ConstructionError
from constraints.tables import LookupTable
from .backend import ProverBackend


class CircuitAdapter:
    """Namespacing front end of a ProverBackend.

    Args:
        backend: Where cells, constraints and witness values end up
    """

    def __init__(self, backend: ProverBackend):
        self.backend = backend
        self._scope: List[str] = []

    @property
    def n_cells(self) -> int:
        return self.backend.n_cells

    @contextmanager
    def namespace(self, name: str) -> Iterator[None]:
        """Prefix annotations of cells allocated inside the block with name/."""
        self._scope.append(name)
        try:
            yield
        finally:
            self._scope.pop()

    def _annotate(self, annotation: str) -> str:
        if not self._scope:
            return annotation
        return "/".join(self._scope + [annotation])

    # --- Forwarded operations ---

    def allocate_cell(self, annotation: str = "") -> CellRef:
        return self.backend.allocate_cell(self._annotate(annotation))

    def assert_boolean(self, cell: CellRef) -> None:
        self.backend.assert_boolean(cell)

    def register_table(self, table: LookupTable) -> None:
        self.backend.register_table(table)

    def assert_lookup(self, table_id: str, cells: Sequence[CellRef]) -> None:
        self.backend.assert_lookup(table_id, cells)

    def assert_linear(self, coeffs: Sequence[int], cells: Sequence[CellRef], constant: int = 0,
                      annotation: str = "") -> None:
        self.backend.assert_linear(coeffs, cells, constant, self._annotate(annotation))

    def expose_public(self, cell: CellRef) -> int:
        return self.backend.expose_public(cell)

    def assign_witness(self, cell: CellRef, value: int) -> None:
        self.backend.assign_witness(cell, value)

    def challenge(self, name: str) -> FF:
        return self.backend.challenge(name)

    def verify(self) -> List[VerifyFailure]:
        return self.backend.verify()

    # --- Derived operations ---

    def allocate_bit(self, annotation: str = "") -> CellRef:
        """Allocate a cell constrained to be 0 or 1."""
        cell = self.allocate_cell(annotation)
        self.backend.assert_boolean(cell)
        return cell

    def assert_equal(self, a: CellRef, b: CellRef) -> None:
        self.assert_linear([1, -1], [a, b], 0, annotation="equal")

    def assert_constant(self, cell: CellRef, value: int) -> None:
        self.assert_linear([1], [cell], -value, annotation=f"constant {value}")

    def assign_all(self, values: Sequence[int]) -> None:
        """Assign values to cells 0..len(values)-1 in allocation order.

        Raises:
            ConstructionError: If the number of values differs from the number of cells
        """
        if len(values) != self.n_cells:
            raise ConstructionError(
                f"witness has {len(values)} values for {self.n_cells} cells", step="assign"
            )
        for index, value in enumerate(values):
            self.backend.assign_witness(CellRef(index), value)
