"""Data structures for constraint emission and witness assignment.

Architecture Overview:
    Circuit gadgets never hold field values. They allocate cells and emit
    constraints over CellRefs through a CircuitAdapter; the backend behind the
    adapter accumulates them into a ConstraintSystem. Witness values arrive
    later, positionally, as an Assignment.

    1. ConstraintSystem (this module)
       - Append-only record of cells, boolean checks, linear constraints,
         lookups (grouped per table) and public cells
       - Built by: constraints.lanes, constraints.round, constraints.sponge

    2. Assignment (this module)
       - One value per allocated cell, in allocation order
       - Built by: witness.generator via protocol.circuit

Usage:
    cs = ConstraintSystem()
    a = cs.allocate("a")
    cs.booleans.append(a)
    assignment = Assignment.empty(cs.n_cells)
    assignment.assign(a, 1)
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from primitives.field import reduce

if TYPE_CHECKING:
    from constraints.tables import LookupTable


@dataclass(frozen=True)
class CellRef:
    """Positional handle of an allocated cell."""
    index: int

    def __repr__(self) -> str:
        return f"CellRef({self.index})"


@dataclass(frozen=True)
class LinearConstraint:
    """sum(coeffs[i] * cells[i]) + constant == 0 over the field.

    Coefficients and constant are stored reduced modulo the field prime.
    """
    coeffs: Tuple[int, ...]
    cells: Tuple[CellRef, ...]
    constant: int
    annotation: str = ""

    @classmethod
    def build(cls, coeffs, cells, constant: int = 0, annotation: str = "") -> "LinearConstraint":
        return cls(
            coeffs=tuple(reduce(c) for c in coeffs),
            cells=tuple(cells),
            constant=reduce(constant),
            annotation=annotation,
        )


@dataclass
class ConstraintSystem:
    """Accumulated constraints of one circuit instance.

    Attributes:
        annotations: Human-readable name of every cell, indexed by cell
        booleans: Cells asserted to be 0 or 1
        linear: Linear constraints
        lookups: Cell tuples asserted to be rows of a table, keyed by table id
        tables: Registered lookup tables keyed by table id
        public: Cells exposed as public inputs, in instance order
    """
    annotations: List[str] = field(default_factory=list)
    booleans: List[CellRef] = field(default_factory=list)
    linear: List[LinearConstraint] = field(default_factory=list)
    lookups: Dict[str, List[Tuple[CellRef, ...]]] = field(default_factory=dict)
    tables: Dict[str, "LookupTable"] = field(default_factory=dict)
    public: List[CellRef] = field(default_factory=list)

    @property
    def n_cells(self) -> int:
        return len(self.annotations)

    def allocate(self, annotation: str = "") -> CellRef:
        cell = CellRef(len(self.annotations))
        self.annotations.append(annotation)
        return cell

    def annotation(self, cell: CellRef) -> str:
        return self.annotations[cell.index] or f"cell {cell.index}"

    def n_lookups(self) -> int:
        return sum(len(rows) for rows in self.lookups.values())

    def stats(self) -> Dict[str, int]:
        """Counts of cells and constraints, for logging and tests."""
        counts = {
            "cells": self.n_cells,
            "booleans": len(self.booleans),
            "linear": len(self.linear),
            "lookups": self.n_lookups(),
            "public": len(self.public),
        }
        for table_id, rows in sorted(self.lookups.items()):
            counts[f"lookups.{table_id}"] = len(rows)
        return counts


@dataclass
class Assignment:
    """Witness values for every cell, indexed by cell position."""
    values: List[Optional[int]] = field(default_factory=list)

    @classmethod
    def empty(cls, n_cells: int) -> "Assignment":
        return cls(values=[None] * n_cells)

    def grow(self, n_cells: int) -> None:
        """Extend with unassigned slots so that n_cells cells are addressable."""
        if n_cells > len(self.values):
            self.values.extend([None] * (n_cells - len(self.values)))

    def assign(self, cell: CellRef, value: int) -> None:
        self.values[cell.index] = reduce(value)

    def value(self, cell: CellRef) -> int:
        value = self.values[cell.index]
        if value is None:
            raise KeyError(f"cell {cell.index} has no assigned value")
        return value

    def unassigned(self) -> List[int]:
        return [i for i, v in enumerate(self.values) if v is None]


@dataclass(frozen=True)
class VerifyFailure:
    """A single violated constraint found while checking a witness.

    Attributes:
        kind: 'unassigned', 'boolean', 'linear', 'lookup' or 'lookup_argument'
        description: What failed, naming the constraint or table
        cells: Annotations of the cells involved
        values: Witness values of those cells
    """
    kind: str
    description: str
    cells: Tuple[str, ...] = ()
    values: Tuple[int, ...] = ()

    def __str__(self) -> str:
        if not self.cells:
            return f"[{self.kind}] {self.description}"
        if not self.values:
            return f"[{self.kind}] {self.description}: {', '.join(self.cells)}"
        involved = ", ".join(f"{name}={value}" for name, value in zip(self.cells, self.values))
        return f"[{self.kind}] {self.description}: {involved}"
