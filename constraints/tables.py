"""Fixed lookup tables for the boolean functions of the Keccak round.

A table enumerates every input tuple of a small domain together with the
function's output. Gadgets then assert that (inputs..., output) is a row of
the table instead of expressing the boolean function with multiplications.

Tables:
    xor2:    (a, b, a ^ b)                  absorption of later blocks
    xor3:    (a, b, c, a ^ b ^ c)           theta output bit
    chi:     (a, b, c, a ^ (~b & c))        chi
    parity5: (s, s & 1) for s in 0..5       theta column parity of a bit sum

The tag of each table is mixed into the compressed row value so rows of
different tables never collide inside the lookup argument.
"""

import itertools
import logging
from dataclasses import dataclass
from functools import cached_property, lru_cache
from types import MappingProxyType
from typing import Callable, Dict, FrozenSet, Mapping, Sequence, Tuple

from primitives.field import FF, to_field
from constraints.errors import ConstructionError

logger = logging.getLogger(__name__)

XOR2 = "xor2"
XOR3 = "xor3"
CHI = "chi"
PARITY5 = "parity5"

BIT_DOMAIN = (0, 1)
SUM5_DOMAIN = tuple(range(6))

Row = Tuple[int, ...]


@dataclass(frozen=True)
class LookupTable:
    """Immutable table of (inputs..., output) rows.

    Attributes:
        table_id: Name used by assert_lookup
        tag: Per-table constant used when compressing rows
        input_domains: Allowed values of each input column
        rows: Every row, inputs followed by the output
    """
    table_id: str
    tag: int
    input_domains: Tuple[Tuple[int, ...], ...]
    rows: Tuple[Row, ...]

    @property
    def arity(self) -> int:
        """Number of columns, output included."""
        return len(self.input_domains) + 1

    @cached_property
    def row_set(self) -> FrozenSet[Row]:
        return frozenset(self.rows)

    @cached_property
    def _outputs(self) -> Dict[Row, int]:
        return {row[:-1]: row[-1] for row in self.rows}

    def __len__(self) -> int:
        return len(self.rows)

    def __contains__(self, row: Row) -> bool:
        return tuple(row) in self.row_set

    def output(self, *inputs: int) -> int:
        """Output column for the given inputs.

        Raises:
            KeyError: If inputs lie outside the table's domain
        """
        return self._outputs[tuple(inputs)]

    def check_total(self) -> None:
        """Every input tuple of the declared domain has exactly one row.

        Raises:
            ConstructionError: On a missing, duplicated or out-of-domain row
        """
        counts: Dict[Row, int] = {}
        for row in self.rows:
            if len(row) != self.arity:
                raise ConstructionError(f"table {self.table_id}: row {row} has wrong arity")
            counts[row[:-1]] = counts.get(row[:-1], 0) + 1
        for inputs in itertools.product(*self.input_domains):
            found = counts.pop(inputs, 0)
            if found != 1:
                raise ConstructionError(
                    f"table {self.table_id}: inputs {inputs} match {found} rows, expected 1"
                )
        if counts:
            raise ConstructionError(
                f"table {self.table_id}: rows outside the input domain: {sorted(counts)}"
            )

    def compressed(self, alpha: FF) -> FF:
        """Compress rows: tag + col0*α + col1*α² + ..."""
        return compress_rows(self.tag, self.rows, alpha)


def compress_rows(tag: int, rows: Sequence[Row], alpha: FF) -> FF:
    """Compute tag + row[0]*α + row[1]*α² + ... for every row."""
    result = to_field([tag] * len(rows))
    alpha_power = alpha
    for column in zip(*rows):
        result = result + to_field(column) * alpha_power
        alpha_power = alpha_power * alpha
    return result


def build_table(table_id: str, tag: int, fn: Callable[..., int],
                input_domains: Sequence[Sequence[int]]) -> LookupTable:
    """Enumerate fn over the product of input_domains and check totality."""
    domains = tuple(tuple(d) for d in input_domains)
    rows = tuple((*inputs, fn(*inputs)) for inputs in itertools.product(*domains))
    table = LookupTable(table_id=table_id, tag=tag, input_domains=domains, rows=rows)
    table.check_total()
    return table


@lru_cache(maxsize=None)
def keccak_tables() -> Mapping[str, LookupTable]:
    """The shared, read-only tables used by every Keccak circuit in the process."""
    tables = (
        build_table(XOR2, 1, lambda a, b: a ^ b, [BIT_DOMAIN] * 2),
        build_table(XOR3, 2, lambda a, b, c: a ^ b ^ c, [BIT_DOMAIN] * 3),
        build_table(CHI, 3, lambda a, b, c: a ^ ((1 - b) & c), [BIT_DOMAIN] * 3),
        build_table(PARITY5, 4, lambda s: s & 1, [SUM5_DOMAIN]),
    )
    logger.debug("built lookup tables: %s", ", ".join(f"{t.table_id}({len(t)})" for t in tables))
    return MappingProxyType({t.table_id: t for t in tables})
