"""Tests for the Keccak lookup tables."""

import itertools

import pytest

from constraints.errors import ConstructionError
from constraints.tables import (
    BIT_DOMAIN,
    CHI,
    PARITY5,
    XOR2,
    XOR3,
    LookupTable,
    build_table,
    keccak_tables,
)
from primitives.field import FF


class TestKeccakTables:
    """The shared tables are total and encode the right functions."""

    @pytest.mark.parametrize("table_id,size,arity", [
        (XOR2, 4, 3),
        (XOR3, 8, 4),
        (CHI, 8, 4),
        (PARITY5, 6, 2),
    ])
    def test_shape(self, table_id: str, size: int, arity: int) -> None:
        table = keccak_tables()[table_id]
        assert len(table) == size
        assert table.arity == arity
        table.check_total()

    def test_tags_distinct(self) -> None:
        tags = [t.tag for t in keccak_tables().values()]
        assert len(set(tags)) == len(tags)

    def test_chi_function(self) -> None:
        table = keccak_tables()[CHI]
        for a, b, c in itertools.product(BIT_DOMAIN, repeat=3):
            assert table.output(a, b, c) == a ^ ((b ^ 1) & c)

    def test_parity(self) -> None:
        table = keccak_tables()[PARITY5]
        assert [table.output(s) for s in range(6)] == [0, 1, 0, 1, 0, 1]

    def test_membership(self) -> None:
        xor3 = keccak_tables()[XOR3]
        assert (1, 1, 1, 1) in xor3
        assert (1, 1, 1, 0) not in xor3

    def test_output_outside_domain(self) -> None:
        with pytest.raises(KeyError):
            keccak_tables()[PARITY5].output(6)

    def test_built_once(self) -> None:
        assert keccak_tables() is keccak_tables()

    def test_read_only(self) -> None:
        with pytest.raises(TypeError):
            keccak_tables()["extra"] = None


class TestTotality:
    """check_total rejects malformed tables."""

    def test_missing_row(self) -> None:
        table = LookupTable("broken", 9, (BIT_DOMAIN,), ((0, 0),))
        with pytest.raises(ConstructionError):
            table.check_total()

    def test_duplicate_inputs(self) -> None:
        table = LookupTable("broken", 9, (BIT_DOMAIN,), ((0, 0), (1, 1), (1, 0)))
        with pytest.raises(ConstructionError):
            table.check_total()

    def test_row_outside_domain(self) -> None:
        table = LookupTable("broken", 9, (BIT_DOMAIN,), ((0, 0), (1, 1), (2, 0)))
        with pytest.raises(ConstructionError):
            table.check_total()

    def test_wrong_arity(self) -> None:
        table = LookupTable("broken", 9, (BIT_DOMAIN,), ((0, 0), (1, 1, 1)))
        with pytest.raises(ConstructionError):
            table.check_total()

    def test_build_table(self) -> None:
        table = build_table("and", 9, lambda a, b: a & b, [BIT_DOMAIN] * 2)
        assert table.rows == ((0, 0, 0), (0, 1, 0), (1, 0, 0), (1, 1, 1))


class TestCompression:
    """Row compression: tag + col0*α + col1*α² + ..."""

    def test_compressed_row(self) -> None:
        alpha = FF(7)
        table = keccak_tables()[XOR2]
        compressed = table.compressed(alpha)
        for row, value in zip(table.rows, compressed):
            a, b, c = row
            assert value == FF(table.tag) + FF(a) * alpha + FF(b) * alpha ** 2 + FF(c) * alpha ** 3

    def test_tag_separates_tables(self) -> None:
        """Same row in two tables compresses differently."""
        alpha = FF(11)
        xor3, chi = keccak_tables()[XOR3], keccak_tables()[CHI]
        assert (0, 0, 0, 0) in xor3 and (0, 0, 0, 0) in chi
        i, j = xor3.rows.index((0, 0, 0, 0)), chi.rows.index((0, 0, 0, 0))
        assert xor3.compressed(alpha)[i] != chi.compressed(alpha)[j]
