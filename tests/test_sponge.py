"""Tests for the sponge controller state machine and padding constraints."""

import pytest

from constraints.errors import ConstructionError
from constraints.sponge import KeccakSponge, SpongePhase, digest_weights
from constraints.tables import XOR2, keccak_tables
from primitives.keccak import RATE_LANES
from protocol.adapter import CircuitAdapter
from protocol.backend import MockBackend


def make_sponge(length: int, use_instance: bool = True) -> KeccakSponge:
    adapter = CircuitAdapter(MockBackend())
    for table in keccak_tables().values():
        adapter.register_table(table)
    zero = adapter.allocate_bit("zero")
    adapter.assert_constant(zero, 0)
    return KeccakSponge(adapter, length, zero, use_instance=use_instance)


class TestPhases:
    """Illegal transitions raise ConstructionError."""

    def test_initial_phase(self) -> None:
        assert make_sponge(0).phase is SpongePhase.ABSORBING

    def test_permute_before_absorb(self) -> None:
        with pytest.raises(ConstructionError) as excinfo:
            make_sponge(0).permute()
        assert excinfo.value.step == "permute"

    def test_squeeze_before_permute(self) -> None:
        sponge = make_sponge(0)
        sponge.absorb()
        with pytest.raises(ConstructionError):
            sponge.squeeze()

    def test_absorb_twice(self) -> None:
        sponge = make_sponge(0)
        sponge.absorb()
        with pytest.raises(ConstructionError):
            sponge.absorb()

    def test_negative_length(self) -> None:
        with pytest.raises(ConstructionError):
            make_sponge(-1)

    def test_run_reaches_done(self) -> None:
        sponge = make_sponge(3)
        layout = sponge.run()
        assert sponge.phase is SpongePhase.DONE
        assert len(layout.rounds) == 1 and len(layout.rounds[0]) == 24
        assert len(layout.digest_bits) == 256
        with pytest.raises(ConstructionError):
            sponge.absorb()


class TestBlocks:
    """Block count, public words and padding constants."""

    def test_rate_multiple_adds_block(self) -> None:
        sponge = make_sponge(136)
        layout = sponge.run()
        assert sponge.num_blocks == 2
        assert len(layout.absorbed) == 2
        cs = sponge.adapter.backend.constraint_system
        assert len(cs.lookups[XOR2]) == RATE_LANES * 64

    def test_first_block_has_no_xor(self) -> None:
        sponge = make_sponge(10)
        sponge.run()
        assert XOR2 not in sponge.adapter.backend.constraint_system.lookups

    def test_public_words_and_digest(self) -> None:
        sponge = make_sponge(136)
        layout = sponge.run()
        public = sponge.adapter.backend.constraint_system.public
        assert len(public) == 2 * RATE_LANES + 2
        assert public[-2:] == [layout.hash_hi, layout.hash_lo]
        assert public[:RATE_LANES] == list(layout.input_words[0])

    def test_no_instance(self) -> None:
        sponge = make_sponge(5, use_instance=False)
        sponge.run()
        assert sponge.adapter.backend.constraint_system.public == []

    @pytest.mark.parametrize("length,padding_len", [(0, 136), (3, 133), (135, 1), (136, 136)])
    def test_padding_constants(self, length: int, padding_len: int) -> None:
        """Every padding bit is pinned to its constant."""
        sponge = make_sponge(length)
        sponge.run()
        cs = sponge.adapter.backend.constraint_system
        pinned = [c for c in cs.linear if "/absorb/constant" in c.annotation]
        assert len(pinned) == 8 * padding_len


class TestDigestWeights:

    def test_big_endian_bytes(self) -> None:
        weights = digest_weights()
        assert len(weights) == 128
        # bit 0 of byte 0 is the lowest bit of the most significant byte
        assert weights[0] == 1 << 120
        assert weights[127] == 1 << 7
