"""End-to-end tests: synthesis, assignment and verification of Keccak circuits."""

import hashlib

import pytest

import protocol.circuit
from constraints.errors import ConstructionError, InputError, UnsatisfiableWitness
from primitives.bits import pack
from primitives.keccak import HashVariant, keccak256
from protocol import (
    KeccakConfig,
    build_keccak_circuit,
    digest_to_instance,
    expected_instance,
    pack_input_to_instance,
    pack_padded_input,
    unpack_input,
)

EMPTY_DIGEST = "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
ABC_DIGEST = "4e03657aea45a94fc7d47ba826c8d667c0d1e6e33a64a036ec44f58fa12d6c45"


def lane_value(witness, lane) -> int:
    return pack([witness[cell.index] for cell in lane])


class TestHonestCircuits:
    """Honest witnesses satisfy every constraint and give the right digest."""

    def test_empty(self, empty_instance) -> None:
        assert empty_instance.digests[0].hex() == EMPTY_DIGEST
        assert empty_instance.backend.verify() == []

    def test_abc(self, abc_instance) -> None:
        assert abc_instance.digests[0].hex() == ABC_DIGEST

    def test_extra_padding_block(self, two_block_instance) -> None:
        message = bytes(range(136))
        assert len(two_block_instance.layout[0].absorbed) == 2
        assert two_block_instance.digests[0] == keccak256(message)

    def test_batch(self, batch_instance) -> None:
        assert [d.hex() for d in batch_instance.digests] == [EMPTY_DIGEST, ABC_DIGEST]
        assert len(batch_instance.layout) == 2

    def test_sha3_variant(self) -> None:
        config = KeccakConfig(variant=HashVariant.SHA3_256)
        instance = build_keccak_circuit(b"abc", config)
        assert instance.digests[0] == hashlib.sha3_256(b"abc").digest()

    def test_accepts_bytearray(self) -> None:
        config = KeccakConfig(check_constraints=False)
        instance = build_keccak_circuit([bytearray(b"abc")], config)
        assert instance.digests[0].hex() == ABC_DIGEST


class TestLayout:
    """The cell layout addresses the witness states."""

    def test_round_states(self, abc_instance) -> None:
        layout = abc_instance.layout[0]
        trace = abc_instance.traces[0]
        for round_index in (-1, 0, 11, 23):
            state = layout.state(0, round_index)
            expected = trace.absorbed[0] if round_index == -1 else trace.rounds[0][round_index]
            assert [lane_value(abc_instance.witness, lane) for lane in state.lanes] == list(expected)

    def test_cell_annotation(self, abc_instance) -> None:
        cell = abc_instance.layout[0].cell(0, 3, 2, 1, 17)
        name = abc_instance.constraint_system.annotation(cell)
        assert name.startswith("msg0/block0/round3/")

    def test_zero_cell(self, abc_instance) -> None:
        assert abc_instance.layout.zero.index == 0
        assert abc_instance.witness[0] == 0

    def test_cell_count(self, abc_instance) -> None:
        assert abc_instance.constraint_system.n_cells == len(abc_instance.witness)
        assert len(abc_instance.witness) == 1 + len(abc_instance.traces[0].values)

    def test_synthesis_deterministic(self, abc_instance) -> None:
        config = KeccakConfig(check_constraints=False, verify_output=False)
        again = build_keccak_circuit(b"abc", config)
        assert again.constraint_system.stats() == abc_instance.constraint_system.stats()
        assert again.witness == abc_instance.witness


class TestPublicInputs:
    """Instance values: padded input words, then the digest halves."""

    def test_matches_expected(self, abc_instance) -> None:
        assert abc_instance.public_inputs == expected_instance(b"abc")

    def test_batch_matches_expected(self, batch_instance) -> None:
        assert batch_instance.public_inputs == expected_instance([b"", b"abc"])

    def test_layout(self, two_block_instance) -> None:
        message = bytes(range(136))
        public = two_block_instance.public_inputs
        assert len(public) == 2 * 17 + 2
        assert public[0] == int.from_bytes(message[:8], "little")
        assert public[-2:] == digest_to_instance(keccak256(message))

    def test_no_instance(self) -> None:
        config = KeccakConfig(use_instance=False, check_constraints=False)
        instance = build_keccak_circuit(b"abc", config)
        assert instance.public_inputs == []
        assert instance.constraint_system.public == []

    def test_pack_padded_input(self) -> None:
        words = pack_padded_input(b"abc")
        assert len(words) == 17
        assert words[0] == int.from_bytes(b"abc\x01", "little")
        assert words[-1] == 0x80 << 56

    @pytest.mark.parametrize("message,expected", [
        (bytes([0, 0, 0, 0]), [0]),
        (bytes([1, 0, 0, 0, 1, 0, 0, 0, 10]), [4294967297, 10]),
        (b"", []),
    ])
    def test_pack_input(self, message: bytes, expected) -> None:
        """Message bytes only, little-endian words, no padding."""
        assert pack_input_to_instance([message]) == expected

    def test_pack_input_batch(self) -> None:
        assert pack_input_to_instance([b"\x01", b"\x02"]) == [1, 2]

    def test_digest_to_instance(self) -> None:
        hi, lo = digest_to_instance(bytes.fromhex(ABC_DIGEST))
        assert hi == int(ABC_DIGEST[:32], 16)
        assert lo == int(ABC_DIGEST[32:], 16)

    def test_digest_to_instance_length(self) -> None:
        with pytest.raises(InputError):
            digest_to_instance(b"\x00" * 31)

    def test_unpack_input(self) -> None:
        assert unpack_input([97, 98, 99]) == b"abc"
        with pytest.raises(InputError):
            unpack_input([97, 256])


class TestTampering:
    """Tampered witnesses are reported as unsatisfied, naming the cell."""

    def test_flipped_chi_bit(self, unchecked_abc_instance) -> None:
        instance = unchecked_abc_instance
        cell = instance.layout[0].cell(0, 4, 1, 0, 9)
        name = instance.constraint_system.annotation(cell)
        assert name == "msg0/block0/round4/chi/lane[1,0][9]"

        instance.backend.assignment.values[cell.index] ^= 1
        failures = instance.backend.verify()
        assert any(f.kind == "lookup" and name in f.cells for f in failures)
        with pytest.raises(UnsatisfiableWitness):
            instance.backend.assert_satisfied()

    def test_non_bit_value(self, unchecked_abc_instance) -> None:
        instance = unchecked_abc_instance
        cell = instance.layout[0].cell(0, 0, 3, 3, 0)
        instance.backend.assignment.values[cell.index] = 2
        failures = instance.backend.verify()
        assert any(f.kind == "boolean" for f in failures)

    def test_forged_digest(self, unchecked_abc_instance) -> None:
        instance = unchecked_abc_instance
        hash_hi = instance.layout[0].hash_hi
        instance.backend.assignment.values[hash_hi.index] += 1
        failures = instance.backend.verify()
        assert [f.kind for f in failures] == ["linear"]
        assert "msg0/squeeze/hash_hi" in failures[0].cells

    def test_padding_pinned(self, unchecked_abc_instance) -> None:
        """Changing a padding byte breaks its constant constraint."""
        instance = unchecked_abc_instance
        # byte 3 of word 0 is the domain byte 0x01
        bit = instance.layout[0].absorbed[0].bit(0, 0, 24)
        instance.backend.assignment.values[bit.index] = 0
        failures = instance.backend.verify()
        assert any(f.kind == "linear" and "constant 1" in f.description for f in failures)

    def test_output_cross_check(self, monkeypatch) -> None:
        monkeypatch.setattr(protocol.circuit, "keccak_hash", lambda message, variant: bytes(32))
        config = KeccakConfig(check_constraints=False)
        with pytest.raises(ConstructionError) as excinfo:
            build_keccak_circuit(b"abc", config)
        assert excinfo.value.step == "verify_output"

    def test_input_cross_check(self, monkeypatch) -> None:
        """A trace whose absorbed word differs from the message is rejected."""
        generate = protocol.circuit.generate_witnesses

        def corrupted(messages, variant, workers):
            traces = generate(messages, variant, workers)
            # first value of a trace is input word 0 of block 0
            traces[0].values[0] ^= 1
            return traces

        monkeypatch.setattr(protocol.circuit, "generate_witnesses", corrupted)
        config = KeccakConfig(check_constraints=False)
        with pytest.raises(ConstructionError) as excinfo:
            build_keccak_circuit(b"abc", config)
        assert excinfo.value.step == "verify_output"
        assert "input word 0 of block 0" in str(excinfo.value)

    def test_input_check_accepts_honest_witness(self, unchecked_abc_instance) -> None:
        circuit = protocol.circuit.KeccakCircuit(b"abc")
        circuit.check_inputs(unchecked_abc_instance.layout, unchecked_abc_instance.witness)


class TestInputs:

    @pytest.mark.parametrize("bad", ["abc", 42, [b"ok", "no"], [None]])
    def test_rejects_non_bytes(self, bad) -> None:
        with pytest.raises(InputError):
            build_keccak_circuit(bad)

    def test_input_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            build_keccak_circuit("abc")


class TestConfig:

    def test_defaults(self) -> None:
        config = KeccakConfig()
        assert config.variant is HashVariant.KECCAK_256
        assert config.use_instance and config.verify_output and config.check_constraints
        assert config.workers == 1

    def test_from_dict(self) -> None:
        config = KeccakConfig.from_dict({"variant": "sha3-256", "workers": 2})
        assert config.variant is HashVariant.SHA3_256
        assert config.workers == 2

    def test_unknown_key(self) -> None:
        with pytest.raises(ValueError):
            KeccakConfig.from_dict({"rate": 72})

    def test_unknown_variant(self) -> None:
        with pytest.raises(ValueError):
            KeccakConfig.from_dict({"variant": "blake2"})

    def test_bad_workers(self) -> None:
        with pytest.raises(ValueError):
            KeccakConfig(workers=0)
