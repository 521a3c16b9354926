"""
State Decoder Tests

Unit tests for the Deneb BeaconState SSZ decoder: offset table
validation, record width checks and recomputation of the state root
from the decoded sections.
"""

import unittest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tanglepod_proofs.ssz import (
    BEACON_STATE_TREE_DEPTH,
    IndexOutOfRangeError,
    MerkleTree,
    RecordBoundsError,
    TruncatedInputError,
    decode_beacon_state,
    read_offset_table,
    split_sections,
    verify_merkle_proof,
)
from tanglepod_proofs.ssz.containers.layout import (
    BEACON_STATE_FIELDS,
    FIXED_REGION_SIZE,
    VARIABLE_FIELDS,
)

from fixtures import encode_state, make_validator, offset_position, validator_ssz

GENESIS_TIME = 1606824023


class TestStateLayout(unittest.TestCase):
    """Deneb field table."""

    def test_layout(self):
        self.assertEqual(len(BEACON_STATE_FIELDS), 28)
        self.assertEqual(len(VARIABLE_FIELDS), 9)
        self.assertEqual(FIXED_REGION_SIZE, 2736653)
        self.assertEqual(BEACON_STATE_FIELDS[11].name, "validators")
        self.assertEqual(BEACON_STATE_FIELDS[12].name, "balances")


class TestDecodeBeaconState(unittest.TestCase):
    """Decoding a synthesized state buffer."""

    @classmethod
    def setUpClass(cls):
        cls.validators = [make_validator(i) for i in range(6)]
        cls.balances = [32_000_000_000 + i for i in range(6)]
        cls.data = encode_state(cls.validators, cls.balances, slot=1234, genesis_time=GENESIS_TIME)
        cls.state = decode_beacon_state(cls.data)

    def test_decoded_fields(self):
        state = self.state
        self.assertEqual(state.slot, 1234)
        self.assertEqual(state.genesis_time, GENESIS_TIME)
        self.assertEqual(state.validators, self.validators)
        self.assertEqual(state.balances, self.balances)
        self.assertEqual(len(state.block_roots), 8192)
        self.assertEqual(state.timestamp, GENESIS_TIME + 1234 * 12)

    def test_offset_table(self):
        """Sections are bounded by the next offset"""
        table = read_offset_table(self.data)
        self.assertEqual([name for name, _, _ in table], VARIABLE_FIELDS)
        self.assertEqual(table[0][1], FIXED_REGION_SIZE)
        for (_, _, end), (_, start, _) in zip(table, table[1:]):
            self.assertEqual(end, start)
        self.assertEqual(table[-1][2], len(self.data))
        bounds = {name: (start, end) for name, start, end in table}
        start, end = bounds["validators"]
        self.assertEqual(end - start, 6 * 121)

    def test_sections_keep_raw_fields(self):
        self.assertIn("randao_mixes", self.state.sections)
        self.assertIn("historical_summaries", self.state.sections)
        self.assertNotIn("validators", self.state.sections)

    def test_typed_roots_match_raw_sections(self):
        """Field roots from typed values equal roots hashed from the raw sections"""
        sections = split_sections(self.data)
        raw_roots = [spec.root(sections[spec.name]) for spec in BEACON_STATE_FIELDS]
        self.assertEqual(self.state.field_roots()[:28], raw_roots)

    def test_state_root(self):
        """State root is the depth-5 root of the 28 field roots"""
        roots = self.state.field_roots()
        self.assertEqual(len(roots), 28)
        self.assertEqual(
            self.state.state_root(), MerkleTree(roots, BEACON_STATE_TREE_DEPTH).root()
        )

    def test_state_field_proof(self):
        roots = self.state.field_roots()
        root = self.state.state_root()
        for index in (0, 11, 12, 27):
            with self.subTest(field=index):
                proof = self.state.state_field_proof(index)
                self.assertEqual(len(proof), 5)
                self.assertTrue(verify_merkle_proof(roots[index], proof, index, root))
        with self.assertRaises(IndexOutOfRangeError):
            self.state.state_field_proof(28)

    def test_get_validator_and_balance(self):
        self.assertEqual(self.state.get_validator(2), self.validators[2])
        self.assertEqual(self.state.get_balance(5), self.balances[5])
        with self.assertRaises(IndexOutOfRangeError):
            self.state.get_validator(6)
        with self.assertRaises(IndexOutOfRangeError):
            self.state.get_balance(-1)

    def test_empty_registry(self):
        state = decode_beacon_state(encode_state([], []))
        self.assertEqual(state.validators, [])
        self.assertEqual(state.balances, [])


class TestDecoderErrors(unittest.TestCase):
    """Malformed buffers fail with a specific error kind."""

    @classmethod
    def setUpClass(cls):
        cls.validators = [make_validator(i) for i in range(2)]
        cls.data = encode_state(cls.validators, [1, 2])

    def _with_offset(self, name: str, value: int) -> bytes:
        data = bytearray(self.data)
        position = offset_position(name)
        data[position:position + 4] = value.to_bytes(4, "little")
        return bytes(data)

    def test_truncated_input(self):
        """A buffer shorter than the fixed region is rejected, not zero-filled"""
        for size in (0, 100, FIXED_REGION_SIZE - 1):
            with self.subTest(size=size):
                with self.assertRaises(TruncatedInputError) as ctx:
                    decode_beacon_state(self.data[:size])
                self.assertEqual(ctx.exception.minimum, FIXED_REGION_SIZE)

    def test_bad_first_offset(self):
        data = self._with_offset("historical_roots", FIXED_REGION_SIZE + 4)
        with self.assertRaises(RecordBoundsError):
            decode_beacon_state(data)

    def test_decreasing_offsets(self):
        start = read_offset_table(self.data)[2][1]
        data = self._with_offset("balances", start - 1)
        with self.assertRaises(RecordBoundsError):
            decode_beacon_state(data)

    def test_offset_beyond_buffer(self):
        data = self._with_offset("historical_summaries", len(self.data) + 10)
        with self.assertRaises(RecordBoundsError):
            decode_beacon_state(data)

    def test_validator_record_width(self):
        """A validators section that is not a whole number of records is rejected"""
        data = encode_state(
            self.validators, [1, 2],
            variable_overrides={"validators": b"".join(validator_ssz(v) for v in self.validators) + b"\x00"},
        )
        with self.assertRaises(RecordBoundsError):
            decode_beacon_state(data)

    def test_balance_record_width(self):
        data = encode_state(self.validators, [1, 2], variable_overrides={"balances": b"\x00" * 12})
        with self.assertRaises(RecordBoundsError):
            decode_beacon_state(data)

    def test_invalid_slashed_byte(self):
        """A slashed flag other than 0x00 or 0x01 is a malformed record"""
        for value in (2, 0xff):
            with self.subTest(value=value):
                records = bytearray(b"".join(validator_ssz(v) for v in self.validators))
                records[121 + 88] = value
                data = encode_state(self.validators, [1, 2], variable_overrides={"validators": bytes(records)})
                with self.assertRaises(RecordBoundsError) as ctx:
                    decode_beacon_state(data)
                self.assertIn(f"0x{value:02x}", str(ctx.exception))

    def test_short_execution_payload_header(self):
        """A full-size state with a truncated payload header is a record error, not truncated input"""
        for header in (b"", b"\x00" * 100):
            with self.subTest(size=len(header)):
                data = encode_state(
                    self.validators, [1, 2], variable_overrides={"latest_execution_payload_header": header}
                )
                self.assertGreaterEqual(len(data), FIXED_REGION_SIZE)
                with self.assertRaises(RecordBoundsError):
                    decode_beacon_state(data)


if __name__ == '__main__':
    unittest.main(verbosity=2)
