"""
Shared test fixtures

Builders for validators, SSZ-encoded Deneb beacon states, block headers
and beacon API JSON records. Everything is synthesized in-process.
"""

import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tanglepod_proofs.api.beacon_client import BeaconAPIError
from tanglepod_proofs.main import ProofComposer
from tanglepod_proofs.ssz import BeaconBlockHeader, Validator, decode_beacon_state
from tanglepod_proofs.ssz.containers.beacon import ExecutionPayloadHeader
from tanglepod_proofs.ssz.containers.layout import BEACON_STATE_FIELDS, FIXED_REGION_SIZE

FAR_FUTURE_EPOCH = 2**64 - 1
POD_ADDRESS = "0x" + "ab" * 20
GENESIS_TIME = 1606824023
POD_CREDENTIALS = b"\x01" + b"\x00" * 11 + bytes.fromhex(POD_ADDRESS[2:])
COMPOUNDING_CREDENTIALS = b"\x02" + b"\x00" * 11 + bytes.fromhex(POD_ADDRESS[2:])
STATUSES = ["active_ongoing", "pending_queued", "active_ongoing", "exited_unslashed", "active_slashed"]


def u64(value: int) -> bytes:
    return value.to_bytes(8, "little")


def make_validator(i: int, credentials: bytes = None, slashed: bool = False,
                   effective_balance: int = 32_000_000_000) -> Validator:
    """A validator with distinct, recognisable field values."""
    if credentials is None:
        credentials = b"\x01" + b"\x00" * 11 + bytes([i % 256]) * 20
    return Validator(
        pubkey=bytes([(i + 1) % 256]) * 48,
        withdrawal_credentials=credentials,
        effective_balance=effective_balance,
        slashed=slashed,
        activation_eligibility_epoch=i,
        activation_epoch=i + 1,
        exit_epoch=FAR_FUTURE_EPOCH,
        withdrawable_epoch=FAR_FUTURE_EPOCH,
    )


def validator_ssz(v: Validator) -> bytes:
    """121-byte SSZ record of a validator."""
    return (
        v.pubkey
        + v.withdrawal_credentials
        + u64(v.effective_balance)
        + (b"\x01" if v.slashed else b"\x00")
        + u64(v.activation_eligibility_epoch)
        + u64(v.activation_epoch)
        + u64(v.exit_epoch)
        + u64(v.withdrawable_epoch)
    )


def execution_header_ssz(timestamp: int = 0, extra_data: bytes = b"") -> bytes:
    data = bytearray(ExecutionPayloadHeader.FIXED_SIZE)
    data[428:436] = u64(timestamp)
    position = ExecutionPayloadHeader.EXTRA_DATA_OFFSET_POSITION
    data[position:position + 4] = ExecutionPayloadHeader.FIXED_SIZE.to_bytes(4, "little")
    return bytes(data) + extra_data


def encode_state(validators, balances, slot: int = 0, genesis_time: int = 0,
                 variable_overrides=None) -> bytes:
    """
    SSZ-encode a minimal Deneb beacon state.

    Fixed fields other than genesis time and slot are zero-filled; the
    variable sections hold the given validators and balances, matching
    participation and inactivity lists, and an execution payload header.
    """
    fixed = {"genesis_time": u64(genesis_time), "slot": u64(slot)}
    variable = {
        "historical_roots": b"",
        "eth1_data_votes": b"",
        "validators": b"".join(validator_ssz(v) for v in validators),
        "balances": b"".join(u64(b) for b in balances),
        "previous_epoch_participation": bytes(len(validators)),
        "current_epoch_participation": bytes(len(validators)),
        "inactivity_scores": bytes(8 * len(validators)),
        "latest_execution_payload_header": execution_header_ssz(genesis_time + slot * 12),
        "historical_summaries": b"",
    }
    variable.update(variable_overrides or {})

    head = bytearray()
    heap = bytearray()
    for spec in BEACON_STATE_FIELDS:
        if spec.is_variable:
            head += (FIXED_REGION_SIZE + len(heap)).to_bytes(4, "little")
            heap += variable[spec.name]
        else:
            head += fixed.get(spec.name, spec.default())
    return bytes(head + heap)


def offset_position(name: str) -> int:
    """Byte position of a variable field's offset in the fixed region."""
    position = 0
    for spec in BEACON_STATE_FIELDS:
        if spec.name == name:
            return position
        position += spec.fixed_width
    raise KeyError(name)


def make_header(state_root: bytes, slot: int = 100, proposer_index: int = 7) -> BeaconBlockHeader:
    return BeaconBlockHeader(
        slot=slot,
        proposer_index=proposer_index,
        parent_root=b"\x11" * 32,
        state_root=state_root,
        body_root=b"\x22" * 32,
    )


def api_validator_record(index: int, v: Validator, balance: int, status: str = "active_ongoing") -> dict:
    """A validator as returned by /eth/v1/beacon/states/{id}/validators."""
    return {
        "index": str(index),
        "balance": str(balance),
        "status": status,
        "validator": {
            "pubkey": "0x" + v.pubkey.hex(),
            "withdrawal_credentials": "0x" + v.withdrawal_credentials.hex(),
            "effective_balance": str(v.effective_balance),
            "slashed": v.slashed,
            "activation_eligibility_epoch": str(v.activation_eligibility_epoch),
            "activation_epoch": str(v.activation_epoch),
            "exit_epoch": str(v.exit_epoch),
            "withdrawable_epoch": str(v.withdrawable_epoch),
        },
    }


def build_chain():
    """
    Five validators at slot 100 on mainnet.

    Validators 0 and 3 use the pod's 0x01 credentials and validator 2 its
    0x02 credentials; validator 4 is slashed. Returns the validators, their
    balances, the SSZ state and a header committing to its state root.
    """
    validators = [make_validator(i) for i in range(5)]
    validators[0] = make_validator(0, credentials=POD_CREDENTIALS)
    validators[2] = make_validator(2, credentials=COMPOUNDING_CREDENTIALS, effective_balance=64_000_000_000)
    validators[3] = make_validator(3, credentials=POD_CREDENTIALS)
    validators[4] = make_validator(4, slashed=True)
    balances = [32_000_000_000, 31_000_000_000, 64_000_000_000, 0, 30_500_000_000]
    raw_state = encode_state(validators, balances, slot=100, genesis_time=GENESIS_TIME)
    state_root = ProofComposer(decode_beacon_state(raw_state)).state_root
    return validators, balances, raw_state, make_header(state_root, slot=100, proposer_index=7)


class FakeBeaconClient:
    """Beacon node backed by a synthesized state."""

    def __init__(self, validators, balances, raw_state, header, block_root=None):
        self.records = [
            api_validator_record(i, v, balances[i], STATUSES[i]) for i, v in enumerate(validators)
        ]
        self.raw_state = raw_state
        self.header = header
        self.block_root = block_root or header.merkle_root()

    def get_block_header(self, block_id="finalized", timeout=None):
        return self.header

    def get_block_root(self, block_id="finalized", timeout=None):
        return self.block_root

    def get_beacon_state_ssz(self, state_id="finalized", timeout=None):
        return self.raw_state

    def get_validators(self, state_id, indices=None, timeout=None):
        if indices is None:
            return list(self.records)
        return [r for r in self.records if int(r["index"]) in indices]

    def get_validator(self, state_id, index, timeout=None):
        if index >= len(self.records):
            raise BeaconAPIError(f"Validator {index} not found")
        return self.records[index]

    def health_check(self):
        return True
