"""
Beacon Chain Data Structures

SSZ container definitions for the beacon-chain records that TanglePod
proofs touch: fork, block header, checkpoint, eth1 data, validator,
historical summary and the Deneb execution payload header. Each fixed
container can be decoded from its SSZ bytes with from_ssz().
"""

from dataclasses import dataclass
from hashlib import sha256
from typing import List

from ..constants import (
    BLOCK_HEADER_STATE_ROOT_INDEX,
    BYTES_PER_LOGS_BLOOM,
    MAX_EXTRA_DATA_BYTES,
    VALIDATOR_RECORD_SIZE,
)
from ..encoding import bool_leaf, bytes48_leaf, merkle_root_basic, uint64_leaf
from ..exceptions import RecordBoundsError
from ..merkle.encoding import mix_in_length
from ..serialization import read_bool, read_bytes, read_uint32, read_uint64
from .base import SSZContainer


ZERO_ROOT = b"\x00" * 32


def _require_size(data: bytes, size: int, what: str) -> None:
    if len(data) != size:
        raise RecordBoundsError(f"{what} must be {size} bytes, got {len(data)}")


@dataclass
class Fork(SSZContainer):
    """Fork represents a network fork with version information."""
    previous_version: bytes
    current_version: bytes
    epoch: int

    SSZ_SIZE = 16

    @classmethod
    def from_ssz(cls, data: bytes) -> "Fork":
        _require_size(data, cls.SSZ_SIZE, "Fork")
        return cls(
            previous_version=read_bytes(data, 0, 4),
            current_version=read_bytes(data, 4, 4),
            epoch=read_uint64(data, 8),
        )

    def serialize(self) -> List[bytes]:
        return [
            merkle_root_basic(self.previous_version, "bytes4"),
            merkle_root_basic(self.current_version, "bytes4"),
            uint64_leaf(self.epoch),
        ]


@dataclass
class BeaconBlockHeader(SSZContainer):
    """BeaconBlockHeader represents the header of a beacon chain block."""
    slot: int
    proposer_index: int
    parent_root: bytes
    state_root: bytes
    body_root: bytes

    SSZ_SIZE = 112

    @classmethod
    def from_ssz(cls, data: bytes) -> "BeaconBlockHeader":
        _require_size(data, cls.SSZ_SIZE, "BeaconBlockHeader")
        return cls(
            slot=read_uint64(data, 0),
            proposer_index=read_uint64(data, 8),
            parent_root=read_bytes(data, 16, 32),
            state_root=read_bytes(data, 48, 32),
            body_root=read_bytes(data, 80, 32),
        )

    def serialize(self) -> List[bytes]:
        """Header field leaves; the tree pads them to 8 (depth 3)."""
        return [
            uint64_leaf(self.slot),
            uint64_leaf(self.proposer_index),
            merkle_root_basic(self.parent_root, "bytes32"),
            merkle_root_basic(self.state_root, "bytes32"),
            merkle_root_basic(self.body_root, "bytes32"),
        ]

    def state_root_proof(self) -> List[bytes]:
        """Proof of state_root (leaf 3) under the block root."""
        return self.get_proof(BLOCK_HEADER_STATE_ROOT_INDEX)


@dataclass
class Checkpoint(SSZContainer):
    epoch: int
    root: bytes

    SSZ_SIZE = 40

    @classmethod
    def from_ssz(cls, data: bytes) -> "Checkpoint":
        _require_size(data, cls.SSZ_SIZE, "Checkpoint")
        return cls(epoch=read_uint64(data, 0), root=read_bytes(data, 8, 32))

    def serialize(self) -> List[bytes]:
        return [uint64_leaf(self.epoch), merkle_root_basic(self.root, "bytes32")]


@dataclass
class Eth1Data(SSZContainer):
    """Eth1Data represents Ethereum 1.0 chain data in the beacon chain."""
    deposit_root: bytes
    deposit_count: int
    block_hash: bytes

    SSZ_SIZE = 72

    @classmethod
    def from_ssz(cls, data: bytes) -> "Eth1Data":
        _require_size(data, cls.SSZ_SIZE, "Eth1Data")
        return cls(
            deposit_root=read_bytes(data, 0, 32),
            deposit_count=read_uint64(data, 32),
            block_hash=read_bytes(data, 40, 32),
        )

    def serialize(self) -> List[bytes]:
        return [
            merkle_root_basic(self.deposit_root, "bytes32"),
            uint64_leaf(self.deposit_count),
            merkle_root_basic(self.block_hash, "bytes32"),
        ]


@dataclass
class HistoricalSummary(SSZContainer):
    block_summary_root: bytes
    state_summary_root: bytes

    SSZ_SIZE = 64

    @classmethod
    def from_ssz(cls, data: bytes) -> "HistoricalSummary":
        _require_size(data, cls.SSZ_SIZE, "HistoricalSummary")
        return cls(read_bytes(data, 0, 32), read_bytes(data, 32, 32))

    def serialize(self) -> List[bytes]:
        return [self.block_summary_root, self.state_summary_root]


@dataclass
class Validator(SSZContainer):
    """
    Validator represents a beacon chain validator.

    Two leaf encodings exist:

    - serialize() / hash_tree_root(): the canonical record root, with the
      public key hashed by the two-chunk bytes48 rule
    - get_fields(): the "flattened" field list handed to the on-chain
      verifier, with the public key hashed as a single SHA-256 over all
      48 bytes
    """
    pubkey: bytes
    withdrawal_credentials: bytes
    effective_balance: int
    slashed: bool
    activation_eligibility_epoch: int
    activation_epoch: int
    exit_epoch: int
    withdrawable_epoch: int

    SSZ_SIZE = VALIDATOR_RECORD_SIZE

    @classmethod
    def from_ssz(cls, data: bytes) -> "Validator":
        """Decode one 121-byte validator record."""
        _require_size(data, cls.SSZ_SIZE, "Validator")
        return cls(
            pubkey=read_bytes(data, 0, 48),
            withdrawal_credentials=read_bytes(data, 48, 32),
            effective_balance=read_uint64(data, 80),
            slashed=read_bool(data, 88),
            activation_eligibility_epoch=read_uint64(data, 89),
            activation_epoch=read_uint64(data, 97),
            exit_epoch=read_uint64(data, 105),
            withdrawable_epoch=read_uint64(data, 113),
        )

    def serialize(self) -> List[bytes]:
        """Serialize Validator fields to 8 leaves (depth 3)."""
        return [
            bytes48_leaf(self.pubkey),
            merkle_root_basic(self.withdrawal_credentials, "bytes32"),
            uint64_leaf(self.effective_balance),
            bool_leaf(self.slashed),
            uint64_leaf(self.activation_eligibility_epoch),
            uint64_leaf(self.activation_epoch),
            uint64_leaf(self.exit_epoch),
            uint64_leaf(self.withdrawable_epoch),
        ]

    def hash_tree_root(self) -> bytes:
        return self.merkle_root()

    def pubkey_hash(self) -> bytes:
        return sha256(self.pubkey).digest()

    def get_fields(self) -> List[bytes]:
        """Flattened field leaves as exposed to the on-chain verifier."""
        leaves = self.serialize()
        leaves[0] = self.pubkey_hash()
        return leaves


@dataclass
class ExecutionPayloadHeader(SSZContainer):
    """ExecutionPayloadHeader (Deneb) embedded in the beacon state."""
    parent_hash: bytes
    fee_recipient: bytes
    state_root: bytes
    receipts_root: bytes
    logs_bloom: bytes
    prev_randao: bytes
    block_number: int
    gas_limit: int
    gas_used: int
    timestamp: int
    extra_data: bytes
    base_fee_per_gas: int
    block_hash: bytes
    transactions_root: bytes
    withdrawals_root: bytes
    blob_gas_used: int = 0
    excess_blob_gas: int = 0

    FIXED_SIZE = 584
    EXTRA_DATA_OFFSET_POSITION = 436

    @classmethod
    def empty(cls) -> "ExecutionPayloadHeader":
        return cls(
            parent_hash=ZERO_ROOT,
            fee_recipient=b"\x00" * 20,
            state_root=ZERO_ROOT,
            receipts_root=ZERO_ROOT,
            logs_bloom=b"\x00" * BYTES_PER_LOGS_BLOOM,
            prev_randao=ZERO_ROOT,
            block_number=0,
            gas_limit=0,
            gas_used=0,
            timestamp=0,
            extra_data=b"",
            base_fee_per_gas=0,
            block_hash=ZERO_ROOT,
            transactions_root=ZERO_ROOT,
            withdrawals_root=ZERO_ROOT,
        )

    @classmethod
    def from_ssz(cls, data: bytes) -> "ExecutionPayloadHeader":
        if len(data) < cls.FIXED_SIZE:
            raise RecordBoundsError(
                f"ExecutionPayloadHeader needs at least {cls.FIXED_SIZE} bytes, got {len(data)}"
            )
        extra_offset = read_uint32(data, cls.EXTRA_DATA_OFFSET_POSITION)
        if extra_offset != cls.FIXED_SIZE:
            raise RecordBoundsError(
                f"ExecutionPayloadHeader extra_data offset {extra_offset} != {cls.FIXED_SIZE}"
            )
        extra_data = bytes(data[extra_offset:])
        if len(extra_data) > MAX_EXTRA_DATA_BYTES:
            raise RecordBoundsError(
                f"extra_data length {len(extra_data)} exceeds {MAX_EXTRA_DATA_BYTES}"
            )
        return cls(
            parent_hash=read_bytes(data, 0, 32),
            fee_recipient=read_bytes(data, 32, 20),
            state_root=read_bytes(data, 52, 32),
            receipts_root=read_bytes(data, 84, 32),
            logs_bloom=read_bytes(data, 116, BYTES_PER_LOGS_BLOOM),
            prev_randao=read_bytes(data, 372, 32),
            block_number=read_uint64(data, 404),
            gas_limit=read_uint64(data, 412),
            gas_used=read_uint64(data, 420),
            timestamp=read_uint64(data, 428),
            extra_data=extra_data,
            base_fee_per_gas=int.from_bytes(read_bytes(data, 440, 32), "little"),
            block_hash=read_bytes(data, 472, 32),
            transactions_root=read_bytes(data, 504, 32),
            withdrawals_root=read_bytes(data, 536, 32),
            blob_gas_used=read_uint64(data, 568),
            excess_blob_gas=read_uint64(data, 576),
        )

    def _extra_data_root(self) -> bytes:
        if len(self.extra_data) > MAX_EXTRA_DATA_BYTES:
            raise ValueError(
                f"ExtraData length {len(self.extra_data)} exceeds maximum {MAX_EXTRA_DATA_BYTES}"
            )
        chunk = self.extra_data + b"\x00" * (32 - len(self.extra_data))
        return mix_in_length(chunk, len(self.extra_data))

    def serialize(self) -> List[bytes]:
        """17 field leaves; the tree pads them to 32 (depth 5)."""
        return [
            merkle_root_basic(self.parent_hash, "bytes32"),
            merkle_root_basic(self.fee_recipient, "bytes20"),
            merkle_root_basic(self.state_root, "bytes32"),
            merkle_root_basic(self.receipts_root, "bytes32"),
            merkle_root_basic(self.logs_bloom, "bytes256"),
            merkle_root_basic(self.prev_randao, "bytes32"),
            uint64_leaf(self.block_number),
            uint64_leaf(self.gas_limit),
            uint64_leaf(self.gas_used),
            uint64_leaf(self.timestamp),
            self._extra_data_root(),
            merkle_root_basic(self.base_fee_per_gas, "uint256"),
            merkle_root_basic(self.block_hash, "bytes32"),
            merkle_root_basic(self.transactions_root, "bytes32"),
            merkle_root_basic(self.withdrawals_root, "bytes32"),
            uint64_leaf(self.blob_gas_used),
            uint64_leaf(self.excess_blob_gas),
        ]


def decode_records(data: bytes, record_size: int, what: str) -> List[bytes]:
    """
    Split a list section into fixed-width records.

    Raises:
        RecordBoundsError: If the section is not a whole number of records
    """
    if len(data) % record_size != 0:
        raise RecordBoundsError(
            f"{what} section of {len(data)} bytes is not a multiple of {record_size}"
        )
    return [data[i : i + record_size] for i in range(0, len(data), record_size)]


def decode_validators(data: bytes) -> List[Validator]:
    return [
        Validator.from_ssz(record)
        for record in decode_records(data, VALIDATOR_RECORD_SIZE, "validators")
    ]


def decode_balances(data: bytes) -> List[int]:
    return [
        int.from_bytes(record, "little") for record in decode_records(data, 8, "balances")
    ]
