"""
Deneb BeaconState Layout

The ordered field table of the Deneb BeaconState: 28 top-level fields,
nine of them variable-size. Fixed-size fields are stored inline in the
fixed region; a variable-size field contributes a 4-byte offset there
and its bytes live in the heap after the fixed region, in field order.

Each entry also knows how to hash-tree-root its raw SSZ bytes, so the
state root can be recomputed from a decoded buffer.
"""

from dataclasses import dataclass
from hashlib import sha256
from typing import Callable, List, Optional

from ..constants import (
    BYTES_PER_CHUNK,
    EPOCHS_PER_HISTORICAL_VECTOR,
    EPOCHS_PER_SLASHINGS_VECTOR,
    ETH1_DATA_VOTES_LIMIT,
    HISTORICAL_ROOTS_LIMIT,
    OFFSET_SIZE,
    SLOTS_PER_HISTORICAL_ROOT,
    SYNC_COMMITTEE_SIZE,
    VALIDATOR_REGISTRY_LIMIT,
)
from ..encoding import bytes48_leaf, uint64_leaf
from ..merkle.encoding import (
    bytes32_list_root,
    encode_balances,
    encode_validators_leaf_list,
    uint8_list_root,
    uint64_list_root,
    vector_root,
)
from ..merkle.tree import merkle_root_list
from .beacon import (
    BeaconBlockHeader,
    Checkpoint,
    Eth1Data,
    ExecutionPayloadHeader,
    Fork,
    HistoricalSummary,
    decode_balances,
    decode_records,
    decode_validators,
)

SYNC_COMMITTEE_SSZ_SIZE = SYNC_COMMITTEE_SIZE * 48 + 48


def split_chunks(data: bytes) -> List[bytes]:
    """Split bytes into 32-byte chunks, zero-padding the last one."""
    if len(data) % BYTES_PER_CHUNK:
        data = data + b"\x00" * (BYTES_PER_CHUNK - len(data) % BYTES_PER_CHUNK)
    return [data[i : i + BYTES_PER_CHUNK] for i in range(0, len(data), BYTES_PER_CHUNK)]


def _uint64_root(raw: bytes) -> bytes:
    return uint64_leaf(int.from_bytes(raw, "little"))


def _bytes32_root(raw: bytes) -> bytes:
    return bytes(raw)


def _container_root(cls) -> Callable[[bytes], bytes]:
    def root(raw: bytes) -> bytes:
        return cls.from_ssz(raw).merkle_root()

    return root


def _roots_vector_root(length: int) -> Callable[[bytes], bytes]:
    def root(raw: bytes) -> bytes:
        return vector_root(split_chunks(raw), length)

    return root


def _uint64_vector_root(length: int) -> Callable[[bytes], bytes]:
    def root(raw: bytes) -> bytes:
        return vector_root(split_chunks(raw), (length * 8 + 31) // 32)

    return root


def _roots_list_root(raw: bytes) -> bytes:
    chunks = decode_records(raw, 32, "historical_roots")
    return bytes32_list_root(chunks, HISTORICAL_ROOTS_LIMIT)


def _eth1_votes_root(raw: bytes) -> bytes:
    votes = decode_records(raw, Eth1Data.SSZ_SIZE, "eth1_data_votes")
    roots = [Eth1Data.from_ssz(vote).merkle_root() for vote in votes]
    return bytes32_list_root(roots, ETH1_DATA_VOTES_LIMIT)


def _validators_root(raw: bytes) -> bytes:
    return encode_validators_leaf_list(
        [v.hash_tree_root() for v in decode_validators(raw)]
    )


def _balances_root(raw: bytes) -> bytes:
    return encode_balances(decode_balances(raw))


def _participation_root(raw: bytes) -> bytes:
    return uint8_list_root(raw, VALIDATOR_REGISTRY_LIMIT)


def _inactivity_scores_root(raw: bytes) -> bytes:
    scores = [int.from_bytes(record, "little") for record in decode_records(raw, 8, "inactivity_scores")]
    return uint64_list_root(scores, VALIDATOR_REGISTRY_LIMIT)


def _bitvector_root(raw: bytes) -> bytes:
    return raw + b"\x00" * (BYTES_PER_CHUNK - len(raw))


def _sync_committee_root(raw: bytes) -> bytes:
    pubkeys = [bytes48_leaf(raw[i * 48 : (i + 1) * 48]) for i in range(SYNC_COMMITTEE_SIZE)]
    aggregate = bytes48_leaf(raw[SYNC_COMMITTEE_SIZE * 48 :])
    return merkle_root_list([vector_root(pubkeys, SYNC_COMMITTEE_SIZE), aggregate])


def _execution_header_root(raw: bytes) -> bytes:
    if not raw:
        return ExecutionPayloadHeader.empty().merkle_root()
    return ExecutionPayloadHeader.from_ssz(raw).merkle_root()


def _historical_summaries_root(raw: bytes) -> bytes:
    records = decode_records(raw, HistoricalSummary.SSZ_SIZE, "historical_summaries")
    roots = [sha256(record).digest() for record in records]
    return bytes32_list_root(roots, HISTORICAL_ROOTS_LIMIT)


@dataclass(frozen=True)
class FieldSpec:
    """One top-level BeaconState field."""
    name: str
    size: Optional[int]
    root: Callable[[bytes], bytes]

    @property
    def is_variable(self) -> bool:
        return self.size is None

    @property
    def fixed_width(self) -> int:
        """Bytes the field occupies in the fixed region."""
        return OFFSET_SIZE if self.size is None else self.size

    def default(self) -> bytes:
        """Raw bytes of an absent field: zero-filled if fixed, empty if variable."""
        return b"" if self.size is None else b"\x00" * self.size


BEACON_STATE_FIELDS = [
    FieldSpec("genesis_time", 8, _uint64_root),
    FieldSpec("genesis_validators_root", 32, _bytes32_root),
    FieldSpec("slot", 8, _uint64_root),
    FieldSpec("fork", Fork.SSZ_SIZE, _container_root(Fork)),
    FieldSpec("latest_block_header", BeaconBlockHeader.SSZ_SIZE, _container_root(BeaconBlockHeader)),
    FieldSpec("block_roots", SLOTS_PER_HISTORICAL_ROOT * 32, _roots_vector_root(SLOTS_PER_HISTORICAL_ROOT)),
    FieldSpec("state_roots", SLOTS_PER_HISTORICAL_ROOT * 32, _roots_vector_root(SLOTS_PER_HISTORICAL_ROOT)),
    FieldSpec("historical_roots", None, _roots_list_root),
    FieldSpec("eth1_data", Eth1Data.SSZ_SIZE, _container_root(Eth1Data)),
    FieldSpec("eth1_data_votes", None, _eth1_votes_root),
    FieldSpec("eth1_deposit_index", 8, _uint64_root),
    FieldSpec("validators", None, _validators_root),
    FieldSpec("balances", None, _balances_root),
    FieldSpec("randao_mixes", EPOCHS_PER_HISTORICAL_VECTOR * 32, _roots_vector_root(EPOCHS_PER_HISTORICAL_VECTOR)),
    FieldSpec("slashings", EPOCHS_PER_SLASHINGS_VECTOR * 8, _uint64_vector_root(EPOCHS_PER_SLASHINGS_VECTOR)),
    FieldSpec("previous_epoch_participation", None, _participation_root),
    FieldSpec("current_epoch_participation", None, _participation_root),
    FieldSpec("justification_bits", 1, _bitvector_root),
    FieldSpec("previous_justified_checkpoint", Checkpoint.SSZ_SIZE, _container_root(Checkpoint)),
    FieldSpec("current_justified_checkpoint", Checkpoint.SSZ_SIZE, _container_root(Checkpoint)),
    FieldSpec("finalized_checkpoint", Checkpoint.SSZ_SIZE, _container_root(Checkpoint)),
    FieldSpec("inactivity_scores", None, _inactivity_scores_root),
    FieldSpec("current_sync_committee", SYNC_COMMITTEE_SSZ_SIZE, _sync_committee_root),
    FieldSpec("next_sync_committee", SYNC_COMMITTEE_SSZ_SIZE, _sync_committee_root),
    FieldSpec("latest_execution_payload_header", None, _execution_header_root),
    FieldSpec("next_withdrawal_index", 8, _uint64_root),
    FieldSpec("next_withdrawal_validator_index", 8, _uint64_root),
    FieldSpec("historical_summaries", None, _historical_summaries_root),
]

FIELD_INDEX = {spec.name: i for i, spec in enumerate(BEACON_STATE_FIELDS)}

# 2,736,653 bytes for Deneb
FIXED_REGION_SIZE = sum(spec.fixed_width for spec in BEACON_STATE_FIELDS)

VARIABLE_FIELDS = [spec.name for spec in BEACON_STATE_FIELDS if spec.is_variable]
