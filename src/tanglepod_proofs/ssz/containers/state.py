"""
Decoded BeaconState

The subset of a Deneb BeaconState needed for TanglePod proofs, plus the
raw SSZ bytes of every other top-level field so the full state root can
be recomputed. A decoded state is read-only: trees and proofs derived
from it are recomputed per request.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..constants import (
    BEACON_STATE_FIELD_COUNT,
    BEACON_STATE_TREE_DEPTH,
    SLOTS_PER_HISTORICAL_ROOT,
    STATE_BALANCES_INDEX,
    STATE_VALIDATORS_INDEX,
)
from ..encoding import merkle_root_basic, uint64_leaf
from ..exceptions import IndexOutOfRangeError
from ..merkle.encoding import encode_balances, encode_validators_leaf_list, vector_root
from ..merkle.tree import MerkleTree
from .beacon import BeaconBlockHeader, Eth1Data, ExecutionPayloadHeader, Fork, Validator
from .layout import BEACON_STATE_FIELDS

logger = logging.getLogger(__name__)


@dataclass
class BeaconState:
    """BeaconState fields used by the proof engine."""
    genesis_time: int
    genesis_validators_root: bytes
    slot: int
    fork: Fork
    latest_block_header: BeaconBlockHeader
    validators: List[Validator]
    balances: List[int]
    block_roots: List[bytes] = field(default_factory=list)
    state_roots: List[bytes] = field(default_factory=list)
    eth1_data: Optional[Eth1Data] = None
    eth1_deposit_index: int = 0
    latest_execution_payload_header: Optional[ExecutionPayloadHeader] = None
    # Raw SSZ bytes of the remaining top-level fields, keyed by field name
    sections: Dict[str, bytes] = field(default_factory=dict)

    def __post_init__(self):
        if self.validators and self.balances and len(self.validators) != len(self.balances):
            logger.warning(
                f"Validator count {len(self.validators)} differs from balance count "
                f"{len(self.balances)}"
            )

    def validator_roots(self) -> List[bytes]:
        return [v.hash_tree_root() for v in self.validators]

    def validators_root(self) -> bytes:
        """Root of the validators list (length mixed in)."""
        return encode_validators_leaf_list(self.validator_roots())

    def balances_root(self) -> bytes:
        """Root of the balances list (length mixed in)."""
        return encode_balances(self.balances)

    def get_validator(self, index: int) -> Validator:
        if index < 0 or index >= len(self.validators):
            raise IndexOutOfRangeError(index, len(self.validators), "validator")
        return self.validators[index]

    def get_balance(self, index: int) -> int:
        if index < 0 or index >= len(self.balances):
            raise IndexOutOfRangeError(index, len(self.balances), "balance")
        return self.balances[index]

    def _typed_root(self, name: str) -> Optional[bytes]:
        if name == "genesis_time":
            return uint64_leaf(self.genesis_time)
        if name == "genesis_validators_root":
            return merkle_root_basic(self.genesis_validators_root, "bytes32")
        if name == "slot":
            return uint64_leaf(self.slot)
        if name == "fork":
            return self.fork.merkle_root()
        if name == "latest_block_header":
            return self.latest_block_header.merkle_root()
        if name in ("block_roots", "state_roots") and getattr(self, name):
            return vector_root(getattr(self, name), SLOTS_PER_HISTORICAL_ROOT)
        if name == "eth1_data" and self.eth1_data is not None:
            return self.eth1_data.merkle_root()
        if name == "eth1_deposit_index":
            return uint64_leaf(self.eth1_deposit_index)
        if name == "latest_execution_payload_header" and self.latest_execution_payload_header:
            return self.latest_execution_payload_header.merkle_root()
        return None

    def field_roots(self, overrides: Optional[Dict[int, bytes]] = None) -> List[bytes]:
        """
        The 28 top-level field roots, in field order (the state tree pads them to 32).

        Fields without typed values are hashed from their raw section;
        a missing section is treated as zero-filled (fixed-size) or empty
        (variable-size). `overrides` substitutes precomputed roots by field
        index, which lets callers reuse validator/balance roots they have
        already built.
        """
        overrides = overrides or {}
        roots = []
        for index, spec in enumerate(BEACON_STATE_FIELDS):
            if index in overrides:
                roots.append(overrides[index])
            elif index == STATE_VALIDATORS_INDEX:
                roots.append(self.validators_root())
            elif index == STATE_BALANCES_INDEX:
                roots.append(self.balances_root())
            else:
                root = self._typed_root(spec.name)
                if root is None:
                    root = spec.root(self.sections.get(spec.name, spec.default()))
                roots.append(root)
        return roots

    def state_tree(self, overrides: Optional[Dict[int, bytes]] = None) -> MerkleTree:
        return MerkleTree(self.field_roots(overrides), BEACON_STATE_TREE_DEPTH)

    def state_root(self) -> bytes:
        return self.state_tree().root()

    def state_field_proof(
        self, field_index: int, overrides: Optional[Dict[int, bytes]] = None
    ) -> List[bytes]:
        """
        Proof of a top-level field root under the state root (5 hashes).

        Raises:
            IndexOutOfRangeError: If field_index is not a state field
        """
        if field_index < 0 or field_index >= BEACON_STATE_FIELD_COUNT:
            raise IndexOutOfRangeError(field_index, BEACON_STATE_FIELD_COUNT, "state field")
        return self.state_tree(overrides).generate_proof(field_index)

    @property
    def timestamp(self) -> Optional[int]:
        """Execution timestamp of the latest payload, if known."""
        if self.latest_execution_payload_header is None:
            return None
        return self.latest_execution_payload_header.timestamp
