"""
TanglePod Proofs - Main proof generation module

This module contains the core functions for composing Merkle proofs from a
decoded BeaconState for the CLI and API interfaces: withdrawal credential
(validator) proofs, checkpoint (balance) proofs and the state root proof
that anchors both to a beacon block root.

Every composed proof is emitted leaf to root, so a single linear walk
over it reconstructs the root it is checked against.
"""

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from .ssz import (
    BALANCE_TREE_HEIGHT,
    BALANCES_PER_CHUNK,
    BEACON_STATE_TREE_DEPTH,
    STATE_BALANCES_INDEX,
    STATE_VALIDATORS_INDEX,
    VALIDATOR_TREE_HEIGHT,
    BeaconBlockHeader,
    BeaconState,
    DepthMismatchError,
    IndexOutOfRangeError,
    Validator,
    balances_tree,
    compose_leaf_index,
    compose_proofs,
    decode_beacon_state,
    gindex_depth,
    mix_in_length,
    validator_gindex,
    validators_tree,
    verify_merkle_proof,
)
from .ssz.constants import BEACON_STATE_FIELD_COUNT, BLOCK_HEADER_STATE_ROOT_INDEX
from .ssz.merkle.encoding import length_leaf

logger = logging.getLogger(__name__)

# Validator status codes understood by the TanglePod contract
VALIDATOR_STATUS_INACTIVE = 0
VALIDATOR_STATUS_ACTIVE = 1
VALIDATOR_STATUS_WITHDRAWN = 2

ACTIVE_STATUSES = ("active_ongoing", "active_exiting", "active_slashed")
PENDING_STATUSES = ("pending_initialized", "pending_queued")
WITHDRAWN_STATUSES = ("exited_unslashed", "exited_slashed", "withdrawal_possible", "withdrawal_done")


def to_hex(value: bytes) -> str:
    return f"0x{value.hex()}"


def hex_list(values: Sequence[bytes]) -> List[str]:
    return [to_hex(v) for v in values]


def from_hex(value: str) -> bytes:
    """Decode a hex string with or without 0x prefix."""
    return bytes.fromhex(value[2:] if value.startswith("0x") else value)


@dataclass
class StateRootProof:
    """Proof of the beacon state root under a block root (3 hashes)."""
    beacon_state_root: bytes
    proof: List[bytes]

    def to_dict(self) -> Dict[str, Any]:
        return {"beaconStateRoot": to_hex(self.beacon_state_root), "proof": hex_list(self.proof)}


@dataclass
class ValidatorProof:
    """Flattened validator fields plus their proof under the state root."""
    validator_index: int
    validator_fields: List[bytes]
    proof: List[bytes]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "validatorIndex": self.validator_index,
            "validatorFields": hex_list(self.validator_fields),
            "proof": hex_list(self.proof),
        }


@dataclass
class BalanceContainerProof:
    """Proof of the balances list root under the state root (5 hashes)."""
    balance_container_root: bytes
    proof: List[bytes]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "balanceContainerRoot": to_hex(self.balance_container_root),
            "proof": hex_list(self.proof),
        }


@dataclass
class BalanceProof:
    """Packed balance leaf plus its proof under the balances root."""
    pubkey_hash: bytes
    balance_root: bytes
    proof: List[bytes]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pubkeyHash": to_hex(self.pubkey_hash),
            "balanceRoot": to_hex(self.balance_root),
            "proof": hex_list(self.proof),
        }


@dataclass
class CredentialProof:
    """Input for verifyWithdrawalCredentials."""
    beacon_timestamp: int
    beacon_block_root: bytes
    state_root_proof: StateRootProof
    validator_indices: List[int]
    validator_proofs: List[ValidatorProof]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "beaconTimestamp": self.beacon_timestamp,
            "beaconBlockRoot": to_hex(self.beacon_block_root),
            "stateRootProof": self.state_root_proof.to_dict(),
            "validatorIndices": list(self.validator_indices),
            "validatorProofs": [p.to_dict() for p in self.validator_proofs],
        }


@dataclass
class CheckpointProof:
    """Input for verifyCheckpointProofs."""
    beacon_timestamp: int
    beacon_block_root: bytes
    state_root_proof: StateRootProof
    balance_container_proof: BalanceContainerProof
    balance_proofs: List[BalanceProof] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "beaconTimestamp": self.beacon_timestamp,
            "beaconBlockRoot": to_hex(self.beacon_block_root),
            "stateRootProof": self.state_root_proof.to_dict(),
            "balanceContainerProof": self.balance_container_proof.to_dict(),
            "balanceProofs": [p.to_dict() for p in self.balance_proofs],
        }


@dataclass
class StaleBalanceProof:
    """Input for verifyStaleBalance."""
    beacon_timestamp: int
    beacon_block_root: bytes
    state_root_proof: StateRootProof
    validator_proof: ValidatorProof
    validator_slashed: bool
    current_balance_gwei: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "beaconTimestamp": self.beacon_timestamp,
            "beaconBlockRoot": to_hex(self.beacon_block_root),
            "stateRootProof": self.state_root_proof.to_dict(),
            "validatorProof": self.validator_proof.to_dict(),
            "validatorSlashed": self.validator_slashed,
            "currentBalanceGwei": self.current_balance_gwei,
        }


def validator_leaf_index(validator_index: int) -> int:
    """Position of a validator root among the leaves of a composed validator proof."""
    return compose_leaf_index(
        (validator_index, VALIDATOR_TREE_HEIGHT), (0, 1), (STATE_VALIDATORS_INDEX, BEACON_STATE_TREE_DEPTH)
    )


def balance_leaf_index(validator_index: int) -> int:
    """Position of a packed balance leaf among the leaves of a composed balance proof."""
    return compose_leaf_index(
        (validator_index // BALANCES_PER_CHUNK, BALANCE_TREE_HEIGHT),
        (0, 1),
        (STATE_BALANCES_INDEX, BEACON_STATE_TREE_DEPTH),
    )


def generate_state_root_proof(header: BeaconBlockHeader) -> StateRootProof:
    """
    Prove header.state_root under the header's hash-tree root (the block root).

    Args:
        header: Beacon block header as returned by the header source

    Returns:
        StateRootProof with 3 sibling hashes, leaf to root
    """
    return StateRootProof(beacon_state_root=header.state_root, proof=header.state_root_proof())


def verify_state_root_proof(proof: StateRootProof, block_root: bytes) -> bool:
    return verify_merkle_proof(
        proof.beacon_state_root, proof.proof, BLOCK_HEADER_STATE_ROOT_INDEX, block_root
    )


def verify_validator_proof(proof: ValidatorProof, validator: Validator, state_root: bytes) -> bool:
    """Check a composed validator proof against the state root by a linear walk."""
    return verify_merkle_proof(
        validator.hash_tree_root(), proof.proof, validator_leaf_index(proof.validator_index), state_root
    )


def verify_balance_container_proof(proof: BalanceContainerProof, state_root: bytes) -> bool:
    return verify_merkle_proof(
        proof.balance_container_root, proof.proof, STATE_BALANCES_INDEX, state_root
    )


def verify_balance_proof(proof: BalanceProof, validator_index: int, balances_root: bytes) -> bool:
    return verify_merkle_proof(
        proof.balance_root, proof.proof, validator_index // BALANCES_PER_CHUNK, balances_root
    )


class ProofComposer:
    """
    Composes validator and balance proofs against one decoded state.

    The validator and balance trees and the state tree are built once, in
    the constructor, so every node a proof can touch is resolved before
    proofs for several validators are generated on worker threads.

    Examples:
        >>> composer = ProofComposer(decode_beacon_state(raw))
        >>> proofs = composer.prove_many(composer.validator_proof, [3, 17, 42])
    """

    def __init__(self, state: BeaconState):
        self.state = state
        self._validators_tree = validators_tree(state.validator_roots())
        self._balances_tree = balances_tree(state.balances)

        self.validators_root = mix_in_length(self._validators_tree.root(), len(state.validators))
        self.balances_root = mix_in_length(self._balances_tree.root(), len(state.balances))
        self._state_tree = state.state_tree(
            {STATE_VALIDATORS_INDEX: self.validators_root, STATE_BALANCES_INDEX: self.balances_root}
        )
        self.state_root = self._state_tree.root()
        logger.debug(
            f"Composer ready: {len(state.validators)} validators, {len(state.balances)} balances, "
            f"state root {to_hex(self.state_root)}"
        )

    def validator_proof(self, index: int, validator: Optional[Validator] = None) -> ValidatorProof:
        """
        Prove validator `index` under the state root.

        The proof has 46 hashes: 40 in the validators tree, the length
        leaf, then 5 in the state tree.

        Args:
            index: Validator index
            validator: Validator record to expose as fields; defaults to the
                record in the decoded state

        Raises:
            IndexOutOfRangeError: If index is not a validator of the state
        """
        record = self.state.get_validator(index)
        if validator is None:
            validator = record
        proof = compose_proofs(
            self._validators_tree.generate_proof(index),
            [length_leaf(len(self.state.validators))],
            self._state_tree.generate_proof(STATE_VALIDATORS_INDEX),
        )
        return ValidatorProof(
            validator_index=index, validator_fields=validator.get_fields(), proof=proof
        )

    def balance_proof(self, index: int) -> BalanceProof:
        """
        Prove the packed balance leaf of validator `index` under the balances root.

        The proof has 39 hashes: 38 in the balances tree plus the length leaf.

        Raises:
            IndexOutOfRangeError: If index has no balance or no validator record
        """
        self.state.get_balance(index)
        validator = self.state.get_validator(index)
        chunk = index // BALANCES_PER_CHUNK
        proof = compose_proofs(
            self._balances_tree.generate_proof(chunk), [length_leaf(len(self.state.balances))]
        )
        return BalanceProof(
            pubkey_hash=validator.pubkey_hash(),
            balance_root=self._balances_tree.get_leaf(chunk),
            proof=proof,
        )

    def balance_container_proof(self) -> BalanceContainerProof:
        """Prove the balances root under the state root (5 hashes)."""
        return BalanceContainerProof(
            balance_container_root=self.balances_root,
            proof=self._state_tree.generate_proof(STATE_BALANCES_INDEX),
        )

    def full_balance_proof(self, index: int) -> List[bytes]:
        """Balance leaf to state root in one branch (44 hashes)."""
        return compose_proofs(self.balance_proof(index).proof, self.balance_container_proof().proof)

    def state_field_proof(self, field_index: int) -> List[bytes]:
        """
        Raises:
            IndexOutOfRangeError: If field_index is not a state field
        """
        if field_index < 0 or field_index >= BEACON_STATE_FIELD_COUNT:
            raise IndexOutOfRangeError(field_index, BEACON_STATE_FIELD_COUNT, "state field")
        return self._state_tree.generate_proof(field_index)

    def prove_many(
        self, fn: Callable[[int], Any], indices: Sequence[int], max_workers: int = 4
    ) -> List[Any]:
        """
        Run a per-validator proof function over several indices in parallel.

        Results keep the order of `indices`; the first failure is raised.
        """
        if max_workers <= 1 or len(indices) <= 1:
            return [fn(i) for i in indices]
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(fn, indices))


class ValidatorProofSource(ABC):
    """Produces a validator inclusion proof given an index and its record."""

    @abstractmethod
    def validator_proof(self, index: int, validator: Validator) -> ValidatorProof:
        pass


class StateValidatorProofSource(ValidatorProofSource):
    """Proofs composed locally from a fully decoded state."""

    def __init__(self, composer: ProofComposer):
        self.composer = composer

    def validator_proof(self, index: int, validator: Validator) -> ValidatorProof:
        return self.composer.validator_proof(index, validator)


class ProverValidatorProofSource(ValidatorProofSource):
    """
    Proofs fetched from a Lodestar light client prover endpoint.

    `remaining` returns the seconds left in the caller's time budget (and
    raises once it is spent); each prover call is bounded by it.
    """

    def __init__(self, prover_client, state_id: str = "finalized",
                 remaining: Optional[Callable[[], float]] = None):
        self.prover_client = prover_client
        self.state_id = state_id
        self.remaining = remaining

    def validator_proof(self, index: int, validator: Validator) -> ValidatorProof:
        """
        Raises:
            DepthMismatchError: If the returned gindex does not match the proof length
            ValueError: If the returned gindex addresses another validator
        """
        timeout = self.remaining() if self.remaining else None
        data = self.prover_client.get_validator_proof(self.state_id, index, timeout=timeout)
        if self.remaining:
            self.remaining()
        proof = [from_hex(p) for p in data.get("proof", [])]
        gindex = data.get("gindex")
        if gindex is not None:
            gindex = int(gindex)
            if gindex_depth(gindex) != len(proof):
                raise DepthMismatchError(gindex, len(proof), gindex_depth(gindex))
            if gindex != validator_gindex(index):
                raise ValueError(
                    f"Prover returned gindex {gindex} for validator {index}, "
                    f"expected {validator_gindex(index)}"
                )
        return ValidatorProof(
            validator_index=index, validator_fields=validator.get_fields(), proof=proof
        )


def compute_withdrawal_credentials(address: str, prefix: int = 0x01) -> bytes:
    """
    Withdrawal credentials pointing at an execution address.

    Layout: 1 prefix byte, 11 zero bytes, then the 20-byte address.
    """
    raw = from_hex(address)
    if len(raw) != 20:
        raise ValueError(f"Expected a 20-byte address, got {len(raw)} bytes: {address}")
    return bytes([prefix]) + b"\x00" * 11 + raw


def pod_withdrawal_credentials(address: str) -> List[bytes]:
    """Both 0x01 and 0x02 (compounding) credentials for a pod address."""
    return [compute_withdrawal_credentials(address, 0x01), compute_withdrawal_credentials(address, 0x02)]


def map_validator_status(status: str) -> int:
    """Map a beacon API validator status to the pod's status code."""
    if status in ACTIVE_STATUSES:
        return VALIDATOR_STATUS_ACTIVE
    if status in WITHDRAWN_STATUSES:
        return VALIDATOR_STATUS_WITHDRAWN
    return VALIDATOR_STATUS_INACTIVE


def load_state(path: str) -> BeaconState:
    """Load and decode a BeaconState from an SSZ file."""
    with open(path, "rb") as f:
        data = f.read()
    logger.info(f"Loaded {len(data)} bytes from {path}")
    return decode_beacon_state(data)
