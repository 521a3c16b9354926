"""
Proof Service Module

This module provides a service layer that fetches the finalized header,
state and validator records from the collaborators, composes TanglePod
proofs with main.py, and checks every proof against its root before
returning it. A request either yields a complete, consistent proof record
or raises.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import (
    DEFAULT_NETWORK,
    STATUS_TIMEOUT,
    NetworkConfig,
    Settings,
    UnsupportedNetworkError,
    get_network_config,
    slot_to_timestamp,
)
from ..main import (
    ACTIVE_STATUSES,
    CheckpointProof,
    CredentialProof,
    ProofComposer,
    VALIDATOR_STATUS_ACTIVE,
    ProverValidatorProofSource,
    StaleBalanceProof,
    StateRootProof,
    StateValidatorProofSource,
    ValidatorProofSource,
    generate_state_root_proof,
    map_validator_status,
    pod_withdrawal_credentials,
    to_hex,
    verify_balance_container_proof,
    verify_balance_proof,
    verify_state_root_proof,
    verify_validator_proof,
)
from ..ssz import BeaconBlockHeader, decode_beacon_state
from .beacon_client import BeaconAPIClient
from .execution_client import ExecutionAPIError, ExecutionClient
from .prover_client import ProverAPIClient

logger = logging.getLogger(__name__)

STATE_ID = "finalized"


class ProofServiceError(Exception):
    """Raised when a proof cannot be produced consistently."""
    pass


class Deadline:
    """Overall time budget shared by the collaborator calls of one request."""

    def __init__(self, seconds: float):
        self.seconds = seconds
        self.expires = time.monotonic() + seconds

    def remaining(self) -> float:
        left = self.expires - time.monotonic()
        if left <= 0:
            raise ProofServiceError(f"Timed out after {self.seconds}s fetching beacon data")
        return left


class ProofService:
    """Service for generating TanglePod credential, checkpoint and stale balance proofs."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        beacon_client: Optional[BeaconAPIClient] = None,
        prover_client: Optional[ProverAPIClient] = None,
        execution_client: Optional[ExecutionClient] = None,
    ):
        """
        Initialize the proof service.

        Args:
            settings: Runtime settings. If None, read from the environment.
            beacon_client: Beacon API client. If None, one is created on first use.
            prover_client: Prover client, used when settings.use_prover is set.
            execution_client: Execution client for EIP-4788 root validation.
                If None and EXECUTION_RPC_URL is set, one is created on first use.
        """
        self.settings = settings or Settings.from_env()
        self._beacon_client = beacon_client
        self._prover_client = prover_client
        self._execution_client = execution_client
        self._network_config = None

    @property
    def beacon_client(self) -> BeaconAPIClient:
        if self._beacon_client is None:
            self._beacon_client = BeaconAPIClient(self.settings.require_beacon_url())
        return self._beacon_client

    @property
    def prover_client(self) -> ProverAPIClient:
        if self._prover_client is None:
            self._prover_client = ProverAPIClient(self.settings.prover_url or self.settings.beacon_url)
        return self._prover_client

    @property
    def execution_client(self) -> Optional[ExecutionClient]:
        if self._execution_client is None and self.settings.execution_url:
            self._execution_client = ExecutionClient(self.settings.execution_url)
        return self._execution_client

    @property
    def network_config(self) -> NetworkConfig:
        """
        Network whose genesis time anchors slot timestamps.

        A configured network wins. Otherwise the network is detected from the
        execution client's chain id, falling back to mainnet when there is no
        execution client or detection fails.
        """
        if self._network_config is None:
            self._network_config = self._resolve_network()
        return self._network_config

    def _resolve_network(self) -> NetworkConfig:
        if self.settings.network:
            return self.settings.network_config
        client = self.execution_client
        if client is not None:
            try:
                config = client.get_network_config()
                logger.info(f"Detected network {config.name} from execution chain id")
                return config
            except (ExecutionAPIError, UnsupportedNetworkError) as e:
                logger.warning(f"Network detection failed, using {DEFAULT_NETWORK}: {e}")
        return get_network_config(DEFAULT_NETWORK)

    def _anchor(self, deadline: Deadline) -> Tuple[BeaconBlockHeader, bytes, int, StateRootProof]:
        """Finalized header, its block root, its timestamp and the state root proof."""
        header = self.beacon_client.get_block_header(STATE_ID, timeout=deadline.remaining())
        block_root = self.beacon_client.get_block_root(STATE_ID, timeout=deadline.remaining())
        if header.merkle_root() != block_root:
            raise ProofServiceError(
                f"Header root {to_hex(header.merkle_root())} does not match block root {to_hex(block_root)}"
            )

        timestamp = slot_to_timestamp(header.slot, self.network_config.genesis_time)
        self._check_oracle(timestamp, block_root)

        state_root_proof = generate_state_root_proof(header)
        if not verify_state_root_proof(state_root_proof, block_root):
            raise ProofServiceError("State root proof does not verify against the block root")
        logger.info(f"Anchored to slot {header.slot} (timestamp {timestamp}), block root {to_hex(block_root)}")
        return header, block_root, timestamp, state_root_proof

    def _check_oracle(self, timestamp: int, block_root: bytes) -> None:
        client = self.execution_client
        if client is None:
            return
        try:
            valid = client.validate_beacon_root(timestamp, block_root)
        except ExecutionAPIError as e:
            # The oracle may not have this timestamp yet
            logger.warning(f"Could not validate beacon root in EIP-4788 oracle: {e}")
            return
        if not valid:
            raise ProofServiceError("Beacon root does not match EIP-4788 oracle - timestamp may be too old")

    def _composer(self, header: BeaconBlockHeader, deadline: Deadline) -> ProofComposer:
        raw = self.beacon_client.get_beacon_state_ssz(STATE_ID, timeout=deadline.remaining())
        composer = ProofComposer(decode_beacon_state(raw))
        if composer.state_root != header.state_root:
            raise ProofServiceError(
                f"Decoded state root {to_hex(composer.state_root)} does not match "
                f"header state root {to_hex(header.state_root)}"
            )
        return composer

    def _validator_records(self, indices: Sequence[int], deadline: Deadline) -> Dict[int, Dict[str, Any]]:
        records = self.beacon_client.get_validators(STATE_ID, indices, timeout=deadline.remaining())
        by_index = {int(r['index']): r for r in records}
        missing = [i for i in indices if i not in by_index]
        if missing:
            raise ValueError(f"Validators not found: {missing}")
        return by_index

    def _proof_source(self, header: BeaconBlockHeader, deadline: Deadline) -> ValidatorProofSource:
        if self.settings.use_prover:
            return ProverValidatorProofSource(self.prover_client, STATE_ID, remaining=deadline.remaining)
        return StateValidatorProofSource(self._composer(header, deadline))

    @staticmethod
    def _check_indices(indices: Sequence[int]) -> List[int]:
        indices = list(indices)
        if not indices:
            raise ValueError("At least one validator index is required")
        if any(i < 0 for i in indices):
            raise ValueError(f"Validator indices must be non-negative: {indices}")
        return indices

    def generate_credential_proof(self, validator_indices: Sequence[int]) -> CredentialProof:
        """
        Withdrawal credential proofs for verifyWithdrawalCredentials.

        Raises:
            ValueError: For invalid indices or malformed state data
            BeaconAPIError, ProverAPIError: If a collaborator fails
            ProofServiceError: If a composed proof is inconsistent
        """
        indices = self._check_indices(validator_indices)
        deadline = Deadline(self.settings.credentials_timeout)
        header, block_root, timestamp, state_root_proof = self._anchor(deadline)

        records = self._validator_records(indices, deadline)
        validators = {i: BeaconAPIClient.parse_validator(records[i]) for i in indices}
        source = self._proof_source(header, deadline)

        def prove(index: int):
            return source.validator_proof(index, validators[index])

        if isinstance(source, StateValidatorProofSource):
            proofs = source.composer.prove_many(prove, indices, self.settings.max_workers)
        else:
            proofs = [prove(i) for i in indices]

        for proof in proofs:
            if not verify_validator_proof(proof, validators[proof.validator_index], header.state_root):
                raise ProofServiceError(
                    f"Validator proof for {proof.validator_index} does not verify against the state root"
                )

        logger.info(f"Generated credential proofs for {len(indices)} validators")
        return CredentialProof(
            beacon_timestamp=timestamp,
            beacon_block_root=block_root,
            state_root_proof=state_root_proof,
            validator_indices=indices,
            validator_proofs=proofs,
        )

    def generate_checkpoint_proof(self, validator_indices: Sequence[int]) -> CheckpointProof:
        """
        Balance proofs for verifyCheckpointProofs.

        Always decodes the full state; the prover API is not used here.
        """
        indices = self._check_indices(validator_indices)
        deadline = Deadline(self.settings.checkpoint_timeout)
        header, block_root, timestamp, state_root_proof = self._anchor(deadline)
        composer = self._composer(header, deadline)

        container = composer.balance_container_proof()
        if not verify_balance_container_proof(container, composer.state_root):
            raise ProofServiceError("Balance container proof does not verify against the state root")

        balance_proofs = composer.prove_many(composer.balance_proof, indices, self.settings.max_workers)
        for index, proof in zip(indices, balance_proofs):
            if not verify_balance_proof(proof, index, composer.balances_root):
                raise ProofServiceError(f"Balance proof for {index} does not verify against the balances root")

        logger.info(f"Generated checkpoint proofs for {len(indices)} validators")
        return CheckpointProof(
            beacon_timestamp=timestamp,
            beacon_block_root=block_root,
            state_root_proof=state_root_proof,
            balance_container_proof=container,
            balance_proofs=balance_proofs,
        )

    def generate_stale_balance_proof(self, validator_index: int) -> StaleBalanceProof:
        """Validator proof plus slashed flag and current balance for verifyStaleBalance."""
        self._check_indices([validator_index])
        deadline = Deadline(self.settings.stale_balance_timeout)
        header, block_root, timestamp, state_root_proof = self._anchor(deadline)

        record = self.beacon_client.get_validator(STATE_ID, validator_index, timeout=deadline.remaining())
        validator = BeaconAPIClient.parse_validator(record)
        source = self._proof_source(header, deadline)
        proof = source.validator_proof(validator_index, validator)
        if not verify_validator_proof(proof, validator, header.state_root):
            raise ProofServiceError(
                f"Validator proof for {validator_index} does not verify against the state root"
            )

        return StaleBalanceProof(
            beacon_timestamp=timestamp,
            beacon_block_root=block_root,
            state_root_proof=state_root_proof,
            validator_proof=proof,
            validator_slashed=validator.slashed,
            current_balance_gwei=int(record['balance']),
        )

    def get_pod_status(self, pod_address: str, validator_indices: Optional[Sequence[int]] = None) -> Dict[str, Any]:
        """
        Validators whose withdrawal credentials point at `pod_address`.

        Without indices the whole registry is scanned, which is slow on mainnet.
        """
        credentials = [to_hex(c) for c in pod_withdrawal_credentials(pod_address)]
        deadline = Deadline(STATUS_TIMEOUT)
        records = self.beacon_client.get_validators(
            STATE_ID, list(validator_indices) if validator_indices else None, timeout=deadline.remaining()
        )

        validators = []
        total_restaked = 0
        for record in records:
            validator = record['validator']
            if validator['withdrawal_credentials'].lower() not in credentials:
                continue
            status = record.get('status', '')
            validators.append({
                "index": int(record['index']),
                "pubkey": validator['pubkey'],
                "balanceGwei": int(record['balance']),
                "status": map_validator_status(status),
            })
            if status in ACTIVE_STATUSES:
                total_restaked += int(validator['effective_balance'])

        return {
            "podAddress": pod_address,
            "withdrawalCredentials": credentials[0],
            "hasRestaked": len(validators) > 0,
            "activeValidatorCount": sum(1 for v in validators if v["status"] == VALIDATOR_STATUS_ACTIVE),
            "totalRestakedGwei": total_restaked,
            "validators": validators,
        }
