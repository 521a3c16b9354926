"""
Beacon API Integration Package

This package provides the collaborators that feed the proof engine and the
service that ties them together:

- BeaconAPIClient: beacon node REST client (headers, validators, SSZ state)
- ProverAPIClient: Lodestar light client prover client
- ExecutionClient: execution web3 client (EIP-4788 beacon roots)
- ProofService: fetches, composes and verifies TanglePod proofs

Usage:
    from tanglepod_proofs.api import ProofService

    service = ProofService()
    proof = service.generate_credential_proof([1024])
"""

from .beacon_client import BeaconAPIClient, BeaconAPIError
from .execution_client import ExecutionAPIError, ExecutionClient
from .proof_service import ProofService, ProofServiceError
from .prover_client import ProverAPIClient, ProverAPIError

__all__ = [
    'BeaconAPIClient',
    'BeaconAPIError',
    'ExecutionAPIError',
    'ExecutionClient',
    'ProofService',
    'ProofServiceError',
    'ProverAPIClient',
    'ProverAPIError',
]
