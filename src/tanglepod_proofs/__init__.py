"""
TanglePod Proofs

Beacon chain Merkle proofs for TanglePod: withdrawal credential,
checkpoint balance and stale balance proofs, anchored to a finalized
beacon block root.

Usage:
    from tanglepod_proofs import ProofComposer, decode_beacon_state

    composer = ProofComposer(decode_beacon_state(raw_state))
    proof = composer.validator_proof(42)
"""

__version__ = "0.1.0"

from .main import (
    BalanceContainerProof,
    BalanceProof,
    CheckpointProof,
    CredentialProof,
    ProofComposer,
    StaleBalanceProof,
    StateRootProof,
    ValidatorProof,
    generate_state_root_proof,
    load_state,
)
from .ssz import decode_beacon_state

__all__ = [
    '__version__',
    'BalanceContainerProof',
    'BalanceProof',
    'CheckpointProof',
    'CredentialProof',
    'ProofComposer',
    'StaleBalanceProof',
    'StateRootProof',
    'ValidatorProof',
    'decode_beacon_state',
    'generate_state_root_proof',
    'load_state',
]
