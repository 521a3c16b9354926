"""
API Models Package

This package contains request and response models for the TanglePod proof API.
It includes Pydantic models for validation and serialization of:

- Proof requests (validator indices)
- Proof responses (credential, checkpoint and stale balance proofs)
- Pod status, error and health models

Usage:
    from tanglepod_proofs.models import ValidatorIndicesRequest

    request = ValidatorIndicesRequest(validator_indices=[42])
"""

from .api_models import (
    CheckpointProofResponse,
    CredentialProofResponse,
    ErrorResponse,
    HealthResponse,
    PodStatusResponse,
    StaleBalanceProofResponse,
    StaleBalanceRequest,
    ValidatorIndicesRequest,
)

__all__ = [
    'CheckpointProofResponse',
    'CredentialProofResponse',
    'ErrorResponse',
    'HealthResponse',
    'PodStatusResponse',
    'StaleBalanceProofResponse',
    'StaleBalanceRequest',
    'ValidatorIndicesRequest',
]
