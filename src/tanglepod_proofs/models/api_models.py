"""
API Models

This module defines Pydantic models for API request and response validation.
Response fields are serialized in camelCase to match the TanglePod
contract's proof structs.
"""

import re
from typing import List, Optional
from pydantic import BaseModel, Field, validator
from pydantic.alias_generators import to_camel
from datetime import datetime, timezone

HEX32_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")
ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def _check_hex32(values: List[str]) -> List[str]:
    for value in values:
        if not HEX32_RE.match(value):
            raise ValueError(f"Expected a 32-byte hex string starting with '0x', got {value}")
    return values


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ErrorResponse(BaseModel):
    """
    Response model for API errors.

    Attributes:
        error: Error message
        code: Error code (string identifier)
        details: Additional error details
    """
    error: str = Field(..., description="Error message")
    code: str = Field(..., description="Error code")
    details: Optional[dict] = Field(default=None, description="Additional error details")


class HealthResponse(BaseModel):
    """
    Response model for health check endpoint.

    Attributes:
        status: Service status
        beacon_api: Beacon API connectivity status
        network: Configured network name
        version: Service version
        timestamp: Response timestamp
    """
    status: str = Field(..., description="Service status")
    beacon_api: bool = Field(..., description="Beacon API connectivity")
    network: str = Field(..., description="Configured network")
    version: str = Field(default="0.1.0", description="Service version")
    timestamp: Optional[str] = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(), description="Response timestamp"
    )


class ValidatorIndicesRequest(CamelModel):
    """
    Request model for credential and checkpoint proofs.

    Attributes:
        validator_indices: Validator indices to prove
    """
    validator_indices: List[int] = Field(..., description="Validator indices to prove")

    @validator('validator_indices')
    def validate_indices(cls, v):
        """Require a non-empty list of non-negative, distinct indices."""
        if not v:
            raise ValueError("At least one validator index is required")
        if any(i < 0 for i in v):
            raise ValueError("Validator indices must be non-negative")
        if len(set(v)) != len(v):
            raise ValueError("Validator indices must be distinct")
        return v

    class Config:
        json_schema_extra = {"example": {"validatorIndices": [1024, 1025]}}


class StaleBalanceRequest(CamelModel):
    """Request model for a stale balance proof."""
    validator_index: int = Field(..., ge=0, description="Validator index to prove")


class StateRootProofModel(CamelModel):
    beacon_state_root: str
    proof: List[str]

    @validator('proof')
    def validate_proof(cls, v):
        """Block root to state root is a 3-level proof."""
        if len(v) != 3:
            raise ValueError(f"State root proof must have 3 elements, got {len(v)}")
        return _check_hex32(v)


class ValidatorProofModel(CamelModel):
    validator_index: int
    validator_fields: List[str]
    proof: List[str]

    @validator('validator_fields')
    def validate_fields(cls, v):
        if len(v) != 8:
            raise ValueError(f"Validator must have 8 fields, got {len(v)}")
        return _check_hex32(v)

    @validator('proof')
    def validate_proof(cls, v):
        return _check_hex32(v)


class BalanceContainerProofModel(CamelModel):
    balance_container_root: str
    proof: List[str]


class BalanceProofModel(CamelModel):
    pubkey_hash: str
    balance_root: str
    proof: List[str]

    @validator('proof')
    def validate_proof(cls, v):
        return _check_hex32(v)


class CredentialProofResponse(CamelModel):
    """
    Response model for withdrawal credential proofs.

    Attributes:
        beacon_timestamp: Timestamp of the proven slot
        beacon_block_root: Finalized block root the proofs anchor to
        state_root_proof: State root under the block root
        validator_indices: Proven validator indices
        validator_proofs: One proof per validator, in index order
    """
    beacon_timestamp: int
    beacon_block_root: str
    state_root_proof: StateRootProofModel
    validator_indices: List[int]
    validator_proofs: List[ValidatorProofModel]

    class Config:
        json_schema_extra = {
            "example": {
                "beaconTimestamp": 1718000015,
                "beaconBlockRoot": "0x7aac2bab3ed70e35ba9123b739f6375caed3b51c8c947703087b911d54b0cc9f",
                "stateRootProof": {
                    "beaconStateRoot": "0x38c2283972c158ceadb3773bf85d4cf63c20b8ddcb8379213231edc9ad7d54a2",
                    "proof": ["0x1234...", "0x5678...", "0x9abc..."]
                },
                "validatorIndices": [67],
                "validatorProofs": [
                    {
                        "validatorIndex": 67,
                        "validatorFields": ["0xabcd...", "0x0100...", "..."],
                        "proof": ["0xef01...", "..."]
                    }
                ]
            }
        }


class CheckpointProofResponse(CamelModel):
    """Response model for checkpoint balance proofs."""
    beacon_timestamp: int
    beacon_block_root: str
    state_root_proof: StateRootProofModel
    balance_container_proof: BalanceContainerProofModel
    balance_proofs: List[BalanceProofModel]


class StaleBalanceProofResponse(CamelModel):
    """Response model for a stale balance proof."""
    beacon_timestamp: int
    beacon_block_root: str
    state_root_proof: StateRootProofModel
    validator_proof: ValidatorProofModel
    validator_slashed: bool
    current_balance_gwei: int


class PodValidatorModel(CamelModel):
    index: int
    pubkey: str
    balance_gwei: int
    status: int = Field(..., description="0=INACTIVE, 1=ACTIVE, 2=WITHDRAWN")


class PodStatusResponse(CamelModel):
    """Validators restaked through a pod, found by withdrawal credentials."""
    pod_address: str
    withdrawal_credentials: str
    has_restaked: bool
    active_validator_count: int
    total_restaked_gwei: int
    validators: List[PodValidatorModel]

    @validator('pod_address')
    def validate_address(cls, v):
        if not ADDRESS_RE.match(v):
            raise ValueError("Pod address must be a 20-byte hex string starting with '0x'")
        return v
