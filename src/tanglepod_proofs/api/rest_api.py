"""
REST API for TanglePod Proofs

This module provides a FastAPI-based REST API for generating beacon chain
proofs for TanglePod with full OpenAPI documentation.
"""

import logging
import traceback
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from .. import __version__
from ..config import Settings
from .beacon_client import BeaconAPIError
from .execution_client import ExecutionAPIError
from .proof_service import ProofService, ProofServiceError
from .prover_client import ProverAPIError
from ..models.api_models import (
    CheckpointProofResponse,
    CredentialProofResponse,
    ErrorResponse,
    HealthResponse,
    PodStatusResponse,
    StaleBalanceProofResponse,
    StaleBalanceRequest,
    ValidatorIndicesRequest,
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="TanglePod Proofs API",
    description="""
    Generate beacon chain Merkle proofs for TanglePod.

    All proofs are anchored to the latest finalized beacon block. Every
    proof is verified against its root before it is returned.

    ## Endpoints
    - **Credentials**: validator field proofs for `verifyWithdrawalCredentials`
    - **Checkpoint**: balance proofs for `verifyCheckpointProofs`
    - **Stale balance**: validator proof plus slashed flag for `verifyStaleBalance`
    - **Pod status**: validators whose withdrawal credentials point at a pod

    Hashes are `0x`-prefixed hex; proofs are ordered leaf to root.
    """,
    version=__version__,
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT"
    }
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global proof service instance
proof_service = None


def get_proof_service() -> ProofService:
    """Dependency to get the proof service instance."""
    global proof_service
    if proof_service is None:
        proof_service = ProofService()
    return proof_service


def _error(status_code: int, exc: Exception, code: str, message: str = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=message or str(exc),
            code=code,
            details={"error_type": type(exc).__name__}
        ).model_dump()
    )


@app.exception_handler(ValueError)
async def value_error_handler(request, exc: ValueError):
    """Handle validation errors, including malformed state data and unknown networks."""
    logger.error(f"Validation error: {exc}")
    return _error(400, exc, "VALIDATION_ERROR")


@app.exception_handler(BeaconAPIError)
async def beacon_api_exception_handler(request, exc: BeaconAPIError):
    """Handle beacon API errors."""
    logger.error(f"Beacon API error: {exc}")
    return _error(502, exc, "BEACON_API_ERROR")


@app.exception_handler(ProverAPIError)
async def prover_api_exception_handler(request, exc: ProverAPIError):
    logger.error(f"Prover API error: {exc}")
    return _error(502, exc, "PROVER_API_ERROR")


@app.exception_handler(ExecutionAPIError)
async def execution_api_exception_handler(request, exc: ExecutionAPIError):
    logger.error(f"Execution API error: {exc}")
    return _error(502, exc, "EXECUTION_API_ERROR")


@app.exception_handler(ProofServiceError)
async def proof_service_exception_handler(request, exc: ProofServiceError):
    """Handle inconsistent or timed-out proof generation."""
    logger.error(f"Proof generation error: {exc}")
    return _error(500, exc, "PROOF_ERROR")


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle unexpected errors."""
    logger.error(f"Unexpected error: {exc}\n{traceback.format_exc()}")
    return _error(500, exc, "INTERNAL_ERROR", "Internal server error")


@app.get("/", response_model=dict)
async def root():
    """API root endpoint with basic information."""
    return {
        "name": "TanglePod Proofs API",
        "version": __version__,
        "description": "Generate beacon chain proofs for TanglePod",
        "docs": "/docs",
        "health": "/health"
    }


@app.get("/health", response_model=HealthResponse)
def health_check(service: ProofService = Depends(get_proof_service)):
    """
    Health check endpoint.

    Checks the status of the API and beacon chain connectivity.
    """
    beacon_status = service.beacon_client.health_check()
    return HealthResponse(
        status="healthy" if beacon_status else "degraded",
        beacon_api=beacon_status,
        network=service.network_config.name,
        version=__version__
    )


@app.post("/proofs/credentials", response_model=CredentialProofResponse)
def generate_credential_proof(
    request: ValidatorIndicesRequest,
    service: ProofService = Depends(get_proof_service)
):
    """
    Generate withdrawal credential proofs for the given validators.

    Each validator proof exposes the 8 validator fields and a 46-element
    branch to the beacon state root; the state root proof links that root
    to the finalized block root.
    """
    logger.info(f"Credential proof request for validators {request.validator_indices}")
    result = service.generate_credential_proof(request.validator_indices)
    return CredentialProofResponse(**result.to_dict())


@app.post("/proofs/checkpoint", response_model=CheckpointProofResponse)
def generate_checkpoint_proof(
    request: ValidatorIndicesRequest,
    service: ProofService = Depends(get_proof_service)
):
    """
    Generate checkpoint balance proofs for the given validators.

    Returns one balance container proof (balances root to state root) and
    one 39-element balance proof per validator.
    """
    logger.info(f"Checkpoint proof request for validators {request.validator_indices}")
    result = service.generate_checkpoint_proof(request.validator_indices)
    return CheckpointProofResponse(**result.to_dict())


@app.post("/proofs/stale-balance", response_model=StaleBalanceProofResponse)
def generate_stale_balance_proof(
    request: StaleBalanceRequest,
    service: ProofService = Depends(get_proof_service)
):
    """Generate a stale balance proof for a slashed validator."""
    result = service.generate_stale_balance_proof(request.validator_index)
    return StaleBalanceProofResponse(**result.to_dict())


@app.get("/pods/{address}/status", response_model=PodStatusResponse)
def get_pod_status(address: str, service: ProofService = Depends(get_proof_service)):
    """List validators whose withdrawal credentials point at the pod address."""
    return PodStatusResponse(**service.get_pod_status(address))


def run_server(host: str = "127.0.0.1", port: int = 8000, dev: bool = False,
               settings: Optional[Settings] = None):
    """
    Run the API server.

    Args:
        host: Host to bind to
        port: Port to bind to
        dev: Enable development mode with auto-reload
        settings: Settings for the proof service. If None, read from the
            environment on the first request. Auto-reload runs the app in a
            fresh process, so in dev mode only the environment applies.
    """
    global proof_service
    if settings is not None:
        if dev:
            logger.warning("Auto-reload ignores command line settings; configure the server through the environment")
        else:
            proof_service = ProofService(settings)

    logger.info(f"Starting TanglePod Proofs API server on {host}:{port}")
    uvicorn.run(
        "tanglepod_proofs.api.rest_api:app" if dev else app,
        host=host,
        port=port,
        reload=dev,
        log_level="info"
    )


if __name__ == "__main__":
    run_server(dev=True)
