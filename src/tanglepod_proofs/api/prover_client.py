"""
Prover API Client

Client for the Lodestar light client prover endpoint, which returns
single-leaf state proofs without the caller downloading the full state.
"""

import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)


class ProverAPIError(Exception):
    """Exception raised for prover API related errors."""
    pass


class ProverAPIClient:
    """Fetches state proofs from /eth/v1/lightclient/proof/{state_id}."""

    def __init__(self, base_url: str, timeout: float = 60):
        if not base_url:
            raise ValueError("Prover API URL is not set (PROVER_API_URL or BEACON_RPC_URL)")
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({'Accept': 'application/json'})

    def _get_proof(self, state_id: str, paths: str, timeout: Optional[float] = None) -> Dict[str, Any]:
        url = f"{self.base_url}/eth/v1/lightclient/proof/{state_id}"
        try:
            response = self.session.get(url, params={'paths': paths}, timeout=timeout or self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.HTTPError as e:
            raise ProverAPIError(
                f"Prover API error {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except requests.RequestException as e:
            raise ProverAPIError(f"Prover API request failed: {e}") from e
        except ValueError as e:
            raise ProverAPIError(f"Invalid JSON from prover API: {e}") from e

        if not isinstance(data, dict) or 'data' not in data:
            raise ProverAPIError("Invalid response format: missing 'data' field")
        return data['data']

    def get_validator_proof(self, state_id: str, validator_index: int, timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Proof of validators[validator_index] under the state root.

        Returns:
            Dict with "leaf", "proof" (hex strings, leaf to root) and "gindex"
        """
        logger.info(f"Fetching prover proof for validator {validator_index} at {state_id}")
        return self._get_proof(state_id, f"validators/{validator_index}", timeout)

    def get_balances_proof(self, state_id: str, timeout: Optional[float] = None) -> Dict[str, Any]:
        """Proof of the balances root under the state root."""
        return self._get_proof(state_id, "balances", timeout)
