"""
Beacon API Client

This module provides a client for the standard beacon node REST API.
It fetches block headers and roots, validator records, finality
checkpoints and the raw SSZ beacon state used for proof generation.
"""

import os
import requests
import logging
from typing import Any, Dict, List, Optional, Sequence

from dotenv import load_dotenv

from ..ssz import BeaconBlockHeader, Validator, json_to_class

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60


class BeaconAPIError(Exception):
    """Exception raised for beacon API related errors."""
    pass


def _hex_to_bytes(value: str) -> bytes:
    return bytes.fromhex(value[2:] if value.startswith("0x") else value)


class BeaconAPIClient:
    """
    Client for a beacon node REST API.

    Provides methods for fetching headers, roots, validators and the SSZ
    state with proper error handling.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT):
        """
        Initialize the beacon API client.

        Args:
            base_url: Base URL for the beacon API. If None, uses BEACON_RPC_URL.
            timeout: Default per-request timeout in seconds
        """
        base_url = base_url or os.getenv('BEACON_RPC_URL')
        if not base_url:
            raise ValueError("BEACON_RPC_URL environment variable is not set")
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

        self.session = requests.Session()
        self.session.headers.update({
            'Content-Type': 'application/json',
            'Accept': 'application/json'
        })

        logger.info(f"Initialized BeaconAPIClient with base_url: {self.base_url}")

    def _request(self, path: str, timeout: Optional[float] = None, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, timeout=timeout or self.timeout, **kwargs)
            response.raise_for_status()
            return response
        except requests.ConnectionError as e:
            raise BeaconAPIError(
                f"Failed to connect to beacon API at {self.base_url}. "
                f"Please check the beacon node is running and BEACON_RPC_URL is correct. "
                f"Original error: {e}"
            ) from e
        except requests.Timeout as e:
            raise BeaconAPIError(
                f"Timeout fetching {path} from beacon API at {self.base_url}. "
                f"The beacon node may be slow or unresponsive. Original error: {e}"
            ) from e
        except requests.HTTPError as e:
            raise BeaconAPIError(
                f"Beacon API error {e.response.status_code} for {path}: {e.response.text[:200]}"
            ) from e
        except requests.RequestException as e:
            raise BeaconAPIError(f"Request failed to beacon API at {self.base_url}. Error: {e}") from e

    def _get_data(self, path: str, timeout: Optional[float] = None, **kwargs) -> Any:
        response = self._request(path, timeout, **kwargs)
        try:
            data = response.json()
        except ValueError as e:
            raise BeaconAPIError(f"Invalid JSON from beacon API for {path}: {e}") from e
        if not isinstance(data, dict) or 'data' not in data:
            raise BeaconAPIError("Invalid response format: missing 'data' field")
        return data['data']

    def get_block_root(self, block_id: str = "finalized", timeout: Optional[float] = None) -> bytes:
        """Block root for a block identifier ("head", "finalized", slot or root)."""
        data = self._get_data(f"/eth/v1/beacon/blocks/{block_id}/root", timeout)
        return _hex_to_bytes(data['root'])

    def get_state_root(self, state_id: str = "finalized", timeout: Optional[float] = None) -> bytes:
        data = self._get_data(f"/eth/v1/beacon/states/{state_id}/root", timeout)
        return _hex_to_bytes(data['root'])

    def get_block_header(self, block_id: str = "finalized", timeout: Optional[float] = None) -> BeaconBlockHeader:
        """
        Fetch a beacon block header.

        Returns:
            BeaconBlockHeader parsed from data.header.message

        Raises:
            BeaconAPIError: If the request fails or the header is malformed
        """
        logger.info(f"Fetching beacon header for block: {block_id}")
        data = self._get_data(f"/eth/v1/beacon/headers/{block_id}", timeout)
        try:
            return json_to_class(data['header']['message'], BeaconBlockHeader)
        except (KeyError, TypeError, ValueError) as e:
            raise BeaconAPIError(f"Malformed header response for {block_id}: {e}") from e

    def get_validator(self, state_id: str, index: int, timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Fetch one validator.

        Returns:
            The API record: index, balance, status and the validator object
        """
        return self._get_data(f"/eth/v1/beacon/states/{state_id}/validators/{index}", timeout)

    def get_validators(
        self,
        state_id: str,
        indices: Optional[Sequence[int]] = None,
        timeout: Optional[float] = None,
    ) -> List[Dict[str, Any]]:
        """Fetch validators by index, or the whole registry when indices is None."""
        params = {'id': ','.join(str(i) for i in indices)} if indices else None
        return self._get_data(f"/eth/v1/beacon/states/{state_id}/validators", timeout, params=params)

    def get_finality_checkpoints(self, state_id: str = "head", timeout: Optional[float] = None) -> Dict[str, Any]:
        return self._get_data(f"/eth/v1/beacon/states/{state_id}/finality_checkpoints", timeout)

    def get_beacon_state_ssz(self, state_id: str = "finalized", timeout: Optional[float] = None) -> bytes:
        """
        Fetch the full beacon state as SSZ bytes.

        Requires the debug API to be enabled on the beacon node.
        """
        logger.info(f"Fetching SSZ beacon state for: {state_id}")
        response = self._request(
            f"/eth/v2/debug/beacon/states/{state_id}",
            timeout,
            headers={'Accept': 'application/octet-stream'},
        )
        logger.info(f"Fetched {len(response.content)} bytes of beacon state")
        return response.content

    def health_check(self) -> bool:
        """
        Check if the beacon API is accessible.

        Returns:
            True if API is accessible, False otherwise
        """
        try:
            response = self.session.get(f"{self.base_url}/eth/v1/node/health", timeout=10)
            return response.status_code in (200, 206)
        except requests.RequestException as e:
            logger.warning(f"Beacon health check failed: {e}")
            return False

    @staticmethod
    def parse_validator(data: Dict[str, Any]) -> Validator:
        """Validator container from an API record (or its inner validator object)."""
        record = data.get('validator', data)
        try:
            return json_to_class(record, Validator)
        except (TypeError, ValueError) as e:
            raise BeaconAPIError(f"Malformed validator record: {e}") from e
