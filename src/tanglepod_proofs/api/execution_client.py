"""
Execution Client

Web3 client for an execution node. Used to detect the network from the
chain id and to check beacon block roots against the EIP-4788 beacon
roots contract.
"""

import logging
from typing import Tuple

import requests
from web3 import Web3
from web3.exceptions import Web3Exception

from ..config import NetworkConfig, network_for_chain_id
from ..ssz.constants import SECONDS_PER_SLOT

logger = logging.getLogger(__name__)

# EIP-4788 beacon roots contract (same address on all chains)
BEACON_ROOTS_ADDRESS = "0x000F3df6D732807Ef1319fB7B8bB8522d0Beac02"

ZERO_ROOT = b"\x00" * 32

RPC_ERRORS = (Web3Exception, requests.RequestException, ValueError)


class ExecutionAPIError(Exception):
    """Exception raised for execution RPC errors."""
    pass


class ExecutionClient:
    """Execution-layer client for chain id, block timestamps and beacon roots."""

    def __init__(self, rpc_url: str, timeout: float = 30):
        if not rpc_url:
            raise ValueError("EXECUTION_RPC_URL is not set")
        self.rpc_url = rpc_url
        self.w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={'timeout': timeout}))
        self._chain_id = None

    def get_chain_id(self) -> int:
        if self._chain_id is None:
            try:
                self._chain_id = int(self.w3.eth.chain_id)
            except RPC_ERRORS as e:
                raise ExecutionAPIError(f"Failed to fetch chain id from {self.rpc_url}: {e}") from e
        return self._chain_id

    def get_network_config(self) -> NetworkConfig:
        """
        Raises:
            UnsupportedNetworkError: If the chain id is not a known network
        """
        return network_for_chain_id(self.get_chain_id())

    def get_block_number(self) -> int:
        try:
            return int(self.w3.eth.block_number)
        except RPC_ERRORS as e:
            raise ExecutionAPIError(f"Failed to fetch block number: {e}") from e

    def get_block_timestamp(self, block_number: int) -> int:
        try:
            block = self.w3.eth.get_block(block_number)
        except RPC_ERRORS as e:
            raise ExecutionAPIError(f"Failed to fetch block {block_number}: {e}") from e
        return int(block['timestamp'])

    def get_beacon_root(self, timestamp: int) -> bytes:
        """
        Query the EIP-4788 contract for the parent beacon block root at `timestamp`.

        The calldata is the timestamp as a 32-byte big-endian word.

        Raises:
            ExecutionAPIError: If the call fails or the timestamp is outside the
                contract's ring buffer
        """
        encoded_timestamp = timestamp.to_bytes(32, byteorder='big')
        try:
            result = self.w3.eth.call({
                'to': BEACON_ROOTS_ADDRESS,
                'data': '0x' + encoded_timestamp.hex()
            })
        except RPC_ERRORS as e:
            raise ExecutionAPIError(f"Beacon roots query failed for timestamp {timestamp}: {e}") from e

        root = bytes(result) if result else b""
        if len(root) != 32 or root == ZERO_ROOT:
            raise ExecutionAPIError(
                f"Beacon root not available for timestamp {timestamp} (may be outside the ring buffer)"
            )
        return root

    def validate_beacon_root(self, timestamp: int, expected_root: bytes) -> bool:
        return self.get_beacon_root(timestamp) == expected_root

    def get_latest_beacon_root(self, lookback: int = 10) -> Tuple[bytes, int]:
        """
        Most recent beacon root in the contract, walking back one slot at a time.

        Returns:
            (root, slot-aligned timestamp)
        """
        timestamp = self.get_block_timestamp(self.get_block_number())
        slot_timestamp = timestamp - timestamp % SECONDS_PER_SLOT
        for _ in range(lookback):
            try:
                return self.get_beacon_root(slot_timestamp), slot_timestamp
            except ExecutionAPIError as e:
                logger.debug(f"No beacon root at {slot_timestamp}: {e}")
                slot_timestamp -= SECONDS_PER_SLOT
        raise ExecutionAPIError(f"Could not find a beacon root in the last {lookback} slots")
