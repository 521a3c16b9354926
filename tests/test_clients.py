"""
Client Tests

Tests for the beacon, prover and execution clients with their HTTP
sessions and web3 provider replaced by mocks.
"""

import unittest
import sys
import os
from unittest.mock import MagicMock, patch

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import requests
from web3.exceptions import ContractLogicError

from tanglepod_proofs.api.beacon_client import BeaconAPIClient, BeaconAPIError
from tanglepod_proofs.api.execution_client import BEACON_ROOTS_ADDRESS, ExecutionAPIError, ExecutionClient
from tanglepod_proofs.api.prover_client import ProverAPIClient, ProverAPIError
from tanglepod_proofs.config import UnsupportedNetworkError


def json_response(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


class TestBeaconAPIClient(unittest.TestCase):
    """Beacon REST client with a mocked session."""

    def setUp(self):
        self.client = BeaconAPIClient("http://beacon.test/")
        self.client.session = MagicMock()

    def test_block_header(self):
        self.client.session.get.return_value = json_response({"data": {"header": {"message": {
            "slot": "100",
            "proposer_index": "7",
            "parent_root": "0x" + "11" * 32,
            "state_root": "0x" + "33" * 32,
            "body_root": "0x" + "22" * 32,
        }}}})
        header = self.client.get_block_header("finalized")
        self.assertEqual(header.slot, 100)
        self.assertEqual(header.state_root, b"\x33" * 32)
        url = self.client.session.get.call_args[0][0]
        self.assertEqual(url, "http://beacon.test/eth/v1/beacon/headers/finalized")

    def test_block_root(self):
        self.client.session.get.return_value = json_response({"data": {"root": "0x" + "aa" * 32}})
        self.assertEqual(self.client.get_block_root(), b"\xaa" * 32)

    def test_state_root_and_checkpoints(self):
        self.client.session.get.return_value = json_response({"data": {"root": "0x" + "bb" * 32}})
        self.assertEqual(self.client.get_state_root("head"), b"\xbb" * 32)
        self.client.session.get.return_value = json_response({"data": {"finalized": {"epoch": "3"}}})
        self.assertEqual(self.client.get_finality_checkpoints()["finalized"]["epoch"], "3")
        url = self.client.session.get.call_args[0][0]
        self.assertTrue(url.endswith("/eth/v1/beacon/states/head/finality_checkpoints"))

    def test_validators_query(self):
        self.client.session.get.return_value = json_response({"data": []})
        self.client.get_validators("head", [3, 5])
        self.assertEqual(self.client.session.get.call_args[1]["params"], {"id": "3,5"})

    def test_missing_data_field(self):
        self.client.session.get.return_value = json_response({"result": {}})
        with self.assertRaises(BeaconAPIError):
            self.client.get_block_root()

    def test_connection_error(self):
        self.client.session.get.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(BeaconAPIError) as ctx:
            self.client.get_block_root()
        self.assertIn("Failed to connect", str(ctx.exception))

    def test_health_check(self):
        self.client.session.get.return_value = json_response({}, status_code=206)
        self.assertTrue(self.client.health_check())
        self.client.session.get.side_effect = requests.Timeout("slow")
        self.assertFalse(self.client.health_check())

    def test_requires_url(self):
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ValueError):
                BeaconAPIClient(None)


class TestProverAPIClient(unittest.TestCase):

    def test_validator_proof(self):
        client = ProverAPIClient("http://prover.test")
        client.session = MagicMock()
        client.session.get.return_value = json_response({"data": {"leaf": "0x00", "proof": [], "gindex": "1"}})
        data = client.get_validator_proof("finalized", 9)
        self.assertEqual(data["gindex"], "1")
        self.assertEqual(client.session.get.call_args[1]["params"], {"paths": "validators/9"})

    def test_balances_proof(self):
        client = ProverAPIClient("http://prover.test")
        client.session = MagicMock()
        client.session.get.return_value = json_response({"data": {"proof": []}})
        client.get_balances_proof("head")
        self.assertEqual(client.session.get.call_args[1]["params"], {"paths": "balances"})

    def test_request_error(self):
        client = ProverAPIClient("http://prover.test")
        client.session = MagicMock()
        client.session.get.side_effect = requests.ConnectionError("down")
        with self.assertRaises(ProverAPIError):
            client.get_validator_proof("finalized", 9)


class TestExecutionClient(unittest.TestCase):
    """Execution client with a mocked web3 instance."""

    def setUp(self):
        self.client = ExecutionClient("http://exec.test")
        self.client.w3 = MagicMock()
        self.eth = self.client.w3.eth

    def test_beacon_root_calldata(self):
        """The timestamp is sent as a 32-byte big-endian word to the beacon roots contract"""
        self.eth.call.return_value = b"\x07" * 32
        self.assertEqual(self.client.get_beacon_root(1_700_000_000), b"\x07" * 32)
        tx = self.eth.call.call_args[0][0]
        self.assertEqual(tx["to"], BEACON_ROOTS_ADDRESS)
        self.assertEqual(tx["data"], "0x" + (1_700_000_000).to_bytes(32, "big").hex())

    def test_beacon_root_unavailable(self):
        for outcome in (b"\x00" * 32, b"", ContractLogicError("execution reverted")):
            with self.subTest(outcome=outcome):
                if isinstance(outcome, Exception):
                    self.eth.call.side_effect = outcome
                else:
                    self.eth.call.side_effect = None
                    self.eth.call.return_value = outcome
                with self.assertRaises(ExecutionAPIError):
                    self.client.get_beacon_root(12)

    def test_validate_beacon_root(self):
        self.eth.call.return_value = b"\x07" * 32
        self.assertTrue(self.client.validate_beacon_root(12, b"\x07" * 32))
        self.assertFalse(self.client.validate_beacon_root(12, b"\x08" * 32))

    def test_network_from_chain_id(self):
        self.eth.chain_id = 17000
        self.assertEqual(self.client.get_network_config().name, "holesky")

    def test_unknown_chain_id(self):
        self.eth.chain_id = 5
        with self.assertRaises(UnsupportedNetworkError):
            self.client.get_network_config()

    def test_latest_beacon_root_walks_back(self):
        """Slots without a root are skipped until one is found"""
        self.eth.block_number = 500
        self.eth.get_block.return_value = {"timestamp": 1_000_005}
        self.eth.call.side_effect = [b"\x00" * 32, b"\x00" * 32, b"\x09" * 32]

        root, timestamp = self.client.get_latest_beacon_root()
        self.assertEqual(root, b"\x09" * 32)
        # 1_000_005 aligned down to a 12s boundary, then two slots back
        self.assertEqual(timestamp, 999_996 - 24)
        self.eth.get_block.assert_called_once_with(500)

    def test_latest_beacon_root_exhausted(self):
        self.eth.block_number = 1
        self.eth.get_block.return_value = {"timestamp": 1200}
        self.eth.call.return_value = b"\x00" * 32
        with self.assertRaises(ExecutionAPIError):
            self.client.get_latest_beacon_root(lookback=3)
        self.assertEqual(self.eth.call.call_count, 3)

    def test_requires_url(self):
        with self.assertRaises(ValueError):
            ExecutionClient("")


if __name__ == '__main__':
    unittest.main(verbosity=2)
