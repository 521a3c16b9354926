"""
Configuration Tests

Unit tests for the network table, slot/timestamp conversion and
environment-driven settings.
"""

import unittest
import sys
import os
from unittest.mock import patch

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tanglepod_proofs.config import (
    NETWORKS,
    Settings,
    UnsupportedNetworkError,
    get_network_config,
    network_for_chain_id,
    slot_to_timestamp,
    timestamp_to_slot,
)

ENV_KEYS = (
    "BEACON_RPC_URL",
    "EXECUTION_RPC_URL",
    "PROVER_API_URL",
    "TANGLEPOD_NETWORK",
    "USE_PROVER_API",
    "TANGLEPOD_MAX_WORKERS",
)


def clean_env(**values):
    env = {k: v for k, v in os.environ.items() if k not in ENV_KEYS}
    env.update(values)
    return patch.dict(os.environ, env, clear=True)


class TestNetworks(unittest.TestCase):
    """Network lookup."""

    def test_known_networks(self):
        self.assertEqual(get_network_config("mainnet").genesis_time, 1606824023)
        self.assertEqual(get_network_config("holesky").chain_id, 17000)
        self.assertEqual(get_network_config(" Sepolia ").name, "sepolia")

    def test_unknown_network(self):
        for name in ("goerli", "", None):
            with self.subTest(name=name):
                with self.assertRaises(UnsupportedNetworkError):
                    get_network_config(name)

    def test_unsupported_network_is_value_error(self):
        self.assertTrue(issubclass(UnsupportedNetworkError, ValueError))

    def test_chain_id_lookup(self):
        for config in NETWORKS.values():
            with self.subTest(network=config.name):
                self.assertEqual(network_for_chain_id(config.chain_id), config)
        with self.assertRaises(UnsupportedNetworkError):
            network_for_chain_id(5)


class TestSlotTime(unittest.TestCase):
    """Slot and timestamp conversion."""

    def test_slot_to_timestamp(self):
        self.assertEqual(slot_to_timestamp(0, 1000), 1000)
        self.assertEqual(slot_to_timestamp(100, 1000), 2200)

    def test_timestamp_to_slot(self):
        self.assertEqual(timestamp_to_slot(2200, 1000), 100)
        self.assertEqual(timestamp_to_slot(2211, 1000), 100)
        self.assertEqual(timestamp_to_slot(999, 1000), 0)
        self.assertEqual(timestamp_to_slot(1000, 1000), 0)


class TestSettings(unittest.TestCase):
    """Settings from the environment."""

    def test_defaults(self):
        with clean_env():
            settings = Settings.from_env()
        self.assertIsNone(settings.beacon_url)
        self.assertIsNone(settings.network)
        self.assertEqual(settings.network_config.name, "mainnet")
        self.assertFalse(settings.use_prover)
        self.assertEqual(settings.max_workers, 4)
        self.assertEqual(settings.credentials_timeout, 120)
        self.assertEqual(settings.checkpoint_timeout, 180)
        self.assertEqual(settings.stale_balance_timeout, 120)

    def test_from_env(self):
        with clean_env(
            BEACON_RPC_URL="http://beacon:5052",
            TANGLEPOD_NETWORK="holesky",
            USE_PROVER_API="true",
            TANGLEPOD_MAX_WORKERS="8",
        ):
            settings = Settings.from_env()
        self.assertEqual(settings.beacon_url, "http://beacon:5052")
        self.assertEqual(settings.genesis_time, 1695902400)
        self.assertTrue(settings.use_prover)
        self.assertEqual(settings.max_workers, 8)

    def test_overrides_win(self):
        """Non-None keyword overrides take precedence over the environment"""
        with clean_env(BEACON_RPC_URL="http://env", TANGLEPOD_NETWORK="holesky"):
            settings = Settings.from_env(beacon_url="http://cli", network=None)
        self.assertEqual(settings.beacon_url, "http://cli")
        self.assertEqual(settings.network, "holesky")

    def test_network_left_unset_for_detection(self):
        """An execution URL without an explicit network leaves the network to be detected"""
        with clean_env(EXECUTION_RPC_URL="http://exec:8545"):
            settings = Settings.from_env()
        self.assertEqual(settings.execution_url, "http://exec:8545")
        self.assertIsNone(settings.network)

    def test_unknown_network_fails_fast(self):
        with clean_env(TANGLEPOD_NETWORK="goerli"):
            with self.assertRaises(UnsupportedNetworkError):
                Settings.from_env()

    def test_require_beacon_url(self):
        with self.assertRaises(ValueError):
            Settings().require_beacon_url()
        self.assertEqual(Settings(beacon_url="http://b").require_beacon_url(), "http://b")


if __name__ == '__main__':
    unittest.main(verbosity=2)
