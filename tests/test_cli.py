"""
CLI Tests

Tests for the click command line: index parsing, proof output and local
state inspection.
"""

import json
import unittest
import sys
import os
import tempfile
from unittest.mock import patch

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import click
from click.testing import CliRunner

from tanglepod_proofs.api.proof_service import ProofService, ProofServiceError
from tanglepod_proofs.cli import cli, parse_indices
from tanglepod_proofs.config import Settings

from fixtures import FakeBeaconClient, build_chain, encode_state, make_validator


class TestParseIndices(unittest.TestCase):
    """Comma-separated validator indices."""

    def test_valid(self):
        self.assertEqual(parse_indices("1,2,3"), [1, 2, 3])
        self.assertEqual(parse_indices(" 7 , 8 "), [7, 8])

    def test_invalid(self):
        for value in ("", "a,b", "1,-2", ","):
            with self.subTest(value=value):
                with self.assertRaises(click.BadParameter):
                    parse_indices(value)


class TestCommands(unittest.TestCase):
    """Commands run against a proof service backed by fakes."""

    @classmethod
    def setUpClass(cls):
        validators, balances, raw_state, header = build_chain()
        cls.header = header
        cls.beacon = FakeBeaconClient(validators, balances, raw_state, header)

    def setUp(self):
        self.runner = CliRunner()
        patcher = patch("tanglepod_proofs.cli.setup_logging")
        patcher.start()
        self.addCleanup(patcher.stop)

    def invoke(self, args):
        def make_service(settings: Settings):
            return ProofService(settings, beacon_client=self.beacon)

        with patch("tanglepod_proofs.cli.ProofService", side_effect=make_service):
            return self.runner.invoke(cli, ["--beacon-node", "http://beacon.test", "--network", "mainnet"] + args)

    def test_credentials_json(self):
        result = self.invoke(["credentials", "--validators", "0,3"])
        self.assertEqual(result.exit_code, 0, result.output)
        body = json.loads(result.output)
        self.assertEqual(body["validatorIndices"], [0, 3])
        self.assertEqual(len(body["validatorProofs"][1]["proof"]), 46)

    def test_checkpoint_to_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "proof.json")
            result = self.invoke(["--output", path, "checkpoint", "--validators", "1"])
            self.assertEqual(result.exit_code, 0, result.output)
            with open(path) as f:
                body = json.load(f)
        self.assertEqual(len(body["balanceProofs"][0]["proof"]), 39)

    def test_stale_balance_table(self):
        result = self.invoke(["--format", "table", "stale-balance", "--validator", "4"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Stale Balance Proof", result.output)

    def test_status(self):
        result = self.invoke(["status", "--pod-address", "0x" + "ab" * 20])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(json.loads(result.output)["activeValidatorCount"], 2)

    def test_bad_indices(self):
        result = self.invoke(["credentials", "--validators", "x"])
        self.assertEqual(result.exit_code, 2)

    def test_service_error(self):
        """Service failures exit non-zero with the error message"""
        with patch.object(ProofService, "generate_credential_proof", side_effect=ProofServiceError("boom")):
            result = self.invoke(["credentials", "--validators", "0"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("boom", result.output)

    def test_unknown_network(self):
        result = self.runner.invoke(cli, ["--network", "goerli", "credentials", "--validators", "0"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Unsupported network", result.output)

    def test_serve_uses_command_line_settings(self):
        """The REST service is built from the global options, not only the environment"""
        from tanglepod_proofs.api import rest_api

        self.addCleanup(setattr, rest_api, "proof_service", None)
        with patch("tanglepod_proofs.api.rest_api.uvicorn.run") as run:
            result = self.runner.invoke(
                cli, ["--beacon-node", "http://cli-beacon.test", "--network", "holesky", "serve", "--port", "9000"]
            )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(rest_api.proof_service.settings.beacon_url, "http://cli-beacon.test")
        self.assertEqual(rest_api.proof_service.network_config.name, "holesky")
        self.assertIs(run.call_args[0][0], rest_api.app)
        self.assertEqual(run.call_args[1]["port"], 9000)

    def test_serve_dev_mode_warns(self):
        from tanglepod_proofs.api import rest_api

        self.addCleanup(setattr, rest_api, "proof_service", None)
        rest_api.proof_service = None
        with patch("tanglepod_proofs.api.rest_api.uvicorn.run") as run:
            with self.assertLogs("tanglepod_proofs.api.rest_api", level="WARNING"):
                result = self.runner.invoke(cli, ["--beacon-node", "http://cli-beacon.test", "serve", "--dev"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIsNone(rest_api.proof_service)
        self.assertEqual(run.call_args[0][0], "tanglepod_proofs.api.rest_api:app")
        self.assertTrue(run.call_args[1]["reload"])


class TestInspect(unittest.TestCase):
    """Inspecting a local SSZ state file."""

    @classmethod
    def setUpClass(cls):
        cls.tmp = tempfile.TemporaryDirectory()
        cls.path = os.path.join(cls.tmp.name, "state.ssz")
        with open(cls.path, "wb") as f:
            f.write(encode_state([make_validator(i) for i in range(3)], [1, 2, 3], slot=77))

    @classmethod
    def tearDownClass(cls):
        cls.tmp.cleanup()

    def setUp(self):
        self.runner = CliRunner()
        patcher = patch("tanglepod_proofs.cli.setup_logging")
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_inspect(self):
        result = self.runner.invoke(cli, ["inspect", self.path])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Beacon State Information", result.output)

    def test_inspect_with_proofs(self):
        output = os.path.join(self.tmp.name, "proofs.json")
        result = self.runner.invoke(cli, ["--output", output, "inspect", self.path, "--validator", "2"])
        self.assertEqual(result.exit_code, 0, result.output)
        with open(output) as f:
            body = json.load(f)
        self.assertEqual(len(body["validatorProof"]["proof"]), 46)
        self.assertEqual(len(body["balanceProof"]["proof"]), 39)

    def test_inspect_truncated_file(self):
        path = os.path.join(self.tmp.name, "short.ssz")
        with open(path, "wb") as f:
            f.write(b"\x00" * 100)
        result = self.runner.invoke(cli, ["inspect", path])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Inspection failed", result.output)


if __name__ == '__main__':
    unittest.main(verbosity=2)
