import json
import os
import tempfile
import unittest
from pathlib import Path

import postproof.configuration.constants as global_constants
from postproof.configuration.configuration import (
    DEVNET,
    LOCALNET,
    ClientConfig,
    get_cluster_config,
    load_client_config,
)
from postproof.configuration.constants import Commitment

class TestClientConfig(unittest.TestCase):

    def test_defaults(self):
        config = load_client_config(environ={})
        self.assertEqual(config.rpc_url, global_constants.DEFAULT_RPC_URL)
        self.assertEqual(config.keypair_path, global_constants.DEFAULT_KEYPAIR_PATH)
        self.assertEqual(config.cluster, LOCALNET)
        self.assertEqual(config.commitment, Commitment.CONFIRMED)
        self.assertEqual(config.default_tip, 100_000)

    def test_environment_overrides(self):
        config = load_client_config(environ={"RPC_URL": "https://rpc.example", "KEYPAIR_PATH": "/tmp/key.json"})
        self.assertEqual(config.rpc_url, "https://rpc.example")
        self.assertEqual(config.keypair_path, Path("/tmp/key.json"))

    def test_json_file_with_environment_on_top(self):
        with tempfile.TemporaryDirectory() as directory:
            path = os.path.join(directory, "postproof.json")
            with open(path, 'w') as file:
                json.dump({
                    "cluster": "devnet",
                    "rpc_url": "https://api.devnet.solana.com",
                    "image_id": "ab" * 32,
                    "commitment": "finalized",
                    "default_tip": 5,
                }, file)
            config = load_client_config(path, environ={"RPC_URL": "https://override.example"})

        self.assertEqual(config.rpc_url, "https://override.example")
        self.assertEqual(config.cluster.name, "devnet")
        self.assertEqual(config.cluster.image_id, "ab" * 32)
        self.assertEqual(config.cluster.post_proof_program_id, DEVNET.post_proof_program_id)
        self.assertEqual(config.commitment, Commitment.FINALIZED)
        self.assertEqual(config.default_tip, 5)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_client_config("/nonexistent/postproof.json", environ={})

    def test_unknown_cluster(self):
        with self.assertRaises(ValueError):
            get_cluster_config("mainnet-beta-typo")

    def test_invalid_settings(self):
        with self.assertRaises(ValueError):
            ClientConfig(rpc_url="x", keypair_path="~/id.json", cluster=LOCALNET, default_tip=-1)
        with self.assertRaises(ValueError):
            ClientConfig(rpc_url="x", keypair_path="~/id.json", cluster=LOCALNET, commitment="eventually")

if __name__ == '__main__':
    unittest.main()
