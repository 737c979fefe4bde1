import unittest
from pathlib import Path

import httpx
from solana.rpc.async_api import AsyncClient
from solders.keypair import Keypair

from postproof.configuration.configuration import LOCALNET, ClientConfig
from postproof.container.service_container import ServiceContainer
from postproof.utilities.exceptions import NotFound
from postproof.utilities.ledger import SolanaRpcClient
from tests.fakes import FakeLedger

class TestServiceContainer(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.config = ClientConfig(
            rpc_url="http://localhost:8899",
            keypair_path="/nonexistent/id.json",
            cluster=LOCALNET,
            default_tip=7,
        )
        self.signer = Keypair.from_seed(bytes(range(32)))

    async def test_components_share_signer_and_ledger(self):
        ledger = FakeLedger(LOCALNET.post_proof_program_id)
        async with ServiceContainer.initialize(self.config, signer=self.signer, ledger=ledger) as services:
            self.assertIs(services.campaign_configs.ledger, ledger)
            self.assertIs(services.verifications.ledger, ledger)
            self.assertIs(services.verifications.signer, self.signer)
            self.assertEqual(services.verifications.default_tip, 7)
            self.assertEqual(len(services._http_clients), 1)
            with self.assertRaises(NotFound):
                await services.campaign_configs.read(str(self.signer.pubkey()), "missing")
        self.assertEqual(services._http_clients, ())

    async def test_default_ledger_is_solana_rpc(self):
        async with httpx.AsyncClient() as bsky_client:
            services = ServiceContainer.initialize(self.config, signer=self.signer, bsky_client=bsky_client)
            self.assertIsInstance(services.ledger, SolanaRpcClient)
            self.assertIsInstance(services.ledger.rpc_client, AsyncClient)
            self.assertIs(services._rpc_client, services.ledger.rpc_client)
            self.assertEqual(services.ledger.commitment, self.config.commitment)
            self.assertEqual(services._http_clients, ())
            await services.aclose()
            self.assertIsNone(services._rpc_client)
            self.assertFalse(bsky_client.is_closed)

    def test_missing_keypair_file(self):
        self.assertFalse(Path(self.config.keypair_path).exists())
        with self.assertRaises(FileNotFoundError):
            ServiceContainer.initialize(self.config)

if __name__ == '__main__':
    unittest.main()
