import unittest

from solders.keypair import Keypair

from postproof.configuration.configuration import LOCALNET
from postproof.models.models import ConfigPatch, SetTo, UNCHANGED
from postproof.utilities.campaign_config import CampaignConfigManager
from postproof.utilities.exceptions import DuplicateConfig, NotFound, SubmissionRejected
from postproof.utilities.pda import AddressDeriver
from tests.fakes import FakeLedger

class TestCampaignConfigManager(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.signer = Keypair.from_seed(bytes(range(32)))
        self.signer_address = str(self.signer.pubkey())
        self.ledger = FakeLedger(LOCALNET.post_proof_program_id)
        self.manager = CampaignConfigManager(self.ledger, self.signer, AddressDeriver.from_cluster(LOCALNET))

    async def _create(self, seed="campaign-1"):
        await self.manager.create(seed, ["some", "sushi", "reading"], 10_000, 100)
        return await self.manager.read(self.signer_address, seed)

    async def test_create_then_read(self):
        config = await self._create()
        self.assertTrue(config.active)
        self.assertEqual(config.claimers_count, 0)
        self.assertEqual(config.creator, self.signer_address)
        self.assertEqual(config.seed, "campaign-1")
        self.assertEqual(config.keywords, ["some", "sushi", "reading"])
        self.assertEqual(config.reward_amount, 10_000)
        self.assertEqual(config.max_claimers, 100)
        self.assertEqual(config.address, self.manager.config_address("campaign-1"))

    async def test_create_instruction_accounts(self):
        await self._create()
        instruction = self.ledger.submitted[0]
        self.assertEqual(str(instruction.program_id), LOCALNET.post_proof_program_id)
        config_meta, creator_meta, system_meta = instruction.accounts
        self.assertTrue(config_meta.is_writable)
        self.assertEqual(str(creator_meta.pubkey), self.signer_address)
        self.assertTrue(creator_meta.is_signer and creator_meta.is_writable)
        self.assertEqual(str(system_meta.pubkey), "11111111111111111111111111111111")

    async def test_duplicate_create_is_refused_before_submission(self):
        await self._create()
        with self.assertRaises(DuplicateConfig):
            await self.manager.create("campaign-1", ["other"], 1, 1)
        self.assertEqual(len(self.ledger.submitted), 1)

    async def test_create_requires_positive_max_claimers(self):
        for max_claimers in (0, -1):
            with self.subTest(max_claimers=max_claimers):
                with self.assertRaises(ValueError):
                    await self.manager.create("campaign-1", ["sushi"], 10_000, max_claimers)
        self.assertEqual(self.ledger.submitted, [])

    async def test_create_enforces_account_limits(self):
        with self.assertRaises(ValueError):
            await self.manager.create("a-seed-longer-than-ten", ["sushi"], 1, 1)
        with self.assertRaises(ValueError):
            await self.manager.create("camp", ["k"] * 21, 1, 1)
        with self.assertRaises(ValueError):
            await self.manager.create("camp", ["k" * 51], 1, 1)
        self.assertEqual(self.ledger.submitted, [])

    async def test_empty_patch_changes_nothing(self):
        before = await self._create()
        await self.manager.update("campaign-1", ConfigPatch())
        after = await self.manager.read(self.signer_address, "campaign-1")
        self.assertEqual((after.active, after.max_claimers, after.reward_amount),
                         (before.active, before.max_claimers, before.reward_amount))
        self.assertEqual(len(self.ledger.submitted), 2)

    async def test_explicit_false_deactivates(self):
        await self._create()
        await self.manager.update("campaign-1", ConfigPatch.of(active=False))
        config = await self.manager.read(self.signer_address, "campaign-1")
        self.assertFalse(config.active)
        self.assertEqual(config.max_claimers, 100)
        self.assertEqual(config.reward_amount, 10_000)

    async def test_explicit_zero_is_applied(self):
        await self._create()
        await self.manager.update("campaign-1", ConfigPatch(reward_amount=SetTo(0), active=UNCHANGED))
        config = await self.manager.read(self.signer_address, "campaign-1")
        self.assertEqual(config.reward_amount, 0)
        self.assertTrue(config.active)

    async def test_update_several_fields_at_once(self):
        await self._create()
        await self.manager.update("campaign-1", ConfigPatch.of(active=False, max_claimers=5, reward_amount=42))
        config = await self.manager.read(self.signer_address, "campaign-1")
        self.assertEqual((config.active, config.max_claimers, config.reward_amount), (False, 5, 42))

    async def test_update_validates_values(self):
        await self._create()
        with self.assertRaises(TypeError):
            await self.manager.update("campaign-1", ConfigPatch.of(active=1))
        with self.assertRaises(ValueError):
            await self.manager.update("campaign-1", ConfigPatch.of(max_claimers=-3))
        self.assertEqual(len(self.ledger.submitted), 1)

    async def test_update_of_missing_config_is_rejected(self):
        with self.assertRaises(SubmissionRejected):
            await self.manager.update("missing", ConfigPatch.of(active=True))

    async def test_read_missing_config(self):
        with self.assertRaises(NotFound):
            await self.manager.read(self.signer_address, "missing")

    async def test_read_other_creators_config(self):
        await self._create()
        other = Keypair.from_seed(bytes(32))
        with self.assertRaises(NotFound):
            await self.manager.read(str(other.pubkey()), "campaign-1")

    async def test_submission_rejection_propagates(self):
        self.ledger.reject_with = "insufficient funds for rent"
        with self.assertRaises(SubmissionRejected) as ctx:
            await self.manager.create("campaign-1", ["sushi"], 10_000, 100)
        self.assertIn("insufficient funds", str(ctx.exception))

if __name__ == '__main__':
    unittest.main()
