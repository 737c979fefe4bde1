import struct
import unittest
from hashlib import sha256

from postproof.configuration.constants import AnchorInstruction
from postproof.models.models import CampaignConfig, ConfigPatch, SetTo, UNCHANGED, VerificationRequest
from postproof.utilities.borsh import (
    decode_campaign_config,
    decode_verification_log,
    encode_create_config,
    encode_update_config,
    encode_verify_post,
    instruction_discriminator,
    instruction_name,
)
from postproof.utilities.exceptions import AccountDecodeError
from tests.fakes import encode_config_account

def _string(value: str) -> bytes:
    encoded = value.encode('utf-8')
    return struct.pack('<I', len(encoded)) + encoded

class TestInstructionEncoding(unittest.TestCase):

    def test_discriminators_follow_anchor_convention(self):
        self.assertEqual(
            instruction_discriminator(AnchorInstruction.VERIFY_POST),
            sha256(b"global:verify_post").digest()[:8]
        )

    def test_instruction_name_from_discriminator(self):
        self.assertEqual(instruction_name(encode_create_config("camp", [], 1, 1)), "create_config")
        self.assertEqual(instruction_name(encode_update_config(ConfigPatch())), "update_config")
        self.assertEqual(instruction_name(b"\x00" * 8), "unknown_instruction")
        self.assertEqual(instruction_name(b""), "unknown_instruction")

    def test_create_config_layout(self):
        data = encode_create_config("camp", ["some", "sushi"], 10_000, 100)
        expected = (
            sha256(b"global:create_config").digest()[:8]
            + _string("camp")
            + struct.pack('<I', 2) + _string("some") + _string("sushi")
            + struct.pack('<Q', 10_000)
            + struct.pack('<Q', 100)
        )
        self.assertEqual(data, expected)

    def test_update_config_sends_none_for_unchanged_fields(self):
        prefix = sha256(b"global:update_config").digest()[:8]
        self.assertEqual(encode_update_config(ConfigPatch()), prefix + b"\x00\x00\x00")

    def test_update_config_explicit_false_and_zero_are_sent(self):
        prefix = sha256(b"global:update_config").digest()[:8]
        self.assertEqual(
            encode_update_config(ConfigPatch.of(active=False)),
            prefix + b"\x01\x00" + b"\x00" + b"\x00"
        )
        self.assertEqual(
            encode_update_config(ConfigPatch(max_claimers=SetTo(0), reward_amount=UNCHANGED)),
            prefix + b"\x00" + b"\x01" + struct.pack('<Q', 0) + b"\x00"
        )
        self.assertEqual(
            encode_update_config(ConfigPatch.of(active=True, max_claimers=5, reward_amount=7)),
            prefix + b"\x01\x01" + b"\x01" + struct.pack('<Q', 5) + b"\x01" + struct.pack('<Q', 7)
        )

    def test_verify_post_layout(self):
        request = VerificationRequest(request_id="verify-1", post_url="https://x/y", post_size=512, tip=100_000)
        expected = (
            sha256(b"global:verify_post").digest()[:8]
            + _string("verify-1") + _string("https://x/y")
            + struct.pack('<Q', 512) + struct.pack('<Q', 100_000)
        )
        self.assertEqual(encode_verify_post(request), expected)

    def test_u64_range_is_enforced(self):
        with self.assertRaises(ValueError):
            encode_create_config("camp", [], -1, 1)
        with self.assertRaises(ValueError):
            encode_create_config("camp", [], 2**64, 1)
        with self.assertRaises(TypeError):
            encode_update_config(ConfigPatch.of(max_claimers=True))

class TestAccountDecoding(unittest.TestCase):

    def setUp(self):
        self.config = CampaignConfig(
            address="11111111111111111111111111111111",
            creator="SysvarC1ock11111111111111111111111111111111",
            seed="camp",
            keywords=["sushi", "reading"],
            claimers_count=3,
            reward_amount=10_000,
            max_claimers=2,
            active=True,
            created_slot=77,
        )

    def test_decode_campaign_config_surfaces_values_as_read(self):
        decoded = decode_campaign_config(self.config.address, encode_config_account(self.config))
        self.assertEqual(decoded, self.config)
        self.assertGreater(decoded.claimers_count, decoded.max_claimers)

    def test_wrong_discriminator_is_rejected(self):
        data = encode_config_account(self.config)
        with self.assertRaises(AccountDecodeError):
            decode_verification_log(self.config.address, data)
        with self.assertRaises(AccountDecodeError):
            decode_campaign_config(self.config.address, b"\x00" * 8 + data[8:])

    def test_truncated_account_is_rejected(self):
        data = encode_config_account(self.config)
        with self.assertRaises(AccountDecodeError):
            decode_campaign_config(self.config.address, data[:-4])

class TestConfigPatch(unittest.TestCase):

    def test_plain_values_are_refused(self):
        with self.assertRaises(TypeError):
            ConfigPatch(active=False)
        with self.assertRaises(TypeError):
            ConfigPatch(max_claimers=None)

    def test_of_wraps_values_and_rejects_unknown_fields(self):
        patch = ConfigPatch.of(active=False)
        self.assertEqual(patch.active, SetTo(False))
        self.assertIs(patch.max_claimers, UNCHANGED)
        self.assertEqual(patch.changed_fields(), {'active': False})
        self.assertFalse(patch.is_empty)
        self.assertTrue(ConfigPatch.of().is_empty)
        with self.assertRaises(TypeError):
            ConfigPatch.of(seed="other")

if __name__ == '__main__':
    unittest.main()
