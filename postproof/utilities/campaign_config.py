from typing import Optional

from loguru import logger
from solders.instruction import Instruction
from solders.keypair import Keypair

import postproof.configuration.constants as global_constants
from postproof.models.models import CampaignConfig, ConfigPatch, VerificationLog
from postproof.protocols.ledger import LedgerClient
from postproof.utilities.borsh import (
    decode_campaign_config,
    decode_verification_log,
    encode_create_config,
    encode_update_config,
)
from postproof.utilities.exceptions import DuplicateConfig, NotFound
from postproof.utilities.ledger import account_meta
from postproof.utilities.pda import AddressDeriver, to_pubkey

def _validate_u64(name: str, value: int):
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if not 0 <= value <= global_constants.MAX_U64:
        raise ValueError(f"{name} must fit in a u64, got {value}")

def validate_config_arguments(seed: str, keywords: list[str], reward_amount: int, max_claimers: int):
    """Check create_config arguments against the PostProofConfig account limits"""
    if not seed:
        raise ValueError("seed must not be empty")
    if len(seed.encode('utf-8')) > global_constants.MAX_CONFIG_SEED_BYTES:
        raise ValueError(f"seed must be at most {global_constants.MAX_CONFIG_SEED_BYTES} bytes, got {seed!r}")
    if len(keywords) > global_constants.MAX_KEYWORDS:
        raise ValueError(f"At most {global_constants.MAX_KEYWORDS} keywords are allowed, got {len(keywords)}")
    for keyword in keywords:
        if len(keyword.encode('utf-8')) > global_constants.MAX_KEYWORD_BYTES:
            raise ValueError(f"Keyword exceeds {global_constants.MAX_KEYWORD_BYTES} bytes: {keyword!r}")
    _validate_u64("reward_amount", reward_amount)
    _validate_u64("max_claimers", max_claimers)
    if max_claimers <= 0:
        raise ValueError(f"max_claimers must be positive, got {max_claimers}")

class CampaignConfigManager:
    """Creates, patches and reads PostProofConfig accounts owned by the signer"""

    def __init__(self, ledger: LedgerClient, signer: Keypair, address_deriver: AddressDeriver):
        self.ledger = ledger
        self.signer = signer
        self.address_deriver = address_deriver

    @property
    def signer_address(self) -> str:
        return str(self.signer.pubkey())

    def config_address(self, seed: str, creator: Optional[str] = None) -> str:
        return self.address_deriver.campaign_config(creator or self.signer_address, seed).address

    async def create(self, seed: str, keywords: list[str], reward_amount: int, max_claimers: int) -> str:
        """
        Create a campaign config owned by the signer.

        Args:
            seed: Campaign name, part of the config address
            keywords: Words a post must contain to qualify
            reward_amount: Lamports paid per successful claim
            max_claimers: Number of claims the campaign funds

        Returns:
            str: Transaction signature

        Raises:
            ValueError: If an argument is out of range (including max_claimers <= 0)
            DuplicateConfig: If a config already exists at the derived address
            SubmissionRejected: If the ledger declines the instruction
        """
        keywords = list(keywords)
        validate_config_arguments(seed, keywords, reward_amount, max_claimers)
        config_address = self.config_address(seed)

        if await self.ledger.get_account_data(config_address) is not None:
            logger.error(f"CampaignConfigManager.create: Config {seed} already exists at {config_address}")
            raise DuplicateConfig(config_address, seed)

        instruction = Instruction(
            program_id=to_pubkey(self.address_deriver.post_proof_program_id),
            data=encode_create_config(seed, keywords, reward_amount, max_claimers),
            accounts=[
                account_meta(config_address, is_writable=True),
                account_meta(self.signer_address, is_signer=True, is_writable=True),
                account_meta(global_constants.SYSTEM_PROGRAM_ID),
            ],
        )
        signature = await self.ledger.submit_instruction(instruction, self.signer)
        logger.info(f"CampaignConfigManager.create: Config {seed} created at {config_address}. Transaction: {signature}")
        return signature

    async def update(self, seed: str, patch: ConfigPatch) -> str:
        """
        Apply a partial update to the signer's campaign config.

        Every field is transmitted: UNCHANGED as None, SetTo(value) as Some(value),
        so SetTo(False) and SetTo(0) are applied like any other value.

        Returns:
            str: Transaction signature
        """
        for name, value in patch.changed_fields().items():
            if name == 'active':
                if not isinstance(value, bool):
                    raise TypeError(f"active must be a bool, got {type(value).__name__}")
            else:
                _validate_u64(name, value)

        config_address = self.config_address(seed)
        if patch.is_empty:
            logger.debug(f"CampaignConfigManager.update: Empty patch for {config_address}, fields stay unchanged")

        instruction = Instruction(
            program_id=to_pubkey(self.address_deriver.post_proof_program_id),
            data=encode_update_config(patch),
            accounts=[
                account_meta(config_address, is_writable=True),
                account_meta(self.signer_address, is_signer=True),
            ],
        )
        signature = await self.ledger.submit_instruction(instruction, self.signer)
        logger.info(f"CampaignConfigManager.update: Config {seed} updated ({patch.changed_fields()}). Transaction: {signature}")
        return signature

    async def read(self, creator: str, seed: str) -> CampaignConfig:
        """Fetch the campaign config for (creator, seed); raises NotFound if absent"""
        config_address = self.config_address(seed, creator=creator)
        data = await self.ledger.get_account_data(config_address)
        if data is None:
            logger.error(f"CampaignConfigManager.read: Config not found at {config_address}")
            raise NotFound(config_address, "Campaign config")
        return decode_campaign_config(config_address, data)

    async def read_verification_log(self, verifier: str, config_address: str) -> VerificationLog:
        """Fetch the verification log of a verifier for a campaign; raises NotFound if absent"""
        log_address = self.address_deriver.verification_log(verifier, config_address).address
        data = await self.ledger.get_account_data(log_address)
        if data is None:
            raise NotFound(log_address, "Verification log")
        return decode_verification_log(log_address, data)
