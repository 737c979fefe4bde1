# Standard Library
from dataclasses import dataclass
from typing import Optional
import traceback

# Third Party
import httpx
from loguru import logger
from solana.rpc.async_api import AsyncClient
from solders.keypair import Keypair

# Local
from ..configuration.configuration import ClientConfig
from ..protocols.ledger import LedgerClient
from ..utilities.campaign_config import CampaignConfigManager
from ..utilities.identifiers import PostIdentifierResolver
from ..utilities.keypair import load_keypair
from ..utilities.ledger import SolanaRpcClient
from ..utilities.pda import AddressDeriver
from ..utilities.verification import VerificationRequestBuilder

@dataclass
class ServiceContainer:
    """Container for postproof service initialization and teardown.

    Owns the HTTP and RPC clients it creates; use it as an async context
    manager (or call aclose()) so they are closed when the caller is done.
    """
    config: ClientConfig
    signer: Keypair
    address_deriver: AddressDeriver
    resolver: PostIdentifierResolver
    ledger: LedgerClient
    campaign_configs: CampaignConfigManager
    verifications: VerificationRequestBuilder
    _http_clients: tuple[httpx.AsyncClient, ...] = ()
    _rpc_client: Optional[AsyncClient] = None

    @classmethod
    def initialize(
        cls,
        config: ClientConfig,
        signer: Optional[Keypair] = None,
        ledger: Optional[LedgerClient] = None,
        bsky_client: Optional[httpx.AsyncClient] = None,
    ) -> 'ServiceContainer':
        """
        Initialize all postproof services from a ClientConfig

        Args:
            config: Client configuration
            signer: Keypair to sign with (defaults to loading config.keypair_path)
            ledger: Ledger implementation (defaults to SolanaRpcClient on config.rpc_url)
            bsky_client: HTTP client for Bluesky lookups and size probes
        """
        owned_clients = []
        rpc_client = None
        try:
            if signer is None:
                signer = load_keypair(config.keypair_path)
            logger.info(f"ServiceContainer.initialize: Signer public key: {signer.pubkey()}")

            if bsky_client is None:
                bsky_client = httpx.AsyncClient(timeout=config.http_timeout, follow_redirects=True)
                owned_clients.append(bsky_client)

            if ledger is None:
                rpc_client = AsyncClient(
                    config.rpc_url,
                    commitment=config.commitment.value,
                    timeout=config.http_timeout,
                )
                ledger = SolanaRpcClient(
                    rpc_client=rpc_client,
                    commitment=config.commitment,
                    confirm_poll_interval=config.confirm_poll_interval,
                    confirm_timeout=config.confirm_timeout,
                )

            address_deriver = AddressDeriver.from_cluster(config.cluster)
            resolver = PostIdentifierResolver(bsky_client, api_base_url=config.cluster.bsky_api_url)

        except Exception as e:
            logger.error(f"ServiceContainer.initialize: Error initializing services: {e}")
            logger.error(traceback.format_exc())
            raise

        return cls(
            config=config,
            signer=signer,
            address_deriver=address_deriver,
            resolver=resolver,
            ledger=ledger,
            campaign_configs=CampaignConfigManager(ledger, signer, address_deriver),
            verifications=VerificationRequestBuilder(
                ledger=ledger,
                signer=signer,
                resolver=resolver,
                address_deriver=address_deriver,
                default_tip=config.default_tip,
            ),
            _http_clients=tuple(owned_clients),
            _rpc_client=rpc_client,
        )

    async def aclose(self):
        """Close the HTTP and RPC clients created by initialize()"""
        for client in self._http_clients:
            await client.aclose()
        self._http_clients = ()
        if self._rpc_client is not None:
            await self._rpc_client.close()
            self._rpc_client = None

    async def __aenter__(self) -> 'ServiceContainer':
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
