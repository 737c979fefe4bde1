from dataclasses import dataclass, replace
from typing import Optional
from loguru import logger
import json
import os
from pathlib import Path
import postproof.configuration.constants as global_constants
from postproof.configuration.constants import Commitment

@dataclass(frozen=True)
class ClusterConfig:
    """Addresses of the on-ledger programs and off-ledger endpoints a client talks to"""
    name: str
    post_proof_program_id: str
    prover_program_id: str
    image_id: str
    bsky_api_url: str = global_constants.BSKY_PUBLIC_API_URL
    explorer_tx_url_mask: Optional[str] = None

@dataclass
class ClientConfig:
    """Runtime configuration for a postproof client.

    Built once by the caller and handed to each component; nothing here is
    a process-wide singleton.
    """
    rpc_url: str
    keypair_path: Path
    cluster: ClusterConfig
    commitment: Commitment = Commitment.CONFIRMED
    default_tip: int = global_constants.DEFAULT_TIP
    confirm_poll_interval: float = 0.5
    confirm_timeout: float = 60.0
    http_timeout: float = global_constants.HTTP_TIMEOUT_SECONDS

    def __post_init__(self):
        """Normalize paths and validate numeric settings"""
        self.keypair_path = Path(self.keypair_path).expanduser()
        if isinstance(self.commitment, str):
            self.commitment = Commitment(self.commitment)
        if self.default_tip < 0 or self.default_tip > global_constants.MAX_U64:
            raise ValueError(f"default_tip must fit in a u64, got {self.default_tip}")
        if self.confirm_poll_interval <= 0:
            raise ValueError("confirm_poll_interval must be positive")

# Cluster presets
LOCALNET = ClusterConfig(
    name="localnet",
    post_proof_program_id="5MQLTq2D5ZhUAc6TDoAMXfnMeA32bo5DUxYco5LDMKAA",
    prover_program_id="BoNsHRcyLLNdtnoDf8hiCNZpyehMC4FDMxs6NTxFi3ew",
    image_id="4de2a43da6e788efef9837b71e055b2bfd83d18ca1c32b93cf5bfff58662aaa5",
)

DEVNET = replace(
    LOCALNET,
    name="devnet",
    explorer_tx_url_mask="https://explorer.solana.com/tx/{signature}?cluster=devnet",
)

CLUSTERS = {cluster.name: cluster for cluster in (LOCALNET, DEVNET)}

def get_cluster_config(name: str) -> ClusterConfig:
    """Look up a cluster preset by name"""
    try:
        return CLUSTERS[name]
    except KeyError:
        raise ValueError(f"Unknown cluster '{name}'. Known clusters: {', '.join(CLUSTERS)}") from None

def load_client_config(
        config_path: Optional[str | Path] = None,
        environ: Optional[dict] = None
    ) -> ClientConfig:
    """Build a ClientConfig from an optional JSON file and the environment.

    Precedence, lowest first: built-in defaults, the JSON file, then the
    RPC_URL and KEYPAIR_PATH environment variables.

    Args:
        config_path: Optional path to a JSON configuration file
        environ: Mapping to read overrides from (defaults to os.environ)

    Returns:
        ClientConfig: the assembled configuration
    """
    environ = os.environ if environ is None else environ
    config_data: dict = {}

    if config_path is not None:
        config_path = Path(config_path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"No configuration file found at {config_path}")
        with open(config_path, 'r') as file:
            config_data = json.load(file)
        logger.debug(f"Loaded client configuration from {config_path}")

    cluster = get_cluster_config(config_data.get('cluster', LOCALNET.name))
    cluster_overrides = {
        key: config_data[key]
        for key in ('post_proof_program_id', 'prover_program_id', 'image_id', 'bsky_api_url')
        if key in config_data
    }
    if cluster_overrides:
        cluster = replace(cluster, **cluster_overrides)

    rpc_url = environ.get(global_constants.RPC_URL_ENV) or config_data.get('rpc_url', global_constants.DEFAULT_RPC_URL)
    keypair_path = (
        environ.get(global_constants.KEYPAIR_PATH_ENV)
        or config_data.get('keypair_path')
        or global_constants.DEFAULT_KEYPAIR_PATH
    )

    client_config = ClientConfig(
        rpc_url=rpc_url,
        keypair_path=keypair_path,
        cluster=cluster,
        commitment=config_data.get('commitment', Commitment.CONFIRMED.value),
        default_tip=int(config_data.get('default_tip', global_constants.DEFAULT_TIP)),
        confirm_poll_interval=float(config_data.get('confirm_poll_interval', 0.5)),
        confirm_timeout=float(config_data.get('confirm_timeout', 60.0)),
        http_timeout=float(config_data.get('http_timeout', global_constants.HTTP_TIMEOUT_SECONDS)),
    )
    logger.debug(f"Using RPC endpoint {client_config.rpc_url} on cluster {cluster.name}")
    return client_config
