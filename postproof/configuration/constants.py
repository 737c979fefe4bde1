from enum import Enum
from pathlib import Path

DEFAULT_KEYPAIR_PATH = Path.home().joinpath(".config", "solana", "id.json")
DEFAULT_RPC_URL = "http://localhost:8899"

# Environment overrides
RPC_URL_ENV = "RPC_URL"
KEYPAIR_PATH_ENV = "KEYPAIR_PATH"

# SOLANA CONSTANTS
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
MAX_SEED_LENGTH = 32
MAX_SEEDS = 16
PUBKEY_LENGTH = 32
SIGNATURE_LENGTH = 64

# Post-proof program seeds
CONFIG_SEED_PREFIX = b"postproofconfig"
VERIFICATION_LOG_SEED_PREFIX = b"postverificationlog"

# Bonsol prover seeds
DEPLOYMENT_SEED_PREFIX = b"deployment"
EXECUTION_SEED_PREFIX = b"execution"

# Account sizing limits of PostProofConfig
MAX_CONFIG_SEED_BYTES = 10
MAX_KEYWORDS = 20
MAX_KEYWORD_BYTES = 50
MAX_POST_URL_BYTES = 256
MAX_U64 = 2**64 - 1

# Verification requests
REQUEST_ID_PREFIX = "verify-"
REQUEST_ID_RANDOM_BYTES = 12  # hex encoded, keeps the id under MAX_SEED_LENGTH
DEFAULT_TIP = 100_000  # 0.0001 SOL

# Bluesky endpoints
BSKY_PUBLIC_API_URL = "https://public.api.bsky.app"
BSKY_API_PREFIXES = ("https://public.api.bsky.app/", "https://api.bsky.app/")
BSKY_WEB_PROFILE_PREFIX = "https://bsky.app/profile/"
AT_URI_SCHEME = "at://"
BSKY_POST_COLLECTION = "app.bsky.feed.post"
GET_POSTS_PATH = "/xrpc/app.bsky.feed.getPosts"
RESOLVE_HANDLE_PATH = "/xrpc/com.atproto.identity.resolveHandle"

HTTP_TIMEOUT_SECONDS = 30.0

class Commitment(Enum):
    PROCESSED = 'processed'
    CONFIRMED = 'confirmed'
    FINALIZED = 'finalized'

class AnchorInstruction(Enum):
    # name is the python-side handle, value is the on-ledger instruction name
    CREATE_CONFIG = 'create_config'
    UPDATE_CONFIG = 'update_config'
    VERIFY_POST = 'verify_post'

class AnchorAccount(Enum):
    POST_PROOF_CONFIG = 'PostProofConfig'
    POST_VERIFICATION_LOG = 'PostVerificationLog'
