import json
from pathlib import Path

from loguru import logger
from solders.keypair import Keypair

SECRET_KEY_LENGTH = 64

def keypair_from_secret_key(secret_key: bytes) -> Keypair:
    """Build a Keypair from the 64-byte layout written by `solana-keygen` (seed || public key)"""
    secret_key = bytes(secret_key)
    if len(secret_key) != SECRET_KEY_LENGTH:
        raise ValueError(f"Secret key must be {SECRET_KEY_LENGTH} bytes, got {len(secret_key)}")
    keypair = Keypair.from_bytes(secret_key)
    if Keypair.from_seed(secret_key[:32]).pubkey() != keypair.pubkey():
        raise ValueError("Secret key does not match its embedded public key")
    return keypair

def load_keypair(file_path: str | Path) -> Keypair:
    """Load a keypair from a Solana CLI keypair file (JSON array of 64 integers)"""
    file_path = Path(file_path).expanduser()
    with open(file_path, 'r') as file:
        secret_key = bytes(json.load(file))
    keypair = keypair_from_secret_key(secret_key)
    logger.debug(f"load_keypair: Loaded keypair {keypair.pubkey()} from {file_path}")
    return keypair
