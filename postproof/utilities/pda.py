"""
Program-derived address (PDA) derivation for the post-proof and prover programs.

Derivation itself is solders' Pubkey.find_program_address; this module owns the
seed lists of every account the client touches and the seed-limit checks that
must hold before handing them over.
"""
from typing import Iterable, Union

from Crypto.Hash import keccak
from loguru import logger
from solders.pubkey import Pubkey

import postproof.configuration.constants as global_constants
from postproof.models.models import DerivedAddress
from postproof.utilities.exceptions import DerivationExhausted

Seed = Union[bytes, bytearray, str]

def to_pubkey(address: Union[str, bytes, Pubkey]) -> Pubkey:
    """Accept a base58 string, 32 raw bytes or a Pubkey; raises ValueError otherwise"""
    if isinstance(address, Pubkey):
        return address
    if isinstance(address, (bytes, bytearray)):
        if len(address) != global_constants.PUBKEY_LENGTH:
            raise ValueError(f"Address must be {global_constants.PUBKEY_LENGTH} bytes, got {len(address)}")
        return Pubkey(bytes(address))
    try:
        return Pubkey.from_string(address)
    except ValueError as e:
        raise ValueError(f"Invalid base58 address {address!r}: {e}") from e

def pubkey_bytes(address: Union[str, bytes, Pubkey]) -> bytes:
    return bytes(to_pubkey(address))

def _normalize_seeds(seeds: Iterable[Seed]) -> list[bytes]:
    normalized = [seed.encode('utf-8') if isinstance(seed, str) else bytes(seed) for seed in seeds]
    if len(normalized) >= global_constants.MAX_SEEDS:
        raise ValueError(f"At most {global_constants.MAX_SEEDS - 1} seeds are allowed before the bump, got {len(normalized)}")
    for seed in normalized:
        if len(seed) > global_constants.MAX_SEED_LENGTH:
            raise ValueError(f"Seed exceeds {global_constants.MAX_SEED_LENGTH} bytes: {seed!r}")
    return normalized

def find_program_address(seeds: Iterable[Seed], program_id: Union[str, bytes, Pubkey]) -> DerivedAddress:
    """
    Find the canonical program address for a seed list.

    Args:
        seeds: Ordered seed components; str seeds are UTF-8 encoded
        program_id: Namespace (program) the address belongs to

    Returns:
        DerivedAddress: base58 address and its bump seed

    Raises:
        ValueError: If a seed is too long, there are too many seeds or program_id is invalid
        DerivationExhausted: If every bump in [255, 0] yields an on-curve point
    """
    normalized = _normalize_seeds(seeds)
    program = to_pubkey(program_id)
    try:
        address, bump = Pubkey.find_program_address(normalized, program)
    except BaseException as e:
        # solders surfaces the runtime's "no viable bump" panic as pyo3's PanicException
        if type(e).__name__ != 'PanicException':
            raise
        logger.error(f"find_program_address: No viable bump for program {program}")
        raise DerivationExhausted(str(program)) from e
    return DerivedAddress(str(address), bump)

def keccak256(data: bytes) -> bytes:
    return keccak.new(digest_bits=256, data=data).digest()

class AddressDeriver:
    """Derives every account address the post-proof client needs"""

    def __init__(self, post_proof_program_id: str, prover_program_id: str, image_id: str):
        self.post_proof_program_id = post_proof_program_id
        self.prover_program_id = prover_program_id
        self.image_id = image_id

    @classmethod
    def from_cluster(cls, cluster) -> 'AddressDeriver':
        return cls(
            post_proof_program_id=cluster.post_proof_program_id,
            prover_program_id=cluster.prover_program_id,
            image_id=cluster.image_id,
        )

    def campaign_config(self, creator: str, seed: str) -> DerivedAddress:
        """Address of the PostProofConfig owned by creator under seed"""
        derived = find_program_address(
            [global_constants.CONFIG_SEED_PREFIX, pubkey_bytes(creator), seed.encode('utf-8')],
            self.post_proof_program_id
        )
        logger.debug(f"AddressDeriver.campaign_config: {creator}/{seed} -> {derived.address}")
        return derived

    def verification_log(self, verifier: str, config_address: str) -> DerivedAddress:
        """Address of the PostVerificationLog for a verifier and campaign"""
        return find_program_address(
            [global_constants.VERIFICATION_LOG_SEED_PREFIX, pubkey_bytes(verifier), pubkey_bytes(config_address)],
            self.post_proof_program_id
        )

    def execution_tracker(self, execution_id: bytes) -> DerivedAddress:
        """Requester account correlating an execution id with its proof request"""
        return find_program_address([execution_id], self.post_proof_program_id)

    def deployment(self) -> DerivedAddress:
        """Prover deployment account of the verification image"""
        image_hash = keccak256(self.image_id.encode('ascii'))
        return find_program_address(
            [global_constants.DEPLOYMENT_SEED_PREFIX, image_hash],
            self.prover_program_id
        )

    def execution_request(self, requester: str, execution_id: bytes) -> DerivedAddress:
        """Prover execution request account for one request id"""
        return find_program_address(
            [global_constants.EXECUTION_SEED_PREFIX, pubkey_bytes(requester), execution_id],
            self.prover_program_id
        )
