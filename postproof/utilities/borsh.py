"""
Borsh encoding of the post-proof program's instructions and accounts.

Anchor prefixes instruction data with sha256("global:<name>")[:8] and
account data with sha256("account:<TypeName>")[:8].
"""
import struct
from hashlib import sha256
from typing import Optional

from solders.pubkey import Pubkey

import postproof.configuration.constants as global_constants
from postproof.configuration.constants import AnchorInstruction, AnchorAccount
from postproof.models.models import (
    CampaignConfig,
    ConfigPatch,
    SetTo,
    VerificationLog,
    VerificationRequest,
)
from postproof.utilities.exceptions import AccountDecodeError

def instruction_discriminator(instruction: AnchorInstruction) -> bytes:
    return sha256(f"global:{instruction.value}".encode()).digest()[:8]

def account_discriminator(account: AnchorAccount) -> bytes:
    return sha256(f"account:{account.value}".encode()).digest()[:8]

def instruction_name(data: bytes) -> str:
    """Name of the post-proof instruction encoded in data, for logs and errors"""
    for instruction in AnchorInstruction:
        if data[:8] == instruction_discriminator(instruction):
            return instruction.value
    return "unknown_instruction"

class BorshWriter:
    """Appends Borsh-encoded primitives to a byte buffer"""

    def __init__(self):
        self._buffer = bytearray()

    def raw(self, data: bytes) -> 'BorshWriter':
        self._buffer.extend(data)
        return self

    def u8(self, value: int) -> 'BorshWriter':
        self._buffer.extend(struct.pack('<B', value))
        return self

    def u32(self, value: int) -> 'BorshWriter':
        self._buffer.extend(struct.pack('<I', value))
        return self

    def u64(self, value: int) -> 'BorshWriter':
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"u64 value must be an int, got {type(value).__name__}")
        if not 0 <= value <= global_constants.MAX_U64:
            raise ValueError(f"Value {value} does not fit in a u64")
        self._buffer.extend(struct.pack('<Q', value))
        return self

    def bool(self, value: bool) -> 'BorshWriter':
        if not isinstance(value, bool):
            raise TypeError(f"bool value must be a bool, got {type(value).__name__}")
        return self.u8(1 if value else 0)

    def string(self, value: str) -> 'BorshWriter':
        encoded = value.encode('utf-8')
        self.u32(len(encoded))
        self._buffer.extend(encoded)
        return self

    def string_vec(self, values: list[str]) -> 'BorshWriter':
        self.u32(len(values))
        for value in values:
            self.string(value)
        return self

    def pubkey(self, raw: bytes) -> 'BorshWriter':
        if len(raw) != global_constants.PUBKEY_LENGTH:
            raise ValueError(f"Pubkey must be {global_constants.PUBKEY_LENGTH} bytes")
        self._buffer.extend(raw)
        return self

    def to_bytes(self) -> bytes:
        return bytes(self._buffer)

class BorshReader:
    """Reads Borsh-encoded primitives from a byte buffer"""

    def __init__(self, data: bytes):
        self._data = memoryview(bytes(data))
        self._offset = 0

    def _take(self, length: int) -> bytes:
        end = self._offset + length
        if end > len(self._data):
            raise ValueError(f"Unexpected end of data reading {length} bytes at offset {self._offset}")
        chunk = bytes(self._data[self._offset:end])
        self._offset = end
        return chunk

    def raw(self, length: int) -> bytes:
        return self._take(length)

    def u8(self) -> int:
        return struct.unpack('<B', self._take(1))[0]

    def u32(self) -> int:
        return struct.unpack('<I', self._take(4))[0]

    def u64(self) -> int:
        return struct.unpack('<Q', self._take(8))[0]

    def bool(self) -> bool:
        value = self.u8()
        if value not in (0, 1):
            raise ValueError(f"Invalid bool byte {value}")
        return value == 1

    def string(self) -> str:
        return self._take(self.u32()).decode('utf-8')

    def string_vec(self) -> list[str]:
        return [self.string() for _ in range(self.u32())]

    def pubkey(self) -> str:
        return str(Pubkey(self._take(global_constants.PUBKEY_LENGTH)))

    def option_pubkey(self) -> Optional[str]:
        return self.pubkey() if self.u8() else None

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

# INSTRUCTION DATA

def encode_create_config(seed: str, keywords: list[str], reward_amount: int, max_claimers: int) -> bytes:
    """createConfig{seeds, keywords, rewardAmount, maxClaimers}"""
    return (
        BorshWriter()
        .raw(instruction_discriminator(AnchorInstruction.CREATE_CONFIG))
        .string(seed)
        .string_vec(list(keywords))
        .u64(reward_amount)
        .u64(max_claimers)
        .to_bytes()
    )

def encode_update_config(patch: ConfigPatch) -> bytes:
    """updateConfig{active, maxClaimers, rewardAmount}; UNCHANGED fields are sent as None"""
    writer = BorshWriter().raw(instruction_discriminator(AnchorInstruction.UPDATE_CONFIG))

    if isinstance(patch.active, SetTo):
        writer.u8(1).bool(patch.active.value)
    else:
        writer.u8(0)

    for update in (patch.max_claimers, patch.reward_amount):
        if isinstance(update, SetTo):
            writer.u8(1).u64(update.value)
        else:
            writer.u8(0)

    return writer.to_bytes()

def encode_verify_post(request: VerificationRequest) -> bytes:
    """verifyPost{currentReqId, postUrl, postSize, tip}"""
    return (
        BorshWriter()
        .raw(instruction_discriminator(AnchorInstruction.VERIFY_POST))
        .string(request.request_id)
        .string(request.post_url)
        .u64(request.post_size)
        .u64(request.tip)
        .to_bytes()
    )

# ACCOUNT DATA

def _reader_for(address: str, data: bytes, account: AnchorAccount) -> BorshReader:
    expected = account_discriminator(account)
    if len(data) < len(expected) or data[:len(expected)] != expected:
        raise AccountDecodeError(address, f"not a {account.value} account")
    reader = BorshReader(data)
    reader.raw(len(expected))
    return reader

def decode_campaign_config(address: str, data: bytes) -> CampaignConfig:
    """Decode PostProofConfig account data"""
    reader = _reader_for(address, data, AnchorAccount.POST_PROOF_CONFIG)
    try:
        return CampaignConfig(
            address=address,
            creator=reader.pubkey(),
            seed=reader.string(),
            keywords=reader.string_vec(),
            claimers_count=reader.u64(),
            reward_amount=reader.u64(),
            max_claimers=reader.u64(),
            active=reader.bool(),
            created_slot=reader.u64(),
        )
    except (ValueError, UnicodeDecodeError) as e:
        raise AccountDecodeError(address, str(e)) from e

def decode_verification_log(address: str, data: bytes) -> VerificationLog:
    """Decode PostVerificationLog account data"""
    reader = _reader_for(address, data, AnchorAccount.POST_VERIFICATION_LOG)
    try:
        return VerificationLog(
            address=address,
            verifier=reader.pubkey(),
            config=reader.pubkey(),
            post_url=reader.string(),
            slot=reader.u64(),
            is_verified=reader.bool(),
            current_execution_account=reader.option_pubkey(),
        )
    except (ValueError, UnicodeDecodeError) as e:
        raise AccountDecodeError(address, str(e)) from e
