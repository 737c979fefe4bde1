"""
Solana implementation of the LedgerClient protocol on top of solana-py.

Every instruction is sent in its own legacy transaction, signed by the fee
payer, and confirmed at the configured commitment before returning.
"""
# Standard imports
import asyncio
from typing import Optional

# Third party imports
from loguru import logger
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.core import RPCException, TransactionExpiredBlockheightExceededError, UnconfirmedTxError
from solana.rpc.types import TxOpts
from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.signature import Signature
from solders.transaction import Transaction

# Postproof imports
from postproof.configuration.constants import Commitment
from postproof.utilities.borsh import instruction_name
from postproof.utilities.exceptions import LedgerRpcError, SubmissionRejected
from postproof.utilities.pda import to_pubkey

def account_meta(address: str, is_signer: bool = False, is_writable: bool = False) -> AccountMeta:
    return AccountMeta(pubkey=to_pubkey(address), is_signer=is_signer, is_writable=is_writable)

def build_signed_transaction(instruction: Instruction, signer: Keypair, recent_blockhash: Hash) -> Transaction:
    """Place one instruction in a legacy transaction paid for and signed by signer"""
    message = Message.new_with_blockhash([instruction], signer.pubkey(), recent_blockhash)
    num_signers = message.header.num_required_signatures
    if num_signers != 1:
        raise ValueError(
            f"{instruction_name(instruction.data)} requires {num_signers} signers but only the fee payer can sign"
        )
    return Transaction([signer], message, recent_blockhash)

def _describe_transport_error(error: Exception) -> str:
    # solana-py keeps the text of a transport failure in error_msg and the httpx error as __cause__
    if isinstance(error, SolanaRpcException):
        return f"{error.error_msg}: {error.__cause__}"
    return str(error)

def _describe_rpc_error(error: RPCException) -> tuple[str, list[str]]:
    """Pull the message and simulation logs out of a JSON-RPC error"""
    detail = error.args[0] if error.args else error
    message = getattr(detail, 'message', None) or str(detail)
    data = getattr(detail, 'data', None)
    logs = list(getattr(data, 'logs', None) or [])
    return message, logs

class SolanaRpcClient:
    """Reads accounts and submits instructions through a solana-py AsyncClient"""

    def __init__(
            self,
            rpc_client: AsyncClient,
            commitment: Commitment = Commitment.CONFIRMED,
            confirm_poll_interval: float = 0.5,
            confirm_timeout: float = 60.0,
        ):
        self.rpc_client = rpc_client
        self.commitment = commitment
        self.confirm_poll_interval = confirm_poll_interval
        self.confirm_timeout = confirm_timeout

    async def get_account_data(self, address: str) -> Optional[bytes]:
        """Return the raw data of an account, or None if it does not exist"""
        pubkey = to_pubkey(address)
        try:
            response = await self.rpc_client.get_account_info(pubkey, commitment=self.commitment.value)
        except (RPCException, SolanaRpcException, ValueError) as e:
            reason = _describe_transport_error(e)
            logger.error(f"SolanaRpcClient.get_account_data: getAccountInfo for {address} failed: {reason}")
            raise LedgerRpcError("getAccountInfo", reason) from e

        account = response.value
        if account is None:
            return None
        return bytes(account.data)

    async def submit_instruction(self, instruction: Instruction, signer: Keypair) -> str:
        """Sign, send and confirm a transaction holding one instruction.

        Raises:
            SubmissionRejected: on transport failure, preflight/simulation failure,
                on-ledger execution error, or if the commitment is not reached in time
        """
        name = instruction_name(instruction.data)
        try:
            latest = (await self.rpc_client.get_latest_blockhash(commitment=self.commitment.value)).value
            transaction = build_signed_transaction(instruction, signer, latest.blockhash)
            response = await self.rpc_client.send_raw_transaction(
                bytes(transaction),
                opts=TxOpts(skip_confirmation=True, preflight_commitment=self.commitment.value),
            )
        except RPCException as e:
            reason, logs = _describe_rpc_error(e)
            logger.error(f"SolanaRpcClient.submit_instruction: {name} rejected: {reason}")
            raise SubmissionRejected(name, reason, logs=logs) from e
        except SolanaRpcException as e:
            reason = _describe_transport_error(e)
            logger.error(f"SolanaRpcClient.submit_instruction: {name} could not be sent: {reason}")
            raise SubmissionRejected(name, reason) from e

        signature = response.value
        logger.info(f"SolanaRpcClient.submit_instruction: Sent {name} transaction {signature}")
        await self._await_confirmation(name, signature, latest.last_valid_block_height)
        return str(signature)

    async def _await_confirmation(self, name: str, signature: Signature, last_valid_block_height: int):
        """Wait for the configured commitment; an execution error or expiry rejects the submission"""
        try:
            response = await asyncio.wait_for(
                self.rpc_client.confirm_transaction(
                    signature,
                    commitment=self.commitment.value,
                    sleep_seconds=self.confirm_poll_interval,
                    last_valid_block_height=last_valid_block_height,
                ),
                timeout=self.confirm_timeout,
            )
        except asyncio.TimeoutError as e:
            raise SubmissionRejected(
                name, f"transaction {signature} not {self.commitment.value} within {self.confirm_timeout}s"
            ) from e
        except (UnconfirmedTxError, TransactionExpiredBlockheightExceededError) as e:
            raise SubmissionRejected(name, f"transaction {signature} was not confirmed: {e}") from e
        except (RPCException, SolanaRpcException) as e:
            raise SubmissionRejected(name, f"could not confirm {signature}: {_describe_transport_error(e)}") from e

        status = response.value[0] if response.value else None
        if status is not None and status.err is not None:
            logger.error(f"SolanaRpcClient._await_confirmation: {signature} failed: {status.err}")
            raise SubmissionRejected(name, f"transaction {signature} failed: {status.err}")
        logger.debug(f"SolanaRpcClient._await_confirmation: {signature} reached {self.commitment.value}")
