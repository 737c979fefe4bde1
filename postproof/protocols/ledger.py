from typing import Protocol, Optional

from solders.instruction import Instruction
from solders.keypair import Keypair

class LedgerClient(Protocol):
    """Protocol for the ledger the post-proof program lives on"""

    async def get_account_data(self, address: str) -> Optional[bytes]:
        """Return the raw data of an account, or None if no account exists at the address"""
        ...

    async def submit_instruction(self, instruction: Instruction, signer: Keypair) -> str:
        """Submit a single instruction signed by signer and wait for confirmation.

        Args:
            instruction: The instruction to place in a transaction
            signer: Fee payer and the only required signer

        Returns:
            str: The transaction signature

        Raises:
            SubmissionRejected: If the transaction fails preflight, execution or confirmation
        """
        ...
