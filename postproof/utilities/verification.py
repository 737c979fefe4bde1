"""
Builds and submits verify_post requests and observes their outcome.

The proof itself is produced asynchronously by the external prover and takes
minutes; submit() returns as soon as the request transaction is confirmed and
poll_status() reads the verification log to see how it ended.

The size probe and the prover's own fetch are two independent requests, so
the post may change between them. That gap is inherent to the protocol and is
not closed here.
"""
import secrets
from typing import Callable, Optional

from loguru import logger
from solders.instruction import Instruction
from solders.keypair import Keypair

import postproof.configuration.constants as global_constants
from postproof.models.models import (
    SubmissionHandle,
    VerificationRequest,
    VerificationStatus,
)
from postproof.protocols.ledger import LedgerClient
from postproof.utilities.borsh import decode_verification_log, encode_verify_post
from postproof.utilities.identifiers import PostIdentifierResolver
from postproof.utilities.ledger import account_meta
from postproof.utilities.pda import AddressDeriver, to_pubkey

def generate_request_id(prefix: str = global_constants.REQUEST_ID_PREFIX) -> str:
    """Random request id; unique without relying on clock granularity"""
    request_id = f"{prefix}{secrets.token_hex(global_constants.REQUEST_ID_RANDOM_BYTES)}"
    if len(request_id.encode('utf-8')) > global_constants.MAX_SEED_LENGTH:
        raise ValueError(f"Request id prefix too long, {request_id!r} exceeds {global_constants.MAX_SEED_LENGTH} bytes")
    return request_id

class VerificationRequestBuilder:
    """Packages a post reference into a verify_post instruction for one campaign"""

    def __init__(
            self,
            ledger: LedgerClient,
            signer: Keypair,
            resolver: PostIdentifierResolver,
            address_deriver: AddressDeriver,
            default_tip: int = global_constants.DEFAULT_TIP,
            request_id_factory: Callable[[], str] = generate_request_id,
        ):
        self.ledger = ledger
        self.signer = signer
        self.resolver = resolver
        self.address_deriver = address_deriver
        self.default_tip = default_tip
        self.request_id_factory = request_id_factory

    @property
    def signer_address(self) -> str:
        return str(self.signer.pubkey())

    async def build_request(self, post_reference: str, tip: Optional[int] = None) -> VerificationRequest:
        """Resolve the reference, measure the resource and assign a request id"""
        post_url = await self.resolver.resolve(post_reference)
        if len(post_url.encode('utf-8')) > global_constants.MAX_POST_URL_BYTES:
            raise ValueError(f"Post URL exceeds {global_constants.MAX_POST_URL_BYTES} bytes: {post_url}")
        post_size = await self.resolver.probe_size(post_url)

        tip = self.default_tip if tip is None else tip
        if isinstance(tip, bool) or not 0 <= tip <= global_constants.MAX_U64:
            raise ValueError(f"tip must fit in a u64, got {tip}")

        return VerificationRequest(
            request_id=self.request_id_factory(),
            post_url=post_url,
            post_size=post_size,
            tip=tip,
        )

    def build_instruction(self, config_address: str, request: VerificationRequest) -> tuple[Instruction, str, str]:
        """
        Assemble the verify_post instruction.

        Returns:
            The instruction, the verification log address and the execution request address
        """
        execution_id = request.request_id.encode('utf-8')
        requester = self.address_deriver.execution_tracker(execution_id).address
        deployment = self.address_deriver.deployment().address
        execution = self.address_deriver.execution_request(self.signer_address, execution_id).address
        verification_log = self.address_deriver.verification_log(self.signer_address, config_address).address

        logger.debug(f"VerificationRequestBuilder.build_instruction: Requester account {requester}")
        logger.debug(f"VerificationRequestBuilder.build_instruction: Execution account {execution}")
        logger.debug(f"VerificationRequestBuilder.build_instruction: Deployment account {deployment}")
        logger.debug(f"VerificationRequestBuilder.build_instruction: Verification log {verification_log}")

        instruction = Instruction(
            program_id=to_pubkey(self.address_deriver.post_proof_program_id),
            data=encode_verify_post(request),
            accounts=[
                account_meta(config_address, is_writable=True),
                account_meta(verification_log, is_writable=True),
                account_meta(self.signer_address, is_signer=True, is_writable=True),
                account_meta(self.address_deriver.prover_program_id),
                account_meta(requester, is_writable=True),
                account_meta(execution, is_writable=True),
                account_meta(deployment),
                account_meta(self.address_deriver.post_proof_program_id),
                account_meta(global_constants.SYSTEM_PROGRAM_ID),
            ],
        )
        return instruction, verification_log, execution

    async def submit(self, config_address: str, post_reference: str, tip: Optional[int] = None) -> SubmissionHandle:
        """
        Submit one verification request for a post against a campaign.

        Steps run strictly in order and stop at the first failure:
        resolve, size probe, request id, address derivation, submission.
        Does not wait for the proof; use poll_status() with the returned handle.

        Raises:
            InvalidIdentifierFormat, ResolutionFailed: If the post reference cannot be resolved
            FetchFailed: If the size probe fails
            DerivationExhausted: If an address cannot be derived
            SubmissionRejected: If the ledger or program declines the request
        """
        logger.info(f"VerificationRequestBuilder.submit: Verifying post {post_reference} for campaign {config_address}")
        request = await self.build_request(post_reference, tip=tip)
        instruction, verification_log, execution = self.build_instruction(config_address, request)

        signature = await self.ledger.submit_instruction(instruction, self.signer)
        logger.info(
            f"VerificationRequestBuilder.submit: Request {request.request_id} submitted. Transaction: {signature}. "
            f"Proof completes asynchronously; poll {verification_log} for the outcome"
        )
        return SubmissionHandle(
            signature=signature,
            request_id=request.request_id,
            config_address=config_address,
            verification_log_address=verification_log,
            execution_account=execution,
            post_url=request.post_url,
            post_size=request.post_size,
        )

    def handle_for(self, config_address: str, request_id: str, signature: str = "") -> SubmissionHandle:
        """Rebuild a handle for a request submitted earlier, e.g. from another process"""
        execution_id = request_id.encode('utf-8')
        return SubmissionHandle(
            signature=signature,
            request_id=request_id,
            config_address=config_address,
            verification_log_address=self.address_deriver.verification_log(self.signer_address, config_address).address,
            execution_account=self.address_deriver.execution_request(self.signer_address, execution_id).address,
            post_url="",
            post_size=0,
        )

    async def poll_status(self, handle: SubmissionHandle) -> VerificationStatus:
        """
        Read the verification log once and classify the request.

        PENDING: log not visible yet, or still waiting on this request's execution
        COMPLETED: execution cleared and the post was verified
        FAILED: execution cleared without verification, or superseded by another execution
        """
        data = await self.ledger.get_account_data(handle.verification_log_address)
        if data is None:
            return VerificationStatus.PENDING

        log = decode_verification_log(handle.verification_log_address, data)
        if log.current_execution_account == handle.execution_account:
            return VerificationStatus.PENDING
        if log.current_execution_account is not None:
            logger.warning(
                f"VerificationRequestBuilder.poll_status: Request {handle.request_id} superseded by "
                f"execution {log.current_execution_account}"
            )
            return VerificationStatus.FAILED
        return VerificationStatus.COMPLETED if log.is_verified else VerificationStatus.FAILED
