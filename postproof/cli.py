import argparse
import asyncio
import json
import sys

import httpx
from loguru import logger

from postproof.configuration.configuration import load_client_config, get_cluster_config
from postproof.container.service_container import ServiceContainer
from postproof.models.models import ConfigPatch
from postproof.utilities.exceptions import (
    DerivationExhausted,
    DuplicateConfig,
    FetchFailed,
    InvalidIdentifierFormat,
    LedgerRpcError,
    NotFound,
    ResolutionFailed,
    SubmissionRejected,
)
from postproof.utilities.identifiers import PostIdentifierResolver
from postproof.utilities.keypair import load_keypair
from postproof.utilities.pda import AddressDeriver

EXPECTED_ERRORS = (
    DerivationExhausted,
    DuplicateConfig,
    FetchFailed,
    InvalidIdentifierFormat,
    LedgerRpcError,
    NotFound,
    ResolutionFailed,
    SubmissionRejected,
    ValueError,
    FileNotFoundError,
)

def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ('true', 'yes', '1', 'on'):
        return True
    if lowered in ('false', 'no', '0', 'off'):
        return False
    raise argparse.ArgumentTypeError(f"Expected true/false, got {value!r}")

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Proof-of-post campaign client")
    parser.add_argument("--config", help="Path to a JSON client configuration file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    resolve_parser = subparsers.add_parser('resolve', help='Resolve a post reference to its canonical API URL')
    resolve_parser.add_argument("post", help="Web URL, AT-URI or API URL of the post")
    resolve_parser.add_argument("--size", action="store_true", help="Also fetch the post and print its byte size")

    addresses_parser = subparsers.add_parser('addresses', help='Show derived addresses for a campaign')
    addresses_parser.add_argument("seed", help="Campaign seed")
    addresses_parser.add_argument("--creator", help="Campaign creator (defaults to the signer)")
    addresses_parser.add_argument("--verifier", help="Verifier whose verification log to derive (defaults to the signer)")
    addresses_parser.add_argument("--cluster", default=None, help="Cluster preset name")

    create_parser = subparsers.add_parser('create-config', help='Create a campaign config')
    create_parser.add_argument("seed", help="Campaign seed (at most 10 bytes)")
    create_parser.add_argument("--keyword", "-k", action="append", default=[], dest="keywords",
                               help="Keyword a post must contain (repeatable)")
    create_parser.add_argument("--reward", type=int, required=True, help="Reward per claim in lamports")
    create_parser.add_argument("--max-claimers", type=int, required=True, help="Maximum number of claims")

    update_parser = subparsers.add_parser('update-config', help='Patch a campaign config')
    update_parser.add_argument("seed", help="Campaign seed")
    update_parser.add_argument("--active", type=_parse_bool, help="Set the active flag (true/false)")
    update_parser.add_argument("--reward", type=int, help="New reward per claim in lamports")
    update_parser.add_argument("--max-claimers", type=int, help="New maximum number of claims")

    show_parser = subparsers.add_parser('show-config', help='Show a campaign config')
    show_parser.add_argument("seed", help="Campaign seed")
    show_parser.add_argument("--creator", help="Campaign creator (defaults to the signer)")

    verify_parser = subparsers.add_parser('verify', help='Submit a post for verification')
    verify_parser.add_argument("seed", help="Campaign seed")
    verify_parser.add_argument("post", help="Web URL, AT-URI or API URL of the post")
    verify_parser.add_argument("--creator", help="Campaign creator (defaults to the signer)")
    verify_parser.add_argument("--tip", type=int, help="Prover tip in lamports")

    status_parser = subparsers.add_parser('status', help='Check the outcome of a verification request')
    status_parser.add_argument("seed", help="Campaign seed")
    status_parser.add_argument("request_id", help="Request id printed by 'verify'")
    status_parser.add_argument("--creator", help="Campaign creator (defaults to the signer)")

    return parser

def _print_json(payload: dict):
    print(json.dumps(payload, indent=2))

def _with_explorer_link(payload: dict, config) -> dict:
    mask = config.cluster.explorer_tx_url_mask
    if mask and payload.get('signature'):
        payload['explorer_url'] = mask.format(signature=payload['signature'])
    return payload

async def _resolve(args, config):
    async with httpx.AsyncClient(timeout=config.http_timeout, follow_redirects=True) as client:
        resolver = PostIdentifierResolver(client, api_base_url=config.cluster.bsky_api_url)
        api_url = await resolver.resolve(args.post)
        payload = {'post_url': api_url}
        if args.size:
            payload['post_size'] = await resolver.probe_size(api_url)
    _print_json(payload)

def _addresses(args, config):
    cluster = get_cluster_config(args.cluster) if args.cluster else config.cluster
    deriver = AddressDeriver.from_cluster(cluster)
    signer_address = None
    if args.creator is None or args.verifier is None:
        signer_address = str(load_keypair(config.keypair_path).pubkey())
    creator = args.creator or signer_address
    verifier = args.verifier or signer_address
    campaign = deriver.campaign_config(creator, args.seed)
    verification_log = deriver.verification_log(verifier, campaign.address)
    deployment = deriver.deployment()
    _print_json({
        'creator': creator,
        'verifier': verifier,
        'campaign_config': {'address': campaign.address, 'bump': campaign.bump},
        'verification_log': {'address': verification_log.address, 'bump': verification_log.bump},
        'deployment': {'address': deployment.address, 'bump': deployment.bump},
    })

async def _run_with_services(args, config):
    async with ServiceContainer.initialize(config) as services:
        creator = getattr(args, 'creator', None) or str(services.signer.pubkey())

        if args.command == 'create-config':
            signature = await services.campaign_configs.create(
                args.seed, args.keywords, args.reward, args.max_claimers
            )
            campaign = await services.campaign_configs.read(str(services.signer.pubkey()), args.seed)
            _print_json(_with_explorer_link({'signature': signature, 'config': campaign.to_dict()}, config))

        elif args.command == 'update-config':
            values = {}
            if args.active is not None:
                values['active'] = args.active
            if args.reward is not None:
                values['reward_amount'] = args.reward
            if args.max_claimers is not None:
                values['max_claimers'] = args.max_claimers
            signature = await services.campaign_configs.update(args.seed, ConfigPatch.of(**values))
            _print_json(_with_explorer_link({'signature': signature, 'updated': values}, config))

        elif args.command == 'show-config':
            campaign = await services.campaign_configs.read(creator, args.seed)
            _print_json(campaign.to_dict())

        elif args.command == 'verify':
            config_address = services.campaign_configs.config_address(args.seed, creator=creator)
            handle = await services.verifications.submit(config_address, args.post, tip=args.tip)
            _print_json(_with_explorer_link({
                'signature': handle.signature,
                'request_id': handle.request_id,
                'post_url': handle.post_url,
                'post_size': handle.post_size,
                'verification_log': handle.verification_log_address,
            }, config))
            logger.info("Waiting for the ZK proof takes several minutes; check progress with 'postproof status'")

        elif args.command == 'status':
            config_address = services.campaign_configs.config_address(args.seed, creator=creator)
            handle = services.verifications.handle_for(config_address, args.request_id)
            status = await services.verifications.poll_status(handle)
            _print_json({'request_id': args.request_id, 'status': status.value})

def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "INFO")

    if args.command is None:
        parser.print_help()
        return 1

    try:
        config = load_client_config(args.config)
        if args.command == 'resolve':
            asyncio.run(_resolve(args, config))
        elif args.command == 'addresses':
            _addresses(args, config)
        else:
            asyncio.run(_run_with_services(args, config))
    except EXPECTED_ERRORS as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
