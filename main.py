import argparse
import asyncio
import dataclasses
import json
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Tuple

import requests

from solrpc import ClientSettings, CommitmentLevel, Net, RpcClient, RpcConfig, load_settings
from solrpc.config import settings_from_mapping
from solrpc.errors import SolanaRpcError


def configure_logging(verbose: bool) -> logging.Logger:
    log = logging.getLogger("solrpc")
    log.setLevel(logging.DEBUG if verbose else logging.INFO)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt="%(asctime)sZ %(levelname)s %(name)s %(message)s", datefmt="%Y-%m-%dT%H:%M:%S"))
    log.addHandler(handler)
    logging.Formatter.converter = time.gmtime  # UTC
    return log


def resolve_settings(args: argparse.Namespace) -> Tuple[ClientSettings, RpcConfig]:
    if args.config is not None:
        settings, rpc_config = load_settings(args.config)
    else:
        settings, rpc_config = settings_from_mapping({})
    if args.net:
        settings = dataclasses.replace(settings, net=Net(args.net), endpoint=None)
    if args.commitment:
        rpc_config = dataclasses.replace(rpc_config, commitment=CommitmentLevel(args.commitment))
    return settings, rpc_config


async def run_command(client: RpcClient, args: argparse.Namespace) -> Optional[object]:
    if args.command == "slot":
        return await client.get_slot()
    if args.command == "block-time":
        slot = args.slot if args.slot is not None else await client.get_slot()
        return {"slot": slot, "block_time": await client.get_block_time(slot)}
    if args.command == "balance":
        return {"address": args.address, "lamports": await client.get_balance(args.address)}
    if args.command == "account":
        account = await client.get_account(args.address)
        return {
            "owner": account.owner,
            "executable": account.executable,
            "lamports": account.lamports,
            "rent_epoch": account.rent_epoch,
            "encoding": account.data.encoding,
            "data": account.data.payload,
        }
    if args.command == "rent-exemption":
        return await client.get_minimum_balance_for_rent_exemption(args.data_len)
    if args.command == "blockhash":
        blockhash = await client.get_blockhash()
        return {"blockhash": str(blockhash.blockhash), "last_valid_block_height": blockhash.last_valid_block_height}
    if args.command == "airdrop":
        blockhash = await client.get_latest_blockhash()
        return str(await client.request_airdrop(args.address, args.lamports, blockhash))
    if args.command == "status":
        return {"signature": args.signature, "confirmed": await client.get_signature_status(args.signature)}
    if args.command == "watch-block-time":
        for _ in range(args.count):
            slot = await client.get_slot()
            print(json.dumps({"slot": slot, "block_time": await client.get_block_time(slot)}))
            await asyncio.sleep(args.interval)
        return None
    raise ValueError(f"unknown command {args.command}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Solana JSON-RPC client")
    parser.add_argument("--config", type=Path, default=None, help="YAML client config")
    parser.add_argument("--net", choices=[net.value for net in Net], default=None)
    parser.add_argument("--commitment", choices=[level.value for level in CommitmentLevel], default=None)
    parser.add_argument("--verbose", action="store_true")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("slot")
    block_time = commands.add_parser("block-time")
    block_time.add_argument("--slot", type=int, default=None)
    commands.add_parser("balance").add_argument("address")
    commands.add_parser("account").add_argument("address")
    commands.add_parser("rent-exemption").add_argument("data_len", type=int)
    commands.add_parser("blockhash")
    airdrop = commands.add_parser("airdrop")
    airdrop.add_argument("address")
    airdrop.add_argument("lamports", type=int)
    commands.add_parser("status").add_argument("signature")
    watch = commands.add_parser("watch-block-time")
    watch.add_argument("--interval", type=float, default=1.0)
    watch.add_argument("--count", type=int, default=10)
    return parser


async def _run(args: argparse.Namespace) -> Optional[object]:
    settings, rpc_config = resolve_settings(args)
    async with RpcClient(config=rpc_config, settings=settings) as client:
        return await run_command(client, args)


def main() -> None:
    args = build_parser().parse_args()
    log = configure_logging(args.verbose)

    try:
        result = asyncio.run(_run(args))
    except (SolanaRpcError, requests.RequestException) as exc:
        log.error("%s", exc)
        sys.exit(1)

    if result is not None:
        print(json.dumps(result) if not isinstance(result, str) else result)


if __name__ == "__main__":
    main()
