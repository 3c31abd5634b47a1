#!/usr/bin/env python3
"""
Command-line interface for sei-liquidity.

Every command prints a single JSON document to stdout; logs go to stderr.

Usage:
    sei-liquidity sailor:snapshot
    sei-liquidity sailor:query --query '{ pools(first: 5) { id } }'
    sei-liquidity dex:pools --dex sailor --from 80000000 --to latest
    sei-liquidity clmm:positions --wallet 0x... --npm 0x...
    sei-liquidity pools:sync
    sei-liquidity storage:health
    sei-liquidity scheduler:run
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone
from typing import Any, List, Optional, Union

import ujson

from .config import ConfigManager, get_config
from .core.pool_history import PoolHistoryRecorder
from .core.pool_queries import PoolQueryService
from .core.pool_sync import PoolSynchronizer
from .core.scheduler import PoolSyncScheduler
from .core.storage import StorageManager
from .core.storage.schema import get_database_engine, setup_pool_tables
from .fetchers import DragonSwapFetcher, SailorFetcher, SailorTokenCache
from .fetchers.errors import InvalidInputError
from .fetchers.log_fetcher import ChunkedLogFetcher
from .fetchers.rpc_client import RpcLogClient
from .processors.pool_creation import PoolCreationScanner
from .processors.positions import PositionHistoryReconstructor

logger = logging.getLogger(__name__)

DEX_CHOICES = ("dragonswap", "sailor")
LATEST = "latest"

EPILOG = """
Environment overrides:
  SEI_RPC                      RPC endpoint
  LOG_CHUNK_SIZE               Blocks per eth_getLogs call
  DRAGON_FACTORY               DragonSwap factory address
  DRAGON_POSITION_MANAGER      DragonSwap position manager address
  SAILOR_FACTORY               Sailor factory address
  SAILOR_POSITION_MANAGER      Sailor position manager address
  SAILOR_API_BASE              Sailor API base URL
  DRAGONSWAP_API_URL           DragonSwap API base URL
  DATABASE_URL                 PostgreSQL URL (pools:* and scheduler:run)
  REDIS_URL                    Redis URL for the pool-list cache
"""


def parse_block(value: Optional[str], default: Union[int, str]) -> Union[int, str]:
    """
    Parse a block argument: a non-negative integer or ``latest``.

    Raises:
        InvalidInputError: On anything else
    """
    if value is None:
        return default
    if value == LATEST:
        return LATEST
    try:
        block = int(value)
    except ValueError:
        raise InvalidInputError(f"Invalid block number: {value}")
    if block < 0:
        raise InvalidInputError(f"Invalid block number: {value}")
    return block


async def resolve_block(client: RpcLogClient, block: Union[int, str]) -> int:
    if block == LATEST:
        return await client.get_block_number()
    return block


def parse_time(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if value is None:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise InvalidInputError(f"Invalid timestamp: {value}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def resolve_query(args: argparse.Namespace) -> str:
    """GraphQL query from --file, then --query, then the positional words."""
    if args.file:
        with open(args.file, "r") as f:
            query = f.read()
    elif args.query:
        query = args.query
    else:
        query = " ".join(args.words)

    if not query.strip():
        raise InvalidInputError("Missing GraphQL query. Provide --query or --file path.")
    return query


def parse_variables(value: Optional[str]) -> Optional[Any]:
    if value is None:
        return None
    try:
        return ujson.loads(value)
    except ValueError as e:
        raise InvalidInputError(f"Invalid --variables JSON: {e}")


def emit(document: Any) -> None:
    """Write the command result to stdout."""
    sys.stdout.write(ujson.dumps(document, indent=2, escape_forward_slashes=False))
    sys.stdout.write("\n")
    sys.stdout.flush()


def build_log_fetcher(config: ConfigManager) -> ChunkedLogFetcher:
    client = RpcLogClient.from_config(config)
    return ChunkedLogFetcher.from_config(client, config)


def build_dex_fetchers(config: ConfigManager) -> List:
    return [
        DragonSwapFetcher.from_config(config),
        SailorFetcher.from_config(config, token_cache=SailorTokenCache()),
    ]


# On-chain and DEX API commands

async def cmd_sailor_snapshot(args, config: ConfigManager) -> Any:
    return await SailorFetcher.from_config(config).fetch_snapshot()


async def cmd_sailor_query(args, config: ConfigManager) -> Any:
    query = resolve_query(args)
    variables = parse_variables(args.variables)
    return await SailorFetcher.from_config(config).query_subgraph(query, variables)


async def cmd_dex_pools(args, config: ConfigManager) -> Any:
    factory = args.factory or config.protocols.get_factory_address(args.dex)
    from_block = parse_block(args.from_block, 0)
    to_block = parse_block(args.to_block, LATEST)

    log_fetcher = build_log_fetcher(config)
    from_block = await resolve_block(log_fetcher.client, from_block)
    to_block = await resolve_block(log_fetcher.client, to_block)

    logger.info(f"🔍 Scanning {args.dex} factory {factory} blocks {from_block} → {to_block}")
    records = await PoolCreationScanner(log_fetcher).scan(factory, from_block, to_block)
    logger.info(f"📊 Found {len(records)} pools")
    return [record.to_dict() for record in records]


async def cmd_clmm_positions(args, config: ConfigManager) -> Any:
    if not args.wallet:
        raise InvalidInputError("Missing --wallet <address> argument")
    npm = args.position_manager or config.protocols.get_position_manager(args.dex)
    from_block = parse_block(args.from_block, 0)
    to_block = parse_block(args.to_block, LATEST)

    log_fetcher = build_log_fetcher(config)
    from_block = await resolve_block(log_fetcher.client, from_block)
    to_block = await resolve_block(log_fetcher.client, to_block)

    logger.info(f"🔍 Reconstructing positions of {args.wallet} on {npm} blocks {from_block} → {to_block}")
    history = await PositionHistoryReconstructor(log_fetcher).reconstruct(
        npm, args.wallet, from_block, to_block
    )
    return history.to_dict()


# Storage-backed commands

async def cmd_pools_sync(args, config: ConfigManager) -> Any:
    async with StorageManager(config) as storage:
        synchronizer = PoolSynchronizer(
            storage.pools,
            build_dex_fetchers(config),
            cache=storage.cache,
            max_workers=config.scheduler.SYNC_MAX_WORKERS,
        )
        result = await synchronizer.sync_pools()
    return result.to_dict()


async def cmd_pools_record_history(args, config: ConfigManager) -> Any:
    async with StorageManager(config) as storage:
        result = await PoolHistoryRecorder(storage.pools).record_pool_history()
    return result.to_dict()


async def cmd_pools_list(args, config: ConfigManager) -> Any:
    async with StorageManager(config) as storage:
        service = PoolQueryService(storage.pools, storage.cache, config.database.POOLS_CACHE_TTL)
        return await service.get_pools(dex=args.dex, is_active=args.is_active)


async def cmd_pools_history(args, config: ConfigManager) -> Any:
    from_time = parse_time(args.from_time)
    to_time = parse_time(args.to_time)
    async with StorageManager(config) as storage:
        service = PoolQueryService(storage.pools, storage.cache, config.database.POOLS_CACHE_TTL)
        return await service.get_pool_history(args.pool_id, from_time, to_time)


async def cmd_storage_health(args, config: ConfigManager) -> Any:
    async with StorageManager(config) as storage:
        return await storage.health_check()


async def cmd_db_migrate(args, config: ConfigManager) -> Any:
    engine = get_database_engine(config.database.sqlalchemy_url)
    try:
        ready = await asyncio.get_running_loop().run_in_executor(None, setup_pool_tables, engine)
    finally:
        engine.dispose()
    return {"migrated": ready}


async def cmd_scheduler_run(args, config: ConfigManager) -> Any:
    async with StorageManager(config) as storage:
        synchronizer = PoolSynchronizer(
            storage.pools,
            build_dex_fetchers(config),
            cache=storage.cache,
            max_workers=config.scheduler.SYNC_MAX_WORKERS,
        )
        scheduler = PoolSyncScheduler.from_config(
            synchronizer, PoolHistoryRecorder(storage.pools), config
        )
        await scheduler.start(initial_sync=not args.no_initial_sync)
        try:
            await scheduler.wait()
        finally:
            await scheduler.stop()
    return {job: result.to_dict() for job, result in scheduler.last_results.items()}


COMMANDS = {
    "sailor:snapshot": cmd_sailor_snapshot,
    "sailor:query": cmd_sailor_query,
    "dex:pools": cmd_dex_pools,
    "clmm:positions": cmd_clmm_positions,
    "pools:sync": cmd_pools_sync,
    "pools:record-history": cmd_pools_record_history,
    "pools:list": cmd_pools_list,
    "pools:history": cmd_pools_history,
    "db:migrate": cmd_db_migrate,
    "storage:health": cmd_storage_health,
    "scheduler:run": cmd_scheduler_run,
}


def _add_block_range(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--from", dest="from_block", help="Start block (default 0)")
    parser.add_argument("--to", dest="to_block", help="End block or 'latest' (default latest)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sei-liquidity",
        description="Liquidity tooling for the Sei DragonSwap and Sailor DEXes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
    )
    subparsers = parser.add_subparsers(dest="command", metavar="command")
    subparsers.required = True

    subparsers.add_parser("sailor:snapshot", help="Fetch the Sailor REST snapshot (cmc/c1)")

    query = subparsers.add_parser("sailor:query", help="Run a GraphQL query against the Sailor subgraph")
    query.add_argument("--query", help="GraphQL query text")
    query.add_argument("--file", help="Path to a file holding the GraphQL query")
    query.add_argument("--variables", help="Query variables as a JSON object")
    query.add_argument("words", nargs="*", help="Query text when neither --query nor --file is given")

    pools = subparsers.add_parser("dex:pools", help="Enumerate pool creations for a factory")
    pools.add_argument("--factory", help="Factory address (default: the --dex factory)")
    pools.add_argument("--dex", choices=DEX_CHOICES, default="dragonswap")
    _add_block_range(pools)

    positions = subparsers.add_parser("clmm:positions", help="Fetch CLMM position events for a wallet")
    positions.add_argument("--wallet", help="Wallet address")
    positions.add_argument(
        "--npm", "--position-manager", dest="position_manager",
        help="NonfungiblePositionManager address (default: the --dex position manager)",
    )
    positions.add_argument("--dex", choices=DEX_CHOICES, default="dragonswap")
    _add_block_range(positions)

    subparsers.add_parser("pools:sync", help="Sync DEX API pools into storage")
    subparsers.add_parser("pools:record-history", help="Snapshot every active pool")

    listing = subparsers.add_parser("pools:list", help="List stored pools, highest TVL first")
    listing.add_argument("--dex", choices=DEX_CHOICES)
    active = listing.add_mutually_exclusive_group()
    active.add_argument("--active", dest="is_active", action="store_const", const=True)
    active.add_argument("--inactive", dest="is_active", action="store_const", const=False)

    history = subparsers.add_parser("pools:history", help="Show the recorded history of a pool")
    history.add_argument("--pool-id", required=True, help="Pool id")
    history.add_argument("--from", dest="from_time", help="ISO-8601 start (default: 7 days ago)")
    history.add_argument("--to", dest="to_time", help="ISO-8601 end (default: now)")

    subparsers.add_parser("db:migrate", help="Create the pool tables")
    subparsers.add_parser("storage:health", help="Check the pool store and cache connections")

    scheduler = subparsers.add_parser("scheduler:run", help="Run periodic sync and history recording")
    scheduler.add_argument("--no-initial-sync", action="store_true", help="Skip the sync at startup")

    return parser


async def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, run one command and print its result."""
    args = build_parser().parse_args(argv)

    try:
        config = get_config()
        result = await COMMANDS[args.command](args, config)
    except KeyboardInterrupt:
        logger.info("⏹️  Interrupted by user")
        return 130
    except Exception as e:
        logger.debug("Command failed", exc_info=True)
        sys.stderr.write(f"[sei-liquidity] fatal error: {e}\n")
        return 1

    emit(result)
    return 0


def run() -> None:
    """Console-script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    run()
