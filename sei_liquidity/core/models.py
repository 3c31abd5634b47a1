"""
Data structures shared by the scanners, DEX adapters, storage and CLI.

On-chain integer quantities (liquidity, amounts, token ids, reserves) are
carried as base-10 strings so they survive JSON and never pass through a
float.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from .errors import MalformedRecordError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class LogEvent:
    """A raw event log as returned by eth_getLogs."""

    address: str
    topics: Tuple[str, ...]
    data: bytes
    block_number: int
    transaction_hash: str
    log_index: int = 0

    @property
    def topic0(self) -> Optional[str]:
        return self.topics[0] if self.topics else None

    @property
    def sort_key(self) -> Tuple[int, int]:
        return (self.block_number, self.log_index)


@dataclass
class PoolCreationRecord:
    """One factory PoolCreated event joined with its creating transaction."""

    block_number: int
    transaction_hash: str
    creator: Optional[str]
    token0: str
    token1: str
    fee: int
    tick_spacing: int
    pool: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "blockNumber": self.block_number,
            "transactionHash": self.transaction_hash,
            "creator": self.creator,
            "token0": self.token0,
            "token1": self.token1,
            "fee": self.fee,
            "tickSpacing": self.tick_spacing,
            "pool": self.pool,
        }


@dataclass
class IncreaseLiquidityEvent:
    block_number: int
    transaction_hash: str
    liquidity: str
    amount0: str
    amount1: str
    event: str = field(default="IncreaseLiquidity", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.event,
            "blockNumber": self.block_number,
            "transactionHash": self.transaction_hash,
            "liquidity": self.liquidity,
            "amount0": self.amount0,
            "amount1": self.amount1,
        }


@dataclass
class DecreaseLiquidityEvent(IncreaseLiquidityEvent):
    event: str = field(default="DecreaseLiquidity", init=False)


@dataclass
class CollectEvent:
    block_number: int
    transaction_hash: str
    recipient: str
    amount0: str
    amount1: str
    event: str = field(default="Collect", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.event,
            "blockNumber": self.block_number,
            "transactionHash": self.transaction_hash,
            "recipient": self.recipient,
            "amount0": self.amount0,
            "amount1": self.amount1,
        }


PositionEvent = Union[IncreaseLiquidityEvent, DecreaseLiquidityEvent, CollectEvent]


@dataclass
class PositionHistory:
    """
    Liquidity events of every position NFT a wallet has ever held.

    ``token_ids`` keeps discovery order. ``events`` holds a group only for
    token ids that produced at least one liquidity event in range.
    """

    wallet: str
    position_manager: str
    token_ids: List[str] = field(default_factory=list)
    events: Dict[str, List[PositionEvent]] = field(default_factory=dict)
    skipped_logs: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wallet": self.wallet,
            "positionManager": self.position_manager,
            "tokenIds": list(self.token_ids),
            "events": {
                token_id: [event.to_dict() for event in group]
                for token_id, group in self.events.items()
            },
            "skippedLogs": self.skipped_logs,
        }


@dataclass
class TokenInfo:
    address: str
    symbol: str = "UNKNOWN"
    decimals: int = 18

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "symbol": self.symbol, "decimals": self.decimals}


@dataclass
class PoolData:
    """
    A pool as reported by a DEX API, normalized across sources.

    Optional metrics are None when the upstream record does not carry them.
    """

    address: str
    token0: TokenInfo
    token1: TokenInfo
    reserve0: str = "0"
    reserve1: str = "0"
    total_supply: str = "0"
    fee_tier: Optional[str] = None
    volume_usd_24h: Optional[str] = None
    tvl_usd: Optional[str] = None
    apr: Optional[str] = None
    price: Optional[str] = None

    def __post_init__(self):
        if not self.address:
            raise MalformedRecordError("Pool record has no address")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "token0": self.token0.to_dict(),
            "token1": self.token1.to_dict(),
            "reserve0": self.reserve0,
            "reserve1": self.reserve1,
            "totalSupply": self.total_supply,
            "feeTier": self.fee_tier,
            "volumeUSD24h": self.volume_usd_24h,
            "tvlUSD": self.tvl_usd,
            "apr": self.apr,
            "price": self.price,
        }


@dataclass(frozen=True)
class Pool:
    """
    Persisted pool entity.

    Instances are immutable; ``update_metrics`` and ``deactivate`` return a
    new instance that keeps ``id``, ``pool_address`` and ``created_at``.
    """

    id: str
    pool_address: str
    dex: str
    token0: str
    token1: str
    token0_symbol: str
    token1_symbol: str
    fee_tier: Optional[str] = None
    tvl: Optional[str] = None
    volume_24h: Optional[str] = None
    apr: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(
        cls,
        pool_address: str,
        dex: str,
        token0: str,
        token1: str,
        token0_symbol: str,
        token1_symbol: str,
        fee_tier: Optional[str] = None,
        tvl: Optional[str] = None,
        volume_24h: Optional[str] = None,
        apr: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "Pool":
        now = utcnow()
        return cls(
            id=str(uuid.uuid4()),
            pool_address=pool_address,
            dex=dex,
            token0=token0,
            token1=token1,
            token0_symbol=token0_symbol,
            token1_symbol=token1_symbol,
            fee_tier=fee_tier,
            tvl=tvl,
            volume_24h=volume_24h,
            apr=apr,
            metadata=dict(metadata or {}),
            is_active=True,
            created_at=now,
            updated_at=now,
        )

    @property
    def pair_name(self) -> str:
        return f"{self.token0_symbol}/{self.token1_symbol}"

    def update_metrics(
        self,
        tvl: Optional[str],
        volume_24h: Optional[str],
        apr: Optional[str],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "Pool":
        return replace(
            self,
            tvl=tvl,
            volume_24h=volume_24h,
            apr=apr,
            metadata={**self.metadata, **(metadata or {})},
            updated_at=utcnow(),
        )

    def deactivate(self) -> "Pool":
        return replace(self, is_active=False, updated_at=utcnow())

    def snapshot(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "poolAddress": self.pool_address,
            "dex": self.dex,
            "token0": self.token0,
            "token1": self.token1,
            "token0Symbol": self.token0_symbol,
            "token1Symbol": self.token1_symbol,
            "pairName": self.pair_name,
            "feeTier": self.fee_tier,
            "tvl": self.tvl,
            "volume24h": self.volume_24h,
            "apr": self.apr,
            "metadata": dict(self.metadata),
            "isActive": self.is_active,
            "createdAt": _isoformat(self.created_at),
            "updatedAt": _isoformat(self.updated_at),
        }


@dataclass
class PoolHistoryPoint:
    """One time-series sample of a pool's state."""

    pool_id: str
    timestamp: datetime
    reserve0: str = "0"
    reserve1: str = "0"
    tvl: Optional[str] = None
    volume: Optional[str] = None
    price: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "poolId": self.pool_id,
            "timestamp": _isoformat(self.timestamp),
            "reserve0": self.reserve0,
            "reserve1": self.reserve1,
            "tvl": self.tvl,
            "volume": self.volume,
            "price": self.price,
        }
