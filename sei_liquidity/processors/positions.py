"""
Concentrated-liquidity position history for a wallet.

Reconstructs the IncreaseLiquidity / DecreaseLiquidity / Collect history of
every NonfungiblePositionManager token a wallet has ever held:

1. ERC-721 Transfer logs with the wallet as receiver and as sender give the
   set of token ids (a token sent away stays in the set).
2. One OR-filtered scan over the three liquidity events of the position
   manager returns candidate logs.
3. Logs whose token id (topic 1) is not in the set are discarded; the rest are
   decoded and grouped per token id in fetch order.
"""

from typing import Callable, Dict, List, Optional, Tuple

from ..config.protocols import ProtocolConfig
from ..core.models import (
    CollectEvent,
    DecreaseLiquidityEvent,
    IncreaseLiquidityEvent,
    LogEvent,
    PositionEvent,
    PositionHistory,
)
from ..fetchers.errors import MalformedRecordError
from ..utils.abi import decode_log_data, normalize_topic_address, topic_uint
from .base import BaseScanner

LIQUIDITY_DATA_TYPES = ("uint128", "uint256", "uint256")
COLLECT_DATA_TYPES = ("address", "uint256", "uint256")


def _decode_increase(log: LogEvent) -> PositionEvent:
    liquidity, amount0, amount1 = decode_log_data(LIQUIDITY_DATA_TYPES, log.data)
    return IncreaseLiquidityEvent(
        block_number=log.block_number,
        transaction_hash=log.transaction_hash,
        liquidity=str(liquidity),
        amount0=str(amount0),
        amount1=str(amount1),
    )


def _decode_decrease(log: LogEvent) -> PositionEvent:
    liquidity, amount0, amount1 = decode_log_data(LIQUIDITY_DATA_TYPES, log.data)
    return DecreaseLiquidityEvent(
        block_number=log.block_number,
        transaction_hash=log.transaction_hash,
        liquidity=str(liquidity),
        amount0=str(amount0),
        amount1=str(amount1),
    )


def _decode_collect(log: LogEvent) -> PositionEvent:
    recipient, amount0, amount1 = decode_log_data(COLLECT_DATA_TYPES, log.data)
    return CollectEvent(
        block_number=log.block_number,
        transaction_hash=log.transaction_hash,
        recipient=recipient,
        amount0=str(amount0),
        amount1=str(amount1),
    )


class PositionHistoryReconstructor(BaseScanner):
    """Rebuild per-token liquidity event histories for a wallet."""

    def __init__(self, log_fetcher):
        super().__init__(log_fetcher)
        self.transfer_topic = ProtocolConfig.ERC721_TRANSFER_EVENT
        self.decoders: Dict[str, Callable[[LogEvent], PositionEvent]] = {
            ProtocolConfig.INCREASE_LIQUIDITY_EVENT: _decode_increase,
            ProtocolConfig.DECREASE_LIQUIDITY_EVENT: _decode_decrease,
            ProtocolConfig.COLLECT_EVENT: _decode_collect,
        }

    async def discover_token_ids(
        self, position_manager: str, wallet: str, from_block: int, to_block: int
    ) -> List[str]:
        """
        Token ids ever received or sent by ``wallet``, in discovery order.

        Received transfers are listed before sent ones; duplicates collapse to
        their first occurrence.
        """
        wallet_topic = normalize_topic_address(wallet)

        received = await self.log_fetcher.fetch(
            position_manager, [self.transfer_topic, None, wallet_topic], from_block, to_block
        )
        sent = await self.log_fetcher.fetch(
            position_manager, [self.transfer_topic, wallet_topic, None], from_block, to_block
        )

        token_ids: Dict[str, None] = {}
        for log in received + sent:
            if len(log.topics) < 4:
                # ERC-20 style Transfer with the amount in data
                self.logger.warning(
                    f"Skipping Transfer log without token id topic (tx {log.transaction_hash})"
                )
                continue
            token_ids.setdefault(topic_uint(log.topics[3]), None)

        self.logger.info(
            f"Wallet {wallet}: {len(received)} received / {len(sent)} sent transfers, "
            f"{len(token_ids)} token ids"
        )
        return list(token_ids)

    @staticmethod
    def _token_id(log: LogEvent) -> Optional[str]:
        if len(log.topics) < 2:
            return None
        try:
            return topic_uint(log.topics[1])
        except MalformedRecordError:
            return None

    def decode_event(self, log: LogEvent) -> Tuple[str, PositionEvent]:
        """
        Decode one liquidity log into ``(token_id, event)``.

        Raises:
            MalformedRecordError: If the log is not a known liquidity event or does not decode
        """
        if len(log.topics) < 2:
            raise MalformedRecordError(f"Liquidity log {log.transaction_hash} has no token id topic")
        decoder = self.decoders.get(log.topic0)
        if decoder is None:
            raise MalformedRecordError(f"Unexpected topic0 {log.topic0} in {log.transaction_hash}")
        return topic_uint(log.topics[1]), decoder(log)

    async def scan(
        self, position_manager: str, wallet: str, from_block: int, to_block: int
    ) -> PositionHistory:
        """Alias of ``reconstruct`` for the scanner interface."""
        return await self.reconstruct(position_manager, wallet, from_block, to_block)

    async def reconstruct(
        self, position_manager: str, wallet: str, from_block: int, to_block: int
    ) -> PositionHistory:
        """
        Reconstruct the position history of ``wallet`` on ``position_manager``.

        A malformed liquidity log is logged, counted in ``skipped_logs`` and
        skipped; RPC failures propagate.
        """
        npm = self.validate_address(position_manager, "position manager")
        wallet = self.validate_address(wallet, "wallet")
        self.validate_block_range(from_block, to_block)

        history = PositionHistory(wallet=wallet, position_manager=npm)
        history.token_ids = await self.discover_token_ids(npm, wallet, from_block, to_block)
        if not history.token_ids:
            return history

        owned = set(history.token_ids)
        actions = await self.log_fetcher.fetch(npm, [list(self.decoders)], from_block, to_block)

        for log in actions:
            token_id = self._token_id(log)
            if token_id is not None and token_id not in owned:
                continue
            try:
                token_id, event = self.decode_event(log)
            except MalformedRecordError as e:
                history.skipped_logs += 1
                self.logger.warning(
                    f"Skipping malformed liquidity log (token {token_id or '?'}, "
                    f"tx {log.transaction_hash}): {e}"
                )
                continue
            history.events.setdefault(token_id, []).append(event)

        event_count = sum(len(group) for group in history.events.values())
        self.logger.info(
            f"Wallet {wallet}: {event_count} liquidity events across {len(history.events)} positions"
            + (f", {history.skipped_logs} skipped" if history.skipped_logs else "")
        )
        return history
