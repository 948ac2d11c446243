"""Per-chain settings such as block offset and JSON-RPC rate limiting."""

from __future__ import annotations

from dataclasses import dataclass

from .config import RateLimitConfig

DEFAULT_BLOCK_OFFSET = 0

DEFAULT_RATE_LIMITING = RateLimitConfig(rate=50, burst=50)


@dataclass(frozen=True)
class ChainSettings:
    name: str
    chain_id: int
    offset: int
    json_rpc_rate_limiting: RateLimitConfig


_ALL_CHAIN_SETTINGS = {
    settings.chain_id: settings
    for settings in (
        ChainSettings("Ethereum Mainnet", 1, DEFAULT_BLOCK_OFFSET, DEFAULT_RATE_LIMITING),
        ChainSettings("BSC", 56, DEFAULT_BLOCK_OFFSET, DEFAULT_RATE_LIMITING),
        ChainSettings("Polygon", 137, DEFAULT_BLOCK_OFFSET, DEFAULT_RATE_LIMITING),
        ChainSettings("Avalanche", 43114, DEFAULT_BLOCK_OFFSET, DEFAULT_RATE_LIMITING),
        ChainSettings("Arbitrum", 42161, DEFAULT_BLOCK_OFFSET, DEFAULT_RATE_LIMITING),
        ChainSettings("Optimism", 10, DEFAULT_BLOCK_OFFSET, DEFAULT_RATE_LIMITING),
    )
}


def get_chain_settings(chain_id: int) -> ChainSettings:
    """Return the settings for a chain, with generic settings for unknown chains."""
    known = _ALL_CHAIN_SETTINGS.get(chain_id)
    if known is not None:
        return known
    return ChainSettings("Unknown chain", chain_id, DEFAULT_BLOCK_OFFSET, DEFAULT_RATE_LIMITING)


def get_block_offset(chain_id: int) -> int:
    return get_chain_settings(chain_id).offset