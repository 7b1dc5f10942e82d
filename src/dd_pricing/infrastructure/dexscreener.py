"""DexScreenerPriceFeed — concrete implementation of PriceFeedProtocol.

Discovery: DexScreener search + boosted tokens, filtered to liquid Solana
pairs; CoinGecko's solana-ecosystem listing when that comes back short;
a static token list as the last resort. Discovery never fails outright.

Pricing: ids that look like Solana mints (32-44 chars) are priced from the
highest-liquidity DexScreener pair, anything else from CoinGecko. A token
with no quote is simply absent from the result, but an unreachable feed
raises PriceFeedUnavailableError so a settlement is retried rather than
run against zero prices.
"""

import asyncio
import logging
import random
from typing import Any

import httpx

from config.settings import settings
from src.dd_common.errors import PriceFeedUnavailableError
from src.dd_pricing.domain.models import MarketToken, TokenQuote
from src.dd_pricing.domain.selection import select_random_tokens
from src.dd_pricing.infrastructure.fallback_tokens import (
    FALLBACK_TOKENS,
    KNOWN_TOKEN_ADDRESSES,
)
from src.dd_round.domain.models import Token

logger = logging.getLogger("dd.pricing")

_SEARCH_QUERIES = ("SOL", "meme", "ai", "defi")
_EXCLUDED_SYMBOLS = {"USDC", "USDT", "SOL", "WSOL", "WETH", "USDE", "DAI"}
_MIN_LIQUIDITY_USD = 10_000
_MIN_VOLUME_24H_USD = 50_000
_MAX_CANDIDATES = 30
_MAX_BOOSTED = 15


def is_solana_address(token_id: str) -> bool:
    return 32 <= len(token_id) <= 44


def _liquidity(pair: dict[str, Any]) -> float:
    return float((pair.get("liquidity") or {}).get("usd") or 0)


def _volume(pair: dict[str, Any]) -> float:
    return float((pair.get("volume") or {}).get("h24") or 0)


def _price_usd(pair: dict[str, Any]) -> float:
    try:
        return float(pair.get("priceUsd") or 0)
    except (TypeError, ValueError):
        return 0.0


def _is_tradable_solana_pair(pair: dict[str, Any]) -> bool:
    symbol = ((pair.get("baseToken") or {}).get("symbol") or "").upper()
    return (
        pair.get("chainId") == "solana"
        and _liquidity(pair) > _MIN_LIQUIDITY_USD
        and _volume(pair) > _MIN_VOLUME_24H_USD
        and symbol not in _EXCLUDED_SYMBOLS
    )


def _best_pair(pairs: list[dict[str, Any]], address: str) -> dict[str, Any] | None:
    matching = [
        p
        for p in pairs
        if p.get("chainId") == "solana" and (p.get("baseToken") or {}).get("address") == address
    ]
    if not matching:
        return None
    return max(matching, key=_liquidity)


def pairs_to_candidates(pairs: list[dict[str, Any]]) -> list[MarketToken]:
    """Filter, sort by 24h volume, dedupe by mint, cap at 30."""
    tradable = sorted(
        (p for p in pairs if _is_tradable_solana_pair(p)), key=_volume, reverse=True
    )
    seen: set[str] = set()
    out: list[MarketToken] = []
    for pair in tradable:
        base = pair.get("baseToken") or {}
        address = base.get("address")
        if not address or address in seen:
            continue
        seen.add(address)
        out.append(
            MarketToken(
                id=address,
                symbol=base.get("symbol", ""),
                name=base.get("name", ""),
                image=(pair.get("info") or {}).get("imageUrl")
                or f"https://dd.dexscreener.com/ds-data/tokens/solana/{address}.png",
                current_price=_price_usd(pair),
                price_change_24h=float((pair.get("priceChange") or {}).get("h24") or 0),
                total_volume=_volume(pair),
                address=address,
            )
        )
        if len(out) >= _MAX_CANDIDATES:
            break
    return out


class DexScreenerPriceFeed:
    def __init__(
        self,
        *,
        dexscreener_url: str = settings.DEXSCREENER_API_URL,
        coingecko_url: str = settings.COINGECKO_API_URL,
        timeout: float = settings.PRICE_FEED_TIMEOUT_S,
        client: httpx.AsyncClient | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._dex = dexscreener_url.rstrip("/")
        self._gecko = coingecko_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            timeout=timeout, headers={"accept": "application/json"}
        )
        self._rng = rng

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        resp = await self._client.get(url, params=params)
        resp.raise_for_status()
        return resp.json()

    # ------------------------------------------------------------------ #
    # Discovery
    # ------------------------------------------------------------------ #

    async def _search_pairs(self, query: str) -> list[dict[str, Any]]:
        try:
            data = await self._get_json(f"{self._dex}/latest/dex/search", {"q": query})
        except httpx.HTTPError as e:
            logger.warning("DexScreener search %r failed: %s", query, e)
            return []
        return data.get("pairs") or []

    async def _boosted_pairs(self) -> list[dict[str, Any]]:
        try:
            boosted = await self._get_json(f"{self._dex}/token-boosts/top/v1")
        except httpx.HTTPError as e:
            logger.warning("DexScreener boosted tokens failed: %s", e)
            return []
        pairs: list[dict[str, Any]] = []
        for item in (boosted if isinstance(boosted, list) else [])[:_MAX_BOOSTED]:
            if item.get("chainId") != "solana" or not item.get("tokenAddress"):
                continue
            try:
                data = await self._get_json(
                    f"{self._dex}/latest/dex/tokens/{item['tokenAddress']}"
                )
            except httpx.HTTPError as e:
                logger.warning("DexScreener pairs for %s failed: %s", item["tokenAddress"], e)
                continue
            pairs.extend(data.get("pairs") or [])
        return pairs

    async def _coingecko_candidates(self) -> list[MarketToken]:
        try:
            data = await self._get_json(
                f"{self._gecko}/coins/markets",
                {
                    "vs_currency": "usd",
                    "category": "solana-ecosystem",
                    "order": "market_cap_desc",
                    "per_page": 50,
                    "page": 1,
                    "sparkline": "false",
                    "price_change_percentage": "24h",
                },
            )
        except httpx.HTTPError as e:
            logger.error("CoinGecko fallback failed: %s", e)
            return []
        out = []
        for row in data:
            address = KNOWN_TOKEN_ADDRESSES.get(row["id"])
            out.append(
                MarketToken(
                    id=address or row["id"],
                    symbol=row.get("symbol", ""),
                    name=row.get("name", ""),
                    image=row.get("image", ""),
                    current_price=float(row.get("current_price") or 0),
                    price_change_24h=float(row.get("price_change_percentage_24h") or 0),
                    total_volume=float(row.get("total_volume") or 0),
                    address=address,
                )
            )
        logger.info("CoinGecko fallback: %d tokens", len(out))
        return out

    async def discover_tokens(self, count: int) -> list[Token]:
        results = await asyncio.gather(
            *(self._search_pairs(q) for q in _SEARCH_QUERIES), self._boosted_pairs()
        )
        pairs = [p for batch in results for p in batch]
        candidates = pairs_to_candidates(pairs)
        logger.info(
            "DexScreener: %d pairs, %d candidate tokens", len(pairs), len(candidates)
        )
        if len(candidates) < count:
            candidates = await self._coingecko_candidates()
        return select_random_tokens(candidates, count, FALLBACK_TOKENS, self._rng)

    # ------------------------------------------------------------------ #
    # Prices
    # ------------------------------------------------------------------ #

    async def _dexscreener_pairs(self, addresses: list[str]) -> list[dict[str, Any]]:
        if not addresses:
            return []
        try:
            data = await self._get_json(f"{self._dex}/latest/dex/tokens/{','.join(addresses)}")
        except httpx.HTTPError as e:
            raise PriceFeedUnavailableError(f"DexScreener unavailable: {e}") from e
        return data.get("pairs") or []

    async def fetch_prices(self, token_ids: list[str]) -> dict[str, float]:
        addresses = [i for i in token_ids if is_solana_address(i)]
        gecko_ids = [i for i in token_ids if not is_solana_address(i)]
        prices: dict[str, float] = {}

        pairs = await self._dexscreener_pairs(addresses)
        for address in addresses:
            best = _best_pair(pairs, address)
            if best is not None:
                prices[address] = _price_usd(best)

        if gecko_ids:
            try:
                data = await self._get_json(
                    f"{self._gecko}/simple/price",
                    {"ids": ",".join(gecko_ids), "vs_currencies": "usd"},
                )
            except httpx.HTTPError as e:
                raise PriceFeedUnavailableError(f"CoinGecko unavailable: {e}") from e
            for token_id, quote in data.items():
                if "usd" in quote:
                    prices[token_id] = float(quote["usd"])

        logger.info("priced %d/%d tokens", len(prices), len(token_ids))
        return prices

    async def fetch_round_token_prices(self, tokens: list[Token]) -> list[TokenQuote]:
        dex_tokens = [t for t in tokens if t.address or is_solana_address(t.id)]
        gecko_tokens = [t for t in tokens if t not in dex_tokens]
        quotes: list[TokenQuote] = []

        pairs = await self._dexscreener_pairs([t.address or t.id for t in dex_tokens])
        for token in dex_tokens:
            best = _best_pair(pairs, token.address or token.id)
            if best is None:
                quotes.append(TokenQuote(symbol=token.symbol, price=0.0, change_24h=0.0))
            else:
                quotes.append(
                    TokenQuote(
                        symbol=token.symbol,
                        price=_price_usd(best),
                        change_24h=float((best.get("priceChange") or {}).get("h24") or 0),
                    )
                )

        if gecko_tokens:
            try:
                data = await self._get_json(
                    f"{self._gecko}/coins/markets",
                    {"vs_currency": "usd", "ids": ",".join(t.id for t in gecko_tokens)},
                )
            except httpx.HTTPError as e:
                raise PriceFeedUnavailableError(f"CoinGecko unavailable: {e}") from e
            rows = {row["id"]: row for row in data}
            for token in gecko_tokens:
                row = rows.get(token.id, {})
                quotes.append(
                    TokenQuote(
                        symbol=token.symbol,
                        price=float(row.get("current_price") or 0),
                        change_24h=float(row.get("price_change_percentage_24h") or 0),
                    )
                )
        return quotes
