"""Process-wide collaborators and the FastAPI dependencies that hand them out.

Built lazily on first use so importing the app does not open sockets.
Tests swap any of these via ``app.dependency_overrides``.
"""

from config.settings import settings
from src.dd_admin.application.service import AdminService
from src.dd_common.redis_client import get_redis
from src.dd_payout.infrastructure.solana_transport import SolanaTransport
from src.dd_pricing.infrastructure.dexscreener import DexScreenerPriceFeed
from src.dd_round.application.orchestrator import RoundAdvancementService
from src.dd_round.application.service import RoundQueryService
from src.dd_round.domain.repository import KeyValueBackend
from src.dd_round.infrastructure.kv_backend import create_backend
from src.dd_round.infrastructure.persistence import RoundStore
from src.dd_settlement.application.service import SettlementService
from src.dd_staking.application.service import StakeAdmissionService

_backend: KeyValueBackend | None = None
_store: RoundStore | None = None
_price_feed: DexScreenerPriceFeed | None = None
_transport: SolanaTransport | None = None


def get_backend() -> KeyValueBackend:
    global _backend  # noqa: PLW0603
    if _backend is None:
        _backend = create_backend(settings.STORAGE_BACKEND, get_redis)
    return _backend


def get_round_store() -> RoundStore:
    global _store  # noqa: PLW0603
    if _store is None:
        _store = RoundStore(get_backend())
    return _store


def get_price_feed() -> DexScreenerPriceFeed:
    global _price_feed  # noqa: PLW0603
    if _price_feed is None:
        _price_feed = DexScreenerPriceFeed()
    return _price_feed


def get_transport() -> SolanaTransport:
    global _transport  # noqa: PLW0603
    if _transport is None:
        _transport = SolanaTransport()
    return _transport


def get_settlement_service() -> SettlementService:
    return SettlementService(get_round_store(), get_price_feed(), get_transport())


def get_query_service() -> RoundQueryService:
    return RoundQueryService(get_round_store(), get_price_feed())


def get_advancement_service() -> RoundAdvancementService:
    return RoundAdvancementService(
        get_round_store(), get_price_feed(), get_settlement_service()
    )


def get_stake_service() -> StakeAdmissionService:
    return StakeAdmissionService(get_round_store())


def get_admin_service() -> AdminService:
    return AdminService(
        get_round_store(), get_price_feed(), get_transport(), get_settlement_service()
    )


async def close_clients() -> None:
    """Shutdown hook: release HTTP and RPC clients that were actually created."""
    global _backend, _store, _price_feed, _transport  # noqa: PLW0603
    if _price_feed is not None:
        await _price_feed.aclose()
    if _transport is not None:
        await _transport.aclose()
    _backend = _store = _price_feed = _transport = None
