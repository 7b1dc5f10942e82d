"""Test doubles and builders shared by unit and integration tests."""

from unittest.mock import AsyncMock, MagicMock

from src.dd_payout.domain.models import TransferReceipt
from src.dd_round.domain.models import Token

T0 = 1_700_000_000_000
MINUTE = 60_000

WALLET_A = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"
WALLET_B = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"
WALLET_C = "HN7cABqLq46Es1jh92dQQisAq662SmxELLLsHHe4YWrH"
TX_SIG = "5" * 88
ADMIN_PASSWORD = "letmein"


class FakeClock:
    """Callable epoch-ms clock the test moves by hand."""

    def __init__(self, now: int = T0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeTransport:
    """In-memory DisbursementTransport: records sends, fails listed wallets."""

    def __init__(
        self,
        *,
        configured: bool = True,
        escrow_balance: float = 1_000.0,
        failing_wallets: set[str] | None = None,
    ) -> None:
        self.configured = configured
        self.escrow_balance = escrow_balance
        self.failing_wallets = failing_wallets or set()
        self.sent: list[tuple[str, float]] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    @property
    def address(self) -> str | None:
        return "Escrow1111111111111111111111111111111111111" if self.configured else None

    @property
    def rpc_url(self) -> str:
        return "https://rpc.test"

    async def pay(self, wallet: str, amount: float) -> TransferReceipt:
        if wallet in self.failing_wallets:
            return TransferReceipt(success=False, error="blockhash not found")
        self.sent.append((wallet, amount))
        return TransferReceipt(success=True, reference=f"sig_{len(self.sent)}")

    async def balance(self) -> float:
        return self.escrow_balance


def make_tokens(*symbols: str) -> list[Token]:
    return [
        Token(
            id=f"id-{s.lower()}",
            symbol=s,
            name=s.title(),
            image=f"https://img.test/{s}.png",
            color="#FFFFFF",
        )
        for s in symbols
    ]


def scripted_redis(
    values: dict[str, str] | None = None,
    *,
    watched_reads: list[str | None] | None = None,
    exec_results: list | None = None,
) -> tuple[MagicMock, MagicMock]:
    """Mock redis client and its transaction pipeline.

    Plain GET/SET go to ``values``. Inside WATCH, each GET returns the next
    item of ``watched_reads`` and each EXEC the next item of ``exec_results``
    (exception instances are raised, so ``WatchError()`` simulates another
    writer committing between WATCH and EXEC).
    """
    values = {} if values is None else values

    async def _get(key: str) -> str | None:
        return values.get(key)

    async def _set(key: str, value: str, **kwargs) -> bool:
        values[key] = value
        return True

    client = MagicMock()
    client.get = AsyncMock(side_effect=_get)
    client.set = AsyncMock(side_effect=_set)
    client.eval = AsyncMock(return_value=1)

    pipe = MagicMock()
    pipe.__aenter__.return_value = pipe
    pipe.__aexit__.return_value = False
    pipe.watch = AsyncMock()
    pipe.unwatch = AsyncMock()
    pipe.get = AsyncMock(side_effect=list(watched_reads or []))
    pipe.execute = AsyncMock(side_effect=list(exec_results or []))
    client.pipeline = MagicMock(return_value=pipe)
    return client, pipe
