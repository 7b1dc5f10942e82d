from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Storage: "memory" for local dev, "redis" for anything shared across processes
    STORAGE_BACKEND: str = "memory"
    REDIS_URL: str = "redis://localhost:6379/0"
    KEY_PREFIX: str = "dice"

    # Admin: unset means every privileged route answers 401
    ADMIN_PASSWORD: str | None = None

    # Round timing (epoch milliseconds everywhere)
    ROUND_DURATION_MS: int = 15 * 60 * 1000
    STAKING_WINDOW_MS: int = 2 * 60 * 1000
    PREVIEW_WINDOW_MS: int = 2 * 60 * 1000
    TOKENS_PER_ROUND: int = 6

    # Economics (SOL)
    MIN_STAKE: float = 0.1
    MAX_STAKE: float = 5.0
    FEE_RATE: float = 0.10
    MIN_DISTINCT_WALLETS: int = 2

    # Retention
    ACTIVITY_FEED_SIZE: int = 50
    HISTORY_SIZE: int = 100
    ADVANCE_LOCK_TTL_MS: int = 60_000

    # Payouts
    SOLANA_RPC_URL: str = "https://api.devnet.solana.com"
    ESCROW_WALLET_PRIVATE_KEY: str | None = None
    PAYOUT_SEND_DELAY_MS: int = 500
    MIN_PAYOUT_AMOUNT: float = 0.001
    PAYOUT_FEE_BUFFER: float = 0.001

    # Price feed
    DEXSCREENER_API_URL: str = "https://api.dexscreener.com"
    COINGECKO_API_URL: str = "https://api.coingecko.com/api/v3"
    PRICE_FEED_TIMEOUT_S: float = 10.0

    # App
    APP_NAME: str = "Degen Dice"
    DEBUG: bool = False


settings = Settings()
