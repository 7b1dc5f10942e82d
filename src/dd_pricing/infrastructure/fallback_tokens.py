"""Static token data used when discovery comes back short."""

from src.dd_round.domain.models import Token

_IMAGE = "https://dd.dexscreener.com/ds-data/tokens/solana/{}.png"


def _token(address: str, symbol: str, name: str, color: str) -> Token:
    return Token(
        id=address,
        symbol=symbol,
        name=name,
        image=_IMAGE.format(address),
        color=color,
        address=address,
    )


FALLBACK_TOKENS: list[Token] = [
    _token("DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263", "BONK", "Bonk", "#F7931A"),
    _token("EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm", "WIF", "dogwifhat", "#C4A484"),
    _token("7GCihgDB8fe6KNjn2MYtkzZcRjQy3t9GHdC8uHYmW2hr", "POPCAT", "Popcat", "#FFB6C1"),
    _token("jtojtomepa8beP8AuQc6eXt5FriJwfFMwQx2v2f9mCL", "JTO", "Jito", "#8B5CF6"),
    _token("JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN", "JUP", "Jupiter", "#4ECDC4"),
    _token("4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R", "RAY", "Raydium", "#FF6B6B"),
]

# CoinGecko id -> Solana mint, for tokens the CoinGecko fallback may return
KNOWN_TOKEN_ADDRESSES: dict[str, str] = {
    "bonk": "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263",
    "dogwifcoin": "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm",
    "popcat": "7GCihgDB8fe6KNjn2MYtkzZcRjQy3t9GHdC8uHYmW2hr",
    "jito-governance-token": "jtojtomepa8beP8AuQc6eXt5FriJwfFMwQx2v2f9mCL",
    "jupiter-exchange-solana": "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN",
    "raydium": "4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R",
    "pyth-network": "HZ1JovNiVvGrGNiiYvEozEVgZ58xaU3RKwX8eACQBCt3",
    "helium": "hntyVP6YFm1Hg25TN9WGLqM12b8TQmcknKrdu1oxWux",
    "render-token": "rndrizKT3MK1iimdxRdWabcF7Zg7AR5T4nud4EkHBof",
    "orca": "orcaEKTdK7LKz57vaAYr9QeNsVEPfiu6QeMU1kektZE",
    "marinade-staked-sol": "mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So",
    "solend": "SLNDpmoWTVADgEdndyvWzroNL7zSi1dF9PC3xHGtPwp",
    "magic-eden": "MEAQbSz8SdApMGw8N1FfAdNr4Y7vNKhMNXrRFvCUNMo",
}
