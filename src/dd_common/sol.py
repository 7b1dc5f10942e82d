"""SOL amount and address helpers.

Stakes and payouts are plain float SOL, matching what wallets submit.
Only the transport converts to integer lamports, rounding down so the
escrow never sends more than was computed.
"""

import math
import re

LAMPORTS_PER_SOL = 1_000_000_000

_SOLANA_ADDRESS_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


def is_valid_solana_address(address: str) -> bool:
    """Base58 alphabet, 32-44 characters. Format check only, no curve check."""
    return bool(address) and _SOLANA_ADDRESS_RE.match(address) is not None


def sol_to_lamports(sol: float) -> int:
    return math.floor(sol * LAMPORTS_PER_SOL)


def lamports_to_sol(lamports: int) -> float:
    return lamports / LAMPORTS_PER_SOL


def shorten_address(address: str, chars: int = 4) -> str:
    """'7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU' -> '7xKX...gAsU'."""
    if not address:
        return ""
    return f"{address[:chars]}...{address[-chars:]}"
