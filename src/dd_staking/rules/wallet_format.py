from src.dd_common.errors import InvalidWalletError
from src.dd_common.sol import is_valid_solana_address


def check_wallet_format(wallet: str) -> None:
    """Raise InvalidWalletError unless ``wallet`` is a base58 Solana address."""
    if not is_valid_solana_address(wallet):
        raise InvalidWalletError()
