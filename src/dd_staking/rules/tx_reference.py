from src.dd_common.errors import InvalidTxReferenceError

# Loose sanity check only; the transfer itself is never looked up on chain.
MIN_TX_REFERENCE_LENGTH = 32


def check_tx_reference(tx_signature: str | None) -> None:
    if not tx_signature or len(tx_signature) < MIN_TX_REFERENCE_LENGTH:
        raise InvalidTxReferenceError()
