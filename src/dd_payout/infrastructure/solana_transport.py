"""SolanaTransport — DisbursementTransport backed by an escrow keypair.

Sends plain SystemProgram SOL transfers and waits for "confirmed".
The escrow secret is accepted as base58 or as a JSON byte array (the
format ``solana-keygen`` writes).
"""

import json
import logging

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.types import TxOpts
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction

from config.settings import settings
from src.dd_common.sol import lamports_to_sol, shorten_address, sol_to_lamports
from src.dd_payout.domain.models import TransferReceipt

logger = logging.getLogger("dd.payout")


def parse_escrow_keypair(secret: str | None) -> Keypair | None:
    """Parse a base58 or JSON-array secret key; None if unset or malformed."""
    if not secret:
        return None
    try:
        if secret.strip().startswith("["):
            return Keypair.from_bytes(bytes(json.loads(secret)))
        return Keypair.from_base58_string(secret.strip())
    except ValueError as e:
        logger.error("failed to parse escrow private key: %s", e)
        return None


class SolanaTransport:
    def __init__(
        self,
        *,
        rpc_url: str = settings.SOLANA_RPC_URL,
        secret_key: str | None = settings.ESCROW_WALLET_PRIVATE_KEY,
    ) -> None:
        self._rpc_url = rpc_url
        self._keypair = parse_escrow_keypair(secret_key)
        self._client = AsyncClient(rpc_url, commitment=Confirmed)

    @property
    def is_configured(self) -> bool:
        return self._keypair is not None

    @property
    def address(self) -> str | None:
        return str(self._keypair.pubkey()) if self._keypair else None

    @property
    def rpc_url(self) -> str:
        return self._rpc_url

    async def aclose(self) -> None:
        await self._client.close()

    async def balance(self) -> float:
        if self._keypair is None:
            return 0.0
        resp = await self._client.get_balance(self._keypair.pubkey(), commitment=Confirmed)
        return lamports_to_sol(resp.value)

    async def pay(self, wallet: str, amount: float) -> TransferReceipt:
        if self._keypair is None:
            return TransferReceipt(success=False, error="Automated payouts not configured")
        try:
            recipient = Pubkey.from_string(wallet)
            ix = transfer(
                TransferParams(
                    from_pubkey=self._keypair.pubkey(),
                    to_pubkey=recipient,
                    lamports=sol_to_lamports(amount),
                )
            )
            blockhash = (await self._client.get_latest_blockhash()).value.blockhash
            message = Message.new_with_blockhash([ix], self._keypair.pubkey(), blockhash)
            tx = Transaction([self._keypair], message, blockhash)
            sent = await self._client.send_transaction(
                tx, opts=TxOpts(preflight_commitment=Confirmed, max_retries=3)
            )
            await self._client.confirm_transaction(sent.value, commitment=Confirmed)
        except Exception as e:  # noqa: BLE001 -- any transfer failure is reported per recipient
            logger.error("payout to %s failed: %s", shorten_address(wallet), e)
            return TransferReceipt(success=False, error=str(e) or type(e).__name__)

        signature = str(sent.value)
        logger.info(
            "payout sent: %.6f SOL to %s (tx: %s)", amount, shorten_address(wallet), signature
        )
        return TransferReceipt(success=True, reference=signature)
