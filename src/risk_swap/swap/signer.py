"""Transaction signing, broadcast and confirmation for a single local account."""

from __future__ import annotations

import asyncio
import weakref
from typing import Any

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import TimeExhausted

from ..domain import TransactionOutcome, TransactionRequest
from ..errors import BroadcastFailed, ConfirmationTimeout
from ..logger import get_logger

logger = get_logger(__name__)

# One lock per account address per event loop: nonce assignment and broadcast
# for the same account must never interleave.
_NONCE_LOCKS: weakref.WeakKeyDictionary[
    asyncio.AbstractEventLoop, dict[str, asyncio.Lock]
] = weakref.WeakKeyDictionary()


def _nonce_lock(address: str) -> asyncio.Lock:
    locks = _NONCE_LOCKS.setdefault(asyncio.get_running_loop(), {})
    key = address.lower()
    lock = locks.get(key)
    if lock is None:
        lock = locks[key] = asyncio.Lock()
    return lock


class TransactionSigner:
    """Sole holder of the private key; signs, broadcasts and awaits receipts."""

    def __init__(
        self,
        w3: Web3,
        private_key: str,
        chain_id: int,
        *,
        confirmation_timeout: float = 180.0,
    ):
        self.w3 = w3
        self.chain_id = chain_id
        self.confirmation_timeout = confirmation_timeout
        self._account: LocalAccount = Account.from_key(private_key)  # pyrefly: ignore

    @property
    def address(self) -> str:
        return self._account.address

    async def estimate_gas(self, tx: TransactionRequest) -> int:
        params = {
            "from": self.address,
            "to": self.w3.to_checksum_address(tx.to),
            "data": tx.data,
            "value": tx.value,
        }
        gas = await asyncio.to_thread(self.w3.eth.estimate_gas, params)
        return int(gas)

    def _build_tx_dict(
        self, tx: TransactionRequest, nonce: int, gas: int, gas_price: int
    ) -> dict[str, Any]:
        return {
            "from": self.address,
            "to": self.w3.to_checksum_address(tx.to),
            "data": tx.data,
            "value": tx.value,
            "gas": gas,
            "gasPrice": gas_price,
            "nonce": nonce,
            "chainId": self.chain_id,
        }

    async def send(self, tx: TransactionRequest, *, stage: str = "broadcast") -> str:
        """Sign and broadcast ``tx``, returning the transaction hash.

        Nonce assignment and broadcast are serialized per account.

        Raises:
            BroadcastFailed: If gas estimation, signing or broadcast fails.
            ConfirmationTimeout: If cancelled after signing; carries the signed hash.
        """
        async with _nonce_lock(self.address):
            try:
                gas = tx.gas_limit
                if gas is None:
                    gas = await self.estimate_gas(tx)
                gas_price = tx.gas_price
                if gas_price is None:
                    gas_price = int(
                        await asyncio.to_thread(lambda: self.w3.eth.gas_price)
                    )
                nonce = await asyncio.to_thread(
                    self.w3.eth.get_transaction_count, self.address, "pending"
                )
                signed = self._account.sign_transaction(
                    self._build_tx_dict(tx, nonce, gas, gas_price)
                )
            except Exception as e:
                raise BroadcastFailed(
                    f"Failed to send transaction to {tx.to}", stage=stage, cause=e
                ) from e

            # Past this point the transaction may land even if we are cancelled.
            signed_hash = Web3.to_hex(signed.hash)
            broadcast = asyncio.ensure_future(
                asyncio.to_thread(
                    self.w3.eth.send_raw_transaction, signed.raw_transaction
                )
            )
            try:
                raw_hash = await asyncio.shield(broadcast)
            except asyncio.CancelledError:
                logger.error(
                    "Cancelled while broadcasting %s; it may still be mined",
                    signed_hash,
                )
                raise ConfirmationTimeout(
                    f"Cancelled while broadcasting {signed_hash}",
                    signed_hash,
                    stage=stage,
                ) from None
            except Exception as e:
                raise BroadcastFailed(
                    f"Failed to send transaction to {tx.to}", stage=stage, cause=e
                ) from e

        tx_hash = Web3.to_hex(raw_hash)
        logger.info("Sent transaction %s to %s (nonce %d)", tx_hash, tx.to, nonce)
        return tx_hash

    async def wait_for_confirmation(
        self, tx_hash: str, *, stage: str = "await_confirmation"
    ) -> TransactionOutcome:
        """Block until ``tx_hash`` has one confirmation.

        Cancellation while waiting does not abandon the transaction silently:
        it surfaces as ConfirmationTimeout carrying the hash.

        Raises:
            ConfirmationTimeout: If no receipt arrives in time or the wait is cancelled.
            BroadcastFailed: If the transaction was mined but reverted.
        """
        logger.info("Waiting for confirmation of %s...", tx_hash)
        waiter = asyncio.ensure_future(
            asyncio.to_thread(
                self.w3.eth.wait_for_transaction_receipt,
                tx_hash,
                timeout=self.confirmation_timeout,
            )
        )
        try:
            receipt = await asyncio.shield(waiter)
        except TimeExhausted as e:
            raise ConfirmationTimeout(
                f"Transaction {tx_hash} not confirmed within {self.confirmation_timeout}s",
                tx_hash,
                stage=stage,
                cause=e,
            ) from e
        except asyncio.CancelledError:
            logger.error(
                "Cancelled while awaiting %s; the transaction remains broadcast",
                tx_hash,
            )
            raise ConfirmationTimeout(
                f"Cancelled while awaiting confirmation of {tx_hash}",
                tx_hash,
                stage=stage,
            ) from None

        if receipt.get("status", 1) == 0:
            raise BroadcastFailed(f"Transaction {tx_hash} reverted", stage=stage)

        logger.info("Transaction confirmed: %s", tx_hash)
        return TransactionOutcome(hash=tx_hash, confirmed=True)
