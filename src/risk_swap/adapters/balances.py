from __future__ import annotations

import asyncio
from collections.abc import Mapping

import backoff
import requests
from web3 import Web3
from web3.exceptions import ProviderConnectionError

from ..abi import erc20_contract
from ..constants import BALANCE_ERROR_MARKER, NATIVE_ASSET, NATIVE_DECIMALS
from ..domain import BalanceSnapshot
from ..errors import BalanceReadError, ValidationError
from ..logger import get_logger
from ..units import format_units

logger = get_logger(__name__)

# Errors meaning the node itself is unreachable rather than one asset misbehaving.
NODE_UNREACHABLE_ERRORS = (
    ProviderConnectionError,
    ConnectionError,
    requests.exceptions.ConnectionError,
)


class BalanceReader:
    """Reads the native balance and every registered token balance of a wallet."""

    def __init__(
        self,
        w3: Web3,
        registry: Mapping[str, str | None],
        *,
        max_concurrent_reads: int = 5,
    ):
        """Initialize the reader.

        Args:
            w3: Web3 instance connected to the node
            registry: symbol -> contract address (native sentinel for the native asset;
                None for assets not deployed on this network)
            max_concurrent_reads: Upper bound on in-flight RPC calls
        """
        self.w3 = w3
        self.registry = {
            symbol: address for symbol, address in registry.items() if address
        }
        native = [
            symbol
            for symbol, address in self.registry.items()
            if address.lower() == NATIVE_ASSET.lower()
        ]
        if len(native) != 1:
            raise ValueError("Asset registry must contain exactly one native asset")
        self.native_symbol = native[0]
        self._rpc_sem = asyncio.Semaphore(max_concurrent_reads)

    @backoff.on_exception(
        backoff.expo, ProviderConnectionError, max_tries=3, jitter=backoff.full_jitter
    )
    async def _rpc(self, fn, *args, **kwargs):
        """Throttle + backoff a single RPC."""
        async with self._rpc_sem:
            return await asyncio.to_thread(fn, *args, **kwargs)

    async def _read_native(self, wallet: str) -> str:
        raw = await self._rpc(self.w3.eth.get_balance, wallet)
        return format_units(int(raw), NATIVE_DECIMALS)

    async def _read_token(self, wallet: str, token_address: str) -> str:
        contract = erc20_contract(self.w3, token_address)
        raw, decimals = await asyncio.gather(
            self._rpc(contract.functions.balanceOf(wallet).call),
            self._rpc(contract.functions.decimals().call),
        )
        return format_units(int(raw), int(decimals))

    async def read_balances(
        self, wallet_address: str, chain_id: int
    ) -> BalanceSnapshot:
        """Read all registered balances for ``wallet_address``.

        A single token failing is recorded as ``"Error"`` for that symbol and
        the rest are still read.

        Raises:
            ValidationError: If ``wallet_address`` is not a valid address
            BalanceReadError: If the node is unreachable for the native read
        """
        if not Web3.is_address(wallet_address):
            raise ValidationError(f"Invalid wallet address: {wallet_address!r}")
        wallet = Web3.to_checksum_address(wallet_address)

        logger.info("Fetching balances for wallet: %s", wallet)
        balances: dict[str, str] = {}

        try:
            balances[self.native_symbol] = await self._read_native(wallet)
            logger.info("%s: %s", self.native_symbol, balances[self.native_symbol])
        except NODE_UNREACHABLE_ERRORS as e:
            raise BalanceReadError(
                f"Node unreachable while reading {self.native_symbol} balance",
                cause=e,
            ) from e
        except Exception as e:
            logger.warning(
                "Failed to fetch native %s balance: %s", self.native_symbol, e
            )
            balances[self.native_symbol] = BALANCE_ERROR_MARKER

        tokens = [
            (symbol, address)
            for symbol, address in self.registry.items()
            if symbol != self.native_symbol
        ]
        results = await asyncio.gather(
            *[self._read_token(wallet, address) for _, address in tokens],
            return_exceptions=True,
        )

        for (symbol, _), result in zip(tokens, results):
            if isinstance(result, BaseException):
                logger.warning("Failed to fetch balance for %s: %s", symbol, result)
                balances[symbol] = BALANCE_ERROR_MARKER
            else:
                logger.info("%s: %s", symbol, result)
                balances[symbol] = result

        ordered = {symbol: balances[symbol] for symbol in self.registry}
        return BalanceSnapshot(
            wallet_address=wallet, chain_id=chain_id, balances=ordered
        )
