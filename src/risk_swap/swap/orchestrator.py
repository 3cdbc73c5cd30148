"""Allowance -> approval -> swap state machine against the aggregation API."""

from __future__ import annotations

import asyncio
from enum import Enum

import requests

from ..domain import AllowanceState, SwapRequest, TransactionRequest
from ..errors import (
    AllowanceCheckFailed,
    ApprovalFailed,
    BroadcastFailed,
    InsufficientAllowance,
    SwapBuildFailed,
)
from ..logger import get_logger
from .api_client import AggregatorAPIClient, is_transient
from .signer import TransactionSigner

logger = get_logger(__name__)

_API_ERRORS = (requests.exceptions.RequestException, ValueError)


def _log_api_error(exc: BaseException) -> None:
    if is_transient(exc):
        logger.warning("Transient aggregator error, a re-run may succeed: %s", exc)
    else:
        logger.error("Aggregator error: %s", exc)


class SwapStage(str, Enum):
    CHECK_ALLOWANCE = "check_allowance"
    BUILD_APPROVAL = "build_approval"
    SIGN_SEND_APPROVAL = "sign_send_approval"
    BUILD_SWAP = "build_swap"
    SIGN_SEND_SWAP = "sign_send_swap"
    AWAIT_CONFIRM = "await_confirm"
    DONE = "done"


class SwapOrchestrator:
    """Executes one swap: allowance check, conditional approval, swap.

    Nothing is retried. A caller wanting a retry must call ``execute_swap``
    again, which re-reads the allowance since on-chain state may have moved.
    """

    def __init__(
        self,
        client: AggregatorAPIClient,
        signer: TransactionSigner,
        *,
        approve_exact_amount: bool = True,
    ):
        self.client = client
        self.signer = signer
        self.approve_exact_amount = approve_exact_amount
        self.stage = SwapStage.CHECK_ALLOWANCE

    def _enter(self, stage: SwapStage) -> None:
        logger.debug("Swap stage: %s -> %s", self.stage.value, stage.value)
        self.stage = stage

    async def check_allowance(self, request: SwapRequest) -> AllowanceState:
        self._enter(SwapStage.CHECK_ALLOWANCE)
        token = request.from_asset.address
        try:
            allowance = await asyncio.to_thread(
                self.client.get_allowance, token, request.wallet_address
            )
        except _API_ERRORS as e:
            _log_api_error(e)
            raise AllowanceCheckFailed(
                f"Allowance check failed for {request.from_asset.symbol}", cause=e
            ) from e
        return AllowanceState(
            token_address=token,
            owner_address=request.wallet_address,
            current_allowance=allowance,
        )

    async def require_allowance(self, request: SwapRequest) -> None:
        """Raise InsufficientAllowance unless the router may spend the trade amount."""
        if request.from_asset.is_native:
            logger.debug("Native source asset; skipping allowance check")
            return
        state = await self.check_allowance(request)
        if not state.covers(request.amount):
            raise InsufficientAllowance(state.current_allowance, request.amount)
        logger.info("Sufficient allowance. No approval needed.")

    async def approve(self, request: SwapRequest) -> str:
        """Build, sign and confirm an approval transaction. Returns its hash."""
        self._enter(SwapStage.BUILD_APPROVAL)
        amount = request.amount if self.approve_exact_amount else None
        try:
            payload = await asyncio.to_thread(
                self.client.build_approval_transaction,
                request.from_asset.address,
                amount,
            )
        except _API_ERRORS as e:
            _log_api_error(e)
            raise ApprovalFailed("Failed to build approval transaction", cause=e) from e

        unsigned = payload.to_request()
        try:
            gas = await self.signer.estimate_gas(unsigned)
        except Exception as e:
            raise ApprovalFailed("Gas estimation for approval failed", cause=e) from e
        logger.info("Estimated gas for approval: %d", gas)

        self._enter(SwapStage.SIGN_SEND_APPROVAL)
        approval_tx = TransactionRequest(
            to=unsigned.to,
            data=unsigned.data,
            value=unsigned.value,
            gas_limit=gas,
            gas_price=unsigned.gas_price,
        )
        try:
            tx_hash = await self.signer.send(approval_tx, stage="approval")
            self._enter(SwapStage.AWAIT_CONFIRM)
            outcome = await self.signer.wait_for_confirmation(
                tx_hash, stage="approval"
            )
        except BroadcastFailed as e:
            raise ApprovalFailed("Approval transaction failed", cause=e) from e

        logger.info("Approval TX hash: %s", outcome.hash)
        return outcome.hash

    async def build_swap(self, request: SwapRequest) -> TransactionRequest:
        self._enter(SwapStage.BUILD_SWAP)
        try:
            response = await asyncio.to_thread(
                self.client.build_swap_transaction,
                request.from_asset.address,
                request.to_asset.address,
                request.amount,
                request.wallet_address,
                request.slippage_bps / 100,
            )
        except _API_ERRORS as e:
            _log_api_error(e)
            raise SwapBuildFailed("Failed to build swap transaction", cause=e) from e
        logger.info("Swap TX payload received (dstAmount=%s)", response.dst_amount)
        return response.tx.to_request()

    async def execute_swap(self, request: SwapRequest) -> str:
        """Run the full state machine and return the confirmed swap hash.

        Raises:
            AllowanceCheckFailed, ApprovalFailed, SwapBuildFailed,
            BroadcastFailed, ConfirmationTimeout
        """
        logger.info(
            "Starting token swap: %s -> %s | amount (base units): %s",
            request.from_asset.symbol,
            request.to_asset.symbol,
            request.amount_base_units,
        )

        try:
            await self.require_allowance(request)
        except InsufficientAllowance as signal:
            logger.warning("Insufficient allowance (%s). Approval required.", signal)
            await self.approve(request)

        swap_tx = await self.build_swap(request)

        self._enter(SwapStage.SIGN_SEND_SWAP)
        tx_hash = await self.signer.send(swap_tx, stage="swap")
        self._enter(SwapStage.AWAIT_CONFIRM)
        outcome = await self.signer.wait_for_confirmation(tx_hash, stage="swap")

        self._enter(SwapStage.DONE)
        logger.info("Swap TX hash: %s", outcome.hash)
        return outcome.hash
