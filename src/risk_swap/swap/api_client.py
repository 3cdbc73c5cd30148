"""Client for the swap-aggregation API (allowance, approval and swap builders)."""

from __future__ import annotations

from typing import Any

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..domain import TransactionRequest
from ..logger import get_logger
from .constants import (
    ALLOWANCE_ENDPOINT,
    APPROVE_TRANSACTION_ENDPOINT,
    SWAP_ENDPOINT,
    TRANSIENT_STATUS_CODES,
)

logger = get_logger(__name__)


class AllowanceResponse(BaseModel):
    allowance: int

    model_config = ConfigDict(extra="ignore")


class TransactionPayload(BaseModel):
    """Transaction as returned by the approve/swap builders."""

    to: str
    data: str
    value: int = 0
    gas: int | None = None
    gas_price: int | None = Field(default=None, alias="gasPrice")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    def to_request(self, gas_limit: int | None = None) -> TransactionRequest:
        return TransactionRequest(
            to=self.to,
            data=self.data,
            value=self.value,
            gas_limit=gas_limit if gas_limit is not None else self.gas or None,
            gas_price=self.gas_price,
        )


class SwapResponse(BaseModel):
    tx: TransactionPayload
    dst_amount: str | None = Field(default=None, alias="dstAmount")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


def is_transient(exc: BaseException | None) -> bool:
    """Whether ``exc`` looks like a transient network/API condition."""
    if isinstance(exc, requests.exceptions.HTTPError):
        return (
            exc.response is not None
            and exc.response.status_code in TRANSIENT_STATUS_CODES
        )
    return isinstance(
        exc, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)
    )


def _query_value(value: Any) -> Any:
    # requests renders bools as "True"/"False"; the API expects lowercase.
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


class AggregatorAPIClient:
    """Client for the swap-aggregation HTTP API.

    Every call is a single GET with a bearer token. Nothing is retried here:
    a failed call is fatal to the workflow invocation that made it.
    """

    def __init__(
        self,
        base_url: str,
        chain_id: int,
        api_key: str,
        *,
        request_timeout: float = 10.0,
    ):
        """Initialize the client.

        Args:
            base_url: API root without chain id, e.g. https://api.1inch.dev/swap/v6.0
            chain_id: Network chain ID
            api_key: Bearer token for the API
            request_timeout: HTTP request timeout in seconds
        """
        self.chain_id = chain_id
        self.base_url = f"{base_url.rstrip('/')}/{chain_id}"
        self._request_timeout = request_timeout
        self.session = requests.Session()
        self.session.headers.update(
            {"Authorization": f"Bearer {api_key}", "accept": "application/json"}
        )

    def _get(self, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}{endpoint}"
        query = {k: _query_value(v) for k, v in params.items() if v is not None}
        logger.debug("GET %s params=%s", url, query)
        response = self.session.get(url, params=query, timeout=self._request_timeout)
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            logger.error("Aggregator request failed: %s - %s", e, response.text)
            raise

        try:
            data = response.json()
        except ValueError as e:
            raise ValueError(f"Invalid JSON from aggregator {endpoint}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid response structure from {endpoint}: {data}")
        return data

    def get_allowance(self, token_address: str, wallet_address: str) -> int:
        """Fetch the router's current allowance for ``token_address``.

        Raises:
            requests.HTTPError: If the API call fails
            ValueError: If the response has no integer ``allowance``
        """
        data = self._get(
            ALLOWANCE_ENDPOINT,
            {"tokenAddress": token_address, "walletAddress": wallet_address},
        )
        try:
            allowance = AllowanceResponse.model_validate(data).allowance
        except ValidationError as e:
            raise ValueError(f"Invalid allowance response: {data}") from e
        logger.info("Allowance returned: %d", allowance)
        return allowance

    def build_approval_transaction(
        self, token_address: str, amount: int | None = None
    ) -> TransactionPayload:
        """Fetch an approval transaction; unbounded when ``amount`` is None."""
        data = self._get(
            APPROVE_TRANSACTION_ENDPOINT,
            {
                "tokenAddress": token_address,
                "amount": str(amount) if amount is not None else None,
            },
        )
        try:
            return TransactionPayload.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid approval transaction response: {data}") from e

    def build_swap_transaction(
        self,
        src: str,
        dst: str,
        amount: int,
        sender: str,
        slippage_pct: float,
    ) -> SwapResponse:
        data = self._get(
            SWAP_ENDPOINT,
            {
                "src": src,
                "dst": dst,
                "amount": str(amount),
                "from": sender,
                "slippage": slippage_pct,
                "disableEstimate": False,
                "allowPartialFill": False,
            },
        )
        try:
            return SwapResponse.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid swap transaction response: {data}") from e
