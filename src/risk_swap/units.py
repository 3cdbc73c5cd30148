from __future__ import annotations

import asyncio
from decimal import Decimal, InvalidOperation, localcontext

from web3 import Web3

from .abi import erc20_contract
from .constants import NATIVE_DECIMALS
from .domain import Asset
from .errors import DecimalQueryFailed, ValidationError
from .logger import get_logger

logger = get_logger(__name__)

# Enough digits for uint256 amounts at any realistic decimal precision.
_PRECISION = 96


def parse_units(amount: str | Decimal, decimals: int) -> int:
    """Convert a human-readable decimal amount to integer base units.

    Args:
        amount: Decimal amount such as ``"1.5"``.
        decimals: Token decimal precision.

    Returns:
        ``amount * 10**decimals`` as an exact integer.

    Raises:
        ValidationError: If ``amount`` is not a finite non-negative decimal or
            has more fractional digits than ``decimals`` allows.
    """
    try:
        value = Decimal(str(amount))
    except InvalidOperation as e:
        raise ValidationError(f"Invalid amount {amount!r}") from e
    if not value.is_finite() or value < 0:
        raise ValidationError(f"Invalid amount {amount!r}")

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        scaled = value.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise ValidationError(
                f"Amount {amount} has more than {decimals} fractional digits"
            )
        return int(scaled)


def format_units(raw: int, decimals: int) -> str:
    """Convert integer base units to a decimal string (inverse of ``parse_units``).

    Always keeps at least one fractional digit, e.g. ``format_units(10**18, 18) == "1.0"``.
    """
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        value = Decimal(int(raw)).scaleb(-decimals)
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0")
        if text.endswith("."):
            text += "0"
    else:
        text += ".0"
    return text


async def fetch_token_decimals(w3: Web3, token_address: str) -> int:
    """Query ``decimals()`` on an ERC20 contract.

    Raises:
        DecimalQueryFailed: If the contract call errors.
    """
    contract = erc20_contract(w3, token_address)
    try:
        decimals = await asyncio.to_thread(contract.functions.decimals().call)
    except Exception as e:
        raise DecimalQueryFailed(
            f"Failed to read decimals() from {token_address}", cause=e
        ) from e
    return int(decimals)


async def resolve_decimals(w3: Web3, asset: Asset) -> int:
    if asset.is_native:
        return NATIVE_DECIMALS
    if asset.decimals is not None:
        return asset.decimals
    return await fetch_token_decimals(w3, asset.address)


async def to_base_units(amount: str | Decimal, asset: Asset, w3: Web3) -> str:
    """Convert ``amount`` of ``asset`` into its base-unit integer string.

    The native asset always uses 18 decimals without a network call; tokens
    have their precision read from the contract.
    """
    decimals = await resolve_decimals(w3, asset)
    base_units = parse_units(amount, decimals)
    logger.debug(
        "Converted %s %s -> %d base units (%d decimals)",
        amount,
        asset.symbol,
        base_units,
        decimals,
    )
    return str(base_units)
