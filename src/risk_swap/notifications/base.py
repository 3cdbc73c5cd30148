"""Notification payloads and sink interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Mapping


@dataclass(frozen=True)
class LinkButton:
    text: str
    url: str


@dataclass(frozen=True)
class Notification:
    """A Markdown message with optional inline link buttons."""

    text: str
    buttons: tuple[LinkButton, ...] = field(default_factory=tuple)


def swap_success_message(
    amount: object,
    from_symbol: str,
    to_symbol: str,
    balances: Mapping[str, str],
    tx_url: str,
) -> Notification:
    balance_lines = "\n".join(
        f"• *{symbol}*: {value}" for symbol, value in balances.items()
    )
    text = (
        f"*Token Swap Alert:* {amount} {from_symbol} → {to_symbol}\n\n"
        f"*Balances:*\n{balance_lines}"
    )
    return Notification(text=text, buttons=(LinkButton("View Transaction", tx_url),))


def swap_failure_message(
    risk_pct: float, from_symbol: str, to_symbol: str, stage: str, reason: str
) -> Notification:
    return Notification(
        text=(
            f"*Swap Failed:* {risk_pct} {from_symbol} → {to_symbol}\n"
            f"*Stage:* {stage}\n"
            f"*Reason:* {reason or 'Unknown error'}"
        )
    )


class Notifier(ABC):
    """Abstract sink for notifications."""

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    async def send(self, notification: Notification) -> None:
        """Deliver one notification. May raise; callers isolate failures."""
