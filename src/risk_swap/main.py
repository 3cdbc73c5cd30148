"""CLI entrypoint for risk-swap."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Annotated, Any

import typer

from .logger import get_logger, setup_logging
from .notifications import NotificationQueue, TelegramNotifier
from .settings import Network, SwapSettings
from .state import AppState, build_chain_context

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Volatility-adjusted token swaps through a swap-aggregation API.",
)


def _build_logger():
    """Build the application logger."""
    return get_logger("risk_swap")


def _build_state(ctx: typer.Context, **overrides: Any) -> AppState:
    """Load settings (CLI > ENV > FILE), configure logging and the chain context."""
    init_kwargs: dict[str, Any] = dict(ctx.obj or {})
    init_kwargs.update({k: v for k, v in overrides.items() if v is not None})

    try:
        settings = SwapSettings(**init_kwargs)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    setup_logging(settings.log_level)
    state = AppState(settings=settings, logger=_build_logger())

    try:
        state.chain = build_chain_context(settings)
    except ValueError as e:
        raise typer.BadParameter(
            str(e),
            param_hint=["RISK_SWAP_WALLET_ADDRESS", "RISK_SWAP_PRIVATE_KEY"],
        ) from e
    return state


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [risk_swap] table).",
        ),
    ] = None,
    network: Annotated[
        Network | None,
        typer.Option(
            "--network", "-n", help="Network to use (mainnet, base, arbitrum)."
        ),
    ] = None,
    rpc_url: Annotated[
        str | None,
        typer.Option("--rpc-url", help="RPC endpoint; overrides the network default."),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config (with secrets redacted) and exit.",
        ),
    ] = False,
):
    """Global options shared by every command."""
    if config_path:
        os.environ["RISK_SWAP_CONFIG"] = str(config_path)

    init_kwargs: dict[str, Any] = {}
    if network is not None:
        init_kwargs["network"] = network
    if rpc_url is not None:
        init_kwargs["rpc_url"] = rpc_url
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()
    ctx.obj = init_kwargs

    if show_config:
        settings = SwapSettings(**init_kwargs)
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


@app.command()
def balances(
    ctx: typer.Context,
    wallet_address: Annotated[
        str | None,
        typer.Option(
            "--wallet", help="Wallet to read; defaults to the configured one."
        ),
    ] = None,
    as_json: Annotated[
        bool, typer.Option("--json", help="Print raw JSON instead of a table.")
    ] = False,
):
    """Show native and token balances for the wallet."""
    from .formatter import format_balances_table
    from .pipeline import read_wallet_balances

    state = _build_state(ctx, wallet_address=wallet_address)
    try:
        snapshot = asyncio.run(read_wallet_balances(state))
    except Exception as e:
        state.logger.error("Error retrieving balances: %s", e)
        typer.echo(
            json.dumps(
                {
                    "success": False,
                    "message": "Failed to retrieve wallet balances.",
                    "error": str(e),
                },
                indent=2,
            )
        )
        raise typer.Exit(code=1) from e

    state.logger.info("Retrieved balances for wallet %s", snapshot.wallet_address)
    if as_json:
        typer.echo(json.dumps({"success": True, **snapshot.to_dict()}, indent=2))
    else:
        format_balances_table(snapshot)


@app.command()
def swap(
    ctx: typer.Context,
    from_symbol: Annotated[str, typer.Argument(help="Symbol to sell, e.g. ETH.")],
    to_symbol: Annotated[str, typer.Argument(help="Symbol to buy, e.g. USDT.")],
    risk_pct: Annotated[
        float | None,
        typer.Option(
            "--risk-pct",
            help="Fraction of the source balance at risk before volatility adjustment.",
        ),
    ] = None,
    dry_run: Annotated[
        bool | None,
        typer.Option(
            "--dry-run/--no-dry-run", help="Size the trade but do not send it."
        ),
    ] = None,
    as_json: Annotated[
        bool, typer.Option("--json", help="Print raw JSON instead of a summary.")
    ] = False,
):
    """Size a trade by volatility-adjusted risk and execute it."""
    from .formatter import format_result_panel
    from .pipeline import run_swap

    state = _build_state(ctx, dry_run=dry_run)
    s = state.settings
    if not s.dry_run:
        chain = state.chain_required
        if chain.signer is None:
            raise typer.BadParameter(
                "private_key is required when running with --no-dry-run.",
                param_hint=["RISK_SWAP_PRIVATE_KEY"],
            )
        if chain.signer.address.lower() != chain.wallet_address.lower():
            raise typer.BadParameter(
                f"private_key controls {chain.signer.address}, "
                f"not wallet_address {chain.wallet_address}.",
                param_hint=["RISK_SWAP_WALLET_ADDRESS", "RISK_SWAP_PRIVATE_KEY"],
            )
        if s.aggregator_api_key is None:
            raise typer.BadParameter(
                "aggregator_api_key is required when running with --no-dry-run.",
                param_hint=["RISK_SWAP_AGGREGATOR_API_KEY"],
            )

    async def _run():
        notifier = TelegramNotifier(
            s.telegram_bot_token.get_secret_value() if s.telegram_bot_token else None,
            s.telegram_chat_id,
            request_timeout=s.request_timeout,
        )
        notifiers = [notifier] if notifier.enabled else []
        async with NotificationQueue(notifiers) as queue:
            return await run_swap(state, from_symbol, to_symbol, risk_pct, queue)

    result = asyncio.run(_run())

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        format_result_panel(result)

    if not result.success:
        raise typer.Exit(code=1)


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
