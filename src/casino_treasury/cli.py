"""CLI entry point for the casino treasury."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any, Awaitable, Callable

import click

from casino_treasury.config import load_config
from casino_treasury.context import TreasuryContext
from casino_treasury.errors import CasinoError
from casino_treasury.models.transactions import PendingTransaction


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _run(ctx: click.Context, fn: Callable[[TreasuryContext], Awaitable[Any]]) -> None:
    """Build a context, run ``fn`` against it and print taxonomy errors."""
    cfg = ctx.obj["cfg"]

    async def _main() -> None:
        async with TreasuryContext(cfg) as tctx:
            result = await fn(tctx)
            if result is not None:
                _echo_json(result)

    try:
        asyncio.run(_main())
    except CasinoError as exc:
        click.echo(f"error: {exc.message}", err=True)
        if exc.details:
            click.echo(json.dumps(exc.to_dict(), indent=2, default=str), err=True)
        sys.exit(1)


def _parse_params(params: tuple[str, ...]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for item in params:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {item!r}", param_hint="-p")
        try:
            out[key] = json.loads(value)
        except ValueError:
            out[key] = value
    return out


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """casino-treasury - sponsored Flow transactions and commit/reveal randomness."""
    ctx.ensure_object(dict)
    try:
        cfg = load_config(config_path)
    except CasinoError as exc:
        click.echo(f"error: {exc.message}", err=True)
        sys.exit(1)
    ctx.obj["cfg"] = cfg

    level = logging.DEBUG if verbose else getattr(logging, cfg.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the effective configuration."""
    cfg = ctx.obj["cfg"]
    contracts = cfg.contract_addresses()
    click.echo(f"Network:      {cfg.network.name}")
    click.echo(f"Access nodes: {', '.join(cfg.access_nodes)}")
    click.echo(f"Explorer:     {cfg.explorer_url}")
    click.echo(f"Treasury:     {cfg.treasury.address or '(not set)'}")
    click.echo(f"Key:          {'***configured***' if cfg.treasury.private_key else '(not set)'}")
    for name, addr in contracts.items():
        click.echo(f"{name + ':':<14}{addr or '(not set)'}")
    click.echo(f"Commitment:   {cfg.vrf.commitment.value}")
    click.echo(f"Bet range:    {cfg.limits.min_bet} - {cfg.limits.max_bet} FLOW")
    click.echo(f"Enforce bal.: {cfg.limits.enforce_balance}")


@cli.command()
@click.pass_context
def balance(ctx: click.Context) -> None:
    """Show the treasury balance."""

    async def _balance(tctx: TreasuryContext) -> dict:
        view = await tctx.guard.account_view()
        return {
            "address": view.address,
            "primaryBalance": view.primary_balance,
            "vaultBalance": view.secondary_balance,
            "available": view.available,
            "observedAt": view.observed_at,
        }

    _run(ctx, _balance)


@cli.command()
@click.pass_context
def height(ctx: click.Context) -> None:
    """Show the latest sealed block height."""

    async def _height(tctx: TreasuryContext) -> dict:
        h = await tctx.retry.call(lambda c: c.get_current_block_height(), op="height")
        return {"height": h}

    _run(ctx, _height)


@cli.command()
@click.argument("tx_id")
@click.option("--wait/--no-wait", default=False, help="Wait until the transaction is sealed")
@click.pass_context
def tx(ctx: click.Context, tx_id: str, wait: bool) -> None:
    """Show a transaction's status."""

    async def _tx(tctx: TreasuryContext) -> dict:
        if wait:
            sealed = await tctx.waiter.await_seal(PendingTransaction(tx_id))
            return sealed.to_dict()
        view = await tctx.retry.call(lambda c: c.get_transaction(tx_id), op="get_transaction")
        return {
            "transactionId": view.transaction_id,
            "status": view.status.value,
            "statusCode": view.status_code,
            "blockId": view.block_id,
            "errorMessage": view.error_message,
            "events": [e.type for e in view.events],
        }

    _run(ctx, _tx)


# ── Treasury operations ────────────────────────────────


@cli.command()
@click.argument("address")
@click.argument("amount")
@click.option("--hash", "tx_hash", default=None, help="Player's deposit transaction id")
@click.pass_context
def deposit(ctx: click.Context, address: str, amount: str, tx_hash: str | None) -> None:
    """Record a player deposit."""
    body = {"userAddress": address, "amount": amount, "transactionHash": tx_hash}
    _run(ctx, lambda tctx: tctx.gateway.deposit(body))


@cli.command()
@click.argument("address")
@click.argument("amount")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def withdraw(ctx: click.Context, address: str, amount: str, yes: bool) -> None:
    """Send FLOW from the treasury to a player."""
    if not yes:
        click.confirm(f"Send {amount} FLOW to {address}?", abort=True)
    body = {"userAddress": address, "amount": amount}
    _run(ctx, lambda tctx: tctx.gateway.withdraw(body))


@cli.command()
@click.argument("game")
@click.argument("address")
@click.argument("bet")
@click.option("-p", "--param", "params", multiple=True, help="Game parameter as key=value")
@click.pass_context
def play(ctx: click.Context, game: str, address: str, bet: str, params: tuple[str, ...]) -> None:
    """Play a treasury-sponsored game (roulette, mines, plinko, wheel)."""
    body = {
        "gameType": game,
        "userAddress": address,
        "betAmount": bet,
        "gameParams": _parse_params(params),
    }
    _run(ctx, lambda tctx: tctx.gateway.play_game(body))


@cli.command()
@click.argument("game", required=False)
@click.pass_context
def entropy(ctx: click.Context, game: str | None) -> None:
    """Generate a random value through commit/reveal."""
    body = {"gameType": game} if game else {}
    _run(ctx, lambda tctx: tctx.gateway.generate_entropy(body))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
