"""Read-only status report for a controller. Never sends a transaction."""

import time
from datetime import datetime

from rich.console import Console
from rich.panel import Panel

from web3 import Web3

from franchiser_miner.client.base import ControllerClient
from franchiser_miner.controller.models import WAD
from franchiser_miner.monitor import format_eth


def build_report(client: ControllerClient, now: float | None = None) -> dict:
    """Gather everything the report shows in one pass."""
    now = time.time() if now is None else now
    config = client.get_config()
    status = client.get_mining_status()
    check = client.check_profitability()
    last_mint = client.last_mint_timestamp()

    next_cost = None
    shortfall = 0
    if check.is_profitable and check.recommended_amount > 0:
        next_cost = check.current_price * check.recommended_amount // WAD
        shortfall = max(next_cost - status.eth_balance, 0)

    return {
        "rig": client.rig_address(),
        "config": config,
        "status": status,
        "profitability": check,
        "next_mint_cost": next_cost,
        "shortfall": shortfall,
        "next_mint_wait": max(int(status.next_mint_time - now), 0),
        "last_mint": last_mint,
        "seconds_since_last_mint": int(now - last_mint) if last_mint else None,
    }


def print_report(client: ControllerClient, console: Console | None = None):
    console = console or Console()
    report = build_report(client)
    config, status, check = report["config"], report["status"], report["profitability"]

    console.print(f"Controller: {client.address}")
    console.print(f"Franchiser Rig: {report['rig']}\n")

    console.print(Panel(
        f"Max Price: {format_eth(config.max_price_per_token)} ETH/token\n"
        f"Min Profit: {config.min_profit_margin_pct}%\n"
        f"Mint Range: {Web3.from_wei(config.min_mint_amount, 'ether')} - "
        f"{Web3.from_wei(config.max_mint_amount, 'ether')} tokens\n"
        f"Auto Mining: {'ENABLED' if config.auto_mining_enabled else 'DISABLED'}\n"
        f"Cooldown: {config.cooldown_period}s\n"
        f"Max Gas: {config.max_gas_price} gwei",
        title="[bold]Configuration[/bold]",
    ))

    lines = [
        f"Current Price: {format_eth(status.current_price, 8)} ETH/token",
        f"Epoch: {status.current_epoch_id}",
        f"ETH Balance: {format_eth(status.eth_balance)} ETH",
        f"Can Mint Now: {'YES' if status.can_mint_now else 'NO'}",
    ]
    if not status.can_mint_now and report["next_mint_wait"] > 0:
        next_mint = datetime.fromtimestamp(status.next_mint_time)
        lines.append(f"Next Mint: {next_mint:%Y-%m-%d %H:%M:%S} (in {report['next_mint_wait']}s)")
    console.print(Panel("\n".join(lines), title="[bold]Mining Status[/bold]"))

    lines = [
        f"Status: {'[green]PROFITABLE[/green]' if check.is_profitable else '[red]NOT PROFITABLE[/red]'}",
        f"Recommended Mint: {Web3.from_wei(check.recommended_amount, 'ether')} tokens",
    ]
    if report["next_mint_cost"] is not None:
        lines.append(f"Next Mint Cost: {format_eth(report['next_mint_cost'])} ETH")
        if report["shortfall"]:
            lines.append(f"[red]Need {format_eth(report['shortfall'])} more ETH[/red]")
        else:
            lines.append("[green]Sufficient balance for next mint[/green]")
    console.print(Panel("\n".join(lines), title="[bold]Profitability[/bold]"))

    if report["last_mint"]:
        last = datetime.fromtimestamp(report["last_mint"])
        console.print(f"Last Mint: {last:%Y-%m-%d %H:%M:%S} ({report['seconds_since_last_mint']}s ago)")
    else:
        console.print("Last Mint: Never")
    return report
