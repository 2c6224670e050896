"""
CLI Entry Point for the Franchiser miner.

Commands:
  monitor   - Poll the deployed controller and mint when profitable (live)
  simulate  - Run the same loop against an in-process controller and mock Rig
  status    - Read-only controller status report
  config    - Show the resolved local configuration
"""

import logging
import sys

import click
from rich.console import Console
from rich.panel import Panel
from web3 import Web3

from franchiser_miner import __version__
from franchiser_miner.client.local import LocalControllerClient
from franchiser_miner.client.web3_client import Web3ControllerClient
from franchiser_miner.config import ConfigError, MinerConfig
from franchiser_miner.controller.chain import LocalChain
from franchiser_miner.controller.controller import FranchiserController
from franchiser_miner.controller.errors import ControllerError
from franchiser_miner.controller.rig import MockRig
from franchiser_miner.log import setup_logging
from franchiser_miner.monitor import MiningMonitor
from franchiser_miner.status import print_report

console = Console()
logger = logging.getLogger(__name__)

# Well-known throwaway addresses for the simulation ledger
SIM_OWNER = "0x1111111111111111111111111111111111111111"
SIM_MANAGER = "0x2222222222222222222222222222222222222222"
SIM_RIG = "0x9310af2707c458f52e1c4d48749433454d731060"
SIM_TOKEN = "0x3333333333333333333333333333333333333333"


@click.group()
@click.version_option(version=__version__, prog_name="franchiser")
def cli():
    """Franchiser miner - mint when the Rig price is under your ceiling."""
    pass


def _load_config() -> MinerConfig:
    try:
        return MinerConfig()
    except ConfigError as e:
        console.print(f"[red]Initialization failed: {e}[/red]")
        sys.exit(1)


def _run_monitor(monitor: MiningMonitor, max_ticks=None):
    try:
        monitor.start(max_ticks)
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)
    console.print("[green]Goodbye![/green]")


@cli.command()
@click.option("--poll-interval", type=float, default=None,
              help="Seconds between checks (default: POLL_INTERVAL env, 60s)")
def monitor(poll_interval):
    """Poll the deployed controller and mint when profitable. Real ETH."""
    cfg = _load_config()
    setup_logging(cfg.monitor.log_level)

    try:
        cfg.validate_for_live()
        client = Web3ControllerClient.connect(
            cfg.rpc.base_rpc_url,
            cfg.controller.controller_address,
            cfg.manager.private_key,
            receipt_timeout=cfg.monitor.receipt_timeout,
        )
        miner = MiningMonitor(
            client,
            cfg.controller.recipient_address,
            poll_interval=poll_interval or cfg.monitor.poll_interval,
            stats_every=cfg.monitor.stats_every,
            gas_limit=cfg.monitor.gas_limit,
        )
    except (ConfigError, ConnectionError, ValueError) as e:
        console.print(f"[red]Initialization failed: {e}[/red]")
        sys.exit(1)

    _run_monitor(miner)


def build_simulation(price_wei: int, max_price_wei: int, fund_wei: int,
                     cooldown: int) -> tuple[FranchiserController, LocalControllerClient]:
    """Controller + mock Rig on a fresh in-process ledger."""
    chain = LocalChain()
    rig = MockRig(chain, SIM_RIG, SIM_TOKEN, price=price_wei)
    controller = FranchiserController(
        rig, SIM_OWNER, SIM_MANAGER,
        max_price_per_token=max_price_wei,
        min_profit_margin=1000,
        chain=chain,
    )
    controller.update_config(controller.config.with_changes(cooldown_period=cooldown),
                             sender=SIM_OWNER)
    chain.fund(SIM_OWNER, fund_wei)
    controller.receive(SIM_OWNER, fund_wei)
    return controller, LocalControllerClient(controller, SIM_MANAGER)


@cli.command()
@click.option("--poll-interval", type=float, default=5.0, help="Seconds between checks")
@click.option("--ticks", type=int, default=None, help="Stop after N checks")
@click.option("--price", default="0.0005", help="Mock Rig price, ETH per token")
@click.option("--max-price", default="0.001", help="Controller price ceiling, ETH per token")
@click.option("--fund", default="1", help="ETH to fund the controller with")
@click.option("--cooldown", type=int, default=300, help="Controller cooldown, seconds")
def simulate(poll_interval, ticks, price, max_price, fund, cooldown):
    """Run the monitor against an in-process controller. No real money."""
    cfg = _load_config()
    setup_logging(cfg.monitor.log_level)

    try:
        _, client = build_simulation(
            Web3.to_wei(price, "ether"),
            Web3.to_wei(max_price, "ether"),
            Web3.to_wei(fund, "ether"),
            cooldown,
        )
    except (ValueError, ArithmeticError, ControllerError) as e:
        console.print(f"[red]Invalid simulation parameters: {e}[/red]")
        sys.exit(1)

    miner = MiningMonitor(
        client,
        SIM_OWNER,
        poll_interval=poll_interval,
        stats_every=cfg.monitor.stats_every,
        gas_limit=cfg.monitor.gas_limit,
    )
    _run_monitor(miner, ticks)


@cli.command()
def status():
    """Show controller configuration, mining status and profitability."""
    cfg = _load_config()
    if not cfg.controller.controller_address:
        console.print("[red]CONTROLLER_ADDRESS not set in .env[/red]")
        sys.exit(1)

    try:
        client = Web3ControllerClient.connect(cfg.rpc.base_rpc_url, cfg.controller.controller_address)
        console.print("[bold]Franchiser Controller Status Report[/bold]\n")
        print_report(client, console)
    except Exception as e:
        console.print(f"\n[red]Error: {e}[/red]")
        sys.exit(1)


@cli.command()
def config():
    """Show current local configuration."""
    cfg = _load_config()

    console.print(Panel(
        f"Base RPC: {cfg.rpc.base_rpc_url}\n"
        f"Controller: {cfg.controller.controller_address or 'Not set'}\n"
        f"Rig: {cfg.controller.rig_address}\n"
        f"Recipient: {cfg.controller.recipient_address or 'Not set'}\n"
        f"Manager Key: {'Configured' if cfg.manager.private_key else 'Not set'}\n"
        f"Poll Interval: {cfg.monitor.poll_interval:g}s\n"
        f"Gas Limit: {cfg.monitor.gas_limit}\n"
        f"Receipt Timeout: {cfg.monitor.receipt_timeout:g}s\n"
        f"Log Level: {cfg.monitor.log_level}",
        title="[bold]Miner Configuration[/bold]",
    ))


def main():
    cli()


if __name__ == "__main__":
    main()
