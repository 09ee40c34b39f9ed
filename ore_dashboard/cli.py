"""
Command line front end for the ORE dashboard.
"""

import asyncio
from typing import Optional

import typer
from rich.console import Console

from ore_dashboard.core.config import settings
from ore_dashboard.core.exceptions import ConfigurationError
from ore_dashboard.core.logging import get_logger, setup_logging
from ore_dashboard.dashboard import events as ev
from ore_dashboard.dashboard.events import InputField
from ore_dashboard.dashboard.render import render_accounts, render_modal, render_summary
from ore_dashboard.dashboard.scheduler import TaskScheduler
from ore_dashboard.dashboard.state import Dashboard
from ore_dashboard.dashboard.types import ViewKind
from ore_dashboard.services import ore_program
from ore_dashboard.services.config_store import ConfigStore

console = Console()
logger = get_logger(__name__)
app = typer.Typer(name="ore-dashboard", help="Monitor ORE mining accounts and claim or stake rewards")
accounts_app = typer.Typer(help="Manage tracked accounts")
app.add_typer(accounts_app, name="accounts")

ConfigOption = typer.Option(None, "--config", "-c", help="User config file")


def _version_callback(value: bool):
    if value:
        console.print(f"{settings.app_name} {settings.app_version}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit"),
):
    """Monitor ORE mining accounts and claim or stake rewards."""


def check_program_settings():
    """Fail fast when the configured ORE program or mint id is not a pubkey."""
    try:
        ore_program.program_id()
        ore_program.mint_address()
    except ConfigurationError as e:
        logger.error("Invalid configuration", error=e.message, setting=e.details.get("setting"))
        console.print(f"❌ {e.message}")
        raise typer.Exit(code=2)


def _dashboard(config: Optional[str]) -> Dashboard:
    setup_logging()
    check_program_settings()
    return Dashboard(ConfigStore(config)).load()


def _account_id(dashboard: Dashboard, index: int) -> str:
    account = dashboard.registry.get(index)
    if account is None:
        console.print(f"❌ No account at index {index}")
        raise typer.Exit(code=1)
    return account.account_id


def _print_modal(dashboard: Dashboard):
    panel = render_modal(dashboard)
    if panel is not None:
        console.print(panel)


@app.command()
def run(config: Optional[str] = ConfigOption):
    """Run the dashboard with its refresh, save and price timers."""
    async def _run():
        dashboard = _dashboard(config)
        dashboard.summary_listeners.append(
            lambda d: console.print(render_summary(d), render_accounts(d))
        )
        scheduler = TaskScheduler(dashboard).register_default_tasks()
        timers = asyncio.create_task(scheduler.start())
        dashboard.dispatch(ev.Refresh())
        try:
            await dashboard.run()
        finally:
            scheduler.stop()
            timers.cancel()
            if not dashboard.is_saved:
                dashboard.save_config()
            await dashboard.close()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("👋 Stopped")


@app.command()
def status(config: Optional[str] = ConfigOption):
    """Refresh every account once and print the summary."""
    async def _status():
        dashboard = _dashboard(config)
        try:
            await dashboard.send(ev.Refresh())
            console.print(render_summary(dashboard))
            console.print(render_accounts(dashboard))
        finally:
            await dashboard.close()

    asyncio.run(_status())


@accounts_app.command("list")
def list_accounts(config: Optional[str] = ConfigOption):
    """List tracked accounts without touching the network."""
    async def _list():
        dashboard = _dashboard(config)
        console.print(render_accounts(dashboard))
        await dashboard.close()

    asyncio.run(_list())


@accounts_app.command("add")
def add_account(
    keypair: str = typer.Argument(..., help="Keypair file path"),
    rpc_url: str = typer.Option(settings.default_rpc_url, "--rpc-url", help="JSON RPC URL"),
    priority_fee: int = typer.Option(settings.default_priority_fee, "--priority-fee", min=0),
    config: Optional[str] = ConfigOption,
):
    """Track a new account."""
    async def _add():
        dashboard = _dashboard(config)
        try:
            await dashboard.send(ev.OpenModal(ViewKind.ADD_ACCOUNT))
            await dashboard.send(ev.InputChanged(InputField.JSON_RPC_URL, rpc_url))
            await dashboard.send(ev.InputChanged(InputField.KEYPAIR_PATH, keypair))
            await dashboard.send(ev.InputChanged(InputField.PRIORITY_FEE, str(priority_fee)))
            await dashboard.send(ev.AddAccount())
            if dashboard.modal.view is ViewKind.DIALOG:
                _print_modal(dashboard)
                raise typer.Exit(code=1)
            await dashboard.send(ev.SaveConfig())
            console.print("✅ Account added")
            console.print(render_accounts(dashboard))
        finally:
            await dashboard.close()

    asyncio.run(_add())


@accounts_app.command("remove")
def remove_account(
    index: int = typer.Argument(..., help="Account index as shown by `accounts list`"),
    config: Optional[str] = ConfigOption,
):
    """Stop tracking an account."""
    async def _remove():
        dashboard = _dashboard(config)
        try:
            account_id = _account_id(dashboard, index)
            if not typer.confirm("Removing this account will only take it off the view list. Continue?"):
                console.print("❌ Operation cancelled")
                return
            await dashboard.send(ev.RemoveAccount(account_id))
            await dashboard.send(ev.SaveConfig())
            console.print("✅ Account removed")
        finally:
            await dashboard.close()

    asyncio.run(_remove())


@app.command()
def claim(
    index: int = typer.Argument(..., help="Account index"),
    amount: Optional[str] = typer.Option(None, "--amount", help="ORE to claim, defaults to the full balance"),
    to: Optional[str] = typer.Option(None, "--to", help="Wallet receiving the tokens"),
    config: Optional[str] = ConfigOption,
):
    """Claim mining rewards of one account."""
    async def _claim():
        dashboard = _dashboard(config)
        try:
            await dashboard.send(ev.OpenModal(ViewKind.CLAIM, _account_id(dashboard, index)))
            if amount:
                await dashboard.send(ev.InputChanged(InputField.CLAIM_AMOUNT, amount))
            if to:
                await dashboard.send(ev.InputChanged(InputField.CLAIM_ADDRESS, to))
            await dashboard.send(ev.OpenModal(ViewKind.CLAIM_CONFIRM))
            _print_modal(dashboard)
            await dashboard.send(ev.Claim())
            _print_modal(dashboard)
        finally:
            await dashboard.close()

    asyncio.run(_claim())


@app.command()
def stake(
    index: int = typer.Argument(..., help="Account index"),
    amount: Optional[str] = typer.Option(None, "--amount", help="ORE to stake, defaults to the full wallet balance"),
    config: Optional[str] = ConfigOption,
):
    """Stake wallet tokens into one account's proof."""
    async def _stake():
        dashboard = _dashboard(config)
        try:
            await dashboard.send(ev.OpenModal(ViewKind.STAKE, _account_id(dashboard, index)))
            if amount:
                await dashboard.send(ev.InputChanged(InputField.STAKE_AMOUNT, amount))
            await dashboard.send(ev.OpenModal(ViewKind.STAKE_CONFIRM))
            _print_modal(dashboard)
            await dashboard.send(ev.Stake())
            _print_modal(dashboard)
        finally:
            await dashboard.close()

    asyncio.run(_stake())


if __name__ == "__main__":
    app()
