"""
Pure rendering of dashboard state into rich renderables.
"""

from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, Optional
from urllib.parse import urlparse

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ore_dashboard.dashboard.registry import Account
from ore_dashboard.dashboard.types import DialogKind, ViewKind
from ore_dashboard.services import ore_program


RPC_DOMAIN_MAX_LENGTH = 32
MISSING = "--"

DIALOG_STYLES = {
    DialogKind.NORMAL: "white",
    DialogKind.GOOD: "green",
    DialogKind.WARN: "yellow",
    DialogKind.ERROR: "red",
}


def abbreviate(value: str, keep: int = 4) -> str:
    """Shorten a long address to its first and last `keep` characters."""
    if len(value) <= 2 * keep:
        return value
    return f"{value[:keep]}...{value[-keep:]}"


def get_domain(url: str) -> str:
    """Host part of an RPC URL, truncated for display."""
    try:
        host = urlparse(url).hostname
    except ValueError:
        return ""
    return (host or "")[:RPC_DOMAIN_MAX_LENGTH]


def format_local_time(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")


def format_usd(amount: Optional[Decimal]) -> str:
    return MISSING if amount is None else f"${amount}"


def render_summary(dashboard) -> Table:
    summary = dashboard.summary
    table = Table(title="Accounts", show_header=False, box=None)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Number:", str(len(dashboard.registry)))
    table.add_row("Balance:", f"{summary.total_balance} ({format_usd(summary.balance_usd)})")
    table.add_row("Stake:", f"{summary.total_stake} ({format_usd(summary.stake_usd)})")
    table.add_row("Status:", f"{summary.active_count}/{len(dashboard.registry)} online")
    table.add_row("Price:", MISSING if summary.price_usd is None else f"${summary.price_usd}")
    table.add_row("Mint Address:", abbreviate(str(ore_program.mint_address())))
    if dashboard.is_refreshing:
        table.add_row("", Text("refreshing...", style="dim"))
    return table


def render_accounts(dashboard) -> Table:
    table = Table(title="Miners")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Account", style="white")
    table.add_column("Balance", style="green", justify="right")
    table.add_column("Stake", style="green", justify="right")
    table.add_column("Last hash", style="white")
    table.add_column("Hashes", justify="right")
    table.add_column("Rewards", justify="right")
    table.add_column("Rpc", style="dim")
    table.add_column("State")

    for index, account in enumerate(dashboard.registry):
        status = account.status
        domain = get_domain(account.json_rpc_url)
        if not account.prepared:
            table.add_row(str(index), _account_label(account), MISSING, MISSING, "", "", "", domain, "loading")
        elif not status.is_valid:
            table.add_row(
                str(index), _account_label(account), MISSING, MISSING, "", "", "", domain,
                Text("Miner account doesn't exist", style="yellow")
            )
        else:
            table.add_row(
                str(index),
                abbreviate(status.authority or ""),
                str(status.balance),
                str(status.stake),
                format_local_time(status.last_hash_at),
                str(status.total_hashes),
                str(status.total_rewards),
                domain,
                Text("online", style="green") if status.is_online else Text("offline", style="red"),
            )
    return table


def _account_label(account: Account) -> str:
    if account.address is None:
        return f"<unreadable {account.keypair_path}>"
    return abbreviate(account.address)


def render_modal(dashboard) -> Optional[Panel]:
    """Render the secondary view, or None when only the primary view shows."""
    view = dashboard.modal.view
    if view is None:
        return None
    return _VIEWS[view](dashboard)


def _target_account(dashboard) -> Optional[Account]:
    target = dashboard.modal.target
    return None if target is None else dashboard.registry.find(target)


def _add_account_view(dashboard) -> Panel:
    inputs = dashboard.inputs
    return Panel(
        Group(
            Text(f"Json rpc url: {inputs.json_rpc_url}"),
            Text(f"Key pair: {inputs.keypair_path}"),
            Text(f"Priority fee: {inputs.priority_fee}"),
        ),
        title="Add an account",
    )


def _remove_account_view(dashboard) -> Panel:
    account = _target_account(dashboard)
    if account is None:
        return Panel("No account selected")
    return Panel(
        Group(
            Text(f"Remove {account.address or account.keypair_path} account?"),
            Text("Removing this account will only take it off the view list. You can add it back later if needed."),
        ),
        title="Remove account",
    )


def _claim_view(dashboard) -> Panel:
    if _target_account(dashboard) is None:
        return Panel("No account selected")
    inputs = dashboard.inputs
    return Panel(
        Group(
            Text(f"Wallet address: {inputs.claim_address or '(optional)'}"),
            Text(f"Amount: {inputs.claim_amount or '(optional)'}"),
        ),
        title="Claim ore to wallet",
        border_style="green",
    )


def _claim_confirm_view(dashboard) -> Panel:
    account = _target_account(dashboard)
    if account is None:
        return Panel("No account selected")
    inputs = dashboard.inputs
    return Panel(
        Group(
            Text(inputs.claim_address or account.address or ""),
            Text(f"{inputs.claim_amount or 'MAX available'} ORE"),
        ),
        title="Confirm ore claim request",
    )


def _stake_view(dashboard) -> Panel:
    if _target_account(dashboard) is None:
        return Panel("No account selected")
    return Panel(
        Text(f"Amount: {dashboard.inputs.stake_amount or '(optional)'}"),
        title="Stake ore to wallet",
    )


def _stake_confirm_view(dashboard) -> Panel:
    if _target_account(dashboard) is None:
        return Panel("No account selected")
    return Panel(
        Text(f"{dashboard.inputs.stake_amount or 'MAX available'} ORE"),
        title="Confirm ore stake request",
    )


def _dialog_view(dashboard) -> Panel:
    dialog = dashboard.modal.entry.dialog
    if dialog is None:
        return Panel("")
    return Panel(Text(dialog.content), border_style=DIALOG_STYLES[dialog.kind])


_VIEWS: Dict[ViewKind, Callable] = {
    ViewKind.ADD_ACCOUNT: _add_account_view,
    ViewKind.REMOVE_ACCOUNT: _remove_account_view,
    ViewKind.CLAIM: _claim_view,
    ViewKind.CLAIM_CONFIRM: _claim_confirm_view,
    ViewKind.STAKE: _stake_view,
    ViewKind.STAKE_CONFIRM: _stake_confirm_view,
    ViewKind.DIALOG: _dialog_view,
}
