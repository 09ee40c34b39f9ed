"""
The dashboard state owner.

All mutation of the account list, summary, modal and inputs happens in
`Dashboard.update`, which handles one event at a time from a single inbox.
Asynchronous work is returned as commands; their results come back through
the same inbox, so no locking is needed.
"""

import asyncio
import time
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set

import structlog

from ore_dashboard.core.config import settings
from ore_dashboard.core.exceptions import ConfigIOError, InvariantViolation, KeySignerError
from ore_dashboard.dashboard import events as ev
from ore_dashboard.dashboard.events import Command, Event, InputField
from ore_dashboard.dashboard.modal import ModalStack
from ore_dashboard.dashboard.refresh import RefreshOrchestrator
from ore_dashboard.dashboard.registry import Account, AccountRegistry
from ore_dashboard.dashboard.status_fetcher import StatusFetcher
from ore_dashboard.dashboard.transactions import TransactionExecutor
from ore_dashboard.dashboard.types import (
    AggregateSummary,
    Dialog,
    DialogKind,
    FetchMode,
    FormInputs,
    TransactionKind,
    ViewKind,
)
from ore_dashboard.services.chain_client import ChainClient, SolanaChainClient
from ore_dashboard.services.coingecko_service import CoinGeckoService
from ore_dashboard.services.config_store import DEFAULT_THEME, ConfigStore, UserConfig
from ore_dashboard.services.key_signer import KeySigner


logger = structlog.get_logger(__name__)

ChainClientFactory = Callable[[str], ChainClient]


class Dashboard:
    """Single owner of the dashboard state."""

    def __init__(
        self,
        config_store: Optional[ConfigStore] = None,
        chain_client_factory: ChainClientFactory = SolanaChainClient,
        signer_loader: Callable[[str], KeySigner] = KeySigner.from_file,
        price_feed: Optional[CoinGeckoService] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.logger = logger.bind(service="dashboard")
        self.config_store = config_store or ConfigStore()
        self.chain_client_factory = chain_client_factory
        self.signer_loader = signer_loader
        self.price_feed = price_feed or CoinGeckoService()

        self.registry = AccountRegistry()
        self.refresher = RefreshOrchestrator(StatusFetcher(clock), FetchMode(settings.fetch_mode))
        self.executor = TransactionExecutor(signer_loader)
        self.modal = ModalStack()
        self.inputs = FormInputs()

        self.summary = AggregateSummary()
        self.price_usd: Optional[float] = None
        self.auto_refresh = settings.auto_refresh
        self.is_refreshing = False
        self.in_progress: Set[TransactionKind] = set()
        self.theme = DEFAULT_THEME
        self.is_saved = True
        self.running = False

        self.summary_listeners: List[Callable[["Dashboard"], None]] = []
        self.inbox: asyncio.Queue = asyncio.Queue()
        self._tasks: Set[asyncio.Task] = set()
        self._retired_clients: List[ChainClient] = []

        self._handlers: Dict[type, Callable[[Event], List[Command]]] = {
            ev.Refresh: self._on_refresh,
            ev.AccountsFetched: self._on_accounts_fetched,
            ev.StatusFetched: self._on_status_fetched,
            ev.FetchPrice: self._on_fetch_price,
            ev.PriceFetched: self._on_price_fetched,
            ev.ToggleAutoRefresh: self._on_toggle_auto_refresh,
            ev.ToggleFetchMode: self._on_toggle_fetch_mode,
            ev.OpenModal: self._on_open_modal,
            ev.HideModal: self._on_hide_modal,
            ev.DismissDialog: self._on_dismiss_dialog,
            ev.InputChanged: self._on_input_changed,
            ev.AddAccount: self._on_add_account,
            ev.RemoveAccount: self._on_remove_account,
            ev.SaveConfig: self._on_save_config,
            ev.ThemeSelected: self._on_theme_selected,
            ev.Claim: self._on_claim,
            ev.Stake: self._on_stake,
            ev.TransactionCompleted: self._on_transaction_completed,
            ev.CloseRequested: self._on_close_requested,
        }

    # Lifecycle

    def load(self) -> "Dashboard":
        """Restore tracked accounts and theme from the config store."""
        user_config = self.config_store.load()
        for config in user_config.configs:
            self.registry.add(
                self.create_account(config.json_rpc_url, config.keypair_path, config.priority_fee)
            )
        self.theme = user_config.theme
        self.logger.info("Loaded accounts", count=len(self.registry))
        return self

    def create_account(self, json_rpc_url: str, keypair_path: str, priority_fee: int) -> Account:
        address = None
        try:
            address = str(self.signer_loader(keypair_path).pubkey())
        except KeySignerError as e:
            self.logger.error("Failed to read keypair", keypair_path=keypair_path, error=e.message)
        return Account(
            json_rpc_url=json_rpc_url,
            keypair_path=keypair_path,
            priority_fee=priority_fee,
            client=self.chain_client_factory(json_rpc_url),
            address=address,
        )

    def dispatch(self, event: Event) -> None:
        self.inbox.put_nowait(event)

    async def run(self) -> None:
        """Process inbox events until a close request arrives."""
        self.running = True
        while self.running:
            event = await self.inbox.get()
            self.handle(event)

    async def send(self, event: Event) -> None:
        """Dispatch an event and wait until every resulting command has been applied."""
        self.dispatch(event)
        await self.drain()

    async def drain(self) -> None:
        while True:
            while not self.inbox.empty():
                self.handle(self.inbox.get_nowait())
            pending = {task for task in self._tasks if not task.done()}
            if not pending:
                if self.inbox.empty():
                    return
                continue
            await asyncio.wait(pending)

    async def close(self) -> None:
        """Close the RPC clients of current and removed accounts."""
        clients = [account.client for account in self.registry] + self._retired_clients
        self._retired_clients = []
        for client in clients:
            try:
                await client.close()
            except Exception as e:
                self.logger.warning("Failed to close RPC client", endpoint=client.endpoint, error=str(e))

    def handle(self, event: Event) -> None:
        for command in self.update(event):
            task = asyncio.create_task(self._execute(command))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _execute(self, command: Command) -> None:
        try:
            event = await command()
        except Exception as e:
            self.logger.error("Command failed", error=str(e))
            return
        if event is not None:
            self.dispatch(event)

    def update(self, event: Event) -> List[Command]:
        """Apply one event to the state and return follow-up commands."""
        handler = self._handlers.get(type(event))
        if handler is None:
            self.logger.warning("Unhandled event", event=type(event).__name__)
            return []
        return handler(event)

    # Refresh and summary

    def _on_refresh(self, event: ev.Refresh) -> List[Command]:
        self.is_refreshing = True
        commands = self.refresher.start(self.registry)
        if not commands:
            return self._on_refresh_settled()
        return commands

    def _on_accounts_fetched(self, event: ev.AccountsFetched) -> List[Command]:
        if self.refresher.apply_all(self.registry, event):
            return self._on_refresh_settled()
        return []

    def _on_status_fetched(self, event: ev.StatusFetched) -> List[Command]:
        if self.refresher.apply_one(self.registry, event):
            return self._on_refresh_settled()
        return []

    def _on_refresh_settled(self) -> List[Command]:
        self.is_refreshing = False
        self._recompute_summary()
        self.logger.info(
            "Accounts refreshed",
            total_balance=str(self.summary.total_balance),
            total_stake=str(self.summary.total_stake),
            active=self.summary.active_count
        )
        return [self._price_command()]

    def _recompute_summary(self) -> None:
        self.summary = AggregateSummary.compute(self.registry.statuses(), self.price_usd)
        for listener in self.summary_listeners:
            listener(self)

    def _on_fetch_price(self, event: ev.FetchPrice) -> List[Command]:
        return [self._price_command()]

    def _on_price_fetched(self, event: ev.PriceFetched) -> List[Command]:
        self.price_usd = event.price or None
        self._recompute_summary()
        return []

    def _price_command(self) -> Command:
        async def fetch_price():
            price = await self.price_feed.fetch_price(settings.price_token_id, settings.price_currency)
            return ev.PriceFetched(price)
        return fetch_price

    # Preferences

    def _on_toggle_auto_refresh(self, event: ev.ToggleAutoRefresh) -> List[Command]:
        self.auto_refresh = event.enabled
        return []

    def _on_toggle_fetch_mode(self, event: ev.ToggleFetchMode) -> List[Command]:
        self.refresher.mode = event.mode
        return []

    def _on_theme_selected(self, event: ev.ThemeSelected) -> List[Command]:
        self.theme = event.theme
        self.is_saved = False
        return []

    def _on_input_changed(self, event: ev.InputChanged) -> List[Command]:
        if event.field is InputField.PRIORITY_FEE and not all(c.isdigit() for c in event.value):
            return []
        setattr(self.inputs, event.field.value, event.value)
        return []

    # Modal navigation

    def _on_open_modal(self, event: ev.OpenModal) -> List[Command]:
        if event.target is not None and self.registry.find(event.target) is None:
            self.logger.warning("Ignoring modal for untracked account", target=event.target)
            return []
        self.modal.open_secondary(event.view, event.target)
        return []

    def _on_hide_modal(self, event: ev.HideModal) -> List[Command]:
        self.modal.hide()
        if event.follow_up is not None:
            return self.update(event.follow_up)
        return []

    def _on_dismiss_dialog(self, event: ev.DismissDialog) -> List[Command]:
        dialog = self.modal.entry.dialog if self.modal.entry else None
        follow_up = None
        if dialog is not None and dialog.kind in (DialogKind.NORMAL, DialogKind.GOOD):
            follow_up = ev.Refresh()
        return self._on_hide_modal(ev.HideModal(follow_up))

    def show_dialog(self, dialog: Dialog) -> None:
        self.modal.open_secondary(ViewKind.DIALOG, dialog=dialog)

    # Account list

    def _on_add_account(self, event: ev.AddAccount) -> List[Command]:
        keypair_path = self.inputs.keypair_path
        if not Path(keypair_path).expanduser().is_file():
            self.show_dialog(Dialog("No such a keypair file", DialogKind.ERROR))
            return []

        priority_fee = int(self.inputs.priority_fee or settings.default_priority_fee)
        account = self.create_account(self.inputs.json_rpc_url, keypair_path, priority_fee)
        self.registry.add(account)
        self.is_saved = False
        self.logger.info("Account added", address=account.address, endpoint=account.json_rpc_url)

        return self.update(ev.HideModal(ev.Refresh()))

    def _on_remove_account(self, event: ev.RemoveAccount) -> List[Command]:
        index = self.registry.index_of(event.account_id)
        if index is None:
            self.logger.warning(str(InvariantViolation(event.account_id, "remove")))
            return []

        account = self.registry.remove(index)
        if account.status.is_online:
            self.summary = self.summary.without_online_account()
        self._retired_clients.append(account.client)
        self.is_saved = False
        if self.modal.target == account.account_id:
            self.modal.hide()
        self.logger.info("Account removed", address=account.address)

        if self.refresher.forget(account.account_id):
            return self._on_refresh_settled()
        return []

    def _on_save_config(self, event: ev.SaveConfig) -> List[Command]:
        if self.is_saved:
            return []
        self.save_config()
        return []

    def save_config(self) -> None:
        user_config = UserConfig(configs=self.registry.configs(), theme=self.theme)
        try:
            self.config_store.save(user_config)
        except ConfigIOError as e:
            self.logger.error("Failed to save config", error=e.message)
            return
        self.is_saved = True

    def _on_close_requested(self, event: ev.CloseRequested) -> List[Command]:
        if not self.is_saved:
            self.save_config()
        self.modal.close()
        self.running = False
        return []

    # Transactions

    def _selected_account(self, operation: str) -> Optional[Account]:
        target = self.modal.target
        account = self.registry.find(target) if target is not None else None
        if account is None:
            self.logger.warning(str(InvariantViolation(str(target), operation)))
        return account

    def _on_claim(self, event: ev.Claim) -> List[Command]:
        if TransactionKind.CLAIM in self.in_progress:
            self.logger.info("Claim already in progress")
            return []
        account = self._selected_account("claim")
        if account is None:
            return []

        try:
            amount = _parse_amount(self.inputs.claim_amount)
        except ValueError as e:
            self.show_dialog(Dialog(str(e), DialogKind.ERROR))
            return []
        destination = self.inputs.claim_address.strip() or None
        self.in_progress.add(TransactionKind.CLAIM)

        async def claim():
            result = await self.executor.claim(account, amount, destination)
            return ev.TransactionCompleted(result)
        return [claim]

    def _on_stake(self, event: ev.Stake) -> List[Command]:
        if TransactionKind.STAKE in self.in_progress:
            self.logger.info("Stake already in progress")
            return []
        account = self._selected_account("stake")
        if account is None:
            return []

        try:
            amount = _parse_amount(self.inputs.stake_amount)
        except ValueError as e:
            self.show_dialog(Dialog(str(e), DialogKind.ERROR))
            return []
        self.in_progress.add(TransactionKind.STAKE)

        async def stake():
            result = await self.executor.stake(account, amount)
            return ev.TransactionCompleted(result)
        return [stake]

    def _on_transaction_completed(self, event: ev.TransactionCompleted) -> List[Command]:
        self.in_progress.clear()
        self.inputs.clear_transaction_inputs()
        self.show_dialog(Dialog.for_outcome(event.result))
        self.logger.info(
            "Transaction completed",
            outcome=event.result.outcome.value,
            signature=event.result.signature,
            error=event.result.error
        )
        return []


def _parse_amount(text: str) -> Optional[Decimal]:
    """Empty or unparseable text means the full balance; negative amounts are rejected."""
    try:
        amount = Decimal(text.strip())
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount < 0:
        raise ValueError(f"Invalid amount: {text.strip()}")
    return amount
