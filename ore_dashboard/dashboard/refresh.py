"""
Account status refresh, serial or concurrent.
"""

from typing import List, Set

import structlog

from ore_dashboard.dashboard.events import AccountsFetched, Command, StatusFetched
from ore_dashboard.dashboard.registry import Account, AccountRegistry
from ore_dashboard.dashboard.status_fetcher import StatusFetcher
from ore_dashboard.dashboard.types import FetchMode


logger = structlog.get_logger(__name__)


class RefreshOrchestrator:
    """
    Dispatches status fetches and tracks when a refresh round has settled.

    Each round gets an epoch number and a snapshot of the identities it
    dispatched. Results from older rounds are dropped, results for accounts
    removed mid-round are ignored, and removing an account drops it from the
    pending set so the round can still settle.
    """

    def __init__(self, fetcher: StatusFetcher, mode: FetchMode = FetchMode.CONCURRENT):
        self.fetcher = fetcher
        self.mode = mode
        self.epoch = 0
        self.pending: Set[str] = set()
        self.in_progress = False
        self.logger = logger.bind(service="refresh_orchestrator")

    def start(self, registry: AccountRegistry) -> List[Command]:
        """Begin a refresh round and return the fetch commands to run."""
        self.epoch += 1
        accounts = list(registry)
        self.pending = {account.account_id for account in accounts}
        self.in_progress = bool(accounts)

        self.logger.debug("Refresh started", epoch=self.epoch, mode=self.mode.value, accounts=len(accounts))

        if not accounts:
            return []
        if self.mode is FetchMode.SERIAL:
            return [self._serial_command(self.epoch, accounts)]
        return [self._single_command(self.epoch, account) for account in accounts]

    def apply_all(self, registry: AccountRegistry, event: AccountsFetched) -> bool:
        """Apply a serial result set. Returns True when the round settled."""
        if event.epoch != self.epoch:
            self.logger.debug("Dropping stale refresh results", epoch=event.epoch, current=self.epoch)
            return False
        for account_id, status in event.results:
            index = registry.index_of(account_id)
            if index is not None:
                registry.replace_status(index, status)
        self.pending.clear()
        return self._settle()

    def apply_one(self, registry: AccountRegistry, event: StatusFetched) -> bool:
        """Apply one concurrent result. Returns True when the round settled."""
        if event.epoch != self.epoch:
            self.logger.debug("Dropping stale status", epoch=event.epoch, current=self.epoch)
            return False
        index = registry.index_of(event.account_id)
        if index is not None:
            registry.replace_status(index, event.status)
        self.pending.discard(event.account_id)
        return self._settle()

    def forget(self, account_id: str) -> bool:
        """Stop waiting for a removed account. Returns True when the round settled."""
        if account_id not in self.pending:
            return False
        self.pending.discard(account_id)
        return self._settle()

    def _settle(self) -> bool:
        if self.in_progress and not self.pending:
            self.in_progress = False
            return True
        return False

    def _serial_command(self, epoch: int, accounts: List[Account]) -> Command:
        async def fetch_all():
            results = []
            for account in accounts:
                results.append((account.account_id, await self.fetcher.fetch(account)))
            return AccountsFetched(epoch=epoch, results=tuple(results))
        return fetch_all

    def _single_command(self, epoch: int, account: Account) -> Command:
        async def fetch_one():
            status = await self.fetcher.fetch(account)
            return StatusFetched(epoch=epoch, account_id=account.account_id, status=status)
        return fetch_one
