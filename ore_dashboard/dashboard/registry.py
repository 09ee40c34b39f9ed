"""
Tracked accounts and their cached statuses.
"""

import uuid
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from ore_dashboard.dashboard.types import Status
from ore_dashboard.services.chain_client import ChainClient
from ore_dashboard.services.config_store import AccountConfig


@dataclass
class Account:
    """
    One tracked mining account.

    `account_id` is assigned once and never reused; positions in the registry
    are not stable across removals, so anything crossing an await keeps the id.
    """
    json_rpc_url: str
    keypair_path: str
    priority_fee: int
    client: ChainClient
    address: Optional[str] = None
    status: Status = field(default_factory=Status)
    prepared: bool = False
    account_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_config(self) -> AccountConfig:
        return AccountConfig(
            json_rpc_url=self.json_rpc_url,
            keypair_path=self.keypair_path,
            priority_fee=self.priority_fee,
        )


class AccountRegistry:
    """Ordered collection of tracked accounts."""

    def __init__(self, accounts: Optional[List[Account]] = None):
        self._accounts: List[Account] = list(accounts or [])

    def __len__(self) -> int:
        return len(self._accounts)

    def __iter__(self) -> Iterator[Account]:
        return iter(self._accounts)

    def add(self, account: Account) -> int:
        """Append an account and return its index."""
        self._accounts.append(account)
        return len(self._accounts) - 1

    def remove(self, index: int) -> Account:
        """Remove and return the account at `index`."""
        return self._accounts.pop(index)

    def get(self, index: int) -> Optional[Account]:
        if 0 <= index < len(self._accounts):
            return self._accounts[index]
        return None

    def replace_status(self, index: int, status: Status) -> None:
        """Swap in a freshly fetched status and mark the account prepared."""
        account = self._accounts[index]
        account.status = status
        account.prepared = True

    def index_of(self, account_id: str) -> Optional[int]:
        for index, account in enumerate(self._accounts):
            if account.account_id == account_id:
                return index
        return None

    def find(self, account_id: str) -> Optional[Account]:
        index = self.index_of(account_id)
        return None if index is None else self._accounts[index]

    def identities(self) -> List[str]:
        return [account.account_id for account in self._accounts]

    def statuses(self) -> List[Status]:
        return [account.status for account in self._accounts]

    def configs(self) -> List[AccountConfig]:
        return [account.to_config() for account in self._accounts]
