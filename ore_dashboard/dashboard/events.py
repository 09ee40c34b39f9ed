"""
Events consumed by the Dashboard inbox.

User and timer intents as well as results of asynchronous commands are all
delivered as one of these values.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Tuple, Union

from ore_dashboard.dashboard.types import FetchMode, Status, TransactionOutcome, ViewKind


class InputField(Enum):
    JSON_RPC_URL = "json_rpc_url"
    KEYPAIR_PATH = "keypair_path"
    PRIORITY_FEE = "priority_fee"
    CLAIM_ADDRESS = "claim_address"
    CLAIM_AMOUNT = "claim_amount"
    STAKE_AMOUNT = "stake_amount"


@dataclass(frozen=True)
class Refresh:
    pass


@dataclass(frozen=True)
class AccountsFetched:
    """Ordered results of a serial refresh."""
    epoch: int
    results: Tuple[Tuple[str, Status], ...]


@dataclass(frozen=True)
class StatusFetched:
    """One result of a concurrent refresh."""
    epoch: int
    account_id: str
    status: Status


@dataclass(frozen=True)
class FetchPrice:
    pass


@dataclass(frozen=True)
class PriceFetched:
    price: Optional[float]


@dataclass(frozen=True)
class ToggleAutoRefresh:
    enabled: bool


@dataclass(frozen=True)
class ToggleFetchMode:
    mode: FetchMode


@dataclass(frozen=True)
class OpenModal:
    view: ViewKind
    target: Optional[str] = None


@dataclass(frozen=True)
class HideModal:
    follow_up: Optional["Event"] = None


@dataclass(frozen=True)
class DismissDialog:
    pass


@dataclass(frozen=True)
class InputChanged:
    field: InputField
    value: str


@dataclass(frozen=True)
class AddAccount:
    pass


@dataclass(frozen=True)
class RemoveAccount:
    account_id: str


@dataclass(frozen=True)
class SaveConfig:
    pass


@dataclass(frozen=True)
class ThemeSelected:
    theme: str


@dataclass(frozen=True)
class Claim:
    pass


@dataclass(frozen=True)
class Stake:
    pass


@dataclass(frozen=True)
class TransactionCompleted:
    result: TransactionOutcome


@dataclass(frozen=True)
class CloseRequested:
    pass


Event = Union[
    Refresh,
    AccountsFetched,
    StatusFetched,
    FetchPrice,
    PriceFetched,
    ToggleAutoRefresh,
    ToggleFetchMode,
    OpenModal,
    HideModal,
    DismissDialog,
    InputChanged,
    AddAccount,
    RemoveAccount,
    SaveConfig,
    ThemeSelected,
    Claim,
    Stake,
    TransactionCompleted,
    CloseRequested,
]

# Asynchronous work returned by a transition; its result is posted back to the inbox.
Command = Callable[[], Awaitable[Optional[Event]]]
