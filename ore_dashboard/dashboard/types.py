"""
Types shared by the dashboard core.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Iterable, Optional

from ore_dashboard.core.config import settings


BALANCE_PRECISION = Decimal("0.0001")
USD_PRECISION = Decimal("0.01")
EMPTY_HASH = bytes(32)


class FetchMode(Enum):
    """How a refresh dispatches its per-account fetches."""
    SERIAL = "serial"
    CONCURRENT = "concurrent"


class TransactionKind(Enum):
    CLAIM = "claim"
    STAKE = "stake"


class Outcome(Enum):
    """Result shown in the transaction dialog."""
    CLAIM_SUCCEEDED = "claim_succeeded"
    CLAIM_FAILED = "claim_failed"
    STAKE_SUCCEEDED = "stake_succeeded"
    STAKE_FAILED = "stake_failed"

    @classmethod
    def of(cls, kind: TransactionKind, success: bool) -> "Outcome":
        if kind is TransactionKind.CLAIM:
            return cls.CLAIM_SUCCEEDED if success else cls.CLAIM_FAILED
        return cls.STAKE_SUCCEEDED if success else cls.STAKE_FAILED

    @property
    def succeeded(self) -> bool:
        return self in (Outcome.CLAIM_SUCCEEDED, Outcome.STAKE_SUCCEEDED)


@dataclass(frozen=True)
class TransactionOutcome:
    """What came back from a claim or stake, including why it failed."""
    kind: TransactionKind
    success: bool
    signature: str = ""
    amount: Optional[int] = None
    error: Optional[str] = None

    @property
    def outcome(self) -> Outcome:
        return Outcome.of(self.kind, self.success)


def is_online(last_hash_at: int, now: float, active_period: Optional[int] = None) -> bool:
    """A miner is online while `now` is strictly before last_hash_at + active period."""
    if active_period is None:
        active_period = settings.active_period_seconds
    return now < last_hash_at + active_period


@dataclass(frozen=True)
class Status:
    """Snapshot of one account's on-chain state from a single fetch."""
    is_valid: bool = False
    authority: Optional[str] = None
    balance: Decimal = Decimal(0)
    stake: Decimal = Decimal(0)
    challenge: bytes = EMPTY_HASH
    last_hash: bytes = EMPTY_HASH
    last_hash_at: int = 0
    last_stake_at: int = 0
    is_online: bool = False
    total_hashes: int = 0
    total_rewards: int = 0
    sol_balance: Decimal = Decimal(0)

    @classmethod
    def uninitialized(cls, authority: Optional[str]) -> "Status":
        """Status for an owner without a proof account."""
        return cls(is_valid=False, authority=authority)


def round_balance(value: Decimal) -> Decimal:
    return value.quantize(BALANCE_PRECISION, rounding=ROUND_HALF_UP)


def to_usd(amount: Decimal, price: Optional[float]) -> Optional[Decimal]:
    if not price:
        return None
    return (amount * Decimal(str(price))).quantize(USD_PRECISION, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class AggregateSummary:
    """Totals over the tracked accounts. Derived, never edited in place."""
    total_balance: Decimal = Decimal("0.0000")
    total_stake: Decimal = Decimal("0.0000")
    active_count: int = 0
    price_usd: Optional[float] = None
    balance_usd: Optional[Decimal] = None
    stake_usd: Optional[Decimal] = None

    @classmethod
    def compute(cls, statuses: Iterable[Status], price_usd: Optional[float] = None) -> "AggregateSummary":
        total_balance = Decimal(0)
        total_stake = Decimal(0)
        active = 0
        for status in statuses:
            total_balance += status.balance
            total_stake += status.stake
            active += 1 if status.is_online else 0

        total_balance = round_balance(total_balance)
        total_stake = round_balance(total_stake)
        return cls(
            total_balance=total_balance,
            total_stake=total_stake,
            active_count=active,
            price_usd=price_usd or None,
            balance_usd=to_usd(total_balance, price_usd),
            stake_usd=to_usd(total_stake, price_usd),
        )

    def without_online_account(self) -> "AggregateSummary":
        return replace(self, active_count=max(0, self.active_count - 1))


class ViewKind(Enum):
    """Every view that can occupy the secondary modal slot."""
    ADD_ACCOUNT = "add_account"
    REMOVE_ACCOUNT = "remove_account"
    CLAIM = "claim"
    CLAIM_CONFIRM = "claim_confirm"
    STAKE = "stake"
    STAKE_CONFIRM = "stake_confirm"
    DIALOG = "dialog"


class DialogKind(Enum):
    NORMAL = "normal"
    GOOD = "good"
    WARN = "warn"
    ERROR = "error"


@dataclass(frozen=True)
class Dialog:
    content: str = ""
    kind: DialogKind = DialogKind.NORMAL
    outcome: Optional[Outcome] = None

    @classmethod
    def for_outcome(cls, result: TransactionOutcome) -> "Dialog":
        outcome = result.outcome
        if outcome is Outcome.CLAIM_SUCCEEDED:
            return cls("Congratulation! Claim succeeded", DialogKind.GOOD, outcome)
        if outcome is Outcome.STAKE_SUCCEEDED:
            return cls("Congratulation! Stake succeeded", DialogKind.GOOD, outcome)
        label = "Claim" if result.kind is TransactionKind.CLAIM else "Stake"
        content = f"{label} failed!"
        if result.error:
            content = f"{content} {result.error}"
        return cls(content, DialogKind.ERROR, outcome)


@dataclass
class FormInputs:
    """Transient text inputs of the add/claim/stake views."""
    json_rpc_url: str = field(default_factory=lambda: settings.default_rpc_url)
    keypair_path: str = field(default_factory=lambda: settings.default_keypair_path)
    priority_fee: str = field(default_factory=lambda: str(settings.default_priority_fee))
    claim_address: str = ""
    claim_amount: str = ""
    stake_amount: str = ""

    def clear_transaction_inputs(self) -> None:
        self.claim_address = ""
        self.claim_amount = ""
        self.stake_amount = ""
