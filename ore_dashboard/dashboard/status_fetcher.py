"""
Per-account status fetch.

Every sub-fetch degrades to a default value instead of raising, so a refresh
always produces a usable Status.
"""

import asyncio
import time
from decimal import Decimal
from typing import Awaitable, Callable, Optional, TypeVar

import structlog
from solders.pubkey import Pubkey

from ore_dashboard.core.config import SolanaConfig
from ore_dashboard.dashboard.registry import Account
from ore_dashboard.dashboard.types import Status, is_online
from ore_dashboard.services import ore_program
from ore_dashboard.services.chain_client import ChainClient


logger = structlog.get_logger(__name__)

T = TypeVar("T")


class StatusFetcher:
    """Builds a Status snapshot for one account owner."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self.logger = logger.bind(service="status_fetcher")

    async def fetch(self, account: Account) -> Status:
        """Fetch the status of a tracked account."""
        if account.address is None:
            self.logger.warning("Account has no readable keypair", keypair_path=account.keypair_path)
            return Status.uninitialized(None)
        return await self.fetch_address(account.client, account.address)

    async def fetch_address(self, client: ChainClient, address: str) -> Status:
        try:
            owner = Pubkey.from_string(address)
        except ValueError:
            self.logger.warning("Invalid address", address=address)
            return Status()

        proof_data = await self._tolerant(
            client.get_account_data(ore_program.proof_pubkey(owner)), None, "proof", address
        )
        if proof_data is None:
            return Status.uninitialized(address)
        try:
            proof = ore_program.parse_proof(proof_data)
        except ValueError as e:
            self.logger.warning("Failed to parse proof", address=address, error=str(e))
            return Status.uninitialized(address)

        lamports, token_account = await asyncio.gather(
            self._tolerant(client.get_native_balance(owner), 0, "native balance", address),
            self._tolerant(
                client.get_token_account(ore_program.token_account_pubkey(owner)),
                None,
                "token account",
                address
            ),
        )
        balance = Decimal(token_account.ui_amount_string) if token_account else Decimal("0")

        return Status(
            is_valid=True,
            authority=str(proof.authority),
            balance=balance,
            stake=ore_program.amount_to_ui(proof.balance),
            challenge=proof.challenge,
            last_hash=proof.last_hash,
            last_hash_at=proof.last_hash_at,
            last_stake_at=proof.last_stake_at,
            is_online=is_online(proof.last_hash_at, self.clock()),
            total_hashes=proof.total_hashes,
            total_rewards=proof.total_rewards,
            sol_balance=Decimal(lamports) / SolanaConfig.LAMPORTS_PER_SOL,
        )

    async def _tolerant(self, call: Awaitable[T], default: Optional[T], what: str, address: str) -> Optional[T]:
        try:
            return await call
        except Exception as e:
            self.logger.warning(f"Failed to fetch {what}, using default", address=address, error=str(e))
            return default
