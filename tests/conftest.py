"""
Shared fakes and fixtures for the dashboard tests.
"""

import struct
from decimal import Decimal
from typing import Dict, List, Optional

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from ore_dashboard.core.exceptions import KeySignerError, SolanaRPCError
from ore_dashboard.dashboard.registry import Account
from ore_dashboard.dashboard.state import Dashboard
from ore_dashboard.services import ore_program
from ore_dashboard.services.chain_client import TokenAccountInfo, TransactionResult
from ore_dashboard.services.config_store import ConfigStore
from ore_dashboard.services.key_signer import KeySigner

NOW = 1_700_000_000


def proof_bytes(
    authority: Pubkey,
    balance: int = 0,
    last_hash_at: int = 0,
    last_stake_at: int = 0,
    total_hashes: int = 0,
    total_rewards: int = 0,
) -> bytes:
    """Encode a proof account the way the ORE program lays it out."""
    return bytes(8) + struct.pack(
        "<32sQ32s32sqq32sQQ",
        bytes(authority),
        balance,
        bytes(32),
        bytes(32),
        last_hash_at,
        last_stake_at,
        bytes(authority),
        total_hashes,
        total_rewards,
    )


def raw(ui_amount: str) -> int:
    return int(ore_program.amount_from_ui(Decimal(ui_amount)))


class FakeChainClient:
    """In-memory chain endpoint recording every submitted transaction."""

    def __init__(self, endpoint: str = "https://rpc.test"):
        self.endpoint = endpoint
        self.accounts: Dict[Pubkey, bytes] = {}
        self.token_accounts: Dict[Pubkey, TokenAccountInfo] = {}
        self.lamports: Dict[Pubkey, int] = {}
        self.fail_account_data = False
        self.fail_token_account = False
        self.fail_native_balance = False
        self.submitted: List[dict] = []
        self.results: List[TransactionResult] = []
        self.closed = False

    def set_proof(self, authority: Pubkey, **fields):
        self.accounts[ore_program.proof_pubkey(authority)] = proof_bytes(authority, **fields)

    def set_tokens(self, owner: Pubkey, ui_amount: str):
        address = ore_program.token_account_pubkey(owner)
        self.token_accounts[address] = TokenAccountInfo(
            address=str(address),
            amount=raw(ui_amount),
            decimals=11,
            ui_amount_string=ui_amount,
        )

    async def get_account_data(self, address: Pubkey) -> Optional[bytes]:
        if self.fail_account_data:
            raise SolanaRPCError("account info unavailable")
        return self.accounts.get(address)

    async def get_native_balance(self, address: Pubkey) -> int:
        if self.fail_native_balance:
            raise SolanaRPCError("balance unavailable")
        return self.lamports.get(address, 0)

    async def get_token_account(self, address: Pubkey) -> Optional[TokenAccountInfo]:
        if self.fail_token_account:
            raise SolanaRPCError("token account unavailable")
        return self.token_accounts.get(address)

    async def submit_and_confirm(self, instructions, signer, priority_fee, compute_unit_limit=None):
        self.submitted.append({
            "instructions": list(instructions),
            "signer": signer.pubkey(),
            "priority_fee": priority_fee,
            "compute_unit_limit": compute_unit_limit,
        })
        if self.results:
            return self.results.pop(0)
        return TransactionResult(signature=f"sig{len(self.submitted)}", success=True)

    async def close(self):
        self.closed = True


class FakePriceFeed:
    def __init__(self, price: Optional[float] = 2.5):
        self.price = price
        self.calls = 0

    async def fetch_price(self, token_id: str, currency: str) -> Optional[float]:
        self.calls += 1
        return self.price


class Keyring:
    """Signer loader backed by in-memory keypairs."""

    def __init__(self):
        self.signers: Dict[str, KeySigner] = {}

    def add(self, path: str) -> KeySigner:
        signer = KeySigner(Keypair(), path)
        self.signers[path] = signer
        return signer

    def __call__(self, path: str) -> KeySigner:
        if path not in self.signers:
            raise KeySignerError(path, "No such file")
        return self.signers[path]


@pytest.fixture
def client():
    return FakeChainClient()


@pytest.fixture
def keyring():
    return Keyring()


@pytest.fixture
def signer(keyring):
    return keyring.add("id.json")


@pytest.fixture
def account(client, signer):
    return Account(
        json_rpc_url=client.endpoint,
        keypair_path=signer.path,
        priority_fee=10,
        client=client,
        address=str(signer.pubkey()),
    )


@pytest.fixture
def price_feed():
    return FakePriceFeed()


@pytest.fixture
def clients():
    """Every chain client created by a dashboard, keyed by endpoint."""
    return {}


@pytest.fixture
def dashboard(tmp_path, keyring, price_feed, clients):
    def client_factory(endpoint: str) -> FakeChainClient:
        fake = clients.setdefault(endpoint, FakeChainClient(endpoint))
        return fake

    return Dashboard(
        config_store=ConfigStore(str(tmp_path / "user-config.json")),
        chain_client_factory=client_factory,
        signer_loader=keyring,
        price_feed=price_feed,
        clock=lambda: NOW,
    )


@pytest.fixture
def keypair_file(tmp_path, keyring):
    """A keypair file on disk whose signer is registered with the keyring."""
    path = tmp_path / "miner.json"
    signer = keyring.add(str(path))
    path.write_text(signer.keypair.to_json())
    return str(path)
