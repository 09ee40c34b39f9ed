"""
Test refresh rounds in serial and concurrent mode.
"""

from decimal import Decimal

import pytest

from ore_dashboard.dashboard.events import AccountsFetched
from ore_dashboard.dashboard.refresh import RefreshOrchestrator
from ore_dashboard.dashboard.registry import Account, AccountRegistry
from ore_dashboard.dashboard.status_fetcher import StatusFetcher
from ore_dashboard.dashboard.types import FetchMode
from tests.conftest import NOW, FakeChainClient


@pytest.fixture
def registry(keyring):
    registry = AccountRegistry()
    client = FakeChainClient()
    for index, ui_amount in enumerate(["1.5", "2"]):
        signer = keyring.add(f"miner{index}.json")
        client.set_proof(signer.pubkey(), last_hash_at=NOW - 5)
        client.set_tokens(signer.pubkey(), ui_amount)
        registry.add(Account(
            json_rpc_url=client.endpoint,
            keypair_path=signer.path,
            priority_fee=0,
            client=client,
            address=str(signer.pubkey()),
        ))
    return registry


def orchestrator(mode: FetchMode) -> RefreshOrchestrator:
    return RefreshOrchestrator(StatusFetcher(clock=lambda: NOW), mode)


@pytest.mark.asyncio
async def test_serial_round_settles_after_one_result(registry):
    refresher = orchestrator(FetchMode.SERIAL)

    commands = refresher.start(registry)
    assert len(commands) == 1
    event = await commands[0]()

    assert isinstance(event, AccountsFetched)
    assert refresher.apply_all(registry, event)
    assert [a.status.balance for a in registry] == [Decimal("1.5"), Decimal("2")]
    assert all(a.prepared for a in registry)


@pytest.mark.asyncio
async def test_concurrent_round_settles_after_last_result(registry):
    refresher = orchestrator(FetchMode.CONCURRENT)

    commands = refresher.start(registry)
    events = [await command() for command in commands]

    assert not refresher.apply_one(registry, events[0])
    assert refresher.apply_one(registry, events[1])
    assert not refresher.in_progress


@pytest.mark.asyncio
async def test_removal_mid_round_still_settles(registry):
    refresher = orchestrator(FetchMode.CONCURRENT)
    commands = refresher.start(registry)
    first = await commands[0]()

    removed = registry.remove(1)
    assert not refresher.apply_one(registry, first)

    assert refresher.forget(removed.account_id)


@pytest.mark.asyncio
async def test_result_for_removed_account_is_ignored(registry):
    refresher = orchestrator(FetchMode.CONCURRENT)
    commands = refresher.start(registry)
    events = [await command() for command in commands]

    registry.remove(0)
    refresher.apply_one(registry, events[0])

    assert len(registry) == 1
    assert not registry.get(0).prepared


@pytest.mark.asyncio
async def test_stale_epoch_is_dropped(registry):
    refresher = orchestrator(FetchMode.CONCURRENT)
    old_commands = refresher.start(registry)
    refresher.start(registry)

    stale = await old_commands[0]()

    assert not refresher.apply_one(registry, stale)
    assert not registry.get(0).prepared


def test_empty_registry_starts_nothing():
    refresher = orchestrator(FetchMode.CONCURRENT)

    assert refresher.start(AccountRegistry()) == []
    assert not refresher.in_progress


def test_forget_unknown_account_does_not_settle(registry):
    refresher = orchestrator(FetchMode.SERIAL)
    refresher.start(registry)

    assert not refresher.forget("missing")
    assert refresher.in_progress
