"""
Test claim and stake execution.
"""

import struct
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from solders.keypair import Keypair

from ore_dashboard.dashboard.transactions import TransactionExecutor
from ore_dashboard.dashboard.types import Outcome, TransactionKind
from ore_dashboard.services import ore_program
from ore_dashboard.services.chain_client import TransactionResult


@pytest.fixture
def executor(keyring):
    return TransactionExecutor(signer_loader=keyring)


def instruction_amount(instruction) -> int:
    _, amount = struct.unpack("<BQ", bytes(instruction.data))
    return amount


@pytest.mark.asyncio
async def test_claim_without_inputs_claims_full_balance_to_self(executor, client, signer, account):
    owner = signer.pubkey()
    client.set_proof(owner, balance=500_000_000_000)
    client.set_tokens(owner, "0")

    result = await executor.claim(account)

    assert result.success
    assert result.outcome is Outcome.CLAIM_SUCCEEDED
    assert result.amount == 500_000_000_000
    assert len(client.submitted) == 1
    instruction = client.submitted[0]["instructions"][0]
    assert instruction_amount(instruction) == 500_000_000_000
    assert instruction.accounts[1].pubkey == ore_program.token_account_pubkey(owner)
    assert client.submitted[0]["compute_unit_limit"] == 32_000
    assert client.submitted[0]["priority_fee"] == 10


@pytest.mark.asyncio
async def test_claim_creates_missing_token_account_first(executor, client, signer, account):
    client.set_proof(signer.pubkey(), balance=1)

    result = await executor.claim(account, Decimal("0.5"))

    assert result.success
    assert len(client.submitted) == 2
    assert client.submitted[0]["compute_unit_limit"] is None
    assert instruction_amount(client.submitted[1]["instructions"][0]) == 50_000_000_000


@pytest.mark.asyncio
async def test_claim_to_other_wallet(executor, client, signer, account):
    destination = Keypair().pubkey()
    client.set_tokens(destination, "0")

    result = await executor.claim(account, Decimal("1"), str(destination))

    assert result.success
    instruction = client.submitted[0]["instructions"][0]
    assert instruction.accounts[1].pubkey == ore_program.token_account_pubkey(destination)


@pytest.mark.asyncio
async def test_claim_failure_keeps_cause(executor, client, signer, account):
    client.set_tokens(signer.pubkey(), "0")
    client.results.append(TransactionResult(signature="sig", success=False, error="custom program error: 0x1"))

    result = await executor.claim(account, Decimal("1"))

    assert not result.success
    assert result.outcome is Outcome.CLAIM_FAILED
    assert result.error == "custom program error: 0x1"


@pytest.mark.asyncio
async def test_claim_without_proof_fails_without_submitting(executor, client, account):
    result = await executor.claim(account)

    assert not result.success
    assert "Proof account not found" in result.error
    assert client.submitted == []


@pytest.mark.asyncio
async def test_claim_with_invalid_destination_fails(executor, client, account):
    result = await executor.claim(account, Decimal("1"), "bad address!")

    assert not result.success
    assert result.kind is TransactionKind.CLAIM
    assert client.submitted == []


@pytest.mark.asyncio
async def test_failed_token_account_creation_fails_claim(executor, client, account):
    client.results.append(TransactionResult(signature="", success=False, error="insufficient funds"))

    result = await executor.claim(account, Decimal("1"))

    assert not result.success
    assert "insufficient funds" in result.error
    assert len(client.submitted) == 1


@pytest.mark.asyncio
async def test_stake_without_amount_stakes_full_wallet_balance(executor, client, signer, account):
    client.set_tokens(signer.pubkey(), "3")

    result = await executor.stake(account)

    assert result.success
    assert result.outcome is Outcome.STAKE_SUCCEEDED
    assert instruction_amount(client.submitted[0]["instructions"][0]) == 300_000_000_000


@pytest.mark.asyncio
async def test_stake_fails_when_token_account_fetch_fails(executor, client, account):
    client.fail_token_account = True

    result = await executor.stake(account)

    assert not result.success
    assert result.outcome is Outcome.STAKE_FAILED
    assert result.error == "Failed to fetch token account"
    assert client.submitted == []


@pytest.mark.asyncio
async def test_unreadable_keypair_fails_both_operations(executor, client, account):
    account.keypair_path = "missing.json"

    claim = await executor.claim(account, Decimal("1"))
    stake = await executor.stake(account, Decimal("1"))

    assert not claim.success
    assert not stake.success
    assert client.submitted == []


@pytest.mark.asyncio
async def test_claim_with_corrupt_proof_fails(executor, client, signer, account):
    client.accounts[ore_program.proof_pubkey(signer.pubkey())] = bytes(10)

    result = await executor.claim(account)

    assert not result.success
    assert "Invalid proof account" in result.error
    assert client.submitted == []


@pytest.mark.asyncio
async def test_unexpected_error_becomes_failed_outcome(executor, client, signer, account):
    client.set_tokens(signer.pubkey(), "3")
    client.submit_and_confirm = AsyncMock(side_effect=RuntimeError("socket closed"))

    result = await executor.stake(account, Decimal("1"))

    assert not result.success
    assert result.kind is TransactionKind.STAKE
    assert result.error == "socket closed"
