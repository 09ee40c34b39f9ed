"""
ORE program helpers: PDA derivation, proof account parsing and instruction building.

Proof account layout (little-endian, after an 8 byte discriminator):
- authority: Pubkey (32 bytes)
- balance: u64
- challenge: [u8; 32]
- last_hash: [u8; 32]
- last_hash_at: i64
- last_stake_at: i64
- miner: Pubkey (32 bytes)
- total_hashes: u64
- total_rewards: u64
"""

import struct
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import get_associated_token_address

from ore_dashboard.core.config import settings
from ore_dashboard.core.exceptions import ConfigurationError, TransactionError


PROOF_SEED = b"proof"
TREASURY_SEED = b"treasury"

CLAIM_DISCRIMINATOR = 0
STAKE_DISCRIMINATOR = 5

U64_MAX = 2**64 - 1

_PROOF_LAYOUT = struct.Struct("<8x32sQ32s32sqq32sQQ")
PROOF_SIZE = _PROOF_LAYOUT.size


@dataclass(frozen=True)
class Proof:
    """Decoded miner proof account."""
    authority: Pubkey
    balance: int
    challenge: bytes
    last_hash: bytes
    last_hash_at: int
    last_stake_at: int
    miner: Pubkey
    total_hashes: int
    total_rewards: int


def program_id() -> Pubkey:
    return _configured_pubkey("ore_program_id", settings.ore_program_id)


def mint_address() -> Pubkey:
    return _configured_pubkey("ore_mint_address", settings.ore_mint_address)


def _configured_pubkey(name: str, value: str) -> Pubkey:
    try:
        return Pubkey.from_string(value)
    except ValueError as e:
        raise ConfigurationError(f"Invalid {name}: {value}", {"setting": name, "error": str(e)})


@lru_cache(maxsize=256)
def proof_pubkey(authority: Pubkey, ore_program: Pubkey = None) -> Pubkey:
    """Derive the proof PDA for a miner authority."""
    pda, _ = Pubkey.find_program_address(
        [PROOF_SEED, bytes(authority)],
        ore_program or program_id()
    )
    return pda


@lru_cache(maxsize=1)
def treasury_pubkey() -> Pubkey:
    pda, _ = Pubkey.find_program_address([TREASURY_SEED], program_id())
    return pda


def treasury_tokens_pubkey() -> Pubkey:
    return get_associated_token_address(treasury_pubkey(), mint_address())


def token_account_pubkey(owner: Pubkey) -> Pubkey:
    """Associated ORE token account for an owner."""
    return get_associated_token_address(owner, mint_address())


def parse_proof(data: bytes) -> Proof:
    """Decode raw proof account data."""
    if len(data) < PROOF_SIZE:
        raise ValueError(f"Proof data too small: {len(data)} bytes")

    (
        authority,
        balance,
        challenge,
        last_hash,
        last_hash_at,
        last_stake_at,
        miner,
        total_hashes,
        total_rewards,
    ) = _PROOF_LAYOUT.unpack_from(data)

    return Proof(
        authority=Pubkey.from_bytes(authority),
        balance=balance,
        challenge=challenge,
        last_hash=last_hash,
        last_hash_at=last_hash_at,
        last_stake_at=last_stake_at,
        miner=Pubkey.from_bytes(miner),
        total_hashes=total_hashes,
        total_rewards=total_rewards,
    )


def amount_to_ui(amount: int, decimals: int = None) -> Decimal:
    """Convert a raw token amount to a UI amount."""
    if decimals is None:
        decimals = settings.token_decimals
    return Decimal(amount).scaleb(-decimals).normalize()


def amount_from_ui(amount: Decimal, decimals: int = None) -> int:
    """Convert a UI amount to raw token units, truncating extra precision."""
    if decimals is None:
        decimals = settings.token_decimals
    raw = int(Decimal(amount).scaleb(decimals))
    if not 0 <= raw <= U64_MAX:
        raise TransactionError(f"Amount out of range: {amount}", {"raw_amount": str(raw)})
    return raw


def _amount_data(discriminator: int, amount: int) -> bytes:
    return struct.pack("<BQ", discriminator, amount)


def claim_instruction(signer: Pubkey, beneficiary: Pubkey, amount: int) -> Instruction:
    """Build a claim instruction paying `amount` rewards into `beneficiary`."""
    accounts = [
        AccountMeta(pubkey=signer, is_signer=True, is_writable=True),
        AccountMeta(pubkey=beneficiary, is_signer=False, is_writable=True),
        AccountMeta(pubkey=proof_pubkey(signer), is_signer=False, is_writable=True),
        AccountMeta(pubkey=treasury_pubkey(), is_signer=False, is_writable=False),
        AccountMeta(pubkey=treasury_tokens_pubkey(), is_signer=False, is_writable=True),
        AccountMeta(pubkey=TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
    ]
    return Instruction(
        program_id=program_id(),
        accounts=accounts,
        data=_amount_data(CLAIM_DISCRIMINATOR, amount)
    )


def stake_instruction(signer: Pubkey, sender: Pubkey, amount: int) -> Instruction:
    """Build a stake instruction moving `amount` from `sender` into the signer's proof."""
    accounts = [
        AccountMeta(pubkey=signer, is_signer=True, is_writable=True),
        AccountMeta(pubkey=proof_pubkey(signer), is_signer=False, is_writable=True),
        AccountMeta(pubkey=sender, is_signer=False, is_writable=True),
        AccountMeta(pubkey=treasury_tokens_pubkey(), is_signer=False, is_writable=True),
        AccountMeta(pubkey=TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
    ]
    return Instruction(
        program_id=program_id(),
        accounts=accounts,
        data=_amount_data(STAKE_DISCRIMINATOR, amount)
    )
