"""
Claim and stake execution against a single account.
"""

from decimal import Decimal
from typing import Callable, Optional

import structlog
from solders.pubkey import Pubkey
from spl.token.instructions import create_associated_token_account

from ore_dashboard.core.config import settings
from ore_dashboard.core.exceptions import KeySignerError, TransactionError
from ore_dashboard.dashboard.registry import Account
from ore_dashboard.dashboard.types import TransactionKind, TransactionOutcome
from ore_dashboard.services import ore_program
from ore_dashboard.services.key_signer import KeySigner


logger = structlog.get_logger(__name__)

SignerLoader = Callable[[str], KeySigner]


class TransactionExecutor:
    """
    Executes claim and stake transactions.

    Both operations always return a TransactionOutcome; the error field
    carries the cause of any failure.
    """

    def __init__(self, signer_loader: SignerLoader = KeySigner.from_file):
        self.signer_loader = signer_loader
        self.logger = logger.bind(service="transaction_executor")

    async def claim(
        self,
        account: Account,
        amount: Optional[Decimal] = None,
        destination: Optional[str] = None,
    ) -> TransactionOutcome:
        """
        Claim mining rewards.

        Args:
            account: Account whose proof holds the rewards
            amount: UI amount to claim, defaults to the full proof balance read now
            destination: Wallet receiving the tokens, defaults to the account owner
        """
        try:
            return await self._claim(account, amount, destination)
        except (KeySignerError, TransactionError) as e:
            self.logger.error("Claim failed", account=account.address, error=e.message)
            return TransactionOutcome(TransactionKind.CLAIM, success=False, error=e.message)
        except Exception as e:
            self.logger.exception("Unexpected claim failure", account=account.address)
            return TransactionOutcome(TransactionKind.CLAIM, success=False, error=str(e))

    async def stake(
        self,
        account: Account,
        amount: Optional[Decimal] = None,
        sender: Optional[str] = None,
    ) -> TransactionOutcome:
        """
        Stake tokens into the account's proof.

        Args:
            account: Account whose proof receives the stake
            amount: UI amount to stake, defaults to the sender's full token balance
            sender: Wallet whose token account funds the stake, defaults to the owner
        """
        try:
            return await self._stake(account, amount, sender)
        except (KeySignerError, TransactionError) as e:
            self.logger.error("Stake failed", account=account.address, error=e.message)
            return TransactionOutcome(TransactionKind.STAKE, success=False, error=e.message)
        except Exception as e:
            self.logger.exception("Unexpected stake failure", account=account.address)
            return TransactionOutcome(TransactionKind.STAKE, success=False, error=str(e))

    async def _claim(self, account: Account, amount: Optional[Decimal], destination: Optional[str]) -> TransactionOutcome:
        signer = self.signer_loader(account.keypair_path)
        owner = signer.pubkey()
        beneficiary_owner = _parse_address(destination) if destination else owner

        if amount is None:
            proof_data = await _read(account.client.get_account_data(ore_program.proof_pubkey(owner)))
            if proof_data is None:
                raise TransactionError("Proof account not found", {"owner": str(owner)})
            try:
                raw_amount = ore_program.parse_proof(proof_data).balance
            except ValueError as e:
                raise TransactionError(f"Invalid proof account: {e}", {"owner": str(owner)})
        else:
            raw_amount = ore_program.amount_from_ui(amount)

        beneficiary = await self.ensure_token_account(account, signer, beneficiary_owner)

        result = await account.client.submit_and_confirm(
            [ore_program.claim_instruction(owner, beneficiary, raw_amount)],
            signer,
            account.priority_fee,
            settings.claim_compute_unit_limit,
        )
        self.logger.info(
            "Claim submitted",
            owner=str(owner),
            beneficiary=str(beneficiary),
            amount=raw_amount,
            success=result.success
        )
        return TransactionOutcome(
            TransactionKind.CLAIM,
            success=result.success,
            signature=result.signature,
            amount=raw_amount,
            error=result.error,
        )

    async def _stake(self, account: Account, amount: Optional[Decimal], sender: Optional[str]) -> TransactionOutcome:
        signer = self.signer_loader(account.keypair_path)
        owner = signer.pubkey()
        sender_owner = _parse_address(sender) if sender else owner
        sender_tokens = ore_program.token_account_pubkey(sender_owner)

        try:
            token_account = await account.client.get_token_account(sender_tokens)
        except Exception as e:
            self.logger.warning("Failed to fetch token account", address=str(sender_tokens), error=str(e))
            token_account = None
        if token_account is None:
            raise TransactionError("Failed to fetch token account", {"address": str(sender_tokens)})

        raw_amount = token_account.amount if amount is None else ore_program.amount_from_ui(amount)

        result = await account.client.submit_and_confirm(
            [ore_program.stake_instruction(owner, sender_tokens, raw_amount)],
            signer,
            account.priority_fee,
            settings.claim_compute_unit_limit,
        )
        self.logger.info("Stake submitted", owner=str(owner), amount=raw_amount, success=result.success)
        return TransactionOutcome(
            TransactionKind.STAKE,
            success=result.success,
            signature=result.signature,
            amount=raw_amount,
            error=result.error,
        )

    async def ensure_token_account(self, account: Account, signer: KeySigner, owner: Pubkey) -> Pubkey:
        """Return the owner's associated token account, creating it first if absent."""
        token_account = ore_program.token_account_pubkey(owner)
        if await _read(account.client.get_token_account(token_account)) is not None:
            return token_account

        instruction = create_associated_token_account(
            payer=signer.pubkey(),
            owner=owner,
            mint=ore_program.mint_address(),
        )
        result = await account.client.submit_and_confirm([instruction], signer, account.priority_fee)
        if not result.success:
            raise TransactionError(
                f"Failed to create token account: {result.error}",
                {"address": str(token_account)}
            )
        self.logger.info("Created token account", owner=str(owner), address=str(token_account))
        return token_account


def _parse_address(address: str) -> Pubkey:
    try:
        return Pubkey.from_string(address.strip())
    except ValueError:
        raise TransactionError(f"Invalid address: {address}", {"address": address})


async def _read(call):
    try:
        return await call
    except Exception as e:
        raise TransactionError(str(e))
