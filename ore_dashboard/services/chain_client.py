"""
Solana RPC client service for the dashboard.
Provides account reads and transaction submission for one RPC endpoint.
"""

from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.types import TxOpts
from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.instruction import Instruction
from solders.message import MessageV0
from solders.pubkey import Pubkey
import structlog

from ore_dashboard.core.config import SolanaConfig
from ore_dashboard.core.exceptions import SolanaRPCError
from ore_dashboard.services.key_signer import KeySigner


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TokenAccountInfo:
    """Balance of an SPL token account."""
    address: str
    amount: int
    decimals: int
    ui_amount_string: str


@dataclass(frozen=True)
class TransactionResult:
    """Result of a sent transaction."""
    signature: str
    success: bool
    error: Optional[str] = None


class ChainClient(Protocol):
    """Operations the dashboard needs from a chain endpoint."""

    endpoint: str

    async def get_account_data(self, address: Pubkey) -> Optional[bytes]:
        ...

    async def get_native_balance(self, address: Pubkey) -> int:
        ...

    async def get_token_account(self, address: Pubkey) -> Optional[TokenAccountInfo]:
        ...

    async def submit_and_confirm(
        self,
        instructions: Sequence[Instruction],
        signer: KeySigner,
        priority_fee: int,
        compute_unit_limit: Optional[int] = None,
    ) -> TransactionResult:
        ...

    async def close(self) -> None:
        ...


class SolanaChainClient:
    """
    Async Solana RPC client bound to one endpoint.

    Read methods raise SolanaRPCError on transport or RPC failures and
    return None when the requested account does not exist.
    """

    def __init__(self, endpoint: str):
        rpc_config = SolanaConfig.get_rpc_config(endpoint)
        self.endpoint = endpoint
        self.commitment = Commitment(rpc_config["commitment"])
        self.client = AsyncClient(
            endpoint=rpc_config["endpoint"],
            commitment=self.commitment,
            timeout=rpc_config["timeout"]
        )
        self.logger = logger.bind(service="chain_client", endpoint=endpoint)

    async def close(self):
        """Close the RPC client connection."""
        await self.client.close()

    async def get_account_data(self, address: Pubkey) -> Optional[bytes]:
        """Get raw account data, or None if the account does not exist."""
        try:
            response = await self.client.get_account_info(address)
        except Exception as e:
            raise SolanaRPCError(
                f"Failed to get account info: {e}",
                {"address": str(address), "endpoint": self.endpoint}
            )
        if response.value is None:
            return None
        return bytes(response.value.data)

    async def get_native_balance(self, address: Pubkey) -> int:
        """Get the SOL balance of an address in lamports."""
        try:
            response = await self.client.get_balance(address)
            return response.value
        except Exception as e:
            raise SolanaRPCError(
                f"Failed to get balance: {e}",
                {"address": str(address), "endpoint": self.endpoint}
            )

    async def get_token_account(self, address: Pubkey) -> Optional[TokenAccountInfo]:
        """Get an SPL token account balance, or None if the account does not exist."""
        if await self.get_account_data(address) is None:
            return None
        try:
            response = await self.client.get_token_account_balance(address)
        except Exception as e:
            raise SolanaRPCError(
                f"Failed to get token account balance: {e}",
                {"address": str(address), "endpoint": self.endpoint}
            )
        token_amount = response.value
        return TokenAccountInfo(
            address=str(address),
            amount=int(token_amount.amount),
            decimals=token_amount.decimals,
            ui_amount_string=token_amount.ui_amount_string,
        )

    async def submit_and_confirm(
        self,
        instructions: Sequence[Instruction],
        signer: KeySigner,
        priority_fee: int,
        compute_unit_limit: Optional[int] = None,
    ) -> TransactionResult:
        """
        Sign, send and confirm a transaction.

        Failures are reported in the returned TransactionResult rather than raised.
        """
        budget: List[Instruction] = []
        if compute_unit_limit is not None:
            budget.append(set_compute_unit_limit(compute_unit_limit))
        budget.append(set_compute_unit_price(priority_fee))

        signature = ""
        try:
            blockhash_resp = await self.client.get_latest_blockhash()
            message = MessageV0.try_compile(
                payer=signer.pubkey(),
                instructions=budget + list(instructions),
                address_lookup_table_accounts=[],
                recent_blockhash=blockhash_resp.value.blockhash,
            )
            transaction = signer.sign(message)

            opts = TxOpts(skip_preflight=False, preflight_commitment=self.commitment)
            response = await self.client.send_transaction(transaction, opts=opts)
            signature = str(response.value)

            confirmation = await self.client.confirm_transaction(
                response.value,
                commitment=self.commitment
            )
            status = confirmation.value[0]
            error = None
            if status is None:
                error = "Transaction was not confirmed"
            elif status.err is not None:
                error = str(status.err)

            self.logger.info(
                "Transaction sent",
                signature=signature,
                success=error is None,
                error=error
            )
            return TransactionResult(signature=signature, success=error is None, error=error)

        except Exception as e:
            self.logger.error("Failed to send transaction", signature=signature, error=str(e))
            return TransactionResult(signature=signature, success=False, error=str(e))
