"""
Keypair loading and transaction signing.
"""

from pathlib import Path

from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from ore_dashboard.core.exceptions import KeySignerError


class KeySigner:
    """Signs transactions with a keypair read from a Solana CLI keypair file."""

    def __init__(self, keypair: Keypair, path: str = ""):
        self.keypair = keypair
        self.path = path

    @classmethod
    def from_file(cls, path: str) -> "KeySigner":
        """Load a JSON keypair file (a list of 64 secret key bytes)."""
        try:
            raw = Path(path).expanduser().read_text()
            keypair = Keypair.from_json(raw)
        except Exception as e:
            raise KeySignerError(path, str(e))
        return cls(keypair, path)

    def pubkey(self) -> Pubkey:
        return self.keypair.pubkey()

    def sign(self, message: MessageV0) -> VersionedTransaction:
        return VersionedTransaction(message, [self.keypair])
