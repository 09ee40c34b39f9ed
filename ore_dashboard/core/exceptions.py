"""
Custom exception classes for the application.
Provides structured error handling across all modules.
"""

from typing import Any, Optional, Dict


class OreDashboardException(Exception):
    """Base exception class for the ORE dashboard."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(OreDashboardException):
    """Raised when there's a configuration error."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONFIGURATION_ERROR", details)


class SolanaRPCError(OreDashboardException):
    """Raised when an RPC call against a Solana endpoint fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "SOLANA_RPC_ERROR", details)


class KeySignerError(OreDashboardException):
    """Raised when a keypair file cannot be loaded."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Failed to read keypair file {path}: {reason}",
            "KEY_SIGNER_ERROR",
            {"path": path, "reason": reason}
        )


class TransactionError(OreDashboardException):
    """Raised when a transaction is rejected or cannot be confirmed."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "TRANSACTION_ERROR", details)


class ConfigIOError(OreDashboardException):
    """Raised when the user config file cannot be written."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Failed to save config to {path}: {reason}",
            "CONFIG_IO_ERROR",
            {"path": path, "reason": reason}
        )


class InvariantViolation(OreDashboardException):
    """Raised when an operation targets an account that is no longer tracked."""

    def __init__(self, account_id: str, operation: str):
        super().__init__(
            f"Account {account_id} is no longer tracked, cannot {operation}",
            "INVARIANT_VIOLATION",
            {"account_id": account_id, "operation": operation}
        )
