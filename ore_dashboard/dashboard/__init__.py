"""
Dashboard state, refresh and transaction components.
"""

from .registry import Account, AccountRegistry
from .state import Dashboard
from .types import AggregateSummary, Status

__all__ = [
    "Account",
    "AccountRegistry",
    "AggregateSummary",
    "Dashboard",
    "Status",
]
