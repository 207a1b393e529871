"""
qvault — risk core of a euro-pegged synthetic-asset vault.

Collateral ledger, price cache with deviation guard, mint/redeem accounting,
protocol-wide liquidation mode and the reserve adapter.
"""

from qvault.vault import QuantVault

__all__ = ["QuantVault"]
