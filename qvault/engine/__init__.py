"""Engine — расчёт ratio, mint/redeem, liquidation mode, reserve adapter и execution guard."""

from .collateralization import CollateralizationCalculator, MintEligibility
from .execution import ExecutionGuard, Journal
from .liquidation import LiquidationEngine, LiquidationMode, LiquidationPayout, LiquidationStatus
from .mint_redeem import MintQuote, MintRedeemEngine, RedeemQuote
from .reserve_adapter import ReserveAdapter

__all__ = [
    "CollateralizationCalculator",
    "MintEligibility",
    "ExecutionGuard",
    "Journal",
    "LiquidationEngine",
    "LiquidationMode",
    "LiquidationPayout",
    "LiquidationStatus",
    "MintQuote",
    "MintRedeemEngine",
    "RedeemQuote",
    "ReserveAdapter",
]
