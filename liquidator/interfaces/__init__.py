"""Protocol interfaces for the liquidator."""
from .chain import ChainClient
from .executor import LiquidationExecutor, RedemptionExecutor
from .market import MarketSnapshotProvider, ObligationParser
from .price_oracle import PriceOracle

__all__ = [
    "ChainClient",
    "LiquidationExecutor",
    "MarketSnapshotProvider",
    "ObligationParser",
    "PriceOracle",
    "RedemptionExecutor",
]
