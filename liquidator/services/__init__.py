"""Service modules"""
from .driver import EpochDriver
from .health import calculate_refreshed_obligation, select_positions
from .scanner import LiquidationScanner

__all__ = [
    "EpochDriver",
    "LiquidationScanner",
    "calculate_refreshed_obligation",
    "select_positions",
]
