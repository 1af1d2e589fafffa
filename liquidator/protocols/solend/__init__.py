from .adapter import BALANCE_LOOKUP_FAILED, SolendMarket
from .layout import parse_obligation, parse_reserve

__all__ = ["BALANCE_LOOKUP_FAILED", "SolendMarket", "parse_obligation", "parse_reserve"]
