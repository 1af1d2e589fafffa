"""Exception hierarchy for the liquidator."""


class LiquidatorError(Exception):
    """Base class for all liquidator errors."""


class ConfigurationError(LiquidatorError, ValueError):
    """Invalid or missing configuration. Fatal at startup."""


class NetworkError(LiquidatorError):
    """RPC or HTTP call failed."""


class ActionExecutionError(LiquidatorError):
    """A liquidation or redemption transaction was rejected."""
