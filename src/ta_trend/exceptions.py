# src/ta_trend/exceptions.py


class TrendError(Exception):
    """Base class for all trend-analysis errors."""

    pass


class InvalidArgumentError(TrendError, ValueError):
    """Raised for malformed inputs (mismatched arrays, non-finite values, bad thresholds)."""

    pass
