"""Stock video plugin - simulated generation from a fixed set of sample clips."""

from .schema import DEFAULT_STOCK_VIDEOS, StockVideoConfig
from .task import StockVideoProcessor

__all__ = ["StockVideoProcessor", "StockVideoConfig", "DEFAULT_STOCK_VIDEOS"]
