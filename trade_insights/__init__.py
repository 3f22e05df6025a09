"""
Trade Insights
Bucketed P&L analytics and AI commentary for retail trading journals
"""

from .config import load_config, setup_logging, DEFAULT_CONFIG
from .data_processor import TradingDataProcessor, process_raw_trading_data, validate_trading_data
from .orchestrator import TradingInsightsOrchestrator, run_all_trading_insights
from .exceptions import TradingDataError, AIClientError, QuotaExceededError

__version__ = "0.1.0"

__all__ = [
    "load_config",
    "setup_logging",
    "DEFAULT_CONFIG",
    "TradingDataProcessor",
    "process_raw_trading_data",
    "validate_trading_data",
    "TradingInsightsOrchestrator",
    "run_all_trading_insights",
    "TradingDataError",
    "AIClientError",
    "QuotaExceededError",
]
