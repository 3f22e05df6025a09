"""
Base Insight Calculator
Shared validation, result envelope and formatting for the bucket calculators
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd

from ..calculations import format_currency, format_percentage
from ..config import DEFAULT_CONFIG


class InsightCalculationError(ValueError):
    """Raised inside a calculator; converted to a failure envelope at its boundary."""


class BaseInsightCalculator:
    """Bucket trades by one dimension, aggregate P&L, and template insights."""

    name = 'base'
    label = 'Base Analysis'

    def __init__(self, config: Optional[Dict] = None):
        self.config = config or DEFAULT_CONFIG
        analysis = self.config.get('analysis', DEFAULT_CONFIG['analysis'])
        self.min_trades = analysis.get('min_trades_for_insight', 3)
        self.currency = analysis.get('currency_symbol', '₹')
        self.pct_decimals = analysis.get('percentage_decimals', 1)
        self.include_recommendations = analysis.get('include_recommendations', True)
        self.logger = logging.getLogger(self.__class__.__module__)

    # =========================================================
    # Public Entry
    # =========================================================
    def analyze(self, trades) -> Dict:
        """Run the analysis; never raises, returns {success, data, error, metadata}."""
        input_length = len(trades) if trades is not None and hasattr(trades, '__len__') else 0
        try:
            df = self._as_frame(trades)
            valid = self.filter_trades(df)
            if valid.empty:
                data = self.empty_result()
                if data is None:
                    raise InsightCalculationError('No valid trades found after processing')
            else:
                data = self.build(valid)
            if not self.include_recommendations:
                data['recommendations'] = []

            self.logger.info(f"✅ {self.label}: {len(valid)} trades analysed")
            return {
                'success': True,
                'data': data,
                'error': None,
                'metadata': {
                    'processed_trades': int(len(valid)),
                    'skipped_trades': int(len(df) - len(valid)),
                    'analysis_date': datetime.now().isoformat(),
                    'config': self.options(),
                },
            }

        except Exception as e:
            self.logger.error(f"❌ {self.label} failed: {str(e)}")
            return {
                'success': False,
                'data': None,
                'error': str(e),
                'metadata': {
                    'analysis_date': datetime.now().isoformat(),
                    'input_length': input_length,
                },
            }

    @staticmethod
    def _as_frame(trades) -> pd.DataFrame:
        if isinstance(trades, list):
            trades = pd.DataFrame(trades)
        if not isinstance(trades, pd.DataFrame) or trades.empty:
            raise InsightCalculationError('Invalid trading data: Expected non-empty array')
        if 'pnl' not in trades.columns:
            raise InsightCalculationError("Invalid trading data: missing 'pnl' column")
        return trades

    # =========================================================
    # Hooks
    # =========================================================
    def filter_trades(self, df: pd.DataFrame) -> pd.DataFrame:
        """Trades this calculator considers valid."""
        pnl = pd.to_numeric(df['pnl'], errors='coerce')
        return df[pnl.notna()].copy()

    def build(self, df: pd.DataFrame) -> Dict:
        raise NotImplementedError

    def empty_result(self) -> Optional[Dict]:
        """Payload when no trade passes the filter; None means that is an error."""
        return None

    def options(self) -> Dict:
        return {'min_trades': self.min_trades}

    # =========================================================
    # Formatting helpers
    # =========================================================
    def fmt(self, value, decimals: int = 0) -> str:
        value = float(value)
        return format_currency(round(value, decimals) if decimals else round(value), self.currency)

    def pct(self, value) -> str:
        return format_percentage(float(value), self.pct_decimals)

    @staticmethod
    def dedupe(items: List[str]) -> List[str]:
        return list(dict.fromkeys(items))
