"""Insight calculators: each buckets processed trades by one dimension."""

from .base import BaseInsightCalculator, InsightCalculationError
from .day_analysis import DayOfWeekAnalyzer, analyze_day_of_week_pnl
from .duration_analysis import DurationAnalyzer, analyze_duration_outcome_pnl
from .lot_size_analysis import LotSizeAnalyzer, analyze_lot_size_pnl
from .trade_count_analysis import TradeCountAnalyzer, analyze_trade_count_pnl
from .trade_sequence_analysis import TradeSequenceAnalyzer, analyze_trade_sequence_pnl
from .time_instrument_analysis import TimeInstrumentAnalyzer, analyze_time_instrument_pnl
from .direction_analysis import (
    DirectionAnalyzer,
    DirectionOptionsAnalyzer,
    analyze_direction_cepe_pnl,
    analyze_direction_symbol_pnl,
)

__all__ = [
    "BaseInsightCalculator",
    "InsightCalculationError",
    "DayOfWeekAnalyzer",
    "DurationAnalyzer",
    "LotSizeAnalyzer",
    "TradeCountAnalyzer",
    "TradeSequenceAnalyzer",
    "TimeInstrumentAnalyzer",
    "DirectionAnalyzer",
    "DirectionOptionsAnalyzer",
    "analyze_day_of_week_pnl",
    "analyze_duration_outcome_pnl",
    "analyze_lot_size_pnl",
    "analyze_trade_count_pnl",
    "analyze_trade_sequence_pnl",
    "analyze_time_instrument_pnl",
    "analyze_direction_symbol_pnl",
    "analyze_direction_cepe_pnl",
]
