"""
AI Insight Generators
Each domain runs its deterministic calculator, turns the result into a prompt
and attaches the model's commentary to the calculator data
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Type

from ..aggregation import round2, top_n
from ..calculators import (
    BaseInsightCalculator,
    DayOfWeekAnalyzer,
    DirectionAnalyzer,
    DurationAnalyzer,
    LotSizeAnalyzer,
    TimeInstrumentAnalyzer,
    TradeCountAnalyzer,
    TradeSequenceAnalyzer,
)
from .utils import create_trading_analysis_prompt

logger = logging.getLogger(__name__)


def _profitability(total_pnl: float) -> str:
    return 'profitable' if total_pnl > 0 else 'loss'


# =========================================================
# Prompt builders
# =========================================================
def day_prompt(data: Dict) -> str:
    summary = data['summary']
    payload = {
        'analysis_type': 'Day of Week Trading Performance',
        'total_trades': summary['total_trades'],
        'total_pnl': round2(summary['total_pnl']),
        'avg_pnl_per_trade': round2(summary['avg_pnl_per_trade']),
        'trading_days': summary['trading_days'],
        'date_range': summary['date_range'],
        'day_performance': [
            {
                'day': r['day'],
                'total_pnl': round2(r['total_pnl']),
                'trade_count': r['trade_count'],
                'avg_pnl': round2(r['avg_pnl']),
                'profitability': _profitability(r['total_pnl']),
            }
            for r in data['day_pnl_table']
        ],
        'traditional_insights': data['insights'][:5],
        'traditional_recommendations': data.get('recommendations', [])[:3],
    }
    return create_trading_analysis_prompt(payload, 'Day of Week Trading Performance') + """

Additional Context:
- Analyze the day-wise performance patterns
- Identify the most and least profitable days
- Look for consistency vs volatility across days
- Consider potential reasons for day-specific performance (market behavior, trader psychology, etc.)
- Provide actionable insights to optimize day-selection strategy

Focus on practical, data-driven insights that can help improve trading performance and give output in 10-15 words only."""


def lot_size_prompt(data: Dict) -> str:
    summary = data['summary']
    payload = {
        'analysis_type': 'Lot Size Trading Performance',
        'total_trades': summary['total_trades'],
        'total_pnl': round2(summary['total_pnl']),
        'avg_pnl_per_trade': round2(summary['total_pnl'] / summary['total_trades']),
        'lot_size_performance': [
            {
                'lot_size': r['size_category'],
                'total_pnl': round2(r['total_pnl']),
                'trade_count': r['trade_count'],
                'avg_pnl': round2(r['avg_pnl']),
                'profitability': _profitability(r['total_pnl']),
            }
            for r in data['lot_size_table']
        ],
        'traditional_insights': data['insights'][:5],
        'traditional_recommendations': data['recommendations'][:3],
    }
    return create_trading_analysis_prompt(payload, 'Lot Size Trading Performance') + """

Additional Context:
- Analyze how lot size affects trading performance
- Identify optimal lot sizes for maximum profitability
- Look for risk vs reward patterns across different lot sizes
- Consider position sizing strategy recommendations
- Evaluate if larger positions lead to better or worse performance

Focus on position sizing optimization and risk management insights. give output in 10-15 words only."""


def duration_prompt(data: Dict) -> str:
    summary = data['summary']
    payload = {
        'analysis_type': 'Trade Duration Performance',
        'total_trades': summary['total_trades'],
        'total_pnl': round2(summary['total_pnl']),
        'overall_win_rate': round2(summary['overall_win_rate']),
        'avg_holding_time': summary.get('avg_holding_time') or 'Not available',
        'duration_performance': [
            {
                'duration': r['duration'],
                'total_pnl': round2(r['total_pnl']),
                'trade_count': r['trade_count'],
                'avg_pnl': round2(r['avg_pnl']),
                'win_rate': round2(r['win_rate']),
                'profitability': _profitability(r['total_pnl']),
            }
            for r in data['duration_table']
        ],
        'traditional_insights': data['insights'][:5],
        'traditional_recommendations': data.get('recommendations', [])[:3],
    }
    return create_trading_analysis_prompt(payload, 'Trade Duration Performance') + """

Additional Context:
- Analyze how your holding duration affects your trading performance
- Identify your optimal holding times for maximum profitability
- Look for patterns in your quick vs long-term trades
- Consider your timing strategy and patience levels
- Evaluate if you're holding trades too long or cutting them too short

Focus on personalized timing optimization and patience-based insights specific to your trading behavior give in 10-15 words insights."""


def trade_count_prompt(data: Dict) -> str:
    summary = data['summary']
    total_days = summary['total_trading_days']
    counts = '\n'.join(
        f"{r['trade_count']} trades/day: {r['frequency_days']} days, ₹{round2(r['total_pnl'])} P&L, "
        f"{round2(r['avg_win_rate'])}% win rate"
        for r in data['trade_count_table']
    )
    frequency = '\n'.join(
        f"{r['trade_count']} trades: {round2(r['frequency_days'] / total_days * 100)}% of trading days"
        for r in data['trade_count_table']
    )
    return f"""As a professional trading analyst, analyze this trade count data and provide insights:

## Trading Data Summary
- Total Trades: {summary['total_trades']}
- Trading Days: {total_days}
- Total P&L: ₹{round2(summary['total_pnl'])}
- Average Trades per Day: {round2(summary['avg_trades_per_day'])}

## Trade Count Analysis Data
{counts}

## Trade Count Frequency
{frequency}

Provide 3-4 actionable insights focusing on:
1. Optimal trade frequency for maximum profitability
2. Overtrading vs undertrading patterns
3. Quality vs quantity trade-offs
4. Risk management based on trading frequency

Make insights personal and specific to this trader's patterns. give output in 10-15 words."""


def time_instrument_prompt(data: Dict) -> str:
    summary = data['summary']
    best = ', '.join(
        f"{r['time_slot']} × {r['instrument_type']}: ₹{round2(r['total_pnl'])} "
        f"({r['trade_count']} trades, {round2(r['win_rate'])}% win rate)"
        for r in top_n(data['time_instrument_matrix'], 3)
    )
    slots = ', '.join(
        f"{r['time_slot']}: ₹{round2(r['total_pnl'])} total, {r['trade_count']} trades, {round2(r['win_rate'])}% win rate"
        for r in data['time_slot_analysis']
    )
    instruments = ', '.join(
        f"{r['instrument_type']}: ₹{round2(r['total_pnl'])} total, {r['trade_count']} trades, {round2(r['win_rate'])}% win rate"
        for r in data['instrument_analysis']
    )
    return f"""Time-Instrument Analysis:

Best Combinations:
{best}

Time Slot Performance:
{slots}

Instrument Performance:
{instruments}

Summary: {summary['total_trades']} trades across {summary['active_combinations']}/{summary['total_possible_combinations']} time-instrument combinations. Overall: ₹{round2(summary['total_pnl'])} P&L, {round2(summary['overall_win_rate'])}% win rate

Give insights in format: "Pattern → Explanation with numbers." Provide concise insights.give Output in 10-15 words only."""


def trade_sequence_prompt(data: Dict) -> str:
    summary = data['summary']
    overtrading = data['overtrading_analysis']
    sequence = '\n'.join(
        f"{r['category']}: {r['count']} trades, ₹{round2(r['net_pnl'])} total, ₹{round2(r['avg_pnl'])} avg, "
        f"{round2(r['win_rate'])}% win rate"
        for r in data['sequence_analysis']
    )
    individual = '\n'.join(
        f"Trade #{r['trade_number']}: {r['count']} trades, ₹{round2(r['avg_pnl'])} avg, {round2(r['win_rate'])}% win rate"
        for r in data['individual_trade_analysis'][:5]
    )
    return f"""As a professional trading analyst, analyze this trade sequence data :

## Trading Data Summary
- Total Trades: {summary['total_trades']}
- Trading Days: {summary['total_trading_days']}
- Total P&L: ₹{round2(summary['total_pnl'])}
- Average Trades per Day: {round2(summary['avg_trades_per_day'])}
- Best Sequence: {summary['best_sequence']}
- Worst Sequence: {summary['worst_sequence']}

## Performance by Trade Sequence
{sequence}

## Individual Trade Numbers
{individual}

## Overtrading Analysis
- High-volume days (6+ trades): {overtrading['high_volume_days']} days, ₹{round2(overtrading['high_volume_performance'])} avg per trade
- Low-volume days (<6 trades): {overtrading['low_volume_days']} days, ₹{round2(overtrading['low_volume_performance'])} avg per trade
- Overtrading cost: ₹{round2(overtrading['overtrading_cost'])} per trade

Provide 3-4 actionable insights focusing on each not more that 15 words:
1. Optimal trade sequence patterns for maximum profitability
2. Performance degradation in later trades of the day
3. First trade vs subsequent trade performance
4. Overtrading patterns and their impact

Make insights personal and specific to this trader's sequence patterns. give output in 10-15 words."""


def direction_prompt(data: Dict) -> str:
    summary = data['summary']
    directions = '\n'.join(
        f"{r['direction']}: {r['trade_count']} trades, ₹{round2(r['total_pnl'])} P&L, "
        f"{round2(r['win_rate'])}% win rate, {r['symbols_traded']} symbols"
        for r in data['direction_analysis']
    )
    symbols = '\n'.join(
        f"{r['symbol']}: {r['trade_count']} trades, ₹{round2(r['total_pnl'])} P&L, {r['long_trades']}L/{r['short_trades']}S"
        for r in data['top_symbols'][:5]
    )
    combos = '\n'.join(
        f"{r['direction']} {r['symbol']}: {r['trade_count']} trades, ₹{round2(r['total_pnl'])} P&L, {round2(r['win_rate'])}% win rate"
        for r in data['top_direction_symbols'][:5]
    )
    return f"""As a professional trading analyst, analyze this direction performance data:

## Trading Data Summary
- Total Trades: {summary['total_trades']}
- Total P&L: ₹{round2(summary['total_pnl'])}
- Overall Win Rate: {round2(summary['overall_win_rate'])}%
- Better Direction: {data['better_direction']}
- Unique Symbols: {summary['unique_symbols']}

## Direction Performance
{directions}

## Top Performing Symbols
{symbols}

## Best Direction-Symbol Combinations
{combos}

Provide 3-4 actionable insights focusing on:
1. Direction bias and optimal trading approach
2. Symbol-specific direction performance patterns
3. Risk management for different directions
4. Portfolio diversification across directions

Make 10 - 15 words insights personal and specific to this trader's patterns."""


# =========================================================
# Domain registry
# =========================================================
@dataclass(frozen=True)
class AIDomain:
    """One AI-enhanced analysis: calculator, prompt and how its output is ranked."""

    key: str
    analysis_type: str
    label: str
    source: str
    calculator: Type[BaseInsightCalculator]
    build_prompt: Callable[[Dict], str]
    priority: str = 'Medium'
    severity: str = 'Medium'


AI_DOMAINS: List[AIDomain] = [
    AIDomain('day_of_week_analysis', 'day_analysis', 'Day of Week Analysis (AI)', 'Day Analysis',
             DayOfWeekAnalyzer, day_prompt),
    AIDomain('lot_size_analysis', 'lot_size_analysis', 'Lot Size Analysis (AI)', 'Lot Size Analysis',
             LotSizeAnalyzer, lot_size_prompt, priority='High', severity='High'),
    AIDomain('trade_count_analysis', 'trade_count_analysis', 'Trade Count Analysis (AI)', 'Trade Count Analysis',
             TradeCountAnalyzer, trade_count_prompt),
    AIDomain('duration_analysis', 'duration_analysis', 'Duration Analysis (AI)', 'Duration Analysis',
             DurationAnalyzer, duration_prompt),
    AIDomain('time_instrument_analysis', 'time_instrument_analysis', 'Time-Instrument Analysis (AI)',
             'Time-Instrument Analysis', TimeInstrumentAnalyzer, time_instrument_prompt, priority='High'),
    AIDomain('trade_sequence_analysis', 'trade_sequence_analysis', 'Trade Sequence Analysis (AI)',
             'Trade Sequence Analysis', TradeSequenceAnalyzer, trade_sequence_prompt),
    AIDomain('direction_analysis', 'direction_analysis', 'Direction Analysis (AI)', 'Direction Analysis',
             DirectionAnalyzer, direction_prompt, priority='High'),
]


def generate_domain_ai_insights(engine, trades, domain: AIDomain) -> Dict:
    """
    Deterministic analysis plus AI commentary for one domain.
    Success follows the deterministic analysis; a failed model call is
    reported inside `ai_insights`.
    """
    started = datetime.now()
    traditional = domain.calculator(engine.config).analyze(trades)
    if not traditional['success']:
        return {
            'success': False,
            'error': f"Traditional analysis failed: {traditional['error']}",
            'analysis_type': domain.analysis_type,
            'data': None,
        }

    data = traditional['data']
    prompt = domain.build_prompt(data)
    logger.info(f"🤖 {domain.source}: prompt of {len(prompt)} characters")
    ai_result = engine.generate_ai_insights(prompt, domain.analysis_type)
    logger.info(f"{'✅' if ai_result['success'] else '❌'} {domain.source} AI result")

    return {
        'success': True,
        'analysis_type': domain.analysis_type,
        'data': {
            **data,
            'ai_insights': ai_result,
            'metadata': {
                'traditional_analysis': {
                    'insights': len(data.get('insights', [])),
                    'recommendations': len(data.get('recommendations', [])),
                    'processed_trades': traditional['metadata']['processed_trades'],
                },
                'ai_analysis': {
                    'success': ai_result['success'],
                    'tokens_used': ai_result['metadata'].get('tokens_used', 0),
                    'cost': ai_result['metadata'].get('cost', 0),
                    'model': ai_result['metadata'].get('model'),
                },
                'total_processing_time_ms': int((datetime.now() - started).total_seconds() * 1000),
            },
        },
    }
