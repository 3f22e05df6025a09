"""
Trading Insights Orchestrator
Validates and processes raw trades once, then runs every insight calculator in isolation
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from .aggregation import best_bucket, worst_bucket
from .calculations import format_currency
from .calculators import (
    DayOfWeekAnalyzer,
    DirectionAnalyzer,
    DirectionOptionsAnalyzer,
    DurationAnalyzer,
    LotSizeAnalyzer,
    TimeInstrumentAnalyzer,
    TradeCountAnalyzer,
    TradeSequenceAnalyzer,
)
from .config import DEFAULT_CONFIG
from .data_processor import TradingDataProcessor
from .exceptions import TradingDataError

logger = logging.getLogger(__name__)

# (result key, calculator class), in run order
INSIGHT_CALCULATORS = [
    ('day_of_week_analysis', DayOfWeekAnalyzer),
    ('duration_analysis', DurationAnalyzer),
    ('lot_size_analysis', LotSizeAnalyzer),
    ('trade_count_analysis', TradeCountAnalyzer),
    ('trade_sequence_analysis', TradeSequenceAnalyzer),
    ('time_instrument_analysis', TimeInstrumentAnalyzer),
    ('direction_symbol_analysis', DirectionAnalyzer),
    ('direction_cepe_analysis', DirectionOptionsAnalyzer),
]

DURATION_TEXT = {
    '<1m': 'less than 1 minute',
    '1-5m': '1 to 5 minutes',
    '5-15m': '5 to 15 minutes',
    '15-30m': '15 to 30 minutes',
    '30-60m': '30 minutes to 1 hour',
    '1-2h': '1 to 2 hours',
    '>2h': 'more than 2 hours',
}


def _money(value: float) -> str:
    return format_currency(round(value))


class TradingInsightsOrchestrator:
    """Runs the deterministic insight pipeline over raw broker records"""

    def __init__(self, config: Optional[Dict] = None, processor: Optional[TradingDataProcessor] = None):
        self.config = config or DEFAULT_CONFIG
        self.processor = processor or TradingDataProcessor(self.config)
        self.calculators = [(key, cls(self.config)) for key, cls in INSIGHT_CALCULATORS]
        self.logger = logging.getLogger(__name__)

    # =========================================================
    # Pipeline
    # =========================================================
    def run_all_trading_insights(self, trading_data: Any) -> Dict:
        if not isinstance(trading_data, list):
            raise TradingDataError('Trading data must be an array of objects')

        validation = self.processor.validate_trading_data(trading_data)
        if validation.warnings:
            self.logger.warning(f"⚠️ Data validation warnings: {validation.warnings}")
        if validation.errors:
            raise TradingDataError(
                f"Data validation failed: {', '.join(validation.errors)}",
                errors=validation.errors, warnings=validation.warnings,
            )

        try:
            outcome = self.processor.process_records(trading_data)
        except Exception as e:
            raise TradingDataError(f"Data processing failed: {str(e)}") from e
        trades = outcome.trades

        results = {
            'success': True,
            'insights': {},
            'errors': [],
            'metadata': {
                'total_trades': int(len(trades)),
                'original_data_count': len(trading_data),
                'skipped_records': outcome.skipped_count,
                'analysis_date': datetime.now().isoformat(),
                'completed_insights': [],
                'failed_insights': [],
            },
        }

        self.logger.info(
            f"🚀 Starting trading analysis on {len(trades)} processed trades "
            f"(from {len(trading_data)} original records)"
        )

        for key, calculator in self.calculators:
            label = calculator.label
            try:
                result = calculator.analyze(trades)
                if result['success']:
                    results['insights'][key] = result
                    results['metadata']['completed_insights'].append(label)
                else:
                    results['errors'].append(f"{label} Error: {result['error']}")
                    results['metadata']['failed_insights'].append(label)
            except Exception as e:
                self.logger.error(f"❌ {label} threw exception: {str(e)}")
                results['errors'].append(f"{label} Exception: {str(e)}")
                results['metadata']['failed_insights'].append(label)

        results['success'] = len(results['errors']) == 0
        results['concise_summaries'] = generate_concise_summaries(results)
        try:
            results['consolidated_insights'] = generate_consolidated_insights(results)
        except Exception as e:
            self.logger.error(f"❌ Consolidated insights threw exception: {str(e)}")
            results['consolidated_insights'] = _empty_consolidation(f"Consolidation failed: {str(e)}")

        self.logger.info(
            f"✅ Analysis complete: {len(results['metadata']['completed_insights'])} insights, "
            f"{len(results['errors'])} errors"
        )
        return results


# =========================================================
# Concise summaries
# =========================================================
def _succeeded(results: Dict, key: str) -> Optional[Dict]:
    result = results.get('insights', {}).get(key)
    if result and result.get('success'):
        return result['data']
    return None


def _day_summary(data: Dict) -> str:
    table = data['day_pnl_table']
    best = best_bucket(table)
    worst = worst_bucket(table)
    if best['total_pnl'] > 0 and worst['total_pnl'] < 0:
        return (f"Your strongest trading day is {best['day']} with {_money(abs(best['total_pnl']))} profit. "
                f"Consider avoiding {worst['day']} - you've lost {_money(abs(worst['total_pnl']))} on this day.")
    if best['total_pnl'] > 0:
        return (f"{best['day']} is your most profitable day with {_money(abs(best['total_pnl']))} earned. "
                f"Focus more trading on this day.")
    return 'All trading days are showing losses. Consider taking a break and reviewing your strategy before continuing.'


def _duration_summary(data: Dict) -> str:
    table = data['duration_table']
    best = table[0]
    if best['avg_pnl'] <= 0:
        return ("You're losing money across all holding periods. "
                "Consider paper trading to practice timing before risking real money.")

    text = DURATION_TEXT.get(best['duration'], best['duration'])
    summary = (f"You make the most money when holding trades for {text} - earning {_money(best['total_pnl'])} total "
               f"({_money(best['avg_pnl'])} per trade on {best['trade_count']} trades).")

    if best['duration'] in ('<1m', '1-5m', '5-15m'):
        return summary + ' Quick trades work better for you than holding for long periods.'
    if best['duration'] in ('30-60m', '1-2h', '>2h'):
        return summary + ' Patience pays off - longer holds are more profitable for you.'

    quick = [r for r in table if r['duration'] in ('<1m', '1-5m')]
    slow = [r for r in table if r['duration'] in ('30-60m', '1-2h', '>2h')]
    if quick and slow:
        if sum(r['total_pnl'] for r in quick) > sum(r['total_pnl'] for r in slow):
            return summary + ' This is a sweet spot - not too quick, not too slow.'
        return summary + ' This balanced approach works well for your trading style.'
    return summary + ' This moderate timing approach suits your trading style.'


def _lot_size_summary(data: Dict) -> str:
    best = data['lot_size_table'][0]
    if best['total_pnl'] <= 0:
        return ('All position sizes are showing losses. '
                'Consider reducing position sizes and focusing on strategy improvement first.')

    category = best['size_category'].lower()
    for ch in '<>₹':
        category = category.replace(ch, '')
    summary = (f"Your most profitable trade size is {category} positions - earning {_money(best['total_pnl'])} total "
               f"({_money(best['avg_pnl'])} per trade on {best['trade_count']} trades).")
    if 'Small' in best['size_category']:
        return summary + ' Smaller position sizes work better for your trading style and risk management.'
    if 'Large' in best['size_category']:
        return summary + ' Larger positions are profitable for you, but ensure proper risk management.'
    return summary + ' This moderate position sizing suits your trading approach well.'


def _trade_count_summary(data: Dict) -> str:
    table = data['trade_count_table']
    ranked = sorted(table, key=lambda r: r['avg_daily_pnl'], reverse=True)
    best = next((r for r in ranked if r['total_pnl'] > 0), ranked[0] if ranked else None)
    if not best or best['total_pnl'] <= 0:
        return ('All trading frequencies are showing losses. '
                'Consider reducing daily trade volume and focusing on quality setups.')

    summary = (f"You perform best with {best['trade_count']} trades per day - earning {_money(best['total_pnl'])} total "
               f"({_money(best['avg_daily_pnl'])} daily average on {best['frequency_days']} days).")
    if best['trade_count'] <= 3:
        summary += ' Quality over quantity works for your style - focus on selective, high-conviction trades.'
    elif best['trade_count'] >= 10:
        summary += ' High-volume trading suits you, but watch for overtrading signs.'
    else:
        summary += ' This moderate trading frequency balances opportunity with risk management.'

    if any(r['trade_count'] >= 10 and r['avg_pnl_per_trade'] < 0 for r in table):
        summary += ' Avoid overtrading on days with 10+ trades as it hurts your performance.'
    return summary


def _sequence_summary(data: Dict) -> str:
    categories = {r['category']: r for r in data['sequence_analysis']}
    first = categories.get('First Trade')
    late = categories.get('Late Trades (6+)')
    overtrading = data['overtrading_analysis']
    if not first or first['win_rate'] <= 0:
        return ('Trade sequence analysis shows consistent underperformance. '
                'Focus on quality over quantity with fewer, better-timed trades.')

    summary = (f"Your first trade of each day performs best with {first['win_rate']:.1f}% win rate "
               f"({_money(first['net_pnl'])} total, {_money(first['avg_pnl'])} per trade).")
    if late:
        degradation = first['win_rate'] - late['win_rate']
        if degradation > 10:
            summary += f" Performance degrades significantly by late trades - {degradation:.1f}% point drop."
        elif degradation > 5:
            summary += ' Moderate performance degradation in later trades.'
    if overtrading['high_volume_percentage'] > 30:
        summary += f" Watch for overtrading - {overtrading['high_volume_percentage']:.1f}% of days have 6+ trades."
    if overtrading['overtrading_cost'] > 100:
        summary += f" Overtrading costs {_money(overtrading['overtrading_cost'])} per trade."
    return summary


def _time_instrument_summary(data: Dict) -> str:
    best = best_bucket(data['time_instrument_matrix'])
    best_slot = best_bucket(data['time_slot_analysis'])
    best_instrument = best_bucket(data['instrument_analysis'])
    if best and best['total_pnl'] > 0:
        summary = (f"Your most profitable time-instrument combination is {best['time_slot']} × "
                   f"{best['instrument_type']} earning {_money(best['total_pnl'])}")
        if best['win_rate'] >= 60:
            summary += f" with a {best['win_rate']:.0f}% win rate"
        return summary + f". Focus trading during {best_slot['time_slot']} for optimal results."
    if best_slot['total_pnl'] > 0:
        return (f"{best_slot['time_slot']} is your best trading time with {_money(best_slot['total_pnl'])} earned. "
                f"Consider focusing on {best_instrument['instrument_type']} trading.")
    return ('Time-instrument analysis shows poor performance across all combinations. '
            'Consider reviewing your trading schedule and instrument selection.')


def _direction_summary(data: Dict) -> str:
    best = best_bucket(data['direction_symbol_matrix'])
    by_direction = {d['direction']: d['total_pnl'] for d in data['direction_analysis']}
    long_total = by_direction.get('LONG', 0)
    short_total = by_direction.get('SHORT', 0)
    if not best or best['total_pnl'] <= 0:
        return ('Direction-symbol analysis shows challenges across combinations. '
                'Consider focusing on fewer, higher-conviction trades.')

    summary = (f"Your most profitable direction-symbol combination is {best['direction']} {best['symbol']} "
               f"earning {_money(best['total_pnl'])}")
    if best['win_rate'] >= 60:
        summary += f" with {best['win_rate']:.0f}% win rate"
    if abs(long_total - short_total) > 500:
        better = 'LONG' if long_total > short_total else 'SHORT'
        return summary + f". You perform better with {better} positions overall."
    return summary + '. Focus on this high-performing combination.'


def _cepe_summary(data: Dict) -> str:
    summary_data = data['summary']
    if summary_data['total_trades'] == 0:
        return ('No CE/PE options found in your trading data. '
                'Consider exploring options trading for portfolio diversification.')

    best = best_bucket(data['direction_option_matrix'])
    ce_total = data['ce_analysis']['total_pnl']
    pe_total = data['pe_analysis']['total_pnl']
    if best and best['total_pnl'] > 0:
        summary = (f"Best options combination: {best['direction']} {best['instrument']} {best['option_type']} "
                   f"earning {_money(best['total_pnl'])}")
        if abs(ce_total - pe_total) > 300:
            better, other = ('CE', 'PE') if ce_total > pe_total else ('PE', 'CE')
            return summary + f". {better} options perform better for you than {other}."
        return summary + '. Your options trading shows balanced performance.'
    if summary_data['total_trades'] > 5:
        return (f"Options trading needs improvement - {summary_data['total_trades']} trades with overall losses. "
                f"Consider paper trading options strategies first.")
    return (f"Limited options data ({summary_data['total_trades']} trades) - "
            f"build more experience before optimizing.")


SUMMARY_BUILDERS = [
    ('day_of_week_analysis', _day_summary),
    ('duration_analysis', _duration_summary),
    ('lot_size_analysis', _lot_size_summary),
    ('trade_count_analysis', _trade_count_summary),
    ('trade_sequence_analysis', _sequence_summary),
    ('time_instrument_analysis', _time_instrument_summary),
    ('direction_symbol_analysis', _direction_summary),
    ('direction_cepe_analysis', _cepe_summary),
]


def generate_concise_summaries(results: Dict) -> Dict[str, str]:
    """One plain-language paragraph per completed insight."""
    summaries = {}
    for key, builder in SUMMARY_BUILDERS:
        data = _succeeded(results, key)
        if data is None:
            continue
        try:
            summaries[key] = builder(data)
        except Exception as e:
            logger.error(f"❌ Summary for {key} threw exception: {str(e)}")
    return summaries


# =========================================================
# Consolidated insights
# =========================================================
def _empty_consolidation(overall_summary: str) -> Dict:
    return {
        'overall_summary': overall_summary,
        'key_findings': [],
        'critical_recommendations': [],
        'risk_warnings': [],
    }


def generate_consolidated_insights(results: Dict) -> Dict:
    """Cross-module key findings, critical recommendations and risk warnings."""
    metadata = results.get('metadata', {})
    completed = metadata.get('completed_insights', [])
    if not results.get('success') and not completed:
        return _empty_consolidation('Analysis failed - no insights generated')

    findings: List[str] = []
    recommendations: List[str] = []
    warnings: List[str] = []

    day = _succeeded(results, 'day_of_week_analysis')
    if day:
        best = best_bucket(day['day_pnl_table'])
        worst = worst_bucket(day['day_pnl_table'])
        findings.append(f"Best trading day: {best['day']} ({format_currency(best['total_pnl'])} total P&L)")
        if worst['total_pnl'] < 0:
            findings.append(f"Worst trading day: {worst['day']} ({format_currency(worst['total_pnl'])} total P&L)")
            warnings.append(f"{worst['day']} consistently underperforms - consider reducing activity")
        recommendations.append(f"Focus trading on {best['day']} - your most profitable day")

    sequence = _succeeded(results, 'trade_sequence_analysis')
    if sequence:
        categories = {r['category']: r for r in sequence['sequence_analysis']}
        first = categories.get('First Trade')
        late = categories.get('Late Trades (6+)')
        if first:
            findings.append(f"First trades: {first['win_rate']:.1f}% win rate ({_money(first['avg_pnl'])} avg per trade)")
            if first['win_rate'] > sequence['summary']['overall_win_rate'] + 5:
                recommendations.append('Capitalize on strong first trades - focus maximum effort here')
        if late and late['win_rate'] < 45:
            warnings.append(f"Late trades (6+) underperform at {late['win_rate']:.1f}% win rate - consider daily limits")
        if sequence['overtrading_analysis']['overtrading_cost'] > 100:
            warnings.append(
                f"Overtrading costs {_money(sequence['overtrading_analysis']['overtrading_cost'])} per trade on high-volume days"
            )

    duration = _succeeded(results, 'duration_analysis')
    if duration:
        best = best_bucket(duration['duration_table'], 'win_rate')
        findings.append(f"Best duration: {best['duration']} ({best['win_rate']:.1f}% win rate)")
        recommendations.append(f"Target {best['duration']} holding periods for optimal performance")
        if any(r['duration'] in ('<1m', '1-5m') and r['win_rate'] < 50 for r in duration['duration_table']):
            warnings.append('Short-term trading showing poor results - possible overtrading')

    timing = _succeeded(results, 'time_instrument_analysis')
    if timing:
        best = best_bucket(timing['time_instrument_matrix'])
        best_slot = best_bucket(timing['time_slot_analysis'])
        best_instrument = best_bucket(timing['instrument_analysis'])
        if best and best['total_pnl'] > 0:
            findings.append(
                f"Best combo: {best['time_slot']} × {best['instrument_type']} ({format_currency(best['total_pnl'])} P&L)"
            )
            recommendations.append(
                f"Focus trading during {best_slot['time_slot']} with {best_instrument['instrument_type']}"
            )
        poor = [c for c in timing['time_instrument_matrix'] if c['total_pnl'] < -500]
        if poor:
            worst = worst_bucket(poor)
            warnings.append(f"Avoid {worst['time_slot']} × {worst['instrument_type']} - consistently underperforming")

    direction = _succeeded(results, 'direction_symbol_analysis')
    if direction:
        best = best_bucket(direction['direction_symbol_matrix'])
        if best and best['total_pnl'] > 0:
            findings.append(
                f"Best direction-symbol combo: {best['direction']} {best['symbol']} "
                f"({format_currency(best['total_pnl'])} P&L, {best['win_rate']:.1f}% win rate)"
            )
            recommendations.append(f"Focus on {best['direction']} positions in {best['symbol']}")
        by_direction = {d['direction']: d['total_pnl'] for d in direction['direction_analysis']}
        long_total = by_direction.get('LONG', 0)
        short_total = by_direction.get('SHORT', 0)
        if abs(long_total - short_total) > 1000:
            better = 'LONG' if long_total > short_total else 'SHORT'
            recommendations.append(f"Specialize in {better} positions - they perform significantly better")
        poor = [c for c in direction['direction_symbol_matrix'] if c['total_pnl'] < -500]
        if poor:
            worst = worst_bucket(poor)
            warnings.append(f"Avoid {worst['direction']} {worst['symbol']} - consistently underperforming")

    cepe = _succeeded(results, 'direction_cepe_analysis')
    if cepe and cepe['summary']['total_trades'] > 0:
        best = best_bucket(cepe['direction_option_matrix'])
        if best and best['total_pnl'] > 0:
            name = f"{best['direction']} {best['instrument']} {best['option_type']}"
            findings.append(f"Best options combo: {name} ({format_currency(best['total_pnl'])} P&L)")
            recommendations.append(f"Focus options trading on {name}")
        ce, pe = cepe['ce_analysis'], cepe['pe_analysis']
        if ce['total_trades'] > 0 and pe['total_trades'] > 0 and abs(ce['total_pnl'] - pe['total_pnl']) > 500:
            better, other = ('CE', 'PE') if ce['total_pnl'] > pe['total_pnl'] else ('PE', 'CE')
            recommendations.append(f"Specialize in {better} options - they perform better than {other}")
        if cepe['summary']['overall_win_rate'] < 45:
            warnings.append(
                f"Options win rate is low ({cepe['summary']['overall_win_rate']:.1f}%) - review strategy or reduce position sizes"
            )

    overall = (
        f"Analysis completed on {metadata.get('total_trades', 0):,} trades with {len(completed)} insights generated. "
        f"{len(findings)} key findings identified with {len(recommendations)} actionable recommendations."
    )
    return {
        'overall_summary': overall,
        'key_findings': findings,
        'critical_recommendations': recommendations,
        'risk_warnings': warnings,
    }


def run_all_trading_insights(trading_data: Any, config: Optional[Dict] = None) -> Dict:
    return TradingInsightsOrchestrator(config).run_all_trading_insights(trading_data)
