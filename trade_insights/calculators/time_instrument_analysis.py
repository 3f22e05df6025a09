"""
Time of Day x Instrument Analysis
Which instruments work in which part of the trading session
"""

import re
from typing import Dict, List, Optional

import pandas as pd

from ..aggregation import aggregate_buckets, best_bucket, bucket_stats, worst_bucket
from ..calculations import calculate_basic_stats
from .base import BaseInsightCalculator

TIME_BUCKETS = ['Early Morning (9-10 AM)', 'Morning (10-12 PM)', 'Afternoon (12-2 PM)', 'Late Afternoon (2+ PM)']
PRE_MARKET = 'Pre-Market'

# Applied in order; option/expiry suffixes first, then dates, then FUT and trailing digits
_SYMBOL_SUFFIX_PATTERNS = [
    (re.compile(r'\d{2}[A-Z]{3}\d{2}\d+[PC]E$', re.I), 1),
    (re.compile(r'\d{4}\d+[PC]E$', re.I), 1),
    (re.compile(r'\d{2}[A-Z]{3}\d{2}', re.I), 0),
    (re.compile(r'\d{2}[A-Z]{3}\d{4}', re.I), 0),
    (re.compile(r'\d{7,}'), 0),
    (re.compile(r'\d{2}[A-Z]{3}FUT$', re.I), 1),
    (re.compile(r'FUT$', re.I), 1),
    (re.compile(r'\d+$'), 0),
    (re.compile(r'[^A-Z]'), 0),
]


def extract_base_instrument(symbol) -> str:
    """Strip expiry, strike and option/future suffixes: NIFTY25JUL24750CE -> NIFTY."""
    if not isinstance(symbol, str) or not symbol.strip():
        return 'UNKNOWN'
    base = symbol.upper().strip()
    for pattern, count in _SYMBOL_SUFFIX_PATTERNS:
        base = pattern.sub('', base, count=count)
    return base or 'UNKNOWN'


def categorize_instrument(symbol) -> str:
    base = extract_base_instrument(symbol)
    for index in ('BANKNIFTY', 'SENSEX', 'NIFTY'):
        if index in base:
            return index
    return base


def get_time_bucket(hour) -> Optional[str]:
    if hour is None or pd.isna(hour):
        return None
    hour = int(hour)
    if 9 <= hour < 10:
        return TIME_BUCKETS[0]
    if 10 <= hour < 12:
        return TIME_BUCKETS[1]
    if 12 <= hour < 14:
        return TIME_BUCKETS[2]
    if hour >= 14:
        return TIME_BUCKETS[3]
    return PRE_MARKET


class TimeInstrumentAnalyzer(BaseInsightCalculator):
    """P&L matrix of session time bucket x instrument category."""

    name = 'time_instrument_analysis'
    label = 'Time of Day × Instrument P&L Analysis'

    def options(self) -> Dict:
        return {'time_buckets': TIME_BUCKETS}

    def filter_trades(self, df: pd.DataFrame) -> pd.DataFrame:
        df = super().filter_trades(df)
        if 'entry_hour' not in df.columns:
            return df.iloc[0:0]
        if 'has_entry_time' in df.columns:
            df = df[df['has_entry_time'].fillna(False).astype(bool)]
        symbols = df['symbol'] if 'symbol' in df.columns else pd.Series('', index=df.index)
        df = df.assign(
            time_bucket=df['entry_hour'].map(get_time_bucket),
            instrument_category=symbols.map(categorize_instrument),
            base_instrument=symbols.map(extract_base_instrument),
        )
        return df[df['time_bucket'].isin(TIME_BUCKETS)]

    def build(self, df: pd.DataFrame) -> Dict:
        instruments = sorted(df['instrument_category'].unique())
        cells = aggregate_buckets(df, ['time_bucket', 'instrument_category'],
                                  label=['time_slot', 'instrument_type'])
        slot_position = {slot: i for i, slot in enumerate(TIME_BUCKETS)}
        inst_position = {inst: i for i, inst in enumerate(instruments)}
        cells.sort(key=lambda c: (slot_position[c['time_slot']], inst_position[c['instrument_type']]))

        matrix = [
            {
                'time_slot': c['time_slot'],
                'instrument_type': c['instrument_type'],
                'total_pnl': c['total_pnl'],
                'trade_count': c['trade_count'],
                'winning_trades': c['winning_trades'],
                'losing_trades': c['losing_trades'],
                'win_rate': c['win_rate'],
                'loss_rate': c['loss_rate'],
                'avg_pnl': c['avg_pnl'],
            }
            for c in cells
        ]

        time_slot_analysis = [
            {'time_slot': slot, **self._rollup(df[df['time_bucket'] == slot], matrix, 'time_slot', slot)}
            for slot in TIME_BUCKETS
        ]

        instrument_analysis = []
        for inst in instruments:
            subset = df[df['instrument_category'] == inst]
            instrument_analysis.append({
                'instrument_type': inst,
                **self._rollup(subset, matrix, 'instrument_type', inst),
                'symbols': list(dict.fromkeys(subset['base_instrument'])),
            })

        breakdown = {
            r['instrument_type']: {
                'count': r['trade_count'],
                'total_pnl': r['total_pnl'],
                'avg_pnl': r['avg_pnl'],
                'unique_symbols': r['symbols'],
                'win_rate': r['win_rate'],
            }
            for r in instrument_analysis
        }

        total_pnl = float(df['pnl'].sum())
        summary = {
            'total_trades': int(len(df)),
            'total_pnl': total_pnl,
            'overall_win_rate': float((df['pnl'] > 0).mean() * 100),
            'avg_pnl_per_trade': total_pnl / len(df),
            'active_combinations': len(matrix),
            'total_possible_combinations': len(TIME_BUCKETS) * len(instruments),
            'unique_instruments': len(instruments),
            'trading_days': int(df['date'].nunique(dropna=False)) if 'date' in df.columns else 0,
        }

        return {
            'summary': summary,
            'time_slot_analysis': time_slot_analysis,
            'instrument_analysis': instrument_analysis,
            'time_instrument_matrix': matrix,
            'time_buckets': TIME_BUCKETS,
            'instruments': instruments,
            'instrument_breakdown': breakdown,
            'insights': self.generate_insights(matrix, time_slot_analysis, instrument_analysis),
            'recommendations': self.generate_recommendations(matrix, time_slot_analysis, instrument_analysis),
        }

    @staticmethod
    def _rollup(subset: pd.DataFrame, matrix: List[Dict], field: str, value: str) -> Dict:
        stats = bucket_stats(subset['pnl'])
        cell_avgs = [c['avg_pnl'] for c in matrix if c[field] == value]
        return {
            'total_pnl': stats['total_pnl'],
            'trade_count': stats['trade_count'],
            'win_rate': stats['win_rate'],
            'avg_pnl': stats['avg_pnl'],
            'best_trade': max(cell_avgs + [0.0]),
            'worst_trade': min(cell_avgs + [0.0]),
        }

    def generate_insights(self, matrix: List[Dict], slots: List[Dict], instruments: List[Dict]) -> List[str]:
        insights = []
        best = best_bucket(matrix)
        worst = worst_bucket(matrix)
        if best and best['total_pnl'] > 0:
            insights.append(
                f"Best Time-Instrument combo: {best['time_slot']} × {best['instrument_type']} "
                f"({self.fmt(best['total_pnl'], 2)}, {best['trade_count']} trades, {self.pct(best['win_rate'])} win rate)"
            )
        if worst and worst['total_pnl'] < 0:
            insights.append(
                f"Worst Time-Instrument combo: {worst['time_slot']} × {worst['instrument_type']} "
                f"({self.fmt(worst['total_pnl'], 2)}, {worst['trade_count']} trades, {self.pct(worst['win_rate'])} win rate)"
            )

        best_inst = best_bucket(instruments)
        if best_inst:
            insights.append(
                f"Most profitable instrument overall: {best_inst['instrument_type']} "
                f"({self.fmt(best_inst['total_pnl'], 2)}, {best_inst['trade_count']} trades)"
            )

        best_slot = best_bucket(slots)
        insights.append(
            f"Best time bucket overall: {best_slot['time_slot']} "
            f"({self.fmt(best_slot['total_pnl'], 2)}, {best_slot['trade_count']} trades)"
        )

        if len(matrix) > 1:
            std_dev = calculate_basic_stats([c['total_pnl'] for c in matrix])['std_dev']
            insights.append(f"P&L volatility across all time-instrument combinations: {self.fmt(std_dev, 2)}")

        consistent = sorted((c for c in matrix if c['trade_count'] >= 3 and c['win_rate'] >= 60),
                            key=lambda c: c['win_rate'], reverse=True)
        if consistent:
            top = consistent[0]
            insights.append(
                f"Most consistent combo (≥60% win rate, ≥3 trades): {top['time_slot']} × {top['instrument_type']} "
                f"({self.pct(top['win_rate'])} win rate, {self.fmt(top['total_pnl'], 2)})"
            )

        by_slot = {s['time_slot']: s for s in slots}
        morning = by_slot['Morning (10-12 PM)']
        afternoon = by_slot['Late Afternoon (2+ PM)']
        if morning['trade_count'] > 0 and afternoon['trade_count'] > 0:
            morning_avg = morning['avg_pnl']
            afternoon_avg = afternoon['avg_pnl']
            if morning_avg > afternoon_avg + 100:
                insights.append(
                    f"Morning trading significantly outperforms afternoon ({self.fmt(morning_avg - afternoon_avg)} better per trade)"
                )
            elif afternoon_avg > morning_avg + 100:
                insights.append(
                    f"Afternoon trading significantly outperforms morning ({self.fmt(afternoon_avg - morning_avg)} better per trade)"
                )

        return insights

    def generate_recommendations(self, matrix: List[Dict], slots: List[Dict], instruments: List[Dict]) -> List[str]:
        recommendations = []

        top = sorted((c for c in matrix if c['total_pnl'] > 0 and c['trade_count'] >= 2),
                     key=lambda c: c['total_pnl'], reverse=True)
        if top:
            recommendations.append(
                f"FOCUS ON TOP PERFORMERS: Concentrate trading on {top[0]['time_slot']} × {top[0]['instrument_type']} "
                f"- your most profitable combination"
            )

        poor = sorted((c for c in matrix if c['total_pnl'] < -500 and c['trade_count'] >= 2),
                      key=lambda c: c['total_pnl'])
        if poor:
            recommendations.append(
                f"AVOID POOR COMBINATIONS: Reduce or eliminate trading {poor[0]['time_slot']} × {poor[0]['instrument_type']} "
                f"- consistently underperforming"
            )

        active_slots = sorted((s for s in slots if s['trade_count'] > 0), key=lambda s: s['total_pnl'], reverse=True)
        if active_slots:
            recommendations.append(
                f"OPTIMIZE TRADING SCHEDULE: Focus most of your trading during {active_slots[0]['time_slot']} "
                f"- your most profitable time period"
            )

        profitable = sorted((i for i in instruments if i['total_pnl'] > 0), key=lambda i: i['total_pnl'], reverse=True)
        if profitable:
            recommendations.append(
                f"INSTRUMENT SPECIALIZATION: Consider specializing in {profitable[0]['instrument_type']} trading "
                f"- your most profitable instrument category"
            )

        if any(c['trade_count'] >= 3 and c['win_rate'] < 40 for c in matrix):
            recommendations.append(
                'RISK MANAGEMENT: Review strategy for low win-rate combinations and consider position sizing reduction or elimination'
            )

        if len(matrix) < len(TIME_BUCKETS) * len(instruments) * 0.5:
            recommendations.append(
                'EXPLORE OPPORTUNITIES: Consider testing other time-instrument combinations to find additional profitable patterns'
            )

        return recommendations


def analyze_time_instrument_pnl(trades, config: Dict = None) -> Dict:
    return TimeInstrumentAnalyzer(config).analyze(trades)
