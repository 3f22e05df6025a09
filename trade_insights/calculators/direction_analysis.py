"""
Direction x Symbol Analysis
LONG vs SHORT performance per symbol, plus a CE/PE view restricted to option contracts
"""

import re
from typing import Dict, List, Optional

import pandas as pd

from ..aggregation import aggregate_buckets, best_bucket, bucket_stats, top_n, worst_bucket
from .base import BaseInsightCalculator

DIRECTIONS = ['LONG', 'SHORT']
OPTION_TYPES = ['CE', 'PE']
TOP_SYMBOLS = 10
TOP_DIRECTION_SYMBOLS = 15

_DIGIT = re.compile(r'\d')


def option_type(symbol) -> Optional[str]:
    """'CE' / 'PE' for option contracts (suffix plus a strike digit), else None."""
    if not isinstance(symbol, str):
        return None
    upper = symbol.upper().strip()
    if not _DIGIT.search(upper):
        return None
    for kind in OPTION_TYPES:
        if upper.endswith(kind):
            return kind
    return None


def categorize_option_instrument(symbol) -> str:
    if not isinstance(symbol, str):
        return 'UNKNOWN'
    upper = symbol.upper()
    if 'BANKNIFTY' in upper:
        return 'BANKNIFTY'
    if 'NIFTY' in upper:
        return 'NIFTY'
    if 'SENSEX' in upper:
        return 'SENSEX'
    return 'OTHER'


def _extremes(pnl: pd.Series) -> Dict:
    return {
        'best_trade': max(float(pnl.max()), 0.0) if len(pnl) else 0.0,
        'worst_trade': min(float(pnl.min()), 0.0) if len(pnl) else 0.0,
    }


def _trading_days(df: pd.DataFrame) -> int:
    return int(df['date'].nunique(dropna=False)) if 'date' in df.columns else 0


class DirectionAnalyzer(BaseInsightCalculator):
    """LONG/SHORT x symbol matrix; trades without a known side are skipped."""

    name = 'direction_analysis'
    label = 'Direction × Symbol P&L Analysis'

    def options(self) -> Dict:
        return {'directions': DIRECTIONS, 'top_symbols': TOP_SYMBOLS, 'top_direction_symbols': TOP_DIRECTION_SYMBOLS}

    def filter_trades(self, df: pd.DataFrame) -> pd.DataFrame:
        df = super().filter_trades(df)
        if 'side' not in df.columns or 'symbol' not in df.columns:
            return df.iloc[0:0]
        df = df[df['symbol'].notna() & (df['symbol'].astype(str).str.strip() != '')]
        df = df.assign(
            direction=df['side'].astype(str).str.upper(),
            symbol=df['symbol'].astype(str).str.upper().str.strip(),
        )
        return df[df['direction'].isin(DIRECTIONS)]

    def analyze_options(self, trades) -> Dict:
        return DirectionOptionsAnalyzer(self.config).analyze(trades)

    def build(self, df: pd.DataFrame) -> Dict:
        symbols = sorted(df['symbol'].unique())
        cells = aggregate_buckets(df, ['direction', 'symbol'], label=['direction', 'symbol'])
        cells.sort(key=lambda c: (DIRECTIONS.index(c['direction']), c['symbol']))
        extremes = {key: _extremes(group['pnl']) for key, group in df.groupby(['direction', 'symbol'])}

        matrix = [
            {
                'direction': c['direction'],
                'symbol': c['symbol'],
                'total_pnl': c['total_pnl'],
                'trade_count': c['trade_count'],
                'win_rate': c['win_rate'],
                'loss_rate': c['loss_rate'],
                'avg_pnl': c['avg_pnl'],
                **extremes[(c['direction'], c['symbol'])],
            }
            for c in cells
        ]

        direction_analysis = []
        for direction in DIRECTIONS:
            subset = df[df['direction'] == direction]
            stats = bucket_stats(subset['pnl'])
            direction_analysis.append({
                'direction': direction,
                'total_pnl': stats['total_pnl'],
                'trade_count': stats['trade_count'],
                'win_rate': stats['win_rate'],
                'avg_pnl': stats['avg_pnl'],
                **_extremes(subset['pnl']),
                'symbols_traded': int(subset['symbol'].nunique()),
            })

        symbol_analysis = []
        for symbol in symbols:
            subset = df[df['symbol'] == symbol]
            stats = bucket_stats(subset['pnl'])
            long_pnl = subset.loc[subset['direction'] == 'LONG', 'pnl']
            short_pnl = subset.loc[subset['direction'] == 'SHORT', 'pnl']
            symbol_analysis.append({
                'symbol': symbol,
                'total_pnl': stats['total_pnl'],
                'trade_count': stats['trade_count'],
                'win_rate': stats['win_rate'],
                'avg_pnl': stats['avg_pnl'],
                **_extremes(subset['pnl']),
                'long_trades': int(len(long_pnl)),
                'short_trades': int(len(short_pnl)),
                'long_pnl': float(long_pnl.sum()),
                'short_pnl': float(short_pnl.sum()),
            })

        by_direction = {d['direction']: d for d in direction_analysis}
        long_total = by_direction['LONG']['total_pnl']
        short_total = by_direction['SHORT']['total_pnl']
        total_pnl = float(df['pnl'].sum())
        summary = {
            'total_trades': int(len(df)),
            'total_pnl': total_pnl,
            'overall_win_rate': float((df['pnl'] > 0).mean() * 100),
            'avg_pnl_per_trade': total_pnl / len(df),
            'unique_symbols': len(symbols),
            'unique_symbols_total': len(symbols),
            'active_combinations': len(matrix),
            'total_possible_combinations': len(DIRECTIONS) * len(symbols),
            'trading_days': _trading_days(df),
        }

        return {
            'summary': summary,
            'direction_analysis': direction_analysis,
            'symbol_analysis': symbol_analysis,
            'direction_symbol_matrix': matrix,
            'directions': DIRECTIONS,
            'symbols': symbols,
            'top_symbols': top_n(symbol_analysis, TOP_SYMBOLS),
            'top_direction_symbols': top_n(matrix, TOP_DIRECTION_SYMBOLS),
            'better_direction': 'LONG' if long_total > short_total else 'SHORT',
            'insights': self.generate_insights(matrix),
            'recommendations': self.generate_recommendations(matrix),
        }

    @staticmethod
    def _symbol_totals(matrix: List[Dict]) -> Dict[str, float]:
        totals: Dict[str, float] = {}
        for combo in matrix:
            totals[combo['symbol']] = totals.get(combo['symbol'], 0.0) + combo['total_pnl']
        return totals

    @staticmethod
    def _direction_total(matrix: List[Dict], direction: str) -> float:
        return sum(c['total_pnl'] for c in matrix if c['direction'] == direction)

    def generate_insights(self, matrix: List[Dict]) -> List[str]:
        if not matrix:
            return ['No valid direction-symbol combinations found']

        insights = []
        best = best_bucket(matrix)
        insights.append(
            f"Best Direction-Symbol combo: {best['direction']} {best['symbol']} ({self.fmt(best['total_pnl'])}, "
            f"{best['trade_count']} trades, {self.pct(best['win_rate'])} win rate)"
        )
        worst = worst_bucket(matrix)
        if worst['total_pnl'] < 0:
            insights.append(
                f"Worst Direction-Symbol combo: {worst['direction']} {worst['symbol']} ({self.fmt(worst['total_pnl'])}, "
                f"{worst['trade_count']} trades, {self.pct(worst['win_rate'])} win rate)"
            )

        long_total = self._direction_total(matrix, 'LONG')
        short_total = self._direction_total(matrix, 'SHORT')
        if long_total > short_total:
            insights.append(
                f"Direction bias: LONG positions perform better overall ({self.fmt(long_total)} vs {self.fmt(short_total)})"
            )
        elif short_total > long_total:
            insights.append(
                f"Direction bias: SHORT positions perform better overall ({self.fmt(short_total)} vs {self.fmt(long_total)})"
            )

        totals = self._symbol_totals(matrix)
        best_symbol = max(totals, key=totals.get)
        insights.append(f"Most profitable symbol overall: {best_symbol} ({self.fmt(totals[best_symbol])} total)")

        consistent = [c for c in matrix if c['win_rate'] >= 70 and c['trade_count'] >= 3]
        if consistent:
            top = best_bucket(consistent, 'win_rate')
            insights.append(
                f"Most consistent combo (≥70% win rate, ≥3 trades): {top['direction']} {top['symbol']} "
                f"({self.pct(top['win_rate'])} win rate, {self.fmt(top['total_pnl'])})"
            )

        insights.append(
            f"Portfolio diversity: Trading {len(totals)} unique symbols with {len(matrix)} direction-symbol combinations"
        )
        return insights

    def generate_recommendations(self, matrix: List[Dict]) -> List[str]:
        if not matrix:
            return ['Insufficient data for generating recommendations']

        recommendations = []
        top = top_n(matrix, 3, predicate=lambda c: c['total_pnl'] > 0)
        if top:
            names = ', '.join(f"{c['direction']} {c['symbol']}" for c in top)
            recommendations.append(f"FOCUS ON TOP PERFORMERS: Concentrate on {names} - your most profitable combinations")

        poor = sorted((c for c in matrix if c['total_pnl'] < -500 and c['trade_count'] >= 2),
                      key=lambda c: c['total_pnl'])[:2]
        if poor:
            names = ', '.join(f"{c['direction']} {c['symbol']}" for c in poor)
            recommendations.append(f"AVOID POOR COMBINATIONS: Reduce or eliminate {names} - consistently underperforming")

        long_total = self._direction_total(matrix, 'LONG')
        short_total = self._direction_total(matrix, 'SHORT')
        if abs(long_total - short_total) > 1000:
            better = 'LONG' if long_total > short_total else 'SHORT'
            recommendations.append(
                f"DIRECTION SPECIALIZATION: Consider focusing more on {better} positions based on historical performance"
            )

        totals = self._symbol_totals(matrix)
        top_symbols = sorted((s for s in totals if totals[s] > 0), key=lambda s: totals[s], reverse=True)[:3]
        if top_symbols:
            recommendations.append(
                f"SYMBOL SPECIALIZATION: Focus on {', '.join(top_symbols)} - your most profitable instruments"
            )

        if any(c['win_rate'] < 40 and c['trade_count'] >= 3 for c in matrix):
            recommendations.append(
                'RISK MANAGEMENT: Review strategy for low win-rate combinations and consider position sizing reduction or elimination'
            )

        return recommendations


class DirectionOptionsAnalyzer(DirectionAnalyzer):
    """LONG/SHORT x base instrument for CE and PE option contracts only."""

    name = 'direction_options_analysis'
    label = 'Direction × CE/PE P&L Analysis'

    def options(self) -> Dict:
        return {'directions': DIRECTIONS, 'option_types': OPTION_TYPES}

    def filter_trades(self, df: pd.DataFrame) -> pd.DataFrame:
        df = BaseInsightCalculator.filter_trades(self, df)
        if 'symbol' not in df.columns:
            return df.iloc[0:0]
        side = df['side'] if 'side' in df.columns else pd.Series('UNKNOWN', index=df.index)
        df = df.assign(
            option_type=df['symbol'].map(option_type),
            instrument=df['symbol'].map(categorize_option_instrument),
            direction=side.astype(str).str.upper(),
        )
        return df[df['option_type'].notna() & df['direction'].isin(DIRECTIONS)]

    def empty_result(self) -> Dict:
        empty_type = {
            'option_type': None, 'total_pnl': 0.0, 'total_trades': 0, 'win_rate': 0.0,
            'combinations': [], 'direction_bias': None, 'instrument_bias': None,
        }
        return {
            'summary': {
                'total_trades': 0,
                'total_pnl': 0.0,
                'overall_win_rate': 0.0,
                'avg_pnl_per_trade': 0.0,
                'unique_instruments': 0,
                'active_combinations': 0,
                'trading_days': 0,
                'ce_trades_count': 0,
                'pe_trades_count': 0,
            },
            'ce_analysis': dict(empty_type, option_type='CE'),
            'pe_analysis': dict(empty_type, option_type='PE'),
            'direction_option_matrix': [],
            'insights': ['No CE or PE options found in the dataset'],
            'recommendations': ['No CE/PE data available for recommendations'],
        }

    @staticmethod
    def analyze_option_type(trades: pd.DataFrame, kind: str) -> Dict:
        """Direction x instrument combinations for one option type."""
        combos = []
        if not trades.empty:
            instruments = list(dict.fromkeys(trades['instrument']))
            rows = aggregate_buckets(trades, ['direction', 'instrument'], label=['direction', 'instrument'])
            rows.sort(key=lambda r: (DIRECTIONS.index(r['direction']), instruments.index(r['instrument'])))
            combos = [
                {
                    'direction': r['direction'],
                    'instrument': r['instrument'],
                    'total_pnl': r['total_pnl'],
                    'trade_count': r['trade_count'],
                    'win_rate': r['win_rate'],
                    'avg_pnl': r['avg_pnl'],
                }
                for r in rows
            ]

        long_pnl = sum(c['total_pnl'] for c in combos if c['direction'] == 'LONG')
        short_pnl = sum(c['total_pnl'] for c in combos if c['direction'] == 'SHORT')
        direction_bias = None
        if abs(long_pnl - short_pnl) > 200:
            direction_bias = 'LONG' if long_pnl > short_pnl else 'SHORT'

        instrument_totals: Dict[str, float] = {}
        for c in combos:
            instrument_totals[c['instrument']] = instrument_totals.get(c['instrument'], 0.0) + c['total_pnl']
        instrument_bias = max(instrument_totals, key=instrument_totals.get) if instrument_totals else None

        count = int(len(trades))
        return {
            'option_type': kind,
            'total_pnl': float(trades['pnl'].sum()) if count else 0.0,
            'total_trades': count,
            'win_rate': float((trades['pnl'] > 0).mean() * 100) if count else 0.0,
            'combinations': combos,
            'direction_bias': direction_bias,
            'instrument_bias': instrument_bias,
        }

    def build(self, df: pd.DataFrame) -> Dict:
        ce_trades = df[df['option_type'] == 'CE']
        pe_trades = df[df['option_type'] == 'PE']
        ce_analysis = self.analyze_option_type(ce_trades, 'CE')
        pe_analysis = self.analyze_option_type(pe_trades, 'PE')

        matrix = []
        for analysis in (ce_analysis, pe_analysis):
            kind = analysis['option_type']
            for combo in analysis['combinations']:
                matrix.append({
                    **combo,
                    'option_type': kind,
                    'full_category': f"{combo['direction']}_{combo['instrument']}_{kind}",
                })

        total_pnl = float(df['pnl'].sum())
        summary = {
            'total_trades': int(len(df)),
            'total_pnl': total_pnl,
            'overall_win_rate': float((df['pnl'] > 0).mean() * 100),
            'avg_pnl_per_trade': total_pnl / len(df),
            'unique_instruments': int(df['instrument'].nunique()),
            'active_combinations': len(matrix),
            'trading_days': _trading_days(df),
            'ce_trades_count': int(len(ce_trades)),
            'pe_trades_count': int(len(pe_trades)),
        }

        return {
            'summary': summary,
            'ce_analysis': ce_analysis,
            'pe_analysis': pe_analysis,
            'direction_option_matrix': matrix,
            'insights': self.generate_insights(matrix),
            'recommendations': self.generate_recommendations(matrix, ce_analysis, pe_analysis),
        }

    @staticmethod
    def _combo_name(combo: Dict) -> str:
        return f"{combo['direction']} {combo['instrument']} {combo['option_type']}"

    def generate_insights(self, matrix: List[Dict]) -> List[str]:
        insights = []
        if not matrix:
            return insights

        best = best_bucket(matrix)
        insights.append(
            f"Best Direction-Option combo: {self._combo_name(best)} ({self.fmt(best['total_pnl'])}, "
            f"{best['trade_count']} trades, {self.pct(best['win_rate'])} win rate)"
        )
        worst = worst_bucket(matrix)
        if worst['total_pnl'] < 0:
            insights.append(
                f"Worst Direction-Option combo: {self._combo_name(worst)} ({self.fmt(worst['total_pnl'])}, "
                f"{worst['trade_count']} trades, {self.pct(worst['win_rate'])} win rate)"
            )

        ce_total = sum(c['total_pnl'] for c in matrix if c['option_type'] == 'CE')
        pe_total = sum(c['total_pnl'] for c in matrix if c['option_type'] == 'PE')
        if abs(ce_total - pe_total) > 500:
            better, other = ('CE', 'PE') if ce_total > pe_total else ('PE', 'CE')
            better_total, other_total = (ce_total, pe_total) if better == 'CE' else (pe_total, ce_total)
            insights.append(
                f"Option type bias: {better} options perform better overall "
                f"({self.fmt(better_total)} vs {self.fmt(other_total)})"
            )

        long_total = self._direction_total(matrix, 'LONG')
        short_total = self._direction_total(matrix, 'SHORT')
        if abs(long_total - short_total) > 500:
            better = 'LONG' if long_total > short_total else 'SHORT'
            better_total, other_total = (long_total, short_total) if better == 'LONG' else (short_total, long_total)
            insights.append(
                f"Options direction bias: {better} positions in options perform better "
                f"({self.fmt(better_total)} vs {self.fmt(other_total)})"
            )

        instrument_totals: Dict[str, float] = {}
        for c in matrix:
            instrument_totals[c['instrument']] = instrument_totals.get(c['instrument'], 0.0) + c['total_pnl']
        best_instrument = max(instrument_totals, key=instrument_totals.get)
        insights.append(
            f"Most profitable options instrument: {best_instrument} "
            f"({self.fmt(instrument_totals[best_instrument])} total across CE/PE)"
        )
        return insights

    def generate_recommendations(self, matrix: List[Dict], ce_analysis: Dict = None,
                                 pe_analysis: Dict = None) -> List[str]:
        recommendations = []
        if not matrix:
            return recommendations

        top = top_n(matrix, 3, predicate=lambda c: c['total_pnl'] > 0)
        if top:
            recommendations.append(
                f"FOCUS ON TOP OPTION COMBINATIONS: Concentrate on {', '.join(self._combo_name(c) for c in top)}"
            )

        poor = sorted((c for c in matrix if c['total_pnl'] < -300 and c['trade_count'] >= 2),
                      key=lambda c: c['total_pnl'])[:2]
        if poor:
            recommendations.append(
                f"AVOID POOR OPTION COMBINATIONS: Reduce {', '.join(self._combo_name(c) for c in poor)}"
            )

        if ce_analysis and pe_analysis and ce_analysis['total_trades'] and pe_analysis['total_trades']:
            if abs(ce_analysis['total_pnl'] - pe_analysis['total_pnl']) > 1000:
                better = 'CE' if ce_analysis['total_pnl'] > pe_analysis['total_pnl'] else 'PE'
                recommendations.append(f"OPTION TYPE SPECIALIZATION: Focus more on {better} options based on performance")

        recommendations.append(
            'RISK MANAGEMENT: Monitor option time decay and implement proper position sizing for derivatives'
        )
        return recommendations


def analyze_direction_symbol_pnl(trades, config: Dict = None) -> Dict:
    return DirectionAnalyzer(config).analyze(trades)


def analyze_direction_cepe_pnl(trades, config: Dict = None) -> Dict:
    return DirectionAnalyzer(config).analyze_options(trades)
