"""
Lot Size x P&L Analysis
Position size (entry price x |quantity|) buckets and their profitability
"""

import math
from typing import Dict, List, Optional

import pandas as pd

from ..aggregation import aggregate_buckets, best_bucket, worst_bucket
from ..calculations import calculate_correlation, calculate_percentile
from .base import BaseInsightCalculator

TRADE_SIZE_BUCKETS = [
    {'label': 'Small (<₹50K)', 'min': 0, 'max': 50000},
    {'label': 'Medium (₹50K-1L)', 'min': 50000, 'max': 100000},
    {'label': 'Large (₹1L-2L)', 'min': 100000, 'max': 200000},
    {'label': 'Very Large (>₹2L)', 'min': 200000, 'max': math.inf},
]


def find_trade_size_bucket(trade_size: float, buckets: List[Dict] = None) -> Optional[Dict]:
    for bucket in buckets or TRADE_SIZE_BUCKETS:
        if bucket['min'] <= trade_size < bucket['max']:
            return bucket
    return None


class LotSizeAnalyzer(BaseInsightCalculator):
    """P&L bucketed by position value."""

    name = 'lot_size_analysis'
    label = 'Lot Size × P&L Analysis'

    def __init__(self, config: Dict = None, buckets: List[Dict] = None):
        super().__init__(config)
        self.buckets = buckets or TRADE_SIZE_BUCKETS

    def options(self) -> Dict:
        return {'min_trades': self.min_trades, 'buckets': [b['label'] for b in self.buckets]}

    def filter_trades(self, df: pd.DataFrame) -> pd.DataFrame:
        df = super().filter_trades(df)
        zeros = pd.Series(0.0, index=df.index)
        entry_price = pd.to_numeric(df.get('entry_price', zeros), errors='coerce').fillna(0)
        quantity = pd.to_numeric(df.get('quantity', zeros), errors='coerce').fillna(0)
        df = df.assign(trade_size=entry_price * quantity.abs())
        df = df[df['trade_size'] > 0]

        def label(size):
            bucket = find_trade_size_bucket(size, self.buckets)
            return bucket['label'] if bucket else None

        df = df.assign(size_category=df['trade_size'].map(label))
        return df[df['size_category'].notna()]

    def build(self, df: pd.DataFrame) -> Dict:
        order = [b['label'] for b in self.buckets]
        rows = aggregate_buckets(df, 'size_category', label='size_category',
                                 order=order, sort='desc', zero_is_loss=True)
        bounds = {b['label']: b for b in self.buckets}
        avg_sizes = df.groupby('size_category')['trade_size'].mean()

        table = [
            {
                'size_category': r['size_category'],
                'min_size': bounds[r['size_category']]['min'],
                'max_size': bounds[r['size_category']]['max'],
                'total_pnl': r['total_pnl'],
                'avg_pnl': r['avg_pnl'],
                'avg_trade_size': float(avg_sizes[r['size_category']]),
                'trade_count': r['trade_count'],
                'profit_trades': r['winning_trades'],
                'loss_trades': r['losing_trades'],
                'win_rate': r['win_rate'],
                'avg_profit': r['avg_profit'],
                'avg_loss': r['avg_loss'],
                'profit_factor': r['profit_factor'],
            }
            for r in rows
        ]

        sizes = df['trade_size'].astype(float).tolist()
        pnls = df['pnl'].astype(float).tolist()
        best = best_bucket(table)
        worst = worst_bucket(table)
        summary = {
            'total_trades': int(len(df)),
            'total_pnl': float(df['pnl'].sum()),
            'overall_win_rate': float((df['pnl'] > 0).mean() * 100),
            'avg_trade_size': float(df['trade_size'].mean()),
            'min_trade_size': float(df['trade_size'].min()),
            'max_trade_size': float(df['trade_size'].max()),
            'best_size_category': best['size_category'] if best else 'N/A',
            'worst_size_category': worst['size_category'] if worst else 'N/A',
        }

        return {
            'lot_size_table': table,
            'summary': summary,
            'insights': self.generate_insights(table, sizes, pnls),
            'recommendations': self.generate_recommendations(table, sizes, pnls),
        }

    def _qualified(self, table: List[Dict]) -> List[Dict]:
        return [r for r in table if r['trade_count'] >= self.min_trades]

    def generate_insights(self, table: List[Dict], sizes: List[float], pnls: List[float]) -> List[str]:
        if not table:
            return ['No lot size data found']

        insights = []
        best = best_bucket(table)
        worst = worst_bucket(table)

        if best['total_pnl'] > 0:
            insights.append(
                f"Best size category: {best['size_category']} ({self.fmt(best['total_pnl'], 2)} total P&L, "
                f"{self.pct(best['win_rate'])} win rate, {best['trade_count']} trades)"
            )
        if worst['total_pnl'] < 0:
            insights.append(
                f"Worst size category: {worst['size_category']} ({self.fmt(worst['total_pnl'], 2)} total P&L, "
                f"{self.pct(worst['win_rate'])} win rate, {worst['trade_count']} trades)"
            )

        qualified = self._qualified(table)
        high_wr = [r for r in qualified if r['win_rate'] >= 60]
        if high_wr:
            insights.append("High win rate categories (≥60%): " +
                            ", ".join(f"{r['size_category']} ({self.pct(r['win_rate'])})" for r in high_wr))

        low_wr = [r for r in qualified if r['win_rate'] < 40]
        if low_wr:
            insights.append("Poor win rate categories (<40%): " +
                            ", ".join(f"{r['size_category']} ({self.pct(r['win_rate'])})" for r in low_wr))

        high_pf = [r for r in qualified if r['profit_factor'] >= 2]
        if high_pf:
            insights.append("Excellent risk-reward categories (profit factor ≥2): " +
                            ", ".join(f"{r['size_category']} ({r['profit_factor']:.2f})" for r in high_pf))

        top_avg = sorted(qualified, key=lambda r: r['avg_pnl'], reverse=True)[:2]
        if top_avg:
            insights.append("Highest avg P&L per trade: " +
                            ", ".join(f"{r['size_category']} ({self.fmt(r['avg_pnl'])})" for r in top_avg))

        total_trades = sum(r['trade_count'] for r in table)
        most_frequent = best_bucket(table, 'trade_count')
        insights.append(
            f"Most frequent category: {most_frequent['size_category']} ({most_frequent['trade_count']} trades, "
            f"{self.pct(most_frequent['trade_count'] / total_trades * 100)} of total)"
        )

        small = [r for r in table if 'Small' in r['size_category']]
        large = [r for r in table if 'Large' in r['size_category']]
        if small and large:
            small_pnl = sum(r['total_pnl'] for r in small)
            large_pnl = sum(r['total_pnl'] for r in large)
            if small_pnl > large_pnl:
                insights.append(f"Small trades outperform large trades: {self.fmt(small_pnl)} vs {self.fmt(large_pnl)}")
            else:
                insights.append(f"Large trades outperform small trades: {self.fmt(large_pnl)} vs {self.fmt(small_pnl)}")

        insights.append(f"Average trade size: {self.fmt(sum(sizes) / len(sizes))}")
        insights.append(f"Median trade size: {self.fmt(calculate_percentile(sizes, 50))}")

        if len(sizes) > 1:
            correlation = calculate_correlation(sizes, pnls)
            insights.append(f"Trade size vs P&L correlation: {correlation:.3f}")
            if correlation > 0.1:
                insights.append('→ Positive correlation: Larger trades tend to be more profitable')
            elif correlation < -0.1:
                insights.append('→ Negative correlation: Smaller trades tend to be more profitable')
            else:
                insights.append('→ Weak correlation: Trade size has little impact on profitability')

        return insights

    def generate_recommendations(self, table: List[Dict], sizes: List[float], pnls: List[float]) -> List[str]:
        if not table:
            return ['Collect more trading data with entry price and quantity for better recommendations']

        recommendations = []
        qualified = self._qualified(table)

        profitable = [r for r in qualified if r['total_pnl'] > 0][:2]
        if profitable:
            recommendations.append("Focus on profitable size categories: " +
                                   ", ".join(f"{r['size_category']} ({self.fmt(r['avg_pnl'])} avg)" for r in profitable))

        unprofitable = [r for r in qualified if r['total_pnl'] < 0][-2:]
        if unprofitable:
            recommendations.append("Avoid or review strategy for: " +
                                   ", ".join(f"{r['size_category']} ({self.fmt(r['avg_pnl'])} avg)" for r in unprofitable))

        high_wr = [r for r in qualified if r['win_rate'] >= 65]
        if high_wr:
            recommendations.append("Increase allocation to high win rate categories: " +
                                   ", ".join(f"{r['size_category']} ({self.pct(r['win_rate'])})" for r in high_wr))

        high_risk = [r for r in qualified if abs(r['avg_loss']) > abs(r['avg_profit']) * 2]
        if high_risk:
            recommendations.append("Implement stricter risk management for: " +
                                   ", ".join(f"{r['size_category']} (avg loss: {self.fmt(abs(r['avg_loss']))})"
                                             for r in high_risk))

        best = best_bucket(table)
        if best and best['total_pnl'] > 0:
            if 'Small' in best['size_category']:
                recommendations.append(
                    'Your best performance is with small position sizes - consider this for risk management'
                )
            elif 'Large' in best['size_category']:
                recommendations.append('Large position sizes work well for you - but ensure proper risk management')

        efficient = sorted(qualified, key=lambda r: r['avg_pnl'], reverse=True)[:2]
        if efficient and efficient[0]['avg_pnl'] > 0:
            recommendations.append("Most efficient size categories (highest avg P&L): " +
                                   ", ".join(r['size_category'] for r in efficient))

        if sum(1 for r in table if r['total_pnl'] > 0) <= 1:
            recommendations.append('Consider diversifying across different position sizes to reduce concentration risk')

        if len(sizes) > 10:
            correlation = calculate_correlation(sizes, pnls)
            if correlation > 0.2:
                recommendations.append('Strong positive correlation detected - consider gradually increasing position sizes')
            elif correlation < -0.2:
                recommendations.append(
                    'Negative correlation detected - smaller positions may be more suitable for your strategy'
                )

        return recommendations


def analyze_lot_size_pnl(trades, config: Dict = None) -> Dict:
    return LotSizeAnalyzer(config).analyze(trades)
