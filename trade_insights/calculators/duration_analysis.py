"""
Duration x Outcome Analysis
How holding time relates to P&L, win rate and risk/reward
"""

from typing import Dict, List

import pandas as pd

from ..aggregation import aggregate_buckets, best_bucket, worst_bucket
from ..data_processor import DURATION_CATEGORIES, get_duration_category
from .base import BaseInsightCalculator

QUICK_DURATIONS = ['<1m', '1-5m']
SLOW_DURATIONS = ['30-60m', '1-2h', '>2h']


def format_seconds(seconds: float) -> str:
    seconds = int(round(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


class DurationAnalyzer(BaseInsightCalculator):
    """P&L bucketed by holding-time category, sorted by total P&L."""

    name = 'duration_analysis'
    label = 'Duration × Outcome Analysis'

    def filter_trades(self, df: pd.DataFrame) -> pd.DataFrame:
        df = super().filter_trades(df)
        if 'duration_category' not in df.columns:
            df = df.assign(duration_category=df['duration_seconds'].fillna(0).astype(int).map(get_duration_category))
        return df[df['duration_category'].isin(DURATION_CATEGORIES)]

    def build(self, df: pd.DataFrame) -> Dict:
        rows = aggregate_buckets(df, 'duration_category', label='duration',
                                 order=DURATION_CATEGORIES, sort='desc', zero_is_loss=True)
        table = [
            {
                'duration': r['duration'],
                'total_pnl': r['total_pnl'],
                'avg_pnl': r['avg_pnl'],
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

        best = best_bucket(table)
        worst = worst_bucket(table)
        summary = {
            'total_trades': int(len(df)),
            'total_pnl': float(df['pnl'].sum()),
            'overall_win_rate': float((df['pnl'] > 0).mean() * 100),
            'avg_holding_time': format_seconds(df['duration_seconds'].mean()) if 'duration_seconds' in df else 'Not available',
            'durations': list(dict.fromkeys(df['duration_category'])),
            'best_duration': best['duration'] if best else 'N/A',
            'worst_duration': worst['duration'] if worst else 'N/A',
        }

        return {
            'duration_table': table,
            'summary': summary,
            'insights': self.generate_insights(table),
            'recommendations': self.generate_recommendations(table),
        }

    def _qualified(self, table: List[Dict]) -> List[Dict]:
        return [r for r in table if r['trade_count'] >= self.min_trades]

    def generate_insights(self, table: List[Dict]) -> List[str]:
        if not table:
            return ['No duration data found']

        insights = []
        best = best_bucket(table)
        worst = worst_bucket(table)

        if best['total_pnl'] > 0:
            insights.append(
                f"Best duration: {best['duration']} ({self.fmt(best['total_pnl'], 2)} total P&L, "
                f"{self.pct(best['win_rate'])} win rate, {best['trade_count']} trades)"
            )
        if worst['total_pnl'] < 0:
            insights.append(
                f"Worst duration: {worst['duration']} ({self.fmt(worst['total_pnl'], 2)} total P&L, "
                f"{self.pct(worst['win_rate'])} win rate, {worst['trade_count']} trades)"
            )

        qualified = self._qualified(table)

        high_wr = [r for r in qualified if r['win_rate'] >= 60]
        if high_wr:
            insights.append("High win rate durations (≥60%): " +
                            ", ".join(f"{r['duration']} ({self.pct(r['win_rate'])})" for r in high_wr))

        low_wr = [r for r in qualified if r['win_rate'] < 40]
        if low_wr:
            insights.append("Poor win rate durations (<40%): " +
                            ", ".join(f"{r['duration']} ({self.pct(r['win_rate'])})" for r in low_wr))

        high_pf = [r for r in qualified if r['profit_factor'] >= 2]
        if high_pf:
            insights.append("Excellent risk-reward durations (profit factor ≥2): " +
                            ", ".join(f"{r['duration']} ({r['profit_factor']:.2f})" for r in high_pf))

        top_avg = sorted(qualified, key=lambda r: r['avg_pnl'], reverse=True)[:2]
        if top_avg:
            insights.append("Highest avg P&L per trade: " +
                            ", ".join(f"{r['duration']} ({self.fmt(r['avg_pnl'])})" for r in top_avg))

        total_trades = sum(r['trade_count'] for r in table)
        most_frequent = best_bucket(table, 'trade_count')
        insights.append(
            f"Most frequent duration: {most_frequent['duration']} ({most_frequent['trade_count']} trades, "
            f"{self.pct(most_frequent['trade_count'] / total_trades * 100)} of total)"
        )

        quick = [r for r in table if r['duration'] in QUICK_DURATIONS]
        slow = [r for r in table if r['duration'] in SLOW_DURATIONS]
        if quick and slow:
            quick_pnl = sum(r['total_pnl'] for r in quick)
            slow_pnl = sum(r['total_pnl'] for r in slow)
            if quick_pnl > slow_pnl:
                insights.append(
                    f"Quick trades (<5m) outperform slow trades (>30m): {self.fmt(quick_pnl)} vs {self.fmt(slow_pnl)}"
                )
            else:
                insights.append(
                    f"Slow trades (>30m) outperform quick trades (<5m): {self.fmt(slow_pnl)} vs {self.fmt(quick_pnl)}"
                )

        return insights

    def generate_recommendations(self, table: List[Dict]) -> List[str]:
        if not table:
            return ['Collect more trading data for better recommendations']

        recommendations = []
        qualified = self._qualified(table)

        profitable = [r for r in qualified if r['total_pnl'] > 0][:3]
        if profitable:
            recommendations.append("Focus on profitable durations: " +
                                   ", ".join(f"{r['duration']} ({self.fmt(r['avg_pnl'])} avg)" for r in profitable))

        unprofitable = [r for r in qualified if r['total_pnl'] < 0][-2:]
        if unprofitable:
            recommendations.append("Avoid or review strategy for: " +
                                   ", ".join(f"{r['duration']} ({self.fmt(r['avg_pnl'])} avg)" for r in unprofitable))

        high_wr = [r for r in qualified if r['win_rate'] >= 65]
        if high_wr:
            recommendations.append("Increase allocation to high win rate durations: " +
                                   ", ".join(f"{r['duration']} ({self.pct(r['win_rate'])})" for r in high_wr))

        high_risk = [r for r in qualified if abs(r['avg_loss']) > abs(r['avg_profit']) * 2]
        if high_risk:
            recommendations.append("Implement stricter stop-losses for: " +
                                   ", ".join(f"{r['duration']} (avg loss: {self.fmt(abs(r['avg_loss']))})"
                                             for r in high_risk))

        sweet_spot = [r for r in qualified if r['win_rate'] >= 55 and r['profit_factor'] >= 1.5]
        if sweet_spot:
            recommendations.append("Sweet spot durations (good win rate + profit factor): " +
                                   ", ".join(r['duration'] for r in sweet_spot))

        efficient = sorted(qualified, key=lambda r: r['avg_pnl'], reverse=True)[:2]
        if efficient and efficient[0]['avg_pnl'] > 0:
            recommendations.append("Most efficient durations (highest avg P&L): " +
                                   ", ".join(r['duration'] for r in efficient))

        return recommendations


def analyze_duration_outcome_pnl(trades, config: Dict = None) -> Dict:
    return DurationAnalyzer(config).analyze(trades)
