"""
Trade Count per Day x P&L Analysis
Relates daily trading frequency to daily P&L, win rate and consistency
"""

import math
from typing import Dict, List, Optional

import pandas as pd

from ..aggregation import best_bucket, daily_stats, worst_bucket
from ..calculations import calculate_basic_stats
from .base import BaseInsightCalculator

TRADE_COUNT_CATEGORIES = [
    {'min': 1, 'max': 2, 'label': 'Low (1-2 trades/day)'},
    {'min': 3, 'max': 5, 'label': 'Moderate (3-5 trades/day)'},
    {'min': 6, 'max': 10, 'label': 'High (6-10 trades/day)'},
    {'min': 11, 'max': math.inf, 'label': 'Very High (>10 trades/day)'},
]


def find_trade_count_category(trade_count: int, categories: List[Dict] = None) -> Optional[Dict]:
    for category in categories or TRADE_COUNT_CATEGORIES:
        if category['min'] <= trade_count <= category['max']:
            return category
    return None


class TradeCountAnalyzer(BaseInsightCalculator):
    """One row per observed trades-per-day count, ascending."""

    name = 'trade_count_analysis'
    label = 'Trade Count per Day × P&L Analysis'

    def __init__(self, config: Dict = None, categories: List[Dict] = None):
        super().__init__(config)
        self.min_days = self.config.get('analysis', {}).get('min_days_for_insight', 2)
        self.categories = categories or TRADE_COUNT_CATEGORIES

    def options(self) -> Dict:
        return {'min_days_for_insight': self.min_days, 'categories': [c['label'] for c in self.categories]}

    def filter_trades(self, df: pd.DataFrame) -> pd.DataFrame:
        df = super().filter_trades(df)
        return df[df['date'].notna()]

    def build(self, df: pd.DataFrame) -> Dict:
        daily = daily_stats(df)
        total_days = len(daily)

        table = []
        for trade_count, group in daily.groupby('trades', sort=True):
            frequency = int(len(group))
            total_pnl = float(group['total_pnl'].sum())
            category = find_trade_count_category(int(trade_count), self.categories)
            table.append({
                'trade_count': int(trade_count),
                'category': category['label'] if category else f"{trade_count} trades/day",
                'frequency_days': frequency,
                'total_pnl': total_pnl,
                'avg_daily_pnl': total_pnl / frequency,
                'avg_pnl_per_trade': float(group['avg_pnl_per_trade'].mean()),
                'avg_win_rate': float(group['win_rate'].mean()),
                'avg_volatility': float(group['pnl_std_dev'].mean()),
                'daily_pnl_std_dev': calculate_basic_stats(group['total_pnl'].tolist())['std_dev'],
                'volume_weighted_pnl': total_pnl * frequency / total_days,
            })

        best = best_bucket(table)
        worst = worst_bucket(table)
        most_frequent = best_bucket(table, 'frequency_days')
        summary = {
            'total_trades': int(len(df)),
            'total_trading_days': total_days,
            'total_pnl': float(df['pnl'].sum()),
            'overall_win_rate': float((df['pnl'] > 0).mean() * 100),
            'avg_trades_per_day': len(df) / total_days,
            'best_performing_count': best['trade_count'],
            'worst_performing_count': worst['trade_count'],
            'most_frequent_count': most_frequent['trade_count'],
            'trade_count_range': {
                'min': min(r['trade_count'] for r in table),
                'max': max(r['trade_count'] for r in table),
            },
        }

        daily_records = [
            {
                'date': row['date'].strftime('%Y-%m-%d'),
                'trade_count': int(row['trades']),
                'total_pnl': float(row['total_pnl']),
                'profit_trades': int(row['profit_trades']),
                'loss_trades': int(row['loss_trades']),
                'win_rate': float(row['win_rate']),
                'avg_pnl_per_trade': float(row['avg_pnl_per_trade']),
                'pnl_std_dev': float(row['pnl_std_dev']),
            }
            for _, row in daily.iterrows()
        ]

        return {
            'trade_count_table': table,
            'daily_stats': daily_records,
            'summary': summary,
            'insights': self.generate_insights(table, total_days),
            'recommendations': self.generate_recommendations(table, daily_records),
        }

    def generate_insights(self, table: List[Dict], total_days: int) -> List[str]:
        if not table:
            return ['No trade count data found']

        insights = []
        total_trades = sum(r['trade_count'] * r['frequency_days'] for r in table)
        total_pnl = sum(r['total_pnl'] for r in table)
        insights.append(
            f"Total trading days: {total_days}, Total trades: {total_trades}, Total P&L: {self.fmt(total_pnl, 2)}"
        )
        insights.append(f"Average trades per day: {total_trades / total_days:.1f}")

        best = best_bucket(table)
        worst = worst_bucket(table)
        if best['total_pnl'] > 0:
            insights.append(
                f"Best performing frequency: {best['trade_count']} trades/day "
                f"({self.fmt(best['total_pnl'], 2)} total P&L, {best['frequency_days']} days)"
            )
        if worst['total_pnl'] < 0:
            insights.append(
                f"Worst performing frequency: {worst['trade_count']} trades/day "
                f"({self.fmt(worst['total_pnl'], 2)} total P&L, {worst['frequency_days']} days)"
            )

        most_frequent = best_bucket(table, 'frequency_days')
        insights.append(
            f"Most common frequency: {most_frequent['trade_count']} trades/day ({most_frequent['frequency_days']} days, "
            f"{self.pct(most_frequent['frequency_days'] / total_days * 100)})"
        )

        most_efficient = best_bucket(table, 'avg_pnl_per_trade')
        least_efficient = worst_bucket(table, 'avg_pnl_per_trade')
        insights.append(
            f"Most efficient frequency: {most_efficient['trade_count']} trades/day "
            f"({self.fmt(most_efficient['avg_pnl_per_trade'])} per trade)"
        )
        if least_efficient['avg_pnl_per_trade'] < 0:
            insights.append(
                f"Least efficient frequency: {least_efficient['trade_count']} trades/day "
                f"({self.fmt(least_efficient['avg_pnl_per_trade'])} per trade)"
            )

        best_wr = best_bucket(table, 'avg_win_rate')
        worst_wr = worst_bucket(table, 'avg_win_rate')
        insights.append(f"Best win rate frequency: {best_wr['trade_count']} trades/day ({self.pct(best_wr['avg_win_rate'])})")
        if worst_wr['avg_win_rate'] < 50:
            insights.append(
                f"Poor win rate frequency: {worst_wr['trade_count']} trades/day ({self.pct(worst_wr['avg_win_rate'])})"
            )

        most_consistent = worst_bucket(table, 'daily_pnl_std_dev')
        least_consistent = best_bucket(table, 'daily_pnl_std_dev')
        insights.append(
            f"Most consistent frequency: {most_consistent['trade_count']} trades/day "
            f"(±{self.fmt(most_consistent['daily_pnl_std_dev'])} volatility)"
        )
        if least_consistent['daily_pnl_std_dev'] > most_consistent['daily_pnl_std_dev'] * 2:
            insights.append(
                f"High volatility frequency: {least_consistent['trade_count']} trades/day "
                f"(±{self.fmt(least_consistent['daily_pnl_std_dev'])} volatility)"
            )

        top_impact = best_bucket(table, 'volume_weighted_pnl')
        insights.append(
            f"Highest impact frequency: {top_impact['trade_count']} trades/day "
            f"(volume-weighted P&L: {self.fmt(top_impact['volume_weighted_pnl'])})"
        )

        profitable = [r for r in table if r['total_pnl'] > 0]
        losing = [r for r in table if r['total_pnl'] < 0]
        if profitable:
            counts = ', '.join(str(c) for c in sorted(r['trade_count'] for r in profitable))
            insights.append(f"Profitable frequencies: {counts} trades/day")
        if losing:
            counts = ', '.join(str(c) for c in sorted(r['trade_count'] for r in losing))
            insights.append(f"Loss-making frequencies: {counts} trades/day")

        if profitable:
            sweet_spot = best_bucket(profitable, 'avg_daily_pnl')
            insights.append(
                f"Optimal frequency (sweet spot): {sweet_spot['trade_count']} trades/day "
                f"({self.fmt(sweet_spot['avg_daily_pnl'])} avg daily P&L, {self.pct(sweet_spot['avg_win_rate'])} win rate)"
            )

        return insights

    def generate_recommendations(self, table: List[Dict], daily: List[Dict]) -> List[str]:
        if not table:
            return ['Collect more trading data across different daily volumes for better recommendations']

        recommendations = []
        profitable = sorted(
            (r for r in table if r['total_pnl'] > 0 and r['frequency_days'] >= self.min_days),
            key=lambda r: r['avg_daily_pnl'], reverse=True,
        )[:3]
        if profitable:
            recommendations.append("Focus on profitable frequencies: " + ", ".join(
                f"{r['trade_count']} trades/day ({self.fmt(r['avg_daily_pnl'])} avg daily)" for r in profitable))

        losing = sorted(
            (r for r in table if r['total_pnl'] < 0 and r['frequency_days'] >= self.min_days),
            key=lambda r: r['avg_daily_pnl'],
        )[:2]
        if losing:
            recommendations.append("Avoid or review strategy for: " + ", ".join(
                f"{r['trade_count']} trades/day ({self.fmt(r['avg_daily_pnl'])} avg daily)" for r in losing))

        if profitable:
            sweet_spot = profitable[0]
            current = round(sum(d['trade_count'] for d in daily) / len(daily), 1)
            if sweet_spot['trade_count'] != current:
                recommendations.append(
                    f"Target {sweet_spot['trade_count']} trades per day - your optimal frequency (current avg: {current:.1f})"
                )

        if any(r['trade_count'] >= 10 and r['avg_pnl_per_trade'] < 0 for r in table):
            recommendations.append(
                'High-volume trading (≥10 trades/day) showing poor per-trade results - possible overtrading'
            )

        low_volume = [r for r in table if r['trade_count'] <= 3 and r['total_pnl'] > 0 and r['avg_pnl_per_trade'] > 0]
        if low_volume and profitable:
            best_low = best_bucket(low_volume, 'avg_pnl_per_trade')
            if best_low['avg_pnl_per_trade'] > 500:
                recommendations.append(
                    f"Consider selective trading - {best_low['trade_count']} trades/day shows high per-trade "
                    f"efficiency ({self.fmt(best_low['avg_pnl_per_trade'])})"
                )

        consistent = [r for r in table if r['total_pnl'] > 0 and r['daily_pnl_std_dev'] < 1000]
        if consistent:
            steadiest = worst_bucket(consistent, 'daily_pnl_std_dev')
            recommendations.append(
                f"{steadiest['trade_count']} trades/day offers good consistency "
                f"(low volatility: ±{self.fmt(steadiest['daily_pnl_std_dev'])})"
            )

        high_wr = [r for r in table if r['avg_win_rate'] >= 60 and r['frequency_days'] >= self.min_days]
        if high_wr:
            recommendations.append("High win rate frequencies: " + ", ".join(
                f"{r['trade_count']} trades/day ({self.pct(r['avg_win_rate'])})" for r in high_wr))

        most_frequent = best_bucket(table, 'frequency_days')
        if most_frequent['frequency_days'] / len(daily) > 0.5 and most_frequent['total_pnl'] > 0:
            recommendations.append(
                f"Your most frequent pattern ({most_frequent['trade_count']} trades/day) is profitable - maintain this consistency"
            )
        elif most_frequent['total_pnl'] < 0:
            recommendations.append(
                f"Your most frequent pattern ({most_frequent['trade_count']} trades/day) is losing - "
                f"consider changing default trading volume"
            )

        return recommendations


def analyze_trade_count_pnl(trades, config: Dict = None) -> Dict:
    return TradeCountAnalyzer(config).analyze(trades)
