"""
Day of Week Analysis
Best and worst trading days, day-to-day volatility and per-day efficiency
"""

import math
from typing import Dict, List

import pandas as pd

from ..aggregation import aggregate_buckets, best_bucket, round2, worst_bucket
from ..calculations import calculate_basic_stats
from .base import BaseInsightCalculator

TRADING_DAY_NAMES = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday']
DAY_NAMES = TRADING_DAY_NAMES + ['Saturday', 'Sunday']


class DayOfWeekAnalyzer(BaseInsightCalculator):
    """P&L bucketed by day of week (Monday to Friday unless weekends are enabled)."""

    name = 'day_analysis'
    label = 'Day of Week Analysis'

    def __init__(self, config: Dict = None, include_weekends: bool = None):
        super().__init__(config)
        if include_weekends is None:
            include_weekends = self.config.get('analysis', {}).get('include_weekends', False)
        self.include_weekends = include_weekends
        self.day_order = DAY_NAMES if include_weekends else TRADING_DAY_NAMES

    def options(self) -> Dict:
        return {'day_order': self.day_order, 'include_weekends': self.include_weekends}

    def filter_trades(self, df: pd.DataFrame) -> pd.DataFrame:
        df = super().filter_trades(df)
        return df[df['day_of_week'].isin(self.day_order)]

    def build(self, df: pd.DataFrame) -> Dict:
        rows = aggregate_buckets(df, 'day_of_week', label='day', order=self.day_order)
        table = [
            {
                'day': r['day'],
                'total_pnl': r['total_pnl'],
                'trade_count': r['trade_count'],
                'avg_pnl': r['avg_pnl'],
                'win_rate': round2(r['win_rate']),
            }
            for r in rows
        ]

        best = best_bucket(table)
        worst = worst_bucket(table)
        dates = pd.to_datetime(df['date'])
        summary = {
            'total_trades': int(len(df)),
            'total_pnl': float(sum(r['total_pnl'] for r in table)),
            'avg_pnl_per_trade': float(df['pnl'].mean()),
            'trading_days': len(table),
            'date_range': {
                'from': dates.min().strftime('%Y-%m-%d'),
                'to': dates.max().strftime('%Y-%m-%d'),
            },
            'best_day': best['day'] if best else None,
            'worst_day': worst['day'] if worst else None,
            'profitable_days': sum(1 for r in table if r['total_pnl'] > 0),
            'loss_days': sum(1 for r in table if r['total_pnl'] < 0),
        }

        insights, recommendations = self.generate_insights(table)
        return {
            'day_pnl_table': table,
            'summary': summary,
            'insights': insights,
            'recommendations': recommendations,
        }

    def generate_insights(self, table: List[Dict]):
        insights: List[str] = []
        recommendations: List[str] = []

        if not table:
            return ['No data available for analysis.'], []

        best = best_bucket(table)
        worst = worst_bucket(table)

        if best['total_pnl'] > 0:
            insights.append(f"Best day: {best['day']} (Total P&L: {self.fmt(best['total_pnl'], 2)})")
            recommendations.append(f"Focus trading activities on {best['day']} - historically your strongest day")

        if worst['total_pnl'] < 0:
            insights.append(f"Worst day: {worst['day']} (Total P&L: {self.fmt(worst['total_pnl'], 2)})")
            recommendations.append(
                f"Review {worst['day']} trading strategy - consider reducing position sizes or avoiding complex strategies"
            )

        profitable = [r for r in table if r['total_pnl'] > 0]
        losing = [r for r in table if r['total_pnl'] < 0]
        insights.append(f"Number of profitable days: {len(profitable)}")
        insights.append(f"Number of loss days: {len(losing)}")

        if len(profitable) == len(table):
            insights.append('All days are profitable!')
            recommendations.append('Maintain your current strategy - excellent consistency across all trading days')
        elif len(losing) == len(table):
            insights.append('All days are loss-making. Consider reviewing your strategy.')
            recommendations.append('URGENT: Complete strategy overhaul needed - all days showing losses')
        else:
            ratio = len(profitable) / len(table) * 100
            insights.append(
                f"Win rate by days: {self.pct(ratio)} ({len(profitable)} out of {len(table)} days profitable)"
            )
            if ratio >= 80:
                recommendations.append('Excellent day-wise consistency - maintain current approach')
            elif ratio >= 60:
                recommendations.append('Good day-wise performance - focus on improving weaker days')
            else:
                recommendations.append('Day-wise performance needs improvement - analyze losing day patterns')

        # Volatility
        pnl_values = [r['total_pnl'] for r in table]
        stats = calculate_basic_stats(pnl_values)
        volatility = stats['std_dev']
        avg_pnl = stats['mean']
        insights.append(f"P&L volatility across days (std dev): {self.fmt(volatility)}")

        if avg_pnl != 0:
            volatility_ratio = volatility / abs(avg_pnl)
        else:
            # zero mean with any spread counts as unbounded volatility
            volatility_ratio = math.inf if volatility > 0 else None
        if volatility_ratio is not None:
            if volatility_ratio > 2:
                recommendations.append(
                    'High volatility detected - consider risk management strategies to reduce day-to-day swings'
                )
            elif volatility_ratio < 0.5:
                recommendations.append(
                    'Low volatility shows good consistency - consider gradually increasing position sizes'
                )

        if len(table) > 1:
            swing = abs(stats['max'] - stats['min'])
            insights.append(f"Largest swing between best and worst day: {self.fmt(swing)}")
            if swing > avg_pnl * 5:
                recommendations.append('Large day-to-day swings detected - implement daily stop-loss limits')

        # Trade frequency
        avg_trades = sum(r['trade_count'] for r in table) / len(table)
        insights.append(f"Average trades per day: {avg_trades:.1f}")
        insights.append(f"Best day ({best['day']}) had {best['trade_count']} trades")
        insights.append(f"Worst day ({worst['day']}) had {worst['trade_count']} trades")

        if best['trade_count'] > avg_trades * 1.5:
            recommendations.append(
                f"{best['day']} performs well with higher trade volume ({best['trade_count']} trades) - consider more active trading"
            )
        if worst['trade_count'] > avg_trades * 1.5:
            recommendations.append(
                f"{worst['day']} underperforms despite high volume ({worst['trade_count']} trades) - avoid overtrading"
            )

        # Efficiency
        most_efficient = best_bucket(table, 'avg_pnl')
        least_efficient = worst_bucket(table, 'avg_pnl')
        insights.append(f"Most efficient day: {most_efficient['day']} ({self.fmt(most_efficient['avg_pnl'])} per trade)")
        recommendations.append(f"Study {most_efficient['day']} patterns - highest profit per trade efficiency")

        if least_efficient['avg_pnl'] < 0:
            recommendations.append(
                f"{least_efficient['day']} needs attention - negative average per trade ({self.fmt(least_efficient['avg_pnl'])})"
            )

        return insights, self.dedupe(recommendations)


def analyze_day_of_week_pnl(trades, config: Dict = None, include_weekends: bool = None) -> Dict:
    return DayOfWeekAnalyzer(config, include_weekends=include_weekends).analyze(trades)
