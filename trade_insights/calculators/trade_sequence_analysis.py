"""
Trade Sequence Analysis
Performance by the ordinal position of a trade within its trading day
"""

from typing import Dict, List

import pandas as pd

from ..aggregation import aggregate_buckets, best_bucket, worst_bucket
from .base import BaseInsightCalculator

SEQUENCE_CATEGORIES = ['First Trade', 'Early Trades (2-3)', 'Mid Trades (4-5)', 'Late Trades (6+)']
MAX_TRACKED_TRADE_NUMBER = 10
HIGH_VOLUME_TRADE_NUMBER = 6


def categorize_trade_sequence(trade_number: int) -> str:
    if trade_number == 1:
        return 'First Trade'
    if trade_number <= 3:
        return 'Early Trades (2-3)'
    if trade_number <= 5:
        return 'Mid Trades (4-5)'
    return 'Late Trades (6+)'


def _performance_row(row: Dict) -> Dict:
    return {
        'count': row['trade_count'],
        'net_pnl': row['total_pnl'],
        'avg_pnl': row['avg_pnl'],
        'win_rate': row['win_rate'],
        'loss_rate': row['loss_rate'],
        'std_dev': row['std_dev'],
    }


def number_trades(df: pd.DataFrame) -> pd.DataFrame:
    """Sort by date then entry time (stable) and number trades within each day from 1."""
    df = df.copy()
    df['_entry_minutes'] = df.get('entry_hour', 0) * 60 + df.get('entry_minute', 0)
    df = df.sort_values(['date', '_entry_minutes'], kind='mergesort')
    df['trade_number'] = df.groupby('date').cumcount() + 1
    df['trade_category'] = df['trade_number'].map(categorize_trade_sequence)
    return df.drop(columns=['_entry_minutes'])


class TradeSequenceAnalyzer(BaseInsightCalculator):
    """First-trade advantage, intraday degradation and overtrading cost."""

    name = 'trade_sequence_analysis'
    label = 'Trade Sequence Analysis'

    def filter_trades(self, df: pd.DataFrame) -> pd.DataFrame:
        df = super().filter_trades(df)
        return df[df['date'].notna()]

    def build(self, df: pd.DataFrame) -> Dict:
        sequenced = number_trades(df)

        category_rows = aggregate_buckets(sequenced, 'trade_category', label='category', order=SEQUENCE_CATEGORIES)
        sequence_analysis = [{'category': r['category'], **_performance_row(r)} for r in category_rows]

        tracked = sequenced[sequenced['trade_number'] <= MAX_TRACKED_TRADE_NUMBER]
        number_rows = aggregate_buckets(tracked, 'trade_number', label='trade_number',
                                        order=range(1, MAX_TRACKED_TRADE_NUMBER + 1))
        individual = [{'trade_number': int(r['trade_number']), **_performance_row(r)} for r in number_rows]

        per_day = sequenced.groupby('date')['trade_number'].max()
        total_trades = len(sequenced)
        total_pnl = float(sequenced['pnl'].sum())
        best = best_bucket(sequence_analysis, 'net_pnl')
        worst = worst_bucket(sequence_analysis, 'net_pnl')
        summary = {
            'total_trades': int(total_trades),
            'total_trading_days': int(len(per_day)),
            'avg_trades_per_day': total_trades / len(per_day),
            'max_trades_per_day': int(per_day.max()),
            'total_pnl': total_pnl,
            'overall_win_rate': float((sequenced['pnl'] > 0).mean() * 100),
            'overall_avg_pnl': total_pnl / total_trades,
            'best_sequence': best['category'] if best else 'N/A',
            'worst_sequence': worst['category'] if worst else 'N/A',
        }

        overtrading = self.analyze_overtrading(sequenced)
        analysis = {
            'sequence_analysis': sequence_analysis,
            'individual_trade_analysis': individual,
            'summary': summary,
            'overtrading_analysis': overtrading,
        }
        analysis['insights'] = self.generate_insights(analysis)
        analysis['recommendations'] = self.generate_recommendations(analysis)
        return analysis

    @staticmethod
    def analyze_overtrading(sequenced: pd.DataFrame) -> Dict:
        daily = sequenced.groupby('date').agg(
            trade_count=('pnl', 'size'),
            max_trade_number=('trade_number', 'max'),
            daily_pnl=('pnl', 'sum'),
        )
        daily['avg_pnl_per_trade'] = daily['daily_pnl'] / daily['trade_count']
        daily['is_high_volume'] = daily['max_trade_number'] >= HIGH_VOLUME_TRADE_NUMBER

        high = daily[daily['is_high_volume']]
        low = daily[~daily['is_high_volume']]
        high_perf = float(high['avg_pnl_per_trade'].mean()) if len(high) else 0.0
        low_perf = float(low['avg_pnl_per_trade'].mean()) if len(low) else 0.0
        return {
            'total_trading_days': int(len(daily)),
            'high_volume_days': int(len(high)),
            'low_volume_days': int(len(low)),
            'high_volume_performance': high_perf,
            'low_volume_performance': low_perf,
            'overtrading_cost': low_perf - high_perf,
            'high_volume_percentage': len(high) / len(daily) * 100 if len(daily) else 0.0,
        }

    def generate_insights(self, analysis: Dict) -> List[str]:
        insights = []
        sequence = {r['category']: r for r in analysis['sequence_analysis']}
        individual = analysis['individual_trade_analysis']
        summary = analysis['summary']
        overtrading = analysis['overtrading_analysis']

        first = sequence.get('First Trade')
        if first:
            win_rate_diff = first['win_rate'] - summary['overall_win_rate']
            pnl_diff = first['avg_pnl'] - summary['overall_avg_pnl']
            if win_rate_diff > 5:
                insights.append(
                    f"First trades significantly outperform with {self.pct(first['win_rate'])} win rate "
                    f"({self.pct(win_rate_diff)} points above average)"
                )
            elif win_rate_diff < -5:
                insights.append(
                    f"First trades underperform with {self.pct(first['win_rate'])} win rate "
                    f"({self.pct(abs(win_rate_diff))} points below average)"
                )
            if pnl_diff > 100:
                insights.append(
                    f"First trades earn {self.fmt(pnl_diff)} more per trade than average - capitalize on strong morning setups"
                )

        late = sequence.get('Late Trades (6+)')
        if first and late:
            degradation = first['win_rate'] - late['win_rate']
            if degradation > 10:
                insights.append(
                    f"SIGNIFICANT performance degradation: {self.pct(degradation)} point drop from first to late trades"
                )
            elif degradation > 5:
                insights.append(
                    f"Moderate performance degradation: {self.pct(degradation)} point drop from first to late trades"
                )
            if late['win_rate'] < 45:
                insights.append(
                    f"Late trades (6+) show poor performance at {self.pct(late['win_rate'])} win rate - consider daily trade limits"
                )

        if len(individual) > 3:
            best = best_bucket(individual, 'win_rate')
            worst = worst_bucket(individual, 'win_rate')
            insights.append(f"Trade #{best['trade_number']} performs best ({self.pct(best['win_rate'])} win rate)")
            insights.append(f"Trade #{worst['trade_number']} performs worst ({self.pct(worst['win_rate'])} win rate)")

            trade1 = next((t for t in individual if t['trade_number'] == 1), None)
            if trade1:
                drops = [t for t in individual if t['trade_number'] > 1 and trade1['win_rate'] - t['win_rate'] >= 15]
                if drops:
                    first_drop = drops[0]
                    insights.append(
                        f"ALERT: Win rate drops {self.pct(trade1['win_rate'] - first_drop['win_rate'])} "
                        f"by trade #{first_drop['trade_number']}"
                    )

        if overtrading['high_volume_days'] > 0:
            insights.append(f"{self.pct(overtrading['high_volume_percentage'])} of trading days have 6+ trades")
            if overtrading['overtrading_cost'] > 100:
                insights.append(
                    f"Overtrading costs {self.fmt(overtrading['overtrading_cost'])} per trade on high-volume days"
                )
            elif overtrading['overtrading_cost'] < -100:
                insights.append(
                    f"High-volume trading actually adds {self.fmt(abs(overtrading['overtrading_cost']))} per trade"
                )

        if summary['avg_trades_per_day'] > 8:
            insights.append(
                f"High trading frequency detected: {summary['avg_trades_per_day']:.1f} trades per day average"
            )
        if summary['max_trades_per_day'] > 15:
            insights.append(f"Extreme trading detected: Up to {summary['max_trades_per_day']} trades in a single day")

        return insights

    def generate_recommendations(self, analysis: Dict) -> List[str]:
        recommendations = []
        sequence = {r['category']: r for r in analysis['sequence_analysis']}
        individual = analysis['individual_trade_analysis']
        summary = analysis['summary']
        overtrading = analysis['overtrading_analysis']

        first = sequence.get('First Trade')
        if first and first['win_rate'] > summary['overall_win_rate'] + 5:
            recommendations.append(
                'CAPITALIZE ON STRONG STARTS: Focus maximum effort and larger position sizes on first trades'
            )
            recommendations.append('Enhance morning preparation routine and pre-market analysis')

        late = sequence.get('Late Trades (6+)')
        if late and late['win_rate'] < 45:
            recommendations.append('IMPLEMENT DAILY TRADE LIMITS: Stop trading after 5 trades per day')
            recommendations.append('Set up automated alerts when approaching daily trade limits')

        early = [t for t in individual if t['trade_number'] <= 3]
        if early:
            avg_early_win_rate = sum(t['win_rate'] for t in early) / len(early)
            if avg_early_win_rate > 55:
                recommendations.append(
                    'OPTIMIZE EARLY TRADING: First 3 trades show strong performance - focus energy here'
                )

        if overtrading['overtrading_cost'] > 100:
            recommendations.append(
                'AVOID OVERTRADING: High-volume days underperform - implement stricter entry criteria'
            )
            recommendations.append('Consider position sizing reduction after 5 trades in a day')

        rates = [r['win_rate'] for r in analysis['sequence_analysis']]
        if len(rates) > 1 and all(rates[i] <= rates[i - 1] for i in range(1, len(rates))):
            recommendations.append('MANAGE TRADING FATIGUE: Performance degrades throughout the day - take breaks')
            recommendations.append('Consider splitting trading sessions with rest periods')

        if len(individual) >= 5:
            outperformers = [str(t['trade_number']) for t in individual
                             if t['win_rate'] > summary['overall_win_rate'] + 10]
            if outperformers:
                recommendations.append(
                    f"TARGET OPTIMAL TRADE NUMBERS: Focus on trades #{', '.join(outperformers)} which consistently outperform"
                )

        if summary['max_trades_per_day'] > 10:
            recommendations.append(
                'IMPLEMENT RISK CONTROLS: Maximum daily trades should be capped to prevent emotional trading'
            )

        recommendations.append('TRACK INTRADAY PERFORMANCE: Monitor real-time win rate degradation during trading')
        recommendations.append('REVIEW TRADE SEQUENCING: Analyze what changes between early and late trades')
        return recommendations


def analyze_trade_sequence_pnl(trades, config: Dict = None) -> Dict:
    return TradeSequenceAnalyzer(config).analyze(trades)
