import math

import pandas as pd
import pytest

from trade_insights.aggregation import aggregate_buckets, best_bucket, bucket_stats, round2, top_n, worst_bucket
from trade_insights.calculations import (
    calculate_basic_stats,
    calculate_correlation,
    calculate_moving_average,
    calculate_percentile,
    calculate_profit_loss_ratio,
    calculate_risk_reward_ratio,
    calculate_sharpe_ratio,
    calculate_win_rate,
    create_pivot_table,
    find_outliers,
    format_currency,
    format_percentage,
    group_by,
    sort_by_field,
)


def test_basic_stats_uses_population_variance():
    stats = calculate_basic_stats([2, 4, 4, 4, 5, 5, 7, 9])
    assert stats['count'] == 8
    assert stats['mean'] == 5.0
    assert stats['median'] == 4.5
    assert stats['variance'] == 4.0
    assert stats['std_dev'] == 2.0


def test_basic_stats_ignores_non_numbers():
    stats = calculate_basic_stats([1, 'x', None, float('nan'), True, 3])
    assert stats['count'] == 2
    assert stats['sum'] == 4.0
    assert calculate_basic_stats([])['count'] == 0


def test_trading_ratios():
    trades = [{'pnl': 100}, {'pnl': -50}, {'pnl': 200}, {'pnl': 0}]
    assert calculate_win_rate(trades) == 50.0
    assert calculate_profit_loss_ratio(trades) == 2.0
    assert calculate_risk_reward_ratio(trades) == 3.0
    assert calculate_profit_loss_ratio([{'pnl': 10}]) == math.inf
    assert calculate_profit_loss_ratio([]) == 0.0
    assert calculate_risk_reward_ratio([{'pnl': 10}]) == 0.0


def test_sharpe_ratio():
    assert calculate_sharpe_ratio([1, 1, 1]) == 0.0
    assert calculate_sharpe_ratio([1, 3]) == pytest.approx(2.0)


def test_percentile_interpolates():
    assert calculate_percentile([1, 2, 3, 4], 50) == 2.5
    assert calculate_percentile([10, 20, 30], 100) == 30.0
    assert calculate_percentile([], 50) == 0.0


def test_correlation_edge_cases():
    assert calculate_correlation([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)
    assert calculate_correlation([1, 2], [1, 2, 3]) == 0.0
    assert calculate_correlation([1], [1]) == 0.0
    assert calculate_correlation([1, 1, 1], [1, 2, 3]) == 0.0


def test_moving_average_and_outliers():
    assert calculate_moving_average([1, 2, 3, 4], 2) == [1.5, 2.5, 3.5]
    assert calculate_moving_average([1], 2) == []

    result = find_outliers([1, 2, 3, 4, 100])
    assert result['outliers'] == [100.0]
    assert result['q1'] == 2.0
    assert result['q3'] == 4.0


def test_grouping_helpers():
    items = [{'sym': 'A', 'v': 1}, {'sym': '', 'v': 2}, {'sym': 'A', 'v': 3}]
    groups = group_by(items, 'sym')
    assert list(groups) == ['A', 'Unknown']
    assert len(groups['A']) == 2

    pivot = create_pivot_table(
        [{'day': 'Mon', 'side': 'LONG', 'pnl': 10}, {'day': 'Mon', 'side': 'LONG', 'pnl': 5},
         {'day': 'Tue', 'side': 'SHORT', 'pnl': -3}],
        'day', 'side', 'pnl',
    )
    assert pivot['data']['Mon']['LONG'] == 15.0
    assert pivot['data']['Mon']['SHORT'] == 0.0
    assert pivot['rows'] == ['Mon', 'Tue']

    ordered = sort_by_field([{'v': 3}, {'v': 1}, {'v': 2}], 'v', 'desc')
    assert [i['v'] for i in ordered] == [3, 2, 1]


def test_format_currency_uses_indian_grouping():
    assert format_currency(123456.5) == '₹1,23,456.5'
    assert format_currency(-1500) == '-₹1,500'
    assert format_currency(999) == '₹999'
    assert format_currency(12345678) == '₹1,23,45,678'
    assert format_currency(float('nan')) == '₹0'
    assert format_currency('abc') == '₹0'


def test_format_percentage():
    assert format_percentage(12.345) == '12.3%'
    assert format_percentage(5, 2) == '5.00%'
    assert format_percentage(None) == '0.0%'


def test_bucket_stats_zero_pnl_handling():
    strict = bucket_stats(pd.Series([100.0, 0.0, -50.0]))
    assert strict['losing_trades'] == 1
    assert strict['win_rate'] == pytest.approx(100 / 3)

    inclusive = bucket_stats(pd.Series([100.0, 0.0, -50.0]), zero_is_loss=True)
    assert inclusive['losing_trades'] == 2
    assert inclusive['avg_loss'] == -25.0
    assert inclusive['profit_factor'] == 4.0


def test_aggregate_buckets_order_and_ties():
    df = pd.DataFrame({'k': ['b', 'a', 'b', 'c'], 'pnl': [10.0, 20.0, 10.0, -5.0]})

    rows = aggregate_buckets(df, 'k', label='key')
    assert [r['key'] for r in rows] == ['b', 'a', 'c']

    ordered = aggregate_buckets(df, 'k', label='key', order=['c', 'a'])
    assert [r['key'] for r in ordered] == ['c', 'a']

    # b and a both total 20: the first-seen bucket wins
    assert best_bucket(rows)['key'] == 'b'
    assert worst_bucket(rows)['key'] == 'c'
    assert [r['key'] for r in top_n(rows, 2)] == ['b', 'a']
    assert aggregate_buckets(pd.DataFrame(), 'k') == []


def test_round2():
    assert round2(1.23456) == 1.23
    assert round2(float('nan')) == 0.0
    assert round2(None) == 0.0


def test_win_rate_ignores_trade_order():
    trades = [{'pnl': v} for v in (100, -50, 0, 25, -10)]
    assert calculate_win_rate(trades) == calculate_win_rate(list(reversed(trades))) == 40.0
