"""
Aggregation Module
Bucketed P&L aggregation shared by the insight calculators and the AI generators.

Buckets keep the order in which they are first seen in the trades frame unless
an explicit order is given. Best/worst picks return the first bucket holding the
extreme value, so ties resolve to the earliest-inserted bucket.
"""

from typing import Callable, Dict, Iterable, List, Optional

import numpy as np
import pandas as pd


def round2(value) -> float:
    if value is None:
        return 0.0
    value = float(value)
    if np.isnan(value) or np.isinf(value):
        return 0.0
    return round(value, 2)


def _loss_mask(pnl: pd.Series, zero_is_loss: bool) -> pd.Series:
    return pnl <= 0 if zero_is_loss else pnl < 0


def bucket_stats(pnl: pd.Series, zero_is_loss: bool = False) -> Dict:
    """Aggregate one bucket's P&L series."""
    pnl = pd.Series(pnl, dtype=float)
    count = int(pnl.size)
    wins = pnl[pnl > 0]
    losses = pnl[_loss_mask(pnl, zero_is_loss)]

    total = float(pnl.sum())
    avg_profit = float(wins.mean()) if len(wins) else 0.0
    avg_loss = float(losses.mean()) if len(losses) else 0.0
    profit_factor = abs(avg_profit / avg_loss) if avg_loss != 0 else 0.0

    return {
        'total_pnl': total,
        'trade_count': count,
        'winning_trades': int(len(wins)),
        'losing_trades': int(len(losses)),
        'avg_pnl': total / count if count else 0.0,
        'win_rate': len(wins) / count * 100 if count else 0.0,
        'loss_rate': len(losses) / count * 100 if count else 0.0,
        'avg_profit': avg_profit,
        'avg_loss': avg_loss,
        'profit_factor': profit_factor,
        'std_dev': float(pnl.std(ddof=0)) if count else 0.0,
    }


def aggregate_buckets(df: pd.DataFrame, key, label: str = 'bucket',
                      order: Optional[Iterable] = None, sort: Optional[str] = None,
                      zero_is_loss: bool = False) -> List[Dict]:
    """
    Group trades by `key` (a column name or a list of them) and aggregate P&L per bucket.

    Args:
        label: output field name(s) for the bucket key
        order: fixed bucket order; buckets absent from the data are omitted
        sort: 'desc' / 'asc' by total P&L, or None to keep order
        zero_is_loss: count pnl == 0 trades as losses
    """
    if df is None or df.empty:
        return []

    keys = list(key) if isinstance(key, (list, tuple)) else [key]
    labels = list(label) if isinstance(label, (list, tuple)) else [label]

    rows: List[Dict] = []
    for bucket, group in df.groupby(keys, sort=False):
        bucket = bucket if isinstance(bucket, tuple) else (bucket,)
        row = dict(zip(labels, bucket))
        row.update(bucket_stats(group['pnl'], zero_is_loss=zero_is_loss))
        rows.append(row)

    if order is not None:
        position = {name: i for i, name in enumerate(order)}
        rows = [r for r in rows if r[labels[0]] in position]
        rows.sort(key=lambda r: position[r[labels[0]]])

    if sort == 'desc':
        rows = sorted(rows, key=lambda r: r['total_pnl'], reverse=True)
    elif sort == 'asc':
        rows = sorted(rows, key=lambda r: r['total_pnl'])

    return rows


def best_bucket(rows: List[Dict], field: str = 'total_pnl') -> Optional[Dict]:
    return max(rows, key=lambda r: r[field]) if rows else None


def worst_bucket(rows: List[Dict], field: str = 'total_pnl') -> Optional[Dict]:
    return min(rows, key=lambda r: r[field]) if rows else None


def top_n(rows: List[Dict], n: int, field: str = 'total_pnl',
          predicate: Optional[Callable[[Dict], bool]] = None) -> List[Dict]:
    candidates = [r for r in rows if predicate is None or predicate(r)]
    return sorted(candidates, key=lambda r: r[field], reverse=True)[:n]


def daily_stats(df: pd.DataFrame) -> pd.DataFrame:
    """One row per calendar date: trades, P&L totals, win rate, per-trade average and std-dev."""
    columns = ['date', 'trades', 'total_pnl', 'profit_trades', 'loss_trades',
               'win_rate', 'avg_pnl_per_trade', 'pnl_std_dev']
    if df is None or df.empty:
        return pd.DataFrame(columns=columns)

    grouped = df.groupby('date', sort=True)['pnl']
    daily = pd.DataFrame({
        'trades': grouped.size(),
        'total_pnl': grouped.sum(),
        'profit_trades': grouped.apply(lambda s: int((s > 0).sum())),
        'loss_trades': grouped.apply(lambda s: int((s < 0).sum())),
        'pnl_std_dev': grouped.apply(lambda s: float(s.std(ddof=0))),
    }).reset_index()
    daily['win_rate'] = daily['profit_trades'] / daily['trades'] * 100
    daily['avg_pnl_per_trade'] = daily['total_pnl'] / daily['trades']
    return daily[columns]
