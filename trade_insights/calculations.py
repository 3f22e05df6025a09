"""
Calculations Module
Generic statistics and trading ratios shared by the insight calculators
"""

import math
import numbers
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Sequence

import numpy as np
import pandas as pd
from scipy.stats import pearsonr


def _numeric(values: Iterable) -> List[float]:
    """Keep real numbers only (bools and NaN dropped)."""
    if values is None or isinstance(values, (str, bytes)):
        return []
    out = []
    for v in values:
        if isinstance(v, bool) or not isinstance(v, numbers.Real):
            continue
        v = float(v)
        if math.isnan(v):
            continue
        out.append(v)
    return out


def _pnl_values(trades: Any) -> List[float]:
    """Accept a trades DataFrame, a list of trade dicts or a plain P&L sequence."""
    if trades is None:
        return []
    if isinstance(trades, pd.DataFrame):
        if trades.empty or 'pnl' not in trades.columns:
            return []
        return [float(v) for v in trades['pnl'].astype(float)]
    if isinstance(trades, pd.Series):
        return [float(v) for v in trades.astype(float)]
    values = []
    for t in trades:
        if isinstance(t, dict):
            values.append(float(t.get('pnl', 0) or 0))
        else:
            values.append(float(t))
    return values


ZERO_STATS = {
    'count': 0, 'sum': 0.0, 'mean': 0.0, 'median': 0.0,
    'min': 0.0, 'max': 0.0, 'std_dev': 0.0, 'variance': 0.0,
}


def calculate_basic_stats(values: Iterable) -> Dict:
    """Count, sum, mean, median, min, max and population variance / std-dev."""
    nums = _numeric(values)
    if not nums:
        return dict(ZERO_STATS)

    arr = np.asarray(nums, dtype=float)
    variance = float(np.var(arr))  # ddof=0
    return {
        'count': int(arr.size),
        'sum': float(arr.sum()),
        'mean': float(arr.mean()),
        'median': float(np.median(arr)),
        'min': float(arr.min()),
        'max': float(arr.max()),
        'std_dev': math.sqrt(variance),
        'variance': variance,
    }


# =========================================================
# Trading ratios
# =========================================================
def calculate_win_rate(trades: Any) -> float:
    pnl = _pnl_values(trades)
    if not pnl:
        return 0.0
    return sum(1 for v in pnl if v > 0) / len(pnl) * 100


def calculate_profit_loss_ratio(trades: Any) -> float:
    """Winning-trade count over losing-trade count; inf with wins and no losses."""
    pnl = _pnl_values(trades)
    if not pnl:
        return 0.0
    wins = sum(1 for v in pnl if v > 0)
    losses = sum(1 for v in pnl if v < 0)
    if losses == 0:
        return math.inf if wins > 0 else 0.0
    return wins / losses


def calculate_risk_reward_ratio(trades: Any) -> float:
    pnl = _pnl_values(trades)
    profits = [v for v in pnl if v > 0]
    losses = [v for v in pnl if v < 0]
    if not profits or not losses:
        return 0.0
    avg_profit = sum(profits) / len(profits)
    avg_loss = abs(sum(losses) / len(losses))
    return avg_profit / avg_loss


def calculate_sharpe_ratio(returns: Iterable, risk_free_rate: float = 0.0) -> float:
    stats = calculate_basic_stats(returns)
    if stats['count'] == 0 or stats['std_dev'] == 0:
        return 0.0
    return (stats['mean'] - risk_free_rate) / stats['std_dev']


# =========================================================
# Distribution helpers
# =========================================================
def calculate_percentile(values: Iterable, percentile: float) -> float:
    """Linear interpolation between order statistics at p/100 * (n - 1)."""
    nums = _numeric(values)
    if not nums:
        return 0.0
    return float(np.percentile(nums, percentile, method='linear'))


def calculate_correlation(x: Sequence, y: Sequence) -> float:
    """Pearson correlation; 0 on length mismatch, fewer than 2 points or zero variance."""
    if x is None or y is None:
        return 0.0
    x = list(x)
    y = list(y)
    if len(x) != len(y) or len(x) < 2:
        return 0.0
    xa = np.asarray(x, dtype=float)
    ya = np.asarray(y, dtype=float)
    if np.std(xa) == 0 or np.std(ya) == 0:
        return 0.0
    r, _ = pearsonr(xa, ya)
    return 0.0 if math.isnan(r) else float(r)


def calculate_moving_average(values: Sequence, window: int) -> List[float]:
    if values is None or window <= 0 or len(values) < window:
        return []
    series = pd.Series(list(values), dtype=float)
    return series.rolling(window).mean().dropna().tolist()


def find_outliers(values: Iterable, multiplier: float = 1.5) -> Dict:
    nums = _numeric(values)
    if not nums:
        return {'outliers': [], 'lower_bound': 0.0, 'upper_bound': 0.0, 'q1': 0.0, 'q3': 0.0, 'iqr': 0.0}

    q1 = calculate_percentile(nums, 25)
    q3 = calculate_percentile(nums, 75)
    iqr = q3 - q1
    lower = q1 - multiplier * iqr
    upper = q3 + multiplier * iqr
    return {
        'outliers': [v for v in nums if v < lower or v > upper],
        'lower_bound': lower,
        'upper_bound': upper,
        'q1': q1,
        'q3': q3,
        'iqr': iqr,
    }


# =========================================================
# Grouping helpers
# =========================================================
def group_by(items: Iterable[Dict], field: str) -> Dict[str, List[Dict]]:
    groups: Dict[str, List[Dict]] = OrderedDict()
    for item in items or []:
        key = item.get(field) or 'Unknown'
        groups.setdefault(key, []).append(item)
    return groups


def create_pivot_table(items: List[Dict], row_field: str, col_field: str, value_field: str,
                       aggregation: str = 'sum') -> Dict:
    """Row x column pivot of `value_field`; aggregation is sum, count or mean."""
    if not items:
        return {'data': {}, 'rows': [], 'columns': []}

    df = pd.DataFrame(items)
    df[row_field] = df.get(row_field, pd.Series(dtype=object)).fillna('Unknown').replace('', 'Unknown')
    df[col_field] = df.get(col_field, pd.Series(dtype=object)).fillna('Unknown').replace('', 'Unknown')
    df['_value'] = pd.to_numeric(df.get(value_field, 0), errors='coerce')

    grouped = df.groupby([row_field, col_field], sort=False)['_value']
    if aggregation == 'count':
        agg = grouped.size()
    elif aggregation == 'mean':
        agg = grouped.mean()
    else:
        agg = grouped.sum()
    pivot = agg.unstack(fill_value=0).fillna(0)

    rows = sorted(str(r) for r in pivot.index)
    columns = sorted(str(c) for c in pivot.columns)
    data = {
        str(r): {str(c): float(pivot.loc[r, c]) for c in pivot.columns}
        for r in pivot.index
    }
    return {'data': data, 'rows': rows, 'columns': columns}


def sort_by_field(items: List[Dict], field: str, direction: str = 'asc') -> List[Dict]:
    if not items:
        return []
    reverse = direction != 'asc'

    def key(item):
        value = item.get(field)
        if isinstance(value, numbers.Real) and not isinstance(value, bool):
            return (0, value, '')
        return (1, 0, str(value or ''))

    return sorted(items, key=key, reverse=reverse)


# =========================================================
# Formatting
# =========================================================
def _indian_grouping(integer_part: str) -> str:
    if len(integer_part) <= 3:
        return integer_part
    head, tail = integer_part[:-3], integer_part[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ','.join(groups + [tail])


def format_currency(value: Any, currency: str = '₹') -> str:
    """₹1,23,456.5 style (Indian digit grouping, up to 3 decimals)."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or math.isnan(value):
        return f"{currency}0"
    sign = '-' if value < 0 else ''
    text = f"{abs(float(value)):.3f}".rstrip('0').rstrip('.')
    integer_part, _, decimals = text.partition('.')
    formatted = _indian_grouping(integer_part)
    if decimals:
        formatted = f"{formatted}.{decimals}"
    return f"{sign}{currency}{formatted}"


def format_percentage(value: Any, decimals: int = 1) -> str:
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or math.isnan(value):
        return '0.0%'
    return f"{value:.{decimals}f}%"
