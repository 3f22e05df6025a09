import pandas as pd
import pytest

from trade_insights.calculators import (
    DayOfWeekAnalyzer,
    DirectionAnalyzer,
    DirectionOptionsAnalyzer,
    DurationAnalyzer,
    LotSizeAnalyzer,
    TimeInstrumentAnalyzer,
    TradeCountAnalyzer,
    TradeSequenceAnalyzer,
    analyze_day_of_week_pnl,
    analyze_direction_cepe_pnl,
)
from trade_insights.calculators.direction_analysis import option_type
from trade_insights.calculators.lot_size_analysis import find_trade_size_bucket
from trade_insights.calculators.time_instrument_analysis import extract_base_instrument, get_time_bucket
from trade_insights.calculators.trade_count_analysis import find_trade_count_category
from trade_insights.calculators.trade_sequence_analysis import categorize_trade_sequence
from trade_insights.config import load_config


def test_invalid_input_returns_failure_envelope():
    for bad in (None, [], pd.DataFrame()):
        result = DayOfWeekAnalyzer().analyze(bad)
        assert result['success'] is False
        assert result['data'] is None
        assert 'Expected non-empty array' in result['error']

    result = DayOfWeekAnalyzer().analyze([{'price': 1}])
    assert result['success'] is False
    assert 'pnl' in result['error']


def test_day_of_week(trades):
    result = analyze_day_of_week_pnl(trades)
    assert result['success']
    data = result['data']

    totals = {r['day']: r['total_pnl'] for r in data['day_pnl_table']}
    assert list(totals) == ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday']
    assert totals['Monday'] == 1200.0
    assert totals['Friday'] == -600.0
    # Monday and Wednesday tie at 1200; the earlier day wins
    assert data['summary']['best_day'] == 'Monday'
    assert data['summary']['worst_day'] == 'Friday'
    assert data['summary']['total_pnl'] == 3000.0
    assert data['summary']['date_range'] == {'from': '2024-07-01', 'to': '2024-07-05'}
    assert data['insights'][0] == 'Best day: Monday (Total P&L: ₹1,200)'
    assert len(data['recommendations']) == len(set(data['recommendations']))


def test_day_of_week_drops_weekends_unless_enabled(trades):
    weekend = trades.copy()
    weekend.loc[weekend.index[0], 'day_of_week'] = 'Saturday'

    default = DayOfWeekAnalyzer().analyze(weekend)['data']
    assert 'Saturday' not in [r['day'] for r in default['day_pnl_table']]
    assert default['summary']['total_trades'] == 9

    with_weekends = DayOfWeekAnalyzer(include_weekends=True).analyze(weekend)['data']
    assert with_weekends['day_pnl_table'][-1]['day'] == 'Saturday'


def test_recommendations_can_be_disabled(trades):
    config = {'analysis': {'include_recommendations': False}}
    data = DayOfWeekAnalyzer(config).analyze(trades)['data']
    assert data['recommendations'] == []
    assert data['insights']


def test_duration(trades):
    data = DurationAnalyzer().analyze(trades)['data']
    table = data['duration_table']

    assert [r['duration'] for r in table] == ['5-15m', '1-5m', '1-2h', '30-60m', '15-30m']
    assert table[0]['total_pnl'] == 2500.0
    assert table[0]['trade_count'] == 3
    assert data['summary']['best_duration'] == '5-15m'
    assert data['summary']['worst_duration'] == '15-30m'


def test_lot_size(trades):
    data = LotSizeAnalyzer().analyze(trades)['data']
    table = data['lot_size_table']

    assert [r['size_category'] for r in table] == ['Small (<₹50K)', 'Medium (₹50K-1L)']
    assert table[0]['total_pnl'] == 3600.0
    assert table[0]['trade_count'] == 9
    assert table[1]['trade_count'] == 1
    assert data['summary']['max_trade_size'] == 51000.0


def test_lot_size_without_prices_fails(trades):
    result = LotSizeAnalyzer().analyze(trades.assign(quantity=0))
    assert result['success'] is False
    assert result['error'] == 'No valid trades found after processing'


def test_trade_size_bucket_boundaries():
    assert find_trade_size_bucket(49999.99)['label'] == 'Small (<₹50K)'
    assert find_trade_size_bucket(50000)['label'] == 'Medium (₹50K-1L)'
    assert find_trade_size_bucket(10 ** 7)['label'] == 'Very Large (>₹2L)'
    assert find_trade_size_bucket(-1) is None


def test_trade_count(trades):
    data = TradeCountAnalyzer().analyze(trades)['data']
    table = data['trade_count_table']

    assert [r['trade_count'] for r in table] == [1, 2, 3]
    two = table[1]
    assert two['frequency_days'] == 3
    assert two['total_pnl'] == 3400.0
    assert two['category'] == 'Low (1-2 trades/day)'
    assert data['summary']['total_trading_days'] == 5
    assert data['summary']['avg_trades_per_day'] == 2.0
    assert len(data['daily_stats']) == 5
    assert find_trade_count_category(11)['label'] == 'Very High (>10 trades/day)'


def test_trade_sequence(trades):
    data = TradeSequenceAnalyzer().analyze(trades)['data']
    categories = {r['category']: r for r in data['sequence_analysis']}

    assert list(categories) == ['First Trade', 'Early Trades (2-3)']
    assert categories['First Trade']['count'] == 5
    assert categories['First Trade']['win_rate'] == 80.0
    assert categories['First Trade']['net_pnl'] == 3400.0
    assert data['overtrading_analysis']['high_volume_days'] == 0
    assert data['summary']['max_trades_per_day'] == 3
    assert categorize_trade_sequence(6) == 'Late Trades (6+)'


def test_time_instrument(trades):
    data = TimeInstrumentAnalyzer().analyze(trades)['data']
    slots = {r['time_slot']: r for r in data['time_slot_analysis']}

    assert slots['Early Morning (9-10 AM)']['total_pnl'] == 4000.0
    assert slots['Early Morning (9-10 AM)']['trade_count'] == 4
    assert 'NIFTY' in data['instruments']
    assert 'BANKNIFTY' in data['instruments']
    assert data['summary']['total_trades'] == 10
    assert data['time_instrument_matrix'][0]['time_slot'] == 'Early Morning (9-10 AM)'


def test_time_helpers():
    assert extract_base_instrument('NIFTY25JUL24750CE') == 'NIFTY'
    assert extract_base_instrument('') == 'UNKNOWN'
    assert get_time_bucket(8) == 'Pre-Market'
    assert get_time_bucket(9) == 'Early Morning (9-10 AM)'
    assert get_time_bucket(15) == 'Late Afternoon (2+ PM)'
    assert get_time_bucket(None) is None


def test_direction_symbol(trades):
    data = DirectionAnalyzer().analyze(trades)['data']
    directions = {r['direction']: r for r in data['direction_analysis']}

    assert directions['LONG']['total_pnl'] == 3200.0
    assert directions['SHORT']['total_pnl'] == -200.0
    assert data['better_direction'] == 'LONG'
    assert data['summary']['unique_symbols'] == 9
    assert data['summary']['total_possible_combinations'] == 18
    assert data['top_direction_symbols'][0]['total_pnl'] == 3000.0


def test_direction_skips_unknown_sides(trades):
    mixed = trades.copy()
    mixed.loc[mixed.index[0], 'side'] = 'UNKNOWN'
    data = DirectionAnalyzer().analyze(mixed)['data']
    assert data['summary']['total_trades'] == 9


def test_direction_options(trades):
    data = DirectionOptionsAnalyzer().analyze(trades)['data']

    assert data['summary']['total_trades'] == 6
    assert data['summary']['ce_trades_count'] == 3
    assert data['summary']['pe_trades_count'] == 3
    assert data['ce_analysis']['total_pnl'] == 2700.0
    assert data['pe_analysis']['total_pnl'] == -300.0
    categories = [r['full_category'] for r in data['direction_option_matrix']]
    assert 'LONG_NIFTY_CE' in categories
    assert 'SHORT_BANKNIFTY_PE' in categories


def test_direction_options_without_options_is_success(trades):
    stocks = trades[~trades['symbol'].str.contains(r'(?:CE|PE)$')]
    result = DirectionOptionsAnalyzer().analyze(stocks)

    assert result['success'] is True
    assert result['data']['summary']['total_trades'] == 0
    assert result['data']['insights'] == ['No CE or PE options found in the dataset']


def test_option_type_needs_a_strike():
    assert option_type('NIFTY24JUL24500CE') == 'CE'
    assert option_type('banknifty24jul52000pe') == 'PE'
    assert option_type('RELIANCE') is None
    assert option_type('PRICE') is None


@pytest.mark.parametrize('calculator', [
    DayOfWeekAnalyzer, DurationAnalyzer, LotSizeAnalyzer, TradeCountAnalyzer,
    TradeSequenceAnalyzer, TimeInstrumentAnalyzer, DirectionAnalyzer, DirectionOptionsAnalyzer,
])
def test_every_calculator_reports_metadata(trades, calculator):
    result = calculator().analyze(trades)
    assert result['success'], result['error']
    assert result['metadata']['processed_trades'] > 0
    assert result['metadata']['skipped_trades'] >= 0
    assert isinstance(result['data']['insights'], list)


def _frame(records):
    from trade_insights.data_processor import TradingDataProcessor
    return TradingDataProcessor().process_raw_trading_data(records)


def test_monday_long_banknifty_beats_tuesday_short_nifty():
    records = (
        [{'Date': '01/07/2024', 'P&L': '₹800', 'Symbol': 'BANKNIFTY', 'Side': 'BUY'}] * 3
        + [{'Date': '02/07/2024', 'P&L': '-₹400', 'Symbol': 'NIFTY', 'Side': 'SELL'}] * 2
    )
    summary = analyze_day_of_week_pnl(_frame(records))['data']['summary']

    assert summary['best_day'] == 'Monday'
    assert summary['worst_day'] == 'Tuesday'
    assert summary['profitable_days'] == 1
    assert summary['loss_days'] == 1
    assert summary['total_pnl'] == 1600.0


def test_empty_duration_buckets_are_omitted():
    records = [
        {'Date': '01/07/2024', 'P&L': '100', 'Duration': '30s'},
        {'Date': '01/07/2024', 'P&L': '-50', 'Duration': '2m'},
        {'Date': '02/07/2024', 'P&L': '75', 'Duration': '3h'},
    ]
    table = DurationAnalyzer().analyze(_frame(records))['data']['duration_table']
    assert sorted(r['duration'] for r in table) == ['1-5m', '<1m', '>2h']




def _row_trades(row):
    return row.get('trade_count', row.get('count'))


@pytest.mark.parametrize('calculator, table_key, pnl_field, count_of', [
    (DayOfWeekAnalyzer, 'day_pnl_table', 'total_pnl', _row_trades),
    (DurationAnalyzer, 'duration_table', 'total_pnl', _row_trades),
    (LotSizeAnalyzer, 'lot_size_table', 'total_pnl', _row_trades),
    (TradeCountAnalyzer, 'trade_count_table', 'total_pnl', lambda r: r['trade_count'] * r['frequency_days']),
    (TradeSequenceAnalyzer, 'sequence_analysis', 'net_pnl', lambda r: r['count']),
    (TimeInstrumentAnalyzer, 'time_instrument_matrix', 'total_pnl', _row_trades),
    (DirectionAnalyzer, 'direction_symbol_matrix', 'total_pnl', _row_trades),
    (DirectionOptionsAnalyzer, 'direction_option_matrix', 'total_pnl', _row_trades),
])
def test_bucket_totals_add_up_to_considered_trades(trades, calculator, table_key, pnl_field, count_of):
    instance = calculator()
    considered = instance.filter_trades(trades)
    table = instance.analyze(trades)['data'][table_key]
    assert sum(r[pnl_field] for r in table) == pytest.approx(considered['pnl'].sum())
    assert sum(count_of(r) for r in table) == len(considered)


def test_sequence_without_entry_times_keeps_input_order():
    records = [
        {'Date': '01/07/2024', 'P&L': '500'},
        {'Date': '01/07/2024', 'P&L': '-100'},
        {'Date': '01/07/2024', 'P&L': '200'},
        {'Date': '02/07/2024', 'P&L': '-50'},
    ]
    data = TradeSequenceAnalyzer().analyze(_frame(records))['data']
    rows = {r['category']: r for r in data['sequence_analysis']}

    assert rows['First Trade']['count'] == 2
    assert rows['First Trade']['net_pnl'] == 450.0
    assert rows['Early Trades (2-3)']['count'] == 2
    assert rows['Early Trades (2-3)']['net_pnl'] == 100.0
    assert sum(r['count'] for r in data['sequence_analysis']) == 4
    assert sum(r['net_pnl'] for r in data['sequence_analysis']) == pytest.approx(550.0)


def test_cepe_entry_point_goes_through_direction_analyzer(trades):
    via_direction = DirectionAnalyzer().analyze_options(trades)
    via_function = analyze_direction_cepe_pnl(trades)

    assert via_function['success'] and via_direction['success']
    assert via_function['data']['direction_option_matrix'] == via_direction['data']['direction_option_matrix']
    assert via_function['data']['summary']['total_trades'] == 6


def test_percentages_follow_configured_decimals(trades):
    config = load_config(None, {'analysis': {'percentage_decimals': 2}})
    data = DayOfWeekAnalyzer(config).analyze(trades)['data']

    assert 'Win rate by days: 80.00% (4 out of 5 days profitable)' in data['insights']
    default = DayOfWeekAnalyzer().analyze(trades)['data']
    assert 'Win rate by days: 80.0% (4 out of 5 days profitable)' in default['insights']


HIGH_VOLATILITY = 'High volatility detected - consider risk management strategies to reduce day-to-day swings'
LOW_VOLATILITY = 'Low volatility shows good consistency - consider gradually increasing position sizes'


def test_days_netting_to_zero_count_as_high_volatility():
    records = [
        {'Date': '01/07/2024', 'P&L': '500'},
        {'Date': '02/07/2024', 'P&L': '-500'},
    ]
    data = DayOfWeekAnalyzer().analyze(_frame(records))['data']
    assert HIGH_VOLATILITY in data['recommendations']

    flat = [{'Date': '01/07/2024', 'P&L': '0'}, {'Date': '02/07/2024', 'P&L': '0'}]
    data = DayOfWeekAnalyzer().analyze(_frame(flat))['data']
    assert HIGH_VOLATILITY not in data['recommendations']
    assert LOW_VOLATILITY not in data['recommendations']
