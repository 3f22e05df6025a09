import json

import pandas as pd
import pytest

from trade_insights.data_processor import (
    SKIP_INVALID_DATE,
    SKIP_NOT_A_RECORD,
    TradingDataProcessor,
    categorize_instrument,
    clean_currency_value,
    get_duration_category,
    normalize_side,
    parse_date_string,
    parse_duration_to_seconds,
    parse_time_string,
)
from trade_insights.exceptions import TradingDataError


def test_clean_currency_value():
    assert clean_currency_value('₹1,500') == 1500.0
    assert clean_currency_value('-₹300') == -300.0
    assert clean_currency_value('$-20.5') == -20.5
    assert clean_currency_value(42) == 42.0
    assert clean_currency_value('n/a') == 0.0
    assert clean_currency_value(None) == 0.0


def test_parse_duration_to_seconds():
    assert parse_duration_to_seconds('1h 15m 30s') == 4530
    assert parse_duration_to_seconds('5m') == 300
    assert parse_duration_to_seconds('') == 0
    assert parse_duration_to_seconds(None) == 0


def test_parse_date_string_is_day_first():
    assert parse_date_string('01/07/2024') == pd.Timestamp('2024-07-01')
    assert parse_date_string('15/1/2025') == pd.Timestamp('2025-01-15')
    assert parse_date_string('2024-07-03') == pd.Timestamp('2024-07-03')
    assert parse_date_string('31/02/2024') is None
    assert parse_date_string('not a date') is None
    assert parse_date_string('') is None


def test_parse_time_string():
    assert parse_time_string('09:30:15') == {'hour': 9, 'minute': 30, 'second': 15}
    assert parse_time_string('10:05') == {'hour': 10, 'minute': 5, 'second': 0}
    assert parse_time_string(None) == {'hour': 0, 'minute': 0, 'second': 0}


def test_categorize_instrument_prefers_banknifty():
    assert categorize_instrument('BANKNIFTY24JUL52000PE') == 'BANKNIFTY'
    assert categorize_instrument('NIFTY24JUL24500CE') == 'NIFTY'
    assert categorize_instrument('RELIANCE') == 'STOCKS'
    assert categorize_instrument('XYZ') == 'OTHER'
    assert categorize_instrument(None) == 'OTHER'


def test_duration_category_boundaries():
    assert get_duration_category(59) == '<1m'
    assert get_duration_category(60) == '1-5m'
    assert get_duration_category(300) == '5-15m'
    assert get_duration_category(3599) == '30-60m'
    assert get_duration_category(7200) == '>2h'


def test_normalize_side():
    assert normalize_side('buy') == 'LONG'
    assert normalize_side('SELL') == 'SHORT'
    assert normalize_side('hold') == 'UNKNOWN'
    assert normalize_side(None) == 'UNKNOWN'


def test_process_records_builds_trade_rows(raw_trades):
    outcome = TradingDataProcessor().process_records(raw_trades)
    trades = outcome.trades

    assert len(trades) == 10
    assert outcome.skipped_count == 0
    first = trades.iloc[0]
    assert first['day_of_week'] == 'Monday'
    assert first['pnl'] == 1500.0
    assert first['duration_seconds'] == 330
    assert first['duration_category'] == '5-15m'
    assert first['side'] == 'LONG'
    assert first['entry_hour'] == 9
    assert bool(first['is_profit']) is True


def test_process_records_skips_bad_records(raw_trades):
    records = raw_trades + [{'Date': 'garbage', 'P&L': '100'}, 'not a dict']
    outcome = TradingDataProcessor().process_records(records)

    assert len(outcome.trades) == 10
    assert outcome.skipped_count == 2
    assert outcome.skip_reasons == {SKIP_INVALID_DATE: 1, SKIP_NOT_A_RECORD: 1}


def test_duration_falls_back_to_entry_exit_times():
    record = {'Date': '01/07/2024', 'P&L': '100', 'Entry Time': '09:15:00', 'Exit Time': '09:45:00'}
    trades = TradingDataProcessor().process_raw_trading_data([record])
    assert trades.iloc[0]['duration_seconds'] == 1800


def test_process_records_rejects_non_list():
    with pytest.raises(TradingDataError):
        TradingDataProcessor().process_records({'Date': '01/07/2024'})


def test_validate_trading_data(raw_trades):
    processor = TradingDataProcessor()

    report = processor.validate_trading_data(raw_trades)
    assert report.is_valid
    assert report.valid_records == 10
    assert report.errors == []

    assert processor.validate_trading_data('nope').errors == ['Data must be an array']
    assert processor.validate_trading_data([]).errors == ['No data provided']

    too_few = processor.validate_trading_data(raw_trades[:2])
    assert not too_few.is_valid
    assert 'minimum 3 records' in too_few.errors[0]


def test_validate_warns_on_sparse_optional_fields():
    records = [{'Date': '01/07/2024', 'P&L': str(i)} for i in range(4)]
    report = TradingDataProcessor().validate_trading_data(records)

    assert report.is_valid
    assert any(w.startswith('Symbol missing in 4 records') for w in report.warnings)
    assert report.to_dict()['summary']['missing_fields']['Symbol'] == 4


def test_load_records_from_csv_and_json(tmp_path, raw_trades):
    csv_path = tmp_path / 'trades.csv'
    pd.DataFrame(raw_trades).to_csv(csv_path, index=False)
    json_path = tmp_path / 'trades.json'
    json_path.write_text(json.dumps({'data': raw_trades}), encoding='utf-8')

    processor = TradingDataProcessor()
    from_csv = processor.load_records(str(csv_path))
    from_json = processor.load_records(str(json_path))

    assert len(from_csv) == 10
    assert from_csv[0]['P&L'] == '₹1,500'
    assert from_json == raw_trades


def test_load_records_rejects_unknown_type(tmp_path):
    path = tmp_path / 'trades.txt'
    path.write_text('x', encoding='utf-8')
    with pytest.raises(TradingDataError):
        TradingDataProcessor().load_records(str(path))


def test_transform_dashboard_records(dashboard_trades):
    transformed = TradingDataProcessor().transform_dashboard_records(dashboard_trades + [{}])

    assert transformed[0]['P&L'] == '₹1500.0'
    assert transformed[0]['Symbol'] == 'NIFTY24JUL24500CE'
    assert transformed[0]['Entry Time'] == '09:20:00'
    blank = transformed[-1]
    assert blank['Symbol'] == 'Unknown'
    assert blank['Side'] == 'LONG'
    assert blank['P&L'] == '₹0'
    assert blank['Duration'] == '0m'
