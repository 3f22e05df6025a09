"""
Data Processor Module
Handles loading, cleaning, and normalisation of raw trade records for analysis
"""

import json
import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from .config import DEFAULT_CONFIG
from .exceptions import TradingDataError

# ---------------------------------------------------------
# Field aliases accepted on raw records
# ---------------------------------------------------------
DATE_KEYS = ('Date', 'date')
ENTRY_TIME_KEYS = ('Entry Time', 'entryTime', 'entry_time')
EXIT_TIME_KEYS = ('Exit Time', 'exitTime', 'exit_time')
PNL_KEYS = ('P&L', 'PnL', 'pnl', 'Realized P&L')
DURATION_KEYS = ('Duration', 'duration')
SYMBOL_KEYS = ('Symbol', 'symbol')
SIDE_KEYS = ('Side', 'side')
QUANTITY_KEYS = ('Quantity', 'quantity')
ENTRY_PRICE_KEYS = ('Entry Price', 'entryPrice')
EXIT_PRICE_KEYS = ('Exit Price', 'exitPrice')

FIELD_ALIASES = {
    'Date': DATE_KEYS,
    'P&L': PNL_KEYS,
    'Symbol': SYMBOL_KEYS,
    'Entry Time': ENTRY_TIME_KEYS,
    'Exit Time': EXIT_TIME_KEYS,
    'Duration': DURATION_KEYS,
}

STOCK_TICKERS = ['INFY', 'HDFCBANK', 'RELIANCE', 'ICICIBANK', 'TCS', 'ITC', 'IDEA', 'SBIN', 'WIPRO']

DURATION_CATEGORIES = ['<1m', '1-5m', '5-15m', '15-30m', '30-60m', '1-2h', '>2h']

LONG_SIDES = {'BUY', 'LONG', 'B'}
SHORT_SIDES = {'SELL', 'SALE', 'SHORT', 'S'}

PROCESSED_COLUMNS = [
    'original_index', 'original_date', 'original_symbol', 'original_pnl', 'original_duration',
    'date', 'day_of_week',
    'entry_hour', 'entry_minute', 'entry_second',
    'exit_hour', 'exit_minute', 'exit_second', 'has_entry_time',
    'symbol', 'instrument', 'pnl', 'duration_seconds', 'duration_category',
    'quantity', 'entry_price', 'exit_price', 'side',
    'is_profit', 'is_loss', 'trade_outcome',
]

SKIP_NOT_A_RECORD = 'not_a_record'
SKIP_INVALID_DATE = 'invalid_date'
SKIP_PARSE_ERROR = 'parse_error'

_DDMMYYYY = re.compile(r'^(\d{1,2})/(\d{1,2})/(\d{4})$')


# =========================================================
# Field parsers
# =========================================================
def _first_present(record: Dict, keys) -> Any:
    """Return the first truthy value among `keys` (falls back to the first non-None)."""
    fallback = None
    for key in keys:
        value = record.get(key)
        if value not in (None, ''):
            return value
        if value is not None and fallback is None:
            fallback = value
    return fallback


def clean_currency_value(value: Any) -> float:
    """Convert '₹1,500', '$-20.5' or plain numbers to float; unparseable input gives 0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, np.integer, np.floating)):
        number = float(value)
        return 0.0 if np.isnan(number) else number
    if isinstance(value, str):
        cleaned = re.sub(r'[₹$,\s]', '', value)
        cleaned = re.sub(r'[^\d.\-]', '', cleaned)
        match = re.match(r'^-?\d*\.?\d+', cleaned)
        if not match:
            return 0.0
        try:
            return float(match.group(0))
        except ValueError:
            return 0.0
    return 0.0


def parse_duration_to_seconds(duration: Any) -> int:
    """'1h 15m 30s' -> 4530. Absent unit groups count as zero."""
    if not isinstance(duration, str):
        return 0

    total = 0
    hours = re.search(r'(\d+)h', duration)
    if hours:
        total += int(hours.group(1)) * 3600
    minutes = re.search(r'(\d+)m', duration)
    if minutes:
        total += int(minutes.group(1)) * 60
    seconds = re.search(r'(\d+)s', duration)
    if seconds:
        total += int(seconds.group(1))
    return total


def parse_date_string(value: Any) -> Optional[pd.Timestamp]:
    """
    Parse a trade date. DD/MM/YYYY is tried first (day-first, always),
    then ISO and other formats pandas understands. Returns None when unparseable.
    """
    if value is None or value == '':
        return None

    if isinstance(value, (datetime, date, pd.Timestamp)):
        ts = pd.Timestamp(value)
    elif isinstance(value, str):
        text = value.strip()
        match = _DDMMYYYY.match(text)
        if match:
            day, month, year = (int(g) for g in match.groups())
            try:
                ts = pd.Timestamp(year=year, month=month, day=day)
            except ValueError:
                return None
        else:
            ts = pd.to_datetime(text, errors='coerce')
    else:
        return None

    if ts is None or pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts.normalize()


def parse_time_string(value: Any) -> Dict[str, int]:
    """'09:30:15' -> {'hour': 9, 'minute': 30, 'second': 15}; bad parts become 0."""
    result = {'hour': 0, 'minute': 0, 'second': 0}
    if not value or not isinstance(value, str):
        return result

    parts = value.split(':')
    for key, part in zip(('hour', 'minute', 'second'), parts):
        match = re.match(r'^\s*(-?\d+)', part)
        result[key] = int(match.group(1)) if match else 0
    return result


def categorize_instrument(symbol: Any) -> str:
    """Coarse instrument class. BANKNIFTY is tested before NIFTY since it contains it."""
    if not symbol or not isinstance(symbol, str):
        return 'OTHER'

    upper = symbol.upper()
    if 'BANKNIFTY' in upper:
        return 'BANKNIFTY'
    if 'NIFTY' in upper:
        return 'NIFTY'
    if 'SENSEX' in upper:
        return 'SENSEX'
    if 'FINNIFTY' in upper:
        return 'FINNIFTY'
    if any(stock in upper for stock in STOCK_TICKERS):
        return 'STOCKS'
    return 'OTHER'


def get_duration_category(seconds: int) -> str:
    if seconds < 60:
        return '<1m'
    if seconds < 300:
        return '1-5m'
    if seconds < 900:
        return '5-15m'
    if seconds < 1800:
        return '15-30m'
    if seconds < 3600:
        return '30-60m'
    if seconds < 7200:
        return '1-2h'
    return '>2h'


def normalize_side(value: Any) -> str:
    if not isinstance(value, str):
        return 'UNKNOWN'
    side = value.strip().upper()
    if side in LONG_SIDES:
        return 'LONG'
    if side in SHORT_SIDES:
        return 'SHORT'
    return 'UNKNOWN'


# =========================================================
# Per-record results
# =========================================================
@dataclass
class RecordResult:
    """Outcome of processing one raw record: a trade row or the reason it was skipped."""
    index: int
    trade: Optional[Dict] = None
    skip_reason: Optional[str] = None
    message: str = ''

    @property
    def ok(self) -> bool:
        return self.trade is not None


@dataclass
class ProcessingOutcome:
    trades: pd.DataFrame
    results: List[RecordResult] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    @property
    def skip_reasons(self) -> Counter:
        return Counter(r.skip_reason for r in self.results if not r.ok)

    @property
    def total_records(self) -> int:
        return len(self.results)


@dataclass
class ValidationReport:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    total_records: int = 0
    valid_records: int = 0
    invalid_records: int = 0
    missing_fields: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            'is_valid': self.is_valid,
            'errors': list(self.errors),
            'warnings': list(self.warnings),
            'summary': {
                'total_records': self.total_records,
                'valid_records': self.valid_records,
                'invalid_records': self.invalid_records,
                'missing_fields': dict(self.missing_fields),
            },
        }


def empty_trades_frame() -> pd.DataFrame:
    return pd.DataFrame(columns=PROCESSED_COLUMNS)


class TradingDataProcessor:
    """Process and clean trading data from CSV/JSON exports"""

    def __init__(self, config: Optional[Dict] = None):
        self.config = config or DEFAULT_CONFIG
        data_conf = self.config.get('data', DEFAULT_CONFIG['data'])
        self.required_fields = data_conf.get('required_fields', ['Date', 'P&L'])
        self.optional_fields = data_conf.get('optional_fields', [])
        self.min_valid_records = data_conf.get('min_valid_records', 3)
        self.missing_warning_ratio = data_conf.get('optional_missing_warning_ratio', 0.5)
        self.logger = logging.getLogger(__name__)

    # =========================================================
    # Loading
    # =========================================================
    def load_records(self, filepath: str, source_type: Optional[str] = None) -> List[Dict]:
        """Load raw trade records from a CSV or JSON array file."""
        path = Path(filepath)
        source_type = (source_type or path.suffix.lstrip('.')).lower()
        try:
            if source_type == 'csv':
                df = pd.read_csv(path, dtype=str, keep_default_na=False)
                df.columns = df.columns.str.strip()
                records = df.to_dict(orient='records')
            elif source_type == 'json':
                with open(path, 'r', encoding='utf-8') as f:
                    payload = json.load(f)
                records = payload.get('data', payload) if isinstance(payload, dict) else payload
            else:
                raise TradingDataError(f"Unsupported source type: {source_type}")

            self.logger.info(f"📂 Loaded {len(records)} records from {path.name}")
            return records

        except Exception as e:
            self.logger.error(f"❌ Error loading data: {str(e)}")
            raise

    # =========================================================
    # Validation
    # =========================================================
    def validate_trading_data(self, data: Any) -> ValidationReport:
        """Check structure, required fields and optional-field coverage before processing."""
        report = ValidationReport()

        if not isinstance(data, list):
            report.is_valid = False
            report.errors.append('Data must be an array')
            return report

        report.total_records = len(data)
        if not data:
            report.is_valid = False
            report.errors.append('No data provided')
            return report

        for i, record in enumerate(data):
            if not isinstance(record, dict):
                report.invalid_records += 1
                report.warnings.append(f"Record {i}: Invalid record structure")
                continue

            record_valid = True
            for fld in self.required_fields:
                if _first_present(record, self._aliases(fld)) in (None, ''):
                    record_valid = False
                    report.missing_fields[fld] = report.missing_fields.get(fld, 0) + 1

            for fld in self.optional_fields:
                if _first_present(record, self._aliases(fld)) in (None, ''):
                    report.missing_fields[fld] = report.missing_fields.get(fld, 0) + 1

            if record_valid:
                report.valid_records += 1
            else:
                report.invalid_records += 1

        if report.valid_records < self.min_valid_records:
            report.is_valid = False
            report.errors.append(
                f"Insufficient valid trading data (minimum {self.min_valid_records} records required)"
            )

        for fld in self.optional_fields:
            missing = report.missing_fields.get(fld, 0)
            if missing > report.total_records * self.missing_warning_ratio:
                pct = round(missing / report.total_records * 100)
                report.warnings.append(f"{fld} missing in {missing} records ({pct}%)")

        return report

    @staticmethod
    def _aliases(field_name: str):
        return FIELD_ALIASES.get(field_name, (field_name, field_name.lower()))

    # =========================================================
    # Processing
    # =========================================================
    def process_record(self, record: Any, index: int) -> RecordResult:
        """Normalise one raw record into a processed trade row."""
        if not isinstance(record, dict):
            return RecordResult(index, skip_reason=SKIP_NOT_A_RECORD, message='Invalid record structure')

        raw_date = _first_present(record, DATE_KEYS)
        try:
            trade_date = parse_date_string(raw_date)
            if trade_date is None:
                self.logger.warning(f"⚠️ Invalid date in trade {index}: {raw_date}")
                return RecordResult(index, skip_reason=SKIP_INVALID_DATE, message=f"Invalid date: {raw_date}")

            raw_entry = _first_present(record, ENTRY_TIME_KEYS)
            raw_exit = _first_present(record, EXIT_TIME_KEYS)
            entry_time = parse_time_string(raw_entry)
            exit_time = parse_time_string(raw_exit)

            raw_pnl = _first_present(record, PNL_KEYS)
            pnl = clean_currency_value(raw_pnl if raw_pnl is not None else 0)

            raw_duration = _first_present(record, DURATION_KEYS)
            if raw_duration:
                duration_seconds = parse_duration_to_seconds(raw_duration)
            elif raw_entry and raw_exit:
                entry_minutes = entry_time['hour'] * 60 + entry_time['minute']
                exit_minutes = exit_time['hour'] * 60 + exit_time['minute']
                duration_seconds = max(0, (exit_minutes - entry_minutes) * 60)
            else:
                duration_seconds = 0

            raw_symbol = _first_present(record, SYMBOL_KEYS)
            symbol = str(raw_symbol).strip() if raw_symbol not in (None, '') else ''

            trade = {
                'original_index': index,
                'original_date': raw_date,
                'original_symbol': raw_symbol,
                'original_pnl': raw_pnl,
                'original_duration': raw_duration,
                'date': trade_date,
                'day_of_week': trade_date.strftime('%A'),
                'entry_hour': entry_time['hour'],
                'entry_minute': entry_time['minute'],
                'entry_second': entry_time['second'],
                'exit_hour': exit_time['hour'],
                'exit_minute': exit_time['minute'],
                'exit_second': exit_time['second'],
                'has_entry_time': bool(raw_entry),
                'symbol': symbol,
                'instrument': categorize_instrument(symbol),
                'pnl': pnl,
                'duration_seconds': int(duration_seconds),
                'duration_category': get_duration_category(duration_seconds),
                'quantity': int(clean_currency_value(_first_present(record, QUANTITY_KEYS) or 0)),
                'entry_price': clean_currency_value(_first_present(record, ENTRY_PRICE_KEYS) or 0),
                'exit_price': clean_currency_value(_first_present(record, EXIT_PRICE_KEYS) or 0),
                'side': normalize_side(_first_present(record, SIDE_KEYS)),
                'is_profit': pnl > 0,
                'is_loss': pnl < 0,
                'trade_outcome': 'Profit' if pnl > 0 else 'Loss',
            }
            return RecordResult(index, trade=trade)

        except (TypeError, ValueError, OverflowError) as e:
            self.logger.warning(f"⚠️ Error processing trade {index}: {str(e)}")
            return RecordResult(index, skip_reason=SKIP_PARSE_ERROR, message=str(e))

    def process_records(self, raw_records: Any) -> ProcessingOutcome:
        """Process every record, keeping a per-record result for skip accounting."""
        if not isinstance(raw_records, list):
            raise TradingDataError('Trading data must be an array')

        results = [self.process_record(record, i) for i, record in enumerate(raw_records)]
        rows = [r.trade for r in results if r.ok]
        trades = pd.DataFrame(rows, columns=PROCESSED_COLUMNS) if rows else empty_trades_frame()

        outcome = ProcessingOutcome(trades=trades, results=results)
        self.logger.info(
            f"🧹 Data processing complete: {len(trades)} valid trades from {len(raw_records)} records"
        )
        if outcome.skipped_count:
            self.logger.warning(f"⚠️ Skipped {outcome.skipped_count} records: {dict(outcome.skip_reasons)}")
        return outcome

    def process_raw_trading_data(self, raw_records: Any) -> pd.DataFrame:
        return self.process_records(raw_records).trades

    # =========================================================
    # Dashboard payloads
    # =========================================================
    def transform_dashboard_records(self, records: List[Dict]) -> List[Dict]:
        """Map dashboard-shaped trades (camelCase, numeric values) to the raw CSV shape."""
        today = datetime.now().strftime('%d/%m/%Y')
        currency = self.config.get('analysis', {}).get('currency_symbol', '₹')

        def money(value, fallback):
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return f"{currency}{value}"
            return fallback or f"{currency}0"

        transformed = []
        for trade in records:
            trade = trade if isinstance(trade, dict) else {}
            transformed.append({
                'Symbol': trade.get('symbol') or trade.get('Symbol') or 'Unknown',
                'Strategy': 'Not Selected',
                'Side': trade.get('side') or trade.get('Side') or 'LONG',
                'Quantity': trade.get('quantity') or trade.get('Quantity') or 0,
                'Entry Price': money(trade.get('entryPrice'), trade.get('Entry Price')),
                'Exit Price': money(trade.get('exitPrice'), trade.get('Exit Price')),
                'P&L': money(trade.get('pnl'), trade.get('P&L')),
                'Return %': trade.get('returnPercentage') or trade.get('Return %') or '0%',
                'Emotion': 'Not Selected',
                'Date': trade.get('date') or trade.get('Date') or today,
                'Entry Time': trade.get('entryTime') or trade.get('Entry Time') or '00:00:00',
                'Exit Time': trade.get('exitTime') or trade.get('Exit Time') or '00:00:00',
                'Duration': trade.get('duration') or trade.get('Duration') or '0m',
            })
        return transformed


# =========================================================
# Module-level conveniences
# =========================================================
def process_raw_trading_data(raw_records: Any, config: Optional[Dict] = None) -> pd.DataFrame:
    return TradingDataProcessor(config).process_raw_trading_data(raw_records)


def validate_trading_data(data: Any, config: Optional[Dict] = None) -> ValidationReport:
    return TradingDataProcessor(config).validate_trading_data(data)
