import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


# Monday 01/07/2024 to Friday 05/07/2024
RAW_TRADES = [
    {'Date': '01/07/2024', 'Entry Time': '09:20:00', 'Exit Time': '09:25:30', 'Duration': '5m 30s',
     'Symbol': 'NIFTY24JUL24500CE', 'Side': 'BUY', 'Quantity': '50', 'Entry Price': '₹120',
     'Exit Price': '₹150', 'P&L': '₹1,500'},
    {'Date': '01/07/2024', 'Entry Time': '10:30:00', 'Exit Time': '10:45:00', 'Duration': '15m',
     'Symbol': 'BANKNIFTY24JUL52000PE', 'Side': 'SELL', 'Quantity': '15', 'Entry Price': '₹300',
     'Exit Price': '₹320', 'P&L': '-₹300'},
    {'Date': '02/07/2024', 'Entry Time': '09:15:00', 'Exit Time': '09:16:00', 'Duration': '1m',
     'Symbol': 'RELIANCE', 'Side': 'BUY', 'Quantity': '10', 'Entry Price': '₹2,900',
     'Exit Price': '₹2,950', 'P&L': '₹500'},
    {'Date': '02/07/2024', 'Entry Time': '11:00:00', 'Exit Time': '11:40:00', 'Duration': '40m',
     'Symbol': 'NIFTY24JUL24600PE', 'Side': 'BUY', 'Quantity': '50', 'Entry Price': '₹100',
     'Exit Price': '₹90', 'P&L': '-₹500'},
    {'Date': '02/07/2024', 'Entry Time': '13:00:00', 'Exit Time': '13:02:00', 'Duration': '2m',
     'Symbol': 'INFY', 'Side': 'SELL', 'Quantity': '20', 'Entry Price': '₹1,600',
     'Exit Price': '₹1,590', 'P&L': '₹200'},
    {'Date': '03/07/2024', 'Entry Time': '09:30:00', 'Exit Time': '09:33:00', 'Duration': '3m',
     'Symbol': 'NIFTY24JUL24500CE', 'Side': 'BUY', 'Quantity': '50', 'Entry Price': '₹110',
     'Exit Price': '₹140', 'P&L': '₹1,500'},
    {'Date': '03/07/2024', 'Entry Time': '14:10:00', 'Exit Time': '15:30:00', 'Duration': '1h 20m',
     'Symbol': 'BANKNIFTY24JUL52000CE', 'Side': 'BUY', 'Quantity': '15', 'Entry Price': '₹400',
     'Exit Price': '₹380', 'P&L': '-₹300'},
    {'Date': '04/07/2024', 'Entry Time': '09:45:00', 'Exit Time': '09:50:00', 'Duration': '5m',
     'Symbol': 'TCS', 'Side': 'BUY', 'Quantity': '5', 'Entry Price': '₹4,000',
     'Exit Price': '₹4,100', 'P&L': '₹500'},
    {'Date': '04/07/2024', 'Entry Time': '10:15:00', 'Exit Time': '10:20:00', 'Duration': '5m',
     'Symbol': 'NIFTY24JUL24400PE', 'Side': 'SELL', 'Quantity': '50', 'Entry Price': '₹90',
     'Exit Price': '₹80', 'P&L': '₹500'},
    {'Date': '05/07/2024', 'Entry Time': '12:30:00', 'Exit Time': '12:50:00', 'Duration': '20m',
     'Symbol': 'HDFCBANK', 'Side': 'SELL', 'Quantity': '30', 'Entry Price': '₹1,700',
     'Exit Price': '₹1,720', 'P&L': '-₹600'},
]


@pytest.fixture
def raw_trades():
    return [dict(t) for t in RAW_TRADES]


@pytest.fixture
def trades(raw_trades):
    from trade_insights.data_processor import TradingDataProcessor
    return TradingDataProcessor().process_raw_trading_data(raw_trades)


@pytest.fixture
def dashboard_trades():
    """The same trades in the dashboard's camelCase, numeric shape."""
    return [
        {
            'symbol': t['Symbol'],
            'side': t['Side'],
            'quantity': int(t['Quantity']),
            'entryPrice': float(t['Entry Price'].replace('₹', '').replace(',', '')),
            'exitPrice': float(t['Exit Price'].replace('₹', '').replace(',', '')),
            'pnl': float(t['P&L'].replace('₹', '').replace(',', '')),
            'date': t['Date'],
            'entryTime': t['Entry Time'],
            'exitTime': t['Exit Time'],
            'duration': t['Duration'],
        }
        for t in RAW_TRADES
    ]
