import json

from trade_insights import handlers
from trade_insights.ai import MockClient
from trade_insights.handlers import handle_ai_insights_request, handle_trading_insights_request


def test_trading_insights_requires_data():
    assert handle_trading_insights_request({}) == (400, {'success': False, 'error': 'No trading data provided'})
    status, body = handle_trading_insights_request({'data': []})
    assert status == 400


def test_trading_insights_rejects_invalid_data(dashboard_trades):
    status, body = handle_trading_insights_request({'data': dashboard_trades[:2]})

    assert status == 400
    assert body['success'] is False
    assert body['error'].startswith('Data validation failed')
    assert body['details'] == ['Insufficient valid trading data (minimum 3 records required)']


def test_trading_insights_success(dashboard_trades):
    status, body = handle_trading_insights_request({'data': dashboard_trades})

    assert status == 200
    assert body['success'] is True
    assert body['totalTrades'] == 10
    assert body['completedInsights'] == 8
    assert body['summaries'] == body['results']['concise_summaries']
    json.dumps(body)


def test_trading_insights_partial_failure_is_500(dashboard_trades):
    for trade in dashboard_trades:
        trade['entryPrice'] = 0
    status, body = handle_trading_insights_request({'data': dashboard_trades})

    assert status == 500
    assert body['error'] == 'Analysis failed'
    assert any(e.startswith('Lot Size') for e in body['details'])


def test_ai_insights_needs_enough_trades(dashboard_trades):
    status, body = handle_ai_insights_request({'data': dashboard_trades[:4]}, client=MockClient())

    assert status == 400
    assert body['error'] == 'At least 5 trades required for AI insights'
    assert 'message' in body


def test_ai_insights_success(dashboard_trades):
    status, body = handle_ai_insights_request({'data': dashboard_trades}, client=MockClient())

    assert status == 200
    assert body['type'] == 'ai_insights'
    meta = body['aiMetadata']
    assert meta['totalTrades'] == 10
    assert meta['completedInsights'] == 7
    assert meta['failedInsights'] == 0
    assert meta['totalTokensUsed'] == 1750
    assert meta['confidenceScore'] == body['consolidatedInsights']['confidence_score']
    assert set(body['summaries']) == set(body['results']['insights'])
    json.dumps(body)


def test_ai_insights_failure_offers_fallback(dashboard_trades):
    bad = [{'date': 'not a date', 'pnl': 10} for _ in range(6)]
    status, body = handle_ai_insights_request({'data': bad}, client=MockClient())

    assert status == 500
    assert body['error'] == 'AI analysis failed'
    assert body['details'] == 'No valid trades found after processing'
    assert body['fallbackAvailable'] is True


def test_unexpected_error_becomes_internal_server_error(dashboard_trades, monkeypatch):
    def explode(self, trading_data):
        raise RuntimeError('summary builder crashed')

    monkeypatch.setattr(handlers.TradingInsightsOrchestrator, 'run_all_trading_insights', explode)
    status, body = handle_trading_insights_request({'data': dashboard_trades})

    assert status == 500
    assert body == {'success': False, 'error': 'Internal server error', 'details': 'summary builder crashed'}


def test_ai_unexpected_error_becomes_internal_server_error(dashboard_trades, monkeypatch):
    def explode(results):
        raise KeyError('insights')

    monkeypatch.setattr(handlers, 'generate_ai_summaries', explode)
    status, body = handle_ai_insights_request({'data': dashboard_trades}, client=MockClient())

    assert status == 500
    assert body['error'] == 'Internal server error'
    assert 'insights' in body['details']
