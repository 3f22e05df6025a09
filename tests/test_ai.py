import dataclasses

import pytest
import requests

from trade_insights.ai import (
    AIInsightsEngine,
    LiveClient,
    MockClient,
    build_client,
    calculate_confidence_score,
    calculate_cost,
    clean_insight_text,
    create_mock_ai_response,
    create_system_prompt,
    estimate_tokens,
    generate_ai_summaries,
    parse_ai_response,
    parse_ai_response_section,
    validate_ai_config,
)
from trade_insights.ai.generators import AI_DOMAINS
from trade_insights.ai.orchestrator import summarize_insight
from trade_insights.calculators import BaseInsightCalculator
from trade_insights.exceptions import AIClientError, QuotaExceededError

MODEL_RESPONSE = """INSIGHTS:
• Monday delivers the highest total profit at 1,200 across two trades.
• Friday is the only losing day with a 600 loss on one trade.
• Quick trades under fifteen minutes produce most of the profit.
• NIFTY call options carry almost all of the gains this week.
• This fifth bullet is beyond the limit and must be dropped.

RECOMMENDATIONS:
→ Focus on Monday and Wednesday sessions where profits concentrate.
→ Consider cutting Friday size by half until results improve.
→ Avoid holding positions beyond thirty minutes on weak days.
→ This fourth recommendation is beyond the limit and dropped.
"""


class FakeClient:
    is_mock = False
    model = 'gemini-1.5-flash'

    def __init__(self, response=MODEL_RESPONSE, error=None):
        self.response = response
        self.error = error
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.response


@pytest.fixture(autouse=True)
def no_api_keys(monkeypatch):
    for name in ('GOOGLE_API_KEY', 'GEMINI_API_KEY'):
        monkeypatch.delenv(name, raising=False)


# =========================================================
# Parsing and prompt helpers
# =========================================================
def test_parse_structured_response():
    parsed = parse_ai_response(MODEL_RESPONSE)

    assert len(parsed['insights']) == 4
    assert parsed['insights'][0] == 'Monday delivers the highest total profit at 1,200 across two trades.'
    assert len(parsed['recommendations']) == 3
    assert parsed['recommendations'][0] == 'Focus on Monday and Wednesday sessions where profits concentrate.'
    assert parsed['risk_warnings'] == []
    assert parsed['confidence'] == 'medium'


def test_parse_unstructured_response_falls_back_to_lines():
    text = "1. Your win rate is strongest in the morning session.\n" \
           "2. Consider trading fewer contracts on Fridays.\nshort\n"
    parsed = parse_ai_response(text)

    assert parsed['insights'] == [
        'Your win rate is strongest in the morning session.',
        'Consider trading fewer contracts on Fridays.',
    ]
    assert parsed['recommendations'] == ['Consider trading fewer contracts on Fridays.']


def test_parse_response_section():
    text = "## Key Patterns\n1. First pattern\n2. Second pattern\n## Recommendations\n- Do this\n"
    assert parse_ai_response_section(text, 'recommendations') == ['Do this']
    assert parse_ai_response_section("1. Alpha\n2. Beta", 'insights') == ['Alpha', 'Beta']
    assert parse_ai_response_section(text, 'nonsense') == []


def test_clean_insight_text():
    assert clean_insight_text('**Bold** move {"a": 1}  with  "quotes"') == 'Bold move with quotes'
    assert clean_insight_text(None) == ''


def test_tokens_and_cost():
    assert estimate_tokens('abcde') == 2
    assert estimate_tokens('') == 0
    assert calculate_cost(1000, 'gemini-1.5-pro') == pytest.approx(0.0035)
    assert calculate_cost(1000, 'unknown-model') == pytest.approx(0.000075)


def test_system_prompt_focus():
    assert 'FOCUS: Direction bias analysis' in create_system_prompt('direction_analysis')
    assert create_system_prompt('other').endswith('General trading performance patterns and optimization opportunities.')


def test_mock_response_defaults_to_day_analysis():
    response = create_mock_ai_response('no_such_type')
    assert response == create_mock_ai_response('day_analysis')
    assert response['metadata']['is_mock'] is True
    assert response['metadata']['tokens_used'] == 250
    assert not any(r.startswith('→') for r in response['recommendations'])


# =========================================================
# Configuration and clients
# =========================================================
def test_validate_ai_config():
    dev = validate_ai_config({'environment': 'development'})
    assert dev['is_valid'] is True
    assert any('mock responses' in w for w in dev['warnings'])

    prod = validate_ai_config({'environment': 'production'})
    assert prod['is_valid'] is False
    assert 'GOOGLE_API_KEY or GEMINI_API_KEY' in prod['errors'][0]

    odd = validate_ai_config({'api_key': 'k', 'model': 'mystery', 'max_tokens': 10, 'temperature': 1.5})
    assert odd['errors'] == ['Temperature must be between 0 and 1']
    assert len(odd['warnings']) == 2


def test_build_client_picks_mock_without_key(monkeypatch):
    assert isinstance(build_client(), MockClient)

    monkeypatch.setenv('GEMINI_API_KEY', 'secret')
    client = build_client()
    assert isinstance(client, LiveClient)
    assert client.api_key == 'secret'


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=''):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError('no json')
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.response


def test_live_client_posts_generate_content():
    payload = {'candidates': [{'content': {'parts': [{'text': 'INSIGHTS:'}, {'text': ' done'}]}}]}
    session = FakeSession(FakeResponse(payload=payload))
    client = LiveClient('k', base_url='https://example.test/v1/', session=session)

    assert client.generate('hello') == 'INSIGHTS: done'
    url, kwargs = session.calls[0]
    assert url == 'https://example.test/v1/models/gemini-1.5-flash:generateContent'
    assert kwargs['params'] == {'key': 'k'}
    assert kwargs['json']['contents'][0]['parts'][0]['text'] == 'hello'
    assert kwargs['json']['generationConfig']['maxOutputTokens'] == 300


@pytest.mark.parametrize('response, error', [
    (FakeResponse(429, text='Too many requests'), QuotaExceededError),
    (FakeResponse(403, text='Quota exhausted for project'), QuotaExceededError),
    (FakeResponse(500, text='internal'), AIClientError),
    (FakeResponse(200, payload={'candidates': []}, text='{}'), AIClientError),
])
def test_live_client_errors(response, error):
    client = LiveClient('k', session=FakeSession(response))
    with pytest.raises(error):
        client.generate('hello')


# =========================================================
# Engine
# =========================================================
def test_single_call_parses_live_response():
    client = FakeClient()
    result = AIInsightsEngine(client=client).generate_ai_insights('data', 'day_analysis')

    assert result['success'] is True
    assert len(result['insights']) == 4
    assert result['metadata']['is_mock'] is False
    assert result['metadata']['tokens_used'] == estimate_tokens(client.prompts[0] + MODEL_RESPONSE)
    assert client.prompts[0].startswith(create_system_prompt('day_analysis'))


def test_quota_errors_fall_back_to_mock():
    client = FakeClient(error=QuotaExceededError('429'))
    result = AIInsightsEngine(client=client).generate_ai_insights('data', 'duration_analysis')

    assert result['success'] is True
    assert result['metadata']['is_mock'] is True
    assert result == create_mock_ai_response('duration_analysis')


def test_other_client_errors_are_reported():
    client = FakeClient(error=AIClientError('connection reset'))
    result = AIInsightsEngine(client=client).generate_ai_insights('data', 'day_analysis')

    assert result['success'] is False
    assert result['error'] == 'connection reset'
    assert result['metadata']['tokens_used'] == 0


def test_full_ai_run_with_mock_client(raw_trades):
    results = AIInsightsEngine(client=MockClient()).generate_ai_trading_insights(raw_trades)

    assert results['success'] is True
    assert list(results['insights']) == [d.key for d in AI_DOMAINS]
    metadata = results['metadata']
    assert metadata['total_trades'] == 10
    assert len(metadata['completed_insights']) == 7
    assert metadata['total_tokens_used'] == 7 * 250
    assert metadata['total_ai_cost'] == pytest.approx(7 * 0.0001)

    day = results['insights']['day_of_week_analysis']['data']
    assert day['day_pnl_table']
    assert day['ai_insights']['metadata']['is_mock'] is True
    assert day['metadata']['traditional_analysis']['processed_trades'] == 10

    consolidated = results['consolidated_insights']
    assert len(consolidated['key_findings']) == 28
    assert len(consolidated['priority_recommendations']) == 21
    assert consolidated['key_findings'][0]['source'] == 'Day Analysis'
    lot_size = [r for r in consolidated['priority_recommendations'] if r['source'] == 'Lot Size Analysis']
    assert {r['priority'] for r in lot_size} == {'High'}
    assert consolidated['confidence_score'] == 80


def test_ai_run_survives_failed_model_calls(raw_trades):
    client = FakeClient(error=AIClientError('down'))
    results = AIInsightsEngine(client=client).generate_ai_trading_insights(raw_trades)

    assert results['success'] is True
    assert len(results['metadata']['completed_insights']) == 7
    assert results['metadata']['total_tokens_used'] == 0
    assert results['consolidated_insights']['key_findings'] == []
    assert generate_ai_summaries(results) == {}


def test_ai_run_failure_envelope(raw_trades):
    results = AIInsightsEngine(client=MockClient()).generate_ai_trading_insights(raw_trades[:2])

    assert results['success'] is False
    assert results['error'].startswith('Data validation failed')
    assert results['insights'] == {}
    assert results['metadata']['original_data_count'] == 2
    assert results['metadata']['error_occurred'] is True


def test_ai_summaries(raw_trades):
    results = AIInsightsEngine(client=MockClient()).generate_ai_trading_insights(raw_trades)
    summaries = generate_ai_summaries(results)

    assert set(summaries) == {d.key for d in AI_DOMAINS}
    assert all(len(text) <= 153 for text in summaries.values())
    assert summaries['day_of_week_analysis'].endswith('...')


def test_summarize_insight():
    assert summarize_insight('short text') == 'short text'
    assert summarize_insight('x' * 200) == 'x' * 150 + '...'


def test_confidence_score():
    full = {'metadata': {'total_trades': 60, 'completed_insights': ['a'] * 7, 'failed_insights': []}, 'errors': []}
    assert calculate_confidence_score(full) == 90

    sparse = {'metadata': {'total_trades': 5, 'completed_insights': [], 'failed_insights': []}, 'errors': []}
    assert calculate_confidence_score(sparse) == 30

    broken = {'metadata': {'total_trades': 1, 'completed_insights': [], 'failed_insights': ['a']},
              'errors': ['e'] * 10}
    assert calculate_confidence_score(broken) == 0


def test_ai_domains_are_frozen():
    lot_size = next(d for d in AI_DOMAINS if d.key == 'lot_size_analysis')
    assert (lot_size.priority, lot_size.severity) == ('High', 'High')
    assert all(issubclass(d.calculator, BaseInsightCalculator) for d in AI_DOMAINS)
    with pytest.raises(dataclasses.FrozenInstanceError):
        lot_size.priority = 'Low'


# =========================================================
# Client lifecycle
# =========================================================
class ClosableSession(FakeSession):
    closed = False

    def close(self):
        self.closed = True


def test_live_client_closes_only_its_own_session(monkeypatch):
    closed = []
    with LiveClient('k') as client:
        monkeypatch.setattr(client.session, 'close', lambda: closed.append(True))
    assert closed == [True]

    injected = ClosableSession(FakeResponse())
    LiveClient('k', session=injected).close()
    assert injected.closed is False


def test_engine_closes_the_client_it_built(monkeypatch):
    monkeypatch.setenv('GEMINI_API_KEY', 'secret')
    engine = AIInsightsEngine()
    assert isinstance(engine.client, LiveClient)
    closed = []
    monkeypatch.setattr(engine.client, 'close', lambda: closed.append(True))
    engine.close()
    assert closed == [True]

    injected = ClosableSession(FakeResponse())
    with AIInsightsEngine(client=LiveClient('k', session=injected)):
        pass
    assert injected.closed is False
