"""
AI Insights Orchestrator
Runs every AI-enhanced domain and consolidates the model output
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..config import DEFAULT_CONFIG
from ..data_processor import TradingDataProcessor
from ..exceptions import AIClientError, QuotaExceededError, TradingDataError
from .client import MockClient, build_client
from .generators import AI_DOMAINS, generate_domain_ai_insights
from .utils import (
    calculate_cost,
    clean_insight_text,
    create_system_prompt,
    estimate_tokens,
    parse_ai_response,
    validate_ai_config,
)

SUMMARY_LENGTH = 150


class AIInsightsEngine:
    """Wraps one text-generation client; live or mock is decided by the caller."""

    def __init__(self, config: Optional[Dict] = None, client=None,
                 processor: Optional[TradingDataProcessor] = None):
        self.config = config or DEFAULT_CONFIG
        self.ai_config = self.config.get('ai', DEFAULT_CONFIG['ai'])
        self._owns_client = client is None
        self.client = client or build_client(self.config)
        self.processor = processor or TradingDataProcessor(self.config)
        self.logger = logging.getLogger(__name__)

    def close(self):
        """Release the client built by this engine; injected clients belong to the caller."""
        if self._owns_client:
            self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # =========================================================
    # Single model call
    # =========================================================
    def generate_ai_insights(self, prompt: str, analysis_type: str = 'general') -> Dict:
        if self.client.is_mock:
            self.logger.info("🔄 Using mock response - API key not available")
            return self.client.respond(analysis_type)

        started = datetime.now()
        model = getattr(self.client, 'model', self.ai_config.get('model'))
        full_prompt = f"{create_system_prompt(analysis_type)}\n\n{prompt}"
        try:
            response_text = self.client.generate(full_prompt)
        except QuotaExceededError:
            self.logger.warning("🚫 API quota exceeded. Using mock response.")
            return MockClient().respond(analysis_type)
        except AIClientError as e:
            self.logger.error(f"❌ AI insights generation failed: {str(e)}")
            return {
                'success': False,
                'error': str(e),
                'insights': [],
                'recommendations': [],
                'risk_warnings': [],
                'metadata': {
                    'tokens_used': 0,
                    'cost': 0,
                    'model': model,
                    'processing_time_ms': _elapsed_ms(started),
                    'generated_at': datetime.now().isoformat(),
                    'is_mock': False,
                },
            }

        self.logger.info(f"✅ AI response received: {len(response_text)} characters")
        parsed = parse_ai_response(response_text)
        tokens = estimate_tokens(full_prompt + response_text)
        return {
            'success': True,
            'insights': parsed['insights'],
            'recommendations': parsed['recommendations'],
            'risk_warnings': parsed['risk_warnings'],
            'confidence': parsed['confidence'],
            'metadata': {
                'tokens_used': tokens,
                'cost': calculate_cost(tokens, model),
                'model': model,
                'prompt_length': len(full_prompt),
                'response_length': len(response_text),
                'processing_time_ms': _elapsed_ms(started),
                'generated_at': datetime.now().isoformat(),
                'is_mock': False,
            },
        }

    # =========================================================
    # Full run
    # =========================================================
    def generate_ai_trading_insights(self, trading_data: Any) -> Dict:
        started = datetime.now()
        try:
            results = self._run(trading_data, started)
        except Exception as e:
            self.logger.error(f"❌ AI-enhanced analysis failed: {str(e)}")
            return {
                'success': False,
                'error': str(e),
                'analysis_type': 'ai_enhanced_trading_insights',
                'insights': {},
                'metadata': {
                    'total_trades': 0,
                    'original_data_count': len(trading_data) if isinstance(trading_data, list) else 0,
                    'analysis_date': datetime.now().isoformat(),
                    'processing_time_ms': _elapsed_ms(started),
                    'error_occurred': True,
                },
            }
        return results

    def _run(self, trading_data: Any, started: datetime) -> Dict:
        self.logger.info("🔍 Validating trading data...")
        validation = self.processor.validate_trading_data(trading_data)
        if validation.errors:
            raise TradingDataError(f"Data validation failed: {', '.join(validation.errors)}",
                                   errors=validation.errors, warnings=validation.warnings)
        if validation.warnings:
            self.logger.warning(f"⚠️ Data validation warnings: {validation.warnings}")

        self.logger.info("⚙️ Processing trading data...")
        trades = self.processor.process_records(trading_data).trades
        if len(trades) == 0:
            raise TradingDataError('No valid trades found after processing')

        ai_validation = validate_ai_config(self.ai_config)
        for message in ai_validation['errors'] + ai_validation['warnings']:
            self.logger.warning(f"⚠️ AI configuration: {message}")

        results = {
            'success': True,
            'analysis_type': 'ai_enhanced_trading_insights',
            'insights': {},
            'errors': [],
            'metadata': {
                'total_trades': int(len(trades)),
                'original_data_count': len(trading_data),
                'analysis_date': datetime.now().isoformat(),
                'processing_time_ms': 0,
                'completed_insights': [],
                'failed_insights': [],
                'total_ai_cost': 0.0,
                'total_tokens_used': 0,
            },
        }
        metadata = results['metadata']

        for domain in AI_DOMAINS:
            self.logger.info(f"🚀 Running AI-enhanced {domain.source}...")
            try:
                result = generate_domain_ai_insights(self, trades, domain)
            except Exception as e:
                self.logger.error(f"❌ {domain.source} threw exception: {str(e)}")
                results['errors'].append(f"{domain.source} Exception: {str(e)}")
                metadata['failed_insights'].append(domain.label)
                continue

            if result['success']:
                results['insights'][domain.key] = result
                metadata['completed_insights'].append(domain.label)
                ai_meta = result['data']['ai_insights'].get('metadata', {})
                metadata['total_tokens_used'] += ai_meta.get('tokens_used', 0)
                metadata['total_ai_cost'] += ai_meta.get('cost', 0)
                self.logger.info(f"✅ {domain.source} completed successfully")
            else:
                results['errors'].append(f"{domain.source} Error: {result['error']}")
                metadata['failed_insights'].append(domain.label)
                self.logger.error(f"❌ {domain.source} failed")

        results['consolidated_insights'] = generate_consolidated_ai_insights(results)
        metadata['processing_time_ms'] = _elapsed_ms(started)
        results['success'] = len(metadata['completed_insights']) > 0

        self.logger.info(f"🎉 AI-enhanced analysis completed in {metadata['processing_time_ms']}ms")
        self.logger.info(f"💰 Total AI cost: ${metadata['total_ai_cost']:.6f}")
        self.logger.info(f"🔢 Total tokens used: {metadata['total_tokens_used']}")
        if results['errors']:
            self.logger.warning(f"⚠️ {len(results['errors'])} analysis(es) failed: {results['errors']}")
        return results


def _elapsed_ms(started: datetime) -> int:
    return int((datetime.now() - started).total_seconds() * 1000)


def _ai_result(results: Dict, key: str) -> Optional[Dict]:
    domain_result = results.get('insights', {}).get(key) or {}
    ai = (domain_result.get('data') or {}).get('ai_insights') or {}
    return ai if ai.get('success') else None


# =========================================================
# Consolidation
# =========================================================
def calculate_confidence_score(results: Dict) -> int:
    metadata = results.get('metadata', {})
    total_trades = metadata.get('total_trades', 0)
    score = 50.0
    if total_trades >= 50:
        score += 20
    elif total_trades >= 20:
        score += 15
    elif total_trades >= 10:
        score += 10
    else:
        score -= 20

    completed = len(metadata.get('completed_insights', []))
    attempted = completed + len(metadata.get('failed_insights', []))
    if attempted > 0:
        score += completed / attempted * 20

    score -= len(results.get('errors', [])) * 5
    return int(max(0, min(100, round(score))))


def generate_consolidated_ai_insights(results: Dict) -> Dict:
    """Flatten per-domain AI output into ranked findings, recommendations and warnings."""
    metadata = results.get('metadata', {})
    key_findings: List[Dict] = []
    recommendations: List[Dict] = []
    warnings: List[Dict] = []

    for domain in AI_DOMAINS:
        ai = _ai_result(results, domain.key)
        if not ai:
            continue
        confidence = ai.get('confidence') or 'medium'
        key_findings.extend(
            {'source': domain.source, 'insight': insight, 'confidence': confidence}
            for insight in ai.get('insights', [])
        )
        recommendations.extend(
            {'source': domain.source, 'recommendation': rec, 'priority': domain.priority}
            for rec in ai.get('recommendations', [])
        )
        warnings.extend(
            {'source': domain.source, 'warning': warning, 'severity': domain.severity}
            for warning in ai.get('risk_warnings', [])
        )

    total_tokens = metadata.get('total_tokens_used', 0)
    total_cost = metadata.get('total_ai_cost', 0.0)
    overall = (
        f"AI analysis generated {len(key_findings)} key insights, {len(recommendations)} recommendations, "
        f"and {len(warnings)} risk warnings from {metadata.get('total_trades', 0)} trades using "
        f"{total_tokens} tokens (cost: ${total_cost:.6f})."
    )
    return {
        'overall_summary': overall,
        'key_findings': key_findings,
        'priority_recommendations': recommendations,
        'critical_risk_warnings': warnings,
        'confidence_score': calculate_confidence_score(results),
        'ai_metadata': {
            'insights_generated': len(metadata.get('completed_insights', [])),
            'total_cost': total_cost,
            'total_tokens': total_tokens,
            'consolidated_at': datetime.now().isoformat(),
        },
    }


def summarize_insight(text) -> str:
    """Cleaned first insight, cut to two lines of text."""
    cleaned = clean_insight_text(text)
    if len(text or '') > SUMMARY_LENGTH:
        return cleaned[:SUMMARY_LENGTH] + '...'
    return cleaned[:SUMMARY_LENGTH]


def generate_ai_summaries(results: Dict) -> Dict[str, str]:
    summaries = {}
    for domain in AI_DOMAINS:
        ai = _ai_result(results, domain.key)
        if ai:
            insights = ai.get('insights') or ['']
            summaries[domain.key] = summarize_insight(insights[0])
    return summaries


def generate_ai_trading_insights(trading_data: Any, config: Optional[Dict] = None, client=None) -> Dict:
    return AIInsightsEngine(config, client=client).generate_ai_trading_insights(trading_data)
