"""
Request handlers
Framework-neutral entry points: take a decoded JSON body, return (status, body)
"""

import logging
from datetime import datetime
from typing import Dict, Optional, Tuple

from .ai import AIInsightsEngine, generate_ai_summaries
from .config import DEFAULT_CONFIG
from .data_processor import TradingDataProcessor
from .exceptions import TradingDataError
from .orchestrator import TradingInsightsOrchestrator
from .report_generator import make_json_safe

logger = logging.getLogger(__name__)

MIN_AI_TRADES = 5


def _dashboard_records(body) -> Optional[list]:
    data = body.get('data') if isinstance(body, dict) else None
    if not isinstance(data, list) or not data:
        return None
    return data


def _internal_error(e: Exception) -> Dict:
    return {'success': False, 'error': 'Internal server error', 'details': str(e)}


def handle_trading_insights_request(body: Dict, config: Optional[Dict] = None) -> Tuple[int, Dict]:
    try:
        return _trading_insights_response(body, config or DEFAULT_CONFIG)
    except Exception as e:
        logger.error(f"❌ Trading insights request failed: {str(e)}")
        return 500, _internal_error(e)


def _trading_insights_response(body: Dict, config: Dict) -> Tuple[int, Dict]:
    records = _dashboard_records(body)
    if records is None:
        return 400, {'success': False, 'error': 'No trading data provided'}

    processor = TradingDataProcessor(config)
    transformed = processor.transform_dashboard_records(records)
    logger.info(f"🚀 Running trading insights analysis on {len(transformed)} trades")

    try:
        results = TradingInsightsOrchestrator(config, processor).run_all_trading_insights(transformed)
    except TradingDataError as e:
        logger.error(f"❌ Trading insights rejected input: {str(e)}")
        return 400, {'success': False, 'error': str(e), 'details': e.errors}

    if not results['success']:
        return 500, {'success': False, 'error': 'Analysis failed', 'details': results['errors']}

    return 200, make_json_safe({
        'success': True,
        'results': results,
        'summaries': results['concise_summaries'],
        'totalTrades': results['metadata']['total_trades'],
        'completedInsights': len(results['metadata']['completed_insights']),
        'analysisDate': datetime.now().isoformat(),
    })


def handle_ai_insights_request(body: Dict, config: Optional[Dict] = None, client=None) -> Tuple[int, Dict]:
    try:
        return _ai_insights_response(body, config or DEFAULT_CONFIG, client)
    except Exception as e:
        logger.error(f"❌ AI insights request failed: {str(e)}")
        return 500, _internal_error(e)


def _ai_insights_response(body: Dict, config: Dict, client) -> Tuple[int, Dict]:
    records = _dashboard_records(body)
    if records is None:
        return 400, {'success': False, 'error': 'No trading data provided'}

    min_trades = config.get('ai', {}).get('min_trades', MIN_AI_TRADES)
    if len(records) < min_trades:
        logger.warning(f"⚠️ AI insights need {min_trades} trades, got {len(records)}")
        return 400, {
            'success': False,
            'error': f'At least {min_trades} trades required for AI insights',
            'message': 'AI insights require more trading data for meaningful analysis',
        }

    processor = TradingDataProcessor(config)
    transformed = processor.transform_dashboard_records(records)
    with AIInsightsEngine(config, client=client, processor=processor) as engine:
        results = engine.generate_ai_trading_insights(transformed)

    if not results['success']:
        return 500, {
            'success': False,
            'error': 'AI analysis failed',
            'details': results.get('error') or results.get('errors'),
            'fallbackAvailable': True,
        }

    consolidated = results['consolidated_insights']
    metadata = results['metadata']
    return 200, make_json_safe({
        'success': True,
        'type': 'ai_insights',
        'results': results,
        'summaries': generate_ai_summaries(results),
        'consolidatedInsights': consolidated,
        'aiMetadata': {
            'totalTrades': metadata['total_trades'],
            'completedInsights': len(metadata['completed_insights']),
            'failedInsights': len(metadata['failed_insights']),
            'totalTokensUsed': metadata['total_tokens_used'],
            'totalAICost': metadata['total_ai_cost'],
            'confidenceScore': consolidated.get('confidence_score', 0),
            'analysisDate': datetime.now().isoformat(),
        },
    })
