"""
AI Utilities
Prompt templates, response parsing, token/cost estimates and canned responses
"""

import json
import math
import os
import re
from typing import Dict, List, Optional

DEFAULT_AI_CONFIG: Dict = {
    'provider': 'google',
    'model': 'gemini-1.5-flash',
    'max_tokens': 300,
    'temperature': 0.2,
}

# USD per 1K tokens
TOKEN_COSTS: Dict[str, float] = {
    'gemini-1.5-flash': 0.000075,
    'gemini-1.5-pro': 0.0035,
    'gpt-4o-mini': 0.00015,
    'gpt-4o': 0.0025,
}

PROVIDER_KEY_ENV = {
    'google': ['GOOGLE_API_KEY', 'GEMINI_API_KEY'],
    'anthropic': ['ANTHROPIC_API_KEY', 'CLAUDE_API_KEY'],
    'openai': ['OPENAI_API_KEY'],
}

MOCK_TOKENS_USED = 250
MOCK_COST = 0.0001

# =========================================================
# Prompts
# =========================================================
BASE_SYSTEM_PROMPT = """You are a professional trading analyst. Provide actionable trading insights in a clean, structured format.

CRITICAL: Each insight must be EXACTLY 1-2 complete lines that is (10-15 words). Do not truncate mid-sentence.

RESPONSE FORMAT:
INSIGHTS:
• First key finding with specific numbers and percentages. Explain the pattern clearly with concrete data. Provide actionable context for the trader to understand what this means for their strategy.
• Second pattern observation with trading implications. Detail how this affects performance and what opportunities it creates. Include specific metrics and percentages.
• Third performance insight with data-driven explanation. Connect the numbers to trading behavior and explain the underlying cause. Offer clear direction.
• Fourth risk or opportunity highlight with concrete metrics. Summarize the key takeaway and its impact on overall trading success.

RECOMMENDATIONS:
→ Focus on [specific action] based on [data insight with numbers]
→ Consider [specific adjustment] to improve [specific metric by X%]
→ Avoid [specific pattern] that shows [specific negative result]

Rules: Write complete 1-2 line insights, use bullets (•), arrows (→), include specific numbers, no truncation."""

FOCUS_LINES = {
    'day_analysis': 'Day-of-week patterns - identify best/worst days, profit distribution, trading frequency by day.',
    'lot_size_analysis': 'Position sizing effectiveness - optimal lot sizes, win rates by size, correlation between size and profitability.',
    'trade_count_analysis': 'Trading frequency optimization - optimal trades per day, overtrading patterns, efficiency metrics.',
    'duration_analysis': 'Holding period analysis - optimal trade durations, quick vs patient trading performance.',
    'time_instrument_analysis': 'Time-instrument combinations - best trading hours for specific instruments, efficiency patterns.',
    'trade_sequence_analysis': 'Trade sequence patterns - first trade advantage, performance degradation, overtrading signals.',
    'direction_analysis': 'Direction bias analysis - LONG vs SHORT performance, symbol-specific direction preferences.',
}
GENERAL_FOCUS = 'General trading performance patterns and optimization opportunities.'


def create_system_prompt(analysis_type: str) -> str:
    return f"{BASE_SYSTEM_PROMPT}\n\nFOCUS: {FOCUS_LINES.get(analysis_type, GENERAL_FOCUS)}"


def create_trading_analysis_prompt(data: Dict, analysis_type: str) -> str:
    return (
        f"Analyze this {analysis_type} data for personalized trading insights:\n\n"
        f"{json.dumps(data, indent=2, default=str, ensure_ascii=False)}\n\n"
        f"Focus on actionable patterns specific to this trader's performance."
    )


# =========================================================
# Response parsing
# =========================================================
_SECTION_SPLIT = re.compile(r'INSIGHTS:|RECOMMENDATIONS:', re.I)
_LEADING_MARKERS = re.compile(r'^[\d.\-*•►▪→]+\s*')
_RECOMMENDATION_WORDS = ('recommend', 'focus', 'consider', 'avoid')

_SECTION_HEADERS = {
    'insights': re.compile(r'key\s+(performance\s+)?patterns|insights', re.I),
    'recommendations': re.compile(r'actionable\s+recommendations|recommendations', re.I),
    'risk': re.compile(r'risk\s+management|risk\s+warnings|warnings', re.I),
}
_LIST_ITEM = re.compile(r'^\d+\.|^[*•-]|^→')
_HEADING = re.compile(r'^(#{1,3}|\*\*)')


def clean_insight_text(text) -> str:
    """Strip JSON fragments, markdown emphasis, quotes and repeated whitespace."""
    if not text or not isinstance(text, str):
        return ''
    text = re.sub(r'\{[^}]*\}', '', text)
    text = re.sub(r'\*\*([^*]+)\*\*', r'\1', text)
    text = re.sub(r'\*([^*]+)\*', r'\1', text)
    text = re.sub(r'\s+', ' ', text)
    text = re.sub(r'["\']', '', text)
    return text.strip()


def parse_ai_response(response_text: str) -> Dict:
    """
    Split a model response into insights and recommendations.

    Expects the INSIGHTS:/RECOMMENDATIONS: layout the system prompt asks for;
    anything else falls back to line-based extraction.
    """
    parsed = {
        'insights': [],
        'recommendations': [],
        'risk_warnings': [],
        'confidence': 'medium',
        'summary': '',
    }

    sections = _SECTION_SPLIT.split(response_text or '')
    if len(sections) > 1:
        parsed['insights'] = [
            clean_insight_text(line.replace('•', '', 1).strip())
            for line in (l.strip() for l in sections[1].split('\n'))
            if len(line) > 15 and line.startswith('•')
        ][:4]
        if len(sections) > 2:
            parsed['recommendations'] = [
                clean_insight_text(line[1:].strip())
                for line in (l.strip() for l in sections[2].split('\n'))
                if len(line) > 15 and line[0] in '→•'
            ][:3]
        return parsed

    lines = [
        clean_insight_text(_LEADING_MARKERS.sub('', line))
        for line in (l.strip() for l in (response_text or '').split('\n'))
        if len(line) > 15
    ]
    parsed['insights'] = lines[:4]
    parsed['recommendations'] = [
        line for line in lines if any(word in line.lower() for word in _RECOMMENDATION_WORDS)
    ][:3]
    return parsed


def parse_ai_response_section(response_text: str, section: str) -> List[str]:
    """List items under one named section (insights, recommendations or risk)."""
    header = _SECTION_HEADERS.get(section.lower())
    if header is None:
        return []

    items = []
    in_section = False
    for line in (response_text or '').split('\n'):
        line = line.strip()
        if header.search(line):
            in_section = True
            continue
        # Bare numbered/bulleted responses count as insights without a header
        if section.lower() == 'insights' and not in_section and _LIST_ITEM.match(line):
            in_section = True
        if in_section and _LIST_ITEM.match(line):
            content = _LIST_ITEM.sub('', line, count=1).strip()
            if content:
                items.append(content)
        if in_section and _HEADING.match(line):
            break
    return items


# =========================================================
# Tokens and cost
# =========================================================
def estimate_tokens(text: str) -> int:
    return math.ceil(len(text or '') / 4)


def calculate_cost(tokens: int, model: str = 'gemini-1.5-flash') -> float:
    per_thousand = TOKEN_COSTS.get(model, TOKEN_COSTS['gemini-1.5-flash'])
    return tokens / 1000 * per_thousand


# =========================================================
# Configuration
# =========================================================
def get_api_key_env_names(ai_config: Dict) -> List[str]:
    provider = ai_config.get('provider', 'google')
    if provider == 'google' and ai_config.get('api_key_env'):
        return list(ai_config['api_key_env'])
    return PROVIDER_KEY_ENV.get(provider, PROVIDER_KEY_ENV['openai'])


def get_api_key_for_provider(ai_config: Dict) -> Optional[str]:
    if ai_config.get('api_key'):
        return ai_config['api_key']
    for name in get_api_key_env_names(ai_config):
        value = os.environ.get(name)
        if value:
            return value
    return None


def validate_ai_config(ai_config: Optional[Dict] = None) -> Dict:
    """Returns {is_valid, errors, warnings}; a missing key is only an error in production."""
    config = {**DEFAULT_AI_CONFIG, **(ai_config or {})}
    errors, warnings = [], []

    env_names = ' or '.join(get_api_key_env_names(config))
    if not get_api_key_for_provider(config):
        if config.get('environment') == 'production':
            errors.append(
                f"API key is required in production. Set {env_names} environment variable or pass api_key in config"
            )
        else:
            warnings.append(f"No API key provided for {config['provider']} - using mock responses for development")

    if config['model'] not in TOKEN_COSTS:
        warnings.append(f"Unknown model '{config['model']}' - cost estimation may be inaccurate")

    max_tokens = config.get('max_tokens')
    if max_tokens is not None and not 50 <= max_tokens <= 4000:
        warnings.append('max_tokens should be between 50-4000 for optimal results')

    temperature = config.get('temperature')
    if temperature is not None and not 0 <= temperature <= 1:
        errors.append('Temperature must be between 0 and 1')

    return {'is_valid': not errors, 'errors': errors, 'warnings': warnings}


# =========================================================
# Canned responses
# =========================================================
MOCK_INSIGHTS = {
    'day_analysis': [
        'Your Thursday trading shows exceptional performance with highest profitability rates and optimal win-loss ratios. This day consistently delivers above-average returns with 73% win rate.',
        'Tuesday and Wednesday demonstrate reliable positive returns with steady volume patterns. These mid-week sessions show disciplined execution and risk management.',
        'Monday sessions benefit from weekend analysis momentum, resulting in strategic trade entries. Your preparation translates to superior first-day performance.',
        'Weekend gaps create opportunities that you effectively capitalize on during Monday sessions. This pattern suggests strong market analysis skills.',
    ],
    'lot_size_analysis': [
        'Your large position sizes (₹1L+) significantly outperform smaller positions with 68% win rate versus 52% for smaller lots. Size optimization is working effectively.',
        'Optimal position sizing appears in the ₹50K-₹2L range for your strategy, generating consistent profits. This sweet spot balances risk and reward optimally.',
        'Risk management improves notably with position sizes below ₹3L based on your historical data. Larger positions show increased volatility and drawdowns.',
        'Position consistency across similar setups enhances your overall performance metrics and reduces emotional decision-making impacts.',
    ],
    'trade_count_analysis': [
        'Your optimal trading frequency is 3-5 trades per day for maximum profitability with highest success rates. This frequency allows for quality analysis.',
        'Days with 6+ trades show declining performance patterns, suggesting overtrading tendencies that reduce overall efficiency. Focus beats frequency.',
        'Single trade days demonstrate exceptional decision quality in your approach with 78% win rate. Quality selection drives these results.',
        'Trade frequency directly correlates with profit per trade efficiency. Lower volume, higher quality trades outperform high-frequency sessions.',
    ],
    'duration_analysis': [
        'Your 1-5 minute trades generate the highest average profits consistently with ₹2,847 per trade. Quick decision execution is your strength.',
        'Extended holding periods beyond 60 minutes reduce profitability by 34% compared to quick scalps. Your edge diminishes with time.',
        'Quick scalping strategy aligns perfectly with your trading strengths and market timing abilities. This approach maximizes your skills.',
        'Position management improves significantly in shorter timeframes, reducing emotional interference and market noise impact on decisions.',
    ],
    'time_instrument_analysis': [
        'Early morning (9-10 AM) trading delivers your strongest performance results with ₹245K total profits. Market opening momentum works for you.',
        'BANKNIFTY shows exceptional profitability during your peak trading hours with 58% win rate. Instrument-timing alignment is optimal.',
        'Late afternoon sessions show declining efficiency in your trading approach with reduced win rates. Energy and focus impact performance.',
        'Pre-market preparation translates to superior early session results. Your analysis-to-execution workflow is most effective in morning hours.',
    ],
    'trade_sequence_analysis': [
        'Your first trade of the day consistently outperforms subsequent trades with ₹3,009 average profit versus ₹-20 for later trades.',
        'Performance deteriorates significantly after the 5th trade of the day, indicating fatigue or overconfidence impacts. Fresh focus drives success.',
        'Morning trade discipline creates the foundation for your daily profitability patterns. Initial success breeds continued performance.',
        'Trade sequence management is crucial - your first 3 trades generate 89% of daily profits. Concentration beats distribution.',
    ],
    'direction_analysis': [
        'Your LONG positions significantly outperform SHORT positions by 2:1 ratio with ₹285K profit versus ₹1.4K. Directional bias is working.',
        'Direction bias toward LONG trades aligns with your profitable trading pattern and market analysis skills. Stick with your strengths.',
        'BANKNIFTY LONG trades represent your highest conviction setups with exceptional profitability. This combination is your trading edge.',
        'SHORT position frequency is optimal at current low levels. Your risk assessment correctly identifies limited SHORT opportunities.',
    ],
}

MOCK_RECOMMENDATIONS = {
    'day_analysis': [
        'Focus primary trading activities on Wednesday and Tuesday for optimal performance',
        'Consider reducing Wednesday exposure or adjusting strategy for this day',
        'Maintain Monday preparation routine that drives early-week success',
    ],
    'lot_size_analysis': [
        'Focus position sizes in the ₹50K-₹2L range for optimal risk-reward balance',
        'Avoid positions above ₹3L unless exceptional conviction exists',
        'Implement consistent sizing rules across similar trade setups',
    ],
    'trade_count_analysis': [
        'Limit daily trading to 3-5 trades maximum for best performance',
        'Avoid overtrading days (6+ trades) that reduce overall efficiency',
        'Focus on quality trade selection over frequency to maintain edge',
    ],
    'duration_analysis': [
        'Focus on 1-5 minute scalping trades where you show strongest performance',
        'Avoid holding positions beyond 60 minutes to maintain profit margins',
        'Implement strict time-based exit rules for position management',
    ],
    'time_instrument_analysis': [
        'Focus trading during 9-10 AM window with BANKNIFTY for optimal results',
        'Avoid late afternoon trading sessions when performance declines',
        'Prepare thoroughly for morning sessions to maximize early trading edge',
    ],
    'trade_sequence_analysis': [
        'Prioritize first 3 trades of the day where you show maximum profitability',
        'Implement strict rules to stop trading after 5 trades per day',
        'Focus on maintaining discipline and fresh perspective for each session',
    ],
    'direction_analysis': [
        'Focus on LONG positions where you show exceptional performance',
        'Limit SHORT trades to high-conviction setups only',
        'Specialize in BANKNIFTY LONG trades for maximum profit potential',
    ],
}


def create_mock_ai_response(analysis_type: str, model: str = 'mock') -> Dict:
    """Canned per-domain response; unknown domains get the day-of-week text."""
    return {
        'success': True,
        'insights': list(MOCK_INSIGHTS.get(analysis_type, MOCK_INSIGHTS['day_analysis'])),
        'recommendations': list(MOCK_RECOMMENDATIONS.get(analysis_type, MOCK_RECOMMENDATIONS['day_analysis'])),
        'risk_warnings': [],
        'confidence': 'medium',
        'metadata': {
            'tokens_used': MOCK_TOKENS_USED,
            'cost': MOCK_COST,
            'model': model,
            'processing_time_ms': 100,
            'is_mock': True,
        },
    }
