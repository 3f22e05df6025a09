"""AI commentary layered on top of the deterministic insight calculators."""

from .client import LiveClient, MockClient, build_client
from .orchestrator import (
    AIInsightsEngine,
    calculate_confidence_score,
    generate_ai_summaries,
    generate_ai_trading_insights,
    generate_consolidated_ai_insights,
)
from .utils import (
    DEFAULT_AI_CONFIG,
    TOKEN_COSTS,
    calculate_cost,
    clean_insight_text,
    create_mock_ai_response,
    create_system_prompt,
    create_trading_analysis_prompt,
    estimate_tokens,
    get_api_key_for_provider,
    parse_ai_response,
    parse_ai_response_section,
    validate_ai_config,
)

__all__ = [
    "LiveClient",
    "MockClient",
    "build_client",
    "AIInsightsEngine",
    "calculate_confidence_score",
    "generate_ai_summaries",
    "generate_ai_trading_insights",
    "generate_consolidated_ai_insights",
    "DEFAULT_AI_CONFIG",
    "TOKEN_COSTS",
    "calculate_cost",
    "clean_insight_text",
    "create_mock_ai_response",
    "create_system_prompt",
    "create_trading_analysis_prompt",
    "estimate_tokens",
    "get_api_key_for_provider",
    "parse_ai_response",
    "parse_ai_response_section",
    "validate_ai_config",
]
