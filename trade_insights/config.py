"""
Configuration Module
Loads config.yaml over built-in defaults and configures logging
"""

import copy
import logging
import os
from pathlib import Path
from typing import Dict, Optional

import yaml
from dotenv import load_dotenv

DEFAULT_CONFIG: Dict = {
    'data': {
        'required_fields': ['Date', 'P&L'],
        'optional_fields': ['Symbol', 'Entry Time', 'Exit Time', 'Duration'],
        'min_valid_records': 3,
        'optional_missing_warning_ratio': 0.5,
    },
    'analysis': {
        'include_weekends': False,
        'min_trades_for_insight': 3,
        'min_days_for_insight': 2,
        'outlier_multiplier': 1.5,
        'moving_average_window': 5,
        'currency_symbol': '₹',
        'percentage_decimals': 1,
        'timezone': 'Asia/Kolkata',
        'generate_detailed_insights': True,
        'include_recommendations': True,
        'include_risk_warnings': True,
    },
    'metrics': {
        'risk_free_rate': 0.06,
    },
    'ai': {
        'provider': 'google',
        'model': 'gemini-1.5-flash',
        'max_tokens': 300,
        'temperature': 0.2,
        'base_url': 'https://generativelanguage.googleapis.com/v1beta',
        'timeout': 60,
        'min_trades': 5,
        'environment': 'development',
        'api_key_env': ['GOOGLE_API_KEY', 'GEMINI_API_KEY'],
    },
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    },
    'reports': {
        'output_dir': 'data/reports',
        'theme': 'light',
    },
}

logger = logging.getLogger(__name__)


def _deep_merge(base: Dict, override: Dict) -> Dict:
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str] = "config.yaml", overrides: Optional[Dict] = None) -> Dict:
    """
    Load configuration from YAML and merge it over DEFAULT_CONFIG.
    A missing file is not an error: the defaults are used.
    Environment variables from a local .env file are loaded as a side effect.
    """
    load_dotenv()

    file_config: Dict = {}
    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path, "r", encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
            logger.info(f"📂 Loaded configuration from {path}")
        else:
            logger.info(f"⚙️ Config file {path} not found, using defaults")

    config = _deep_merge(DEFAULT_CONFIG, file_config)
    if overrides:
        config = _deep_merge(config, overrides)

    # Deployment environment decides whether a missing API key is an error
    env_name = os.environ.get("TRADE_INSIGHTS_ENV")
    if env_name:
        config['ai']['environment'] = env_name

    return config


def setup_logging(config: Optional[Dict] = None) -> None:
    """Configure the root logger from the `logging` config section."""
    log_conf = (config or DEFAULT_CONFIG).get('logging', {})
    level = getattr(logging, str(log_conf.get('level', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format=log_conf.get('format', DEFAULT_CONFIG['logging']['format']),
    )
