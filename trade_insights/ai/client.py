"""
Text-generation clients
LiveClient calls the Gemini REST API; MockClient answers with canned per-domain text
"""

import logging
from typing import Dict, Optional

import requests

from ..config import DEFAULT_CONFIG
from ..exceptions import AIClientError, QuotaExceededError
from .utils import create_mock_ai_response, get_api_key_for_provider

logger = logging.getLogger(__name__)


class LiveClient:
    """Gemini `generateContent` over plain HTTP."""

    is_mock = False

    def __init__(self, api_key: str, model: str = 'gemini-1.5-flash',
                 base_url: str = 'https://generativelanguage.googleapis.com/v1beta',
                 timeout: int = 60, max_tokens: int = 300, temperature: float = 0.2,
                 session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.logger = logging.getLogger(__name__)

    def close(self):
        """Close the HTTP session if this client created it."""
        if self._owns_session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def generate(self, prompt: str) -> str:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        payload = {
            'contents': [{'role': 'user', 'parts': [{'text': prompt}]}],
            'generationConfig': {
                'temperature': self.temperature,
                'maxOutputTokens': self.max_tokens,
            },
        }

        try:
            res = self.session.post(url, params={'key': self.api_key}, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise AIClientError(f"Request to {self.model} failed: {e}") from e

        if res.status_code == 429:
            raise QuotaExceededError(f"429 Too Many Requests: {res.text[:200]}")
        try:
            res.raise_for_status()
        except requests.HTTPError as e:
            if 'quota' in res.text.lower():
                raise QuotaExceededError(f"Quota exceeded: {res.text[:200]}") from e
            raise AIClientError(str(e)) from e

        try:
            candidates = res.json().get('candidates') or []
            parts = candidates[0]['content']['parts']
        except (ValueError, KeyError, IndexError) as e:
            raise AIClientError(f"Unexpected response from {self.model}: {res.text[:200]}") from e
        return ''.join(part.get('text', '') for part in parts)


class MockClient:
    """Offline stand-in used when no API key is configured."""

    is_mock = True
    model = 'mock'

    def respond(self, analysis_type: str) -> Dict:
        return create_mock_ai_response(analysis_type, self.model)

    def close(self):
        pass


def build_client(config: Optional[Dict] = None, session: Optional[requests.Session] = None):
    """LiveClient when an API key is available, otherwise MockClient."""
    ai_config = (config or DEFAULT_CONFIG).get('ai', DEFAULT_CONFIG['ai'])
    api_key = get_api_key_for_provider(ai_config)
    if not api_key:
        logger.warning("⚠️ No API key found - using mock AI responses")
        return MockClient()

    logger.info(f"✅ Using {ai_config.get('model')} for AI insights")
    return LiveClient(
        api_key=api_key,
        model=ai_config.get('model', 'gemini-1.5-flash'),
        base_url=ai_config.get('base_url', DEFAULT_CONFIG['ai']['base_url']),
        timeout=ai_config.get('timeout', 60),
        max_tokens=ai_config.get('max_tokens', 300),
        temperature=ai_config.get('temperature', 0.2),
        session=session,
    )
