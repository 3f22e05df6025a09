"""
Report Generator
Renders the complete insight analysis to markdown, HTML and JSON
"""

import json
import logging
import math
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Dict, Optional

import markdown
import numpy as np
import pandas as pd
from jinja2 import Environment, FileSystemLoader

from .calculations import format_currency
from .config import DEFAULT_CONFIG


def make_json_safe(obj):
    """Recursively convert numpy/pandas values, NaN/inf and dates to plain JSON types."""
    if isinstance(obj, dict):
        return {str(k): make_json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [make_json_safe(v) for v in obj]
    if isinstance(obj, pd.DataFrame):
        return make_json_safe(obj.to_dict(orient='records'))
    if isinstance(obj, (bool, np.bool_)):
        return bool(obj)
    if isinstance(obj, (np.integer,)):
        return int(obj)
    if isinstance(obj, (float, np.floating, Decimal)):
        num = float(obj)
        return 0.0 if math.isnan(num) or math.isinf(num) else num
    if obj is pd.NaT:
        return None
    if isinstance(obj, (pd.Timestamp, datetime, date)):
        return obj.isoformat()
    return obj


class ReportGenerator:

    def __init__(self, config: Optional[Dict] = None, base_dir=None):
        """
        base_dir = directory holding templates/ (defaults to this package)
        """
        self.config = config or DEFAULT_CONFIG
        self.base_dir = Path(base_dir) if base_dir else Path(__file__).resolve().parent
        self.template_dir = self.base_dir / "templates"
        self.theme = self.config.get('reports', {}).get('theme', 'light')
        self.jinja = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=True
        )
        self.jinja.filters['inr'] = lambda v: format_currency(round(float(v or 0)))
        self.logger = logging.getLogger(__name__)

    def make_jinja_safe(self, obj):
        """Convert complex objects (NaN, numpy, datetime) to Jinja-safe types."""
        if isinstance(obj, float):
            if math.isnan(obj) or math.isinf(obj):
                return 0.0
            return obj
        if isinstance(obj, np.generic):
            num = float(obj)
            if math.isnan(num) or math.isinf(num):
                return 0.0
            return num
        if isinstance(obj, dict):
            return {k: self.make_jinja_safe(v) for k, v in obj.items()}
        if isinstance(obj, (list, tuple)):
            return [self.make_jinja_safe(v) for v in obj]
        if obj is None:
            return ""
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return obj

    # --------------------------------------------------------------
    # MARKDOWN
    # --------------------------------------------------------------
    def format_complete_analysis(self, results: Dict, ai_results: Optional[Dict] = None) -> str:
        """Human-readable markdown report of a full insight run."""
        # Markdown output, so the template is rendered without HTML escaping
        env = self.jinja.overlay(autoescape=False, trim_blocks=True, lstrip_blocks=True)
        tpl = env.get_template("report.md.j2")
        insights = results.get('insights', {})
        sections = {
            key: value['data'] for key, value in insights.items()
            if value.get('success') and value.get('data') is not None
        }
        ai_sections = {}
        if ai_results and ai_results.get('success'):
            ai_sections = {
                key: value['data']['ai_insights']
                for key, value in ai_results.get('insights', {}).items()
                if value.get('data', {}).get('ai_insights', {}).get('success')
            }

        return tpl.render(
            results=self.make_jinja_safe(results),
            sections=self.make_jinja_safe(sections),
            ai=self.make_jinja_safe(ai_results) if ai_results else None,
            ai_sections=self.make_jinja_safe(ai_sections),
        )

    # --------------------------------------------------------------
    # EXPORT HTML USING TEMPLATES
    # --------------------------------------------------------------
    def export_html(self, results: Dict, filepath: str, ai_results: Optional[Dict] = None, theme: Optional[str] = None):
        md_text = self.format_complete_analysis(results, ai_results)
        body = markdown.markdown(md_text, extensions=["extra", "tables"])

        tpl = self.jinja.get_template("report.html")
        html = tpl.render(
            body=body,
            theme=theme or self.theme,
            generated_at=datetime.now().strftime("%Y-%m-%d %H:%M"),
            total_trades=results.get('metadata', {}).get('total_trades', 0),
        )

        Path(filepath).parent.mkdir(parents=True, exist_ok=True)
        Path(filepath).write_text(html, encoding="utf-8")
        self.logger.info(f"✅ HTML report written to {filepath}")

    # --------------------------------------------------------------
    # EXPORT JSON
    # --------------------------------------------------------------
    def export_json(self, results: Dict, filepath: str):
        Path(filepath).parent.mkdir(parents=True, exist_ok=True)
        Path(filepath).write_text(
            json.dumps(make_json_safe(results), indent=2, default=str, ensure_ascii=False),
            encoding="utf-8"
        )
        self.logger.info(f"✅ JSON results written to {filepath}")

    def export_markdown(self, results: Dict, filepath: str, ai_results: Optional[Dict] = None):
        Path(filepath).parent.mkdir(parents=True, exist_ok=True)
        Path(filepath).write_text(self.format_complete_analysis(results, ai_results), encoding="utf-8")
