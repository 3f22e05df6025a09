import json

import pandas as pd
import pytest

from run_folder import run_batch
from trade_insights.ai import AIInsightsEngine


def test_run_batch_writes_reports(tmp_path, raw_trades, capsys, monkeypatch):
    for name in ('GOOGLE_API_KEY', 'GEMINI_API_KEY'):
        monkeypatch.delenv(name, raising=False)
    input_dir = tmp_path / 'input'
    input_dir.mkdir()
    pd.DataFrame(raw_trades).to_csv(input_dir / 'alice.csv', index=False)
    (input_dir / 'bob.json').write_text(json.dumps(raw_trades), encoding='utf-8')
    (input_dir / 'broken.json').write_text(json.dumps(raw_trades[:1]), encoding='utf-8')
    output_dir = tmp_path / 'reports'

    run_batch(str(input_dir), str(tmp_path / 'missing.yaml'), str(output_dir), use_ai=True)

    for name in ('alice', 'bob'):
        folder = output_dir / name
        assert (folder / f'{name}_report.md').exists()
        assert (folder / f'{name}_report.html').exists()
        payload = json.loads((folder / f'{name}_insights.json').read_text(encoding='utf-8'))
        assert payload['insights']['metadata']['total_trades'] == 10
        assert payload['ai_insights']['success'] is True

    out = capsys.readouterr().out
    assert '🚀 Running analysis for: alice' in out
    assert '❌ Failed for broken: Data validation failed' in out
    assert '✅ Batch processing complete!' in out


def test_run_batch_missing_folder(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        run_batch(str(tmp_path / 'nowhere'))
    assert excinfo.value.code == 1


def test_run_batch_closes_the_ai_engine(tmp_path, raw_trades, monkeypatch):
    for name in ('GOOGLE_API_KEY', 'GEMINI_API_KEY'):
        monkeypatch.delenv(name, raising=False)
    closed = []
    monkeypatch.setattr(AIInsightsEngine, 'close', lambda self: closed.append(True))
    input_dir = tmp_path / 'input'
    input_dir.mkdir()
    (input_dir / 'carol.json').write_text(json.dumps(raw_trades), encoding='utf-8')

    run_batch(str(input_dir), str(tmp_path / 'missing.yaml'), str(tmp_path / 'reports'), use_ai=True)

    assert closed == [True]
