#!/usr/bin/env python3
"""
Batch Runner for Trade Insights
Runs the insight pipeline for each CSV/JSON trade export in a folder
"""

import sys
from pathlib import Path
from typing import Optional

from trade_insights import TradingDataProcessor, TradingInsightsOrchestrator, load_config, setup_logging
from trade_insights.ai import AIInsightsEngine
from trade_insights.report_generator import ReportGenerator

SOURCE_PATTERNS = ("*.csv", "*.json")


def analyze_file(file_path: Path, output_dir: Path, processor: TradingDataProcessor,
                 orchestrator: TradingInsightsOrchestrator, reporter: ReportGenerator,
                 engine: Optional[AIInsightsEngine] = None):
    name = file_path.stem
    records = processor.load_records(str(file_path))
    results = orchestrator.run_all_trading_insights(records)
    ai_results = engine.generate_ai_trading_insights(records) if engine else None

    payload = {'insights': results}
    if ai_results is not None:
        payload['ai_insights'] = ai_results

    reporter.export_json(payload, str(output_dir / f"{name}_insights.json"))
    reporter.export_markdown(results, str(output_dir / f"{name}_report.md"), ai_results)
    reporter.export_html(results, str(output_dir / f"{name}_report.html"), ai_results)
    return results


def run_batch(input_folder: str, config_path: str = "config.yaml", output_root: Optional[str] = None,
              use_ai: bool = False):
    input_path = Path(input_folder)
    if not input_path.exists():
        print(f"❌ Input folder not found: {input_folder}")
        sys.exit(1)

    config = load_config(config_path)
    setup_logging(config)

    output_root_path = Path(output_root or config['reports']['output_dir'])
    output_root_path.mkdir(parents=True, exist_ok=True)

    # Build the pipeline once and reuse it for every file
    processor = TradingDataProcessor(config)
    orchestrator = TradingInsightsOrchestrator(config, processor)
    reporter = ReportGenerator(config)

    source_files = sorted(p for pattern in SOURCE_PATTERNS for p in input_path.glob(pattern))
    if not source_files:
        print("⚠️ No CSV or JSON files found in the folder.")
        sys.exit(0)

    engine = AIInsightsEngine(config, processor=processor) if use_ai else None
    try:
        for file_path in source_files:
            name = file_path.stem
            output_dir = output_root_path / name
            output_dir.mkdir(parents=True, exist_ok=True)

            print(f"\n🚀 Running analysis for: {name}")
            print(f"📁 Input file: {file_path}")
            print(f"📤 Output folder: {output_dir}")

            try:
                results = analyze_file(file_path, output_dir, processor, orchestrator, reporter, engine)
            except Exception as e:
                print(f"❌ Failed for {name}: {str(e)}")
                continue

            completed = len(results['metadata']['completed_insights'])
            print(f"✅ {completed} insights for {results['metadata']['total_trades']} trades")
            for error in results['errors']:
                print(f"⚠️ {error}")
    finally:
        if engine:
            engine.close()

    print("\n✅ Batch processing complete!")


if __name__ == "__main__":
    args = [a for a in sys.argv[1:] if a != "--ai"]
    if not args:
        print("Usage: python run_folder.py <input_folder> [config.yaml] [--ai]")
        sys.exit(1)

    input_folder = args[0]
    config_path = args[1] if len(args) > 1 else "config.yaml"

    run_batch(input_folder, config_path, use_ai="--ai" in sys.argv[1:])
