#!/usr/bin/env python3
"""
Main entry point for the BTC forecast benchmark.

Usage:
    python scripts/run_pipeline.py                       # Run all stages
    python scripts/run_pipeline.py --step ingest         # Run one stage
    python scripts/run_pipeline.py --models arimax garch xgboost
    python scripts/run_pipeline.py --step evaluate --no-plots
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from btc_benchmark.config import Config
from btc_benchmark.pipeline import Pipeline, STAGES


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="BTC Forecast Benchmark Pipeline"
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to configuration file (default: $BTC_BENCHMARK_CONFIG or config/config.yaml)'
    )

    parser.add_argument(
        '--step',
        type=str,
        choices=['all'] + STAGES,
        default='all',
        help='Pipeline stage to run'
    )

    parser.add_argument(
        '--models',
        type=str,
        nargs='+',
        help='Specific models to fit and evaluate'
    )

    parser.add_argument(
        '--no-plots',
        action='store_true',
        help='Skip writing evaluation plots'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    # Load configuration
    config = Config(args.config)

    # Set logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    pipeline = Pipeline(config)

    print(f"\n{'='*60}")
    print("BTC FORECAST BENCHMARK")
    print(f"{'='*60}")
    print(f"Symbol: {config.symbol}")
    print(f"Step: {args.step}")
    print(f"Models: {args.models or config.model_config.enabled}")
    print(f"{'='*60}\n")

    results = pipeline.run(
        step=args.step,
        models=args.models,
        plots=False if args.no_plots else None
    )

    # Exit with appropriate code
    return 0 if results.get('success', False) else 1


if __name__ == '__main__':
    sys.exit(main())
