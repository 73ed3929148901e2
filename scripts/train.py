#!/usr/bin/env python3
"""
Heart Disease Classifier Comparison
===================================

Loads the Cleveland data, trains the four from-scratch classifiers and their
voting ensemble, and prints the comparison table. All settings come from YAML.

Usage:
    python scripts/train.py configs/default.yaml [--data PATH] [--debug]
"""
import argparse
import sys
from datetime import datetime
from pathlib import Path

from loguru import logger

from heartml import ClevelandLoader, Config, Experiment

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compare from-scratch heart disease classifiers")
    parser.add_argument('config', type=str, help="Path to YAML configuration")
    parser.add_argument('--data', type=str, default=None, help="Override data.file from the config")
    parser.add_argument('--output-dir', type=str, default=None, help="Override output.output_dir")
    parser.add_argument('--debug', action='store_true', help="Enable debug logging")
    return parser.parse_args(argv)


def configure_logging(debug: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level='DEBUG' if debug else 'INFO',
               format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}")


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(args.debug)

    config = Config(args.config)
    data_config = dict(config.get_data_config())
    if args.data:
        data_config['file'] = str(Path(args.data).resolve())

    loader = ClevelandLoader(
        missing_values=data_config.get('missing_values', 'drop'),
        binarize_target=data_config.get('binarize_target', True),
    )
    dataset = loader.load_from_config(data_config, PROJECT_ROOT)

    experiment = Experiment(config.experiment_config())
    result = experiment.run(dataset)

    print()
    print(result.format_table())
    print()
    for name, counts in result.confusion_counts().items():
        print(f"{name:<22} TP={counts.tp:<4} TN={counts.tn:<4} FP={counts.fp:<4} FN={counts.fn:<4}")
    for name, reason in result.failures.items():
        print(f"{name:<22} omitted ({reason})")

    output_config = config.get_output_config()
    output_dir = args.output_dir or output_config.get('output_dir')
    if output_dir:
        run_dir = Path(output_dir) / f"{Path(args.config).stem}_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
        run_dir.mkdir(parents=True, exist_ok=True)
        result.metrics_table().to_csv(run_dir / 'results.csv')
        logger.info(f"Results saved to {run_dir / 'results.csv'}")

    return 0 if result.evaluations else 1


if __name__ == '__main__':
    sys.exit(main())
