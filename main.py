#!/usr/bin/env python3
"""
Classifier Comparison with Repeated Cross-Validation
====================================================

Evaluates several classification algorithms on several datasets and
decides, per dataset and metric, which algorithms are significantly better:

    ┌──────────────┐   ┌──────────────┐
    │  Datasets    │   │  Algorithms  │
    └──────┬───────┘   └──────┬───────┘
           └────────┬─────────┘
                    ▼
         ┌─────────────────────┐
         │ R x k-fold CV       │  one MetricSet per repetition
         └──────────┬──────────┘
                    ▼
         ┌─────────────────────┐
         │ Welch t-tests       │  every algorithm pair, every metric
         └──────────┬──────────┘
                    ▼
         ┌─────────────────────┐
         │ Win tally           │  t > 0 and p < alpha
         └─────────────────────┘

Usage:
    python main.py --demo                         # Synthetic datasets
    python main.py --data path/to/csvs            # One dataset per CSV
    python main.py --data csvs --target class --positive-label yes
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from config import (
    RANDOM_SEED, DEFAULT_CV_FOLDS, DEFAULT_CV_REPETITIONS, DEFAULT_MAX_WORKERS,
    SIGNIFICANCE_LEVEL, UNDEFINED_METRIC_POLICY, UNDEFINED_METRIC_POLICIES,
    P_VALUE_CORRECTION, P_VALUE_CORRECTIONS, COMPARISON_RESULTS_DIR,
)
from data import LoaderFactory
from classifiers import get_all_algorithms, get_algorithms
from evaluation import (
    AlgorithmEvaluationFailure,
    ComparisonDriver,
    ResultsGenerator,
    generate_console_summary,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compare classification algorithms with repeated cross-validation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python main.py --demo                          Run on synthetic datasets
    python main.py --data datasets/                Run on every CSV in datasets/
    python main.py --demo --folds 5 --repetitions 5 --workers 4
    python main.py --demo --algorithms knn,svm,mlp,mlp_fast
    python main.py --list-algorithms               Show available algorithms
        """
    )

    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--data",
        type=str,
        default=None,
        help="Directory of CSV datasets"
    )
    source.add_argument(
        "--demo",
        action="store_true",
        help="Use synthetic demo datasets"
    )
    parser.add_argument(
        "--target",
        type=str,
        default=None,
        help="Target column name (default: last column)"
    )
    parser.add_argument(
        "--positive-label",
        type=str,
        default=None,
        help="Target value treated as the positive class"
    )
    parser.add_argument(
        "--algorithms",
        type=str,
        default=None,
        help="Comma-separated algorithm names (default: all)"
    )
    parser.add_argument(
        "--folds",
        type=int,
        default=DEFAULT_CV_FOLDS,
        help=f"Folds per repetition (default: {DEFAULT_CV_FOLDS})"
    )
    parser.add_argument(
        "--repetitions",
        type=int,
        default=DEFAULT_CV_REPETITIONS,
        help=f"Cross-validation repetitions (default: {DEFAULT_CV_REPETITIONS})"
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=SIGNIFICANCE_LEVEL,
        help=f"Significance level for wins (default: {SIGNIFICANCE_LEVEL})"
    )
    parser.add_argument(
        "--undefined",
        choices=UNDEFINED_METRIC_POLICIES,
        default=UNDEFINED_METRIC_POLICY,
        help="How undefined metric values enter distributions"
    )
    parser.add_argument(
        "--correction",
        choices=P_VALUE_CORRECTIONS,
        default=P_VALUE_CORRECTION,
        help="Multiple-testing correction for pairwise p-values"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=DEFAULT_MAX_WORKERS,
        help=f"Parallel aggregation workers (default: {DEFAULT_MAX_WORKERS})"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=RANDOM_SEED,
        help=f"Random seed for fold partitions (default: {RANDOM_SEED})"
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Abort the whole run on the first algorithm failure"
    )
    parser.add_argument(
        "--output",
        type=str,
        default=str(COMPARISON_RESULTS_DIR),
        help="Directory for report files"
    )
    parser.add_argument(
        "--list-algorithms",
        action="store_true",
        help="List available algorithms and exit"
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors"
    )
    verbosity.add_argument(
        "--verbose",
        action="store_true",
        help="Log per-repetition details"
    )
    return parser


def configure_logging(quiet: bool = False, verbose: bool = False) -> None:
    level = logging.INFO
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.quiet, args.verbose)

    if args.list_algorithms:
        for name, algorithm in get_all_algorithms(args.seed).items():
            print(f"  {name:22s} {algorithm.description}")
        return 0

    if not args.data and not args.demo:
        parser.error("one of --data or --demo is required")

    names = [n.strip() for n in args.algorithms.split(",") if n.strip()] if args.algorithms else None
    try:
        algorithms = get_algorithms(names, random_state=args.seed)
        if args.demo:
            loader = LoaderFactory.get_loader("synthetic", random_state=args.seed)
        else:
            loader = LoaderFactory.get_loader(
                "csv",
                data_dir=Path(args.data),
                target_column=args.target,
                positive_label=args.positive_label
            )
        datasets = loader.load_all()
        if not datasets:
            parser.error(f"no datasets found in {args.data}")

        driver = ComparisonDriver(
            algorithms,
            n_folds=args.folds,
            n_repetitions=args.repetitions,
            threshold=args.threshold,
            undefined_policy=args.undefined,
            correction=args.correction,
            max_workers=args.workers,
            random_state=args.seed,
            fail_fast=args.fail_fast
        )
    except (ValueError, FileNotFoundError) as e:
        logger.error(str(e))
        return 2

    try:
        results = driver.run(datasets)
    except AlgorithmEvaluationFailure as e:
        logger.error(f"Comparison aborted: {e}")
        return 1

    print(generate_console_summary(results))

    generated = ResultsGenerator(Path(args.output)).generate_all(results)
    for kind, path in generated.items():
        logger.info(f"Wrote {kind} report to {path}")

    return 1 if results.failures else 0


if __name__ == "__main__":
    sys.exit(main())
