"""
Evaluation Module
=================

Repeated cross-validation comparison of classification algorithms.

Provides:
- Classification metrics from confusion-matrix counts
- Repeated stratified k-fold aggregation into metric distributions
- Pairwise Welch t-tests between algorithms
- Win tallies and rankings
- Comparison driver across datasets and algorithms
- Report generation

Data flows strictly forward:
  fold confusion matrices -> metric values -> repetition distributions
  -> pairwise test results -> win counts
"""

from .metrics import (
    ConfusionMatrix,
    MetricSet,
    compute_metrics,
    sum_confusion_matrices,
    apply_undefined_policy,
)

from .cross_validation import (
    AlgorithmEvaluationFailure,
    StratifiedKFoldSplitter,
    RepeatedCrossValidationEvaluator,
    RepetitionResult,
    MetricDistribution,
    aggregate,
)

from .statistical_tests import (
    InsufficientSampleSize,
    InconsistentDistributionLength,
    PairwiseTestResult,
    PairwiseMatrix,
    welch_ttest,
    pairwise_test,
    cohens_d,
    interpret_effect_size,
    bonferroni_correction,
    fdr_correction,
    apply_correction,
    build_pairwise_matrix,
    build_pairwise_matrices,
)

from .win_tally import (
    WinTally,
    is_win,
    tally,
)

from .comparison import (
    ComparisonResults,
    ComparisonDriver,
    run_comparison,
)

from .results_generator import (
    TableConfig,
    ResultsGenerator,
    generate_console_summary,
)

__all__ = [
    # Metrics
    'ConfusionMatrix',
    'MetricSet',
    'compute_metrics',
    'sum_confusion_matrices',
    'apply_undefined_policy',

    # Cross-validation
    'AlgorithmEvaluationFailure',
    'StratifiedKFoldSplitter',
    'RepeatedCrossValidationEvaluator',
    'RepetitionResult',
    'MetricDistribution',
    'aggregate',

    # Statistical tests
    'InsufficientSampleSize',
    'InconsistentDistributionLength',
    'PairwiseTestResult',
    'PairwiseMatrix',
    'welch_ttest',
    'pairwise_test',
    'cohens_d',
    'interpret_effect_size',
    'bonferroni_correction',
    'fdr_correction',
    'apply_correction',
    'build_pairwise_matrix',
    'build_pairwise_matrices',

    # Win tally
    'WinTally',
    'is_win',
    'tally',

    # Comparison driver
    'ComparisonResults',
    'ComparisonDriver',
    'run_comparison',

    # Results generator
    'TableConfig',
    'ResultsGenerator',
    'generate_console_summary',
]
