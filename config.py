"""
Central Configuration for Classifier Comparison
================================================

This module provides a single source of truth for all configuration
parameters, including random seeds for reproducibility.
"""

import os
from pathlib import Path

# =============================================================================
# REPRODUCIBILITY
# =============================================================================

RANDOM_SEED = 42  # Fixed seed for reproducibility

# =============================================================================
# PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.absolute()
DATA_DIR = PROJECT_ROOT / "data" / "datasets"
RESULTS_DIR = Path(os.environ.get("COMPARISON_RESULTS_DIR", PROJECT_ROOT / "results"))
COMPARISON_RESULTS_DIR = RESULTS_DIR / "comparison"

# =============================================================================
# EVALUATION PARAMETERS
# =============================================================================

DEFAULT_CV_FOLDS = 10
DEFAULT_CV_REPETITIONS = 10
SIGNIFICANCE_LEVEL = 0.05  # Alpha for statistical tests
DEFAULT_MAX_WORKERS = min(8, os.cpu_count() or 1)

# How undefined (NaN) metric values enter a distribution:
#   "exclude" - dropped before testing
#   "zero"    - counted as 0.0
UNDEFINED_METRIC_POLICY = "exclude"
UNDEFINED_METRIC_POLICIES = ("exclude", "zero")

# Multiple-testing correction applied to pairwise matrices
P_VALUE_CORRECTION = "none"
P_VALUE_CORRECTIONS = ("none", "bonferroni", "fdr")

# =============================================================================
# CLASS / METRIC INFORMATION
# =============================================================================

POSITIVE_CLASS = 1

METRIC_NAMES = ("Accuracy", "Precision", "Recall", "F1")

