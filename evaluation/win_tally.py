"""
Win Tally

Turns a pairwise significance matrix into a ranking. Algorithm A wins
against B when t(A, B) > 0 and p(A, B) < threshold. Since t(B, A) = -t(A, B),
A and B can never both win the same pair.

Ties are reported as ties; calling a "clear winner" is left to whoever
reads the report.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple
import logging

from config import SIGNIFICANCE_LEVEL
from .statistical_tests import PairwiseMatrix, PairwiseTestResult

logger = logging.getLogger(__name__)


def is_win(result: PairwiseTestResult, threshold: float = SIGNIFICANCE_LEVEL) -> bool:
    """True when the row algorithm is significantly better than the column one."""
    if not result.is_valid:
        return False
    return result.t_statistic > 0 and result.p_value < threshold


def tally(matrix: PairwiseMatrix, threshold: float = SIGNIFICANCE_LEVEL) -> Dict[str, int]:
    """
    Count wins per algorithm for one (dataset, metric) matrix.

    Args:
        matrix: Pairwise test results
        threshold: Significance level

    Returns:
        Dict mapping algorithm name to its number of wins
    """
    if not 0 < threshold <= 1:
        raise ValueError(f"threshold must be in (0, 1], got {threshold}")

    wins = {name: 0 for name in matrix.algorithms}
    for (name_a, _), result in matrix.items():
        if is_win(result, threshold):
            wins[name_a] += 1
    logger.debug(f"{matrix.dataset_name}/{matrix.metric} wins at p<{threshold}: {wins}")
    return wins


@dataclass(frozen=True)
class WinTally:
    """Win counts for one dataset and metric."""
    dataset_name: str
    metric: str
    threshold: float
    wins: Dict[str, int]

    @classmethod
    def from_matrix(cls, matrix: PairwiseMatrix, threshold: float = SIGNIFICANCE_LEVEL) -> "WinTally":
        return cls(
            dataset_name=matrix.dataset_name,
            metric=matrix.metric,
            threshold=threshold,
            wins=tally(matrix, threshold)
        )

    def __getitem__(self, algorithm: str) -> int:
        return self.wins[algorithm]

    def ranking(self) -> List[Tuple[str, int]]:
        """Algorithms by descending win count; equal counts ordered by name."""
        return sorted(self.wins.items(), key=lambda item: (-item[1], item[0]))

    def leaders(self) -> List[str]:
        """All algorithms sharing the highest win count."""
        if not self.wins:
            return []
        best = max(self.wins.values())
        return sorted(name for name, count in self.wins.items() if count == best)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dataset": self.dataset_name,
            "metric": self.metric,
            "threshold": self.threshold,
            "wins": dict(self.wins),
            "ranking": [list(item) for item in self.ranking()],
        }
