"""
Results Generator

Generates formatted tables and reports from comparison results.
Outputs in multiple formats: Markdown, LaTeX, JSON, and console.
"""

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, List, Optional
from datetime import datetime
import numpy as np

from config import COMPARISON_RESULTS_DIR, METRIC_NAMES
from .comparison import ComparisonResults
from .statistical_tests import PairwiseMatrix


@dataclass
class TableConfig:
    """Configuration for generating result tables."""
    title: str
    metrics: List[str] = field(default_factory=lambda: list(METRIC_NAMES))
    show_std: bool = True
    precision: int = 4
    highlight_best: bool = True


def _format_value(value: float, precision: int) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "-"
    return f"{value:.{precision}f}"


class ResultsGenerator:
    """
    Generates formatted results from a comparison run.

    Produces:
    - Markdown report (mean metrics, pairwise matrices, win counts)
    - LaTeX win-count table for papers
    - JSON for programmatic access
    - Console summary
    """

    def __init__(self, output_dir: Optional[Path] = None):
        """
        Initialize results generator.

        Args:
            output_dir: Directory for output files (default: results/comparison/)
        """
        self.output_dir = Path(output_dir) if output_dir else COMPARISON_RESULTS_DIR
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def generate_all(self, results: ComparisonResults) -> Dict[str, str]:
        """
        Generate all result formats.

        Returns:
            Dict mapping format name to file path
        """
        return {
            "markdown": str(self.generate_report_markdown(results)),
            "latex": str(self.generate_wins_table_latex(results)),
            "json": str(self.save_results_json(results)),
        }

    # -------------------------------------------------------------------------
    # Markdown
    # -------------------------------------------------------------------------

    def generate_report_markdown(
        self,
        results: ComparisonResults,
        config: Optional[TableConfig] = None
    ) -> Path:
        """
        Generate the full markdown report.

        Args:
            results: Comparison results
            config: Table configuration

        Returns:
            Path to generated markdown file
        """
        config = config or TableConfig(title="Algorithm Comparison")
        settings = results.settings

        lines = [
            f"# {config.title}",
            "",
            f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
            "",
            f"- Cross-validation: {settings.get('n_repetitions', '?')} x "
            f"{settings.get('n_folds', '?')}-fold",
            f"- Significance level: {settings.get('threshold', '?')}",
            f"- Undefined metric values: {settings.get('undefined_policy', '?')}",
            f"- P-value correction: {settings.get('correction', '?')}",
            "",
        ]

        for dataset in results.dataset_names:
            lines.extend([f"## {dataset}", ""])
            lines.extend(self._mean_metrics_lines(results, dataset, config))

            failed = results.failed_algorithms(dataset)
            if failed:
                lines.extend(["### Failed algorithms", ""])
                for name in failed:
                    lines.append(f"- **FAILED** {name}: {results.failures[(dataset, name)]}")
                lines.append("")

            lines.extend(self._wins_lines(results, dataset, config))

            for metric in config.metrics:
                if (dataset, metric) in results.matrices:
                    lines.extend(self.matrix_markdown_lines(results.matrix(dataset, metric), config.precision))

        lines.extend([
            "## Notes",
            "- Bold values indicate the best mean per metric",
            "- Cell (row, column) holds Welch's t-test of row vs column; t > 0 means the row mean is higher",
            "- Markers: * p<0.05, ** p<0.01, *** p<0.001",
        ])

        output_path = self.output_dir / "comparison_report.md"
        output_path.write_text("\n".join(lines))
        return output_path

    def _mean_metrics_lines(
        self,
        results: ComparisonResults,
        dataset: str,
        config: TableConfig
    ) -> List[str]:
        headers = ["Algorithm"] + config.metrics
        lines = [
            "### Mean metrics",
            "",
            "| " + " | ".join(headers) + " |",
            "|" + "|".join(["---"] * len(headers)) + "|",
        ]

        means = results.mean_metrics(dataset)

        # Find best values for highlighting
        best_values = {}
        if config.highlight_best:
            for metric in config.metrics:
                values = [m[metric] for m in means.values() if not math.isnan(m[metric])]
                if values:
                    best_values[metric] = max(values)

        for name in results.algorithm_names:
            if name not in means:
                lines.append("| " + " | ".join([name] + ["FAILED"] * len(config.metrics)) + " |")
                continue
            distribution = results.distribution(dataset, name)
            row = [name]
            for metric in config.metrics:
                mean = means[name][metric]
                formatted = _format_value(mean, config.precision)
                if config.highlight_best and metric in best_values and not math.isnan(mean):
                    if abs(mean - best_values[metric]) < 1e-9:
                        formatted = f"**{formatted}**"
                if config.show_std and not math.isnan(mean):
                    formatted += f" ± {_format_value(distribution.std(metric), config.precision)}"
                undefined = distribution.undefined_count(metric)
                if undefined:
                    formatted += f" ({undefined} undef.)"
                row.append(formatted)
            lines.append("| " + " | ".join(row) + " |")

        lines.append("")
        return lines

    def _wins_lines(
        self,
        results: ComparisonResults,
        dataset: str,
        config: TableConfig
    ) -> List[str]:
        metrics = [m for m in config.metrics if (dataset, m) in results.tallies]
        if not metrics:
            return []

        headers = ["Algorithm"] + metrics
        lines = [
            "### Wins",
            "",
            "| " + " | ".join(headers) + " |",
            "|" + "|".join(["---"] * len(headers)) + "|",
        ]
        for name in results.algorithm_names:
            row = [name]
            for metric in metrics:
                tally = results.wins(dataset, metric)
                row.append(str(tally.wins[name]) if name in tally.wins else "FAILED")
            lines.append("| " + " | ".join(row) + " |")

        lines.append("")
        lines.append("Leaders: " + "; ".join(
            f"{metric}: {', '.join(results.wins(dataset, metric).leaders())}"
            for metric in metrics
        ))
        lines.append("")
        return lines

    def matrix_markdown_lines(self, matrix: PairwiseMatrix, precision: int = 4) -> List[str]:
        """Render one pairwise matrix as a markdown table."""
        title = f"### Pairwise tests: {matrix.metric}"
        if matrix.correction != "none":
            title += f" ({matrix.correction}-corrected)"
        lines = [
            title,
            "",
            "| vs | " + " | ".join(matrix.algorithms) + " |",
            "|" + "|".join(["---"] * (len(matrix.algorithms) + 1)) + "|",
        ]
        for a in matrix.algorithms:
            cells = []
            for b in matrix.algorithms:
                result = matrix.get(a, b)
                cells.append(f"{result.format(precision)} {result.significance_marker()}".strip())
            lines.append(f"| {a} | " + " | ".join(cells) + " |")
        lines.append("")
        return lines

    # -------------------------------------------------------------------------
    # LaTeX
    # -------------------------------------------------------------------------

    def generate_wins_table_latex(self, results: ComparisonResults) -> Path:
        """
        Generate LaTeX win-count table for papers.

        Returns:
            Path to generated .tex file
        """
        metrics = list(results.metrics)
        lines = [
            "% Auto-generated win-count table",
            f"% Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
            "",
            r"\begin{table}[htbp]",
            r"\centering",
            r"\caption{Significant pairwise wins per dataset and metric}",
            r"\label{tab:win-counts}",
            r"\begin{tabular}{ll" + "c" * len(metrics) + "}",
            r"\toprule",
            "Dataset & Algorithm & " + " & ".join(metrics) + r" \\",
            r"\midrule",
        ]

        for dataset in results.dataset_names:
            for name in results.algorithm_names:
                row = [dataset.replace("_", r"\_"), name.replace("_", r"\_")]
                for metric in metrics:
                    tally = results.tallies.get((dataset, metric))
                    if tally is None or name not in tally.wins:
                        row.append("--")
                    else:
                        count = tally.wins[name]
                        formatted = str(count)
                        if count > 0 and name in tally.leaders():
                            formatted = r"\textbf{" + formatted + "}"
                        row.append(formatted)
                lines.append(" & ".join(row) + r" \\")
            lines.append(r"\midrule")

        if lines[-1] == r"\midrule":
            lines.pop()
        lines.extend([
            r"\bottomrule",
            r"\end{tabular}",
            r"\end{table}"
        ])

        output_path = self.output_dir / "win_counts.tex"
        output_path.write_text("\n".join(lines))
        return output_path

    # -------------------------------------------------------------------------
    # JSON / console
    # -------------------------------------------------------------------------

    def save_results_json(self, results: ComparisonResults) -> Path:
        """Save all results to a single JSON file."""
        data = {
            "generated": datetime.now().isoformat(),
            **results.to_dict()
        }

        # Convert numpy types to native Python; NaN and infinities become null
        def convert(obj):
            if isinstance(obj, np.ndarray):
                return convert(obj.tolist())
            elif isinstance(obj, np.integer):
                return int(obj)
            elif isinstance(obj, (float, np.floating)):
                return float(obj) if math.isfinite(obj) else None
            elif isinstance(obj, dict):
                return {str(k): convert(v) for k, v in obj.items()}
            elif isinstance(obj, (list, tuple)):
                return [convert(x) for x in obj]
            return obj

        output_path = self.output_dir / "comparison_results.json"
        with open(output_path, "w") as f:
            json.dump(convert(data), f, indent=2, allow_nan=False)

        return output_path


def generate_console_summary(results: ComparisonResults, precision: int = 4) -> str:
    """Short plain-text summary: mean metrics and win counts per dataset."""
    lines = ["=" * 60, "Algorithm Comparison", "=" * 60]

    for dataset in results.dataset_names:
        lines.append(f"\n{dataset}")
        lines.append("-" * 60)
        means = results.mean_metrics(dataset)
        header = f"  {'algorithm':22s}" + "".join(f"{m:>12s}" for m in results.metrics)
        lines.append(header)
        for name in results.algorithm_names:
            if name not in means:
                lines.append(f"  {name:22s}  FAILED: {results.failures[(dataset, name)].reason}")
                continue
            lines.append(
                f"  {name:22s}" + "".join(
                    f"{_format_value(means[name][m], precision):>12s}" for m in results.metrics
                )
            )

        for metric in results.metrics:
            if (dataset, metric) not in results.tallies:
                continue
            ranking = results.wins(dataset, metric).ranking()
            lines.append(f"  wins {metric:10s}: " + ", ".join(f"{n}={w}" for n, w in ranking))

    lines.append("\n" + "=" * 60)
    return "\n".join(lines)
