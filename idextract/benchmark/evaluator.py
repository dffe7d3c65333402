"""Accuracy benchmark for calibrating the extraction rule tables.

Compares extracted identifiers against a labeled corpus. A wrong
identifier is worse than a missing one (it silently records the wrong
legal number), so the two are counted separately.
"""

import csv
import json
from dataclasses import dataclass, field
from pathlib import Path

from idextract.extraction.matcher import ExtractionResult, MatchSource
from idextract.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class SourceMetrics:
    """Outcome counts for results produced by one matcher tier."""

    source: MatchSource
    correct: int = 0
    wrong: int = 0

    @property
    def precision(self) -> float:
        """Fraction of this tier's identifiers that were correct."""
        denom = self.correct + self.wrong
        if denom == 0:
            return 0.0
        return self.correct / denom


@dataclass
class BenchmarkResult:
    """Aggregated benchmark results across a labeled corpus.

    Args:
        total_documents: Number of labeled documents.
        correct: Identifiers equal to the label.
        wrong: Identifiers returned that differ from the label.
        missed: Documents for which nothing was returned.
        source_metrics: Per-tier outcome counts.
        avg_processing_time_ms: Average processing time in milliseconds.
        errors: List of error messages encountered.
    """

    total_documents: int
    correct: int
    wrong: int
    missed: int
    source_metrics: dict[MatchSource, SourceMetrics]
    avg_processing_time_ms: float = 0.0
    errors: list[str] = field(default_factory=list)

    @property
    def precision(self) -> float:
        """Fraction of returned identifiers that were correct."""
        denom = self.correct + self.wrong
        if denom == 0:
            return 0.0
        return self.correct / denom

    @property
    def recall(self) -> float:
        """Fraction of labeled documents whose identifier was recovered."""
        if self.total_documents == 0:
            return 0.0
        return self.correct / self.total_documents


def _canonical(value: str) -> str:
    return "".join(value.split()).replace("-", "").upper()


class Evaluator:
    """Scores extraction results against ground truth identifiers."""

    def evaluate(
        self,
        predictions: dict[str, ExtractionResult],
        ground_truth: dict[str, str],
    ) -> BenchmarkResult:
        """Compare predictions against ground truth and compute metrics.

        Args:
            predictions: Mapping of filename to extraction result.
            ground_truth: Mapping of filename to expected identifier.

        Returns:
            Aggregated benchmark results with per-tier metrics.
        """
        source_metrics: dict[MatchSource, SourceMetrics] = {}
        errors: list[str] = []
        correct = wrong = missed = 0

        for filename, expected in ground_truth.items():
            result = predictions.get(filename)
            if result is None:
                errors.append(f"Missing prediction for {filename}")
                missed += 1
                continue

            if not result.found:
                missed += 1
                continue

            metrics = source_metrics.setdefault(result.source, SourceMetrics(result.source))
            if result.identifier == _canonical(expected):
                correct += 1
                metrics.correct += 1
            else:
                wrong += 1
                metrics.wrong += 1
                logger.debug(
                    "%s: expected %s, extracted %s via %s",
                    filename,
                    expected,
                    result.identifier,
                    result.source,
                )

        return BenchmarkResult(
            total_documents=len(ground_truth),
            correct=correct,
            wrong=wrong,
            missed=missed,
            source_metrics=source_metrics,
            errors=errors,
        )

    def generate_report(
        self, result: BenchmarkResult, output_path: Path | None = None
    ) -> str:
        """Generate a human-readable benchmark report.

        Args:
            result: Benchmark results to format.
            output_path: Optional path to write the report file.

        Returns:
            Formatted report string.
        """
        lines = [
            "=" * 60,
            "IDENTIFIER EXTRACTION BENCHMARK",
            "=" * 60,
            f"Total Documents:      {result.total_documents}",
            f"Correct:              {result.correct}",
            f"Wrong:                {result.wrong}",
            f"Missed:               {result.missed}",
            f"Precision:            {result.precision:.2%}",
            f"Recall:               {result.recall:.2%}",
            f"Avg Processing Time:  {result.avg_processing_time_ms:.0f}ms",
            "",
            "By Source:",
            "-" * 60,
            f"{'Source':<24} {'Correct':>10} {'Wrong':>10} {'Precision':>10}",
            "-" * 60,
        ]

        for source, metrics in sorted(result.source_metrics.items()):
            lines.append(
                f"{source.value:<24} {metrics.correct:>10} {metrics.wrong:>10} "
                f"{metrics.precision:>10.2%}"
            )
        lines.append("=" * 60)

        if result.errors:
            lines.append("")
            lines.append("Errors:")
            for error in result.errors:
                lines.append(f"  - {error}")

        report = "\n".join(lines)

        if output_path:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, "w") as f:
                f.write(report)
            logger.info("Report written to %s", output_path)

        return report


def load_ground_truth(path: Path) -> dict[str, str]:
    """Load ground truth identifiers from a JSON or CSV file.

    JSON format: ``{"filename": "KL07AB1234", ...}``
    CSV format: rows with ``filename`` and ``identifier`` columns.

    Args:
        path: Path to the ground truth file.

    Returns:
        Mapping of filename to expected identifier.

    Raises:
        ValueError: If the file format is not supported.
    """
    if path.suffix == ".json":
        with open(path) as f:
            return {name: str(value) for name, value in json.load(f).items()}

    if path.suffix == ".csv":
        gt: dict[str, str] = {}
        with open(path) as f:
            reader = csv.DictReader(f)
            for row in reader:
                if row.get("identifier"):
                    gt[row["filename"]] = row["identifier"]
        return gt

    raise ValueError(f"Unsupported ground truth format: {path.suffix}")
