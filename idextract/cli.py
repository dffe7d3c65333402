"""Command-line interface for identifier extraction and calibration.

Provides subcommands for extracting the identifier of one document,
parsing raw OCR text, processing folders of uploads into CSV,
benchmarking the rule tables against a labeled corpus, and serving the
REST API.
"""

import argparse
import asyncio
import csv
import json
import sys
import time
from pathlib import Path

import uvicorn

from idextract.api.app import app
from idextract.benchmark.evaluator import Evaluator, load_ground_truth
from idextract.extraction.document_types import DocumentType
from idextract.extraction.engine import IdentifierExtractor
from idextract.extraction.matcher import ExtractionResult
from idextract.pipeline import run_extraction
from idextract.retry.controller import ExtractionOutcome
from idextract.utils.config import AppConfig, load_config
from idextract.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = ("*.png", "*.jpg", "*.jpeg", "*.tiff", "*.tif", "*.pdf")
_CSV_COLUMNS = [
    "filename",
    "identifier",
    "source",
    "keyword",
    "pattern",
    "state",
    "attempts",
    "processing_time_s",
]


def _find_documents(input_dir: Path, include_text: bool = False) -> list[Path]:
    """Find all supported document files in a directory.

    Args:
        input_dir: Directory to scan for documents.
        include_text: Also return ``.txt`` files holding raw OCR text.

    Returns:
        Sorted list of document file paths.
    """
    patterns = _SUPPORTED_EXTENSIONS + (("*.txt",) if include_text else ())
    files: list[Path] = []
    for ext in patterns:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def _outcome_to_row(
    filename: str, outcome: ExtractionOutcome, elapsed: float
) -> dict[str, object]:
    result = outcome.result
    return {
        "filename": filename,
        "identifier": result.identifier or "",
        "source": result.source.value,
        "keyword": result.keyword or "",
        "pattern": result.pattern or "",
        "state": outcome.state.value,
        "attempts": len(outcome.attempts),
        "processing_time_s": round(elapsed, 2),
    }


def extract_single(
    file_path: Path,
    document_type: DocumentType,
    config: AppConfig | None = None,
) -> dict[str, object]:
    """Run OCR and extraction on one document.

    Args:
        file_path: Path to the document file.
        document_type: Document the file holds.
        config: Application configuration. Defaults to ``load_config()``.

    Returns:
        Dictionary describing the outcome.
    """
    start_time = time.time()
    outcome = asyncio.run(run_extraction(file_path, document_type, config=config))
    row = _outcome_to_row(file_path.name, outcome, time.time() - start_time)
    row["found"] = outcome.result.found
    return row


def parse_text(
    text: str, document_type: DocumentType, config: AppConfig | None = None
) -> ExtractionResult:
    """Run only the extraction engine on raw OCR text."""
    config = config or load_config()
    extractor = IdentifierExtractor(document_type, config.documents[document_type])
    return extractor.extract(text)


def process_folder(
    input_dir: Path,
    output_csv: Path,
    document_type: DocumentType,
    verbose: bool = False,
) -> dict[str, int]:
    """Extract identifiers from every document in a folder into a CSV.

    Args:
        input_dir: Directory containing document files.
        output_csv: Path for the output CSV file.
        document_type: Document type of every file in the folder.
        verbose: Whether to print per-file progress.

    Returns:
        Summary dict with total, found, and not_found counts.
    """
    config = load_config()
    files = _find_documents(input_dir)
    if not files:
        logger.warning("No documents found in %s", input_dir)
        return {"total": 0, "found": 0, "not_found": 0}

    logger.info("Found %d documents to process", len(files))

    rows: list[dict[str, object]] = []
    found = 0

    for i, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{i}/{len(files)}]: {file_path.name}")

        start_time = time.time()
        outcome = asyncio.run(run_extraction(file_path, document_type, config=config))
        rows.append(_outcome_to_row(file_path.name, outcome, time.time() - start_time))
        if outcome.result.found:
            found += 1

    _write_csv(rows, output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {"total": len(files), "found": found, "not_found": len(files) - found}
    _print_summary(summary, output_csv)
    return summary


def run_benchmark(
    ground_truth_path: Path,
    corpus_dir: Path,
    document_type: DocumentType,
    report_path: Path | None = None,
) -> str:
    """Score the rule tables against a labeled corpus.

    Files ending in ``.txt`` are read as raw OCR text and only go through
    the extraction engine; other files go through OCR as well.

    Args:
        ground_truth_path: JSON or CSV file of expected identifiers.
        corpus_dir: Directory holding the labeled files.
        document_type: Document type of the corpus.
        report_path: Optional path to write the report.

    Returns:
        Formatted benchmark report.
    """
    config = load_config()
    ground_truth = load_ground_truth(ground_truth_path)
    predictions: dict[str, ExtractionResult] = {}
    timings: list[float] = []

    for file_path in _find_documents(corpus_dir, include_text=True):
        if file_path.name not in ground_truth:
            continue
        start_time = time.time()
        if file_path.suffix.lower() == ".txt":
            predictions[file_path.name] = parse_text(
                file_path.read_text(), document_type, config
            )
        else:
            outcome = asyncio.run(
                run_extraction(file_path, document_type, config=config)
            )
            predictions[file_path.name] = outcome.result
        timings.append((time.time() - start_time) * 1000)

    evaluator = Evaluator()
    result = evaluator.evaluate(predictions, ground_truth)
    result.avg_processing_time_ms = sum(timings) / len(timings) if timings else 0.0
    return evaluator.generate_report(result, report_path)


def _write_csv(rows: list[dict[str, object]], output_path: Path) -> None:
    """Write extraction rows to a CSV file.

    Args:
        rows: List of result dictionaries.
        output_path: Path for the output CSV file.
    """
    if not rows:
        return

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=_CSV_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    """Print batch processing summary to stdout.

    Args:
        summary: Counts of total, found, and not found documents.
        output_csv: Path to the output CSV.
    """
    print(f"\n{'=' * 50}")
    print("Batch Extraction Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Found:      {summary['found']}")
    print(f"Not found:  {summary['not_found']}")
    print(f"Output:     {output_csv}")


def serve(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Start the FastAPI application server."""
    uvicorn.run(app, host=host, port=port)


def _add_type_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-t",
        "--type",
        choices=[t.value for t in DocumentType],
        default=DocumentType.DRIVING_LICENSE.value,
        dest="doc_type",
        help="Document type (default: driving_license)",
    )


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Driving license and RC book identifier extractor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    single_parser = subparsers.add_parser("extract", help="Extract from one document")
    single_parser.add_argument("file", type=Path, help="Document file to process")
    _add_type_argument(single_parser)
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    parse_parser = subparsers.add_parser("parse", help="Extract from raw OCR text")
    parse_parser.add_argument(
        "text_file", type=Path, nargs="?", help="Text file (default: stdin)"
    )
    _add_type_argument(parse_parser)

    batch_parser = subparsers.add_parser("batch", help="Process a folder of documents")
    batch_parser.add_argument(
        "input_dir", type=Path, help="Input directory with documents"
    )
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    _add_type_argument(batch_parser)
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    bench_parser = subparsers.add_parser(
        "benchmark", help="Score extraction against labeled documents"
    )
    bench_parser.add_argument("ground_truth", type=Path, help="JSON or CSV labels")
    bench_parser.add_argument("corpus_dir", type=Path, help="Directory of documents")
    _add_type_argument(bench_parser)
    bench_parser.add_argument("-o", "--output", type=Path, help="Report file")

    serve_parser = subparsers.add_parser("serve", help="Run the REST API server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")

    args = parser.parse_args(argv)

    setup_logging(load_config().log_level)

    if args.command == "serve":
        serve(args.host, args.port)
    elif args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        result = extract_single(args.file, DocumentType(args.doc_type))
        output_str = json.dumps(result, indent=2)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(output_str)
            print(f"Output written to {args.output}")
        else:
            print(output_str)
    elif args.command == "parse":
        text = args.text_file.read_text() if args.text_file else sys.stdin.read()
        extraction = parse_text(text, DocumentType(args.doc_type))
        print(
            json.dumps(
                {
                    "identifier": extraction.identifier,
                    "source": extraction.source.value,
                    "keyword": extraction.keyword,
                    "pattern": extraction.pattern,
                },
                indent=2,
            )
        )
    elif args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(
            args.input_dir, args.output, DocumentType(args.doc_type), args.verbose
        )
    elif args.command == "benchmark":
        if not args.corpus_dir.is_dir():
            print(f"Error: {args.corpus_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        print(
            run_benchmark(
                args.ground_truth,
                args.corpus_dir,
                DocumentType(args.doc_type),
                args.output,
            )
        )
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
