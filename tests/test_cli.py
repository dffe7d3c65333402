"""Tests for the command-line interface and CSV export."""

import csv
import io
import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import numpy as np
import pytest
from PIL import Image

from idextract.cli import (
    _find_documents,
    _print_summary,
    _write_csv,
    extract_single,
    main,
    parse_text,
    process_folder,
    run_benchmark,
)
from idextract.extraction.document_types import DocumentType
from idextract.extraction.matcher import NOT_FOUND, ExtractionResult, MatchSource
from idextract.ocr.tesseract_engine import RecognitionMode
from idextract.retry.controller import AttemptRecord, ExtractionOutcome, RetryState
from idextract.utils.config import AppConfig


def _make_test_image(path: Path) -> None:
    """Create a minimal test PNG image at the given path."""
    img = Image.fromarray(np.zeros((100, 200, 3), dtype=np.uint8))
    img.save(path, format="PNG")


def _outcome(identifier: str | None = "MH1420110012345") -> ExtractionOutcome:
    if identifier is None:
        return ExtractionOutcome(result=NOT_FOUND, state=RetryState.FAILED)
    return ExtractionOutcome(
        result=ExtractionResult(
            identifier=identifier,
            source=MatchSource.KEYWORD_ANCHOR,
            keyword="DL NO",
            pattern="state_rto_year_serial",
        ),
        state=RetryState.SUCCESS,
        attempts=[
            AttemptRecord(
                mode=RecognitionMode.WHITELIST,
                raw_text_length=23,
                source=MatchSource.KEYWORD_ANCHOR,
            )
        ],
    )


class TestFindDocuments:
    """Tests for the _find_documents helper."""

    def test_finds_supported_files(self, tmp_path: Path) -> None:
        (tmp_path / "dl.png").touch()
        (tmp_path / "rc.pdf").touch()
        (tmp_path / "scan.jpeg").touch()
        (tmp_path / "notes.txt").touch()
        (tmp_path / "data.json").touch()

        files = _find_documents(tmp_path)
        assert [f.name for f in files] == ["dl.png", "rc.pdf", "scan.jpeg"]

    def test_include_text(self, tmp_path: Path) -> None:
        (tmp_path / "dl.png").touch()
        (tmp_path / "dl_ocr.txt").touch()

        files = _find_documents(tmp_path, include_text=True)
        assert [f.name for f in files] == ["dl.png", "dl_ocr.txt"]

    def test_empty_directory(self, tmp_path: Path) -> None:
        assert _find_documents(tmp_path) == []


class TestWriteCsv:
    """Tests for CSV output."""

    def test_writes_rows(self, tmp_path: Path) -> None:
        rows = [
            {
                "filename": "dl.png",
                "identifier": "MH1420110012345",
                "source": "keyword_anchor",
                "keyword": "DL NO",
                "pattern": "state_rto_year_serial",
                "state": "success",
                "attempts": 1,
                "processing_time_s": 0.5,
                "found": True,
            }
        ]
        output = tmp_path / "out" / "results.csv"
        _write_csv(rows, output)

        with open(output) as f:
            read_rows = list(csv.DictReader(f))
        assert len(read_rows) == 1
        assert read_rows[0]["identifier"] == "MH1420110012345"
        assert "found" not in read_rows[0]

    def test_empty_rows_write_nothing(self, tmp_path: Path) -> None:
        output = tmp_path / "results.csv"
        _write_csv([], output)
        assert not output.exists()


class TestPrintSummary:
    """Tests for the batch summary."""

    def test_prints_counts(self, capsys: pytest.CaptureFixture[str]) -> None:
        _print_summary({"total": 3, "found": 2, "not_found": 1}, Path("r.csv"))
        out = capsys.readouterr().out
        assert "Batch Extraction Complete" in out
        assert "Found:      2" in out
        assert "Not found:  1" in out


class TestParseText:
    """Tests for text-only extraction."""

    def test_license(self) -> None:
        result = parse_text(
            "DL NO: MH14 2011 0012345", DocumentType.DRIVING_LICENSE, AppConfig()
        )
        assert result.identifier == "MH1420110012345"

    def test_registration(self) -> None:
        result = parse_text(
            "OWNER RAVI AN01J8844", DocumentType.VEHICLE_REGISTRATION, AppConfig()
        )
        assert result.identifier == "AN01J8844"
        assert result.source == MatchSource.WORD_TOKEN_SCAN


class TestExtractSingle:
    """Tests for single-document extraction."""

    @patch("idextract.cli.run_extraction", new_callable=AsyncMock)
    def test_row(self, mock_run: AsyncMock, tmp_path: Path) -> None:
        mock_run.return_value = _outcome()
        image = tmp_path / "dl.png"
        _make_test_image(image)

        row = extract_single(image, DocumentType.DRIVING_LICENSE, AppConfig())

        assert row["filename"] == "dl.png"
        assert row["identifier"] == "MH1420110012345"
        assert row["state"] == "success"
        assert row["attempts"] == 1
        assert row["found"] is True


class TestProcessFolder:
    """Tests for batch folder processing."""

    @patch("idextract.cli.run_extraction", new_callable=AsyncMock)
    def test_counts_and_csv(self, mock_run: AsyncMock, tmp_path: Path) -> None:
        mock_run.side_effect = [_outcome(), _outcome(None)]
        input_dir = tmp_path / "uploads"
        input_dir.mkdir()
        _make_test_image(input_dir / "a.png")
        _make_test_image(input_dir / "b.png")
        output = tmp_path / "results.csv"

        summary = process_folder(input_dir, output, DocumentType.DRIVING_LICENSE)

        assert summary == {"total": 2, "found": 1, "not_found": 1}
        with open(output) as f:
            rows = list(csv.DictReader(f))
        assert [r["identifier"] for r in rows] == ["MH1420110012345", ""]
        assert rows[1]["source"] == "not_found"

    def test_empty_folder(self, tmp_path: Path) -> None:
        summary = process_folder(
            tmp_path, tmp_path / "results.csv", DocumentType.DRIVING_LICENSE
        )
        assert summary["total"] == 0


class TestRunBenchmark:
    """Tests for benchmarking against text files."""

    def test_text_corpus(self, tmp_path: Path) -> None:
        (tmp_path / "good.txt").write_text("DL NO MH14 2011 0012345")
        (tmp_path / "wrong.txt").write_text("DL NO KA01 2015 0000001")
        (tmp_path / "blank.txt").write_text("illegible smudge")
        gt = tmp_path / "gt.json"
        gt.write_text(
            json.dumps(
                {
                    "good.txt": "MH14 2011 0012345",
                    "wrong.txt": "KA0120150000002",
                    "blank.txt": "DL0420090034761",
                }
            )
        )

        report = run_benchmark(gt, tmp_path, DocumentType.DRIVING_LICENSE)

        assert "IDENTIFIER EXTRACTION BENCHMARK" in report
        assert "Correct:              1" in report
        assert "Wrong:                1" in report
        assert "Missed:               1" in report


class TestMain:
    """Tests for CLI argument dispatch."""

    def test_parse_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        text_file = tmp_path / "ocr.txt"
        text_file.write_text("REGISTRATION NO: KL 07 AB 1234")

        main(["parse", str(text_file), "-t", "vehicle_registration"])

        data = json.loads(capsys.readouterr().out)
        assert data["identifier"] == "KL07AB1234"
        assert data["source"] == "keyword_anchor"
        assert data["keyword"] == "REGISTRATION NO"

    def test_parse_stdin(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO("illegible smudge"))

        main(["parse"])

        data = json.loads(capsys.readouterr().out)
        assert data["identifier"] is None
        assert data["source"] == "not_found"

    def test_extract_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["extract", str(tmp_path / "missing.png")])
        assert exc_info.value.code == 1

    @patch("idextract.cli.run_extraction", new_callable=AsyncMock)
    def test_extract_writes_json(self, mock_run: AsyncMock, tmp_path: Path) -> None:
        mock_run.return_value = _outcome()
        image = tmp_path / "dl.png"
        _make_test_image(image)
        output = tmp_path / "out.json"

        main(["extract", str(image), "-o", str(output)])

        data = json.loads(output.read_text())
        assert data["identifier"] == "MH1420110012345"

    def test_batch_not_a_directory(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["batch", str(tmp_path / "nope")])
        assert exc_info.value.code == 1

    def test_benchmark_not_a_directory(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["benchmark", str(tmp_path / "gt.json"), str(tmp_path / "nope")])
        assert exc_info.value.code == 1

    @patch("idextract.cli.uvicorn")
    def test_serve(self, mock_uvicorn: MagicMock) -> None:
        main(["serve", "--port", "9000"])
        mock_uvicorn.run.assert_called_once()
        assert mock_uvicorn.run.call_args.kwargs == {"host": "0.0.0.0", "port": 9000}

    def test_no_command_prints_help(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
