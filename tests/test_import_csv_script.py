"""
tests/test_import_csv_script.py

Pytest unit tests for the command-line importer in scripts/import_csv.py.

Coverage
--------
- Dry-run summary with both header strategies and step mappings
- Degraded-parse warnings in the summary
- Unreadable input files end the run with a one-line message and exit code 1
"""

from __future__ import annotations

import pytest

from app.parsing.tracker_csv import HeaderNotFoundError
from conftest import build_tracker_csv
from scripts.import_csv import analyze, main, read_export


def test_dry_run_summary(tracker_csv: str) -> None:
    summary = analyze(tracker_csv, header_strategy="sentinel", step_mapping="primary")

    assert summary["records"] == 3
    assert summary["programs"] == {
        "Express Entry - CEC (Canadian Experience Class)": 2,
        "Express Entry - PNP (Provincial Nominee Program)": 1,
    }
    assert summary["steps"]["ITA"] == 3
    assert summary["steps"]["AOR"] == 3
    assert "ADR\nReceived" in summary["columns"]
    assert [sample["title"] for sample in summary["sample"]] == ["alice", "bob", "carol"]
    assert summary["sample"][0]["steps"][0] == {"step_type": "ITA", "completed_at": "2024-06-05"}
    assert summary["warnings"] == []


def test_dry_run_with_spliced_header_and_standalone_mapping(tracker_csv: str) -> None:
    summary = analyze(tracker_csv, header_strategy="spliced", step_mapping="standalone")

    assert "ADR Received" in summary["columns"]
    assert summary["steps"]["BIOMETRICS_PASSED"] == 2
    assert "BIL" not in summary["steps"]


def test_dry_run_reports_unbalanced_quotes() -> None:
    content = build_tracker_csv('alice,CEC,2024/06/05 "approx', "bob,CEC,2024/06/19")

    summary = analyze(content, header_strategy="sentinel", step_mapping="primary")

    assert summary["records"] == 2
    assert summary["warnings"] == ["Line 6 (alice): Unbalanced quote; read as a single line"]


def test_dry_run_propagates_structural_errors() -> None:
    with pytest.raises(HeaderNotFoundError):
        analyze("a\nb\nc\nd\n", header_strategy="sentinel", step_mapping="primary")


class TestReadExport:
    def test_reads_utf8_with_byte_order_mark(self, tmp_path) -> None:
        path = tmp_path / "tracker.csv"
        path.write_bytes("\ufeffUsername,STREAM\n".encode("utf-8"))

        assert read_export(path) == "Username,STREAM\n"

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ValueError, match="File not found"):
            read_export(tmp_path / "missing.csv")

    def test_non_utf8_file(self, tmp_path) -> None:
        path = tmp_path / "latin1.csv"
        path.write_bytes(b"Username\ncaf\xe9\xff\n")

        with pytest.raises(ValueError, match="is not UTF-8 encoded"):
            read_export(path)

    def test_directory_is_rejected(self, tmp_path) -> None:
        with pytest.raises(ValueError, match="Could not read"):
            read_export(tmp_path)


def test_main_exits_with_one_line_message_for_missing_file(tmp_path, capsys) -> None:
    missing = tmp_path / "missing.csv"

    exit_code = main([str(missing), "--dry-run"])

    assert exit_code == 1
    assert capsys.readouterr().out == f"Import failed: File not found: {missing}\n"


def test_main_exits_with_one_line_message_for_non_utf8_file(tmp_path, capsys) -> None:
    path = tmp_path / "latin1.csv"
    path.write_bytes(b"\xff\xfe\xfa")

    exit_code = main([str(path)])

    assert exit_code == 1
    assert capsys.readouterr().out == f"Import failed: {path} is not UTF-8 encoded.\n"


def test_main_dry_run_prints_summary(tmp_path, tracker_csv: str, capsys) -> None:
    path = tmp_path / "tracker.csv"
    path.write_text(tracker_csv, encoding="utf-8")

    exit_code = main([str(path), "--dry-run", "--header-strategy", "sentinel"])

    assert exit_code == 0
    assert '"records": 3' in capsys.readouterr().out
