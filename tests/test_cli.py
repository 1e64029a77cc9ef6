"""Tests for the click command-line interface."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from ledger.cli import main


@pytest.fixture
def run(tmp_path: Path):
    runner = CliRunner()
    data_dir = tmp_path / "data"

    def _run(*args: str):
        return runner.invoke(main, ["--data-dir", str(data_dir), *args])

    _run.data_dir = data_dir
    return _run


def test_add_list_and_balance(run):
    result = run("add", "--merchant", "ACME", "--amount", "100", "--type", "income", "--date", "2025-06-01")
    assert result.exit_code == 0, result.output
    assert "t1" in result.output

    result = run(
        "add",
        "--merchant", "Corner Cafe",
        "--amount", "12.50",
        "--notes", "team lunch",
        "--date", "2025-06-03 12:00",
        "--auto",
    )
    assert result.exit_code == 0, result.output
    assert "[Food]" in result.output

    result = run("list")
    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[0].startswith("t1 2025-06-01 00:00 ACME 100 [Uncategorized]")
    assert lines[1] == "t2 2025-06-03 12:00 Corner Cafe -12.50 [Food] notes=team lunch"

    result = run("balance")
    assert result.output.strip() == "Balance: 87.50"

    assert (run.data_dir / "transactions.csv").exists()
    assert (run.data_dir / "categories.csv").exists()


def test_add_rejects_bad_amount(run):
    result = run("add", "--merchant", "X", "--amount", "twelve")
    assert result.exit_code != 0
    assert "not a number" in result.output


def test_add_with_unknown_category_fails(run):
    result = run("add", "--merchant", "X", "--amount", "1", "--category", "Nope")
    assert result.exit_code == 1
    assert "Unknown category" in result.output


def test_report_month(run):
    run("add", "--merchant", "ACME", "--amount", "100", "--type", "income", "--date", "2025-06-01", "--category", "Salary")
    run("add", "--merchant", "Cafe", "--amount", "40", "--date", "2025-06-02", "--category", "Food")
    run("add", "--merchant", "Kiosk", "--amount", "10", "--date", "2025-06-03")

    result = run("report", "month", "2025", "6")

    assert result.exit_code == 0, result.output
    assert "Income: 100  Expense: 50  Difference: 50" in result.output
    assert "Category breakdown for 2025-06" in result.output
    assert "Salary" in result.output
    assert "Uncategorized" in result.output
    assert "Total: 150" in result.output


def test_report_year_and_all(run):
    run("add", "--merchant", "Cafe", "--amount", "40", "--date", "2025-06-02", "--category", "Food")
    run("add", "--merchant", "Cafe", "--amount", "5", "--date", "2024-06-02", "--category", "Food")

    result = run("report", "year", "2025")
    assert "Year 2025 Income: 0  Expense: 40  Difference: -40" in result.output

    result = run("report", "all")
    assert "Total: 45" in result.output


def test_category_remove_cascades(run):
    run("add", "--merchant", "Cafe", "--amount", "40", "--category", "Food")

    result = run("categories", "remove", "Food")
    assert result.exit_code == 0, result.output
    assert "Uncategorized" in result.output

    result = run("search", "--category", "Food")
    assert "No transactions." in result.output

    result = run("list")
    assert "[Uncategorized]" in result.output

    result = run("categories", "remove", "Rent")
    assert result.exit_code == 1


def test_categories_add_and_list(run):
    result = run("categories", "add", "Bonus", "--kind", "income")
    assert result.exit_code == 0, result.output

    result = run("categories", "list")
    assert "- Bonus (Income)" in result.output
    assert "- Food (Expense)" in result.output


def test_categorize_command(run):
    run("add", "--merchant", "Shop", "--amount", "3")

    result = run("categorize", "t1", "Food")
    assert result.exit_code == 0, result.output
    assert "[Food]" in run("list").output

    result = run("categorize", "t1")
    assert "[Uncategorized]" in run("list").output

    result = run("categorize", "t1", "Nope")
    assert result.exit_code == 1

    result = run("categorize", "t9", "Food")
    assert result.exit_code == 1


def test_import_and_export(run, tmp_path: Path):
    bank = tmp_path / "bank.csv"
    bank.write_text(
        "date,description,amount\n"
        "2025-06-01,salary ACME,2000\n"
        "2025-06-02,lunch,-8\n"
        "bad,row,1\n",
        encoding="utf-8",
    )

    result = run("import", str(bank))
    assert result.exit_code == 0, result.output
    assert "Parsed: 2" in result.output
    assert "Skipped: 1" in result.output
    assert "Categorized: 2" in result.output

    out_file = tmp_path / "export.csv"
    result = run("export", "--output", str(out_file))
    assert result.exit_code == 0, result.output
    lines = out_file.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "id,timestamp,amount,merchant,category,notes"
    assert lines[1] == "t1,2025-06-01T00:00:00,2000,salary ACME,Salary,"


def test_search_requires_an_argument(run):
    result = run("search")
    assert result.exit_code == 2


def test_add_keeps_records_with_undecodable_bytes(run):
    run.data_dir.mkdir()
    original = [
        b'"t1",-5,1718000000,"Caf\xe9","",""',
        b'"t2",-7,1718000100,"Bakery","",""',
        b'"t3",100,1718000200,"ACME","Salary",""',
    ]
    path = run.data_dir / "transactions.csv"
    path.write_bytes(b"\n".join(original) + b"\n")

    result = run("add", "--merchant", "Kiosk", "--amount", "2", "--date", "2025-06-01")

    assert result.exit_code == 0, result.output
    assert "Added t4" in result.output
    assert "not valid UTF-8" in result.output
    assert path.read_bytes().splitlines()[:3] == original

    assert "Caf?" in run("list").output


def test_add_refuses_to_overwrite_unreadable_transactions_file(run):
    (run.data_dir / "transactions.csv").mkdir(parents=True)

    result = run("add", "--merchant", "Kiosk", "--amount", "2")

    assert result.exit_code == 1
    assert "could not read the transactions file" in result.output
    assert "Refusing to overwrite" in result.output
    assert (run.data_dir / "transactions.csv").is_dir()
