import csv
import sqlite3
from datetime import datetime

import docx
import openpyxl
import pytest

from services.import_service import IMPORT_KINDS, column_letter, read_table
from utils.errors import (
    MalformedInputError,
    StorageUnavailableError,
    UnsupportedFileError,
    ValidationError,
)

TX_HEADER = list(IMPORT_KINDS["transactions"].columns)


def write_csv(path, rows):
    with open(path, "w", encoding="utf-8", newline="") as f:
        csv.writer(f).writerows(rows)
    return path


def tx_row(id_, amount="50.00", type_="expense", category="Food & Dining",
           account="Main Checking", to_account="", date="2026-02-04", merchant="Store"):
    return [id_, date, merchant, amount, type_, category, account, to_account, ""]


# ── Readers ──────────────────────────────────────────────────────────────────

def test_csv_reader_trims_and_drops_blank_rows(tmp_path):
    path = write_csv(tmp_path / "t.csv", [
        [" id ", "name"],
        ["", ""],
        ["a1", '  "quoted, with comma"  '],
    ])

    assert read_table(path) == [["id", "name"], ["a1", '"quoted, with comma"']]


def test_xlsx_reader_uses_first_sheet(tmp_path):
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.append(["id", "date", "amount"])
    ws.append(["x1", datetime(2026, 2, 4), 50.0])
    ws.append([None, None, None])
    ws.append(["x2", "2026-02-05", 12.5])
    other = wb.create_sheet("Ignored")
    other.append(["nope"])
    path = tmp_path / "t.xlsx"
    wb.save(path)

    assert read_table(path) == [
        ["id", "date", "amount"],
        ["x1", "2026-02-04", "50"],
        ["x2", "2026-02-05", "12.5"],
    ]


def test_docx_reader_uses_first_table(tmp_path):
    document = docx.Document()
    document.add_paragraph("Exported bills")
    table = document.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "id"
    table.cell(0, 1).text = "name"
    table.cell(1, 0).text = "b1"
    table.cell(1, 1).text = " Rent "
    path = tmp_path / "t.docx"
    document.save(path)

    assert read_table(path) == [["id", "name"], ["b1", "Rent"]]


def test_docx_without_table_reads_paragraphs_as_csv(tmp_path):
    document = docx.Document()
    document.add_paragraph("id,name")
    document.add_paragraph('b1,"Rent, March"')
    path = tmp_path / "t.docx"
    document.save(path)

    assert read_table(path) == [["id", "name"], ["b1", "Rent, March"]]


def test_unsupported_extension(tmp_path):
    path = tmp_path / "t.txt"
    path.write_text("id\n1\n")
    with pytest.raises(UnsupportedFileError):
        read_table(path)


def test_header_only_file_is_malformed(tmp_path):
    path = write_csv(tmp_path / "t.csv", [TX_HEADER])
    with pytest.raises(MalformedInputError):
        read_table(path)


def test_column_letters():
    assert [column_letter(i) for i in (0, 3, 25, 26, 27, 51, 52)] == [
        "A", "D", "Z", "AA", "AB", "AZ", "BA",
    ]


# ── Preview ──────────────────────────────────────────────────────────────────

def test_preview_classifies_new_rows_without_writing(tmp_path, import_svc, tx_svc, checking):
    path = write_csv(tmp_path / "t.csv", [TX_HEADER, tx_row("t1"), tx_row("t2", amount="20")])

    preview = import_svc.preview("transactions", path)

    assert [r.status for r in preview.rows] == ["add", "add"]
    assert (preview.added, preview.updated, preview.errors) == (2, 0, 0)
    assert preview.can_apply
    assert preview.source_name == "t.csv"
    assert tx_svc.get_all() == []


def test_preview_update_diff_uses_cell_references(tmp_path, import_svc, tx_svc, checking):
    tx_svc.create(checking.id, "expense", 50.0, "2026-02-04", "cat_food",
                  merchant="Store", tx_id="txn_20260204_001")
    path = write_csv(tmp_path / "t.csv", [TX_HEADER, tx_row("txn_20260204_001", amount="75.00")])

    row = import_svc.preview("transactions", path).rows[0]

    assert row.status == "update"
    assert row.changes == ["D2: 50 → 75.00"]


def test_equal_numbers_are_not_reported_as_changes(tmp_path, import_svc, tx_svc, checking):
    tx_svc.create(checking.id, "expense", 50.0, "2026-02-04", "cat_food",
                  merchant="Store", tx_id="t1")
    path = write_csv(tmp_path / "t.csv", [TX_HEADER, tx_row("t1", amount="50.00")])

    row = import_svc.preview("transactions", path).rows[0]

    assert row.status == "update"
    assert row.changes == []


def test_dates_in_another_accepted_form_are_not_changes(tmp_path, import_svc, tx_svc, checking):
    tx_svc.create(checking.id, "expense", 50.0, "2026-02-04", "cat_food",
                  merchant="Store", tx_id="t1")
    path = write_csv(tmp_path / "t.csv", [TX_HEADER, tx_row("t1", date="2026/02/04")])

    row = import_svc.preview("transactions", path).rows[0]

    assert row.status == "update"
    assert row.changes == []


def test_changed_date_is_still_reported(tmp_path, import_svc, tx_svc, checking):
    tx_svc.create(checking.id, "expense", 50.0, "2026-02-04", "cat_food",
                  merchant="Store", tx_id="t1")
    path = write_csv(tmp_path / "t.csv", [TX_HEADER, tx_row("t1", date="2026.02.05")])

    row = import_svc.preview("transactions", path).rows[0]

    assert row.changes == ["B2: 2026-02-04 → 2026.02.05"]


def test_matched_id_with_unknown_account_is_an_error(tmp_path, import_svc, tx_svc, checking):
    tx_svc.create(checking.id, "expense", 50.0, "2026-02-04", "cat_food", tx_id="t1")
    path = write_csv(tmp_path / "t.csv", [TX_HEADER, tx_row("t1", account="Nowhere Bank")])

    row = import_svc.preview("transactions", path).rows[0]

    assert row.status == "error"
    assert 'Account "Nowhere Bank" not found' in row.errors


def test_row_validation_errors(tmp_path, import_svc, checking):
    path = write_csv(tmp_path / "t.csv", [
        TX_HEADER,
        tx_row(""),
        tx_row("t2", amount="abc"),
        tx_row("t3", category="Salary"),
        tx_row("t4", type_="refund"),
        tx_row("t5", date="not a date"),
        tx_row("t6", amount="-3"),
    ])

    rows = import_svc.preview("transactions", path).rows

    assert all(r.status == "error" for r in rows)
    assert rows[0].errors == ["ID is required"]
    assert rows[1].errors == ['Amount "abc" is not a number']
    assert rows[2].errors == ['Category "Salary" not found']
    assert any("refund" in e for e in rows[3].errors)
    assert rows[4].errors == ['Date "not a date" is not a valid date']
    assert rows[5].errors == ["Amount cannot be negative"]


def test_account_names_match_case_insensitively(tmp_path, import_svc, checking):
    path = write_csv(tmp_path / "t.csv", [TX_HEADER, tx_row("t1", account="main checking")])

    assert import_svc.preview("transactions", path).rows[0].status == "add"


def test_transfer_needs_a_different_destination(tmp_path, import_svc, checking, savings):
    path = write_csv(tmp_path / "t.csv", [
        TX_HEADER,
        tx_row("t1", type_="transfer", category="", to_account="Savings"),
        tx_row("t2", type_="transfer", category="", to_account=""),
        tx_row("t3", type_="transfer", category="", to_account="Main Checking"),
    ])

    rows = import_svc.preview("transactions", path).rows

    assert rows[0].status == "add"
    assert rows[1].errors == ['To Account "" not found']
    assert rows[2].errors == ["To Account must differ from Account"]


def test_duplicate_ids_in_one_file(tmp_path, import_svc, checking):
    path = write_csv(tmp_path / "t.csv", [TX_HEADER, tx_row("t1"), tx_row("t1")])

    rows = import_svc.preview("transactions", path).rows

    assert rows[0].status == "add"
    assert rows[1].status == "error"
    assert rows[1].errors == ['ID "t1" appears more than once']


def test_unknown_and_missing_headers(tmp_path, import_svc, checking):
    header = ["id", "date", "amount", "type", "memo"]
    path = write_csv(tmp_path / "t.csv", [header, ["t1", "2026-02-04", "5", "expense", "hi"]])

    preview = import_svc.preview("transactions", path)

    assert preview.unknown_headers == ["memo"]
    assert 'Column "account" is missing' in preview.rows[0].errors
    assert not preview.can_apply


def test_unknown_import_kind(tmp_path, import_svc):
    path = write_csv(tmp_path / "t.csv", [TX_HEADER, tx_row("t1")])
    with pytest.raises(ValidationError):
        import_svc.preview("receipts", path)


# ── Apply ────────────────────────────────────────────────────────────────────

def test_apply_writes_adds_and_updates(tmp_path, import_svc, tx_svc, account_svc, checking):
    tx_svc.create(checking.id, "expense", 50.0, "2026-02-04", "cat_food", tx_id="t1")
    path = write_csv(tmp_path / "t.csv", [
        TX_HEADER,
        tx_row("t1", amount="80"),
        tx_row("t2", amount="2000", type_="income", category="Salary"),
        tx_row("t3", amount="5", category=""),
    ])

    result = import_svc.apply(import_svc.preview("transactions", path))

    assert result.applied
    assert (result.success, result.updated, result.failed) == (2, 1, 0)
    assert result.imported_ids == ["t1", "t2", "t3"]
    assert tx_svc.get_by_id("t1").amount == pytest.approx(80.0)
    assert tx_svc.get_by_id("t3").category_id is None
    assert account_svc.get_balance(checking.id) == pytest.approx(1000 - 80 + 2000 - 5)


def test_apply_refuses_when_any_row_is_in_error(tmp_path, import_svc, tx_svc, checking):
    path = write_csv(tmp_path / "t.csv", [TX_HEADER, tx_row("t1"), tx_row("t2", account="Ghost")])

    result = import_svc.apply(import_svc.preview("transactions", path))

    assert not result.applied
    assert result.errors == ['Row 3: Account "Ghost" not found']
    assert tx_svc.get_all() == []


def test_apply_counts_rows_that_fail_and_keeps_going(tmp_path, import_svc, tx_svc, account_svc,
                                                     checking, savings):
    path = write_csv(tmp_path / "t.csv", [
        TX_HEADER,
        tx_row("t1", account="Savings", category="Salary", type_="income"),
        tx_row("t2"),
    ])
    preview = import_svc.preview("transactions", path)
    assert preview.can_apply
    # The store changes between preview and apply
    account_svc.delete(savings.id)

    result = import_svc.apply(preview)

    assert result.applied
    assert (result.success, result.failed) == (1, 1)
    assert result.errors == ['Row 2: Account "Savings" not found']
    assert [t.id for t in tx_svc.get_all()] == ["t2"]


def test_apply_stops_when_the_store_is_locked(tmp_path, import_svc, tx_svc, monkeypatch, checking):
    path = write_csv(tmp_path / "t.csv", [TX_HEADER, tx_row("t1"), tx_row("t2")])
    preview = import_svc.preview("transactions", path)
    attempted = []

    def locked(tx, allow_uncategorized=False):
        attempted.append(tx.id)
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(tx_svc, "save", locked)

    with pytest.raises(StorageUnavailableError):
        import_svc.apply(preview)
    assert attempted == ["t1"]


def test_apply_sends_one_change_notification(tmp_path, import_svc, notifier, checking):
    path = write_csv(tmp_path / "t.csv", [TX_HEADER, tx_row("t1"), tx_row("t2"), tx_row("t3")])
    preview = import_svc.preview("transactions", path)
    seen = []
    notifier.subscribe(seen.append)

    import_svc.apply(preview)

    assert seen == ["transaction"]


def test_import_loans_from_xlsx(tmp_path, import_svc, loan_svc):
    kind = IMPORT_KINDS["loans"]
    wb = openpyxl.Workbook()
    wb.active.append(list(kind.columns))
    for row in kind.template:
        wb.active.append(list(row))
    path = tmp_path / "loans.xlsx"
    wb.save(path)

    preview = import_svc.preview("loans", path)
    result = import_svc.apply(preview)

    assert preview.added == 2
    assert result.success == 2
    loan = loan_svc.get_by_id("loan_20260204_001")
    assert loan.lender == "Bank of America"
    assert loan.current_balance == pytest.approx(45000.0)
    assert loan.end_date == "2030-01-01"


def test_import_bills_from_docx(tmp_path, import_svc, bill_svc):
    kind = IMPORT_KINDS["bills"]
    document = docx.Document()
    table = document.add_table(rows=len(kind.template) + 1, cols=len(kind.columns))
    for c, header in enumerate(kind.columns):
        table.cell(0, c).text = header
    for r, row in enumerate(kind.template, start=1):
        for c, value in enumerate(row):
            table.cell(r, c).text = value
    path = tmp_path / "bills.docx"
    document.save(path)

    result = import_svc.apply(import_svc.preview("bills", path))

    assert result.success == 3
    rent = bill_svc.get_by_id("bill_20260301_001")
    assert rent.amount == pytest.approx(1500.0)
    assert rent.auto_pay is False
    assert bill_svc.get_by_id("bill_20260215_001").auto_pay is True


def test_bill_rows_need_boolean_flags(tmp_path, import_svc):
    path = write_csv(tmp_path / "b.csv", [
        list(IMPORT_KINDS["bills"].columns),
        ["b1", "Gym", "40", "2026-03-01", "monthly", "maybe", "false"],
    ])

    row = import_svc.preview("bills", path).rows[0]

    assert row.errors == ['is_paid "maybe" must be true or false']
