"""Spreadsheet import with a reconcile-then-apply flow.

A file is read into rows, each data row is matched by id against the
records already stored and classified as add, update or error. preview()
never writes. apply() writes the previewed rows one by one and refuses to
start while any row is in error.
"""
import csv
import io
import sqlite3
import zipfile
from contextlib import nullcontext
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path

import docx
import openpyxl
from docx.opc.exceptions import PackageNotFoundError
from loguru import logger
from openpyxl.utils.exceptions import InvalidFileException

from models.bill import Bill
from models.import_preview import FieldMap, ImportPreview, ImportResult, PreviewRow
from models.loan import Loan
from models.transaction import Transaction
from services.account_service import AccountService
from services.bill_service import BillService
from services.category_service import CategoryService
from services.change_notifier import ChangeNotifier
from services.loan_service import LoanService
from services.transaction_service import TransactionService
from utils.constants import BILL_RECURRENCES, LOAN_FREQUENCIES, TRANSACTION_TYPES
from utils.date_helpers import format_date, parse_date
from utils.errors import (
    FinanceError,
    MalformedInputError,
    StorageUnavailableError,
    UnsupportedFileError,
    ValidationError,
)

SUPPORTED_EXTENSIONS = (".csv", ".xlsx", ".docx")

_TRUE = ("true", "1", "yes", "y")
_FALSE = ("false", "0", "no", "n", "")


@dataclass(frozen=True)
class ImportKind:
    name: str
    columns: tuple[str, ...]
    required: tuple[str, ...]
    template: tuple[tuple[str, ...], ...]


IMPORT_KINDS: dict[str, ImportKind] = {
    "transactions": ImportKind(
        name="transactions",
        columns=("id", "date", "merchant", "amount", "type", "category",
                 "account", "to_account", "notes"),
        required=("id", "date", "amount", "type", "account"),
        template=(
            ("txn_20260204_001", "2026-02-04", "Example Store", "50.00", "expense",
             "Food & Dining", "Main Checking", "", "Optional notes"),
            ("txn_20260203_001", "2026-02-03", "Salary Deposit", "2000.00", "income",
             "Salary", "Main Checking", "", ""),
            ("txn_20260202_001", "2026-02-02", "Transfer", "100.00", "transfer",
             "", "Main Checking", "Savings", "Moving to savings"),
        ),
    ),
    "loans": ImportKind(
        name="loans",
        columns=("id", "name", "lender", "principal_amount", "current_balance",
                 "interest_rate", "payment_amount", "payment_frequency",
                 "start_date", "end_date", "notes"),
        required=("id", "name", "principal_amount", "current_balance"),
        template=(
            ("loan_20260204_001", "Student Loan", "Bank of America", "50000.00", "45000.00",
             "5.5", "500.00", "monthly", "2020-01-01", "2030-01-01", "Federal student loan"),
            ("loan_20260204_002", "Car Loan", "Chase Auto", "25000.00", "18000.00",
             "4.2", "450.00", "monthly", "2023-06-01", "2028-06-01", ""),
        ),
    ),
    "bills": ImportKind(
        name="bills",
        columns=("id", "name", "amount", "next_due_date", "recurrence", "is_paid", "auto_pay"),
        required=("id", "name", "amount", "next_due_date"),
        template=(
            ("bill_20260215_001", "Electric Bill", "120.00", "2026-02-15", "monthly", "false", "true"),
            ("bill_20260210_001", "Internet", "60.00", "2026-02-10", "monthly", "false", "true"),
            ("bill_20260301_001", "Rent", "1500.00", "2026-03-01", "monthly", "false", "false"),
        ),
    ),
}

# Stored attribute shown for a transaction column when diffing an update
_TX_DISPLAY_ATTR = {
    "category": "category_name",
    "account": "account_name",
    "to_account": "to_account_name",
}

# Compared as dates, so 2026/02/04 matches a stored 2026-02-04
_DATE_COLUMNS = ("date", "next_due_date", "start_date", "end_date")


def get_kind(kind: str) -> ImportKind:
    try:
        return IMPORT_KINDS[kind]
    except KeyError:
        raise ValidationError(
            f"Unknown import type '{kind}'. Must be one of: {', '.join(IMPORT_KINDS)}."
        ) from None


def column_letter(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA."""
    result = ""
    num = index + 1
    while num > 0:
        num, rem = divmod(num - 1, 26)
        result = chr(65 + rem) + result
    return result


# ── Readers ──────────────────────────────────────────────────────────────────

def _clean(rows) -> list[list[str]]:
    """Trim cells and drop rows with nothing in them."""
    out = []
    for row in rows:
        cells = [_cell_text(c) for c in row]
        if any(cells):
            out.append(cells)
    return out


def _cell_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return format_date(value.date())
    if isinstance(value, date):
        return format_date(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    return str(value).strip()


def _parse_csv_text(text: str) -> list[list[str]]:
    return _clean(csv.reader(io.StringIO(text)))


def _read_csv(path: Path) -> list[list[str]]:
    try:
        with open(path, "r", encoding="utf-8-sig", newline="") as f:
            return _clean(csv.reader(f))
    except UnicodeDecodeError as e:
        raise MalformedInputError(f"{path.name} is not UTF-8 text: {e}") from e
    except csv.Error as e:
        raise MalformedInputError(f"Could not parse {path.name}: {e}") from e


def _read_xlsx(path: Path) -> list[list[str]]:
    try:
        wb = openpyxl.load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        raise MalformedInputError(f"Could not open workbook {path.name}: {e}") from e
    try:
        if not wb.worksheets:
            return []
        ws = wb.worksheets[0]
        return _clean(ws.iter_rows(values_only=True))
    finally:
        wb.close()


def _read_docx(path: Path) -> list[list[str]]:
    try:
        document = docx.Document(str(path))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as e:
        raise MalformedInputError(f"Could not open document {path.name}: {e}") from e
    if document.tables:
        table = document.tables[0]
        return _clean([cell.text for cell in row.cells] for row in table.rows)
    # No table: treat the paragraphs as comma-separated lines
    text = "\n".join(p.text for p in document.paragraphs)
    return _parse_csv_text(text)


_READERS = {
    ".csv": _read_csv,
    ".xlsx": _read_xlsx,
    ".docx": _read_docx,
}


def read_table(path) -> list[list[str]]:
    """Read a CSV, XLSX (first sheet) or DOCX (first table) file into trimmed rows.

    Raises UnsupportedFileError for any other extension and
    MalformedInputError when there is no header plus at least one data row.
    """
    path = Path(path)
    reader = _READERS.get(path.suffix.lower())
    if reader is None:
        raise UnsupportedFileError(
            f"Unsupported file type '{path.suffix or path.name}'. "
            "Please use CSV, Excel (.xlsx) or Word (.docx) files."
        )
    rows = reader(path)
    if len(rows) < 2:
        raise MalformedInputError("File must contain a header row and at least one data row.")
    return rows


def build_field_maps(kind: ImportKind, headers: list[str], data_rows: list[list[str]]) -> list[FieldMap]:
    known = set(kind.columns)
    unknown = {h for h in headers if h and h not in known}
    missing = set(kind.required) - set(headers)
    maps = []
    for row in data_rows:
        values = {}
        for idx, header in enumerate(headers):
            if header and header not in values:
                values[header] = row[idx] if idx < len(row) else ""
        maps.append(FieldMap(values=values, unknown=set(unknown), missing=set(missing)))
    return maps


# ── Value parsing ────────────────────────────────────────────────────────────

def _parse_number(text: str) -> float | None:
    cleaned = text.replace(",", "").replace("$", "").strip()
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def _parse_bool(text: str) -> bool | None:
    lowered = text.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    return None


def _display(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    return str(value)


def _same_value(new: str, existing: str) -> bool:
    if new == existing:
        return True
    a, b = _parse_number(new), _parse_number(existing)
    if a is not None and b is not None:
        return a == b
    a_bool, b_bool = _parse_bool(new), _parse_bool(existing)
    if a_bool is not None and b_bool is not None and existing != "":
        return a_bool == b_bool
    return new.lower() == existing.lower()


class ImportService:
    def __init__(
        self,
        account_service: AccountService,
        category_service: CategoryService,
        tx_service: TransactionService,
        loan_service: LoanService,
        bill_service: BillService,
        notifier: ChangeNotifier | None = None,
    ):
        self._acct_svc = account_service
        self._cat_svc = category_service
        self._tx_svc = tx_service
        self._loan_svc = loan_service
        self._bill_svc = bill_service
        self._notifier = notifier

    # ── Preview ──────────────────────────────────────────────────────────────

    def preview(self, kind: str, path) -> ImportPreview:
        """Read `path` and classify every row. Nothing is written."""
        import_kind = get_kind(kind)
        rows = read_table(path)
        headers = [h.strip().lower() for h in rows[0]]
        preview = self.preview_rows(import_kind, headers, rows[1:])
        preview.source_name = Path(path).name
        logger.info(
            f"Import preview {preview.source_name} ({kind}): {preview.added} add, "
            f"{preview.updated} update, {preview.errors} error"
        )
        return preview

    def preview_rows(self, kind: ImportKind, headers: list[str], data_rows: list[list[str]]) -> ImportPreview:
        existing = self._existing_records(kind.name)
        field_maps = build_field_maps(kind, headers, data_rows)
        seen_ids: set[str] = set()
        preview_rows = []

        for i, data in enumerate(field_maps):
            row_num = i + 2
            errors = [f'Column "{col}" is missing' for col in sorted(data.missing)]
            record_id = data.get("id")
            if not record_id:
                errors.append("ID is required")
            elif record_id in seen_ids:
                errors.append(f'ID "{record_id}" appears more than once')
            seen_ids.add(record_id)

            errors.extend(self._validate_row(kind.name, data))

            current = existing.get(record_id) if record_id else None
            changes = self._diff(kind, headers, data, current, row_num) if current else []

            status = "update" if current else "add"
            if errors:
                status = "error"
            preview_rows.append(PreviewRow(
                row_num=row_num, status=status, data=data, changes=changes, errors=errors,
            ))

        unknown = sorted(field_maps[0].unknown) if field_maps else []
        return ImportPreview(
            kind=kind.name, headers=headers, rows=preview_rows, unknown_headers=unknown,
        )

    def _existing_records(self, kind: str) -> dict:
        if kind == "transactions":
            records = self._tx_svc.get_all()
        elif kind == "loans":
            records = self._loan_svc.get_all()
        else:
            records = self._bill_svc.get_all()
        return {r.id: r for r in records}

    def _diff(self, kind: ImportKind, headers, data: FieldMap, current, row_num: int) -> list[str]:
        changes = []
        for idx, header in enumerate(headers):
            if header not in kind.columns or header == "id":
                continue
            attr = header
            if kind.name == "transactions":
                attr = _TX_DISPLAY_ATTR.get(header, header)
            before = _display(getattr(current, attr, ""))
            after = data.get(header)
            compared = after
            if header in _DATE_COLUMNS:
                parsed = parse_date(after)
                if parsed:
                    compared = format_date(parsed)
            if after and not _same_value(compared, before):
                changes.append(f"{column_letter(idx)}{row_num}: {before or '∅'} → {after}")
        return changes

    # ── Validation ───────────────────────────────────────────────────────────

    def _validate_row(self, kind: str, data: FieldMap) -> list[str]:
        if kind == "transactions":
            return self._validate_transaction(data)
        if kind == "loans":
            return self._validate_loan(data)
        return self._validate_bill(data)

    def _validate_transaction(self, data: FieldMap) -> list[str]:
        errors = []
        type_ = data.get("type").lower()
        account_name = data.get("account")
        account = self._acct_svc.get_by_name(account_name) if account_name else None
        if account is None:
            errors.append(f'Account "{account_name}" not found')

        if type_ not in TRANSACTION_TYPES:
            errors.append(f'Type "{data.get("type")}" must be income, expense or transfer')
        amount = _parse_number(data.get("amount"))
        if amount is None:
            errors.append(f'Amount "{data.get("amount")}" is not a number')
        elif amount < 0:
            errors.append("Amount cannot be negative")
        if not parse_date(data.get("date")):
            errors.append(f'Date "{data.get("date")}" is not a valid date')

        category_name = data.get("category")
        if type_ != "transfer" and category_name:
            lookup_type = type_ if type_ in ("income", "expense") else None
            if self._cat_svc.get_by_name(category_name, lookup_type) is None:
                errors.append(f'Category "{category_name}" not found')

        if type_ == "transfer":
            to_name = data.get("to_account")
            to_account = self._acct_svc.get_by_name(to_name) if to_name else None
            if to_account is None:
                errors.append(f'To Account "{to_name}" not found')
            elif account is not None and to_account.id == account.id:
                errors.append("To Account must differ from Account")
        return errors

    def _validate_loan(self, data: FieldMap) -> list[str]:
        errors = []
        if not data.get("name"):
            errors.append("Name is required")
        for col in ("principal_amount", "current_balance", "interest_rate", "payment_amount"):
            raw = data.get(col)
            if col in ("principal_amount", "current_balance") or raw:
                value = _parse_number(raw)
                if value is None:
                    errors.append(f'{col} "{raw}" is not a number')
                elif value < 0:
                    errors.append(f"{col} cannot be negative")
        freq = data.get("payment_frequency").lower()
        if freq and freq not in LOAN_FREQUENCIES:
            errors.append(f'Payment frequency "{freq}" is not one of {", ".join(LOAN_FREQUENCIES)}')
        for col in ("start_date", "end_date"):
            raw = data.get(col)
            if raw and not parse_date(raw):
                errors.append(f'{col} "{raw}" is not a valid date')
        return errors

    def _validate_bill(self, data: FieldMap) -> list[str]:
        errors = []
        if not data.get("name"):
            errors.append("Name is required")
        amount = _parse_number(data.get("amount"))
        if amount is None:
            errors.append(f'Amount "{data.get("amount")}" is not a number')
        elif amount < 0:
            errors.append("Amount cannot be negative")
        if not parse_date(data.get("next_due_date")):
            errors.append(f'Due date "{data.get("next_due_date")}" is not a valid date')
        recurrence = data.get("recurrence").lower()
        if recurrence and recurrence not in BILL_RECURRENCES:
            errors.append(f'Recurrence "{recurrence}" is not one of {", ".join(BILL_RECURRENCES)}')
        for col in ("is_paid", "auto_pay"):
            if _parse_bool(data.get(col)) is None:
                errors.append(f'{col} "{data.get(col)}" must be true or false')
        return errors

    # ── Apply ────────────────────────────────────────────────────────────────

    def apply(self, preview: ImportPreview) -> ImportResult:
        """Write previewed rows in order. A row that fails is counted and skipped.

        Returns applied=False without writing anything while any row is in error.
        """
        if not preview.can_apply:
            reasons = [
                f"Row {r.row_num}: {'; '.join(r.errors)}"
                for r in preview.rows if r.status == "error"
            ] or ["Nothing to import."]
            logger.warning(
                f"Import of {preview.source_name or preview.kind} refused: "
                f"{preview.errors} row(s) in error"
            )
            return ImportResult(applied=False, errors=reasons)

        result = ImportResult(applied=True)
        existing = self._existing_records(preview.kind)

        with self._batch():
            for row in preview.rows:
                record_id = row.record_id
                try:
                    self._apply_row(preview.kind, row.data, existing.get(record_id))
                except StorageUnavailableError:
                    raise
                except sqlite3.OperationalError as e:
                    # Locked or unreachable store: stop rather than fail every row
                    logger.error(f"Import stopped at row {row.row_num}: {e}")
                    raise StorageUnavailableError(f"Storage unavailable during import: {e}") from e
                except (FinanceError, ValueError, sqlite3.Error) as e:
                    result.failed += 1
                    result.errors.append(f"Row {row.row_num}: {e}")
                    logger.warning(f"Import row {row.row_num} failed: {e}")
                    continue
                result.imported_ids.append(record_id)
                if record_id in existing:
                    result.updated += 1
                else:
                    result.success += 1

        logger.info(
            f"Import {preview.source_name or preview.kind}: {result.success} added, "
            f"{result.updated} updated, {result.failed} failed"
        )
        return result

    def _batch(self):
        if self._notifier:
            return self._notifier.batch()
        return nullcontext()

    def _apply_row(self, kind: str, data: FieldMap, current):
        if kind == "transactions":
            self._apply_transaction(data, current)
        elif kind == "loans":
            self._apply_loan(data)
        else:
            self._apply_bill(data)

    def _apply_transaction(self, data: FieldMap, current: Transaction | None):
        # Names are resolved again: the store may have changed since preview
        account = self._acct_svc.get_by_name(data.get("account"))
        if account is None:
            raise ValidationError(f'Account "{data.get("account")}" not found')
        type_ = data.get("type").lower()

        category_id = None
        if type_ != "transfer" and data.get("category"):
            category = self._cat_svc.get_by_name(data.get("category"), type_)
            if category is None:
                raise ValidationError(f'Category "{data.get("category")}" not found')
            category_id = category.id

        to_account_id = None
        if type_ == "transfer":
            to_account = self._acct_svc.get_by_name(data.get("to_account"))
            if to_account is None:
                raise ValidationError(f'To Account "{data.get("to_account")}" not found')
            to_account_id = to_account.id

        amount = _parse_number(data.get("amount"))
        if amount is None:
            raise ValidationError(f'Amount "{data.get("amount")}" is not a number')
        tx = current or Transaction(id=data.get("id"), account_id="", type=type_, amount=0.0, date="")
        tx.account_id = account.id
        tx.type = type_
        tx.amount = amount
        tx.date = data.get("date")
        tx.category_id = category_id
        tx.to_account_id = to_account_id
        tx.merchant = data.get("merchant")
        tx.notes = data.get("notes")
        self._tx_svc.save(tx, allow_uncategorized=True)

    def _apply_loan(self, data: FieldMap):
        loan = Loan(
            id=data.get("id"),
            name=data.get("name"),
            lender=data.get("lender"),
            principal_amount=_parse_number(data.get("principal_amount")),
            current_balance=_parse_number(data.get("current_balance")),
            interest_rate=_parse_number(data.get("interest_rate")) or 0.0,
            payment_amount=_parse_number(data.get("payment_amount")) or 0.0,
            payment_frequency=data.get("payment_frequency").lower() or "monthly",
            start_date=data.get("start_date"),
            end_date=data.get("end_date") or None,
            notes=data.get("notes"),
        )
        self._loan_svc.save(loan)

    def _apply_bill(self, data: FieldMap):
        bill = Bill(
            id=data.get("id"),
            name=data.get("name"),
            amount=_parse_number(data.get("amount")),
            next_due_date=data.get("next_due_date"),
            recurrence=data.get("recurrence").lower() or "monthly",
            is_paid=bool(_parse_bool(data.get("is_paid"))),
            auto_pay=bool(_parse_bool(data.get("auto_pay"))),
        )
        self._bill_svc.save(bill)
