import uuid

from models.transaction import Transaction
from database.transaction_dao import TransactionDAO
from database.account_dao import AccountDAO
from database.category_dao import CategoryDAO
from services.change_notifier import ChangeNotifier
from utils.constants import TRANSACTION_TYPES
from utils.date_helpers import format_date, parse_date
from utils.errors import NotFoundError, ValidationError


class TransactionService:
    def __init__(
        self,
        tx_dao: TransactionDAO,
        account_dao: AccountDAO,
        category_dao: CategoryDAO,
        notifier: ChangeNotifier | None = None,
    ):
        self._dao = tx_dao
        self._account_dao = account_dao
        self._category_dao = category_dao
        self._notifier = notifier

    def get_all(
        self,
        account_id: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> list[Transaction]:
        return self._dao.get_all(account_id, start_date, end_date)

    def get_by_id(self, tx_id: str) -> Transaction | None:
        return self._dao.get_by_id(tx_id)

    def get_totals(self) -> dict:
        totals = self._dao.get_totals()
        totals["net"] = totals["income"] - totals["expense"]
        return totals

    def create(
        self,
        account_id: str,
        type_: str,
        amount: float,
        date: str,
        category_id: str | None = None,
        to_account_id: str | None = None,
        merchant: str = "",
        notes: str = "",
        tags: list[str] | None = None,
        tax_amount: float = 0.0,
        tx_id: str | None = None,
    ) -> Transaction:
        tx = Transaction(
            id=tx_id or uuid.uuid4().hex,
            account_id=account_id,
            type=type_,
            amount=amount,
            date=date,
            category_id=category_id,
            to_account_id=to_account_id,
            merchant=merchant,
            notes=notes,
            tags=list(tags or []),
            tax_amount=tax_amount,
        )
        return self.save(tx)

    def update(
        self,
        tx_id: str,
        account_id: str,
        type_: str,
        amount: float,
        date: str,
        category_id: str | None = None,
        to_account_id: str | None = None,
        merchant: str = "",
        notes: str = "",
        tags: list[str] | None = None,
        tax_amount: float = 0.0,
    ) -> Transaction:
        current = self._dao.get_by_id(tx_id)
        if current is None:
            raise NotFoundError(f"Transaction {tx_id} not found.")
        current.account_id = account_id
        current.type = type_
        current.amount = amount
        current.date = date
        current.category_id = category_id
        current.to_account_id = to_account_id
        current.merchant = merchant
        current.notes = notes
        current.tags = list(tags or [])
        current.tax_amount = tax_amount
        return self.save(current)

    def save(self, tx: Transaction, allow_uncategorized: bool = False) -> Transaction:
        """Validate and upsert. Imports pass allow_uncategorized for rows with no category."""
        self._validate(tx, allow_uncategorized)
        saved = self._dao.save(tx)
        if self._notifier:
            self._notifier.emit("transaction")
        return saved

    def delete(self, tx_id: str):
        if self._dao.get_by_id(tx_id) is None:
            raise NotFoundError(f"Transaction {tx_id} not found.")
        self._dao.delete(tx_id)
        if self._notifier:
            self._notifier.emit("transaction")

    def _validate(self, tx: Transaction, allow_uncategorized: bool):
        if tx.type not in TRANSACTION_TYPES:
            raise ValidationError(f"Invalid type: {tx.type}")
        try:
            tx.amount = float(tx.amount)
            tx.tax_amount = float(tx.tax_amount or 0.0)
        except (TypeError, ValueError):
            raise ValidationError("Amount must be a number.")
        if tx.amount < 0:
            raise ValidationError("Amount cannot be negative.")
        d = parse_date(tx.date)
        if not d:
            raise ValidationError("Invalid date format. Use YYYY-MM-DD.")
        tx.date = format_date(d)

        if not tx.account_id or self._account_dao.get_by_id(tx.account_id) is None:
            raise ValidationError(f"Account {tx.account_id!r} does not exist.")

        if tx.type == "transfer":
            if not tx.to_account_id:
                raise ValidationError("A transfer needs a destination account.")
            if tx.to_account_id == tx.account_id:
                raise ValidationError("Cannot transfer to the same account.")
            if self._account_dao.get_by_id(tx.to_account_id) is None:
                raise ValidationError(f"Account {tx.to_account_id!r} does not exist.")
            tx.category_id = None
            return

        if tx.to_account_id:
            raise ValidationError("Only transfers can have a destination account.")
        if not tx.category_id:
            if allow_uncategorized:
                return
            raise ValidationError(f"A category is required for {tx.type} transactions.")
        category = self._category_dao.get_by_id(tx.category_id)
        if category is None:
            raise ValidationError(f"Category {tx.category_id!r} does not exist.")
        if category.type != tx.type:
            raise ValidationError(
                f"Category '{category.name}' is for {category.type}, not {tx.type}."
            )
