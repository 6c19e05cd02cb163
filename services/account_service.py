import uuid

from loguru import logger

from models.account import Account, ACCOUNT_TYPES
from database.account_dao import AccountDAO
from services.change_notifier import ChangeNotifier
from utils.errors import NotFoundError, ValidationError


class AccountService:
    def __init__(self, account_dao: AccountDAO, notifier: ChangeNotifier | None = None):
        self._dao = account_dao
        self._notifier = notifier

    def get_all(self) -> list[Account]:
        return self._dao.get_all()

    def get_by_id(self, account_id: str) -> Account | None:
        return self._dao.get_by_id(account_id)

    def get_by_name(self, name: str) -> Account | None:
        return self._dao.get_by_name(name)

    def create(
        self,
        name: str,
        account_type: str = "checking",
        currency: str = "USD",
        initial_balance: float = 0.0,
        account_id: str | None = None,
    ) -> Account:
        name = name.strip()
        if not name:
            raise ValidationError("Account name cannot be empty.")
        if self._dao.get_by_name(name):
            raise ValidationError(f"An account named '{name}' already exists.")
        self._validate_type(account_type)
        account = Account(
            id=account_id or uuid.uuid4().hex,
            name=name,
            type=account_type,
            currency=(currency or "USD").strip().upper(),
            initial_balance=float(initial_balance),
        )
        saved = self._dao.save(account)
        self._emit()
        return saved

    def update(
        self,
        account_id: str,
        name: str,
        account_type: str = "checking",
        currency: str = "USD",
        initial_balance: float = 0.0,
    ) -> Account:
        current = self._dao.get_by_id(account_id)
        if current is None:
            raise NotFoundError(f"Account {account_id} not found.")
        name = name.strip()
        if not name:
            raise ValidationError("Account name cannot be empty.")
        existing = self._dao.get_by_name(name)
        if existing and existing.id != account_id:
            raise ValidationError(f"An account named '{name}' already exists.")
        self._validate_type(account_type)
        current.name = name
        current.type = account_type
        current.currency = (currency or "USD").strip().upper()
        current.initial_balance = float(initial_balance)
        saved = self._dao.save(current)
        self._emit()
        return saved

    def delete(self, account_id: str):
        """Deletes the account together with its income and expense transactions.

        Refused while transfers link it to another account: removing them
        would change that account's balance.
        """
        account = self._dao.get_by_id(account_id)
        if account is None:
            raise NotFoundError(f"Account {account_id} not found.")
        linked = self._dao.count_linked_transfers(account_id)
        if linked:
            raise ValidationError(
                f"'{account.name}' has {linked} transfer(s) with other accounts. "
                "Delete those transfers first."
            )
        self._dao.delete(account_id)
        logger.info(f"Deleted account {account_id}")
        self._emit()

    # ── Balances ─────────────────────────────────────────────────────────────

    def get_balance(self, account_id: str) -> float:
        """initial + income - expense - transfers out + transfers in, over all dates.

        Recomputed from the ledger on every call.
        """
        parts = self._dao.get_balance_components(account_id)
        if parts is None:
            raise NotFoundError(f"Account {account_id} not found.")
        return (
            parts["initial_balance"]
            + parts["income"]
            - parts["expense"]
            - parts["transfers_out"]
            + parts["transfers_in"]
        )

    def get_balances(self) -> dict[str, float]:
        return self._dao.get_all_balances()

    def get_total_balance(self) -> float:
        return sum(self._dao.get_all_balances().values())

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _emit(self):
        if self._notifier:
            self._notifier.emit("account")

    @staticmethod
    def _validate_type(account_type: str):
        if account_type not in ACCOUNT_TYPES:
            raise ValidationError(
                f"Invalid account type '{account_type}'. "
                f"Must be one of: {', '.join(ACCOUNT_TYPES)}."
            )
