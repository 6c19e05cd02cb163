import pytest

from database.db_manager import DatabaseManager
from database.account_dao import AccountDAO
from database.transaction_dao import TransactionDAO
from database.category_dao import CategoryDAO
from database.budget_dao import BudgetDAO
from database.goal_dao import GoalDAO
from database.bill_dao import BillDAO
from database.loan_dao import LoanDAO
from database.plan_dao import PlanDAO
from database.tax_rule_dao import TaxRuleDAO
from services.change_notifier import ChangeNotifier
from services.account_service import AccountService
from services.transaction_service import TransactionService
from services.category_service import CategoryService
from services.budget_service import BudgetService
from services.goal_service import GoalService
from services.bill_service import BillService
from services.loan_service import LoanService
from services.plan_service import PlanService
from services.runway_service import RunwayService
from services.import_service import ImportService
from services.data_service import DataService


@pytest.fixture
def db(tmp_path):
    manager = DatabaseManager(str(tmp_path / "finance_test.db")).open()
    yield manager
    manager.close()


@pytest.fixture
def notifier():
    return ChangeNotifier()


@pytest.fixture
def daos(db):
    return {
        "account": AccountDAO(db),
        "transaction": TransactionDAO(db),
        "category": CategoryDAO(db),
        "budget": BudgetDAO(db),
        "goal": GoalDAO(db),
        "bill": BillDAO(db),
        "loan": LoanDAO(db),
        "plan": PlanDAO(db),
        "tax_rule": TaxRuleDAO(db),
    }


@pytest.fixture
def account_svc(daos, notifier):
    return AccountService(daos["account"], notifier)


@pytest.fixture
def tx_svc(daos, notifier):
    return TransactionService(daos["transaction"], daos["account"], daos["category"], notifier)


@pytest.fixture
def category_svc(daos, notifier):
    return CategoryService(daos["category"], notifier)


@pytest.fixture
def budget_svc(daos, notifier):
    return BudgetService(daos["budget"], daos["transaction"], daos["category"], notifier)


@pytest.fixture
def goal_svc(daos, notifier):
    return GoalService(daos["goal"], daos["account"], notifier)


@pytest.fixture
def bill_svc(daos, notifier):
    return BillService(daos["bill"], notifier)


@pytest.fixture
def loan_svc(daos, notifier):
    return LoanService(daos["loan"], notifier)


@pytest.fixture
def plan_svc(daos, notifier):
    return PlanService(daos["plan"], daos["transaction"], daos["loan"], daos["goal"], notifier)


@pytest.fixture
def runway_svc(daos, account_svc):
    return RunwayService(daos["transaction"], account_svc)


@pytest.fixture
def import_svc(account_svc, category_svc, tx_svc, loan_svc, bill_svc, notifier):
    return ImportService(account_svc, category_svc, tx_svc, loan_svc, bill_svc, notifier)


@pytest.fixture
def data_svc(db, daos, notifier):
    return DataService(
        db, daos["account"], daos["category"], daos["transaction"], daos["budget"],
        daos["goal"], daos["bill"], daos["loan"], daos["plan"], daos["tax_rule"], notifier,
    )


@pytest.fixture
def checking(account_svc):
    return account_svc.create("Main Checking", "checking", initial_balance=1000.0)


@pytest.fixture
def savings(account_svc):
    return account_svc.create("Savings", "savings")
