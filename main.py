import customtkinter as ctk
from loguru import logger

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
from services.call_boundary import CallBoundary
from services.account_service import AccountService
from services.transaction_service import TransactionService
from services.category_service import CategoryService
from services.budget_service import BudgetService
from services.bill_service import BillService
from services.loan_service import LoanService
from services.runway_service import RunwayService
from services.import_service import ImportService
from services.data_service import DataService

from ui.app_window import AppWindow
from utils.app_config import get_active_profile, get_db_folder, get_log_file, get_log_level
from utils.constants import BUDGET_ALERT_THRESHOLD, DEFAULT_PROFILE
from utils.logging_setup import setup_logging


def main():
    # ── Bootstrap: pre-DB config ──────────────────────────────────────────────
    setup_logging(get_log_level(), get_log_file())
    profile = get_active_profile() or DEFAULT_PROFILE

    # ── Database ─────────────────────────────────────────────────────────────
    db = DatabaseManager.open_for_profile(profile, get_db_folder())

    # ── DAOs ─────────────────────────────────────────────────────────────────
    account_dao = AccountDAO(db)
    tx_dao = TransactionDAO(db)
    category_dao = CategoryDAO(db)
    budget_dao = BudgetDAO(db)
    goal_dao = GoalDAO(db)
    bill_dao = BillDAO(db)
    loan_dao = LoanDAO(db)
    plan_dao = PlanDAO(db)
    tax_rule_dao = TaxRuleDAO(db)

    # ── Services ─────────────────────────────────────────────────────────────
    notifier = ChangeNotifier()
    account_svc = AccountService(account_dao, notifier)
    tx_svc = TransactionService(tx_dao, account_dao, category_dao, notifier)
    category_svc = CategoryService(category_dao, notifier)
    budget_svc = BudgetService(budget_dao, tx_dao, category_dao, notifier)
    bill_svc = BillService(bill_dao, notifier)
    loan_svc = LoanService(loan_dao, notifier)
    runway_svc = RunwayService(tx_dao, account_svc)
    import_svc = ImportService(account_svc, category_svc, tx_svc, loan_svc, bill_svc, notifier)
    data_svc = DataService(
        db, account_dao, category_dao, tx_dao, budget_dao, goal_dao,
        bill_dao, loan_dao, plan_dao, tax_rule_dao, notifier,
    )

    # ── Preferences ──────────────────────────────────────────────────────────
    ctk.set_appearance_mode(db.get_setting("appearance_mode", "system"))
    ctk.set_default_color_theme("blue")
    try:
        alert_threshold = float(db.get_setting("budget_alert_threshold", str(BUDGET_ALERT_THRESHOLD)))
    except ValueError:
        alert_threshold = BUDGET_ALERT_THRESHOLD
    currency_symbol = db.get_setting("currency_symbol", "$")

    # ── Launch UI ────────────────────────────────────────────────────────────
    boundary = CallBoundary()
    app = AppWindow(
        db=db,
        account_service=account_svc,
        tx_service=tx_svc,
        category_service=category_svc,
        budget_service=budget_svc,
        bill_service=bill_svc,
        runway_service=runway_svc,
        import_service=import_svc,
        data_service=data_svc,
        notifier=notifier,
        boundary=boundary,
        profile=profile,
        alert_threshold=alert_threshold,
        currency_symbol=currency_symbol,
    )

    def on_close():
        app.destroy()
        boundary.shutdown(wait=True)
        db.close()
        logger.info("Shut down")

    app.protocol("WM_DELETE_WINDOW", on_close)
    app.mainloop()


if __name__ == "__main__":
    main()
