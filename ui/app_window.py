import customtkinter as ctk
from loguru import logger

from models.account import Account, ACCOUNT_TYPE_LABELS
from database.db_manager import DatabaseManager
from services.account_service import AccountService
from services.transaction_service import TransactionService
from services.category_service import CategoryService
from services.budget_service import BudgetService
from services.bill_service import BillService
from services.runway_service import RunwayService
from services.import_service import ImportService
from services.data_service import DataService
from services.change_notifier import ChangeNotifier
from services.call_boundary import CallBoundary
from ui.components.account_form import AccountForm
from ui.components.alert_banner import AlertBanner
from ui.components.deferred import run_deferred
from ui.components.transaction_form import TransactionForm
from ui.tabs.dashboard_tab import DashboardTab
from ui.tabs.budgets_tab import BudgetsTab
from ui.tabs.runway_tab import RunwayTab
from ui.tabs.import_export_tab import ImportExportTab
from utils.constants import APP_NAME, APP_WIDTH, APP_HEIGHT, BUDGET_ALERT_THRESHOLD


_REFRESH_SCOPES: dict[str, set[str]] = {
    "account":     {"bar", "dashboard", "runway"},
    "transaction": {"dashboard", "budgets", "runway"},
    "category":    {"dashboard", "budgets"},
    "budget":      {"dashboard", "budgets"},
    "goal":        {"dashboard"},
    "bill":        {"dashboard"},
    "loan":        set(),
    "plan":        set(),
    "settings":    {"data"},
    "full":        {"bar", "dashboard", "budgets", "runway", "data"},
}


class AppWindow(ctk.CTk):
    def __init__(
        self,
        db: DatabaseManager,
        account_service: AccountService,
        tx_service: TransactionService,
        category_service: CategoryService,
        budget_service: BudgetService,
        bill_service: BillService,
        runway_service: RunwayService,
        import_service: ImportService,
        data_service: DataService,
        notifier: ChangeNotifier,
        boundary: CallBoundary,
        profile: str = "default",
        alert_threshold: float = BUDGET_ALERT_THRESHOLD,
        currency_symbol: str = "$",
        **kwargs,
    ):
        super().__init__(**kwargs)
        self._db = db
        self._acct_svc = account_service
        self._tx_svc = tx_service
        self._cat_svc = category_service
        self._budget_svc = budget_service
        self._bill_svc = bill_service
        self._runway_svc = runway_service
        self._import_svc = import_service
        self._data_svc = data_service
        self._boundary = boundary
        self._profile = profile
        self._alert_threshold = alert_threshold

        self.title(f"{APP_NAME} ({profile})")
        self.minsize(APP_WIDTH, APP_HEIGHT)
        self.geometry(f"{APP_WIDTH}x{APP_HEIGHT}")

        self._accounts: list[Account] = []
        self._current_account: Account | None = None

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(2, weight=1)

        self._build_account_bar()
        self._build_banner_area()
        self._build_tabs(alert_threshold, currency_symbol)

        # Notifications arrive on the worker thread
        self._unsubscribe = notifier.subscribe(
            lambda scope: self.after(0, lambda: self.notify_tabs_refresh(scope))
        )
        self._refresh_account_bar()
        self.after(300, self._check_budget_alerts)

    def destroy(self):
        self._unsubscribe()
        super().destroy()

    # ── Account bar ─────────────────────────────────────────────────────────
    def _build_account_bar(self):
        bar = ctk.CTkFrame(self, fg_color=("gray85", "gray15"), corner_radius=0, height=44)
        bar.grid(row=0, column=0, sticky="ew")
        bar.grid_propagate(False)

        ctk.CTkLabel(bar, text="Account:", anchor="e").pack(side="left", padx=(12, 4), pady=8)

        self._acct_combo_var = ctk.StringVar(value="")
        self._acct_combo = ctk.CTkComboBox(
            bar,
            values=[],
            variable=self._acct_combo_var,
            width=200,
            state="readonly",
            command=self.on_account_changed,
        )
        self._acct_combo.pack(side="left", padx=4)

        ctk.CTkButton(
            bar, text="+ New Account", width=110,
            command=self._open_new_account,
        ).pack(side="left", padx=4)

        ctk.CTkButton(
            bar, text="Edit Account", width=100,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self._open_edit_account,
        ).pack(side="left", padx=4)

        ctk.CTkButton(
            bar, text="+ Transaction", width=110,
            command=self._open_new_transaction,
        ).pack(side="left", padx=4)

        self._acct_type_label = ctk.CTkLabel(bar, text="", text_color="gray60", width=90)
        self._acct_type_label.pack(side="left", padx=(4, 8))

        ctk.CTkLabel(
            bar, text=f"Profile: {self._profile}", text_color="gray60",
        ).pack(side="right", padx=12)

    def _build_banner_area(self):
        self._banner_frame = ctk.CTkFrame(self, fg_color="transparent", height=0)
        self._banner_frame.grid(row=1, column=0, sticky="ew", padx=8)

    def _build_tabs(self, alert_threshold: float, currency_symbol: str):
        self._tabview = ctk.CTkTabview(self)
        self._tabview.grid(row=2, column=0, sticky="nsew", padx=8, pady=(0, 8))

        for tab_name in ("Dashboard", "Budgets", "Runway", "Import / Export"):
            self._tabview.add(tab_name)
            self._tabview.tab(tab_name).grid_columnconfigure(0, weight=1)
            self._tabview.tab(tab_name).grid_rowconfigure(0, weight=1)

        self._dashboard_tab = DashboardTab(
            self._tabview.tab("Dashboard"),
            account_service=self._acct_svc,
            tx_service=self._tx_svc,
            budget_service=self._budget_svc,
            bill_service=self._bill_svc,
            boundary=self._boundary,
            alert_threshold=alert_threshold,
            currency_symbol=currency_symbol,
        )
        self._dashboard_tab.grid(row=0, column=0, sticky="nsew")

        self._budgets_tab = BudgetsTab(
            self._tabview.tab("Budgets"),
            budget_service=self._budget_svc,
            boundary=self._boundary,
            currency_symbol=currency_symbol,
        )
        self._budgets_tab.grid(row=0, column=0, sticky="nsew")

        self._runway_tab = RunwayTab(
            self._tabview.tab("Runway"),
            runway_service=self._runway_svc,
            boundary=self._boundary,
        )
        self._runway_tab.grid(row=0, column=0, sticky="nsew")

        self._data_tab = ImportExportTab(
            self._tabview.tab("Import / Export"),
            db=self._db,
            import_service=self._import_svc,
            data_service=self._data_svc,
            boundary=self._boundary,
        )
        self._data_tab.grid(row=0, column=0, sticky="nsew")

    # ── Account management ───────────────────────────────────────────────────
    def on_account_changed(self, value=None):
        name = self._acct_combo_var.get()
        self._current_account = next(
            (a for a in self._accounts if a.name == name), None
        )
        self._update_acct_type_label()

    def _open_new_account(self):
        form = AccountForm(self, self._acct_svc, self._boundary)
        self.wait_window(form)

    def _open_edit_account(self):
        if not self._current_account:
            return
        form = AccountForm(self, self._acct_svc, self._boundary, account=self._current_account)
        self.wait_window(form)

    def _open_new_transaction(self):
        if not self._accounts:
            self._show_banner("Create an account before adding transactions.", "warning")
            return
        run_deferred(self, self._boundary, self._cat_svc.get_all,
                     on_done=self._show_transaction_form)

    def _show_transaction_form(self, categories):
        # Selected account first so it is the form's default
        accounts = sorted(self._accounts, key=lambda a: a is not self._current_account)
        form = TransactionForm(self, self._tx_svc, self._boundary, accounts, categories)
        self.wait_window(form)

    def _refresh_account_bar(self):
        run_deferred(self, self._boundary, self._acct_svc.get_all,
                     on_done=self._on_accounts_loaded)

    def _on_accounts_loaded(self, accounts: list[Account]):
        self._accounts = accounts
        names = [a.name for a in accounts]
        self._acct_combo.configure(values=names)
        if self._current_account:
            match = next((a for a in accounts if a.id == self._current_account.id), None)
            self._current_account = match or (accounts[0] if accounts else None)
        else:
            self._current_account = accounts[0] if accounts else None
        new_name = self._current_account.name if self._current_account else ""
        self._acct_combo_var.set(new_name)
        self._acct_combo.set(new_name)
        self._update_acct_type_label()

    def _update_acct_type_label(self):
        if self._current_account:
            label = ACCOUNT_TYPE_LABELS.get(self._current_account.type, "")
            self._acct_type_label.configure(text=f"[{label}]")
        else:
            self._acct_type_label.configure(text="")

    # ── Refresh ──────────────────────────────────────────────────────────────
    def notify_tabs_refresh(self, scope: str = "full"):
        tabs = _REFRESH_SCOPES.get(scope, _REFRESH_SCOPES["full"])
        logger.debug(f"Refreshing {sorted(tabs)} for '{scope}' change")
        if "bar"       in tabs: self._refresh_account_bar()
        if "dashboard" in tabs: self._dashboard_tab.refresh()
        if "budgets"   in tabs: self._budgets_tab.refresh()
        if "runway"    in tabs: self._runway_tab.refresh()
        if "data"      in tabs: self._data_tab.refresh()

    # ── Banners ──────────────────────────────────────────────────────────────
    def _show_banner(self, message: str, level: str = "info", action_text=None, action_cmd=None):
        for w in self._banner_frame.winfo_children():
            w.destroy()
        banner = AlertBanner(
            self._banner_frame,
            message=message,
            level=level,
            action_text=action_text,
            action_cmd=action_cmd,
            auto_hide_ms=8000,
        )
        banner.pack(fill="x", pady=2)

    def _check_budget_alerts(self):
        run_deferred(self, self._boundary, self._budget_svc.get_alerts, None, self._alert_threshold,
                     on_done=self._show_budget_alerts)

    def _show_budget_alerts(self, alerts):
        if not alerts:
            return
        over = sum(1 for b in alerts if b.is_exceeded)
        names = ", ".join(b.category_name for b in alerts[:3])
        self._show_banner(
            f"{len(alerts)} budget{'s' if len(alerts) != 1 else ''} near or over limit: {names}",
            level="error" if over else "warning",
            action_text="View",
            action_cmd=lambda: self._tabview.set("Budgets"),
        )
