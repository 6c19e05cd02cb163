import customtkinter as ctk
from services.account_service import AccountService
from services.transaction_service import TransactionService
from services.budget_service import BudgetService
from services.bill_service import BillService
from services.call_boundary import CallBoundary
from ui.components.deferred import run_deferred
from utils.constants import BUDGET_ALERT_THRESHOLD
from utils.currency import format_currency


class DashboardTab(ctk.CTkFrame):
    def __init__(
        self,
        master,
        account_service: AccountService,
        tx_service: TransactionService,
        budget_service: BudgetService,
        bill_service: BillService,
        boundary: CallBoundary,
        alert_threshold: float = BUDGET_ALERT_THRESHOLD,
        currency_symbol: str = "$",
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._account_svc = account_service
        self._tx_svc = tx_service
        self._budget_svc = budget_service
        self._bill_svc = bill_service
        self._boundary = boundary
        self._alert_threshold = alert_threshold
        self._symbol = currency_symbol
        self._load_gen = 0

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=1)

        self._card_frame = ctk.CTkFrame(self, fg_color="transparent")
        self._card_frame.grid(row=0, column=0, sticky="ew", padx=16, pady=12)
        self._card_frame.grid_columnconfigure((0, 1, 2, 3), weight=1)

        self._build_bottom_section()
        self._load()

    def refresh(self):
        self._load()

    def _build_bottom_section(self):
        bottom = ctk.CTkFrame(self, fg_color="transparent")
        bottom.grid(row=1, column=0, sticky="nsew", padx=16, pady=(0, 12))
        bottom.grid_columnconfigure((0, 1), weight=1)
        bottom.grid_rowconfigure((0, 1), weight=1)

        self._accounts_frame = ctk.CTkScrollableFrame(bottom, label_text="Accounts", height=180)
        self._accounts_frame.grid(row=0, column=0, sticky="nsew", padx=(0, 8), pady=(0, 8))

        self._recent_frame = ctk.CTkScrollableFrame(
            bottom, label_text="Recent Transactions", height=180
        )
        self._recent_frame.grid(row=0, column=1, sticky="nsew", padx=(8, 0), pady=(0, 8))

        self._bills_frame = ctk.CTkScrollableFrame(bottom, label_text="Upcoming Bills", height=180)
        self._bills_frame.grid(row=1, column=0, sticky="nsew", padx=(0, 8))

        self._alerts_frame = ctk.CTkScrollableFrame(bottom, label_text="Budget Alerts", height=180)
        self._alerts_frame.grid(row=1, column=1, sticky="nsew", padx=(8, 0))

    def _load(self):
        self._load_gen += 1
        gen = self._load_gen
        run_deferred(self, self._boundary, self._snapshot,
                     on_done=lambda snap: self._render(snap, gen))

    def _snapshot(self) -> dict:
        """Runs on the worker thread."""
        accounts = self._account_svc.get_all()
        balances = self._account_svc.get_balances()
        return {
            "accounts": [(a.name, balances.get(a.id, 0.0)) for a in accounts],
            "total": sum(balances.values()),
            "totals": self._tx_svc.get_totals(),
            "recent": self._tx_svc.get_all()[:10],
            "bills": self._bill_svc.get_upcoming(),
            "alerts": self._budget_svc.get_alerts(threshold=self._alert_threshold),
        }

    def _render(self, snap: dict, gen: int):
        if gen != self._load_gen:
            return

        for w in self._card_frame.winfo_children():
            w.destroy()
        totals = snap["totals"]
        card_data = [
            ("Total Balance", snap["total"],     "#2196F3" if snap["total"] >= 0 else "#FF9800"),
            ("Income",        totals["income"],  "#4CAF50"),
            ("Expenses",      totals["expense"], "#F44336"),
            ("Net",           totals["net"],     "#2196F3" if totals["net"] >= 0 else "#FF9800"),
        ]
        for i, (label, value, color) in enumerate(card_data):
            self._make_card(self._card_frame, i, label, value, color)

        self._fill_rows(
            self._accounts_frame,
            [(name, format_currency(bal, self._symbol), "#4CAF50" if bal >= 0 else "#F44336")
             for name, bal in snap["accounts"]],
            "No accounts yet.",
        )

        recent_rows = []
        for tx in snap["recent"]:
            if tx.is_transfer:
                color, sign = "#2196F3", "~"
            elif tx.type == "income":
                color, sign = "#4CAF50", "+"
            else:
                color, sign = "#F44336", "-"
            label = tx.merchant or tx.category_name or tx.type.capitalize()
            recent_rows.append((f"{tx.date}  {label}", f"{sign}{format_currency(tx.amount, self._symbol)}", color))
        self._fill_rows(self._recent_frame, recent_rows, "No transactions yet.")

        self._fill_rows(
            self._bills_frame,
            [(f"{b.next_due_date}  {b.name}", format_currency(b.amount, self._symbol), "#FF9800")
             for b in snap["bills"]],
            "Nothing due in the next week.",
        )

        self._fill_rows(
            self._alerts_frame,
            [(b.category_name,
              f"{b.percentage:.0%} of {format_currency(b.limit_amount, self._symbol)} ({b.period})",
              "#F44336" if b.is_exceeded else "#FF9800")
             for b in snap["alerts"]],
            "All budgets on track.",
        )

    @staticmethod
    def _fill_rows(frame, rows, empty_text):
        for w in frame.winfo_children():
            w.destroy()
        if not rows:
            ctk.CTkLabel(frame, text=empty_text, text_color="gray60").pack(pady=20)
            return
        for idx, (left, right, color) in enumerate(rows):
            bg = ("gray90", "gray20") if idx % 2 == 0 else ("gray86", "gray24")
            f = ctk.CTkFrame(frame, fg_color=bg, corner_radius=4)
            f.pack(fill="x", pady=1)
            f.grid_columnconfigure(0, weight=1)
            ctk.CTkLabel(f, text=left, anchor="w").grid(row=0, column=0, padx=6, pady=3, sticky="ew")
            ctk.CTkLabel(f, text=right, text_color=color, anchor="e").grid(row=0, column=1, padx=6)

    def _make_card(self, parent, col, label, value, color):
        card = ctk.CTkFrame(parent, fg_color=("gray90", "gray20"), corner_radius=10)
        card.grid(row=0, column=col, padx=6, sticky="ew")
        card.grid_columnconfigure(0, weight=1)
        ctk.CTkLabel(
            card, text=label, font=ctk.CTkFont(size=12),
            text_color="gray60",
        ).grid(row=0, column=0, pady=(12, 0), padx=16)
        ctk.CTkLabel(
            card,
            text=format_currency(value, self._symbol),
            font=ctk.CTkFont(size=20, weight="bold"),
            text_color=color,
        ).grid(row=1, column=0, pady=(4, 12), padx=16)
