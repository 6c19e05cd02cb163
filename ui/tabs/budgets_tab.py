import customtkinter as ctk
from services.budget_service import BudgetService
from services.call_boundary import CallBoundary
from ui.components.budget_form import BudgetForm
from ui.components.deferred import run_deferred
from utils.currency import format_currency
from utils.date_helpers import period_window


class BudgetsTab(ctk.CTkFrame):
    """Spending against each budget's current weekly, monthly or yearly window."""

    def __init__(
        self,
        master,
        budget_service: BudgetService,
        boundary: CallBoundary,
        currency_symbol: str = "$",
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._svc = budget_service
        self._boundary = boundary
        self._symbol = currency_symbol
        self._load_gen = 0

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=1)

        self._build_toolbar()
        self._build_list()
        self._load()

    def refresh(self):
        self._load()

    def _build_toolbar(self):
        bar = ctk.CTkFrame(self, fg_color=("gray88", "gray18"), corner_radius=8)
        bar.grid(row=0, column=0, sticky="ew", padx=8, pady=(8, 0))
        ctk.CTkButton(bar, text="+ Add Budget", command=self._open_add).pack(
            side="left", padx=8, pady=6
        )
        self._status_label = ctk.CTkLabel(bar, text="", text_color="gray60")
        self._status_label.pack(side="left", padx=8)

    def _build_list(self):
        self._scroll = ctk.CTkScrollableFrame(self)
        self._scroll.grid(row=1, column=0, sticky="nsew", padx=8, pady=8)
        self._scroll.grid_columnconfigure(0, weight=1)

    def _load(self):
        self._load_gen += 1
        gen = self._load_gen
        run_deferred(self, self._boundary, self._svc.get_budget_status,
                     on_done=lambda budgets: self._render(budgets, gen))

    def _render(self, budgets, gen):
        if gen != self._load_gen:
            return
        for w in self._scroll.winfo_children():
            w.destroy()

        if not budgets:
            self._status_label.configure(text="")
            ctk.CTkLabel(
                self._scroll,
                text="No budgets yet. Click '+ Add Budget' to create one.",
                text_color="gray60",
            ).grid(row=0, column=0, pady=40)
            return

        over = sum(1 for b in budgets if b.is_exceeded)
        self._status_label.configure(
            text=f"{len(budgets)} budget(s), {over} over limit" if over else f"{len(budgets)} budget(s)"
        )
        for idx, b in enumerate(budgets):
            self._add_budget_card(idx, b)

    def _add_budget_card(self, idx, b):
        card = ctk.CTkFrame(
            self._scroll, fg_color=("gray90", "gray20"), corner_radius=8
        )
        card.grid(row=idx, column=0, sticky="ew", padx=4, pady=4)
        card.grid_columnconfigure(0, weight=1)

        hdr = ctk.CTkFrame(card, fg_color="transparent")
        hdr.grid(row=0, column=0, sticky="ew", padx=12, pady=(10, 4))
        hdr.grid_columnconfigure(0, weight=1)

        start, end = period_window(b.period)
        ctk.CTkLabel(
            hdr, text=f"{b.category_name}  ·  {b.period} ({start} to {end})",
            font=ctk.CTkFont(size=13, weight="bold"), anchor="w",
        ).grid(row=0, column=0, sticky="w")

        pct = b.percentage
        pct_color = "#4CAF50" if pct < 0.8 else ("#FF9800" if pct < 1.0 else "#F44336")
        ctk.CTkLabel(hdr, text=f"{pct*100:.1f}%", text_color=pct_color).grid(
            row=0, column=1, padx=(8, 0)
        )

        ctk.CTkButton(
            hdr, text="Edit", width=50, height=24,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=lambda budget=b: self._open_form(budget),
        ).grid(row=0, column=2, padx=(8, 0))

        ctk.CTkLabel(
            card,
            text=f"Spent: {format_currency(b.spent_amount, self._symbol)}  /  Limit: {format_currency(b.limit_amount, self._symbol)}  |  Remaining: {format_currency(b.remaining, self._symbol)}",
            text_color="gray60", anchor="w",
        ).grid(row=1, column=0, padx=12, sticky="ew")

        bar = ctk.CTkProgressBar(card, progress_color=pct_color)
        bar.grid(row=2, column=0, padx=12, pady=(4, 10), sticky="ew")
        bar.set(min(pct, 1.0))

    def _open_add(self):
        self._open_form(None)

    def _open_form(self, budget):
        # Categories come off the worker first; the form opens once they arrive
        run_deferred(
            self, self._boundary, self._svc.get_expense_categories,
            on_done=lambda cats: self._show_form(cats, budget),
        )

    def _show_form(self, categories, budget):
        form = BudgetForm(
            self.winfo_toplevel(), self._svc, self._boundary, categories, budget=budget
        )
        self.wait_window(form)
