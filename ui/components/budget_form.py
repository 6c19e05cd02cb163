import customtkinter as ctk
from services.budget_service import BudgetService
from services.call_boundary import CallBoundary
from models.budget import Budget
from models.category import Category
from ui.components.confirm_dialog import center_on_master
from ui.components.deferred import run_deferred
from utils.constants import BUDGET_PERIODS


class BudgetForm(ctk.CTkToplevel):
    """Add or edit a spending limit for one expense category."""

    def __init__(
        self,
        master,
        budget_service: BudgetService,
        boundary: CallBoundary,
        categories: list[Category],
        budget: Budget | None = None,
        **kwargs,
    ):
        super().__init__(master, **kwargs)
        self._svc = budget_service
        self._boundary = boundary
        self._budget = budget
        self._categories = categories
        self.saved = False

        self.title("Edit Budget" if budget else "New Budget")
        self.resizable(False, False)
        self.grid_columnconfigure(1, weight=1)

        cat_names = [c.name for c in categories]

        r = 0
        ctk.CTkLabel(self, text="Category:").grid(
            row=r, column=0, padx=(16, 8), pady=(16, 4), sticky="e"
        )
        current_cat = budget.category_name if budget else (cat_names[0] if cat_names else "")
        self._cat_var = ctk.StringVar(value=current_cat)
        ctk.CTkComboBox(
            self, values=cat_names, variable=self._cat_var,
            width=200, state="readonly",
        ).grid(row=r, column=1, padx=(0, 16), pady=(16, 4), sticky="ew")
        r += 1

        ctk.CTkLabel(self, text="Period:").grid(
            row=r, column=0, padx=(16, 8), pady=4, sticky="e"
        )
        self._period_var = ctk.StringVar(value=budget.period if budget else "monthly")
        ctk.CTkSegmentedButton(
            self, values=BUDGET_PERIODS, variable=self._period_var,
        ).grid(row=r, column=1, padx=(0, 16), pady=4, sticky="w")
        r += 1

        ctk.CTkLabel(self, text="Limit:").grid(
            row=r, column=0, padx=(16, 8), pady=4, sticky="e"
        )
        self._limit_var = ctk.StringVar(
            value=f"{budget.limit_amount:.2f}" if budget else ""
        )
        ctk.CTkEntry(self, textvariable=self._limit_var, width=200).grid(
            row=r, column=1, padx=(0, 16), pady=4, sticky="ew"
        )
        r += 1

        self._error_var = ctk.StringVar()
        ctk.CTkLabel(
            self, textvariable=self._error_var,
            text_color="#F44336", wraplength=280, anchor="w"
        ).grid(row=r, column=0, columnspan=2, padx=16, pady=(0, 4), sticky="ew")
        r += 1

        btn_frame = ctk.CTkFrame(self, fg_color="transparent")
        btn_frame.grid(row=r, column=0, columnspan=2, padx=16, pady=(4, 16), sticky="ew")
        ctk.CTkButton(
            btn_frame, text="Cancel", width=90,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self.destroy,
        ).pack(side="left")
        if budget:
            ctk.CTkButton(
                btn_frame, text="Delete", width=80,
                fg_color="#F44336", hover_color="#D32F2F",
                command=self._on_delete,
            ).pack(side="left", padx=8)
        ctk.CTkButton(btn_frame, text="Save", width=90, command=self._on_save).pack(side="right")

        self.transient(master)
        self.grab_set()
        center_on_master(self)

    def _on_save(self):
        try:
            limit = float(self._limit_var.get())
        except ValueError:
            self._error_var.set("Invalid amount.")
            return
        cat = next((c for c in self._categories if c.name == self._cat_var.get()), None)
        if not cat:
            self._error_var.set("Please select a category.")
            return
        period = self._period_var.get()
        if self._budget:
            run_deferred(self, self._boundary, self._svc.update,
                         self._budget.id, cat.id, period, limit,
                         on_done=self._done, on_error=self._failed)
        else:
            run_deferred(self, self._boundary, self._svc.create, cat.id, period, limit,
                         on_done=self._done, on_error=self._failed)

    def _on_delete(self):
        run_deferred(self, self._boundary, self._svc.delete, self._budget.id,
                     on_done=self._done, on_error=self._failed)

    def _done(self, _result):
        self.saved = True
        self.destroy()

    def _failed(self, error: Exception):
        self._error_var.set(str(error))
