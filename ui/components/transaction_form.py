import customtkinter as ctk
from services.transaction_service import TransactionService
from services.call_boundary import CallBoundary
from models.account import Account
from models.category import Category
from ui.components.confirm_dialog import center_on_master
from ui.components.deferred import run_deferred
from utils.date_helpers import today_str


class TransactionForm(ctk.CTkToplevel):
    """Add an income, expense or transfer.

    Accounts and categories are fetched by the caller and passed in so the
    form itself never touches the database on the Tk thread.
    """

    _last_date: str = today_str()

    def __init__(
        self,
        master,
        tx_service: TransactionService,
        boundary: CallBoundary,
        accounts: list[Account],
        categories: list[Category],
        initial_type: str = "expense",
        **kwargs,
    ):
        super().__init__(master, **kwargs)
        self._tx_svc = tx_service
        self._boundary = boundary
        self._accounts = accounts
        self._all_categories = categories
        self._cats: list[Category] = []
        self.saved = False

        self.title("Add Transaction")
        self.resizable(False, False)
        self.grid_columnconfigure(1, weight=1)

        account_names = [a.name for a in accounts]
        r = 0

        self._label("Type:", r)
        self._type_var = ctk.StringVar(value=initial_type)
        ctk.CTkSegmentedButton(
            self, values=["income", "expense", "transfer"],
            variable=self._type_var, command=lambda _: self._on_type_change(),
        ).grid(row=r, column=1, padx=(0, 16), pady=(16, 4), sticky="w")
        r += 1

        self._label("Account:", r)
        self._account_var = ctk.StringVar(value=account_names[0] if account_names else "")
        ctk.CTkComboBox(
            self, values=account_names, variable=self._account_var,
            width=220, state="readonly",
        ).grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        r += 1

        self._to_label = ctk.CTkLabel(self, text="To Account:")
        self._to_label.grid(row=r, column=0, padx=(16, 8), pady=4, sticky="e")
        self._to_var = ctk.StringVar(value=account_names[1] if len(account_names) > 1 else "")
        self._to_combo = ctk.CTkComboBox(
            self, values=account_names, variable=self._to_var,
            width=220, state="readonly",
        )
        self._to_combo.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        r += 1

        self._cat_label = ctk.CTkLabel(self, text="Category:")
        self._cat_label.grid(row=r, column=0, padx=(16, 8), pady=4, sticky="e")
        self._cat_var = ctk.StringVar()
        self._cat_combo = ctk.CTkComboBox(
            self, values=[], variable=self._cat_var, width=220, state="readonly"
        )
        self._cat_combo.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        r += 1

        self._amount_var = ctk.StringVar()
        self._date_var = ctk.StringVar(value=TransactionForm._last_date)
        self._merchant_var = ctk.StringVar()
        self._notes_var = ctk.StringVar()
        for text, var in (
            ("Amount:", self._amount_var),
            ("Date (YYYY-MM-DD):", self._date_var),
            ("Merchant:", self._merchant_var),
            ("Notes:", self._notes_var),
        ):
            self._label(text, r)
            ctk.CTkEntry(self, textvariable=var, width=220).grid(
                row=r, column=1, padx=(0, 16), pady=4, sticky="ew"
            )
            r += 1

        self._error_var = ctk.StringVar()
        ctk.CTkLabel(
            self, textvariable=self._error_var,
            text_color="#F44336", wraplength=300, anchor="w"
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
        self._save_btn = ctk.CTkButton(btn_frame, text="Save", width=110, command=self._on_save)
        self._save_btn.pack(side="right")

        self._on_type_change()
        self.transient(master)
        self.grab_set()
        center_on_master(self)

    def _label(self, text, row):
        ctk.CTkLabel(self, text=text).grid(
            row=row, column=0, padx=(16, 8), pady=4, sticky="e"
        )

    def _on_type_change(self):
        is_transfer = self._type_var.get() == "transfer"
        for w in (self._to_label, self._to_combo):
            w.grid() if is_transfer else w.grid_remove()
        for w in (self._cat_label, self._cat_combo):
            w.grid_remove() if is_transfer else w.grid()
        if not is_transfer:
            self._cats = [c for c in self._all_categories if c.type == self._type_var.get()]
            names = [c.name for c in self._cats]
            self._cat_combo.configure(values=names)
            self._cat_var.set(names[0] if names else "")

    def _account_id(self, name: str) -> str | None:
        acct = next((a for a in self._accounts if a.name == name), None)
        return acct.id if acct else None

    def _on_save(self):
        try:
            amount = float(self._amount_var.get())
        except ValueError:
            self._error_var.set("Invalid amount.")
            return

        type_ = self._type_var.get()
        account_id = self._account_id(self._account_var.get())
        if not account_id:
            self._error_var.set("Please select an account.")
            return
        to_account_id = None
        category_id = None
        if type_ == "transfer":
            to_account_id = self._account_id(self._to_var.get())
        else:
            cat = next((c for c in self._cats if c.name == self._cat_var.get()), None)
            if not cat:
                self._error_var.set("Please select a category.")
                return
            category_id = cat.id

        self._save_btn.configure(state="disabled")
        run_deferred(
            self, self._boundary, self._tx_svc.create,
            account_id, type_, amount, self._date_var.get(), category_id, to_account_id,
            self._merchant_var.get().strip(), self._notes_var.get().strip(),
            on_done=self._done, on_error=self._failed,
        )

    def _done(self, _tx):
        TransactionForm._last_date = self._date_var.get()
        self.saved = True
        self.destroy()

    def _failed(self, error: Exception):
        self._save_btn.configure(state="normal")
        self._error_var.set(str(error))
