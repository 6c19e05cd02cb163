import customtkinter as ctk
from services.account_service import AccountService
from services.call_boundary import CallBoundary
from models.account import Account, ACCOUNT_TYPE_LABELS
from ui.components.confirm_dialog import ConfirmDialog, center_on_master
from ui.components.deferred import run_deferred


class AccountForm(ctk.CTkToplevel):
    """Add or edit an account. Sets self.saved = True on success."""

    _TYPE_OPTIONS = list(ACCOUNT_TYPE_LABELS.values())
    _LABEL_TO_KEY = {v: k for k, v in ACCOUNT_TYPE_LABELS.items()}

    def __init__(
        self,
        master,
        account_service: AccountService,
        boundary: CallBoundary,
        account: Account | None = None,
        **kwargs,
    ):
        super().__init__(master, **kwargs)
        self._svc = account_service
        self._boundary = boundary
        self._account = account
        self.saved = False

        self.title("Edit Account" if account else "New Account")
        self.resizable(False, False)
        self.grid_columnconfigure(1, weight=1)

        ctk.CTkLabel(self, text="Name:").grid(
            row=0, column=0, padx=(16, 8), pady=(16, 4), sticky="e"
        )
        self._name_var = ctk.StringVar(value=account.name if account else "")
        self._name_entry = ctk.CTkEntry(self, textvariable=self._name_var, width=240)
        self._name_entry.grid(row=0, column=1, padx=(0, 16), pady=(16, 4), sticky="ew")

        ctk.CTkLabel(self, text="Account Type:").grid(
            row=1, column=0, padx=(16, 8), pady=4, sticky="e"
        )
        self._type_var = ctk.StringVar(
            value=ACCOUNT_TYPE_LABELS.get(account.type if account else "checking", "Checking")
        )
        ctk.CTkComboBox(
            self, values=self._TYPE_OPTIONS, variable=self._type_var,
            width=240, state="readonly",
        ).grid(row=1, column=1, padx=(0, 16), pady=4, sticky="ew")

        ctk.CTkLabel(self, text="Currency:").grid(
            row=2, column=0, padx=(16, 8), pady=4, sticky="e"
        )
        self._currency_var = ctk.StringVar(value=account.currency if account else "USD")
        ctk.CTkEntry(self, textvariable=self._currency_var, width=240).grid(
            row=2, column=1, padx=(0, 16), pady=4, sticky="ew"
        )

        ctk.CTkLabel(self, text="Starting Balance:").grid(
            row=3, column=0, padx=(16, 8), pady=4, sticky="e"
        )
        self._balance_var = ctk.StringVar(
            value=f"{account.initial_balance:.2f}" if account else "0.00"
        )
        ctk.CTkEntry(self, textvariable=self._balance_var, width=240).grid(
            row=3, column=1, padx=(0, 16), pady=4, sticky="ew"
        )

        self._error_var = ctk.StringVar()
        ctk.CTkLabel(
            self, textvariable=self._error_var, text_color="#F44336",
            wraplength=280, anchor="w"
        ).grid(row=4, column=0, columnspan=2, padx=16, pady=(0, 4), sticky="ew")

        btn_frame = ctk.CTkFrame(self, fg_color="transparent")
        btn_frame.grid(row=5, column=0, columnspan=2, padx=16, pady=(4, 16), sticky="ew")

        ctk.CTkButton(
            btn_frame, text="Cancel", width=90,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self.destroy,
        ).pack(side="left")

        if account:
            ctk.CTkButton(
                btn_frame, text="Delete Account", width=110,
                fg_color="#F44336", hover_color="#D32F2F",
                command=self._on_delete_click,
            ).pack(side="left", padx=8)

        self._save_btn = ctk.CTkButton(btn_frame, text="Save", width=90, command=self._on_save)
        self._save_btn.pack(side="right")

        self.transient(master)
        self.grab_set()
        center_on_master(self)
        self._name_entry.focus_set()

    def _on_save(self):
        try:
            balance = float(self._balance_var.get() or 0)
        except ValueError:
            self._error_var.set("Starting balance must be a number.")
            return
        account_type = self._LABEL_TO_KEY.get(self._type_var.get(), "checking")
        args = (self._name_var.get(), account_type, self._currency_var.get(), balance)
        self._save_btn.configure(state="disabled")
        if self._account:
            run_deferred(self, self._boundary, self._svc.update, self._account.id, *args,
                         on_done=self._done, on_error=self._failed)
        else:
            run_deferred(self, self._boundary, self._svc.create, *args,
                         on_done=self._done, on_error=self._failed)

    def _on_delete_click(self):
        dlg = ConfirmDialog(
            self, "Delete Account",
            f"Delete '{self._account.name}' and all of its transactions?",
            confirm_text="Delete",
        )
        if dlg.result:
            run_deferred(self, self._boundary, self._svc.delete, self._account.id,
                         on_done=self._done, on_error=self._failed)

    def _done(self, _result):
        self.saved = True
        self.destroy()

    def _failed(self, error: Exception):
        self._save_btn.configure(state="normal")
        self._error_var.set(str(error))
