from pathlib import Path

import customtkinter as ctk
from tkinter import filedialog, messagebox

from database.db_manager import DatabaseManager
from services.call_boundary import CallBoundary
from services.data_service import DataService, CSV_KINDS
from services.import_service import ImportService, IMPORT_KINDS, SUPPORTED_EXTENSIONS
from ui.components.confirm_dialog import ConfirmDialog
from ui.components.deferred import run_deferred
from ui.components.import_preview_dialog import ImportPreviewDialog
from utils.date_helpers import today_str

_APPEARANCE_OPTIONS = ["System", "Light", "Dark"]


class ImportExportTab(ctk.CTkFrame):
    """Spreadsheet import with preview, CSV export, ZIP backup and restore, preferences."""

    def __init__(
        self,
        master,
        db: DatabaseManager,
        import_service: ImportService,
        data_service: DataService,
        boundary: CallBoundary,
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._db = db
        self._import_svc = import_service
        self._data_svc = data_service
        self._boundary = boundary

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(0, weight=1)

        scroll = ctk.CTkScrollableFrame(self, fg_color="transparent")
        scroll.grid(row=0, column=0, sticky="nsew")
        scroll.grid_columnconfigure(0, weight=1)

        self._build_import_section(scroll)
        self._build_export_section(scroll)
        self._build_backup_section(scroll)
        self._build_app_settings_section(scroll)
        self.refresh()

    def refresh(self):
        run_deferred(self, self._boundary, self._db.get_setting, "appearance_mode", "system",
                     on_done=lambda mode: self._appearance_var.set(mode.title()))

    # ── Import ────────────────────────────────────────────────────────────────

    def _build_import_section(self, parent):
        section = self._make_section(parent, "Import", row=0)

        row = ctk.CTkFrame(section, fg_color="transparent")
        row.grid(row=0, column=0, sticky="w", padx=8, pady=6)

        self._import_kind_var = ctk.StringVar(value="transactions")
        ctk.CTkSegmentedButton(
            row, values=list(IMPORT_KINDS), variable=self._import_kind_var,
        ).pack(side="left", padx=4)

        ctk.CTkButton(
            row, text="Choose File & Preview…", width=170,
            command=self._choose_import_file,
        ).pack(side="left", padx=4)

        ctk.CTkButton(
            row, text="Save Template…", width=130,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self._save_template,
        ).pack(side="left", padx=4)

        ctk.CTkLabel(
            section,
            text="CSV, Excel (.xlsx) and Word (.docx) tables are read. "
                 "Rows match existing records by their id column.",
            text_color="gray60", font=ctk.CTkFont(size=11), anchor="w",
        ).grid(row=1, column=0, sticky="w", padx=12)

        self._import_status_var = ctk.StringVar()
        ctk.CTkLabel(
            section, textvariable=self._import_status_var,
            font=ctk.CTkFont(size=11), anchor="w",
        ).grid(row=2, column=0, sticky="w", padx=12, pady=(0, 6))

    def _choose_import_file(self):
        patterns = " ".join(f"*{ext}" for ext in SUPPORTED_EXTENSIONS)
        path = filedialog.askopenfilename(
            title="Import file",
            filetypes=[("Spreadsheets", patterns), ("All files", "*.*")],
        )
        if not path:
            return
        self._import_status_var.set(f"Reading {Path(path).name}…")
        run_deferred(
            self, self._boundary, self._import_svc.preview, self._import_kind_var.get(), path,
            on_done=self._show_preview,
            on_error=lambda e: self._fail(self._import_status_var, "Import Failed", e),
        )

    def _show_preview(self, preview):
        self._import_status_var.set("")
        dlg = ImportPreviewDialog(
            self.winfo_toplevel(), preview, self._import_svc, self._boundary
        )
        self.wait_window(dlg)
        if dlg.result and dlg.result.applied:
            r = dlg.result
            self._import_status_var.set(
                f"Imported {preview.source_name}: {r.success} added, "
                f"{r.updated} updated, {r.failed} failed."
            )

    def _save_template(self):
        kind = self._import_kind_var.get()
        path = filedialog.asksaveasfilename(
            title="Save import template",
            defaultextension=".csv",
            initialfile=f"{kind}_template.csv",
            filetypes=[("CSV files", "*.csv")],
        )
        if not path:
            return
        run_deferred(
            self, self._boundary, self._data_svc.write_template, kind, path,
            on_done=lambda _: self._import_status_var.set(f"Template saved to {Path(path).name}"),
            on_error=lambda e: self._fail(self._import_status_var, "Export Failed", e),
        )

    # ── Export ────────────────────────────────────────────────────────────────

    def _build_export_section(self, parent):
        section = self._make_section(parent, "Export", row=1)

        row = ctk.CTkFrame(section, fg_color="transparent")
        row.grid(row=0, column=0, sticky="w", padx=8, pady=6)

        self._export_kind_var = ctk.StringVar(value="transactions")
        ctk.CTkComboBox(
            row, values=list(CSV_KINDS), variable=self._export_kind_var,
            width=150, state="readonly",
        ).pack(side="left", padx=4)
        ctk.CTkButton(row, text="Export CSV…", width=120, command=self._export_csv).pack(
            side="left", padx=4
        )
        ctk.CTkButton(
            row, text="Export All to Folder…", width=160,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self._export_folder,
        ).pack(side="left", padx=4)

        self._export_status_var = ctk.StringVar()
        ctk.CTkLabel(
            section, textvariable=self._export_status_var,
            text_color="#4CAF50", font=ctk.CTkFont(size=11), anchor="w",
        ).grid(row=1, column=0, sticky="w", padx=12, pady=(0, 6))

    def _export_csv(self):
        kind = self._export_kind_var.get()
        path = filedialog.asksaveasfilename(
            title="Export CSV",
            defaultextension=".csv",
            initialfile=f"{kind}_export_{today_str()}.csv",
            filetypes=[("CSV files", "*.csv")],
        )
        if not path:
            return
        run_deferred(
            self, self._boundary, self._data_svc.export_csv, kind, path,
            on_done=lambda n: self._export_status_var.set(f"Exported {n} {kind} row(s)."),
            on_error=lambda e: self._fail(self._export_status_var, "Export Failed", e),
        )

    def _export_folder(self):
        folder = filedialog.askdirectory(title="Export all to folder")
        if not folder:
            return
        run_deferred(
            self, self._boundary, self._data_svc.export_csv_folder, folder,
            on_done=lambda paths: self._export_status_var.set(
                f"Wrote {len(paths)} CSV file(s) to {folder}"
            ),
            on_error=lambda e: self._fail(self._export_status_var, "Export Failed", e),
        )

    # ── Backup ────────────────────────────────────────────────────────────────

    def _build_backup_section(self, parent):
        section = self._make_section(parent, "Backup & Restore", row=2)

        row = ctk.CTkFrame(section, fg_color="transparent")
        row.grid(row=0, column=0, sticky="w", padx=8, pady=6)

        ctk.CTkButton(row, text="Create Backup…", width=130, command=self._backup).pack(
            side="left", padx=4
        )
        ctk.CTkButton(
            row, text="Backup & Reset…", width=130,
            fg_color="#F44336", hover_color="#D32F2F",
            command=self._backup_and_reset,
        ).pack(side="left", padx=4)
        ctk.CTkButton(
            row, text="Restore Backup…", width=130,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self._restore,
        ).pack(side="left", padx=4)

        self._backup_status_var = ctk.StringVar()
        ctk.CTkLabel(
            section, textvariable=self._backup_status_var,
            text_color="#4CAF50", font=ctk.CTkFont(size=11), anchor="w",
        ).grid(row=1, column=0, sticky="w", padx=12, pady=(0, 6))

    def _ask_backup_path(self) -> str:
        return filedialog.asksaveasfilename(
            title="Save backup",
            defaultextension=".zip",
            initialfile=f"finance_backup_{today_str()}.zip",
            filetypes=[("ZIP archives", "*.zip")],
        )

    def _backup(self):
        path = self._ask_backup_path()
        if path:
            self._run_backup(path, reset_after=False)

    def _backup_and_reset(self):
        dlg = ConfirmDialog(
            self.winfo_toplevel(), "Backup & Reset",
            "Write a backup, then delete all data and start fresh?",
            confirm_text="Backup & Reset",
        )
        if not dlg.result:
            return
        path = self._ask_backup_path()
        if path:
            self._run_backup(path, reset_after=True)

    def _run_backup(self, path: str, reset_after: bool):
        def done(counts):
            total = sum(counts.values())
            suffix = " Data reset." if reset_after else ""
            self._backup_status_var.set(f"Backed up {total} row(s) to {Path(path).name}.{suffix}")

        run_deferred(
            self, self._boundary, self._data_svc.export_backup, path, reset_after,
            on_done=done,
            on_error=lambda e: self._fail(self._backup_status_var, "Backup Failed", e),
        )

    def _restore(self):
        path = filedialog.askopenfilename(
            title="Restore backup",
            filetypes=[("ZIP archives", "*.zip"), ("All files", "*.*")],
        )
        if not path:
            return
        dlg = ConfirmDialog(
            self.winfo_toplevel(), "Restore Backup",
            f"Replace all current data with the contents of {Path(path).name}?",
            confirm_text="Restore",
        )
        if not dlg.result:
            return
        run_deferred(
            self, self._boundary, self._data_svc.restore_backup, path,
            on_done=lambda counts: self._backup_status_var.set(
                f"Restored {sum(counts.values())} row(s) from {Path(path).name}."
            ),
            on_error=lambda e: self._fail(self._backup_status_var, "Restore Failed", e),
        )

    # ── Preferences ───────────────────────────────────────────────────────────

    def _build_app_settings_section(self, parent):
        section = self._make_section(parent, "Preferences", row=3)
        row = ctk.CTkFrame(section, fg_color="transparent")
        row.grid(row=0, column=0, sticky="w", padx=8, pady=6)

        ctk.CTkLabel(row, text="Appearance:").pack(side="left", padx=(4, 8))
        self._appearance_var = ctk.StringVar(value="System")
        ctk.CTkSegmentedButton(
            row, values=_APPEARANCE_OPTIONS, variable=self._appearance_var,
            command=self._on_appearance_change,
        ).pack(side="left")

    def _on_appearance_change(self, value: str):
        ctk.set_appearance_mode(value.lower())
        run_deferred(self, self._boundary, self._db.set_setting, "appearance_mode", value.lower())

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _fail(self, status_var: ctk.StringVar, title: str, error: Exception):
        status_var.set("")
        messagebox.showerror(title, str(error))

    def _make_section(self, parent, title: str, row: int) -> ctk.CTkFrame:
        """Create a labelled card section and return its inner frame."""
        outer = ctk.CTkFrame(parent, corner_radius=8)
        outer.grid(row=row, column=0, sticky="ew", padx=12, pady=8)
        outer.grid_columnconfigure(0, weight=1)

        ctk.CTkLabel(
            outer,
            text=title,
            font=ctk.CTkFont(size=14, weight="bold"),
            anchor="w",
        ).grid(row=0, column=0, sticky="w", padx=12, pady=(10, 4))

        inner = ctk.CTkFrame(outer, fg_color="transparent")
        inner.grid(row=1, column=0, sticky="ew", padx=4, pady=(0, 8))
        inner.grid_columnconfigure(0, weight=1)
        return inner
