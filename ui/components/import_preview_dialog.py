import customtkinter as ctk
from models.import_preview import ImportPreview, ImportResult
from services.call_boundary import CallBoundary
from services.import_service import ImportService
from ui.components.confirm_dialog import center_on_master
from ui.components.deferred import run_deferred
from utils.constants import IMPORT_STATUS_COLORS

_MAX_CELL = 28


class ImportPreviewDialog(ctk.CTkToplevel):
    """Shows what an import would add, update or reject before anything is written.

    Apply stays disabled while any row is in error. self.result holds the
    ImportResult once applied.
    """

    def __init__(
        self,
        master,
        preview: ImportPreview,
        import_service: ImportService,
        boundary: CallBoundary,
        **kwargs,
    ):
        super().__init__(master, **kwargs)
        self._preview = preview
        self._svc = import_service
        self._boundary = boundary
        self.result: ImportResult | None = None

        self.title(f"Import Preview: {preview.source_name or preview.kind}")
        self.geometry("860x520")
        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=1)

        self._build_summary()
        self._build_table()
        self._build_buttons()

        self.transient(master)
        self.grab_set()
        center_on_master(self)

    def _build_summary(self):
        p = self._preview
        top = ctk.CTkFrame(self, fg_color="transparent")
        top.grid(row=0, column=0, sticky="ew", padx=16, pady=(12, 4))

        for text, color in (
            (f"{p.added} to add", IMPORT_STATUS_COLORS["add"]),
            (f"{p.updated} to update", IMPORT_STATUS_COLORS["update"]),
            (f"{p.errors} error(s)", IMPORT_STATUS_COLORS["error"]),
        ):
            ctk.CTkLabel(
                top, text=text, text_color=color,
                font=ctk.CTkFont(size=13, weight="bold"),
            ).pack(side="left", padx=(0, 16))

        if p.unknown_headers:
            ctk.CTkLabel(
                top, text=f"Ignored columns: {', '.join(p.unknown_headers)}",
                text_color="gray60",
            ).pack(side="left")

    def _build_table(self):
        scroll = ctk.CTkScrollableFrame(self)
        scroll.grid(row=1, column=0, sticky="nsew", padx=12, pady=4)
        scroll.grid_columnconfigure(2, weight=1)

        header = ("Row", "Status", "Details")
        for col, text in enumerate(header):
            ctk.CTkLabel(
                scroll, text=text, font=ctk.CTkFont(weight="bold"), anchor="w",
            ).grid(row=0, column=col, padx=6, pady=(0, 4), sticky="w")

        if not self._preview.rows:
            ctk.CTkLabel(scroll, text="The file has no data rows.", text_color="gray60").grid(
                row=1, column=0, columnspan=3, pady=20
            )
            return

        for idx, row in enumerate(self._preview.rows, start=1):
            color = IMPORT_STATUS_COLORS.get(row.status, "gray60")
            ctk.CTkLabel(scroll, text=str(row.row_num), anchor="w").grid(
                row=idx, column=0, padx=6, pady=1, sticky="nw"
            )
            ctk.CTkLabel(scroll, text=row.status.upper(), text_color=color, anchor="w").grid(
                row=idx, column=1, padx=6, pady=1, sticky="nw"
            )
            ctk.CTkLabel(
                scroll, text=self._details(row), anchor="w", justify="left",
                text_color=color if row.status == "error" else None,
                wraplength=620,
            ).grid(row=idx, column=2, padx=6, pady=1, sticky="w")

    def _details(self, row) -> str:
        if row.status == "error":
            return "; ".join(row.errors)
        if row.status == "update":
            return "\n".join(row.changes) or f"{row.record_id}: no changes"
        values = [v for v in (row.data.get(c) for c in self._preview.headers) if v]
        text = ", ".join(values)
        return text if len(text) <= _MAX_CELL * 3 else text[: _MAX_CELL * 3 - 1] + "…"

    def _build_buttons(self):
        btn_frame = ctk.CTkFrame(self, fg_color="transparent")
        btn_frame.grid(row=2, column=0, sticky="ew", padx=16, pady=(4, 12))

        self._status_var = ctk.StringVar(
            value="" if self._preview.can_apply else "Fix the rows in error, then preview again."
        )
        ctk.CTkLabel(btn_frame, textvariable=self._status_var, text_color="gray60").pack(side="left")

        self._apply_btn = ctk.CTkButton(
            btn_frame, text="Apply", width=100, command=self._on_apply,
            state="normal" if self._preview.can_apply else "disabled",
        )
        self._apply_btn.pack(side="right")
        self._cancel_btn = ctk.CTkButton(
            btn_frame, text="Cancel", width=90,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self.destroy,
        )
        self._cancel_btn.pack(side="right", padx=8)

    def _on_apply(self):
        self._apply_btn.configure(state="disabled")
        self._status_var.set("Importing…")
        run_deferred(self, self._boundary, self._svc.apply, self._preview,
                     on_done=self._on_applied, on_error=self._on_failed)

    def _on_applied(self, result: ImportResult):
        self.result = result
        if not result.applied:
            self._status_var.set("; ".join(result.errors))
            return
        msg = f"{result.success} added, {result.updated} updated, {result.failed} failed."
        if result.errors:
            msg += " " + "; ".join(result.errors[:3])
        self._status_var.set(msg)
        self._cancel_btn.configure(text="Close")

    def _on_failed(self, error: Exception):
        self._status_var.set(f"Import failed: {error}")
        self._apply_btn.configure(state="normal")
