import tkinter as tk
import customtkinter as ctk
from matplotlib.figure import Figure
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg

from models.runway import RunwayEstimate
from services.call_boundary import CallBoundary
from services.runway_service import RunwayService, BurnRateTracker
from ui.components.deferred import run_deferred
from utils.constants import RUNWAY_STATUS_COLORS
from utils.currency import format_currency, format_months
from utils.date_helpers import friendly_month

_WINDOW_OPTIONS = ["3", "6", "12"]


class RunwayTab(ctk.CTkFrame):
    """Burn rate and months of runway from recent history, plus a what-if sandbox."""

    def __init__(
        self,
        master,
        runway_service: RunwayService,
        boundary: CallBoundary,
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._svc = runway_service
        self._boundary = boundary
        self._load_gen = 0
        self._tracker: BurnRateTracker | None = None

        self.grid_columnconfigure(0, weight=3)
        self.grid_columnconfigure(1, weight=2)
        self.grid_rowconfigure(2, weight=1)

        self._build_toolbar()
        self._build_summary()
        self._build_chart_area()
        self._build_what_if()
        self._load()

    def refresh(self):
        self._load()

    def _style_ax(self, ax, fig):
        is_dark = ctk.get_appearance_mode() == "Dark"
        bg = "#2b2b2b" if is_dark else "#e4e4e4"
        fg = "#aaaaaa" if is_dark else "#444444"
        fig.patch.set_facecolor(bg)
        ax.set_facecolor(bg)
        ax.tick_params(colors=fg, labelsize=8)
        for spine in ax.spines.values():
            spine.set_edgecolor(fg)

    # ── Layout ───────────────────────────────────────────────────────────────

    def _build_toolbar(self):
        bar = ctk.CTkFrame(self, fg_color=("gray88", "gray18"), corner_radius=8)
        bar.grid(row=0, column=0, columnspan=2, sticky="ew", padx=8, pady=(8, 0))

        ctk.CTkLabel(bar, text="History:").pack(side="left", padx=(12, 4), pady=6)
        self._months_var = ctk.StringVar(value="6")
        ctk.CTkSegmentedButton(
            bar, values=_WINDOW_OPTIONS, variable=self._months_var,
            command=lambda _: self._load(),
        ).pack(side="left", padx=4)
        ctk.CTkLabel(bar, text="months").pack(side="left", padx=(2, 12))

        self._income_var = ctk.BooleanVar(value=False)
        ctk.CTkCheckBox(
            bar, text="Offset burn with income", variable=self._income_var,
            command=self._load,
        ).pack(side="left", padx=8)

        ctk.CTkButton(bar, text="Refresh", width=80, command=self._load).pack(side="right", padx=8)

    def _build_summary(self):
        card = ctk.CTkFrame(self, fg_color=("gray90", "gray20"), corner_radius=10)
        card.grid(row=1, column=0, columnspan=2, sticky="ew", padx=8, pady=8)
        card.grid_columnconfigure((0, 1, 2, 3), weight=1)

        self._value_labels = {}
        for col, key in enumerate(("Cash", "Avg Burn / mo", "Avg Income / mo", "Runway")):
            ctk.CTkLabel(card, text=key, font=ctk.CTkFont(size=12), text_color="gray60").grid(
                row=0, column=col, pady=(12, 0)
            )
            lbl = ctk.CTkLabel(card, text="-", font=ctk.CTkFont(size=18, weight="bold"))
            lbl.grid(row=1, column=col, pady=(2, 4))
            self._value_labels[key] = lbl

        self._status_label = ctk.CTkLabel(card, text="", font=ctk.CTkFont(size=12, weight="bold"))
        self._status_label.grid(row=2, column=0, padx=16, sticky="w")
        self._risk_bar = ctk.CTkProgressBar(card)
        self._risk_bar.grid(row=2, column=1, columnspan=3, padx=16, pady=(4, 12), sticky="ew")
        self._risk_bar.set(0)

    def _build_chart_area(self):
        outer = ctk.CTkFrame(self, fg_color=("gray90", "gray20"), corner_radius=8)
        outer.grid(row=2, column=0, sticky="nsew", padx=(8, 4), pady=(0, 8))
        outer.grid_columnconfigure(0, weight=1)

        ctk.CTkLabel(
            outer, text="Monthly Activity",
            font=ctk.CTkFont(size=13, weight="bold"),
        ).pack(pady=(10, 0))

        legend_frame = ctk.CTkFrame(outer, fg_color="transparent")
        legend_frame.pack()
        for color, label in (("#4CAF50", "Income"), ("#F44336", "Expense")):
            tk.Label(legend_frame, bg=color, width=2).pack(side="left", padx=(8, 2))
            ctk.CTkLabel(legend_frame, text=label, font=ctk.CTkFont(size=11)).pack(side="left", padx=(0, 8))

        self._chart_fig = Figure(figsize=(6, 2.8), dpi=80, tight_layout=True)
        self._chart_ax = self._chart_fig.add_subplot(111)
        self._chart_mpl = FigureCanvasTkAgg(self._chart_fig, master=outer)
        self._chart_mpl.get_tk_widget().pack(fill="both", expand=True, padx=8, pady=(4, 8))

    def _build_what_if(self):
        outer = ctk.CTkFrame(self, fg_color=("gray90", "gray20"), corner_radius=8)
        outer.grid(row=2, column=1, sticky="nsew", padx=(4, 8), pady=(0, 8))
        outer.grid_columnconfigure(0, weight=1)
        outer.grid_rowconfigure(3, weight=1)

        ctk.CTkLabel(
            outer, text="What If", font=ctk.CTkFont(size=13, weight="bold"),
        ).grid(row=0, column=0, columnspan=2, pady=(10, 4))

        self._cash_var = ctk.StringVar()
        ctk.CTkEntry(outer, textvariable=self._cash_var, placeholder_text="Cash").grid(
            row=1, column=0, padx=(12, 4), pady=2, sticky="ew"
        )
        ctk.CTkButton(outer, text="Set Cash", width=90, command=self._set_cash).grid(
            row=1, column=1, padx=(0, 12), pady=2
        )

        self._expense_var = ctk.StringVar()
        ctk.CTkEntry(outer, textvariable=self._expense_var, placeholder_text="Monthly expense").grid(
            row=2, column=0, padx=(12, 4), pady=2, sticky="ew"
        )
        ctk.CTkButton(outer, text="Add Month", width=90, command=self._add_expense).grid(
            row=2, column=1, padx=(0, 12), pady=2
        )

        self._sample_scroll = ctk.CTkScrollableFrame(outer, fg_color="transparent", height=120)
        self._sample_scroll.grid(row=3, column=0, columnspan=2, sticky="nsew", padx=8, pady=4)
        self._sample_scroll.grid_columnconfigure(0, weight=1)

        self._what_if_label = ctk.CTkLabel(outer, text="", anchor="w")
        self._what_if_label.grid(row=4, column=0, columnspan=2, padx=12, pady=2, sticky="ew")
        self._what_if_error = ctk.CTkLabel(outer, text="", text_color="#F44336", anchor="w")
        self._what_if_error.grid(row=5, column=0, columnspan=2, padx=12, pady=(0, 10), sticky="ew")

    # ── Data loading ─────────────────────────────────────────────────────────

    def _load(self):
        self._load_gen += 1
        gen = self._load_gen
        months = int(self._months_var.get())
        include_income = self._income_var.get()

        def fetch():
            history = self._svc.get_monthly_history(months)
            estimate = self._svc.estimate_from_history(months, include_income=include_income)
            tracker = self._svc.tracker_from_history(months)
            return history, estimate, tracker

        run_deferred(self, self._boundary, fetch,
                     on_done=lambda result: self._on_data_ready(gen, *result))

    def _on_data_ready(self, gen: int, history: list[dict], estimate: RunwayEstimate,
                       tracker: BurnRateTracker):
        if gen != self._load_gen:
            return
        self._show_estimate(estimate)
        self._draw_bar_chart(history)
        self._tracker = tracker
        self._cash_var.set(f"{tracker.estimate.current_cash:.2f}")
        self._show_tracker()

    def _show_estimate(self, est: RunwayEstimate):
        color = RUNWAY_STATUS_COLORS.get(est.status, "gray60")
        self._value_labels["Cash"].configure(text=format_currency(est.current_cash))
        self._value_labels["Avg Burn / mo"].configure(text=format_currency(est.avg_burn))
        self._value_labels["Avg Income / mo"].configure(
            text=format_currency(est.avg_income) if self._income_var.get() else "-"
        )
        self._value_labels["Runway"].configure(
            text=format_months(est.runway_months), text_color=color
        )
        sample = f"{est.sample_size} month(s) of history" if est.sample_size else "no history yet"
        self._status_label.configure(
            text=f"{est.status.upper()}  ·  {sample}", text_color=color
        )
        self._risk_bar.configure(progress_color=color)
        self._risk_bar.set(est.risk_level / 100)

    def _draw_bar_chart(self, data: list[dict]):
        ax = self._chart_ax
        ax.clear()
        self._style_ax(ax, self._chart_fig)

        if not data:
            ax.text(0.5, 0.5, "No data", ha="center", va="center",
                    transform=ax.transAxes, color="gray")
            self._chart_mpl.draw_idle()
            return

        labels = [friendly_month(d["month"]) for d in data]
        incomes = [d["income"] for d in data]
        expenses = [d["expense"] for d in data]

        x = list(range(len(labels)))
        w = 0.35
        ax.bar([i - w / 2 for i in x], incomes, w, color="#4CAF50")
        ax.bar([i + w / 2 for i in x], expenses, w, color="#F44336")
        ax.set_xticks(x)
        ax.set_xticklabels(labels, rotation=45 if len(labels) > 6 else 0, ha="right")
        ax.yaxis.set_major_formatter(
            lambda v, _: f"{v/1000:.0f}k" if abs(v) >= 1000 else f"{v:.0f}"
        )
        self._chart_mpl.draw_idle()

    # ── What-if tracker ──────────────────────────────────────────────────────

    def _show_tracker(self):
        for w in self._sample_scroll.winfo_children():
            w.destroy()
        if self._tracker is None:
            return
        for idx, amount in enumerate(self._tracker.expenses):
            row = ctk.CTkFrame(self._sample_scroll, fg_color="transparent")
            row.pack(fill="x", pady=1)
            ctk.CTkLabel(row, text=f"Month {idx + 1}", anchor="w").pack(side="left", padx=4)
            ctk.CTkButton(
                row, text="✕", width=24, height=22,
                fg_color="transparent", text_color=("gray10", "gray90"),
                command=lambda i=idx: self._remove_expense(i),
            ).pack(side="right", padx=2)
            ctk.CTkLabel(row, text=format_currency(amount), anchor="e").pack(side="right", padx=4)

        est = self._tracker.estimate
        self._what_if_label.configure(
            text=f"Burn {format_currency(est.avg_burn)}/mo  →  {format_months(est.runway_months)}",
            text_color=RUNWAY_STATUS_COLORS.get(est.status, "gray60"),
        )
        self._what_if_error.configure(text="")

    def _parse(self, var: ctk.StringVar) -> float | None:
        try:
            return float(var.get().replace(",", ""))
        except ValueError:
            self._what_if_error.configure(text="Enter a number.")
            return None

    def _set_cash(self):
        amount = self._parse(self._cash_var)
        if amount is not None and self._tracker:
            self._tracker.set_current_cash(amount)
            self._show_tracker()

    def _add_expense(self):
        amount = self._parse(self._expense_var)
        if amount is None or self._tracker is None:
            return
        try:
            self._tracker.add_expense(amount)
        except ValueError as e:
            self._what_if_error.configure(text=str(e))
            return
        self._expense_var.set("")
        self._show_tracker()

    def _remove_expense(self, index: int):
        if self._tracker:
            self._tracker.remove_expense(index)
            self._show_tracker()
