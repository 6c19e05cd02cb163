import customtkinter as ctk

LEVEL_COLORS = {
    "info":    "#2196F3",
    "success": "#4CAF50",
    "warning": "#FF9800",
    "error":   "#F44336",
}


class AlertBanner(ctk.CTkFrame):
    """A dismissible colored strip for non-blocking messages.

    auto_hide_ms > 0 removes the banner on its own after that delay.
    """

    def __init__(self, master, message: str, level: str = "info",
                 action_text: str | None = None, action_cmd=None,
                 auto_hide_ms: int = 0, **kwargs):
        color = LEVEL_COLORS.get(level, LEVEL_COLORS["info"])
        super().__init__(master, fg_color=color, corner_radius=6, **kwargs)
        self.grid_columnconfigure(0, weight=1)

        ctk.CTkLabel(
            self, text=message, text_color="white",
            anchor="w", justify="left", wraplength=900, padx=10, pady=6
        ).grid(row=0, column=0, sticky="ew")

        btn_frame = ctk.CTkFrame(self, fg_color="transparent")
        btn_frame.grid(row=0, column=1, padx=(0, 4))

        if action_text and action_cmd:
            ctk.CTkButton(
                btn_frame, text=action_text, width=60, height=24,
                fg_color="transparent", border_width=1, border_color="white",
                text_color="white", command=action_cmd,
            ).pack(side="left", padx=2)

        ctk.CTkButton(
            btn_frame, text="✕", width=28, height=24,
            fg_color="transparent", text_color="white",
            command=self.destroy,
        ).pack(side="left")

        if auto_hide_ms > 0:
            self.after(auto_hide_ms, self._hide)

    def _hide(self):
        if self.winfo_exists():
            self.destroy()
