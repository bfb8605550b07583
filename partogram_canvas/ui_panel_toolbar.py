from __future__ import annotations

import tkinter as tk
from tkinter import ttk
from typing import Callable


class ToolbarPanel:
    def __init__(
        self,
        owner,
        parent: tk.Widget,
        *,
        on_tool_change: Callable[[], None],
        on_brush_change: Callable[[], None],
        on_alert_line: Callable[[], None],
        on_clear: Callable[[], None],
        on_save: Callable[[], None],
        on_export: Callable[[], None],
    ) -> None:
        self.owner = owner
        self.frame = ttk.Frame(parent)
        self.frame.pack(side="top", fill="x")

        ttk.Label(self.frame, text="Tool:").pack(side="left")
        for lbl, val in [
            ("Dilation", "dilation"),
            ("Station", "station"),
            ("Heart rate", "heart_rate"),
            ("Contractions", "contraction"),
            ("Eraser", "eraser"),
        ]:
            ttk.Radiobutton(
                self.frame,
                text=lbl,
                value=val,
                variable=owner.tool_mode,
                command=on_tool_change,
            ).pack(side="left", padx=(8, 0))

        ttk.Separator(self.frame, orient="vertical").pack(side="left", fill="y", padx=10)
        ttk.Label(self.frame, text="Brush:").pack(side="left")

        brush_combo = ttk.Combobox(
            self.frame,
            textvariable=owner.contraction_brush,
            state="readonly",
            width=9,
            values=("weak", "moderate", "strong"),
        )
        brush_combo.pack(side="left", padx=(6, 0))
        brush_combo.bind("<<ComboboxSelected>>", lambda _e: on_brush_change())

        ttk.Separator(self.frame, orient="vertical").pack(side="left", fill="y", padx=10)
        ttk.Button(self.frame, text="Alert line", command=on_alert_line).pack(side="left")
        ttk.Button(self.frame, text="Clear all", command=on_clear).pack(side="left", padx=(8, 0))

        ttk.Button(self.frame, text="Export…", command=on_export).pack(side="right")
        ttk.Button(self.frame, text="Save", command=on_save).pack(side="right", padx=(0, 8))
        ttk.Label(self.frame, textvariable=owner.status_var).pack(side="right", padx=(0, 12))
